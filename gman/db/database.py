"""Database access — one connection for the whole audit run.

Only reads are issued. Three lookups are needed:

- ``text_lookup`` — stored text of a file, by file name, for a folder definition
- ``patch_applied`` — whether a patch has been recorded in the patch-run table
- ``fetch_source`` — the stored source of a package, view, trigger...
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from loguru import logger
from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Connection, Engine, Row
from sqlalchemy.exc import DBAPIError, InterfaceError, SQLAlchemyError

from gman.config.settings import PATCH_RUN_STATEMENT
from gman.errors import ConnectivityError, QueryError
from gman.models.audit import PatchKey

DBA_SOURCE_STATEMENT = """
SELECT text FROM dba_source
WHERE type = :object_type
AND owner = :owner
AND name = :name
ORDER BY line ASC"""

METADATA_DDL_STATEMENT = """
SELECT DBMS_METADATA.GET_DDL(object_type => :object_type, name => :name, schema => :owner)
FROM DUAL"""

# Raised by DBMS_METADATA when the object does not exist
OBJECT_NOT_FOUND = "ORA-31603"

DBA_SOURCE_TYPES = {"PACKAGE": "PACKAGE", "PACKAGE_BODY": "PACKAGE BODY"}


class Database:
    """A single open connection plus the lookups an audit needs.

    Use as a context manager so the connection is released once the run ends::

        with Database.connect(settings.to_url()) as db:
            db.patch_applied(key)
    """

    def __init__(self, connection: Connection, engine: Engine | None = None,
                 patch_statement: str = PATCH_RUN_STATEMENT):
        self.connection = connection
        self.engine = engine
        self.patch_statement = patch_statement

    @classmethod
    def connect(cls, url: str | URL, patch_statement: str = PATCH_RUN_STATEMENT) -> Database:
        """Open the run's connection.

        Raises:
            ConnectivityError: If the database cannot be reached.
        """
        try:
            engine = create_engine(url, echo=False, future=True)
            connection = engine.connect()
        except (SQLAlchemyError, ImportError) as e:
            raise ConnectivityError(f"Connection to the database failed: {e}") from e
        logger.info("Connected to {}", engine.url.render_as_string(hide_password=True))
        return cls(connection, engine=engine, patch_statement=patch_statement)

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self.connection.close()
        if self.engine is not None:
            self.engine.dispose()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def fetch_text(self, statement: str, **params: Any) -> str | None:
        """Run ``statement`` and return the first column of the first row.

        Returns ``None`` when no row comes back. A row holding ``NULL`` is an
        existing but empty record and returns ``""``.
        """
        rows = self._rows(statement, params)
        if not rows:
            return None
        return _as_text(rows[0][0])

    def text_lookup(self, statement: str) -> Callable[[str], str | None]:
        """Bind ``statement`` into a ``filename -> text`` lookup."""

        def lookup(filename: str) -> str | None:
            return self.fetch_text(statement, filename=filename)

        return lookup

    def patch_applied(self, key: PatchKey) -> bool:
        rows = self._rows(
            self.patch_statement,
            {"patch_label": key.patch_type, "patch_number": key.patch_number},
        )
        return len(rows) > 0

    def fetch_source(self, owner: str, name: str, object_type: str) -> str | None:
        """Stored source of an object, or ``None`` when it does not exist."""
        if object_type in DBA_SOURCE_TYPES:
            rows = self._rows(
                DBA_SOURCE_STATEMENT,
                {"object_type": DBA_SOURCE_TYPES[object_type], "owner": owner, "name": name},
            )
            if not rows:
                return None
            return "".join(_as_text(row[0]) for row in rows)

        try:
            return self.fetch_text(
                METADATA_DDL_STATEMENT,
                object_type=object_type,
                name=name.upper(),
                owner=owner.upper(),
            )
        except QueryError as e:
            if OBJECT_NOT_FOUND in str(e):
                return None
            raise

    def _rows(self, statement: str, params: dict[str, Any]) -> list[Row]:
        try:
            return list(self.connection.execute(text(statement), params).all())
        except DBAPIError as e:
            if e.connection_invalidated or isinstance(e, InterfaceError):
                raise ConnectivityError(f"Lost the database connection: {e}") from e
            self.connection.rollback()
            raise QueryError(statement, str(e)) from e
        except SQLAlchemyError as e:
            self.connection.rollback()
            raise QueryError(statement, str(e)) from e


def _as_text(value: Any) -> str:
    """Coerce a column value to ``str``. LOB handles are read in full."""
    if value is None:
        return ""
    if hasattr(value, "read"):
        value = value.read()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)
