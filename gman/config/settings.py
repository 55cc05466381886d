"""Run settings — where to look on disk and how to reach the database.

Settings may come from a YAML file; command-line options override it::

    definitions_dir: gman
    patch_dir: DatabasePatches
    patch_exclude_marker: NoDeploy
    check_source: true
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from gman.errors import ConfigurationError

PATCH_RUN_STATEMENT = """
SELECT pr.id FROM promotemgr.patch_runs pr
WHERE pr.patch_label = :patch_label
AND pr.patch_number = :patch_number
AND pr.ignore_flag IS NULL"""

DEFAULT_USERNAME = "XVIEWMGR"
DEFAULT_PORT = 1521
ORACLE_DRIVER = "oracle+oracledb"


@dataclass(frozen=True)
class AuditSettings:
    """What to compare, relative to the CodeSource root."""

    code_source_dir: Path = Path(".")
    definitions_dir: Path = Path("gman")
    patch_dir: str = "DatabasePatches"
    patch_exclude_marker: str = "NoDeploy"
    patch_pattern: str = "*.sql"
    patch_statement: str = PATCH_RUN_STATEMENT
    check_source: bool = False
    source_dir: str = "DatabaseSource/CoreSource"
    dump_dir: Path | None = None

    @property
    def patch_root(self) -> Path:
        return self.code_source_dir / self.patch_dir

    @property
    def source_root(self) -> Path:
        return self.code_source_dir / self.source_dir

    def with_overrides(self, **overrides) -> AuditSettings:
        """Return a copy with every non-``None`` override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


@dataclass(frozen=True)
class ConnectionSettings:
    """Database coordinates: a full SQLAlchemy URL or Oracle host/port/SID."""

    url: str | None = None
    username: str = DEFAULT_USERNAME
    password: str | None = None
    host: str | None = None
    port: int = DEFAULT_PORT
    sid: str | None = None

    @property
    def is_complete(self) -> bool:
        if self.url:
            return True
        return all([self.password, self.host, self.sid])

    def to_url(self) -> URL:
        """Build the SQLAlchemy URL.

        Raises:
            ConfigurationError: If neither a URL nor host, SID and password are set.
        """
        if self.url:
            try:
                return make_url(self.url)
            except ArgumentError as e:
                raise ConfigurationError(f"Invalid database URL: {e}") from e
        if not self.is_complete:
            raise ConfigurationError("A database URL, or host, SID and password are required")
        return URL.create(
            ORACLE_DRIVER,
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.sid,
        )


def load_settings(path: str | Path | None = None) -> AuditSettings:
    """Load audit settings from a YAML file, or defaults when no path is given."""
    if path is None:
        return AuditSettings()

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read settings {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a mapping")

    known = {f.name for f in fields(AuditSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown settings in {path}: {', '.join(unknown)}")

    for key in ("code_source_dir", "definitions_dir", "dump_dir"):
        if data.get(key) is not None:
            data[key] = Path(data[key])

    return AuditSettings(**data)
