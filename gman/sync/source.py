"""Source check — compare stored-procedure style sources with the database.

Files live under ``DatabaseSource/CoreSource/<OWNER>/<NAME>.<ext>``. The
extension decides the object type and the file stem is the object name.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from loguru import logger

from gman.errors import QueryError
from gman.models.audit import (
    ComparisonResult,
    ComparisonStatus,
    ConfigurationIssue,
    DriftReport,
    IssueKind,
)
from gman.sync.drift import missing_directory_issue, query_failed_issue, unreadable_file_issue
from gman.sync.normalizer import normalize_procedural
from gman.utils.file_scanner import list_top_level_dirs, read_text

SOURCE_SECTION = "Database Source"

OBJECT_TYPES = {
    ".pks": "PACKAGE",
    ".pkb": "PACKAGE_BODY",
    ".vw": "VIEW",
    ".tps": "TYPE",
    ".tpb": "TYPE_BODY",
    ".trg": "TRIGGER",
    ".fnc": "FUNCTION",
    ".prc": "PROCEDURE",
}

FetchSource = Callable[[str, str, str], str | None]


def object_type_for(path: Path) -> str | None:
    return OBJECT_TYPES.get(path.suffix.lower())


def compare_source_tree(
    source_root: Path,
    fetch_source: FetchSource,
    *,
    dump_dir: Path | None = None,
    read_text: Callable[[Path], str] = read_text,
) -> DriftReport:
    """Compare every owner folder under ``source_root`` with the database.

    Args:
        source_root: Directory holding one folder per owning schema.
        fetch_source: ``(owner, name, object_type) -> text`` or ``None`` when
            the object does not exist in the database.
        dump_dir: When set, the normalized database and file text of every
            changed object are written here for manual diffing.

    A failed lookup or an unreadable file is recorded as an issue for that
    object and the walk moves on to the next file.
    """
    report = DriftReport(name=SOURCE_SECTION)

    if not source_root.is_dir():
        report.issues.append(missing_directory_issue(source_root))
        return report

    for owner_dir in list_top_level_dirs(source_root):
        owner = owner_dir.name
        for path in sorted(p for p in owner_dir.iterdir() if p.is_file()):
            object_type = object_type_for(path)
            if object_type is None:
                report.issues.append(
                    ConfigurationIssue(
                        kind=IssueKind.UNKNOWN_SOURCE_TYPE,
                        subject=str(path),
                        message=f"Unknown extension {path.suffix} for {path.name}",
                    )
                )
                continue

            name = path.stem
            try:
                stored = fetch_source(owner, name, object_type)
            except QueryError as e:
                logger.info("Source lookup failed for {}.{}: {}", owner, name, e)
                report.issues.append(query_failed_issue(f"{owner}.{name}", e))
                continue
            if stored is None:
                status = ComparisonStatus.NEW
            else:
                try:
                    file_text = normalize_procedural(read_text(path), name)
                except OSError as e:
                    report.issues.append(unreadable_file_issue(path, e))
                    continue
                database_text = normalize_procedural(stored, name)
                if database_text == file_text:
                    status = ComparisonStatus.UNCHANGED
                else:
                    status = ComparisonStatus.UPDATED
                    if dump_dir is not None:
                        _dump(dump_dir, owner, path.name, database_text, file_text)

            logger.debug("{} {}.{} -> {}", object_type, owner, name, status.value)
            report.results.append(
                ComparisonResult(
                    source=object_type,
                    subject=path.name,
                    status=status,
                    path=path,
                )
            )

    return report


def _dump(dump_dir: Path, owner: str, file_name: str, database_text: str, file_text: str) -> None:
    target = dump_dir / owner
    target.mkdir(parents=True, exist_ok=True)
    (target / f"{file_name}.database").write_text(database_text, encoding="utf-8")
    (target / f"{file_name}.file").write_text(file_text, encoding="utf-8")
