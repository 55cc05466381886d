"""Drift detection — compare a CodeSource folder with its database counterpart.

A ``FolderDefinition`` says which folder to scan, which files to pick up and
which statement loads a file's stored copy. ``compare_definition`` interprets
one definition; it knows nothing about what the files represent.

Each file ends up as one of:
1. ``NEW`` — the lookup returned no record
2. ``UPDATED`` — the normalized file and record differ
3. ``UNCHANGED`` — the normalized file and record are identical
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
    FolderDefinition,
    IssueKind,
)
from gman.sync.normalizer import normalize_markup
from gman.utils.file_scanner import list_files, read_text

Lookup = Callable[[str], str | None]
ListFiles = Callable[[Path, str], list[Path]]
ReadText = Callable[[Path], str]


def resolve_directory(definition: FolderDefinition, root_dir: str | Path) -> Path:
    return Path(root_dir) / definition.directory


def missing_directory_issue(path: Path) -> ConfigurationIssue:
    return ConfigurationIssue(
        kind=IssueKind.MISSING_DIRECTORY,
        subject=str(path),
        message=f"The folder {path} could not be found",
    )


def query_failed_issue(subject: str, error: QueryError) -> ConfigurationIssue:
    return ConfigurationIssue(
        kind=IssueKind.QUERY_FAILED,
        subject=subject,
        message=f"Query for {subject} failed: {error}",
    )


def unreadable_file_issue(path: Path, error: OSError) -> ConfigurationIssue:
    return ConfigurationIssue(
        kind=IssueKind.UNREADABLE_FILE,
        subject=str(path),
        message=f"Could not read {path}: {error}",
    )


def classify(file_text: str, stored_text: str | None) -> ComparisonStatus:
    """Classify a file given the stored copy (``None`` when there is none)."""
    if stored_text is None:
        return ComparisonStatus.NEW
    if normalize_markup(stored_text) != normalize_markup(file_text):
        return ComparisonStatus.UPDATED
    return ComparisonStatus.UNCHANGED


def compare_definition(
    definition: FolderDefinition,
    root_dir: str | Path,
    lookup: Lookup,
    *,
    list_files: ListFiles = list_files,
    read_text: ReadText = read_text,
) -> DriftReport:
    """Compare every file selected by ``definition`` against the database.

    Args:
        definition: The folder binding to interpret.
        root_dir: The CodeSource root the definition's directory is relative to.
        lookup: Returns the stored text for a file base name, or ``None``.
        list_files: Enumerates files under a directory matching a glob.
        read_text: Reads a whole file.

    A missing directory yields an issue and no results. A ``QueryError`` from
    ``lookup`` stops the comparison with an issue, keeping the results so
    far; any other error (e.g. ``ConnectivityError``) propagates.
    """
    report = DriftReport(name=definition.name)
    directory = resolve_directory(definition, root_dir)

    if not directory.is_dir():
        report.issues.append(missing_directory_issue(directory))
        return report

    logger.info("Comparing {} ({}/{})", definition.name, directory, definition.extension)

    for path in list_files(directory, definition.extension):
        try:
            stored = lookup(path.name)
        except QueryError as e:
            logger.info("Lookup for {} failed on {}: {}", definition.name, path.name, e)
            report.issues.append(query_failed_issue(definition.name, e))
            break
        if stored is None:
            status = ComparisonStatus.NEW
        else:
            try:
                file_text = read_text(path)
            except OSError as e:
                report.issues.append(unreadable_file_issue(path, e))
                continue
            status = classify(file_text, stored)

        logger.debug("{} {} -> {}", definition.name, path.name, status.value)
        report.results.append(
            ComparisonResult(
                source=definition.name,
                subject=path.name,
                status=status,
                path=path,
            )
        )

    return report
