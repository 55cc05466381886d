"""Patch audit — find database patches that have not been recorded as run.

Patch scripts live in subdirectories of ``DatabasePatches`` and are named
``<label><number> (<description>).sql``, e.g. ``DDL100 (add column).sql``.
The label and number identify the patch in the patch-run table.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from pathlib import Path

from loguru import logger

from gman.errors import PatchNameError, QueryError
from gman.models.audit import (
    ComparisonResult,
    ComparisonStatus,
    ConfigurationIssue,
    DriftReport,
    IssueKind,
    PatchKey,
)
from gman.sync.drift import query_failed_issue
from gman.utils.file_scanner import list_top_level_dirs

PATCH_NAME = re.compile(r"(\D+)(\d+) \((.+)\)\.sql")
EXCLUDE_MARKER = "NoDeploy"
PATCH_PATTERN = "*.sql"
PATCH_SECTION = "Patches"


def parse_patch_file_name(file_name: str) -> PatchKey:
    """Extract the (type, number) key from a patch file name.

    Raises:
        PatchNameError: If the name does not follow the naming convention.
    """
    match = PATCH_NAME.fullmatch(file_name)
    if not match:
        raise PatchNameError(file_name)
    return PatchKey(patch_type=match.group(1), patch_number=match.group(2))


def scan_patch_files(
    patch_root: Path,
    exclude_marker: str = EXCLUDE_MARKER,
    pattern: str = PATCH_PATTERN,
) -> list[Path]:
    """List patch files one level below ``patch_root``.

    Subdirectories whose name contains ``exclude_marker`` are never scanned.
    """
    files: list[Path] = []
    for sub_dir in list_top_level_dirs(patch_root):
        if exclude_marker and exclude_marker in sub_dir.name:
            logger.debug("Skipping excluded patch directory {}", sub_dir)
            continue
        files.extend(sorted(p for p in sub_dir.glob(pattern) if p.is_file()))
    return files


def audit_patches(
    patch_root: Path,
    is_applied: Callable[[PatchKey], bool],
    exclude_marker: str = EXCLUDE_MARKER,
    pattern: str = PATCH_PATTERN,
) -> DriftReport:
    """Check every patch file against the patch-run lookup.

    Patches that are not recorded come back as ``PENDING_PATCH``. Badly named
    files and a missing patch directory are reported as issues. A failing
    patch-run query ends the check with an issue; patches already checked
    keep their results.
    """
    report = DriftReport(name=PATCH_SECTION)

    if not patch_root.is_dir():
        report.issues.append(
            ConfigurationIssue(
                kind=IssueKind.MISSING_DIRECTORY,
                subject=str(patch_root),
                message=f"The folder {patch_root} could not be found",
            )
        )
        return report

    for patch_file in scan_patch_files(patch_root, exclude_marker, pattern):
        try:
            key = parse_patch_file_name(patch_file.name)
        except PatchNameError as e:
            report.issues.append(
                ConfigurationIssue(
                    kind=IssueKind.INVALID_PATCH_NAME,
                    subject=patch_file.name,
                    message=str(e),
                )
            )
            continue

        try:
            applied = is_applied(key)
        except QueryError as e:
            logger.info("Patch lookup failed on {}: {}", patch_file.name, e)
            report.issues.append(query_failed_issue(PATCH_SECTION, e))
            break
        logger.debug("Patch {} ({}) applied: {}", patch_file.name, key, applied)
        report.results.append(
            ComparisonResult(
                source=PATCH_SECTION,
                subject=patch_file.name,
                status=ComparisonStatus.UNCHANGED if applied else ComparisonStatus.PENDING_PATCH,
                path=patch_file,
            )
        )

    return report
