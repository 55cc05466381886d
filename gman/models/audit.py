"""Audit data models — folder definitions, patch keys, results and issues."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


@dataclass(frozen=True)
class FolderDefinition:
    """Binds a CodeSource folder to the statement that loads its files from the database."""

    name: str  # Used in reports only
    directory: str  # Relative to the CodeSource root
    extension: str  # Glob filter, e.g. "*.xml"
    lookup_statement: str  # Takes a single :filename parameter


@dataclass(frozen=True)
class PatchKey:
    """Identity of a database patch as recorded in the patch-run table."""

    patch_type: str
    patch_number: str

    def __str__(self) -> str:
        return f"{self.patch_type}{self.patch_number}"


class ComparisonStatus(Enum):
    """Outcome of comparing one CodeSource item against the database."""

    NEW = "new"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    PENDING_PATCH = "pending_patch"


class IssueKind:
    MISSING_DIRECTORY = "missing_directory"
    INVALID_DEFINITION = "invalid_definition"
    INVALID_PATCH_NAME = "invalid_patch_name"
    QUERY_FAILED = "query_failed"
    UNREADABLE_FILE = "unreadable_file"
    UNKNOWN_SOURCE_TYPE = "unknown_source_type"


@dataclass(frozen=True)
class ComparisonResult:
    """Classification of a single file or patch."""

    source: str
    subject: str
    status: ComparisonStatus
    path: Path | None = None

    @property
    def is_drift(self) -> bool:
        return self.status != ComparisonStatus.UNCHANGED

    @property
    def message(self) -> str:
        if self.status == ComparisonStatus.NEW:
            return f"{self.source} {self.subject} is new."
        if self.status == ComparisonStatus.UPDATED:
            return f"{self.source} {self.subject} will be updated."
        if self.status == ComparisonStatus.PENDING_PATCH:
            return f"Patch {self.subject} will be run."
        return f"{self.source} {self.subject} is unchanged."


@dataclass(frozen=True)
class ConfigurationIssue:
    """A per-item configuration problem. Reported, never fatal."""

    kind: str
    subject: str
    message: str


@dataclass
class DriftReport:
    """Results and issues produced by a single audit pass."""

    name: str
    results: list[ComparisonResult] = field(default_factory=list)
    issues: list[ConfigurationIssue] = field(default_factory=list)

    @property
    def has_drift(self) -> bool:
        return any(r.is_drift for r in self.results)

    def by_status(self, status: ComparisonStatus) -> list[ComparisonResult]:
        return [r for r in self.results if r.status == status]

    def summary(self) -> str:
        if not self.has_drift:
            return f"{self.name}: no drift detected ({len(self.results)} checked)"
        drifted = sum(1 for r in self.results if r.is_drift)
        return f"{self.name}: DRIFT [{drifted} of {len(self.results)}]"


@dataclass
class AuditReport:
    """Everything collected during one audit run."""

    passes: list[DriftReport] = field(default_factory=list)
    issues: list[ConfigurationIssue] = field(default_factory=list)

    @property
    def results(self) -> list[ComparisonResult]:
        return [r for report in self.passes for r in report.results]

    @property
    def all_issues(self) -> list[ConfigurationIssue]:
        return self.issues + [i for report in self.passes for i in report.issues]

    @property
    def has_drift(self) -> bool:
        return any(report.has_drift for report in self.passes)

    def by_status(self, status: ComparisonStatus) -> list[ComparisonResult]:
        return [r for r in self.results if r.status == status]

    def summary(self) -> str:
        counts = {status: len(self.by_status(status)) for status in ComparisonStatus}
        return (
            f"{counts[ComparisonStatus.NEW]} new, "
            f"{counts[ComparisonStatus.UPDATED]} updated, "
            f"{counts[ComparisonStatus.UNCHANGED]} unchanged, "
            f"{counts[ComparisonStatus.PENDING_PATCH]} pending patches, "
            f"{len(self.all_issues)} issues"
        )
