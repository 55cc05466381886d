"""Audit orchestration — one stateless pass over the CodeSource and the database.

Order of work:
1. Load the folder definitions and check that their folders exist
2. Patch audit over ``DatabasePatches``
3. One drift comparison per usable definition
4. Optionally, the stored-source comparison

Per-item problems, failed queries (``QueryError``) included, are recorded as
issues and the run carries on. Only a ``ConnectivityError`` from the
database ends the run.
"""

from __future__ import annotations

from loguru import logger

from gman.config.definitions import load_definitions
from gman.config.settings import AuditSettings
from gman.models.audit import (
    AuditReport,
    ComparisonResult,
    ConfigurationIssue,
    DriftReport,
    FolderDefinition,
)
from gman.sync.drift import compare_definition, missing_directory_issue, resolve_directory
from gman.sync.patches import audit_patches
from gman.sync.source import compare_source_tree

DEFINITIONS_SECTION = "Definitions"


class AuditListener:
    """Receives audit progress as it happens. The default ignores everything."""

    def on_section(self, title: str) -> None:
        pass

    def on_result(self, result: ComparisonResult) -> None:
        pass

    def on_issue(self, issue: ConfigurationIssue) -> None:
        pass


class AuditRunner:
    """Runs a complete audit against an open database.

    ``database`` must provide ``text_lookup(statement)``,
    ``patch_applied(key)`` and ``fetch_source(owner, name, object_type)``.
    """

    def __init__(self, settings: AuditSettings, database, listener: AuditListener | None = None):
        self.settings = settings
        self.database = database
        self.listener = listener or AuditListener()

    def run(self) -> AuditReport:
        report = AuditReport()

        definitions = self.load_definitions(report)
        self._record(report, self.check_patches())

        for definition in definitions:
            self._record(report, self.check_definition(definition))

        if self.settings.check_source:
            self._record(report, self.check_source())

        logger.info("Audit finished: {}", report.summary())
        return report

    def load_definitions(self, report: AuditReport) -> list[FolderDefinition]:
        """Load definitions, dropping (and reporting) those without a folder."""
        self.listener.on_section(DEFINITIONS_SECTION)
        loaded = load_definitions(self.settings.definitions_dir)
        usable = []

        for issue in loaded.issues:
            self._issue(report, issue)

        for definition in loaded.definitions:
            directory = resolve_directory(definition, self.settings.code_source_dir)
            if not directory.is_dir():
                self._issue(report, missing_directory_issue(directory))
                continue
            usable.append(definition)

        logger.info("Loaded {} of {} definitions", len(usable), len(loaded.definitions))
        return usable

    def check_patches(self) -> DriftReport:
        self.listener.on_section("Patches")
        return audit_patches(
            self.settings.patch_root,
            self.database.patch_applied,
            exclude_marker=self.settings.patch_exclude_marker,
            pattern=self.settings.patch_pattern,
        )

    def check_definition(self, definition: FolderDefinition) -> DriftReport:
        self.listener.on_section(definition.name)
        lookup = self.database.text_lookup(definition.lookup_statement)
        return compare_definition(definition, self.settings.code_source_dir, lookup)

    def check_source(self) -> DriftReport:
        self.listener.on_section("Database Source")
        return compare_source_tree(
            self.settings.source_root,
            self.database.fetch_source,
            dump_dir=self.settings.dump_dir,
        )

    def _record(self, report: AuditReport, drift: DriftReport) -> None:
        report.passes.append(drift)
        for result in drift.results:
            self.listener.on_result(result)
        for issue in drift.issues:
            self.listener.on_issue(issue)

    def _issue(self, report: AuditReport, issue: ConfigurationIssue) -> None:
        report.issues.append(issue)
        self.listener.on_issue(issue)
