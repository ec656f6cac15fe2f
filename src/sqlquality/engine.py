"""
AnalysisService - orchestration layer for sqlquality.

The single entry point for running analyses over one or many SQL
artifacts. The CLI (and any CI wrapper) should use this service rather
than wiring analyzer, suggestion mapper and gate logic themselves.

Usage:
    from sqlquality.engine import AnalysisService

    service = AnalysisService()

    # One artifact
    report = service.analyze(plan, messages, source="2_filesort.sql")

    # CI pipeline: many artifacts, one gate
    batch = service.analyze_batch(
        [("1_full_table_scan.sql", plan1, []), ("2_filesort.sql", plan2, warnings2)],
        fail_on="root",
    )
    if batch.has_failures:
        sys.exit(1)

The service holds only immutable configuration; independent artifacts may
be analyzed from several threads with one shared instance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from sqlquality.analyzer.analyzer import ExplainAnalyzer
from sqlquality.analyzer.models import AnalysisResult, DetectedIssue, SuggestionRecord
from sqlquality.analyzer.suggestions import suggest_all
from sqlquality.config import Config, FailOn, get_config
from sqlquality.exceptions import SqlQualityError
from sqlquality.plan.models import DiagnosticMessage, ExplainPlan
from sqlquality.schema import SchemaInfo

logger = logging.getLogger(__name__)

Artifact = tuple[str, "ExplainPlan | Mapping[str, Any]", "Iterable[DiagnosticMessage | Mapping[str, Any]]"]


@dataclass(frozen=True)
class AnalysisReport:
    """
    Analysis of one artifact with its remediations.

    `suggestions` is empty unless the caller asked for them.
    """

    result: AnalysisResult
    suggestions: dict[str, list[SuggestionRecord]] = field(default_factory=dict)

    @property
    def source(self) -> str | None:
        return self.result.source

    @property
    def issues(self) -> tuple[DetectedIssue, ...]:
        return self.result.issues

    @property
    def has_root_issues(self) -> bool:
        return bool(self.result.root_issues)

    @property
    def has_issues(self) -> bool:
        return self.result.has_issues


@dataclass(frozen=True)
class BatchReport:
    """
    Report for a batch of artifacts (CI/CD use case).

    `reports` is keyed by artifact identifier in insertion order.
    """

    reports: dict[str, AnalysisReport] = field(default_factory=dict)
    fail_on: FailOn = FailOn.ROOT
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def total_plans(self) -> int:
        return len(self.reports)

    @property
    def total_issues(self) -> int:
        return sum(len(r.issues) for r in self.reports.values())

    @property
    def root_count(self) -> int:
        return sum(len(r.result.root_issues) for r in self.reports.values())

    @property
    def derived_count(self) -> int:
        return sum(len(r.result.derived_issues) for r in self.reports.values())

    @property
    def has_issues(self) -> bool:
        return self.total_issues > 0

    @property
    def has_failures(self) -> bool:
        """Check whether the batch trips the fail_on gate."""
        if self.fail_on == FailOn.NONE:
            return False
        if self.errors:
            return True
        if self.fail_on == FailOn.ROOT:
            return self.root_count > 0
        return self.total_issues > 0

    def issues_by_source(self) -> dict[str, list[DetectedIssue]]:
        return {source: list(r.issues) for source, r in self.reports.items()}

    def to_summary_dict(self) -> dict[str, Any]:
        """Export summary as dictionary for JSON output."""
        return {
            "total_plans": self.total_plans,
            "total_issues": self.total_issues,
            "root_count": self.root_count,
            "derived_count": self.derived_count,
            "errors": dict(self.errors),
            "fail_on": self.fail_on.value,
            "has_failures": self.has_failures,
        }


class AnalysisService:
    """
    Orchestration service for sqlquality.

    Coordinates plan analysis, suggestion mapping and the CI gate into a
    single workflow.
    """

    def __init__(self, config: Config | None = None) -> None:
        """
        Initialize the service.

        Args:
            config: Configuration instance (if None, uses get_config())
        """
        self._config = config or get_config()
        self._analyzer = ExplainAnalyzer(config=self._config)

    @property
    def config(self) -> Config:
        return self._config

    @property
    def analyzer(self) -> ExplainAnalyzer:
        return self._analyzer

    def analyze(
        self,
        plan: ExplainPlan | Mapping[str, Any],
        messages: Iterable[DiagnosticMessage | Mapping[str, Any]] = (),
        source: str | None = None,
        *,
        with_suggestions: bool = False,
        schema_info: Mapping[str, SchemaInfo] | None = None,
    ) -> AnalysisReport:
        """
        Analyze a single artifact.

        Args:
            plan: Parsed plan or decoded EXPLAIN FORMAT=JSON document
            messages: SHOW WARNINGS rows
            source: Artifact identifier, e.g. its SQL filename
            with_suggestions: Also map issues to remediations
            schema_info: Optional {table: SchemaInfo} for richer suggestions

        Returns:
            AnalysisReport
        """
        result = self._analyzer.analyze(plan, messages, source=source)
        suggestions = suggest_all(result.issues, schema_info) if with_suggestions else {}
        return AnalysisReport(result=result, suggestions=suggestions)

    def analyze_batch(
        self,
        artifacts: Sequence[Artifact],
        fail_on: FailOn | str | None = None,
        *,
        with_suggestions: bool = False,
        schema_info: Mapping[str, SchemaInfo] | None = None,
    ) -> BatchReport:
        """
        Analyze a batch of artifacts (CI/CD use case).

        Args:
            artifacts: (source, plan, messages) tuples
            fail_on: Gate threshold; defaults to the configured one
            with_suggestions: Also map issues to remediations
            schema_info: Optional {table: SchemaInfo} shared by all artifacts

        Returns:
            BatchReport keyed by source, in artifact order. A repeated
            source keeps its first report and is recorded in `errors`.
        """
        gate = FailOn(fail_on) if fail_on is not None else self._config.fail_on

        reports: dict[str, AnalysisReport] = {}
        errors: dict[str, str] = {}
        for source, plan, messages in artifacts:
            if source in reports or source in errors:
                logger.warning("Duplicate artifact identifier %s; later artifact not analyzed", source)
                errors[source] = f"Duplicate artifact identifier: {source}"
                continue
            try:
                reports[source] = self.analyze(
                    plan,
                    messages,
                    source=source,
                    with_suggestions=with_suggestions,
                    schema_info=schema_info,
                )
            except (SqlQualityError, TypeError) as e:
                logger.warning("Failed to analyze %s: %s", source, e)
                errors[source] = str(e)

        logger.debug(
            "Batch analyzed: %d artifact(s), %d error(s)", len(reports), len(errors)
        )
        return BatchReport(reports=reports, fail_on=gate, errors=errors)
