"""
Data models for the analyzer module.

These models represent the output of one diagnostic pass over a plan. They're
designed to be:
- Immutable (frozen=True): Issues don't change after creation
- Serializable: Easy JSON output for --format json
- Hashable: Can be used in sets for deduplication
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class IssueKind(str, Enum):
    """
    Issue kinds produced by the diagnostic engine.

    The string values are the stable identifiers used in reports and by the
    suggestion mapper.
    """

    UNUSED_AVAILABLE_INDEX = "unused_available_index"
    FULL_TABLE_SCAN = "full_table_scan"
    INEFFICIENT_JOIN = "inefficient_join"
    FUNCTION_ON_COLUMN = "function_on_column"
    INEFFICIENT_LIKE = "inefficient_like"
    LOW_SELECTIVITY = "low_selectivity"
    FILESORT_REQUIRED = "filesort_required"
    TEMP_TABLE_REQUIRED = "temp_table_required"
    IMPLICIT_TYPE_CONVERSION = "implicit_type_conversion"


class Priority(str, Enum):
    """
    ROOT: A primary cause (missing index, full scan, filesort)
    DERIVED: A downstream symptom that usually co-occurs with a root cause
    """

    ROOT = "root"
    DERIVED = "derived"

    @property
    def rank(self) -> int:
        return 0 if self is Priority.ROOT else 1


class DetectedIssue(BaseModel):
    """
    A single anti-pattern found in a plan.

    Attributes:
        kind: Issue identifier (an IssueKind value)
        table: Table the issue is attributed to, "unknown" when none applies
        description: Human-readable explanation
        priority: ROOT or DERIVED
        columns: Columns involved, when the issue names any (LIKE patterns)
        source: Identifier of the analyzed artifact (e.g. its filename)
    """

    model_config = ConfigDict(frozen=True)

    kind: str
    table: str = "unknown"
    description: str
    priority: Priority = Priority.ROOT
    columns: tuple[str, ...] = ()
    source: str | None = None

    @property
    def is_root(self) -> bool:
        return self.priority is Priority.ROOT

    def dedup_key(self) -> tuple[str, str, str, str]:
        return (self.kind, self.table, self.description, self.priority.value)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class RuleMatch(BaseModel):
    """A catalog rule whose predicates all held for the analyzed input."""

    model_config = ConfigDict(frozen=True)

    kind: str
    message: str
    issue_kind: str


class AnalysisResult(BaseModel):
    """
    Complete result of one diagnostic pass.

    `issues` is already ordered: every ROOT issue (in discovery order)
    precedes every DERIVED issue (in discovery order).
    """

    model_config = ConfigDict(frozen=True)

    issues: tuple[DetectedIssue, ...] = ()
    rule_matches: tuple[RuleMatch, ...] = ()
    source: str | None = None
    node_count: int = 0

    @property
    def has_issues(self) -> bool:
        return bool(self.issues)

    @property
    def root_issues(self) -> list[DetectedIssue]:
        return [i for i in self.issues if i.priority is Priority.ROOT]

    @property
    def derived_issues(self) -> list[DetectedIssue]:
        return [i for i in self.issues if i.priority is Priority.DERIVED]

    def issues_of_kind(self, kind: IssueKind | str) -> list[DetectedIssue]:
        value = kind.value if isinstance(kind, IssueKind) else kind
        return [i for i in self.issues if i.kind == value]

    def by_table(self) -> dict[str, list[DetectedIssue]]:
        """Group issues by table, preserving first-seen table order."""
        grouped: dict[str, list[DetectedIssue]] = {}
        for issue in self.issues:
            grouped.setdefault(issue.table, []).append(issue)
        return grouped

    def summary(self) -> dict[str, int]:
        return {
            "total": len(self.issues),
            "root": len(self.root_issues),
            "derived": len(self.derived_issues),
            "tables": len(self.by_table()),
            "rules_matched": len(self.rule_matches),
        }


class SuggestionAlternative(BaseModel):
    """One alternative approach inside a suggestion."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str | None = None
    example_sql: str | None = None
    benefits: tuple[str, ...] = ()


class SuggestionRecord(BaseModel):
    """
    Structured remediation for one detected issue.

    Attributes:
        kind: Suggestion type (e.g. "create_index", "force_index")
        issue_kind: The DetectedIssue kind this remediates
        table: Table the remediation targets
        description: What to do, with the table name embedded
        example_sql: Example corrective statement
        recommendations / considerations / benefits / notes: Trade-off lists
        alternatives: Alternative approaches, each with its own example
    """

    model_config = ConfigDict(frozen=True)

    kind: str
    issue_kind: str
    table: str
    description: str
    example_sql: str | None = None
    recommendations: tuple[str, ...] = ()
    considerations: tuple[str, ...] = ()
    benefits: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()
    alternatives: tuple[SuggestionAlternative, ...] = Field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_defaults=True)
