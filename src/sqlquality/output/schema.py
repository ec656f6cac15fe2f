"""
JSON Schema definitions for stable report output.

Provides versioned schema for:
- CI/CD integration (--format json)
- Feeding reports to other tooling

The schema is stable across minor versions.
Breaking changes only in major versions.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from sqlquality.analyzer.models import DetectedIssue, RuleMatch, SuggestionRecord

# Schema version - increment on breaking changes
SCHEMA_VERSION = "1.0"


class SummarySchema(BaseModel):
    """Issue counts for one analyzed artifact."""

    model_config = ConfigDict(frozen=True)

    total: int = Field(0, description="Total issues")
    root: int = Field(0, description="Root-cause issues")
    derived: int = Field(0, description="Derived-symptom issues")
    tables: int = Field(0, description="Distinct tables with issues")
    rules_matched: int = Field(0, description="Catalog rules that matched")


class IssueReportSchema(BaseModel):
    """Schema for the issues of one analyzed artifact."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(SCHEMA_VERSION, description="Schema version")
    source: str | None = Field(None, description="Artifact identifier, e.g. SQL filename")
    summary: SummarySchema
    issues: list[DetectedIssue] = Field(default_factory=list, description="Root issues first, then derived")
    rule_matches: list[RuleMatch] = Field(default_factory=list, description="Catalog matches in catalog order")
    suggestions: dict[str, list[SuggestionRecord]] | None = Field(
        None, description="Remediations keyed by table, when requested"
    )


class BatchReportSchema(BaseModel):
    """Schema for a multi-artifact run."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(SCHEMA_VERSION, description="Schema version")
    fail_on: str = Field(..., description="Gate threshold (root/any/none)")
    has_failures: bool = Field(..., description="Whether the gate failed")
    total_issues: int = Field(0, description="Issues across all artifacts")
    reports: list[IssueReportSchema] = Field(default_factory=list)
    errors: dict[str, str] = Field(
        default_factory=dict,
        description="Artifacts that could not be analyzed, by source",
    )


def get_json_schema() -> dict[str, Any]:
    """Get the JSON Schema of a batch report."""
    return BatchReportSchema.model_json_schema()
