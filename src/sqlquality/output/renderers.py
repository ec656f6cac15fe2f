"""
Output renderers for different formats.

Separates presentation logic from analysis logic.
Uses schema.py Pydantic models as the single source of truth
for JSON serialization.

Issue listings keep the analyzer's two-tier order: every root issue is
rendered before any derived issue, and within each tier issues are grouped
by table in first-seen order.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import TYPE_CHECKING, Mapping, Sequence

from sqlquality.analyzer.models import AnalysisResult, DetectedIssue, SuggestionRecord
from sqlquality.output.schema import (
    BatchReportSchema,
    IssueReportSchema,
    SummarySchema,
)

if TYPE_CHECKING:
    from sqlquality.engine import AnalysisReport, BatchReport

SEPARATOR = "=" * 80

Suggestions = Mapping[str, Sequence[SuggestionRecord]]


class OutputFormat(str, Enum):
    """Supported output formats."""

    TEXT = "text"
    JSON = "json"
    MARKDOWN = "markdown"


def _source_label(source: str | None) -> str:
    return source or "<input>"


def _group_by_table(issues: Sequence[DetectedIssue]) -> dict[str, list[DetectedIssue]]:
    grouped: dict[str, list[DetectedIssue]] = {}
    for issue in issues:
        grouped.setdefault(issue.table, []).append(issue)
    return grouped


def _tiers(result: AnalysisResult) -> list[tuple[str, list[DetectedIssue]]]:
    return [
        ("Root causes", result.root_issues),
        ("Derived symptoms", result.derived_issues),
    ]


# =============================================================================
# Schema-based serialization (single source of truth)
# =============================================================================


def _result_to_schema(
    result: AnalysisResult,
    suggestions: Suggestions | None = None,
) -> IssueReportSchema:
    return IssueReportSchema(
        source=result.source,
        summary=SummarySchema(**result.summary()),
        issues=list(result.issues),
        rule_matches=list(result.rule_matches),
        suggestions=(
            {table: list(records) for table, records in suggestions.items()}
            if suggestions is not None
            else None
        ),
    )


# =============================================================================
# Issues
# =============================================================================


def render_issues(
    result: AnalysisResult,
    format: OutputFormat = OutputFormat.TEXT,
) -> str:
    """
    Render the issues of one artifact in the specified format.

    Args:
        result: Analysis result to render
        format: Output format (text, json, markdown)

    Returns:
        Formatted string
    """
    if format == OutputFormat.TEXT:
        return render_issues_text(result)
    elif format == OutputFormat.JSON:
        return json.dumps(_result_to_schema(result).model_dump(mode="json"), indent=2)
    elif format == OutputFormat.MARKDOWN:
        return render_issues_markdown(result)
    else:
        raise ValueError(f"Unknown output format: {format}")


def render_issues_text(result: AnalysisResult) -> str:
    """
    Plain-text issue listing.

    Example:
        Issues found in SQL file: 2_filesort.sql

        Root causes:
          - filesort_required: Filesort detected in ORDER BY. ... (Table: orders)
    """
    source = _source_label(result.source)
    if not result.has_issues:
        return f"No issues found in SQL file: {source}"

    lines = [f"Issues found in SQL file: {source}"]
    for title, issues in _tiers(result):
        if not issues:
            continue
        lines.append("")
        lines.append(f"{title}:")
        for table, table_issues in _group_by_table(issues).items():
            for issue in table_issues:
                lines.append(f"  - {issue.kind}: {issue.description} (Table: {table})")
    return "\n".join(lines)


def render_issues_markdown(result: AnalysisResult) -> str:
    """Issue listing as Markdown, suitable for PR comments."""
    source = _source_label(result.source)
    lines = [f"## `{source}`", ""]

    if not result.has_issues:
        lines.append("✅ **No issues found**")
        return "\n".join(lines)

    summary = result.summary()
    lines.append(
        f"🔴 **{summary['root']} root cause(s)**, "
        f"{summary['derived']} derived symptom(s) across {summary['tables']} table(s)"
    )
    lines.append("")

    for title, issues in _tiers(result):
        if not issues:
            continue
        lines.append(f"### {title}")
        lines.append("")
        for table, table_issues in _group_by_table(issues).items():
            lines.append(f"**Table:** `{table}`")
            lines.append("")
            for issue in table_issues:
                lines.append(f"- `{issue.kind}`: {issue.description}")
            lines.append("")

    return "\n".join(lines).rstrip() + "\n"


# =============================================================================
# Suggestions
# =============================================================================


def render_suggestions(
    suggestions: Suggestions,
    format: OutputFormat = OutputFormat.TEXT,
) -> str:
    """Render a {table: [SuggestionRecord]} map."""
    if format == OutputFormat.TEXT:
        return render_suggestions_text(suggestions)
    elif format == OutputFormat.JSON:
        payload = {
            table: [record.to_dict() for record in records]
            for table, records in suggestions.items()
        }
        return json.dumps(payload, indent=2)
    elif format == OutputFormat.MARKDOWN:
        return render_suggestions_markdown(suggestions)
    else:
        raise ValueError(f"Unknown output format: {format}")


def _bullets(lines: list[str], title: str, items: Sequence[str]) -> None:
    if not items:
        return
    lines.append("")
    lines.append(f"{title}:")
    for item in items:
        lines.append(f"- {item}")


def render_suggestions_text(suggestions: Suggestions) -> str:
    if not suggestions:
        return "No optimization suggestions."

    lines = ["Optimization Suggestions:", "========================"]

    for table, records in suggestions.items():
        heading = f"Table: {table}"
        lines.append("")
        lines.append(heading)
        lines.append("-" * len(heading))

        for record in records:
            lines.append("")
            lines.append(f"* {record.description}")

            if record.example_sql:
                lines.append("")
                lines.append("Example SQL:")
                lines.append("```sql")
                lines.append(record.example_sql)
                lines.append("```")

            _bullets(lines, "Recommendations", record.recommendations)
            _bullets(lines, "Considerations", record.considerations)
            _bullets(lines, "Benefits", record.benefits)
            _bullets(lines, "Notes", record.notes)

            if record.alternatives:
                lines.append("")
                lines.append("Alternatives:")
                for alt in record.alternatives:
                    text = f"{alt.title}: {alt.description}" if alt.description else alt.title
                    lines.append(f"- {text}")
                    if alt.example_sql:
                        for sql_line in alt.example_sql.split("\n"):
                            lines.append(f"    {sql_line}")
                    for benefit in alt.benefits:
                        lines.append(f"    + {benefit}")

    return "\n".join(lines)


def render_suggestions_markdown(suggestions: Suggestions) -> str:
    if not suggestions:
        return "_No optimization suggestions._\n"

    lines = ["## Optimization Suggestions", ""]
    for table, records in suggestions.items():
        lines.append(f"### `{table}`")
        lines.append("")
        for record in records:
            lines.append(f"**{record.kind}**: {record.description}")
            lines.append("")
            if record.example_sql:
                lines.append("```sql")
                lines.append(record.example_sql)
                lines.append("```")
                lines.append("")
            for item in (*record.recommendations, *record.considerations, *record.notes):
                lines.append(f"- {item}")
            if record.recommendations or record.considerations or record.notes:
                lines.append("")

    return "\n".join(lines).rstrip() + "\n"


# =============================================================================
# Reports and batches
# =============================================================================


def render_report(
    report: "AnalysisReport",
    format: OutputFormat = OutputFormat.TEXT,
) -> str:
    """Issues of one artifact, followed by its suggestions when present."""
    if format == OutputFormat.JSON:
        schema = _result_to_schema(report.result, report.suggestions or None)
        return json.dumps(schema.model_dump(mode="json", exclude_none=True), indent=2)

    parts = [render_issues(report.result, format)]
    if report.suggestions:
        parts.append(render_suggestions(report.suggestions, format))
    return "\n\n".join(parts)


def render_batch(
    batch: "BatchReport",
    format: OutputFormat = OutputFormat.TEXT,
) -> str:
    """
    Render every artifact of a batch in insertion order.

    Text output separates artifacts with a line of 80 "=" characters.
    """
    if format == OutputFormat.JSON:
        schema = BatchReportSchema(
            fail_on=batch.fail_on.value,
            has_failures=batch.has_failures,
            total_issues=batch.total_issues,
            reports=[
                _result_to_schema(report.result, report.suggestions or None)
                for report in batch.reports.values()
            ],
            errors=dict(batch.errors),
        )
        return json.dumps(schema.model_dump(mode="json", exclude_none=True), indent=2)

    sections = [render_report(report, format) for report in batch.reports.values()]
    if batch.errors:
        sections.append(_render_errors(batch.errors, format))
    if format == OutputFormat.MARKDOWN:
        return "\n---\n\n".join(sections)
    return f"\n{SEPARATOR}\n".join(sections)


def _render_errors(errors: Mapping[str, str], format: OutputFormat) -> str:
    if format == OutputFormat.MARKDOWN:
        lines = ["### Failed artifacts", ""]
        lines.extend(f"- `{source}`: {message}" for source, message in errors.items())
    else:
        lines = ["Failed artifacts:"]
        lines.extend(f"  - {source}: {message}" for source, message in errors.items())
    return "\n".join(lines) + "\n"
