"""
Output module - Separates rendering from analysis.

Provides multiple output formats:
- text: terminal / log output, matching the classic report layout
- json: stable schema for CI tooling
- markdown: GitHub/Slack-friendly format

Usage:
    from sqlquality.output import OutputFormat, render_issues

    result = analyzer.analyze(plan, source="2_filesort.sql")
    print(render_issues(result, OutputFormat.MARKDOWN))
"""

from sqlquality.output.renderers import (
    OutputFormat,
    render_batch,
    render_issues,
    render_report,
    render_suggestions,
)
from sqlquality.output.schema import (
    BatchReportSchema,
    IssueReportSchema,
    get_json_schema,
)

__all__ = [
    "OutputFormat",
    "render_issues",
    "render_suggestions",
    "render_report",
    "render_batch",
    "IssueReportSchema",
    "BatchReportSchema",
    "get_json_schema",
]
