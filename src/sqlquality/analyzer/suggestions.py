"""
Deterministic suggestion templates.

Maps each detected issue kind to a structured remediation: a description,
an example corrective statement, and the trade-offs to weigh. No database
access and no LLM: just a fixed kind → template table.

Every template embeds the issue's table name in both its description and
its example SQL. When schema metadata for the table is supplied, templates
use it (row counts, existing index names, real column names); without it
they fall back to placeholders.

Unknown kinds map to None and are skipped by suggest_all().
"""

from __future__ import annotations

from typing import Callable, Iterable, Mapping

from sqlquality.analyzer.models import (
    DetectedIssue,
    IssueKind,
    SuggestionAlternative,
    SuggestionRecord,
)
from sqlquality.schema import SchemaInfo

Template = Callable[[DetectedIssue, "SchemaInfo | None"], SuggestionRecord]


def suggest_create_index(issue: DetectedIssue, schema: SchemaInfo | None) -> SuggestionRecord:
    table = issue.table
    description = f"Consider creating an index on the commonly queried columns of table `{table}`."
    if schema is not None and schema.status.table_rows:
        description += f" The table holds about {schema.status.table_rows:,} rows."

    return SuggestionRecord(
        kind="create_index",
        issue_kind=issue.kind,
        table=table,
        description=description,
        example_sql=(
            "-- Add appropriate column names based on your query\n"
            f"CREATE INDEX idx_{table}_column ON {table} (column_name);"
        ),
        benefits=(
            "Reduces full table scan overhead",
            "Improves query response time",
            "Reduces server load",
        ),
    )


def suggest_index_usage(issue: DetectedIssue, schema: SchemaInfo | None) -> SuggestionRecord:
    table = issue.table
    index_names = schema.index_names() if schema is not None else []
    index_name = index_names[0] if index_names else "index_name"

    considerations = [
        "Verify that forcing the index actually improves performance",
        "Consider if query restructuring might be better than forcing an index",
        f"Run ANALYZE TABLE {table} first: stale statistics often explain the choice",
    ]
    if index_names:
        considerations.append(f"Existing indexes on {table}: {', '.join(index_names)}")

    return SuggestionRecord(
        kind="force_index",
        issue_kind=issue.kind,
        table=table,
        description=(
            f"The table `{table}` has available indexes but they are not being used. "
            "Consider forcing an index or restructuring the query."
        ),
        example_sql=(
            "-- Example of forcing an index\n"
            f"SELECT * FROM {table} FORCE INDEX ({index_name}) WHERE ..."
        ),
        considerations=tuple(considerations),
    )


def suggest_join_optimization(issue: DetectedIssue, schema: SchemaInfo | None) -> SuggestionRecord:
    table = issue.table
    return SuggestionRecord(
        kind="join_optimization",
        issue_kind=issue.kind,
        table=table,
        description=(
            f"Optimize the JOIN operation on table `{table}` by adding appropriate "
            "indexes on the join columns."
        ),
        example_sql=(
            "-- Add index on the JOIN columns\n"
            f"CREATE INDEX idx_{table}_join ON {table} (join_column);"
        ),
        recommendations=(
            "Ensure indexes exist on both sides of the JOIN",
            "Consider denormalization for frequently joined tables",
            "Review JOIN conditions for potential simplification",
        ),
    )


def suggest_function_optimization(issue: DetectedIssue, schema: SchemaInfo | None) -> SuggestionRecord:
    table = issue.table
    return SuggestionRecord(
        kind="function_optimization",
        issue_kind=issue.kind,
        table=table,
        description=(
            f"Functions in WHERE clause on table `{table}` prevent index usage. "
            "Consider restructuring the conditions."
        ),
        example_sql=(
            "-- Compare the raw column against a range instead of wrapping it\n"
            f"SELECT * FROM {table}\n"
            "WHERE column >= '2024-01-01 00:00:00' AND column < '2024-01-02 00:00:00';"
        ),
        alternatives=(
            SuggestionAlternative(
                title="DATE()",
                description="Instead of DATE(column), use direct comparison",
                example_sql="column >= '2024-01-01 00:00:00' AND column < '2024-01-02 00:00:00'",
            ),
            SuggestionAlternative(
                title="CAST()",
                description="Store data in the correct type to avoid casting",
                example_sql=(
                    f"ALTER TABLE {table} ADD COLUMN column_date DATE "
                    "GENERATED ALWAYS AS (DATE(column)) STORED,\n"
                    f"    ADD INDEX idx_{table}_column_date (column_date);"
                ),
            ),
        ),
    )


def suggest_like_optimization(issue: DetectedIssue, schema: SchemaInfo | None) -> SuggestionRecord:
    table = issue.table
    columns = ", ".join(issue.columns) if issue.columns else "column_name"
    index_suffix = "_".join(issue.columns) if issue.columns else "idx"

    notes: tuple[str, ...] = ()
    if schema is not None and issue.columns:
        indexed = schema.indexed_columns()
        already = [c for c in issue.columns if c in indexed]
        if already:
            notes = (
                f"{', '.join(already)} already indexed on {table}, "
                "but a B-tree index cannot serve a leading wildcard",
            )

    return SuggestionRecord(
        kind="like_optimization",
        issue_kind=issue.kind,
        table=table,
        description=f"Leading wildcard LIKE on table `{table}` prevents efficient index usage.",
        example_sql=(
            f"ALTER TABLE {table} ADD FULLTEXT INDEX ft_{index_suffix} ({columns});\n"
            "-- Then use:\n"
            f"SELECT * FROM {table} WHERE MATCH({columns}) AGAINST('search_term');"
        ),
        notes=notes,
        alternatives=(
            SuggestionAlternative(
                title="Use FULLTEXT index",
                example_sql=(
                    f"ALTER TABLE {table} ADD FULLTEXT INDEX ft_{index_suffix} ({columns});"
                ),
            ),
            SuggestionAlternative(
                title="Consider using Elasticsearch or similar for text search",
                benefits=(
                    "Better performance for text search",
                    "More advanced search capabilities",
                    "Reduced database load",
                ),
            ),
        ),
    )


def suggest_selectivity_optimization(issue: DetectedIssue, schema: SchemaInfo | None) -> SuggestionRecord:
    table = issue.table
    return SuggestionRecord(
        kind="selectivity_optimization",
        issue_kind=issue.kind,
        table=table,
        description=(
            f"Low selectivity on table `{table}` indicates inefficient filtering. "
            "Consider improving WHERE conditions or indexes."
        ),
        example_sql=(
            "-- Example of compound index for better selectivity\n"
            f"CREATE INDEX idx_{table}_compound ON {table} "
            "(high_selectivity_col, low_selectivity_col);"
        ),
        recommendations=(
            "Review and possibly combine indexes",
            "Add more specific conditions to reduce result set",
            "Consider partitioning for large tables",
        ),
    )


def suggest_order_by_optimization(issue: DetectedIssue, schema: SchemaInfo | None) -> SuggestionRecord:
    table = issue.table
    return SuggestionRecord(
        kind="order_by_optimization",
        issue_kind=issue.kind,
        table=table,
        description=f"Filesort detected on table `{table}`. Create an index matching the ORDER BY clause.",
        example_sql=(
            "-- Add index matching the ORDER BY columns in the same order\n"
            f"CREATE INDEX idx_{table}_order ON {table} "
            "(order_col1 [ASC|DESC], order_col2 [ASC|DESC]);"
        ),
        notes=(
            "Index column order must match ORDER BY clause exactly",
            "Sort direction (ASC/DESC) must also match",
            "Consider covering index to avoid additional lookups",
        ),
    )


def suggest_group_by_optimization(issue: DetectedIssue, schema: SchemaInfo | None) -> SuggestionRecord:
    table = issue.table
    return SuggestionRecord(
        kind="group_by_optimization",
        issue_kind=issue.kind,
        table=table,
        description=(
            f"Temporary table created for GROUP BY on table `{table}`. "
            "Consider adding an appropriate index."
        ),
        example_sql=(
            "-- Add index matching the GROUP BY columns\n"
            f"CREATE INDEX idx_{table}_group ON {table} (group_col1, group_col2);\n"
            "-- Consider including aggregated columns for covering index\n"
            f"CREATE INDEX idx_{table}_group_covering ON {table} "
            "(group_col1, group_col2, agg_col);"
        ),
        considerations=(
            "Include GROUP BY columns in the same order as in query",
            "Consider including aggregated columns in index",
            "Review if grouping can be done differently",
        ),
    )


def suggest_type_alignment(issue: DetectedIssue, schema: SchemaInfo | None) -> SuggestionRecord:
    table = issue.table
    return SuggestionRecord(
        kind="type_alignment",
        issue_kind=issue.kind,
        table=table,
        description=(
            f"A compared value on table `{table}` is implicitly converted, "
            "so the column's index cannot be used. Compare values of the column's own type."
        ),
        example_sql=(
            "-- Bind the parameter with the column's type\n"
            f"SELECT * FROM {table} WHERE varchar_column = '123';  -- not = 123"
        ),
        recommendations=(
            "Match parameter types to column types in the application layer",
            "Align column types and collations on both sides of a JOIN",
            "Check SHOW WARNINGS after EXPLAIN for the converted column",
        ),
    )


_TEMPLATES: dict[str, Template] = {
    IssueKind.UNUSED_AVAILABLE_INDEX.value: suggest_index_usage,
    IssueKind.FULL_TABLE_SCAN.value: suggest_create_index,
    IssueKind.INEFFICIENT_JOIN.value: suggest_join_optimization,
    IssueKind.FUNCTION_ON_COLUMN.value: suggest_function_optimization,
    IssueKind.INEFFICIENT_LIKE.value: suggest_like_optimization,
    IssueKind.LOW_SELECTIVITY.value: suggest_selectivity_optimization,
    IssueKind.FILESORT_REQUIRED.value: suggest_order_by_optimization,
    IssueKind.TEMP_TABLE_REQUIRED.value: suggest_group_by_optimization,
    IssueKind.IMPLICIT_TYPE_CONVERSION.value: suggest_type_alignment,
}


def suggest(issue: DetectedIssue, schema: SchemaInfo | None = None) -> SuggestionRecord | None:
    """
    Map one issue to its remediation record.

    Returns:
        A fresh SuggestionRecord, or None when the kind has no template
    """
    template = _TEMPLATES.get(issue.kind)
    if template is None:
        return None
    return template(issue, schema)


def suggest_all(
    issues: Iterable[DetectedIssue],
    schema_info: Mapping[str, SchemaInfo] | None = None,
) -> dict[str, list[SuggestionRecord]]:
    """
    Suggestions for every issue, grouped by table in issue order.

    Issues whose kind has no template are skipped.
    """
    suggestions: dict[str, list[SuggestionRecord]] = {}
    for issue in issues:
        schema = schema_info.get(issue.table) if schema_info else None
        record = suggest(issue, schema)
        if record is not None:
            suggestions.setdefault(issue.table, []).append(record)
    return suggestions
