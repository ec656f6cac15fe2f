"""
Advisory prompt builder.

Turns one analyzed query (SQL text, plan, detected issues, optional schema
metadata) into a free-text prompt for an external text-generation model.
Only the text is produced here; sending it anywhere is up to the caller.
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping, Sequence

from sqlquality.analyzer.models import DetectedIssue
from sqlquality.analyzer.suggestions import suggest_all
from sqlquality.plan.models import ExplainPlan
from sqlquality.schema import SchemaInfo

DEFAULT_INSTRUCTION = "Please provide your analysis in English."

PROMPT_TEMPLATE = """\
As an expert database performance consultant, please analyze this SQL query and its EXPLAIN results.
Provide specific, actionable recommendations for optimization.

SQL Context:
{context}

Please provide:
1. A concise summary of the performance issues identified
2. Specific, detailed recommendations for optimization, including:
   - Index suggestions with exact column combinations
   - Query restructuring proposals
   - Schema optimization ideas if applicable
3. Example SQL for implementing the suggested changes
4. Expected benefits and potential trade-offs of each suggestion

Focus on practical, implementable solutions that would have the highest impact on performance.

{instruction}"""

_LINE_COMMENT = re.compile(r"--.*$", re.MULTILINE)
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_TABLE_REFERENCE = re.compile(r"\b(?:FROM|JOIN)\s+`?(\w+)`?", re.IGNORECASE)


def extract_table_names(sql: str) -> list[str]:
    """
    Table names referenced after FROM or JOIN, first-seen order, no repeats.

    Comments are stripped first. Subqueries in FROM position are skipped
    (their own FROM clauses are still picked up).
    """
    sql = _BLOCK_COMMENT.sub("", _LINE_COMMENT.sub("", sql))
    return list(dict.fromkeys(_TABLE_REFERENCE.findall(sql)))


def _dumps(value: Any) -> str:
    return json.dumps(value, indent=4, ensure_ascii=False)


def format_context(
    sql: str,
    plan: ExplainPlan | Mapping[str, Any],
    issues: Sequence[DetectedIssue],
    schema_info: Mapping[str, SchemaInfo] | None = None,
) -> str:
    document = plan.document() if isinstance(plan, ExplainPlan) else dict(plan)

    parts = [f"Original SQL:\n{sql.strip()}\n"]

    if schema_info is not None:
        schema_doc = {
            table: info.model_dump(mode="json", exclude_none=True)
            for table, info in schema_info.items()
        }
        parts.append(f"Schema Information:\n{_dumps(schema_doc)}\n")

    parts.append(f"EXPLAIN Results:\n{_dumps(document)}\n")
    parts.append(f"Identified Issues:\n{_dumps([i.to_dict() for i in issues])}\n")

    suggestions = suggest_all(issues, schema_info)
    if suggestions:
        suggestion_doc = {
            table: [record.to_dict() for record in records]
            for table, records in suggestions.items()
        }
        parts.append(f"Rule-Based Suggestions:\n{_dumps(suggestion_doc)}\n")

    return "\n".join(parts)


def generate_prompt(
    sql: str,
    plan: ExplainPlan | Mapping[str, Any],
    issues: Sequence[DetectedIssue],
    schema_info: Mapping[str, SchemaInfo] | None = None,
    instruction: str = DEFAULT_INSTRUCTION,
) -> str:
    """
    Build the advisory prompt for one query.

    Args:
        sql: Original SQL text (before parameter interpolation)
        plan: The query's EXPLAIN plan
        issues: Issues detected for the plan
        schema_info: Optional {table: SchemaInfo} metadata
        instruction: Closing instruction, e.g. the desired answer language

    Returns:
        Prompt text
    """
    context = format_context(sql, plan, issues, schema_info)
    return PROMPT_TEMPLATE.format(context=context, instruction=instruction)
