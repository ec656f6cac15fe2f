"""
Parser for MySQL EXPLAIN FORMAT=JSON output and SHOW WARNINGS rows.

This module handles:
- Loading EXPLAIN JSON from files, strings, or already-decoded dicts
- Unwrapping the single-row {"EXPLAIN": "<json>"} shape MySQL clients return
- Converting to typed Pydantic models
- Loading diagnostic messages in either MySQL or snake_case column naming

Error handling philosophy: fail fast with clear messages. Undecodable input
is the acquisition layer's problem and raises ParseError here, before the
diagnostic engine ever sees it. A well-formed document without a
query_block is *not* an error.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from sqlquality.exceptions import ParseError
from sqlquality.plan.models import DiagnosticMessage, ExplainPlan

logger = logging.getLogger(__name__)


def parse_plan(source: str | Path | dict[str, Any] | list[Any]) -> ExplainPlan:
    """
    Parse EXPLAIN FORMAT=JSON output into typed models.

    Accepts:
    - File path (Path, or str naming an existing .json file)
    - JSON string
    - Dict: the decoded document, or a {"EXPLAIN": "<json>"} result row
    - List: a single-row result set wrapping either of the above

    Raises:
        ParseError: If the input cannot be decoded or validated
    """
    data = _load_source(source)
    data = _unwrap(data)

    if not isinstance(data, dict):
        raise ParseError(
            "EXPLAIN output must be a JSON object",
            detail=f"Got {type(data).__name__}",
            source="structure",
        )

    try:
        plan = ExplainPlan.model_validate(data)
    except ValidationError as e:
        raise ParseError(
            "EXPLAIN output does not match the MySQL JSON plan format",
            detail=str(e),
            source="validation",
        ) from e

    if plan.is_empty:
        logger.debug("Plan document has no query_block; nothing to analyze")
    return plan


def parse_messages(
    source: str | Path | Iterable[dict[str, Any] | DiagnosticMessage] | None,
) -> list[DiagnosticMessage]:
    """
    Parse SHOW WARNINGS output into DiagnosticMessage records.

    Accepts a file path, a JSON string, or an iterable of row dicts.
    None yields an empty list.
    """
    if source is None:
        return []

    if isinstance(source, (str, Path)):
        data = _load_source(source)
    else:
        data = list(source)

    if isinstance(data, dict):
        data = data.get("warnings", [data])

    if not isinstance(data, list):
        raise ParseError(
            "Warnings must be a JSON array of rows",
            detail=f"Got {type(data).__name__}",
            source="structure",
        )

    messages: list[DiagnosticMessage] = []
    for i, row in enumerate(data):
        if isinstance(row, DiagnosticMessage):
            messages.append(row)
            continue
        try:
            messages.append(DiagnosticMessage.model_validate(row))
        except ValidationError as e:
            raise ParseError(
                f"Warning row {i} is not a valid diagnostic message",
                detail=str(e),
                source="validation",
            ) from e
    return messages


def _load_source(source: str | Path | dict[str, Any] | list[Any]) -> Any:
    """Load raw JSON data from a path, JSON string, or passthrough."""
    if isinstance(source, (dict, list)):
        return source

    if isinstance(source, Path) or _looks_like_path(source):
        path = Path(source)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ParseError(
                f"File not found: {path}",
                source="file",
            ) from e
        except OSError as e:
            raise ParseError(
                f"Cannot read file: {path}",
                detail=str(e),
                source="file",
            ) from e
        return _decode(text, origin=str(path))

    return _decode(source, origin="string")


def _looks_like_path(value: str) -> bool:
    stripped = value.strip()
    if not stripped or stripped[0] in "{[":
        return False
    return stripped.endswith((".json", ".JSON")) or Path(stripped).exists()


def _decode(text: str, origin: str) -> Any:
    if not text.strip():
        raise ParseError(
            "Empty EXPLAIN result",
            detail=f"Source: {origin}",
            source="json_decode",
        )
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(
            "Failed to decode EXPLAIN result",
            detail=f"{e.msg} at line {e.lineno}, column {e.colno} ({origin})",
            source="json_decode",
        ) from e


def _unwrap(data: Any) -> Any:
    """
    Strip client-side wrappers around the plan document.

    MySQL drivers return EXPLAIN FORMAT=JSON as one row with an "EXPLAIN"
    column holding the JSON text.
    """
    if isinstance(data, list):
        if len(data) != 1:
            raise ParseError(
                "Expected a single EXPLAIN result row",
                detail=f"Got {len(data)} rows",
                source="structure",
            )
        data = data[0]

    if isinstance(data, dict) and "EXPLAIN" in data and "query_block" not in data:
        inner = data["EXPLAIN"]
        if isinstance(inner, str):
            return _decode(inner, origin="EXPLAIN column")
        return inner

    return data
