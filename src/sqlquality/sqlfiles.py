"""
SQL artifact helpers: reading SQL files and preparing their EXPLAIN text.

A SQL quality gate usually keeps one query per file plus a parameter map
naming the values to bind for each file:

    # sql_params.yaml
    2_filesort.sql:
      status: published
      limit: 10

Executing the EXPLAIN is left to the caller's own database tooling; this
module only produces the statement text.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Mapping

import yaml

from sqlquality.exceptions import SqlFileError

logger = logging.getLogger(__name__)

EXPLAIN_PREFIX = "EXPLAIN FORMAT=JSON "


def read_sql_file(sql_dir: str | Path, name: str) -> str:
    """
    Read one SQL file from a directory.

    Raises:
        SqlFileError: If the file does not exist or cannot be read
    """
    path = Path(sql_dir) / name
    if not path.exists():
        raise SqlFileError(f"SQL file not found: {path}", path=str(path))
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise SqlFileError(f"Failed to read SQL file: {path}", path=str(path)) from e


def quote_literal(value: Any) -> str:
    """
    Render a Python value as a SQL literal.

    None → NULL, bools → 1/0, strings single-quoted with quotes and
    backslashes escaped, anything else via str().
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"
    return str(value)


def interpolate(sql: str, params: Mapping[str, Any]) -> str:
    """
    Replace :name placeholders with literal values.

    Names are matched on word boundaries, longest first, so :user_id is
    never clobbered by a :user parameter. Unknown placeholders are left as-is.
    """
    if not params:
        return sql

    names = sorted(params, key=len, reverse=True)
    pattern = re.compile(
        r"(?<![:\w]):(" + "|".join(re.escape(n) for n in names) + r")\b"
    )
    return pattern.sub(lambda m: quote_literal(params[m.group(1)]), sql)


def explain_statement(sql: str, params: Mapping[str, Any] | None = None) -> str:
    """The EXPLAIN FORMAT=JSON statement for a (parameterized) query."""
    statement = interpolate(sql, params or {}).strip().rstrip(";").strip()
    return EXPLAIN_PREFIX + statement


def load_params(path: str | Path) -> dict[str, dict[str, Any]]:
    """
    Load a {sql_file: {param: value}} map from JSON or YAML.

    Raises:
        SqlFileError: If the file is missing, undecodable or mis-shaped
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SqlFileError(f"Cannot read params file: {path}", path=str(path)) from e

    try:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SqlFileError(f"Failed to decode params file {path}: {e}", path=str(path)) from e

    if data is None:
        return {}
    if not isinstance(data, dict) or not all(
        isinstance(v, dict) or v is None for v in data.values()
    ):
        raise SqlFileError(
            f"Params file {path} must map SQL file names to parameter maps",
            path=str(path),
        )

    logger.debug("Loaded params for %d SQL file(s) from %s", len(data), path)
    return {str(name): dict(values or {}) for name, values in data.items()}
