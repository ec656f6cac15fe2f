"""
Pattern extraction over MySQL attached_condition text.

MySQL prints the optimizer's rewritten predicate, fully qualified and
backtick-quoted, e.g.:

    ((`shop`.`users`.`email` like '%@example.com') and
     (cast(`shop`.`users`.`created_at` as date) = '2024-01-01'))

Note that DATE(col) is usually printed as cast(col as date).

Limitations:
- Works on the text representation only; cannot tell which side of a
  comparison a function wraps
- LIKE patterns built at runtime (concat(...), parameters) are not inspected
"""

from __future__ import annotations

import re

# Date extraction functions and explicit casts that hide a column from its index
_FUNCTION_PATTERN = re.compile(
    r"\b(date|year|month|day|dayofmonth|dayofweek|dayofyear|week|weekday|"
    r"quarter|hour|minute|extract|date_format|to_days|unix_timestamp|"
    r"cast|convert)\s*\(",
    re.IGNORECASE,
)

# '...' with '' or backslash escapes
_STRING_LITERAL = re.compile(r"'(?:[^'\\]|\\.|'')*'")

# `column` like '%...  or  `column` like '_...
# Only the last identifier of a qualified name is captured.
_LEADING_WILDCARD_LIKE = re.compile(
    r"`([^`]+)`\s+like\s+'[%_]",
    re.IGNORECASE,
)


def _strip_literals(condition: str) -> str:
    return _STRING_LITERAL.sub("''", condition)


def find_function_calls(condition: str | None) -> list[str]:
    """
    Function names found in the condition, lower-cased, first-seen order.

    Text inside quoted string literals is ignored.
    """
    if not condition:
        return []
    text = _strip_literals(condition)
    names = (m.group(1).lower() for m in _FUNCTION_PATTERN.finditer(text))
    return list(dict.fromkeys(names))


def has_function_call(condition: str | None) -> bool:
    return bool(condition) and _FUNCTION_PATTERN.search(_strip_literals(condition)) is not None


def leading_wildcard_like_columns(condition: str | None) -> list[str]:
    """
    Columns compared with a LIKE pattern that starts with a wildcard.

    Deduplicated, in order of first appearance.
    """
    if not condition:
        return []
    columns = (m.group(1) for m in _LEADING_WILDCARD_LIKE.finditer(condition))
    return list(dict.fromkeys(columns))


def has_leading_wildcard_like(condition: str | None) -> bool:
    return bool(condition) and _LEADING_WILDCARD_LIKE.search(condition) is not None
