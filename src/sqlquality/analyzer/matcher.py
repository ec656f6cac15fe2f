"""
Structural search over the plan document.

The plan tree has no fixed schema: join steps, ordering and grouping
wrappers may nest to any depth, and any of them may be absent. These helpers
walk plain JSON-like structures (mappings and sequences) depth-first and
never assume a maximum depth. The walk uses an explicit stack so very deep
plans cannot hit the interpreter's recursion limit.

Strings, booleans, numbers and None are leaves. Plan documents are freshly
decoded JSON and therefore acyclic, so no visited-set is kept.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Iterator


class _AnyValue:
    """Sentinel: the key is present with a non-null value."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "ANY"


ANY: Any = _AnyValue()


def _is_container(value: Any) -> bool:
    return isinstance(value, Mapping) or (
        isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))
    )


def _iter_mappings(tree: Any) -> Iterator[Mapping[str, Any]]:
    """Yield every mapping in the tree, depth-first, parents before children."""
    if not _is_container(tree):
        return
    stack: list[Any] = [tree]
    while stack:
        current = stack.pop()
        if isinstance(current, Mapping):
            yield current
            children = [v for v in current.values() if _is_container(v)]
        else:
            children = [v for v in current if _is_container(v)]
        stack.extend(reversed(children))


def _matches(actual: Any, expected: Any) -> bool:
    if expected is ANY:
        return actual is not None
    # True == 1 in Python; a flag must not match a row count
    if isinstance(expected, bool) or isinstance(actual, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual is expected
    return actual == expected


def exists(tree: Any, key: str, value: Any) -> bool:
    """
    Does any node in `tree` carry `key` with a value equal to `value`?

    Args:
        tree: Root container (mapping or sequence). None or a scalar yields False.
        key: Field name to look for on each node
        value: Expected value (value equality), or ANY for "present and not null"

    Returns:
        True on the first structural match
    """
    for node in _iter_mappings(tree):
        if key in node and _matches(node[key], value):
            return True
    return False


def find_values(tree: Any, key: str) -> Iterator[Any]:
    """
    Yield every non-null value stored under `key`, depth-first.

    Nested occurrences beneath a matching value are yielded too.
    """
    for node in _iter_mappings(tree):
        if key in node and node[key] is not None:
            yield node[key]


def exists_within(tree: Any, scope: str, key: str, value: Any) -> bool:
    """Like exists(), but only beneath nodes stored under `scope`."""
    return any(exists(sub, key, value) for sub in find_values(tree, scope))
