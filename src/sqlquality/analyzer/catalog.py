"""
Rule catalog: the fixed, ordered table of plan-level anti-patterns.

Each RuleDefinition pairs a stable kind with a message and one or more
predicates. Predicates are AND-ed; a rule matches only when all of them hold
for the same (plan document, diagnostic messages) pair.

Catalog order is a contract: evaluate_catalog() reports matches in this
order, and the analyzer appends catalog-derived issues in this order before
priority sorting.

Predicate shapes:
- TreeContains: a node somewhere in the plan carries key == value
- ConditionMatches: some attached_condition text satisfies a test
- MessageContains: every listed substring appears in at least one message
- AnyOf: at least one nested predicate holds
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol, Sequence, runtime_checkable

from sqlquality.analyzer.conditions import has_function_call, has_leading_wildcard_like
from sqlquality.analyzer.matcher import ANY, exists, exists_within, find_values
from sqlquality.analyzer.models import IssueKind, RuleMatch
from sqlquality.plan.models import DiagnosticMessage


@runtime_checkable
class Predicate(Protocol):
    """Shared interface of every catalog predicate."""

    def evaluate(self, tree: Any, messages: Sequence[DiagnosticMessage]) -> bool:
        ...


@dataclass(frozen=True)
class TreeContains:
    """Some node carries `key` equal to `value`, optionally only beneath `within`."""

    key: str
    value: Any = ANY
    within: str | None = None

    def evaluate(self, tree: Any, messages: Sequence[DiagnosticMessage]) -> bool:
        if self.within is None:
            return exists(tree, self.key, self.value)
        return exists_within(tree, self.within, self.key, self.value)


@dataclass(frozen=True)
class ConditionMatches:
    """Some attached_condition text satisfies `test`."""

    test: Callable[[str], bool]
    key: str = "attached_condition"

    def evaluate(self, tree: Any, messages: Sequence[DiagnosticMessage]) -> bool:
        return any(
            isinstance(text, str) and self.test(text)
            for text in find_values(tree, self.key)
        )


@dataclass(frozen=True)
class MessageContains:
    """Each substring appears in at least one diagnostic message."""

    substrings: tuple[str, ...]

    def evaluate(self, tree: Any, messages: Sequence[DiagnosticMessage]) -> bool:
        return all(
            any(sub in message.text for message in messages)
            for sub in self.substrings
        )


@dataclass(frozen=True)
class AnyOf:
    """At least one nested predicate holds."""

    predicates: tuple[Predicate, ...]

    def evaluate(self, tree: Any, messages: Sequence[DiagnosticMessage]) -> bool:
        return any(p.evaluate(tree, messages) for p in self.predicates)


@dataclass(frozen=True)
class RuleDefinition:
    """
    One catalog entry.

    Attributes:
        kind: Stable identifier (e.g. "FullTableScan")
        message: Human-readable message reported on a match
        predicates: AND-ed conditions
        issue_kind: Issue kind reported when no per-node issue covers the match
        covered_by: Per-node issue kinds that already report this concern
    """

    kind: str
    message: str
    predicates: tuple[Predicate, ...]
    issue_kind: IssueKind
    covered_by: tuple[IssueKind, ...] = ()

    def matches(self, tree: Any, messages: Sequence[DiagnosticMessage]) -> bool:
        return all(p.evaluate(tree, messages) for p in self.predicates)


CATALOG: tuple[RuleDefinition, ...] = (
    RuleDefinition(
        kind="FullTableScan",
        message="Full table scan detected. Consider adding an index.",
        predicates=(TreeContains("access_type", "ALL"),),
        issue_kind=IssueKind.FULL_TABLE_SCAN,
        covered_by=(IssueKind.FULL_TABLE_SCAN, IssueKind.UNUSED_AVAILABLE_INDEX),
    ),
    RuleDefinition(
        kind="IneffectiveJoin",
        message="Join performed through a join buffer instead of an index.",
        predicates=(TreeContains("using_join_buffer", ANY),),
        issue_kind=IssueKind.INEFFICIENT_JOIN,
        covered_by=(IssueKind.INEFFICIENT_JOIN,),
    ),
    RuleDefinition(
        kind="FunctionInvalidatesIndex",
        message="Function used on column prevents index usage.",
        predicates=(ConditionMatches(has_function_call),),
        issue_kind=IssueKind.FUNCTION_ON_COLUMN,
        covered_by=(IssueKind.FUNCTION_ON_COLUMN,),
    ),
    RuleDefinition(
        kind="IneffectiveLikePattern",
        message="LIKE pattern with a leading wildcard prevents index usage.",
        predicates=(ConditionMatches(has_leading_wildcard_like),),
        issue_kind=IssueKind.INEFFICIENT_LIKE,
        covered_by=(IssueKind.INEFFICIENT_LIKE,),
    ),
    RuleDefinition(
        kind="ImplicitTypeConversion",
        message="Implicit type conversion on a compared column prevents index usage.",
        predicates=(
            AnyOf((
                MessageContains(("Converting column",)),
                MessageContains(("Implicit conversion",)),
            )),
        ),
        issue_kind=IssueKind.IMPLICIT_TYPE_CONVERSION,
    ),
    RuleDefinition(
        kind="IneffectiveSort",
        message="Filesort detected in ORDER BY. Consider adding an index for sorting columns.",
        predicates=(TreeContains("using_filesort", True, within="ordering_operation"),),
        issue_kind=IssueKind.FILESORT_REQUIRED,
        covered_by=(IssueKind.FILESORT_REQUIRED,),
    ),
    RuleDefinition(
        kind="TemporaryTableGrouping",
        message="Temporary table used for grouping. Consider adding an index for GROUP BY clause.",
        predicates=(
            TreeContains("using_temporary_table", True, within="grouping_operation"),
        ),
        issue_kind=IssueKind.TEMP_TABLE_REQUIRED,
        covered_by=(IssueKind.TEMP_TABLE_REQUIRED,),
    ),
)


def get_rule(kind: str) -> RuleDefinition | None:
    for rule in CATALOG:
        if rule.kind == kind:
            return rule
    return None


def evaluate_catalog(
    tree: Any,
    messages: Sequence[DiagnosticMessage] = (),
    catalog: Sequence[RuleDefinition] = CATALOG,
) -> list[RuleMatch]:
    """
    Evaluate every rule against the same input.

    Returns:
        Matches in catalog order
    """
    return [
        RuleMatch(kind=rule.kind, message=rule.message, issue_kind=rule.issue_kind.value)
        for rule in catalog
        if rule.matches(tree, messages)
    ]
