"""
ExplainAnalyzer: the plan diagnostic engine.

One call to analyze() is one diagnostic pass:

1. Walk the plan tree, classifying every table access, ordering and
   grouping node it finds, at any depth.
2. Evaluate the rule catalog against the whole plan document and the
   SHOW WARNINGS messages. Catalog matches already reported by the walk are
   dropped; the rest are appended in catalog order.
3. Deduplicate, then order: ROOT issues in discovery order, followed by
   DERIVED issues in discovery order.

The pass is a pure function of (plan, messages, source). The analyzer holds
only immutable configuration, so one instance can serve many threads.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from sqlquality.analyzer.catalog import CATALOG, RuleDefinition, evaluate_catalog
from sqlquality.analyzer.conditions import (
    find_function_calls,
    leading_wildcard_like_columns,
)
from sqlquality.analyzer.models import (
    AnalysisResult,
    DetectedIssue,
    IssueKind,
    Priority,
    RuleMatch,
)
from sqlquality.config import Config, get_config
from sqlquality.plan.models import (
    DiagnosticMessage,
    ExplainPlan,
    GroupingOperation,
    OrderingOperation,
    PlanContainer,
    TableAccess,
)
from sqlquality.plan.parser import parse_messages, parse_plan

logger = logging.getLogger(__name__)


class ExplainAnalyzer:
    """
    Detects performance anti-patterns in a MySQL EXPLAIN FORMAT=JSON plan.

    Per table access node, in order:
    - possible_keys non-empty but no key chosen → unused_available_index
    - otherwise access_type ALL → full_table_scan
    - join buffer in use → inefficient_join
    - function call in the attached condition → function_on_column
    - leading-wildcard LIKE columns → one inefficient_like listing them all
    - high filtered% on many examined rows → low_selectivity (derived)

    Ordering nodes with using_filesort → filesort_required.
    Grouping nodes with using_temporary_table → temp_table_required.
    Derived tables, attached and select-list/HAVING subqueries and UNION
    members are walked like the outer block.

    Example:
        analyzer = ExplainAnalyzer()
        result = analyzer.analyze(parse_plan("explain.json"), source="2_filesort.sql")
        for issue in result.issues:
            print(issue.kind, issue.table)
    """

    def __init__(
        self,
        config: Config | None = None,
        catalog: Sequence[RuleDefinition] = CATALOG,
    ) -> None:
        self.config = config or get_config()
        self.catalog = tuple(r for r in catalog if self.config.is_rule_enabled(r.kind))

    def analyze(
        self,
        plan: ExplainPlan | Mapping[str, Any],
        messages: Iterable[DiagnosticMessage | Mapping[str, Any]] = (),
        source: str | None = None,
    ) -> AnalysisResult:
        """
        Run one diagnostic pass.

        Args:
            plan: Parsed plan, or a decoded EXPLAIN FORMAT=JSON document
            messages: SHOW WARNINGS rows (order-insensitive)
            source: Identifier of the analyzed artifact, stamped on every issue

        Returns:
            AnalysisResult with ROOT issues before DERIVED issues
        """
        if isinstance(plan, Mapping):
            plan = parse_plan(dict(plan))
        elif not isinstance(plan, ExplainPlan):
            raise TypeError(
                f"plan must be an ExplainPlan or a mapping, got {type(plan).__name__}"
            )

        if plan.query_block is None:
            logger.debug("No query_block in plan for %s; no findings", source or "<input>")
            return AnalysisResult(source=source)

        diagnostics = parse_messages(messages)

        issues = self._walk(plan.query_block, source)
        matches = evaluate_catalog(plan.document(), diagnostics, self.catalog)
        issues.extend(self._uncovered_matches(matches, issues, source))

        issues = [i for i in issues if self.config.is_rule_enabled(i.kind)]
        ordered = _order(_dedupe(issues))

        logger.debug(
            "Analyzed %s: %d issue(s), %d catalog match(es)",
            source or "<input>",
            len(ordered),
            len(matches),
        )
        return AnalysisResult(
            issues=tuple(ordered),
            rule_matches=tuple(matches),
            source=source,
            node_count=plan.node_count,
        )

    # ------------------------------------------------------------------
    # Tree walk
    # ------------------------------------------------------------------

    def _walk(self, container: PlanContainer, source: str | None) -> list[DetectedIssue]:
        issues: list[DetectedIssue] = []

        if isinstance(container, OrderingOperation) and container.using_filesort:
            issues.append(DetectedIssue(
                kind=IssueKind.FILESORT_REQUIRED.value,
                table=container.first_table_name(),
                description=(
                    "Filesort detected in ORDER BY. "
                    "Consider adding an index for sorting columns."
                ),
                source=source,
            ))

        if isinstance(container, GroupingOperation) and container.using_temporary_table:
            issues.append(DetectedIssue(
                kind=IssueKind.TEMP_TABLE_REQUIRED.value,
                table=container.first_table_name(),
                description=(
                    "Temporary table used for grouping. "
                    "Consider adding an index for GROUP BY clause."
                ),
                source=source,
            ))

        for child in container.children():
            if isinstance(child, TableAccess):
                issues.extend(self._classify_table(child, source))
                for block in child.subquery_blocks():
                    issues.extend(self._walk(block, source))
            else:
                issues.extend(self._walk(child, source))

        return issues

    def _classify_table(self, table: TableAccess, source: str | None) -> list[DetectedIssue]:
        issues: list[DetectedIssue] = []
        name = table.table_name

        if table.has_unused_index:
            issues.append(DetectedIssue(
                kind=IssueKind.UNUSED_AVAILABLE_INDEX.value,
                table=name,
                description=(
                    "Index available but not used "
                    f"(possible keys: {', '.join(table.possible_keys or ())})."
                ),
                source=source,
            ))
        elif table.is_full_table_scan:
            issues.append(DetectedIssue(
                kind=IssueKind.FULL_TABLE_SCAN.value,
                table=name,
                description="Full table scan detected. Consider adding an index.",
                source=source,
            ))

        if table.using_join_buffer:
            issues.append(DetectedIssue(
                kind=IssueKind.INEFFICIENT_JOIN.value,
                table=name,
                description=(
                    f"Join uses a join buffer ({table.using_join_buffer}) "
                    "instead of an index on the join columns."
                ),
                source=source,
            ))

        functions = find_function_calls(table.attached_condition)
        if functions:
            issues.append(DetectedIssue(
                kind=IssueKind.FUNCTION_ON_COLUMN.value,
                table=name,
                description=(
                    "Function used on column prevents index usage "
                    f"({', '.join(f'{fn}()' for fn in functions)})."
                ),
                source=source,
            ))

        like_columns = leading_wildcard_like_columns(table.attached_condition)
        if like_columns:
            issues.append(DetectedIssue(
                kind=IssueKind.INEFFICIENT_LIKE.value,
                table=name,
                description=(
                    f"Leading wildcard in LIKE on {', '.join(like_columns)} "
                    "prevents index usage."
                ),
                columns=tuple(like_columns),
                source=source,
            ))

        if self._is_low_selectivity(table):
            issues.append(DetectedIssue(
                kind=IssueKind.LOW_SELECTIVITY.value,
                table=name,
                description=(
                    f"Low selectivity: {table.filtered:.1f}% filtered across "
                    f"{table.rows_examined_per_scan:,} rows examined per scan."
                ),
                priority=Priority.DERIVED,
                source=source,
            ))

        return issues

    def _is_low_selectivity(self, table: TableAccess) -> bool:
        if table.filtered is None or table.rows_examined_per_scan is None:
            return False
        return (
            table.filtered > self.config.low_selectivity_filtered_pct
            and table.rows_examined_per_scan > self.config.low_selectivity_min_rows
        )

    # ------------------------------------------------------------------
    # Catalog integration
    # ------------------------------------------------------------------

    def _uncovered_matches(
        self,
        matches: Sequence[RuleMatch],
        issues: Sequence[DetectedIssue],
        source: str | None,
    ) -> list[DetectedIssue]:
        """Catalog matches the walk did not already report, in catalog order."""
        found = {issue.kind for issue in issues}
        rules = {rule.kind: rule for rule in self.catalog}
        extra: list[DetectedIssue] = []

        for match in matches:
            rule = rules[match.kind]
            if any(kind.value in found for kind in rule.covered_by):
                continue
            extra.append(DetectedIssue(
                kind=rule.issue_kind.value,
                description=rule.message,
                source=source,
            ))
        return extra


def _dedupe(issues: Iterable[DetectedIssue]) -> list[DetectedIssue]:
    seen: set[tuple[str, str, str, str]] = set()
    unique: list[DetectedIssue] = []
    for issue in issues:
        key = issue.dedup_key()
        if key in seen:
            continue
        seen.add(key)
        unique.append(issue)
    return unique


def _order(issues: list[DetectedIssue]) -> list[DetectedIssue]:
    # sorted() is stable: discovery order survives within each tier
    return sorted(issues, key=lambda issue: issue.priority.rank)
