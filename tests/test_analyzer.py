"""
Tests for the plan diagnostic engine.
"""

import threading

import pytest

from sqlquality.analyzer.analyzer import ExplainAnalyzer
from sqlquality.analyzer.models import IssueKind, Priority
from sqlquality.config import Config
from sqlquality.plan.models import DiagnosticMessage
from sqlquality.plan.parser import parse_plan


def _kinds(result) -> list[tuple[str, str]]:
    return [(issue.kind, issue.table) for issue in result.issues]


def _table_plan(**table) -> dict:
    return {"query_block": {"select_id": 1, "table": table}}


class TestEmptyInput:
    """Nothing to analyze is not an error."""

    def test_missing_query_block(self, analyzer, mysql_plans):
        result = analyzer.analyze(mysql_plans["empty"], source="empty.sql")
        assert result.issues == ()
        assert result.source == "empty.sql"

    def test_missing_query_block_ignores_messages(self, analyzer):
        messages = [{"Level": "Warning", "Code": 1739, "Message": "Converting column 'x' from INT to VARCHAR"}]
        assert analyzer.analyze({}, messages).issues == ()

    def test_query_block_without_nodes(self, analyzer, mysql_plans):
        assert analyzer.analyze(mysql_plans["no_tables"]).issues == ()

    def test_good_query(self, analyzer, mysql_plans):
        result = analyzer.analyze(mysql_plans["good_query"])
        assert not result.has_issues
        assert result.node_count == 1

    def test_rejects_non_plan_input(self, analyzer):
        with pytest.raises(TypeError):
            analyzer.analyze("not a plan")


class TestTableClassification:
    """Per-table-node checks."""

    def test_full_scan_with_low_selectivity(self, analyzer):
        plan = _table_plan(
            table_name="users",
            access_type="ALL",
            possible_keys=None,
            filtered=95.0,
            rows_examined_per_scan=500,
        )
        result = analyzer.analyze(plan)

        assert [(i.kind, i.priority) for i in result.issues] == [
            ("full_table_scan", Priority.ROOT),
            ("low_selectivity", Priority.DERIVED),
        ]
        assert all(i.table == "users" for i in result.issues)

    def test_full_table_scan_exactly_once(self, analyzer):
        result = analyzer.analyze(_table_plan(table_name="logs", access_type="ALL"))
        assert _kinds(result) == [("full_table_scan", "logs")]
        assert result.issues[0].priority is Priority.ROOT

    def test_unused_index_suppresses_full_scan(self, analyzer, mysql_plans):
        result = analyzer.analyze(mysql_plans["unused_index"])

        assert _kinds(result) == [("unused_available_index", "users")]
        assert "idx_status" in result.issues[0].description
        assert not result.issues_of_kind(IssueKind.FULL_TABLE_SCAN)

    def test_unused_index_with_empty_key(self, analyzer):
        plan = _table_plan(table_name="t", access_type="ALL", possible_keys=["idx_a"], key="")
        assert _kinds(analyzer.analyze(plan)) == [("unused_available_index", "t")]

    def test_comma_separated_possible_keys(self, analyzer):
        plan = _table_plan(table_name="t", access_type="range", possible_keys="idx_a,idx_b")
        result = analyzer.analyze(plan)
        assert _kinds(result) == [("unused_available_index", "t")]
        assert "idx_a, idx_b" in result.issues[0].description

    def test_join_buffer_names_strategy(self, analyzer):
        plan = _table_plan(
            table_name="c", access_type="ref", key="idx", using_join_buffer="Block Nested Loop"
        )
        result = analyzer.analyze(plan)
        assert _kinds(result) == [("inefficient_join", "c")]
        assert "Block Nested Loop" in result.issues[0].description

    def test_function_on_column(self, analyzer, mysql_plans):
        result = analyzer.analyze(mysql_plans["function_on_column"])
        issue = result.issues_of_kind("function_on_column")[0]
        assert issue.table == "orders"
        assert "cast()" in issue.description

    def test_email_like_scenario(self, analyzer):
        plan = _table_plan(
            table_name="users",
            access_type="range",
            key="idx_email",
            attached_condition="`email` like '%@example.com'",
        )
        result = analyzer.analyze(plan)

        assert _kinds(result) == [("inefficient_like", "users")]
        assert result.issues[0].columns == ("email",)
        assert "email" in result.issues[0].description

    def test_two_like_columns_one_issue(self, analyzer, mysql_plans):
        result = analyzer.analyze(mysql_plans["multiple_like"])
        like_issues = result.issues_of_kind(IssueKind.INEFFICIENT_LIKE)

        assert len(like_issues) == 1
        assert like_issues[0].columns == ("title", "content")

    def test_checks_are_independent(self, analyzer):
        plan = _table_plan(
            table_name="t",
            access_type="ALL",
            using_join_buffer="hash join",
            attached_condition="((year(`t`.`d`) = 2024) and (`t`.`name` like '%x'))",
            filtered=100.0,
            rows_examined_per_scan=1000,
        )
        assert [i.kind for i in analyzer.analyze(plan).issues] == [
            "full_table_scan",
            "inefficient_join",
            "function_on_column",
            "inefficient_like",
            "low_selectivity",
        ]

    @pytest.mark.parametrize(
        ("filtered", "rows", "expected"),
        [
            (90.0, 500, False),   # threshold is exclusive
            (90.5, 100, False),
            (90.5, 101, True),
            (None, 5000, False),
            (100.0, None, False),
        ],
    )
    def test_low_selectivity_thresholds(self, analyzer, filtered, rows, expected):
        plan = _table_plan(
            table_name="t", access_type="ref", key="k",
            filtered=filtered, rows_examined_per_scan=rows,
        )
        found = bool(analyzer.analyze(plan).issues_of_kind("low_selectivity"))
        assert found is expected

    def test_low_selectivity_thresholds_configurable(self):
        analyzer = ExplainAnalyzer(
            config=Config(low_selectivity_filtered_pct=50.0, low_selectivity_min_rows=10)
        )
        plan = _table_plan(
            table_name="t", access_type="ref", key="k", filtered=60.0, rows_examined_per_scan=20
        )
        assert analyzer.analyze(plan).issues_of_kind("low_selectivity")

    def test_derived_never_substitutes_root(self, analyzer):
        # Root checks evaluate false here; the derived issue is additive only
        plan = _table_plan(
            table_name="t", access_type="ref", key="k", filtered=100.0, rows_examined_per_scan=1000
        )
        result = analyzer.analyze(plan)
        assert [(i.kind, i.priority) for i in result.issues] == [
            ("low_selectivity", Priority.DERIVED)
        ]

    def test_missing_table_name_is_unknown(self, analyzer):
        result = analyzer.analyze({"query_block": {"table": {"access_type": "ALL"}}})
        assert _kinds(result) == [("full_table_scan", "unknown")]


class TestTreeWalk:
    """Ordering, grouping, join steps and subqueries."""

    def test_filesort(self, analyzer, mysql_plans):
        result = analyzer.analyze(mysql_plans["filesort"])
        assert _kinds(result) == [
            ("filesort_required", "posts"),
            ("full_table_scan", "posts"),
        ]

    def test_grouping_inside_ordering(self, analyzer, mysql_plans):
        result = analyzer.analyze(mysql_plans["temp_table_grouping"])
        assert [(i.kind, i.table, i.priority) for i in result.issues] == [
            ("filesort_required", "orders", Priority.ROOT),
            ("temp_table_required", "orders", Priority.ROOT),
            ("low_selectivity", "orders", Priority.DERIVED),
        ]

    def test_grouping_over_join_steps(self, analyzer, mysql_plans):
        result = analyzer.analyze(mysql_plans["join_buffer"])
        assert [(i.kind, i.table, i.priority.value) for i in result.issues] == [
            ("temp_table_required", "p", "root"),
            ("unused_available_index", "p", "root"),
            ("full_table_scan", "c", "root"),
            ("inefficient_join", "c", "root"),
            ("low_selectivity", "c", "derived"),
        ]

    def test_materialized_subquery(self, analyzer, mysql_plans):
        result = analyzer.analyze(mysql_plans["materialized_subquery"])
        assert _kinds(result) == [
            ("full_table_scan", "totals"),
            ("full_table_scan", "orders"),
            ("low_selectivity", "orders"),
        ]
        assert result.node_count == 2

    def test_attached_and_select_list_subqueries(self, analyzer, mysql_plans):
        result = analyzer.analyze(mysql_plans["attached_subquery"])
        assert [(i.kind, i.table, i.columns) for i in result.issues] == [
            ("full_table_scan", "a", ()),
            ("inefficient_like", "a", ("name",)),
            ("full_table_scan", "b", ()),
            ("inefficient_like", "b", ("title",)),
            ("filesort_required", "c", ()),
        ]
        assert result.node_count == 3

    def test_union_members(self, analyzer, mysql_plans):
        result = analyzer.analyze(mysql_plans["union"])
        assert _kinds(result) == [("unused_available_index", "archived_users")]
        assert result.node_count == 2

    @pytest.mark.parametrize(
        "key",
        [
            "select_list_subqueries",
            "having_subqueries",
            "order_by_subqueries",
            "group_by_subqueries",
            "optimized_away_subqueries",
        ],
    )
    def test_container_subqueries(self, analyzer, key):
        inner = {"query_block": {"select_id": 2, "table": {"table_name": "inner_t", "access_type": "ALL"}}}
        plan = {"query_block": {
            "select_id": 1,
            "table": {"table_name": "outer_t", "access_type": "ALL"},
            key: [inner],
        }}
        assert _kinds(analyzer.analyze(plan)) == [
            ("full_table_scan", "outer_t"),
            ("full_table_scan", "inner_t"),
        ]

    def test_function_marker_in_literal_ignored(self, analyzer):
        plan = _table_plan(
            table_name="t",
            access_type="range",
            key="idx_c",
            attached_condition="(`t`.`c` like '%year(%')",
        )
        assert _kinds(analyzer.analyze(plan)) == [("inefficient_like", "t")]

    def test_filesort_without_tables(self, analyzer):
        result = analyzer.analyze({"query_block": {"ordering_operation": {"using_filesort": True}}})
        assert _kinds(result) == [("filesort_required", "unknown")]

    def test_deep_nesting(self, analyzer):
        node: dict = {"table": {"table_name": "deep", "access_type": "ALL"}}
        for _ in range(50):
            node = {"ordering_operation": {"using_filesort": False, **node}}
        result = analyzer.analyze({"query_block": node})
        assert _kinds(result) == [("full_table_scan", "deep")]

    def test_parsed_plan_and_dict_agree(self, analyzer, mysql_plans):
        raw = mysql_plans["join_buffer"]
        assert analyzer.analyze(raw) == analyzer.analyze(parse_plan(raw))


class TestCatalogIntegration:
    """Catalog matches merged into the issue list."""

    CONVERSION = {"Level": "Warning", "Code": 1739, "Message": "Converting column 'x' from INT to VARCHAR"}

    def test_implicit_conversion_regardless_of_tree(self, analyzer, mysql_plans):
        for name in ("good_query", "no_tables", "filesort"):
            result = analyzer.analyze(mysql_plans[name], [self.CONVERSION])
            issues = result.issues_of_kind(IssueKind.IMPLICIT_TYPE_CONVERSION)
            assert len(issues) == 1
            assert issues[0].table == "unknown"
            assert issues[0].is_root

    def test_catalog_matches_recorded(self, analyzer, mysql_plans):
        result = analyzer.analyze(mysql_plans["filesort"], [self.CONVERSION])
        assert [m.kind for m in result.rule_matches] == [
            "FullTableScan",
            "ImplicitTypeConversion",
            "IneffectiveSort",
        ]

    def test_covered_matches_not_duplicated(self, analyzer, mysql_plans):
        result = analyzer.analyze(mysql_plans["unused_index"])
        assert [m.kind for m in result.rule_matches] == ["FullTableScan"]
        assert _kinds(result) == [("unused_available_index", "users")]

    def test_messages_as_models(self, analyzer):
        message = DiagnosticMessage(text="Implicit conversion of `t`.`code`")
        result = analyzer.analyze({"query_block": {"select_id": 1}}, [message])
        assert [i.kind for i in result.issues] == ["implicit_type_conversion"]

    def test_disabled_rules(self, mysql_plans):
        analyzer = ExplainAnalyzer(
            config=Config(disabled_rules=frozenset({"ImplicitTypeConversion", "low_selectivity"}))
        )
        result = analyzer.analyze(mysql_plans["temp_table_grouping"], [self.CONVERSION])
        assert [i.kind for i in result.issues] == ["filesort_required", "temp_table_required"]
        assert "ImplicitTypeConversion" not in [m.kind for m in result.rule_matches]


class TestOrderingAndDedup:
    """Root before derived, discovery order within tiers, no duplicates."""

    def test_root_before_derived(self, analyzer):
        plan = {
            "query_block": {
                "nested_loop": [
                    {"table": {"table_name": "a", "access_type": "ref", "key": "k",
                               "filtered": 100.0, "rows_examined_per_scan": 1000}},
                    {"table": {"table_name": "b", "access_type": "ALL"}},
                ]
            }
        }
        result = analyzer.analyze(plan)
        assert [(i.kind, i.table) for i in result.issues] == [
            ("full_table_scan", "b"),
            ("low_selectivity", "a"),
        ]
        ranks = [i.priority.rank for i in result.issues]
        assert ranks == sorted(ranks)

    def test_identical_records_emitted_once(self, analyzer):
        step = {"table": {"table_name": "users", "access_type": "ALL"}}
        result = analyzer.analyze({"query_block": {"nested_loop": [step, step]}})
        assert _kinds(result) == [("full_table_scan", "users")]

    def test_source_stamped_on_every_issue(self, analyzer, mysql_plans):
        result = analyzer.analyze(mysql_plans["join_buffer"], source="4_no_index_on_join.sql")
        assert {i.source for i in result.issues} == {"4_no_index_on_join.sql"}

    def test_idempotent(self, analyzer, mysql_plans):
        plan = mysql_plans["join_buffer"]
        first = analyzer.analyze(plan, source="a.sql")
        second = analyzer.analyze(plan, source="a.sql")
        assert first == second
        assert first.model_dump_json() == second.model_dump_json()

    def test_input_not_mutated(self, analyzer, mysql_plans):
        import copy

        plan = mysql_plans["temp_table_grouping"]
        before = copy.deepcopy(plan)
        analyzer.analyze(plan)
        assert plan == before

    def test_shared_instance_across_threads(self, analyzer, mysql_plans):
        names = ["filesort", "join_buffer", "multiple_like", "good_query"] * 5
        expected = {name: analyzer.analyze(mysql_plans[name], source=name) for name in set(names)}
        results: dict[int, object] = {}

        def run(i: int, name: str) -> None:
            results[i] = analyzer.analyze(mysql_plans[name], source=name)

        threads = [threading.Thread(target=run, args=(i, n)) for i, n in enumerate(names)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for i, name in enumerate(names):
            assert results[i] == expected[name]


class TestResultHelpers:
    """AnalysisResult accessors."""

    def test_summary_and_grouping(self, analyzer, mysql_plans):
        result = analyzer.analyze(mysql_plans["join_buffer"])
        assert result.summary() == {
            "total": 5,
            "root": 4,
            "derived": 1,
            "tables": 2,
            "rules_matched": 3,
        }
        assert list(result.by_table()) == ["p", "c"]
        assert [i.kind for i in result.derived_issues] == ["low_selectivity"]
