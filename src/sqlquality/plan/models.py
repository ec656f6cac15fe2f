"""
Pydantic models for MySQL EXPLAIN FORMAT=JSON output and SHOW WARNINGS.

MySQL's JSON plan is a recursive, heterogeneous tree:
- query_block: Root container of a SELECT
- table: Single table access (the leaves that carry row estimates)
- nested_loop: Array of join steps, each wrapping a table
- ordering_operation: ORDER BY handling (may wrap any of the above)
- grouping_operation: GROUP BY handling (may wrap any of the above)
- duplicates_removal: DISTINCT handling

Every container shares the same optional sub-shapes, so a table may be
wrapped by ordering and grouping operations to any depth. Field names match
MySQL's JSON keys exactly; unknown keys are kept in model_extra so nothing
the server emits is lost.

Reference: https://dev.mysql.com/doc/refman/8.0/en/explain-output.html
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar, Iterator

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class AccessType(str, Enum):
    """
    MySQL join/access types, worst to best.

    Not exhaustive for every server version; unknown values are kept as
    plain strings on TableAccess.
    """

    ALL = "ALL"                  # Full table scan
    INDEX = "index"              # Full index scan
    RANGE = "range"              # Index range scan
    INDEX_MERGE = "index_merge"
    REF_OR_NULL = "ref_or_null"
    REF = "ref"                  # Non-unique index lookup
    EQ_REF = "eq_ref"            # Unique index lookup
    CONST = "const"              # Single row
    SYSTEM = "system"


class PlanVariant(str, Enum):
    """Which container shape a plan node is."""

    QUERY_BLOCK = "query_block"
    JOIN_STEP = "nested_loop"
    ORDERING = "ordering_operation"
    GROUPING = "grouping_operation"
    DUPLICATES_REMOVAL = "duplicates_removal"


class TableAccess(BaseModel):
    """
    A single table access node: the leaf shape of the plan.

    `key` may be absent even when `possible_keys` is non-empty; that gap is
    exactly what the unused-index check looks for.
    """

    model_config = ConfigDict(extra="allow")

    table_name: str = "unknown"
    access_type: str | None = None
    possible_keys: list[str] | None = None
    key: str | None = None
    rows_examined_per_scan: int | None = None
    rows_produced_per_join: int | None = None
    filtered: float | None = None
    attached_condition: str | None = None
    using_join_buffer: str | None = None
    materialized_from_subquery: MaterializedSubquery | None = None
    attached_subqueries: list[SubqueryBlock] | None = None

    @field_validator("possible_keys", mode="before")
    @classmethod
    def _split_keys(cls, value: Any) -> Any:
        # Traditional EXPLAIN reports possible_keys as "idx_a,idx_b"
        if isinstance(value, str):
            return [k.strip() for k in value.split(",") if k.strip()]
        return value

    @property
    def is_full_table_scan(self) -> bool:
        return self.access_type == AccessType.ALL.value

    @property
    def has_unused_index(self) -> bool:
        """Indexes were considered but none was chosen."""
        return bool(self.possible_keys) and not self.key

    def subquery_blocks(self) -> Iterator[QueryBlock]:
        """Query blocks nested under this access: derived table first, then attached subqueries."""
        subquery = self.materialized_from_subquery
        if subquery is not None and subquery.query_block is not None:
            yield subquery.query_block
        yield from _blocks(self.attached_subqueries)


class SubqueryBlock(BaseModel):
    """
    A nested SELECT hanging off a table or container.

    Used for attached, select-list, HAVING, ORDER BY and GROUP BY
    subqueries, and for each member of a UNION.
    """

    model_config = ConfigDict(extra="allow")

    dependent: bool | None = None
    cacheable: bool | None = None
    using_temporary_table: bool = False
    query_block: QueryBlock | None = None


class MaterializedSubquery(SubqueryBlock):
    """Derived table / subquery materialized into a temporary table."""


class UnionResult(BaseModel):
    """UNION handling: a temporary table fed by each member SELECT."""

    model_config = ConfigDict(extra="allow")

    table_name: str | None = None
    access_type: str | None = None
    using_temporary_table: bool = False
    query_specifications: list[SubqueryBlock] | None = None


def _blocks(subqueries: list[SubqueryBlock] | None) -> Iterator[QueryBlock]:
    for subquery in subqueries or ():
        if subquery.query_block is not None:
            yield subquery.query_block


class PlanContainer(BaseModel):
    """
    Shared shape of every non-leaf plan node.

    Subclasses set `variant`; `children()` yields the sub-shapes actually
    present: the table, then wrapping operations, then join steps, then the
    query blocks of nested subqueries and UNION members.
    """

    model_config = ConfigDict(extra="allow")

    variant: ClassVar[PlanVariant]

    table: TableAccess | None = None
    nested_loop: list[JoinStep] | None = None
    ordering_operation: OrderingOperation | None = None
    grouping_operation: GroupingOperation | None = None
    duplicates_removal: DuplicatesRemoval | None = None
    select_list_subqueries: list[SubqueryBlock] | None = None
    having_subqueries: list[SubqueryBlock] | None = None
    order_by_subqueries: list[SubqueryBlock] | None = None
    group_by_subqueries: list[SubqueryBlock] | None = None
    optimized_away_subqueries: list[SubqueryBlock] | None = None
    union_result: UnionResult | None = None

    def children(self) -> Iterator[TableAccess | PlanContainer]:
        if self.table is not None:
            yield self.table
        if self.ordering_operation is not None:
            yield self.ordering_operation
        if self.grouping_operation is not None:
            yield self.grouping_operation
        if self.duplicates_removal is not None:
            yield self.duplicates_removal
        for step in self.nested_loop or ():
            yield step
        yield from self.subquery_blocks()

    def subquery_blocks(self) -> Iterator[QueryBlock]:
        yield from _blocks(self.select_list_subqueries)
        yield from _blocks(self.having_subqueries)
        yield from _blocks(self.order_by_subqueries)
        yield from _blocks(self.group_by_subqueries)
        yield from _blocks(self.optimized_away_subqueries)
        if self.union_result is not None:
            yield from _blocks(self.union_result.query_specifications)

    def iter_tables(self) -> Iterator[TableAccess]:
        """Depth-first iteration over every table access beneath this node."""
        for child in self.children():
            if isinstance(child, TableAccess):
                yield child
                for block in child.subquery_blocks():
                    yield from block.iter_tables()
            else:
                yield from child.iter_tables()

    def first_table_name(self) -> str:
        """Name of the first table beneath this node, or "unknown"."""
        for table in self.iter_tables():
            return table.table_name
        return "unknown"


class JoinStep(PlanContainer):
    """One entry of a nested_loop array."""

    variant: ClassVar[PlanVariant] = PlanVariant.JOIN_STEP


class OrderingOperation(PlanContainer):
    """ORDER BY handling; wraps the access path that feeds the sort."""

    variant: ClassVar[PlanVariant] = PlanVariant.ORDERING

    using_filesort: bool = False


class GroupingOperation(PlanContainer):
    """GROUP BY handling; wraps the join steps being grouped."""

    variant: ClassVar[PlanVariant] = PlanVariant.GROUPING

    using_temporary_table: bool = False
    using_filesort: bool = False


class DuplicatesRemoval(PlanContainer):
    """DISTINCT handling."""

    variant: ClassVar[PlanVariant] = PlanVariant.DUPLICATES_REMOVAL

    using_temporary_table: bool = False
    using_filesort: bool = False


class QueryBlock(PlanContainer):
    """Root container of one SELECT."""

    variant: ClassVar[PlanVariant] = PlanVariant.QUERY_BLOCK

    select_id: int = 1


class ExplainPlan(BaseModel):
    """
    A parsed EXPLAIN FORMAT=JSON document.

    `query_block` is None when the document has no root container; that is
    a valid "nothing to analyze" state, not an error.
    """

    model_config = ConfigDict(extra="allow")

    query_block: QueryBlock | None = None

    @property
    def is_empty(self) -> bool:
        return self.query_block is None

    @property
    def node_count(self) -> int:
        """Number of table access nodes in the plan."""
        if self.query_block is None:
            return 0
        return sum(1 for _ in self.query_block.iter_tables())

    def document(self) -> dict[str, Any]:
        """Plain JSON-like tree (MySQL key names) for structural matching."""
        return self.model_dump(exclude_none=True)


class DiagnosticMessage(BaseModel):
    """
    One row of SHOW WARNINGS.

    Accepts both the snake_case field names and MySQL's column names
    (Level, Code, Message).
    """

    model_config = ConfigDict(frozen=True)

    level: str = Field(
        default="Warning",
        validation_alias=AliasChoices("level", "Level"),
    )
    code: int | None = Field(
        default=None,
        validation_alias=AliasChoices("code", "Code"),
    )
    text: str = Field(
        ...,
        validation_alias=AliasChoices("text", "Message", "message"),
    )


TableAccess.model_rebuild()
SubqueryBlock.model_rebuild()
MaterializedSubquery.model_rebuild()
UnionResult.model_rebuild()
PlanContainer.model_rebuild()
JoinStep.model_rebuild()
OrderingOperation.model_rebuild()
GroupingOperation.model_rebuild()
DuplicatesRemoval.model_rebuild()
QueryBlock.model_rebuild()
ExplainPlan.model_rebuild()
