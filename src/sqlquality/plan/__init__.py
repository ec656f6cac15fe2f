"""EXPLAIN FORMAT=JSON plan model and parsing."""

from sqlquality.exceptions import ParseError
from sqlquality.plan.models import (
    AccessType,
    DiagnosticMessage,
    ExplainPlan,
    GroupingOperation,
    JoinStep,
    OrderingOperation,
    PlanContainer,
    PlanVariant,
    QueryBlock,
    SubqueryBlock,
    TableAccess,
    UnionResult,
)
from sqlquality.plan.parser import parse_messages, parse_plan

__all__ = [
    "AccessType",
    "DiagnosticMessage",
    "ExplainPlan",
    "GroupingOperation",
    "JoinStep",
    "OrderingOperation",
    "PlanContainer",
    "PlanVariant",
    "QueryBlock",
    "SubqueryBlock",
    "TableAccess",
    "UnionResult",
    "parse_plan",
    "parse_messages",
    "ParseError",
]
