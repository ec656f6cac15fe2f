"""
Plan diagnostic engine.

Module responsibilities (one concept, one module):
- matcher.py: Depth-first key/value search over plan documents
- conditions.py: Text patterns inside attached_condition strings
- catalog.py: Ordered rule catalog and predicate shapes
- analyzer.py: ExplainAnalyzer (walk, catalog merge, dedup, ordering)
- models.py: Immutable result models (DetectedIssue, AnalysisResult, ...)
- suggestions.py: Issue kind → remediation templates
"""

from sqlquality.analyzer.analyzer import ExplainAnalyzer
from sqlquality.analyzer.catalog import (
    CATALOG,
    RuleDefinition,
    evaluate_catalog,
    get_rule,
)
from sqlquality.analyzer.matcher import ANY, exists, find_values
from sqlquality.analyzer.models import (
    AnalysisResult,
    DetectedIssue,
    IssueKind,
    Priority,
    RuleMatch,
    SuggestionAlternative,
    SuggestionRecord,
)
from sqlquality.analyzer.suggestions import suggest, suggest_all

__all__ = [
    "ExplainAnalyzer",
    "CATALOG",
    "RuleDefinition",
    "evaluate_catalog",
    "get_rule",
    "ANY",
    "exists",
    "find_values",
    "AnalysisResult",
    "DetectedIssue",
    "IssueKind",
    "Priority",
    "RuleMatch",
    "SuggestionAlternative",
    "SuggestionRecord",
    "suggest",
    "suggest_all",
]
