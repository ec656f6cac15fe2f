"""sqlquality - MySQL EXPLAIN plan diagnostics for SQL quality gates."""

__version__ = "0.1.0"
__license__ = "MIT"

# Exception hierarchy (import first so other modules can use it)
from sqlquality.exceptions import (
    ConfigurationError,
    ParseError,
    SqlFileError,
    SqlQualityError,
)

# Public API exports
from sqlquality.analyzer import (
    CATALOG,
    AnalysisResult,
    DetectedIssue,
    ExplainAnalyzer,
    IssueKind,
    Priority,
    SuggestionRecord,
    suggest,
    suggest_all,
)
from sqlquality.config import Config, FailOn, get_config
from sqlquality.engine import AnalysisReport, AnalysisService, BatchReport
from sqlquality.plan import DiagnosticMessage, ExplainPlan, parse_messages, parse_plan
from sqlquality.schema import SchemaInfo, load_schema_info

__all__ = [
    "__version__",
    # Exceptions
    "SqlQualityError",
    "ParseError",
    "ConfigurationError",
    "SqlFileError",
    # Analyzer
    "ExplainAnalyzer",
    "CATALOG",
    "AnalysisResult",
    "DetectedIssue",
    "IssueKind",
    "Priority",
    "SuggestionRecord",
    "suggest",
    "suggest_all",
    # Plans
    "ExplainPlan",
    "DiagnosticMessage",
    "parse_plan",
    "parse_messages",
    # Orchestration
    "AnalysisService",
    "AnalysisReport",
    "BatchReport",
    # Config
    "Config",
    "FailOn",
    "get_config",
    # Schema metadata
    "SchemaInfo",
    "load_schema_info",
]
