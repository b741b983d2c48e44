"""
Data Quality Engine.

Turns already-parsed tabular rows into a data-quality report: inferred
column types, statistics, null and duplicate counts, outliers, contextual
and cross-field issues, custom rule results and a 0-100 quality score.

    >>> from quality_engine import analyze
    >>> result = analyze([{"age": -1}, {"age": 5}], ["age"], [
    ...     {"id": "r1", "name": "Age non-negative", "condition": "age >= 0"}
    ... ])
    >>> result.validation_results[-1].affected_rows
    (0,)
"""

from quality_engine.analysis import (
    AnalysisResult,
    AnalysisWarning,
    ColumnStatistics,
    ColumnType,
    ContextualIssue,
    CrossFieldIssue,
    CustomRule,
    DataQualityAnalyzer,
    IssueCategory,
    IssueKind,
    OutlierRecord,
    Severity,
    ValidationResult,
    ValidationSource,
    WarningKind,
    analyze,
    get_analyzer,
)
from quality_engine.core.exceptions import (
    AnalysisError,
    AnalysisException,
    EmptyDatasetException,
    MalformedRuleException,
    UnsupportedColumnTypeException,
)

__version__ = "1.0.0"

__all__ = [
    "AnalysisError",
    "AnalysisException",
    "AnalysisResult",
    "AnalysisWarning",
    "ColumnStatistics",
    "ColumnType",
    "ContextualIssue",
    "CrossFieldIssue",
    "CustomRule",
    "DataQualityAnalyzer",
    "EmptyDatasetException",
    "IssueCategory",
    "IssueKind",
    "MalformedRuleException",
    "OutlierRecord",
    "Severity",
    "UnsupportedColumnTypeException",
    "ValidationResult",
    "ValidationSource",
    "WarningKind",
    "analyze",
    "get_analyzer",
]
