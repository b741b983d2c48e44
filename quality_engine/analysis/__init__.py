# Data Quality Engine - Analysis Package
"""
Computational core of the data quality engine.

Components run in this order:
- Type inference
- Column profiling
- Duplicate detection
- Outlier detection
- Contextual and cross-field validation
- Built-in and custom rule results
- Quality scoring
"""

from quality_engine.analysis.models import (
    AnalysisResult,
    AnalysisWarning,
    ColumnStatistics,
    ColumnType,
    ContextualIssue,
    CrossFieldIssue,
    CustomRule,
    IssueCategory,
    IssueKind,
    OutlierRecord,
    Severity,
    ValidationResult,
    ValidationSource,
    WarningKind,
)
from quality_engine.analysis.orchestrator import DataQualityAnalyzer, analyze, get_analyzer

__all__ = [
    "AnalysisResult",
    "AnalysisWarning",
    "ColumnStatistics",
    "ColumnType",
    "ContextualIssue",
    "CrossFieldIssue",
    "CustomRule",
    "DataQualityAnalyzer",
    "IssueCategory",
    "IssueKind",
    "OutlierRecord",
    "Severity",
    "ValidationResult",
    "ValidationSource",
    "WarningKind",
    "analyze",
    "get_analyzer",
]
