# Data Quality Engine - Core Package
"""
Core package containing the ambient components shared by every engine:
- Configuration management
- Exception hierarchy
- Logging infrastructure
- JSON serialization helpers
"""

from quality_engine.core.config import AnalysisSettings, get_settings
from quality_engine.core.exceptions import (
    AnalysisError,
    AnalysisException,
    BaseApplicationException,
    DataQualityException,
    EmptyDatasetException,
    ErrorCode,
    MalformedRuleException,
    UnsupportedColumnTypeException,
)
from quality_engine.core.logging import (
    clear_run_context,
    get_logger,
    log_execution_time,
    set_run_context,
)
from quality_engine.core.serialization import to_jsonable

__all__ = [
    # Config
    "AnalysisSettings",
    "get_settings",
    # Exceptions
    "AnalysisError",
    "AnalysisException",
    "BaseApplicationException",
    "DataQualityException",
    "EmptyDatasetException",
    "ErrorCode",
    "MalformedRuleException",
    "UnsupportedColumnTypeException",
    # Logging
    "clear_run_context",
    "get_logger",
    "log_execution_time",
    "set_run_context",
    # Serialization
    "to_jsonable",
]
