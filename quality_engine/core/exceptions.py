# Data Quality Engine - Custom Exceptions
# Exception hierarchy with error codes, context, and recovery hints

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4


class ErrorCode(str, Enum):
    """Standardized error codes for results and logging."""

    # General errors (1xxx)
    UNKNOWN_ERROR = "E1000"

    # Dataset errors (3xxx)
    INVALID_ARGUMENTS = "E3000"
    EMPTY_DATASET = "E3001"
    DUPLICATE_HEADERS = "E3002"
    INVALID_ROW = "E3003"
    UNSUPPORTED_COLUMN_TYPE = "E3004"

    # Rule errors (4xxx)
    MALFORMED_RULE = "E4000"
    UNKNOWN_RULE_COLUMN = "E4001"


@dataclass(frozen=True)
class ErrorContext:
    """Immutable context information for error tracking and debugging."""

    error_id: UUID = field(default_factory=uuid4)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    component: str = ""
    operation: str = ""
    additional_data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_id": str(self.error_id),
            "timestamp": self.timestamp.isoformat(),
            "component": self.component,
            "operation": self.operation,
            "additional_data": self.additional_data
        }


class BaseApplicationException(Exception):
    """
    Base exception class for all engine exceptions.

    Carries an error code, optional context and a recovery hint so callers
    can render a structured error instead of a bare message.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        recovery_hint: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or ErrorContext()
        self.cause = cause
        self.recovery_hint = recovery_hint

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured error output."""
        return {
            "error": True,
            "error_code": self.error_code.value,
            "error_type": self.__class__.__name__,
            "message": self.message,
            "recovery_hint": self.recovery_hint,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None
        }

    def __str__(self) -> str:
        return f"[{self.error_code.value}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code={self.error_code}, "
            f"error_id={self.context.error_id})"
        )


# ============================================================================
# Analysis Exceptions
# ============================================================================

class AnalysisException(BaseApplicationException):
    """Structurally invalid call to the analysis engine. Always fatal."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.INVALID_ARGUMENTS),
            recovery_hint=kwargs.pop(
                "recovery_hint",
                "Pass a sequence of row mappings and a duplicate-free list of column names"
            ),
            **kwargs
        )


# Public name used by callers that handle the error union of analyze().
AnalysisError = AnalysisException


class DataQualityException(BaseApplicationException):
    """Base exception for data irregularities that are reported, not raised."""
    pass


class EmptyDatasetException(DataQualityException):
    """Dataset has no headers or no rows."""

    def __init__(self, total_rows: int, total_columns: int, **kwargs: Any) -> None:
        super().__init__(
            message=f"Dataset is empty ({total_rows} rows, {total_columns} columns)",
            error_code=ErrorCode.EMPTY_DATASET,
            recovery_hint="Upload a file with a header row and at least one data row",
            **kwargs
        )
        self.total_rows = total_rows
        self.total_columns = total_columns


class UnsupportedColumnTypeException(DataQualityException):
    """Column values are too heterogeneous to classify."""

    def __init__(self, column: str, reason: str, **kwargs: Any) -> None:
        super().__init__(
            message=f"Column '{column}' cannot be classified: {reason}",
            error_code=ErrorCode.UNSUPPORTED_COLUMN_TYPE,
            recovery_hint="Column is treated as 'unknown'; flatten nested values before analysis",
            **kwargs
        )
        self.column = column
        self.reason = reason


class MalformedRuleException(DataQualityException):
    """A custom rule's condition could not be parsed."""

    def __init__(
        self,
        condition: str,
        reason: str,
        position: Optional[int] = None,
        rule_id: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        location = f" at position {position}" if position is not None else ""
        super().__init__(
            message=f"Cannot parse condition '{condition}'{location}: {reason}",
            error_code=kwargs.pop("error_code", ErrorCode.MALFORMED_RULE),
            recovery_hint="Use comparisons like \"age >= 0 AND country != 'N/A'\"",
            **kwargs
        )
        self.condition = condition
        self.reason = reason
        self.position = position
        self.rule_id = rule_id
