# Data Quality Engine - Analysis Models
# Enums and immutable result records shared by every analysis component

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, Optional, Union

from quality_engine.core.serialization import to_jsonable


# ============================================================================
# Enums
# ============================================================================

class ColumnType(str, Enum):
    """Dominant data type of a column."""
    NUMBER = "number"
    STRING = "string"
    DATE = "date"
    BOOLEAN = "boolean"
    EMAIL = "email"
    PHONE = "phone"
    UNKNOWN = "unknown"


class Severity(str, Enum):
    """Issue severity, ordered from least to most urgent."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class IssueKind(str, Enum):
    """Discriminator for the Issue tagged union."""
    CONTEXTUAL = "contextual"
    CROSS_FIELD = "cross_field"
    CUSTOM_RULE = "custom_rule"


class IssueCategory(str, Enum):
    """Problem categories; each maps to exactly one severity."""
    IMPOSSIBLE_VALUE = "impossible_value"
    TYPE_MISMATCH = "type_mismatch"
    OUT_OF_RANGE = "out_of_range"
    INVALID_FORMAT = "invalid_format"
    IMPLAUSIBLE_VALUE = "implausible_value"
    INCONSISTENT_FORMAT = "inconsistent_format"
    EMPTY_VALUE = "empty_value"

    # Cross-field relationships
    AGE_BIRTH_DATE_MISMATCH = "age_birth_date_mismatch"
    DATE_ORDER = "date_order"
    SALARY_EXPERIENCE_MISMATCH = "salary_experience_mismatch"
    TOTAL_MISMATCH = "total_mismatch"
    COUNTRY_CURRENCY_MISMATCH = "country_currency_mismatch"
    COUNTRY_PHONE_MISMATCH = "country_phone_mismatch"

    @property
    def severity(self) -> Severity:
        return CATEGORY_SEVERITY[self]


CATEGORY_SEVERITY: Mapping[IssueCategory, Severity] = MappingProxyType({
    IssueCategory.IMPOSSIBLE_VALUE: Severity.CRITICAL,
    IssueCategory.TYPE_MISMATCH: Severity.HIGH,
    IssueCategory.OUT_OF_RANGE: Severity.HIGH,
    IssueCategory.INVALID_FORMAT: Severity.MEDIUM,
    IssueCategory.IMPLAUSIBLE_VALUE: Severity.MEDIUM,
    IssueCategory.INCONSISTENT_FORMAT: Severity.LOW,
    IssueCategory.EMPTY_VALUE: Severity.LOW,
    IssueCategory.AGE_BIRTH_DATE_MISMATCH: Severity.HIGH,
    IssueCategory.DATE_ORDER: Severity.CRITICAL,
    IssueCategory.SALARY_EXPERIENCE_MISMATCH: Severity.MEDIUM,
    IssueCategory.TOTAL_MISMATCH: Severity.HIGH,
    IssueCategory.COUNTRY_CURRENCY_MISMATCH: Severity.MEDIUM,
    IssueCategory.COUNTRY_PHONE_MISMATCH: Severity.MEDIUM,
})


class WarningKind(str, Enum):
    """Non-fatal conditions reported alongside a result."""
    EMPTY_DATASET = "empty_dataset"
    MALFORMED_RULE = "malformed_rule"
    UNSUPPORTED_COLUMN_TYPE = "unsupported_column_type"


class ValidationSource(str, Enum):
    """Where a ValidationResult came from."""
    BUILTIN = "builtin"
    CUSTOM_RULE = "custom_rule"


# ============================================================================
# Statistics
# ============================================================================

@dataclass(frozen=True)
class ColumnStatistics:
    """Descriptive statistics for one column. Inapplicable fields are None."""

    count: int = 0
    unique_values: int = 0

    # Numeric columns
    min: Optional[float] = None
    max: Optional[float] = None
    mean: Optional[float] = None
    median: Optional[float] = None
    std_dev: Optional[float] = None
    q1: Optional[float] = None
    q3: Optional[float] = None

    # Textual columns
    most_common: Optional[str] = None
    most_common_count: Optional[int] = None
    average_length: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "uniqueValues": self.unique_values,
            "min": self.min,
            "max": self.max,
            "mean": self.mean,
            "median": self.median,
            "stdDev": self.std_dev,
            "q1": self.q1,
            "q3": self.q3,
            "mostCommon": self.most_common,
            "mostCommonCount": self.most_common_count,
            "averageLength": self.average_length,
        }


@dataclass(frozen=True)
class OutlierRecord:
    """A numeric value whose |z-score| exceeds the outlier threshold."""

    row_index: int
    value: Any
    z_score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "rowIndex": self.row_index,
            "value": to_jsonable(self.value),
            "zScore": self.z_score,
        }


# ============================================================================
# Issues (tagged union discriminated by ``kind``)
# ============================================================================

@dataclass(frozen=True)
class Issue:
    """Shared shape of every detected problem."""

    kind: ClassVar[IssueKind]

    severity: Severity
    issue: str
    suggestion: str
    category: IssueCategory

    def _base_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "issue": self.issue,
            "suggestion": self.suggestion,
            "category": self.category.value,
        }


@dataclass(frozen=True)
class ContextualIssue(Issue):
    """A problem with a single field value."""

    kind: ClassVar[IssueKind] = IssueKind.CONTEXTUAL

    column: str
    row: int
    value: Any

    def to_dict(self) -> dict[str, Any]:
        result = self._base_dict()
        result.update({
            "column": self.column,
            "row": self.row,
            "value": to_jsonable(self.value),
        })
        return result


@dataclass(frozen=True)
class CrossFieldIssue(Issue):
    """An inconsistency between two or more fields of the same row."""

    kind: ClassVar[IssueKind] = IssueKind.CROSS_FIELD

    columns: tuple[str, ...]
    row: int

    def to_dict(self) -> dict[str, Any]:
        result = self._base_dict()
        result.update({
            "columns": list(self.columns),
            "row": self.row,
        })
        return result


AnyIssue = Union[ContextualIssue, CrossFieldIssue]


# ============================================================================
# Rules and validation results
# ============================================================================

@dataclass(frozen=True)
class CustomRule:
    """A user-authored condition that every row is expected to satisfy."""

    id: str
    name: str
    condition: str
    severity: Severity = Severity.MEDIUM
    description: str = ""
    columns: tuple[str, ...] = ()
    active: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CustomRule":
        """Build a rule from a stored mapping (snake_case or camelCase keys)."""
        severity = data.get("severity") or Severity.MEDIUM
        columns = data.get("columns") or ()
        if isinstance(columns, str):
            columns = (columns,)
        return cls(
            id=str(data.get("id") or data.get("name") or ""),
            name=str(data.get("name") or data.get("id") or ""),
            condition=str(data.get("condition") or ""),
            severity=Severity(str(getattr(severity, "value", severity)).lower()),
            description=str(data.get("description") or ""),
            columns=tuple(str(c) for c in columns),
            active=bool(data.get("active", data.get("isActive", True))),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "condition": self.condition,
            "severity": self.severity.value,
            "columns": list(self.columns),
            "active": self.active,
        }


@dataclass(frozen=True)
class ValidationResult:
    """Summary of every row affected by one rule."""

    id: str
    rule: str
    severity: Severity
    affected_rows: tuple[int, ...]
    description: str
    suggestion: str
    source: ValidationSource
    sql_fix: Optional[str] = None
    python_fix: Optional[str] = None
    can_auto_fix: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "rule": self.rule,
            "severity": self.severity.value,
            "affectedRows": list(self.affected_rows),
            "description": self.description,
            "suggestion": self.suggestion,
            "sqlFix": self.sql_fix,
            "pythonFix": self.python_fix,
            "canAutoFix": self.can_auto_fix,
            "source": self.source.value,
        }


@dataclass(frozen=True)
class AnalysisWarning:
    """A data irregularity that was reported instead of raised."""

    kind: WarningKind
    message: str
    column: Optional[str] = None
    rule_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "column": self.column,
            "ruleId": self.rule_id,
        }


# ============================================================================
# Aggregate result
# ============================================================================

@dataclass(frozen=True)
class AnalysisResult:
    """Immutable snapshot of one analysis run."""

    total_rows: int
    total_columns: int
    null_values: Mapping[str, int]
    duplicates: int
    data_types: Mapping[str, ColumnType]
    outliers: Mapping[str, tuple[OutlierRecord, ...]]
    statistics: Mapping[str, ColumnStatistics]
    contextual_issues: tuple[ContextualIssue, ...]
    cross_field_issues: tuple[CrossFieldIssue, ...]
    quality_score: int
    validation_results: tuple[ValidationResult, ...] = ()
    warnings: tuple[AnalysisWarning, ...] = field(default=())

    @property
    def issues(self) -> tuple[AnyIssue, ...]:
        """Contextual and cross-field issues together."""
        return self.contextual_issues + self.cross_field_issues

    @property
    def null_ratio(self) -> float:
        cells = self.total_rows * self.total_columns
        return sum(self.null_values.values()) / cells if cells else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalRows": self.total_rows,
            "totalColumns": self.total_columns,
            "nullValues": dict(self.null_values),
            "duplicates": self.duplicates,
            "dataTypes": {col: t.value for col, t in self.data_types.items()},
            "outliers": {
                col: [record.to_dict() for record in records]
                for col, records in self.outliers.items()
            },
            "statistics": {col: s.to_dict() for col, s in self.statistics.items()},
            "contextualIssues": [i.to_dict() for i in self.contextual_issues],
            "crossFieldIssues": [i.to_dict() for i in self.cross_field_issues],
            "qualityScore": self.quality_score,
            "validationResults": [r.to_dict() for r in self.validation_results],
            "warnings": [w.to_dict() for w in self.warnings],
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        """Deterministic JSON rendering (stable key order, NaN-free)."""
        return json.dumps(to_jsonable(self.to_dict()), indent=indent, allow_nan=False)
