# Data Quality Engine - Type Inference Engine
# Classifies each column's dominant data type from a bounded sample of values

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from quality_engine.analysis.models import AnalysisWarning, ColumnType, WarningKind
from quality_engine.analysis.values import (
    is_boolean_token,
    is_email,
    is_null,
    is_scalar,
    looks_like_phone,
    parse_date,
    to_number,
)
from quality_engine.core.config import AnalysisSettings, get_settings
from quality_engine.core.exceptions import UnsupportedColumnTypeException
from quality_engine.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class TypeInferenceResult:
    """Inferred types in header order plus any columns that could not be classified."""

    data_types: dict[str, ColumnType] = field(default_factory=dict)
    warnings: list[AnalysisWarning] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "data_types": {col: t.value for col, t in self.data_types.items()},
            "warnings": [w.to_dict() for w in self.warnings],
        }


class TypeInferenceEngine:
    """
    Column type inference.

    Checks run in priority order; the first that accepts the sample wins:
    boolean and number need every sampled value to qualify, date needs a
    configurable majority (70%), email and phone a stricter one (80%).
    """

    def __init__(self, settings: Optional[AnalysisSettings] = None):
        self.settings = settings or get_settings()

    def infer(
        self,
        rows: Sequence[Mapping[str, Any]],
        headers: Sequence[str]
    ) -> TypeInferenceResult:
        """Infer the type of every column."""
        result = TypeInferenceResult()

        for header in headers:
            values = [row.get(header) for row in rows]
            try:
                result.data_types[header] = self.infer_column(header, values)
            except UnsupportedColumnTypeException as e:
                logger.warning(f"Column '{header}' falls back to unknown: {e.reason}")
                result.data_types[header] = ColumnType.UNKNOWN
                result.warnings.append(AnalysisWarning(
                    kind=WarningKind.UNSUPPORTED_COLUMN_TYPE,
                    message=e.message,
                    column=header,
                ))

        logger.debug(
            "Inferred column types",
            types={col: t.value for col, t in result.data_types.items()}
        )
        return result

    def infer_column(self, column: str, values: Sequence[Any]) -> ColumnType:
        """
        Classify one column.

        Raises:
            UnsupportedColumnTypeException: if the sample holds nested values
        """
        sample = self._sample(values)

        if not sample:
            return ColumnType.UNKNOWN

        nested = [v for v in sample if not is_scalar(v)]
        if nested:
            raise UnsupportedColumnTypeException(
                column=column,
                reason=f"{len(nested)} of {len(sample)} sampled values are {type(nested[0]).__name__} objects"
            )

        if all(is_boolean_token(v) for v in sample):
            return ColumnType.BOOLEAN

        if all(to_number(v) is not None for v in sample):
            return ColumnType.NUMBER

        if self._ratio(sample, lambda v: parse_date(v) is not None) > self.settings.date_ratio_threshold:
            return ColumnType.DATE

        if self._ratio(sample, is_email) > self.settings.pattern_ratio_threshold:
            return ColumnType.EMAIL

        if self._ratio(sample, looks_like_phone) > self.settings.pattern_ratio_threshold:
            return ColumnType.PHONE

        return ColumnType.STRING

    def _sample(self, values: Sequence[Any]) -> list[Any]:
        """First ``type_sample_size`` non-null values in row order."""
        sample = []
        for value in values:
            if is_null(value):
                continue
            sample.append(value)
            if len(sample) >= self.settings.type_sample_size:
                break
        return sample

    @staticmethod
    def _ratio(sample: Sequence[Any], predicate: Callable[[Any], bool]) -> float:
        return sum(1 for v in sample if predicate(v)) / len(sample)


def get_type_inference_engine(settings: Optional[AnalysisSettings] = None) -> TypeInferenceEngine:
    """Get type inference engine instance."""
    return TypeInferenceEngine(settings)


def infer_column_type(values: Sequence[Any], column: str = "column") -> ColumnType:
    """Quick helper: infer one column's type, treating nested values as unknown."""
    try:
        return TypeInferenceEngine().infer_column(column, values)
    except UnsupportedColumnTypeException:
        return ColumnType.UNKNOWN
