# Data Quality Engine - Outlier Detection Engine
# Z-score outliers for numeric columns

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np
from scipy import stats as scipy_stats

from quality_engine.analysis.models import ColumnType, OutlierRecord
from quality_engine.analysis.values import is_null, to_number
from quality_engine.core.config import AnalysisSettings, get_settings
from quality_engine.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class OutlierResult:
    """Outliers per column; every header has an entry."""

    outliers: dict[str, list[OutlierRecord]] = field(default_factory=dict)

    @property
    def total_outliers(self) -> int:
        return sum(len(records) for records in self.outliers.values())

    @property
    def outlier_rows(self) -> list[int]:
        """Union of flagged row indices, ascending."""
        return sorted({r.row_index for records in self.outliers.values() for r in records})

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_outliers": self.total_outliers,
            "outliers": {col: [r.to_dict() for r in records] for col, records in self.outliers.items()},
        }


class OutlierDetectionEngine:
    """
    Z-score outlier detection.

    Uses the population standard deviation (ddof=0). Columns with fewer than
    ``outlier_min_samples`` numeric values, or with zero variance, are never
    flagged.
    """

    def __init__(self, settings: Optional[AnalysisSettings] = None):
        self.settings = settings or get_settings()

    def detect(
        self,
        rows: Sequence[Mapping[str, Any]],
        headers: Sequence[str],
        data_types: Mapping[str, ColumnType]
    ) -> OutlierResult:
        result = OutlierResult()

        for header in headers:
            if data_types.get(header) != ColumnType.NUMBER:
                result.outliers[header] = []
                continue
            values = [row.get(header) for row in rows]
            result.outliers[header] = self.detect_column(values)

        if result.total_outliers:
            logger.info(
                f"Flagged {result.total_outliers} outliers",
                threshold=self.settings.outlier_z_threshold
            )
        return result

    def detect_column(self, values: Sequence[Any]) -> list[OutlierRecord]:
        """Outliers among one column's values, ordered by row index."""
        indices: list[int] = []
        numbers: list[float] = []
        originals: list[Any] = []

        for index, value in enumerate(values):
            if is_null(value):
                continue
            number = to_number(value)
            if number is None:
                continue
            indices.append(index)
            numbers.append(number)
            originals.append(value)

        if len(numbers) < self.settings.outlier_min_samples:
            return []

        data = np.asarray(numbers, dtype=float)
        if np.std(data) == 0:
            return []

        z_scores = scipy_stats.zscore(data, ddof=0)
        threshold = self.settings.outlier_z_threshold

        return [
            OutlierRecord(row_index=indices[i], value=originals[i], z_score=round(float(z), 4))
            for i, z in enumerate(z_scores)
            if abs(z) > threshold
        ]


def get_outlier_engine(settings: Optional[AnalysisSettings] = None) -> OutlierDetectionEngine:
    """Get outlier detection engine instance."""
    return OutlierDetectionEngine(settings)
