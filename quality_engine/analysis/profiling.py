# Data Quality Engine - Column Profiler
# Per-column descriptive statistics and null counts

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from quality_engine.analysis.models import ColumnStatistics, ColumnType
from quality_engine.analysis.values import canonical, display, is_null, to_number
from quality_engine.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ProfileResult:
    """Statistics and null counts for every column, in header order."""

    statistics: dict[str, ColumnStatistics] = field(default_factory=dict)
    null_values: dict[str, int] = field(default_factory=dict)

    @property
    def total_nulls(self) -> int:
        return sum(self.null_values.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "statistics": {col: s.to_dict() for col, s in self.statistics.items()},
            "null_values": dict(self.null_values),
        }


class ColumnProfiler:
    """
    Column profiler.

    Numeric columns get min/max/mean/median, population standard deviation
    and quartiles; every other type gets the most frequent value and the
    average text length. Nulls are excluded from every figure.
    """

    def profile(
        self,
        rows: Sequence[Mapping[str, Any]],
        headers: Sequence[str],
        data_types: Mapping[str, ColumnType]
    ) -> ProfileResult:
        result = ProfileResult()

        for header in headers:
            values = [row.get(header) for row in rows]
            non_null = [v for v in values if not is_null(v)]

            result.null_values[header] = len(values) - len(non_null)
            result.statistics[header] = self.profile_column(
                non_null, data_types.get(header, ColumnType.UNKNOWN)
            )

        logger.debug(
            f"Profiled {len(headers)} columns",
            total_nulls=result.total_nulls
        )
        return result

    def profile_column(self, non_null: Sequence[Any], column_type: ColumnType) -> ColumnStatistics:
        """Statistics for one column's non-null values."""
        if not non_null:
            return ColumnStatistics()

        count = len(non_null)
        unique_values = len({canonical(v) for v in non_null})

        if column_type == ColumnType.NUMBER:
            numbers = [n for n in (to_number(v) for v in non_null) if n is not None]
            if not numbers:
                return ColumnStatistics(count=count, unique_values=unique_values)
            return self._numeric_stats(numbers, count, unique_values)

        return self._text_stats(non_null, count, unique_values)

    def _numeric_stats(self, numbers: list[float], count: int, unique_values: int) -> ColumnStatistics:
        series = pd.Series(numbers, dtype="float64")
        ordered = np.sort(series.to_numpy())
        n = len(ordered)

        return ColumnStatistics(
            count=count,
            unique_values=unique_values,
            min=float(ordered[0]),
            max=float(ordered[-1]),
            mean=round(float(series.mean()), 2),
            median=float(series.median()),
            std_dev=round(float(series.std(ddof=0)), 2),
            q1=float(ordered[int(n * 0.25)]),
            q3=float(ordered[int(n * 0.75)]),
        )

    def _text_stats(self, non_null: Sequence[Any], count: int, unique_values: int) -> ColumnStatistics:
        texts = [display(v) for v in non_null]

        # dict keeps first-seen order, so max() breaks ties by first occurrence
        frequency: dict[str, int] = {}
        for text in texts:
            frequency[text] = frequency.get(text, 0) + 1
        most_common = max(frequency, key=frequency.__getitem__)

        return ColumnStatistics(
            count=count,
            unique_values=unique_values,
            most_common=most_common,
            most_common_count=frequency[most_common],
            average_length=round(sum(len(t) for t in texts) / count, 2),
        )


def get_column_profiler() -> ColumnProfiler:
    """Get column profiler instance."""
    return ColumnProfiler()
