# Data Quality Engine - Duplicate Detection Engine
# Exact duplicate rows over normalised values

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from quality_engine.analysis.values import canonical
from quality_engine.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class DuplicateGroup:
    """Rows sharing one signature; the first index is the kept original."""

    group_id: int
    indices: list[int]

    def to_dict(self) -> dict[str, Any]:
        return {"group_id": self.group_id, "indices": self.indices, "size": len(self.indices)}


@dataclass
class DuplicateResult:
    """Complete duplicate detection result."""

    n_total: int
    n_duplicates: int
    duplicate_indices: list[int] = field(default_factory=list)
    duplicate_groups: list[DuplicateGroup] = field(default_factory=list)

    @property
    def duplicate_rate(self) -> float:
        return self.n_duplicates / self.n_total if self.n_total else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "n_total": self.n_total,
            "n_duplicates": self.n_duplicates,
            "duplicate_rate": round(self.duplicate_rate * 100, 2),
            "duplicate_indices": self.duplicate_indices,
            "n_groups": len(self.duplicate_groups),
            "groups": [g.to_dict() for g in self.duplicate_groups[:20]],
        }


class DuplicateDetectionEngine:
    """
    Exact duplicate detection.

    Every row is reduced to a signature of canonical cell tokens in header
    order (nulls share a token, strings are trimmed, ``1`` equals ``1.0``).
    Each row whose signature appeared earlier counts as one duplicate, so a
    group of three identical rows contributes two.
    """

    def detect(
        self,
        rows: Sequence[Mapping[str, Any]],
        headers: Sequence[str]
    ) -> DuplicateResult:
        if not rows:
            return DuplicateResult(n_total=0, n_duplicates=0)

        keys = pd.Series(
            [tuple(canonical(row.get(h)) for h in headers) for row in rows],
            dtype="object"
        )
        duplicate_mask = keys.duplicated(keep="first")
        duplicate_indices = [int(i) for i in duplicate_mask[duplicate_mask].index]

        groups: list[DuplicateGroup] = []
        if duplicate_indices:
            grouped: dict[Any, list[int]] = {}
            for index, key in enumerate(keys):
                grouped.setdefault(key, []).append(index)
            for indices in grouped.values():
                if len(indices) > 1:
                    groups.append(DuplicateGroup(group_id=len(groups), indices=indices))

        logger.debug(
            f"Detected {len(duplicate_indices)} duplicate rows",
            groups=len(groups)
        )

        return DuplicateResult(
            n_total=len(rows),
            n_duplicates=len(duplicate_indices),
            duplicate_indices=duplicate_indices,
            duplicate_groups=groups,
        )


def get_duplicate_engine() -> DuplicateDetectionEngine:
    """Get duplicate detection engine instance."""
    return DuplicateDetectionEngine()


def count_duplicates(rows: Sequence[Mapping[str, Any]], headers: Sequence[str]) -> int:
    """Quick helper returning only the duplicate row count."""
    return DuplicateDetectionEngine().detect(rows, headers).n_duplicates
