# Data Quality Engine - Quality Scorer
# Linear 0-100 score from issue density, null ratio and duplicate ratio

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

# Penalty weights; changing them changes every score users have seen
ISSUE_WEIGHT = 50
NULL_WEIGHT = 30
DUPLICATE_WEIGHT = 20


@dataclass(frozen=True)
class ScoreBreakdown:
    """The score and the penalty each term contributed."""

    score: int
    issue_penalty: float
    null_penalty: float
    duplicate_penalty: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "issue_penalty": round(self.issue_penalty, 4),
            "null_penalty": round(self.null_penalty, 4),
            "duplicate_penalty": round(self.duplicate_penalty, 4),
        }


def score_breakdown(
    total_rows: int,
    total_columns: int,
    total_issues: int,
    total_nulls: int,
    duplicates: int
) -> ScoreBreakdown:
    """
    Compute the quality score.

    ``100 - issues/rows*50 - null_ratio*30 - duplicates/rows*20``, clamped
    to [0, 100] and rounded half-up. A dataset without rows or columns
    scores 0.
    """
    if total_rows <= 0 or total_columns <= 0:
        return ScoreBreakdown(score=0, issue_penalty=0.0, null_penalty=0.0, duplicate_penalty=0.0)

    cells = total_rows * total_columns
    null_ratio = total_nulls / cells if cells else 0.0

    issue_penalty = total_issues / total_rows * ISSUE_WEIGHT
    null_penalty = null_ratio * NULL_WEIGHT
    duplicate_penalty = duplicates / total_rows * DUPLICATE_WEIGHT

    raw = 100 - issue_penalty - null_penalty - duplicate_penalty
    clamped = min(100.0, max(0.0, raw))

    return ScoreBreakdown(
        score=int(math.floor(clamped + 0.5)),
        issue_penalty=issue_penalty,
        null_penalty=null_penalty,
        duplicate_penalty=duplicate_penalty,
    )


def calculate_quality_score(
    total_rows: int,
    total_columns: int,
    total_issues: int,
    total_nulls: int,
    duplicates: int
) -> int:
    """Quality score as an integer in [0, 100]."""
    return score_breakdown(total_rows, total_columns, total_issues, total_nulls, duplicates).score
