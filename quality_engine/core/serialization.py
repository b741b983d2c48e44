# Data Quality Engine - JSON Serialization
# Converts result payloads to JSON-safe primitives

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

import numpy as np
import pandas as pd


def to_jsonable(value: Any) -> Any:
    """
    Best-effort conversion to JSON-serializable primitives.

    Used by AnalysisResult.to_json(); cell values arrive from spreadsheet
    parsers and can be numpy scalars, timestamps or Decimals.
    """

    if value is None:
        return None

    if isinstance(value, Enum):
        return value.value

    if isinstance(value, float):
        # JSON has no NaN/Infinity
        return value if math.isfinite(value) else None

    if isinstance(value, (str, int, bool)):
        return value

    if isinstance(value, UUID):
        return str(value)

    if value is pd.NaT or isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.isoformat()

    if isinstance(value, (datetime, date, time)):
        return value.isoformat()

    if isinstance(value, Decimal):
        return float(value)

    if isinstance(value, np.generic):
        return to_jsonable(value.item())

    if isinstance(value, np.ndarray):
        return [to_jsonable(v) for v in value.tolist()]

    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}

    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]

    if hasattr(value, "to_dict"):
        return to_jsonable(value.to_dict())

    # Preserve unknown objects as text rather than failing the export
    return str(value)
