# Data Quality Engine - Value Helpers
# Null detection and number/date/email/phone parsing for raw cell values

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any, NamedTuple, Optional

import numpy as np
import pandas as pd


NULL_TOKEN = "\u0000null"

NON_SCALAR_TYPES = (list, tuple, set, frozenset, dict, Mapping, bytes, bytearray, np.ndarray)

BOOLEAN_TOKENS = frozenset({"true", "false", "yes", "no", "1", "0"})

_NUMERIC_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")
_PERCENT_RE = re.compile(r"^([+-]?(?:\d+(?:\.\d*)?|\.\d+))\s*%$")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_STRIP_RE = re.compile(r"[\s\-().]")
_PHONE_RE = re.compile(r"^\+?[1-9]\d{7,15}$")
_PHONE_SHAPE_RE = re.compile(r"^\+?[1-9]\d{0,15}$")
PHONE_MIN_DIGITS = 7

_MONTH = r"[A-Za-z]{3,9}"

# (label, shape, strptime formats tried in order)
DATE_SHAPES: tuple[tuple[str, re.Pattern[str], tuple[str, ...]], ...] = (
    (
        "YYYY-MM-DD",
        re.compile(r"^\d{4}-\d{1,2}-\d{1,2}(?:[T ]\d{1,2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?)?$"),
        ("ISO8601",),
    ),
    ("MM/DD/YYYY", re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$"), ("%m/%d/%Y",)),
    ("DD-MM-YYYY", re.compile(r"^\d{1,2}-\d{1,2}-\d{4}$"), ("%d-%m-%Y",)),
    ("DD.MM.YYYY", re.compile(r"^\d{1,2}\.\d{1,2}\.\d{4}$"), ("%d.%m.%Y",)),
    ("Mon DD, YYYY", re.compile(rf"^{_MONTH}\s+\d{{1,2}},?\s+\d{{4}}$"), ("%b %d, %Y", "%B %d, %Y", "%b %d %Y", "%B %d %Y")),
    ("DD Mon YYYY", re.compile(rf"^\d{{1,2}}\s+{_MONTH}\s+\d{{4}}$"), ("%d %b %Y", "%d %B %Y")),
)

NATIVE_DATE_FORMAT = "native"


class ParsedDate(NamedTuple):
    """A successfully parsed date and the textual format it was written in."""

    timestamp: pd.Timestamp
    format: str


def is_scalar(value: Any) -> bool:
    return not isinstance(value, NON_SCALAR_TYPES)


def is_null(value: Any) -> bool:
    """None, NaN/NA/NaT, or a string that is blank after trimming."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if not is_scalar(value):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def is_blank_string(value: Any) -> bool:
    return isinstance(value, str) and not value.strip()


def to_number(value: Any) -> Optional[float]:
    """Parse a numeric cell; returns None for booleans, residue, or infinities."""
    if isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, (int, float, Decimal, np.integer, np.floating)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not _NUMERIC_RE.match(text):
            return None
        number = float(text)
    else:
        return None
    return number if math.isfinite(number) else None


def to_percentage(value: Any) -> Optional[float]:
    """Parse ``"45%"`` style values; plain numbers pass through."""
    if isinstance(value, str):
        match = _PERCENT_RE.match(value.strip())
        if match:
            return float(match.group(1))
    return to_number(value)


def is_percent_string(value: Any) -> bool:
    return isinstance(value, str) and "%" in value


def is_boolean_token(value: Any) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return True
    return isinstance(value, str) and value.strip().lower() in BOOLEAN_TOKENS


def _to_timestamp(value: Any, fmt: str) -> Optional[pd.Timestamp]:
    parsed = pd.to_datetime(value, format=fmt, errors="coerce")
    if parsed is None or pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_convert(None)
    return parsed


def parse_date(value: Any) -> Optional[ParsedDate]:
    """Parse a date object or a string in one of the recognised shapes."""
    if isinstance(value, (pd.Timestamp, datetime, date)):
        try:
            timestamp = pd.Timestamp(value)
        except (ValueError, OverflowError):
            return None
        if pd.isna(timestamp):
            return None
        if timestamp.tzinfo is not None:
            timestamp = timestamp.tz_convert(None)
        return ParsedDate(timestamp, NATIVE_DATE_FORMAT)

    if not isinstance(value, str):
        return None

    text = " ".join(value.split())
    for label, shape, formats in DATE_SHAPES:
        if not shape.match(text):
            continue
        for fmt in formats:
            timestamp = _to_timestamp(text, fmt)
            if timestamp is not None:
                return ParsedDate(timestamp, label)
        return None
    return None


def looks_like_date(value: Any) -> bool:
    """True when the value has a recognised date shape, parseable or not."""
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return True
    if not isinstance(value, str):
        return False
    text = " ".join(value.split())
    return any(shape.match(text) for _, shape, _ in DATE_SHAPES)


def is_email(value: Any) -> bool:
    return isinstance(value, str) and bool(EMAIL_RE.match(value.strip()))


def strip_phone(value: Any) -> str:
    return _PHONE_STRIP_RE.sub("", display(value))


def looks_like_phone(value: Any) -> bool:
    """Loose phone shape used when inferring a column's type."""
    if not isinstance(value, (str, int, np.integer)) or isinstance(value, bool):
        return False
    stripped = strip_phone(value)
    digits = sum(ch.isdigit() for ch in stripped)
    return bool(_PHONE_SHAPE_RE.match(stripped)) and digits >= PHONE_MIN_DIGITS


def is_valid_phone(value: Any) -> bool:
    """Strict phone validation: optional '+', 8 to 16 digits, no leading zero."""
    if isinstance(value, (float, np.floating)) and not float(value).is_integer():
        return False
    return bool(_PHONE_RE.match(strip_phone(value)))


def display(value: Any) -> str:
    """Text form of a cell used in issue descriptions and string statistics."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, str):
        return value.strip()
    return str(value)


def canonical(value: Any) -> str:
    """
    Canonical token for equality checks (duplicates, distinct counts).

    Nulls share one token, strings are trimmed, and numeric objects are
    normalised so ``1`` and ``1.0`` compare equal. Type tags keep ``"1"``
    and ``1`` apart.
    """
    if is_null(value):
        return NULL_TOKEN
    if isinstance(value, str):
        return "s:" + value.strip()
    if isinstance(value, (bool, np.bool_)):
        return f"b:{bool(value)}"
    number = to_number(value)
    if number is not None:
        return f"n:{number!r}"
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return "d:" + value.isoformat()
    return f"o:{value!r}"


def reference_day(value: Optional[date] = None) -> date:
    """The 'today' used by date checks; datetimes and timestamps are truncated to a date."""
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value
