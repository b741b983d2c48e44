# Data Quality Engine - Cross-Field Validator
# Consistency checks between related columns of the same row

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Optional

from quality_engine.analysis import heuristics
from quality_engine.analysis.models import ColumnType, CrossFieldIssue, IssueCategory
from quality_engine.analysis.values import (
    display,
    is_null,
    parse_date,
    reference_day,
    strip_phone,
    to_number,
)
from quality_engine.core.logging import get_logger

logger = get_logger(__name__)

TOTAL_TOLERANCE = 0.01


@dataclass(frozen=True)
class Violation:
    category: IssueCategory
    issue: str
    suggestion: str


# (row, columns, reference date) -> violation or None
RowCheck = Callable[[Mapping[str, Any], tuple[str, ...], date], Optional[Violation]]


@dataclass(frozen=True)
class Relationship:
    """
    A cross-field relationship.

    ``bind`` picks the participating columns from the headers; it returns one
    column tuple per instance of the relationship (e.g. one per start/end
    pair) and an empty list when the columns are absent.
    """

    name: str
    bind: Callable[[Sequence[str], Mapping[str, ColumnType]], list[tuple[str, ...]]]
    check: RowCheck


def _number(row: Mapping[str, Any], column: str) -> Optional[float]:
    value = row.get(column)
    return None if is_null(value) else to_number(value)


def _date(row: Mapping[str, Any], column: str) -> Optional[date]:
    value = row.get(column)
    if is_null(value):
        return None
    parsed = parse_date(value)
    return parsed.timestamp.date() if parsed else None


# ============================================================================
# Age vs birth date
# ============================================================================

def _bind_age_birth(headers: Sequence[str], types: Mapping[str, ColumnType]) -> list[tuple[str, ...]]:
    birth = heuristics.BIRTH_DATE.find(headers)
    age = heuristics.AGE.find(h for h in headers if h != birth)
    return [(age, birth)] if age and birth else []


def _check_age_birth(row: Mapping[str, Any], columns: tuple[str, ...], today: date) -> Optional[Violation]:
    age_col, birth_col = columns
    age = _number(row, age_col)
    birth = _date(row, birth_col)
    if age is None or birth is None:
        return None
    calculated = today.year - birth.year
    if abs(age - calculated) > 1:
        return Violation(
            IssueCategory.AGE_BIRTH_DATE_MISMATCH,
            f"Age ({display(age)}) doesn't match birth date (calculated: {calculated})",
            "Verify that age and birth date are consistent."
        )
    return None


# ============================================================================
# Start date vs end date
# ============================================================================

def _bind_date_range(headers: Sequence[str], types: Mapping[str, ColumnType]) -> list[tuple[str, ...]]:
    starts = [h for h in headers if heuristics.is_start_date(h)]
    ends = [h for h in headers if heuristics.is_end_date(h)]
    return [(s, e) for s in starts for e in ends if s != e]


def _check_date_range(row: Mapping[str, Any], columns: tuple[str, ...], today: date) -> Optional[Violation]:
    start = _date(row, columns[0])
    end = _date(row, columns[1])
    if start is None or end is None:
        return None
    if start > end:
        return Violation(
            IssueCategory.DATE_ORDER,
            "Start date is after end date",
            "Start date should be before or equal to end date."
        )
    return None


# ============================================================================
# Salary vs experience
# ============================================================================

def _bind_salary_experience(headers: Sequence[str], types: Mapping[str, ColumnType]) -> list[tuple[str, ...]]:
    salary = heuristics.SALARY.find(headers)
    experience = heuristics.EXPERIENCE.find(h for h in headers if h != salary)
    return [(salary, experience)] if salary and experience else []


def _check_salary_experience(row: Mapping[str, Any], columns: tuple[str, ...], today: date) -> Optional[Violation]:
    salary = _number(row, columns[0])
    experience = _number(row, columns[1])
    if salary is None or experience is None:
        return None
    if experience > 10 and salary < 30_000:
        return Violation(
            IssueCategory.SALARY_EXPERIENCE_MISMATCH,
            "Low salary for high experience level",
            "Verify salary is appropriate for experience level."
        )
    return None


# ============================================================================
# Total vs components
# ============================================================================

def _total_column(headers: Sequence[str]) -> Optional[str]:
    return next(
        (h for h in headers if heuristics.TOTAL.matches(h) and not heuristics.SUBTOTAL.matches(h)),
        None
    )


def _bind_total_sum(headers: Sequence[str], types: Mapping[str, ColumnType]) -> list[tuple[str, ...]]:
    total = _total_column(headers)
    if not total:
        return []
    candidates = [h for h in headers if h != total and not heuristics.PERCENT.matches(h)]
    components = []
    for pattern, sign in heuristics.TOTAL_COMPONENTS:
        column = pattern.find(c for c in candidates if c not in components)
        if column:
            components.append(column)
    if not any(_component_sign(c) > 0 for c in components):
        return []
    return [(total, *components)]


def _component_sign(column: str) -> int:
    for pattern, sign in heuristics.TOTAL_COMPONENTS:
        if pattern.matches(column):
            return sign
    return 1


def _check_total_sum(row: Mapping[str, Any], columns: tuple[str, ...], today: date) -> Optional[Violation]:
    total = _number(row, columns[0])
    parts = [_number(row, c) for c in columns[1:]]
    if total is None or any(p is None for p in parts):
        return None
    expected = sum(_component_sign(c) * p for c, p in zip(columns[1:], parts))
    if abs(total - expected) > TOTAL_TOLERANCE:
        return Violation(
            IssueCategory.TOTAL_MISMATCH,
            f"Total ({display(total)}) doesn't equal the sum of its components ({round(expected, 2)})",
            "Recalculate the total from " + ", ".join(columns[1:]) + "."
        )
    return None


def _bind_total_product(headers: Sequence[str], types: Mapping[str, ColumnType]) -> list[tuple[str, ...]]:
    if _bind_total_sum(headers, types):
        return []
    total = _total_column(headers)
    if not total:
        return []
    quantity = heuristics.QUANTITY.find(h for h in headers if h != total)
    price = heuristics.UNIT_PRICE.find(h for h in headers if h not in (total, quantity))
    return [(total, quantity, price)] if quantity and price else []


def _check_total_product(row: Mapping[str, Any], columns: tuple[str, ...], today: date) -> Optional[Violation]:
    total, quantity, price = (_number(row, c) for c in columns)
    if total is None or quantity is None or price is None:
        return None
    expected = quantity * price
    if abs(total - expected) > TOTAL_TOLERANCE:
        return Violation(
            IssueCategory.TOTAL_MISMATCH,
            f"Total ({display(total)}) doesn't equal quantity × unit price ({round(expected, 2)})",
            f"Recalculate the total as {columns[1]} × {columns[2]}."
        )
    return None


# ============================================================================
# Country vs currency / phone prefix
# ============================================================================

def _bind_country_currency(headers: Sequence[str], types: Mapping[str, ColumnType]) -> list[tuple[str, ...]]:
    country = heuristics.COUNTRY.find(headers)
    currency = heuristics.CURRENCY.find(h for h in headers if h != country)
    return [(country, currency)] if country and currency else []


def _check_country_currency(row: Mapping[str, Any], columns: tuple[str, ...], today: date) -> Optional[Violation]:
    country_value, currency_value = row.get(columns[0]), row.get(columns[1])
    if is_null(country_value) or is_null(currency_value):
        return None
    country = heuristics.resolve_country(country_value)
    currency = heuristics.resolve_currency(currency_value)
    if country is None or currency is None:
        return None
    expected = heuristics.COUNTRY_CURRENCY[country]
    if currency != expected:
        return Violation(
            IssueCategory.COUNTRY_CURRENCY_MISMATCH,
            f"Currency {currency} is unusual for {display(country_value)}",
            f"Expected {expected}; verify the country and currency."
        )
    return None


def _bind_country_phone(headers: Sequence[str], types: Mapping[str, ColumnType]) -> list[tuple[str, ...]]:
    country = heuristics.COUNTRY.find(headers)
    phone = next(
        (
            h for h in headers
            if h != country and (types.get(h) == ColumnType.PHONE or heuristics.PHONE.matches(h))
        ),
        None
    )
    return [(country, phone)] if country and phone else []


def _check_country_phone(row: Mapping[str, Any], columns: tuple[str, ...], today: date) -> Optional[Violation]:
    country_value, phone_value = row.get(columns[0]), row.get(columns[1])
    if is_null(country_value) or is_null(phone_value):
        return None
    country = heuristics.resolve_country(country_value)
    phone = strip_phone(phone_value)
    if country is None or not phone.startswith("+"):
        return None
    code = heuristics.COUNTRY_CALLING_CODE[country]
    if not phone[1:].startswith(code):
        return Violation(
            IssueCategory.COUNTRY_PHONE_MISMATCH,
            f"Phone prefix doesn't match {display(country_value)} (+{code})",
            "Verify the phone number's country code."
        )
    return None


RELATIONSHIPS: tuple[Relationship, ...] = (
    Relationship("age_birth_date", _bind_age_birth, _check_age_birth),
    Relationship("date_range", _bind_date_range, _check_date_range),
    Relationship("salary_experience", _bind_salary_experience, _check_salary_experience),
    Relationship("total_sum", _bind_total_sum, _check_total_sum),
    Relationship("total_product", _bind_total_product, _check_total_product),
    Relationship("country_currency", _bind_country_currency, _check_country_currency),
    Relationship("country_phone", _bind_country_phone, _check_country_phone),
)


# ============================================================================
# Validator
# ============================================================================

class CrossFieldValidator:
    """
    Cross-field validation.

    Relationships whose columns are not all present are skipped silently;
    within a row, a missing or unparseable value skips that check only.
    """

    def __init__(self, relationships: Sequence[Relationship] = RELATIONSHIPS):
        self.relationships = tuple(relationships)

    def validate(
        self,
        rows: Sequence[Mapping[str, Any]],
        headers: Sequence[str],
        data_types: Mapping[str, ColumnType],
        reference_date: Optional[date] = None
    ) -> list[CrossFieldIssue]:
        today = reference_day(reference_date)

        bound: list[tuple[Relationship, tuple[str, ...]]] = []
        for relationship in self.relationships:
            for columns in relationship.bind(headers, data_types):
                bound.append((relationship, columns))

        if bound:
            logger.debug(
                "Evaluating cross-field relationships",
                relationships=[f"{r.name}:{'/'.join(c)}" for r, c in bound]
            )

        issues: list[CrossFieldIssue] = []
        for row_index, row in enumerate(rows):
            for relationship, columns in bound:
                violation = relationship.check(row, columns, today)
                if violation is None:
                    continue
                issues.append(CrossFieldIssue(
                    severity=violation.category.severity,
                    issue=violation.issue,
                    suggestion=violation.suggestion,
                    category=violation.category,
                    columns=columns,
                    row=row_index,
                ))

        logger.debug(f"Cross-field validation found {len(issues)} issues")
        return issues


def get_cross_field_validator() -> CrossFieldValidator:
    """Get cross-field validator instance."""
    return CrossFieldValidator()
