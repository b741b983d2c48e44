# Data Quality Engine - Contextual Validator
# Single-field checks driven by column-name heuristics and inferred types

from __future__ import annotations

from collections import Counter
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Optional

from quality_engine.analysis import heuristics
from quality_engine.analysis.models import ColumnType, ContextualIssue, IssueCategory
from quality_engine.analysis.values import (
    NATIVE_DATE_FORMAT,
    is_blank_string,
    is_email,
    is_null,
    is_percent_string,
    is_valid_phone,
    parse_date,
    reference_day,
    to_number,
    to_percentage,
)
from quality_engine.core.config import AnalysisSettings, get_settings
from quality_engine.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Finding:
    """A problem found by one check, before it is bound to a row and column."""

    category: IssueCategory
    issue: str
    suggestion: str


@dataclass(frozen=True)
class ColumnContext:
    """Per-column facts every check may consult."""

    header: str
    column_type: ColumnType
    reference_date: date
    dominant_date_format: Optional[str] = None


@dataclass(frozen=True)
class ContextualCheck:
    """One row of the check table: when it applies and what it reports."""

    name: str
    applies: Callable[[ColumnContext], bool]
    run: Callable[[Any, ColumnContext], Iterator[Finding]]
    value_trigger: Optional[Callable[[Any], bool]] = None


# ============================================================================
# Checks
# ============================================================================

def _check_age(value: Any, ctx: ColumnContext) -> Iterator[Finding]:
    age = to_number(value)
    if age is None:
        return
    if age < 0:
        yield Finding(
            IssueCategory.IMPOSSIBLE_VALUE, "Negative age value",
            "Age cannot be negative. Consider removing or correcting this value."
        )
    elif age > 150:
        yield Finding(
            IssueCategory.OUT_OF_RANGE, "Unrealistic age value",
            "Age over 150 is unrealistic. Verify this value."
        )
    elif age > 120:
        yield Finding(
            IssueCategory.IMPLAUSIBLE_VALUE, "Very high age value",
            "Age over 120 is unusual. Please verify."
        )


def _applies_to_dates(ctx: ColumnContext) -> bool:
    if ctx.column_type == ColumnType.DATE:
        return True
    return (
        heuristics.DATE.matches(ctx.header)
        and ctx.column_type not in (ColumnType.NUMBER, ColumnType.BOOLEAN)
    )


def _check_date(value: Any, ctx: ColumnContext) -> Iterator[Finding]:
    parsed = parse_date(value)
    if parsed is None:
        yield Finding(
            IssueCategory.TYPE_MISMATCH, "Invalid date format",
            "Use a standard date format (YYYY-MM-DD, MM/DD/YYYY, etc.)"
        )
        return

    day = parsed.timestamp.date()
    if heuristics.BIRTH_DATE.matches(ctx.header) and day > ctx.reference_date:
        yield Finding(
            IssueCategory.IMPOSSIBLE_VALUE, "Birth date in the future",
            "Birth date cannot be in the future."
        )
    if day.year < 1900:
        yield Finding(
            IssueCategory.IMPLAUSIBLE_VALUE, "Date before 1900",
            "Dates before 1900 may be incorrect."
        )
    if day.year > ctx.reference_date.year + 10:
        yield Finding(
            IssueCategory.IMPLAUSIBLE_VALUE, "Date too far in future",
            "Date seems unrealistically far in the future."
        )
    if (
        ctx.dominant_date_format
        and parsed.format != NATIVE_DATE_FORMAT
        and parsed.format != ctx.dominant_date_format
    ):
        yield Finding(
            IssueCategory.INCONSISTENT_FORMAT, f"Date written as {parsed.format}",
            f"Most dates in this column use {ctx.dominant_date_format}; use one format throughout."
        )


def _check_email(value: Any, ctx: ColumnContext) -> Iterator[Finding]:
    if not is_email(value):
        yield Finding(
            IssueCategory.INVALID_FORMAT, "Invalid email format",
            "Email should follow the format: user@domain.com"
        )


def _check_phone(value: Any, ctx: ColumnContext) -> Iterator[Finding]:
    if not is_valid_phone(value):
        yield Finding(
            IssueCategory.INVALID_FORMAT, "Invalid phone number format",
            "Phone number should contain 8-16 digits, optionally starting with +"
        )


def _check_salary(value: Any, ctx: ColumnContext) -> Iterator[Finding]:
    amount = to_number(value)
    if amount is None:
        return
    if amount < 0:
        yield Finding(
            IssueCategory.OUT_OF_RANGE, "Negative salary/income",
            "Salary/income cannot be negative."
        )
    elif amount > 10_000_000:
        yield Finding(
            IssueCategory.IMPLAUSIBLE_VALUE, "Unusually high salary/income",
            "This salary/income value seems unusually high. Please verify."
        )


def _applies_to_non_negative(ctx: ColumnContext) -> bool:
    # Age and salary columns report negatives through their own checks
    return (
        heuristics.NON_NEGATIVE.matches(ctx.header)
        and not heuristics.AGE.matches(ctx.header)
        and not heuristics.SALARY.matches(ctx.header)
    )


def _check_non_negative(value: Any, ctx: ColumnContext) -> Iterator[Finding]:
    amount = to_number(value)
    if amount is not None and amount < 0:
        yield Finding(
            IssueCategory.OUT_OF_RANGE, f"Negative value in '{ctx.header}'",
            "Prices, costs and quantities cannot be negative."
        )


def _check_percentage(value: Any, ctx: ColumnContext) -> Iterator[Finding]:
    percent = to_percentage(value)
    if percent is not None and (percent < 0 or percent > 100):
        yield Finding(
            IssueCategory.IMPLAUSIBLE_VALUE, "Percentage out of valid range",
            "Percentage should be between 0 and 100."
        )


def _check_numeric(value: Any, ctx: ColumnContext) -> Iterator[Finding]:
    if to_number(value) is None:
        yield Finding(
            IssueCategory.TYPE_MISMATCH, "Non-numeric value in numeric column",
            "Replace this value with a number or leave the cell empty."
        )


CONTEXTUAL_CHECKS: tuple[ContextualCheck, ...] = (
    ContextualCheck("age", lambda ctx: heuristics.AGE.matches(ctx.header), _check_age),
    ContextualCheck("date", _applies_to_dates, _check_date),
    ContextualCheck(
        "email",
        lambda ctx: ctx.column_type == ColumnType.EMAIL or heuristics.EMAIL.matches(ctx.header),
        _check_email,
    ),
    ContextualCheck(
        "phone",
        lambda ctx: ctx.column_type == ColumnType.PHONE or heuristics.PHONE.matches(ctx.header),
        _check_phone,
    ),
    ContextualCheck("salary", lambda ctx: heuristics.SALARY.matches(ctx.header), _check_salary),
    ContextualCheck("non_negative", _applies_to_non_negative, _check_non_negative),
    ContextualCheck(
        "percentage",
        lambda ctx: heuristics.PERCENT.matches(ctx.header),
        _check_percentage,
        value_trigger=is_percent_string,
    ),
    ContextualCheck("numeric", lambda ctx: ctx.column_type == ColumnType.NUMBER, _check_numeric),
)


# ============================================================================
# Validator
# ============================================================================

class ContextualValidator:
    """
    Contextual (single-field) validation.

    Walks rows in order and columns in header order. A check runs when its
    column trigger matches, or, for value-triggered checks, when the value
    itself looks relevant (e.g. a ``"120%"`` in any column).
    """

    def __init__(
        self,
        settings: Optional[AnalysisSettings] = None,
        checks: Sequence[ContextualCheck] = CONTEXTUAL_CHECKS
    ):
        self.settings = settings or get_settings()
        self.checks = tuple(checks)

    def validate(
        self,
        rows: Sequence[Mapping[str, Any]],
        headers: Sequence[str],
        data_types: Mapping[str, ColumnType],
        reference_date: Optional[date] = None
    ) -> list[ContextualIssue]:
        reference_date = reference_day(reference_date)
        contexts = {
            header: self._column_context(rows, header, data_types, reference_date)
            for header in headers
        }
        column_checks = {
            header: [c for c in self.checks if c.applies(contexts[header])]
            for header in headers
        }
        value_checks = [c for c in self.checks if c.value_trigger is not None]
        flag_blanks = {
            header: self._is_mostly_populated(rows, header) for header in headers
        }

        issues: list[ContextualIssue] = []
        for row_index, row in enumerate(rows):
            for header in headers:
                value = row.get(header)

                if is_blank_string(value):
                    if flag_blanks[header]:
                        issues.append(self._issue(header, row_index, value, Finding(
                            IssueCategory.EMPTY_VALUE, "Empty value",
                            f"Column '{header}' is almost always filled; provide a value or use an explicit null."
                        )))
                    continue
                if is_null(value):
                    continue

                ctx = contexts[header]
                checks = list(column_checks[header])
                for check in value_checks:
                    if check not in checks and check.value_trigger(value):
                        checks.append(check)

                for check in checks:
                    for finding in check.run(value, ctx):
                        issues.append(self._issue(header, row_index, value, finding))

        logger.debug(f"Contextual validation found {len(issues)} issues")
        return issues

    def _column_context(
        self,
        rows: Sequence[Mapping[str, Any]],
        header: str,
        data_types: Mapping[str, ColumnType],
        reference_date: date
    ) -> ColumnContext:
        column_type = data_types.get(header, ColumnType.UNKNOWN)
        context = ColumnContext(header=header, column_type=column_type, reference_date=reference_date)
        if _applies_to_dates(context):
            context = ColumnContext(
                header=header,
                column_type=column_type,
                reference_date=reference_date,
                dominant_date_format=self._dominant_date_format(rows, header),
            )
        return context

    @staticmethod
    def _dominant_date_format(rows: Sequence[Mapping[str, Any]], header: str) -> Optional[str]:
        """Most common textual date format; None unless the column mixes formats."""
        formats: Counter[str] = Counter()
        for row in rows:
            value = row.get(header)
            if is_null(value):
                continue
            parsed = parse_date(value)
            if parsed is not None and parsed.format != NATIVE_DATE_FORMAT:
                formats[parsed.format] += 1
        if len(formats) < 2:
            return None
        # Counter.most_common keeps first-seen order among equal counts
        return formats.most_common(1)[0][0]

    def _is_mostly_populated(self, rows: Sequence[Mapping[str, Any]], header: str) -> bool:
        if not rows:
            return False
        filled = sum(1 for row in rows if not is_null(row.get(header)))
        return filled / len(rows) >= self.settings.empty_value_min_fill_ratio

    @staticmethod
    def _issue(header: str, row_index: int, value: Any, finding: Finding) -> ContextualIssue:
        return ContextualIssue(
            severity=finding.category.severity,
            issue=finding.issue,
            suggestion=finding.suggestion,
            category=finding.category,
            column=header,
            row=row_index,
            value=value,
        )


def get_contextual_validator(settings: Optional[AnalysisSettings] = None) -> ContextualValidator:
    """Get contextual validator instance."""
    return ContextualValidator(settings)
