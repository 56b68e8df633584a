"""
payroll_engines.proration -- Service time, proration and weekly-rest (DSR) calculations.

Responsibility:
    Turn dates into the counts the settlement engines prorate by: months
    worked under the 15-day rule, full years and months of service,
    statutory notice-period days, working and rest days of a period,
    and the weekly paid-rest (DSR) share of variable earnings.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumed by thirteenth, vacation, termination and monthly engines.

Invariants enforced:
    - 15-day rule: a calendar month counts as worked when the employee
      was active on at least 15 of its days (15 counts, 14 does not).
    - Notice period: 30 days plus 3 per full year of service beyond the
      first, never more than 90.
    - Purity: no ``date.today()``; every reference date is a parameter.

Failure modes:
    - InvalidInputError when a period ends before it starts, or when a
      DSR period has no working days.

Audit relevance:
    Months worked drive every proportional 13th-salary and vacation
    amount; the threshold behaviour is pinned by boundary tests.
"""

from __future__ import annotations

import calendar
from collections.abc import Collection
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.values import ZERO, non_negative, non_negative_int, round_money
from payroll_kernel.exceptions import InvalidInputError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.proration")

# Minimum active days for a month to count as worked
MONTH_THRESHOLD_DAYS = 15

# Commercial month used for daily-rate proration
COMMERCIAL_MONTH_DAYS = 30

_SATURDAY = 5
_SUNDAY = 6


@dataclass(frozen=True)
class PeriodDays:
    """Day counts of a payroll period."""

    working_days: int  # Monday to Friday, excluding holidays
    rest_days: int  # Sundays plus holidays
    calendar_days: int


def _last_day_of_month(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def _anniversary(start: date, year: int) -> date:
    """Anniversary of ``start`` in ``year``; Feb 29 falls back to Feb 28."""
    day = min(start.day, calendar.monthrange(year, start.month)[1])
    return date(year, start.month, day)


def _require_ordered(start: date, end: date, start_field: str, end_field: str) -> None:
    if end < start:
        logger.warning("period_rejected", extra={
            start_field: start.isoformat(),
            end_field: end.isoformat(),
        })
        raise InvalidInputError(end_field, end, f"must not be before {start_field} {start}")


def months_worked_between(start: date, end: date) -> int:
    """
    Count the months of [start, end] with at least 15 active days.

    Postconditions:
        - Returns 0 when end < start.
        - Each calendar month touched by the window is counted once.
    """
    if end < start:
        return 0

    months = 0
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        active_start = max(start, date(year, month, 1))
        active_end = min(end, _last_day_of_month(year, month))
        if (active_end - active_start).days + 1 >= MONTH_THRESHOLD_DAYS:
            months += 1
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return months


def months_worked_in_year(hire_date: date, reference_date: date) -> int:
    """
    Months worked in the calendar year of ``reference_date``.

    The window runs from the later of hire date and January 1st through
    the reference date; each month counts under the 15-day rule.

    Postconditions:
        - Returns an int in 0..12; 0 when hired after the reference date.
    """
    if hire_date > reference_date:
        return 0
    start = max(hire_date, date(reference_date.year, 1, 1))
    return months_worked_between(start, reference_date)


def full_years_between(start: date, end: date) -> int:
    """Completed anniversaries from start to end (0 when end < start)."""
    if end < start:
        return 0
    years = end.year - start.year
    if end < _anniversary(start, end.year):
        years -= 1
    return years


def full_months_between(start: date, end: date) -> int:
    """
    Completed months from start to end (0 when end < start).

    A month completes on the same day-of-month, or on the last day of a
    shorter month (Jan 31 -> Feb 28 is one month).
    """
    if end < start:
        return 0
    months = (end.year - start.year) * 12 + (end.month - start.month)
    month_end = _last_day_of_month(end.year, end.month)
    if end.day < start.day and end != month_end:
        months -= 1
    return max(months, 0)


def last_anniversary(hire_date: date, on_date: date) -> date:
    """Most recent hire anniversary on or before ``on_date``."""
    _require_ordered(hire_date, on_date, "hire_date", "on_date")
    anniversary = _anniversary(hire_date, on_date.year)
    if anniversary > on_date:
        anniversary = _anniversary(hire_date, on_date.year - 1)
    return max(anniversary, hire_date)


def days_worked_in_final_month(hire_date: date, termination_date: date) -> int:
    """
    Days of the termination month that are owed as salary balance.

    Counted from the first of the month (or the hire date, when hired in
    that month) through the termination date, capped at the 30-day
    commercial month.

    Raises:
        InvalidInputError: If termination_date < hire_date.
    """
    _require_ordered(hire_date, termination_date, "hire_date", "termination_date")
    start = max(hire_date, termination_date.replace(day=1))
    return min((termination_date - start).days + 1, COMMERCIAL_MONTH_DAYS)


@traced_engine(
    "proration", "1.0", fingerprint_fields=("hire_date", "termination_date", "base_days", "days_per_year", "max_days")
)
def notice_period_days(
    hire_date: date,
    termination_date: date,
    base_days: int = 30,
    days_per_year: int = 3,
    max_days: int = 90,
) -> int:
    """
    Statutory notice period in days.

    Formula: base_days + days_per_year * (full years of service - 1),
    capped at max_days.  Zero or negative tenure yields base_days.

    Raises:
        InvalidInputError: If a parameter is negative or max_days < base_days.
    """
    non_negative_int(base_days, "base_days")
    non_negative_int(days_per_year, "days_per_year")
    non_negative_int(max_days, "max_days")
    if max_days < base_days:
        raise InvalidInputError("max_days", max_days, f"must be at least base_days {base_days}")

    years = full_years_between(hire_date, termination_date)
    extra = max(years - 1, 0) * days_per_year
    days = min(base_days + extra, max_days)

    logger.debug("notice_period_calculated", extra={
        "full_years": years,
        "notice_days": days,
        "capped": base_days + extra > max_days,
    })
    return days


def _iter_days(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def working_days(
    start: date,
    end: date,
    holidays: Collection[date] | None = None,
) -> int:
    """
    Calendar days in [start, end] that are neither weekend days nor holidays.

    Raises:
        InvalidInputError: If end < start.
    """
    _require_ordered(start, end, "start", "end")
    holiday_set = frozenset(holidays or ())
    return sum(
        1
        for day in _iter_days(start, end)
        if day.weekday() < _SATURDAY and day not in holiday_set
    )


def rest_days(
    start: date,
    end: date,
    holidays: Collection[date] | None = None,
) -> int:
    """
    Paid rest days in [start, end]: Sundays plus holidays on other days.

    Raises:
        InvalidInputError: If end < start.
    """
    _require_ordered(start, end, "start", "end")
    holiday_set = frozenset(holidays or ())
    return sum(
        1
        for day in _iter_days(start, end)
        if day.weekday() == _SUNDAY or day in holiday_set
    )


def month_period(
    year: int,
    month: int,
    holidays: Collection[date] | None = None,
) -> PeriodDays:
    """Working, rest and calendar day counts of one month."""
    if not 1 <= month <= 12:
        raise InvalidInputError("month", month, "must be within 1..12")
    first = date(year, month, 1)
    last = _last_day_of_month(year, month)
    return PeriodDays(
        working_days=working_days(first, last, holidays),
        rest_days=rest_days(first, last, holidays),
        calendar_days=last.day,
    )


def _dsr(variable_earnings: Decimal, working_days_in_period: int, rest_days_in_period: int) -> Decimal:
    """Unrounded DSR share; callers validate the inputs."""
    return variable_earnings / working_days_in_period * rest_days_in_period


@traced_engine(
    "proration",
    "1.0",
    fingerprint_fields=("variable_earnings", "working_days_in_period", "rest_days_in_period"),
)
def calculate_dsr(
    variable_earnings: Decimal,
    working_days_in_period: int,
    rest_days_in_period: int,
) -> Decimal:
    """
    Weekly paid-rest (DSR) share of variable earnings.

    Formula: variable_earnings / working_days_in_period * rest_days_in_period

    Raises:
        InvalidInputError: If working_days_in_period <= 0, or if earnings
            or rest days are negative.
    """
    earnings = non_negative(variable_earnings, "variable_earnings")
    rest = non_negative_int(rest_days_in_period, "rest_days_in_period")
    if isinstance(working_days_in_period, bool) or not isinstance(working_days_in_period, int):
        raise InvalidInputError("working_days_in_period", working_days_in_period, "must be an integer")
    if working_days_in_period <= 0:
        logger.warning("dsr_rejected", extra={
            "working_days_in_period": working_days_in_period,
            "variable_earnings": str(earnings),
        })
        raise InvalidInputError(
            "working_days_in_period", working_days_in_period, "must be positive"
        )

    if earnings == ZERO:
        return round_money(ZERO)
    return round_money(_dsr(earnings, working_days_in_period, rest))
