"""
Premium Engine - Night-shift, unhealthy-work, hazard and overtime pay.

Pure functions with no I/O.  Every statutory percentage and the night
hour reduction factor are parameters supplied from configuration, so
the same functions serve any year's legislation.

Usage:
    from decimal import Decimal
    from payroll_engines.premium import night_shift_bonus, night_hours_reduction

    bonus = night_shift_bonus(Decimal("10"), Decimal("20.00"), Decimal("0.20"))
    print(bonus)  # Decimal("40.00")

    legal_hours = night_hours_reduction(Decimal("7"), Decimal("60") / Decimal("52.5"))
    print(legal_hours)  # Decimal("8.0000")
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from enum import Enum

from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.values import (
    non_negative,
    positive,
    round_hours,
    round_money,
)
from payroll_kernel.exceptions import ConfigurationError, InvalidInputError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.premium")


class InsalubrityGrade(str, Enum):
    """Unhealthy-work exposure grade."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@traced_engine(
    "premium", "1.0", fingerprint_fields=("night_hours", "hourly_rate", "bonus_rate")
)
def night_shift_bonus(
    night_hours: Decimal,
    hourly_rate: Decimal,
    bonus_rate: Decimal,
) -> Decimal:
    """
    Night-shift premium.

    Formula: night_hours * hourly_rate * bonus_rate

    Raises:
        InvalidInputError: If any argument is negative.
    """
    hours = non_negative(night_hours, "night_hours")
    rate = non_negative(hourly_rate, "hourly_rate")
    bonus = non_negative(bonus_rate, "bonus_rate")
    return round_money(hours * rate * bonus)


@traced_engine("premium", "1.0", fingerprint_fields=("clock_hours", "reduction_factor"))
def night_hours_reduction(clock_hours: Decimal, reduction_factor: Decimal) -> Decimal:
    """
    Convert clock hours worked at night into legal hours.

    A legal night hour is shorter than a clock hour, so the factor is
    greater than one (60 / 52.5 under current Brazilian law).

    Formula: clock_hours * reduction_factor, reported to four places.

    Raises:
        InvalidInputError: If clock_hours is negative or the factor is not positive.
    """
    hours = non_negative(clock_hours, "clock_hours")
    factor = positive(reduction_factor, "reduction_factor")
    return round_hours(hours * factor)


@traced_engine("premium", "1.0", fingerprint_fields=("reference_wage", "grade_percent"))
def unhealthy_work_bonus(reference_wage: Decimal, grade_percent: Decimal) -> Decimal:
    """
    Unhealthy-work (insalubridade) addition.

    Formula: reference_wage * grade_percent

    Raises:
        InvalidInputError: If the wage or percentage is negative.
    """
    wage = non_negative(reference_wage, "reference_wage")
    percent = non_negative(grade_percent, "grade_percent")
    return round_money(wage * percent)


def unhealthy_work_bonus_for_grade(
    reference_wage: Decimal,
    grade: InsalubrityGrade | str,
    grade_rates: Mapping[InsalubrityGrade, Decimal],
) -> Decimal:
    """
    Unhealthy-work addition for an exposure grade.

    Args:
        reference_wage: Base the percentage applies to (usually the minimum wage)
        grade: Exposure grade
        grade_rates: Grade -> percentage table from configuration

    Raises:
        InvalidInputError: If the grade is unknown.
        ConfigurationError: If the table has no rate for the grade.
    """
    try:
        grade = InsalubrityGrade(grade.lower() if isinstance(grade, str) else grade)
    except ValueError as e:
        raise InvalidInputError("grade", grade, "unknown insalubrity grade") from e
    if grade not in grade_rates:
        logger.error("insalubrity_grade_missing", extra={
            "grade": grade.value,
            "configured_grades": sorted(g.value for g in grade_rates),
        })
        raise ConfigurationError("insalubrity_rates", f"no rate for grade '{grade.value}'")
    return unhealthy_work_bonus(reference_wage, grade_rates[grade])


@traced_engine("premium", "1.0", fingerprint_fields=("base_salary", "hazard_percent"))
def hazard_bonus(base_salary: Decimal, hazard_percent: Decimal) -> Decimal:
    """
    Hazard-pay (periculosidade) addition.

    Formula: base_salary * hazard_percent

    Raises:
        InvalidInputError: If the salary or percentage is negative.
    """
    salary = non_negative(base_salary, "base_salary")
    percent = non_negative(hazard_percent, "hazard_percent")
    return round_money(salary * percent)


def hourly_rate(base_salary: Decimal, monthly_hours: Decimal) -> Decimal:
    """
    Unrounded hourly rate of a monthly salary.

    Kept at full precision because it feeds further multiplication.

    Raises:
        InvalidInputError: If salary is negative or monthly_hours is not positive.
    """
    salary = non_negative(base_salary, "base_salary")
    hours = positive(monthly_hours, "monthly_hours")
    return salary / hours


def overtime_pay(hours: Decimal, rate_per_hour: Decimal, multiplier: Decimal) -> Decimal:
    """
    Overtime pay.

    Formula: hours * rate_per_hour * multiplier (1.5 for 50%, 2 for 100%)

    Raises:
        InvalidInputError: If any argument is negative.
    """
    h = non_negative(hours, "hours")
    rate = non_negative(rate_per_hour, "rate_per_hour")
    mult = non_negative(multiplier, "multiplier")
    return round_money(h * rate * mult)
