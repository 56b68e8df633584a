"""
Thirteenth-Salary Engine - Two-installment annual bonus.

The annual 13th salary is paid as an untaxed advance (first installment)
and a settlement (second installment).  The second installment withholds
INSS and IRRF on the FULL annual value and then subtracts the advance:

    full_year  = base_salary / 12 * months_worked_in_year
    first      = full_year * advance_rate             (no withholding)
    second     = full_year - first
    net_second = second - inss(full_year) - irrf(full_year - inss)

Computing the full-year tax first and then subtracting what was already
advanced is the statutory order; taxing only the second installment
understates the withholding.

Each installment is an independent, idempotent calculation.  Whether a
record for (employee, year, installment) already exists is the caller's
concern; this module never checks.

Usage:
    from datetime import date
    from decimal import Decimal
    from payroll_engines.thirteenth import calculate_first_installment

    first = calculate_first_installment(
        base_salary=Decimal("3000.00"),
        hire_date=date(2020, 3, 1),
        year=2024,
        advance_rate=Decimal("0.5"),
    )
    print(first.gross_value)  # Decimal("1500.00")
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from payroll_engines.brackets import WithholdingRules, _withholding
from payroll_engines.proration import months_worked_in_year
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.values import (
    ONE,
    ZERO,
    non_negative,
    non_negative_int,
    round_money,
)
from payroll_kernel.exceptions import InvalidInputError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.thirteenth")

MONTHS_PER_YEAR = 12


class InstallmentType(str, Enum):
    """Which installment of the annual 13th salary."""

    FIRST = "first"
    SECOND = "second"


@dataclass(frozen=True)
class ThirteenthSalaryRecord:
    """
    One computed installment.

    The first installment carries zero deductions; the second carries
    the withholding computed on the full annual value.
    """

    year: int
    installment_type: InstallmentType
    months_worked: int
    base_salary: Decimal
    gross_value: Decimal
    inss_deduction: Decimal
    irrf_deduction: Decimal
    net_value: Decimal


@dataclass(frozen=True)
class ThirteenthSalaryYear:
    """Both installments of one year plus the full annual value."""

    first: ThirteenthSalaryRecord
    second: ThirteenthSalaryRecord
    full_year_value: Decimal


def _reference_date(year: int, reference_date: date | None) -> date:
    if reference_date is None:
        return date(year, 12, 31)
    if reference_date.year != year:
        raise InvalidInputError(
            "reference_date", reference_date, f"must fall within year {year}"
        )
    return reference_date


def _full_year_value(base: Decimal, months: int) -> Decimal:
    return base / MONTHS_PER_YEAR * months


@traced_engine(
    "thirteenth",
    "1.0",
    fingerprint_fields=("base_salary", "hire_date", "year", "advance_rate", "reference_date"),
)
def calculate_first_installment(
    base_salary: Decimal,
    hire_date: date,
    year: int,
    advance_rate: Decimal,
    reference_date: date | None = None,
) -> ThirteenthSalaryRecord:
    """
    Compute the first (advance) installment.

    Preconditions:
        - base_salary >= 0; advance_rate within [0, 1].
        - reference_date, when given, falls in ``year`` (defaults to Dec 31).

    Postconditions:
        - gross = base / 12 * months_worked * advance_rate, rounded once.
        - No tax withheld: net == gross.

    Raises:
        InvalidInputError: On a negative salary, an out-of-range advance
            rate or a reference date outside the year.
    """
    base = non_negative(base_salary, "base_salary")
    rate = non_negative(advance_rate, "advance_rate")
    if rate > ONE:
        raise InvalidInputError("advance_rate", advance_rate, "must not exceed 1")
    reference = _reference_date(year, reference_date)

    months = months_worked_in_year(hire_date, reference)
    gross = round_money(_full_year_value(base, months) * rate)

    logger.info("thirteenth_first_installment_calculated", extra={
        "year": year,
        "months_worked": months,
        "gross_value": str(gross),
    })

    return ThirteenthSalaryRecord(
        year=year,
        installment_type=InstallmentType.FIRST,
        months_worked=months,
        base_salary=base,
        gross_value=gross,
        inss_deduction=round_money(ZERO),
        irrf_deduction=round_money(ZERO),
        net_value=gross,
    )


@traced_engine(
    "thirteenth",
    "1.0",
    fingerprint_fields=(
        "base_salary",
        "hire_date",
        "year",
        "first_installment_gross",
        "withholding",
        "dependents_count",
        "reference_date",
    ),
)
def calculate_second_installment(
    base_salary: Decimal,
    hire_date: date,
    year: int,
    first_installment_gross: Decimal,
    withholding: WithholdingRules,
    dependents_count: int = 0,
    reference_date: date | None = None,
) -> ThirteenthSalaryRecord:
    """
    Compute the second (settlement) installment.

    Preconditions:
        - first_installment_gross is the stored gross of the first
          installment (read only) and does not exceed the full-year value.

    Postconditions:
        - gross = round(full_year) - first_installment_gross, so
          first.gross + second.gross == round(full_year) exactly.
        - INSS and IRRF are computed on the full annual value.
        - net = gross - inss - irrf.

    Raises:
        InvalidInputError: On negative amounts, a reference date outside
            the year, or an advance larger than the full-year value.
        ConfigurationError: If a withholding table is invalid.
    """
    base = non_negative(base_salary, "base_salary")
    advanced = non_negative(first_installment_gross, "first_installment_gross")
    dependents = non_negative_int(dependents_count, "dependents_count")
    reference = _reference_date(year, reference_date)

    months = months_worked_in_year(hire_date, reference)
    full_year = _full_year_value(base, months)
    full_year_rounded = round_money(full_year)
    if advanced > full_year_rounded:
        logger.warning("thirteenth_second_installment_rejected", extra={
            "year": year,
            "full_year_value": str(full_year_rounded),
            "first_installment_gross": str(advanced),
        })
        raise InvalidInputError(
            "first_installment_gross",
            first_installment_gross,
            f"exceeds the full-year value {full_year_rounded}",
        )

    inss, irrf, method = _withholding(withholding, full_year, dependents)
    inss, irrf = round_money(inss), round_money(irrf)
    gross = round_money(full_year_rounded - advanced)
    net = gross - inss - irrf

    logger.info("thirteenth_second_installment_calculated", extra={
        "year": year,
        "months_worked": months,
        "full_year_value": str(full_year_rounded),
        "gross_value": str(gross),
        "inss": str(inss),
        "irrf": str(irrf),
        "irrf_method": method.value,
        "net_value": str(net),
    })

    return ThirteenthSalaryRecord(
        year=year,
        installment_type=InstallmentType.SECOND,
        months_worked=months,
        base_salary=base,
        gross_value=gross,
        inss_deduction=inss,
        irrf_deduction=irrf,
        net_value=net,
    )


def calculate_full_year_thirteenth(
    base_salary: Decimal,
    hire_date: date,
    year: int,
    advance_rate: Decimal,
    withholding: WithholdingRules,
    dependents_count: int = 0,
    reference_date: date | None = None,
) -> ThirteenthSalaryYear:
    """Compute both installments, feeding the first gross into the second."""
    first = calculate_first_installment(
        base_salary, hire_date, year, advance_rate, reference_date
    )
    second = calculate_second_installment(
        base_salary,
        hire_date,
        year,
        first.gross_value,
        withholding,
        dependents_count,
        reference_date,
    )
    return ThirteenthSalaryYear(
        first=first,
        second=second,
        full_year_value=first.gross_value + second.gross_value,
    )
