"""
Vacation Engine - Vacation pay, constitutional one-third and sold days.

Entitlement accrues at 30 days per 12 months worked.  Days enjoyed are
paid at the daily rate (base / 30) plus the constitutional one-third
bonus.  Up to one third of the entitlement may be sold back to the
employer (abono pecuniario); sold days are paid with their own third and
are not part of the withholding base.

Pure function with no I/O.  Withholding tables are injected.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from payroll_engines.brackets import WithholdingRules, _withholding
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.values import (
    non_negative,
    non_negative_int,
    round_money,
)
from payroll_kernel.exceptions import InvalidInputError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.vacation")

FULL_VACATION_DAYS = 30
ONE_THIRD = Decimal("3")
SOLD_DAYS_FACTOR = Decimal("4") / Decimal("3")


@dataclass(frozen=True)
class VacationResult:
    vacation_pay: Decimal
    one_third_bonus: Decimal
    sold_days_value: Decimal
    inss_deduction: Decimal
    irrf_deduction: Decimal
    net_pay: Decimal
    entitled_days: Decimal
    days_taken: Decimal
    sold_days: int

    @property
    def gross_pay(self) -> Decimal:
        return self.vacation_pay + self.one_third_bonus + self.sold_days_value


def entitled_vacation_days(months_worked: int) -> Decimal:
    """30 days per 12 months worked; months_worked must be within 0..12."""
    months = non_negative_int(months_worked, "months_worked")
    if months > 12:
        raise InvalidInputError("months_worked", months_worked, "must not exceed 12")
    return Decimal(FULL_VACATION_DAYS * months) / 12


@traced_engine(
    "vacation",
    "1.0",
    fingerprint_fields=(
        "base_salary",
        "months_worked",
        "days_taken",
        "withholding",
        "dependents_count",
        "sold_days",
    ),
)
def calculate_vacation(
    base_salary: Decimal,
    months_worked: int,
    days_taken: int | None,
    withholding: WithholdingRules,
    dependents_count: int = 0,
    sold_days: int = 0,
) -> VacationResult:
    """
    Compute a vacation payment.

    Args:
        base_salary: Monthly salary.
        months_worked: Months of the acquisition period (0..12).
        days_taken: Days enjoyed; None enjoys the whole entitlement not sold.
        withholding: INSS and IRRF rules.
        dependents_count: Dependents for the IRRF deduction.
        sold_days: Days converted into cash (at most one third of the entitlement).

    Returns:
        VacationResult with every component rounded once.

    Raises:
        InvalidInputError: On negative input, more than 12 months, more
            days than the entitlement, or too many sold days.
        ConfigurationError: If a withholding table is invalid.
    """
    base = non_negative(base_salary, "base_salary")
    dependents = non_negative_int(dependents_count, "dependents_count")
    sold = non_negative_int(sold_days, "sold_days")
    entitled = entitled_vacation_days(months_worked)

    if sold > entitled / 3:
        logger.warning("vacation_rejected", extra={
            "reason": "sold_days_exceed_one_third",
            "entitled_days": str(entitled),
            "sold_days": sold,
        })
        raise InvalidInputError(
            "sold_days", sold_days, f"must not exceed one third of {entitled} entitled days"
        )

    if days_taken is None:
        # Exact entitlement, so 11 months pays 27.5 days
        taken = entitled - sold
    else:
        taken = Decimal(non_negative_int(days_taken, "days_taken"))
    if taken + sold > entitled:
        logger.warning("vacation_rejected", extra={
            "reason": "days_exceed_entitlement",
            "entitled_days": str(entitled),
            "days_taken": str(taken),
            "sold_days": sold,
        })
        raise InvalidInputError(
            "days_taken", days_taken, f"days taken plus sold exceed {entitled} entitled days"
        )

    daily = base / FULL_VACATION_DAYS
    pay = daily * taken
    third = pay / ONE_THIRD
    sold_value = daily * sold * SOLD_DAYS_FACTOR

    inss, irrf, method = _withholding(withholding, pay + third, dependents)

    vacation_pay = round_money(pay)
    one_third_bonus = round_money(third)
    sold_days_value = round_money(sold_value)
    inss_deduction = round_money(inss)
    irrf_deduction = round_money(irrf)
    net_pay = (
        vacation_pay + one_third_bonus + sold_days_value - inss_deduction - irrf_deduction
    )

    logger.info("vacation_calculated", extra={
        "months_worked": months_worked,
        "entitled_days": str(entitled),
        "days_taken": str(taken),
        "sold_days": sold,
        "vacation_pay": str(vacation_pay),
        "one_third_bonus": str(one_third_bonus),
        "sold_days_value": str(sold_days_value),
        "irrf_method": method.value,
        "net_pay": str(net_pay),
    })

    return VacationResult(
        vacation_pay=vacation_pay,
        one_third_bonus=one_third_bonus,
        sold_days_value=sold_days_value,
        inss_deduction=inss_deduction,
        irrf_deduction=irrf_deduction,
        net_pay=net_pay,
        entitled_days=entitled,
        days_taken=taken,
        sold_days=sold,
    )
