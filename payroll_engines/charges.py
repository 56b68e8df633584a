"""
Charges Engine - Employer payroll charges and provisions.

Folds a set of payslip totals into the employer's view of the payroll:
employee withholdings collected (INSS, IRRF), FGTS deposits, the
employer's own contributions on gross pay (INSS, RAT, third parties)
and the monthly accruals for vacation (1/12 plus its third) and the 13th
salary (1/12).

Pure function with no I/O.  Rates are injected through ``ChargeRates``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from payroll_engines.monthly import PayslipResult
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.values import ZERO, non_negative, round_money
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.charges")


@dataclass(frozen=True)
class ChargeRates:
    employer_inss_rate: Decimal
    rat_rate: Decimal  # Occupational-accident insurance
    third_party_rate: Decimal  # Sistema S, INCRA, salario-educacao


@dataclass(frozen=True)
class PayrollTotals:
    """The payslip figures the charges summary needs."""

    gross_salary: Decimal
    inss: Decimal
    irrf: Decimal
    fgts: Decimal

    @classmethod
    def from_payslip(cls, payslip: PayslipResult) -> PayrollTotals:
        return cls(
            gross_salary=payslip.gross_salary,
            inss=payslip.inss,
            irrf=payslip.irrf,
            fgts=payslip.fgts,
        )


@dataclass(frozen=True)
class ChargesSummary:
    employee_count: int
    total_gross: Decimal
    inss_employee: Decimal
    irrf_employee: Decimal
    fgts: Decimal
    inss_employer: Decimal
    rat: Decimal
    third_parties: Decimal
    total_charges: Decimal  # fgts + employer inss + rat + third parties
    vacation_provision: Decimal
    thirteenth_provision: Decimal
    total_provisions: Decimal


@traced_engine("charges", "1.0", fingerprint_fields=("items", "rates"))
def summarize_charges(
    items: Sequence[PayrollTotals | PayslipResult],
    rates: ChargeRates,
) -> ChargesSummary:
    """
    Summarize employer charges for a payroll run.

    Accepts PayrollTotals or PayslipResult items.  Each summary line is
    computed at full precision over the whole run and rounded once; the
    totals are sums of the rounded lines.

    Raises:
        InvalidInputError: On a negative amount or rate.
    """
    employer_rate = non_negative(rates.employer_inss_rate, "employer_inss_rate")
    rat_rate = non_negative(rates.rat_rate, "rat_rate")
    third_party_rate = non_negative(rates.third_party_rate, "third_party_rate")

    count = 0
    gross = inss = irrf = fgts = ZERO
    for item in items:
        if isinstance(item, PayslipResult):
            item = PayrollTotals.from_payslip(item)
        gross += non_negative(item.gross_salary, "gross_salary")
        inss += non_negative(item.inss, "inss")
        irrf += non_negative(item.irrf, "irrf")
        fgts += non_negative(item.fgts, "fgts")
        count += 1

    fgts_total = round_money(fgts)
    inss_employer = round_money(gross * employer_rate)
    rat = round_money(gross * rat_rate)
    third_parties = round_money(gross * third_party_rate)
    vacation_provision = round_money(gross / 12 + gross / 12 / 3)
    thirteenth_provision = round_money(gross / 12)

    summary = ChargesSummary(
        employee_count=count,
        total_gross=round_money(gross),
        inss_employee=round_money(inss),
        irrf_employee=round_money(irrf),
        fgts=fgts_total,
        inss_employer=inss_employer,
        rat=rat,
        third_parties=third_parties,
        total_charges=fgts_total + inss_employer + rat + third_parties,
        vacation_provision=vacation_provision,
        thirteenth_provision=thirteenth_provision,
        total_provisions=vacation_provision + thirteenth_provision,
    )

    logger.info("charges_summarized", extra={
        "employee_count": count,
        "total_gross": str(summary.total_gross),
        "total_charges": str(summary.total_charges),
        "total_provisions": str(summary.total_provisions),
    })
    return summary
