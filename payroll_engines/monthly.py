"""
Monthly Payslip Engine - Earnings and deduction events for one month.

Builds the event lines of a monthly payslip from the employee's salary
and timesheet summary:

    001 base salary             201 INSS
    002 overtime 50%            202 IRRF
    003 overtime 100%           101 absences
    004 night premium
    005 DSR on overtime
    006 unhealthy-work addition
    007 hazard addition

Each line is rounded once; the gross salary is the sum of rounded
earnings minus absences, so the printed lines always add up.  The FGTS
deposit is an employer cost and is reported, not deducted.

Pure function with no I/O.  Every rate, the monthly hour divisor and the
minimum wage are injected through ``PayslipRules``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from payroll_engines.brackets import WithholdingRules, _withholding
from payroll_engines.premium import (
    InsalubrityGrade,
    hazard_bonus,
    hourly_rate,
    night_hours_reduction,
    night_shift_bonus,
    overtime_pay,
    unhealthy_work_bonus_for_grade,
)
from payroll_engines.proration import COMMERCIAL_MONTH_DAYS, PeriodDays, calculate_dsr
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.values import (
    ZERO,
    non_negative,
    non_negative_int,
    round_money,
)
from payroll_kernel.exceptions import InvalidInputError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.monthly")


class EventKind(str, Enum):
    EARNING = "earning"
    DEDUCTION = "deduction"


class EventCode(str, Enum):
    """Payslip event codes."""

    BASE_SALARY = "001"
    OVERTIME_50 = "002"
    OVERTIME_100 = "003"
    NIGHT_PREMIUM = "004"
    DSR_OVERTIME = "005"
    INSALUBRITY = "006"
    HAZARD = "007"
    ABSENCES = "101"
    INSS = "201"
    IRRF = "202"


@dataclass(frozen=True)
class PayrollEvent:
    code: EventCode
    description: str
    kind: EventKind
    reference: Decimal | None  # Hours, days or percent shown beside the value
    value: Decimal

    @property
    def is_deduction(self) -> bool:
        return self.kind == EventKind.DEDUCTION


@dataclass(frozen=True)
class TimesheetSummary:
    """Monthly totals taken from the time-and-attendance system."""

    worked_hours: Decimal = ZERO
    overtime_hours_50: Decimal = ZERO
    overtime_hours_100: Decimal = ZERO
    night_hours: Decimal = ZERO
    absence_days: int = 0


@dataclass(frozen=True)
class PayslipInput:
    base_salary: Decimal
    dependents_count: int = 0
    timesheet: TimesheetSummary = TimesheetSummary()
    insalubrity_grade: InsalubrityGrade | None = None
    hazard_pay: bool = False
    other_deductions: Decimal = ZERO  # Already-computed deductions (loans, benefits)


@dataclass(frozen=True)
class PayslipOptions:
    """Switches for the optional payslip components."""

    include_overtime: bool = True
    include_night_shift: bool = True
    include_dsr: bool = True
    include_insalubrity: bool = True
    include_hazard: bool = True


@dataclass(frozen=True)
class PayslipRules:
    withholding: WithholdingRules
    minimum_wage: Decimal
    monthly_hours: Decimal
    overtime_multiplier_50: Decimal
    overtime_multiplier_100: Decimal
    night_bonus_rate: Decimal
    night_reduction_factor: Decimal
    hazard_rate: Decimal
    fgts_rate: Decimal
    insalubrity_rates: Mapping[InsalubrityGrade, Decimal]


@dataclass(frozen=True)
class PayslipResult:
    events: tuple[PayrollEvent, ...]
    gross_salary: Decimal
    inss: Decimal
    irrf: Decimal
    fgts: Decimal
    other_deductions: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    worked_days: int
    overtime_hours: Decimal
    night_hours: Decimal

    def event(self, code: EventCode) -> PayrollEvent | None:
        return next((e for e in self.events if e.code == code), None)


def _earning(code: EventCode, description: str, value: Decimal, reference=None) -> PayrollEvent:
    return PayrollEvent(code, description, EventKind.EARNING, reference, value)


def _deduction(code: EventCode, description: str, value: Decimal, reference=None) -> PayrollEvent:
    return PayrollEvent(code, description, EventKind.DEDUCTION, reference, value)


@traced_engine(
    "monthly", "1.0", fingerprint_fields=("payslip_input", "options", "period", "rules")
)
def calculate_payslip(
    payslip_input: PayslipInput,
    options: PayslipOptions,
    period: PeriodDays,
    rules: PayslipRules,
) -> PayslipResult:
    """
    Compute one employee's monthly payslip.

    Args:
        payslip_input: Salary, dependents and timesheet summary.
        options: Which optional components to include.
        period: Working, rest and calendar days of the month (DSR base).
        rules: Rates and withholding tables for the month.

    Returns:
        PayslipResult with rounded event lines and totals.

    Raises:
        InvalidInputError: On negative input or more absence days than a
            commercial month.
        ConfigurationError: If a table or insalubrity rate is missing or invalid.
    """
    base = non_negative(payslip_input.base_salary, "base_salary")
    dependents = non_negative_int(payslip_input.dependents_count, "dependents_count")
    other_deductions = round_money(
        non_negative(payslip_input.other_deductions, "other_deductions")
    )
    ts = payslip_input.timesheet
    hours_50 = non_negative(ts.overtime_hours_50, "overtime_hours_50")
    hours_100 = non_negative(ts.overtime_hours_100, "overtime_hours_100")
    night_hours = non_negative(ts.night_hours, "night_hours")
    absence_days = non_negative_int(ts.absence_days, "absence_days")
    if absence_days > COMMERCIAL_MONTH_DAYS:
        raise InvalidInputError(
            "absence_days", absence_days, f"must not exceed {COMMERCIAL_MONTH_DAYS}"
        )

    rate = hourly_rate(base, rules.monthly_hours)
    events: list[PayrollEvent] = [
        _earning(EventCode.BASE_SALARY, "Base salary", round_money(base)),
    ]

    overtime_total = ZERO
    if options.include_overtime:
        for code, description, hours, multiplier in (
            (EventCode.OVERTIME_50, "Overtime 50%", hours_50, rules.overtime_multiplier_50),
            (EventCode.OVERTIME_100, "Overtime 100%", hours_100, rules.overtime_multiplier_100),
        ):
            if hours > ZERO:
                value = overtime_pay(hours, rate, multiplier)
                overtime_total += value
                events.append(_earning(code, description, value, hours))

    if options.include_night_shift and night_hours > ZERO:
        bonus = night_shift_bonus(night_hours, rate, rules.night_bonus_rate)
        legal_hours = night_hours_reduction(night_hours, rules.night_reduction_factor)
        supplement = round_money((legal_hours - night_hours) * rate)
        events.append(
            _earning(EventCode.NIGHT_PREMIUM, "Night premium", bonus + supplement, night_hours)
        )

    if options.include_dsr and overtime_total > ZERO:
        dsr = calculate_dsr(overtime_total, period.working_days, period.rest_days)
        if dsr > ZERO:
            events.append(_earning(EventCode.DSR_OVERTIME, "DSR on overtime", dsr))

    if options.include_insalubrity and payslip_input.insalubrity_grade is not None:
        grade = InsalubrityGrade(payslip_input.insalubrity_grade)
        value = unhealthy_work_bonus_for_grade(
            rules.minimum_wage, grade, rules.insalubrity_rates
        )
        events.append(
            _earning(EventCode.INSALUBRITY, f"Unhealthy work ({grade.value})", value)
        )

    if options.include_hazard and payslip_input.hazard_pay:
        value = hazard_bonus(base, rules.hazard_rate)
        events.append(
            _earning(EventCode.HAZARD, "Hazard pay", value, rules.hazard_rate * 100)
        )

    if absence_days:
        value = round_money(base / COMMERCIAL_MONTH_DAYS * absence_days)
        events.append(
            _deduction(EventCode.ABSENCES, "Absences", value, Decimal(absence_days))
        )

    earnings = sum((e.value for e in events if not e.is_deduction), ZERO)
    absences = sum((e.value for e in events if e.code == EventCode.ABSENCES), ZERO)
    gross = round_money(max(earnings - absences, ZERO))

    inss, irrf, method = _withholding(rules.withholding, gross, dependents)
    inss, irrf = round_money(inss), round_money(irrf)
    events.append(_deduction(EventCode.INSS, "INSS", inss))
    if irrf > ZERO:
        events.append(_deduction(EventCode.IRRF, "IRRF", irrf))

    fgts = round_money(gross * non_negative(rules.fgts_rate, "fgts_rate"))
    total_deductions = inss + irrf + other_deductions
    net = gross - total_deductions

    logger.info("payslip_calculated", extra={
        "event_count": len(events),
        "gross_salary": str(gross),
        "inss": str(inss),
        "irrf": str(irrf),
        "irrf_method": method.value,
        "fgts": str(fgts),
        "net_salary": str(net),
    })

    return PayslipResult(
        events=tuple(events),
        gross_salary=gross,
        inss=inss,
        irrf=irrf,
        fgts=fgts,
        other_deductions=other_deductions,
        total_deductions=total_deductions,
        net_salary=net,
        worked_days=max(period.calendar_days - absence_days, 0),
        overtime_hours=hours_50 + hours_100,
        night_hours=night_hours,
    )
