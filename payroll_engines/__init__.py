"""
Module: payroll_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    payroll calculation engines.  This is the canonical import surface
    for callers (batch jobs, services).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payroll_kernel (and sibling engine modules).
    MUST NOT import payroll_config; rules are resolved by the caller
    and passed in.

Invariants enforced:
    - Purity: engines never call ``date.today()``.  Reference dates are
      explicit parameters.
    - Decimal-only arithmetic with a single pinned rounding policy
      (``payroll_kernel.domain.values.MONEY_ROUNDING``).
    - Determinism: identical inputs always produce identical outputs.

Failure modes:
    - InvalidInputError on malformed input, ConfigurationError on an
      invalid statutory table.  Both are raised before any result is
      produced; there are no partial results.

Audit relevance:
    Every public engine call is traced via ``@traced_engine`` (see
    ``payroll_engines.tracer``), emitting PAYROLL_ENGINE_TRACE records
    with engine name, version, input fingerprint and duration.

Usage:
    from payroll_engines.brackets import evaluate_progressive
    from payroll_engines.termination import calculate_termination
    from payroll_engines.thirteenth import calculate_second_installment
"""

from payroll_kernel.logging_config import get_logger

logger = get_logger("engines")

from payroll_engines.brackets import (
    BracketEvaluation,
    BracketTable,
    IncomeTaxEvaluation,
    IncomeTaxMode,
    IncomeTaxRules,
    TaxBracket,
    Withholding,
    WithholdingRules,
    evaluate_income_tax,
    evaluate_progressive,
    evaluate_simplified,
    validate_table,
    withhold,
)
from payroll_engines.charges import (
    ChargeRates,
    ChargesSummary,
    PayrollTotals,
    summarize_charges,
)
from payroll_engines.monthly import (
    EventCode,
    EventKind,
    PayrollEvent,
    PayslipInput,
    PayslipOptions,
    PayslipResult,
    PayslipRules,
    TimesheetSummary,
    calculate_payslip,
)
from payroll_engines.premium import (
    InsalubrityGrade,
    hazard_bonus,
    hourly_rate,
    night_hours_reduction,
    night_shift_bonus,
    overtime_pay,
    unhealthy_work_bonus,
    unhealthy_work_bonus_for_grade,
)
from payroll_engines.proration import (
    PeriodDays,
    calculate_dsr,
    days_worked_in_final_month,
    full_months_between,
    full_years_between,
    last_anniversary,
    month_period,
    months_worked_between,
    months_worked_in_year,
    notice_period_days,
    rest_days,
    working_days,
)
from payroll_engines.termination import (
    TERMINATION_RULES,
    EmployeePayrollFacts,
    NoticeRules,
    TerminationRequest,
    TerminationResult,
    TerminationRules,
    TerminationType,
    TerminationTypeRule,
    UnemploymentRules,
    calculate_termination,
)
from payroll_engines.thirteenth import (
    InstallmentType,
    ThirteenthSalaryRecord,
    ThirteenthSalaryYear,
    calculate_first_installment,
    calculate_full_year_thirteenth,
    calculate_second_installment,
)
from payroll_engines.tracer import traced_engine
from payroll_engines.vacation import (
    VacationResult,
    calculate_vacation,
    entitled_vacation_days,
)

__all__ = [
    # Brackets
    "BracketEvaluation",
    "BracketTable",
    "IncomeTaxEvaluation",
    "IncomeTaxMode",
    "IncomeTaxRules",
    "TaxBracket",
    "Withholding",
    "WithholdingRules",
    "evaluate_income_tax",
    "evaluate_progressive",
    "evaluate_simplified",
    "validate_table",
    "withhold",
    # Charges
    "ChargeRates",
    "ChargesSummary",
    "PayrollTotals",
    "summarize_charges",
    # Monthly
    "EventCode",
    "EventKind",
    "PayrollEvent",
    "PayslipInput",
    "PayslipOptions",
    "PayslipResult",
    "PayslipRules",
    "TimesheetSummary",
    "calculate_payslip",
    # Premium
    "InsalubrityGrade",
    "hazard_bonus",
    "hourly_rate",
    "night_hours_reduction",
    "night_shift_bonus",
    "overtime_pay",
    "unhealthy_work_bonus",
    "unhealthy_work_bonus_for_grade",
    # Proration
    "PeriodDays",
    "calculate_dsr",
    "days_worked_in_final_month",
    "full_months_between",
    "full_years_between",
    "last_anniversary",
    "month_period",
    "months_worked_between",
    "months_worked_in_year",
    "notice_period_days",
    "rest_days",
    "working_days",
    # Termination
    "TERMINATION_RULES",
    "EmployeePayrollFacts",
    "NoticeRules",
    "TerminationRequest",
    "TerminationResult",
    "TerminationRules",
    "TerminationType",
    "TerminationTypeRule",
    "UnemploymentRules",
    "calculate_termination",
    # Thirteenth
    "InstallmentType",
    "ThirteenthSalaryRecord",
    "ThirteenthSalaryYear",
    "calculate_first_installment",
    "calculate_full_year_thirteenth",
    "calculate_second_installment",
    # Tracer
    "traced_engine",
    # Vacation
    "VacationResult",
    "calculate_vacation",
    "entitled_vacation_days",
]
