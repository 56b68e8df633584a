"""
Termination Engine - Rescission settlement (verbas rescisorias).

Aggregates every component owed when an employment contract ends:

    salary balance          base / 30 * days worked in the final month
    notice period           base / 30 * notice days * indemnity fraction
    vacation balance        base / 30 * expired untaken vacation days
    vacation proportional   base / 12 * months of the open acquisition period
    vacation one-third      (vacation balance + proportional) / 3
    13th proportional       base / 12 * months worked in the termination year
    FGTS fine               fgts balance * fine rate * fine fraction

INSS and IRRF are withheld on the salary balance and, separately, on the
13th proportional.  Indemnified notice, vacation indemnities and the FGTS
fine are not taxable.

What each termination type enables is an explicit lookup table
(``TERMINATION_RULES``), one row per type, rather than branching code.

Pure function with no I/O.  The FGTS balance is an external ledger figure
supplied by the caller.

Usage:
    from datetime import date
    from decimal import Decimal
    from payroll_engines.termination import (
        TerminationRequest, TerminationType, calculate_termination,
    )

    request = TerminationRequest(
        termination_type=TerminationType.DISMISSAL_NO_CAUSE,
        hire_date=date(2019, 1, 1),
        termination_date=date(2024, 11, 30),
        base_salary=Decimal("3000.00"),
        notice_period_indemnity=True,
        fgts_balance=Decimal("17000.00"),
    )
    result = calculate_termination(request, rules)
    assert result.total_net == result.total_gross - result.total_deductions
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from types import MappingProxyType

from payroll_engines.brackets import WithholdingRules, _withholding
from payroll_engines.proration import (
    COMMERCIAL_MONTH_DAYS,
    days_worked_in_final_month,
    full_months_between,
    last_anniversary,
    months_worked_between,
    months_worked_in_year,
    notice_period_days,
)
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.values import (
    ONE,
    ZERO,
    non_negative,
    non_negative_int,
    round_money,
)
from payroll_kernel.exceptions import ConfigurationError, InvalidInputError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.termination")

HALF = Decimal("0.5")
MONTHS_PER_YEAR = 12


class TerminationType(str, Enum):
    """How the employment contract ended."""

    RESIGNATION = "resignation"
    DISMISSAL_WITH_CAUSE = "dismissal_with_cause"
    DISMISSAL_NO_CAUSE = "dismissal_no_cause"
    MUTUAL_AGREEMENT = "mutual_agreement"
    CONTRACT_END = "contract_end"
    RETIREMENT = "retirement"
    DEATH = "death"


@dataclass(frozen=True)
class TerminationTypeRule:
    """One row of the termination lookup table."""

    notice_indemnity_fraction: Decimal  # Share of the notice value paid when indemnified
    fgts_fine_fraction: Decimal  # Share of the configured FGTS fine rate
    unemployment_eligible: bool
    proportional_thirteenth: bool = True
    proportional_vacation: bool = True


TERMINATION_RULES: Mapping[TerminationType, TerminationTypeRule] = MappingProxyType({
    TerminationType.RESIGNATION: TerminationTypeRule(ZERO, ZERO, False),
    TerminationType.DISMISSAL_NO_CAUSE: TerminationTypeRule(ONE, ONE, True),
    TerminationType.DISMISSAL_WITH_CAUSE: TerminationTypeRule(
        ZERO, ZERO, False, proportional_thirteenth=False, proportional_vacation=False
    ),
    TerminationType.MUTUAL_AGREEMENT: TerminationTypeRule(HALF, HALF, False),
    TerminationType.CONTRACT_END: TerminationTypeRule(ZERO, ZERO, False),
    TerminationType.RETIREMENT: TerminationTypeRule(ZERO, ZERO, False),
    TerminationType.DEATH: TerminationTypeRule(ZERO, ZERO, False),
})


@dataclass(frozen=True)
class NoticeRules:
    base_days: int
    days_per_year: int
    max_days: int


@dataclass(frozen=True)
class UnemploymentRules:
    """Unemployment-insurance guide thresholds."""

    min_tenure_months: int
    months_per_guide: int
    max_guides: int

    def __post_init__(self) -> None:
        if self.months_per_guide <= 0:
            raise ConfigurationError("unemployment", "months_per_guide must be positive")
        if self.min_tenure_months < 0 or self.max_guides < 0:
            raise ConfigurationError("unemployment", "thresholds must not be negative")


@dataclass(frozen=True)
class TerminationRules:
    """Legal constants a termination needs, resolved once by the caller."""

    withholding: WithholdingRules
    fgts_fine_rate: Decimal
    notice: NoticeRules
    unemployment: UnemploymentRules
    type_rules: Mapping[TerminationType, TerminationTypeRule] = field(
        default_factory=lambda: TERMINATION_RULES
    )

    def rule_for(self, termination_type: TerminationType) -> TerminationTypeRule:
        try:
            return self.type_rules[termination_type]
        except KeyError as e:
            raise ConfigurationError(
                "termination_rules", f"no rule for termination type '{termination_type.value}'"
            ) from e


@dataclass(frozen=True)
class EmployeePayrollFacts:
    """Employee facts owned by the caller; engines never mutate them."""

    base_salary: Decimal
    hire_date: date
    dependents_count: int = 0


@dataclass(frozen=True)
class TerminationRequest:
    """
    Input to ``calculate_termination``.

    notice_period_days None derives the period from tenure.  fgts_balance
    is the accumulated FGTS deposit figure from the external ledger.
    """

    termination_type: TerminationType
    hire_date: date
    termination_date: date
    base_salary: Decimal
    notice_period_days: int | None = None
    notice_period_indemnity: bool = False
    dependents_count: int = 0
    fgts_balance: Decimal = ZERO
    unused_vacation_days: int = 0

    @classmethod
    def for_employee(
        cls,
        facts: EmployeePayrollFacts,
        termination_type: TerminationType,
        termination_date: date,
        **kwargs,
    ) -> TerminationRequest:
        """Build a request from employee facts."""
        return cls(
            termination_type=termination_type,
            hire_date=facts.hire_date,
            termination_date=termination_date,
            base_salary=facts.base_salary,
            dependents_count=facts.dependents_count,
            **kwargs,
        )


@dataclass(frozen=True)
class TerminationResult:
    """Settlement produced once; a recalculation supersedes it."""

    termination_type: TerminationType
    salary_balance: Decimal
    notice_period_value: Decimal
    vacation_balance: Decimal
    vacation_proportional: Decimal
    vacation_one_third: Decimal
    thirteenth_proportional: Decimal
    fgts_balance: Decimal  # Informational; withdrawn from the fund, not paid by the employer
    fgts_fine: Decimal
    total_gross: Decimal
    inss_deduction: Decimal
    irrf_deduction: Decimal
    total_deductions: Decimal
    total_net: Decimal
    eligible_for_unemployment: bool
    unemployment_guides: int
    notice_period_days: int
    months_of_service: int


def unemployment_guides(
    rule: TerminationTypeRule,
    months_of_service: int,
    rules: UnemploymentRules,
) -> tuple[bool, int]:
    """Return (eligible, guide count) for a termination type and tenure."""
    if not rule.unemployment_eligible or months_of_service < rules.min_tenure_months:
        return False, 0
    return True, min(rules.max_guides, months_of_service // rules.months_per_guide)


@traced_engine("termination", "1.0", fingerprint_fields=("request", "rules"))
def calculate_termination(
    request: TerminationRequest,
    rules: TerminationRules,
) -> TerminationResult:
    """
    Compute a termination settlement.

    Preconditions:
        - termination_date >= hire_date.
        - base_salary, fgts_balance and day counts are non-negative.

    Postconditions:
        - Every money component is rounded once.
        - total_gross is the sum of the rounded gross components.
        - total_net == total_gross - total_deductions exactly.
        - The result is fully populated or an exception is raised.

    Raises:
        InvalidInputError: If any input is invalid.
        ConfigurationError: If the rules are invalid.
    """
    try:
        termination_type = TerminationType(request.termination_type)
    except ValueError as e:
        raise InvalidInputError(
            "termination_type", request.termination_type, "unknown termination type"
        ) from e
    hire, terminated = request.hire_date, request.termination_date
    if terminated < hire:
        logger.warning("termination_rejected", extra={
            "reason": "termination_before_hire",
            "hire_date": hire.isoformat(),
            "termination_date": terminated.isoformat(),
        })
        raise InvalidInputError(
            "termination_date", terminated, f"must not be before hire_date {hire}"
        )
    base = non_negative(request.base_salary, "base_salary")
    fgts_balance = non_negative(request.fgts_balance, "fgts_balance")
    fine_rate = non_negative(rules.fgts_fine_rate, "fgts_fine_rate")
    dependents = non_negative_int(request.dependents_count, "dependents_count")
    unused_days = non_negative_int(request.unused_vacation_days, "unused_vacation_days")
    rule = rules.rule_for(termination_type)

    if request.notice_period_days is None:
        notice_days = notice_period_days(
            hire,
            terminated,
            base_days=rules.notice.base_days,
            days_per_year=rules.notice.days_per_year,
            max_days=rules.notice.max_days,
        )
    else:
        notice_days = non_negative_int(request.notice_period_days, "notice_period_days")

    daily = base / COMMERCIAL_MONTH_DAYS
    monthly_twelfth = base / MONTHS_PER_YEAR

    balance_days = days_worked_in_final_month(hire, terminated)
    salary_balance = daily * balance_days

    notice_value = ZERO
    if request.notice_period_indemnity:
        notice_value = daily * notice_days * rule.notice_indemnity_fraction

    vacation_balance = daily * unused_days
    vacation_months = 0
    if rule.proportional_vacation:
        vacation_months = months_worked_between(last_anniversary(hire, terminated), terminated)
    vacation_proportional = monthly_twelfth * vacation_months

    thirteenth_months = 0
    if rule.proportional_thirteenth:
        thirteenth_months = months_worked_in_year(hire, terminated)
    thirteenth = monthly_twelfth * thirteenth_months

    fgts_fine = fgts_balance * fine_rate * rule.fgts_fine_fraction

    # The 13th is taxed apart from the month's salary
    salary_inss, salary_irrf, _ = _withholding(rules.withholding, salary_balance, dependents)
    thirteenth_inss, thirteenth_irrf, _ = _withholding(rules.withholding, thirteenth, dependents)

    components = {
        "salary_balance": round_money(salary_balance),
        "notice_period_value": round_money(notice_value),
        "vacation_balance": round_money(vacation_balance),
        "vacation_proportional": round_money(vacation_proportional),
        "vacation_one_third": round_money((vacation_balance + vacation_proportional) / 3),
        "thirteenth_proportional": round_money(thirteenth),
        "fgts_fine": round_money(fgts_fine),
    }
    total_gross = sum(components.values(), round_money(ZERO))
    inss = round_money(salary_inss + thirteenth_inss)
    irrf = round_money(salary_irrf + thirteenth_irrf)
    total_deductions = inss + irrf
    total_net = total_gross - total_deductions

    months_of_service = full_months_between(hire, terminated)
    eligible, guides = unemployment_guides(rule, months_of_service, rules.unemployment)

    logger.info("termination_calculated", extra={
        "termination_type": termination_type.value,
        "notice_period_days": notice_days,
        "months_of_service": months_of_service,
        "total_gross": str(total_gross),
        "total_deductions": str(total_deductions),
        "total_net": str(total_net),
        "unemployment_guides": guides,
    })

    return TerminationResult(
        termination_type=termination_type,
        fgts_balance=round_money(fgts_balance),
        total_gross=total_gross,
        inss_deduction=inss,
        irrf_deduction=irrf,
        total_deductions=total_deductions,
        total_net=total_net,
        eligible_for_unemployment=eligible,
        unemployment_guides=guides,
        notice_period_days=notice_days,
        months_of_service=months_of_service,
        **components,
    )
