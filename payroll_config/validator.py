"""
Rule-Set Validator (``payroll_config.validator``).

Responsibility
--------------
Validates a ``StatutoryRuleSet`` before it is handed to any engine, so a
malformed table or rate is reported once, at resolution time, instead of
on the first payroll run that touches it.

Invariants enforced
-------------------
* Both progressive tables satisfy the engine's structural checks
  (``payroll_engines.brackets.validate_table``).
* Every rate lies within [0, 1]; multipliers are at least 1.
* The effective range is not inverted.
* Notice and unemployment thresholds are consistent.

Failure modes
-------------
* Validation errors (``ValidationResult.errors``)  -> the rule set MUST
  NOT be used.
* Validation warnings (``ValidationResult.warnings``)  -> usable, but
  should be reviewed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from payroll_config.bridges import build_bracket_table
from payroll_config.schema import StatutoryRuleSet
from payroll_engines.brackets import IncomeTaxMode, validate_table
from payroll_engines.premium import InsalubrityGrade
from payroll_kernel.exceptions import ConfigurationError

_ZERO = Decimal("0")
_ONE = Decimal("1")


@dataclass
class ValidationResult:
    """
    Result of rule-set validation.

    ``is_valid`` is True only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_rule_set(rule_set: StatutoryRuleSet) -> ValidationResult:
    """
    Validate a rule set.

    Postconditions:
        - Returns a ``ValidationResult``; never raises for content errors.
    """
    result = ValidationResult()

    _validate_scope(rule_set, result)
    _validate_tables(rule_set, result)
    _validate_rates(rule_set, result)
    _validate_thresholds(rule_set, result)

    return result


def _validate_scope(rule_set: StatutoryRuleSet, result: ValidationResult) -> None:
    scope = rule_set.scope
    if not scope.jurisdiction:
        result.add_error("scope.jurisdiction must not be empty")
    if scope.effective_to is not None and scope.effective_to < scope.effective_from:
        result.add_error(
            f"scope.effective_to {scope.effective_to} is before "
            f"effective_from {scope.effective_from}"
        )


def _validate_tables(rule_set: StatutoryRuleSet, result: ValidationResult) -> None:
    for table in (rule_set.inss, rule_set.irrf.table):
        try:
            validate_table(build_bracket_table(table))
        except ConfigurationError as e:
            result.add_error(f"{table.name}: {e.reason}")

    irrf = rule_set.irrf
    if irrf.per_dependent_deduction < _ZERO:
        result.add_error("irrf.per_dependent_deduction must not be negative")
    if not _ZERO <= irrf.simplified_discount_rate <= _ONE:
        result.add_error("irrf.simplified_discount_rate must be within [0, 1]")
    if irrf.simplified_discount_cap is not None and irrf.simplified_discount_cap < _ZERO:
        result.add_error("irrf.simplified_discount_cap must not be negative")
    try:
        mode = IncomeTaxMode(irrf.mode)
    except ValueError:
        result.add_error(f"irrf.mode '{irrf.mode}' is not one of {[m.value for m in IncomeTaxMode]}")
    else:
        if mode != IncomeTaxMode.LEGAL and irrf.simplified_discount_rate == _ZERO:
            result.add_warning(f"irrf.mode '{mode.value}' with a zero simplified discount")


def _check_rate(name: str, value: Decimal, result: ValidationResult) -> None:
    if not _ZERO <= value <= _ONE:
        result.add_error(f"{name} {value} must be within [0, 1]")


def _validate_rates(rule_set: StatutoryRuleSet, result: ValidationResult) -> None:
    if rule_set.minimum_wage <= _ZERO:
        result.add_error("minimum_wage must be positive")
    if rule_set.monthly_hours <= _ZERO:
        result.add_error("monthly_hours must be positive")

    _check_rate("fgts_fine_rate", rule_set.fgts_fine_rate, result)
    _check_rate("thirteenth_advance_rate", rule_set.thirteenth_advance_rate, result)

    premiums = rule_set.premiums
    _check_rate("premiums.night_bonus_rate", premiums.night_bonus_rate, result)
    _check_rate("premiums.hazard_rate", premiums.hazard_rate, result)
    if not _ZERO < premiums.night_hour_minutes <= Decimal("60"):
        result.add_error("premiums.night_hour_minutes must be within (0, 60]")
    for name in ("overtime_multiplier_50", "overtime_multiplier_100"):
        if getattr(premiums, name) < _ONE:
            result.add_error(f"premiums.{name} must be at least 1")

    configured = set()
    for grade, rate in premiums.insalubrity_rates:
        _check_rate(f"premiums.insalubrity_rates.{grade}", rate, result)
        configured.add(grade)
    unknown = configured - {g.value for g in InsalubrityGrade}
    if unknown:
        result.add_error(f"premiums.insalubrity_rates has unknown grades {sorted(unknown)}")
    missing = {g.value for g in InsalubrityGrade} - configured
    if missing:
        result.add_warning(f"premiums.insalubrity_rates has no rate for {sorted(missing)}")

    charges = rule_set.charges
    for name in ("fgts_rate", "employer_inss_rate", "rat_rate", "third_party_rate"):
        _check_rate(f"charges.{name}", getattr(charges, name), result)


def _validate_thresholds(rule_set: StatutoryRuleSet, result: ValidationResult) -> None:
    notice = rule_set.notice
    if min(notice.base_days, notice.days_per_year, notice.max_days) < 0:
        result.add_error("notice parameters must not be negative")
    if notice.max_days < notice.base_days:
        result.add_error("notice.max_days must be at least notice.base_days")

    unemployment = rule_set.unemployment
    if unemployment.months_per_guide <= 0:
        result.add_error("unemployment.months_per_guide must be positive")
    if unemployment.min_tenure_months < 0 or unemployment.max_guides < 0:
        result.add_error("unemployment thresholds must not be negative")
