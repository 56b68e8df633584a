"""
Config -> Engine Bridges.

Functions that convert a ``StatutoryRuleSet`` into the parameter objects
the engines accept.  They live in payroll_config (the producer) because
the engines must never import payroll_config.

Usage:
    from payroll_config import get_active_rules
    from payroll_config.bridges import build_termination_rules

    rule_set = get_active_rules("BR", date(2024, 11, 30))
    result = calculate_termination(request, build_termination_rules(rule_set))
"""

from __future__ import annotations

from payroll_config.schema import StatutoryRuleSet, TableDef
from payroll_engines.brackets import (
    BracketTable,
    IncomeTaxMode,
    IncomeTaxRules,
    TaxBracket,
    WithholdingRules,
)
from payroll_engines.charges import ChargeRates
from payroll_engines.monthly import PayslipRules
from payroll_engines.premium import InsalubrityGrade
from payroll_engines.termination import NoticeRules, TerminationRules, UnemploymentRules
from payroll_kernel.exceptions import ConfigurationError


def build_bracket_table(table: TableDef) -> BracketTable:
    """Translate a table definition into an engine ``BracketTable``."""
    return BracketTable(
        name=table.name,
        brackets=tuple(
            TaxBracket(b.lower_bound, b.upper_bound, b.rate, b.cumulative_deduction)
            for b in table.brackets
        ),
        ceiling=table.ceiling,
    )


def build_income_tax_rules(rule_set: StatutoryRuleSet) -> IncomeTaxRules:
    irrf = rule_set.irrf
    return IncomeTaxRules(
        table=build_bracket_table(irrf.table),
        per_dependent_deduction=irrf.per_dependent_deduction,
        simplified_discount_rate=irrf.simplified_discount_rate,
        simplified_discount_cap=irrf.simplified_discount_cap,
    )


def build_withholding_rules(rule_set: StatutoryRuleSet) -> WithholdingRules:
    """
    Build the INSS + IRRF withholding rules.

    Raises:
        ConfigurationError: If the income-tax mode is unknown.
    """
    try:
        mode = IncomeTaxMode(rule_set.irrf.mode)
    except ValueError as e:
        raise ConfigurationError(
            rule_set.irrf.table.name, f"unknown income tax mode '{rule_set.irrf.mode}'"
        ) from e
    return WithholdingRules(
        inss=build_bracket_table(rule_set.inss),
        irrf=build_income_tax_rules(rule_set),
        irrf_mode=mode,
    )


def build_termination_rules(rule_set: StatutoryRuleSet) -> TerminationRules:
    return TerminationRules(
        withholding=build_withholding_rules(rule_set),
        fgts_fine_rate=rule_set.fgts_fine_rate,
        notice=NoticeRules(
            base_days=rule_set.notice.base_days,
            days_per_year=rule_set.notice.days_per_year,
            max_days=rule_set.notice.max_days,
        ),
        unemployment=UnemploymentRules(
            min_tenure_months=rule_set.unemployment.min_tenure_months,
            months_per_guide=rule_set.unemployment.months_per_guide,
            max_guides=rule_set.unemployment.max_guides,
        ),
    )


def build_payslip_rules(rule_set: StatutoryRuleSet) -> PayslipRules:
    """
    Build monthly payslip rules.

    Raises:
        ConfigurationError: If an insalubrity grade is unknown.
    """
    premiums = rule_set.premiums
    grade_rates = {}
    for grade, rate in premiums.insalubrity_rates:
        try:
            grade_rates[InsalubrityGrade(grade)] = rate
        except ValueError as e:
            raise ConfigurationError(
                "insalubrity_rates", f"unknown insalubrity grade '{grade}'"
            ) from e
    return PayslipRules(
        withholding=build_withholding_rules(rule_set),
        minimum_wage=rule_set.minimum_wage,
        monthly_hours=rule_set.monthly_hours,
        overtime_multiplier_50=premiums.overtime_multiplier_50,
        overtime_multiplier_100=premiums.overtime_multiplier_100,
        night_bonus_rate=premiums.night_bonus_rate,
        night_reduction_factor=premiums.night_reduction_factor,
        hazard_rate=premiums.hazard_rate,
        fgts_rate=rule_set.charges.fgts_rate,
        insalubrity_rates=grade_rates,
    )


def build_charge_rates(rule_set: StatutoryRuleSet) -> ChargeRates:
    charges = rule_set.charges
    return ChargeRates(
        employer_inss_rate=charges.employer_inss_rate,
        rat_rate=charges.rat_rate,
        third_party_rate=charges.third_party_rate,
    )
