"""
Shared fixtures for the payroll engine test suite.

The 2024 Brazilian tables are built programmatically here so engine
tests do not depend on the YAML loader; config tests cover the loader
and compare its output with these fixtures.
"""

from decimal import Decimal

import pytest

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
from payroll_kernel.logging_config import LogContext, reset_logging


@pytest.fixture(autouse=True)
def _isolated_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def clean_logging():
    reset_logging()
    yield
    reset_logging()


def build_inss_2024() -> BracketTable:
    return BracketTable(
        name="INSS",
        brackets=(
            TaxBracket(Decimal("0"), Decimal("1412.00"), Decimal("0.075")),
            TaxBracket(Decimal("1412.00"), Decimal("2666.68"), Decimal("0.09"), Decimal("21.18")),
            TaxBracket(Decimal("2666.68"), Decimal("4000.03"), Decimal("0.12"), Decimal("101.18")),
            TaxBracket(Decimal("4000.03"), None, Decimal("0.14"), Decimal("181.18")),
        ),
        ceiling=Decimal("7786.02"),
    )


def build_irrf_2024() -> IncomeTaxRules:
    return IncomeTaxRules(
        table=BracketTable(
            name="IRRF",
            brackets=(
                TaxBracket(Decimal("0"), Decimal("2259.20"), Decimal("0")),
                TaxBracket(Decimal("2259.20"), Decimal("2826.65"), Decimal("0.075"), Decimal("169.44")),
                TaxBracket(Decimal("2826.65"), Decimal("3751.05"), Decimal("0.15"), Decimal("381.44")),
                TaxBracket(Decimal("3751.05"), Decimal("4664.68"), Decimal("0.225"), Decimal("662.77")),
                TaxBracket(Decimal("4664.68"), None, Decimal("0.275"), Decimal("896.00")),
            ),
        ),
        per_dependent_deduction=Decimal("189.59"),
        simplified_discount_rate=Decimal("1"),
        simplified_discount_cap=Decimal("564.80"),
    )


@pytest.fixture
def inss_2024() -> BracketTable:
    return build_inss_2024()


@pytest.fixture
def irrf_2024() -> IncomeTaxRules:
    return build_irrf_2024()


@pytest.fixture
def withholding_2024() -> WithholdingRules:
    return WithholdingRules(
        inss=build_inss_2024(),
        irrf=build_irrf_2024(),
        irrf_mode=IncomeTaxMode.LEGAL,
    )


def build_termination_rules_2024(withholding: WithholdingRules) -> TerminationRules:
    return TerminationRules(
        withholding=withholding,
        fgts_fine_rate=Decimal("0.40"),
        notice=NoticeRules(base_days=30, days_per_year=3, max_days=90),
        unemployment=UnemploymentRules(min_tenure_months=12, months_per_guide=6, max_guides=5),
    )


def build_payslip_rules_2024(withholding: WithholdingRules) -> PayslipRules:
    return PayslipRules(
        withholding=withholding,
        minimum_wage=Decimal("1412.00"),
        monthly_hours=Decimal("220"),
        overtime_multiplier_50=Decimal("1.5"),
        overtime_multiplier_100=Decimal("2"),
        night_bonus_rate=Decimal("0.20"),
        night_reduction_factor=Decimal("60") / Decimal("52.5"),
        hazard_rate=Decimal("0.30"),
        fgts_rate=Decimal("0.08"),
        insalubrity_rates={
            InsalubrityGrade.LOW: Decimal("0.10"),
            InsalubrityGrade.MEDIUM: Decimal("0.20"),
            InsalubrityGrade.HIGH: Decimal("0.40"),
        },
    )


def build_charge_rates_2024() -> ChargeRates:
    return ChargeRates(
        employer_inss_rate=Decimal("0.20"),
        rat_rate=Decimal("0.03"),
        third_party_rate=Decimal("0.058"),
    )


@pytest.fixture
def termination_rules_2024(withholding_2024) -> TerminationRules:
    return build_termination_rules_2024(withholding_2024)


@pytest.fixture
def payslip_rules_2024(withholding_2024) -> PayslipRules:
    return build_payslip_rules_2024(withholding_2024)


@pytest.fixture
def charge_rates_2024() -> ChargeRates:
    return build_charge_rates_2024()
