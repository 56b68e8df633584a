"""
Statutory rule-set schema.

Frozen dataclasses describing one effective-dated set of legal
constants: contribution and income-tax tables, the minimum wage,
premium percentages, notice and unemployment thresholds, and employer
charge rates.  Declarative data only; the engines never import this
module (see ``payroll_config.bridges``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

SIXTY_MINUTES = Decimal("60")


# ---------------------------------------------------------------------------
# Scope
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleSetScope:
    """Where and when a rule set applies."""

    jurisdiction: str  # e.g. "BR"
    currency: str
    effective_from: date
    effective_to: date | None = None

    def covers(self, as_of_date: date) -> bool:
        return self.effective_from <= as_of_date and (
            self.effective_to is None or as_of_date <= self.effective_to
        )


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BracketDef:
    lower_bound: Decimal
    upper_bound: Decimal | None
    rate: Decimal
    cumulative_deduction: Decimal = Decimal("0")


@dataclass(frozen=True)
class TableDef:
    name: str
    brackets: tuple[BracketDef, ...]
    ceiling: Decimal | None = None


@dataclass(frozen=True)
class IncomeTaxDef:
    table: TableDef
    per_dependent_deduction: Decimal
    simplified_discount_rate: Decimal = Decimal("0")
    simplified_discount_cap: Decimal | None = None
    mode: str = "legal"  # legal, simplified, most_favorable


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NoticeDef:
    base_days: int = 30
    days_per_year: int = 3
    max_days: int = 90


@dataclass(frozen=True)
class UnemploymentDef:
    min_tenure_months: int = 12
    months_per_guide: int = 6
    max_guides: int = 5


@dataclass(frozen=True)
class PremiumDef:
    night_bonus_rate: Decimal
    night_hour_minutes: Decimal  # Length of a legal night hour
    hazard_rate: Decimal
    overtime_multiplier_50: Decimal = Decimal("1.5")
    overtime_multiplier_100: Decimal = Decimal("2")
    insalubrity_rates: tuple[tuple[str, Decimal], ...] = ()  # (grade, rate of minimum wage)

    @property
    def night_reduction_factor(self) -> Decimal:
        return SIXTY_MINUTES / self.night_hour_minutes


@dataclass(frozen=True)
class ChargesDef:
    fgts_rate: Decimal
    employer_inss_rate: Decimal
    rat_rate: Decimal
    third_party_rate: Decimal


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StatutoryRuleSet:
    """
    One complete, effective-dated set of payroll legal constants.

    Resolved once by the caller through ``get_active_rules`` and then
    passed, translated by the bridges, into every engine call.
    """

    rule_set_id: str
    version: int
    scope: RuleSetScope
    minimum_wage: Decimal
    monthly_hours: Decimal
    inss: TableDef
    irrf: IncomeTaxDef
    fgts_fine_rate: Decimal
    thirteenth_advance_rate: Decimal
    premiums: PremiumDef
    charges: ChargesDef
    notice: NoticeDef = field(default_factory=NoticeDef)
    unemployment: UnemploymentDef = field(default_factory=UnemploymentDef)
    description: str = ""
    checksum: str = ""  # SHA-256 of the source document
