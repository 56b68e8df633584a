"""
Bracket Evaluator - Progressive withholding tables (INSS, IRRF).

Evaluates a progressive table in the statutory "rate minus cumulative
deduction" form: the bracket containing the base is located and
``tax = base * rate - cumulative_deduction`` (floored at zero).

Pure functions with no I/O - tables are provided as parameters and are
never embedded here, because they change with fiscal-year legislation.

Boundary rule (upper-inclusive):
    A bracket covers ``(lower_bound, upper_bound]``; the first bracket also
    includes its lower bound.  A base exactly on a boundary is evaluated
    in the LOWER bracket.

Usage:
    from decimal import Decimal
    from payroll_engines.brackets import BracketTable, TaxBracket, evaluate_progressive

    table = BracketTable(
        name="INSS",
        brackets=(
            TaxBracket(Decimal("0"), Decimal("1412.00"), Decimal("0.075")),
            TaxBracket(Decimal("1412.00"), None, Decimal("0.09"), Decimal("21.18")),
        ),
    )
    result = evaluate_progressive(table, Decimal("2000.00"))
    print(result.tax)  # Decimal("158.82")
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.values import (
    ONE,
    ZERO,
    non_negative,
    non_negative_int,
    round_money,
    round_rate,
    to_decimal,
)
from payroll_kernel.exceptions import ConfigurationError, InvalidInputError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.brackets")


class IncomeTaxMode(str, Enum):
    """How the income-tax base is reduced before bracket lookup."""

    LEGAL = "legal"  # Per-dependent deductions
    SIMPLIFIED = "simplified"  # Flat statutory discount instead of dependents
    MOST_FAVORABLE = "most_favorable"  # Lower of the two; ties go to LEGAL


def _config_decimal(value: Any, table: str, field: str) -> Decimal:
    try:
        return to_decimal(value, field)
    except InvalidInputError as e:
        raise ConfigurationError(table, f"{field}: {e.reason}") from e


@dataclass(frozen=True)
class TaxBracket:
    """
    One row of a progressive table.

    upper_bound None means unbounded (only allowed on the last row).
    """

    lower_bound: Decimal
    upper_bound: Decimal | None
    rate: Decimal  # As decimal (e.g., 0.075 for 7.5%)
    cumulative_deduction: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "lower_bound", _config_decimal(self.lower_bound, "bracket", "lower_bound")
        )
        if self.upper_bound is not None:
            object.__setattr__(
                self, "upper_bound", _config_decimal(self.upper_bound, "bracket", "upper_bound")
            )
        object.__setattr__(self, "rate", _config_decimal(self.rate, "bracket", "rate"))
        object.__setattr__(
            self,
            "cumulative_deduction",
            _config_decimal(self.cumulative_deduction, "bracket", "cumulative_deduction"),
        )

    @property
    def is_unbounded(self) -> bool:
        return self.upper_bound is None

    def raw_tax(self, base: Decimal) -> Decimal:
        """Unrounded, unfloored tax for a base inside this bracket."""
        return base * self.rate - self.cumulative_deduction


@dataclass(frozen=True)
class BracketTable:
    """
    A named, ordered progressive table.

    ceiling caps the base before lookup (contribution ceiling); None
    means the base is never capped.
    """

    name: str
    brackets: tuple[TaxBracket, ...]
    ceiling: Decimal | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.brackets, tuple):
            object.__setattr__(self, "brackets", tuple(self.brackets))
        if self.ceiling is not None:
            object.__setattr__(
                self, "ceiling", _config_decimal(self.ceiling, self.name, "ceiling")
            )


@dataclass(frozen=True)
class BracketEvaluation:
    """Result of evaluating a progressive table."""

    tax: Decimal
    effective_rate: Decimal  # tax / base_amount, six places
    bracket_index: int  # Zero-based row that was applied
    taxable_base: Decimal  # Base after the ceiling was applied


@dataclass(frozen=True)
class IncomeTaxRules:
    """Income-tax table plus the base reductions that precede lookup."""

    table: BracketTable
    per_dependent_deduction: Decimal = ZERO
    simplified_discount_rate: Decimal = ZERO
    simplified_discount_cap: Decimal | None = None

    def __post_init__(self) -> None:
        name = self.table.name
        object.__setattr__(
            self,
            "per_dependent_deduction",
            _config_decimal(self.per_dependent_deduction, name, "per_dependent_deduction"),
        )
        object.__setattr__(
            self,
            "simplified_discount_rate",
            _config_decimal(self.simplified_discount_rate, name, "simplified_discount_rate"),
        )
        if self.simplified_discount_cap is not None:
            object.__setattr__(
                self,
                "simplified_discount_cap",
                _config_decimal(self.simplified_discount_cap, name, "simplified_discount_cap"),
            )
        if self.per_dependent_deduction < ZERO:
            raise ConfigurationError(name, "per_dependent_deduction must not be negative")
        if not ZERO <= self.simplified_discount_rate <= ONE:
            raise ConfigurationError(name, "simplified_discount_rate must be within [0, 1]")
        if self.simplified_discount_cap is not None and self.simplified_discount_cap < ZERO:
            raise ConfigurationError(name, "simplified_discount_cap must not be negative")


@dataclass(frozen=True)
class IncomeTaxEvaluation:
    """Result of an income-tax evaluation, including the method applied."""

    tax: Decimal
    effective_rate: Decimal
    method: IncomeTaxMode  # LEGAL or SIMPLIFIED, never MOST_FAVORABLE
    deduction: Decimal  # Amount subtracted from the base before lookup
    taxable_base: Decimal
    bracket_index: int


@dataclass(frozen=True)
class WithholdingRules:
    """Social-security table and income-tax rules applied together."""

    inss: BracketTable
    irrf: IncomeTaxRules
    irrf_mode: IncomeTaxMode = IncomeTaxMode.LEGAL


@dataclass(frozen=True)
class Withholding:
    """INSS and IRRF withheld from one taxable amount."""

    inss: Decimal
    irrf: Decimal
    irrf_method: IncomeTaxMode

    @property
    def total(self) -> Decimal:
        return self.inss + self.irrf


# ---------------------------------------------------------------------------
# Table validation
# ---------------------------------------------------------------------------


def _as_table(table: BracketTable | Sequence[TaxBracket]) -> BracketTable:
    if isinstance(table, BracketTable):
        return table
    return BracketTable(name="table", brackets=tuple(table))


def validate_table(table: BracketTable | Sequence[TaxBracket]) -> None:
    """
    Check the structural invariants of a progressive table.

    Preconditions:
        - None; any table may be passed.

    Postconditions:
        - Returns None when the table is non-empty, starts at zero, is
          ordered ascending, contiguous and non-overlapping, has only its
          last row unbounded, rates within [0, 1], non-negative
          deductions and a positive ceiling.

    Raises:
        ConfigurationError: On the first violated invariant.
    """
    table = _as_table(table)
    name = table.name
    brackets = table.brackets

    def reject(reason: str) -> None:
        logger.error("bracket_table_rejected", extra={
            "table": name,
            "reason": reason,
            "bracket_count": len(brackets),
        })
        raise ConfigurationError(name, reason)

    if not brackets:
        reject("table is empty")
    if brackets[0].lower_bound != ZERO:
        reject(f"first bracket must start at 0, got {brackets[0].lower_bound}")
    if table.ceiling is not None and table.ceiling <= ZERO:
        reject(f"ceiling must be positive, got {table.ceiling}")

    previous: TaxBracket | None = None
    for index, bracket in enumerate(brackets):
        if not ZERO <= bracket.rate <= ONE:
            reject(f"bracket {index} rate {bracket.rate} outside [0, 1]")
        if bracket.cumulative_deduction < ZERO:
            reject(f"bracket {index} has a negative cumulative deduction")
        if bracket.upper_bound is not None and bracket.upper_bound <= bracket.lower_bound:
            reject(f"bracket {index} upper bound must exceed its lower bound")
        if bracket.upper_bound is None and index != len(brackets) - 1:
            reject(f"bracket {index} is unbounded but is not the last bracket")
        if previous is not None:
            if bracket.lower_bound < previous.upper_bound:
                reject(f"bracket {index} overlaps bracket {index - 1}")
            if bracket.lower_bound > previous.upper_bound:
                reject(f"gap between bracket {index - 1} and bracket {index}")
        previous = bracket

    if brackets[-1].upper_bound is not None:
        reject("last bracket must be unbounded")


# ---------------------------------------------------------------------------
# Unrounded internals shared by the aggregate engines
# ---------------------------------------------------------------------------


def _select_bracket(table: BracketTable, base: Decimal) -> int:
    for index, bracket in enumerate(table.brackets):
        if bracket.upper_bound is None or base <= bracket.upper_bound:
            return index
    # validate_table guarantees an unbounded last row
    raise ConfigurationError(table.name, "no bracket covers the base")


def _progressive_tax(table: BracketTable, base: Decimal) -> tuple[Decimal, int, Decimal]:
    """Return (unrounded tax, bracket index, capped base)."""
    capped = base
    if table.ceiling is not None and capped > table.ceiling:
        capped = table.ceiling
    index = _select_bracket(table, capped)
    tax = table.brackets[index].raw_tax(capped)
    return max(tax, ZERO), index, capped


@dataclass(frozen=True)
class _IncomeTaxComputation:
    tax: Decimal
    method: IncomeTaxMode
    deduction: Decimal
    taxable_base: Decimal
    bracket_index: int


def _legal_income_tax(
    rules: IncomeTaxRules, base: Decimal, dependents_count: int
) -> _IncomeTaxComputation:
    deduction = rules.per_dependent_deduction * dependents_count
    reduced = max(base - deduction, ZERO)
    tax, index, capped = _progressive_tax(rules.table, reduced)
    return _IncomeTaxComputation(tax, IncomeTaxMode.LEGAL, deduction, capped, index)


def _simplified_income_tax(rules: IncomeTaxRules, base: Decimal) -> _IncomeTaxComputation:
    discount = base * rules.simplified_discount_rate
    if rules.simplified_discount_cap is not None:
        discount = min(discount, rules.simplified_discount_cap)
    reduced = max(base - discount, ZERO)
    tax, index, capped = _progressive_tax(rules.table, reduced)
    return _IncomeTaxComputation(tax, IncomeTaxMode.SIMPLIFIED, discount, capped, index)


def _income_tax(
    rules: IncomeTaxRules,
    base: Decimal,
    dependents_count: int,
    mode: IncomeTaxMode,
) -> _IncomeTaxComputation:
    if mode == IncomeTaxMode.LEGAL:
        return _legal_income_tax(rules, base, dependents_count)
    if mode == IncomeTaxMode.SIMPLIFIED:
        return _simplified_income_tax(rules, base)

    legal = _legal_income_tax(rules, base, dependents_count)
    simplified = _simplified_income_tax(rules, base)
    # Compared at published precision; a tie keeps the legal method
    if round_money(simplified.tax) < round_money(legal.tax):
        return simplified
    return legal


def _withholding(
    rules: WithholdingRules, taxable: Decimal, dependents_count: int
) -> tuple[Decimal, Decimal, IncomeTaxMode]:
    """Return unrounded (inss, irrf, irrf method) for one taxable amount."""
    validate_table(rules.inss)
    validate_table(rules.irrf.table)
    inss, _, _ = _progressive_tax(rules.inss, taxable)
    irrf = _income_tax(rules.irrf, max(taxable - inss, ZERO), dependents_count, rules.irrf_mode)
    return inss, irrf.tax, irrf.method


def _effective_rate(tax: Decimal, base: Decimal) -> Decimal:
    if base == ZERO:
        return round_rate(ZERO)
    return round_rate(tax / base)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


@traced_engine("brackets", "1.0", fingerprint_fields=("table", "base_amount"))
def evaluate_progressive(
    table: BracketTable | Sequence[TaxBracket],
    base_amount: Decimal,
) -> BracketEvaluation:
    """
    Evaluate a progressive table against a base amount.

    Preconditions:
        - base_amount >= 0.
        - table satisfies ``validate_table``.

    Postconditions:
        - tax = max(0, capped_base * rate - cumulative_deduction) of the
          bracket containing the capped base, rounded half-up to cents.
        - effective_rate = tax / base_amount (0 for a zero base).
        - Non-decreasing in base_amount for continuous tables.

    Raises:
        InvalidInputError: If base_amount is negative or not numeric.
        ConfigurationError: If the table is invalid.
    """
    table = _as_table(table)
    base = non_negative(base_amount, "base_amount")
    validate_table(table)

    raw_tax, index, capped = _progressive_tax(table, base)
    tax = round_money(raw_tax)

    logger.debug("progressive_table_evaluated", extra={
        "table": table.name,
        "base_amount": str(base),
        "taxable_base": str(capped),
        "bracket_index": index,
        "tax": str(tax),
    })

    return BracketEvaluation(
        tax=tax,
        effective_rate=_effective_rate(tax, base),
        bracket_index=index,
        taxable_base=capped,
    )


def _publish_income_tax(base: Decimal, computed: _IncomeTaxComputation) -> IncomeTaxEvaluation:
    tax = round_money(computed.tax)
    return IncomeTaxEvaluation(
        tax=tax,
        effective_rate=_effective_rate(tax, base),
        method=computed.method,
        deduction=round_money(computed.deduction),
        taxable_base=computed.taxable_base,
        bracket_index=computed.bracket_index,
    )


@traced_engine(
    "brackets", "1.0", fingerprint_fields=("rules", "base_amount", "dependents_count", "mode")
)
def evaluate_income_tax(
    rules: IncomeTaxRules,
    base_amount: Decimal,
    dependents_count: int = 0,
    mode: IncomeTaxMode = IncomeTaxMode.LEGAL,
) -> IncomeTaxEvaluation:
    """
    Evaluate income tax (IRRF) on a base already net of social security.

    LEGAL subtracts ``dependents_count * per_dependent_deduction``;
    SIMPLIFIED subtracts ``min(base * simplified_discount_rate, cap)``;
    MOST_FAVORABLE evaluates both and keeps the lower tax, resolving a
    tie to LEGAL.  The reduced base is floored at zero.

    Raises:
        InvalidInputError: If base_amount or dependents_count is negative.
        ConfigurationError: If the table is invalid.
    """
    base = non_negative(base_amount, "base_amount")
    dependents = non_negative_int(dependents_count, "dependents_count")
    mode = IncomeTaxMode(mode)
    validate_table(rules.table)

    computed = _income_tax(rules, base, dependents, mode)

    logger.debug("income_tax_evaluated", extra={
        "table": rules.table.name,
        "base_amount": str(base),
        "requested_mode": mode.value,
        "applied_method": computed.method.value,
        "deduction": str(computed.deduction),
        "tax": str(computed.tax),
    })

    return _publish_income_tax(base, computed)


@traced_engine("brackets", "1.0", fingerprint_fields=("rules", "base_amount"))
def evaluate_simplified(
    rules: IncomeTaxRules,
    base_amount: Decimal,
) -> IncomeTaxEvaluation:
    """
    Evaluate income tax with the flat simplified discount.

    Raises:
        InvalidInputError: If base_amount is negative.
        ConfigurationError: If the table is invalid.
    """
    base = non_negative(base_amount, "base_amount")
    validate_table(rules.table)
    return _publish_income_tax(base, _simplified_income_tax(rules, base))


@traced_engine(
    "brackets", "1.0", fingerprint_fields=("rules", "taxable_amount", "dependents_count")
)
def withhold(
    rules: WithholdingRules,
    taxable_amount: Decimal,
    dependents_count: int = 0,
) -> Withholding:
    """
    Withhold INSS on a taxable amount and IRRF on the amount net of INSS.

    Both values are computed at full precision and rounded once.

    Raises:
        InvalidInputError: If taxable_amount or dependents_count is negative.
        ConfigurationError: If either table is invalid.
    """
    taxable = non_negative(taxable_amount, "taxable_amount")
    dependents = non_negative_int(dependents_count, "dependents_count")
    inss, irrf, method = _withholding(rules, taxable, dependents)
    return Withholding(inss=round_money(inss), irrf=round_money(irrf), irrf_method=method)
