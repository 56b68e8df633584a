"""
Values -- Decimal coercion and the pinned rounding policy.

Responsibility:
    Provides the primitives every payroll engine uses to accept numeric
    input and to produce monetary output: coercion to ``Decimal``,
    non-negativity checks, and the single rounding policy applied to
    every published amount.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every engine. No outward dependencies except
    payroll_kernel.exceptions.

Invariants enforced:
    - Decimal-only arithmetic: floats are converted through ``str()`` so
      binary representation error never reaches a calculation.
    - Rounding policy is a pinned constant: ``MONEY_ROUNDING`` is
      ``ROUND_HALF_UP`` to ``MONEY_QUANTUM`` (two places). Engines round
      once, at the end of each public function.
    - NaN and infinity are rejected at the boundary.

Failure modes:
    - InvalidInputError when a value cannot be converted, is not finite,
      or violates a sign constraint.

Audit relevance:
    Changing ``MONEY_ROUNDING`` changes published payroll figures. The
    constant is covered by a dedicated test so a change is never silent.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from payroll_kernel.exceptions import InvalidInputError

ZERO = Decimal("0")
ONE = Decimal("1")

# Pinned rounding policy for every monetary result
MONEY_QUANTUM = Decimal("0.01")
MONEY_ROUNDING = ROUND_HALF_UP

# Effective tax rates are reported to six places
RATE_QUANTUM = Decimal("0.000001")

# Converted (legal) hours are reported to four places
HOURS_QUANTUM = Decimal("0.0001")


def to_decimal(value: Any, field: str) -> Decimal:
    """
    Coerce a numeric input to ``Decimal``.

    Preconditions:
        - value is a Decimal, int, str or float (bool is rejected).

    Postconditions:
        - Returns a finite Decimal. Floats go through ``str()`` first.

    Raises:
        InvalidInputError: If the value is not numeric or not finite.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidInputError(field, value, "must be a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str, float)):
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise InvalidInputError(field, value, "must be a number") from e
    else:
        raise InvalidInputError(field, value, f"unsupported type {type(value).__name__}")

    if not result.is_finite():
        raise InvalidInputError(field, value, "must be finite")
    return result


def non_negative(value: Any, field: str) -> Decimal:
    """Coerce to Decimal and reject negative values."""
    result = to_decimal(value, field)
    if result < ZERO:
        raise InvalidInputError(field, value, "must not be negative")
    return result


def positive(value: Any, field: str) -> Decimal:
    """Coerce to Decimal and reject zero or negative values."""
    result = to_decimal(value, field)
    if result <= ZERO:
        raise InvalidInputError(field, value, "must be positive")
    return result


def non_negative_int(value: Any, field: str) -> int:
    """Validate a non-negative integer count (days, dependents, months)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(field, value, "must be an integer")
    if value < 0:
        raise InvalidInputError(field, value, "must not be negative")
    return value


def round_money(amount: Decimal) -> Decimal:
    """
    Round a monetary amount with the pinned policy.

    Postconditions:
        - Returns ``amount`` quantized to ``MONEY_QUANTUM`` using
          ``MONEY_ROUNDING``. Negative zero is normalized to zero.
    """
    rounded = amount.quantize(MONEY_QUANTUM, rounding=MONEY_ROUNDING)
    if rounded.is_zero():
        return Decimal("0.00")
    return rounded


def round_rate(rate: Decimal) -> Decimal:
    """Round a ratio (effective tax rate) to ``RATE_QUANTUM``."""
    return rate.quantize(RATE_QUANTUM, rounding=MONEY_ROUNDING)


def round_hours(hours: Decimal) -> Decimal:
    """Round an hour quantity to ``HOURS_QUANTUM``."""
    return hours.quantize(HOURS_QUANTUM, rounding=MONEY_ROUNDING)
