"""
Pure domain layer.

Decimal value helpers and the pinned rounding policy, with NO
dependencies on databases, clocks or I/O.
"""

from payroll_kernel.domain.values import (
    MONEY_QUANTUM,
    MONEY_ROUNDING,
    ONE,
    ZERO,
    non_negative,
    non_negative_int,
    positive,
    round_hours,
    round_money,
    round_rate,
    to_decimal,
)

__all__ = [
    "MONEY_QUANTUM",
    "MONEY_ROUNDING",
    "ONE",
    "ZERO",
    "non_negative",
    "non_negative_int",
    "positive",
    "round_hours",
    "round_money",
    "round_rate",
    "to_decimal",
]
