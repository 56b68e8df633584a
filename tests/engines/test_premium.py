"""Tests for night-shift, unhealthy-work, hazard and overtime premiums."""

from decimal import Decimal

import pytest

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
from payroll_kernel.exceptions import ConfigurationError, InvalidInputError

NIGHT_FACTOR = Decimal("60") / Decimal("52.5")

GRADE_RATES = {
    InsalubrityGrade.LOW: Decimal("0.10"),
    InsalubrityGrade.MEDIUM: Decimal("0.20"),
    InsalubrityGrade.HIGH: Decimal("0.40"),
}


class TestNightShift:
    def test_bonus(self):
        """Night premium on clock hours."""
        assert night_shift_bonus(Decimal("10"), Decimal("20.00"), Decimal("0.20")) == Decimal("40.00")

    def test_bonus_rounds_half_up(self):
        """Half-cent results round up."""
        # 1 * 0.125 * 0.2 = 0.025
        assert night_shift_bonus(Decimal("1"), Decimal("0.125"), Decimal("0.20")) == Decimal("0.03")

    def test_seven_clock_hours_are_eight_legal_hours(self):
        """Seven clock hours are eight legal hours."""
        assert night_hours_reduction(Decimal("7"), NIGHT_FACTOR) == Decimal("8.0000")

    def test_reduction_keeps_four_places(self):
        """Legal hours keep four decimal places."""
        assert night_hours_reduction(Decimal("1"), NIGHT_FACTOR) == Decimal("1.1429")

    def test_reduction_factor_is_injected(self):
        """The factor is supplied by the caller."""
        assert night_hours_reduction(Decimal("6"), Decimal("1")) == Decimal("6.0000")

    def test_zero_factor_rejected(self):
        """Rejects a zero factor."""
        with pytest.raises(InvalidInputError, match="reduction_factor"):
            night_hours_reduction(Decimal("7"), Decimal("0"))

    def test_negative_hours_rejected(self):
        """Rejects negative hours."""
        with pytest.raises(InvalidInputError, match="night_hours"):
            night_shift_bonus(Decimal("-1"), Decimal("20.00"), Decimal("0.20"))


class TestUnhealthyWork:
    def test_bonus(self):
        """Insalubrity is a share of the reference wage."""
        assert unhealthy_work_bonus(Decimal("1412.00"), Decimal("0.20")) == Decimal("282.40")

    @pytest.mark.parametrize(
        "grade,expected",
        [
            (InsalubrityGrade.LOW, Decimal("141.20")),
            (InsalubrityGrade.MEDIUM, Decimal("282.40")),
            (InsalubrityGrade.HIGH, Decimal("564.80")),
        ],
    )
    def test_by_grade(self, grade, expected):
        """Each grade maps to its rate."""
        assert unhealthy_work_bonus_for_grade(Decimal("1412.00"), grade, GRADE_RATES) == expected

    def test_grade_given_as_string(self):
        """Accepts a grade by name."""
        assert unhealthy_work_bonus_for_grade(Decimal("1412.00"), "HIGH", GRADE_RATES) == Decimal("564.80")

    def test_unknown_grade_rejected(self):
        """Rejects an unknown grade."""
        with pytest.raises(InvalidInputError, match="grade"):
            unhealthy_work_bonus_for_grade(Decimal("1412.00"), "extreme", GRADE_RATES)

    def test_grade_missing_from_table(self):
        """A grade missing from the table is a configuration error."""
        rates = {InsalubrityGrade.LOW: Decimal("0.10")}
        with pytest.raises(ConfigurationError, match="medium"):
            unhealthy_work_bonus_for_grade(Decimal("1412.00"), InsalubrityGrade.MEDIUM, rates)

    def test_negative_percentage_rejected(self):
        """Rejects a negative percentage."""
        with pytest.raises(InvalidInputError, match="grade_percent"):
            unhealthy_work_bonus(Decimal("1412.00"), Decimal("-0.10"))


class TestHazard:
    def test_bonus(self):
        """Hazard pay is a share of base salary."""
        assert hazard_bonus(Decimal("3000.00"), Decimal("0.30")) == Decimal("900.00")

    def test_zero_percent(self):
        """A zero percentage pays nothing."""
        assert hazard_bonus(Decimal("3000.00"), Decimal("0")) == Decimal("0.00")

    def test_negative_percentage_rejected(self):
        """Rejects a negative percentage."""
        with pytest.raises(InvalidInputError, match="hazard_percent"):
            hazard_bonus(Decimal("3000.00"), Decimal("-0.30"))


class TestOvertime:
    def test_hourly_rate_is_unrounded(self):
        """The hourly rate is kept unrounded."""
        rate = hourly_rate(Decimal("3000.00"), Decimal("220"))

        assert rate == Decimal("3000.00") / Decimal("220")

    def test_overtime_50(self):
        """Overtime at 50%."""
        assert overtime_pay(Decimal("10"), Decimal("10.00"), Decimal("1.5")) == Decimal("150.00")

    def test_overtime_100(self):
        """Overtime at 100%."""
        rate = hourly_rate(Decimal("3000.00"), Decimal("220"))

        # 2 * 13.6363... * 2 = 54.5454...
        assert overtime_pay(Decimal("2"), rate, Decimal("2")) == Decimal("54.55")

    def test_zero_monthly_hours_rejected(self):
        """Rejects a zero hour divisor."""
        with pytest.raises(InvalidInputError, match="monthly_hours"):
            hourly_rate(Decimal("3000.00"), Decimal("0"))
