"""
Property-based tests for the payroll engines.

Properties checked over generated inputs:
- Progressive tables: non-negative, never above the base, monotone
- Withholding: INSS + IRRF never exceed the taxable amount
- Termination: total_net == total_gross - total_deductions and the gross
  total is the sum of its rounded components, for every termination type
- Notice period within [30, 90]
- 13th salary: first + second installment == full-year value
- 15-day month rule for hires within the year
- Same inputs, same result and same fingerprint
"""

import calendar
from datetime import date, timedelta
from decimal import Decimal

from hypothesis import HealthCheck, assume, given, settings
from hypothesis import strategies as st

from payroll_engines.brackets import WithholdingRules, evaluate_income_tax, evaluate_progressive, withhold
from payroll_engines.proration import months_worked_in_year, notice_period_days
from payroll_engines.termination import (
    TerminationRequest,
    TerminationType,
    calculate_termination,
)
from payroll_engines.thirteenth import calculate_full_year_thirteenth
from payroll_engines.tracer import compute_input_fingerprint
from payroll_engines.vacation import calculate_vacation, entitled_vacation_days
from tests.conftest import build_inss_2024, build_irrf_2024, build_termination_rules_2024

INSS = build_inss_2024()
IRRF = build_irrf_2024()
WITHHOLDING = WithholdingRules(inss=INSS, irrf=IRRF)
TERMINATION_RULES = build_termination_rules_2024(WITHHOLDING)

amounts = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("50000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
salaries = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("30000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
dates = st.dates(min_value=date(1990, 1, 1), max_value=date(2030, 12, 31))

PROPERTY_SETTINGS = settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])


class TestProgressiveTables:
    @given(base=amounts)
    @PROPERTY_SETTINGS
    def test_tax_bounded_by_base(self, base):
        tax = evaluate_progressive(INSS, base).tax

        assert Decimal("0") <= tax <= base

    @given(a=amounts, b=amounts)
    @PROPERTY_SETTINGS
    def test_inss_monotone(self, a, b):
        low, high = sorted((a, b))

        assert evaluate_progressive(INSS, low).tax <= evaluate_progressive(INSS, high).tax

    @given(a=amounts, b=amounts)
    @PROPERTY_SETTINGS
    def test_irrf_monotone(self, a, b):
        low, high = sorted((a, b))

        assert evaluate_income_tax(IRRF, low).tax <= evaluate_income_tax(IRRF, high).tax

    @given(base=amounts)
    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow, HealthCheck.filter_too_much])
    def test_inss_capped_at_ceiling(self, base):
        assume(base >= INSS.ceiling)

        assert evaluate_progressive(INSS, base).tax == evaluate_progressive(INSS, INSS.ceiling).tax


class TestWithholding:
    @given(taxable=amounts, dependents=st.integers(min_value=0, max_value=10))
    @PROPERTY_SETTINGS
    def test_never_exceeds_taxable(self, taxable, dependents):
        result = withhold(WITHHOLDING, taxable, dependents)

        assert result.inss >= 0
        assert result.irrf >= 0
        assert result.total <= taxable

    @given(taxable=amounts, dependents=st.integers(min_value=0, max_value=9))
    @PROPERTY_SETTINGS
    def test_more_dependents_never_raise_irrf(self, taxable, dependents):
        fewer = withhold(WITHHOLDING, taxable, dependents)
        more = withhold(WITHHOLDING, taxable, dependents + 1)

        assert more.irrf <= fewer.irrf


@st.composite
def termination_requests(draw):
    hire = draw(dates)
    terminated = hire + timedelta(days=draw(st.integers(min_value=0, max_value=40 * 366)))
    return TerminationRequest(
        termination_type=draw(st.sampled_from(list(TerminationType))),
        hire_date=hire,
        termination_date=terminated,
        base_salary=draw(salaries),
        notice_period_indemnity=draw(st.booleans()),
        dependents_count=draw(st.integers(min_value=0, max_value=5)),
        fgts_balance=draw(amounts),
        unused_vacation_days=draw(st.integers(min_value=0, max_value=30)),
    )


class TestTerminationProperties:
    @given(request=termination_requests())
    @PROPERTY_SETTINGS
    def test_conservation(self, request):
        result = calculate_termination(request, TERMINATION_RULES)

        assert result.total_net == result.total_gross - result.total_deductions
        assert result.total_gross == (
            result.salary_balance
            + result.notice_period_value
            + result.vacation_balance
            + result.vacation_proportional
            + result.vacation_one_third
            + result.thirteenth_proportional
            + result.fgts_fine
        )

    @given(request=termination_requests())
    @PROPERTY_SETTINGS
    def test_components_non_negative_and_rounded(self, request):
        result = calculate_termination(request, TERMINATION_RULES)

        for value in (
            result.salary_balance,
            result.notice_period_value,
            result.vacation_one_third,
            result.thirteenth_proportional,
            result.fgts_fine,
            result.inss_deduction,
            result.irrf_deduction,
        ):
            assert value >= 0
            assert value == value.quantize(Decimal("0.01"))

    @given(request=termination_requests())
    @PROPERTY_SETTINGS
    def test_guides_within_limits(self, request):
        result = calculate_termination(request, TERMINATION_RULES)

        assert 0 <= result.unemployment_guides <= 5
        assert result.eligible_for_unemployment == (result.unemployment_guides > 0)

    @given(request=termination_requests())
    @settings(max_examples=50)
    def test_deterministic(self, request):
        first = calculate_termination(request, TERMINATION_RULES)
        second = calculate_termination(request, TERMINATION_RULES)

        assert first == second
        assert compute_input_fingerprint(("request",), {"request": request}) == (
            compute_input_fingerprint(("request",), {"request": request})
        )


class TestNoticeProperties:
    @given(hire=dates, days=st.integers(min_value=0, max_value=60 * 366))
    @PROPERTY_SETTINGS
    def test_within_bounds(self, hire, days):
        notice = notice_period_days(hire, hire + timedelta(days=days))

        assert 30 <= notice <= 90
        assert notice % 3 == 0


class TestThirteenthProperties:
    @given(
        base=salaries,
        hire=dates,
        year=st.integers(min_value=1995, max_value=2030),
        advance_rate=st.decimals(min_value=Decimal("0"), max_value=Decimal("1"), places=2),
    )
    @PROPERTY_SETTINGS
    def test_installments_add_up(self, base, hire, year, advance_rate):
        result = calculate_full_year_thirteenth(base, hire, year, advance_rate, WITHHOLDING)

        assert result.first.gross_value + result.second.gross_value == result.full_year_value
        assert result.second.net_value == (
            result.second.gross_value - result.second.inss_deduction - result.second.irrf_deduction
        )


class TestFifteenDayRule:
    @given(year=st.integers(min_value=1990, max_value=2030), data=st.data())
    @PROPERTY_SETTINGS
    def test_hire_month_counts_with_15_days(self, year, data):
        month = data.draw(st.integers(min_value=1, max_value=12))
        last_day = calendar.monthrange(year, month)[1]
        day = data.draw(st.integers(min_value=1, max_value=last_day))

        months = months_worked_in_year(date(year, month, day), date(year, 12, 31))

        hire_month_counts = last_day - day + 1 >= 15
        assert months == (12 - month) + int(hire_month_counts)


class TestVacationProperties:
    @given(
        base=salaries,
        months=st.integers(min_value=0, max_value=12),
        dependents=st.integers(min_value=0, max_value=5),
        data=st.data(),
    )
    @PROPERTY_SETTINGS
    def test_net_consistency(self, base, months, dependents, data):
        max_sold = int(entitled_vacation_days(months) / 3)
        sold = data.draw(st.integers(min_value=0, max_value=max_sold))

        result = calculate_vacation(base, months, None, WITHHOLDING, dependents, sold)

        assert result.days_taken + result.sold_days <= result.entitled_days
        assert result.net_pay == (
            result.gross_pay - result.inss_deduction - result.irrf_deduction
        )
