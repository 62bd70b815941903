"""Unit tests for comparator.py — discount points and refinance analysis."""
import logging
from decimal import Decimal

import pytest

from fin_planner.calculator import compute_monthly_payment, compute_monthly_rate
from fin_planner.comparator import (
    PointsScenario,
    RefinanceParameters,
    analyze_refinance,
    compare_scenarios,
    recommend,
    remaining_months,
)
from fin_planner.config import MAX_ITERATIONS

ZERO = Decimal("0")
LOAN = Decimal("320000")


def _payment(balance: str, rate: str, years: int = 30) -> Decimal:
    return compute_monthly_payment(Decimal(balance), compute_monthly_rate(Decimal(rate)), years * 12)


class TestCompareScenarios:
    BASELINE = PointsScenario("Baseline", Decimal("5.625"), is_baseline=True)

    def test_baseline_matches_engine(self):
        [result] = compare_scenarios([self.BASELINE], LOAN, 30)
        assert result.monthly_pi == _payment("320000", "5.625")
        assert result.point_cost == ZERO
        assert result.break_even_months is None
        assert result.monthly_savings == ZERO
        assert result.total_cost == result.monthly_pi * 360

    def test_points_break_even(self):
        one_point = PointsScenario("One point", Decimal("5.375"), Decimal("1"))
        base, bought = compare_scenarios([self.BASELINE, one_point], LOAN, 30)
        assert bought.point_cost == Decimal("3200.00")
        assert bought.monthly_savings == base.monthly_pi - bought.monthly_pi
        assert bought.monthly_savings > ZERO
        assert bought.break_even_months == Decimal("3200.00") / bought.monthly_savings
        assert bought.total_interest < base.total_interest

    def test_horizon_costs(self):
        one_point = PointsScenario("One point", Decimal("5.375"), Decimal("1"))
        _, r = compare_scenarios([self.BASELINE, one_point], LOAN, 30)
        assert r.total_cost_at_5_years == r.point_cost + r.monthly_pi * 60
        assert r.total_cost_at_10_years == r.point_cost + r.monthly_pi * 120
        assert r.total_cost_at_full_term == r.total_cost

    def test_horizon_capped_at_term(self):
        [r] = compare_scenarios([self.BASELINE], LOAN, 4)
        assert r.total_cost_at_5_years == r.monthly_pi * 48
        assert r.total_cost_at_10_years == r.total_cost

    @pytest.mark.parametrize("scenario", [
        PointsScenario("Higher rate", Decimal("6.0")),
        PointsScenario("Lower rate, no points", Decimal("5.5")),
        PointsScenario("Points, same rate", Decimal("5.625"), Decimal("1")),
    ])
    def test_no_break_even(self, scenario):
        _, r = compare_scenarios([self.BASELINE, scenario], LOAN, 30)
        assert r.break_even_months is None

    def test_results_keep_input_order(self):
        scenarios = [
            PointsScenario("A", Decimal("5.25"), Decimal("2")),
            self.BASELINE,
            PointsScenario("B", Decimal("5.5"), Decimal("0.5")),
        ]
        names = [r.scenario.name for r in compare_scenarios(scenarios, LOAN, 30)]
        assert names == ["A", "Baseline", "B"]

    def test_no_baseline_is_empty(self, caplog):
        with caplog.at_level(logging.WARNING, logger="fin_planner.comparator"):
            results = compare_scenarios([PointsScenario("A", Decimal("5"))], LOAN, 30)
        assert results == []
        assert "No baseline" in caplog.text

    def test_first_baseline_wins(self):
        second = PointsScenario("Second", Decimal("6"), is_baseline=True)
        _, r = compare_scenarios([self.BASELINE, second], LOAN, 30)
        assert r.monthly_savings < ZERO

    @pytest.mark.parametrize("loan,term", [(ZERO, 30), (Decimal("-1"), 30), (LOAN, 0)])
    def test_invalid_loan(self, loan, term):
        assert compare_scenarios([self.BASELINE], loan, term) == []


class TestRemainingMonths:
    def test_known_payoff(self):
        # ln(1000 / 500) / ln(1.005) ≈ 138.98
        assert remaining_months(Decimal("100000"), Decimal("6"), Decimal("1000")) == 139

    def test_recovers_original_term(self):
        payment = _payment("200000", "6")
        assert remaining_months(Decimal("200000"), Decimal("6"), payment) in (360, 361)

    def test_zero_rate(self):
        assert remaining_months(Decimal("1000"), ZERO, Decimal("300")) == 4

    def test_payment_never_covers_interest(self):
        assert remaining_months(Decimal("100000"), Decimal("12"), Decimal("500")) == MAX_ITERATIONS

    def test_paid_off(self):
        assert remaining_months(ZERO, Decimal("6"), Decimal("500")) == 0


class TestRecommend:
    @pytest.mark.parametrize(
        "break_even,savings,interest_savings,new_term,remaining,expected_type,expected_analysis",
        [
            (Decimal("12"), Decimal("100"), ZERO, 360, 360, "excellent", "break-even"),
            (None, Decimal("-500"), Decimal("60000"), 180, 360, "excellent", "time-savings"),
            (None, Decimal("-500"), Decimal("30000"), 180, 360, "good", "time-savings"),
            (Decimal("40"), Decimal("100"), ZERO, 360, 360, "good", "break-even"),
            (None, Decimal("-100"), Decimal("5000"), 330, 360, "marginal", "time-savings"),
            (Decimal("100"), Decimal("50"), ZERO, 360, 360, "marginal", "break-even"),
            (None, Decimal("-50"), ZERO, 360, 360, "not-recommended", "break-even"),
            (None, ZERO, ZERO, 360, 360, "not-recommended", "break-even"),
            (Decimal("150"), Decimal("10"), ZERO, 360, 360, "not-recommended", "break-even"),
        ],
    )
    def test_rules_table(
        self, break_even, savings, interest_savings, new_term, remaining,
        expected_type, expected_analysis,
    ):
        verdict = recommend(break_even, savings, interest_savings, new_term, remaining)
        assert verdict.type == expected_type
        assert verdict.analysis_type == expected_analysis

    @pytest.mark.parametrize("break_even,fragment", [
        (Decimal("30"), "break even in 3 years"),
        (Decimal("90"), "takes 8 years"),
    ])
    def test_break_even_years_round_half_up(self, break_even, fragment):
        assert fragment in recommend(break_even, Decimal("50"), ZERO, 360, 360).text

    def test_first_rule_wins(self):
        # Both the break-even and the time-savings rules match.
        verdict = recommend(Decimal("10"), Decimal("100"), Decimal("90000"), 180, 360)
        assert verdict.analysis_type == "break-even"

    @pytest.mark.parametrize("savings,break_even,fragment", [
        (Decimal("-50"), None, "would increase"),
        (ZERO, None, "never recovered"),
        (Decimal("10"), Decimal("150"), "too long"),
    ])
    def test_not_recommended_reasons(self, savings, break_even, fragment):
        verdict = recommend(break_even, savings, ZERO, 360, 360)
        assert fragment in verdict.text


class TestAnalyzeRefinance:
    CURRENT_PAYMENT = _payment("300000", "7")

    def _params(self, **overrides):
        defaults = dict(
            current_balance=Decimal("300000"),
            current_rate=Decimal("7"),
            current_monthly_payment=self.CURRENT_PAYMENT,
            new_rate=Decimal("5.5"),
            new_term_years=30,
            closing_costs=Decimal("6000"),
        )
        defaults.update(overrides)
        return RefinanceParameters(**defaults)

    def test_rate_drop_breaks_even_quickly(self):
        result = analyze_refinance(self._params())
        assert result.is_valid
        assert result.new_loan_amount == Decimal("300000")
        assert result.new_monthly_payment == _payment("300000", "5.5")
        assert result.monthly_savings == self.CURRENT_PAYMENT - result.new_monthly_payment
        assert result.break_even_months == Decimal("6000") / result.monthly_savings
        assert result.break_even_months < 24
        assert result.recommendation_type == "excellent"
        assert result.analysis_type == "break-even"
        assert result.remaining_months in (360, 361)

    def test_costs_and_horizons(self):
        result = analyze_refinance(self._params())
        assert result.cost_at_5_years == Decimal("6000") + result.new_monthly_payment * 60
        assert result.cost_at_10_years == Decimal("6000") + result.new_monthly_payment * 120
        assert result.cost_at_full_term == result.new_total_cost
        assert result.interest_savings == result.current_total_interest - result.new_total_interest
        assert result.net_savings == result.current_total_cost - result.new_total_cost

    def test_points_and_financed_closing_costs(self):
        result = analyze_refinance(
            self._params(new_points=Decimal("1"), finance_closing_costs=True)
        )
        # 1 point on 300000 plus 6000 of closing costs rolled into the loan
        assert result.new_loan_amount == Decimal("309000.00")
        assert result.total_closing_costs == Decimal("9000.00")
        assert result.cost_at_5_years == result.new_monthly_payment * 60

    def test_cash_out_credited_to_net_savings(self):
        result = analyze_refinance(self._params(cash_out=Decimal("20000")))
        assert result.new_loan_amount == Decimal("320000")
        assert result.net_savings == result.current_total_cost + Decimal("20000") - result.new_total_cost

    def test_shorter_term_saves_time(self):
        result = analyze_refinance(self._params(new_rate=Decimal("6.5"), new_term_years=15))
        assert result.monthly_savings < ZERO
        assert result.break_even_months is None
        assert result.interest_savings > Decimal("50000")
        assert result.recommendation_type == "excellent"
        assert result.analysis_type == "time-savings"

    @pytest.mark.parametrize("overrides", [
        dict(current_balance=ZERO),
        dict(current_monthly_payment=ZERO),
        dict(new_term_years=0),
    ])
    def test_invalid_input(self, overrides):
        result = analyze_refinance(self._params(**overrides))
        assert not result.is_valid
        assert result.recommendation_type == "not-recommended"
        assert result.break_even_months is None
