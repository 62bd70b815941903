"""Points and refinance comparison, built on the amortization engine.

Break-even values are month counts (Decimal, unrounded); None means the
scenario never breaks even, which is a valid answer rather than an error.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from .calculator import (
    compute_monthly_payment, compute_monthly_rate, generate_schedule,
    summarize_schedule,
)
from .config import (
    BREAK_EVEN_EXCELLENT, BREAK_EVEN_GOOD, BREAK_EVEN_MARGINAL, CENT, HUNDRED,
    MAX_ITERATIONS, MODERATE_INTEREST_SAVINGS, MODERATE_TERM_REDUCTION, ONE,
    SIGNIFICANT_INTEREST_SAVINGS, SIGNIFICANT_TERM_REDUCTION,
    TIME_HORIZON_10_YEARS, TIME_HORIZON_5_YEARS, ZERO,
    AnalysisType, RecommendationType,
)

logger = logging.getLogger(__name__)

# Remaining-term solutions are rounded here before taking the ceiling so that
# decimal noise (360.000…01) does not add a month.
_TERM_PRECISION = Decimal("0.000001")


def _round(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# ── Points comparison ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PointsScenario:
    name: str
    rate: Decimal             # annual %
    points: Decimal = ZERO    # % of the loan amount paid up front
    is_baseline: bool = False


@dataclass(frozen=True)
class ComparisonResult:
    scenario: PointsScenario
    monthly_pi: Decimal
    point_cost: Decimal
    total_interest: Decimal
    total_cost: Decimal
    break_even_months: Optional[Decimal]
    monthly_savings: Decimal
    total_cost_at_5_years: Decimal
    total_cost_at_10_years: Decimal
    total_cost_at_full_term: Decimal


def _scenario_metrics(
    scenario: PointsScenario,
    loan_amount: Decimal,
    term_years: int,
) -> ComparisonResult:
    monthly_rate = compute_monthly_rate(scenario.rate)
    periods = term_years * 12
    monthly_pi = compute_monthly_payment(loan_amount, monthly_rate, periods)
    point_cost = _round(loan_amount * (scenario.points or ZERO) / HUNDRED)

    schedule = generate_schedule(loan_amount, monthly_rate, monthly_pi, periods)
    total_interest = schedule[-1].total_interest if schedule else ZERO
    total_cost = point_cost + monthly_pi * periods

    def _cost_at(months: int) -> Decimal:
        return point_cost + monthly_pi * min(months, periods)

    return ComparisonResult(
        scenario=scenario,
        monthly_pi=monthly_pi,
        point_cost=point_cost,
        total_interest=total_interest,
        total_cost=total_cost,
        break_even_months=None,
        monthly_savings=ZERO,
        total_cost_at_5_years=_cost_at(TIME_HORIZON_5_YEARS),
        total_cost_at_10_years=_cost_at(TIME_HORIZON_10_YEARS),
        total_cost_at_full_term=total_cost,
    )


def _with_break_even(result: ComparisonResult, baseline: ComparisonResult) -> ComparisonResult:
    """Months of payment savings needed to recover the extra point cost."""
    point_cost_diff = result.point_cost - baseline.point_cost
    monthly_savings = baseline.monthly_pi - result.monthly_pi

    break_even: Optional[Decimal] = None
    if monthly_savings > ZERO and point_cost_diff > ZERO:
        break_even = point_cost_diff / monthly_savings

    return replace(result, monthly_savings=monthly_savings, break_even_months=break_even)


def compare_scenarios(
    scenarios: Sequence[PointsScenario],
    loan_amount: Decimal,
    term_years: int,
) -> list[ComparisonResult]:
    """Compare rate/points combinations against the baseline scenario.

    Returns results in input order. Without a baseline, or without a positive
    loan amount and term, the result is empty.
    """
    if loan_amount <= ZERO or term_years < 1:
        return []

    baseline = next((s for s in scenarios if s.is_baseline), None)
    if baseline is None:
        logger.warning("No baseline scenario among %d points scenarios.", len(scenarios))
        return []

    baseline_result = _scenario_metrics(baseline, loan_amount, term_years)
    results: list[ComparisonResult] = []
    for scenario in scenarios:
        if scenario is baseline:
            results.append(baseline_result)
        else:
            result = _scenario_metrics(scenario, loan_amount, term_years)
            results.append(_with_break_even(result, baseline_result))
    return results


# ── Refinance analysis ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RefinanceParameters:
    current_balance: Decimal
    current_rate: Decimal              # annual %
    current_monthly_payment: Decimal
    new_rate: Decimal                  # annual %
    new_term_years: int = 30
    closing_costs: Decimal = ZERO
    cash_out: Decimal = ZERO
    new_points: Decimal = ZERO         # % of the current balance, always financed
    finance_closing_costs: bool = False


@dataclass(frozen=True)
class Recommendation:
    text: str
    type: RecommendationType
    analysis_type: AnalysisType


@dataclass(frozen=True)
class RefinanceResult:
    new_loan_amount: Decimal
    new_monthly_payment: Decimal
    monthly_savings: Decimal
    total_closing_costs: Decimal
    break_even_months: Optional[Decimal]
    current_total_interest: Decimal
    new_total_interest: Decimal
    interest_savings: Decimal
    current_total_cost: Decimal
    new_total_cost: Decimal
    net_savings: Decimal
    cost_at_5_years: Decimal
    cost_at_10_years: Decimal
    cost_at_full_term: Decimal
    recommendation: str
    recommendation_type: RecommendationType
    analysis_type: AnalysisType
    remaining_months: int
    is_valid: bool = True


def remaining_months(balance: Decimal, annual_rate: Decimal, monthly_payment: Decimal) -> int:
    """Months left on a loan, solved from its balance, rate and payment.

    n = ln(M / (M - B*r)) / ln(1 + r), rounded up. A payment that never
    covers the interest yields MAX_ITERATIONS.
    """
    if balance <= ZERO:
        return 0
    if monthly_payment <= ZERO:
        return MAX_ITERATIONS

    r = compute_monthly_rate(annual_rate)
    if r == ZERO:
        return int((balance / monthly_payment).to_integral_value(rounding=ROUND_CEILING))

    if monthly_payment <= balance * r:
        return MAX_ITERATIONS

    n = (monthly_payment / (monthly_payment - balance * r)).ln() / (ONE + r).ln()
    if n >= MAX_ITERATIONS:
        return MAX_ITERATIONS
    return int(n.quantize(_TERM_PRECISION).to_integral_value(rounding=ROUND_CEILING))


def _below(break_even: Optional[Decimal], limit: int) -> bool:
    return break_even is not None and break_even < limit


def _whole_years(months: Decimal) -> Decimal:
    return (months / 12).quantize(ONE, rounding=ROUND_HALF_UP)


def recommend(
    break_even_months: Optional[Decimal],
    monthly_savings: Decimal,
    interest_savings: Decimal,
    new_term_months: int,
    current_remaining_months: int,
) -> Recommendation:
    """Classify a refinance with a fixed rules table; the first matching rule wins."""
    term_reduction = current_remaining_months - new_term_months
    reduction_years = Decimal(term_reduction) / 12
    savings_k = interest_savings / 1000
    significant_term = term_reduction >= SIGNIFICANT_TERM_REDUCTION
    moderate_term = term_reduction >= MODERATE_TERM_REDUCTION

    if _below(break_even_months, BREAK_EVEN_EXCELLENT):
        return Recommendation(
            "Excellent! You'll break even in less than 2 years. "
            "This refinance is highly recommended.",
            "excellent", "break-even",
        )

    if significant_term and interest_savings >= SIGNIFICANT_INTEREST_SAVINGS:
        return Recommendation(
            f"Excellent for building equity! You'll pay off your loan {reduction_years:.1f} "
            f"years earlier and save ${savings_k:.0f}k in interest, despite higher monthly payments.",
            "excellent", "time-savings",
        )

    if significant_term and interest_savings >= MODERATE_INTEREST_SAVINGS:
        return Recommendation(
            f"Good for wealth building! You'll pay off your loan {reduction_years:.1f} years "
            f"earlier and save ${savings_k:.0f}k in interest. "
            "Consider whether you can afford the higher payment.",
            "good", "time-savings",
        )

    if _below(break_even_months, BREAK_EVEN_GOOD) and monthly_savings > ZERO:
        return Recommendation(
            f"Good opportunity. You'll break even in {_whole_years(break_even_months)} years. "
            "Worth refinancing if you plan to stay longer.",
            "good", "break-even",
        )

    if moderate_term and interest_savings > ZERO:
        return Recommendation(
            f"Worth considering for faster payoff. You'll finish {reduction_years:.1f} years "
            f"earlier and save ${savings_k:.0f}k in interest, but monthly payments will increase.",
            "marginal", "time-savings",
        )

    if _below(break_even_months, BREAK_EVEN_MARGINAL) and monthly_savings > ZERO:
        return Recommendation(
            f"Marginal benefit. Break-even takes {_whole_years(break_even_months)} years. "
            "Only refinance if you're certain you'll keep the loan that long.",
            "marginal", "break-even",
        )

    if monthly_savings < ZERO and not moderate_term:
        return Recommendation(
            "Not recommended. Your monthly payment would increase without significant "
            "term reduction or interest savings.",
            "not-recommended", "break-even",
        )

    if break_even_months is None:
        return Recommendation(
            "Not recommended. Your monthly payment does not decrease, so the closing "
            "costs are never recovered from cash flow.",
            "not-recommended", "break-even",
        )

    return Recommendation(
        "Not recommended. The break-even period is too long to justify the closing costs.",
        "not-recommended", "break-even",
    )


def _invalid_refinance(message: str) -> RefinanceResult:
    return RefinanceResult(
        new_loan_amount=ZERO,
        new_monthly_payment=ZERO,
        monthly_savings=ZERO,
        total_closing_costs=ZERO,
        break_even_months=None,
        current_total_interest=ZERO,
        new_total_interest=ZERO,
        interest_savings=ZERO,
        current_total_cost=ZERO,
        new_total_cost=ZERO,
        net_savings=ZERO,
        cost_at_5_years=ZERO,
        cost_at_10_years=ZERO,
        cost_at_full_term=ZERO,
        recommendation=message,
        recommendation_type="not-recommended",
        analysis_type="break-even",
        remaining_months=0,
        is_valid=False,
    )


def analyze_refinance(params: RefinanceParameters) -> RefinanceResult:
    """Compare keeping the current loan with refinancing into *params*' new terms.

    The current loan's remaining term is derived from its balance, rate and
    payment, never from an original term. Total costs are the sums of the
    remaining payments plus closing costs paid out of pocket; net savings
    credit any cash-out received.
    """
    if (
        params.current_balance <= ZERO
        or params.current_monthly_payment <= ZERO
        or params.new_term_years < 1
    ):
        return _invalid_refinance(
            "Please enter a positive balance, monthly payment and new loan term."
        )

    remaining = remaining_months(
        params.current_balance, params.current_rate, params.current_monthly_payment
    )

    points_cost = _round(params.current_balance * (params.new_points or ZERO) / HUNDRED)
    closing_costs = params.closing_costs or ZERO
    cash_out = params.cash_out or ZERO
    financed_closing = closing_costs if params.finance_closing_costs else ZERO
    out_of_pocket = closing_costs - financed_closing

    new_loan_amount = params.current_balance + cash_out + points_cost + financed_closing
    total_closing_costs = closing_costs + points_cost

    new_monthly_rate = compute_monthly_rate(params.new_rate)
    new_periods = params.new_term_years * 12
    new_payment = compute_monthly_payment(new_loan_amount, new_monthly_rate, new_periods)

    monthly_savings = params.current_monthly_payment - new_payment
    break_even = total_closing_costs / monthly_savings if monthly_savings > ZERO else None

    current_schedule = generate_schedule(
        params.current_balance,
        compute_monthly_rate(params.current_rate),
        params.current_monthly_payment,
        remaining,
    )
    new_schedule = generate_schedule(
        new_loan_amount, new_monthly_rate, new_payment, new_periods
    )
    current_summary = summarize_schedule(current_schedule)
    new_summary = summarize_schedule(new_schedule)

    current_total_cost = current_summary.total_paid
    new_total_cost = out_of_pocket + new_summary.total_paid
    interest_savings = current_summary.total_interest - new_summary.total_interest

    def _cost_at(months: int) -> Decimal:
        return out_of_pocket + sum((e.payment for e in new_schedule[:months]), ZERO)

    verdict = recommend(
        break_even, monthly_savings, interest_savings, new_periods, remaining
    )
    logger.debug(
        "Refinance: remaining=%d break_even=%s verdict=%s",
        remaining, break_even, verdict.type,
    )

    return RefinanceResult(
        new_loan_amount=new_loan_amount,
        new_monthly_payment=new_payment,
        monthly_savings=monthly_savings,
        total_closing_costs=total_closing_costs,
        break_even_months=break_even,
        current_total_interest=current_summary.total_interest,
        new_total_interest=new_summary.total_interest,
        interest_savings=interest_savings,
        current_total_cost=current_total_cost,
        new_total_cost=new_total_cost,
        net_savings=current_total_cost + cash_out - new_total_cost,
        cost_at_5_years=_cost_at(TIME_HORIZON_5_YEARS),
        cost_at_10_years=_cost_at(TIME_HORIZON_10_YEARS),
        cost_at_full_term=new_total_cost,
        recommendation=verdict.text,
        recommendation_type=verdict.type,
        analysis_type=verdict.analysis_type,
        remaining_months=remaining,
    )
