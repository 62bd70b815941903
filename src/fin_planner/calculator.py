"""Amortization engine.

Money is decimal.Decimal throughout; float never enters the arithmetic.
Per-period cash amounts (payment, interest, PMI, escrow) are rounded
ROUND_HALF_UP to cents; balances are exact differences of those amounts,
so every schedule reconciles to the cent.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from .config import (
    BIWEEKLY_PERIODS_PER_YEAR, CENT, HUNDRED, MAX_ITERATIONS, ONE,
    PMI_LTV_THRESHOLD, TWELVE, ZERO,
)

logger = logging.getLogger(__name__)


def _round(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LoanParameters:
    """A new purchase loan or an existing loan being paid down.

    Rates are annual percentages (6.5 means 6.5 %).
    """
    home_price: Decimal = ZERO
    down_payment: Decimal = ZERO
    term_years: int = 30
    interest_rate: Decimal = ZERO
    property_tax: Decimal = ZERO      # annual
    home_insurance: Decimal = ZERO    # annual
    pmi_rate: Decimal = ZERO          # annual % of the loan amount
    pmi_amount: Decimal = ZERO        # flat monthly PMI on an existing loan
    # Existing loan
    is_existing_loan: bool = False
    current_balance: Decimal = ZERO
    existing_interest_rate: Decimal = ZERO
    existing_monthly_payment: Decimal = ZERO

    @property
    def principal(self) -> Decimal:
        if self.is_existing_loan:
            return self.current_balance
        return self.home_price - self.down_payment

    @property
    def annual_rate(self) -> Decimal:
        return self.existing_interest_rate if self.is_existing_loan else self.interest_rate

    @property
    def total_periods(self) -> int:
        return self.term_years * 12


@dataclass(frozen=True)
class PaydownStrategy:
    extra_monthly: Decimal = ZERO
    double_principal: bool = False
    extra_annual: Decimal = ZERO     # lump sum every 12th period
    biweekly: bool = False           # replaces the monthly cadence and its extras


NO_PAYDOWN = PaydownStrategy()


@dataclass(frozen=True)
class ScheduleEntry:
    period: int
    payment: Decimal           # principal + interest + extra_principal
    principal: Decimal         # scheduled principal portion
    interest: Decimal
    extra_principal: Decimal
    balance: Decimal
    total_interest: Decimal
    pmi: Decimal
    escrow: Decimal


@dataclass(frozen=True)
class LoanMetrics:
    loan_amount: Decimal
    monthly_rate: Decimal
    total_payments: int
    monthly_pi: Decimal
    ltv_ratio: Decimal           # percent; 0 for existing loans
    monthly_pmi: Decimal
    monthly_escrow: Decimal
    total_monthly_payment: Decimal


@dataclass(frozen=True)
class PayoffSummary:
    months: int
    total_interest: Decimal
    total_principal: Decimal     # scheduled + extra principal
    total_paid: Decimal
    final_balance: Decimal

    @property
    def paid_off(self) -> bool:
        return self.final_balance == ZERO


@dataclass(frozen=True)
class PayoffComparison:
    standard: PayoffSummary
    accelerated: PayoffSummary
    months_saved: int
    interest_saved: Decimal


# ── Basic calculations ────────────────────────────────────────────────────────

def compute_monthly_rate(annual_rate: Optional[Decimal]) -> Decimal:
    """Annual percentage → monthly fraction."""
    return (annual_rate or ZERO) / HUNDRED / TWELVE


def compute_monthly_payment(
    principal: Decimal,
    monthly_rate: Decimal,
    periods: int,
) -> Decimal:
    """Return the level principal-and-interest payment.

    Uses the standard reducing-balance formula:
        M = P * r * (1 + r)^n / ((1 + r)^n - 1)

    Special case: if monthly_rate == 0, M = P / n.
    """
    if periods <= 0:
        raise ValueError("periods must be > 0")

    if monthly_rate == ZERO:
        return _round(principal / Decimal(periods))

    factor = (ONE + monthly_rate) ** periods
    return _round(principal * monthly_rate * factor / (factor - ONE))


def compute_ltv_ratio(params: LoanParameters, loan_amount: Decimal) -> Decimal:
    if params.is_existing_loan or params.home_price <= ZERO:
        return ZERO
    return loan_amount / params.home_price * HUNDRED


def compute_monthly_pmi(
    params: LoanParameters,
    loan_amount: Decimal,
    ltv_ratio: Decimal,
) -> Decimal:
    """PMI is a flat amount on existing loans, rate-based above 78 % LTV on new ones."""
    if params.is_existing_loan:
        return params.pmi_amount or ZERO
    if ltv_ratio > PMI_LTV_THRESHOLD:
        return _round(loan_amount * (params.pmi_rate or ZERO) / HUNDRED / TWELVE)
    return ZERO


def compute_monthly_escrow(params: LoanParameters) -> Decimal:
    if params.is_existing_loan:
        return ZERO
    return _round(((params.property_tax or ZERO) + (params.home_insurance or ZERO)) / TWELVE)


def compute_loan_metrics(params: LoanParameters) -> LoanMetrics:
    """Compute the headline numbers of a loan (no schedule)."""
    loan_amount = params.principal
    monthly_rate = compute_monthly_rate(params.annual_rate)
    total_payments = params.total_periods

    if loan_amount > ZERO and total_payments > 0:
        monthly_pi = compute_monthly_payment(loan_amount, monthly_rate, total_payments)
    else:
        monthly_pi = ZERO

    ltv_ratio = compute_ltv_ratio(params, loan_amount)
    monthly_pmi = compute_monthly_pmi(params, loan_amount, ltv_ratio)
    monthly_escrow = compute_monthly_escrow(params)

    return LoanMetrics(
        loan_amount=loan_amount,
        monthly_rate=monthly_rate,
        total_payments=total_payments,
        monthly_pi=monthly_pi,
        ltv_ratio=ltv_ratio,
        monthly_pmi=monthly_pmi,
        monthly_escrow=monthly_escrow,
        total_monthly_payment=monthly_pi + monthly_pmi + monthly_escrow,
    )


# ── Amortization schedule ─────────────────────────────────────────────────────

def _pmi_for(balance: Decimal, insurance: Decimal, home_price: Optional[Decimal]) -> Decimal:
    # Without a home price the insurance is a flat recurring charge.
    if home_price is None or home_price <= ZERO:
        return insurance
    if balance / home_price * HUNDRED > PMI_LTV_THRESHOLD:
        return insurance
    return ZERO


def generate_schedule(
    principal: Decimal,
    monthly_rate: Decimal,
    scheduled_payment: Decimal,
    total_periods: int,
    escrow: Decimal = ZERO,
    insurance: Decimal = ZERO,
    strategy: Optional[PaydownStrategy] = None,
    *,
    home_price: Optional[Decimal] = None,
) -> list[ScheduleEntry]:
    """Build the payment schedule for a loan.

    Stops early, without raising, when the scheduled payment does not cover
    the period's interest; the caller detects that from a schedule that ends
    with a positive balance.
    """
    strategy = strategy or NO_PAYDOWN
    if principal <= ZERO or total_periods <= 0:
        return []

    if strategy.biweekly:
        return _generate_biweekly_schedule(
            principal, monthly_rate, scheduled_payment, total_periods,
            escrow, insurance, home_price,
        )

    schedule: list[ScheduleEntry] = []
    balance = principal
    total_interest = ZERO

    for period in range(1, min(total_periods, MAX_ITERATIONS) + 1):
        if balance <= ZERO:
            break

        interest = _round(balance * monthly_rate)
        scheduled_principal = scheduled_payment - interest
        if scheduled_principal <= ZERO:
            logger.warning(
                "Payment %s does not cover interest %s in period %d; stopping amortization.",
                scheduled_payment, interest, period,
            )
            break

        # Last scheduled period clears the residue left by the cent-rounded payment.
        if period == total_periods:
            scheduled_principal = max(scheduled_principal, balance)

        extra = strategy.extra_monthly
        if strategy.double_principal:
            extra += scheduled_principal
        if period % 12 == 0:
            extra += strategy.extra_annual

        principal_part = min(scheduled_principal, balance)
        extra_part = min(extra, balance - principal_part)
        balance -= principal_part + extra_part
        total_interest += interest

        schedule.append(
            ScheduleEntry(
                period=period,
                payment=principal_part + interest + extra_part,
                principal=principal_part,
                interest=interest,
                extra_principal=extra_part,
                balance=balance,
                total_interest=total_interest,
                pmi=_pmi_for(balance, insurance, home_price),
                escrow=escrow,
            )
        )

    return schedule


def _generate_biweekly_schedule(
    principal: Decimal,
    monthly_rate: Decimal,
    monthly_payment: Decimal,
    total_periods: int,
    escrow: Decimal,
    insurance: Decimal,
    home_price: Optional[Decimal],
) -> list[ScheduleEntry]:
    """Half the monthly payment every two weeks; one entry per two payments.

    A payoff on an odd payment gets its own, shorter entry.
    """
    half_payment = _round(monthly_payment / 2)
    rate = monthly_rate * TWELVE / BIWEEKLY_PERIODS_PER_YEAR

    schedule: list[ScheduleEntry] = []
    balance = principal
    total_interest = ZERO
    paid = principal_paid = interest_paid = ZERO
    pending = 0

    def _flush(number: int) -> None:
        schedule.append(
            ScheduleEntry(
                period=(number + 1) // 2,
                payment=paid,
                principal=principal_paid,
                interest=interest_paid,
                extra_principal=ZERO,
                balance=balance,
                total_interest=total_interest,
                pmi=_pmi_for(balance, insurance, home_price),
                escrow=escrow,
            )
        )

    last = 0
    for number in range(1, min(total_periods * 2, MAX_ITERATIONS) + 1):
        if balance <= ZERO:
            break

        interest = _round(balance * rate)
        principal_part = half_payment - interest
        if principal_part <= ZERO:
            logger.warning(
                "Bi-weekly payment %s does not cover interest %s; stopping amortization.",
                half_payment, interest,
            )
            break

        last = number
        if number == total_periods * 2:
            principal_part = max(principal_part, balance)
        principal_part = min(principal_part, balance)
        balance -= principal_part
        total_interest += interest
        paid += principal_part + interest
        principal_paid += principal_part
        interest_paid += interest
        pending += 1

        if pending == 2 or balance == ZERO:
            _flush(number)
            paid = principal_paid = interest_paid = ZERO
            pending = 0

    if pending:
        _flush(last)

    return schedule


def schedule_for(
    params: LoanParameters,
    strategy: Optional[PaydownStrategy] = None,
) -> list[ScheduleEntry]:
    """Schedule for *params*.

    An existing loan amortizes at its stated payment until it is paid off, so
    its term only matters for the headline metrics.
    """
    metrics = compute_loan_metrics(params)
    if params.is_existing_loan:
        payment = params.existing_monthly_payment
        periods = MAX_ITERATIONS
        home_price = None
    else:
        payment = metrics.monthly_pi
        periods = metrics.total_payments
        home_price = params.home_price
    return generate_schedule(
        metrics.loan_amount,
        metrics.monthly_rate,
        payment,
        periods,
        metrics.monthly_escrow,
        metrics.monthly_pmi,
        strategy,
        home_price=home_price,
    )


# ── Payoff comparison ─────────────────────────────────────────────────────────

def summarize_schedule(schedule: list[ScheduleEntry]) -> PayoffSummary:
    if not schedule:
        return PayoffSummary(0, ZERO, ZERO, ZERO, ZERO)
    last = schedule[-1]
    return PayoffSummary(
        months=last.period,
        total_interest=last.total_interest,
        total_principal=sum((e.principal + e.extra_principal for e in schedule), ZERO),
        total_paid=sum((e.payment for e in schedule), ZERO),
        final_balance=last.balance,
    )


def compare_payoff(
    standard: list[ScheduleEntry],
    accelerated: list[ScheduleEntry],
) -> PayoffComparison:
    """Standard vs accelerated payoff: months and interest saved."""
    base = summarize_schedule(standard)
    fast = summarize_schedule(accelerated)
    return PayoffComparison(
        standard=base,
        accelerated=fast,
        months_saved=base.months - fast.months,
        interest_saved=max(ZERO, base.total_interest - fast.total_interest),
    )
