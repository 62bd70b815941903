"""Social Security benefit simulator and claiming-strategy search.

Benefits are adjusted from the Primary Insurance Amount (PIA) at month
granularity:
- delayed claiming earns 8/12 % per month past FRA, up to age 70;
- early primary claiming loses 5/9 % per month for the first 36 months
  and 5/12 % per month beyond;
- early spousal claiming loses 25/36 % per month for the first 36 months
  and 5/12 % per month beyond, against 50 % of the primary's PIA.

The lifetime projection steps month by month from the first claim to the
age-90 horizon. The strategy search evaluates a fixed set of five claiming
archetypes; it is not an optimizer over every possible claim date.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from .config import (
    EARLY_MONTHS_FIRST_TIER, HUNDRED, ONE, SPOUSAL_SHARE, SS_EARLIEST_AGE,
    SS_HORIZON_AGE, SS_LATEST_CREDIT_AGE, TWELVE, ZERO,
    BenefitKind, MaritalStatus,
)
from .tables import fra_for_birth_year

logger = logging.getLogger(__name__)

# Early-claiming reductions as (numerator, denominator) of a percent per month.
_PRIMARY_FIRST_TIER = (5, 9)
_SPOUSAL_FIRST_TIER = (25, 36)
_LATER_TIER = (5, 12)
_DELAYED_CREDIT = (8, 12)


@dataclass(frozen=True)
class PersonInput:
    birth_date: date
    pia: Decimal
    claim_date: date


@dataclass(frozen=True)
class SocialSecurityInputs:
    marital_status: MaritalStatus
    primary: PersonInput
    spouse: Optional[PersonInput] = None
    spousal_claim_date: Optional[date] = None   # defaults to the spouse's own claim date
    inflation_rate: Decimal = ZERO              # annual %

    @property
    def is_married(self) -> bool:
        return self.marital_status == "Married" and self.spouse is not None


@dataclass(frozen=True)
class MonthlyBenefit:
    month: date
    amount: Decimal
    year: int


@dataclass(frozen=True)
class AnnualProjection:
    year: int
    primary_age: int
    spouse_age: Optional[int]
    primary_benefit: Decimal
    spouse_benefit: Decimal
    spousal_add_on: Decimal
    total: Decimal


@dataclass(frozen=True)
class LifetimeBenefit:
    total: Decimal
    monthly_data: list[MonthlyBenefit]
    annual_data: list[AnnualProjection]


@dataclass(frozen=True)
class Strategy:
    name: str
    primary_claim_date: date
    spouse_claim_date: Optional[date]
    total_benefit: Decimal


@dataclass(frozen=True)
class SurvivorScenario:
    deceased: str
    survivor: str
    monthly_amount: Decimal       # survivor's total monthly benefit
    annual_amount: Decimal
    survivor_benefit: Decimal     # excess over the survivor's own benefit
    survivor_fra_date: date
    survivor_fra_age: int
    note: str


@dataclass(frozen=True)
class SurvivorBenefits:
    primary_dies: SurvivorScenario
    spouse_dies: SurvivorScenario


# ── Date helpers ──────────────────────────────────────────────────────────────

def _month_start(d: date) -> date:
    return d.replace(day=1)


def _add_months(d: date, months: int) -> date:
    return d + relativedelta(months=months)


def _months_between(later: date, earlier: date) -> int:
    """Whole months from *earlier* to *later* (negative when *later* is earlier)."""
    delta = relativedelta(later, earlier)
    return delta.years * 12 + delta.months


def get_fra(birth_date: date) -> tuple[int, int]:
    """Full Retirement Age as (years, months)."""
    return fra_for_birth_year(birth_date.year)


def get_fra_date(birth_date: date) -> date:
    years, months = get_fra(birth_date)
    return _add_months(birth_date, years * 12 + months)


def earliest_claim_date(birth_date: date) -> date:
    """First month a claimant is 62 for the entire month.

    Born on the 1st or 2nd: the birth month of the 62nd year; otherwise the
    following month.
    """
    first = _month_start(_add_months(birth_date, SS_EARLIEST_AGE * 12))
    if birth_date.day > 2:
        first = _add_months(first, 1)
    return first


# ── Benefit adjustment ────────────────────────────────────────────────────────

def _early_reduction(months_early: int, first_tier: tuple[int, int]) -> Decimal:
    """Fractional reduction for claiming *months_early* months before FRA."""
    first = min(months_early, EARLY_MONTHS_FIRST_TIER)
    beyond = max(0, months_early - EARLY_MONTHS_FIRST_TIER)
    num, den = first_tier
    later_num, later_den = _LATER_TIER
    return (
        Decimal(first * num) / (den * HUNDRED)
        + Decimal(beyond * later_num) / (later_den * HUNDRED)
    )


def _months_from_fra(birth_date: date, claim_date: date) -> int:
    """Signed months from FRA to the claim month, capped at age 70."""
    fra_month = _month_start(get_fra_date(birth_date))
    months = _months_between(_month_start(claim_date), fra_month)
    age_70_month = _month_start(_add_months(birth_date, SS_LATEST_CREDIT_AGE * 12))
    return min(months, _months_between(age_70_month, fra_month))


def calculate_benefit(
    pia: Decimal,
    birth_date: date,
    claim_date: date,
    kind: BenefitKind = "primary",
) -> Decimal:
    """Monthly benefit for a claim at *claim_date*.

    For kind="spouse", *pia* is the primary earner's PIA and the result is
    the spousal benefit (half of it, reduced for early claiming; no delayed
    credit). *birth_date* is always the claimant's own.
    """
    months = _months_from_fra(birth_date, claim_date)

    if kind == "primary":
        if months >= 0:
            num, den = _DELAYED_CREDIT
            return pia * (ONE + Decimal(months * num) / (den * HUNDRED))
        return pia * (ONE - _early_reduction(-months, _PRIMARY_FIRST_TIER))

    max_spousal = pia * SPOUSAL_SHARE
    if months >= 0:
        return max_spousal
    return max_spousal * (ONE - _early_reduction(-months, _SPOUSAL_FIRST_TIER))


def _spousal_top_up(inputs: SocialSecurityInputs) -> Decimal:
    """Spousal add-on over the spouse's own PIA, reduced for an early spousal claim."""
    spouse = inputs.spouse
    base = max(inputs.primary.pia * SPOUSAL_SHARE - spouse.pia, ZERO)
    if base == ZERO:
        return ZERO
    claim = inputs.spousal_claim_date or spouse.claim_date
    months = _months_from_fra(spouse.birth_date, claim)
    if months >= 0:
        return base
    return base * (ONE - _early_reduction(-months, _SPOUSAL_FIRST_TIER))


# ── Lifetime projection ───────────────────────────────────────────────────────

def _inflation_factor(growth: Decimal, months_elapsed: int) -> Decimal:
    if months_elapsed == 0 or growth == ONE:
        return ONE
    if growth <= ZERO:
        return ZERO
    return growth ** (Decimal(months_elapsed) / TWELVE)


def _age_on(birth_date: date, on: date) -> int:
    return relativedelta(on, birth_date).years


def calculate_lifetime_benefit(inputs: SocialSecurityInputs) -> LifetimeBenefit:
    """Project monthly and annual benefits up to the age-90 horizon.

    The simulation starts at the first of the month of the earliest claim and
    ends at the primary's 90th birthday month; an older spouse stops being
    paid at their own 90th birthday month. Each claimant's own benefit starts
    at their claim month; the spousal add-on starts once the primary has
    claimed and the spousal claim month has arrived.
    """
    primary = inputs.primary
    spouse = inputs.spouse if inputs.is_married else None

    claim_dates = [primary.claim_date] + ([spouse.claim_date] if spouse else [])
    start = _month_start(min(claim_dates))
    end = _month_start(_add_months(primary.birth_date, SS_HORIZON_AGE * 12))

    primary_claim = _month_start(primary.claim_date)
    primary_base = calculate_benefit(primary.pia, primary.birth_date, primary.claim_date)
    if spouse:
        spouse_claim = _month_start(spouse.claim_date)
        spousal_claim = _month_start(inputs.spousal_claim_date or spouse.claim_date)
        spouse_base = calculate_benefit(spouse.pia, spouse.birth_date, spouse.claim_date)
        top_up = _spousal_top_up(inputs)

    growth = ONE + (inputs.inflation_rate or ZERO) / HUNDRED
    horizon_months = SS_HORIZON_AGE * 12

    total = ZERO
    monthly_data: list[MonthlyBenefit] = []
    buckets: dict[int, list[Decimal]] = {}   # year → [primary, spouse own, spousal]

    current = start
    while current <= end:
        factor = _inflation_factor(growth, _months_between(current, start))
        primary_amount = spouse_amount = spousal_amount = ZERO

        if _months_between(current, primary.birth_date) < horizon_months and current >= primary_claim:
            primary_amount = primary_base * factor

        if spouse and _months_between(current, spouse.birth_date) < horizon_months:
            if current >= spouse_claim:
                spouse_amount = spouse_base * factor
            if current >= primary_claim and current >= spousal_claim and top_up > ZERO:
                spousal_amount = top_up * factor

        month_total = primary_amount + spouse_amount + spousal_amount
        total += month_total
        monthly_data.append(MonthlyBenefit(month=current, amount=month_total, year=current.year))

        bucket = buckets.setdefault(current.year, [ZERO, ZERO, ZERO])
        bucket[0] += primary_amount
        bucket[1] += spouse_amount
        bucket[2] += spousal_amount

        current = _add_months(current, 1)

    annual_data = []
    for year, (p, s, a) in buckets.items():
        year_end = date(year, 12, 31)
        annual_data.append(
            AnnualProjection(
                year=year,
                primary_age=_age_on(primary.birth_date, year_end),
                spouse_age=_age_on(spouse.birth_date, year_end) if spouse else None,
                primary_benefit=p,
                spouse_benefit=s,
                spousal_add_on=a,
                total=p + s + a,
            )
        )

    return LifetimeBenefit(total=total, monthly_data=monthly_data, annual_data=annual_data)


# ── Strategy search ───────────────────────────────────────────────────────────

def _archetypes(
    primary: PersonInput,
    spouse: Optional[PersonInput],
) -> list[tuple[str, date, Optional[date]]]:

    def _at(person: Optional[PersonInput], kind: str) -> Optional[date]:
        if person is None:
            return None
        if kind == "70":
            return _add_months(person.birth_date, SS_LATEST_CREDIT_AGE * 12)
        if kind == "fra":
            return get_fra_date(person.birth_date)
        return earliest_claim_date(person.birth_date)

    return [
        ("Both at 70", _at(primary, "70"), _at(spouse, "70")),
        ("Both at FRA", _at(primary, "fra"), _at(spouse, "fra")),
        ("Primary 70, Spouse FRA", _at(primary, "70"), _at(spouse, "fra")),
        ("Earliest (62)", _at(primary, "62"), _at(spouse, "62")),
    ]


def generate_strategies(inputs: SocialSecurityInputs) -> list[Strategy]:
    """Rank the five claiming archetypes by total lifetime benefit, descending.

    "As Selected" is simulated with the caller's inputs untouched; the other
    archetypes move the spousal claim to the spouse's new claim date. Ties
    keep archetype order.
    """
    spouse = inputs.spouse if inputs.is_married else None
    strategies = [
        Strategy(
            name="As Selected",
            primary_claim_date=inputs.primary.claim_date,
            spouse_claim_date=spouse.claim_date if spouse else None,
            total_benefit=calculate_lifetime_benefit(inputs).total,
        )
    ]

    for name, primary_date, spouse_date in _archetypes(inputs.primary, spouse):
        scenario = replace(
            inputs,
            primary=replace(inputs.primary, claim_date=primary_date),
            spouse=replace(spouse, claim_date=spouse_date) if spouse else inputs.spouse,
            spousal_claim_date=spouse_date,
        )
        total = calculate_lifetime_benefit(scenario).total
        logger.debug("Strategy %r: lifetime total %s", name, total)
        strategies.append(Strategy(name, primary_date, spouse_date, total))

    return sorted(strategies, key=lambda s: s.total_benefit, reverse=True)[:5]


# ── Survivor benefits ─────────────────────────────────────────────────────────

def _survivor(
    deceased: str,
    survivor: str,
    survivor_person: PersonInput,
    own: Decimal,
    other: Decimal,
) -> SurvivorScenario:
    monthly = max(own, other)
    fra_age, _ = get_fra(survivor_person.birth_date)
    return SurvivorScenario(
        deceased=deceased,
        survivor=survivor,
        monthly_amount=monthly,
        annual_amount=monthly * 12,
        survivor_benefit=max(ZERO, monthly - own),
        survivor_fra_date=get_fra_date(survivor_person.birth_date),
        survivor_fra_age=fra_age,
        note=f"Survivor receives {monthly:,.0f}/month (higher of own or deceased's benefit)",
    )


def calculate_survivor_benefits(inputs: SocialSecurityInputs) -> Optional[SurvivorBenefits]:
    """Survivor amounts for both death orders; None without a spouse.

    The survivor keeps the higher of their own benefit and the deceased's
    benefit, each as adjusted at its claim date.
    """
    if not inputs.is_married:
        return None

    primary, spouse = inputs.primary, inputs.spouse
    primary_at_claim = calculate_benefit(primary.pia, primary.birth_date, primary.claim_date)
    spouse_at_claim = calculate_benefit(spouse.pia, spouse.birth_date, spouse.claim_date)

    return SurvivorBenefits(
        primary_dies=_survivor("primary", "spouse", spouse, spouse_at_claim, primary_at_claim),
        spouse_dies=_survivor("spouse", "primary", primary, primary_at_claim, spouse_at_claim),
    )
