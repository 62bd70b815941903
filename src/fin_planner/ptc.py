"""ACA Premium Tax Credit estimate.

Household income is placed against the Federal Poverty Level for the tax
year, the applicable figure is interpolated from the income bands, and the
credit is the benchmark (SLCSP) premium less the expected contribution.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from .config import (
    CENT, DEFAULT_FPL_LOCATION, HUNDRED, MEDICAID_FPL, SUBSIDY_CLIFF_FPL,
    TWELVE, ZERO, FplLocation,
)
from .tables import APPLICABLE_FIGURE_BANDS, get_fpl_table

_DOLLAR = Decimal("1")


@dataclass(frozen=True)
class PTCInputs:
    tax_year: int
    family_size: int
    magi: Decimal
    slcsp_monthly_premium: Decimal
    location: FplLocation = DEFAULT_FPL_LOCATION
    subsidy_cliff: bool = False


@dataclass(frozen=True)
class PTCResults:
    fpl: Decimal
    fpl_percentage: Decimal
    applicable_figure: Decimal      # fraction of income, e.g. 0.05
    annual_contribution: Decimal    # whole dollars
    monthly_contribution: Decimal
    total_allowed_ptc: Decimal
    monthly_ptc: Decimal
    is_eligible: bool
    eligibility_message: str


def _invalid(message: str) -> PTCResults:
    return PTCResults(
        fpl=ZERO,
        fpl_percentage=ZERO,
        applicable_figure=ZERO,
        annual_contribution=ZERO,
        monthly_contribution=ZERO,
        total_allowed_ptc=ZERO,
        monthly_ptc=ZERO,
        is_eligible=False,
        eligibility_message=message,
    )


def get_fpl(
    family_size: int,
    tax_year: int,
    location: FplLocation = DEFAULT_FPL_LOCATION,
) -> Decimal:
    """Poverty guideline for the household; 0 for an unknown location or empty household."""
    table = get_fpl_table(tax_year, location)
    if table is None:
        return ZERO
    return table.amount(family_size)


def get_applicable_figure(
    fpl_percentage: Decimal,
    use_cliff: bool = False,
) -> Optional[Decimal]:
    """Expected contribution as a fraction of income.

    Returns None when the subsidy cliff is on and income is at or above 400 %
    of FPL: no contribution level applies because no credit is available.
    """
    if use_cliff and fpl_percentage >= SUBSIDY_CLIFF_FPL:
        return None
    if fpl_percentage < APPLICABLE_FIGURE_BANDS[0].fpl_min:
        return APPLICABLE_FIGURE_BANDS[0].start_percent / HUNDRED
    for band in APPLICABLE_FIGURE_BANDS:
        if band.contains(fpl_percentage):
            return band.interpolate(fpl_percentage) / HUNDRED
    return APPLICABLE_FIGURE_BANDS[-1].end_percent / HUNDRED


def _eligibility(
    fpl_percentage: Decimal,
    use_cliff: bool,
    total_allowed_ptc: Decimal,
) -> tuple[bool, str]:
    if fpl_percentage < MEDICAID_FPL:
        return False, "Income below 100% FPL - you may qualify for Medicaid instead"
    if use_cliff and fpl_percentage >= SUBSIDY_CLIFF_FPL:
        return False, "Income exceeds 400% FPL - no subsidy available under cliff rules"
    if fpl_percentage >= SUBSIDY_CLIFF_FPL:
        return True, "Income above 400% FPL - subsidy capped at 8.5% of income"
    if total_allowed_ptc <= ZERO:
        return True, "Your expected contribution exceeds the benchmark premium"
    return True, "You may be eligible for the Premium Tax Credit"


def calculate_ptc(inputs: PTCInputs) -> PTCResults:
    """Estimate the annual and monthly Premium Tax Credit for *inputs*.

    The subsidy cliff is honoured in any tax year when the caller sets it.
    """
    if (
        inputs.family_size <= 0
        or inputs.magi <= ZERO
        or inputs.slcsp_monthly_premium <= ZERO
    ):
        return _invalid("Please enter valid values for all fields")

    fpl = get_fpl(inputs.family_size, inputs.tax_year, inputs.location)
    if fpl <= ZERO:
        return _invalid("Unable to determine Federal Poverty Level")

    fpl_percentage = inputs.magi / fpl * HUNDRED
    figure = get_applicable_figure(fpl_percentage, inputs.subsidy_cliff)
    annual_premium = inputs.slcsp_monthly_premium * TWELVE

    if figure is None:
        figure = ZERO
        annual_contribution = ZERO
        total_allowed_ptc = ZERO
    else:
        annual_contribution = (inputs.magi * figure).quantize(_DOLLAR, rounding=ROUND_HALF_UP)
        total_allowed_ptc = max(ZERO, annual_premium - annual_contribution)

    is_eligible, message = _eligibility(fpl_percentage, inputs.subsidy_cliff, total_allowed_ptc)

    return PTCResults(
        fpl=fpl,
        fpl_percentage=fpl_percentage,
        applicable_figure=figure,
        annual_contribution=annual_contribution,
        monthly_contribution=(annual_contribution / TWELVE).quantize(CENT, rounding=ROUND_HALF_UP),
        total_allowed_ptc=total_allowed_ptc,
        monthly_ptc=(total_allowed_ptc / TWELVE).quantize(CENT, rounding=ROUND_HALF_UP),
        is_eligible=is_eligible,
        eligibility_message=message,
    )
