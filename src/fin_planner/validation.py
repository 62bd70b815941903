"""Input checks for callers that gather parameters from a user.

The engines accept any finite input and encode failure in their results;
these checks let a caller reject nonsense early with a readable message.
"""
from __future__ import annotations

from .calculator import LoanParameters
from .config import ZERO
from .ptc import PTCInputs
from .social_security import SocialSecurityInputs, earliest_claim_date


class InputError(ValueError):
    """Raised when user-supplied parameters cannot describe a real scenario."""


def check_loan_parameters(params: LoanParameters) -> None:
    """Raise InputError unless principal > 0, rate >= 0 and term >= 1 year."""
    if params.principal <= ZERO:
        if params.is_existing_loan:
            raise InputError(
                f"Current balance must be positive (got {params.current_balance:,.2f})."
            )
        raise InputError(
            f"Down payment {params.down_payment:,.2f} leaves nothing to borrow "
            f"on a home price of {params.home_price:,.2f}."
        )

    if params.annual_rate < ZERO:
        raise InputError(f"Interest rate cannot be negative (got {params.annual_rate}%).")

    if params.term_years < 1:
        raise InputError(f"Loan term must be at least 1 year (got {params.term_years}).")

    if params.is_existing_loan and params.existing_monthly_payment <= ZERO:
        raise InputError("Existing monthly payment must be positive.")


def check_claim_dates(inputs: SocialSecurityInputs) -> None:
    """Raise InputError when a claim falls before the claimant is eligible.

    Each claim must be on or after the claimant's earliest claim date (62 for
    the whole month). A spousal claim must also wait for the primary's claim.
    """
    primary = inputs.primary
    earliest = earliest_claim_date(primary.birth_date)
    if primary.claim_date < earliest:
        raise InputError(
            f"Primary claim date {primary.claim_date:%Y-%m-%d} is before the "
            f"earliest eligible date {earliest:%Y-%m-%d}."
        )

    if not inputs.is_married:
        return

    spouse = inputs.spouse
    earliest = earliest_claim_date(spouse.birth_date)
    if spouse.claim_date < earliest:
        raise InputError(
            f"Spouse claim date {spouse.claim_date:%Y-%m-%d} is before the "
            f"earliest eligible date {earliest:%Y-%m-%d}."
        )

    if inputs.spousal_claim_date is not None:
        if inputs.spousal_claim_date < earliest:
            raise InputError(
                f"Spousal claim date {inputs.spousal_claim_date:%Y-%m-%d} is before the "
                f"spouse's earliest eligible date {earliest:%Y-%m-%d}."
            )
        if inputs.spousal_claim_date < primary.claim_date:
            raise InputError(
                f"Spousal claim date {inputs.spousal_claim_date:%Y-%m-%d} is before the "
                f"primary claim date {primary.claim_date:%Y-%m-%d}."
            )


def check_ptc_inputs(inputs: PTCInputs) -> None:
    if inputs.family_size < 1:
        raise InputError(f"Family size must be at least 1 (got {inputs.family_size}).")
