"""Application-wide constants and configuration defaults.

All tuneable thresholds live here so there is a single place to adjust them.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Literal

# ── Type aliases ──────────────────────────────────────────────────────────────

FplLocation = Literal["CONTIGUOUS_48", "ALASKA", "HAWAII"]
MaritalStatus = Literal["Single", "Married"]
BenefitKind = Literal["primary", "spouse"]
RecommendationType = Literal["excellent", "good", "marginal", "not-recommended"]
AnalysisType = Literal["break-even", "time-savings"]

# ── Amortization ──────────────────────────────────────────────────────────────

MAX_ITERATIONS: int = 10_000          # hard ceiling on generated periods
PMI_LTV_THRESHOLD = Decimal("78")     # % LTV above which PMI is charged
BIWEEKLY_PERIODS_PER_YEAR: int = 26

# ── Points / refinance ────────────────────────────────────────────────────────

BREAK_EVEN_EXCELLENT: int = 24
BREAK_EVEN_GOOD: int = 60
BREAK_EVEN_MARGINAL: int = 120
TIME_HORIZON_5_YEARS: int = 60
TIME_HORIZON_10_YEARS: int = 120

SIGNIFICANT_TERM_REDUCTION: int = 60   # months
MODERATE_TERM_REDUCTION: int = 24      # months
SIGNIFICANT_INTEREST_SAVINGS = Decimal("50000")
MODERATE_INTEREST_SAVINGS = Decimal("20000")

# ── Social Security ───────────────────────────────────────────────────────────

SS_HORIZON_AGE: int = 90       # projection stops at this birthday
SS_EARLIEST_AGE: int = 62
SS_LATEST_CREDIT_AGE: int = 70
SPOUSAL_SHARE = Decimal("0.5")
EARLY_MONTHS_FIRST_TIER: int = 36

# ── PTC ───────────────────────────────────────────────────────────────────────

DEFAULT_FPL_LOCATION: FplLocation = "CONTIGUOUS_48"
SUBSIDY_CLIFF_FPL = Decimal("400")
MEDICAID_FPL = Decimal("100")

# ── Numeric convenience ───────────────────────────────────────────────────────

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
TWELVE = Decimal("12")
CENT = Decimal("0.01")
