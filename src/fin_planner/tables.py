"""Static lookup tables.

Full Retirement Age by birth year, HHS poverty guidelines by tax year and
location, and the ACA applicable-figure bands. All amounts are stored as
Decimal strings and every table is immutable; callers go through the accessor
functions rather than the private constants.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Optional

from .config import FplLocation


# ── Full Retirement Age ───────────────────────────────────────────────────────

# (last birth year of the row, FRA years, FRA extra months); rows ascending
_FRA_TABLE: tuple[tuple[int, int, int], ...] = (
    (1937, 65, 0),
    (1938, 65, 2),
    (1939, 65, 4),
    (1940, 65, 6),
    (1941, 65, 8),
    (1942, 65, 10),
    (1954, 66, 0),
    (1955, 66, 2),
    (1956, 66, 4),
    (1957, 66, 6),
    (1958, 66, 8),
    (1959, 66, 10),
)
_FRA_LATEST: tuple[int, int] = (67, 0)


def fra_for_birth_year(year: int) -> tuple[int, int]:
    """Return the Full Retirement Age as (years, months) for *year*."""
    for last_year, age, months in _FRA_TABLE:
        if year <= last_year:
            return age, months
    return _FRA_LATEST


# ── Federal Poverty Level ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class FplTable:
    """Poverty guideline for household sizes 1–8 plus the per-person step."""
    by_size: tuple[Decimal, ...]   # index 0 → household of 1
    per_additional: Decimal

    def amount(self, family_size: int) -> Decimal:
        if family_size <= 0:
            return Decimal("0")
        if family_size <= len(self.by_size):
            return self.by_size[family_size - 1]
        extra = family_size - len(self.by_size)
        return self.by_size[-1] + extra * self.per_additional


def _table(*amounts: str, step: str) -> FplTable:
    return FplTable(tuple(Decimal(a) for a in amounts), Decimal(step))


_GUIDELINES_2024: Mapping[str, FplTable] = MappingProxyType({
    "CONTIGUOUS_48": _table(
        "15060", "20440", "25820", "31200", "36580", "41960", "47340", "52720",
        step="5380",
    ),
    "ALASKA": _table(
        "18810", "25550", "32290", "39030", "45770", "52510", "59250", "65990",
        step="6740",
    ),
    "HAWAII": _table(
        "17310", "23500", "29690", "35880", "42070", "48260", "54450", "60640",
        step="6190",
    ),
})

_GUIDELINES_2025: Mapping[str, FplTable] = MappingProxyType({
    "CONTIGUOUS_48": _table(
        "15600", "21150", "26700", "32250", "37800", "43350", "48900", "54450",
        step="5550",
    ),
    "ALASKA": _table(
        "19500", "26430", "33360", "40290", "47220", "54150", "61080", "68010",
        step="6930",
    ),
    "HAWAII": _table(
        "17940", "24320", "30700", "37080", "43460", "49840", "56220", "62600",
        step="6380",
    ),
})

# Tax year → most recent guidelines published no later than that year.
_FPL_BY_TAX_YEAR: Mapping[int, Mapping[str, FplTable]] = MappingProxyType({
    2024: _GUIDELINES_2024,
    2025: _GUIDELINES_2025,
    2026: _GUIDELINES_2025,
})

SUPPORTED_TAX_YEARS = frozenset(_FPL_BY_TAX_YEAR.keys())
LATEST_TAX_YEAR: int = max(SUPPORTED_TAX_YEARS)
SUPPORTED_LOCATIONS = frozenset(_GUIDELINES_2025.keys())


def get_fpl_table(tax_year: int, location: FplLocation) -> Optional[FplTable]:
    """Return the poverty-guideline table for *tax_year* and *location*.

    Unknown tax years fall back to the latest known year. Unknown locations
    return None.
    """
    year_tables = _FPL_BY_TAX_YEAR.get(tax_year, _FPL_BY_TAX_YEAR[LATEST_TAX_YEAR])
    return year_tables.get(location)


# ── Applicable figure ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ApplicableBand:
    fpl_min: Decimal
    fpl_max: Decimal
    start_percent: Decimal
    end_percent: Decimal

    def contains(self, fpl_percentage: Decimal) -> bool:
        return self.fpl_min <= fpl_percentage < self.fpl_max

    def interpolate(self, fpl_percentage: Decimal) -> Decimal:
        """Linear interpolation of the contribution percent inside the band."""
        if self.start_percent == self.end_percent:
            return self.start_percent
        share = (fpl_percentage - self.fpl_min) / (self.fpl_max - self.fpl_min)
        return self.start_percent + share * (self.end_percent - self.start_percent)


# Inflation Reduction Act schedule; applied to tax years 2024–2026.
APPLICABLE_FIGURE_BANDS: tuple[ApplicableBand, ...] = tuple(
    ApplicableBand(Decimal(lo), Decimal(hi), Decimal(start), Decimal(end))
    for lo, hi, start, end in (
        ("0", "150", "0.0", "0.0"),
        ("150", "200", "0.0", "2.0"),
        ("200", "250", "2.0", "4.0"),
        ("250", "300", "4.0", "6.0"),
        ("300", "400", "6.0", "8.5"),
        ("400", "Infinity", "8.5", "8.5"),
    )
)
