"""Unit tests for social_security.py — FRA, benefit adjustment, projections, strategies."""
from datetime import date
from decimal import Decimal

import pytest

from fin_planner.social_security import (
    PersonInput,
    SocialSecurityInputs,
    calculate_benefit,
    calculate_lifetime_benefit,
    calculate_survivor_benefits,
    earliest_claim_date,
    generate_strategies,
    get_fra,
    get_fra_date,
)

ZERO = Decimal("0")
PIA = Decimal("2000")
BIRTH = date(1960, 5, 10)           # FRA 67 → 2027-05-10


def _single(claim: date, inflation: str = "0") -> SocialSecurityInputs:
    return SocialSecurityInputs(
        marital_status="Single",
        primary=PersonInput(BIRTH, PIA, claim),
        inflation_rate=Decimal(inflation),
    )


def _couple(**overrides) -> SocialSecurityInputs:
    defaults = dict(
        marital_status="Married",
        primary=PersonInput(BIRTH, Decimal("2400"), date(2027, 5, 10)),
        spouse=PersonInput(date(1962, 3, 15), Decimal("800"), date(2029, 3, 15)),
    )
    defaults.update(overrides)
    return SocialSecurityInputs(**defaults)


class TestFullRetirementAge:
    @pytest.mark.parametrize("birth_year,expected", [
        (1937, (65, 0)),
        (1938, (65, 2)),
        (1942, (65, 10)),
        (1943, (66, 0)),
        (1954, (66, 0)),
        (1955, (66, 2)),
        (1959, (66, 10)),
        (1960, (67, 0)),
        (1985, (67, 0)),
    ])
    def test_table(self, birth_year, expected):
        assert get_fra(date(birth_year, 6, 1)) == expected

    def test_fra_date(self):
        assert get_fra_date(BIRTH) == date(2027, 5, 10)
        assert get_fra_date(date(1955, 1, 20)) == date(2021, 3, 20)

    @pytest.mark.parametrize("birth,expected", [
        (date(1960, 5, 1), date(2022, 5, 1)),
        (date(1960, 5, 2), date(2022, 5, 1)),
        (date(1960, 5, 3), date(2022, 6, 1)),
        (date(1960, 12, 15), date(2023, 1, 1)),
    ])
    def test_earliest_claim_date(self, birth, expected):
        assert earliest_claim_date(birth) == expected


class TestCalculateBenefit:
    @pytest.mark.parametrize("claim,expected", [
        (date(2027, 5, 10), Decimal("2000")),     # at FRA
        (date(2024, 5, 10), Decimal("1600")),     # 36 months early: 36 × 5/9 % = 20 %
        (date(2023, 5, 10), Decimal("1500")),     # 48 months early: 20 % + 12 × 5/12 %
        (date(2030, 5, 10), Decimal("2480")),     # age 70: 36 × 8/12 % = 24 %
        (date(2032, 5, 10), Decimal("2480")),     # no credit past 70
        (date(2028, 5, 10), Decimal("2160")),     # 12 months late: 8 %
    ])
    def test_primary(self, claim, expected):
        assert calculate_benefit(PIA, BIRTH, claim) == expected

    @pytest.mark.parametrize("claim,expected", [
        (date(2027, 5, 10), Decimal("1000")),     # half the PIA at FRA
        (date(2030, 5, 10), Decimal("1000")),     # no delayed credit
        (date(2024, 5, 10), Decimal("750")),      # 36 × 25/36 % = 25 %
        (date(2023, 5, 10), Decimal("700")),      # 25 % + 12 × 5/12 %
    ])
    def test_spousal(self, claim, expected):
        assert calculate_benefit(PIA, BIRTH, claim, "spouse") == expected

    def test_same_month_counts_as_fra(self):
        assert calculate_benefit(PIA, BIRTH, date(2027, 5, 1)) == PIA


class TestLifetimeBenefit:
    def test_single_at_fra(self):
        result = calculate_lifetime_benefit(_single(date(2027, 5, 10)))
        # May 2027 through the age-90 month, May 2050
        assert len(result.monthly_data) == 277
        assert result.total == PIA * 277
        assert result.monthly_data[0].month == date(2027, 5, 1)
        assert result.monthly_data[-1].month == date(2050, 5, 1)

    @pytest.mark.parametrize("inflation", ["0", "2.5", "8"])
    def test_first_month_at_fra_is_pia(self, inflation):
        result = calculate_lifetime_benefit(_single(date(2027, 5, 10), inflation))
        assert result.monthly_data[0].amount == PIA

    def test_inflation_grows_benefit(self):
        result = calculate_lifetime_benefit(_single(date(2027, 5, 10), "3"))
        assert result.monthly_data[12].amount > result.monthly_data[11].amount
        assert result.total > PIA * 277

    def test_annual_buckets(self):
        result = calculate_lifetime_benefit(_single(date(2027, 5, 10)))
        first = result.annual_data[0]
        assert first.year == 2027
        assert first.primary_age == 67
        assert first.spouse_age is None
        assert first.primary_benefit == PIA * 8      # May–December
        assert first.total == first.primary_benefit
        assert sum((a.total for a in result.annual_data), ZERO) == result.total

    def test_couple_with_spousal_top_up(self):
        result = calculate_lifetime_benefit(_couple())
        by_month = {m.month: m.amount for m in result.monthly_data}
        assert by_month[date(2028, 1, 1)] == Decimal("2400")
        # own 800 plus the top-up 50 % × 2400 − 800 = 400
        assert by_month[date(2029, 3, 1)] == Decimal("3600")
        year_2030 = next(a for a in result.annual_data if a.year == 2030)
        assert year_2030.spouse_benefit == Decimal("9600")
        assert year_2030.spousal_add_on == Decimal("4800")
        assert year_2030.spouse_age == 68

    def test_spousal_claim_waits_for_primary(self):
        inputs = _couple(
            primary=PersonInput(BIRTH, Decimal("2400"), date(2030, 5, 10)),
            spouse=PersonInput(date(1962, 3, 15), Decimal("800"), date(2029, 3, 15)),
        )
        by_month = {m.month: m.amount for m in calculate_lifetime_benefit(inputs).monthly_data}
        assert by_month[date(2029, 3, 1)] == Decimal("800")
        assert by_month[date(2030, 5, 1)] == Decimal("2976") + Decimal("1200")

    def test_early_spousal_claim_reduces_top_up(self):
        inputs = _couple(
            spouse=PersonInput(date(1962, 3, 15), Decimal("800"), date(2026, 3, 15)),
        )
        by_month = {m.month: m.amount for m in calculate_lifetime_benefit(inputs).monthly_data}
        # own 800 × 0.8 before the primary claims
        assert by_month[date(2026, 3, 1)] == Decimal("640")
        # plus the top-up 400 × 0.75 once the primary has claimed
        assert by_month[date(2027, 5, 1)] == Decimal("2400") + Decimal("640") + Decimal("300")

    def test_horizon_is_primary_age_90(self):
        result = calculate_lifetime_benefit(_couple())
        assert result.monthly_data[-1].month == date(2050, 5, 1)

    def test_older_spouse_does_not_cut_primary_short(self):
        inputs = _couple(
            primary=PersonInput(date(1965, 5, 10), Decimal("2400"), date(2032, 5, 10)),
            spouse=PersonInput(BIRTH, Decimal("800"), date(2027, 5, 10)),
        )
        result = calculate_lifetime_benefit(inputs)
        by_month = {m.month: m.amount for m in result.monthly_data}
        # the spouse is paid through their own age-90 month
        assert by_month[date(2050, 5, 1)] == Decimal("2400") + Decimal("800") + Decimal("400")
        assert by_month[date(2050, 6, 1)] == Decimal("2400")
        assert result.monthly_data[-1].month == date(2055, 5, 1)
        assert result.monthly_data[-1].amount == Decimal("2400")

    def test_single_ignores_spouse(self):
        inputs = _couple(marital_status="Single")
        result = calculate_lifetime_benefit(inputs)
        assert all(a.spouse_age is None for a in result.annual_data)
        assert result.total == Decimal("2400") * 277


class TestStrategies:
    @pytest.mark.parametrize("inputs", [_single(date(2025, 1, 15)), _couple()])
    def test_five_sorted_strategies(self, inputs):
        strategies = generate_strategies(inputs)
        assert len(strategies) == 5
        totals = [s.total_benefit for s in strategies]
        assert totals == sorted(totals, reverse=True)

    def test_as_selected_matches_raw_inputs(self):
        inputs = _couple()
        selected = next(s for s in generate_strategies(inputs) if s.name == "As Selected")
        assert selected.total_benefit == calculate_lifetime_benefit(inputs).total
        assert selected.primary_claim_date == date(2027, 5, 10)
        assert selected.spouse_claim_date == date(2029, 3, 15)

    def test_archetype_claim_dates(self):
        strategies = {s.name: s for s in generate_strategies(_couple())}
        assert strategies["Both at 70"].primary_claim_date == date(2030, 5, 10)
        assert strategies["Both at FRA"].spouse_claim_date == date(2029, 3, 15)
        assert strategies["Earliest (62)"].primary_claim_date == date(2022, 6, 1)
        assert strategies["Primary 70, Spouse FRA"].spouse_claim_date == date(2029, 3, 15)

    def test_single_has_no_spouse_dates(self):
        assert all(s.spouse_claim_date is None for s in generate_strategies(_single(date(2027, 5, 10))))


class TestSurvivorBenefits:
    def test_single_has_none(self):
        assert calculate_survivor_benefits(_single(date(2027, 5, 10))) is None

    def test_both_directions(self):
        survivors = calculate_survivor_benefits(_couple())
        primary_dies = survivors.primary_dies
        assert primary_dies.survivor == "spouse"
        assert primary_dies.monthly_amount == Decimal("2400")
        assert primary_dies.annual_amount == Decimal("28800")
        assert primary_dies.survivor_benefit == Decimal("1600")
        assert primary_dies.survivor_fra_date == date(2029, 3, 15)
        assert primary_dies.survivor_fra_age == 67

        spouse_dies = survivors.spouse_dies
        assert spouse_dies.monthly_amount == Decimal("2400")
        assert spouse_dies.survivor_benefit == ZERO
