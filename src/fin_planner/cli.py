"""Command-line front end: one sub-command per engine.

Each command gathers its parameters from options, runs the caller-side
checks, calls the engine and prints the result records as rich tables:

  fin-planner mortgage         loan metrics and amortization schedule
  fin-planner paydown          standard vs accelerated payoff
  fin-planner points           discount-point scenarios against a baseline
  fin-planner refinance        keep the current loan or refinance
  fin-planner social-security  claiming strategies and survivor benefits
  fin-planner ptc              ACA Premium Tax Credit estimate
"""
from __future__ import annotations

import logging
import sys
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from .calculator import (
    LoanParameters, PaydownStrategy, ScheduleEntry, compare_payoff,
    compute_loan_metrics, schedule_for, summarize_schedule,
)
from .comparator import (
    PointsScenario, RefinanceParameters, analyze_refinance, compare_scenarios,
)
from .config import DEFAULT_FPL_LOCATION
from .ptc import PTCInputs, calculate_ptc
from .social_security import (
    PersonInput, SocialSecurityInputs, calculate_lifetime_benefit,
    calculate_survivor_benefits, generate_strategies,
)
from .tables import LATEST_TAX_YEAR, SUPPORTED_LOCATIONS
from .validation import (
    InputError, check_claim_dates, check_loan_parameters, check_ptc_inputs,
)

console = Console()
err_console = Console(stderr=True, style="bold red")

# ──────────────────────────────────────────────────────────────────────────────
# Formatting helpers
# ──────────────────────────────────────────────────────────────────────────────

def _fmt_money(value: Decimal) -> str:
    return f"${value:,.2f}"


def _fmt_k(value: Decimal) -> str:
    """Whole-dollar amount, for wide tables."""
    return f"${value:,.0f}"


def _fmt_pct(value: Decimal, places: int = 2) -> str:
    return f"{value:.{places}f}%"


def _fmt_months(n: int) -> str:
    years, months = divmod(n, 12)
    if months == 0:
        return f"{n} months ({years} years)"
    return f"{n} months ({years}y {months}m)"


def _fmt_break_even(months: Optional[Decimal]) -> str:
    if months is None:
        return "never"
    return f"{months:.1f} months"


def _fmt_date(d: Optional[date]) -> str:
    return d.strftime("%Y-%m-%d") if d else "-"


def _key_value_table() -> Table:
    t = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    t.add_column("Field", style="cyan")
    t.add_column("Value", justify="right")
    return t


# ──────────────────────────────────────────────────────────────────────────────
# Option parsing
# ──────────────────────────────────────────────────────────────────────────────

def _decimal(ctx: click.Context, param: click.Parameter, value: Optional[str]) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(value.replace(",", "").replace(" ", ""))
    except InvalidOperation:
        raise click.BadParameter(f"invalid number '{value}'")


def _iso_date(ctx: click.Context, param: click.Parameter, value: Optional[datetime]) -> Optional[date]:
    return value.date() if value is not None else None


_DATE = click.DateTime(formats=["%Y-%m-%d"])


def _run_checked(check: Callable[[object], None], subject: object) -> None:
    """Run a validation check; report the failure and exit with status 1."""
    try:
        check(subject)
    except InputError as exc:
        err_console.print(f"Invalid input: {exc}")
        sys.exit(1)


def _parse_scenario(raw: str) -> PointsScenario:
    """NAME:RATE[:POINTS] → PointsScenario."""
    parts = raw.split(":")
    if len(parts) not in (2, 3):
        raise click.BadParameter(f"expected NAME:RATE[:POINTS], got '{raw}'")
    try:
        rate = Decimal(parts[1])
        points = Decimal(parts[2]) if len(parts) == 3 else Decimal("0")
    except InvalidOperation:
        raise click.BadParameter(f"invalid rate or points in '{raw}'")
    return PointsScenario(name=parts[0], rate=rate, points=points)


# ──────────────────────────────────────────────────────────────────────────────
# Display
# ──────────────────────────────────────────────────────────────────────────────

def display_schedule(schedule: list[ScheduleEntry], full: bool = False) -> None:
    """Print the schedule; by default only every 12th period and the last one."""
    title = "Amortization Schedule" if full else "Amortization Schedule (yearly)"
    t = Table(title=title, box=box.MINIMAL_HEAVY_HEAD)
    for col in ("Period", "Payment", "Principal", "Interest", "Extra", "PMI", "Balance"):
        t.add_column(col, justify="right")

    for i, row in enumerate(schedule):
        if not full and row.period % 12 != 0 and i != len(schedule) - 1:
            continue
        t.add_row(
            str(row.period),
            _fmt_money(row.payment),
            _fmt_money(row.principal),
            _fmt_money(row.interest),
            _fmt_money(row.extra_principal),
            _fmt_money(row.pmi),
            _fmt_money(row.balance),
        )
    console.print(t)


def _loan_options(f):
    options = [
        click.option("--home-price", type=str, callback=_decimal, default="0", help="Home purchase price"),
        click.option("--down-payment", type=str, callback=_decimal, default="0", help="Down payment"),
        click.option("--rate", type=str, callback=_decimal, default="0", help="Annual interest rate in % (e.g. 6.5)"),
        click.option("--term", type=int, default=30, show_default=True, help="Loan term in years"),
        click.option("--property-tax", type=str, callback=_decimal, default="0", help="Annual property tax"),
        click.option("--insurance", type=str, callback=_decimal, default="0", help="Annual home insurance"),
        click.option("--pmi-rate", type=str, callback=_decimal, default="0", help="Annual PMI rate in % of the loan"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


# ──────────────────────────────────────────────────────────────────────────────
# Click entry points
# ──────────────────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log engine diagnostics at DEBUG level.")
def main(verbose: bool) -> None:
    """Financial planner: mortgage, refinance, Social Security and ACA credit projections."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@_loan_options
@click.option("--full-schedule", is_flag=True, help="Print every period instead of one row per year.")
def mortgage(
    home_price: Decimal,
    down_payment: Decimal,
    rate: Decimal,
    term: int,
    property_tax: Decimal,
    insurance: Decimal,
    pmi_rate: Decimal,
    full_schedule: bool,
) -> None:
    """Monthly payment breakdown and amortization schedule for a new loan."""
    params = LoanParameters(
        home_price=home_price,
        down_payment=down_payment,
        term_years=term,
        interest_rate=rate,
        property_tax=property_tax,
        home_insurance=insurance,
        pmi_rate=pmi_rate,
    )
    _run_checked(check_loan_parameters, params)

    metrics = compute_loan_metrics(params)
    schedule = schedule_for(params)
    summary = summarize_schedule(schedule)

    console.print(Panel("[bold green]Mortgage[/bold green]", expand=False))
    t = _key_value_table()
    t.add_row("Loan amount", _fmt_money(metrics.loan_amount))
    t.add_row("LTV ratio", _fmt_pct(metrics.ltv_ratio))
    t.add_row("Monthly P&I", _fmt_money(metrics.monthly_pi))
    t.add_row("  └ PMI", _fmt_money(metrics.monthly_pmi))
    t.add_row("  └ Escrow (tax + insurance)", _fmt_money(metrics.monthly_escrow))
    t.add_row("Total monthly payment", _fmt_money(metrics.total_monthly_payment))
    t.add_row("Payoff", _fmt_months(summary.months))
    t.add_row("Total interest", _fmt_money(summary.total_interest))
    t.add_row("Total paid (P&I)", _fmt_money(summary.total_paid))
    console.print(t)

    display_schedule(schedule, full=full_schedule)


@main.command()
@_loan_options
@click.option("--existing", is_flag=True, help="Pay down an existing loan instead of a new one.")
@click.option("--balance", type=str, callback=_decimal, default="0", help="Existing loan: current balance")
@click.option("--existing-rate", type=str, callback=_decimal, default="0", help="Existing loan: annual rate in %")
@click.option("--payment", type=str, callback=_decimal, default="0", help="Existing loan: monthly P&I payment")
@click.option("--pmi-amount", type=str, callback=_decimal, default="0", help="Existing loan: flat monthly PMI")
@click.option("--extra-monthly", type=str, callback=_decimal, default="0", help="Extra principal every month")
@click.option("--extra-annual", type=str, callback=_decimal, default="0", help="Lump sum every 12th payment")
@click.option("--double-principal", is_flag=True, help="Pay the scheduled principal twice each month.")
@click.option("--biweekly", is_flag=True, help="Half payment every two weeks (ignores the extras).")
@click.option("--full-schedule", is_flag=True, help="Print every period of the accelerated schedule.")
def paydown(
    home_price: Decimal,
    down_payment: Decimal,
    rate: Decimal,
    term: int,
    property_tax: Decimal,
    insurance: Decimal,
    pmi_rate: Decimal,
    existing: bool,
    balance: Decimal,
    existing_rate: Decimal,
    payment: Decimal,
    pmi_amount: Decimal,
    extra_monthly: Decimal,
    extra_annual: Decimal,
    double_principal: bool,
    biweekly: bool,
    full_schedule: bool,
) -> None:
    """Compare the standard schedule with an accelerated paydown strategy."""
    params = LoanParameters(
        home_price=home_price,
        down_payment=down_payment,
        term_years=term,
        interest_rate=rate,
        property_tax=property_tax,
        home_insurance=insurance,
        pmi_rate=pmi_rate,
        pmi_amount=pmi_amount,
        is_existing_loan=existing,
        current_balance=balance,
        existing_interest_rate=existing_rate,
        existing_monthly_payment=payment,
    )
    _run_checked(check_loan_parameters, params)

    strategy = PaydownStrategy(
        extra_monthly=extra_monthly,
        double_principal=double_principal,
        extra_annual=extra_annual,
        biweekly=biweekly,
    )
    standard = schedule_for(params)
    accelerated = schedule_for(params, strategy)
    comparison = compare_payoff(standard, accelerated)

    console.print(Panel("[bold green]Paydown Strategy[/bold green]", expand=False))
    t = Table(box=box.SIMPLE_HEAVY, padding=(0, 2))
    t.add_column("", style="cyan")
    t.add_column("Standard", justify="right")
    t.add_column("Accelerated", justify="right")
    t.add_row("Payoff", _fmt_months(comparison.standard.months), _fmt_months(comparison.accelerated.months))
    t.add_row(
        "Total interest",
        _fmt_money(comparison.standard.total_interest),
        _fmt_money(comparison.accelerated.total_interest),
    )
    t.add_row(
        "Total paid",
        _fmt_money(comparison.standard.total_paid),
        _fmt_money(comparison.accelerated.total_paid),
    )
    console.print(t)
    console.print(
        f"[bold]Saved:[/bold] {_fmt_months(comparison.months_saved)} and "
        f"{_fmt_money(comparison.interest_saved)} of interest"
    )
    if not comparison.standard.paid_off:
        console.print(
            f"[yellow]The payment does not amortize the loan: "
            f"{_fmt_money(comparison.standard.final_balance)} left unpaid.[/yellow]"
        )

    display_schedule(accelerated, full=full_schedule)


@main.command()
@click.option("--loan-amount", type=str, callback=_decimal, required=True, help="Loan amount")
@click.option("--term", type=int, default=30, show_default=True, help="Loan term in years")
@click.option("--baseline-rate", type=str, callback=_decimal, required=True, help="Rate with no points, in %")
@click.option(
    "--scenario", "scenarios", multiple=True,
    help="Alternative as NAME:RATE[:POINTS], e.g. 'One point:6.25:1'. Repeatable.",
)
def points(loan_amount: Decimal, term: int, baseline_rate: Decimal, scenarios: tuple[str, ...]) -> None:
    """Compare buying discount points against a no-points baseline."""
    parsed = [PointsScenario("Baseline", baseline_rate, is_baseline=True)]
    parsed += [_parse_scenario(raw) for raw in scenarios]

    results = compare_scenarios(parsed, loan_amount, term)
    if not results:
        err_console.print("Invalid input: loan amount and term must be positive.")
        sys.exit(1)

    t = Table(title="Discount Points", box=box.SIMPLE_HEAVY, padding=(0, 1))
    t.add_column("Scenario", style="cyan")
    for col in ("Rate", "Points", "Cost", "Monthly", "Savings", "Break-even", "5 yr", "10 yr", "Full term"):
        t.add_column(col, justify="right")

    for r in results:
        t.add_row(
            r.scenario.name,
            _fmt_pct(r.scenario.rate, 3),
            f"{r.scenario.points}",
            _fmt_k(r.point_cost),
            _fmt_money(r.monthly_pi),
            _fmt_money(r.monthly_savings),
            "-" if r.scenario.is_baseline else _fmt_break_even(r.break_even_months),
            _fmt_k(r.total_cost_at_5_years),
            _fmt_k(r.total_cost_at_10_years),
            _fmt_k(r.total_cost_at_full_term),
        )
    console.print(t)


_VERDICT_STYLE = {
    "excellent": "bold green",
    "good": "green",
    "marginal": "yellow",
    "not-recommended": "bold red",
}


@main.command()
@click.option("--balance", type=str, callback=_decimal, required=True, help="Current loan balance")
@click.option("--rate", type=str, callback=_decimal, required=True, help="Current annual rate in %")
@click.option("--payment", type=str, callback=_decimal, required=True, help="Current monthly P&I payment")
@click.option("--new-rate", type=str, callback=_decimal, required=True, help="New annual rate in %")
@click.option("--new-term", type=int, default=30, show_default=True, help="New loan term in years")
@click.option("--closing-costs", type=str, callback=_decimal, default="0", help="Closing costs")
@click.option("--cash-out", type=str, callback=_decimal, default="0", help="Cash taken out at closing")
@click.option("--points", "new_points", type=str, callback=_decimal, default="0", help="Points on the new loan, in %")
@click.option("--finance-closing-costs", is_flag=True, help="Roll the closing costs into the new loan.")
def refinance(
    balance: Decimal,
    rate: Decimal,
    payment: Decimal,
    new_rate: Decimal,
    new_term: int,
    closing_costs: Decimal,
    cash_out: Decimal,
    new_points: Decimal,
    finance_closing_costs: bool,
) -> None:
    """Decide whether refinancing the current loan pays off."""
    result = analyze_refinance(
        RefinanceParameters(
            current_balance=balance,
            current_rate=rate,
            current_monthly_payment=payment,
            new_rate=new_rate,
            new_term_years=new_term,
            closing_costs=closing_costs,
            cash_out=cash_out,
            new_points=new_points,
            finance_closing_costs=finance_closing_costs,
        )
    )
    if not result.is_valid:
        err_console.print(f"Invalid input: {result.recommendation}")
        sys.exit(1)

    style = _VERDICT_STYLE[result.recommendation_type]
    console.print(Panel(
        f"[{style}]{result.recommendation_type.upper()}[/{style}] "
        f"({result.analysis_type})\n{result.recommendation}",
        title="Refinance",
        expand=False,
    ))

    t = _key_value_table()
    t.add_row("Remaining on current loan", _fmt_months(result.remaining_months))
    t.add_row("New loan amount", _fmt_money(result.new_loan_amount))
    t.add_row("New monthly payment", _fmt_money(result.new_monthly_payment))
    t.add_row("Monthly savings", _fmt_money(result.monthly_savings))
    t.add_row("Closing costs + points", _fmt_money(result.total_closing_costs))
    t.add_row("Break-even", _fmt_break_even(result.break_even_months))
    t.add_row("Current total interest", _fmt_money(result.current_total_interest))
    t.add_row("New total interest", _fmt_money(result.new_total_interest))
    t.add_row("Interest savings", _fmt_money(result.interest_savings))
    t.add_row("Current total cost", _fmt_money(result.current_total_cost))
    t.add_row("New total cost", _fmt_money(result.new_total_cost))
    t.add_row("Net savings", _fmt_money(result.net_savings))
    t.add_row("New loan cost at 5 years", _fmt_money(result.cost_at_5_years))
    t.add_row("New loan cost at 10 years", _fmt_money(result.cost_at_10_years))
    console.print(t)


@main.command("social-security")
@click.option("--birth-date", type=_DATE, callback=_iso_date, required=True, help="Birth date (YYYY-MM-DD)")
@click.option("--pia", type=str, callback=_decimal, required=True, help="Primary Insurance Amount")
@click.option("--claim-date", type=_DATE, callback=_iso_date, required=True, help="Claim date (YYYY-MM-DD)")
@click.option("--spouse-birth-date", type=_DATE, callback=_iso_date, default=None)
@click.option("--spouse-pia", type=str, callback=_decimal, default=None)
@click.option("--spouse-claim-date", type=_DATE, callback=_iso_date, default=None)
@click.option("--spousal-claim-date", type=_DATE, callback=_iso_date, default=None,
              help="When the spouse starts the spousal benefit (default: own claim date)")
@click.option("--inflation", type=str, callback=_decimal, default="0", help="Annual COLA in %")
@click.option("--by-year", is_flag=True, help="Print the annual projection for the selected dates.")
def social_security(
    birth_date: date,
    pia: Decimal,
    claim_date: date,
    spouse_birth_date: Optional[date],
    spouse_pia: Optional[Decimal],
    spouse_claim_date: Optional[date],
    spousal_claim_date: Optional[date],
    inflation: Decimal,
    by_year: bool,
) -> None:
    """Compare Social Security claiming strategies up to age 90."""
    spouse: Optional[PersonInput] = None
    spouse_fields = (spouse_birth_date, spouse_pia, spouse_claim_date)
    if any(v is not None for v in spouse_fields):
        if not all(v is not None for v in spouse_fields):
            err_console.print(
                "Invalid input: --spouse-birth-date, --spouse-pia and --spouse-claim-date go together."
            )
            sys.exit(1)
        spouse = PersonInput(spouse_birth_date, spouse_pia, spouse_claim_date)

    inputs = SocialSecurityInputs(
        marital_status="Married" if spouse else "Single",
        primary=PersonInput(birth_date, pia, claim_date),
        spouse=spouse,
        spousal_claim_date=spousal_claim_date,
        inflation_rate=inflation,
    )
    _run_checked(check_claim_dates, inputs)

    strategies = generate_strategies(inputs)
    t = Table(title="Claiming Strategies (to age 90)", box=box.SIMPLE_HEAVY, padding=(0, 2))
    t.add_column("Strategy", style="cyan")
    t.add_column("Primary claims", justify="right")
    if spouse:
        t.add_column("Spouse claims", justify="right")
    t.add_column("Lifetime total", justify="right")
    for i, s in enumerate(strategies):
        name = f"[bold green]{s.name}[/bold green]" if i == 0 else s.name
        row = [name, _fmt_date(s.primary_claim_date)]
        if spouse:
            row.append(_fmt_date(s.spouse_claim_date))
        row.append(_fmt_k(s.total_benefit))
        t.add_row(*row)
    console.print(t)

    if by_year:
        lifetime = calculate_lifetime_benefit(inputs)
        y = Table(title="Annual Projection (as selected)", box=box.MINIMAL_HEAVY_HEAD)
        for col in ("Year", "Age", "Primary", "Spouse", "Spousal", "Total"):
            y.add_column(col, justify="right")
        for a in lifetime.annual_data:
            age = str(a.primary_age) if a.spouse_age is None else f"{a.primary_age}/{a.spouse_age}"
            y.add_row(
                str(a.year), age, _fmt_k(a.primary_benefit), _fmt_k(a.spouse_benefit),
                _fmt_k(a.spousal_add_on), _fmt_k(a.total),
            )
        console.print(y)

    survivors = calculate_survivor_benefits(inputs)
    if survivors is not None:
        s = Table(title="Survivor Benefits", box=box.SIMPLE, padding=(0, 2))
        for col in ("If", "Survivor gets", "Per year", "Above own benefit"):
            s.add_column(col, justify="right")
        for scenario in (survivors.primary_dies, survivors.spouse_dies):
            s.add_row(
                f"{scenario.deceased} dies",
                _fmt_money(scenario.monthly_amount),
                _fmt_k(scenario.annual_amount),
                _fmt_money(scenario.survivor_benefit),
            )
        console.print(s)


@main.command()
@click.option("--tax-year", type=int, default=LATEST_TAX_YEAR, show_default=True)
@click.option("--family-size", type=int, required=True, help="Household size")
@click.option("--magi", type=str, callback=_decimal, required=True, help="Modified Adjusted Gross Income")
@click.option("--premium", type=str, callback=_decimal, required=True,
              help="Benchmark (second-lowest-cost silver plan) monthly premium")
@click.option("--location", type=click.Choice(sorted(SUPPORTED_LOCATIONS)),
              default=DEFAULT_FPL_LOCATION, show_default=True)
@click.option("--cliff", is_flag=True, help="No credit at or above 400% FPL.")
def ptc(
    tax_year: int,
    family_size: int,
    magi: Decimal,
    premium: Decimal,
    location: str,
    cliff: bool,
) -> None:
    """Estimate the ACA Premium Tax Credit."""
    inputs = PTCInputs(
        tax_year=tax_year,
        family_size=family_size,
        magi=magi,
        slcsp_monthly_premium=premium,
        location=location,  # type: ignore[arg-type]
        subsidy_cliff=cliff,
    )
    _run_checked(check_ptc_inputs, inputs)

    result = calculate_ptc(inputs)
    colour = "green" if result.is_eligible else "yellow"
    console.print(Panel(f"[{colour}]{result.eligibility_message}[/{colour}]", title="Premium Tax Credit", expand=False))

    t = _key_value_table()
    t.add_row("Federal Poverty Level", _fmt_k(result.fpl))
    t.add_row("Income as % of FPL", _fmt_pct(result.fpl_percentage, 1))
    t.add_row("Applicable figure", _fmt_pct(result.applicable_figure * 100, 2))
    t.add_row("Expected contribution (year)", _fmt_money(result.annual_contribution))
    t.add_row("Expected contribution (month)", _fmt_money(result.monthly_contribution))
    t.add_row("Premium Tax Credit (year)", _fmt_money(result.total_allowed_ptc))
    t.add_row("Premium Tax Credit (month)", _fmt_money(result.monthly_ptc))
    console.print(t)
