"""Output helpers for the amortization planner.

This module provides simple functions to render amortization schedules and
summaries in a tabular text format using ``click.echo``.
"""

from __future__ import annotations

from typing import Iterable, List, Tuple

import click

from .data_models import AmortizationPeriod
from .summary import LoanSummary


def format_currency(amount: float) -> str:
    """Format ``amount`` as US dollars, e.g. ``$1,234.56``."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def _format_term(months: int) -> str:
    return f"{months} months ({months / 12:.1f} years)"


def print_summary(summary: LoanSummary) -> None:
    """Print a summary of loan metrics in a human-readable format."""
    click.echo("Summary")
    click.echo("-" * 72)
    click.echo(f"Monthly payment    : {format_currency(summary.monthly_payment)}")
    click.echo(f"Total principal    : {format_currency(summary.total_principal)}")
    click.echo(f"Total interest     : {format_currency(summary.total_interest)}")
    click.echo(f"Total payments     : {format_currency(summary.total_payments)}")
    if summary.total_extra:
        click.echo(f"Extra payments     : {format_currency(summary.total_extra)}")
    if summary.payoff_date:
        click.echo(f"Payoff date        : {summary.payoff_date.strftime('%B %Y')}")
    click.echo(f"Loan term          : {_format_term(summary.total_months)}")
    if not summary.paid_off:
        click.echo("Warning            : payments do not pay the loan off; schedule was cut short")
    if summary.has_savings:
        click.echo("")
        click.echo("Accelerated payment savings")
        click.echo(f"Time saved         : {summary.months_saved} months")
        click.echo(f"Interest saved     : {format_currency(summary.interest_saved)}")
        if summary.original_payoff_date:
            click.echo(f"Original payoff    : {summary.original_payoff_date.strftime('%B %Y')}")
    click.echo("-" * 72)


def print_schedule(schedule: Iterable[AmortizationPeriod]) -> None:
    """Print the amortization schedule as a simple table."""
    headers = [
        "Month",
        "Payment",
        "Principal",
        "Interest",
        "Extra",
        "TotalInt",
        "Balance",
    ]
    click.echo("\t".join(headers))
    for p in schedule:
        row = [
            str(p.month),
            f"{p.payment:.2f}",
            f"{p.principal_component:.2f}",
            f"{p.interest_component:.2f}",
            f"{p.extra_payment_applied:.2f}",
            f"{p.cumulative_interest:.2f}",
            f"{p.remaining_balance:.2f}",
        ]
        click.echo("\t".join(row))


def print_balance_chart(points: List[Tuple[int, float]], width: int = 50) -> None:
    """Print yearly balances as a horizontal bar chart."""
    if not points:
        return
    top = max(balance for _, balance in points) or 1.0
    for year, balance in points:
        bar = "#" * int(round(width * balance / top))
        click.echo(f"Year {year:>3} {format_currency(balance):>16} {bar}")
