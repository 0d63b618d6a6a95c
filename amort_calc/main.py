"""Command-line interface for the amortization planner.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute full amortization schedules, view summaries and
yearly balance charts, reload exported schedules, or ask the payment advisor
for a suggestion. Results can be printed to the terminal or exported to
JSON/CSV files.
"""

from __future__ import annotations

import logging
import sys
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import click

from .advisor import AdvisorError, PaymentAdvisor
from .config import Settings, configure_logging
from .data_models import AmortizationPeriod, LoanConfiguration, ModificationPeriod, validate_config
from .engine import build_schedule
from .formatter import print_balance_chart, print_schedule, print_summary
from .serialization import ScheduleFormatError, export_to_json, load_and_rebuild, write_schedule_csv
from .summary import page_count, paginate, summarize, yearly_balance_points
from .utils import month_index_for_date, parse_amount, parse_date

logger = logging.getLogger(__name__)


def _amount(value: str) -> float:
    try:
        return parse_amount(value)
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_modification_strings(values: Tuple[str, ...]) -> List[ModificationPeriod]:
    """Parse ``START:END:AMOUNT`` entries into modification periods."""
    periods: List[ModificationPeriod] = []
    for item in values:
        parts = item.split(":")
        if len(parts) != 3:
            raise click.BadParameter(
                f"Modification must be in START:END:AMOUNT format; got {item}"
            )
        start_str, end_str, amt_str = parts
        try:
            start, end = int(start_str), int(end_str)
        except ValueError:
            raise click.BadParameter(f"Modification months must be whole numbers; got {item}")
        periods.append(ModificationPeriod(start_month=start, end_month=end, amount=_amount(amt_str)))
    return periods


def parse_one_time_strings(values: Tuple[str, ...], start_date: Optional[date]) -> List[ModificationPeriod]:
    """Parse ``YYYY-MM:AMOUNT`` one-time payments into single-month periods.

    Payments dated before the first month of the loan are dropped.
    """
    periods: List[ModificationPeriod] = []
    for item in values:
        parts = item.rsplit(":", 1)
        if len(parts) != 2:
            raise click.BadParameter(f"One-time payment must be in YYYY-MM:AMOUNT format; got {item}")
        ym, amt_str = parts
        try:
            paid_on = parse_date(ym)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        month = month_index_for_date(start_date, paid_on)
        if month < 1:
            logger.info("Ignoring one-time payment %s dated before the loan start", item)
            continue
        periods.append(ModificationPeriod(start_month=month, end_month=month, amount=_amount(amt_str)))
    return periods


def build_config_from_options(
    principal: str,
    rate: float,
    term: float,
    start_date: Optional[str] = None,
    extra: Optional[str] = None,
    modification: Tuple[str, ...] = (),
    one_time: Tuple[str, ...] = (),
) -> LoanConfiguration:
    # Loans without an explicit start date begin this month.
    start_dt = date.today()
    if start_date:
        try:
            start_dt = parse_date(start_date)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
    periods = parse_modification_strings(modification) if modification else []
    if one_time:
        periods.extend(parse_one_time_strings(one_time, start_dt))
    return LoanConfiguration(
        principal=_amount(principal),
        annual_interest_rate_percent=rate,
        term_years=term,
        start_date=start_dt,
        recurring_extra_payment=_amount(extra) if extra else 0.0,
        modification_periods=tuple(periods),
    )


def _config_and_schedule(**options) -> Tuple[LoanConfiguration, List[AmortizationPeriod]]:
    config = build_config_from_options(**options)
    errors = validate_config(config)
    if errors:
        raise click.UsageError("; ".join(errors))
    schedule_entries = build_schedule(config)
    if not schedule_entries:
        click.echo("Could not generate schedule. Please check your inputs.", err=True)
        sys.exit(1)
    return config, schedule_entries


def loan_options(func: Callable) -> Callable:
    """Attach the options describing a loan to a command."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount (accepts k/m suffixes)"),
        click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)"),
        click.option("--term", "-t", "term", required=True, type=float, help="Loan term in years"),
        click.option("--start-date", "-s", "start_date", help="Loan start date (YYYY-MM or YYYY-MM-DD)"),
        click.option("--extra", "-e", "extra", help="Extra amount paid every month"),
        click.option(
            "--modification",
            "modification",
            multiple=True,
            help="Extra payment for a month range in START:END:AMOUNT format. Example: --modification 13:24:250",
        ),
        click.option(
            "--one-time",
            "one_time",
            multiple=True,
            help="One-time extra payment in YYYY-MM:AMOUNT format",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """A command-line loan amortization planner."""
    configure_logging(logging.DEBUG if verbose else None)


@cli.command()
@loan_options
@click.option("--page", "page", type=int, help=f"Show one page of {Settings.SCHEDULE_PAGE_SIZE} rows")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(page: Optional[int], output: Optional[str], **options) -> None:
    """Compute and print the amortization schedule."""
    config, schedule_entries = _config_and_schedule(**options)
    summary_data = summarize(config, schedule_entries)
    if output:
        path = Path(output)
        suffix = path.suffix.lower()
        if suffix not in (".json", ".csv"):
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        with path.open("w", newline="", encoding="utf-8") as f:
            if suffix == ".json":
                export_to_json(f, config, schedule_entries, summary_data)
            else:
                write_schedule_csv(f, config, schedule_entries)
        click.echo(f"Schedule exported to {path}")
        return

    print_summary(summary_data)
    if page is not None:
        size = Settings.SCHEDULE_PAGE_SIZE
        pages = page_count(schedule_entries, size)
        if not 1 <= page <= pages:
            raise click.BadParameter(f"Page must be between 1 and {pages}")
        click.echo(f"Page {page} of {pages}")
        print_schedule(paginate(schedule_entries, page, size))
    else:
        print_schedule(schedule_entries)


@cli.command()
@loan_options
def summary(**options) -> None:
    """Compute and print only the summary metrics for a loan."""
    config, schedule_entries = _config_and_schedule(**options)
    print_summary(summarize(config, schedule_entries))


@cli.command()
@loan_options
def chart(**options) -> None:
    """Print the remaining balance at the end of each loan year."""
    _, schedule_entries = _config_and_schedule(**options)
    print_balance_chart(yearly_balance_points(schedule_entries))


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--show-schedule", is_flag=True, help="Also print the rebuilt schedule")
def load(path: Path, show_schedule: bool) -> None:
    """Rebuild a schedule from a CSV export and print its summary."""
    try:
        with path.open("r", newline="", encoding="utf-8") as f:
            config, schedule_entries = load_and_rebuild(f)
    except ScheduleFormatError as exc:
        raise click.ClickException(f"Could not read {path}: {exc}")
    if not schedule_entries:
        click.echo("Could not generate schedule. Please check your inputs.", err=True)
        sys.exit(1)
    print_summary(summarize(config, schedule_entries))
    if show_schedule:
        print_schedule(schedule_entries)


@cli.command()
@loan_options
def suggest(**options) -> None:
    """Ask the payment advisor for an optimized payment plan."""
    config = build_config_from_options(**options)
    errors = validate_config(config)
    if errors:
        raise click.UsageError("; ".join(errors))
    try:
        text = PaymentAdvisor().suggest(config)
    except AdvisorError as exc:
        raise click.ClickException(str(exc))
    click.echo(text)


if __name__ == "__main__":
    cli()
