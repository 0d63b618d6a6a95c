"""Save/load helpers for loan configurations and schedules.

A configuration has one on-disk representation: a JSON object with the start
date as an ISO ``YYYY-MM-DD`` string (or ``null``) and modification periods
as a list of ``{"start_month", "end_month", "amount"}`` objects. Reading it
back either yields a complete ``LoanConfiguration`` or raises
``ScheduleFormatError``; nothing is ever half-restored.

Schedules are exported as CSV whose first row carries the configuration, so
an exported file is enough to rebuild the schedule later.
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import date
from typing import IO, Any, Dict, List, Optional, Sequence, Tuple

from .data_models import AmortizationPeriod, LoanConfiguration, ModificationPeriod
from .engine import build_schedule
from .summary import LoanSummary

logger = logging.getLogger(__name__)

CONFIG_MARKER = "#config"

CSV_HEADER = [
    "Month",
    "Payment",
    "Principal",
    "Interest",
    "Extra Payment",
    "Total Interest",
    "Remaining Balance",
]


class ScheduleFormatError(ValueError):
    """Raised when persisted configuration or schedule data is malformed."""


def config_to_dict(config: LoanConfiguration) -> Dict[str, Any]:
    return {
        "principal": config.principal,
        "annual_interest_rate_percent": config.annual_interest_rate_percent,
        "term_years": config.term_years,
        "start_date": config.start_date.isoformat() if config.start_date else None,
        "recurring_extra_payment": config.recurring_extra_payment,
        "modification_periods": [
            {"start_month": p.start_month, "end_month": p.end_month, "amount": p.amount}
            for p in config.modification_periods
        ],
    }


def _number(data: Dict[str, Any], key: str, default: Optional[float] = None) -> float:
    value = data.get(key, default)
    if value is None or isinstance(value, bool):
        raise ScheduleFormatError(f"Missing or invalid numeric field: {key}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ScheduleFormatError(f"Invalid numeric field {key}: {value!r}") from exc


def _month(data: Dict[str, Any], key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or int(value) != value:
        raise ScheduleFormatError(f"Invalid month field {key}: {value!r}")
    return int(value)


def _parse_iso_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ScheduleFormatError(f"Invalid start_date: {value!r}")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ScheduleFormatError(f"Invalid start_date: {value!r}") from exc


def config_from_dict(data: Any) -> LoanConfiguration:
    """Rebuild a ``LoanConfiguration`` from ``config_to_dict`` output.

    Raises
    ------
    ScheduleFormatError
        If any field is missing or has the wrong shape.
    """
    if not isinstance(data, dict):
        raise ScheduleFormatError("Configuration must be a JSON object")
    raw_periods = data.get("modification_periods")
    if raw_periods is None:
        raw_periods = []
    if not isinstance(raw_periods, list):
        raise ScheduleFormatError("modification_periods must be a list")
    periods = []
    for raw in raw_periods:
        if not isinstance(raw, dict):
            raise ScheduleFormatError(f"Invalid modification period: {raw!r}")
        periods.append(
            ModificationPeriod(
                start_month=_month(raw, "start_month"),
                end_month=_month(raw, "end_month"),
                amount=_number(raw, "amount"),
            )
        )
    return LoanConfiguration(
        principal=_number(data, "principal"),
        annual_interest_rate_percent=_number(data, "annual_interest_rate_percent"),
        term_years=_number(data, "term_years"),
        start_date=_parse_iso_date(data.get("start_date")),
        recurring_extra_payment=_number(data, "recurring_extra_payment", 0.0),
        modification_periods=tuple(periods),
    )


def period_to_dict(period: AmortizationPeriod) -> Dict[str, Any]:
    return {
        "month": period.month,
        "payment": period.payment,
        "principal": period.principal_component,
        "interest": period.interest_component,
        "extra_payment": period.extra_payment_applied,
        "total_interest": period.cumulative_interest,
        "remaining_balance": period.remaining_balance,
    }


def write_schedule_csv(stream: IO[str], config: LoanConfiguration, schedule: Sequence[AmortizationPeriod]) -> None:
    """Write the configuration record, the header and one row per period."""
    writer = csv.writer(stream)
    writer.writerow([CONFIG_MARKER, json.dumps(config_to_dict(config))])
    writer.writerow(CSV_HEADER)
    for p in schedule:
        writer.writerow(
            [
                p.month,
                f"{p.payment:.2f}",
                f"{p.principal_component:.2f}",
                f"{p.interest_component:.2f}",
                f"{p.extra_payment_applied:.2f}",
                f"{p.cumulative_interest:.2f}",
                f"{p.remaining_balance:.2f}",
            ]
        )


def read_schedule_csv(stream: IO[str]) -> Tuple[LoanConfiguration, List[AmortizationPeriod]]:
    """Read a file produced by ``write_schedule_csv``.

    Returns the configuration and the stored periods. The periods carry the
    rounded values that were written; callers that need exact figures should
    rebuild the schedule from the configuration (see ``load_and_rebuild``).
    """
    reader = csv.reader(stream)
    first = next(reader, None)
    if not first or first[0] != CONFIG_MARKER or len(first) < 2:
        raise ScheduleFormatError("Missing configuration record on the first row")
    try:
        config = config_from_dict(json.loads(first[1]))
    except json.JSONDecodeError as exc:
        raise ScheduleFormatError("Configuration record is not valid JSON") from exc

    header = next(reader, None)
    if header != CSV_HEADER:
        raise ScheduleFormatError(f"Unexpected column header: {header!r}")

    periods: List[AmortizationPeriod] = []
    for line_no, row in enumerate(reader, start=3):
        if not row:
            continue
        if len(row) != len(CSV_HEADER):
            raise ScheduleFormatError(f"Line {line_no}: expected {len(CSV_HEADER)} columns, got {len(row)}")
        try:
            periods.append(
                AmortizationPeriod(
                    month=int(row[0]),
                    payment=float(row[1]),
                    principal_component=float(row[2]),
                    interest_component=float(row[3]),
                    extra_payment_applied=float(row[4]),
                    cumulative_interest=float(row[5]),
                    remaining_balance=float(row[6]),
                )
            )
        except ValueError as exc:
            raise ScheduleFormatError(f"Line {line_no}: {exc}") from exc
    return config, periods


def load_and_rebuild(stream: IO[str]) -> Tuple[LoanConfiguration, List[AmortizationPeriod]]:
    """Reconstruct the configuration from a CSV export and recompute its schedule."""
    config, stored = read_schedule_csv(stream)
    schedule = build_schedule(config)
    if stored and len(stored) != len(schedule):
        logger.info(
            "Stored schedule has %d periods, rebuilt schedule has %d", len(stored), len(schedule)
        )
    return config, schedule


def export_to_json(
    stream: IO[str],
    config: LoanConfiguration,
    schedule: Sequence[AmortizationPeriod],
    summary: Optional[LoanSummary],
) -> None:
    """Export configuration, summary and schedule as one JSON document."""
    data = {
        "config": config_to_dict(config),
        "summary": summary.to_dict() if summary else None,
        "schedule": [period_to_dict(p) for p in schedule],
    }
    json.dump(data, stream, indent=2)
