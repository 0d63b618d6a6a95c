"""Utility functions for the amortization planner.

This module provides helpers for parsing user input into Python data types and
for handling dates, including adding months, counting calendar months between
two dates and normalizing year-month strings to ``datetime.date`` instances.
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import Optional


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM`` or ``YYYY-MM-DD`` string into a ``date``.

    A missing day component defaults to the first day of the month.

    Raises
    ------
    ValueError
        If the string is not a valid date.
    """
    try:
        parts = value.strip().split("-")
        if len(parts) not in (2, 3):
            raise ValueError
        year = int(parts[0])
        month = int(parts[1])
        day = int(parts[2]) if len(parts) == 3 else 1
        return date(year, month, day)
    except Exception as exc:
        raise ValueError(f"Invalid date string: {value}") from exc


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def calendar_months_between(start: date, end: date) -> int:
    """Number of calendar months from ``start`` to ``end`` (days are ignored)."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def month_index_for_date(start: Optional[date], payment_date: date) -> int:
    """Return the 1-based schedule month in which ``payment_date`` falls.

    Month 1 is the month of ``start``. Without a start date the current
    month is used, matching how the input layers default the start date.
    """
    anchor = start or date.today()
    return calendar_months_between(anchor, payment_date) + 1


def float_from_str(value: str) -> float:
    """Convert a numeric string into a ``float``.

    The function strips any commas and surrounding whitespace. It raises
    ``ValueError`` if conversion fails.
    """
    try:
        return float(value.replace(",", "").strip())
    except Exception as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc


def parse_amount(value: str) -> float:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("250000") and shorthand with ``k``/``m`` suffixes
    (e.g., "250k" meaning 250_000).
    """
    value = value.strip().lower().replace(",", "")
    factor = 1.0
    if value.endswith("k"):
        factor = 1_000.0
        value = value[:-1]
    elif value.endswith("m"):
        factor = 1_000_000.0
        value = value[:-1]
    return float_from_str(value) * factor
