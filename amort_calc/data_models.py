"""Data models for the amortization planner.

This module defines dataclasses representing the entities used by the
calculator: modification periods (ranges of months with an additional
payment), the overall loan configuration and the individual periods of the
resulting schedule. Using dataclasses makes it easy to construct, inspect and
serialize these structures.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class ModificationPeriod:
    """An additional payment applied during a range of months.

    Attributes
    ----------
    start_month: int
        First month (1-based, inclusive) in which the amount is paid.
    end_month: int
        Last month (inclusive) in which the amount is paid.
    amount: float
        Extra amount paid in every month of the range.
    """

    start_month: int
    end_month: int
    amount: float

    def covers(self, month: int) -> bool:
        return self.start_month <= month <= self.end_month


@dataclass(frozen=True)
class LoanConfiguration:
    """Configuration of a loan.

    This configuration collects all user inputs into a single object. It is
    immutable so the same configuration can be handed to the engine, the
    serializer and the scenario store without defensive copies.
    """

    principal: float
    annual_interest_rate_percent: float  # 5 means 5 %
    term_years: float
    start_date: Optional[date] = None
    recurring_extra_payment: float = 0.0
    modification_periods: Tuple[ModificationPeriod, ...] = ()

    @property
    def scheduled_months(self) -> float:
        return self.term_years * 12

    def extra_for_month(self, month: int) -> float:
        """Return the extra contribution due in ``month``.

        Overlapping modification periods are additive: every range covering
        the month contributes its amount on top of the recurring extra payment.
        """
        extra = self.recurring_extra_payment or 0.0
        for period in self.modification_periods:
            if period.covers(month):
                extra += period.amount
        return extra


@dataclass
class AmortizationPeriod:
    """One month of the amortization schedule.

    ``principal_component + interest_component`` always equals ``payment``.
    ``extra_payment_applied`` is the part of ``payment`` attributable to extra
    contributions (recurring and modification periods).
    """

    month: int
    payment: float
    principal_component: float
    interest_component: float
    remaining_balance: float
    cumulative_interest: float
    extra_payment_applied: float

    @property
    def regular_payment(self) -> float:
        """The part of ``payment`` that is not an extra contribution."""
        return self.payment - self.extra_payment_applied


def validate_config(config: LoanConfiguration) -> List[str]:
    """Return a list of validation messages for ``config``.

    An empty list means the configuration is valid. These are the rules the
    input layers (CLI and web form) enforce before calling the engine; the
    engine itself only returns an empty schedule for unusable inputs.
    """
    errors: List[str] = []
    if not math.isfinite(config.principal) or config.principal <= 0:
        errors.append("Principal must be a positive number")
    if not math.isfinite(config.annual_interest_rate_percent):
        errors.append("Interest rate must be a number")
    elif config.annual_interest_rate_percent < 0:
        errors.append("Interest rate cannot be negative")
    if not math.isfinite(config.term_years) or config.term_years <= 0:
        errors.append("Term must be a positive number")
    if not math.isfinite(config.recurring_extra_payment):
        errors.append("Extra payment must be a number")
    elif config.recurring_extra_payment < 0:
        errors.append("Extra payment cannot be negative")
    for idx, period in enumerate(config.modification_periods, start=1):
        if period.start_month < 1:
            errors.append(f"Modification {idx}: start month must be at least 1")
        if period.end_month < period.start_month:
            errors.append(f"Modification {idx}: end month must not precede start month")
        if not math.isfinite(period.amount):
            errors.append(f"Modification {idx}: amount must be a number")
        elif period.amount < 0:
            errors.append(f"Modification {idx}: amount cannot be negative")
    return errors
