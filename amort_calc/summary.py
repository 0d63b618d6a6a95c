"""Summary statistics derived from an amortization schedule.

The engine only produces periods; everything a reader wants to know at a
glance (total interest, payoff date, how much the extra payments saved) is
computed here from the schedule and the configuration that produced it.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .data_models import AmortizationPeriod, LoanConfiguration
from .engine import compute_standard_payment
from .utils import add_months


@dataclass
class LoanSummary:
    monthly_payment: float
    total_principal: float
    total_interest: float
    total_payments: float
    total_extra: float
    total_months: int
    original_term_months: int
    payoff_date: Optional[date]
    original_payoff_date: Optional[date]
    paid_off: bool
    months_saved: int = 0
    original_total_interest: float = 0.0
    interest_saved: float = 0.0

    @property
    def has_savings(self) -> bool:
        return self.months_saved > 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key in ("payoff_date", "original_payoff_date"):
            if data[key] is not None:
                data[key] = data[key].isoformat()
        return data


def is_paid_off(schedule: Sequence[AmortizationPeriod]) -> bool:
    """True when the schedule ends with a zero balance.

    A non-empty schedule that is not paid off was stopped by the iteration cap.
    """
    return bool(schedule) and schedule[-1].remaining_balance == 0


def summarize(config: LoanConfiguration, schedule: Sequence[AmortizationPeriod]) -> Optional[LoanSummary]:
    """Compute summary metrics for ``schedule``.

    Returns ``None`` for an empty schedule. Savings are reported only when
    the loan is paid off before the original term ends; the baseline interest
    is ``standard payment * original term - principal``.
    """
    if not schedule:
        return None

    last = schedule[-1]
    monthly_payment = compute_standard_payment(
        config.principal, config.annual_interest_rate_percent, config.term_years
    )
    original_term_months = math.ceil(config.scheduled_months)
    total_months = last.month

    payoff_date = None
    original_payoff_date = None
    if config.start_date is not None:
        payoff_date = add_months(config.start_date, total_months)
        original_payoff_date = add_months(config.start_date, original_term_months)

    summary = LoanSummary(
        monthly_payment=monthly_payment,
        total_principal=sum(p.principal_component for p in schedule),
        total_interest=last.cumulative_interest,
        total_payments=sum(p.payment for p in schedule),
        total_extra=sum(p.extra_payment_applied for p in schedule),
        total_months=total_months,
        original_term_months=original_term_months,
        payoff_date=payoff_date,
        original_payoff_date=original_payoff_date,
        paid_off=is_paid_off(schedule),
    )

    if total_months < original_term_months:
        summary.months_saved = original_term_months - total_months
        summary.original_total_interest = monthly_payment * original_term_months - config.principal
        summary.interest_saved = max(0.0, summary.original_total_interest - summary.total_interest)

    return summary


def yearly_balance_points(schedule: Sequence[AmortizationPeriod]) -> List[Tuple[int, float]]:
    """Sample the remaining balance once per year for charting.

    One point is taken at every twelfth month plus the final period, keyed by
    the (1-based) loan year it falls in.
    """
    points: List[Tuple[int, float]] = []
    last_index = len(schedule) - 1
    for index, period in enumerate(schedule):
        if period.month % 12 == 0 or index == last_index:
            points.append((math.ceil(period.month / 12), period.remaining_balance))
    return points


def paginate(schedule: Sequence[AmortizationPeriod], page: int, page_size: int) -> List[AmortizationPeriod]:
    """Return the 1-based ``page`` of the schedule; out-of-range pages are empty."""
    if page < 1 or page_size < 1:
        return []
    start = (page - 1) * page_size
    return list(schedule[start : start + page_size])


def page_count(schedule: Sequence[AmortizationPeriod], page_size: int) -> int:
    return math.ceil(len(schedule) / page_size) if page_size > 0 else 0
