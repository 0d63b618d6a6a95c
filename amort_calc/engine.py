"""Core calculation engine for the amortization planner.

This module implements the financial logic required to build a month-by-month
amortization schedule for a fixed-rate loan. The standard (annuity) payment is
computed once from the original loan terms and never recalculated, so any
extra contribution, whether recurring or limited to a range of months, goes
entirely to principal and shortens the loan instead of lowering later
payments.

Both functions are pure: they read only their arguments and never raise for
well-typed input. Unusable inputs produce ``0`` or an empty schedule.
"""

from __future__ import annotations

import logging
import math
from typing import List

from .data_models import AmortizationPeriod, LoanConfiguration

logger = logging.getLogger(__name__)

# Balances at or below half a cent are treated as paid off. Without this,
# floating point residue (e.g. 3e-10) would produce phantom trailing periods.
PAYOFF_TOLERANCE = 0.005


def compute_standard_payment(principal: float, annual_rate_percent: float, term_years: float) -> float:
    """Return the fixed monthly payment for a fully amortizing loan.

    The formula is:

        payment = P * (r * (1 + r)^n) / ((1 + r)^n - 1)

    where ``P`` is the principal, ``r`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, the
    payment simplifies to ``P / n``.

    Returns ``0`` when the inputs are not computable (non-positive principal
    or term, negative rate) or when the formula does not produce a finite
    number.
    """
    if not all(math.isfinite(v) for v in (principal, annual_rate_percent, term_years)):
        return 0.0
    if principal <= 0 or term_years <= 0 or annual_rate_percent < 0:
        return 0.0
    monthly_rate = annual_rate_percent / 100 / 12
    n_payments = term_years * 12
    if monthly_rate == 0:
        return principal / n_payments
    try:
        factor = (1 + monthly_rate) ** n_payments
        payment = principal * (monthly_rate * factor) / (factor - 1)
    except (OverflowError, ZeroDivisionError):
        return 0.0
    if not math.isfinite(payment):
        return 0.0
    return payment


def _max_periods(config: LoanConfiguration) -> int:
    # Hard cap: twice the scheduled number of payments, at least one period.
    return max(1, math.ceil(2 * config.scheduled_months))


def _is_computable(config: LoanConfiguration) -> bool:
    amounts = [
        config.principal,
        config.annual_interest_rate_percent,
        config.term_years,
        config.recurring_extra_payment,
    ]
    amounts.extend(p.amount for p in config.modification_periods)
    if not all(math.isfinite(a) for a in amounts):
        return False
    return config.principal > 0 and config.annual_interest_rate_percent >= 0 and config.term_years > 0


def build_schedule(config: LoanConfiguration) -> List[AmortizationPeriod]:
    """Compute the amortization schedule for a loan.

    Parameters
    ----------
    config: LoanConfiguration
        The loan configuration, including the recurring extra payment and any
        modification periods.

    Returns
    -------
    List[AmortizationPeriod]
        One entry per month until the balance reaches zero. An empty list
        means the configuration is not computable. If extra payments never
        overcome accruing interest, the list stops at the iteration cap and
        its last ``remaining_balance`` stays positive.
    """
    if not _is_computable(config):
        return []

    monthly_rate = config.annual_interest_rate_percent / 100 / 12
    standard_payment = compute_standard_payment(
        config.principal, config.annual_interest_rate_percent, config.term_years
    )
    if standard_payment <= 0:
        # Formula overflowed; there is no baseline to amortize against.
        return []

    max_periods = _max_periods(config)
    balance = float(config.principal)
    cumulative_interest = 0.0
    schedule: List[AmortizationPeriod] = []

    month = 1
    # A principal already within the tolerance still gets its single payoff period.
    while month <= max_periods and (balance > PAYOFF_TOLERANCE or month == 1):
        interest = balance * monthly_rate if monthly_rate else 0.0
        extra = config.extra_for_month(month)
        available = standard_payment + extra
        principal_portion = available - interest

        if balance <= principal_portion:
            # Final period: pay exactly what is left.
            cumulative_interest += interest
            payment = balance + interest
            schedule.append(
                AmortizationPeriod(
                    month=month,
                    payment=payment,
                    principal_component=balance,
                    interest_component=interest,
                    remaining_balance=0.0,
                    cumulative_interest=cumulative_interest,
                    extra_payment_applied=max(0.0, payment - standard_payment),
                )
            )
            balance = 0.0
            break

        balance -= principal_portion
        cumulative_interest += interest
        payment = available
        extra_applied = max(0.0, extra)
        if balance <= PAYOFF_TOLERANCE:
            # Rounding residue: fold it into this period so the schedule ends at zero.
            principal_portion += balance
            payment += balance
            balance = 0.0

        schedule.append(
            AmortizationPeriod(
                month=month,
                payment=payment,
                principal_component=principal_portion,
                interest_component=interest,
                remaining_balance=balance,
                cumulative_interest=cumulative_interest,
                extra_payment_applied=extra_applied,
            )
        )
        month += 1

    if balance > 0:
        logger.debug(
            "Schedule stopped at the %d period cap with %.2f outstanding", max_periods, balance
        )
    return schedule
