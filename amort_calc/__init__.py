"""Loan amortization planner: schedule engine, summaries and CLI."""

from .data_models import AmortizationPeriod, LoanConfiguration, ModificationPeriod, validate_config
from .engine import build_schedule, compute_standard_payment

__all__ = [
    "AmortizationPeriod",
    "LoanConfiguration",
    "ModificationPeriod",
    "validate_config",
    "build_schedule",
    "compute_standard_payment",
]
