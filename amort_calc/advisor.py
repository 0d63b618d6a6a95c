"""
Payment advisor - natural-language suggestions for paying a loan off sooner.

Sends the loan parameters to an OpenAI chat model and returns its plain-text
suggestion. The result is advisory only; nothing in the engine consumes it.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from .config import Settings
from .data_models import LoanConfiguration

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are an expert financial advisor specializing in loan amortization and debt optimization."

PROMPT_TEMPLATE = """Based on the provided loan details, suggest an optimized payment schedule to minimize the total interest paid and shorten the loan term. Consider the impact of extra payments, if any, and how they can be strategically applied.

Loan Details:
Principal: {principal}
Interest Rate: {interest_rate}
Loan Term (Months): {term_months}
{extras}
Provide a detailed payment schedule that includes the optimized payment plan, total interest paid, and the reduced loan term, incorporating any extra payments.
Assume the user wants to pay the least amount of interest possible and shorten the loan term as much as possible.
Take into account that users might be willing to make extra payments on certain months but not others.
Do not include any disclaimers. Only include the optimized payment schedule.
Include the new total interest paid, and the new loan term in months.
Include a table with the month number, payment amount, principal paid, interest paid, and remaining balance.
"""


class AdvisorError(RuntimeError):
    """Raised when a suggestion cannot be obtained."""


def build_prompt(config: LoanConfiguration) -> str:
    extra_lines = []
    if config.recurring_extra_payment:
        extra_lines.append(f"Extra Payment Amount (monthly): {config.recurring_extra_payment:.2f}")
    if config.modification_periods:
        extra_lines.append("Payment Modification Periods:")
        for p in config.modification_periods:
            extra_lines.append(f"  Start Month: {p.start_month}, End Month: {p.end_month}, Amount: {p.amount:.2f}")
    return PROMPT_TEMPLATE.format(
        principal=f"{config.principal:.2f}",
        # the model is given the rate as a decimal fraction, e.g. 0.05 for 5 %
        interest_rate=f"{config.annual_interest_rate_percent / 100:g}",
        term_months=round(config.scheduled_months),
        extras="\n".join(extra_lines) + ("\n" if extra_lines else ""),
    )


class PaymentAdvisor:
    """Client for optimization suggestions."""

    def __init__(self, model_id: Optional[str] = None, client: Optional[Any] = None):
        self.model_id = model_id or Settings.MODEL_ID
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=Settings.OPENAI_API_KEY)
        return self._client

    def suggest(self, config: LoanConfiguration) -> str:
        """
        Ask the model for an optimized payment plan.

        Args:
            config: The loan to optimize

        Returns:
            str: The suggestion text

        Raises:
            AdvisorError: If the API call fails or returns no text
        """
        prompt = build_prompt(config)
        logger.info("[ADVISOR] Requesting suggestion from %s", self.model_id)
        try:
            response = self.client.chat.completions.create(
                model=self.model_id,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except OpenAIError as exc:
            logger.error("[ADVISOR] Suggestion request failed: %s", exc)
            raise AdvisorError("There was an error getting a suggestion. Please try again.") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            logger.warning("[ADVISOR] Empty suggestion returned")
            raise AdvisorError("The advisor returned an empty suggestion.")
        return content.strip()
