from types import SimpleNamespace

import pytest
from openai import OpenAIError

from amort_calc.advisor import AdvisorError, PaymentAdvisor, build_prompt
from amort_calc.data_models import LoanConfiguration, ModificationPeriod


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


@pytest.fixture
def config():
    return LoanConfiguration(
        principal=100_000,
        annual_interest_rate_percent=5,
        term_years=30,
        recurring_extra_payment=200,
        modification_periods=(ModificationPeriod(13, 24, 500),),
    )


def test_prompt_contains_loan_details(config):
    prompt = build_prompt(config)
    assert "Principal: 100000.00" in prompt
    assert "Interest Rate: 0.05" in prompt
    assert "Loan Term (Months): 360" in prompt
    assert "Extra Payment Amount (monthly): 200.00" in prompt
    assert "Start Month: 13, End Month: 24, Amount: 500.00" in prompt


def test_prompt_omits_missing_extras():
    prompt = build_prompt(LoanConfiguration(principal=5_000, annual_interest_rate_percent=3, term_years=2))
    assert "Extra Payment Amount" not in prompt
    assert "Payment Modification Periods" not in prompt


def test_suggest_returns_model_text(config):
    completions = FakeCompletions(content="  Pay 500 extra in year two.  ")
    advisor = PaymentAdvisor(model_id="test-model", client=_client(completions))
    assert advisor.suggest(config) == "Pay 500 extra in year two."
    call = completions.calls[0]
    assert call["model"] == "test-model"
    assert call["messages"][1]["role"] == "user"
    assert "Loan Term (Months): 360" in call["messages"][1]["content"]


def test_suggest_wraps_api_errors(config):
    advisor = PaymentAdvisor(client=_client(FakeCompletions(error=OpenAIError("boom"))))
    with pytest.raises(AdvisorError):
        advisor.suggest(config)


def test_suggest_rejects_empty_response(config):
    advisor = PaymentAdvisor(client=_client(FakeCompletions(content="   ")))
    with pytest.raises(AdvisorError, match="empty"):
        advisor.suggest(config)
