import math

import pytest

from amort_calc.data_models import LoanConfiguration, ModificationPeriod
from amort_calc.engine import build_schedule, compute_standard_payment
from amort_calc.summary import is_paid_off


def _config(**overrides):
    values = dict(principal=100_000.0, annual_interest_rate_percent=5.0, term_years=30)
    values.update(overrides)
    return LoanConfiguration(**values)


def test_standard_payment_known_case():
    # 100k @ 5% over 30y ~ 536.82
    assert math.isclose(compute_standard_payment(100_000, 5, 30), 536.82, abs_tol=0.01)


def test_standard_payment_zero_rate_is_straight_line():
    assert compute_standard_payment(12_000, 0, 1) == 1000.0


@pytest.mark.parametrize(
    "principal, rate, term",
    [(0, 5, 30), (-1, 5, 30), (100_000, -0.5, 30), (100_000, 5, 0), (100_000, 5, -2)],
)
def test_standard_payment_not_computable(principal, rate, term):
    assert compute_standard_payment(principal, rate, term) == 0.0


def test_standard_payment_overflow_returns_zero():
    assert compute_standard_payment(1_000, 5, 1_000_000) == 0.0


def test_standard_schedule_has_full_term():
    schedule = build_schedule(_config())
    assert len(schedule) == 360
    assert schedule[-1].month == 360
    assert schedule[-1].remaining_balance == 0.0
    assert schedule[-1].cumulative_interest == pytest.approx(93_255.78, abs=1)
    assert schedule[-1].extra_payment_applied == pytest.approx(0.0, abs=1e-6)


def test_zero_rate_schedule():
    schedule = build_schedule(LoanConfiguration(principal=12_000, annual_interest_rate_percent=0, term_years=1))
    assert len(schedule) == 12
    for period in schedule:
        assert period.payment == 1000.0
        assert period.interest_component == 0.0
        assert period.principal_component == 1000.0
        assert period.cumulative_interest == 0.0
    assert schedule[-1].remaining_balance == 0.0


def test_zero_rate_final_period_is_capped():
    config = LoanConfiguration(
        principal=12_000, annual_interest_rate_percent=0, term_years=1, recurring_extra_payment=500
    )
    schedule = build_schedule(config)
    assert len(schedule) == 8
    last = schedule[-1]
    # 7 * 1500 = 10500 paid, 1500 left for month 8
    assert last.payment == pytest.approx(1500.0)
    assert last.principal_component == pytest.approx(1500.0)
    assert last.extra_payment_applied == pytest.approx(500.0)
    assert last.remaining_balance == 0.0


def test_recurring_extra_payment_shortens_term():
    base = build_schedule(_config())
    extra = build_schedule(_config(recurring_extra_payment=200))
    assert len(extra) < 360
    assert extra[-1].remaining_balance == 0.0
    assert extra[-1].cumulative_interest < base[-1].cumulative_interest
    assert all(p.extra_payment_applied == 200 for p in extra[:-1])


def test_overlapping_modification_periods_are_additive():
    config = _config(
        modification_periods=(
            ModificationPeriod(start_month=4, end_month=8, amount=100),
            ModificationPeriod(start_month=6, end_month=12, amount=50),
        )
    )
    schedule = build_schedule(config)
    by_month = {p.month: p for p in schedule}
    assert by_month[3].extra_payment_applied == 0
    assert by_month[5].extra_payment_applied == 100
    assert by_month[6].extra_payment_applied == 150
    assert by_month[9].extra_payment_applied == 50
    assert by_month[6].regular_payment == pytest.approx(compute_standard_payment(100_000, 5, 30))


def test_modification_adds_to_recurring_extra():
    config = _config(
        recurring_extra_payment=25,
        modification_periods=(ModificationPeriod(start_month=2, end_month=2, amount=75),),
    )
    schedule = build_schedule(config)
    assert schedule[0].extra_payment_applied == 25
    assert schedule[1].extra_payment_applied == 100


@pytest.mark.parametrize(
    "overrides",
    [
        {"principal": 0},
        {"principal": -5_000},
        {"term_years": 0},
        {"term_years": -1},
        {"annual_interest_rate_percent": -1},
    ],
)
def test_invalid_configuration_returns_empty(overrides):
    assert build_schedule(_config(**overrides)) == []


def test_overflowing_payment_returns_empty():
    assert build_schedule(_config(principal=1_000, term_years=1_000_000)) == []


def test_final_period_clamped_to_remaining_balance():
    config = LoanConfiguration(
        principal=1_000,
        annual_interest_rate_percent=12,
        term_years=1,
        modification_periods=(ModificationPeriod(start_month=3, end_month=3, amount=5_000),),
    )
    schedule = build_schedule(config)
    assert len(schedule) == 3
    prior_balance = schedule[1].remaining_balance
    last = schedule[2]
    assert last.principal_component == prior_balance
    assert last.remaining_balance == 0.0
    assert last.payment == pytest.approx(prior_balance + last.interest_component)
    assert last.extra_payment_applied >= 0
    assert last.extra_payment_applied < 5_000


@pytest.mark.parametrize(
    "config",
    [
        _config(),
        _config(recurring_extra_payment=350),
        _config(annual_interest_rate_percent=0.01, term_years=15),
        _config(annual_interest_rate_percent=18, term_years=5),
        _config(principal=250_000, term_years=7.5,
                modification_periods=(ModificationPeriod(1, 24, 1_000), ModificationPeriod(12, 36, 10_000))),
        LoanConfiguration(principal=12_000, annual_interest_rate_percent=0, term_years=1),
    ],
)
def test_schedule_invariants(config):
    schedule = build_schedule(config)
    assert schedule
    previous_balance = config.principal
    previous_interest = 0.0
    for index, period in enumerate(schedule, start=1):
        assert period.month == index
        assert period.principal_component + period.interest_component == pytest.approx(period.payment, abs=1e-6)
        assert period.remaining_balance < previous_balance
        assert period.remaining_balance >= 0
        assert period.cumulative_interest >= previous_interest
        assert period.extra_payment_applied >= 0
        previous_balance = period.remaining_balance
        previous_interest = period.cumulative_interest
    assert schedule[-1].remaining_balance == 0.0
    assert len(schedule) <= math.ceil(2 * config.scheduled_months)


def test_build_schedule_is_deterministic():
    config = _config(
        recurring_extra_payment=120,
        modification_periods=(ModificationPeriod(10, 20, 300),),
    )
    assert build_schedule(config) == build_schedule(config)


def test_fractional_term_under_one_month():
    schedule = build_schedule(_config(principal=500, term_years=0.05))
    assert len(schedule) == 1
    assert schedule[0].remaining_balance == 0.0


@pytest.mark.parametrize(
    "overrides",
    [
        {"principal": math.nan},
        {"annual_interest_rate_percent": math.nan},
        {"term_years": math.inf},
        {"recurring_extra_payment": math.nan},
        {"modification_periods": (ModificationPeriod(1, 12, math.nan),)},
    ],
)
def test_non_finite_input_returns_empty(overrides):
    assert build_schedule(_config(**overrides)) == []


def test_standard_payment_nan_returns_zero():
    assert compute_standard_payment(math.nan, 5, 30) == 0.0
    assert compute_standard_payment(100_000, math.nan, 30) == 0.0


def test_schedule_stops_at_cap_when_payments_never_pay_off():
    # The negative extra cancels all but 1.0 of the 1000.0 standard payment.
    config = _config(
        principal=12_000.0, annual_interest_rate_percent=0.0, term_years=1, recurring_extra_payment=-999.0
    )
    schedule = build_schedule(config)
    assert len(schedule) == math.ceil(2 * config.scheduled_months) == 24
    assert all(math.isclose(p.payment, 1.0) for p in schedule)
    assert math.isclose(schedule[-1].remaining_balance, 11_976.0)
    assert schedule[-1].remaining_balance > 0
    assert not is_paid_off(schedule)


def test_principal_within_tolerance_gets_single_period():
    schedule = build_schedule(_config(principal=0.004))
    assert len(schedule) == 1
    period = schedule[0]
    assert period.remaining_balance == 0.0
    assert math.isclose(period.principal_component, 0.004)
    assert math.isclose(period.payment, period.principal_component + period.interest_component)
