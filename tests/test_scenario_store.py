from datetime import date

import pytest

from amort_calc.data_models import LoanConfiguration, ModificationPeriod
from amort_calc_web.scenario_store import SavedScenarioModel, ScenarioStore


@pytest.fixture
def store(tmp_path):
    return ScenarioStore(f"sqlite:///{tmp_path / 'scenarios.sqlite3'}", max_per_user=3)


@pytest.fixture
def config():
    return LoanConfiguration(
        principal=200_000,
        annual_interest_rate_percent=6,
        term_years=25,
        start_date=date(2025, 5, 1),
        recurring_extra_payment=150,
        modification_periods=(ModificationPeriod(6, 18, 400),),
    )


def test_save_list_and_load(store, config):
    store.save_scenario("user-a", "s1", "Extra 150", config, {"total_months": 250})
    scenarios = store.list_scenarios("user-a")
    assert [s["name"] for s in scenarios] == ["Extra 150"]
    assert scenarios[0]["summary"] == {"total_months": 250}
    assert store.load_config("user-a", "s1") == config


def test_scenarios_are_scoped_to_user(store, config):
    store.save_scenario("user-a", "s1", "Mine", config, {})
    assert store.list_scenarios("user-b") == []
    assert store.load_config("user-b", "s1") is None
    store.remove_scenario("user-b", "s1")
    assert len(store.list_scenarios("user-a")) == 1


def test_missing_user_token_is_ignored(store, config):
    store.save_scenario("", "s1", "Nobody", config, {})
    assert store.list_scenarios("") == []
    assert store.load_config("", "s1") is None


def test_remove_and_clear(store, config):
    for idx in range(3):
        store.save_scenario("user-a", f"s{idx}", f"Scenario {idx}", config, {})
    store.remove_scenario("user-a", "s0")
    assert {s["id"] for s in store.list_scenarios("user-a")} == {"s1", "s2"}
    store.clear_scenarios("user-a")
    assert store.list_scenarios("user-a") == []


def test_oldest_scenarios_are_trimmed(store, config):
    for idx in range(5):
        store.save_scenario("user-a", f"s{idx}", f"Scenario {idx}", config, {})
    assert len(store.list_scenarios("user-a")) == 3


def test_corrupt_saved_configuration_loads_as_none(store, config):
    store.save_scenario("user-a", "s1", "Broken", config, {})
    with store._session_factory() as session:
        row = session.get(SavedScenarioModel, "s1")
        row.config_json = '{"principal": "a lot"}'
        session.commit()
    assert store.load_config("user-a", "s1") is None
