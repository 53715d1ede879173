import math

import pytest

from option_sim.data.schema import MarketConfig, OptionContract
from option_sim.pricing.black_scholes import call_price
from option_sim.strategy import projector as pj


def _contract(cid, strike, premium=10.0, iv=0.60, target_iv=None, label=None):
    return OptionContract(
        contract_id=cid,
        label=label or f"Call {cid}",
        strike=strike,
        premium_paid=premium,
        implied_volatility=iv,
        target_implied_volatility=target_iv,
    )


@pytest.fixture
def leaps_config():
    return MarketConfig(current_price=340.0, target_price=360.0, risk_free_rate=0.045, days_to_expiry=365)


@pytest.fixture
def default_contracts():
    return [
        OptionContract(1, "Deep OTM Call", 420.0, 71.70, 0.6736, delta=0.5409, gamma=0.0017, theta=-0.137),
        OptionContract(2, "Deep ITM Call", 270.0, 126.75, 0.6845, delta=0.7745, gamma=0.0013, theta=-0.1102),
        OptionContract(3, "ATM Call", 340.0, 98.77, 0.6737, delta=0.6608, gamma=0.0016, theta=-0.1288),
    ]


def test_offsets_filtered_to_expiry():
    assert pj.scenario_offsets(100) == [30, 60, 90]
    assert pj.scenario_offsets(365) == list(range(30, 361, 30))
    assert pj.scenario_offsets(20) == []


def test_custom_offsets_sorted_and_unique():
    assert pj.scenario_offsets(100, [90, 10, 45, 10, 120]) == [10, 45, 90]


def test_short_expiry_yields_empty_outputs(leaps_config, default_contracts):
    config = MarketConfig(340.0, 360.0, 0.045, 20)
    chart, table, crush = pj.project(config, default_contracts)
    assert chart == []
    assert table == []
    assert crush is False


def test_volatility_crush_flag():
    crushed = [_contract(1, 300.0, iv=0.60, target_iv=0.45)]
    mild = [_contract(1, 300.0, iv=0.60, target_iv=0.55)]
    unset = [_contract(1, 300.0, iv=0.60)]
    assert pj.detect_volatility_crush(crushed) is True
    assert pj.detect_volatility_crush(mild) is False
    assert pj.detect_volatility_crush(unset) is False

    config = MarketConfig(340.0, 360.0, 0.045, 100)
    assert pj.project(config, mild + crushed).volatility_crush is True


def test_zero_target_iv_is_not_treated_as_unset():
    contract = _contract(1, 340.0, iv=0.60, target_iv=0.0)
    assert contract.effective_volatility == 0.0
    assert contract.has_volatility_crush()

    config = MarketConfig(340.0, 360.0, 0.045, 100)
    chart, table, _ = pj.project(config, [contract])
    T = pj.years_remaining(100, 30)
    expected = 360.0 - 340.0 * math.exp(-0.045 * T)
    assert float(table[0]["details"][0]["estimated_price"]) == pytest.approx(expected, abs=0.01)


def test_target_iv_used_when_set():
    config = MarketConfig(340.0, 360.0, 0.045, 100)
    contract = _contract(1, 340.0, premium=20.0, iv=0.60, target_iv=0.30)
    _, table, _ = pj.project(config, [contract])
    T = pj.years_remaining(100, 60)
    expected = call_price(360.0, 340.0, T, 0.045, 0.30)
    assert table[1]["details"][0]["estimated_price"] == f"{expected:.2f}"


def test_zero_premium_roi_is_zero(leaps_config):
    contract = _contract(1, 340.0, premium=0.0)
    chart, table, _ = pj.project(leaps_config, [contract])
    assert len(chart) == 12
    for point, group in zip(chart, table):
        assert point[contract.series_key] == 0.0
        assert group["details"][0]["roi"] == "0.00"
        assert float(group["details"][0]["profit"]) > 0


def test_worked_example_day_360(leaps_config):
    contract = OptionContract(2, "ATM Call", 340.0, 98.77, 0.6737)
    chart, table, _ = pj.project(leaps_config, [contract])

    last = table[-1]
    assert last["offset_days"] == 360
    assert last["offset_label"] == "Day 360"

    T = pj.years_remaining(365, 360)
    assert T == pytest.approx(5 / 365.0)
    estimated = call_price(360.0, 340.0, T, 0.045, 0.6737)
    assert estimated == pytest.approx(23.95, abs=0.5)

    profit, roi = pj.compute_roi(estimated, 98.77)
    assert profit < 0
    assert roi == pytest.approx(profit / 98.77 * 100.0)
    assert last["details"][0]["profit"] == f"{profit:.2f}"
    assert last["details"][0]["roi"] == f"{roi:.2f}"
    assert chart[-1]["ATM Call ($340)"] == round(roi, 2)


def test_contracts_sorted_by_strike_everywhere(leaps_config, default_contracts):
    chart, table, _ = pj.project(leaps_config, default_contracts)
    expected_keys = ["Deep ITM Call ($270)", "ATM Call ($340)", "Deep OTM Call ($420)"]
    for point, group in zip(chart, table):
        keys = [k for k in point if k not in ("offset_label", "price")]
        assert keys == expected_keys
        assert [d["strike"] for d in group["details"]] == [270.0, 340.0, 420.0]


def test_sort_is_stable_for_equal_strikes():
    a = _contract("a", 300.0, label="First")
    b = _contract("b", 250.0, label="Low")
    c = _contract("c", 300.0, label="Second")
    assert [x.label for x in pj.sort_contracts([a, b, c])] == ["Low", "First", "Second"]


def test_empty_contract_list(leaps_config):
    chart, table, crush = pj.project(leaps_config, [])
    assert len(chart) == 12
    assert all(set(p) == {"offset_label", "price"} for p in chart)
    assert all(g["details"] == [] for g in table)
    assert crush is False


def test_chart_point_carries_simulated_price(leaps_config, default_contracts):
    chart, _, _ = pj.project(leaps_config, default_contracts)
    assert chart[0]["offset_label"] == "Day 30"
    assert all(p["price"] == 360.0 for p in chart)


def test_years_remaining_floor():
    assert pj.years_remaining(365, 365) == pj.MIN_YEARS_REMAINING
    assert pj.years_remaining(300, 360) == pj.MIN_YEARS_REMAINING
    assert pj.years_remaining(365, 360, min_years=0.01) == pytest.approx(5 / 365.0)
    assert pj.years_remaining(100, 95, min_years=0.5) == 0.5


def test_projection_is_idempotent_and_does_not_mutate_input(leaps_config, default_contracts):
    original = list(default_contracts)
    first = pj.project(leaps_config, default_contracts)
    second = pj.project(leaps_config, default_contracts)
    assert first == second
    assert default_contracts == original


def test_theoretical_cost_uses_current_price_and_full_term(leaps_config):
    contract = OptionContract(2, "ATM Call", 340.0, 98.77, 0.6737)
    expected = call_price(340.0, 340.0, 1.0, 0.045, 0.6737)
    assert pj.theoretical_cost(leaps_config, contract) == pytest.approx(expected)
    assert 80.0 < expected < 100.0


def test_series_key_formats_fractional_strike():
    assert _contract(1, 337.5, label="Near").series_key == "Near ($337.5)"


@pytest.mark.parametrize(
    "target_iv,expected",
    [(0.50, False), (0.4999, True), (0.45, True), (0.55, False)],
)
def test_volatility_crush_requires_drop_strictly_beyond_threshold(target_iv, expected):
    contract = _contract(1, 300.0, iv=0.60, target_iv=target_iv)
    assert contract.has_volatility_crush() is expected
    assert pj.detect_volatility_crush([contract]) is expected


def test_crush_threshold_passed_to_project_changes_flag():
    config = MarketConfig(340.0, 360.0, 0.045, 100)
    mild = [_contract(1, 300.0, iv=0.60, target_iv=0.55)]
    crushed = [_contract(1, 300.0, iv=0.60, target_iv=0.45)]

    assert pj.project(config, mild).volatility_crush is False
    assert pj.project(config, mild, crush_threshold=0.02).volatility_crush is True
    assert pj.project(config, crushed, crush_threshold=0.20).volatility_crush is False
