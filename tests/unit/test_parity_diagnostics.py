"""
Unit tests for the in-out parity and degenerate-barrier diagnostics.
"""

import pytest

from barrier_pricer.diagnostics.parity import (
    check_degenerate_barrier,
    check_in_out_parity,
)
from barrier_pricer.utils.types import BarrierType, MarketInputs, VanillaOptionSpec


@pytest.mark.parametrize("barrier_type, level", [(BarrierType.DOWN, 90.0), (BarrierType.UP, 110.0)])
def test_parity_holds_without_rebate(reference_market, put_100, barrier_type, level):
    check = check_in_out_parity(put_100, barrier_type, level, reference_market)
    assert check.is_valid, check.violations
    assert abs(check.details["difference"]) < 1e-9
    assert "rebate_timing_value" not in check.details


def test_parity_with_rebate_at_zero_rate(zero_rate_market, call_100):
    check = check_in_out_parity(call_100, BarrierType.DOWN, 90.0, zero_rate_market, rebate=2.0)
    assert check.is_valid, check.violations
    assert check.details["rebate_value"] == 2.0


def test_rebate_timing_value_reported(reference_market, call_100):
    """Paying the knock-out rebate at the hit is worth more than paying at expiry."""
    check = check_in_out_parity(call_100, BarrierType.DOWN, 90.0, reference_market, rebate=2.0)
    assert check.is_valid
    assert check.details["rebate_timing_value"] > 0.0


@pytest.mark.parametrize("barrier_type, level", [(BarrierType.DOWN, 90.0), (BarrierType.UP, 110.0)])
@pytest.mark.parametrize("is_call", [True, False])
def test_rebate_timing_value_within_bounds(reference_market, barrier_type, level, is_call):
    """r > 0: 0 <= timing <= R·(1 - e^(-rT))."""
    option = VanillaOptionSpec(strike=100.0, time_to_expiry=1281 / 365.25, is_call=is_call)
    check = check_in_out_parity(option, barrier_type, level, reference_market, rebate=2.0)
    details = check.details
    assert check.is_valid, check.violations
    assert details["timing_lower"] == 0.0
    assert details["timing_upper"] == pytest.approx(2.0 - details["rebate_value"])
    assert 0.0 < details["rebate_timing_value"] < details["timing_upper"]


@pytest.mark.parametrize("barrier_type, level", [(BarrierType.DOWN, 0.95), (BarrierType.UP, 1.15)])
def test_rebate_timing_value_negative_rate(barrier_type, level):
    """r < 0: paying early is worth less, R·(1 - e^(-rT)) <= timing <= 0."""
    market = MarketInputs(spot=1.05, cost_of_carry=0.005, domestic_rate=-0.0075, volatility=0.10)
    option = VanillaOptionSpec(strike=1.0, time_to_expiry=1.0, is_call=True)
    check = check_in_out_parity(option, barrier_type, level, market, rebate=0.01)
    details = check.details
    assert check.is_valid, check.violations
    assert details["timing_upper"] == 0.0
    assert details["timing_lower"] < 0.0
    assert details["timing_lower"] < details["rebate_timing_value"] < 0.0


def test_already_breached_timing_value_at_upper_bound(reference_market, call_100):
    """Spot below a down barrier: the knock-out rebate is paid now."""
    check = check_in_out_parity(call_100, BarrierType.DOWN, 110.0, reference_market, rebate=2.0)
    details = check.details
    assert check.is_valid, check.violations
    assert details["rebate_timing_value"] == pytest.approx(details["timing_upper"], abs=1e-12)


def test_rebate_timing_violation_reported(reference_market, call_100):
    check = check_in_out_parity(call_100, BarrierType.DOWN, 90.0, reference_market, rebate=2.0, tolerance=-1.0)
    assert not check.is_valid
    assert "Rebate timing value" in check.violations[0]


@pytest.mark.parametrize("barrier_type", [BarrierType.DOWN, BarrierType.UP])
@pytest.mark.parametrize("is_call", [True, False])
def test_degenerate_barrier(reference_market, barrier_type, is_call):
    option = VanillaOptionSpec(strike=120.0, time_to_expiry=1281 / 365.25, is_call=is_call)
    check = check_degenerate_barrier(option, barrier_type, reference_market, rebate=2.0)
    assert check.is_valid, check.violations
    assert check.details["knock_in_d_spot"] == 0.0


def test_degenerate_barrier_level_is_relative_to_spot():
    market = MarketInputs(spot=2.0, cost_of_carry=0.01, domestic_rate=0.02, volatility=0.3)
    option = VanillaOptionSpec(strike=2.0, time_to_expiry=1.0, is_call=True)
    check = check_degenerate_barrier(option, BarrierType.UP, market)
    assert check.details["level"] == 2.0e6


def test_parity_violation_reported(reference_market, call_100):
    """A negative tolerance makes any difference a violation."""
    check = check_in_out_parity(call_100, BarrierType.UP, 110.0, reference_market, tolerance=-1.0)
    assert not check.is_valid
    assert "In-out parity violated" in check.violations[0]
