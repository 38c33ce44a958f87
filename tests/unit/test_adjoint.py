"""
Unit tests for the adjoint barrier derivatives.

Derivatives are checked against centered finite differences on the
reference FX market, for every barrier side, knock type and strike, with
and without rebate.
"""

import math

import pytest
from scipy.stats import norm

from barrier_pricer.core.barrier import barrier_price_adjoint
from barrier_pricer.core.black import vanilla_price_adjoint
from barrier_pricer.diagnostics.parity import (
    check_adjoint_derivatives,
    finite_difference_derivatives,
)
from barrier_pricer.utils.constants import DERIVATIVE_NAMES
from barrier_pricer.utils.types import BarrierSpec, MarketInputs, VanillaOptionSpec

EXPIRY = 1281 / 365.25

# Absolute tolerance per derivative: spot, strike, rate, carry, vol
TOLERANCES = {
    "spot": 1e-5,
    "strike": 1e-5,
    "rate": 1e-4,
    "cost_of_carry": 1e-4,
    "volatility": 1e-4,
}


@pytest.mark.parametrize("strike", [100.0, 120.0])
@pytest.mark.parametrize("is_call", [True, False])
@pytest.mark.parametrize("knock", ["in", "out"])
@pytest.mark.parametrize("side, level", [("down", 90.0), ("up", 110.0)])
@pytest.mark.parametrize("rebate", [0.0, 2.0])
def test_adjoint_vs_finite_differences(reference_market, strike, is_call, knock, side, level, rebate):
    option = VanillaOptionSpec(strike=strike, time_to_expiry=EXPIRY, is_call=is_call)
    barrier = BarrierSpec(knock, side, level, rebate)

    adjoint = barrier_price_adjoint(option, barrier, reference_market).as_dict()
    numerical = finite_difference_derivatives(option, barrier, reference_market)

    for name in DERIVATIVE_NAMES:
        assert abs(adjoint[name] - numerical[name]) < TOLERANCES[name], (
            f"d/d{name}: adjoint {adjoint[name]} vs finite difference {numerical[name]}"
        )


def test_adjoint_zero_rate_zero_carry(put_120):
    """λ = 1/2 and ν = 1/2 exactly."""
    market = MarketInputs(spot=105.0, cost_of_carry=0.0, domestic_rate=0.0, volatility=0.2)
    for knock in ("in", "out"):
        check = check_adjoint_derivatives(put_120, BarrierSpec(knock, "up", 110.0, 2.0), market)
        assert check.is_valid, check.violations


def test_adjoint_at_nu_zero(call_100):
    """(λ - 1)² + 2r/σ² = 0: λ = 1 and r = 0. Any bump of r below zero leaves ν complex."""
    market = MarketInputs(spot=105.0, cost_of_carry=0.02, domestic_rate=0.0, volatility=0.2)
    result = barrier_price_adjoint(call_100, BarrierSpec("out", "down", 90.0, 2.0), market)
    assert math.isfinite(result.price)
    assert all(math.isfinite(d) for d in result.derivatives)

    barrier = BarrierSpec("out", "down", 90.0, 2.0)
    h = 1e-3
    up = MarketInputs(spot=105.0 + h, cost_of_carry=0.02, domestic_rate=0.0, volatility=0.2)
    down = MarketInputs(spot=105.0 - h, cost_of_carry=0.02, domestic_rate=0.0, volatility=0.2)
    fd_spot = (barrier_price_adjoint(call_100, barrier, up).price - barrier_price_adjoint(call_100, barrier, down).price) / (2 * h)
    assert abs(result.derivatives[0] - fd_spot) < TOLERANCES["spot"]


@pytest.mark.parametrize("is_call", [True, False])
@pytest.mark.parametrize("side, level", [("down", 0.95), ("up", 1.15)])
def test_adjoint_knock_out_rebate_negative_rate(is_call, side, level):
    """r = -0.75%, b = 0.5%, σ = 10%: (λ - 1)² + 2r/σ² = -1.5, ν is imaginary."""
    market = MarketInputs(spot=1.05, cost_of_carry=0.005, domestic_rate=-0.0075, volatility=0.10)
    option = VanillaOptionSpec(strike=1.0, time_to_expiry=1.0, is_call=is_call)
    check = check_adjoint_derivatives(
        option,
        BarrierSpec("out", side, level, 0.01),
        market,
        tolerance=1e-6,
        steps={"spot": 1e-5, "strike": 1e-5},
    )
    assert check.is_valid, check.violations


def test_unreachable_knock_in_derivatives(reference_market, call_100):
    """Only the rate derivative of R·e^(-rT) survives."""
    level = 1e-6 * reference_market.spot
    result = barrier_price_adjoint(call_100, BarrierSpec("in", "down", level, 2.0), reference_market)
    discounted = 2.0 * math.exp(-reference_market.domestic_rate * EXPIRY)

    d_spot, d_strike, d_rate, d_carry, d_vol = result.derivatives
    assert d_spot == 0.0
    assert d_strike == 0.0
    assert abs(d_rate + EXPIRY * discounted) < 1e-12
    assert d_carry == 0.0
    assert d_vol == 0.0


@pytest.mark.parametrize("is_call", [True, False])
def test_unreachable_knock_out_derivatives_are_vanilla(reference_market, is_call):
    option = VanillaOptionSpec(strike=120.0, time_to_expiry=EXPIRY, is_call=is_call)
    level = 1e6 * reference_market.spot
    result = barrier_price_adjoint(option, BarrierSpec("out", "up", level), reference_market)
    vanilla, grad = vanilla_price_adjoint(option, reference_market)

    assert abs(result.price - vanilla) < 1e-12
    for got, expected in zip(result.derivatives, grad):
        assert abs(got - expected) < 1e-12


def test_vanilla_spot_derivative_is_forward_delta_scaled(reference_market, call_100):
    """∂V/∂S = ∂V/∂F · DF_for / DF_dom."""
    T = call_100.time_to_expiry
    r, b = reference_market.domestic_rate, reference_market.cost_of_carry
    _, grad = vanilla_price_adjoint(call_100, reference_market)
    forward = reference_market.forward(T)
    d1 = (math.log(forward / 100.0) + 0.5 * 0.04 * T) / (0.2 * math.sqrt(T))

    d_forward = math.exp(-r * T) * norm.cdf(d1)
    assert abs(grad[0] - d_forward * math.exp((b - r) * T) / math.exp(-r * T)) < 1e-12


def test_adjoint_check_reports_details(reference_market, put_100):
    check = check_adjoint_derivatives(put_100, BarrierSpec("in", "up", 110.0, 2.0), reference_market)
    assert check.is_valid
    for name in DERIVATIVE_NAMES:
        assert f"adjoint_{name}" in check.details
        assert f"fd_{name}" in check.details
        assert check.details[f"error_{name}"] < 1e-4


def test_adjoint_check_flags_tight_tolerance(reference_market, put_100):
    check = check_adjoint_derivatives(
        put_100, BarrierSpec("in", "up", 110.0, 2.0), reference_market, tolerance=0.0, steps={"spot": 10.0}
    )
    assert not check.is_valid
    assert any("d/dspot" in violation for violation in check.violations)
