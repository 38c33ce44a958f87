"""
Unit tests for the pricing value types.
"""

import math

import pytest

from barrier_pricer.utils.exceptions import BarrierPricingError, InvalidInputError
from barrier_pricer.utils.types import (
    BarrierSpec,
    BarrierType,
    KnockType,
    MarketInputs,
    ObservationType,
    PriceResult,
    VanillaOptionSpec,
)


def test_barrier_spec_accepts_strings():
    barrier = BarrierSpec("out", "up", 110.0, 2.0)
    assert barrier.knock_type is KnockType.OUT
    assert barrier.barrier_type is BarrierType.UP
    assert barrier.observation_type is ObservationType.CONTINUOUS
    assert barrier.eta == -1
    assert not barrier.is_knock_in


def test_barrier_spec_rejects_unknown_enum():
    with pytest.raises(InvalidInputError, match="knock_type must be one of in, out"):
        BarrierSpec("sideways", "up", 110.0)


def test_discrete_monitoring_not_supported():
    with pytest.raises(InvalidInputError, match="observation_type"):
        BarrierSpec("in", "down", 90.0, observation_type="discrete")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"level": 0.0},
        {"level": -5.0},
        {"level": float("inf")},
        {"level": 90.0, "rebate": -1.0},
    ],
)
def test_barrier_spec_validation(kwargs):
    with pytest.raises(InvalidInputError):
        BarrierSpec("in", "down", **kwargs)


@pytest.mark.parametrize("strike, expiry", [(0.0, 1.0), (100.0, -0.1), (float("nan"), 1.0)])
def test_vanilla_option_validation(strike, expiry):
    with pytest.raises(InvalidInputError):
        VanillaOptionSpec(strike=strike, time_to_expiry=expiry)


def test_vanilla_option_phi():
    assert VanillaOptionSpec(100.0, 1.0, True).phi == 1
    assert VanillaOptionSpec(100.0, 1.0, False).phi == -1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"spot": 0.0, "cost_of_carry": 0.0, "domestic_rate": 0.0, "volatility": 0.2},
        {"spot": 100.0, "cost_of_carry": 0.0, "domestic_rate": 0.0, "volatility": -0.2},
        {"spot": 100.0, "cost_of_carry": float("nan"), "domestic_rate": 0.0, "volatility": 0.2},
    ],
)
def test_market_inputs_validation(kwargs):
    with pytest.raises(InvalidInputError):
        MarketInputs(**kwargs)


def test_market_forward_and_discount(reference_market):
    T = 2.0
    assert abs(reference_market.forward(T) - 105.0 * math.exp(0.03 * T)) < 1e-12
    assert abs(reference_market.discount_factor(T) - math.exp(-0.05 * T)) < 1e-15


def test_value_types_are_frozen(reference_market):
    with pytest.raises(AttributeError):
        reference_market.spot = 100.0


def test_price_result_as_dict():
    assert PriceResult(price=1.0).as_dict() == {}
    result = PriceResult(price=1.0, derivatives=(0.1, 0.2, 0.3, 0.4, 0.5))
    assert result.as_dict() == {
        "spot": 0.1,
        "strike": 0.2,
        "rate": 0.3,
        "cost_of_carry": 0.4,
        "volatility": 0.5,
    }


def test_error_taxonomy():
    assert issubclass(InvalidInputError, BarrierPricingError)
    assert issubclass(InvalidInputError, ValueError)
