"""
Pytest configuration and shared fixtures.

The reference market is an FX option trade: spot 105, domestic rate 5%,
foreign rate 2%, volatility 20%, valued on 2011-07-01 for expiry on
2015-01-02 (1281 days, act/365.25).
"""

import pytest

from barrier_pricer.utils.types import MarketInputs, VanillaOptionSpec

REFERENCE_SPOT = 105.0
REFERENCE_DOMESTIC_RATE = 0.05
REFERENCE_FOREIGN_RATE = 0.02
REFERENCE_VOL = 0.20
REFERENCE_EXPIRY = 1281 / 365.25


@pytest.fixture
def reference_market():
    """Spot 105, r = 5%, b = 5% - 2%, σ = 20%."""
    return MarketInputs(
        spot=REFERENCE_SPOT,
        cost_of_carry=REFERENCE_DOMESTIC_RATE - REFERENCE_FOREIGN_RATE,
        domestic_rate=REFERENCE_DOMESTIC_RATE,
        volatility=REFERENCE_VOL,
    )


@pytest.fixture
def zero_rate_market():
    """Reference spot and vol with r = 0, where rebate timing does not matter."""
    return MarketInputs(
        spot=REFERENCE_SPOT,
        cost_of_carry=-0.02,
        domestic_rate=0.0,
        volatility=REFERENCE_VOL,
    )


@pytest.fixture
def call_100():
    return VanillaOptionSpec(strike=100.0, time_to_expiry=REFERENCE_EXPIRY, is_call=True)


@pytest.fixture
def put_100():
    return VanillaOptionSpec(strike=100.0, time_to_expiry=REFERENCE_EXPIRY, is_call=False)


@pytest.fixture
def put_120():
    return VanillaOptionSpec(strike=120.0, time_to_expiry=REFERENCE_EXPIRY, is_call=False)


@pytest.fixture
def reference_black_put():
    """ATM put on the forward used to check the Black formula and its inverse."""
    return {"F": 100.0, "K": 100.0, "T": 0.25, "sigma": 1.0, "price": 19.7413}
