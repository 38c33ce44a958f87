"""
Closed-form value and gradient of the collapsed barrier cases.

When a barrier can never be touched, has already been touched, or the
underlying moves deterministically (zero variance), the barrier price
reduces to a vanilla, a discounted rebate, or a deterministic payoff.
This module gives those reductions together with their exact partial
derivatives in the order (spot, strike, rate, cost of carry, volatility),
so the adjoint pricer returns the same 5-vector on every route.
"""

import math

import numpy as np

from barrier_pricer.core.barrier_terms import CARRY, RATE, SPOT
from barrier_pricer.core.black import vanilla_price_adjoint
from barrier_pricer.utils.types import BarrierSpec, MarketInputs, VanillaOptionSpec


def vanilla_adjoint(option: VanillaOptionSpec, market: MarketInputs) -> tuple[float, np.ndarray]:
    """Vanilla price and gradient (what an untouchable knock-out is worth)."""
    price, grad = vanilla_price_adjoint(option, market)
    return price, np.array(grad)


def discounted_rebate_adjoint(
    rebate: float, time_to_expiry: float, rate: float
) -> tuple[float, np.ndarray]:
    """
    Rebate paid at expiry: R·e^(-rT).

    Only the rate derivative, -T·R·e^(-rT), is non-zero.
    """
    value = rebate * math.exp(-rate * time_to_expiry)
    grad = np.zeros(5)
    grad[RATE] = -time_to_expiry * value
    return value, grad


def immediate_rebate_adjoint(rebate: float) -> tuple[float, np.ndarray]:
    """Rebate paid now: R with no sensitivities."""
    return rebate, np.zeros(5)


def deterministic_barrier_adjoint(
    option: VanillaOptionSpec, barrier: BarrierSpec, market: MarketInputs
) -> tuple[float, np.ndarray]:
    """
    Barrier price when the spot path is deterministic (σ = 0 or T = 0).

    The spot follows S·e^(bt), which is monotone, so a DOWN barrier is hit
    before expiry iff b < 0 and S·e^(bT) <= H, and an UP barrier iff b > 0
    and S·e^(bT) >= H. The hit happens at τ = ln(H/S)/b.

        hit,     knock-in:  discounted intrinsic value
        hit,     knock-out: R·e^(-rτ)
        not hit, knock-in:  R·e^(-rT)
        not hit, knock-out: discounted intrinsic value

    Derivatives are those of the selected payoff; the jumps of the hit
    indicator contribute nothing.
    """
    S = market.spot
    H = barrier.level
    b = market.cost_of_carry
    T = option.time_to_expiry
    forward = market.forward(T)

    if barrier.is_down:
        hit = b < 0.0 and forward <= H
    else:
        hit = b > 0.0 and forward >= H

    pays_vanilla = hit == barrier.is_knock_in
    if pays_vanilla:
        return vanilla_adjoint(option, market)
    if barrier.is_knock_in:
        return discounted_rebate_adjoint(barrier.rebate, T, market.domestic_rate)

    r = market.domestic_rate
    hit_time = math.log(H / S) / b
    value = barrier.rebate * math.exp(-r * hit_time)
    grad = np.zeros(5)
    grad[SPOT] = value * r / (b * S)
    grad[RATE] = -hit_time * value
    grad[CARRY] = value * r * hit_time / b
    return value, grad
