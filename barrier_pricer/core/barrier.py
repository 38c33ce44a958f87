"""
Closed-form pricing of continuously monitored single-barrier options.

This module is the entry point of the pricing core. A request (option
terms, barrier terms, market inputs) is resolved into one of the eight
Reiner-Rubinstein branches, or into a collapsed case, and evaluated in
closed form. The adjoint variant returns the exact partial derivatives
with respect to spot, strike, domestic rate, cost of carry and volatility
from the same evaluation.

Routes, in order:
    1. Spot already beyond the barrier: knock-in = vanilla,
       knock-out = rebate paid now
    2. Unreachable barrier: knock-in = R·e^(-rT), knock-out = vanilla
    3. Zero variance (σ = 0 or T = 0): deterministic payoff
    4. Otherwise: Σ c_i·{A, B, C, D}_i + rebate term (E or F)

All functions are pure; concurrent calls need no coordination.
"""

import logging

from barrier_pricer.core.adjoint import (
    deterministic_barrier_adjoint,
    discounted_rebate_adjoint,
    immediate_rebate_adjoint,
    vanilla_adjoint,
)
from barrier_pricer.core.barrier_cases import resolve_barrier_case
from barrier_pricer.core.barrier_terms import evaluate_terms
from barrier_pricer.core.black import vanilla_price_adjoint
from barrier_pricer.utils.types import (
    BarrierSpec,
    MarketInputs,
    PriceResult,
    VanillaOptionSpec,
)

logger = logging.getLogger(__name__)


def _evaluate(option: VanillaOptionSpec, barrier: BarrierSpec, market: MarketInputs):
    resolved = resolve_barrier_case(barrier, market.spot, option.strike, option.is_call)
    T = option.time_to_expiry

    if resolved.already_breached:
        logger.debug(
            "Spot %s already beyond %s barrier %s; collapsing to %s",
            market.spot,
            barrier.barrier_type.value,
            barrier.level,
            "vanilla" if barrier.is_knock_in else "rebate",
        )
        if barrier.is_knock_in:
            return vanilla_adjoint(option, market)
        return immediate_rebate_adjoint(barrier.rebate)

    if resolved.unreachable:
        logger.debug(
            "Barrier %s unreachable from spot %s; collapsing to %s",
            barrier.level,
            market.spot,
            "discounted rebate" if barrier.is_knock_in else "vanilla",
        )
        if barrier.is_knock_in:
            return discounted_rebate_adjoint(barrier.rebate, T, market.domestic_rate)
        return vanilla_adjoint(option, market)

    if market.volatility == 0.0 or T == 0.0:
        logger.debug("Zero variance (sigma=%s, T=%s); pricing deterministic path", market.volatility, T)
        return deterministic_barrier_adjoint(option, barrier, market)

    terms = evaluate_terms(
        spot=market.spot,
        strike=option.strike,
        level=barrier.level,
        rebate=barrier.rebate,
        time_to_expiry=T,
        rate=market.domestic_rate,
        carry=market.cost_of_carry,
        sigma=market.volatility,
        phi=option.phi,
        eta=barrier.eta,
        knock_in=barrier.is_knock_in,
    )
    return terms.combine(resolved.coefficients)


def barrier_price(
    option: VanillaOptionSpec, barrier: BarrierSpec, market: MarketInputs
) -> PriceResult:
    """
    Price a European single-barrier option under Black-Scholes-Merton.

    Args:
        option: Strike, time to expiry and call/put flag
        barrier: Knock type, barrier side, level and rebate
        market: Spot, cost of carry, domestic rate and volatility

    Returns:
        PriceResult with the price and no derivatives

    Raises:
        InvalidInputError: If spot equals the barrier level
        NumericDomainError: If the knock-out rebate exponent is not real

    Examples:
        >>> from barrier_pricer.utils.types import BarrierSpec, MarketInputs, VanillaOptionSpec
        >>> option = VanillaOptionSpec(strike=100.0, time_to_expiry=1.0, is_call=True)
        >>> knock_in = BarrierSpec("in", "down", 90.0)
        >>> knock_out = BarrierSpec("out", "down", 90.0)
        >>> market = MarketInputs(spot=105.0, cost_of_carry=0.03, domestic_rate=0.05, volatility=0.2)
        >>> total = barrier_price(option, knock_in, market).price + barrier_price(option, knock_out, market).price
        >>> abs(total - vanilla_price(option, market)) < 1e-9
        True
    """
    price, _ = _evaluate(option, barrier, market)
    return PriceResult(price=price)


def barrier_price_adjoint(
    option: VanillaOptionSpec, barrier: BarrierSpec, market: MarketInputs
) -> PriceResult:
    """
    Price a barrier option together with its exact first derivatives.

    The derivatives are propagated analytically through the same terms as
    the price, not bumped.

    Returns:
        PriceResult whose derivatives are
        (∂V/∂S, ∂V/∂K, ∂V/∂r, ∂V/∂b, ∂V/∂σ)
    """
    price, grad = _evaluate(option, barrier, market)
    return PriceResult(price=price, derivatives=tuple(float(g) for g in grad))


def vanilla_price(option: VanillaOptionSpec, market: MarketInputs) -> float:
    """Black-Scholes-Merton price of the underlying vanilla option."""
    return vanilla_price_adjoint(option, market)[0]
