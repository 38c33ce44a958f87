"""
Black model for European options on a forward.

This module implements the Black (1976) forward formula and its adjoint
derivatives. It is the vanilla reference for the barrier pricer: barriers
that can never be touched must reproduce these prices, and in-out parity
is measured against them.

Mathematical Background:
    d1 = [ln(F/K) + σ²T/2] / (σ√T)
    d2 = d1 - σ√T
    V  = DF · φ · [F·N(φ·d1) - K·N(φ·d2)],  φ = +1 call, -1 put

References:
    Black, F. (1976). The Pricing of Commodity Contracts.
    Journal of Financial Economics, 3(1-2), 167-179.
"""

import math

from barrier_pricer.core.distributions import normal_cdf, normal_pdf
from barrier_pricer.utils.exceptions import InvalidInputError
from barrier_pricer.utils.types import MarketInputs, VanillaOptionSpec


def _validate_inputs(F: float, K: float, T: float, sigma: float, discount_factor: float) -> None:
    """
    Validate Black formula inputs.

    Raises:
        InvalidInputError: If any input is invalid
    """
    if F <= 0:
        raise InvalidInputError(f"Forward price must be positive, got F={F}")
    if K <= 0:
        raise InvalidInputError(f"Strike price must be positive, got K={K}")
    if T < 0:
        raise InvalidInputError(f"Time to expiration cannot be negative, got T={T}")
    if sigma < 0:
        raise InvalidInputError(f"Volatility cannot be negative, got sigma={sigma}")
    if discount_factor <= 0:
        raise InvalidInputError(f"Discount factor must be positive, got DF={discount_factor}")


def black_d1(F: float, K: float, T: float, sigma: float) -> float:
    """
    Calculate d1 in the Black formula.

    Only defined for σ√T > 0; the zero-variance case never evaluates d1.

    Formula:
        d1 = [ln(F/K) + σ²T/2] / (σ√T)
    """
    sigma_root_t = sigma * math.sqrt(T)
    return (math.log(F) - math.log(K)) / sigma_root_t + 0.5 * sigma_root_t


def black_d2(F: float, K: float, T: float, sigma: float) -> float:
    """Calculate d2 = d1 - σ√T."""
    return black_d1(F, K, T, sigma) - sigma * math.sqrt(T)


def black_price(
    F: float,
    K: float,
    T: float,
    sigma: float,
    discount_factor: float = 1.0,
    is_call: bool = True,
) -> float:
    """
    Calculate the Black price of a European option.

    Args:
        F: Forward price of the underlying to expiry
        K: Strike price
        T: Time to expiration in years
        sigma: Volatility (annualized standard deviation)
        discount_factor: Discount factor to the payment date, default 1.0
        is_call: True for a call, False for a put

    Returns:
        Option price (undiscounted when discount_factor is 1)

    Examples:
        >>> # ATM put, F=100, T=0.25, 100% vol
        >>> abs(black_price(100, 100, 0.25, 1.0, is_call=False) - 19.7413) < 1e-4
        True

    Edge Cases:
        - σ = 0 or T = 0: Returns DF·max(φ(F - K), 0); d1, d2 are not evaluated
    """
    return black_price_adjoint(F, K, T, sigma, discount_factor, is_call)[0]


def black_price_adjoint(
    F: float,
    K: float,
    T: float,
    sigma: float,
    discount_factor: float = 1.0,
    is_call: bool = True,
) -> tuple[float, float, float, float]:
    """
    Black price with its derivatives, computed in one pass.

    Args:
        F, K, T, sigma, discount_factor, is_call: As in black_price

    Returns:
        (price, ∂V/∂F, ∂V/∂σ, ∂V/∂K)

    Formulas:
        ∂V/∂F = DF·φ·N(φ·d1)
        ∂V/∂σ = DF·F·√T·n(d1)
        ∂V/∂K = -DF·φ·N(φ·d2)

    Notes:
        With zero variance the derivatives are those of the discounted
        intrinsic value; the kink at F = K contributes zero.
    """
    _validate_inputs(F, K, T, sigma, discount_factor)
    phi = 1.0 if is_call else -1.0

    if sigma == 0.0 or T == 0.0:
        in_the_money = phi * (F - K) > 0.0
        if not in_the_money:
            return 0.0, 0.0, 0.0, 0.0
        return (
            discount_factor * phi * (F - K),
            discount_factor * phi,
            0.0,
            -discount_factor * phi,
        )

    root_t = math.sqrt(T)
    d1_value = black_d1(F, K, T, sigma)
    d2_value = d1_value - sigma * root_t
    n_d1 = normal_cdf(phi * d1_value)
    n_d2 = normal_cdf(phi * d2_value)

    price = discount_factor * phi * (F * n_d1 - K * n_d2)
    d_forward = discount_factor * phi * n_d1
    d_sigma = discount_factor * F * root_t * normal_pdf(d1_value)
    d_strike = -discount_factor * phi * n_d2
    return price, d_forward, d_sigma, d_strike


def vanilla_price_adjoint(
    option: VanillaOptionSpec, market: MarketInputs
) -> tuple[float, list[float]]:
    """
    Black-Scholes-Merton price of the vanilla in spot coordinates.

    The forward is S·e^(bT) and the discount factor e^(-rT), so the Black
    derivatives map onto (spot, strike, rate, cost of carry, volatility) as:
        ∂V/∂S = ∂V/∂F · e^(bT)
        ∂V/∂r = -T·V
        ∂V/∂b = ∂V/∂F · F·T

    Returns:
        (price, [∂V/∂S, ∂V/∂K, ∂V/∂r, ∂V/∂b, ∂V/∂σ])
    """
    T = option.time_to_expiry
    growth = math.exp(market.cost_of_carry * T)
    forward = market.spot * growth
    price, d_forward, d_sigma, d_strike = black_price_adjoint(
        forward,
        option.strike,
        T,
        market.volatility,
        market.discount_factor(T),
        option.is_call,
    )
    return price, [d_forward * growth, d_strike, -T * price, d_forward * forward * T, d_sigma]
