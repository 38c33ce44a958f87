"""
Implied Black volatility with automatic method selection.

This module provides a high-level interface for inverting the Black
forward formula, choosing between Newton-Raphson and Brent's method
based on convergence behavior.
"""

import logging
import math
from typing import Optional

from barrier_pricer.solvers.brent import brent_iv
from barrier_pricer.solvers.newton_raphson import newton_raphson_iv
from barrier_pricer.utils.constants import IV_INITIAL_GUESS
from barrier_pricer.utils.exceptions import InvalidInputError
from barrier_pricer.utils.types import ImpliedVolResult

logger = logging.getLogger(__name__)


def brenner_subrahmanyam_approximation(price: float, F: float, T: float, discount_factor: float) -> float:
    """
    Brenner-Subrahmanyam approximation for ATM implied volatility.

    Formula (for ATM, on the forward):
        σ ≈ √(2π/T) × V / (DF·F)

    Reference:
        Brenner, M., & Subrahmanyam, M. G. (1988). A Simple Formula to
        Compute the Implied Standard Deviation. Financial Analysts Journal, 44(5), 80-83.
    """
    if F <= 0 or T <= 0 or price <= 0:
        return IV_INITIAL_GUESS

    sigma_guess = math.sqrt(2.0 * math.pi / T) * price / (discount_factor * F)

    # Clamp to reasonable range [1%, 500%]
    return max(0.01, min(sigma_guess, 5.0))


def get_initial_guess(price: float, F: float, K: float, T: float, discount_factor: float) -> float:
    """
    Initial guess for implied volatility.

    Uses Brenner-Subrahmanyam for near-ATM options (0.9 <= F/K <= 1.1),
    a fixed guess otherwise.
    """
    moneyness = F / K
    if 0.9 <= moneyness <= 1.1:
        return brenner_subrahmanyam_approximation(price, F, T, discount_factor)
    return IV_INITIAL_GUESS


def validate_arbitrage_bounds(
    price: float, F: float, K: float, discount_factor: float, is_call: bool
) -> Optional[str]:
    """
    Check a Black price against no-arbitrage bounds.

    Call: DF·max(F - K, 0) <= C <= DF·F
    Put:  DF·max(K - F, 0) <= P <= DF·K

    Returns:
        None if valid, error message string if a bound is violated
    """
    if is_call:
        lower_bound = discount_factor * max(F - K, 0.0)
        upper_bound = discount_factor * F
        label = "Call"
    else:
        lower_bound = discount_factor * max(K - F, 0.0)
        upper_bound = discount_factor * K
        label = "Put"

    if price < lower_bound - 1e-12:
        return f"{label} price {price:.6f} below lower bound {lower_bound:.6f}"
    if price > upper_bound + 1e-12:
        return f"{label} price {price:.6f} above upper bound {upper_bound:.6f}"
    return None


def implied_volatility(
    price: float,
    F: float,
    K: float,
    T: float,
    discount_factor: float = 1.0,
    is_call: bool = True,
    method: str = "auto",
    initial_guess: Optional[float] = None,
) -> ImpliedVolResult:
    """
    Solve for the Black volatility that reproduces a price.

    Steps:
    1. Validates arbitrage bounds
    2. Generates an initial guess (if not provided)
    3. Tries Newton-Raphson first (fast, quadratic convergence)
    4. Falls back to Brent if Newton-Raphson fails

    Args:
        price: Option price (discounted by discount_factor)
        F: Forward price
        K: Strike price
        T: Time to expiration in years
        discount_factor: Discount factor applied to the price, default 1.0
        is_call: True for a call, False for a put
        method: "auto" (default), "newton", or "brent"
        initial_guess: Starting volatility (auto-generated if None)

    Returns:
        ImpliedVolResult

    Raises:
        InvalidInputError: If the price violates no-arbitrage bounds, T is
            not positive, or method is unknown

    Examples:
        >>> from barrier_pricer.core.black import black_price
        >>> p = black_price(100.0, 100.0, 0.25, 1.0, is_call=False)
        >>> abs(implied_volatility(p, 100.0, 100.0, 0.25, is_call=False).volatility - 1.0) < 1e-8
        True
    """
    if method not in ("auto", "newton", "brent"):
        raise InvalidInputError(f"method must be 'auto', 'newton' or 'brent', got '{method}'")
    if T <= 0:
        raise InvalidInputError(f"Implied volatility needs T > 0, got T={T}")

    violation = validate_arbitrage_bounds(price, F, K, discount_factor, is_call)
    if violation:
        raise InvalidInputError(f"Arbitrage violation detected: {violation}")

    if initial_guess is None:
        initial_guess = get_initial_guess(price, F, K, T, discount_factor)

    if method in ("auto", "newton"):
        nr_result = newton_raphson_iv(price, F, K, T, discount_factor, is_call, initial_guess)
        if nr_result.success or method == "newton":
            return nr_result
        logger.debug("Newton-Raphson failed (%s); falling back to Brent", nr_result.message)

    return brent_iv(price, F, K, T, discount_factor, is_call)
