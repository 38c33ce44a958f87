"""
Newton-Raphson method for implied Black volatility.

This module inverts the Black forward formula for volatility given a
price. The update uses the adjoint vega (∂V/∂σ) returned alongside the
price, so each iteration costs a single formula evaluation.
"""

from functools import partial

from barrier_pricer.core.black import black_price_adjoint
from barrier_pricer.utils.constants import (
    IV_MAX_ITERATIONS,
    IV_MAX_VOL,
    IV_MIN_VEGA,
    IV_MIN_VOL,
    IV_PRICE_TOLERANCE,
    IV_VOL_TOLERANCE,
)
from barrier_pricer.utils.types import ImpliedVolResult

_newton_result = partial(ImpliedVolResult, method="newton-raphson")


def newton_raphson_iv(
    price: float,
    F: float,
    K: float,
    T: float,
    discount_factor: float,
    is_call: bool,
    initial_guess: float,
    max_iterations: int = IV_MAX_ITERATIONS,
    price_tolerance: float = IV_PRICE_TOLERANCE,
    vol_tolerance: float = IV_VOL_TOLERANCE,
) -> ImpliedVolResult:
    """
    Solve for implied volatility using the Newton-Raphson method.

    Update:
        σ_{n+1} = σ_n - (V(σ_n) - price) / ∂V/∂σ(σ_n)

    Converges quadratically near the root; reports failure rather than
    raising when vega vanishes or an update leaves [IV_MIN_VOL, IV_MAX_VOL],
    so the caller can fall back to Brent.

    Args:
        price: Observed option price
        F, K, T, discount_factor, is_call: Black formula inputs
        initial_guess: Starting volatility estimate
        max_iterations: Maximum number of iterations
        price_tolerance: Stop once |V(σ) - price| falls below this
        vol_tolerance: Stop once |σ_{n+1} - σ_n| falls below this

    Returns:
        ImpliedVolResult with volatility, iterations, method, success flag
    """
    sigma = initial_guess

    for iteration in range(1, max_iterations + 1):
        model_price, _, vega, _ = black_price_adjoint(F, K, T, sigma, discount_factor, is_call)
        residual = model_price - price

        if abs(residual) < price_tolerance:
            return _newton_result(sigma, iteration, success=True, message="price within tolerance")
        if abs(vega) < IV_MIN_VEGA:
            return _newton_result(
                sigma, iteration, success=False, message=f"vega {vega:.2e} below {IV_MIN_VEGA:.0e}"
            )

        step = residual / vega
        candidate = sigma - step
        if not IV_MIN_VOL <= candidate <= IV_MAX_VOL:
            return _newton_result(
                sigma, iteration, success=False, message=f"update to σ={candidate:.4f} left the search range"
            )
        if abs(step) < vol_tolerance:
            return _newton_result(candidate, iteration, success=True, message="volatility step within tolerance")

        sigma = candidate

    return _newton_result(
        sigma, max_iterations, success=False, message=f"no convergence after {max_iterations} iterations"
    )
