"""
Brent's method for implied Black volatility.

Robust fallback when Newton-Raphson fails: guaranteed to converge if the
price is bracketed by the Black prices at the volatility bounds, though
slower than Newton-Raphson.
"""

from scipy.optimize import brentq

from barrier_pricer.core.black import black_price
from barrier_pricer.utils.constants import IV_MAX_VOL, IV_MIN_VOL, IV_VOL_TOLERANCE
from barrier_pricer.utils.types import ImpliedVolResult


def brent_iv(
    price: float,
    F: float,
    K: float,
    T: float,
    discount_factor: float,
    is_call: bool,
    vol_lower: float = IV_MIN_VOL,
    vol_upper: float = IV_MAX_VOL,
    tolerance: float = IV_VOL_TOLERANCE,
) -> ImpliedVolResult:
    """
    Solve for implied volatility using Brent's method.

    Args:
        price: Observed option price
        F, K, T, discount_factor, is_call: Black formula inputs
        vol_lower: Lower bound for volatility search
        vol_upper: Upper bound for volatility search
        tolerance: Absolute tolerance on σ

    Returns:
        ImpliedVolResult; success=False with a diagnostic message when the
        bounds do not bracket a root
    """

    def objective(sigma: float) -> float:
        return black_price(F, K, T, sigma, discount_factor, is_call) - price

    try:
        implied_vol, info = brentq(
            objective,
            vol_lower,
            vol_upper,
            xtol=tolerance,
            rtol=1e-14,
            maxiter=200,
            full_output=True,
        )
    except ValueError:
        # brentq raises when objective(a) and objective(b) share a sign
        obj_lower = objective(vol_lower)
        obj_upper = objective(vol_upper)
        return ImpliedVolResult(
            volatility=0.0,
            iterations=0,
            method="brent",
            success=False,
            message=(
                f"Brent method failed: objective function doesn't bracket a root. "
                f"obj({vol_lower:.4f}) = {obj_lower:.4e}, "
                f"obj({vol_upper:.4f}) = {obj_upper:.4e}."
            ),
        )

    price_error = abs(objective(implied_vol))
    return ImpliedVolResult(
        volatility=implied_vol,
        iterations=info.iterations,
        method="brent",
        success=info.converged,
        message=f"{info.flag}; price error {price_error:.2e}",
    )
