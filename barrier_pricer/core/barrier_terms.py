"""
Reiner-Rubinstein basis terms and their exact derivatives.

Every continuously monitored single-barrier price is a signed sum of the
basis terms below (see barrier_cases for the combinations). With
φ = +1 call / -1 put, η = +1 down / -1 up, p = H/S, σ√T = v and

    λ  = 1/2 + b/σ²
    ν  = sqrt((λ - 1)² + 2r/σ²)
    x1 = ln(S/K)/v + λv          x2 = ln(S/H)/v + λv
    y1 = ln(H²/(SK))/v + λv      y2 = ln(H/S)/v + λv
    z  = ln(H/S)/v + νv

the terms are

    A = φ[S·e^((b-r)T)·N(φx1) - K·e^(-rT)·N(φ(x1 - v))]
    B = the same with x2
    C = φ[S·e^((b-r)T)·p^(2λ)·N(ηy1) - K·e^(-rT)·p^(2λ-2)·N(η(y1 - v))]
    D = the same with y2
    E = R·e^(-rT)·[N(η(x2 - v)) - p^(2λ-2)·N(η(y2 - v))]       knock-in rebate
    F = R·[p^(λ-1+ν)·N(ηz) + p^(λ-1-ν)·N(η(z - 2νv))]          knock-out rebate

Each product weight·N(u) is evaluated as exp(log weight + log N(u)) so
that huge powers of p meeting vanishing tail probabilities never produce
inf·0. The derivative of such a leg with respect to the inputs
θ = (S, K, r, b, σ) is

    leg · (∂ log weight/∂θ + n(u)/N(u) · ∂u/∂θ)

and is carried alongside the value, so price and derivatives come out
of one pass over the same sub-expressions.

A negative domestic rate can make ν imaginary. F stays real there and is
evaluated in complex arithmetic (see _knock_out_rebate_imaginary_nu).
"""

import cmath
import math
from dataclasses import dataclass

import numpy as np
from scipy import special

from barrier_pricer.core.distributions import normal_log_cdf, normal_log_pdf
from barrier_pricer.utils.exceptions import NumericDomainError

# Gradient layout: (spot, strike, rate, cost of carry, volatility)
SPOT, STRIKE, RATE, CARRY, VOL = range(5)


def _unit(index: int, scale: float = 1.0) -> np.ndarray:
    grad = np.zeros(5)
    grad[index] = scale
    return grad


@dataclass(frozen=True)
class BasisTerms:
    """
    Values and gradients of the A-F terms for one set of inputs.

    values: array [A, B, C, D]; grads: 4x5 array of their gradients.
    rebate / rebate_grad: E for a knock-in, F for a knock-out.
    """
    values: np.ndarray
    grads: np.ndarray
    rebate: float
    rebate_grad: np.ndarray

    def combine(self, coefficients) -> tuple[float, np.ndarray]:
        """Price and gradient of a branch: Σ c_i·term_i + rebate term."""
        weights = np.asarray(coefficients, dtype=float)
        price = float(weights @ self.values) + self.rebate
        grad = weights @ self.grads + self.rebate_grad
        return price, grad


def _leg(
    log_weight: float, log_weight_grad: np.ndarray, u: float, u_grad: np.ndarray
) -> tuple[float, np.ndarray]:
    """weight·N(u) with its gradient, evaluated in log space."""
    log_n = normal_log_cdf(u)
    value = math.exp(log_weight + log_n)
    if value == 0.0:
        return 0.0, np.zeros(5)
    mills = math.exp(normal_log_pdf(u) - log_n)
    return value, value * (log_weight_grad + mills * u_grad)


def _standardized(
    log_ratio: float,
    log_ratio_grad: np.ndarray,
    drift: float,
    drift_grad: np.ndarray,
    v: float,
    v_grad: np.ndarray,
) -> tuple[float, np.ndarray]:
    """log_ratio/v + drift·v and its gradient."""
    value = log_ratio / v + drift * v
    grad = log_ratio_grad / v - (log_ratio / (v * v)) * v_grad + v * drift_grad + drift * v_grad
    return value, grad


def evaluate_terms(
    spot: float,
    strike: float,
    level: float,
    rebate: float,
    time_to_expiry: float,
    rate: float,
    carry: float,
    sigma: float,
    phi: int,
    eta: int,
    knock_in: bool,
) -> BasisTerms:
    """
    Evaluate the basis terms A-D and the rebate term with their gradients.

    Args:
        spot, strike, level, rebate: S, K, H, R
        time_to_expiry: T in years
        rate: Domestic rate r
        carry: Cost of carry b
        sigma: Volatility σ
        phi: +1 call, -1 put
        eta: +1 DOWN barrier, -1 UP barrier
        knock_in: Selects E (knock-in) or F (knock-out) as the rebate term

    Raises:
        NumericDomainError: If σ√T is zero
    """
    T = time_to_expiry
    v = sigma * math.sqrt(T)
    if not v > 0.0:
        raise NumericDomainError(
            f"Closed-form barrier terms need σ√T > 0, got sigma={sigma}, T={T}"
        )
    v_grad = _unit(VOL, math.sqrt(T))

    sigma_sq = sigma * sigma
    lam = 0.5 + carry / sigma_sq
    lam_grad = np.zeros(5)
    lam_grad[CARRY] = 1.0 / sigma_sq
    lam_grad[VOL] = -2.0 * carry / (sigma_sq * sigma)

    # log(H/S) and the log weights of the forward and strike legs
    log_p = math.log(level / spot)
    log_p_grad = _unit(SPOT, -1.0 / spot)
    log_fwd = math.log(spot) + (carry - rate) * T
    log_fwd_grad = np.array([1.0 / spot, 0.0, -T, T, 0.0])
    log_kpv = math.log(strike) - rate * T
    log_kpv_grad = np.array([0.0, 1.0 / strike, -T, 0.0, 0.0])

    spot_grad = _unit(SPOT, 1.0 / spot)
    strike_grad = _unit(STRIKE, 1.0 / strike)
    x1, x1_grad = _standardized(
        math.log(spot / strike), spot_grad - strike_grad, lam, lam_grad, v, v_grad
    )
    x2, x2_grad = _standardized(-log_p, -log_p_grad, lam, lam_grad, v, v_grad)
    y1, y1_grad = _standardized(
        math.log(level * level / (spot * strike)),
        -spot_grad - strike_grad,
        lam,
        lam_grad,
        v,
        v_grad,
    )
    y2, y2_grad = _standardized(log_p, log_p_grad, lam, lam_grad, v, v_grad)

    # p^(2λ) and p^(2λ-2) exponents in log space
    up_log = 2.0 * lam * log_p
    up_log_grad = 2.0 * lam_grad * log_p + 2.0 * lam * log_p_grad
    down_log = (2.0 * lam - 2.0) * log_p
    down_log_grad = 2.0 * lam_grad * log_p + (2.0 * lam - 2.0) * log_p_grad

    def vanilla_like(x, x_grad):
        first = _leg(log_fwd, log_fwd_grad, phi * x, phi * x_grad)
        second = _leg(log_kpv, log_kpv_grad, phi * (x - v), phi * (x_grad - v_grad))
        return phi * (first[0] - second[0]), phi * (first[1] - second[1])

    def reflected(y, y_grad):
        first = _leg(log_fwd + up_log, log_fwd_grad + up_log_grad, eta * y, eta * y_grad)
        second = _leg(
            log_kpv + down_log,
            log_kpv_grad + down_log_grad,
            eta * (y - v),
            eta * (y_grad - v_grad),
        )
        return phi * (first[0] - second[0]), phi * (first[1] - second[1])

    term_a = vanilla_like(x1, x1_grad)
    term_b = vanilla_like(x2, x2_grad)
    term_c = reflected(y1, y1_grad)
    term_d = reflected(y2, y2_grad)

    if rebate == 0.0:
        rebate_value, rebate_grad = 0.0, np.zeros(5)
    elif knock_in:
        rebate_value, rebate_grad = _knock_in_rebate(
            rebate, rate, T, x2, x2_grad, y2, y2_grad, v, v_grad, eta, down_log, down_log_grad
        )
    else:
        rebate_value, rebate_grad = _knock_out_rebate(
            rebate, rate, sigma, lam, lam_grad, log_p, log_p_grad, v, v_grad, eta
        )

    terms = (term_a, term_b, term_c, term_d)
    return BasisTerms(
        values=np.array([t[0] for t in terms]),
        grads=np.vstack([t[1] for t in terms]),
        rebate=rebate_value,
        rebate_grad=rebate_grad,
    )


def _knock_in_rebate(
    rebate, rate, T, x2, x2_grad, y2, y2_grad, v, v_grad, eta, down_log, down_log_grad
):
    """E: rebate paid at expiry if the barrier was never touched."""
    log_rpv = math.log(rebate) - rate * T
    log_rpv_grad = _unit(RATE, -T)
    first = _leg(log_rpv, log_rpv_grad, eta * (x2 - v), eta * (x2_grad - v_grad))
    second = _leg(
        log_rpv + down_log,
        log_rpv_grad + down_log_grad,
        eta * (y2 - v),
        eta * (y2_grad - v_grad),
    )
    return first[0] - second[0], first[1] - second[1]


def _knock_out_rebate(rebate, rate, sigma, lam, lam_grad, log_p, log_p_grad, v, v_grad, eta):
    """F: rebate paid at the first touch of the barrier."""
    sigma_sq = sigma * sigma
    mu = lam - 1.0
    nu_sq = mu * mu + 2.0 * rate / sigma_sq
    # gradient of ν² / 2
    half_nu_sq_grad = mu * lam_grad
    half_nu_sq_grad[RATE] += 1.0 / sigma_sq
    half_nu_sq_grad[VOL] -= 2.0 * rate / (sigma_sq * sigma)

    if nu_sq < 0.0:
        return _knock_out_rebate_imaginary_nu(
            rebate, mu, lam_grad, nu_sq, half_nu_sq_grad, log_p, log_p_grad, v, v_grad, eta
        )

    nu = math.sqrt(nu_sq)
    if nu > 0.0:
        nu_grad = half_nu_sq_grad / nu
    else:
        # F is even in ν, so its ν-derivative vanishes at ν = 0
        nu_grad = np.zeros(5)

    z, z_grad = _standardized(log_p, log_p_grad, nu, nu_grad, v, v_grad)
    w = z - 2.0 * nu * v
    w_grad = z_grad - 2.0 * (v * nu_grad + nu * v_grad)

    log_r = math.log(rebate)
    hit_up = (mu + nu) * log_p
    hit_up_grad = (lam_grad + nu_grad) * log_p + (mu + nu) * log_p_grad
    hit_down = (mu - nu) * log_p
    hit_down_grad = (lam_grad - nu_grad) * log_p + (mu - nu) * log_p_grad

    first = _leg(log_r + hit_up, hit_up_grad, eta * z, eta * z_grad)
    second = _leg(log_r + hit_down, hit_down_grad, eta * w, eta * w_grad)
    return first[0] + second[0], first[1] + second[1]


def _knock_out_rebate_imaginary_nu(
    rebate, mu, lam_grad, nu_sq, half_nu_sq_grad, log_p, log_p_grad, v, v_grad, eta
):
    """
    F when (λ - 1)² + 2r/σ² < 0, which a negative domestic rate can produce.

    ν = iω is imaginary. The two legs of F are then complex conjugates,
    since p^(λ-1-iω) = conj(p^(λ-1+iω)) and z - 2iωv = conj(z), so

        F = 2R·Re[p^(λ-1+iω)·N(ηz)],   z = ln(H/S)/v + iωv

    with N the analytic continuation of the normal CDF.
    """
    omega = math.sqrt(-nu_sq)
    omega_grad = -half_nu_sq_grad / omega

    z = complex(log_p / v, omega * v)
    z_grad = (log_p_grad / v - (log_p / (v * v)) * v_grad) + 1j * (v * omega_grad + omega * v_grad)
    exponent = complex(mu, omega)
    exponent_grad = lam_grad + 1j * omega_grad

    weight = cmath.exp(exponent * log_p)
    u = eta * z
    cdf = complex(special.ndtr(u))
    pdf = cmath.exp(-0.5 * u * u) / math.sqrt(2.0 * math.pi)

    leg = weight * cdf
    leg_grad = leg * (exponent_grad * log_p + exponent * log_p_grad) + weight * pdf * eta * z_grad
    return 2.0 * rebate * leg.real, 2.0 * rebate * leg_grad.real
