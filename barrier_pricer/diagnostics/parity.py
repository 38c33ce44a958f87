"""
Validation diagnostics for the barrier pricer.

This module implements the checks a regression suite runs against the
closed-form engine:
- In-out parity (knock-in + knock-out = vanilla + rebate)
- Degenerate barriers (unreachable levels collapse onto vanilla / rebate)
- Adjoint derivatives against centered finite differences

Finite differences appear here only as an oracle; the pricer itself never
bumps its inputs.
"""

import math
from dataclasses import replace
from typing import Optional

from barrier_pricer.core.barrier import barrier_price, barrier_price_adjoint, vanilla_price
from barrier_pricer.utils.constants import (
    ADJOINT_TOLERANCE,
    DEGENERATE_TOLERANCE,
    DERIVATIVE_NAMES,
    FD_STEP_CARRY,
    FD_STEP_RATE,
    FD_STEP_SPOT,
    FD_STEP_STRIKE,
    FD_STEP_VOL,
    PARITY_TOLERANCE,
    UNREACHABLE_DOWN_RATIO,
    UNREACHABLE_UP_RATIO,
)
from barrier_pricer.utils.exceptions import InvalidInputError
from barrier_pricer.utils.types import (
    BarrierSpec,
    BarrierType,
    KnockType,
    MarketInputs,
    ParityCheck,
    VanillaOptionSpec,
)

DEFAULT_STEPS = {
    "spot": FD_STEP_SPOT,
    "strike": FD_STEP_STRIKE,
    "rate": FD_STEP_RATE,
    "cost_of_carry": FD_STEP_CARRY,
    "volatility": FD_STEP_VOL,
}


def check_in_out_parity(
    option: VanillaOptionSpec,
    barrier_type: BarrierType,
    level: float,
    market: MarketInputs,
    rebate: float = 0.0,
    tolerance: float = PARITY_TOLERANCE,
) -> ParityCheck:
    """
    Validate in-out parity for one barrier.

    Parity:
        V_in + V_out = V_vanilla + R·e^(-rT)

    The knock-in rebate is paid at expiry and the knock-out rebate at the
    hit, so with a rebate and a non-zero domestic rate the two sides differ
    by the time value of paying early:

        timing = V_in + V_out - V_vanilla - R·e^(-rT)

    Paying R at a hit time τ ≤ T instead of T is worth R·E[e^(-rτ) - e^(-rT)]
    on the paths that hit, so timing lies between 0 and R·(1 - e^(-rT)).
    For r > 0 that interval is [0, R·(1 - e^(-rT))]; for r < 0 it is
    [R·(1 - e^(-rT)), 0]. The difference is reported as
    "rebate_timing_value" and checked against these bounds. Without a
    rebate, or with r = 0, the bounds collapse to 0 and plain parity is
    checked.

    Args:
        option: Vanilla terms
        barrier_type: UP or DOWN
        level: Barrier level
        market: Market inputs
        rebate: Rebate shared by both legs
        tolerance: Relative tolerance on (V_in + V_out) / (V_vanilla + R·e^(-rT))

    Returns:
        ParityCheck with validation results
    """
    knock_in = BarrierSpec(KnockType.IN, barrier_type, level, rebate)
    knock_out = BarrierSpec(KnockType.OUT, barrier_type, level, rebate)

    price_in = barrier_price(option, knock_in, market).price
    price_out = barrier_price(option, knock_out, market).price
    vanilla = vanilla_price(option, market)
    rebate_value = rebate * market.discount_factor(option.time_to_expiry)

    lhs = price_in + price_out
    rhs = vanilla + rebate_value
    difference = lhs - rhs
    details = {
        "knock_in": price_in,
        "knock_out": price_out,
        "vanilla": vanilla,
        "rebate_value": rebate_value,
        "parity_lhs": lhs,
        "parity_rhs": rhs,
        "difference": difference,
    }

    violations = []
    slack = tolerance * max(abs(rhs), 1.0)
    if rebate != 0.0 and market.domestic_rate != 0.0:
        early_payment = rebate - rebate_value
        lower, upper = min(0.0, early_payment), max(0.0, early_payment)
        details["rebate_timing_value"] = difference
        details["timing_lower"] = lower
        details["timing_upper"] = upper
        if not lower - slack <= difference <= upper + slack:
            violations.append(
                f"Rebate timing value {difference:.10f} outside "
                f"[{lower:.10f}, {upper:.10f}]"
            )
    elif abs(difference) > slack:
        violations.append(
            f"In-out parity violated: V_in + V_out = {lhs:.10f}, "
            f"V_vanilla + R·e^(-rT) = {rhs:.10f}, diff = {difference:.3e}"
        )

    return ParityCheck(is_valid=not violations, violations=violations, details=details)


def check_degenerate_barrier(
    option: VanillaOptionSpec,
    barrier_type: BarrierType,
    market: MarketInputs,
    rebate: float = 0.0,
    tolerance: float = DEGENERATE_TOLERANCE,
) -> ParityCheck:
    """
    Validate the collapse of an unreachable barrier.

    Places the barrier at the unreachable threshold (1e-6 x spot for DOWN,
    1e6 x spot for UP) and checks:
    1. Knock-in = R·e^(-rT), with derivatives (0, 0, -T·R·e^(-rT), 0, 0)
    2. Knock-out = vanilla

    Returns:
        ParityCheck with validation results
    """
    if barrier_type is BarrierType.DOWN:
        level = UNREACHABLE_DOWN_RATIO * market.spot
    else:
        level = UNREACHABLE_UP_RATIO * market.spot
    T = option.time_to_expiry

    knock_in = barrier_price_adjoint(
        option, BarrierSpec(KnockType.IN, barrier_type, level, rebate), market
    )
    knock_out = barrier_price(option, BarrierSpec(KnockType.OUT, barrier_type, level, rebate), market)
    discounted_rebate = rebate * market.discount_factor(T)
    vanilla = vanilla_price(option, market)

    violations = []
    details = {
        "level": level,
        "knock_in": knock_in.price,
        "discounted_rebate": discounted_rebate,
        "knock_out": knock_out.price,
        "vanilla": vanilla,
    }

    if abs(knock_in.price - discounted_rebate) > tolerance:
        violations.append(
            f"Unreachable knock-in {knock_in.price:.10f} != discounted rebate {discounted_rebate:.10f}"
        )
    if abs(knock_out.price - vanilla) > tolerance:
        violations.append(f"Unreachable knock-out {knock_out.price:.10f} != vanilla {vanilla:.10f}")

    expected = {"rate": -T * discounted_rebate}
    for name, value in knock_in.as_dict().items():
        target = expected.get(name, 0.0)
        details[f"knock_in_d_{name}"] = value
        if abs(value - target) > tolerance:
            violations.append(f"Unreachable knock-in d/d{name} = {value:.3e}, expected {target:.3e}")

    return ParityCheck(is_valid=not violations, violations=violations, details=details)


def _bumped(option: VanillaOptionSpec, market: MarketInputs, name: str, shift: float):
    if name == "spot":
        return option, replace(market, spot=market.spot + shift)
    if name == "strike":
        return replace(option, strike=option.strike + shift), market
    if name == "rate":
        return option, replace(market, domestic_rate=market.domestic_rate + shift)
    if name == "cost_of_carry":
        return option, replace(market, cost_of_carry=market.cost_of_carry + shift)
    if name == "volatility":
        return option, replace(market, volatility=market.volatility + shift)
    raise InvalidInputError(f"Unknown input '{name}'")


def finite_difference_derivatives(
    option: VanillaOptionSpec,
    barrier: BarrierSpec,
    market: MarketInputs,
    steps: Optional[dict[str, float]] = None,
) -> dict[str, float]:
    """
    Centered finite-difference derivatives of the barrier price.

    ∂V/∂θ ≈ (V(θ + h) - V(θ - h)) / (2h)

    Args:
        option, barrier, market: Pricing request
        steps: Bump size per input name, defaults to DEFAULT_STEPS

    Returns:
        Mapping of input name to derivative estimate, in DERIVATIVE_NAMES order
    """
    steps = {**DEFAULT_STEPS, **(steps or {})}
    estimates = {}
    for name in DERIVATIVE_NAMES:
        h = steps[name]
        option_up, market_up = _bumped(option, market, name, h)
        option_down, market_down = _bumped(option, market, name, -h)
        price_up = barrier_price(option_up, barrier, market_up).price
        price_down = barrier_price(option_down, barrier, market_down).price
        estimates[name] = (price_up - price_down) / (2.0 * h)
    return estimates


def check_adjoint_derivatives(
    option: VanillaOptionSpec,
    barrier: BarrierSpec,
    market: MarketInputs,
    tolerance: float = ADJOINT_TOLERANCE,
    steps: Optional[dict[str, float]] = None,
) -> ParityCheck:
    """
    Compare adjoint derivatives with centered finite differences.

    Returns:
        ParityCheck whose details hold "adjoint_<name>", "fd_<name>" and
        "error_<name>" for each input
    """
    adjoint = barrier_price_adjoint(option, barrier, market).as_dict()
    numerical = finite_difference_derivatives(option, barrier, market, steps)

    violations = []
    details = {}
    for name in DERIVATIVE_NAMES:
        error = abs(adjoint[name] - numerical[name])
        details[f"adjoint_{name}"] = adjoint[name]
        details[f"fd_{name}"] = numerical[name]
        details[f"error_{name}"] = error
        if not math.isfinite(error) or error > tolerance:
            violations.append(
                f"d/d{name}: adjoint {adjoint[name]:.8f} vs finite difference "
                f"{numerical[name]:.8f} (error {error:.2e})"
            )

    return ParityCheck(is_valid=not violations, violations=violations, details=details)
