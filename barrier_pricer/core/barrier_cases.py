"""
Classification of single-barrier options into closed-form branches.

The Reiner-Rubinstein price of every continuously monitored single
barrier is a linear combination of four basis terms A, B, C, D (plus a
rebate term). Which combination applies depends on the barrier side, on
call versus put, and on whether the strike sits above the barrier. The
knock-in combination is tabulated here; the knock-out combination is
always the vanilla term A minus the knock-in one, so in-out parity holds
by construction for every branch.

References:
    Reiner, E., & Rubinstein, M. (1991). Breaking Down the Barriers.
    Risk, 4(8), 28-35.
    Haug, E. G. (2007). The Complete Guide to Option Pricing Formulas, 4.17.1.
"""

from dataclasses import dataclass
from enum import Enum

from barrier_pricer.utils.constants import UNREACHABLE_DOWN_RATIO, UNREACHABLE_UP_RATIO
from barrier_pricer.utils.exceptions import InvalidInputError
from barrier_pricer.utils.types import BarrierSpec, BarrierType, KnockType

# Vanilla term A alone, in (A, B, C, D) coordinates
_VANILLA = (1, 0, 0, 0)


class FormulaBranch(str, Enum):
    """
    One of the eight closed-form shapes.

    "high strike" means strike > barrier level; a strike equal to the
    level takes the "low strike" shape (both coincide there).
    """

    DOWN_CALL_HIGH_STRIKE = "down_call_high_strike"
    DOWN_CALL_LOW_STRIKE = "down_call_low_strike"
    DOWN_PUT_HIGH_STRIKE = "down_put_high_strike"
    DOWN_PUT_LOW_STRIKE = "down_put_low_strike"
    UP_CALL_HIGH_STRIKE = "up_call_high_strike"
    UP_CALL_LOW_STRIKE = "up_call_low_strike"
    UP_PUT_HIGH_STRIKE = "up_put_high_strike"
    UP_PUT_LOW_STRIKE = "up_put_low_strike"

    @classmethod
    def select(cls, barrier_type: BarrierType, is_call: bool, strike_above_barrier: bool):
        side = "down" if barrier_type is BarrierType.DOWN else "up"
        kind = "call" if is_call else "put"
        ordering = "high" if strike_above_barrier else "low"
        return cls(f"{side}_{kind}_{ordering}_strike")

    def coefficients(self, knock_type: KnockType) -> tuple[int, int, int, int]:
        """Weights of the (A, B, C, D) basis terms for this branch."""
        knock_in = _KNOCK_IN_COEFFICIENTS[self]
        if knock_type is KnockType.IN:
            return knock_in
        return tuple(v - w for v, w in zip(_VANILLA, knock_in))


_KNOCK_IN_COEFFICIENTS = {
    FormulaBranch.DOWN_CALL_HIGH_STRIKE: (0, 0, 1, 0),  # C
    FormulaBranch.DOWN_CALL_LOW_STRIKE: (1, -1, 0, 1),  # A - B + D
    FormulaBranch.DOWN_PUT_HIGH_STRIKE: (0, 1, -1, 1),  # B - C + D
    FormulaBranch.DOWN_PUT_LOW_STRIKE: (1, 0, 0, 0),  # A
    FormulaBranch.UP_CALL_HIGH_STRIKE: (1, 0, 0, 0),  # A
    FormulaBranch.UP_CALL_LOW_STRIKE: (0, 1, -1, 1),  # B - C + D
    FormulaBranch.UP_PUT_HIGH_STRIKE: (1, -1, 0, 1),  # A - B + D
    FormulaBranch.UP_PUT_LOW_STRIKE: (0, 0, 1, 0),  # C
}


@dataclass(frozen=True)
class ResolvedBarrier:
    """
    Outcome of case resolution.

    Attributes:
        branch: Closed-form shape to evaluate
        knock_type: Knock-in or knock-out
        unreachable: The barrier is so far from spot it can never be touched;
            knock-ins are worth the discounted rebate, knock-outs the vanilla
        already_breached: Spot is already beyond the barrier; knock-ins are
            the vanilla, knock-outs are worth the rebate paid now
    """
    branch: FormulaBranch
    knock_type: KnockType
    unreachable: bool = False
    already_breached: bool = False

    @property
    def coefficients(self) -> tuple[int, int, int, int]:
        return self.branch.coefficients(self.knock_type)


def is_unreachable(
    barrier: BarrierSpec,
    spot: float,
    down_ratio: float = UNREACHABLE_DOWN_RATIO,
    up_ratio: float = UNREACHABLE_UP_RATIO,
) -> bool:
    """
    Whether the barrier level is many orders of magnitude away from spot.

    DOWN: level <= down_ratio·spot. UP: level >= up_ratio·spot.
    """
    if barrier.is_down:
        return barrier.level <= down_ratio * spot
    return barrier.level >= up_ratio * spot


def resolve_barrier_case(
    barrier: BarrierSpec,
    spot: float,
    strike: float,
    is_call: bool,
) -> ResolvedBarrier:
    """
    Select the closed-form branch for a barrier option.

    A spot strictly beyond the barrier (below a DOWN level, above an UP
    level) is detected here and flagged as already breached; callers pass
    no breach state. The pricer then returns the vanilla for a knock-in and
    the rebate paid now for a knock-out, both with zero sensitivities, in
    place of running the closed form on the wrong side of the barrier.

    Args:
        barrier: Barrier terms
        spot: Current spot price
        strike: Option strike
        is_call: True for a call, False for a put

    Returns:
        ResolvedBarrier carrying the branch and the degenerate-case flags

    Raises:
        InvalidInputError: If spot sits exactly on the barrier, where a
            continuously monitored knock event is ambiguous

    Examples:
        >>> from barrier_pricer.utils.types import BarrierSpec
        >>> resolve_barrier_case(BarrierSpec("in", "down", 90.0), 105.0, 100.0, True).branch
        <FormulaBranch.DOWN_CALL_HIGH_STRIKE: 'down_call_high_strike'>
    """
    if spot == barrier.level:
        raise InvalidInputError(
            f"Spot {spot} equals the barrier level; the knock event is ambiguous "
            f"under continuous monitoring"
        )

    branch = FormulaBranch.select(barrier.barrier_type, is_call, strike > barrier.level)
    if barrier.is_down:
        breached = spot < barrier.level
    else:
        breached = spot > barrier.level

    return ResolvedBarrier(
        branch=branch,
        knock_type=barrier.knock_type,
        unreachable=not breached and is_unreachable(barrier, spot),
        already_breached=breached,
    )
