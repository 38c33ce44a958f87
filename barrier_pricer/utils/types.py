"""
Data types and structures for barrier option pricing.

This module defines the immutable value types that cross the pricing
boundary: the vanilla option terms, the barrier terms, the flat market
inputs, and the results returned by the pricers, solvers and diagnostics.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional

from barrier_pricer.utils.constants import DERIVATIVE_NAMES
from barrier_pricer.utils.exceptions import InvalidInputError


class KnockType(str, Enum):
    """Whether touching the barrier activates or deactivates the option."""

    IN = "in"
    OUT = "out"


class BarrierType(str, Enum):
    """Side of the spot on which the barrier sits."""

    UP = "up"
    DOWN = "down"


class ObservationType(str, Enum):
    """Barrier monitoring convention. Only continuous monitoring is priced."""

    CONTINUOUS = "continuous"


def _require_finite(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise InvalidInputError(f"{name} must be finite, got {name}={value}")


def _coerce_enum(instance, name: str, enum_cls) -> None:
    value = getattr(instance, name)
    try:
        object.__setattr__(instance, name, enum_cls(value))
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidInputError(f"{name} must be one of {allowed}, got {value!r}") from e


@dataclass(frozen=True)
class VanillaOptionSpec:
    """
    Immutable European option terms.

    Attributes:
        strike: Strike price, strictly positive
        time_to_expiry: Time to expiry in years, non-negative
        is_call: True for a call, False for a put
    """
    strike: float
    time_to_expiry: float
    is_call: bool = True

    def __post_init__(self) -> None:
        """Validate terms."""
        _require_finite("strike", self.strike)
        _require_finite("time_to_expiry", self.time_to_expiry)
        if self.strike <= 0:
            raise InvalidInputError(f"Strike price must be positive, got K={self.strike}")
        if self.time_to_expiry < 0:
            raise InvalidInputError(
                f"Time to expiration cannot be negative, got T={self.time_to_expiry}"
            )

    @property
    def phi(self) -> int:
        """+1 for a call, -1 for a put."""
        return 1 if self.is_call else -1


@dataclass(frozen=True)
class BarrierSpec:
    """
    Immutable single-barrier terms.

    Attributes:
        knock_type: KnockType.IN or KnockType.OUT
        barrier_type: BarrierType.UP or BarrierType.DOWN
        level: Barrier level, strictly positive
        rebate: Cash rebate, non-negative. Paid at expiry for a knock-in that
            never activates, paid at the hit for a knock-out.
        observation_type: Monitoring convention (continuous only)

    String values ("in", "down", ...) are accepted and converted.
    """
    knock_type: KnockType
    barrier_type: BarrierType
    level: float
    rebate: float = 0.0
    observation_type: ObservationType = ObservationType.CONTINUOUS

    def __post_init__(self) -> None:
        """Normalise enums and validate levels."""
        _coerce_enum(self, "knock_type", KnockType)
        _coerce_enum(self, "barrier_type", BarrierType)
        _coerce_enum(self, "observation_type", ObservationType)
        _require_finite("level", self.level)
        _require_finite("rebate", self.rebate)
        if self.level <= 0:
            raise InvalidInputError(f"Barrier level must be positive, got H={self.level}")
        if self.rebate < 0:
            raise InvalidInputError(f"Rebate cannot be negative, got rebate={self.rebate}")

    @property
    def is_knock_in(self) -> bool:
        return self.knock_type is KnockType.IN

    @property
    def is_down(self) -> bool:
        return self.barrier_type is BarrierType.DOWN

    @property
    def eta(self) -> int:
        """+1 for a DOWN barrier, -1 for an UP barrier."""
        return 1 if self.is_down else -1


@dataclass(frozen=True)
class MarketInputs:
    """
    Flat market data for one evaluation.

    Attributes:
        spot: Spot price of the underlying, strictly positive
        cost_of_carry: Domestic rate minus foreign rate / dividend yield
        domestic_rate: Continuously compounded discount rate
        volatility: Black-Scholes volatility, non-negative
    """
    spot: float
    cost_of_carry: float
    domestic_rate: float
    volatility: float

    def __post_init__(self) -> None:
        """Validate market data."""
        for name in ("spot", "cost_of_carry", "domestic_rate", "volatility"):
            _require_finite(name, getattr(self, name))
        if self.spot <= 0:
            raise InvalidInputError(f"Spot price must be positive, got S={self.spot}")
        if self.volatility < 0:
            raise InvalidInputError(f"Volatility cannot be negative, got sigma={self.volatility}")

    def forward(self, time_to_expiry: float) -> float:
        """Forward price S·e^(bT)."""
        return self.spot * math.exp(self.cost_of_carry * time_to_expiry)

    def discount_factor(self, time_to_expiry: float) -> float:
        """Domestic discount factor e^(-rT)."""
        return math.exp(-self.domestic_rate * time_to_expiry)


@dataclass(frozen=True)
class PriceResult:
    """
    Price and, for adjoint evaluations, its first-order sensitivities.

    Attributes:
        price: Present value
        derivatives: None for a price-only evaluation, otherwise the partial
            derivatives in the fixed order (spot, strike, domestic rate,
            cost of carry, volatility)
    """
    price: float
    derivatives: Optional[tuple[float, float, float, float, float]] = None

    def as_dict(self) -> dict[str, float]:
        """Derivatives keyed by input name."""
        if self.derivatives is None:
            return {}
        return dict(zip(DERIVATIVE_NAMES, self.derivatives))


@dataclass
class ImpliedVolResult:
    """
    Result from implied volatility solver.

    Attributes:
        volatility: Solved implied volatility (annualized)
        iterations: Number of iterations required for convergence
        method: Method used ('newton-raphson' or 'brent')
        success: Whether the solver converged successfully
        message: Additional information about convergence
    """
    volatility: float
    iterations: int
    method: Literal["newton-raphson", "brent"]
    success: bool
    message: str = ""


@dataclass
class ParityCheck:
    """
    Result from a validation diagnostic.

    Attributes:
        is_valid: Whether every checked relation holds within tolerance
        violations: Human-readable description of each failed relation
        details: Intermediate values of the check
    """
    is_valid: bool
    violations: list[str] = field(default_factory=list)
    details: dict[str, float] = field(default_factory=dict)
