"""
Exceptions raised by the pricing core.

Every failure is a deterministic input or domain problem detected at the
point of the call; nothing here is transient or worth retrying.
"""


class BarrierPricingError(Exception):
    """Base class for all pricing errors."""


class InvalidInputError(BarrierPricingError, ValueError):
    """
    Raised when an input violates the contract of the pricer.

    Examples are a non-positive strike or barrier level, a negative time to
    expiry, a probability outside (0, 1), or a spot sitting exactly on a
    continuously monitored barrier.
    """


class NumericDomainError(BarrierPricingError, ArithmeticError):
    """
    Raised when a formula would divide by zero or leave the real line.

    The zero-variance case is routed to a deterministic payoff before the
    closed form is evaluated, so this only fires when the basis terms are
    called directly with σ√T = 0.
    """
