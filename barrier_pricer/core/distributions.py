"""
Normal distribution with numerical safeguards.

This module provides the cumulative distribution function (CDF), its
inverse, the probability density function (PDF) and their logarithms for
a normal law. The barrier formulas evaluate the CDF far in the tails, so
the CDF is never approximated by 0 or 1 before double precision itself
makes it so, and log-space variants are exposed for products of large
powers and tiny probabilities.
"""

import math

from scipy.stats import norm

from barrier_pricer.utils.constants import MAX_STANDARD_DEVIATIONS
from barrier_pricer.utils.exceptions import InvalidInputError


class NormalDistribution:
    """
    Normal law N(mean, std²).

    Instances hold only their two parameters and are safe to share between
    threads.

    Examples:
        >>> NormalDistribution().cdf(0.0)
        0.5
        >>> round(NormalDistribution(100.0, 10.0).inverse_cdf(0.5), 12)
        100.0
    """

    def __init__(self, mean: float = 0.0, std: float = 1.0):
        if not (math.isfinite(mean) and math.isfinite(std)):
            raise InvalidInputError(f"mean and std must be finite, got mean={mean}, std={std}")
        if std <= 0:
            raise InvalidInputError(f"Standard deviation must be positive, got std={std}")
        self.mean = mean
        self.std = std

    def __repr__(self) -> str:
        return f"NormalDistribution(mean={self.mean}, std={self.std})"

    def _standardize(self, x: float) -> float:
        return (x - self.mean) / self.std

    def cdf(self, x: float) -> float:
        """
        Cumulative distribution function with bounds clamping.

        For |z| > 38 the CDF is 0 or 1 to double precision, so the value is
        returned directly.

        Args:
            x: Value at which to evaluate the CDF

        Returns:
            Probability that the random variable is less than x
        """
        z = self._standardize(x)
        if z > MAX_STANDARD_DEVIATIONS:
            return 1.0
        if z < -MAX_STANDARD_DEVIATIONS:
            return 0.0
        return float(norm.cdf(z))

    def pdf(self, x: float) -> float:
        """
        Probability density function.

        Notes:
            The standard normal PDF is given by:
                φ(z) = (1/√(2π)) * exp(-z²/2)
        """
        z = self._standardize(x)
        if abs(z) > MAX_STANDARD_DEVIATIONS:
            return 0.0
        return math.exp(-0.5 * z * z) / (math.sqrt(2.0 * math.pi) * self.std)

    def log_cdf(self, x: float) -> float:
        """Natural log of the CDF, accurate deep in the lower tail."""
        return float(norm.logcdf(self._standardize(x)))

    def log_pdf(self, x: float) -> float:
        """Natural log of the PDF."""
        z = self._standardize(x)
        return -0.5 * z * z - 0.5 * math.log(2.0 * math.pi) - math.log(self.std)

    def inverse_cdf(self, p: float) -> float:
        """
        Quantile function.

        Args:
            p: Probability strictly inside (0, 1)

        Returns:
            The value x such that cdf(x) == p

        Raises:
            InvalidInputError: If p is outside (0, 1)
        """
        if not 0.0 < p < 1.0:
            raise InvalidInputError(f"Probability must lie strictly in (0, 1), got p={p}")
        return self.mean + self.std * float(norm.ppf(p))


STANDARD_NORMAL = NormalDistribution()


def normal_cdf(x: float) -> float:
    """
    Standard normal cumulative distribution function.

    Examples:
        >>> normal_cdf(0.0)  # Median
        0.5
        >>> normal_cdf(40.0)  # Deep in tail
        1.0
    """
    return STANDARD_NORMAL.cdf(x)


def normal_pdf(x: float) -> float:
    """Standard normal probability density function."""
    return STANDARD_NORMAL.pdf(x)


def normal_log_cdf(x: float) -> float:
    """Natural log of the standard normal CDF."""
    return STANDARD_NORMAL.log_cdf(x)


def normal_log_pdf(x: float) -> float:
    """Natural log of the standard normal PDF."""
    return STANDARD_NORMAL.log_pdf(x)


def normal_inverse_cdf(p: float) -> float:
    """Standard normal quantile; p must lie strictly in (0, 1)."""
    return STANDARD_NORMAL.inverse_cdf(p)
