"""
Numerical constants and tolerances for barrier option pricing.

This module defines the thresholds used for degenerate-barrier detection,
normal distribution clamping, implied volatility solving and the
validation diagnostics. Functions take these as keyword defaults so a
caller can override them per call.
"""

# Unreachable barrier detection (barrier level relative to spot)
UNREACHABLE_DOWN_RATIO = 1e-6  # DOWN barrier at or below 1e-6 x spot is never touched
UNREACHABLE_UP_RATIO = 1e6  # UP barrier at or above 1e6 x spot is never touched

# Normal distribution bounds
MAX_STANDARD_DEVIATIONS = 38.0  # Beyond ±38σ, the CDF is exactly 0 or 1 in double precision

# Implied volatility solver parameters
IV_PRICE_TOLERANCE = 1e-12  # Undiscounted price accuracy
IV_VOL_TOLERANCE = 1e-12  # Volatility convergence tolerance
IV_MAX_ITERATIONS = 50  # Maximum Newton-Raphson iterations
IV_MIN_VEGA = 1e-8  # Below this, switch to Brent method
IV_INITIAL_GUESS = 0.25  # Default 25% volatility if no better guess
IV_MIN_VOL = 0.001  # 0.1% minimum volatility
IV_MAX_VOL = 10.0  # 1000% maximum volatility

# Validation tolerances
PARITY_TOLERANCE = 1e-6  # In-out parity, relative to vanilla + rebate
DEGENERATE_TOLERANCE = 1e-6  # Unreachable barrier vs vanilla / discounted rebate
ADJOINT_TOLERANCE = 1e-4  # Adjoint vs centered finite difference

# Finite-difference step sizes (validation only)
FD_STEP_SPOT = 1e-3
FD_STEP_STRIKE = 1e-3
FD_STEP_RATE = 1e-8
FD_STEP_CARRY = 1e-8
FD_STEP_VOL = 1e-8

# Order of the derivative vector returned by the adjoint pricer
DERIVATIVE_NAMES = ("spot", "strike", "rate", "cost_of_carry", "volatility")
