"""
Numerical settings shared by the calibration and pricing layers.
"""

from dataclasses import dataclass


# Time basis for curve and volatility relative times
TIME_BASIS_DAYS = 365.0

# One basis point
ONE_BP = 1.0e-4


@dataclass(frozen=True)
class CalibrationSettings:
    """
    Settings for the multi-curve Newton solver.

    Attributes:
        tolerance: Residual norm (price units, unit notional) below which
            the calibration is considered converged
        max_iterations: Newton iteration ceiling
        max_step_halvings: Backtracking steps allowed per iteration when
            the full Newton step increases the residual norm
        notional: Notional of the calibration trades
    """
    tolerance: float = 1e-9
    max_iterations: int = 100
    max_step_halvings: int = 10
    notional: float = 1.0

    def __post_init__(self):
        if self.tolerance <= 0:
            raise ValueError("tolerance must be positive")
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        if self.max_step_halvings < 0:
            raise ValueError("max_step_halvings must be non-negative")


DEFAULT_CALIBRATION_SETTINGS = CalibrationSettings()


__all__ = [
    "TIME_BASIS_DAYS",
    "ONE_BP",
    "CalibrationSettings",
    "DEFAULT_CALIBRATION_SETTINGS",
]
