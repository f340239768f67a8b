"""
Exception taxonomy for pricing and calibration.

All errors derive from RatesQuantError and also from the closest builtin
so callers can catch either.
"""

from typing import Optional


class RatesQuantError(Exception):
    """Base class for library errors."""


class InvalidProductError(RatesQuantError, ValueError):
    """Product cannot be handled by the requested pricer."""

    def __init__(self, message: str, product_id: Optional[str] = None):
        self.product_id = product_id
        prefix = f"[{product_id}] " if product_id else ""
        super().__init__(f"{prefix}{message}")


class InconsistentMarketDataError(RatesQuantError, ValueError):
    """Market data snapshots disagree (e.g. different valuation dates)."""


class MarketDataNotFoundError(RatesQuantError, KeyError):
    """A quote, curve or fixing required by the calculation is missing."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable
        return str(self.args[0]) if self.args else ""


class CalibrationNonConvergenceError(RatesQuantError, RuntimeError):
    """Newton calibration did not reach the residual tolerance."""

    def __init__(self, group_name: str, iterations: int, residual_norm: float, message: str = ""):
        self.group_name = group_name
        self.iterations = iterations
        self.residual_norm = residual_norm
        detail = f": {message}" if message else ""
        super().__init__(
            f"Calibration of curve group '{group_name}' failed after {iterations} "
            f"iterations, residual norm {residual_norm:.3e}{detail}"
        )


class DomainRangeError(RatesQuantError, ValueError):
    """Requested quantity does not exist for the given inputs."""


__all__ = [
    "RatesQuantError",
    "InvalidProductError",
    "InconsistentMarketDataError",
    "MarketDataNotFoundError",
    "CalibrationNonConvergenceError",
    "DomainRangeError",
]
