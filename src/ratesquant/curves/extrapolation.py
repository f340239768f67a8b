"""
Extrapolation beyond the first and last curve knots.

Provides:
- FlatExtrapolator: Boundary value, zero slope
- LinearExtrapolator: Boundary value continued along the boundary slope

Extrapolators act strictly outside the knot range and are chosen
independently for each side of a curve.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING
import numpy as np

if TYPE_CHECKING:
    from .interpolation import BoundCurveInterpolator


class CurveExtrapolator(ABC):
    """Abstract base class for curve extrapolation."""

    name: str = ""

    @abstractmethod
    def value(self, bound: "BoundCurveInterpolator", x: float) -> float:
        pass

    @abstractmethod
    def first_derivative(self, bound: "BoundCurveInterpolator", x: float) -> float:
        pass

    @abstractmethod
    def node_sensitivities(self, bound: "BoundCurveInterpolator", x: float) -> np.ndarray:
        pass

    @abstractmethod
    def first_derivative_node_sensitivities(self, bound: "BoundCurveInterpolator", x: float) -> np.ndarray:
        pass

    @staticmethod
    def _boundary(bound: "BoundCurveInterpolator", x: float) -> int:
        return 0 if x < bound.x[0] else len(bound.x) - 1

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def __eq__(self, other) -> bool:
        return type(self) is type(other)

    def __hash__(self) -> int:
        return hash(type(self))


class FlatExtrapolator(CurveExtrapolator):
    """Constant continuation of the boundary knot value."""

    name = "flat"

    def value(self, bound, x):
        return float(bound.y[self._boundary(bound, x)])

    def first_derivative(self, bound, x):
        return 0.0

    def node_sensitivities(self, bound, x):
        sens = np.zeros(bound.parameter_count)
        sens[self._boundary(bound, x)] = 1.0
        return sens

    def first_derivative_node_sensitivities(self, bound, x):
        return np.zeros(bound.parameter_count)


class LinearExtrapolator(CurveExtrapolator):
    """
    Straight-line continuation using the interpolator's slope at the boundary.
    """

    name = "linear"

    def value(self, bound, x):
        k = self._boundary(bound, x)
        slope, _ = bound.interior_first_derivative(bound.x[k])
        return float(bound.y[k] + slope * (x - bound.x[k]))

    def first_derivative(self, bound, x):
        k = self._boundary(bound, x)
        slope, _ = bound.interior_first_derivative(bound.x[k])
        return slope

    def node_sensitivities(self, bound, x):
        k = self._boundary(bound, x)
        _, slope_sens = bound.interior_first_derivative(bound.x[k])
        sens = (x - bound.x[k]) * slope_sens
        sens[k] += 1.0
        return sens

    def first_derivative_node_sensitivities(self, bound, x):
        k = self._boundary(bound, x)
        _, slope_sens = bound.interior_first_derivative(bound.x[k])
        return np.array(slope_sens, dtype=np.float64)


_EXTRAPOLATORS = {
    "flat": FlatExtrapolator,
    "linear": LinearExtrapolator,
}


def create_extrapolator(method: str) -> CurveExtrapolator:
    """
    Factory function to create an extrapolator by name ("flat" or "linear").
    """
    key = method.lower().strip()
    if key not in _EXTRAPOLATORS:
        raise ValueError(f"Unknown extrapolation method: {method}")
    return _EXTRAPOLATORS[key]()


__all__ = [
    "CurveExtrapolator",
    "FlatExtrapolator",
    "LinearExtrapolator",
    "create_extrapolator",
]
