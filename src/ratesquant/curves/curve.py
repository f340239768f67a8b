"""
Yield curve representation and operations.

The Curve class provides:
- Discount factor P(0,t)
- Zero rate z(t), continuously compounded
- Forward rate f(t1, t2), simply compounded
- Sensitivities of the zero rate and discount factor to each curve parameter

A curve is immutable. Its parameters are the knot values, either zero
rates or discount factors depending on the value type; every change
(calibration step, bump) builds a new curve.
"""

from enum import Enum
from typing import Optional, Sequence, Tuple
import numpy as np

from ..config import ONE_BP
from .extrapolation import CurveExtrapolator, create_extrapolator
from .interpolation import CurveInterpolator, create_interpolator


class ValueType(Enum):
    """Meaning of the curve knot values."""
    ZERO_RATE = "ZeroRate"
    DISCOUNT_FACTOR = "DiscountFactor"


class Curve:
    """
    Interpolated curve on ACT/365F times from the valuation date.

    Args:
        name: Curve name, the identifier used in sensitivities
        currency: Currency of the curve
        times: Node times (strictly increasing)
        values: Node values (zero rates or discount factors)
        value_type: Meaning of the node values
        interpolator: Interpolator instance or name
        left_extrapolator: Extrapolator instance or name below the first node
        right_extrapolator: Extrapolator instance or name above the last node
        labels: Optional node labels (e.g. tenors) used for bucketing

    Conventions:
        - Zero rates are continuously compounded
        - Discount factor at t <= 0 is 1.0
    """

    def __init__(
        self,
        name: str,
        currency: str,
        times: Sequence[float],
        values: Sequence[float],
        value_type: ValueType = ValueType.ZERO_RATE,
        interpolator="natural_cubic_spline",
        left_extrapolator="flat",
        right_extrapolator="flat",
        labels: Optional[Sequence[str]] = None,
    ):
        if isinstance(interpolator, str):
            interpolator = create_interpolator(interpolator)
        if isinstance(left_extrapolator, str):
            left_extrapolator = create_extrapolator(left_extrapolator)
        if isinstance(right_extrapolator, str):
            right_extrapolator = create_extrapolator(right_extrapolator)

        self._name = name
        self._currency = currency
        self._value_type = value_type
        self._interpolator: CurveInterpolator = interpolator
        self._left: CurveExtrapolator = left_extrapolator
        self._right: CurveExtrapolator = right_extrapolator
        self._bound = interpolator.bind(times, values, left_extrapolator, right_extrapolator)
        self._bound.x.setflags(write=False)
        self._bound.y.setflags(write=False)

        if labels is None:
            labels = [f"{t:.4f}" for t in self._bound.x]
        if len(labels) != len(self._bound.x):
            raise ValueError("Need one label per curve node")
        self._labels: Tuple[str, ...] = tuple(labels)

    @property
    def name(self) -> str:
        return self._name

    @property
    def currency(self) -> str:
        return self._currency

    @property
    def value_type(self) -> ValueType:
        return self._value_type

    @property
    def interpolator(self) -> CurveInterpolator:
        return self._interpolator

    @property
    def times(self) -> np.ndarray:
        return self._bound.x

    @property
    def parameters(self) -> np.ndarray:
        return self._bound.y

    @property
    def labels(self) -> Tuple[str, ...]:
        return self._labels

    @property
    def parameter_count(self) -> int:
        return self._bound.parameter_count

    def value(self, t: float) -> float:
        """Interpolated knot-space value at time t."""
        return self._bound.value(t)

    def discount_factor(self, t: float) -> float:
        """
        Get discount factor P(0,t).

        Args:
            t: Year fraction from the valuation date

        Returns:
            Discount factor
        """
        if t <= 0:
            return 1.0
        if self._value_type == ValueType.DISCOUNT_FACTOR:
            return self._bound.value(t)
        return float(np.exp(-self._bound.value(t) * t))

    def zero_rate(self, t: float) -> float:
        """
        Get continuously compounded zero rate z(t).

        For discount factor curves at t <= 0 the rate at the first node is returned.
        """
        if self._value_type == ValueType.ZERO_RATE:
            return self._bound.value(t)
        if t <= 0:
            t = self.times[0]
        return float(-np.log(self._bound.value(t)) / t)

    def forward_rate(self, t1: float, t2: float) -> float:
        """
        Simply compounded forward rate between t1 and t2.

        Args:
            t1: Start time
            t2: End time

        Returns:
            (P(t1) / P(t2) - 1) / (t2 - t1)
        """
        if t2 <= t1:
            raise ValueError("t2 must be greater than t1")
        return (self.discount_factor(t1) / self.discount_factor(t2) - 1.0) / (t2 - t1)

    def instantaneous_forward(self, t: float) -> float:
        """
        Instantaneous forward rate f(t) = -d/dt log P(0,t).
        """
        if self._value_type == ValueType.ZERO_RATE:
            return self._bound.value(t) + t * self._bound.first_derivative(t)
        return -self._bound.first_derivative(t) / self._bound.value(t)

    def discount_factor_parameter_sensitivity(self, t: float) -> np.ndarray:
        """Derivative of P(0,t) with respect to each curve parameter."""
        if t <= 0:
            return np.zeros(self.parameter_count)
        sens = self._bound.node_sensitivities(t)
        if self._value_type == ValueType.DISCOUNT_FACTOR:
            return sens
        return -t * self.discount_factor(t) * sens

    def zero_rate_parameter_sensitivity(self, t: float) -> np.ndarray:
        """
        Derivative of the zero rate z(t) with respect to each curve parameter.

        Used to map zero rate point sensitivities onto curve nodes.
        """
        sens = self._bound.node_sensitivities(t)
        if self._value_type == ValueType.ZERO_RATE:
            return sens
        if t <= 0:
            return np.zeros(self.parameter_count)
        return -sens / (t * self._bound.value(t))

    def with_parameters(self, values: Sequence[float]) -> "Curve":
        """New curve with the same nodes and interpolation but different values."""
        values = np.asarray(values, dtype=np.float64)
        if values.shape != self.parameters.shape:
            raise ValueError(
                f"Curve '{self._name}' has {self.parameter_count} parameters, got {values.shape}"
            )
        return Curve(
            self._name,
            self._currency,
            self.times,
            values,
            self._value_type,
            self._interpolator,
            self._left,
            self._right,
            self._labels,
        )

    def bump_parallel(self, bp: float) -> "Curve":
        """
        Create a new curve with every parameter shifted.

        Args:
            bp: Bump size in basis points

        Returns:
            New bumped curve
        """
        return self.with_parameters(self.parameters + bp * ONE_BP)

    def bump_node(self, node_index: int, bp: float) -> "Curve":
        """
        Create a new curve with a single parameter shifted.

        Args:
            node_index: Index of node to bump (0-based)
            bp: Bump size in basis points

        Returns:
            New bumped curve
        """
        if node_index < 0 or node_index >= self.parameter_count:
            raise IndexError(f"Invalid node index: {node_index}")
        values = self.parameters.copy()
        values[node_index] += bp * ONE_BP
        return self.with_parameters(values)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Curve):
            return NotImplemented
        return (
            self._name == other._name
            and self._currency == other._currency
            and self._value_type == other._value_type
            and self._interpolator == other._interpolator
            and self._left == other._left
            and self._right == other._right
            and np.array_equal(self.times, other.times)
            and np.array_equal(self.parameters, other.parameters)
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (f"Curve(name={self._name}, currency={self._currency}, "
                f"type={self._value_type.value}, nodes={self.parameter_count}, "
                f"interpolator={self._interpolator.name})")


def create_flat_curve(
    name: str,
    rate: float,
    currency: str = "USD",
    max_tenor_years: float = 30.0,
) -> Curve:
    """
    Create a flat zero rate curve.

    Args:
        name: Curve name
        rate: Flat continuously compounded rate
        currency: Currency code
        max_tenor_years: Last node time

    Returns:
        Flat curve
    """
    times = [0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 20.0, max_tenor_years]
    return Curve(name, currency, times, [rate] * len(times), interpolator="linear")


__all__ = [
    "Curve",
    "ValueType",
    "create_flat_curve",
]
