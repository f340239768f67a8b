"""
Point sensitivities.

Provides:
- ZeroRateSensitivityKey: Identifies a zero rate on a named curve at a time
- PointSensitivities: Sparse, immutable key -> amount map
- SwaptionSensitivity: Vega of a swaption at one (expiry, tenor) point

Pricers return point sensitivities of present value to the continuously
compounded zero rate of the curves they read; the provider maps them onto
curve parameters. Combining sums amounts at equal keys, so builders from
different trades or legs aggregate in any order.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

import pandas as pd


@dataclass(frozen=True, order=True)
class ZeroRateSensitivityKey:
    """
    Attributes:
        curve_name: Name of the curve the zero rate is read from
        currency: Currency of the sensitivity amount
        time: ACT/365F time of the zero rate
    """
    curve_name: str
    currency: str
    time: float


class PointSensitivities:
    """
    Immutable sparse map of ZeroRateSensitivityKey -> amount.

    Forms a commutative monoid under combined_with (or +) with none() as the
    identity; multiplied_by scales every amount.
    """

    __slots__ = ("_amounts",)

    def __init__(self, amounts: Optional[Mapping[ZeroRateSensitivityKey, float]] = None):
        self._amounts = MappingProxyType(dict(amounts or {}))

    @classmethod
    def none(cls) -> "PointSensitivities":
        return _NONE

    @classmethod
    def of(cls, key: ZeroRateSensitivityKey, amount: float) -> "PointSensitivities":
        return cls({key: float(amount)})

    @classmethod
    def sum(cls, items: Iterable["PointSensitivities"]) -> "PointSensitivities":
        """Combine any number of sensitivities."""
        amounts: Dict[ZeroRateSensitivityKey, float] = {}
        for item in items:
            for key, amount in item.items():
                amounts[key] = amounts.get(key, 0.0) + amount
        return cls(amounts)

    def combined_with(self, other: "PointSensitivities") -> "PointSensitivities":
        if not other._amounts:
            return self
        if not self._amounts:
            return other
        return PointSensitivities.sum((self, other))

    def multiplied_by(self, factor: float) -> "PointSensitivities":
        return PointSensitivities({k: v * factor for k, v in self._amounts.items()})

    def get(self, key: ZeroRateSensitivityKey, default: float = 0.0) -> float:
        return self._amounts.get(key, default)

    def items(self):
        return self._amounts.items()

    def keys(self):
        return self._amounts.keys()

    @property
    def amounts(self) -> Mapping[ZeroRateSensitivityKey, float]:
        return self._amounts

    def is_empty(self) -> bool:
        return not self._amounts

    def total(self) -> float:
        """Sum of all amounts (parallel zero rate sensitivity)."""
        return float(sum(self._amounts.values()))

    def normalized(self) -> Tuple[Tuple[ZeroRateSensitivityKey, float], ...]:
        """Entries sorted by key, for stable reporting and comparison."""
        return tuple(sorted(self._amounts.items()))

    def to_frame(self) -> pd.DataFrame:
        rows = [
            {"curve": k.curve_name, "currency": k.currency, "time": k.time, "amount": v}
            for k, v in self.normalized()
        ]
        return pd.DataFrame(rows, columns=["curve", "currency", "time", "amount"])

    def __add__(self, other):
        if not isinstance(other, PointSensitivities):
            return NotImplemented
        return self.combined_with(other)

    def __radd__(self, other):
        # Allows builtin sum() with its integer start value
        if other == 0:
            return self
        return NotImplemented

    def __mul__(self, factor):
        if not isinstance(factor, (int, float)):
            return NotImplemented
        return self.multiplied_by(factor)

    __rmul__ = __mul__

    def __neg__(self):
        return self.multiplied_by(-1.0)

    def __len__(self) -> int:
        return len(self._amounts)

    def __iter__(self) -> Iterator[ZeroRateSensitivityKey]:
        return iter(self._amounts)

    def __eq__(self, other) -> bool:
        if not isinstance(other, PointSensitivities):
            return NotImplemented
        return dict(self._amounts) == dict(other._amounts)

    __hash__ = None

    def __repr__(self) -> str:
        return f"PointSensitivities({len(self._amounts)} points, total={self.total():.6g})"


_NONE = PointSensitivities()


@dataclass(frozen=True)
class SwaptionSensitivity:
    """
    Sensitivity of a swaption value to its implied volatility.

    Attributes:
        volatilities_name: Name of the volatility surface
        expiry: Relative time to expiry
        tenor: Underlying swap tenor in years
        strike: Fixed rate of the underlying
        forward: Underlying par rate
        currency: Currency of the amount
        sensitivity: dPV / dvol
    """
    volatilities_name: str
    expiry: float
    tenor: float
    strike: float
    forward: float
    currency: str
    sensitivity: float

    def multiplied_by(self, factor: float) -> "SwaptionSensitivity":
        return SwaptionSensitivity(
            self.volatilities_name,
            self.expiry,
            self.tenor,
            self.strike,
            self.forward,
            self.currency,
            self.sensitivity * factor,
        )


__all__ = [
    "ZeroRateSensitivityKey",
    "PointSensitivities",
    "SwaptionSensitivity",
]
