"""
Risk sensitivity aggregation.

Provides:
- CurveParameterSensitivity(ies): PV sensitivity per curve node
- VolatilityParameterSensitivity: PV sensitivity per volatility grid node
- SensitivityRecord: Flat (identifier, bucket, currency, amount) rows for reporting
- aggregate_points: Map-reduce of point sensitivities over trades
- bucketed_pv01 / parallel_pv01: 1bp scaled curve sensitivities
- market_quote_sensitivities: Curve parameter to market quote sensitivities

Output format follows desk conventions for risk reporting: one row per
curve node, amounts per 1.0 unit of the underlying parameter unless
scaled to a basis point.
"""

from dataclasses import dataclass
from functools import reduce
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..config import ONE_BP
from .points import PointSensitivities

if TYPE_CHECKING:
    from ..rates_provider import RatesProvider


@dataclass(frozen=True)
class SensitivityRecord:
    """
    One reporting row.

    Attributes:
        identifier: Curve or surface name
        bucket: Node label (tenor, time or quote id)
        currency: Currency of the amount
        amount: Sensitivity amount
    """
    identifier: str
    bucket: str
    currency: str
    amount: float


@dataclass(frozen=True)
class CurveParameterSensitivity:
    """
    Sensitivity of a value to each parameter of one curve.

    Attributes:
        curve_name: Curve identifier
        currency: Currency of the amounts
        labels: Node labels, one per parameter
        sensitivity: Array of amounts, one per parameter
    """
    curve_name: str
    currency: str
    labels: Tuple[str, ...]
    sensitivity: np.ndarray

    def __post_init__(self):
        sensitivity = np.array(self.sensitivity, dtype=np.float64)
        if sensitivity.shape != (len(self.labels),):
            raise ValueError(f"Need one label per sensitivity of curve '{self.curve_name}'")
        sensitivity.setflags(write=False)
        object.__setattr__(self, "labels", tuple(self.labels))
        object.__setattr__(self, "sensitivity", sensitivity)

    @property
    def key(self) -> Tuple[str, str]:
        return self.curve_name, self.currency

    def multiplied_by(self, factor: float) -> "CurveParameterSensitivity":
        return CurveParameterSensitivity(self.curve_name, self.currency, self.labels, self.sensitivity * factor)

    def plus(self, other: "CurveParameterSensitivity") -> "CurveParameterSensitivity":
        if other.key != self.key or other.labels != self.labels:
            raise ValueError(f"Cannot add sensitivities of different curves: {self.key} and {other.key}")
        return CurveParameterSensitivity(
            self.curve_name, self.currency, self.labels, self.sensitivity + other.sensitivity
        )

    def total(self) -> float:
        return float(self.sensitivity.sum())

    def records(self) -> List[SensitivityRecord]:
        return [
            SensitivityRecord(self.curve_name, label, self.currency, float(amount))
            for label, amount in zip(self.labels, self.sensitivity)
        ]

    def __eq__(self, other) -> bool:
        if not isinstance(other, CurveParameterSensitivity):
            return NotImplemented
        return (self.key == other.key and self.labels == other.labels
                and np.array_equal(self.sensitivity, other.sensitivity))

    __hash__ = None


class CurveParameterSensitivities:
    """
    Collection of curve parameter sensitivities keyed by (curve name, currency).
    """

    def __init__(self, sensitivities: Iterable[CurveParameterSensitivity] = ()):
        merged: Dict[Tuple[str, str], CurveParameterSensitivity] = {}
        for s in sensitivities:
            merged[s.key] = merged[s.key].plus(s) if s.key in merged else s
        self._sensitivities = merged

    @classmethod
    def empty(cls) -> "CurveParameterSensitivities":
        return cls()

    @property
    def sensitivities(self) -> List[CurveParameterSensitivity]:
        return list(self._sensitivities.values())

    def get(self, curve_name: str, currency: Optional[str] = None) -> Optional[CurveParameterSensitivity]:
        """Sensitivity to one curve; the currency may be omitted when unique."""
        if currency is not None:
            return self._sensitivities.get((curve_name, currency))
        matches = [s for s in self._sensitivities.values() if s.curve_name == curve_name]
        if len(matches) > 1:
            raise ValueError(f"Curve '{curve_name}' has sensitivities in several currencies")
        return matches[0] if matches else None

    def combined_with(self, other: "CurveParameterSensitivities") -> "CurveParameterSensitivities":
        return CurveParameterSensitivities(self.sensitivities + other.sensitivities)

    def multiplied_by(self, factor: float) -> "CurveParameterSensitivities":
        return CurveParameterSensitivities(s.multiplied_by(factor) for s in self.sensitivities)

    def total(self, currency: Optional[str] = None) -> float:
        """Parallel sensitivity: the sum over all nodes (of one currency if given)."""
        return float(sum(
            s.total() for s in self._sensitivities.values()
            if currency is None or s.currency == currency
        ))

    def records(self) -> List[SensitivityRecord]:
        """Ordered rows: curves by name, nodes in curve order."""
        rows = []
        for key in sorted(self._sensitivities):
            rows.extend(self._sensitivities[key].records())
        return rows

    def to_frame(self) -> pd.DataFrame:
        """Records as a DataFrame for reporting collaborators."""
        return pd.DataFrame(
            [(r.identifier, r.bucket, r.currency, r.amount) for r in self.records()],
            columns=["identifier", "bucket", "currency", "amount"],
        )

    def __add__(self, other):
        if not isinstance(other, CurveParameterSensitivities):
            return NotImplemented
        return self.combined_with(other)

    def __len__(self) -> int:
        return len(self._sensitivities)

    def __iter__(self):
        return iter(self.sensitivities)

    def __eq__(self, other) -> bool:
        if not isinstance(other, CurveParameterSensitivities):
            return NotImplemented
        return self._sensitivities == other._sensitivities

    __hash__ = None

    def __repr__(self) -> str:
        return f"CurveParameterSensitivities({sorted(self._sensitivities)})"


@dataclass(frozen=True)
class VolatilityParameterSensitivity:
    """
    Sensitivity of a value to each node of an expiry x tenor volatility grid.
    """
    volatilities_name: str
    currency: str
    expiries: Tuple[float, ...]
    tenors: Tuple[float, ...]
    sensitivity: np.ndarray

    def __post_init__(self):
        sensitivity = np.array(self.sensitivity, dtype=np.float64)
        if sensitivity.shape != (len(self.expiries), len(self.tenors)):
            raise ValueError("Sensitivity grid shape does not match expiries x tenors")
        sensitivity.setflags(write=False)
        object.__setattr__(self, "expiries", tuple(self.expiries))
        object.__setattr__(self, "tenors", tuple(self.tenors))
        object.__setattr__(self, "sensitivity", sensitivity)

    def total(self) -> float:
        return float(self.sensitivity.sum())

    def records(self) -> List[SensitivityRecord]:
        return [
            SensitivityRecord(self.volatilities_name, f"{e:g}x{t:g}", self.currency, float(self.sensitivity[i, j]))
            for i, e in enumerate(self.expiries)
            for j, t in enumerate(self.tenors)
        ]

    def __eq__(self, other) -> bool:
        if not isinstance(other, VolatilityParameterSensitivity):
            return NotImplemented
        return (self.volatilities_name == other.volatilities_name and self.currency == other.currency
                and self.expiries == other.expiries and self.tenors == other.tenors
                and np.array_equal(self.sensitivity, other.sensitivity))

    __hash__ = None


def aggregate_points(
    items: Iterable,
    sensitivity: Optional[Callable[[object], PointSensitivities]] = None,
) -> PointSensitivities:
    """
    Combine point sensitivities, optionally mapping each item first.

    Args:
        items: Trades, or PointSensitivities when no mapping is given
        sensitivity: Function from a trade to its PointSensitivities

    Returns:
        Combined PointSensitivities (independent of order)
    """
    points = map(sensitivity, items) if sensitivity is not None else items
    return reduce(PointSensitivities.combined_with, points, PointSensitivities.none())


def bucketed_pv01(points: PointSensitivities, provider: "RatesProvider") -> CurveParameterSensitivities:
    """Curve node sensitivities scaled to a 1bp move of each parameter."""
    return provider.parameter_sensitivity(points).multiplied_by(ONE_BP)


def parallel_pv01(points: PointSensitivities, provider: "RatesProvider", currency: Optional[str] = None) -> float:
    """Value change for a 1bp parallel move of every curve parameter."""
    return bucketed_pv01(points, provider).total(currency)


def market_quote_sensitivities(
    parameter_sensitivities: CurveParameterSensitivities,
    provider: "RatesProvider",
) -> CurveParameterSensitivities:
    """
    Convert curve parameter sensitivities into sensitivities to the market
    quotes the curves were calibrated from.

    Uses the parameter-to-quote transition matrix stored by calibration.
    Sensitivities to curves outside any calibrated group are dropped.

    Args:
        parameter_sensitivities: Output of RatesProvider.parameter_sensitivity
        provider: Calibrated provider holding calibration info

    Returns:
        CurveParameterSensitivities labelled by quote identifier
    """
    results: List[CurveParameterSensitivity] = []
    for info in provider.calibration_info.values():
        currencies = sorted({
            s.currency for s in parameter_sensitivities
            if s.curve_name in info.curve_names
        })
        for currency in currencies:
            vectors = []
            for name, count in zip(info.curve_names, info.parameter_counts):
                s = parameter_sensitivities.get(name, currency)
                vectors.append(s.sensitivity if s is not None else np.zeros(count))
            quote_sens = np.concatenate(vectors) @ info.transition_matrix

            offset = 0
            for name, count in zip(info.curve_names, info.parameter_counts):
                results.append(CurveParameterSensitivity(
                    name,
                    currency,
                    info.quote_ids[offset:offset + count],
                    quote_sens[offset:offset + count],
                ))
                offset += count
    return CurveParameterSensitivities(results)


__all__ = [
    "SensitivityRecord",
    "CurveParameterSensitivity",
    "CurveParameterSensitivities",
    "VolatilityParameterSensitivity",
    "aggregate_points",
    "bucketed_pv01",
    "parallel_pv01",
    "market_quote_sensitivities",
]
