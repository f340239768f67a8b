"""
Rates provider: the calibrated market state used by pricers.

Provides:
- Discount factors by currency and forward rates by index
- Zero rate point sensitivities of both
- Historical fixings
- Mapping of point sensitivities onto curve parameters

A provider is immutable. Calibration creates one; scenario and bump
analysis derive new providers through with_curves.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

import numpy as np

from .conventions import RateIndex
from .curves.curve import Curve
from .dates import relative_time
from .errors import MarketDataNotFoundError
from .risk.points import PointSensitivities, ZeroRateSensitivityKey
from .risk.sensitivities import CurveParameterSensitivities, CurveParameterSensitivity


def _index_name(index: Union[RateIndex, str]) -> str:
    return index.name if isinstance(index, RateIndex) else index


@dataclass(frozen=True)
class RatesProvider:
    """
    Immutable snapshot of curves and fixings at one valuation date.

    Attributes:
        valuation_date: Valuation date (time 0)
        curves: Curve name -> Curve
        discount_curves: Currency -> name of the discounting curve
        index_curves: Index name -> name of the forward curve
        fixings: Index name -> {fixing date: rate}
        calibration_info: Curve group name -> calibration diagnostics
    """
    valuation_date: date
    curves: Mapping[str, Curve] = field(default_factory=dict)
    discount_curves: Mapping[str, str] = field(default_factory=dict)
    index_curves: Mapping[str, str] = field(default_factory=dict)
    fixings: Mapping[str, Mapping[date, float]] = field(default_factory=dict)
    calibration_info: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        for name in ("curves", "discount_curves", "index_curves", "calibration_info"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))
        object.__setattr__(self, "fixings", MappingProxyType(
            {k: MappingProxyType(dict(v)) for k, v in self.fixings.items()}
        ))

        for role in (self.discount_curves, self.index_curves):
            for key, curve_name in role.items():
                if curve_name not in self.curves:
                    raise MarketDataNotFoundError(f"Curve '{curve_name}' for '{key}' is not in the provider")

    def relative_time(self, d: date) -> float:
        """Signed ACT/365F time from the valuation date."""
        return relative_time(self.valuation_date, d)

    def curve(self, name: str) -> Curve:
        try:
            return self.curves[name]
        except KeyError:
            raise MarketDataNotFoundError(f"No curve named '{name}'") from None

    def discount_curve(self, currency: str) -> Curve:
        try:
            return self.curves[self.discount_curves[currency]]
        except KeyError:
            raise MarketDataNotFoundError(f"No discount curve for currency {currency}") from None

    def index_curve(self, index: Union[RateIndex, str]) -> Curve:
        name = _index_name(index)
        try:
            return self.curves[self.index_curves[name]]
        except KeyError:
            raise MarketDataNotFoundError(f"No forward curve for index {name}") from None

    def discount_factor(self, currency: str, d: date) -> float:
        return self.discount_curve(currency).discount_factor(self.relative_time(d))

    def discount_factor_point_sensitivity(self, currency: str, d: date) -> PointSensitivities:
        """
        Sensitivity of the discount factor to the zero rate of the discount curve.

        dP/dz = -t P; nothing for dates on or before the valuation date.
        """
        t = self.relative_time(d)
        if t <= 0:
            return PointSensitivities.none()
        curve = self.discount_curve(currency)
        key = ZeroRateSensitivityKey(curve.name, currency, t)
        return PointSensitivities.of(key, -t * curve.discount_factor(t))

    def forward_rate(
        self,
        index: Union[RateIndex, str],
        start: date,
        end: date,
        accrual: float,
    ) -> float:
        """
        Simply compounded forward rate of an index over [start, end].

        Args:
            index: Rate index
            start: Forward period start
            end: Forward period end
            accrual: Index year fraction of the period

        Returns:
            (P(start) / P(end) - 1) / accrual on the index curve
        """
        curve = self.index_curve(index)
        p1 = curve.discount_factor(self.relative_time(start))
        p2 = curve.discount_factor(self.relative_time(end))
        return (p1 / p2 - 1.0) / accrual

    def forward_rate_point_sensitivity(
        self,
        index: Union[RateIndex, str],
        start: date,
        end: date,
        accrual: float,
    ) -> PointSensitivities:
        """Zero rate sensitivity of forward_rate, on the index curve."""
        curve = self.index_curve(index)
        t1 = self.relative_time(start)
        t2 = self.relative_time(end)
        p1 = curve.discount_factor(t1)
        p2 = curve.discount_factor(t2)
        amounts: Dict[ZeroRateSensitivityKey, float] = {}
        if t1 > 0:
            amounts[ZeroRateSensitivityKey(curve.name, curve.currency, t1)] = -t1 * p1 / p2 / accrual
        if t2 > 0:
            key = ZeroRateSensitivityKey(curve.name, curve.currency, t2)
            amounts[key] = amounts.get(key, 0.0) + t2 * p1 / p2 / accrual
        return PointSensitivities(amounts)

    def fixing(self, index: Union[RateIndex, str], fixing_date: date) -> Optional[float]:
        """Historical fixing, or None when absent."""
        series = self.fixings.get(_index_name(index))
        if series is None:
            return None
        return series.get(fixing_date)

    def parameter_sensitivity(self, points: PointSensitivities) -> CurveParameterSensitivities:
        """
        Map zero rate point sensitivities onto curve parameters (chain rule).

        Args:
            points: Point sensitivities produced by a pricer

        Returns:
            CurveParameterSensitivities bucketed per curve node
        """
        vectors: Dict[tuple, np.ndarray] = {}
        for key, amount in points.items():
            curve = self.curve(key.curve_name)
            bucket = (key.curve_name, key.currency)
            if bucket not in vectors:
                vectors[bucket] = np.zeros(curve.parameter_count)
            vectors[bucket] = vectors[bucket] + amount * curve.zero_rate_parameter_sensitivity(key.time)

        return CurveParameterSensitivities([
            CurveParameterSensitivity(name, currency, self.curves[name].labels, vector)
            for (name, currency), vector in sorted(vectors.items())
        ])

    def with_curves(self, curves: Mapping[str, Curve]) -> "RatesProvider":
        """New provider with some curves replaced by name."""
        merged = dict(self.curves)
        merged.update(curves)
        return replace(self, curves=merged)

    def combined_with(self, other: "RatesProvider") -> "RatesProvider":
        """
        Merge two providers at the same valuation date; other takes precedence.
        """
        if other.valuation_date != self.valuation_date:
            raise ValueError("Cannot combine providers with different valuation dates")

        def merge(a, b):
            result = dict(a)
            result.update(b)
            return result

        fixings = {k: dict(v) for k, v in self.fixings.items()}
        for k, v in other.fixings.items():
            fixings.setdefault(k, {}).update(v)

        return RatesProvider(
            valuation_date=self.valuation_date,
            curves=merge(self.curves, other.curves),
            discount_curves=merge(self.discount_curves, other.discount_curves),
            index_curves=merge(self.index_curves, other.index_curves),
            fixings=fixings,
            calibration_info=merge(self.calibration_info, other.calibration_info),
        )


__all__ = [
    "RatesProvider",
]
