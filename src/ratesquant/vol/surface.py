"""
Swaption volatility surface.

Provides a strike-independent expiry x tenor grid of implied volatilities
with bilinear interpolation and flat extrapolation, and the option formula
matching its quoting convention:
- NORMAL: Bachelier, volatilities in rate units
- BLACK: (shifted) Black'76, lognormal volatilities
"""

from datetime import date
from enum import Enum
from typing import Sequence, Tuple

import numpy as np

from ..curves.interpolation import LinearInterpolator
from ..dates import relative_time
from ..options.base_models import (
    PutCall,
    bachelier_greeks,
    bachelier_price,
    black76_greeks,
    black76_price,
)
from ..risk.points import SwaptionSensitivity
from ..risk.sensitivities import VolatilityParameterSensitivity


class VolatilityModel(Enum):
    """Quoting convention of the surface volatilities."""
    NORMAL = "Normal"
    BLACK = "Black"


def _axis_weights(nodes: np.ndarray, x: float) -> np.ndarray:
    if len(nodes) == 1:
        return np.ones(1)
    return LinearInterpolator().bind(nodes, np.zeros(len(nodes))).node_sensitivities(x)


class SwaptionVolatilities:
    """
    Implied volatility grid for swaptions.

    Args:
        name: Surface identifier used in sensitivities
        valuation_date: Date the expiries are measured from
        expiries: Expiry times in years (strictly increasing)
        tenors: Underlying tenors in years (strictly increasing)
        volatilities: Grid of shape (len(expiries), len(tenors))
        model: Quoting convention
        shift: Black shift, ignored for NORMAL
    """

    def __init__(
        self,
        name: str,
        valuation_date: date,
        expiries: Sequence[float],
        tenors: Sequence[float],
        volatilities,
        model: VolatilityModel = VolatilityModel.NORMAL,
        shift: float = 0.0,
    ):
        expiries = np.array(expiries, dtype=np.float64)
        tenors = np.array(tenors, dtype=np.float64)
        volatilities = np.array(volatilities, dtype=np.float64)
        if volatilities.shape != (len(expiries), len(tenors)):
            raise ValueError(
                f"Volatility grid shape {volatilities.shape} does not match "
                f"{len(expiries)} expiries x {len(tenors)} tenors"
            )
        for axis in (expiries, tenors):
            if len(axis) == 0 or np.any(np.diff(axis) <= 0):
                raise ValueError("Expiries and tenors must be non-empty and strictly increasing")
        if np.any(volatilities < 0):
            raise ValueError("Volatilities must be non-negative")

        for arr in (expiries, tenors, volatilities):
            arr.setflags(write=False)

        self.name = name
        self.valuation_date = valuation_date
        self.expiries = expiries
        self.tenors = tenors
        self.volatilities = volatilities
        self.model = model
        self.shift = shift if model == VolatilityModel.BLACK else 0.0

    def relative_time(self, d: date) -> float:
        """Signed ACT/365F time from the valuation date to d."""
        return relative_time(self.valuation_date, d)

    @staticmethod
    def tenor(start: date, end: date) -> float:
        """Whole months between start and end (rounded), in years."""
        months = (end.year - start.year) * 12 + (end.month - start.month)
        day_gap = end.day - start.day
        if day_gap > 15:
            months += 1
        elif day_gap < -15:
            months -= 1
        return months / 12.0

    def volatility(self, expiry: float, tenor: float, strike: float = None, forward: float = None) -> float:
        """Bilinear interpolated volatility; strike and forward are ignored."""
        w_e, w_t = self._weights(expiry, tenor)
        return float(w_e @ self.volatilities @ w_t)

    def price(self, expiry, tenor, put_call: PutCall, strike, forward, volatility) -> float:
        if self.model == VolatilityModel.NORMAL:
            return bachelier_price(forward, strike, expiry, volatility, put_call)
        return black76_price(forward, strike, expiry, volatility, put_call, self.shift)

    def price_delta(self, expiry, tenor, put_call, strike, forward, volatility) -> float:
        return self._greeks(expiry, put_call, strike, forward, volatility)['delta']

    def price_gamma(self, expiry, tenor, put_call, strike, forward, volatility) -> float:
        return self._greeks(expiry, put_call, strike, forward, volatility)['gamma']

    def price_theta(self, expiry, tenor, put_call, strike, forward, volatility) -> float:
        return self._greeks(expiry, put_call, strike, forward, volatility)['theta']

    def price_vega(self, expiry, tenor, put_call, strike, forward, volatility) -> float:
        return self._greeks(expiry, put_call, strike, forward, volatility)['vega']

    def parameter_sensitivity(self, point: SwaptionSensitivity) -> VolatilityParameterSensitivity:
        """
        Distribute a vega point onto the grid nodes with the bilinear weights.
        """
        if point.volatilities_name != self.name:
            raise ValueError(f"Sensitivity is for surface '{point.volatilities_name}', not '{self.name}'")
        w_e, w_t = self._weights(point.expiry, point.tenor)
        return VolatilityParameterSensitivity(
            self.name,
            point.currency,
            tuple(self.expiries),
            tuple(self.tenors),
            np.outer(w_e, w_t) * point.sensitivity,
        )

    def with_volatilities(self, volatilities) -> "SwaptionVolatilities":
        return SwaptionVolatilities(
            self.name, self.valuation_date, self.expiries, self.tenors,
            volatilities, self.model, self.shift,
        )

    def _weights(self, expiry: float, tenor: float) -> Tuple[np.ndarray, np.ndarray]:
        return _axis_weights(self.expiries, expiry), _axis_weights(self.tenors, tenor)

    def _greeks(self, expiry, put_call, strike, forward, volatility):
        if self.model == VolatilityModel.NORMAL:
            return bachelier_greeks(forward, strike, expiry, volatility, put_call)
        return black76_greeks(forward, strike, expiry, volatility, put_call, self.shift)

    def __repr__(self) -> str:
        return (f"SwaptionVolatilities(name={self.name}, model={self.model.value}, "
                f"grid={self.volatilities.shape})")


__all__ = [
    "VolatilityModel",
    "SwaptionVolatilities",
]
