"""
Volatility module - swaption volatility surfaces.

Provides a grid of volatilities by expiry and underlying tenor, with
bilinear interpolation and parameter sensitivities.
"""

from .surface import VolatilityModel, SwaptionVolatilities

__all__ = [
    "VolatilityModel",
    "SwaptionVolatilities",
]
