"""
Options module - Rates option pricing.

Provides:
- Bachelier (normal) and Black'76 models
- Physically settled European swaption pricing and risk
"""

from .base_models import (
    PutCall,
    bachelier_price,
    bachelier_greeks,
    black76_price,
    black76_greeks,
)
from .swaption import SwaptionResult, VolatilitySwaptionPhysicalProductPricer

__all__ = [
    "PutCall",
    "bachelier_price",
    "bachelier_greeks",
    "black76_price",
    "black76_greeks",
    "SwaptionResult",
    "VolatilitySwaptionPhysicalProductPricer",
]
