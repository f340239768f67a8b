"""
Pricers package - instrument pricing.

Provides discounting pricers for fixed-float interest rate swaps,
leg by leg and for the whole product.
"""

from .swaps import (
    DiscountingSwapLegPricer,
    DiscountingSwapProductPricer,
)

__all__ = [
    "DiscountingSwapLegPricer",
    "DiscountingSwapProductPricer",
]
