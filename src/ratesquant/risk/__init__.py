"""
Risk package - sensitivity calculations and risk metrics.

Provides:
- Point sensitivities (zero rate and swaption volatility)
- Curve and volatility parameter sensitivities with reporting records
- Bucketed and parallel PV01, market quote sensitivities
- Bump-and-reprice framework for cross-checks
"""

from .points import (
    ZeroRateSensitivityKey,
    PointSensitivities,
    SwaptionSensitivity,
)
from .sensitivities import (
    SensitivityRecord,
    CurveParameterSensitivity,
    CurveParameterSensitivities,
    VolatilityParameterSensitivity,
    aggregate_points,
    bucketed_pv01,
    parallel_pv01,
    market_quote_sensitivities,
)
from .bumping import (
    BumpEngine,
    BumpResult,
)

__all__ = [
    "ZeroRateSensitivityKey",
    "PointSensitivities",
    "SwaptionSensitivity",
    "SensitivityRecord",
    "CurveParameterSensitivity",
    "CurveParameterSensitivities",
    "VolatilityParameterSensitivity",
    "aggregate_points",
    "bucketed_pv01",
    "parallel_pv01",
    "market_quote_sensitivities",
    "BumpEngine",
    "BumpResult",
]
