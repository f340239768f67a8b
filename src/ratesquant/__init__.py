"""
RatesQuant: Multi-curve calibration, swap and swaption analytics

A modular library for:
- Calibrating discount and index curves from deposits, FRAs and swaps
- Pricing fixed-float swaps and physically settled European swaptions
- Computing zero rate point sensitivities, bucketed PV01 and
  market quote sensitivities through the calibration Jacobian
"""

__version__ = "0.2.0"

# Core modules
from .config import CalibrationSettings, DEFAULT_CALIBRATION_SETTINGS, ONE_BP
from .errors import (
    RatesQuantError,
    InvalidProductError,
    InconsistentMarketDataError,
    MarketDataNotFoundError,
    CalibrationNonConvergenceError,
    DomainRangeError,
)
from .conventions import (
    DayCount,
    BusinessDayConvention,
    RateIndex,
    FixedFloatSwapConvention,
    ReferenceData,
    year_fraction,
)
from .dates import DateUtils, generate_schedule, relative_time

# Curves (imported before the provider and pricers that depend on Curve)
from .curves import (
    Curve,
    ValueType,
    create_flat_curve,
    create_interpolator,
    create_extrapolator,
    CurveDefinition,
    CurveGroupEntry,
    CurveGroupDefinition,
    TermDepositNode,
    FraNode,
    FixedFloatSwapNode,
    CalibrationInfo,
    MultiCurveCalibrator,
)

# Products and market data
from .products import (
    PayReceive,
    BuySell,
    LongShort,
    SettlementType,
    CurrencyAmount,
    FixedRateSwapLeg,
    FloatingRateSwapLeg,
    Swap,
    Swaption,
    build_fixed_float_swap,
)
from .rates_provider import RatesProvider

# Pricers
from .pricers import DiscountingSwapLegPricer, DiscountingSwapProductPricer

# Risk
from .risk import (
    ZeroRateSensitivityKey,
    PointSensitivities,
    SwaptionSensitivity,
    CurveParameterSensitivities,
    bucketed_pv01,
    parallel_pv01,
    market_quote_sensitivities,
    BumpEngine,
)

# Options (before vol: the swaption pricer imports the surface)
from .options import PutCall, SwaptionResult, VolatilitySwaptionPhysicalProductPricer

# Volatility
from .vol import VolatilityModel, SwaptionVolatilities

__all__ = [
    # Version
    "__version__",
    # Config and errors
    "CalibrationSettings",
    "DEFAULT_CALIBRATION_SETTINGS",
    "ONE_BP",
    "RatesQuantError",
    "InvalidProductError",
    "InconsistentMarketDataError",
    "MarketDataNotFoundError",
    "CalibrationNonConvergenceError",
    "DomainRangeError",
    # Conventions
    "DayCount",
    "BusinessDayConvention",
    "RateIndex",
    "FixedFloatSwapConvention",
    "ReferenceData",
    "year_fraction",
    # Dates
    "DateUtils",
    "generate_schedule",
    "relative_time",
    # Curves
    "Curve",
    "ValueType",
    "create_flat_curve",
    "create_interpolator",
    "create_extrapolator",
    "CurveDefinition",
    "CurveGroupEntry",
    "CurveGroupDefinition",
    "TermDepositNode",
    "FraNode",
    "FixedFloatSwapNode",
    "CalibrationInfo",
    "MultiCurveCalibrator",
    # Products
    "PayReceive",
    "BuySell",
    "LongShort",
    "SettlementType",
    "CurrencyAmount",
    "FixedRateSwapLeg",
    "FloatingRateSwapLeg",
    "Swap",
    "Swaption",
    "build_fixed_float_swap",
    "RatesProvider",
    # Pricers
    "DiscountingSwapLegPricer",
    "DiscountingSwapProductPricer",
    # Risk
    "ZeroRateSensitivityKey",
    "PointSensitivities",
    "SwaptionSensitivity",
    "CurveParameterSensitivities",
    "bucketed_pv01",
    "parallel_pv01",
    "market_quote_sensitivities",
    "BumpEngine",
    # Options and volatility
    "PutCall",
    "SwaptionResult",
    "VolatilitySwaptionPhysicalProductPricer",
    "VolatilityModel",
    "SwaptionVolatilities",
]
