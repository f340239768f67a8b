"""
Curves package - yield curve construction and manipulation.

Provides:
- Curve: Immutable interpolated curve with parameter sensitivities
- Interpolators and extrapolators selected by name
- Curve group definitions and calibration nodes
- MultiCurveCalibrator: Newton calibration of curve groups to market quotes
"""

from .interpolation import (
    CurveInterpolator,
    BoundCurveInterpolator,
    LinearInterpolator,
    NaturalCubicSplineInterpolator,
    LogNaturalCubicMonotoneInterpolator,
    create_interpolator,
)
from .extrapolation import (
    CurveExtrapolator,
    FlatExtrapolator,
    LinearExtrapolator,
    create_extrapolator,
)
from .curve import Curve, ValueType, create_flat_curve
from .definitions import CurveDefinition, CurveGroupEntry, CurveGroupDefinition
from .instruments import (
    CalibrationInstrument,
    TermDepositInstrument,
    FraInstrument,
    SwapInstrument,
    CurveNode,
    TermDepositNode,
    FraNode,
    FixedFloatSwapNode,
)
from .calibration import CalibrationInfo, MultiCurveCalibrator

__all__ = [
    "CurveInterpolator",
    "BoundCurveInterpolator",
    "LinearInterpolator",
    "NaturalCubicSplineInterpolator",
    "LogNaturalCubicMonotoneInterpolator",
    "create_interpolator",
    "CurveExtrapolator",
    "FlatExtrapolator",
    "LinearExtrapolator",
    "create_extrapolator",
    "Curve",
    "ValueType",
    "create_flat_curve",
    "CurveDefinition",
    "CurveGroupEntry",
    "CurveGroupDefinition",
    "CalibrationInstrument",
    "TermDepositInstrument",
    "FraInstrument",
    "SwapInstrument",
    "CurveNode",
    "TermDepositNode",
    "FraNode",
    "FixedFloatSwapNode",
    "CalibrationInfo",
    "MultiCurveCalibrator",
]
