"""
Shared market fixtures: a flat two-curve USD market, calibrated USD OIS
and LIBOR 3M curve groups, and a flat normal swaption surface.
"""

from datetime import date

import pytest

from ratesquant.config import CalibrationSettings
from ratesquant.conventions import ReferenceData
from ratesquant.curves import (
    CurveDefinition,
    CurveGroupDefinition,
    CurveGroupEntry,
    FixedFloatSwapNode,
    FraNode,
    MultiCurveCalibrator,
    TermDepositNode,
    create_flat_curve,
)
from ratesquant.pricers import DiscountingSwapLegPricer, DiscountingSwapProductPricer
from ratesquant.rates_provider import RatesProvider
from ratesquant.vol import SwaptionVolatilities

VALUATION_DATE = date(2024, 1, 15)

OIS_QUOTES = {
    "USD-DEP-1M": 0.0530,
    "USD-DEP-3M": 0.0535,
    "USD-OIS-1Y": 0.0505,
    "USD-OIS-2Y": 0.0465,
    "USD-OIS-5Y": 0.0415,
    "USD-OIS-10Y": 0.0400,
}

LIBOR_QUOTES = {
    "USD-L3M-FIX": 0.0560,
    "USD-L3M-3X6": 0.0550,
    "USD-L3M-2Y": 0.0490,
    "USD-L3M-5Y": 0.0440,
    "USD-L3M-10Y": 0.0425,
}


@pytest.fixture(scope="session")
def valuation_date():
    return VALUATION_DATE


@pytest.fixture(scope="session")
def reference_data():
    return ReferenceData.standard()


@pytest.fixture(scope="session")
def swap_pricer():
    return DiscountingSwapProductPricer(DiscountingSwapLegPricer())


@pytest.fixture(scope="session")
def flat_provider():
    """Flat 3% discounting (also SOFR) and flat 3.5% LIBOR 3M forwarding."""
    return RatesProvider(
        valuation_date=VALUATION_DATE,
        curves={
            "USD-DSC": create_flat_curve("USD-DSC", 0.03),
            "USD-L3M": create_flat_curve("USD-L3M", 0.035),
        },
        discount_curves={"USD": "USD-DSC"},
        index_curves={"USD-SOFR": "USD-DSC", "USD-LIBOR-3M": "USD-L3M"},
    )


@pytest.fixture(scope="session")
def ois_group():
    nodes = (
        TermDepositNode("1M", "USD-DEP-1M", "USD", "1M"),
        TermDepositNode("3M", "USD-DEP-3M", "USD", "3M"),
        FixedFloatSwapNode("1Y", "USD-OIS-1Y", "USD-FIXED-TERM-SOFR-OIS", "1Y"),
        FixedFloatSwapNode("2Y", "USD-OIS-2Y", "USD-FIXED-1Y-SOFR-OIS", "2Y"),
        FixedFloatSwapNode("5Y", "USD-OIS-5Y", "USD-FIXED-1Y-SOFR-OIS", "5Y"),
        FixedFloatSwapNode("10Y", "USD-OIS-10Y", "USD-FIXED-1Y-SOFR-OIS", "10Y"),
    )
    return CurveGroupDefinition(
        name="USD-OIS-GROUP",
        entries=(CurveGroupEntry("USD-OIS", discount_currencies=("USD",), index_names=("USD-SOFR",)),),
        curve_definitions=(CurveDefinition("USD-OIS", "USD", nodes),),
    )


@pytest.fixture(scope="session")
def libor_group():
    nodes = (
        FraNode("3M", "USD-L3M-FIX", "USD-LIBOR-3M", "0M"),
        FraNode("6M", "USD-L3M-3X6", "USD-LIBOR-3M", "3M"),
        FixedFloatSwapNode("2Y", "USD-L3M-2Y", "USD-FIXED-6M-LIBOR-3M", "2Y"),
        FixedFloatSwapNode("5Y", "USD-L3M-5Y", "USD-FIXED-6M-LIBOR-3M", "5Y"),
        FixedFloatSwapNode("10Y", "USD-L3M-10Y", "USD-FIXED-6M-LIBOR-3M", "10Y"),
    )
    return CurveGroupDefinition(
        name="USD-LIBOR-GROUP",
        entries=(CurveGroupEntry("USD-LIBOR-3M", index_names=("USD-LIBOR-3M",)),),
        curve_definitions=(CurveDefinition(
            "USD-LIBOR-3M", "USD", nodes, interpolator="log_natural_cubic_monotone",
        ),),
    )


@pytest.fixture(scope="session")
def calibrator(swap_pricer):
    return MultiCurveCalibrator(CalibrationSettings(), swap_pricer)


@pytest.fixture(scope="session")
def ois_provider(calibrator, ois_group, reference_data):
    return calibrator.calibrate(ois_group, VALUATION_DATE, OIS_QUOTES, reference_data)


@pytest.fixture(scope="session")
def market_provider(calibrator, libor_group, reference_data, ois_provider):
    """OIS curve held fixed while the LIBOR curve is calibrated."""
    return calibrator.calibrate(
        libor_group, VALUATION_DATE, LIBOR_QUOTES, reference_data, known=ois_provider
    )


@pytest.fixture(scope="session")
def normal_vols():
    return SwaptionVolatilities(
        "USD-SWAPTION-NORMAL",
        VALUATION_DATE,
        expiries=[0.5, 1.0, 2.0, 5.0],
        tenors=[1.0, 2.0, 5.0, 10.0],
        volatilities=[[0.0100] * 4] * 4,
    )
