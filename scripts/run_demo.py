#!/usr/bin/env python
"""
RatesQuant Demo Script

This script demonstrates the full workflow of the library:
1. Calibrate a USD OIS curve, then a LIBOR 3M curve on top of it
2. Price a par swap and a 1Yx5Y swaption
3. Calculate risk (bucketed PV01, market quote sensitivities, vega)
4. Cross-check the analytic curve risk with bump-and-reprice
5. Export sensitivity records

Usage:
    python run_demo.py [--output-dir OUTPUT_DIR] [--verbose]
"""

import argparse
import logging
from datetime import date
from pathlib import Path

import numpy as np
import pandas as pd

from ratesquant import (
    BumpEngine,
    BuySell,
    CalibrationSettings,
    CurveDefinition,
    CurveGroupDefinition,
    CurveGroupEntry,
    DiscountingSwapLegPricer,
    DiscountingSwapProductPricer,
    FixedFloatSwapNode,
    FraNode,
    MultiCurveCalibrator,
    ReferenceData,
    Swaption,
    SwaptionVolatilities,
    TermDepositNode,
    VolatilitySwaptionPhysicalProductPricer,
    bucketed_pv01,
    build_fixed_float_swap,
    market_quote_sensitivities,
    parallel_pv01,
)

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


def banner(title: str) -> None:
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def ois_group() -> CurveGroupDefinition:
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


def libor_group() -> CurveGroupDefinition:
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


def calibrate(reference_data, swap_pricer):
    """Calibrate the OIS group, then the LIBOR group against it."""
    banner("Calibrating Curves")
    calibrator = MultiCurveCalibrator(CalibrationSettings(), swap_pricer)

    ois = calibrator.calibrate(ois_group(), VALUATION_DATE, OIS_QUOTES, reference_data)
    provider = calibrator.calibrate(
        libor_group(), VALUATION_DATE, LIBOR_QUOTES, reference_data, known=ois
    )

    for group, info in provider.calibration_info.items():
        print(f"  {group:<16s} {info.iterations} iterations, residual {info.residual_norm:.2e}")

    for name in ("USD-OIS", "USD-LIBOR-3M"):
        curve = provider.curve(name)
        print(f"\n  {name}")
        for label, t, z in zip(curve.labels, curve.times, curve.parameters):
            print(f"    {label:>4s} ({t:>6.3f}Y)  zero {z * 100:.4f}%  DF {np.exp(-z * t):.6f}")
    return provider


def price_swap(provider, reference_data, swap_pricer):
    banner("Pricing 5Y LIBOR Swap")
    convention = reference_data.swap_convention("USD-FIXED-6M-LIBOR-3M")
    template = build_fixed_float_swap(convention, VALUATION_DATE, "5Y", 0.0, 10_000_000)
    par = swap_pricer.par_rate(template, provider)
    swap = build_fixed_float_swap(convention, VALUATION_DATE, "5Y", par + 0.0010, 10_000_000, BuySell.SELL)

    pv = swap_pricer.present_value(swap, provider)
    points = swap_pricer.present_value_sensitivity(swap, provider)
    print(f"  Par rate:        {par * 100:.4f}%")
    print(f"  Receive fixed at par + 10bp, PV: {pv.amount:>14,.2f} {pv.currency}")
    print(f"  PV01 (parallel): {parallel_pv01(points, provider):>14,.2f}")
    return swap, points


def price_swaption(provider, reference_data, swap_pricer, vols):
    banner("Pricing 1Yx5Y Payer Swaption")
    convention = reference_data.swap_convention("USD-FIXED-6M-LIBOR-3M")
    expiry = date(2025, 1, 15)
    template = build_fixed_float_swap(convention, expiry, "5Y", 0.0, 5_000_000)
    atm = swap_pricer.par_rate(template, provider)
    underlying = build_fixed_float_swap(convention, expiry, "5Y", atm, 5_000_000, BuySell.BUY)
    swaption = Swaption(underlying, expiry, swaption_id="SWPT_1Y5Y")

    pricer = VolatilitySwaptionPhysicalProductPricer(swap_pricer)
    result = pricer.measures(swaption, provider, vols)
    print(f"  Forward:    {result.forward * 100:.4f}%   Strike: {result.strike * 100:.4f}%")
    print(f"  Expiry:     {result.expiry:.4f}Y        Tenor:  {result.tenor:.1f}Y")
    print(f"  Normal vol: {result.implied_volatility * 1e4:.1f}bp")
    print(f"  PV:         {result.present_value.amount:>14,.2f}")
    print(f"  Delta:      {result.delta.amount:>14,.2f}")
    print(f"  Gamma:      {result.gamma.amount:>14,.2f}")
    print(f"  Theta:      {result.theta.amount:>14,.2f}")
    print(f"  Vega (1bp): {result.volatility_sensitivity.sensitivity * 1e-4:>14,.2f}")
    return swaption, pricer, result


def report_risk(provider, swaption, pricer, vols, result):
    banner("Swaption Curve Risk")
    pv01 = bucketed_pv01(result.curve_sensitivity, provider)
    quotes = market_quote_sensitivities(pv01, provider)
    print(quotes.to_frame().to_string(index=False))

    banner("Bump-and-Reprice Cross-Check")
    engine = BumpEngine(provider)
    bumped = engine.node_sensitivities(
        lambda p: pricer.present_value(swaption, p, vols).amount, bump_size=0.01
    )
    for s in bumped:
        analytic = pv01.get(s.curve_name).sensitivity
        print(f"  {s.curve_name:<14s} max |analytic - bumped| = {np.max(np.abs(analytic - s.sensitivity)):.2e}")

    banner("Swaption Vega Grid")
    grid = vols.parameter_sensitivity(result.volatility_sensitivity)
    frame = pd.DataFrame(grid.sensitivity * 1e-4, index=grid.expiries, columns=grid.tenors)
    print(frame.round(2).to_string())
    return pv01, quotes, grid


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="RatesQuant Demo")
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory for CSV sensitivity exports",
    )
    parser.add_argument("--verbose", action="store_true", help="Show calibration iterations")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    print("=" * 60)
    print("RATESQUANT DEMO")
    print(f"Valuation Date: {VALUATION_DATE}")
    print("=" * 60)

    reference_data = ReferenceData.standard()
    swap_pricer = DiscountingSwapProductPricer(DiscountingSwapLegPricer())
    vols = SwaptionVolatilities(
        "USD-SWAPTION-NORMAL",
        VALUATION_DATE,
        expiries=[0.25, 0.5, 1.0, 2.0, 5.0],
        tenors=[1.0, 2.0, 5.0, 10.0],
        volatilities=[
            [0.0125, 0.0122, 0.0115, 0.0108],
            [0.0124, 0.0121, 0.0114, 0.0107],
            [0.0121, 0.0118, 0.0112, 0.0105],
            [0.0116, 0.0113, 0.0108, 0.0102],
            [0.0108, 0.0106, 0.0102, 0.0097],
        ],
    )

    provider = calibrate(reference_data, swap_pricer)
    price_swap(provider, reference_data, swap_pricer)
    swaption, pricer, result = price_swaption(provider, reference_data, swap_pricer, vols)
    pv01, quotes, grid = report_risk(provider, swaption, pricer, vols, result)

    if args.output_dir:
        output_dir = Path(args.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        pv01.to_frame().to_csv(output_dir / "swaption_pv01.csv", index=False)
        quotes.to_frame().to_csv(output_dir / "swaption_quote_pv01.csv", index=False)
        pd.DataFrame([r.__dict__ for r in grid.records()]).to_csv(output_dir / "swaption_vega.csv", index=False)
        print(f"\nExported 3 CSV files to {output_dir}")

    print("\n" + "=" * 60)
    print("DEMO COMPLETE")
    print("=" * 60)


if __name__ == "__main__":
    main()
