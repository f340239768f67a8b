"""
Unit tests for multi-curve calibration.
"""

from dataclasses import dataclass
from datetime import timedelta
import logging

import numpy as np
import pytest

from ratesquant.config import CalibrationSettings
from ratesquant.curves import (
    CalibrationInstrument,
    CurveDefinition,
    CurveGroupDefinition,
    CurveGroupEntry,
    CurveNode,
    FixedFloatSwapNode,
    MultiCurveCalibrator,
    TermDepositNode,
)
from ratesquant.errors import (
    CalibrationNonConvergenceError,
    InconsistentMarketDataError,
    MarketDataNotFoundError,
)
from ratesquant.risk import PointSensitivities, ZeroRateSensitivityKey, market_quote_sensitivities

from conftest import LIBOR_QUOTES, OIS_QUOTES, VALUATION_DATE


@dataclass(frozen=True)
class _PinnedInstrument(CalibrationInstrument):
    """Prices only while its curve node keeps the starting zero rate."""
    label: str
    quote_id: str
    curve_name: str
    time: float
    start: float

    def present_value(self, provider):
        if provider.curve(self.curve_name).zero_rate(self.time) != self.start:
            raise ValueError("curve moved off its starting node")
        return 1.0

    def present_value_sensitivity(self, provider):
        return PointSensitivities.of(ZeroRateSensitivityKey(self.curve_name, "USD", self.time), 1.0)

    def quote_sensitivity(self, provider):
        return -1.0


@dataclass(frozen=True)
class _PinnedNode(CurveNode):
    label: str
    quote_id: str
    days: int

    def requirements(self, reference_data):
        return (("discount", "USD"),)

    def node_date(self, valuation_date, reference_data):
        return valuation_date + timedelta(days=self.days)

    def instrument(self, valuation_date, quote, reference_data, swap_pricer=None, notional=1.0):
        return _PinnedInstrument(
            self.label, self.quote_id, "USD-PINNED", self.node_time(valuation_date, reference_data), quote
        )


def _instruments(group, quotes, reference_data, swap_pricer):
    return [
        node.instrument(VALUATION_DATE, quotes[node.quote_id], reference_data, swap_pricer)
        for definition in group.ordered_definitions
        for node in definition.nodes
    ]


class TestCurveGroupDefinition:
    """Tests for group configuration checks."""

    def test_needs_entry_per_curve(self):
        nodes = (
            TermDepositNode("1M", "Q1", "USD", "1M"),
            TermDepositNode("3M", "Q2", "USD", "3M"),
        )
        with pytest.raises(ValueError):
            CurveGroupDefinition("G", (), (CurveDefinition("C", "USD", nodes),))

    def test_curve_needs_two_nodes(self):
        with pytest.raises(ValueError):
            CurveDefinition("C", "USD", (TermDepositNode("1M", "Q1", "USD", "1M"),))

    def test_duplicate_labels(self):
        nodes = (
            TermDepositNode("1M", "Q1", "USD", "1M"),
            TermDepositNode("1M", "Q2", "USD", "3M"),
        )
        with pytest.raises(ValueError):
            CurveDefinition("C", "USD", nodes)

    def test_unknown_interpolator(self):
        nodes = (
            TermDepositNode("1M", "Q1", "USD", "1M"),
            TermDepositNode("3M", "Q2", "USD", "3M"),
        )
        with pytest.raises(ValueError):
            CurveDefinition("C", "USD", nodes, interpolator="akima")

    def test_roles(self, ois_group):
        assert ois_group.discount_curve_name("USD") == "USD-OIS"
        assert ois_group.index_curve_name("USD-SOFR") == "USD-OIS"
        assert ois_group.index_curve_name("USD-LIBOR-3M") is None
        assert ois_group.parameter_count == 6


class TestOisCalibration:
    """Single curve OIS calibration."""

    def test_instruments_reprice(self, ois_provider, ois_group, reference_data, swap_pricer):
        """Every calibration instrument prices to zero."""
        for inst in _instruments(ois_group, OIS_QUOTES, reference_data, swap_pricer):
            assert abs(inst.present_value(ois_provider)) < 1e-9, inst.label

    def test_par_rates_match_quotes(self, ois_provider, ois_group, reference_data, swap_pricer):
        for node in ois_group.curve_definitions[0].nodes:
            if isinstance(node, FixedFloatSwapNode):
                inst = node.instrument(VALUATION_DATE, OIS_QUOTES[node.quote_id], reference_data, swap_pricer)
                par = swap_pricer.par_rate(inst.swap, ois_provider)
                assert abs(par - OIS_QUOTES[node.quote_id]) < 1e-9

    def test_curve_roles(self, ois_provider):
        assert ois_provider.discount_curve("USD").name == "USD-OIS"
        assert ois_provider.index_curve("USD-SOFR").name == "USD-OIS"
        assert ois_provider.curve("USD-OIS").labels == ("1M", "3M", "1Y", "2Y", "5Y", "10Y")

    def test_calibration_info(self, ois_provider):
        info = ois_provider.calibration_info["USD-OIS-GROUP"]
        assert info.curve_names == ("USD-OIS",)
        assert info.parameter_counts == (6,)
        assert info.quote_ids == tuple(OIS_QUOTES)
        assert info.jacobian.shape == (6, 6)
        assert info.transition_matrix.shape == (6, 6)
        assert info.residual_norm < 1e-9
        assert 1 <= info.iterations <= 100

    def test_idempotent(self, calibrator, ois_group, reference_data, ois_provider):
        again = calibrator.calibrate(ois_group, VALUATION_DATE, OIS_QUOTES, reference_data)
        np.testing.assert_allclose(
            again.curve("USD-OIS").parameters, ois_provider.curve("USD-OIS").parameters, atol=1e-9
        )

    def test_zero_rates_near_quotes(self, ois_provider):
        """Continuously compounded zero rates stay close to the quoted rates."""
        params = ois_provider.curve("USD-OIS").parameters
        np.testing.assert_allclose(params, list(OIS_QUOTES.values()), atol=2e-3)

    def test_logs_convergence(self, calibrator, ois_group, reference_data, caplog):
        with caplog.at_level(logging.INFO, logger="ratesquant.curves.calibration"):
            calibrator.calibrate(ois_group, VALUATION_DATE, OIS_QUOTES, reference_data)
        assert any("USD-OIS-GROUP" in r.getMessage() for r in caplog.records)


class TestCalibrationErrors:

    def test_missing_quote(self, calibrator, ois_group, reference_data):
        quotes = dict(OIS_QUOTES)
        del quotes["USD-OIS-5Y"]
        with pytest.raises(MarketDataNotFoundError, match="USD-OIS-5Y"):
            calibrator.calibrate(ois_group, VALUATION_DATE, quotes, reference_data)

    def test_missing_discount_curve(self, calibrator, libor_group, reference_data):
        with pytest.raises(MarketDataNotFoundError):
            calibrator.calibrate(libor_group, VALUATION_DATE, LIBOR_QUOTES, reference_data)

    def test_known_provider_date_mismatch(self, calibrator, libor_group, reference_data, ois_provider):
        with pytest.raises(InconsistentMarketDataError):
            calibrator.calibrate(
                libor_group, VALUATION_DATE.replace(day=16), LIBOR_QUOTES, reference_data, known=ois_provider
            )

    def test_non_convergence(self, swap_pricer, ois_group, reference_data):
        settings = CalibrationSettings(tolerance=1e-300, max_iterations=1)
        calibrator = MultiCurveCalibrator(settings, swap_pricer)
        with pytest.raises(CalibrationNonConvergenceError) as excinfo:
            calibrator.calibrate(ois_group, VALUATION_DATE, OIS_QUOTES, reference_data)
        assert excinfo.value.group_name == "USD-OIS-GROUP"
        assert excinfo.value.iterations == 1

    def test_no_admissible_step_reports_iteration(self, swap_pricer, reference_data):
        group = CurveGroupDefinition(
            name="PINNED-GROUP",
            entries=(CurveGroupEntry("USD-PINNED", discount_currencies=("USD",)),),
            curve_definitions=(CurveDefinition(
                "USD-PINNED", "USD", (_PinnedNode("1Y", "Q-1Y", 365), _PinnedNode("2Y", "Q-2Y", 730)),
            ),),
        )
        calibrator = MultiCurveCalibrator(CalibrationSettings(max_step_halvings=2), swap_pricer)
        with pytest.raises(CalibrationNonConvergenceError, match="no admissible Newton step") as excinfo:
            calibrator.calibrate(group, VALUATION_DATE, {"Q-1Y": 0.04, "Q-2Y": 0.045}, reference_data)
        assert excinfo.value.iterations == 1
        assert excinfo.value.residual_norm == pytest.approx(np.sqrt(2.0))

    def test_invalid_settings(self):
        with pytest.raises(ValueError):
            CalibrationSettings(tolerance=0.0)
        with pytest.raises(ValueError):
            CalibrationSettings(max_iterations=0)


class TestMultiCurveCalibration:
    """LIBOR forwarding curve on top of a known OIS discounting curve."""

    def test_instruments_reprice(self, market_provider, libor_group, reference_data, swap_pricer):
        for inst in _instruments(libor_group, LIBOR_QUOTES, reference_data, swap_pricer):
            assert abs(inst.present_value(market_provider)) < 1e-9, inst.label

    def test_known_curve_unchanged(self, market_provider, ois_provider):
        assert market_provider.curve("USD-OIS") == ois_provider.curve("USD-OIS")
        assert market_provider.discount_curve("USD").name == "USD-OIS"
        assert market_provider.index_curve("USD-LIBOR-3M").name == "USD-LIBOR-3M"

    def test_both_groups_recorded(self, market_provider):
        assert set(market_provider.calibration_info) == {"USD-OIS-GROUP", "USD-LIBOR-GROUP"}

    def test_ois_instruments_still_reprice(self, market_provider, ois_group, reference_data, swap_pricer):
        for inst in _instruments(ois_group, OIS_QUOTES, reference_data, swap_pricer):
            assert abs(inst.present_value(market_provider)) < 1e-9


class TestMarketQuoteSensitivities:
    """
    A calibration instrument priced at its own quote has a market quote
    sensitivity of minus its quote sensitivity on its own quote only.
    """

    def test_ois_instruments(self, ois_provider, ois_group, reference_data, swap_pricer):
        instruments = _instruments(ois_group, OIS_QUOTES, reference_data, swap_pricer)
        for i, inst in enumerate(instruments):
            points = inst.present_value_sensitivity(ois_provider)
            mq = market_quote_sensitivities(ois_provider.parameter_sensitivity(points), ois_provider)
            sens = mq.get("USD-OIS", "USD")
            assert sens.labels == tuple(OIS_QUOTES)
            expected = np.zeros(len(instruments))
            expected[i] = -inst.quote_sensitivity(ois_provider)
            np.testing.assert_allclose(sens.sensitivity, expected, atol=1e-8)

    def test_libor_instruments(self, market_provider, libor_group, reference_data, swap_pricer):
        instruments = _instruments(libor_group, LIBOR_QUOTES, reference_data, swap_pricer)
        for i, inst in enumerate(instruments):
            points = inst.present_value_sensitivity(market_provider)
            mq = market_quote_sensitivities(market_provider.parameter_sensitivity(points), market_provider)
            sens = mq.get("USD-LIBOR-3M", "USD")
            expected = np.zeros(len(instruments))
            expected[i] = -inst.quote_sensitivity(market_provider)
            np.testing.assert_allclose(sens.sensitivity, expected, atol=1e-8)

    def test_jacobian_matches_bumped_curves(self, ois_provider, ois_group, reference_data, swap_pricer):
        """Analytic Jacobian agrees with central differences of the node bumps."""
        info = ois_provider.calibration_info["USD-OIS-GROUP"]
        curve = ois_provider.curve("USD-OIS")
        instruments = _instruments(ois_group, OIS_QUOTES, reference_data, swap_pricer)
        h = 1e-6
        for j in range(curve.parameter_count):
            up = ois_provider.with_curves({"USD-OIS": curve.bump_node(j, h / 1e-4)})
            down = ois_provider.with_curves({"USD-OIS": curve.bump_node(j, -h / 1e-4)})
            column = [(inst.present_value(up) - inst.present_value(down)) / (2 * h) for inst in instruments]
            np.testing.assert_allclose(info.jacobian[:, j], column, atol=1e-6)
