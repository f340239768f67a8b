"""
Tests for point sensitivities and their aggregation into curve parameter risk.
"""

import numpy as np
import pandas as pd
import pytest

from ratesquant.risk import (
    CurveParameterSensitivities,
    CurveParameterSensitivity,
    PointSensitivities,
    SensitivityRecord,
    VolatilityParameterSensitivity,
    ZeroRateSensitivityKey,
    aggregate_points,
    bucketed_pv01,
    market_quote_sensitivities,
    parallel_pv01,
)

K1 = ZeroRateSensitivityKey("USD-DSC", "USD", 1.0)
K2 = ZeroRateSensitivityKey("USD-DSC", "USD", 2.0)
K3 = ZeroRateSensitivityKey("USD-L3M", "USD", 0.5)


class TestPointSensitivities:

    def test_identity(self):
        a = PointSensitivities({K1: 3.0, K2: -1.0})
        assert a.combined_with(PointSensitivities.none()) == a
        assert PointSensitivities.none().combined_with(a) == a
        assert PointSensitivities.none().is_empty()

    def test_combine_sums_equal_keys(self):
        a = PointSensitivities({K1: 3.0, K2: -1.0})
        b = PointSensitivities({K1: 2.0, K3: 4.0})
        combined = a + b
        assert combined.get(K1) == 5.0
        assert combined.get(K2) == -1.0
        assert combined.get(K3) == 4.0
        assert len(combined) == 3

    def test_commutative_and_associative(self):
        a = PointSensitivities.of(K1, 1.5)
        b = PointSensitivities.of(K2, 2.5)
        c = PointSensitivities({K1: -0.5, K3: 1.0})
        assert a + b == b + a
        assert (a + b) + c == a + (b + c)

    def test_builtin_sum(self):
        items = [PointSensitivities.of(K1, 1.0), PointSensitivities.of(K1, 2.0)]
        assert sum(items).get(K1) == 3.0

    def test_scaling(self):
        a = PointSensitivities({K1: 3.0, K2: -1.0})
        assert (2 * a).get(K1) == 6.0
        assert (-a).get(K2) == 1.0
        assert a.total() == 2.0

    def test_immutable(self):
        a = PointSensitivities.of(K1, 1.0)
        with pytest.raises(TypeError):
            a.amounts[K2] = 1.0
        a.multiplied_by(3.0)
        assert a.get(K1) == 1.0

    def test_missing_key(self):
        assert PointSensitivities.of(K1, 1.0).get(K2) == 0.0

    def test_normalized_and_frame(self):
        a = PointSensitivities({K3: 1.0, K2: 2.0, K1: 3.0})
        assert [k for k, _ in a.normalized()] == [K1, K2, K3]
        frame = a.to_frame()
        assert list(frame.columns) == ["curve", "currency", "time", "amount"]
        assert list(frame["time"]) == [1.0, 2.0, 0.5]


class TestCurveParameterSensitivities:

    @pytest.fixture
    def dsc(self):
        return CurveParameterSensitivity("USD-DSC", "USD", ("1Y", "2Y"), [10.0, 20.0])

    def test_label_count_checked(self):
        with pytest.raises(ValueError):
            CurveParameterSensitivity("USD-DSC", "USD", ("1Y",), [1.0, 2.0])

    def test_merge_same_curve(self, dsc):
        merged = CurveParameterSensitivities([dsc, dsc.multiplied_by(0.5)])
        assert len(merged) == 1
        np.testing.assert_allclose(merged.get("USD-DSC").sensitivity, [15.0, 30.0])

    def test_plus_different_curves_rejected(self, dsc):
        other = CurveParameterSensitivity("USD-L3M", "USD", ("1Y", "2Y"), [1.0, 1.0])
        with pytest.raises(ValueError):
            dsc.plus(other)

    def test_get_and_total(self, dsc):
        eur = CurveParameterSensitivity("EUR-DSC", "EUR", ("5Y",), [7.0])
        sens = CurveParameterSensitivities([dsc, eur])
        assert sens.get("EUR-DSC", "EUR").total() == 7.0
        assert sens.get("GBP-DSC") is None
        assert sens.total() == 37.0
        assert sens.total("USD") == 30.0

    def test_get_ambiguous_currency(self, dsc):
        eur = CurveParameterSensitivity("USD-DSC", "EUR", ("1Y", "2Y"), [1.0, 1.0])
        with pytest.raises(ValueError):
            CurveParameterSensitivities([dsc, eur]).get("USD-DSC")

    def test_records_ordered(self, dsc):
        l3m = CurveParameterSensitivity("USD-L3M", "USD", ("3M",), [5.0])
        records = CurveParameterSensitivities([l3m, dsc]).records()
        assert records[0] == SensitivityRecord("USD-DSC", "1Y", "USD", 10.0)
        assert [r.identifier for r in records] == ["USD-DSC", "USD-DSC", "USD-L3M"]

    def test_to_frame(self, dsc):
        frame = CurveParameterSensitivities([dsc]).to_frame()
        assert isinstance(frame, pd.DataFrame)
        assert list(frame["bucket"]) == ["1Y", "2Y"]
        assert frame["amount"].sum() == 30.0

    def test_combined_and_scaled(self, dsc):
        sens = CurveParameterSensitivities([dsc])
        doubled = sens + sens
        assert doubled == sens.multiplied_by(2.0)

    def test_read_only_arrays(self, dsc):
        with pytest.raises(ValueError):
            dsc.sensitivity[0] = 1.0


class TestVolatilityParameterSensitivity:

    def test_records_and_total(self):
        sens = VolatilityParameterSensitivity("VOLS", "USD", (1.0, 5.0), (5.0, 10.0), [[1.0, 2.0], [3.0, 4.0]])
        assert sens.total() == 10.0
        assert [r.bucket for r in sens.records()] == ["1x5", "1x10", "5x5", "5x10"]

    def test_shape_checked(self):
        with pytest.raises(ValueError):
            VolatilityParameterSensitivity("VOLS", "USD", (1.0,), (5.0, 10.0), [[1.0]])


class TestAggregation:

    def test_aggregate_points(self):
        items = [PointSensitivities.of(K1, 1.0), PointSensitivities.of(K2, 2.0), PointSensitivities.of(K1, 3.0)]
        total = aggregate_points(items)
        assert total.get(K1) == 4.0
        assert total == aggregate_points(reversed(items))

    def test_aggregate_with_mapping(self):
        trades = [1.0, 2.0, 3.0]
        total = aggregate_points(trades, lambda n: PointSensitivities.of(K1, n))
        assert total.get(K1) == 6.0

    def test_aggregate_nothing(self):
        assert aggregate_points([]).is_empty()

    def test_bucketed_pv01(self, flat_provider):
        # Knot at one year on the linear flat curve: all weight on that node
        points = PointSensitivities.of(K1, -1e6)
        pv01 = bucketed_pv01(points, flat_provider).get("USD-DSC")
        assert pv01.labels[2] == "1.0000"
        np.testing.assert_allclose(pv01.sensitivity[2], -100.0)
        assert parallel_pv01(points, flat_provider) == pytest.approx(-100.0)
        assert parallel_pv01(points, flat_provider, "EUR") == 0.0

    def test_parameter_sensitivity_between_nodes(self, flat_provider):
        points = PointSensitivities.of(ZeroRateSensitivityKey("USD-DSC", "USD", 1.5), 1.0)
        sens = flat_provider.parameter_sensitivity(points).get("USD-DSC").sensitivity
        np.testing.assert_allclose(sens[2:4], [0.5, 0.5])
        assert sens.sum() == pytest.approx(1.0)

    def test_market_quote_without_calibration(self, flat_provider):
        sens = flat_provider.parameter_sensitivity(PointSensitivities.of(K1, 1.0))
        assert len(market_quote_sensitivities(sens, flat_provider)) == 0
