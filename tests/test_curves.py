"""
Unit tests for the Curve class.
"""

import numpy as np
import pytest

from ratesquant.curves import Curve, ValueType, create_flat_curve


@pytest.fixture
def zero_curve():
    times = [0.25, 0.5, 1.0, 2.0, 5.0, 10.0]
    rates = [0.050, 0.051, 0.049, 0.046, 0.042, 0.041]
    return Curve("USD-TEST", "USD", times, rates, labels=["3M", "6M", "1Y", "2Y", "5Y", "10Y"])


@pytest.fixture
def df_curve():
    times = np.array([0.25, 0.5, 1.0, 2.0, 5.0, 10.0])
    rates = np.array([0.050, 0.051, 0.049, 0.046, 0.042, 0.041])
    return Curve(
        "USD-DF", "USD", times, np.exp(-rates * times),
        value_type=ValueType.DISCOUNT_FACTOR,
        interpolator="log_natural_cubic_monotone",
    )


def _bumped(curve, func, t, h=1e-7):
    sens = np.zeros(curve.parameter_count)
    for i in range(curve.parameter_count):
        up = curve.parameters.copy()
        down = curve.parameters.copy()
        up[i] += h
        down[i] -= h
        sens[i] = (func(curve.with_parameters(up), t) - func(curve.with_parameters(down), t)) / (2 * h)
    return sens


class TestZeroRateCurve:

    def test_discount_factor(self, zero_curve):
        assert zero_curve.discount_factor(0.0) == 1.0
        assert zero_curve.discount_factor(-0.5) == 1.0
        assert abs(zero_curve.discount_factor(2.0) - np.exp(-0.046 * 2.0)) < 1e-14

    def test_zero_rate_at_nodes(self, zero_curve):
        assert zero_curve.zero_rate(5.0) == 0.042

    def test_forward_rate(self, zero_curve):
        p1 = zero_curve.discount_factor(1.0)
        p2 = zero_curve.discount_factor(2.0)
        assert abs(zero_curve.forward_rate(1.0, 2.0) - (p1 / p2 - 1.0)) < 1e-14
        with pytest.raises(ValueError):
            zero_curve.forward_rate(2.0, 1.0)

    def test_instantaneous_forward_flat(self):
        curve = create_flat_curve("FLAT", 0.04)
        for t in [0.5, 3.0, 40.0]:
            assert abs(curve.instantaneous_forward(t) - 0.04) < 1e-14

    def test_instantaneous_forward_matches_log_df_slope(self, zero_curve):
        h = 1e-6
        t = 3.3
        numeric = -(np.log(zero_curve.discount_factor(t + h)) - np.log(zero_curve.discount_factor(t - h))) / (2 * h)
        assert abs(zero_curve.instantaneous_forward(t) - numeric) < 1e-8

    def test_zero_rate_sensitivity_at_node(self, zero_curve):
        np.testing.assert_array_equal(zero_curve.zero_rate_parameter_sensitivity(1.0), [0, 0, 1, 0, 0, 0])

    def test_discount_factor_sensitivity(self, zero_curve):
        for t in [0.1, 0.7, 3.0, 12.0]:
            np.testing.assert_allclose(
                zero_curve.discount_factor_parameter_sensitivity(t),
                _bumped(zero_curve, Curve.discount_factor, t),
                atol=1e-8,
            )
        np.testing.assert_array_equal(zero_curve.discount_factor_parameter_sensitivity(0.0), np.zeros(6))


class TestDiscountFactorCurve:

    def test_round_trip_zero_rates(self, df_curve):
        assert abs(df_curve.zero_rate(2.0) - 0.046) < 1e-14
        assert abs(df_curve.discount_factor(5.0) - np.exp(-0.21)) < 1e-14

    def test_zero_rate_sensitivity(self, df_curve):
        for t in [0.3, 1.5, 7.0]:
            np.testing.assert_allclose(
                df_curve.zero_rate_parameter_sensitivity(t),
                _bumped(df_curve, Curve.zero_rate, t),
                atol=1e-6,
            )

    def test_discount_factor_sensitivity(self, df_curve):
        np.testing.assert_allclose(
            df_curve.discount_factor_parameter_sensitivity(1.5),
            _bumped(df_curve, Curve.discount_factor, 1.5),
            atol=1e-8,
        )

    def test_instantaneous_forward(self, df_curve):
        h = 1e-6
        t = 3.3
        numeric = -(np.log(df_curve.discount_factor(t + h)) - np.log(df_curve.discount_factor(t - h))) / (2 * h)
        assert abs(df_curve.instantaneous_forward(t) - numeric) < 1e-7


class TestCurveImmutability:

    def test_bump_parallel(self, zero_curve):
        bumped = zero_curve.bump_parallel(10)
        np.testing.assert_allclose(bumped.parameters - zero_curve.parameters, 0.001, atol=1e-15)
        assert zero_curve.zero_rate(1.0) == 0.049
        assert bumped.labels == zero_curve.labels

    def test_bump_node(self, zero_curve):
        bumped = zero_curve.bump_node(2, 1)
        diff = bumped.parameters - zero_curve.parameters
        np.testing.assert_allclose(diff, [0, 0, 1e-4, 0, 0, 0], atol=1e-15)
        with pytest.raises(IndexError):
            zero_curve.bump_node(6, 1)

    def test_parameters_read_only(self, zero_curve):
        with pytest.raises(ValueError):
            zero_curve.parameters[0] = 0.0

    def test_with_parameters_shape(self, zero_curve):
        with pytest.raises(ValueError):
            zero_curve.with_parameters([0.01, 0.02])

    def test_equality(self, zero_curve):
        same = zero_curve.with_parameters(zero_curve.parameters)
        assert same == zero_curve
        assert zero_curve.bump_parallel(1) != zero_curve

    def test_default_labels(self):
        curve = Curve("C", "EUR", [0.5, 1.0], [0.01, 0.02])
        assert curve.labels == ("0.5000", "1.0000")
        with pytest.raises(ValueError):
            Curve("C", "EUR", [0.5, 1.0], [0.01, 0.02], labels=["6M"])
