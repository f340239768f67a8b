"""
Unit tests for the discounting swap pricers.
"""

from datetime import date

import numpy as np
import pytest

from ratesquant.conventions import STANDARD_SWAP_CONVENTIONS
from ratesquant.curves import create_flat_curve
from ratesquant.errors import InvalidProductError, MarketDataNotFoundError
from ratesquant.products import (
    BuySell,
    FixedRateSwapLeg,
    PayReceive,
    Swap,
    SwapLegType,
    build_fixed_float_swap,
)
from ratesquant.rates_provider import RatesProvider
from ratesquant.risk import BumpEngine, bucketed_pv01, parallel_pv01

from conftest import VALUATION_DATE

LIBOR_CONVENTION = STANDARD_SWAP_CONVENTIONS["USD-FIXED-6M-LIBOR-3M"]
OIS_CONVENTION = STANDARD_SWAP_CONVENTIONS["USD-FIXED-1Y-SOFR-OIS"]
NOTIONAL = 10_000_000


@pytest.fixture
def libor_swap():
    return build_fixed_float_swap(LIBOR_CONVENTION, VALUATION_DATE, "5Y", 0.036, NOTIONAL, BuySell.BUY)


def _assert_same_buckets(analytic, bumped, atol):
    assert len(bumped) > 0
    for s in bumped:
        a = analytic.get(s.curve_name, s.currency)
        assert a is not None, s.curve_name
        np.testing.assert_allclose(a.sensitivity, s.sensitivity, atol=atol)


class TestSwapConstruction:

    def test_legs(self, libor_swap):
        fixed = libor_swap.legs_of_type(SwapLegType.FIXED)[0]
        floating = libor_swap.legs_of_type(SwapLegType.FLOATING)[0]
        assert fixed.pay_receive == PayReceive.PAY
        assert floating.pay_receive == PayReceive.RECEIVE
        assert len(fixed.periods) == 10
        assert len(floating.periods) == 20
        assert fixed.start_date == date(2024, 1, 17)

    def test_floating_fixing_dates(self, libor_swap):
        floating = libor_swap.legs_of_type(SwapLegType.FLOATING)[0]
        assert floating.periods[0].fixing_date == VALUATION_DATE
        assert floating.periods[0].index_end_date == date(2024, 4, 17)

    def test_sell_receives_fixed(self):
        swap = build_fixed_float_swap(OIS_CONVENTION, VALUATION_DATE, "2Y", 0.03, buy_sell=BuySell.SELL)
        assert swap.legs[0].pay_receive == PayReceive.RECEIVE
        assert swap.legs[1].pay_receive == PayReceive.PAY

    def test_empty_leg_rejected(self):
        with pytest.raises(ValueError):
            FixedRateSwapLeg(PayReceive.PAY, "USD", ())


class TestSwapPricing:

    def test_par_swap_has_zero_pv(self, flat_provider, swap_pricer, libor_swap):
        par = swap_pricer.par_rate(libor_swap, flat_provider)
        at_par = build_fixed_float_swap(LIBOR_CONVENTION, VALUATION_DATE, "5Y", par, NOTIONAL, BuySell.BUY)
        assert abs(swap_pricer.present_value(at_par, flat_provider).amount) < 1e-6

    def test_par_rate_near_forward_level(self, flat_provider, swap_pricer, libor_swap):
        par = swap_pricer.par_rate(libor_swap, flat_provider)
        assert 0.033 < par < 0.038

    def test_payer_minus_receiver(self, flat_provider, swap_pricer):
        payer = build_fixed_float_swap(LIBOR_CONVENTION, VALUATION_DATE, "5Y", 0.03, NOTIONAL, BuySell.BUY)
        receiver = build_fixed_float_swap(LIBOR_CONVENTION, VALUATION_DATE, "5Y", 0.03, NOTIONAL, BuySell.SELL)
        pv_payer = swap_pricer.present_value(payer, flat_provider).amount
        pv_receiver = swap_pricer.present_value(receiver, flat_provider).amount
        assert abs(pv_payer + pv_receiver) < 1e-6

    def test_pv_linear_in_fixed_rate(self, flat_provider, swap_pricer):
        low = build_fixed_float_swap(LIBOR_CONVENTION, VALUATION_DATE, "5Y", 0.03, NOTIONAL)
        high = build_fixed_float_swap(LIBOR_CONVENTION, VALUATION_DATE, "5Y", 0.04, NOTIONAL)
        fixed = swap_pricer.fixed_leg(low)
        pvbp = swap_pricer.leg_pricer.pvbp(fixed, flat_provider)
        diff = swap_pricer.present_value(high, flat_provider).amount - swap_pricer.present_value(low, flat_provider).amount
        assert pvbp < 0
        assert abs(diff - 0.01 * pvbp) < 1e-6

    def test_coupon_equivalent(self, flat_provider, swap_pricer, libor_swap):
        fixed = swap_pricer.fixed_leg(libor_swap)
        assert abs(swap_pricer.leg_pricer.coupon_equivalent(fixed, flat_provider) - 0.036) < 1e-14

    def test_ois_par_rate_on_single_curve(self, flat_provider, swap_pricer):
        """A one period OIS at par pays the compounded curve rate."""
        conv = STANDARD_SWAP_CONVENTIONS["USD-FIXED-TERM-SOFR-OIS"]
        swap = build_fixed_float_swap(conv, VALUATION_DATE, "1Y", 0.0)
        fixed = swap_pricer.fixed_leg(swap)
        period = fixed.periods[0]
        curve = flat_provider.curve("USD-DSC")
        t1 = flat_provider.relative_time(period.start_date)
        t2 = flat_provider.relative_time(period.end_date)
        expected = (curve.discount_factor(t1) / curve.discount_factor(t2) - 1.0) / period.year_fraction
        assert abs(swap_pricer.par_rate(swap, flat_provider) - expected) < 1e-14

    def test_matured_swap_is_worthless(self, flat_provider, swap_pricer):
        old = build_fixed_float_swap(LIBOR_CONVENTION, date(2020, 1, 15), "2Y", 0.02, NOTIONAL)
        assert swap_pricer.present_value(old, flat_provider).amount == 0.0
        assert swap_pricer.present_value_sensitivity(old, flat_provider).is_empty()


class TestFixings:

    @pytest.fixture
    def seasoned_swap(self):
        """Traded before the valuation date; the current period fixed on 1 Dec 2023."""
        return build_fixed_float_swap(LIBOR_CONVENTION, date(2023, 12, 1), "2Y", 0.035, NOTIONAL)

    def _with_fixing(self, provider, rate, fixing_date=date(2023, 12, 1)):
        return RatesProvider(
            valuation_date=provider.valuation_date,
            curves=provider.curves,
            discount_curves=provider.discount_curves,
            index_curves=provider.index_curves,
            fixings={"USD-LIBOR-3M": {fixing_date: rate}},
        )

    def test_missing_past_fixing(self, flat_provider, swap_pricer, seasoned_swap):
        with pytest.raises(MarketDataNotFoundError, match="USD-LIBOR-3M"):
            swap_pricer.present_value(seasoned_swap, flat_provider)

    def test_past_fixing_used(self, flat_provider, swap_pricer, seasoned_swap):
        floating = seasoned_swap.legs_of_type(SwapLegType.FLOATING)[0]
        period = floating.periods[0]
        assert period.fixing_date == date(2023, 12, 1)

        low = swap_pricer.present_value(seasoned_swap, self._with_fixing(flat_provider, 0.05)).amount
        high = swap_pricer.present_value(seasoned_swap, self._with_fixing(flat_provider, 0.06)).amount
        df = flat_provider.discount_factor("USD", period.payment_date)
        assert abs((high - low) - 0.01 * NOTIONAL * period.year_fraction * df) < 1e-6

    def test_fixed_period_has_no_forward_sensitivity(self, flat_provider, swap_pricer, seasoned_swap):
        provider = self._with_fixing(flat_provider, 0.05)
        points = swap_pricer.present_value_sensitivity(seasoned_swap, provider)
        floating = seasoned_swap.legs_of_type(SwapLegType.FLOATING)[0]
        first_start = provider.relative_time(floating.periods[0].index_start_date)
        assert first_start < 0
        assert all(key.time > 0 for key in points)

    def test_fixing_on_valuation_date(self, flat_provider, swap_pricer, libor_swap):
        """Today's fixing is used when published, the forward otherwise."""
        forecast = swap_pricer.present_value(libor_swap, flat_provider).amount
        floating = libor_swap.legs_of_type(SwapLegType.FLOATING)[0]
        period = floating.periods[0]
        forward = swap_pricer.leg_pricer.forecast_rate(floating, period, flat_provider)

        provider = self._with_fixing(flat_provider, forward + 0.01, VALUATION_DATE)
        fixed = swap_pricer.present_value(libor_swap, provider).amount
        df = flat_provider.discount_factor("USD", period.payment_date)
        assert abs((fixed - forecast) - 0.01 * NOTIONAL * period.year_fraction * df) < 1e-6


class TestSwapSensitivities:

    def test_parallel_pv01_matches_bump(self, flat_provider, swap_pricer, libor_swap):
        points = swap_pricer.present_value_sensitivity(libor_swap, flat_provider)
        engine = BumpEngine(flat_provider)
        bumped = engine.parallel_sensitivity(
            lambda p: swap_pricer.present_value(libor_swap, p).amount, bump_size=0.01
        )
        assert abs(parallel_pv01(points, flat_provider) - bumped) < 1e-5

    def test_bucketed_pv01_matches_bump(self, flat_provider, swap_pricer, libor_swap):
        points = swap_pricer.present_value_sensitivity(libor_swap, flat_provider)
        engine = BumpEngine(flat_provider)
        bumped = engine.node_sensitivities(lambda p: swap_pricer.present_value(libor_swap, p).amount, 0.01)
        _assert_same_buckets(bucketed_pv01(points, flat_provider), bumped, atol=1e-5)

    def test_payer_swap_gains_when_rates_rise(self, flat_provider, swap_pricer, libor_swap):
        points = swap_pricer.present_value_sensitivity(libor_swap, flat_provider)
        assert parallel_pv01(points, flat_provider) > 0

    def test_calibrated_market(self, market_provider, swap_pricer, libor_swap):
        points = swap_pricer.present_value_sensitivity(libor_swap, market_provider)
        engine = BumpEngine(market_provider)
        bumped = engine.node_sensitivities(lambda p: swap_pricer.present_value(libor_swap, p).amount, 0.01)
        _assert_same_buckets(bucketed_pv01(points, market_provider), bumped, atol=1e-5)

    def test_par_rate_sensitivity(self, market_provider, swap_pricer, libor_swap):
        points = swap_pricer.par_rate_sensitivity(libor_swap, market_provider)
        engine = BumpEngine(market_provider)
        bumped = engine.node_sensitivities(lambda p: swap_pricer.par_rate(libor_swap, p), 0.01)
        _assert_same_buckets(bucketed_pv01(points, market_provider), bumped, atol=1e-10)

    def test_pvbp_sensitivity(self, flat_provider, swap_pricer, libor_swap):
        fixed = swap_pricer.fixed_leg(libor_swap)
        leg_pricer = swap_pricer.leg_pricer
        points = leg_pricer.pvbp_sensitivity(fixed, flat_provider)
        engine = BumpEngine(flat_provider)
        bumped = engine.node_sensitivities(lambda p: leg_pricer.pvbp(fixed, p), 0.01)
        _assert_same_buckets(bucketed_pv01(points, flat_provider), bumped, atol=1e-5)


class TestSwapValidation:

    def test_cross_currency_rejected(self, flat_provider, swap_pricer, libor_swap):
        usd_fixed = swap_pricer.fixed_leg(libor_swap)
        eur_float = build_fixed_float_swap(
            STANDARD_SWAP_CONVENTIONS["EUR-FIXED-1Y-EURIBOR-6M"], VALUATION_DATE, "5Y", 0.03
        ).legs_of_type(SwapLegType.FLOATING)[0]
        swap = Swap((usd_fixed, eur_float), swap_id="XCCY-1")
        assert swap.is_cross_currency()
        with pytest.raises(InvalidProductError, match="XCCY-1"):
            swap_pricer.present_value(swap, flat_provider)

    def test_par_rate_needs_one_fixed_leg(self, flat_provider, swap_pricer, libor_swap):
        floating = libor_swap.legs_of_type(SwapLegType.FLOATING)[0]
        basis = Swap((floating, floating))
        with pytest.raises(InvalidProductError):
            swap_pricer.par_rate(basis, flat_provider)
        assert abs(swap_pricer.present_value(basis, flat_provider).amount) > 0

    def test_missing_index_curve(self, swap_pricer):
        provider = RatesProvider(
            valuation_date=VALUATION_DATE,
            curves={"USD-DSC": create_flat_curve("USD-DSC", 0.03)},
            discount_curves={"USD": "USD-DSC"},
        )
        swap = build_fixed_float_swap(LIBOR_CONVENTION, VALUATION_DATE, "2Y", 0.03)
        with pytest.raises(MarketDataNotFoundError):
            swap_pricer.present_value(swap, provider)
