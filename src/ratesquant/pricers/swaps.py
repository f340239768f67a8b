"""
Interest rate swap pricing engine.

Prices swaps leg by leg against a RatesProvider:
- Discounting on the discount curve of the leg currency
- Floating rates projected from the index curve, or read from fixings

Pricing formulas (leg sign s = +1 receive, -1 pay):
    PV_fixed = s * sum(N * K * tau_i * P(pay_i))
    PV_float = s * sum(N * (F_i + spread) * tau_i * P(pay_i))
    PVBP     = s * sum(N * tau_i * P(pay_i))
    par rate = -PV(other legs) / PVBP(fixed leg)

Periods paid before the valuation date are ignored.
"""

from typing import Optional

from ..errors import InvalidProductError, MarketDataNotFoundError
from ..products import (
    CurrencyAmount,
    FixedRateSwapLeg,
    FloatingRatePeriod,
    FloatingRateSwapLeg,
    Swap,
    SwapLeg,
    SwapLegType,
)
from ..rates_provider import RatesProvider
from ..risk.points import PointSensitivities


class DiscountingSwapLegPricer:
    """
    Pricer for a single swap leg.

    Supports fixed and floating legs; dispatch is on the leg variant.
    """

    def present_value(self, leg: SwapLeg, provider: RatesProvider) -> CurrencyAmount:
        """
        Present value of the leg in its currency.

        Args:
            leg: Fixed or floating leg
            provider: Rates provider

        Returns:
            CurrencyAmount (signed by pay/receive)
        """
        sign = leg.pay_receive.sign
        pv = 0.0
        for period in self._live_periods(leg, provider):
            df = provider.discount_factor(leg.currency, period.payment_date)
            pv += period.notional * self._rate(leg, period, provider) * period.year_fraction * df
        return CurrencyAmount(leg.currency, sign * pv)

    def present_value_sensitivity(self, leg: SwapLeg, provider: RatesProvider) -> PointSensitivities:
        """Zero rate point sensitivity of the leg present value."""
        sign = leg.pay_receive.sign
        parts = []
        for period in self._live_periods(leg, provider):
            scale = sign * period.notional * period.year_fraction
            df_sens = provider.discount_factor_point_sensitivity(leg.currency, period.payment_date)
            parts.append(df_sens.multiplied_by(scale * self._rate(leg, period, provider)))
            if isinstance(leg, FloatingRateSwapLeg) and self._is_forecast(leg, period, provider):
                df = provider.discount_factor(leg.currency, period.payment_date)
                fwd_sens = provider.forward_rate_point_sensitivity(
                    leg.index, period.index_start_date, period.index_end_date, period.index_year_fraction
                )
                parts.append(fwd_sens.multiplied_by(scale * df))
        return PointSensitivities.sum(parts)

    def pvbp(self, leg: SwapLeg, provider: RatesProvider) -> float:
        """
        Present value of one unit of rate paid on every period of the leg.

        Signed by pay/receive.
        """
        sign = leg.pay_receive.sign
        total = 0.0
        for period in self._live_periods(leg, provider):
            total += period.notional * period.year_fraction * provider.discount_factor(leg.currency, period.payment_date)
        return sign * total

    def pvbp_sensitivity(self, leg: SwapLeg, provider: RatesProvider) -> PointSensitivities:
        sign = leg.pay_receive.sign
        return PointSensitivities.sum(
            provider.discount_factor_point_sensitivity(leg.currency, p.payment_date)
            .multiplied_by(sign * p.notional * p.year_fraction)
            for p in self._live_periods(leg, provider)
        )

    def coupon_equivalent(self, leg: FixedRateSwapLeg, provider: RatesProvider, pvbp: Optional[float] = None) -> float:
        """
        Single fixed rate giving the same present value as the leg.

        Args:
            leg: Fixed leg
            provider: Rates provider
            pvbp: Leg PVBP if already computed
        """
        if not isinstance(leg, FixedRateSwapLeg):
            raise InvalidProductError("Coupon equivalent requires a fixed leg")
        if pvbp is None:
            pvbp = self.pvbp(leg, provider)
        return self.present_value(leg, provider).amount / pvbp

    def forecast_rate(self, leg: FloatingRateSwapLeg, period: FloatingRatePeriod, provider: RatesProvider) -> float:
        """Index rate of a floating period: fixing if known, otherwise forward."""
        fixing_date = period.fixing_date
        if fixing_date < provider.valuation_date:
            fixing = provider.fixing(leg.index, fixing_date)
            if fixing is None:
                raise MarketDataNotFoundError(f"Missing fixing for {leg.index.name} on {fixing_date}")
            return fixing
        if fixing_date == provider.valuation_date:
            fixing = provider.fixing(leg.index, fixing_date)
            if fixing is not None:
                return fixing
        return provider.forward_rate(
            leg.index, period.index_start_date, period.index_end_date, period.index_year_fraction
        )

    @staticmethod
    def _is_forecast(leg: FloatingRateSwapLeg, period: FloatingRatePeriod, provider: RatesProvider) -> bool:
        fixing_date = period.fixing_date
        if fixing_date < provider.valuation_date:
            return False
        if fixing_date == provider.valuation_date:
            return provider.fixing(leg.index, fixing_date) is None
        return True

    def _rate(self, leg: SwapLeg, period, provider: RatesProvider) -> float:
        if isinstance(leg, FixedRateSwapLeg):
            return period.rate
        if isinstance(leg, FloatingRateSwapLeg):
            return self.forecast_rate(leg, period, provider) + period.spread
        raise InvalidProductError(f"Unsupported swap leg type: {type(leg).__name__}")

    @staticmethod
    def _live_periods(leg: SwapLeg, provider: RatesProvider):
        return [p for p in leg.periods if p.payment_date >= provider.valuation_date]


class DiscountingSwapProductPricer:
    """
    Pricer for swaps made of any number of legs in one currency.

    Args:
        leg_pricer: Pricer used for each leg
    """

    def __init__(self, leg_pricer: DiscountingSwapLegPricer):
        self.leg_pricer = leg_pricer

    def present_value(self, swap: Swap, provider: RatesProvider) -> CurrencyAmount:
        """
        Present value of the swap, the sum of its legs.

        Raises:
            InvalidProductError: If the legs are in different currencies
        """
        currency = self._currency(swap)
        total = CurrencyAmount.zero(currency)
        for leg in swap.legs:
            total = total + self.leg_pricer.present_value(leg, provider)
        return total

    def present_value_sensitivity(self, swap: Swap, provider: RatesProvider) -> PointSensitivities:
        self._currency(swap)
        return PointSensitivities.sum(
            self.leg_pricer.present_value_sensitivity(leg, provider) for leg in swap.legs
        )

    def par_rate(self, swap: Swap, provider: RatesProvider) -> float:
        """
        Fixed rate making the swap present value zero.

        par = -PV(other legs) / PVBP(fixed leg)
        """
        fixed_leg = self.fixed_leg(swap)
        other_pv = self._other_legs_pv(swap, fixed_leg, provider)
        return -other_pv / self.leg_pricer.pvbp(fixed_leg, provider)

    def par_rate_sensitivity(self, swap: Swap, provider: RatesProvider) -> PointSensitivities:
        fixed_leg = self.fixed_leg(swap)
        other_pv = self._other_legs_pv(swap, fixed_leg, provider)
        other_sens = PointSensitivities.sum(
            self.leg_pricer.present_value_sensitivity(leg, provider)
            for leg in swap.legs if leg is not fixed_leg
        )
        pvbp = self.leg_pricer.pvbp(fixed_leg, provider)
        pvbp_sens = self.leg_pricer.pvbp_sensitivity(fixed_leg, provider)
        return other_sens.multiplied_by(-1.0 / pvbp).combined_with(
            pvbp_sens.multiplied_by(other_pv / (pvbp * pvbp))
        )

    @staticmethod
    def fixed_leg(swap: Swap) -> FixedRateSwapLeg:
        """The single fixed leg of the swap."""
        fixed = swap.legs_of_type(SwapLegType.FIXED)
        if len(fixed) != 1:
            raise InvalidProductError(
                f"Swap must have exactly one fixed leg, found {len(fixed)}", swap.swap_id
            )
        return fixed[0]

    def _other_legs_pv(self, swap: Swap, fixed_leg: SwapLeg, provider: RatesProvider) -> float:
        return sum(
            self.leg_pricer.present_value(leg, provider).amount
            for leg in swap.legs if leg is not fixed_leg
        )

    @staticmethod
    def _currency(swap: Swap) -> str:
        if swap.is_cross_currency():
            raise InvalidProductError(
                f"Swap legs must share one currency, found {swap.currencies}", swap.swap_id
            )
        return swap.legs[0].currency


__all__ = [
    "DiscountingSwapLegPricer",
    "DiscountingSwapProductPricer",
]
