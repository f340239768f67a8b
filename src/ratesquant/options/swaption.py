"""
Swaption pricing engine.

A swaption is an option to enter into an interest rate swap.
- Payer swaption: right to pay fixed, receive floating (call on the rate)
- Receiver swaption: right to receive fixed, pay floating (put on the rate)

Pricing:
    V_swaption = |PVBP| * BaseModel(S, K, T, sigma) * (+1 long / -1 short)

where:
    - PVBP = present value of a basis point of the fixed leg
    - S = forward par rate of the underlying swap
    - K = coupon equivalent of the fixed leg
    - T = relative time to expiry on the volatility surface
    - sigma = implied volatility read from the surface

Physical settlement only; options past expiry are worth zero.
"""

from dataclasses import dataclass
import logging

from ..errors import DomainRangeError, InconsistentMarketDataError, InvalidProductError
from ..pricers.swaps import DiscountingSwapProductPricer
from ..products import CurrencyAmount, FixedRateSwapLeg, PayReceive, SettlementType, Swaption
from ..rates_provider import RatesProvider
from ..risk.points import PointSensitivities, SwaptionSensitivity
from ..vol.surface import SwaptionVolatilities
from .base_models import PutCall

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwaptionResult:
    """All swaption measures from one valuation."""
    present_value: CurrencyAmount
    delta: CurrencyAmount
    gamma: CurrencyAmount
    theta: CurrencyAmount
    forward: float
    strike: float
    expiry: float
    tenor: float
    pvbp: float
    implied_volatility: float
    curve_sensitivity: PointSensitivities
    volatility_sensitivity: SwaptionSensitivity


@dataclass(frozen=True)
class _Inputs:
    """Market inputs of a live swaption."""
    fixed_leg: FixedRateSwapLeg
    expiry: float
    tenor: float
    forward: float
    pvbp: float
    strike: float
    volatility: float
    put_call: PutCall
    sign: float


class VolatilitySwaptionPhysicalProductPricer:
    """
    Pricer for physically settled European swaptions on a volatility surface.

    Args:
        swap_pricer: Pricer for the underlying swap
    """

    def __init__(self, swap_pricer: DiscountingSwapProductPricer):
        self.swap_pricer = swap_pricer

    def present_value(
        self,
        swaption: Swaption,
        provider: RatesProvider,
        volatilities: SwaptionVolatilities,
    ) -> CurrencyAmount:
        """
        Present value of the swaption.

        Args:
            swaption: Physically settled swaption
            provider: Rates provider
            volatilities: Swaption volatility surface

        Returns:
            CurrencyAmount in the fixed leg currency
        """
        fixed_leg = self._validate(swaption, provider, volatilities)
        inputs = self._inputs(swaption, fixed_leg, provider, volatilities)
        if inputs is None:
            return CurrencyAmount.zero(fixed_leg.currency)
        price = volatilities.price(
            inputs.expiry, inputs.tenor, inputs.put_call, inputs.strike, inputs.forward, inputs.volatility
        )
        return CurrencyAmount(fixed_leg.currency, abs(inputs.pvbp) * price * inputs.sign)

    def implied_volatility(
        self,
        swaption: Swaption,
        provider: RatesProvider,
        volatilities: SwaptionVolatilities,
    ) -> float:
        """
        Volatility used for the swaption.

        Raises:
            DomainRangeError: If the swaption has expired
        """
        fixed_leg = self._validate(swaption, provider, volatilities)
        expiry = volatilities.relative_time(swaption.expiry_date)
        if expiry < 0:
            raise DomainRangeError(f"Swaption has expired: expiry {swaption.expiry_date}")
        tenor = volatilities.tenor(fixed_leg.start_date, fixed_leg.end_date)
        forward = self.swap_pricer.par_rate(swaption.underlying, provider)
        strike = self.swap_pricer.leg_pricer.coupon_equivalent(fixed_leg, provider)
        return volatilities.volatility(expiry, tenor, strike, forward)

    def present_value_delta(self, swaption, provider, volatilities) -> CurrencyAmount:
        """Sensitivity of the present value to the forward rate."""
        return self._greek(swaption, provider, volatilities, volatilities.price_delta)

    def present_value_gamma(self, swaption, provider, volatilities) -> CurrencyAmount:
        """Second order sensitivity of the present value to the forward rate."""
        return self._greek(swaption, provider, volatilities, volatilities.price_gamma)

    def present_value_theta(self, swaption, provider, volatilities) -> CurrencyAmount:
        """Time decay of the present value (per year, annuity held fixed)."""
        return self._greek(swaption, provider, volatilities, volatilities.price_theta)

    def present_value_sensitivity_sticky_strike(
        self,
        swaption: Swaption,
        provider: RatesProvider,
        volatilities: SwaptionVolatilities,
    ) -> PointSensitivities:
        """
        Curve sensitivity with the implied volatility held fixed.

        sign * price * signum(pvbp) * dPVBP + sign * |pvbp| * delta * dForward
        """
        fixed_leg = self._validate(swaption, provider, volatilities)
        inputs = self._inputs(swaption, fixed_leg, provider, volatilities)
        if inputs is None:
            return PointSensitivities.none()
        args = (inputs.expiry, inputs.tenor, inputs.put_call, inputs.strike, inputs.forward, inputs.volatility)
        price = volatilities.price(*args)
        delta = volatilities.price_delta(*args)
        pvbp_signum = 1.0 if inputs.pvbp >= 0 else -1.0

        pvbp_sens = self.swap_pricer.leg_pricer.pvbp_sensitivity(fixed_leg, provider)
        forward_sens = self.swap_pricer.par_rate_sensitivity(swaption.underlying, provider)
        return pvbp_sens.multiplied_by(price * inputs.sign * pvbp_signum).combined_with(
            forward_sens.multiplied_by(delta * abs(inputs.pvbp) * inputs.sign)
        )

    def present_value_sensitivity_volatility(
        self,
        swaption: Swaption,
        provider: RatesProvider,
        volatilities: SwaptionVolatilities,
    ) -> SwaptionSensitivity:
        """Sensitivity of the present value to the implied volatility."""
        fixed_leg = self._validate(swaption, provider, volatilities)
        expiry = volatilities.relative_time(swaption.expiry_date)
        tenor = volatilities.tenor(fixed_leg.start_date, fixed_leg.end_date)
        inputs = self._inputs(swaption, fixed_leg, provider, volatilities)
        if inputs is None:
            strike = fixed_leg.periods[0].rate
            return SwaptionSensitivity(volatilities.name, expiry, tenor, strike, 0.0, fixed_leg.currency, 0.0)
        vega = volatilities.price_vega(
            inputs.expiry, inputs.tenor, inputs.put_call, inputs.strike, inputs.forward, inputs.volatility
        )
        return SwaptionSensitivity(
            volatilities.name,
            inputs.expiry,
            inputs.tenor,
            inputs.strike,
            inputs.forward,
            fixed_leg.currency,
            abs(inputs.pvbp) * vega * inputs.sign,
        )

    def measures(
        self,
        swaption: Swaption,
        provider: RatesProvider,
        volatilities: SwaptionVolatilities,
    ) -> SwaptionResult:
        """
        All measures in one pass.

        For an expired swaption every amount is zero and the implied
        volatility is reported as NaN.
        """
        fixed_leg = self._validate(swaption, provider, volatilities)
        currency = fixed_leg.currency
        inputs = self._inputs(swaption, fixed_leg, provider, volatilities)
        vol_sens = self.present_value_sensitivity_volatility(swaption, provider, volatilities)
        if inputs is None:
            zero = CurrencyAmount.zero(currency)
            return SwaptionResult(
                zero, zero, zero, zero,
                forward=0.0,
                strike=vol_sens.strike,
                expiry=vol_sens.expiry,
                tenor=vol_sens.tenor,
                pvbp=0.0,
                implied_volatility=float("nan"),
                curve_sensitivity=PointSensitivities.none(),
                volatility_sensitivity=vol_sens,
            )

        args = (inputs.expiry, inputs.tenor, inputs.put_call, inputs.strike, inputs.forward, inputs.volatility)
        scale = abs(inputs.pvbp) * inputs.sign
        return SwaptionResult(
            present_value=CurrencyAmount(currency, scale * volatilities.price(*args)),
            delta=CurrencyAmount(currency, scale * volatilities.price_delta(*args)),
            gamma=CurrencyAmount(currency, scale * volatilities.price_gamma(*args)),
            theta=CurrencyAmount(currency, scale * volatilities.price_theta(*args)),
            forward=inputs.forward,
            strike=inputs.strike,
            expiry=inputs.expiry,
            tenor=inputs.tenor,
            pvbp=inputs.pvbp,
            implied_volatility=inputs.volatility,
            curve_sensitivity=self.present_value_sensitivity_sticky_strike(swaption, provider, volatilities),
            volatility_sensitivity=vol_sens,
        )

    def _greek(self, swaption, provider, volatilities, price_greek) -> CurrencyAmount:
        fixed_leg = self._validate(swaption, provider, volatilities)
        inputs = self._inputs(swaption, fixed_leg, provider, volatilities)
        if inputs is None:
            return CurrencyAmount.zero(fixed_leg.currency)
        greek = price_greek(
            inputs.expiry, inputs.tenor, inputs.put_call, inputs.strike, inputs.forward, inputs.volatility
        )
        return CurrencyAmount(fixed_leg.currency, abs(inputs.pvbp) * greek * inputs.sign)

    def _inputs(self, swaption, fixed_leg, provider, volatilities):
        """Forward, PVBP, strike and volatility; None once expired."""
        expiry = volatilities.relative_time(swaption.expiry_date)
        if expiry < 0:
            logger.debug("Swaption %s expired on %s, valued at zero", swaption.swaption_id, swaption.expiry_date)
            return None
        tenor = volatilities.tenor(fixed_leg.start_date, fixed_leg.end_date)
        forward = self.swap_pricer.par_rate(swaption.underlying, provider)
        pvbp = self.swap_pricer.leg_pricer.pvbp(fixed_leg, provider)
        strike = self.swap_pricer.leg_pricer.coupon_equivalent(fixed_leg, provider, pvbp)
        put_call = PutCall.PUT if fixed_leg.pay_receive is PayReceive.RECEIVE else PutCall.CALL
        return _Inputs(
            fixed_leg=fixed_leg,
            expiry=expiry,
            tenor=tenor,
            forward=forward,
            pvbp=pvbp,
            strike=strike,
            volatility=volatilities.volatility(expiry, tenor, strike, forward),
            put_call=put_call,
            sign=swaption.long_short.sign,
        )

    @staticmethod
    def _validate(swaption: Swaption, provider: RatesProvider, volatilities: SwaptionVolatilities) -> FixedRateSwapLeg:
        swap = swaption.underlying
        if swap.is_cross_currency():
            raise InvalidProductError(
                f"Underlying swap must have a single currency, found {swap.currencies}", swaption.swaption_id
            )
        try:
            fixed_leg = DiscountingSwapProductPricer.fixed_leg(swap)
        except InvalidProductError as exc:
            raise InvalidProductError(
                "Underlying swap must have exactly one fixed leg", swaption.swaption_id
            ) from exc
        if swaption.settlement is not SettlementType.PHYSICAL:
            raise InvalidProductError("Swaption must have physical settlement", swaption.swaption_id)
        if volatilities.valuation_date != provider.valuation_date:
            raise InconsistentMarketDataError(
                f"Volatility valuation date {volatilities.valuation_date} differs from "
                f"rates valuation date {provider.valuation_date}"
            )
        return fixed_leg


__all__ = [
    "SwaptionResult",
    "VolatilitySwaptionPhysicalProductPricer",
]
