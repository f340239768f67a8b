"""
Curve calibration nodes and instruments.

Defines the instruments used to calibrate yield curves:
- TermDeposit: Money market deposit on the discount curve
- FRA: Forward rate agreement on an index curve
- FixedFloatSwap: OIS or IBOR swap built from a market convention

A node is configuration (tenor, quote id, convention). Resolved against a
valuation date and its market quote it becomes an instrument, which knows
how to:
1. Price itself (present value, zero when the quote is matched)
2. Give its zero rate point sensitivity
3. Give the derivative of its value with respect to its quote
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

import numpy as np

from ..conventions import (
    BusinessDayConvention,
    DayCount,
    ReferenceData,
    RateIndex,
    add_business_days,
    adjust_business_day,
    year_fraction,
)
from ..dates import DateUtils, relative_time
from ..pricers.swaps import DiscountingSwapProductPricer
from ..products import BuySell, Swap, build_fixed_float_swap
from ..rates_provider import RatesProvider
from ..risk.points import PointSensitivities
from .curve import ValueType

# Curve roles a node depends on: ("discount", currency) or ("index", index name)
Requirement = Tuple[str, str]


class CalibrationInstrument(ABC):
    """Resolved instrument; present value is zero at the market quote."""

    label: str
    quote_id: str

    @abstractmethod
    def present_value(self, provider: RatesProvider) -> float:
        pass

    @abstractmethod
    def present_value_sensitivity(self, provider: RatesProvider) -> PointSensitivities:
        pass

    @abstractmethod
    def quote_sensitivity(self, provider: RatesProvider) -> float:
        """Derivative of the present value with respect to the market quote."""


@dataclass(frozen=True)
class TermDepositInstrument(CalibrationInstrument):
    """
    Deposit of N at start repaid with interest at end.

    PV = N * (-P(start) + (1 + r * tau) * P(end))
    """
    label: str
    quote_id: str
    currency: str
    start_date: date
    end_date: date
    year_fraction: float
    rate: float
    notional: float = 1.0

    def present_value(self, provider):
        p_start = provider.discount_factor(self.currency, self.start_date)
        p_end = provider.discount_factor(self.currency, self.end_date)
        return self.notional * (-p_start + (1.0 + self.rate * self.year_fraction) * p_end)

    def present_value_sensitivity(self, provider):
        start = provider.discount_factor_point_sensitivity(self.currency, self.start_date)
        end = provider.discount_factor_point_sensitivity(self.currency, self.end_date)
        return start.multiplied_by(-self.notional).combined_with(
            end.multiplied_by(self.notional * (1.0 + self.rate * self.year_fraction))
        )

    def quote_sensitivity(self, provider):
        return self.notional * self.year_fraction * provider.discount_factor(self.currency, self.end_date)


@dataclass(frozen=True)
class FraInstrument(CalibrationInstrument):
    """
    Forward rate agreement receiving the index rate against the quoted rate.

    PV = N * tau * (F - K) * P(end)
    """
    label: str
    quote_id: str
    currency: str
    index: RateIndex
    fixing_date: date
    start_date: date
    end_date: date
    year_fraction: float
    rate: float
    notional: float = 1.0

    def present_value(self, provider):
        forward = provider.forward_rate(self.index, self.start_date, self.end_date, self.year_fraction)
        df = provider.discount_factor(self.currency, self.end_date)
        return self.notional * self.year_fraction * (forward - self.rate) * df

    def present_value_sensitivity(self, provider):
        forward = provider.forward_rate(self.index, self.start_date, self.end_date, self.year_fraction)
        df = provider.discount_factor(self.currency, self.end_date)
        scale = self.notional * self.year_fraction
        forward_sens = provider.forward_rate_point_sensitivity(
            self.index, self.start_date, self.end_date, self.year_fraction
        )
        df_sens = provider.discount_factor_point_sensitivity(self.currency, self.end_date)
        return forward_sens.multiplied_by(scale * df).combined_with(
            df_sens.multiplied_by(scale * (forward - self.rate))
        )

    def quote_sensitivity(self, provider):
        df = provider.discount_factor(self.currency, self.end_date)
        return -self.notional * self.year_fraction * df


@dataclass(frozen=True)
class SwapInstrument(CalibrationInstrument):
    """
    Swap paying the quoted fixed rate; priced by the injected swap pricer.
    """
    label: str
    quote_id: str
    swap: Swap
    swap_pricer: DiscountingSwapProductPricer

    def present_value(self, provider):
        return self.swap_pricer.present_value(self.swap, provider).amount

    def present_value_sensitivity(self, provider):
        return self.swap_pricer.present_value_sensitivity(self.swap, provider)

    def quote_sensitivity(self, provider):
        fixed_leg = self.swap_pricer.fixed_leg(self.swap)
        return self.swap_pricer.leg_pricer.pvbp(fixed_leg, provider)


class CurveNode(ABC):
    """
    Abstract base for curve calibration nodes.

    Attributes:
        label: Node label, used as sensitivity bucket (e.g. "2Y")
        quote_id: Key of the market quote in the quote mapping
    """

    label: str
    quote_id: str

    @abstractmethod
    def requirements(self, reference_data: ReferenceData) -> Tuple[Requirement, ...]:
        """Curve roles the instrument reads."""

    @abstractmethod
    def node_date(self, valuation_date: date, reference_data: ReferenceData) -> date:
        """Date of the curve node the instrument calibrates."""

    @abstractmethod
    def instrument(
        self,
        valuation_date: date,
        quote: float,
        reference_data: ReferenceData,
        swap_pricer: Optional[DiscountingSwapProductPricer] = None,
        notional: float = 1.0,
    ) -> CalibrationInstrument:
        pass

    def node_time(self, valuation_date: date, reference_data: ReferenceData) -> float:
        return relative_time(valuation_date, self.node_date(valuation_date, reference_data))

    def initial_guess(
        self,
        valuation_date: date,
        quote: float,
        value_type: ValueType,
        reference_data: ReferenceData,
    ) -> float:
        """
        Starting curve parameter: the quote as a zero rate, or its
        discount factor for discount factor curves.
        """
        if value_type == ValueType.ZERO_RATE:
            return quote
        return float(np.exp(-quote * self.node_time(valuation_date, reference_data)))


@dataclass(frozen=True)
class TermDepositNode(CurveNode):
    """
    Deposit from spot to spot plus tenor.

    Attributes:
        currency: Deposit currency (calibrates its discount curve)
        tenor: Deposit tenor ("1M")
        day_count: Accrual day count
        spot_lag: Business days from valuation to start
    """
    label: str
    quote_id: str
    currency: str
    tenor: str
    day_count: DayCount = DayCount.ACT_360
    spot_lag: int = 2
    business_day: BusinessDayConvention = BusinessDayConvention.MODIFIED_FOLLOWING

    def requirements(self, reference_data):
        return (("discount", self.currency),)

    def _dates(self, valuation_date, reference_data):
        holidays = reference_data.holidays
        start = add_business_days(valuation_date, self.spot_lag, holidays)
        end = adjust_business_day(DateUtils.add_tenor(start, self.tenor, holidays), self.business_day, holidays)
        return start, end

    def node_date(self, valuation_date, reference_data):
        return self._dates(valuation_date, reference_data)[1]

    def instrument(self, valuation_date, quote, reference_data, swap_pricer=None, notional=1.0):
        start, end = self._dates(valuation_date, reference_data)
        return TermDepositInstrument(
            label=self.label,
            quote_id=self.quote_id,
            currency=self.currency,
            start_date=start,
            end_date=end,
            year_fraction=year_fraction(start, end, self.day_count),
            rate=quote,
            notional=notional,
        )


@dataclass(frozen=True)
class FraNode(CurveNode):
    """
    FRA on an IBOR index, e.g. 3x6 on USD-LIBOR-3M.

    Attributes:
        index_name: Index name in the reference data
        start_tenor: Tenor from spot to the FRA start ("0M" gives a fixing deposit)
        end_tenor: Tenor from spot to the FRA end; defaults to start plus the index tenor
    """
    label: str
    quote_id: str
    index_name: str
    start_tenor: str
    end_tenor: Optional[str] = None
    business_day: BusinessDayConvention = BusinessDayConvention.MODIFIED_FOLLOWING

    def requirements(self, reference_data):
        index = reference_data.index(self.index_name)
        return (("index", index.name), ("discount", index.currency))

    def _dates(self, valuation_date, reference_data):
        index = reference_data.index(self.index_name)
        holidays = reference_data.holidays
        spot = add_business_days(valuation_date, index.fixing_lag, holidays)
        start_months = DateUtils.tenor_to_months(self.start_tenor)
        if self.end_tenor is not None:
            end_months = DateUtils.tenor_to_months(self.end_tenor)
        else:
            end_months = start_months + DateUtils.tenor_to_months(index.tenor)
        start = adjust_business_day(DateUtils.add_tenor(spot, f"{start_months}M"), self.business_day, holidays)
        end = adjust_business_day(DateUtils.add_tenor(spot, f"{end_months}M"), self.business_day, holidays)
        fixing = add_business_days(start, -index.fixing_lag, holidays)
        return index, fixing, start, end

    def node_date(self, valuation_date, reference_data):
        return self._dates(valuation_date, reference_data)[3]

    def instrument(self, valuation_date, quote, reference_data, swap_pricer=None, notional=1.0):
        index, fixing, start, end = self._dates(valuation_date, reference_data)
        if fixing < valuation_date:
            raise ValueError(f"FRA node {self.label} fixed before the valuation date")
        return FraInstrument(
            label=self.label,
            quote_id=self.quote_id,
            currency=index.currency,
            index=index,
            fixing_date=fixing,
            start_date=start,
            end_date=end,
            year_fraction=year_fraction(start, end, index.day_count),
            rate=quote,
            notional=notional,
        )


@dataclass(frozen=True)
class FixedFloatSwapNode(CurveNode):
    """
    Par swap paying the quoted fixed rate.

    Attributes:
        convention_name: Swap convention in the reference data
        tenor: Swap tenor from the start date ("5Y")
        forward_start: Optional tenor from spot to start
    """
    label: str
    quote_id: str
    convention_name: str
    tenor: str
    forward_start: Optional[str] = None

    def requirements(self, reference_data):
        convention = reference_data.swap_convention(self.convention_name)
        return (("discount", convention.currency), ("index", convention.index.name))

    def _swap(self, valuation_date, quote, reference_data, notional):
        convention = reference_data.swap_convention(self.convention_name)
        return build_fixed_float_swap(
            convention,
            valuation_date,
            self.tenor,
            quote,
            notional=notional,
            buy_sell=BuySell.BUY,
            forward_start=self.forward_start,
            holidays=reference_data.holidays,
            swap_id=self.label,
        )

    def node_date(self, valuation_date, reference_data):
        return self._swap(valuation_date, 0.0, reference_data, 1.0).end_date

    def instrument(self, valuation_date, quote, reference_data, swap_pricer=None, notional=1.0):
        if swap_pricer is None:
            raise ValueError(f"Swap node {self.label} needs a swap pricer")
        return SwapInstrument(
            label=self.label,
            quote_id=self.quote_id,
            swap=self._swap(valuation_date, quote, reference_data, notional),
            swap_pricer=swap_pricer,
        )


__all__ = [
    "CalibrationInstrument",
    "TermDepositInstrument",
    "FraInstrument",
    "SwapInstrument",
    "CurveNode",
    "TermDepositNode",
    "FraNode",
    "FixedFloatSwapNode",
]
