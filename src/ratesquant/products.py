"""
Resolved swap and swaption products.

Provides:
- FixedRateSwapLeg / FloatingRateSwapLeg: Legs as lists of dated payment periods
- Swap: Collection of legs
- Swaption: Option to enter an underlying swap
- CurrencyAmount: Amount tagged with its currency
- build_fixed_float_swap: Swap from a market convention

Legs carry already-computed periods (adjusted dates, year fractions and
fixing dates); pricers never need a calendar.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import AbstractSet, List, Optional, Tuple, Union

from .conventions import (
    FixedFloatSwapConvention,
    RateIndex,
    add_business_days,
    adjust_business_day,
    year_fraction,
)
from .dates import DateUtils, generate_schedule


class PayReceive(Enum):
    """Direction of a leg's payments."""
    PAY = "Pay"
    RECEIVE = "Receive"

    @property
    def sign(self) -> float:
        return -1.0 if self is PayReceive.PAY else 1.0

    @classmethod
    def from_string(cls, s: str) -> "PayReceive":
        key = s.strip().upper()
        if key in ("PAY", "PAYER", "P"):
            return cls.PAY
        if key in ("RECEIVE", "RECEIVER", "REC", "R"):
            return cls.RECEIVE
        raise ValueError(f"Unknown pay/receive flag: {s}")


class BuySell(Enum):
    """Trade direction; buying a fixed/float swap means paying fixed."""
    BUY = "Buy"
    SELL = "Sell"


class LongShort(Enum):
    """Option position."""
    LONG = "Long"
    SHORT = "Short"

    @property
    def sign(self) -> float:
        return 1.0 if self is LongShort.LONG else -1.0


class SettlementType(Enum):
    PHYSICAL = "Physical"
    CASH = "Cash"


class SwapLegType(Enum):
    FIXED = "Fixed"
    FLOATING = "Floating"


@dataclass(frozen=True)
class CurrencyAmount:
    """An amount of money in one currency."""
    currency: str
    amount: float

    @classmethod
    def zero(cls, currency: str) -> "CurrencyAmount":
        return cls(currency, 0.0)

    def plus(self, other: "CurrencyAmount") -> "CurrencyAmount":
        if other.currency != self.currency:
            raise ValueError(f"Currency mismatch: {self.currency} and {other.currency}")
        return CurrencyAmount(self.currency, self.amount + other.amount)

    def multiplied_by(self, factor: float) -> "CurrencyAmount":
        return CurrencyAmount(self.currency, self.amount * factor)

    def __add__(self, other):
        if not isinstance(other, CurrencyAmount):
            return NotImplemented
        return self.plus(other)

    def __neg__(self):
        return self.multiplied_by(-1.0)

    def __float__(self) -> float:
        return float(self.amount)


@dataclass(frozen=True)
class FixedRatePeriod:
    """Accrual period paying a fixed rate on an unsigned notional."""
    start_date: date
    end_date: date
    payment_date: date
    year_fraction: float
    rate: float
    notional: float


@dataclass(frozen=True)
class FloatingRatePeriod:
    """
    Accrual period paying an index rate plus spread.

    Attributes:
        fixing_date: Date the index rate is observed
        index_start_date / index_end_date: Period the index rate applies to
        index_year_fraction: Index day count fraction of that period
    """
    start_date: date
    end_date: date
    payment_date: date
    year_fraction: float
    notional: float
    fixing_date: date
    index_start_date: date
    index_end_date: date
    index_year_fraction: float
    spread: float = 0.0


@dataclass(frozen=True)
class FixedRateSwapLeg:
    pay_receive: PayReceive
    currency: str
    periods: Tuple[FixedRatePeriod, ...]
    type: SwapLegType = field(default=SwapLegType.FIXED, init=False)

    def __post_init__(self):
        if not self.periods:
            raise ValueError("A swap leg needs at least one period")
        object.__setattr__(self, "periods", tuple(self.periods))

    @property
    def start_date(self) -> date:
        return self.periods[0].start_date

    @property
    def end_date(self) -> date:
        return self.periods[-1].end_date


@dataclass(frozen=True)
class FloatingRateSwapLeg:
    pay_receive: PayReceive
    currency: str
    index: RateIndex
    periods: Tuple[FloatingRatePeriod, ...]
    type: SwapLegType = field(default=SwapLegType.FLOATING, init=False)

    def __post_init__(self):
        if not self.periods:
            raise ValueError("A swap leg needs at least one period")
        object.__setattr__(self, "periods", tuple(self.periods))

    @property
    def start_date(self) -> date:
        return self.periods[0].start_date

    @property
    def end_date(self) -> date:
        return self.periods[-1].end_date


SwapLeg = Union[FixedRateSwapLeg, FloatingRateSwapLeg]


@dataclass(frozen=True)
class Swap:
    """Swap made of any number of legs."""
    legs: Tuple[SwapLeg, ...]
    swap_id: Optional[str] = None

    def __post_init__(self):
        if not self.legs:
            raise ValueError("A swap needs at least one leg")
        object.__setattr__(self, "legs", tuple(self.legs))

    @property
    def currencies(self) -> List[str]:
        return sorted({leg.currency for leg in self.legs})

    def is_cross_currency(self) -> bool:
        return len(self.currencies) > 1

    def legs_of_type(self, leg_type: SwapLegType) -> List[SwapLeg]:
        return [leg for leg in self.legs if leg.type == leg_type]

    @property
    def start_date(self) -> date:
        return min(leg.start_date for leg in self.legs)

    @property
    def end_date(self) -> date:
        return max(leg.end_date for leg in self.legs)


@dataclass(frozen=True)
class Swaption:
    """
    Option to enter the underlying swap at expiry.

    Attributes:
        underlying: Swap entered on exercise
        expiry_date: Exercise date
        long_short: Position in the option
        settlement: Physical or cash settlement
    """
    underlying: Swap
    expiry_date: date
    long_short: LongShort = LongShort.LONG
    settlement: SettlementType = SettlementType.PHYSICAL
    swaption_id: Optional[str] = None

    def with_long_short(self, long_short: LongShort) -> "Swaption":
        return replace(self, long_short=long_short)


def build_fixed_float_swap(
    convention: FixedFloatSwapConvention,
    trade_date: date,
    tenor: str,
    fixed_rate: float,
    notional: float = 1.0,
    buy_sell: BuySell = BuySell.BUY,
    forward_start: Optional[str] = None,
    spread: float = 0.0,
    holidays: Optional[AbstractSet[date]] = None,
    swap_id: Optional[str] = None,
) -> Swap:
    """
    Build a fixed versus floating swap from a market convention.

    Args:
        convention: Swap convention
        trade_date: Trade date; the swap starts spot_lag business days later
        tenor: Swap tenor from the start date ("5Y")
        fixed_rate: Fixed coupon
        notional: Unsigned notional
        buy_sell: BUY pays fixed, SELL receives fixed
        forward_start: Optional tenor between spot and the swap start
        spread: Spread over the index on the floating leg
        holidays: Holiday calendar
        swap_id: Optional identifier

    Returns:
        Swap with one fixed and one floating leg
    """
    start = add_business_days(trade_date, convention.spot_lag, holidays)
    if forward_start is not None:
        start = adjust_business_day(DateUtils.add_tenor(start, forward_start), convention.business_day, holidays)
    end = DateUtils.add_tenor(start, tenor)

    fixed_direction = PayReceive.PAY if buy_sell is BuySell.BUY else PayReceive.RECEIVE
    float_direction = PayReceive.RECEIVE if buy_sell is BuySell.BUY else PayReceive.PAY

    fixed_periods = [
        FixedRatePeriod(p.start_date, p.end_date, p.payment_date, p.year_fraction, fixed_rate, notional)
        for p in generate_schedule(
            start, end, convention.fixed_frequency, convention.fixed_day_count,
            convention.business_day, convention.payment_lag, holidays,
        )
    ]

    index = convention.index
    float_periods = []
    for p in generate_schedule(
        start, end, convention.float_frequency, index.day_count,
        convention.business_day, convention.payment_lag, holidays,
    ):
        if index.is_overnight:
            index_end = p.end_date
        else:
            index_end = adjust_business_day(
                DateUtils.add_tenor(p.start_date, index.tenor), convention.business_day, holidays
            )
        float_periods.append(FloatingRatePeriod(
            start_date=p.start_date,
            end_date=p.end_date,
            payment_date=p.payment_date,
            year_fraction=p.year_fraction,
            notional=notional,
            fixing_date=add_business_days(p.start_date, -index.fixing_lag, holidays),
            index_start_date=p.start_date,
            index_end_date=index_end,
            index_year_fraction=year_fraction(p.start_date, index_end, index.day_count),
            spread=spread,
        ))

    return Swap(
        legs=(
            FixedRateSwapLeg(fixed_direction, convention.currency, tuple(fixed_periods)),
            FloatingRateSwapLeg(float_direction, convention.currency, index, tuple(float_periods)),
        ),
        swap_id=swap_id,
    )


__all__ = [
    "PayReceive",
    "BuySell",
    "LongShort",
    "SettlementType",
    "SwapLegType",
    "CurrencyAmount",
    "FixedRatePeriod",
    "FloatingRatePeriod",
    "FixedRateSwapLeg",
    "FloatingRateSwapLeg",
    "SwapLeg",
    "Swap",
    "Swaption",
    "build_fixed_float_swap",
]
