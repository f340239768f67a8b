"""
Day count, business day and swap conventions.

Supported Day Counts:
- ACT/360: Actual days / 360 (money markets, OIS, IBOR)
- ACT/365F: Actual days / 365 (GBP/JPY markets, curve time axis)
- 30/360: 30 days per month / 360 (USD/EUR fixed legs)

Business Day Conventions:
- Modified Following: Move to next business day, unless it falls in next month (then previous)
- Following: Move to next business day
- Preceding: Move to previous business day

The index and swap convention catalogues are plain configuration data:
a table of records turned into name -> record mappings once at import.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import AbstractSet, Dict, Mapping, Optional


class DayCount(Enum):
    """Day count convention enumeration."""
    ACT_360 = "ACT/360"
    ACT_365F = "ACT/365F"
    THIRTY_360 = "30/360"

    @classmethod
    def from_string(cls, s: str) -> "DayCount":
        """Parse day count from string representation."""
        mapping = {
            "ACT/360": cls.ACT_360,
            "ACT360": cls.ACT_360,
            "ACT/365F": cls.ACT_365F,
            "ACT/365": cls.ACT_365F,
            "ACT365F": cls.ACT_365F,
            "30/360": cls.THIRTY_360,
            "30360": cls.THIRTY_360,
        }
        key = s.upper().replace(" ", "")
        if key in mapping:
            return mapping[key]
        raise ValueError(f"Unknown day count convention: {s}")


class BusinessDayConvention(Enum):
    """Business day adjustment convention."""
    MODIFIED_FOLLOWING = "ModifiedFollowing"
    FOLLOWING = "Following"
    PRECEDING = "Preceding"
    UNADJUSTED = "Unadjusted"


def year_fraction(start: date, end: date, day_count: DayCount) -> float:
    """
    Calculate year fraction between two dates using specified day count convention.

    Args:
        start: Start date
        end: End date
        day_count: Day count convention

    Returns:
        Year fraction as float (0 when end is not after start)
    """
    if start >= end:
        return 0.0

    actual_days = (end - start).days

    if day_count == DayCount.ACT_360:
        return actual_days / 360.0

    elif day_count == DayCount.ACT_365F:
        return actual_days / 365.0

    elif day_count == DayCount.THIRTY_360:
        # 30/360 US bond basis
        d1 = min(start.day, 30)
        d2 = min(end.day, 30) if d1 == 30 else end.day
        return (360 * (end.year - start.year) + 30 * (end.month - start.month) + (d2 - d1)) / 360.0

    else:
        raise ValueError(f"Unknown day count: {day_count}")


def is_business_day(d: date, holidays: Optional[AbstractSet[date]] = None) -> bool:
    """
    Check if a date is a business day.

    Saturday and Sunday are never business days; holidays are optional.
    """
    if d.weekday() >= 5:
        return False
    if holidays and d in holidays:
        return False
    return True


def adjust_business_day(
    d: date,
    convention: BusinessDayConvention,
    holidays: Optional[AbstractSet[date]] = None
) -> date:
    """
    Adjust a date according to business day convention.

    Args:
        d: Date to adjust
        convention: Business day adjustment rule
        holidays: Optional set of holiday dates

    Returns:
        Adjusted date
    """
    if convention == BusinessDayConvention.UNADJUSTED or is_business_day(d, holidays):
        return d

    if convention == BusinessDayConvention.PRECEDING:
        return _roll(d, -1, holidays)

    following = _roll(d, 1, holidays)
    if convention == BusinessDayConvention.MODIFIED_FOLLOWING and following.month != d.month:
        return _roll(d, -1, holidays)
    return following


def add_business_days(d: date, days: int, holidays: Optional[AbstractSet[date]] = None) -> date:
    """Move a date by a signed number of business days."""
    step = 1 if days >= 0 else -1
    result = d
    for _ in range(abs(days)):
        result = _roll(result + timedelta(days=step), step, holidays)
    return result


def _roll(d: date, step: int, holidays: Optional[AbstractSet[date]]) -> date:
    while not is_business_day(d, holidays):
        d += timedelta(days=step)
    return d


@dataclass(frozen=True)
class RateIndex:
    """
    Floating rate index.

    Attributes:
        name: Index name, e.g. "USD-LIBOR-3M"
        currency: Currency of the index
        day_count: Accrual day count of the index rate
        tenor: Index tenor ("3M"), None for overnight indices
        fixing_lag: Business days between fixing date and period start
    """
    name: str
    currency: str
    day_count: DayCount
    tenor: Optional[str] = None
    fixing_lag: int = 0

    @property
    def is_overnight(self) -> bool:
        return self.tenor is None


@dataclass(frozen=True)
class FixedFloatSwapConvention:
    """
    Market convention for a fixed versus floating swap.

    Frequencies are in months; 0 means a single period (TERM).
    """
    name: str
    index: RateIndex
    fixed_day_count: DayCount
    fixed_frequency: int
    float_frequency: int
    spot_lag: int = 2
    payment_lag: int = 0
    business_day: BusinessDayConvention = BusinessDayConvention.MODIFIED_FOLLOWING

    @property
    def currency(self) -> str:
        return self.index.currency


TERM = 0

_INDEX_TABLE = (
    # name, currency, day count, tenor, fixing lag
    ("USD-SOFR", "USD", DayCount.ACT_360, None, 0),
    ("USD-LIBOR-3M", "USD", DayCount.ACT_360, "3M", 2),
    ("EUR-ESTR", "EUR", DayCount.ACT_360, None, 0),
    ("EUR-EURIBOR-6M", "EUR", DayCount.ACT_360, "6M", 2),
    ("GBP-SONIA", "GBP", DayCount.ACT_365F, None, 0),
)

STANDARD_INDICES: Dict[str, RateIndex] = {
    name: RateIndex(name, ccy, dc, tenor, lag) for name, ccy, dc, tenor, lag in _INDEX_TABLE
}


def _make_convention(
    name: str,
    index: str,
    fixed_day_count: DayCount,
    fixed_frequency: int,
    float_frequency: int,
    spot_lag: int,
    payment_lag: int,
) -> FixedFloatSwapConvention:
    return FixedFloatSwapConvention(
        name=name,
        index=STANDARD_INDICES[index],
        fixed_day_count=fixed_day_count,
        fixed_frequency=fixed_frequency,
        float_frequency=float_frequency,
        spot_lag=spot_lag,
        payment_lag=payment_lag,
    )


_SWAP_CONVENTION_TABLE = (
    # name, index, fixed day count, fixed freq, float freq, spot lag, payment lag
    ("USD-FIXED-TERM-SOFR-OIS", "USD-SOFR", DayCount.ACT_360, TERM, TERM, 2, 2),
    ("USD-FIXED-1Y-SOFR-OIS", "USD-SOFR", DayCount.ACT_360, 12, 12, 2, 2),
    ("USD-FIXED-6M-LIBOR-3M", "USD-LIBOR-3M", DayCount.THIRTY_360, 6, 3, 2, 0),
    ("EUR-FIXED-TERM-ESTR-OIS", "EUR-ESTR", DayCount.ACT_360, TERM, TERM, 2, 1),
    ("EUR-FIXED-1Y-ESTR-OIS", "EUR-ESTR", DayCount.ACT_360, 12, 12, 2, 1),
    ("EUR-FIXED-1Y-EURIBOR-6M", "EUR-EURIBOR-6M", DayCount.THIRTY_360, 12, 6, 2, 0),
    ("GBP-FIXED-TERM-SONIA-OIS", "GBP-SONIA", DayCount.ACT_365F, TERM, TERM, 0, 0),
    ("GBP-FIXED-1Y-SONIA-OIS", "GBP-SONIA", DayCount.ACT_365F, 12, 12, 0, 0),
)

STANDARD_SWAP_CONVENTIONS: Dict[str, FixedFloatSwapConvention] = {
    row[0]: _make_convention(*row) for row in _SWAP_CONVENTION_TABLE
}


@dataclass(frozen=True)
class ReferenceData:
    """
    Read-only lookup of indices, swap conventions and holidays.
    """
    indices: Mapping[str, RateIndex] = field(default_factory=dict)
    swap_conventions: Mapping[str, FixedFloatSwapConvention] = field(default_factory=dict)
    holidays: AbstractSet[date] = frozenset()

    @classmethod
    def standard(cls, holidays: Optional[AbstractSet[date]] = None) -> "ReferenceData":
        """Standard catalogue with a weekend-only (plus optional holidays) calendar."""
        return cls(
            indices=dict(STANDARD_INDICES),
            swap_conventions=dict(STANDARD_SWAP_CONVENTIONS),
            holidays=frozenset(holidays or ()),
        )

    def index(self, name: str) -> RateIndex:
        try:
            return self.indices[name]
        except KeyError:
            raise ValueError(f"Unknown rate index: {name}") from None

    def swap_convention(self, name: str) -> FixedFloatSwapConvention:
        try:
            return self.swap_conventions[name]
        except KeyError:
            raise ValueError(f"Unknown swap convention: {name}") from None


__all__ = [
    "DayCount",
    "BusinessDayConvention",
    "year_fraction",
    "is_business_day",
    "adjust_business_day",
    "add_business_days",
    "RateIndex",
    "FixedFloatSwapConvention",
    "TERM",
    "STANDARD_INDICES",
    "STANDARD_SWAP_CONVENTIONS",
    "ReferenceData",
]
