"""
Date utilities for rates calculations.

Provides:
- Tenor parsing and date arithmetic
- Accrual schedule generation for swap legs
- Signed relative time on the curve time axis
"""

from dataclasses import dataclass
from datetime import date
from typing import AbstractSet, List, Optional, Tuple
import calendar
import re

from .config import TIME_BASIS_DAYS
from .conventions import (
    BusinessDayConvention,
    DayCount,
    add_business_days,
    adjust_business_day,
    year_fraction,
)


class DateUtils:
    """Utility class for date manipulation in rates contexts."""

    # Tenor regex pattern: number + unit (D/W/M/Y)
    TENOR_PATTERN = re.compile(r'^(\d+)([DWMY])$', re.IGNORECASE)

    @staticmethod
    def parse_tenor(tenor: str) -> Tuple[int, str]:
        """
        Parse a tenor string into (amount, unit).

        Args:
            tenor: Tenor string like "1D", "3M", "2Y"

        Returns:
            Tuple of (amount, unit) where unit is D/W/M/Y

        Raises:
            ValueError: If tenor format is invalid
        """
        match = DateUtils.TENOR_PATTERN.match(tenor.upper().strip())
        if not match:
            raise ValueError(f"Invalid tenor format: {tenor}. Expected format like '3M', '2Y'")

        return int(match.group(1)), match.group(2).upper()

    @staticmethod
    def tenor_to_months(tenor: str) -> int:
        """Whole months in a M/Y tenor."""
        amount, unit = DateUtils.parse_tenor(tenor)
        if unit == 'M':
            return amount
        if unit == 'Y':
            return 12 * amount
        raise ValueError(f"Tenor {tenor} is not expressed in months or years")

    @staticmethod
    def add_tenor(start: date, tenor: str, holidays: Optional[AbstractSet[date]] = None) -> date:
        """
        Add a tenor to a date (D = business days, W = weeks, M/Y = calendar months).

        The result of W/M/Y arithmetic is unadjusted.
        """
        amount, unit = DateUtils.parse_tenor(tenor)

        if unit == 'D':
            return add_business_days(start, amount, holidays)
        if unit == 'W':
            return date.fromordinal(start.toordinal() + 7 * amount)
        return add_months(start, DateUtils.tenor_to_months(tenor))

    @staticmethod
    def tenor_to_years(tenor: str) -> float:
        """
        Convert tenor to approximate year fraction.
        """
        amount, unit = DateUtils.parse_tenor(tenor)

        if unit == 'D':
            return amount / 365.0
        elif unit == 'W':
            return amount * 7 / 365.0
        elif unit == 'M':
            return amount / 12.0
        return float(amount)


def add_months(d: date, months: int) -> date:
    """Add calendar months, clipping the day to the month end."""
    year = d.year + (d.month - 1 + months) // 12
    month = (d.month - 1 + months) % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def relative_time(valuation_date: date, d: date) -> float:
    """Signed ACT/365F time from the valuation date."""
    return (d.toordinal() - valuation_date.toordinal()) / TIME_BASIS_DAYS


@dataclass(frozen=True)
class AccrualPeriod:
    """Adjusted accrual period with its payment date and year fraction."""
    start_date: date
    end_date: date
    payment_date: date
    year_fraction: float


def generate_schedule(
    start: date,
    end: date,
    frequency_months: int,
    day_count: DayCount,
    convention: BusinessDayConvention = BusinessDayConvention.MODIFIED_FOLLOWING,
    payment_lag: int = 0,
    holidays: Optional[AbstractSet[date]] = None,
) -> List[AccrualPeriod]:
    """
    Generate accrual periods between start and end dates.

    Unadjusted dates are rolled backward from the end date, so any stub
    is a short initial period. A frequency of 0 gives one period.

    Args:
        start: Accrual start (unadjusted)
        end: Accrual end (unadjusted)
        frequency_months: Months per period, 0 for a single period
        day_count: Accrual day count
        convention: Business day adjustment of period boundaries
        payment_lag: Business days between period end and payment
        holidays: Holiday calendar

    Returns:
        List of AccrualPeriod
    """
    if end <= start:
        raise ValueError(f"Schedule end {end} must be after start {start}")
    if frequency_months < 0:
        raise ValueError("Frequency must be non-negative")

    unadjusted = [end]
    if frequency_months > 0:
        n = 1
        while True:
            prev = add_months(end, -n * frequency_months)
            if prev <= start:
                break
            unadjusted.insert(0, prev)
            n += 1
    unadjusted.insert(0, start)

    adjusted = [adjust_business_day(d, convention, holidays) for d in unadjusted]

    periods = []
    for accrual_start, accrual_end in zip(adjusted[:-1], adjusted[1:]):
        periods.append(AccrualPeriod(
            start_date=accrual_start,
            end_date=accrual_end,
            payment_date=add_business_days(accrual_end, payment_lag, holidays),
            year_fraction=year_fraction(accrual_start, accrual_end, day_count),
        ))
    return periods


__all__ = [
    "DateUtils",
    "AccrualPeriod",
    "add_months",
    "relative_time",
    "generate_schedule",
]
