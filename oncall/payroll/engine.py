from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Mapping

from oncall.models import PeriodType

ONE_HOUR = timedelta(hours=1)
ONE_DAY = timedelta(days=1)
DAY_START_HOUR = 9
DAY_END_HOUR = 21


@dataclass
class BreakdownEntry:
    period_type: PeriodType
    hours: Decimal = Decimal("0")
    rate: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")


@dataclass
class ShiftPayment:
    start: datetime
    end: datetime
    total_hours: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    breakdown: Dict[PeriodType, BreakdownEntry] = field(default_factory=dict)

    def entries(self) -> List[BreakdownEntry]:
        return [self.breakdown[p] for p in PeriodType if p in self.breakdown]


def normalize_end(start: datetime, end: datetime) -> datetime:
    """Push a malformed overnight end forward one day at a time until it follows start."""
    while end <= start:
        end += ONE_DAY
    return end


def period_for(
    hour: int,
    holiday_or_weekend: bool,
    day_start: int = DAY_START_HOUR,
    day_end: int = DAY_END_HOUR,
) -> PeriodType:
    is_day = day_start <= hour < day_end
    if holiday_or_weekend:
        return PeriodType.WEEKEND_HOLIDAY_DAY if is_day else PeriodType.WEEKEND_HOLIDAY_NIGHT
    return PeriodType.WEEKDAY_DAY if is_day else PeriodType.WEEKDAY_NIGHT


def calculate_shift_payment(
    rates: Mapping[PeriodType, Decimal],
    start: datetime,
    end: datetime,
    holiday_or_weekend: bool,
    day_start: int = DAY_START_HOUR,
    day_end: int = DAY_END_HOUR,
) -> ShiftPayment:
    """Bucket ``[start, end)`` into hours and price each bucket.

    The holiday/weekend flag applies to the whole shift; buckets past midnight
    are not re-classified. A final partial hour is paid pro rata. A period
    missing from ``rates`` is paid at zero.
    """
    end = normalize_end(start, end)
    payment = ShiftPayment(start=start, end=end)

    current = start
    while current < end:
        step = min(ONE_HOUR, end - current)
        hours = Decimal(int(step.total_seconds())) / Decimal(3600)
        period = period_for(current.hour, holiday_or_weekend, day_start, day_end)
        rate = Decimal(rates.get(period, 0))

        entry = payment.breakdown.get(period)
        if entry is None:
            entry = payment.breakdown[period] = BreakdownEntry(period_type=period, rate=rate)
        entry.hours += hours
        entry.amount += hours * rate
        payment.total_hours += hours
        payment.total_amount += hours * rate
        current += step

    return payment
