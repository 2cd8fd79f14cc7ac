from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Set, Tuple

from oncall.db.repositories import HolidayRepository
from oncall.db.session import InMemorySession
from oncall.models import DayCategory, Holiday
from oncall.utils.dates import is_weekend


class HolidayCalendar:
    """Exact-date and recurring month/day lookup built from holiday rows."""

    def __init__(self, holidays: Iterable[Holiday]) -> None:
        self.holidays = list(holidays)
        self.exact: Set[date] = {h.date for h in self.holidays if not h.is_recurrent}
        self.recurring: Set[Tuple[int, int]] = {(h.date.month, h.date.day) for h in self.holidays if h.is_recurrent}

    @classmethod
    def from_session(cls, session: InMemorySession) -> "HolidayCalendar":
        return cls(HolidayRepository(session).all())

    def is_holiday(self, day: date) -> bool:
        return day in self.exact or (day.month, day.day) in self.recurring

    def holiday_for(self, day: date) -> Optional[Holiday]:
        return next((h for h in self.holidays if h.matches(day)), None)

    def is_weekend_or_holiday(self, day: date) -> bool:
        return is_weekend(day) or self.is_holiday(day)

    def classify(self, day: date) -> DayCategory:
        # weekend wins even when a holiday falls on the same date
        if is_weekend(day):
            return DayCategory.WEEKEND
        if self.is_holiday(day):
            return DayCategory.HOLIDAY
        return DayCategory.WEEKDAY


def classify_day(day: date, holidays: Iterable[Holiday]) -> DayCategory:
    return HolidayCalendar(holidays).classify(day)


def classify_with_session(session: InMemorySession, day: date) -> DayCategory:
    if is_weekend(day):
        return DayCategory.WEEKEND
    return classify_day(day, HolidayRepository(session).on_date(day))
