from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from oncall.db.session import InMemorySession
from oncall.models import HourlyRate, PeriodType, Role, Worker

# 2026-03-02 is a Monday
MONDAY = date(2026, 3, 2)
SATURDAY = date(2026, 3, 7)

RATES = {
    PeriodType.WEEKDAY_DAY: Decimal("1000"),
    PeriodType.WEEKDAY_NIGHT: Decimal("1500"),
    PeriodType.WEEKEND_HOLIDAY_DAY: Decimal("1500"),
    PeriodType.WEEKEND_HOLIDAY_NIGHT: Decimal("2000"),
}


def at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute)


@pytest.fixture
def session() -> InMemorySession:
    return InMemorySession()


@pytest.fixture
def workers(session: InMemorySession) -> list[Worker]:
    roster = [
        Worker(name="Ana", has_discount=True),
        Worker(name="Bruno"),
        Worker(name="Carla"),
        Worker(name="Dario", is_active=False),
        Worker(name="Admin", role=Role.ADMIN),
    ]
    session.add_all(roster)
    return roster


@pytest.fixture
def rates(session: InMemorySession) -> dict:
    for period, rate in RATES.items():
        session.add(HourlyRate(period_type=period, rate=rate))
    return RATES
