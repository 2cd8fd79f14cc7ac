from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from oncall.core.config import settings
from oncall.db.repositories import RateRepository
from oncall.db.session import InMemorySession
from oncall.models import Discount, HourlyRate, PeriodType, Role, Worker
from oncall.services.holidays import HolidayService

logger = logging.getLogger(__name__)


@dataclass
class WorkerSeed:
    name: str
    specialty: str
    role: Role = Role.DOCTOR
    has_discount: bool = False
    is_active: bool = True


ROSTER = [
    WorkerSeed("Admin", "Administration", role=Role.ADMIN),
    WorkerSeed("Lucia Fernandez", "Emergency Medicine", has_discount=True),
    WorkerSeed("Martin Gomez", "Emergency Medicine"),
    WorkerSeed("Sofia Ruiz", "Internal Medicine", has_discount=True),
    WorkerSeed("Diego Alvarez", "Internal Medicine"),
    WorkerSeed("Valentina Sosa", "Pediatrics"),
    WorkerSeed("Tomas Herrera", "Cardiology", is_active=False),
]

# recurring national holidays; the year only anchors month/day
NATIONAL_HOLIDAYS = [
    (date(2000, 1, 1), "New Year's Day"),
    (date(2000, 3, 24), "Day of Remembrance"),
    (date(2000, 4, 2), "Malvinas Day"),
    (date(2000, 5, 1), "Labour Day"),
    (date(2000, 5, 25), "May Revolution"),
    (date(2000, 6, 20), "Flag Day"),
    (date(2000, 7, 9), "Independence Day"),
    (date(2000, 12, 8), "Immaculate Conception"),
    (date(2000, 12, 25), "Christmas"),
]


def seed_rates(session: InMemorySession) -> int:
    """Insert the default hourly rates for any period that has none."""
    rates = RateRepository(session)
    added = 0
    for period in PeriodType:
        if rates.by_period(period) is None:
            rates.add(HourlyRate(period_type=period, rate=Decimal(settings.default_rates[period.value])))
            added += 1
    return added


def seed_workers(session: InMemorySession) -> None:
    for seed in ROSTER:
        session.add(
            Worker(
                name=seed.name,
                role=seed.role,
                specialty=seed.specialty,
                is_active=seed.is_active,
                has_discount=seed.has_discount,
            )
        )


def seed_holidays(session: InMemorySession) -> None:
    service = HolidayService(session)
    for holiday_date, name in NATIONAL_HOLIDAYS:
        service.create(holiday_date, name, is_recurrent=True)


def seed_discounts(session: InMemorySession) -> None:
    session.add(Discount(amount=Decimal("800"), is_active=False, valid_from=datetime(2024, 1, 1)))
    session.add(Discount(amount=Decimal("1200"), is_active=True, valid_from=datetime(2025, 1, 1)))


def seed_all(session: InMemorySession) -> None:
    with session.transaction():
        seed_rates(session)
        seed_workers(session)
        seed_holidays(session)
        seed_discounts(session)
    logger.info("Demo data seeded")
