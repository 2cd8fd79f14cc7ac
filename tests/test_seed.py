from __future__ import annotations

from datetime import date

from fastapi.testclient import TestClient

from oncall.core.config import settings
from oncall.db.repositories import DiscountRepository
from oncall.db.session import reset_session
from oncall.main import app
from oncall.models import DayCategory, Holiday, HourlyRate, Worker
from oncall.payroll import PayrollService
from oncall.services.calendar import classify_with_session
from oncall.services.seed import ROSTER, seed_all, seed_rates


def test_seed_populates_reference_data(session):
    seed_all(session)

    assert len(session.all(Worker)) == len(ROSTER)
    assert len(session.all(HourlyRate)) == 4
    assert DiscountRepository(session).active().amount == 1200
    # Christmas recurs every year
    assert classify_with_session(session, date(2026, 12, 25)) == DayCategory.HOLIDAY
    assert all(h.is_recurrent for h in session.all(Holiday))


def test_seed_rates_only_fills_gaps(session):
    assert seed_rates(session) == 4
    assert seed_rates(session) == 0


def test_seeded_store_supports_payroll(session):
    seed_all(session)
    report = PayrollService(session).monthly(2026, 3)
    assert report.total_shifts == 0
    assert report.statements == []


def test_app_seeds_on_startup_when_enabled(monkeypatch):
    session = reset_session()
    monkeypatch.setattr(settings, "seed_demo_data", True)
    with TestClient(app) as client:
        assert client.get("/health").status_code == 200
    assert len(session.all(Worker)) == len(ROSTER)
