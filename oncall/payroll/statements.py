"""Per-worker payroll statements.

Every worker assigned to a shift earns the shift's full hours and amount.
External hours are added to gross un-bucketed at their own rate; the active
discount is deducted only for workers that opted in, floored at zero.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from oncall.core.config import settings
from oncall.core.errors import ConfigurationError, NotFound
from oncall.db.repositories import (
    AssignmentRepository,
    DiscountRepository,
    ExternalHoursRepository,
    RateRepository,
    ShiftRepository,
    WorkerRepository,
)
from oncall.db.session import InMemorySession
from oncall.models import DayCategory, Discount, ExternalHours, HourlyRate, PeriodType, Shift, ShiftType, Worker
from oncall.payroll.engine import ShiftPayment, calculate_shift_payment, normalize_end
from oncall.services.calendar import HolidayCalendar
from oncall.utils.dates import month_bounds

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class PeriodTotal:
    period_type: PeriodType
    hours: Decimal = ZERO
    amount: Decimal = ZERO


@dataclass
class WorkerStatement:
    worker_id: int
    worker_name: str
    has_discount: bool = False
    total_hours: Decimal = ZERO
    shift_count: int = 0
    fixed_shifts: int = 0
    rotating_shifts: int = 0
    breakdown: Dict[PeriodType, PeriodTotal] = field(default_factory=dict)
    shift_payment: Decimal = ZERO
    external_hours: Decimal = ZERO
    external_payment: Decimal = ZERO
    gross: Decimal = ZERO
    discount_applied: Decimal = ZERO
    net: Decimal = ZERO

    def add_shift(self, shift: Shift, payment: ShiftPayment) -> None:
        self.shift_count += 1
        if shift.type == ShiftType.FIXED:
            self.fixed_shifts += 1
        else:
            self.rotating_shifts += 1
        self.total_hours += payment.total_hours
        self.shift_payment += payment.total_amount
        for entry in payment.entries():
            bucket = self.breakdown.setdefault(entry.period_type, PeriodTotal(entry.period_type))
            bucket.hours += entry.hours
            bucket.amount += entry.amount

    def add_external(self, entry: ExternalHours) -> None:
        self.external_hours += Decimal(entry.hours)
        self.external_payment += Decimal(entry.hours) * Decimal(entry.rate)

    def settle(self, discount: Optional[Discount]) -> None:
        self.gross = self.shift_payment + self.external_payment
        if self.has_discount and discount is not None and discount.is_active and discount.amount > 0:
            self.discount_applied = Decimal(discount.amount)
            self.net = max(ZERO, self.gross - self.discount_applied)
        else:
            self.discount_applied = ZERO
            self.net = self.gross


@dataclass
class PayrollReport:
    start: datetime
    end: datetime
    total_shifts: int = 0
    assigned_shifts: int = 0
    available_shifts: int = 0
    total_hours: Decimal = ZERO
    total_payment: Decimal = ZERO
    statements: List[WorkerStatement] = field(default_factory=list)


def build_rate_table(rates: Iterable[HourlyRate]) -> Dict[PeriodType, Decimal]:
    table = {PeriodType(r.period_type): Decimal(r.rate) for r in rates}
    if not table:
        raise ConfigurationError("No hourly rates are configured")
    missing = [p.value for p in PeriodType if p not in table]
    if missing:
        logger.warning("Hourly rates missing, paying zero for those periods", extra={"missing": missing})
    return table


def shift_is_holiday_or_weekend(shift: Shift, calendar: HolidayCalendar) -> bool:
    """Classified once from the start date, never per hour."""
    if shift.day_category in (DayCategory.WEEKEND, DayCategory.HOLIDAY):
        return True
    return calendar.is_weekend_or_holiday(shift.start.date())


def compute_statements(
    shifts: Iterable[Shift],
    holders: Mapping[int, List[int]],
    workers: Mapping[int, Worker],
    rates: Mapping[PeriodType, Decimal],
    calendar: HolidayCalendar,
    external: Iterable[ExternalHours] = (),
    discount: Optional[Discount] = None,
    day_start: int = 9,
    day_end: int = 21,
) -> Dict[int, WorkerStatement]:
    statements: Dict[int, WorkerStatement] = {}

    def statement_for(worker_id: int) -> WorkerStatement:
        if worker_id not in statements:
            worker = workers.get(worker_id)
            statements[worker_id] = WorkerStatement(
                worker_id=worker_id,
                worker_name=worker.name if worker else "Unknown",
                has_discount=bool(worker and worker.has_discount),
            )
        return statements[worker_id]

    for shift in shifts:
        worker_ids = holders.get(shift.id, [])
        if not worker_ids:
            continue
        payment = calculate_shift_payment(
            rates, shift.start, shift.end, shift_is_holiday_or_weekend(shift, calendar), day_start, day_end
        )
        for worker_id in worker_ids:
            statement_for(worker_id).add_shift(shift, payment)

    for entry in external:
        statement_for(entry.worker_id).add_external(entry)

    for statement in statements.values():
        statement.settle(discount)
    return statements


class PayrollService:
    def __init__(self, session: InMemorySession) -> None:
        self.session = session
        self.shifts = ShiftRepository(session)
        self.assignments = AssignmentRepository(session)
        self.workers = WorkerRepository(session)
        self.rates = RateRepository(session)
        self.discounts = DiscountRepository(session)
        self.external = ExternalHoursRepository(session)

    def _holders(self, shift: Shift) -> List[int]:
        ids = [a.worker_id for a in self.assignments.for_shift(shift.id)]
        if not ids and shift.worker_id is not None:
            ids = [shift.worker_id]
        return ids

    def report(self, start: datetime, end: datetime, worker_id: Optional[int] = None) -> PayrollReport:
        rates = build_rate_table(self.rates.all())
        shifts = self.shifts.starting_between(start, end)
        holders = {shift.id: self._holders(shift) for shift in shifts}
        external = self.external.between(start.date(), end.date())
        if worker_id is not None:
            holders = {sid: [w for w in ids if w == worker_id] for sid, ids in holders.items()}
            external = [e for e in external if e.worker_id == worker_id]

        statements = compute_statements(
            shifts,
            holders,
            {w.id: w for w in self.workers.all()},
            rates,
            HolidayCalendar.from_session(self.session),
            external=external,
            discount=self.discounts.active(),
            day_start=settings.day_start_hour,
            day_end=settings.day_end_hour,
        )

        report = PayrollReport(start=start, end=end)
        report.total_shifts = len(shifts)
        report.assigned_shifts = sum(1 for s in shifts if holders[s.id])
        report.available_shifts = sum(1 for s in shifts if s.is_available and not holders[s.id])
        report.total_hours = sum(
            (Decimal(int((normalize_end(s.start, s.end) - s.start).total_seconds())) / Decimal(3600) for s in shifts),
            ZERO,
        )
        report.statements = sorted(statements.values(), key=lambda s: (-s.total_hours, s.worker_id))
        report.total_payment = sum((s.net for s in report.statements), ZERO)

        logger.info(
            "Payroll computed",
            extra={"start": start.isoformat(), "end": end.isoformat(), "workers": len(report.statements)},
        )
        return report

    def monthly(self, year: int, month: int) -> PayrollReport:
        start, end = month_bounds(year, month)
        return self.report(start, end)

    def worker_statement(self, worker_id: int, start: datetime, end: datetime) -> WorkerStatement:
        worker = self.workers.get(worker_id)
        if worker is None:
            raise NotFound("Worker", [worker_id])
        report = self.report(start, end, worker_id=worker_id)
        for statement in report.statements:
            if statement.worker_id == worker_id:
                return statement
        empty = WorkerStatement(worker_id=worker.id, worker_name=worker.name, has_discount=worker.has_discount)
        empty.settle(self.discounts.active())
        return empty
