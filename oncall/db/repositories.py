"""Per-entity repositories over a session.

Services only talk to these; tests swap in a fresh ``InMemorySession``.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Generic, Iterable, List, Optional, Type, TypeVar

from oncall.db.session import InMemorySession
from oncall.models import (
    Discount,
    ExternalHours,
    Holiday,
    HourlyRate,
    Role,
    Shift,
    ShiftAssignment,
    Worker,
)

T = TypeVar("T")


class Repository(Generic[T]):
    model: Type[T]

    def __init__(self, session: InMemorySession) -> None:
        self.session = session

    def get(self, instance_id: int) -> Optional[T]:
        return self.session.get(self.model, instance_id)

    def all(self) -> List[T]:
        return self.session.all(self.model)

    def add(self, instance: T) -> T:
        self.session.add(instance)
        return instance

    def delete(self, instance: T) -> None:
        self.session.delete(instance)


class WorkerRepository(Repository[Worker]):
    model = Worker

    def active_doctors(self, ids: Iterable[int]) -> List[Worker]:
        wanted = set(ids)
        return self.session.filter(
            Worker, lambda w: w.id in wanted and w.is_active and w.role == Role.DOCTOR
        )


class ShiftRepository(Repository[Shift]):
    model = Shift

    def starting_between(self, start: datetime, end: datetime) -> List[Shift]:
        shifts = self.session.filter(Shift, lambda s: start <= s.start < end)
        return sorted(shifts, key=lambda s: (s.start, s.id))

    def starting_on(self, predicate) -> List[Shift]:
        """Shifts whose start date satisfies ``predicate(date)``."""
        return self.session.filter(Shift, lambda s: predicate(s.start.date()))

    def linked_to_holiday(self, holiday_id: int) -> Optional[Shift]:
        return next(iter(self.session.filter(Shift, lambda s: s.holiday_id == holiday_id)), None)

    def overlapping(self, start: datetime, end: datetime) -> List[Shift]:
        return self.session.filter(Shift, lambda s: s.start < end and s.end > start)


class AssignmentRepository(Repository[ShiftAssignment]):
    model = ShiftAssignment

    def for_shift(self, shift_id: int) -> List[ShiftAssignment]:
        assignments = self.session.filter(ShiftAssignment, lambda a: a.shift_id == shift_id)
        return sorted(assignments, key=lambda a: (a.assigned_at, a.id))

    def for_worker(self, worker_id: int) -> List[ShiftAssignment]:
        return self.session.filter(ShiftAssignment, lambda a: a.worker_id == worker_id)

    def find(self, shift_id: int, worker_id: int) -> Optional[ShiftAssignment]:
        matches = self.session.filter(
            ShiftAssignment, lambda a: a.shift_id == shift_id and a.worker_id == worker_id
        )
        return matches[0] if matches else None

    def count(self, shift_id: int) -> int:
        return len(self.session.filter(ShiftAssignment, lambda a: a.shift_id == shift_id))

    def clear_shift(self, shift_id: int) -> int:
        removed = self.for_shift(shift_id)
        for assignment in removed:
            self.session.delete(assignment)
        return len(removed)


class HolidayRepository(Repository[Holiday]):
    model = Holiday

    def on_date(self, day: date) -> List[Holiday]:
        return self.session.filter(Holiday, lambda h: h.matches(day))

    def exact(self, day: date) -> Optional[Holiday]:
        matches = self.session.filter(Holiday, lambda h: not h.is_recurrent and h.date == day)
        return matches[0] if matches else None


class RateRepository(Repository[HourlyRate]):
    model = HourlyRate

    def by_period(self, period_type) -> Optional[HourlyRate]:
        matches = self.session.filter(HourlyRate, lambda r: r.period_type == period_type)
        return matches[0] if matches else None


class DiscountRepository(Repository[Discount]):
    model = Discount

    def active(self) -> Optional[Discount]:
        active = self.session.filter(Discount, lambda d: d.is_active)
        if not active:
            return None
        return max(active, key=lambda d: (d.valid_from, d.id))


class ExternalHoursRepository(Repository[ExternalHours]):
    model = ExternalHours

    def between(self, start: date, end: date) -> List[ExternalHours]:
        """Entries dated in the half-open range [start, end)."""
        return self.session.filter(ExternalHours, lambda e: start <= e.date < end)
