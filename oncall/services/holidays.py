"""Keeps shifts consistent with holiday records.

A holiday reclassifies the weekday shifts that start on its date and, when it
asks for staff, owns one full-day rotating shift that workers can claim.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from oncall.core.errors import Conflict, DuplicateHoliday, InvalidRequest, NotFound
from oncall.db.repositories import AssignmentRepository, HolidayRepository, ShiftRepository
from oncall.db.session import InMemorySession
from oncall.models import AssignmentStatus, DayCategory, Holiday, Shift, ShiftType
from oncall.services.assignments import refresh_flags
from oncall.services.calendar import HolidayCalendar
from oncall.services.overlap import OverlapValidator
from oncall.utils.dates import day_bounds, is_weekend

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    reclassified: int = 0
    reverted: int = 0
    linked_shift_id: Optional[int] = None
    linked_action: str = "none"


class HolidayService:
    def __init__(self, session: InMemorySession) -> None:
        self.session = session
        self.holidays = HolidayRepository(session)
        self.shifts = ShiftRepository(session)
        self.assignments = AssignmentRepository(session)
        self.overlaps = OverlapValidator(session)

    def get(self, holiday_id: int) -> Holiday:
        holiday = self.holidays.get(holiday_id)
        if holiday is None:
            raise NotFound("Holiday", [holiday_id])
        return holiday

    def _ensure_unique(self, holiday: Holiday) -> None:
        if holiday.is_recurrent:
            return
        existing = self.holidays.exact(holiday.date)
        if existing is not None and existing is not holiday:
            raise DuplicateHoliday(
                f"A holiday already exists on {holiday.date.isoformat()}",
                holiday_id=existing.id,
            )

    # shift reclassification --------------------------------------------
    def _reclassify(self, holiday: Holiday) -> int:
        touched = 0
        for shift in self.shifts.starting_on(holiday.matches):
            if shift.day_category == DayCategory.WEEKDAY and not is_weekend(shift.start.date()):
                shift.day_category = DayCategory.HOLIDAY
                touched += 1
        return touched

    def _revert(self, holiday: Holiday, remaining: HolidayCalendar) -> int:
        touched = 0
        for shift in self.shifts.starting_on(holiday.matches):
            if shift.holiday_id == holiday.id or shift.day_category != DayCategory.HOLIDAY:
                continue
            day = shift.start.date()
            if is_weekend(day) or remaining.is_holiday(day):
                continue
            shift.day_category = DayCategory.WEEKDAY
            touched += 1
        return touched

    # linked shift -------------------------------------------------------
    def _drop_linked_shift(self, holiday: Holiday) -> Optional[int]:
        linked = self.shifts.linked_to_holiday(holiday.id)
        if linked is None:
            return None
        self.assignments.clear_shift(linked.id)
        self.shifts.delete(linked)
        return linked.id

    def _sync_linked_shift(self, holiday: Holiday, result: SyncResult) -> None:
        if holiday.required_doctors == 0:
            dropped = self._drop_linked_shift(holiday)
            if dropped is not None:
                result.linked_shift_id, result.linked_action = dropped, "deleted"
            return

        start, end = day_bounds(holiday.date)
        category = HolidayCalendar(self.holidays.all()).classify(holiday.date)
        notes = f"Holiday shift: {holiday.name}"
        linked = self.shifts.linked_to_holiday(holiday.id)

        if linked is None:
            linked = Shift(
                start=start,
                end=end,
                type=ShiftType.ROTATING,
                day_category=category,
                self_assignable=True,
                assignment_status=AssignmentStatus.AVAILABLE,
                required_doctors=holiday.required_doctors,
                is_available=True,
                holiday_id=holiday.id,
                notes=notes,
            )
            self.shifts.add(linked)
            result.linked_shift_id, result.linked_action = linked.id, "created"
            return

        holders = [a.worker_id for a in self.assignments.for_shift(linked.id)]
        if len(holders) > holiday.required_doctors:
            raise Conflict(
                f"Holiday shift already has {len(holders)} worker(s); unassign before lowering the requirement",
                shift_id=linked.id,
                assigned=len(holders),
            )
        if (linked.start, linked.end) != (start, end):
            self.overlaps.ensure_free(holders, start, end, exclude_shift_id=linked.id)
        linked.start, linked.end = start, end
        linked.day_category = category
        linked.required_doctors = holiday.required_doctors
        linked.notes = notes
        refresh_flags(linked, len(holders))
        result.linked_shift_id, result.linked_action = linked.id, "updated"

    # holiday mutations --------------------------------------------------
    def create(
        self,
        date: date,
        name: str,
        is_recurrent: bool = False,
        required_doctors: int = 0,
    ) -> Tuple[Holiday, SyncResult]:
        if required_doctors < 0:
            raise InvalidRequest("required_doctors cannot be negative")
        holiday = Holiday(date=date, name=name, is_recurrent=is_recurrent, required_doctors=required_doctors)
        result = SyncResult()
        with self.session.transaction():
            self._ensure_unique(holiday)
            self.holidays.add(holiday)
            result.reclassified = self._reclassify(holiday)
            self._sync_linked_shift(holiday, result)

        logger.info(
            "Holiday created",
            extra={"holiday_id": holiday.id, "reclassified": result.reclassified, "linked": result.linked_action},
        )
        return holiday, result

    def update(self, holiday_id: int, **changes: Any) -> Tuple[Holiday, SyncResult]:
        allowed = {"date", "name", "is_recurrent", "required_doctors"}
        unknown = set(changes) - allowed
        if unknown:
            raise InvalidRequest(f"Unknown holiday fields: {', '.join(sorted(unknown))}")
        if (changes.get("required_doctors") or 0) < 0:
            raise InvalidRequest("required_doctors cannot be negative")

        result = SyncResult()
        with self.session.transaction():
            holiday = self.get(holiday_id)
            previous = dataclasses.replace(holiday)
            for key, value in changes.items():
                if value is not None:
                    setattr(holiday, key, value)
            self._ensure_unique(holiday)
            self.holidays.add(holiday)

            moved = (previous.date, previous.is_recurrent) != (holiday.date, holiday.is_recurrent)
            if moved:
                # the updated holiday stays in the calendar so dates it still covers are not reverted
                result.reverted = self._revert(previous, HolidayCalendar(self.holidays.all()))
                result.reclassified = self._reclassify(holiday)
            self._sync_linked_shift(holiday, result)

        logger.info(
            "Holiday updated",
            extra={
                "holiday_id": holiday.id,
                "reverted": result.reverted,
                "reclassified": result.reclassified,
                "linked": result.linked_action,
            },
        )
        return holiday, result

    def delete(self, holiday_id: int) -> SyncResult:
        result = SyncResult()
        with self.session.transaction():
            holiday = self.get(holiday_id)
            dropped = self._drop_linked_shift(holiday)
            if dropped is not None:
                result.linked_shift_id, result.linked_action = dropped, "deleted"
            others = HolidayCalendar(h for h in self.holidays.all() if h.id != holiday.id)
            result.reverted = self._revert(holiday, others)
            self.holidays.delete(holiday)

        logger.info("Holiday deleted", extra={"holiday_id": holiday_id, "reverted": result.reverted})
        return result

    def bulk_create(self, drafts: Sequence[Dict[str, Any]]) -> List[Tuple[Holiday, SyncResult]]:
        with self.session.transaction():
            return [self.create(**draft) for draft in drafts]
