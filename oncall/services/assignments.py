"""Shift assignment state machine.

AVAILABLE is the initial state (no or partial staffing). Admin writes move a
shift to ADMIN_ASSIGNED (or back to AVAILABLE when emptied) and are never
blocked. A worker taking the last open slot moves it to SELF_ASSIGNED, which
locks the shift against further worker-initiated changes until an admin
rewrites it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from oncall.core.config import settings
from oncall.core.errors import (
    AlreadyAssigned,
    InvalidRequest,
    NotAssigned,
    NotFound,
    NotSelfAssignable,
    ShiftFull,
    ShiftLocked,
)
from oncall.db.repositories import AssignmentRepository, ShiftRepository, WorkerRepository
from oncall.db.session import InMemorySession
from oncall.models import AssignmentStatus, DayCategory, Shift, ShiftAssignment, ShiftType
from oncall.services.calendar import classify_with_session
from oncall.services.overlap import OverlapValidator
from oncall.utils.dates import now_local, to_local

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "start",
    "end",
    "type",
    "day_category",
    "self_assignable",
    "assignment_status",
    "required_doctors",
    "worker_id",
    "worker_ids",
    "notes",
}


@dataclass
class AssignedWorker:
    worker_id: int
    is_self_assigned: bool
    assigned_at: datetime
    assigned_by: Optional[int] = None


@dataclass
class ShiftView:
    """A shift plus the computed staffing fields handed to collaborators."""

    id: int
    start: datetime
    end: datetime
    type: ShiftType
    day_category: DayCategory
    self_assignable: bool
    assignment_status: AssignmentStatus
    required_doctors: int
    is_available: bool
    worker_id: Optional[int]
    holiday_id: Optional[int]
    notes: Optional[str]
    assigned_count: int
    slots_available: int
    workers: List[AssignedWorker] = field(default_factory=list)


def _check_interval(start: datetime, end: datetime) -> None:
    if end <= start:
        raise InvalidRequest("Shift end must be after its start", start=start.isoformat(), end=end.isoformat())


def _check_worker_list(worker_ids: Sequence[int], required_doctors: int) -> None:
    if len(set(worker_ids)) != len(worker_ids):
        raise InvalidRequest("The same worker cannot be assigned twice to one shift", worker_ids=list(worker_ids))
    if len(worker_ids) > required_doctors:
        raise InvalidRequest(
            f"Shift needs {required_doctors} worker(s) but {len(worker_ids)} were given",
            required_doctors=required_doctors,
        )


def default_self_assignable(shift_type: ShiftType, day_category: DayCategory) -> bool:
    return shift_type == ShiftType.ROTATING and day_category != DayCategory.WEEKDAY


def refresh_flags(shift: Shift, assigned_count: int, was_locked: bool = False) -> None:
    """Recompute ``is_available`` and reopen a locked shift that lost staff.

    ``was_locked`` covers callers that already rewrote the status of a
    SELF_ASSIGNED shift before the flags are refreshed.
    """
    locked = was_locked or shift.assignment_status == AssignmentStatus.SELF_ASSIGNED
    if locked and assigned_count < shift.required_doctors:
        if shift.assignment_status == AssignmentStatus.SELF_ASSIGNED:
            shift.assignment_status = AssignmentStatus.AVAILABLE
        shift.self_assignable = default_self_assignable(shift.type, shift.day_category)
    shift.is_available = assigned_count < shift.required_doctors


class ShiftService:
    def __init__(self, session: InMemorySession) -> None:
        self.session = session
        self.shifts = ShiftRepository(session)
        self.assignments = AssignmentRepository(session)
        self.workers = WorkerRepository(session)
        self.overlaps = OverlapValidator(session)

    # lookups ----------------------------------------------------------
    def get(self, shift_id: int) -> Shift:
        shift = self.shifts.get(shift_id)
        if shift is None:
            raise NotFound("Shift", [shift_id])
        return shift

    def describe(self, shift: Shift) -> ShiftView:
        rows = self.assignments.for_shift(shift.id)
        count = len(rows)
        return ShiftView(
            id=shift.id,
            start=shift.start,
            end=shift.end,
            type=shift.type,
            day_category=shift.day_category,
            self_assignable=shift.self_assignable,
            assignment_status=shift.assignment_status,
            required_doctors=shift.required_doctors,
            is_available=shift.is_available,
            worker_id=shift.worker_id,
            holiday_id=shift.holiday_id,
            notes=shift.notes,
            assigned_count=count,
            slots_available=max(0, shift.required_doctors - count),
            workers=[AssignedWorker(a.worker_id, a.is_self_assigned, a.assigned_at, a.assigned_by) for a in rows],
        )

    def _ensure_workers(self, worker_ids: Iterable[int]) -> None:
        wanted = list(dict.fromkeys(worker_ids))
        if not wanted:
            return
        found = {w.id for w in self.workers.active_doctors(wanted)}
        missing = [wid for wid in wanted if wid not in found]
        if missing:
            raise NotFound("Worker", missing, message=f"Workers not found or inactive: {', '.join(map(str, missing))}")

    # admin transitions -------------------------------------------------
    def _assign_as_admin(self, shift: Shift, worker_ids: Sequence[int], admin_id: Optional[int]) -> None:
        self.assignments.clear_shift(shift.id)
        for worker_id in worker_ids:
            self.assignments.add(
                ShiftAssignment(shift_id=shift.id, worker_id=worker_id, is_self_assigned=False, assigned_by=admin_id)
            )
        shift.worker_id = worker_ids[0] if worker_ids else None
        shift.assignment_status = AssignmentStatus.ADMIN_ASSIGNED if worker_ids else AssignmentStatus.AVAILABLE
        shift.is_available = len(worker_ids) < shift.required_doctors

    def create_shift(
        self,
        start: datetime,
        end: datetime,
        type: ShiftType,
        day_category: Optional[DayCategory] = None,
        self_assignable: Optional[bool] = None,
        required_doctors: Optional[int] = None,
        worker_ids: Optional[List[int]] = None,
        worker_id: Optional[int] = None,
        notes: Optional[str] = None,
        admin_id: Optional[int] = None,
    ) -> Shift:
        with self.session.transaction():
            shift = self._insert_shift(
                start,
                end,
                type,
                day_category=day_category,
                self_assignable=self_assignable,
                required_doctors=required_doctors,
                worker_ids=worker_ids,
                worker_id=worker_id,
                notes=notes,
                admin_id=admin_id,
            )
        self._log_created(shift)
        return shift

    def _insert_shift(
        self,
        start: datetime,
        end: datetime,
        type: ShiftType,
        day_category: Optional[DayCategory] = None,
        self_assignable: Optional[bool] = None,
        required_doctors: Optional[int] = None,
        worker_ids: Optional[List[int]] = None,
        worker_id: Optional[int] = None,
        notes: Optional[str] = None,
        admin_id: Optional[int] = None,
    ) -> Shift:
        """Validate and store one shift; the caller owns the transaction."""
        start, end = to_local(start), to_local(end)
        _check_interval(start, end)
        required = required_doctors or settings.default_required_doctors
        workers = list(worker_ids) if worker_ids else ([worker_id] if worker_id else [])
        _check_worker_list(workers, required)

        self._ensure_workers(workers)
        category = day_category or classify_with_session(self.session, start.date())
        self.overlaps.ensure_free(workers, start, end)
        shift = Shift(
            start=start,
            end=end,
            type=type,
            day_category=category,
            self_assignable=default_self_assignable(type, category) if self_assignable is None else self_assignable,
            required_doctors=required,
            notes=notes,
            created_by_admin_id=admin_id,
        )
        self.shifts.add(shift)
        self._assign_as_admin(shift, workers, admin_id)
        return shift

    def _log_created(self, shift: Shift) -> None:
        logger.info(
            "Shift created",
            extra={
                "shift_id": shift.id,
                "day_category": shift.day_category.value,
                "workers": [a.worker_id for a in self.assignments.for_shift(shift.id)],
            },
        )

    def update_shift(self, shift_id: int, admin_id: Optional[int] = None, **changes: Any) -> Shift:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise InvalidRequest(f"Unknown shift fields: {', '.join(sorted(unknown))}")

        if changes.get("worker_ids") is not None:
            workers: Optional[List[int]] = list(changes["worker_ids"])
        elif "worker_id" in changes:
            workers = [changes["worker_id"]] if changes["worker_id"] else []
        else:
            workers = None

        with self.session.transaction():
            shift = self.get(shift_id)
            was_locked = shift.assignment_status == AssignmentStatus.SELF_ASSIGNED
            start = to_local(changes["start"]) if changes.get("start") else shift.start
            end = to_local(changes["end"]) if changes.get("end") else shift.end
            _check_interval(start, end)

            required = changes.get("required_doctors") or shift.required_doctors
            current = [a.worker_id for a in self.assignments.for_shift(shift.id)]
            _check_worker_list(workers if workers is not None else current, required)

            if workers:
                self._ensure_workers(workers)
            self.overlaps.ensure_free(workers if workers is not None else current, start, end, exclude_shift_id=shift.id)

            if changes.get("day_category"):
                category = changes["day_category"]
            elif changes.get("start"):
                category = classify_with_session(self.session, start.date())
            else:
                category = shift.day_category

            shift.start, shift.end = start, end
            shift.day_category = category
            shift.required_doctors = required
            if changes.get("type"):
                shift.type = changes["type"]
            if changes.get("self_assignable") is not None:
                shift.self_assignable = changes["self_assignable"]
            if "notes" in changes:
                shift.notes = changes["notes"]

            if workers is not None:
                self._assign_as_admin(shift, workers, admin_id)
            if changes.get("assignment_status"):
                shift.assignment_status = changes["assignment_status"]
            # an explicit self_assignable in the same request wins over the reopen default
            reopen = was_locked and changes.get("self_assignable") is None
            refresh_flags(shift, self.assignments.count(shift.id), was_locked=reopen)

        logger.info("Shift updated", extra={"shift_id": shift.id, "fields": sorted(changes)})
        return shift

    def delete_shift(self, shift_id: int) -> None:
        with self.session.transaction():
            shift = self.get(shift_id)
            self.assignments.clear_shift(shift.id)
            self.shifts.delete(shift)
        logger.info("Shift deleted", extra={"shift_id": shift_id})

    def bulk_create(self, drafts: Sequence[Dict[str, Any]], admin_id: Optional[int] = None) -> List[Shift]:
        with self.session.transaction():
            created = [self._insert_shift(**draft, admin_id=admin_id) for draft in drafts]
        for shift in created:
            self._log_created(shift)
        logger.info("Bulk created shifts", extra={"count": len(created)})
        return created

    def bulk_delete(self, shift_ids: Sequence[int]) -> int:
        if not shift_ids:
            raise InvalidRequest("A list of shift ids is required")
        with self.session.transaction():
            missing = [sid for sid in shift_ids if self.shifts.get(sid) is None]
            if missing:
                raise NotFound("Shift", missing)
            for shift_id in dict.fromkeys(shift_ids):
                self.assignments.clear_shift(shift_id)
            for shift_id in dict.fromkeys(shift_ids):
                self.shifts.delete(self.shifts.get(shift_id))
        logger.info("Bulk deleted shifts", extra={"count": len(shift_ids)})
        return len(set(shift_ids))

    def batch_assign(
        self, entries: Sequence[Tuple[int, Sequence[int]]], admin_id: Optional[int] = None
    ) -> List[Shift]:
        if not entries:
            raise InvalidRequest("At least one assignment is required")
        shift_ids = [shift_id for shift_id, _ in entries]
        if len(set(shift_ids)) != len(shift_ids):
            raise InvalidRequest("Each shift may appear only once in a batch", shift_ids=shift_ids)
        with self.session.transaction():
            missing = [shift_id for shift_id, _ in entries if self.shifts.get(shift_id) is None]
            if missing:
                raise NotFound("Shift", missing)
            for shift_id, worker_ids in entries:
                _check_worker_list(list(worker_ids), self.shifts.get(shift_id).required_doctors)
            self._ensure_workers(wid for _, worker_ids in entries for wid in worker_ids)
            targets = [(self.shifts.get(shift_id), list(worker_ids)) for shift_id, worker_ids in entries]
            locked = {shift.id for shift, _ in targets if shift.assignment_status == AssignmentStatus.SELF_ASSIGNED}
            # vacate every target first so swaps inside one batch do not collide
            for shift, _ in targets:
                self.assignments.clear_shift(shift.id)
                shift.worker_id = None
            for shift, worker_ids in targets:
                self.overlaps.ensure_free(worker_ids, shift.start, shift.end, exclude_shift_id=shift.id)
                self._assign_as_admin(shift, worker_ids, admin_id)
                refresh_flags(shift, len(worker_ids), was_locked=shift.id in locked)

        logger.info("Batch assignment applied", extra={"shifts": [s.id for s, _ in targets]})
        return [shift for shift, _ in targets]

    # worker transitions ------------------------------------------------
    def self_assign(self, shift_id: int, worker_id: int) -> Shift:
        with self.session.transaction():
            shift = self.get(shift_id)
            self._ensure_workers([worker_id])

            if not shift.self_assignable:
                if shift.assignment_status == AssignmentStatus.SELF_ASSIGNED:
                    raise ShiftLocked("Shift is fully staffed and locked", shift_id=shift.id)
                raise NotSelfAssignable("Shift is not open for self-assignment", shift_id=shift.id)
            if shift.type != ShiftType.ROTATING:
                raise NotSelfAssignable("Only rotating shifts can be self-assigned", shift_id=shift.id)
            if shift.day_category == DayCategory.WEEKDAY:
                raise NotSelfAssignable("Only weekend or holiday shifts can be self-assigned", shift_id=shift.id)
            if self.assignments.find(shift.id, worker_id) is not None:
                raise AlreadyAssigned("Worker already holds this shift", shift_id=shift.id, worker_id=worker_id)

            count = self.assignments.count(shift.id)
            if count >= shift.required_doctors:
                raise ShiftFull("Shift already has all required workers", shift_id=shift.id)
            self.overlaps.ensure_free([worker_id], shift.start, shift.end, exclude_shift_id=shift.id)

            self.assignments.add(ShiftAssignment(shift_id=shift.id, worker_id=worker_id, is_self_assigned=True))
            if shift.worker_id is None:
                shift.worker_id = worker_id
            last_slot = count + 1 == shift.required_doctors
            if last_slot:
                shift.assignment_status = AssignmentStatus.SELF_ASSIGNED
                shift.self_assignable = False
                shift.is_available = False
            else:
                shift.assignment_status = AssignmentStatus.AVAILABLE
                shift.is_available = True

        logger.info(
            "Shift self-assigned",
            extra={"shift_id": shift.id, "worker_id": worker_id, "slot": count + 1, "locked": last_slot},
        )
        return shift

    def self_unassign(self, shift_id: int, worker_id: int) -> Shift:
        with self.session.transaction():
            shift = self.get(shift_id)
            if shift.assignment_status == AssignmentStatus.SELF_ASSIGNED:
                raise ShiftLocked("Locked shifts can only be changed by an admin", shift_id=shift.id)
            assignment = self.assignments.find(shift.id, worker_id)
            if assignment is None and shift.worker_id != worker_id:
                raise NotAssigned("Worker does not hold this shift", shift_id=shift.id, worker_id=worker_id)
            if assignment is not None:
                self.assignments.delete(assignment)

            remaining = self.assignments.for_shift(shift.id)
            shift.worker_id = remaining[0].worker_id if remaining else None
            shift.assignment_status = AssignmentStatus.AVAILABLE
            shift.is_available = True

        logger.info("Shift self-unassigned", extra={"shift_id": shift.id, "worker_id": worker_id})
        return shift

    def list_available(
        self,
        worker_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[ShiftView]:
        start = start or now_local()
        candidates = [
            s for s in self.shifts.all()
            if s.self_assignable
            and s.type == ShiftType.ROTATING
            and s.day_category != DayCategory.WEEKDAY
            and s.start >= start
            and (end is None or s.start <= end)
        ]
        views = []
        for shift in sorted(candidates, key=lambda s: (s.start, s.id)):
            view = self.describe(shift)
            if view.slots_available <= 0:
                continue
            if worker_id is not None and any(w.worker_id == worker_id for w in view.workers):
                continue
            views.append(view)
        return views
