from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from oncall.core.errors import OverlapConflict
from oncall.db.repositories import AssignmentRepository, ShiftRepository
from oncall.db.session import InMemorySession
from oncall.models import Shift

logger = logging.getLogger(__name__)


def intervals_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open intervals [start, end) intersect."""
    return start_a < end_b and end_a > start_b


class OverlapValidator:
    def __init__(self, session: InMemorySession) -> None:
        self.shifts = ShiftRepository(session)
        self.assignments = AssignmentRepository(session)

    def find_overlap(
        self,
        worker_id: int,
        start: datetime,
        end: datetime,
        exclude_shift_id: Optional[int] = None,
    ) -> Optional[Shift]:
        held = {a.shift_id for a in self.assignments.for_worker(worker_id)}
        for shift in self.shifts.overlapping(start, end):
            if shift.id == exclude_shift_id:
                continue
            if shift.id in held or shift.worker_id == worker_id:
                return shift
        return None

    def ensure_free(
        self,
        worker_ids: Iterable[int],
        start: datetime,
        end: datetime,
        exclude_shift_id: Optional[int] = None,
    ) -> None:
        for worker_id in worker_ids:
            clash = self.find_overlap(worker_id, start, end, exclude_shift_id)
            if clash is not None:
                logger.warning(
                    "Overlap rejected",
                    extra={"worker_id": worker_id, "clashing_shift_id": clash.id},
                )
                raise OverlapConflict(
                    f"Worker {worker_id} already holds a shift in that interval",
                    worker_id=worker_id,
                    shift_id=clash.id,
                )
