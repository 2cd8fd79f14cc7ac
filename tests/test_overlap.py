from __future__ import annotations

import pytest

from oncall.core.errors import OverlapConflict
from oncall.models import Shift, ShiftAssignment
from oncall.services.overlap import OverlapValidator, intervals_overlap

from conftest import MONDAY, at


def test_intervals_overlap_is_half_open():
    assert intervals_overlap(at(MONDAY, 8), at(MONDAY, 12), at(MONDAY, 11), at(MONDAY, 14))
    assert intervals_overlap(at(MONDAY, 8), at(MONDAY, 20), at(MONDAY, 10), at(MONDAY, 11))
    # touching end-to-start is not an overlap
    assert not intervals_overlap(at(MONDAY, 8), at(MONDAY, 12), at(MONDAY, 12), at(MONDAY, 16))
    assert not intervals_overlap(at(MONDAY, 12), at(MONDAY, 16), at(MONDAY, 8), at(MONDAY, 12))


def _held_shift(session, worker, start, end, legacy=False):
    shift = Shift(start=start, end=end, required_doctors=2)
    session.add(shift)
    if legacy:
        shift.worker_id = worker.id
    else:
        session.add(ShiftAssignment(shift_id=shift.id, worker_id=worker.id))
    return shift


def test_find_overlap_through_assignments(session, workers):
    ana = workers[0]
    held = _held_shift(session, ana, at(MONDAY, 8), at(MONDAY, 16))
    validator = OverlapValidator(session)

    assert validator.find_overlap(ana.id, at(MONDAY, 15), at(MONDAY, 20)) is held
    assert validator.find_overlap(ana.id, at(MONDAY, 16), at(MONDAY, 20)) is None
    assert validator.find_overlap(workers[1].id, at(MONDAY, 9), at(MONDAY, 10)) is None


def test_find_overlap_honours_legacy_reference(session, workers):
    bruno = workers[1]
    held = _held_shift(session, bruno, at(MONDAY, 20), at(MONDAY, 23), legacy=True)
    assert OverlapValidator(session).find_overlap(bruno.id, at(MONDAY, 22), at(MONDAY, 23)) is held


def test_excluded_shift_is_ignored(session, workers):
    ana = workers[0]
    held = _held_shift(session, ana, at(MONDAY, 8), at(MONDAY, 16))
    validator = OverlapValidator(session)
    assert validator.find_overlap(ana.id, at(MONDAY, 9), at(MONDAY, 17), exclude_shift_id=held.id) is None


def test_ensure_free_rejects(session, workers):
    ana = workers[0]
    held = _held_shift(session, ana, at(MONDAY, 8), at(MONDAY, 16))
    with pytest.raises(OverlapConflict) as excinfo:
        OverlapValidator(session).ensure_free([workers[1].id, ana.id], at(MONDAY, 10), at(MONDAY, 12))
    assert excinfo.value.details == {"worker_id": ana.id, "shift_id": held.id}
