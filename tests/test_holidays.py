from __future__ import annotations

from datetime import date, timedelta

import pytest

from oncall.core.errors import Conflict, DuplicateHoliday, InvalidRequest
from oncall.db.repositories import AssignmentRepository, ShiftRepository
from oncall.models import DayCategory, Holiday, Shift, ShiftType
from oncall.services.assignments import ShiftService
from oncall.services.holidays import HolidayService

from conftest import MONDAY, SATURDAY, at

TUESDAY = MONDAY + timedelta(days=1)


@pytest.fixture
def shifts(session, workers):
    return ShiftService(session)


@pytest.fixture
def holidays(session, workers):
    return HolidayService(session)


def test_create_reclassifies_weekday_shifts_on_that_date(shifts, holidays):
    monday = shifts.create_shift(at(MONDAY, 9), at(MONDAY, 17), ShiftType.FIXED)
    tuesday = shifts.create_shift(at(TUESDAY, 9), at(TUESDAY, 17), ShiftType.FIXED)

    holiday, result = holidays.create(MONDAY, "Carnival")
    assert result.reclassified == 1
    assert result.linked_action == "none"
    assert monday.day_category == DayCategory.HOLIDAY
    assert tuesday.day_category == DayCategory.WEEKDAY


def test_new_shift_on_holiday_is_classified_holiday(shifts, holidays):
    holidays.create(MONDAY, "Carnival")
    shift = shifts.create_shift(at(MONDAY, 9), at(MONDAY, 21), ShiftType.ROTATING)
    assert shift.day_category == DayCategory.HOLIDAY
    assert shift.self_assignable is True


def test_weekend_shift_stays_weekend(shifts, holidays):
    saturday = shifts.create_shift(at(SATURDAY, 9), at(SATURDAY, 21), ShiftType.ROTATING)
    _, result = holidays.create(SATURDAY, "Saturday holiday")
    assert result.reclassified == 0
    assert saturday.day_category == DayCategory.WEEKEND


def test_deleting_weekend_holiday_leaves_weekend(shifts, holidays):
    saturday = shifts.create_shift(at(SATURDAY, 9), at(SATURDAY, 21), ShiftType.ROTATING)
    holiday, _ = holidays.create(SATURDAY, "Saturday holiday")

    result = holidays.delete(holiday.id)
    assert result.reverted == 0
    assert saturday.day_category == DayCategory.WEEKEND


def test_moving_holiday_off_a_weekend(shifts, holidays):
    saturday = shifts.create_shift(at(SATURDAY, 9), at(SATURDAY, 21), ShiftType.ROTATING)
    monday = shifts.create_shift(at(MONDAY, 9), at(MONDAY, 17), ShiftType.FIXED)
    holiday, _ = holidays.create(SATURDAY, "Saturday holiday")

    _, result = holidays.update(holiday.id, date=MONDAY)
    assert (result.reverted, result.reclassified) == (0, 1)
    assert saturday.day_category == DayCategory.WEEKEND
    assert monday.day_category == DayCategory.HOLIDAY


def test_toggling_recurrence_on_same_date_changes_nothing(shifts, holidays):
    monday = shifts.create_shift(at(MONDAY, 9), at(MONDAY, 17), ShiftType.FIXED)
    holiday, _ = holidays.create(MONDAY, "Carnival")

    _, result = holidays.update(holiday.id, is_recurrent=True)
    assert (result.reverted, result.reclassified) == (0, 0)
    assert monday.day_category == DayCategory.HOLIDAY


def test_dropping_recurrence_reverts_other_years_only(shifts, holidays):
    this_year = shifts.create_shift(at(MONDAY, 9), at(MONDAY, 17), ShiftType.FIXED)
    # 2027-03-02 is a Tuesday
    next_year = shifts.create_shift(at(date(2027, 3, 2), 9), at(date(2027, 3, 2), 17), ShiftType.FIXED)
    holiday, created = holidays.create(MONDAY, "Carnival", is_recurrent=True)
    assert created.reclassified == 2

    _, result = holidays.update(holiday.id, is_recurrent=False)
    assert (result.reverted, result.reclassified) == (1, 0)
    assert this_year.day_category == DayCategory.HOLIDAY
    assert next_year.day_category == DayCategory.WEEKDAY


def test_recurrent_holiday_matches_any_year(shifts, holidays):
    monday = shifts.create_shift(at(MONDAY, 9), at(MONDAY, 17), ShiftType.FIXED)
    holidays.create(date(2000, MONDAY.month, MONDAY.day), "Anniversary", is_recurrent=True)
    assert monday.day_category == DayCategory.HOLIDAY


def test_required_staff_creates_claimable_linked_shift(session, shifts, holidays, workers):
    holiday, result = holidays.create(MONDAY, "Carnival", required_doctors=2)

    assert result.linked_action == "created"
    linked = ShiftRepository(session).linked_to_holiday(holiday.id)
    assert linked.id == result.linked_shift_id
    assert (linked.start, linked.end) == (at(MONDAY, 0), at(TUESDAY, 0))
    assert linked.type == ShiftType.ROTATING
    assert linked.day_category == DayCategory.HOLIDAY
    assert linked.self_assignable is True
    assert linked.required_doctors == 2
    assert linked.notes == "Holiday shift: Carnival"

    shifts.self_assign(linked.id, workers[0].id)
    assert shifts.describe(linked).slots_available == 1


def test_update_to_zero_staff_deletes_linked_shift(session, holidays):
    holiday, created = holidays.create(MONDAY, "Carnival", required_doctors=1)
    _, result = holidays.update(holiday.id, required_doctors=0)
    assert result.linked_action == "deleted"
    assert result.linked_shift_id == created.linked_shift_id
    assert session.get(Shift, created.linked_shift_id) is None


def test_lowering_staff_below_holders_conflicts(shifts, holidays, workers):
    holiday, result = holidays.create(MONDAY, "Carnival", required_doctors=2)
    shifts.self_assign(result.linked_shift_id, workers[0].id)
    shifts.self_assign(result.linked_shift_id, workers[1].id)

    with pytest.raises(Conflict):
        holidays.update(holiday.id, required_doctors=1)
    assert holiday.required_doctors == 2


def test_raising_staff_reopens_linked_shift(session, shifts, holidays, workers):
    holiday, result = holidays.create(MONDAY, "Carnival", required_doctors=1)
    linked = session.get(Shift, result.linked_shift_id)
    shifts.self_assign(linked.id, workers[0].id)
    assert linked.self_assignable is False

    _, update = holidays.update(holiday.id, required_doctors=2)
    assert update.linked_action == "updated"
    assert linked.required_doctors == 2
    assert linked.self_assignable is True
    assert linked.is_available is True


def test_linked_shift_is_claimable_again_after_admin_clears_it(session, shifts, holidays, workers):
    ana, bruno = workers[:2]
    _, result = holidays.create(MONDAY, "Carnival", required_doctors=1)
    linked = session.get(Shift, result.linked_shift_id)
    shifts.self_assign(linked.id, ana.id)

    shifts.batch_assign([(linked.id, [])])
    assert linked.self_assignable is True
    shifts.self_assign(linked.id, bruno.id)
    assert [a.worker_id for a in AssignmentRepository(session).for_shift(linked.id)] == [bruno.id]


def test_moving_holiday_reverts_old_date_and_reclassifies_new(session, shifts, holidays):
    monday = shifts.create_shift(at(MONDAY, 9), at(MONDAY, 17), ShiftType.FIXED)
    tuesday = shifts.create_shift(at(TUESDAY, 9), at(TUESDAY, 17), ShiftType.FIXED)
    holiday, created = holidays.create(MONDAY, "Carnival", required_doctors=1)

    _, result = holidays.update(holiday.id, date=TUESDAY)
    assert (result.reverted, result.reclassified) == (1, 1)
    assert monday.day_category == DayCategory.WEEKDAY
    assert tuesday.day_category == DayCategory.HOLIDAY

    linked = session.get(Shift, created.linked_shift_id)
    assert linked.start == at(TUESDAY, 0)
    assert linked.day_category == DayCategory.HOLIDAY


def test_delete_reverts_shifts_and_drops_linked(session, shifts, holidays, workers):
    monday = shifts.create_shift(at(MONDAY, 9), at(MONDAY, 17), ShiftType.FIXED)
    holiday, created = holidays.create(MONDAY, "Carnival", required_doctors=2)
    shifts.self_assign(created.linked_shift_id, workers[0].id)

    result = holidays.delete(holiday.id)
    assert result.reverted == 1
    assert result.linked_action == "deleted"
    assert monday.day_category == DayCategory.WEEKDAY
    assert session.get(Shift, created.linked_shift_id) is None
    assert AssignmentRepository(session).for_worker(workers[0].id) == []
    assert session.all(Holiday) == []


def test_delete_keeps_date_covered_by_another_holiday(shifts, holidays):
    monday = shifts.create_shift(at(MONDAY, 9), at(MONDAY, 17), ShiftType.FIXED)
    exact, _ = holidays.create(MONDAY, "Carnival")
    holidays.create(date(2000, MONDAY.month, MONDAY.day), "Anniversary", is_recurrent=True)

    result = holidays.delete(exact.id)
    assert result.reverted == 0
    assert monday.day_category == DayCategory.HOLIDAY


def test_duplicate_exact_date_is_rejected(holidays):
    holidays.create(MONDAY, "Carnival")
    with pytest.raises(DuplicateHoliday):
        holidays.create(MONDAY, "Carnival again")
    # a recurring entry on the same month/day is allowed
    holidays.create(date(2000, MONDAY.month, MONDAY.day), "Anniversary", is_recurrent=True)


def test_negative_staff_is_rejected(holidays):
    with pytest.raises(InvalidRequest):
        holidays.create(MONDAY, "Carnival", required_doctors=-1)


def test_bulk_create_is_atomic(session, shifts, holidays):
    monday = shifts.create_shift(at(MONDAY, 9), at(MONDAY, 17), ShiftType.FIXED)
    drafts = [
        {"date": MONDAY, "name": "Carnival"},
        {"date": TUESDAY, "name": "Carnival Tuesday"},
        {"date": MONDAY, "name": "Duplicate"},
    ]
    with pytest.raises(DuplicateHoliday):
        holidays.bulk_create(drafts)
    assert session.all(Holiday) == []
    assert monday.day_category == DayCategory.WEEKDAY
