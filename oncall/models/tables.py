from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from oncall.utils.dates import now_local

from .enums import AssignmentStatus, DayCategory, PeriodType, Role, ShiftType


@dataclass
class Worker:
    id: int = 0
    name: str = ""
    role: Role = Role.DOCTOR
    specialty: Optional[str] = None
    is_active: bool = True
    has_discount: bool = False


@dataclass
class Holiday:
    id: int = 0
    date: date = field(default_factory=date.today)
    name: str = ""
    is_recurrent: bool = False
    required_doctors: int = 0

    def matches(self, day: date) -> bool:
        if self.is_recurrent:
            return (self.date.month, self.date.day) == (day.month, day.day)
        return self.date == day


@dataclass
class Shift:
    id: int = 0
    start: datetime = field(default_factory=datetime.now)
    end: datetime = field(default_factory=datetime.now)
    type: ShiftType = ShiftType.FIXED
    day_category: DayCategory = DayCategory.WEEKDAY
    self_assignable: bool = False
    assignment_status: AssignmentStatus = AssignmentStatus.AVAILABLE
    required_doctors: int = 1
    is_available: bool = True
    worker_id: Optional[int] = None
    holiday_id: Optional[int] = None
    notes: Optional[str] = None
    created_by_admin_id: Optional[int] = None
    created_at: datetime = field(default_factory=now_local)


@dataclass
class ShiftAssignment:
    id: int = 0
    shift_id: int = 0
    worker_id: int = 0
    is_self_assigned: bool = False
    assigned_at: datetime = field(default_factory=now_local)
    assigned_by: Optional[int] = None


@dataclass
class HourlyRate:
    id: int = 0
    period_type: PeriodType = PeriodType.WEEKDAY_DAY
    rate: Decimal = Decimal("0")


@dataclass
class Discount:
    id: int = 0
    amount: Decimal = Decimal("0")
    is_active: bool = True
    valid_from: datetime = field(default_factory=now_local)


@dataclass
class ExternalHours:
    id: int = 0
    worker_id: int = 0
    date: date = field(default_factory=date.today)
    hours: Decimal = Decimal("0")
    rate: Decimal = Decimal("0")
    description: str = ""
