from __future__ import annotations

from enum import Enum


class DayCategory(str, Enum):
    WEEKDAY = "WEEKDAY"
    WEEKEND = "WEEKEND"
    HOLIDAY = "HOLIDAY"


class AssignmentStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    SELF_ASSIGNED = "SELF_ASSIGNED"
    ADMIN_ASSIGNED = "ADMIN_ASSIGNED"


class ShiftType(str, Enum):
    FIXED = "FIXED"
    ROTATING = "ROTATING"


class PeriodType(str, Enum):
    WEEKDAY_DAY = "WEEKDAY_DAY"
    WEEKDAY_NIGHT = "WEEKDAY_NIGHT"
    WEEKEND_HOLIDAY_DAY = "WEEKEND_HOLIDAY_DAY"
    WEEKEND_HOLIDAY_NIGHT = "WEEKEND_HOLIDAY_NIGHT"


class Role(str, Enum):
    ADMIN = "ADMIN"
    DOCTOR = "DOCTOR"
