from .enums import AssignmentStatus, DayCategory, PeriodType, Role, ShiftType
from .tables import (
    Discount,
    ExternalHours,
    Holiday,
    HourlyRate,
    Shift,
    ShiftAssignment,
    Worker,
)

__all__ = [
    "AssignmentStatus",
    "DayCategory",
    "PeriodType",
    "Role",
    "ShiftType",
    "Discount",
    "ExternalHours",
    "Holiday",
    "HourlyRate",
    "Shift",
    "ShiftAssignment",
    "Worker",
]
