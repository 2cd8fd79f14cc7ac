from __future__ import annotations

import datetime as dt
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from oncall.models import AssignmentStatus, DayCategory, PeriodType, ShiftType


class ShiftCreate(BaseModel):
    start: datetime
    end: datetime
    type: ShiftType
    day_category: DayCategory | None = None
    self_assignable: bool | None = None
    required_doctors: int | None = Field(default=None, ge=1)
    worker_id: int | None = None
    worker_ids: list[int] | None = None
    notes: str | None = None


class ShiftCreateRequest(ShiftCreate):
    admin_id: int | None = None


class ShiftBulkCreate(BaseModel):
    shifts: list[ShiftCreate]
    admin_id: int | None = None


class ShiftUpdate(BaseModel):
    start: datetime | None = None
    end: datetime | None = None
    type: ShiftType | None = None
    day_category: DayCategory | None = None
    self_assignable: bool | None = None
    assignment_status: AssignmentStatus | None = None
    required_doctors: int | None = Field(default=None, ge=1)
    worker_id: int | None = None
    worker_ids: list[int] | None = None
    notes: str | None = None
    admin_id: int | None = None


class ShiftIds(BaseModel):
    ids: list[int]


class BatchAssignmentItem(BaseModel):
    shift_id: int
    worker_ids: list[int] = Field(default_factory=list)


class BatchAssignmentRequest(BaseModel):
    assignments: list[BatchAssignmentItem]
    admin_id: int | None = None


class WorkerAction(BaseModel):
    worker_id: int


class AssignedWorkerRead(BaseModel):
    worker_id: int
    is_self_assigned: bool
    assigned_at: datetime
    assigned_by: int | None = None

    class Config:
        from_attributes = True


class ShiftRead(BaseModel):
    id: int
    start: datetime
    end: datetime
    type: ShiftType
    day_category: DayCategory
    self_assignable: bool
    assignment_status: AssignmentStatus
    required_doctors: int
    is_available: bool
    worker_id: int | None = None
    holiday_id: int | None = None
    notes: str | None = None
    assigned_count: int
    slots_available: int
    workers: list[AssignedWorkerRead] = Field(default_factory=list)

    class Config:
        from_attributes = True


class ShiftResponse(BaseModel):
    shift: ShiftRead
    message: str | None = None


class ShiftListResponse(BaseModel):
    shifts: list[ShiftRead]
    message: str | None = None


class HolidayCreate(BaseModel):
    date: dt.date
    name: str
    is_recurrent: bool = False
    required_doctors: int = Field(default=0, ge=0)


class HolidayBulkCreate(BaseModel):
    holidays: list[HolidayCreate]


class HolidayUpdate(BaseModel):
    date: dt.date | None = None
    name: str | None = None
    is_recurrent: bool | None = None
    required_doctors: int | None = Field(default=None, ge=0)


class HolidayRead(BaseModel):
    id: int
    date: dt.date
    name: str
    is_recurrent: bool
    required_doctors: int

    class Config:
        from_attributes = True


class SyncRead(BaseModel):
    reclassified: int
    reverted: int
    linked_shift_id: int | None = None
    linked_action: str

    class Config:
        from_attributes = True


class HolidayResponse(BaseModel):
    holiday: HolidayRead | None = None
    sync: SyncRead


class DayCategoryRead(BaseModel):
    day: date
    day_category: DayCategory


class BreakdownRead(BaseModel):
    period_type: PeriodType
    hours: Decimal
    amount: Decimal
    rate: Decimal | None = None

    class Config:
        from_attributes = True


class ShiftPaymentPreview(BaseModel):
    start: datetime
    end: datetime
    holiday_or_weekend: bool = False


class ShiftPaymentRead(BaseModel):
    start: datetime
    end: datetime
    total_hours: Decimal
    total_amount: Decimal
    breakdown: list[BreakdownRead]


class WorkerStatementRead(BaseModel):
    worker_id: int
    worker_name: str
    has_discount: bool
    total_hours: Decimal
    shift_count: int
    fixed_shifts: int
    rotating_shifts: int
    breakdown: list[BreakdownRead]
    shift_payment: Decimal
    external_hours: Decimal
    external_payment: Decimal
    gross: Decimal
    discount_applied: Decimal
    net: Decimal


class PayrollReportRead(BaseModel):
    start: datetime
    end: datetime
    total_shifts: int
    assigned_shifts: int
    available_shifts: int
    total_hours: Decimal
    total_payment: Decimal
    statements: list[WorkerStatementRead]
