from __future__ import annotations

from fastapi import APIRouter, Depends

from oncall.db.session import get_session
from oncall.schemas.common import (
    BatchAssignmentRequest,
    ShiftBulkCreate,
    ShiftCreateRequest,
    ShiftIds,
    ShiftListResponse,
    ShiftRead,
    ShiftResponse,
    ShiftUpdate,
    WorkerAction,
)
from oncall.services.assignments import ShiftService
from oncall.utils.dates import parse_instant

router = APIRouter()


def _get_session():
    with get_session() as session:
        yield session


def _read(service: ShiftService, shift) -> ShiftRead:
    return ShiftRead.model_validate(service.describe(shift))


@router.post("", response_model=ShiftResponse, status_code=201)
def create_shift(payload: ShiftCreateRequest, session=Depends(_get_session)) -> ShiftResponse:
    service = ShiftService(session)
    shift = service.create_shift(**payload.dict())
    return ShiftResponse(shift=_read(service, shift))


@router.get("/available", response_model=ShiftListResponse)
def available_shifts(
    worker_id: int | None = None,
    start: str | None = None,
    end: str | None = None,
    session=Depends(_get_session),
) -> ShiftListResponse:
    views = ShiftService(session).list_available(worker_id, parse_instant(start), parse_instant(end))
    return ShiftListResponse(shifts=[ShiftRead.model_validate(v) for v in views])


@router.post("/bulk", response_model=ShiftListResponse, status_code=201)
def bulk_create(payload: ShiftBulkCreate, session=Depends(_get_session)) -> ShiftListResponse:
    service = ShiftService(session)
    created = service.bulk_create([draft.dict() for draft in payload.shifts], admin_id=payload.admin_id)
    return ShiftListResponse(
        shifts=[_read(service, shift) for shift in created],
        message=f"{len(created)} shift(s) created",
    )


@router.post("/bulk-delete")
def bulk_delete(payload: ShiftIds, session=Depends(_get_session)) -> dict:
    deleted = ShiftService(session).bulk_delete(payload.ids)
    return {"deleted": deleted, "message": f"{deleted} shift(s) deleted"}


@router.post("/batch-assign", response_model=ShiftListResponse)
def batch_assign(payload: BatchAssignmentRequest, session=Depends(_get_session)) -> ShiftListResponse:
    service = ShiftService(session)
    updated = service.batch_assign(
        [(item.shift_id, item.worker_ids) for item in payload.assignments],
        admin_id=payload.admin_id,
    )
    return ShiftListResponse(
        shifts=[_read(service, shift) for shift in updated],
        message=f"{len(updated)} shift(s) updated",
    )


@router.get("/{shift_id}", response_model=ShiftResponse)
def get_shift(shift_id: int, session=Depends(_get_session)) -> ShiftResponse:
    service = ShiftService(session)
    return ShiftResponse(shift=_read(service, service.get(shift_id)))


@router.patch("/{shift_id}", response_model=ShiftResponse)
def update_shift(shift_id: int, payload: ShiftUpdate, session=Depends(_get_session)) -> ShiftResponse:
    service = ShiftService(session)
    changes = payload.dict(exclude_unset=True)
    admin_id = changes.pop("admin_id", None)
    shift = service.update_shift(shift_id, admin_id=admin_id, **changes)
    return ShiftResponse(shift=_read(service, shift))


@router.delete("/{shift_id}")
def delete_shift(shift_id: int, session=Depends(_get_session)) -> dict:
    ShiftService(session).delete_shift(shift_id)
    return {"message": "Shift deleted"}


@router.post("/{shift_id}/self-assign", response_model=ShiftResponse)
def self_assign(shift_id: int, payload: WorkerAction, session=Depends(_get_session)) -> ShiftResponse:
    service = ShiftService(session)
    shift = service.self_assign(shift_id, payload.worker_id)
    view = _read(service, shift)
    if view.slots_available == 0:
        message = "Shift assigned; it is now fully staffed"
    else:
        message = f"Shift assigned; {view.slots_available} slot(s) left"
    return ShiftResponse(shift=view, message=message)


@router.post("/{shift_id}/self-unassign", response_model=ShiftResponse)
def self_unassign(shift_id: int, payload: WorkerAction, session=Depends(_get_session)) -> ShiftResponse:
    service = ShiftService(session)
    shift = service.self_unassign(shift_id, payload.worker_id)
    return ShiftResponse(shift=_read(service, shift), message="Shift released")
