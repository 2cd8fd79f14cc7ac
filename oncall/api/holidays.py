from __future__ import annotations

from fastapi import APIRouter, Depends

from oncall.db.session import get_session
from oncall.schemas.common import HolidayBulkCreate, HolidayCreate, HolidayRead, HolidayResponse, HolidayUpdate, SyncRead
from oncall.services.holidays import HolidayService

router = APIRouter()


def _get_session():
    with get_session() as session:
        yield session


def _response(holiday, result) -> HolidayResponse:
    return HolidayResponse(
        holiday=HolidayRead.model_validate(holiday) if holiday is not None else None,
        sync=SyncRead.model_validate(result),
    )


@router.post("", response_model=HolidayResponse, status_code=201)
def create_holiday(payload: HolidayCreate, session=Depends(_get_session)) -> HolidayResponse:
    holiday, result = HolidayService(session).create(**payload.dict())
    return _response(holiday, result)


@router.post("/bulk", response_model=list[HolidayResponse], status_code=201)
def bulk_create(payload: HolidayBulkCreate, session=Depends(_get_session)) -> list[HolidayResponse]:
    created = HolidayService(session).bulk_create([draft.dict() for draft in payload.holidays])
    return [_response(holiday, result) for holiday, result in created]


@router.get("/{holiday_id}", response_model=HolidayRead)
def get_holiday(holiday_id: int, session=Depends(_get_session)) -> HolidayRead:
    return HolidayRead.model_validate(HolidayService(session).get(holiday_id))


@router.patch("/{holiday_id}", response_model=HolidayResponse)
def update_holiday(holiday_id: int, payload: HolidayUpdate, session=Depends(_get_session)) -> HolidayResponse:
    holiday, result = HolidayService(session).update(holiday_id, **payload.dict(exclude_unset=True))
    return _response(holiday, result)


@router.delete("/{holiday_id}", response_model=HolidayResponse)
def delete_holiday(holiday_id: int, session=Depends(_get_session)) -> HolidayResponse:
    result = HolidayService(session).delete(holiday_id)
    return _response(None, result)
