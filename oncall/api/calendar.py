from __future__ import annotations

from fastapi import APIRouter, Depends

from oncall.db.session import get_session
from oncall.schemas.common import DayCategoryRead
from oncall.services.calendar import classify_with_session
from oncall.utils.dates import parse_day

router = APIRouter()


def _get_session():
    with get_session() as session:
        yield session


@router.get("/classify", response_model=DayCategoryRead)
def classify(day: str, session=Depends(_get_session)) -> DayCategoryRead:
    target = parse_day(day)
    return DayCategoryRead(day=target, day_category=classify_with_session(session, target))
