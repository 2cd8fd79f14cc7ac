from fastapi import APIRouter

from . import calendar, holidays, payroll, shifts

router = APIRouter()

router.include_router(calendar.router, prefix="/calendar", tags=["calendar"])
router.include_router(shifts.router, prefix="/shifts", tags=["shifts"])
router.include_router(holidays.router, prefix="/holidays", tags=["holidays"])
router.include_router(payroll.router, prefix="/payroll", tags=["payroll"])
