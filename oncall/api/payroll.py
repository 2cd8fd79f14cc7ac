from __future__ import annotations

from fastapi import APIRouter, Depends

from oncall.core.config import settings
from oncall.db.repositories import RateRepository
from oncall.db.session import get_session
from oncall.payroll import PayrollService, WorkerStatement, calculate_shift_payment
from oncall.payroll.statements import build_rate_table
from oncall.schemas.common import (
    BreakdownRead,
    PayrollReportRead,
    ShiftPaymentPreview,
    ShiftPaymentRead,
    WorkerStatementRead,
)
from oncall.utils.dates import month_bounds, to_local

router = APIRouter()


def _get_session():
    with get_session() as session:
        yield session


def _statement(statement: WorkerStatement) -> WorkerStatementRead:
    return WorkerStatementRead(
        worker_id=statement.worker_id,
        worker_name=statement.worker_name,
        has_discount=statement.has_discount,
        total_hours=statement.total_hours,
        shift_count=statement.shift_count,
        fixed_shifts=statement.fixed_shifts,
        rotating_shifts=statement.rotating_shifts,
        breakdown=[BreakdownRead.model_validate(b) for b in statement.breakdown.values()],
        shift_payment=statement.shift_payment,
        external_hours=statement.external_hours,
        external_payment=statement.external_payment,
        gross=statement.gross,
        discount_applied=statement.discount_applied,
        net=statement.net,
    )


@router.get("/monthly", response_model=PayrollReportRead)
def monthly_report(year: int, month: int, session=Depends(_get_session)) -> PayrollReportRead:
    report = PayrollService(session).monthly(year, month)
    return PayrollReportRead(
        start=report.start,
        end=report.end,
        total_shifts=report.total_shifts,
        assigned_shifts=report.assigned_shifts,
        available_shifts=report.available_shifts,
        total_hours=report.total_hours,
        total_payment=report.total_payment,
        statements=[_statement(s) for s in report.statements],
    )


@router.get("/workers/{worker_id}", response_model=WorkerStatementRead)
def worker_statement(worker_id: int, year: int, month: int, session=Depends(_get_session)) -> WorkerStatementRead:
    start, end = month_bounds(year, month)
    return _statement(PayrollService(session).worker_statement(worker_id, start, end))


@router.post("/preview", response_model=ShiftPaymentRead)
def preview(payload: ShiftPaymentPreview, session=Depends(_get_session)) -> ShiftPaymentRead:
    rates = build_rate_table(RateRepository(session).all())
    payment = calculate_shift_payment(
        rates,
        to_local(payload.start),
        to_local(payload.end),
        payload.holiday_or_weekend,
        settings.day_start_hour,
        settings.day_end_hour,
    )
    return ShiftPaymentRead(
        start=payment.start,
        end=payment.end,
        total_hours=payment.total_hours,
        total_amount=payment.total_amount,
        breakdown=[BreakdownRead.model_validate(b) for b in payment.entries()],
    )
