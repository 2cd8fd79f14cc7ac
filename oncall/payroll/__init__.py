from .engine import calculate_shift_payment, normalize_end, period_for
from .statements import PayrollReport, PayrollService, WorkerStatement, compute_statements

__all__ = [
    "calculate_shift_payment",
    "normalize_end",
    "period_for",
    "PayrollReport",
    "PayrollService",
    "WorkerStatement",
    "compute_statements",
]
