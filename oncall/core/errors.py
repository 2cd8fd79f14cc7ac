"""Domain errors surfaced to callers.

Each error carries an HTTP status and a stable ``code`` so the API layer can
render it without knowing the individual classes.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional


class OnCallError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code, **self.details}


class InvalidRequest(OnCallError):
    status_code = 400
    code = "INVALID_REQUEST"


class NotFound(OnCallError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, entity: str, ids: Iterable[Any], message: Optional[str] = None) -> None:
        missing = list(ids)
        text = message or f"{entity} not found: {', '.join(str(i) for i in missing)}"
        super().__init__(text, entity=entity, missing=missing)


class Conflict(OnCallError):
    status_code = 409
    code = "CONFLICT"


class OverlapConflict(Conflict):
    code = "OVERLAPPING_SHIFT"


class ShiftFull(Conflict):
    code = "SHIFT_FULL"


class AlreadyAssigned(Conflict):
    code = "ALREADY_ASSIGNED"


class NotAssigned(Conflict):
    code = "NOT_ASSIGNED"


class ShiftLocked(Conflict):
    code = "SHIFT_LOCKED"


class NotSelfAssignable(Conflict):
    code = "NOT_SELF_ASSIGNABLE"


class DuplicateHoliday(Conflict):
    code = "DUPLICATE_HOLIDAY"


class IntegrityError(Conflict):
    """Raised by the store when a write would break a constraint."""

    code = "INTEGRITY_ERROR"


class ConfigurationError(OnCallError):
    status_code = 422
    code = "CONFIGURATION_ERROR"
