"""Date helpers.

Shift instants are stored as naive local wall-clock datetimes in the
configured timezone; the payroll day window is read straight off ``.hour``.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

import pytz

from oncall.core.config import settings
from oncall.core.errors import InvalidRequest

_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def local_timezone():
    return pytz.timezone(settings.timezone)


def to_local(value: datetime) -> datetime:
    """Aware datetimes become naive local time; naive ones are assumed local."""
    if value.tzinfo is None:
        return value
    tz = local_timezone()
    return tz.normalize(value.astimezone(tz)).replace(tzinfo=None)


def now_local() -> datetime:
    return to_local(datetime.now(pytz.utc))


def parse_day(value: str) -> date:
    text = (value or "").strip()
    try:
        if _DAY_RE.match(text):
            return date.fromisoformat(text)
        return to_local(datetime.fromisoformat(text)).date()
    except ValueError:
        raise InvalidRequest(f"Malformed date: {value!r}", value=value) from None


def parse_instant(value: Optional[str]) -> Optional[datetime]:
    """``YYYY-MM-DD`` means local midnight; anything else is an ISO timestamp."""
    if not value:
        return None
    text = value.strip()
    if _DAY_RE.match(text):
        return datetime.combine(parse_day(text), time.min)
    try:
        return to_local(datetime.fromisoformat(text))
    except ValueError:
        raise InvalidRequest(f"Malformed timestamp: {value!r}", value=value) from None


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    if not 1 <= month <= 12:
        raise InvalidRequest(f"Invalid month: {month}", month=month)
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return start, end
