from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _default_rates() -> Dict[str, Decimal]:
    return {
        "WEEKDAY_DAY": Decimal("1000"),
        "WEEKDAY_NIGHT": Decimal("1500"),
        "WEEKEND_HOLIDAY_DAY": Decimal("1500"),
        "WEEKEND_HOLIDAY_NIGHT": Decimal("2000"),
    }


@dataclass
class Settings:
    app_name: str = "On-Call Shifts & Payroll"
    timezone: str = field(default_factory=lambda: os.getenv("ONCALL_TIMEZONE", "America/Argentina/Buenos_Aires"))
    # payroll day window, local hours [start, end)
    day_start_hour: int = 9
    day_end_hour: int = 21
    default_required_doctors: int = 1
    default_rates: Dict[str, Decimal] = field(default_factory=_default_rates)
    log_level: str = field(default_factory=lambda: os.getenv("ONCALL_LOG_LEVEL", "INFO"))
    seed_demo_data: bool = field(default_factory=lambda: _env_flag("ONCALL_SEED_DEMO"))


@lru_cache
def get_settings(**overrides: Any) -> Settings:
    base = Settings()
    for key, value in overrides.items():
        setattr(base, key, value)
    return base


settings = get_settings()
