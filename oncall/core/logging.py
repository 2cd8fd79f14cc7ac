from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the package logger."""
    package_logger = logging.getLogger("oncall")
    package_logger.setLevel(level.upper())
    if any(getattr(h, "_oncall_handler", False) for h in package_logger.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._oncall_handler = True  # type: ignore[attr-defined]
    package_logger.addHandler(handler)
