"""
Tracker logging facade.

Outputs JSON-formatted log lines for the diagnostics the tracker core
surfaces to its host: failing plugin hooks, throwing context generators
and filters, discarded context providers.

The facade keeps its own verbosity (``LogLevel``) independent of the
standard ``logging`` level so a host can silence the tracker without
touching its own logging configuration. ``INFO`` is the most verbose
level, matching the levels plugins expect.

Usage:
    from trackercore.logger import LOG, LogLevel

    LOG.set_log_level(LogLevel.DEBUG)
    LOG.error("Error adding plugin contexts", exc)
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Optional

# Structured logger for tracker diagnostics
_events_logger = logging.getLogger("trackercore.events")
_events_logger.setLevel(logging.DEBUG)

# Default handler outputs JSON to stdout (for container log pickup)
if not _events_logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    _events_logger.addHandler(handler)


class LogLevel(IntEnum):
    """Tracker log verbosity. Higher values log more."""

    NONE = 0
    ERROR = 1
    WARN = 2
    DEBUG = 3
    INFO = 4

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        """Resolve a config name (``"warn"``, ``"debug"``...) to a level."""
        return cls[name.strip().upper()]


_STDLIB_LEVELS = {
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARN: logging.WARNING,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
}


class TrackerLogger:
    """
    Structured logger used by the tracker core and handed to plugins.

    Each entry includes:
    - timestamp, level, message
    - service name
    - error details when an exception is attached
    - any extra params passed by the caller
    """

    def __init__(
        self,
        level: LogLevel = LogLevel.WARN,
        service_name: str = "trackercore",
        log_format: str = "json",
    ):
        self.level = level
        self.service_name = service_name
        self.log_format = log_format
        self._logger = _events_logger

    def set_log_level(self, level: LogLevel) -> None:
        self.level = LogLevel(level)

    def _emit(
        self,
        level: LogLevel,
        message: str,
        error: Optional[BaseException] = None,
        extra_params: tuple[Any, ...] = (),
    ) -> None:
        if self.level < level:
            return

        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.name.lower(),
            "service": self.service_name,
            "message": message,
        }
        if error is not None:
            entry["error"] = str(error)
            entry["error_type"] = type(error).__name__
        if extra_params:
            entry["params"] = list(extra_params)

        if self.log_format == "text":
            line = f"[{self.service_name}] {level.name} {message}"
            if error is not None:
                line += f": {entry['error_type']}: {entry['error']}"
            if extra_params:
                line += " " + " ".join(str(p) for p in extra_params)
        else:
            line = json.dumps(entry, default=str)

        self._logger.log(_STDLIB_LEVELS[level], line)

    def info(self, message: str, *extra_params: Any) -> None:
        self._emit(LogLevel.INFO, message, extra_params=extra_params)

    def debug(self, message: str, *extra_params: Any) -> None:
        self._emit(LogLevel.DEBUG, message, extra_params=extra_params)

    def warn(
        self, message: str, error: Optional[BaseException] = None, *extra_params: Any
    ) -> None:
        self._emit(LogLevel.WARN, message, error, extra_params)

    def error(
        self, message: str, error: Optional[BaseException] = None, *extra_params: Any
    ) -> None:
        self._emit(LogLevel.ERROR, message, error, extra_params)


# Shared facade instance
LOG = TrackerLogger()
