"""Logging data models: LogLevel, LogComponent, LogEntry."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class LogLevel(Enum):
    """Severity of a structured log entry.

    Values mirror the stdlib ``logging`` numbers, so thresholds compare on
    ``.value``.
    """

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50

    @property
    def name_str(self) -> str:
        return self.name.lower()

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        """Look up a level by case-insensitive name (``"info"`` -> INFO)."""
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown log level: {name!r}") from None


class LogComponent(Enum):
    """Parts of the service that write structured entries."""

    API = "api"
    AUTH = "auth"
    ANALYZER = "analyzer"
    DATABASE = "database"
    STARTUP = "startup"


_READABLE_LEVELS = {
    LogLevel.DEBUG: "[DEBUG]",
    LogLevel.INFO: "[INFO]",
    LogLevel.WARNING: "[WARN]",
    LogLevel.ERROR: "[ERROR]",
    LogLevel.CRITICAL: "[CRIT]",
}


@dataclass
class LogEntry:
    """One structured log event.

    ``request_id`` ties together the entries written while serving a single
    analysis request; ``user_id`` is the authenticated caller, when known.
    """

    timestamp: datetime
    level: LogLevel
    component: LogComponent
    message: str

    request_id: Optional[str] = None
    user_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    error_type: Optional[str] = None
    error_traceback: Optional[str] = None
    duration_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Row for the ``service_logs`` table."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.value,
            "level_name": self.level.name_str,
            "component": self.component.value,
            "message": self.message,
            "request_id": self.request_id,
            "user_id": self.user_id,
            "data": self.data,
            "error_type": self.error_type,
            "error_traceback": self.error_traceback,
            "duration_ms": self.duration_ms,
        }

    def to_json(self) -> str:
        # default=str covers datetimes and other values passed in ``data``
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)

    def to_readable(self) -> str:
        """Single console line, e.g. ``[INFO] [12:00:00] [api] Started (5ms)``."""
        indicator = _READABLE_LEVELS.get(self.level, "[???]")
        line = (
            f"{indicator} [{self.timestamp:%H:%M:%S}] "
            f"[{self.component.value}] {self.message}"
        )
        if self.duration_ms:
            line += f" ({self.duration_ms}ms)"
        return line
