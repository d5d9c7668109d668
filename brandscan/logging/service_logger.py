"""Structured service logger.

Each entry is appended as one JSON line to the files under ``log_dir``:

    service.log   every entry at or above ``min_level``
    errors.log    ERROR and CRITICAL
    debug.log     DEBUG

Entries at or above ``supabase_min_level`` are also inserted into the
``service_logs`` table through the database client, in background tasks that
``flush()`` waits for.  The last ``max_recent`` entries stay in memory for
``get_recent()``.

Request context (``request_id``, ``user_id``) travels with each call instead
of living on the logger, so concurrent requests never see each other's ids.
"""

import asyncio
import logging
import traceback
from collections import deque
from pathlib import Path
from typing import Any, Callable, Deque, Dict, List, Optional, Set, Tuple

import aiofiles

from brandscan.logging.models import LogComponent, LogEntry, LogLevel
from brandscan.utils import utc_now

_fallback = logging.getLogger(__name__)

# (file name, which entries it receives)
_LOG_FILES: Tuple[Tuple[str, Callable[[LogEntry], bool]], ...] = (
    ("service.log", lambda entry: True),
    ("errors.log", lambda entry: entry.level.value >= LogLevel.ERROR.value),
    ("debug.log", lambda entry: entry.level is LogLevel.DEBUG),
)


class ServiceLogger:
    """Writes ``LogEntry`` records to JSON-lines files and Supabase.

    Args:
        log_dir: Directory for the log files; created if missing.
        supabase_client: Object with an async ``save_log_entry(dict)``
            (``SupabaseDB``), or ``None`` for file-only logging.
        min_level: Entries below this level are dropped entirely.
        supabase_min_level: Entries below this level stay out of Supabase.
        max_recent: Size of the in-memory buffer behind ``get_recent()``.
    """

    def __init__(
        self,
        log_dir: str = "logs",
        supabase_client: Any = None,
        min_level: LogLevel = LogLevel.DEBUG,
        supabase_min_level: LogLevel = LogLevel.INFO,
        max_recent: int = 1000,
    ) -> None:
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.supabase = supabase_client
        self.min_level = min_level
        self.supabase_min_level = supabase_min_level

        self._recent: Deque[LogEntry] = deque(maxlen=max_recent)
        # Strong references so pending inserts are not garbage-collected
        self._inserts: Set["asyncio.Task[None]"] = set()

    async def log(
        self,
        level: LogLevel,
        component: LogComponent,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        error: Optional[Exception] = None,
        duration_ms: Optional[int] = None,
        request_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> None:
        if level.value < self.min_level.value:
            return

        entry = LogEntry(
            timestamp=utc_now(),
            level=level,
            component=component,
            message=message,
            request_id=request_id,
            user_id=user_id,
            data=data or {},
            duration_ms=duration_ms,
        )
        if error is not None:
            entry.error_type = type(error).__name__
            entry.error_traceback = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )

        self._recent.append(entry)
        await self._append_to_files(entry)

        if self.supabase is not None and level.value >= self.supabase_min_level.value:
            task = asyncio.create_task(self._insert(entry))
            self._inserts.add(task)
            task.add_done_callback(self._inserts.discard)

    async def debug(self, component: LogComponent, message: str, **kwargs: Any) -> None:
        await self.log(LogLevel.DEBUG, component, message, **kwargs)

    async def info(self, component: LogComponent, message: str, **kwargs: Any) -> None:
        await self.log(LogLevel.INFO, component, message, **kwargs)

    async def warning(self, component: LogComponent, message: str, **kwargs: Any) -> None:
        await self.log(LogLevel.WARNING, component, message, **kwargs)

    async def error(self, component: LogComponent, message: str, **kwargs: Any) -> None:
        await self.log(LogLevel.ERROR, component, message, **kwargs)

    async def critical(self, component: LogComponent, message: str, **kwargs: Any) -> None:
        await self.log(LogLevel.CRITICAL, component, message, **kwargs)

    def get_recent(
        self,
        limit: int = 20,
        level: Optional[LogLevel] = None,
        component: Optional[LogComponent] = None,
        request_id: Optional[str] = None,
    ) -> List[LogEntry]:
        """Return up to *limit* buffered entries, oldest first, matching every filter given."""
        matches = [
            entry
            for entry in self._recent
            if (level is None or entry.level is level)
            and (component is None or entry.component is component)
            and (request_id is None or entry.request_id == request_id)
        ]
        return matches[-limit:]

    async def flush(self) -> None:
        """Wait for outstanding Supabase inserts; call before shutdown."""
        if self._inserts:
            await asyncio.gather(*self._inserts, return_exceptions=True)
            self._inserts.clear()

    async def _append_to_files(self, entry: LogEntry) -> None:
        line = entry.to_json() + "\n"
        for name, accepts in _LOG_FILES:
            if not accepts(entry):
                continue
            async with aiofiles.open(self.log_dir / name, "a", encoding="utf-8") as fh:
                await fh.write(line)

    async def _insert(self, entry: LogEntry) -> None:
        try:
            await self.supabase.save_log_entry(entry.to_dict())
        except Exception as exc:
            _fallback.warning("Could not store log entry in Supabase: %s", exc)


# ======================================================================
# PROCESS-WIDE INSTANCE
# ======================================================================

_logger: Optional[ServiceLogger] = None


def init_logger(
    log_dir: str = "logs",
    supabase_client: Any = None,
    min_level: LogLevel = LogLevel.DEBUG,
    supabase_min_level: LogLevel = LogLevel.INFO,
) -> ServiceLogger:
    """Create the process-wide ``ServiceLogger`` and return it."""
    global _logger
    _logger = ServiceLogger(
        log_dir=log_dir,
        supabase_client=supabase_client,
        min_level=min_level,
        supabase_min_level=supabase_min_level,
    )
    return _logger


def get_logger() -> ServiceLogger:
    """Return the process-wide ``ServiceLogger``.

    Raises:
        RuntimeError: If ``init_logger()`` has not been called yet.
    """
    if _logger is None:
        raise RuntimeError("Logger not initialized. Call init_logger() first.")
    return _logger


def reset_logger() -> None:
    global _logger
    _logger = None
