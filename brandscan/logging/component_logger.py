"""Component-bound logging helpers.

``ComponentLogger`` fixes the ``LogComponent`` and the request context for a
block of code, and forwards to the process-wide ``ServiceLogger``.
``ComponentLogger.timed()`` wraps an awaited operation and records how long
it took.
"""

import time
from typing import Any, Optional

from brandscan.logging.models import LogComponent, LogLevel
from brandscan.logging.service_logger import get_logger


class ComponentLogger:
    """Logs on behalf of one component and, optionally, one request.

    Usage::

        log = ComponentLogger(LogComponent.API, request_id=request_id)
        await log.info("Analysis requested", data={"brands": 2})
    """

    def __init__(
        self,
        component: LogComponent,
        request_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> None:
        self.component = component
        self.request_id = request_id
        self.user_id = user_id

    async def _emit(self, level: LogLevel, message: str, **kwargs: Any) -> None:
        # Explicit request_id / user_id arguments override the bound ones
        kwargs.setdefault("request_id", self.request_id)
        kwargs.setdefault("user_id", self.user_id)
        await get_logger().log(level, self.component, message, **kwargs)

    async def debug(self, message: str, **kwargs: Any) -> None:
        await self._emit(LogLevel.DEBUG, message, **kwargs)

    async def info(self, message: str, **kwargs: Any) -> None:
        await self._emit(LogLevel.INFO, message, **kwargs)

    async def warning(self, message: str, **kwargs: Any) -> None:
        await self._emit(LogLevel.WARNING, message, **kwargs)

    async def error(
        self, message: str, error: Optional[Exception] = None, **kwargs: Any
    ) -> None:
        await self._emit(LogLevel.ERROR, message, error=error, **kwargs)

    def timed(self, message: str) -> "TimedOperation":
        """Time an ``async with`` block::

            async with log.timed("Analyzing post"):
                result = await analyze_post(url, brands, context)
        """
        return TimedOperation(self, message)


class TimedOperation:
    """Async context manager produced by :meth:`ComponentLogger.timed`.

    Writes ``Starting: <message>`` at DEBUG on entry, then either
    ``Completed: <message>`` at INFO or ``Failed: <message>`` at ERROR with
    ``duration_ms`` on exit.  Exceptions are re-raised.
    """

    def __init__(self, logger: ComponentLogger, message: str) -> None:
        self.logger = logger
        self.message = message
        self._started = 0.0

    async def __aenter__(self) -> "TimedOperation":
        self._started = time.monotonic()
        await self.logger.debug(f"Starting: {self.message}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        elapsed_ms = int((time.monotonic() - self._started) * 1000)
        if exc_type is None:
            await self.logger.info(f"Completed: {self.message}", duration_ms=elapsed_ms)
        else:
            await self.logger.error(
                f"Failed: {self.message}",
                error=exc_val if isinstance(exc_val, Exception) else None,
                duration_ms=elapsed_ms,
            )
        return False
