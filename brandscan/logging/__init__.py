"""Structured logging for the analyzer service."""
from brandscan.logging.models import LogLevel, LogComponent, LogEntry
from brandscan.logging.service_logger import (
    ServiceLogger,
    init_logger,
    get_logger,
    reset_logger,
)
from brandscan.logging.component_logger import ComponentLogger, TimedOperation

__all__ = [
    "LogLevel", "LogComponent", "LogEntry",
    "ServiceLogger", "init_logger", "get_logger", "reset_logger",
    "ComponentLogger", "TimedOperation",
]
