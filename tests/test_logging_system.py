"""Tests for the logging package: models, ServiceLogger, ComponentLogger, TimedOperation."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from brandscan.logging import (
    ComponentLogger,
    LogComponent,
    LogEntry,
    LogLevel,
    ServiceLogger,
    TimedOperation,
    get_logger,
    init_logger,
    reset_logger,
)


# ---------------------------------------------------------------------------
# Fixed timestamp used across all tests for determinism
# ---------------------------------------------------------------------------
FIXED_TS = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _read_lines(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


# ===================================================================
# LogLevel tests
# ===================================================================


class TestLogLevel:
    """Verify LogLevel enum values, ordering, and helpers."""

    def test_numeric_values(self) -> None:
        """Each level should have its expected numeric value."""
        assert [lvl.value for lvl in LogLevel] == [10, 20, 30, 40, 50]

    def test_name_str_returns_lowercase(self) -> None:
        assert LogLevel.WARNING.name_str == "warning"

    @pytest.mark.parametrize("name", ["info", "INFO", " Info "])
    def test_from_name(self, name) -> None:
        """from_name should accept any casing and surrounding whitespace."""
        assert LogLevel.from_name(name) is LogLevel.INFO

    def test_from_name_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            LogLevel.from_name("verbose")


# ===================================================================
# LogEntry tests
# ===================================================================


class TestLogEntry:
    """Verify LogEntry serialization formats."""

    @pytest.fixture
    def entry(self) -> LogEntry:
        return LogEntry(
            timestamp=FIXED_TS,
            level=LogLevel.INFO,
            component=LogComponent.ANALYZER,
            message="Analysis finished",
            request_id="req-1",
            data={"platform": "Instagram"},
            duration_ms=42,
        )

    def test_optional_fields_default_to_none(self) -> None:
        entry = LogEntry(FIXED_TS, LogLevel.DEBUG, LogComponent.API, "hi")
        assert entry.request_id is None
        assert entry.user_id is None
        assert entry.error_type is None
        assert entry.duration_ms is None
        assert entry.data == {}

    def test_to_dict(self, entry) -> None:
        d = entry.to_dict()
        assert d["timestamp"] == "2025-01-01T12:00:00+00:00"
        assert d["level"] == 20
        assert d["level_name"] == "info"
        assert d["component"] == "analyzer"
        assert d["request_id"] == "req-1"
        assert d["data"] == {"platform": "Instagram"}

    def test_to_json_matches_to_dict(self, entry) -> None:
        assert json.loads(entry.to_json()) == entry.to_dict()

    def test_to_readable_full_format(self, entry) -> None:
        assert entry.to_readable() == "[INFO] [12:00:00] [analyzer] Analysis finished (42ms)"

    def test_to_readable_excludes_duration_when_not_set(self) -> None:
        entry = LogEntry(FIXED_TS, LogLevel.WARNING, LogComponent.AUTH, "Bad token")
        assert entry.to_readable() == "[WARN] [12:00:00] [auth] Bad token"


# ===================================================================
# ServiceLogger tests
# ===================================================================


class TestServiceLogger:
    """File output, filtering, ring buffer and Supabase forwarding."""

    @pytest.mark.asyncio
    async def test_creates_log_dir(self, tmp_path) -> None:
        ServiceLogger(log_dir=str(tmp_path / "nested" / "logs"))
        assert (tmp_path / "nested" / "logs").is_dir()

    @pytest.mark.asyncio
    async def test_writes_main_log(self, tmp_path) -> None:
        logger = ServiceLogger(log_dir=str(tmp_path))
        await logger.info(LogComponent.API, "hello", request_id="req-1", user_id="u1")

        lines = _read_lines(tmp_path / "service.log")
        assert len(lines) == 1
        assert lines[0]["message"] == "hello"
        assert lines[0]["request_id"] == "req-1"
        assert lines[0]["user_id"] == "u1"
        assert not (tmp_path / "errors.log").exists()

    @pytest.mark.asyncio
    async def test_errors_go_to_error_log(self, tmp_path) -> None:
        logger = ServiceLogger(log_dir=str(tmp_path))
        try:
            raise RuntimeError("boom")
        except RuntimeError as exc:
            await logger.error(LogComponent.ANALYZER, "failed", error=exc)

        lines = _read_lines(tmp_path / "errors.log")
        assert lines[0]["error_type"] == "RuntimeError"
        assert "boom" in lines[0]["error_traceback"]

    @pytest.mark.asyncio
    async def test_debug_goes_to_debug_log(self, tmp_path) -> None:
        logger = ServiceLogger(log_dir=str(tmp_path))
        await logger.debug(LogComponent.API, "details")
        assert len(_read_lines(tmp_path / "debug.log")) == 1

    @pytest.mark.asyncio
    async def test_min_level_filters(self, tmp_path) -> None:
        logger = ServiceLogger(log_dir=str(tmp_path), min_level=LogLevel.WARNING)
        await logger.info(LogComponent.API, "ignored")
        await logger.warning(LogComponent.API, "kept")

        assert [e.message for e in logger.get_recent()] == ["kept"]

    @pytest.mark.asyncio
    async def test_get_recent_filters(self, tmp_path) -> None:
        logger = ServiceLogger(log_dir=str(tmp_path))
        await logger.info(LogComponent.API, "a", request_id="r1")
        await logger.warning(LogComponent.DATABASE, "b", request_id="r2")
        await logger.info(LogComponent.API, "c", request_id="r1")

        assert [e.message for e in logger.get_recent(request_id="r1")] == ["a", "c"]
        assert [e.message for e in logger.get_recent(level=LogLevel.WARNING)] == ["b"]
        assert [e.message for e in logger.get_recent(component=LogComponent.DATABASE)] == ["b"]
        assert [e.message for e in logger.get_recent(limit=1)] == ["c"]

    @pytest.mark.asyncio
    async def test_ring_buffer_is_bounded(self, tmp_path) -> None:
        logger = ServiceLogger(log_dir=str(tmp_path), max_recent=3)
        for i in range(5):
            await logger.info(LogComponent.API, f"m{i}")
        assert [e.message for e in logger.get_recent()] == ["m2", "m3", "m4"]

    @pytest.mark.asyncio
    async def test_forwards_to_supabase(self, tmp_path) -> None:
        db = AsyncMock()
        logger = ServiceLogger(log_dir=str(tmp_path), supabase_client=db)
        await logger.debug(LogComponent.API, "not forwarded")
        await logger.info(LogComponent.API, "forwarded")
        await logger.flush()

        db.save_log_entry.assert_awaited_once()
        assert db.save_log_entry.call_args[0][0]["message"] == "forwarded"

    @pytest.mark.asyncio
    async def test_supabase_failure_is_contained(self, tmp_path) -> None:
        db = AsyncMock()
        db.save_log_entry.side_effect = ConnectionError("offline")
        logger = ServiceLogger(log_dir=str(tmp_path), supabase_client=db)
        await logger.info(LogComponent.API, "still logged")
        await logger.flush()

        assert len(_read_lines(tmp_path / "service.log")) == 1


# ===================================================================
# Singleton helpers
# ===================================================================


def test_get_logger_before_init_raises() -> None:
    with pytest.raises(RuntimeError, match="init_logger"):
        get_logger()


def test_init_logger_registers_singleton(tmp_path) -> None:
    logger = init_logger(log_dir=str(tmp_path))
    assert get_logger() is logger
    reset_logger()
    with pytest.raises(RuntimeError):
        get_logger()


# ===================================================================
# ComponentLogger / TimedOperation tests
# ===================================================================


class TestComponentLogger:
    """ComponentLogger binds component and request context."""

    @pytest.mark.asyncio
    async def test_binds_component_and_context(self, tmp_path) -> None:
        service = init_logger(log_dir=str(tmp_path))
        log = ComponentLogger(LogComponent.API, request_id="req-9", user_id="u9")
        await log.info("hello")

        entry = service.get_recent()[-1]
        assert entry.component is LogComponent.API
        assert entry.request_id == "req-9"
        assert entry.user_id == "u9"

    @pytest.mark.asyncio
    async def test_explicit_context_wins(self, tmp_path) -> None:
        service = init_logger(log_dir=str(tmp_path))
        log = ComponentLogger(LogComponent.API, request_id="req-9")
        await log.warning("hello", request_id="other")
        assert service.get_recent()[-1].request_id == "other"

    @pytest.mark.asyncio
    async def test_error_records_exception(self, tmp_path) -> None:
        service = init_logger(log_dir=str(tmp_path))
        await ComponentLogger(LogComponent.DATABASE).error("failed", error=ValueError("x"))
        assert service.get_recent()[-1].error_type == "ValueError"

    def test_timed_returns_timed_operation(self) -> None:
        assert isinstance(ComponentLogger(LogComponent.API).timed("x"), TimedOperation)

    @pytest.mark.asyncio
    async def test_timed_success(self, tmp_path) -> None:
        service = init_logger(log_dir=str(tmp_path))
        async with ComponentLogger(LogComponent.ANALYZER).timed("Analyzing post"):
            pass

        started, completed = service.get_recent()
        assert started.message == "Starting: Analyzing post"
        assert started.level is LogLevel.DEBUG
        assert completed.message == "Completed: Analyzing post"
        assert completed.level is LogLevel.INFO
        assert completed.duration_ms is not None

    @pytest.mark.asyncio
    async def test_timed_failure_reraises(self, tmp_path) -> None:
        service = init_logger(log_dir=str(tmp_path))
        with pytest.raises(KeyError):
            async with ComponentLogger(LogComponent.ANALYZER).timed("Analyzing post"):
                raise KeyError("missing")

        failed = service.get_recent()[-1]
        assert failed.message == "Failed: Analyzing post"
        assert failed.level is LogLevel.ERROR
        assert failed.error_type == "KeyError"
