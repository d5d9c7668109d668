"""Shared fixtures for the brandscan test suite."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from brandscan.analyzer import AnalysisContext
from brandscan.config import reset_settings
from brandscan.logging import reset_logger
from brandscan.models import EngagementBreakdown, PostMetrics
from brandscan.sources import FixedLogoDetector, StaticMetricsSource


# ---------------------------------------------------------------------------
# Ensure we don't hit real services during tests
# ---------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _block_env_keys(monkeypatch):
    """Clear Supabase credentials and settings overrides."""
    keys = [
        "SUPABASE_URL",
        "SUPABASE_SERVICE_KEY",
        "SUPABASE_ANON_KEY",
        "MEDIA_VALUE_CPM",
        "MEDIA_VALUE_CPE",
        "DETECTION_MODE",
        "DETECTION_PROBABILITY",
        "METRICS_MODE",
        "PROCESSING_DELAY_SECONDS",
        "HISTORY_LIMIT",
        "LOG_LEVEL",
        "LOG_DIR",
        "HOST",
        "PORT",
        "CORS_ORIGINS",
    ]
    for key in keys:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Clear cached settings and the structured logger between tests."""
    reset_settings()
    reset_logger()
    yield
    reset_settings()
    reset_logger()


# ---------------------------------------------------------------------------
# Common data fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def sample_utc_now():
    """A fixed UTC datetime for deterministic tests."""
    return datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_metrics():
    """The reference metrics whose media value is exactly 4648.00."""
    return PostMetrics(
        impressions=100_000,
        engagements=EngagementBreakdown(likes=5_000, shares=250, comments=120),
        clicks=80,
    )


@pytest.fixture
def detecting_context(sample_metrics):
    """A context that always detects and returns the reference metrics."""
    return AnalysisContext(
        metrics_source=StaticMetricsSource(sample_metrics),
        logo_detector=FixedLogoDetector(True),
    )


@pytest.fixture
def non_detecting_context(sample_metrics):
    """A context whose detector never finds a logo."""
    return AnalysisContext(
        metrics_source=StaticMetricsSource(sample_metrics),
        logo_detector=FixedLogoDetector(False),
    )


# ---------------------------------------------------------------------------
# Mock Supabase client
# ---------------------------------------------------------------------------
@pytest.fixture
def mock_supabase_client():
    """A mock Supabase async client.

    ``table()`` returns a chainable builder; set ``client.execute_result``
    to control what ``execute()`` resolves to.
    """
    client = MagicMock()
    table_mock = MagicMock()
    for method in ("select", "insert", "update", "delete", "eq", "order", "limit"):
        getattr(table_mock, method).return_value = table_mock

    client.execute_result = MagicMock(data=[], count=0)

    async def mock_execute():
        return client.execute_result

    table_mock.execute = mock_execute
    client.table.return_value = table_mock
    client.table_mock = table_mock
    client.auth = MagicMock()
    client.auth.get_user = AsyncMock()
    return client
