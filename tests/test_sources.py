"""Tests for brandscan.sources -- metrics sources, logo detectors, factories."""

import random
from unittest.mock import AsyncMock, patch

import pytest

from brandscan.config import Settings
from brandscan.exceptions import (
    ConfigurationError,
    LogoDetectionError,
    MetricsUnavailableError,
)
from brandscan.models import PostMetrics
from brandscan.sources import (
    BrandListLogoDetector,
    FixedLogoDetector,
    LogoDetector,
    MetricsSource,
    SimulatedLogoDetector,
    SimulatedMetricsSource,
    StaticMetricsSource,
    UnavailableMetricsSource,
    build_logo_detector,
    build_metrics_source,
)


# =========================================================================
# Metrics sources
# =========================================================================


@pytest.mark.asyncio
async def test_base_metrics_source_is_abstract():
    with pytest.raises(NotImplementedError):
        await MetricsSource().fetch("https://x.com/u/1")


@pytest.mark.asyncio
async def test_simulated_metrics_within_ranges():
    source = SimulatedMetricsSource(rng=random.Random(1))
    for _ in range(50):
        metrics = await source.fetch("https://instagram.com/p/abc")
        assert isinstance(metrics, PostMetrics)
        assert 50_000 <= metrics.impressions <= 199_999
        assert 2_000 <= metrics.engagements.likes <= 9_999
        assert 100 <= metrics.engagements.shares <= 599
        assert 50 <= metrics.engagements.comments <= 349
        assert 50 <= metrics.clicks <= 249


@pytest.mark.asyncio
async def test_simulated_metrics_reproducible_with_seed():
    first = await SimulatedMetricsSource(rng=random.Random(42)).fetch("u")
    second = await SimulatedMetricsSource(rng=random.Random(42)).fetch("u")
    assert first == second


@pytest.mark.asyncio
async def test_simulated_metrics_latency_sleeps():
    with patch("brandscan.sources.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        await SimulatedMetricsSource(rng=random.Random(0), latency=1.5).fetch("u")
    mock_sleep.assert_called_once_with(1.5)


@pytest.mark.asyncio
async def test_simulated_metrics_no_latency_by_default():
    with patch("brandscan.sources.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        await SimulatedMetricsSource(rng=random.Random(0)).fetch("u")
    mock_sleep.assert_not_called()


@pytest.mark.asyncio
async def test_static_metrics_source(sample_metrics):
    source = StaticMetricsSource(sample_metrics)
    assert await source.fetch("a") is sample_metrics
    assert await source.fetch("b") is sample_metrics


@pytest.mark.asyncio
async def test_unavailable_metrics_source_raises():
    source = UnavailableMetricsSource("not wired up")
    with pytest.raises(MetricsUnavailableError, match="not wired up") as exc_info:
        await source.fetch("https://x.com/u/1")
    assert exc_info.value.post_url == "https://x.com/u/1"


# =========================================================================
# Logo detectors
# =========================================================================


@pytest.mark.asyncio
async def test_base_logo_detector_is_abstract():
    with pytest.raises(NotImplementedError):
        await LogoDetector().detect("u", ["Nike"])


@pytest.mark.asyncio
async def test_fixed_logo_detector():
    assert await FixedLogoDetector(True).detect("u", ["Nike"]) is True
    assert await FixedLogoDetector(False).detect("u", ["Nike"]) is False


@pytest.mark.asyncio
async def test_brand_list_logo_detector():
    detector = BrandListLogoDetector()
    assert await detector.detect("u", ["Nike"]) is True
    assert await detector.detect("u", []) is False


@pytest.mark.asyncio
async def test_simulated_detector_extremes():
    assert await SimulatedLogoDetector(1.0).detect("u", ["Nike"]) is True
    assert await SimulatedLogoDetector(0.0).detect("u", ["Nike"]) is False


@pytest.mark.asyncio
async def test_simulated_detector_rate_roughly_matches_probability():
    detector = SimulatedLogoDetector(0.7, rng=random.Random(123))
    hits = [await detector.detect("u", ["Nike"]) for _ in range(2000)]
    assert 0.65 < sum(hits) / len(hits) < 0.75


@pytest.mark.asyncio
async def test_simulated_detector_requires_brands():
    with pytest.raises(LogoDetectionError, match="No target brands"):
        await SimulatedLogoDetector(1.0).detect("https://x.com/u/1", [])


@pytest.mark.parametrize("probability", [-0.1, 1.1])
def test_simulated_detector_rejects_bad_probability(probability):
    with pytest.raises(ConfigurationError, match="probability"):
        SimulatedLogoDetector(probability)


# =========================================================================
# Factories
# =========================================================================


@pytest.mark.parametrize(
    "mode, expected",
    [
        ("random", SimulatedLogoDetector),
        ("brand_list", BrandListLogoDetector),
        ("always", FixedLogoDetector),
        ("never", FixedLogoDetector),
    ],
)
def test_build_logo_detector(mode, expected):
    assert isinstance(build_logo_detector(Settings(detection_mode=mode)), expected)


@pytest.mark.asyncio
async def test_build_logo_detector_fixed_answers():
    assert await build_logo_detector(Settings(detection_mode="always")).detect("u", []) is True
    assert await build_logo_detector(Settings(detection_mode="never")).detect("u", ["A"]) is False


def test_build_logo_detector_uses_probability():
    detector = build_logo_detector(Settings(detection_probability=0.25))
    assert detector.probability == 0.25


def test_build_metrics_source():
    assert isinstance(build_metrics_source(Settings()), SimulatedMetricsSource)
    assert isinstance(
        build_metrics_source(Settings(metrics_mode="unavailable")), UnavailableMetricsSource
    )


def test_factories_reject_unknown_modes():
    settings = Settings()
    settings.detection_mode = "psychic"
    settings.metrics_mode = "live"
    with pytest.raises(ConfigurationError, match="detection_mode"):
        build_logo_detector(settings)
    with pytest.raises(ConfigurationError, match="metrics_mode"):
        build_metrics_source(settings)
