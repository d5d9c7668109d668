"""
Collaborators that feed the analysis pipeline.

Two seams are defined here:

- ``MetricsSource`` -- produces a post's raw ``PostMetrics``.  No social
  platform is integrated; the available implementations are a random
  simulation, a fixed set of metrics, and an always-failing source for
  deployments where metrics are not wired up.
- ``LogoDetector`` -- decides whether one of the target logos appears in a
  post.  Detection is simulated; deterministic variants exist so callers and
  tests can force either branch.

``build_metrics_source()`` and ``build_logo_detector()`` pick a variant from
``Settings``.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING, Optional, Sequence

from brandscan.exceptions import (
    ConfigurationError,
    LogoDetectionError,
    MetricsUnavailableError,
)
from brandscan.models import EngagementBreakdown, PostMetrics

if TYPE_CHECKING:
    from brandscan.config import Settings

logger = logging.getLogger(__name__)


# =============================================================================
# METRICS SOURCES
# =============================================================================


class MetricsSource:
    """Interface for anything that can produce metrics for a post URL."""

    async def fetch(self, post_url: str) -> PostMetrics:
        """Return metrics for *post_url*.

        Raises:
            MetricsUnavailableError: When metrics cannot be produced.
        """
        raise NotImplementedError


class SimulatedMetricsSource(MetricsSource):
    """Random placeholder metrics within plausible ranges.

    Args:
        rng: Random generator; pass a seeded ``random.Random`` for
            reproducible output.
        latency: Seconds to sleep before answering, to mimic a network call.
    """

    IMPRESSIONS_RANGE = (50_000, 199_999)
    LIKES_RANGE = (2_000, 9_999)
    SHARES_RANGE = (100, 599)
    COMMENTS_RANGE = (50, 349)
    CLICKS_RANGE = (50, 249)

    def __init__(self, rng: Optional[random.Random] = None, latency: float = 0.0) -> None:
        self.rng = rng or random.Random()
        self.latency = latency

    async def fetch(self, post_url: str) -> PostMetrics:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

        metrics = PostMetrics(
            impressions=self.rng.randint(*self.IMPRESSIONS_RANGE),
            engagements=EngagementBreakdown(
                likes=self.rng.randint(*self.LIKES_RANGE),
                shares=self.rng.randint(*self.SHARES_RANGE),
                comments=self.rng.randint(*self.COMMENTS_RANGE),
            ),
            clicks=self.rng.randint(*self.CLICKS_RANGE),
        )
        logger.debug("Simulated metrics for %s: %s", post_url, metrics)
        return metrics


class StaticMetricsSource(MetricsSource):
    """Returns the same metrics for every post."""

    def __init__(self, metrics: PostMetrics) -> None:
        self.metrics = metrics

    async def fetch(self, post_url: str) -> PostMetrics:
        return self.metrics


class UnavailableMetricsSource(MetricsSource):
    """A source that always fails; used when no metrics backend is wired up."""

    def __init__(self, reason: str = "Post metrics are not available in this mode") -> None:
        self.reason = reason

    async def fetch(self, post_url: str) -> PostMetrics:
        raise MetricsUnavailableError(self.reason, post_url=post_url)


# =============================================================================
# LOGO DETECTORS
# =============================================================================


class LogoDetector:
    """Interface for deciding whether a target logo appears in a post."""

    async def detect(self, post_url: str, brand_logos: Sequence[str]) -> bool:
        """Return whether one of *brand_logos* appears in the post.

        Raises:
            LogoDetectionError: When no decision can be made.
        """
        raise NotImplementedError


class SimulatedLogoDetector(LogoDetector):
    """Reports a detection with a fixed probability.

    Args:
        probability: Chance of a detection, between 0 and 1.
        rng: Random generator; pass a seeded ``random.Random`` for
            reproducible output.
    """

    def __init__(self, probability: float = 0.7, rng: Optional[random.Random] = None) -> None:
        if not 0.0 <= probability <= 1.0:
            raise ConfigurationError(
                f"detection probability must be within [0, 1], got {probability}"
            )
        self.probability = probability
        self.rng = rng or random.Random()

    async def detect(self, post_url: str, brand_logos: Sequence[str]) -> bool:
        """Roll for a detection.

        Raises:
            LogoDetectionError: If there is no target brand to look for.
        """
        if not brand_logos:
            raise LogoDetectionError(f"No target brands given for {post_url}")
        return self.rng.random() < self.probability


class BrandListLogoDetector(LogoDetector):
    """Reports a detection whenever at least one brand was requested."""

    async def detect(self, post_url: str, brand_logos: Sequence[str]) -> bool:
        return len(brand_logos) > 0


class FixedLogoDetector(LogoDetector):
    """Always gives the same answer."""

    def __init__(self, detected: bool) -> None:
        self.detected = detected

    async def detect(self, post_url: str, brand_logos: Sequence[str]) -> bool:
        return self.detected


# =============================================================================
# FACTORIES
# =============================================================================

METRICS_MODES = ("simulated", "unavailable")
DETECTION_MODES = ("random", "brand_list", "always", "never")


def build_metrics_source(
    settings: "Settings", rng: Optional[random.Random] = None
) -> MetricsSource:
    """Create the metrics source selected by ``settings.metrics_mode``.

    Raises:
        ConfigurationError: On an unknown mode.
    """
    mode = settings.metrics_mode
    if mode == "simulated":
        return SimulatedMetricsSource(rng=rng)
    if mode == "unavailable":
        return UnavailableMetricsSource()
    raise ConfigurationError(
        f"Unknown metrics_mode {mode!r}; expected one of {METRICS_MODES}"
    )


def build_logo_detector(
    settings: "Settings", rng: Optional[random.Random] = None
) -> LogoDetector:
    """Create the logo detector selected by ``settings.detection_mode``.

    Raises:
        ConfigurationError: On an unknown mode or an out-of-range probability.
    """
    mode = settings.detection_mode
    if mode == "random":
        return SimulatedLogoDetector(settings.detection_probability, rng=rng)
    if mode == "brand_list":
        return BrandListLogoDetector()
    if mode == "always":
        return FixedLogoDetector(True)
    if mode == "never":
        return FixedLogoDetector(False)
    raise ConfigurationError(
        f"Unknown detection_mode {mode!r}; expected one of {DETECTION_MODES}"
    )
