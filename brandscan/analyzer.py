"""
Post analysis orchestration.

``analyze_post()`` runs the four pipeline stages for one request::

    detect platform -> ask logo detector -> fetch metrics -> value & shape

Everything the call depends on arrives through an explicit
``AnalysisContext``; nothing is read from module globals.  Any exception
raised along the way is converted into an error result, so callers always get
an ``AnalysisResult`` back.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from brandscan.exceptions import ValidationError
from brandscan.models import AnalysisOutcome, AnalysisResult, Platform
from brandscan.platforms import detect_platform
from brandscan.sources import (
    LogoDetector,
    MetricsSource,
    build_logo_detector,
    build_metrics_source,
)
from brandscan.valuation import DEFAULT_CPE, DEFAULT_CPM, calculate_media_value

logger = logging.getLogger(__name__)


@dataclass
class AnalysisContext:
    """Per-request state and collaborators for :func:`analyze_post`.

    Attributes:
        metrics_source: Produces metrics for detected posts.
        logo_detector: Decides whether a target logo is present.
        cpm: Cost per thousand impressions.
        cpe: Cost per engagement.
        user_id: Authenticated caller; required for persistence.
        sink: Optional store with an async ``save_analysis()`` method
            (``SupabaseDB``).
        processing_delay: Seconds to wait before detection, mimicking
            image processing.
    """

    metrics_source: MetricsSource
    logo_detector: LogoDetector
    cpm: float = DEFAULT_CPM
    cpe: float = DEFAULT_CPE
    user_id: Optional[str] = None
    sink: Any = None
    processing_delay: float = 0.0

    @classmethod
    def from_settings(
        cls,
        settings: Any,
        user_id: Optional[str] = None,
        sink: Any = None,
        metrics_source: Optional[MetricsSource] = None,
        logo_detector: Optional[LogoDetector] = None,
    ) -> "AnalysisContext":
        """Build a context from ``Settings``; explicit collaborators win."""
        return cls(
            metrics_source=metrics_source or build_metrics_source(settings),
            logo_detector=logo_detector or build_logo_detector(settings),
            cpm=settings.cpm,
            cpe=settings.cpe,
            user_id=user_id,
            sink=sink,
            processing_delay=settings.processing_delay_seconds,
        )


def select_brand(brand_logos: Sequence[str]) -> str:
    """Pick the brand credited with a detection.

    Entries are stripped and blank ones skipped, so the credited brand is the
    first non-blank entry, without surrounding whitespace.

    Raises:
        ValidationError: If no usable brand name was given.
    """
    for brand in brand_logos:
        if isinstance(brand, str) and brand.strip():
            return brand.strip()
    raise ValidationError("brand_logos must contain at least one brand name")


async def analyze_post(
    post_url: str,
    brand_logos: Sequence[str],
    context: AnalysisContext,
) -> AnalysisResult:
    """Analyze a post for the given brands.

    Args:
        post_url: URL of the social-media post.
        brand_logos: Brand names to look for; callers validate it is non-empty.
        context: Collaborators and per-request state.

    Returns:
        A *detected*, *no detection* or *error* result.  Never raises for
        failures inside the pipeline.
    """
    platform = Platform.UNKNOWN
    try:
        if not isinstance(post_url, str) or not post_url.strip():
            raise ValidationError("post_url cannot be empty")

        platform = detect_platform(post_url)
        logger.info(
            "Analyzing post %s (%s) for brands: %s",
            post_url,
            platform.value,
            ", ".join(brand_logos),
        )

        if context.processing_delay > 0:
            await asyncio.sleep(context.processing_delay)

        detected = await context.logo_detector.detect(post_url, brand_logos)
        if not detected:
            result = AnalysisResult.no_detection(platform)
        else:
            metrics = await context.metrics_source.fetch(post_url)
            media_value = calculate_media_value(metrics, context.cpm, context.cpe)
            result = AnalysisResult.detected(
                platform=platform,
                brand=select_brand(brand_logos),
                metrics=metrics,
                media_value=media_value,
            )
    except Exception as exc:
        logger.exception("Analysis of %s failed", post_url)
        return AnalysisResult.failure(str(exc), platform=platform, post_url=post_url)

    await _record(context, post_url, brand_logos, result)
    logger.info("Analysis of %s finished: %s", post_url, result.outcome.value)
    return result


async def _record(
    context: AnalysisContext,
    post_url: str,
    brand_logos: Sequence[str],
    result: AnalysisResult,
) -> None:
    """Hand a finished result to the persistence sink, if one is configured.

    The caller gets its result whether or not the write succeeds.
    """
    if context.sink is None or not context.user_id:
        return
    if result.outcome is AnalysisOutcome.ERROR:
        return
    try:
        await context.sink.save_analysis(
            context.user_id, post_url, list(brand_logos), result
        )
    except Exception as exc:
        logger.warning("Failed to record analysis of %s: %s", post_url, exc)
