"""
Centralized shared data types for the brand media-value analyzer.

Every stage of the analysis pipeline reads and produces the types defined
here.

Hierarchy of types
------------------
- **Enums**: ``Platform``, ``AnalysisOutcome``
- **Metrics models**: ``EngagementBreakdown``, ``PostMetrics``
- **Result model**: ``AnalysisResult`` (tagged: error / no detection / detected)
- **History model**: ``AnalysisHistoryItem`` (persisted row read back)
- **Constants**: ``NO_DETECTION_MESSAGE``, ``DEFAULT_ERROR_MESSAGE``
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from brandscan.exceptions import ResultInvariantError, ValidationError
from brandscan.utils import parse_timestamp


NO_DETECTION_MESSAGE = "No target logos found in post."
DEFAULT_ERROR_MESSAGE = "Analysis failed"


# =============================================================================
# ENUMS
# =============================================================================


class Platform(str, Enum):
    """
    Social networks a post URL can belong to.

    Inherits from ``str`` so that ``Platform.X == "X"`` evaluates to ``True``
    and labels serialize without conversion.
    """

    INSTAGRAM = "Instagram"
    X = "X"
    FACEBOOK = "Facebook"
    LINKEDIN = "LinkedIn"
    TIKTOK = "TikTok"
    YOUTUBE = "YouTube"
    UNKNOWN = "Unknown"


class AnalysisOutcome(Enum):
    """The three variants an ``AnalysisResult`` can take."""

    ERROR = "error"
    NO_DETECTION = "no_detection"
    DETECTED = "detected"


# =============================================================================
# METRICS
# =============================================================================


def _require_count(value: Any, name: str) -> None:
    # bool is an int subclass; a flag is never a valid count
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")


@dataclass(frozen=True)
class EngagementBreakdown:
    """Per-type engagement counts of a post, in wire order."""

    likes: int = 0
    shares: int = 0
    comments: int = 0

    def __post_init__(self) -> None:
        _require_count(self.likes, "likes")
        _require_count(self.shares, "shares")
        _require_count(self.comments, "comments")

    @property
    def total(self) -> int:
        return self.likes + self.shares + self.comments

    def to_dict(self) -> Dict[str, int]:
        return {
            "likes": self.likes,
            "shares": self.shares,
            "comments": self.comments,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EngagementBreakdown":
        if not isinstance(data, Mapping):
            raise ValidationError(f"engagements must be an object, got {data!r}")
        return cls(
            likes=data.get("likes", 0),
            shares=data.get("shares", 0),
            comments=data.get("comments", 0),
        )


@dataclass(frozen=True)
class PostMetrics:
    """
    Raw metrics of a single post as produced by a metrics source.

    All counts are non-negative integers; the instance is immutable once
    produced.
    """

    impressions: int
    engagements: EngagementBreakdown
    clicks: int

    def __post_init__(self) -> None:
        _require_count(self.impressions, "impressions")
        _require_count(self.clicks, "clicks")
        if not isinstance(self.engagements, EngagementBreakdown):
            raise ValidationError(
                "engagements must be an EngagementBreakdown, "
                f"got {type(self.engagements).__name__}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "impressions": self.impressions,
            "engagements": self.engagements.to_dict(),
            "clicks": self.clicks,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PostMetrics":
        return cls(
            impressions=data.get("impressions", 0),
            engagements=EngagementBreakdown.from_dict(data.get("engagements") or {}),
            clicks=data.get("clicks", 0),
        )


# =============================================================================
# ANALYSIS RESULT
# =============================================================================


@dataclass(frozen=True)
class AnalysisResult:
    """
    Outcome of analyzing one post.

    Exactly one variant payload is populated:

    - *error*: ``error`` (and optionally ``post_url``)
    - *no detection*: ``message``
    - *detected*: ``brand``, ``metrics`` and ``media_value``

    ``logo_detected`` is ``True`` if and only if the detected payload is
    present.  Use the named constructors rather than ``__init__``.
    """

    platform: Platform
    logo_detected: bool
    brand: Optional[str] = None
    metrics: Optional[PostMetrics] = None
    media_value: Optional[float] = None
    message: Optional[str] = None
    error: Optional[str] = None
    post_url: Optional[str] = None

    def __post_init__(self) -> None:
        issues: List[str] = []
        if not isinstance(self.platform, Platform):
            issues.append(f"platform must be a Platform, got {self.platform!r}")

        has_detected = (
            self.brand is not None
            or self.metrics is not None
            or self.media_value is not None
        )
        complete_detected = (
            self.brand is not None
            and self.metrics is not None
            and self.media_value is not None
        )
        populated = sum(
            [self.error is not None, self.message is not None, has_detected]
        )

        if populated != 1:
            issues.append(
                f"exactly one variant payload must be present, found {populated}"
            )
        if has_detected and not complete_detected:
            issues.append("detected payload requires brand, metrics and media_value")
        if self.logo_detected != has_detected:
            issues.append("logo_detected must be true iff a brand was detected")
        if self.post_url is not None and self.error is None:
            issues.append("post_url is only carried by error results")

        if issues:
            raise ResultInvariantError(issues)

    # -----------------------------------------------------------------
    # Named constructors
    # -----------------------------------------------------------------

    @classmethod
    def failure(
        cls,
        error: str,
        platform: Platform = Platform.UNKNOWN,
        post_url: Optional[str] = None,
    ) -> "AnalysisResult":
        """Build the *error* variant."""
        return cls(
            platform=platform,
            logo_detected=False,
            error=error or DEFAULT_ERROR_MESSAGE,
            post_url=post_url,
        )

    @classmethod
    def no_detection(
        cls, platform: Platform, message: str = NO_DETECTION_MESSAGE
    ) -> "AnalysisResult":
        """Build the *no detection* variant."""
        return cls(platform=platform, logo_detected=False, message=message)

    @classmethod
    def detected(
        cls,
        platform: Platform,
        brand: str,
        metrics: PostMetrics,
        media_value: float,
    ) -> "AnalysisResult":
        """Build the *detected* variant."""
        return cls(
            platform=platform,
            logo_detected=True,
            brand=brand,
            metrics=metrics,
            media_value=media_value,
        )

    @property
    def outcome(self) -> AnalysisOutcome:
        if self.error is not None:
            return AnalysisOutcome.ERROR
        if self.logo_detected:
            return AnalysisOutcome.DETECTED
        return AnalysisOutcome.NO_DETECTION

    # -----------------------------------------------------------------
    # Transport envelope
    # -----------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON transport envelope."""
        data: Dict[str, Any] = {
            "platform": self.platform.value,
            "logo_detected": self.logo_detected,
        }
        if self.error is not None:
            data["error"] = self.error
            if self.post_url is not None:
                data["post_url"] = self.post_url
        elif self.logo_detected:
            assert self.metrics is not None
            data["brand"] = self.brand
            data["estimated_impressions"] = self.metrics.impressions
            data["engagements"] = self.metrics.engagements.to_dict()
            data["clicks"] = self.metrics.clicks
            data["media_value"] = self.media_value
        else:
            data["message"] = self.message
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnalysisResult":
        """Parse a transport envelope produced by :meth:`to_dict`.

        Raises:
            ValidationError: If the envelope is malformed or mixes variants.
        """
        if not isinstance(data, Mapping):
            raise ValidationError(f"analysis result must be an object, got {data!r}")
        try:
            platform = Platform(data.get("platform", Platform.UNKNOWN.value))
        except ValueError as exc:
            raise ValidationError(
                f"unknown platform label: {data.get('platform')!r}"
            ) from exc

        metrics: Optional[PostMetrics] = None
        if "estimated_impressions" in data or "engagements" in data:
            metrics = PostMetrics(
                impressions=data.get("estimated_impressions", 0),
                engagements=EngagementBreakdown.from_dict(
                    data.get("engagements") or {}
                ),
                clicks=data.get("clicks", 0),
            )

        media_value = data.get("media_value")
        if media_value is not None:
            if isinstance(media_value, bool) or not isinstance(
                media_value, (int, float)
            ):
                raise ValidationError(
                    f"media_value must be a number, got {media_value!r}"
                )
            media_value = float(media_value)

        logo_detected = data.get("logo_detected", False)
        if not isinstance(logo_detected, bool):
            raise ValidationError(
                f"logo_detected must be a boolean, got {logo_detected!r}"
            )

        return cls(
            platform=platform,
            logo_detected=logo_detected,
            brand=data.get("brand"),
            metrics=metrics,
            media_value=media_value,
            message=data.get("message"),
            error=data.get("error"),
            post_url=data.get("post_url"),
        )


# =============================================================================
# HISTORY
# =============================================================================


@dataclass(frozen=True)
class AnalysisHistoryItem:
    """One persisted analysis as shown in a user's history list."""

    id: str
    post_url: str
    platform: str
    logo_detected: bool
    created_at: datetime
    brand_detected: Optional[str] = None
    estimated_impressions: Optional[int] = None
    media_value_usd: Optional[float] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "AnalysisHistoryItem":
        """Build from an ``analysis_results`` row."""
        media_value = row.get("media_value_usd")
        return cls(
            id=str(row["id"]),
            post_url=row["post_url"],
            platform=row.get("platform") or Platform.UNKNOWN.value,
            logo_detected=bool(row.get("logo_detected", False)),
            created_at=parse_timestamp(row["created_at"]),
            brand_detected=row.get("brand_detected"),
            estimated_impressions=row.get("estimated_impressions"),
            media_value_usd=float(media_value) if media_value is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "post_url": self.post_url,
            "platform": self.platform,
            "brand_detected": self.brand_detected,
            "logo_detected": self.logo_detected,
            "estimated_impressions": self.estimated_impressions,
            "media_value_usd": self.media_value_usd,
            "created_at": self.created_at.isoformat(),
        }
