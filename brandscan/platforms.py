"""Platform detection from a post URL."""

from typing import Tuple

from brandscan.models import Platform


# Checked in order; the first matching fragment wins.
PLATFORM_PATTERNS: Tuple[Tuple[Tuple[str, ...], Platform], ...] = (
    (("instagram.com",), Platform.INSTAGRAM),
    (("twitter.com", "x.com"), Platform.X),
    (("facebook.com",), Platform.FACEBOOK),
    (("linkedin.com",), Platform.LINKEDIN),
    (("tiktok.com",), Platform.TIKTOK),
    (("youtube.com",), Platform.YOUTUBE),
)


def detect_platform(url: str) -> Platform:
    """Classify *url* into a known platform.

    Matching is case-sensitive substring containment, so the input does not
    need to be a valid URL.  Returns ``Platform.UNKNOWN`` when nothing matches.
    """
    for fragments, platform in PLATFORM_PATTERNS:
        if any(fragment in url for fragment in fragments):
            return platform
    return Platform.UNKNOWN
