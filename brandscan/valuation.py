"""
Media-value estimation.

The estimate is a fixed linear formula over impressions and engagements::

    value = (impressions / 1000) * cpm + (likes + shares + comments) * cpe

rounded half-up to cents.  Arithmetic runs on ``Decimal`` so that results
such as ``2500 + 5370 * 0.40`` land exactly on ``4648.00`` instead of a
binary-float neighbour.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from brandscan.exceptions import ValidationError
from brandscan.models import PostMetrics

DEFAULT_CPM: float = 25.0
DEFAULT_CPE: float = 0.40

_CENTS = Decimal("0.01")


def _to_decimal(value: Union[int, float], name: str) -> Decimal:
    if value is None or value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    # str() keeps the short repr (0.4, not 0.40000000000000002220...)
    return Decimal(str(value))


def calculate_media_value(
    metrics: PostMetrics,
    cpm: float = DEFAULT_CPM,
    cpe: float = DEFAULT_CPE,
) -> float:
    """Convert raw post metrics into a monetary estimate.

    Args:
        metrics: Post metrics from a metrics source.
        cpm: Cost per thousand impressions.
        cpe: Cost per engagement (likes, shares and comments each count once).

    Returns:
        The estimate rounded half-up to two decimal places.

    Raises:
        ValidationError: If ``cpm`` or ``cpe`` is negative.
    """
    cpm_d = _to_decimal(cpm, "cpm")
    cpe_d = _to_decimal(cpe, "cpe")

    impression_value = Decimal(metrics.impressions) / 1000 * cpm_d
    engagement_value = Decimal(metrics.engagements.total) * cpe_d
    value = (impression_value + engagement_value).quantize(
        _CENTS, rounding=ROUND_HALF_UP
    )
    return float(value)


def format_media_value(value: float) -> str:
    """Render a media value as a US-dollar amount, e.g. ``$4,648.00``."""
    return f"${value:,.2f}"
