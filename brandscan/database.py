"""
Async database client for the analyzer service.

ALL Supabase table access goes through the SupabaseDB class defined here.
The analysis pipeline only sees it through the ``save_analysis`` sink.

Usage::

    from brandscan.database import SupabaseDB, get_db

    # In async context:
    db = await get_db()
    row_id = await db.save_analysis(user_id, post_url, brands, result)
"""

import asyncio
import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from supabase import AsyncClient, create_async_client

from brandscan.exceptions import DatabaseError, ValidationError
from brandscan.models import AnalysisHistoryItem, AnalysisOutcome, AnalysisResult

logger = logging.getLogger(__name__)

ANALYSIS_TABLE = "analysis_results"
LOG_TABLE = "service_logs"

# Confidence recorded alongside simulated detections
DETECTION_CONFIDENCE = 0.85


# =============================================================================
# VALIDATION HELPERS
# =============================================================================


def validate_not_empty(value: Any, name: str) -> None:
    """Reject ``None`` and blank strings before they reach a query.

    Raises:
        ValidationError: Naming *name* in the message.
    """
    if value is None:
        raise ValidationError(f"{name} cannot be None")
    if isinstance(value, str) and not value.strip():
        raise ValidationError(f"{name} cannot be empty string")


def validate_positive(value: Union[int, float], name: str) -> None:
    """Reject ``None``, zero and negative numbers (row limits, counts)."""
    if value is None:
        raise ValidationError(f"{name} cannot be None")
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")


def build_analysis_row(
    user_id: str,
    post_url: str,
    brand_logos: Sequence[str],
    result: AnalysisResult,
) -> Dict[str, Any]:
    """Map an analysis result onto an ``analysis_results`` row.

    Raises:
        ValidationError: For error results, which are never persisted.
    """
    if result.outcome is AnalysisOutcome.ERROR:
        raise ValidationError("error results are not persisted")

    row: Dict[str, Any] = {
        "user_id": user_id,
        "post_url": post_url,
        "platform": result.platform.value,
        "logo_detected": result.logo_detected,
        "analysis_metadata": {"brands_searched": list(brand_logos)},
    }
    if result.outcome is AnalysisOutcome.DETECTED:
        assert result.metrics is not None
        row.update(
            {
                "brand_detected": result.brand,
                "estimated_impressions": result.metrics.impressions,
                "engagement_data": result.metrics.engagements.to_dict(),
                "clicks": result.metrics.clicks,
                "media_value_usd": result.media_value,
            }
        )
        row["analysis_metadata"]["confidence"] = DETECTION_CONFIDENCE
    return row


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass
class SupabaseConfig:
    """Project URL and API key for the Supabase client.

    ``key`` is the service-role key, or the anon key when the service does
    not hold one (row-level security then applies to every query).
    """

    url: str
    key: str

    @classmethod
    def from_env(cls) -> "SupabaseConfig":
        """Read ``SUPABASE_URL`` and ``SUPABASE_SERVICE_KEY``/``SUPABASE_ANON_KEY``.

        Raises:
            ValueError: If the URL or both keys are missing or empty.
        """
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_KEY") or os.environ.get(
            "SUPABASE_ANON_KEY"
        )

        if not url or not key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_SERVICE_KEY must be set"
            )

        return cls(url=url, key=key)


# =============================================================================
# SUPABASE DATABASE CLIENT
# =============================================================================


class SupabaseDB:
    """Table access for analysis results and service logs.

    Build instances with ``await SupabaseDB.create()``; the async Supabase
    client cannot be constructed synchronously.
    """

    def __init__(self, client: AsyncClient) -> None:
        self.client = client

    @classmethod
    async def create(
        cls, config: Optional[SupabaseConfig] = None
    ) -> "SupabaseDB":
        """Connect using *config*, or the environment when it is ``None``."""
        config = config or SupabaseConfig.from_env()
        client = await create_async_client(config.url, config.key)
        return cls(client)

    # -----------------------------------------------------------------
    # ANALYSIS RESULTS
    # -----------------------------------------------------------------

    async def save_analysis(
        self,
        user_id: str,
        post_url: str,
        brand_logos: Sequence[str],
        result: AnalysisResult,
    ) -> str:
        """Record a completed analysis.

        Args:
            user_id: Authenticated user that requested the analysis.
            post_url: The analyzed post.
            brand_logos: Brands the user searched for.
            result: A *detected* or *no detection* result.

        Returns:
            The UUID of the inserted row.

        Raises:
            ValidationError: On missing fields or an error result.
            DatabaseError: When the insert returns no data.
        """
        validate_not_empty(user_id, "user_id")
        validate_not_empty(post_url, "post_url")
        row = build_analysis_row(user_id, post_url, brand_logos, result)

        response = await self.client.table(ANALYSIS_TABLE).insert(row).execute()
        if not response.data:
            raise DatabaseError("Insert succeeded but returned no data")
        logger.debug("Saved analysis %s for user %s", response.data[0]["id"], user_id)
        return response.data[0]["id"]

    async def get_recent_analyses(
        self, user_id: str, limit: int = 10
    ) -> List[AnalysisHistoryItem]:
        """Get a user's analyses ordered by creation date descending.

        Args:
            user_id: Owner of the analyses.
            limit: Maximum number of rows to return (must be > 0).
        """
        validate_not_empty(user_id, "user_id")
        validate_positive(limit, "limit")

        response = await (
            self.client.table(ANALYSIS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [AnalysisHistoryItem.from_row(row) for row in response.data or []]

    async def get_analysis(self, analysis_id: str) -> Optional[AnalysisHistoryItem]:
        """Get a single analysis by id, or ``None`` when it does not exist."""
        validate_not_empty(analysis_id, "analysis_id")

        response = await (
            self.client.table(ANALYSIS_TABLE)
            .select("*")
            .eq("id", analysis_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return AnalysisHistoryItem.from_row(response.data[0])

    # -----------------------------------------------------------------
    # SERVICE LOGS
    # -----------------------------------------------------------------

    async def save_log_entry(self, entry: Dict[str, Any]) -> None:
        """Insert a structured log entry into ``service_logs``."""
        if not entry:
            raise ValidationError("log entry cannot be empty")
        await self.client.table(LOG_TABLE).insert(entry).execute()


# =============================================================================
# SINGLETON ACCESSOR
# =============================================================================

_db_instance: Optional[SupabaseDB] = None
_db_lock: Optional[asyncio.Lock] = None
# Guards creation of _db_lock when several threads start event loops
_init_lock = threading.Lock()


async def get_db() -> SupabaseDB:
    """Return the shared ``SupabaseDB``, connecting from the environment on first use."""
    global _db_instance, _db_lock

    if _db_lock is None:
        with _init_lock:
            if _db_lock is None:
                _db_lock = asyncio.Lock()

    if _db_instance is None:
        async with _db_lock:
            if _db_instance is None:
                _db_instance = await SupabaseDB.create()

    return _db_instance
