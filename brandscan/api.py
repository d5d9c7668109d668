"""
HTTP interface for the analyzer.

Routes:
    POST /analyze-post  -- analyze a post for a list of brands
    GET  /history       -- the caller's most recent analyses
    GET  /health        -- liveness check

Errors are returned as ``{"error": "<message>"}`` JSON bodies.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from brandscan import __version__
from brandscan.analyzer import AnalysisContext, analyze_post
from brandscan.auth import AuthenticatedUser, get_current_user
from brandscan.config import Settings, get_settings
from brandscan.database import get_db
from brandscan.logging import ComponentLogger, LogComponent, LogLevel, get_logger, init_logger
from brandscan.models import AnalysisOutcome
from brandscan.sources import (
    LogoDetector,
    MetricsSource,
    build_logo_detector,
    build_metrics_source,
)
from brandscan.utils import generate_id

logger = logging.getLogger(__name__)

MISSING_INPUT_MESSAGE = "Post URL and brand logos are required"

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

router = APIRouter(tags=["analysis"])


class AnalyzePostRequest(BaseModel):
    """Request body: ``{"postUrl": "...", "brandLogos": ["..."]}``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    post_url: Optional[str] = Field(default=None, alias="postUrl")
    brand_logos: Optional[List[str]] = Field(default=None, alias="brandLogos")


class AnalysisInput(BaseModel):
    """Normalized analysis request: stripped URL, non-blank brand names."""

    post_url: str
    brand_logos: List[str]


async def require_analysis_input(request: Request) -> AnalysisInput:
    """Parse and check the analysis body before the caller is authenticated.

    Any malformed, missing or blank input is rejected with 400.
    """
    try:
        body = AnalyzePostRequest.model_validate(await request.json())
    except ValueError as exc:
        # JSONDecodeError and pydantic.ValidationError are both ValueErrors
        logger.info("Rejected malformed analysis request: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=MISSING_INPUT_MESSAGE
        ) from exc

    post_url = (body.post_url or "").strip()
    brand_logos = [b.strip() for b in body.brand_logos or [] if b and b.strip()]
    if not post_url or not brand_logos:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=MISSING_INPUT_MESSAGE
        )
    return AnalysisInput(post_url=post_url, brand_logos=brand_logos)


# =============================================================================
# ROUTES
# =============================================================================


@router.get("/health")
async def health() -> dict:
    return {"status": "healthy", "service": "brandscan", "version": __version__}


@router.post("/analyze-post")
async def analyze_post_endpoint(
    request: Request,
    body: AnalysisInput = Depends(require_analysis_input),
    user: AuthenticatedUser = Depends(get_current_user),
) -> JSONResponse:
    # Input is checked before authentication; FastAPI resolves dependencies in order
    post_url = body.post_url
    brand_logos = body.brand_logos

    state = request.app.state
    context = AnalysisContext.from_settings(
        state.settings,
        user_id=user.id,
        sink=state.db,
        metrics_source=state.metrics_source,
        logo_detector=state.logo_detector,
    )

    log = ComponentLogger(LogComponent.API, request_id=generate_id(), user_id=user.id)
    await log.info(
        "Analysis requested",
        data={"post_url": post_url, "brands": brand_logos},
    )
    async with log.timed("Analyzing post"):
        result = await analyze_post(post_url, brand_logos, context)

    payload = result.to_dict()
    if result.outcome is AnalysisOutcome.ERROR:
        await log.warning("Analysis returned an error", data=payload)
        return JSONResponse(payload, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    await log.info("Analysis completed", data=payload)
    return JSONResponse(payload)


@router.get("/history")
async def history(
    request: Request,
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
    state = request.app.state
    try:
        items = await state.db.get_recent_analyses(
            user.id, limit or state.settings.history_limit
        )
    except Exception as exc:
        logger.error("Error fetching history for %s: %s", user.id, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load analysis history",
        ) from exc
    return {"items": [item.to_dict() for item in items]}


# =============================================================================
# ERROR HANDLERS
# =============================================================================


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        {"error": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected malformed request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        {"error": "Invalid request"},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


# =============================================================================
# APPLICATION FACTORY
# =============================================================================


def create_app(
    settings: Optional[Settings] = None,
    db: Any = None,
    metrics_source: Optional[MetricsSource] = None,
    logo_detector: Optional[LogoDetector] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Defaults to :func:`get_settings`.
        db: Database client; when ``None`` the shared :func:`get_db` client is created
            from the environment at startup.
        metrics_source: Overrides the source chosen by ``settings``.
        logo_detector: Overrides the detector chosen by ``settings``.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.db is None:
            app.state.db = await get_db()
        init_logger(
            log_dir=settings.log_dir,
            supabase_client=app.state.db,
            min_level=LogLevel.from_name(settings.log_level),
        )
        await get_logger().info(
            LogComponent.STARTUP,
            "Analyzer service started",
            data={
                "detection_mode": settings.detection_mode,
                "metrics_mode": settings.metrics_mode,
            },
        )
        yield
        await get_logger().flush()

    app = FastAPI(title="brandscan", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db
    app.state.metrics_source = metrics_source or build_metrics_source(settings)
    app.state.logo_detector = logo_detector or build_logo_detector(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=CORS_ALLOW_HEADERS,
    )
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.include_router(router)
    return app
