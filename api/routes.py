from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from newsroom.tasks.images import repair_missing_images_core
from newsroom.tasks.publish import PublishPipelineError, publish_core
from newsroom.utils.logging import get_logger

from .models import (
    ErrorResponse,
    PublishedArticleOut,
    PublishRequest,
    PublishResponse,
    RepairCandidateOut,
    RepairFailureOut,
    RepairRequest,
    RepairResponse,
    SettingsEcho,
)

router = APIRouter(prefix="/api")

logger = get_logger(__name__)

_FATAL_RESPONSES = {500: {"model": ErrorResponse}}


def _fatal(exc: Exception) -> JSONResponse:
    logger.error("api.fatal", extra={"error": str(exc), "error_type": type(exc).__name__})
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})


# Sync handlers: the pipeline blocks on DB and HTTP calls, FastAPI runs these in its threadpool.
@router.post(
    "/automation/publish",
    response_model=PublishResponse,
    response_model_exclude_none=True,
    responses=_FATAL_RESPONSES,
)
def publish_route(payload: Optional[PublishRequest] = None):
    request = payload or PublishRequest()
    try:
        result = publish_core(request.count, test_mode=request.test)
    except (PublishPipelineError, RuntimeError) as exc:
        return _fatal(exc)

    published = len(result.published_articles)
    message = None
    if not result.published_articles and not result.errors:
        message = "No news items to process"
    settings = None
    if result.settings is not None:
        settings = SettingsEcho(
            fallback_enabled=result.settings.image_fallback_enabled,
            trending_boost_enabled=result.settings.trending_boost_enabled,
        )
    return PublishResponse(
        published=published,
        articles=[PublishedArticleOut(**a.model_dump()) for a in result.published_articles],
        settings=settings,
        errors=result.errors or None,
        message=message,
        test_mode=result.test_mode,
        timestamp=datetime.now(timezone.utc),
    )


@router.post(
    "/automation/fix-missing-images",
    response_model=RepairResponse,
    response_model_exclude_none=True,
    responses=_FATAL_RESPONSES,
)
def fix_missing_images_route(payload: Optional[RepairRequest] = None):
    request = payload or RepairRequest()
    try:
        result = repair_missing_images_core(request.limit, dry_run=request.dry_run)
    except (PublishPipelineError, RuntimeError) as exc:
        return _fatal(exc)

    if result.total == 0:
        return RepairResponse(message="No articles without images found", total=0, fixed=0, failed=[])
    if result.dry_run:
        return RepairResponse(
            message="Dry run - no changes made",
            total=result.total,
            articles_to_fix=[RepairCandidateOut(**c.model_dump()) for c in result.articles_to_fix],
        )
    return RepairResponse(
        message=f"Fixed {result.fixed} of {result.total} articles",
        total=result.total,
        fixed=result.fixed,
        failed=[RepairFailureOut(**f.model_dump()) for f in result.failed],
    )
