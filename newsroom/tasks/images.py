"""Backfill featured images for published articles that have none."""

from __future__ import annotations

import time
import uuid
from contextlib import ExitStack

from celery import shared_task
from sqlalchemy.exc import SQLAlchemyError

from newsroom.db.models import JobStage
from newsroom.db.session import session_scope
from newsroom.models.domain import ImageRepairCandidate, ImageRepairFailure, ImageRepairResult
from newsroom.repositories.articles import list_articles_missing_images, set_featured_image
from newsroom.repositories.automation_settings import load_automation_settings
from newsroom.settings import get_settings
from newsroom.tasks import publish as publish_mod
from newsroom.utils.logging import get_logger


def build_image_alt_text(keyword: str, title: str) -> str:
    topic = keyword or title
    return f"{topic} - illustrative image for {title}"[:512]


def repair_missing_images_core(limit: int = 10, dry_run: bool = False) -> ImageRepairResult:
    """Resolve and attach an image to each published article lacking one."""
    logger = get_logger(__name__)
    settings = get_settings()
    gen_settings = publish_mod.load_generation_settings()
    trace_id = str(uuid.uuid4())

    try:
        with session_scope() as session:
            automation = load_automation_settings(session)
            rows = list_articles_missing_images(session, limit)
            targets = [(row.id, row.title, row.main_keyword or row.title, row.slug) for row in rows]
    except SQLAlchemyError as exc:
        logger.exception("repair.articles_unavailable", extra={"trace_id": trace_id})
        raise publish_mod.QueueUnavailableError("Failed to fetch articles") from exc

    result = ImageRepairResult(total=len(targets), dry_run=dry_run)
    if not targets:
        logger.info("repair.nothing_to_fix", extra={"trace_id": trace_id})
        return result
    if dry_run:
        result.articles_to_fix = [ImageRepairCandidate(id=i, title=t) for i, t, _, _ in targets]
        return result

    resolver = publish_mod.build_image_resolver(settings, gen_settings)
    with ExitStack() as stack:
        job = publish_mod.start_job_run(
            stack,
            stage=JobStage.IMAGE_REPAIR,
            task_name="repair_missing_images",
            trace_id=trace_id,
        )
        job.items_requested = len(targets)
        for index, (article_id, title, keyword, slug) in enumerate(targets):
            if index and settings.item_delay_seconds:
                time.sleep(settings.item_delay_seconds)
            try:
                image = resolver.resolve_image(keyword, title, slug, automation.image_fallback_enabled)
                if not image.url:
                    raise LookupError("No image could be resolved")
                with session_scope() as session:
                    set_featured_image(session, article_id, image.url, build_image_alt_text(keyword, title))
            except Exception as exc:
                logger.warning(
                    "repair.failed",
                    extra={"trace_id": trace_id, "article_id": str(article_id), "error": str(exc)},
                )
                result.failed.append(ImageRepairFailure(id=article_id, title=title, error=str(exc)))
                continue
            result.fixed += 1
            logger.info("repair.fixed", extra={"trace_id": trace_id, "article_id": str(article_id)})
        job.items_published = result.fixed
        job.items_failed = len(result.failed)
    return result


@shared_task(
    name="newsroom.tasks.images.repair_missing_images",
    queue="newsroom.publish",
)
def repair_missing_images(limit: int = 10, dry_run: bool = False) -> dict:  # pragma: no cover - thin wrapper
    return repair_missing_images_core(limit, dry_run).model_dump(mode="json")
