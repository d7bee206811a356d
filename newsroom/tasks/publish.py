"""Celery task and core logic of the automated publishing run."""

from __future__ import annotations

import time
import uuid
from contextlib import ExitStack
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from celery import shared_task
from sqlalchemy.exc import SQLAlchemyError

from llm.client.image_client import ImageClient, ImageProviderFn
from llm.client.openai_client import GenerationFailed, OpenAIClient, ProviderFn
from llm.prompts.templates import NO_EXISTING_ARTICLES, format_existing_articles
from llm.settings import GenerationSettings, get_generation_settings
from newsroom.db.models import JobStage
from newsroom.db.session import session_scope
from newsroom.models.domain import (
    AutomationSettings,
    BatchResult,
    PublishedArticle,
    SourceItemDTO,
)
from newsroom.repositories.articles import (
    SourceItemAlreadyProcessed,
    count_published_since,
    get_ai_author_id,
    list_recent_published_titles,
    publish_article,
)
from newsroom.repositories.automation_settings import load_automation_settings
from newsroom.repositories.job_runs import JobRunRecorder
from newsroom.repositories.source_items import claim_source_item, release_claim, select_candidates
from newsroom.services.images import ImageResolver
from newsroom.services.slugs import SlugAllocationError, allocate_unique_slug
from newsroom.services.storage import ObjectStore, StorageUploader, build_object_store
from newsroom.settings import Settings, get_settings
from newsroom.utils.logging import get_logger

# Injection points for tests: provider callables replace the network, the
# store factory replaces local/S3 storage.
TEXT_PROVIDER_FACTORY: Callable[[], Optional[ProviderFn]] | None = None
IMAGE_PROVIDER_FACTORY: Callable[[], Optional[ImageProviderFn]] | None = None
OBJECT_STORE_FACTORY: Callable[[Settings], ObjectStore] | None = None

logger = get_logger(__name__)


class PublishPipelineError(Exception):
    """Fatal error: the whole invocation is aborted."""


class MissingCredentialError(PublishPipelineError):
    """A required API credential is not configured."""


class QueueUnavailableError(PublishPipelineError):
    """The database could not serve the queue or record the run."""


class ItemError(Exception):
    """Per-item failure; the message is what ends up in ``BatchResult.errors``."""


def effective_batch_size(requested: Optional[int], automation: AutomationSettings, hard_max: int) -> int:
    if requested is not None and requested > 0:
        return min(requested, hard_max)
    return min(automation.articles_per_execution, hard_max)


def load_generation_settings() -> GenerationSettings:
    try:
        return get_generation_settings()
    except RuntimeError as exc:
        raise MissingCredentialError("OPENAI_API_KEY not configured") from exc


def build_text_client(gen_settings: GenerationSettings) -> OpenAIClient:
    provider = TEXT_PROVIDER_FACTORY() if TEXT_PROVIDER_FACTORY else None
    return OpenAIClient(gen_settings, provider=provider)


def build_image_resolver(settings: Settings, gen_settings: GenerationSettings) -> ImageResolver:
    generator: Optional[ImageClient] = None
    if settings.image_generation_enabled:
        provider = IMAGE_PROVIDER_FACTORY() if IMAGE_PROVIDER_FACTORY else None
        generator = ImageClient(gen_settings, provider=provider)
    store = OBJECT_STORE_FACTORY(settings) if OBJECT_STORE_FACTORY else build_object_store(settings)
    return ImageResolver(generator, StorageUploader(store))


def start_job_run(stack: ExitStack, **job_fields) -> JobRunRecorder:
    """Open the JobRun row; a database that cannot take it aborts the run."""
    try:
        return stack.enter_context(JobRunRecorder(**job_fields))
    except SQLAlchemyError as exc:
        logger.exception("publish.database_unavailable", extra={"trace_id": job_fields.get("trace_id")})
        raise QueueUnavailableError("Database unavailable: could not record the job run") from exc


def _start_of_day_utc() -> datetime:
    now = datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def _load_link_context(settings: Settings, trace_id: str) -> Tuple[str, Optional[uuid.UUID], int]:
    try:
        with session_scope() as session:
            titles = list_recent_published_titles(session, settings.internal_link_context_size)
            author_id = get_ai_author_id(session)
            published_today = count_published_since(session, _start_of_day_utc())
    except SQLAlchemyError:
        logger.exception("publish.context_unavailable", extra={"trace_id": trace_id})
        return NO_EXISTING_ARTICLES, None, 0
    return format_existing_articles(titles), author_id, published_today


def _release(item: SourceItemDTO, token: str, trace_id: str) -> None:
    try:
        with session_scope() as session:
            release_claim(session, item.id, token)
    except SQLAlchemyError:
        logger.warning("publish.release_failed", extra={"trace_id": trace_id, "source_item_id": str(item.id)})


def process_item(
    item: SourceItemDTO,
    *,
    settings: Settings,
    automation: AutomationSettings,
    link_context: str,
    author_id: Optional[uuid.UUID],
    text_client: OpenAIClient,
    resolver: ImageResolver,
    trace_id: str,
) -> PublishedArticle:
    """claim -> generate -> slug -> image -> persist, for one source item."""
    token = uuid.uuid4().hex
    with session_scope() as session:
        claimed = claim_source_item(session, item.id, token, lease_seconds=settings.claim_lease_seconds)
    if not claimed:
        raise ItemError(f"Skipped (claimed by another run): {item.title}")

    try:
        try:
            draft = text_client.generate_article(item, link_context)
        except GenerationFailed as exc:
            raise ItemError(f"Failed to generate article for: {item.title}") from exc

        try:
            with session_scope() as session:
                slug = allocate_unique_slug(
                    session, draft.slug or draft.title, max_attempts=settings.slug_max_attempts
                )
        except SlugAllocationError as exc:
            raise ItemError(f"Failed to save article: {draft.title}") from exc

        image = resolver.resolve_image(draft.main_keyword, draft.title, slug, automation.image_fallback_enabled)

        try:
            with session_scope() as session:
                article = publish_article(
                    session,
                    draft,
                    image,
                    item.id,
                    source_url=item.source_url,
                    source_name=item.source_name,
                    slug=slug,
                    author_id=author_id,
                )
                published = PublishedArticle(
                    article_id=article.id,
                    slug=article.slug,
                    title=article.title,
                    image_generated=image.was_ai_generated,
                    image_url=image.url,
                )
        except (SQLAlchemyError, SourceItemAlreadyProcessed) as exc:
            raise ItemError(f"Failed to save article: {draft.title}") from exc
    except Exception:
        _release(item, token, trace_id)
        raise
    return published


def publish_core(count: Optional[int] = None, test_mode: bool = False) -> BatchResult:
    """Publish up to ``count`` queued items; per-item failures land in ``errors``.

    Raises ``PublishPipelineError`` only for fatal conditions: missing
    credentials, or a database that cannot record the run or serve the queue.
    """
    settings = get_settings()
    gen_settings = load_generation_settings()
    trace_id = str(uuid.uuid4())

    with session_scope() as session:
        automation = load_automation_settings(session)
    batch_size = effective_batch_size(count, automation, settings.max_articles_per_run)
    result = BatchResult(requested=batch_size, test_mode=test_mode, settings=automation)
    extra = {"trace_id": trace_id, "test_mode": test_mode}
    logger.info(
        "publish.start",
        extra={
            **extra,
            "batch_size": batch_size,
            "fallback_enabled": automation.image_fallback_enabled,
            "trending_boost": automation.trending_boost_enabled,
        },
    )

    with ExitStack() as stack:
        job = start_job_run(
            stack,
            stage=JobStage.PUBLISH,
            task_name="publish_pending_articles",
            trace_id=trace_id,
            test_mode=test_mode,
        )
        job.items_requested = batch_size
        try:
            with session_scope() as session:
                rows = select_candidates(
                    session,
                    batch_size,
                    automation.trending_boost_enabled,
                    min_score=settings.trending_min_score,
                    lease_seconds=settings.claim_lease_seconds,
                )
                candidates: List[SourceItemDTO] = [SourceItemDTO.from_row(r) for r in rows]
        except SQLAlchemyError as exc:
            logger.exception("publish.queue_unavailable", extra=extra)
            raise QueueUnavailableError("Failed to fetch source items") from exc

        if not candidates:
            logger.info("publish.no_candidates", extra=extra)
            return result

        link_context, author_id, published_today = _load_link_context(settings, trace_id)
        if published_today >= automation.daily_target:
            logger.info(
                "publish.daily_target_reached",
                extra={**extra, "published_today": published_today, "daily_target": automation.daily_target},
            )
        text_client = build_text_client(gen_settings)
        resolver = build_image_resolver(settings, gen_settings)

        for index, item in enumerate(candidates):
            if index and settings.item_delay_seconds:
                time.sleep(settings.item_delay_seconds)
            item_extra = {**extra, "source_item_id": str(item.id)}
            try:
                published = process_item(
                    item,
                    settings=settings,
                    automation=automation,
                    link_context=link_context,
                    author_id=author_id,
                    text_client=text_client,
                    resolver=resolver,
                    trace_id=trace_id,
                )
            except ItemError as exc:
                logger.warning(
                    "publish.item_failed",
                    extra={**item_extra, "error": str(exc), "cause": repr(exc.__cause__)},
                )
                result.errors.append(str(exc))
                continue
            except Exception:
                logger.exception("publish.item_crashed", extra=item_extra)
                result.errors.append(f"Error processing: {item.title}")
                continue
            result.published_articles.append(published)
            logger.info(
                "publish.published",
                extra={
                    **item_extra,
                    "slug": published.slug,
                    "image_generated": published.image_generated,
                },
            )

        job.items_published = len(result.published_articles)
        job.items_failed = len(result.errors)
        logger.info(
            "publish.done",
            extra={
                **extra,
                "published": len(result.published_articles),
                "errors": len(result.errors),
                "published_today": published_today + len(result.published_articles),
                "daily_target": automation.daily_target,
            },
        )
    return result


@shared_task(
    name="newsroom.tasks.publish.publish_pending_articles",
    queue="newsroom.publish",
)
def publish_pending_articles(count: Optional[int] = None, test: bool = False) -> dict:  # pragma: no cover - thin wrapper
    return publish_core(count, test_mode=test).model_dump(mode="json")
