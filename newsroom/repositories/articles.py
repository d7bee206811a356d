"""Repositories for persisting and querying articles."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from newsroom.db.models import Article, ArticleStatus, Author
from newsroom.models.domain import GeneratedArticleDraft, ImageResolution
from newsroom.repositories.source_items import mark_processed
from newsroom.services.slugs import DEFAULT_MAX_ATTEMPTS, allocate_unique_slug


class SourceItemAlreadyProcessed(Exception):
    """The source item was published by another run in the meantime."""


def list_recent_published_titles(session: Session, limit: int = 20) -> List[Tuple[str, str]]:
    stmt = (
        select(Article.title, Article.slug)
        .where(Article.status == ArticleStatus.PUBLISHED)
        .order_by(Article.published_at.desc())
        .limit(limit)
    )
    return [(title, slug) for title, slug in session.execute(stmt)]


def get_ai_author_id(session: Session) -> Optional[uuid.UUID]:
    stmt = select(Author.id).where(Author.is_ai == True).order_by(Author.created_at.asc()).limit(1)  # noqa: E712
    return session.scalar(stmt)


def count_published_since(session: Session, since: datetime) -> int:
    stmt = select(func.count(Article.id)).where(
        Article.status == ArticleStatus.PUBLISHED,
        Article.ai_generated == True,  # noqa: E712
        Article.published_at >= since,
    )
    return int(session.scalar(stmt) or 0)


def publish_article(
    session: Session,
    draft: GeneratedArticleDraft,
    image: ImageResolution,
    item_id: uuid.UUID,
    *,
    source_url: str,
    source_name: Optional[str] = None,
    slug: Optional[str] = None,
    author_id: Optional[uuid.UUID] = None,
    slug_max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> Article:
    """Insert the published article and mark its source item processed.

    Both writes share the caller's transaction: if either fails the caller's
    session scope rolls back and the item stays eligible for a later run.
    """
    if slug is None:
        slug = allocate_unique_slug(session, draft.slug or draft.title, max_attempts=slug_max_attempts)
    entity = Article(
        title=draft.title,
        slug=slug,
        meta_title=draft.meta_title,
        meta_description=draft.meta_description,
        excerpt=draft.excerpt,
        content=draft.html_content,
        main_keyword=draft.main_keyword,
        reading_time=draft.reading_time_minutes,
        featured_image=image.url,
        featured_image_alt=draft.image_alt_text,
        status=ArticleStatus.PUBLISHED,
        published_at=datetime.now(timezone.utc),
        ai_generated=True,
        is_curated=True,
        author_id=author_id,
        source_url=source_url,
        source_name=source_name,
    )
    session.add(entity)
    session.flush()
    if not mark_processed(session, item_id, entity.id):
        raise SourceItemAlreadyProcessed(f"Source item {item_id} was already processed")
    return entity


def list_articles_missing_images(session: Session, limit: int = 10) -> Sequence[Article]:
    stmt = (
        select(Article)
        .where(
            Article.status == ArticleStatus.PUBLISHED,
            or_(Article.featured_image.is_(None), Article.featured_image == ""),
        )
        .order_by(Article.created_at.desc())
        .limit(limit)
    )
    return list(session.execute(stmt).scalars().all())


def set_featured_image(session: Session, article_id: uuid.UUID, url: str, alt_text: Optional[str]) -> None:
    article = session.get(Article, article_id)
    if article is None:
        raise LookupError(f"Article {article_id} not found")
    article.featured_image = url
    if alt_text and not article.featured_image_alt:
        article.featured_image_alt = alt_text
    session.flush()
