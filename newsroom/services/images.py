"""Featured-image resolution: AI generation first, curated fallbacks after."""

from __future__ import annotations

import random
import uuid
from contextlib import AbstractContextManager
from typing import Callable, Optional, Protocol, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from newsroom.db.models import FallbackImage
from newsroom.db.session import session_scope
from newsroom.models.domain import GeneratedImage, ImageResolution
from newsroom.services.storage import StorageUploader
from newsroom.utils.logging import get_logger

logger = get_logger(__name__)

GENERAL_CATEGORY = "general"

# Ordered: first match wins.
CATEGORY_TERMS: Tuple[Tuple[str, str], ...] = (
    ("carbono", "carbon"),
    ("carbon", "carbon"),
    ("floresta", "forest"),
    ("forest", "forest"),
    ("energia", "energy"),
    ("energy", "energy"),
    ("solar", "energy"),
    ("eólica", "wind"),
    ("wind", "wind"),
    ("cidade", "urban"),
    ("urban", "urban"),
    ("finance", "finance"),
    ("financ", "finance"),
    ("investimento", "finance"),
)

DEFAULT_FALLBACK_IMAGES: Tuple[str, ...] = (
    "https://images.unsplash.com/photo-1532996122724-e3c354a0b15b?w=1200&h=630&fit=crop",
    "https://images.unsplash.com/photo-1473341304170-971dccb5ac1e?w=1200&h=630&fit=crop",
    "https://images.unsplash.com/photo-1497435334941-8c899ee9e8e9?w=1200&h=630&fit=crop",
    "https://images.unsplash.com/photo-1518531933037-91b2f5f229cc?w=1200&h=630&fit=crop",
    "https://images.unsplash.com/photo-1611273426858-450d8e3c9fce?w=1200&h=630&fit=crop",
    "https://images.unsplash.com/photo-1466611653911-95081537e5b7?w=1200&h=630&fit=crop",
    "https://images.unsplash.com/photo-1569163139599-0f4517e36f51?w=1200&h=630&fit=crop",
    "https://images.unsplash.com/photo-1441974231531-c6227db76b6e?w=1200&h=630&fit=crop",
)


def infer_image_category(keyword: str) -> str:
    lowered = (keyword or "").lower()
    for term, category in CATEGORY_TERMS:
        if term in lowered:
            return category
    return GENERAL_CATEGORY


class ImageGenerator(Protocol):
    def generate(self, keyword: str, title: str) -> GeneratedImage: ...


SessionFactory = Callable[[], AbstractContextManager[Session]]


def least_used_image(session: Session, category: str) -> Optional[FallbackImage]:
    stmt = (
        select(FallbackImage)
        .where(FallbackImage.category == category)
        .order_by(FallbackImage.usage_count.asc(), FallbackImage.created_at.asc())
        .limit(1)
    )
    return session.execute(stmt).scalars().first()


def increment_usage(session: Session, image_id: uuid.UUID) -> None:
    session.execute(
        update(FallbackImage)
        .where(FallbackImage.id == image_id)
        .values(usage_count=FallbackImage.usage_count + 1)
        .execution_options(synchronize_session=False)
    )


class ImageResolver:
    """Resolve a featured image for one article.

    Order: AI generation + upload, then the least-used pool image of the
    keyword's category (or ``general``), then a random static default. With
    the fallback disabled a failed AI attempt yields ``url=None``.
    """

    def __init__(
        self,
        generator: Optional[ImageGenerator],
        uploader: Optional[StorageUploader],
        *,
        session_factory: SessionFactory = session_scope,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._generator = generator
        self._uploader = uploader
        self._session_factory = session_factory
        self._rng = rng or random.Random()

    def resolve_image(self, keyword: str, title: str, slug: str, fallback_enabled: bool) -> ImageResolution:
        url = self._try_ai(keyword, title, slug)
        if url:
            return ImageResolution(url=url, was_ai_generated=True)
        if not fallback_enabled:
            logger.info("images.no_image", extra={"slug": slug})
            return ImageResolution(url=None, was_ai_generated=False)
        return ImageResolution(url=self.fallback_url(keyword), was_ai_generated=False)

    def _try_ai(self, keyword: str, title: str, slug: str) -> Optional[str]:
        if self._generator is None or self._uploader is None:
            return None
        try:
            image = self._generator.generate(keyword, title)
        except Exception as exc:
            logger.warning("images.ai_failed", extra={"slug": slug, "error": str(exc)})
            return None
        return self._uploader.upload_base64(image.base64_data, image.content_type, slug)

    def fallback_url(self, keyword: str) -> str:
        category = infer_image_category(keyword)
        chosen: Optional[Tuple[uuid.UUID, str]] = None
        try:
            with self._session_factory() as session:
                row = least_used_image(session, category)
                if row is None and category != GENERAL_CATEGORY:
                    row = least_used_image(session, GENERAL_CATEGORY)
                if row is not None:
                    chosen = (row.id, row.url)
        except SQLAlchemyError:
            logger.exception("images.fallback_pool_unavailable", extra={"category": category})

        if chosen is not None:
            image_id, url = chosen
            self._record_usage(image_id)
            logger.info("images.fallback_pool", extra={"category": category, "url": url})
            return url

        url = self._rng.choice(DEFAULT_FALLBACK_IMAGES)
        logger.info("images.fallback_static", extra={"category": category, "url": url})
        return url

    def _record_usage(self, image_id: uuid.UUID) -> None:
        try:
            with self._session_factory() as session:
                increment_usage(session, image_id)
        except SQLAlchemyError:
            logger.warning("images.usage_increment_failed", extra={"image_id": str(image_id)})
