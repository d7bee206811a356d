"""SQLAlchemy models for the publishing pipeline."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import Uuid


class Base(DeclarativeBase):
    """Base class for ORM models."""


class TimestampMixin:
    """Adds created_at/updated_at columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class ArticleStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class JobStage(str, Enum):
    PUBLISH = "publish"
    IMAGE_REPAIR = "image_repair"


class JobStatus(str, Enum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Author(TimestampMixin, Base):
    __tablename__ = "authors"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_ai: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Article(TimestampMixin, Base):
    """A published (or draft) article on the site."""

    __tablename__ = "articles"
    __table_args__ = (
        UniqueConstraint("slug", name="uq_articles_slug"),
        Index("ix_articles_status_published", "status", "published_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    slug: Mapped[str] = mapped_column(String(128), nullable=False)
    meta_title: Mapped[str | None] = mapped_column(String(256))
    meta_description: Mapped[str | None] = mapped_column(String(512))
    excerpt: Mapped[str | None] = mapped_column(Text)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    main_keyword: Mapped[str | None] = mapped_column(String(256))
    reading_time: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    featured_image: Mapped[str | None] = mapped_column(String(2048))
    featured_image_alt: Mapped[str | None] = mapped_column(String(512))
    status: Mapped[ArticleStatus] = mapped_column(
        SAEnum(ArticleStatus, name="article_status", native_enum=False, length=16),
        nullable=False,
        default=ArticleStatus.DRAFT,
    )
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    ai_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_curated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    author_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), ForeignKey("authors.id"))
    source_url: Mapped[str | None] = mapped_column(String(2048))
    source_name: Mapped[str | None] = mapped_column(String(200))


class SourceItem(TimestampMixin, Base):
    """Queued raw news item waiting to become an article."""

    __tablename__ = "source_items"
    __table_args__ = (
        Index("ix_source_items_processed_score", "processed", "engagement_score"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    raw_content: Mapped[str | None] = mapped_column(Text)
    source_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    source_name: Mapped[str | None] = mapped_column(String(200))
    source_site_url: Mapped[str | None] = mapped_column(String(2048))
    engagement_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    linked_article_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), ForeignKey("articles.id"))
    claim_token: Mapped[str | None] = mapped_column(String(64))
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    fetched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


class FallbackImage(TimestampMixin, Base):
    """Curated stock image used when AI image generation is unavailable."""

    __tablename__ = "fallback_images"
    __table_args__ = (
        UniqueConstraint("url", name="uq_fallback_images_url"),
        Index("ix_fallback_images_category_usage", "category", "usage_count"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False, default="general")
    alt_text: Mapped[str | None] = mapped_column(String(512))
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class AutomationSetting(TimestampMixin, Base):
    """Key/value row tuning the automated publisher."""

    __tablename__ = "automation_settings"
    __table_args__ = (UniqueConstraint("key", name="uq_automation_settings_key"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    key: Mapped[str] = mapped_column(String(64), nullable=False)
    value: Mapped[Any] = mapped_column(JSON)
    description: Mapped[str | None] = mapped_column(String(512))


class JobRun(TimestampMixin, Base):
    """Represents a single pipeline invocation."""

    __tablename__ = "job_runs"
    __table_args__ = (
        Index("ix_job_runs_stage_status", "stage", "status"),
        Index("ix_job_runs_trace", "trace_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    stage: Mapped[JobStage] = mapped_column(
        SAEnum(JobStage, name="job_stage", native_enum=False, length=16),
        nullable=False,
    )
    status: Mapped[JobStatus] = mapped_column(
        SAEnum(JobStatus, name="job_status", native_enum=False, length=16),
        nullable=False,
        default=JobStatus.RUNNING,
    )
    task_name: Mapped[str | None] = mapped_column(String(100))
    trace_id: Mapped[str | None] = mapped_column(String(64))
    test_mode: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    items_requested: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    items_published: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    items_failed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    error_message: Mapped[str | None] = mapped_column(String(512))
