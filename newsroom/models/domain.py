"""DTOs shared by the publishing pipeline stages.

Pydantic v2 models normalise the LLM JSON contract and the values that flow
between the selector, generator, image resolver and persistence layer.
"""

from __future__ import annotations

import uuid
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_READING_TIME_MINUTES = 5

# Widths of the matching articles columns; longer generator output is cut.
DRAFT_FIELD_LIMITS = {
    "meta_title": 256,
    "meta_description": 512,
    "main_keyword": 256,
    "image_alt_text": 512,
}


class AutomationSettings(BaseModel):
    """Operational knobs read from the automation_settings table once per run."""

    model_config = ConfigDict(frozen=True)

    articles_per_execution: int = Field(3, ge=1)
    daily_target: int = Field(15, ge=1)
    image_fallback_enabled: bool = True
    trending_boost_enabled: bool = True


class SourceItemDTO(BaseModel):
    """Detached snapshot of a queued source item."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    title: str
    raw_content: Optional[str] = None
    source_url: str
    source_name: Optional[str] = None
    source_site_url: Optional[str] = None
    engagement_score: int = 0

    @classmethod
    def from_row(cls, row: Any) -> "SourceItemDTO":
        return cls(
            id=row.id,
            title=row.title,
            raw_content=row.raw_content,
            source_url=row.source_url,
            source_name=row.source_name,
            source_site_url=row.source_site_url,
            engagement_score=row.engagement_score or 0,
        )


class GeneratedArticleDraft(BaseModel):
    """Article produced by the text generator (JSON contract, camelCase keys)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(..., max_length=512)
    slug: Optional[str] = None
    meta_title: str = Field("", alias="metaTitle")
    meta_description: str = Field("", alias="metaDescription")
    excerpt: str = ""
    html_content: str = Field(..., alias="content")
    main_keyword: str = Field("", alias="mainKeyword")
    reading_time_minutes: int = Field(DEFAULT_READING_TIME_MINUTES, alias="readingTime")
    image_alt_text: str = Field("", alias="featuredImageAlt")

    @field_validator("title", "html_content")
    @classmethod
    def _required_text(cls, v: str) -> str:
        s = (v or "").strip()
        if not s:
            raise ValueError("must not be blank")
        return s

    @field_validator("slug", mode="before")
    @classmethod
    def _blank_slug_to_none(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        s = str(v).strip()
        return s or None

    @field_validator("meta_title", "meta_description", "excerpt", "main_keyword", "image_alt_text", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("reading_time_minutes", mode="before")
    @classmethod
    def _reading_time(cls, v: Any) -> int:
        try:
            minutes = int(v)
        except (TypeError, ValueError):
            return DEFAULT_READING_TIME_MINUTES
        return minutes if minutes > 0 else DEFAULT_READING_TIME_MINUTES

    @model_validator(mode="after")
    def _fill_derived(self) -> "GeneratedArticleDraft":
        if not self.main_keyword:
            self.main_keyword = self.title
        if not self.meta_title:
            self.meta_title = self.title[:60]
        if not self.image_alt_text:
            self.image_alt_text = self.title
        for name, limit in DRAFT_FIELD_LIMITS.items():
            value = getattr(self, name)
            if len(value) > limit:
                setattr(self, name, value[:limit].rstrip())
        return self


class GeneratedImage(BaseModel):
    """Inline image payload returned by the image generator."""

    base64_data: str
    content_type: str = "image/png"


class ImageResolution(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: Optional[str] = None
    was_ai_generated: bool = False


class PublishedArticle(BaseModel):
    article_id: uuid.UUID
    slug: str
    title: str
    image_generated: bool
    image_url: Optional[str] = None


class BatchResult(BaseModel):
    """Outcome of one publish invocation; never persisted."""

    published_articles: List[PublishedArticle] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    requested: int = 0
    test_mode: bool = False
    settings: Optional[AutomationSettings] = None


class ImageRepairFailure(BaseModel):
    id: uuid.UUID
    title: str
    error: str


class ImageRepairCandidate(BaseModel):
    id: uuid.UUID
    title: str


class ImageRepairResult(BaseModel):
    fixed: int = 0
    failed: List[ImageRepairFailure] = Field(default_factory=list)
    total: int = 0
    dry_run: bool = False
    articles_to_fix: List[ImageRepairCandidate] = Field(default_factory=list)
