from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class PublishRequest(BaseModel):
    count: Optional[int] = Field(None, ge=1, description="Articles to publish; capped server side.")
    test: bool = False


class SettingsEcho(BaseModel):
    fallback_enabled: bool
    trending_boost_enabled: bool


class PublishedArticleOut(BaseModel):
    article_id: uuid.UUID
    slug: str
    title: str
    image_generated: bool
    image_url: Optional[str] = None


class PublishResponse(BaseModel):
    success: bool = True
    published: int
    articles: list[PublishedArticleOut] = Field(default_factory=list)
    settings: Optional[SettingsEcho] = None
    errors: Optional[list[str]] = None
    message: Optional[str] = None
    test_mode: bool = False
    timestamp: datetime


class RepairRequest(BaseModel):
    limit: int = Field(10, ge=1, le=100)
    dry_run: bool = False


class RepairFailureOut(BaseModel):
    id: uuid.UUID
    title: str
    error: str


class RepairCandidateOut(BaseModel):
    id: uuid.UUID
    title: str


class RepairResponse(BaseModel):
    success: bool = True
    message: str
    total: int
    fixed: Optional[int] = None
    failed: Optional[list[RepairFailureOut]] = None
    articles_to_fix: Optional[list[RepairCandidateOut]] = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
