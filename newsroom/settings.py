"""Configuration models for the publishing service."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, List, Literal, Optional

from pydantic import (
    Field,
    NonNegativeFloat,
    PositiveInt,
    SecretStr,
    ValidationError,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment settings for the publishing pipeline."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    database_url: str = Field(..., alias="DATABASE_URL", description="SQLAlchemy database URL.")
    broker_url: str = Field(
        "redis://localhost:6379/0",
        alias="CELERY_BROKER_URL",
        description="Celery broker/backend Redis DSN.",
    )
    structlog_level: str = Field("INFO", alias="STRUCTLOG_LEVEL", description="Log level.")
    log_json: bool = Field(False, alias="LOG_JSON", description="Emit logs as JSON lines.")

    max_articles_per_run: PositiveInt = Field(
        10,
        alias="MAX_ARTICLES_PER_RUN",
        description="Hard cap on articles published by one invocation.",
    )
    item_delay_seconds: NonNegativeFloat = Field(
        2.0,
        alias="ITEM_DELAY_SECONDS",
        description="Pause between items to respect generation API rate limits.",
    )
    trending_min_score: int = Field(
        50,
        alias="TRENDING_MIN_SCORE",
        description="Minimum engagement score used when trending boost is on.",
    )
    internal_link_context_size: PositiveInt = Field(
        20,
        alias="INTERNAL_LINK_CONTEXT_SIZE",
        description="Published titles offered to the generator for internal links.",
    )
    slug_max_attempts: PositiveInt = Field(
        100,
        alias="SLUG_MAX_ATTEMPTS",
        description="Numeric suffixes tried before slug allocation gives up.",
    )
    claim_lease_seconds: PositiveInt = Field(
        900,
        alias="CLAIM_LEASE_SECONDS",
        description="How long a claimed source item stays reserved for one run.",
    )
    publish_schedule: str = Field(
        "8,12,16,20",
        alias="PUBLISH_SCHEDULE_HOURS",
        description="Comma separated UTC hours at which the scheduled publish run fires.",
    )

    storage_backend: Literal["local", "s3"] = Field("local", alias="STORAGE_BACKEND")
    storage_bucket: str = Field("article-images", alias="STORAGE_BUCKET", description="Bucket/folder for images.")
    local_storage_root: str = Field(
        "./var/storage",
        alias="LOCAL_STORAGE_ROOT",
        description="Root directory of the local object store.",
    )
    public_storage_base_url: str = Field(
        "http://localhost:8000/storage",
        alias="PUBLIC_STORAGE_BASE_URL",
        description="Public URL prefix under which stored objects are served.",
    )
    s3_bucket: Optional[str] = Field(None, alias="S3_BUCKET")
    s3_endpoint_url: Optional[str] = Field(None, alias="S3_ENDPOINT_URL")
    s3_region: Optional[str] = Field(None, alias="S3_REGION")
    s3_access_key_id: Optional[SecretStr] = Field(None, alias="AWS_ACCESS_KEY_ID")
    s3_secret_access_key: Optional[SecretStr] = Field(None, alias="AWS_SECRET_ACCESS_KEY")

    image_generation_enabled: bool = Field(
        True,
        alias="IMAGE_GENERATION_ENABLED",
        description="Try AI image generation before the fallback pool.",
    )

    celery_worker_concurrency: PositiveInt = Field(1, alias="CELERY_WORKER_CONCURRENCY")
    celery_task_soft_time_limit: PositiveInt = Field(
        840,
        alias="CELERY_TASK_SOFT_TIME_LIMIT",
        description="Soft time limit of one publish run (seconds).",
    )

    @field_validator("database_url")
    @classmethod
    def _validate_database_url(cls, value: str) -> str:
        if "://" not in value:
            raise ValueError("DATABASE_URL must be a valid SQLAlchemy URL.")
        return value

    @field_validator("publish_schedule", mode="before")
    @classmethod
    def _normalize_schedule(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return ",".join(str(v) for v in value)
        return str(value)

    @field_validator("publish_schedule")
    @classmethod
    def _validate_schedule(cls, value: str) -> str:
        _parse_hours(value)
        return value

    @property
    def publish_schedule_hours(self) -> List[int]:
        return _parse_hours(self.publish_schedule)

    @field_validator("local_storage_root", "storage_bucket")
    @classmethod
    def _non_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("value must not be blank.")
        return stripped

    @field_validator("public_storage_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")


def _parse_hours(raw: str) -> List[int]:
    hours: set[int] = set()
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            hour = int(part)
        except ValueError as exc:
            raise ValueError(f"PUBLISH_SCHEDULE_HOURS contains a non-integer: {part!r}") from exc
        if not 0 <= hour <= 23:
            raise ValueError(f"PUBLISH_SCHEDULE_HOURS hour out of range: {hour}")
        hours.add(hour)
    return sorted(hours)


@lru_cache()
def get_settings() -> Settings:
    """Return the Settings instance built from the environment."""
    try:
        return Settings()
    except ValidationError as exc:
        raise RuntimeError(f"Environment validation failed: {exc}") from exc


def reset_settings_cache() -> None:
    """Clear the Settings LRU cache (used by tests)."""
    get_settings.cache_clear()  # type: ignore[attr-defined]
