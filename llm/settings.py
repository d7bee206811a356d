"""Settings for the text and image generation clients."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, PositiveFloat, PositiveInt, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GenerationSettings(BaseSettings):
    """Environment-driven configuration for the OpenAI-backed generators."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    openai_api_key: str = Field(..., alias="OPENAI_API_KEY", description="OpenAI API key")
    openai_base_url: Optional[str] = Field(None, alias="OPENAI_BASE_URL", description="OpenAI-compatible gateway")
    article_model: str = Field("gpt-4o-mini", alias="ARTICLE_MODEL", description="Chat model for articles")
    article_max_tokens: PositiveInt = Field(4096, alias="ARTICLE_MAX_TOKENS", description="Max completion tokens")
    article_temperature: PositiveFloat = Field(0.7, alias="ARTICLE_TEMPERATURE", description="Sampling temperature")
    article_cost_limit_usd: PositiveFloat = Field(
        0.10,
        alias="ARTICLE_COST_LIMIT_USD",
        description="Per-article cost cap (USD)",
    )
    request_timeout_seconds: PositiveInt = Field(
        120,
        alias="GENERATION_REQUEST_TIMEOUT_SECONDS",
        description="HTTP request timeout in seconds",
    )
    image_model: str = Field("gpt-image-1", alias="IMAGE_MODEL", description="Image generation model")
    image_size: str = Field("1536x1024", alias="IMAGE_SIZE", description="Generated image size")
    image_output_format: Literal["png", "jpeg", "webp"] = Field("webp", alias="IMAGE_OUTPUT_FORMAT")
    content_locale: str = Field("pt_BR", alias="CONTENT_LOCALE", description="Language of generated articles")
    site_name: str = Field("Byoma Research", alias="SITE_NAME", description="Blog name quoted in prompts")

    @field_validator("openai_api_key")
    @classmethod
    def _non_empty_api_key(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("OPENAI_API_KEY must not be blank.")
        return s


@lru_cache()
def get_generation_settings() -> GenerationSettings:
    try:
        return GenerationSettings()
    except ValidationError as exc:
        raise RuntimeError(f"Generation settings validation failed: {exc}") from exc


def reset_generation_settings_cache() -> None:
    get_generation_settings.cache_clear()  # type: ignore[attr-defined]
