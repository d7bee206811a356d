"""OpenAI chat client for article generation.

Features
- Strict JSON output requested and parsed into ``GeneratedArticleDraft``
- Per-request cost cap and request timeout
- Provider injection so tests run without network or the openai package
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from llm.prompts.templates import build_article_messages
from llm.settings import GenerationSettings, get_generation_settings
from newsroom.models.domain import GeneratedArticleDraft, SourceItemDTO
from newsroom.utils.logging import get_logger


class LLMError(Exception):
    """Base error for generation calls."""


class GenerationFailed(LLMError):
    """The article could not be generated or its JSON contract was broken."""


ProviderFn = Callable[[Dict[str, Any]], Dict[str, Any]]

logger = get_logger(__name__)

_PRICE_PER_1K_TOKENS_USD: Dict[str, Dict[str, float]] = {
    # Reference prices used for the cost cap; unknown models use gpt-4o-mini pricing
    "gpt-4o-mini": {"prompt": 0.00015, "completion": 0.0006},
    "gpt-4o": {"prompt": 0.0025, "completion": 0.0100},
    "gpt-4.1": {"prompt": 0.0020, "completion": 0.0080},
    "gpt-4.1-mini": {"prompt": 0.0004, "completion": 0.0016},
}

_FENCE = re.compile(r"```(?:json)?\s*|\s*```", re.IGNORECASE)


def _estimate_cost_usd(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    price = _PRICE_PER_1K_TOKENS_USD.get(model, _PRICE_PER_1K_TOKENS_USD["gpt-4o-mini"])
    return (
        (prompt_tokens / 1000.0) * price["prompt"]
        + (completion_tokens / 1000.0) * price["completion"]
    )


def _load_structured_content(content: str) -> Dict[str, Any]:
    cleaned = _FENCE.sub("", content or "").strip()
    if not cleaned:
        raise GenerationFailed("Empty response from the text generator")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise GenerationFailed("Generator response is not valid JSON") from exc
    if not isinstance(data, dict):
        raise GenerationFailed("Generator response is not a JSON object")
    return data


@dataclass(frozen=True)
class OpenAIClient:
    settings: GenerationSettings
    provider: Optional[ProviderFn] = None

    @classmethod
    def from_env(cls, provider: Optional[ProviderFn] = None) -> "OpenAIClient":
        return cls(get_generation_settings(), provider=provider)

    def _get_provider(self) -> ProviderFn:
        if self.provider is not None:
            return self.provider
        from openai import OpenAI

        client = OpenAI(
            api_key=self.settings.openai_api_key,
            base_url=self.settings.openai_base_url,
            timeout=float(self.settings.request_timeout_seconds),
            max_retries=0,
        )

        def _call(payload: Dict[str, Any]) -> Dict[str, Any]:  # pragma: no cover - network
            resp = client.chat.completions.create(**payload)
            return {
                "choices": [{"message": {"content": resp.choices[0].message.content}}],
                "usage": {
                    "prompt_tokens": getattr(resp.usage, "prompt_tokens", 0),
                    "completion_tokens": getattr(resp.usage, "completion_tokens", 0),
                },
                "model": resp.model,
            }

        return _call

    def _build_payload(self, item: SourceItemDTO, existing_titles_context: str) -> Dict[str, Any]:
        msgs = build_article_messages(
            item,
            existing_titles_context,
            locale=self.settings.content_locale,
            site_name=self.settings.site_name,
        )
        return {
            "model": self.settings.article_model,
            "messages": msgs,
            "temperature": float(self.settings.article_temperature),
            "max_tokens": int(self.settings.article_max_tokens),
            "response_format": {"type": "json_object"},
        }

    def generate_article(self, item: SourceItemDTO, existing_titles_context: str) -> GeneratedArticleDraft:
        """Single attempt; any failure surfaces as ``GenerationFailed``."""
        payload = self._build_payload(item, existing_titles_context)
        provider = self._get_provider()
        try:
            resp = provider(payload)
        except Exception as exc:
            raise GenerationFailed(f"Text generation request failed: {exc}") from exc

        model = resp.get("model") or self.settings.article_model
        usage = resp.get("usage") or {}
        prompt_tokens = int(usage.get("prompt_tokens", 0) or 0)
        completion_tokens = int(usage.get("completion_tokens", 0) or 0)
        cost = _estimate_cost_usd(model, prompt_tokens, completion_tokens)
        logger.info(
            "generate.usage",
            extra={
                "source_item_id": str(item.id),
                "model": model,
                "tokens_prompt": prompt_tokens,
                "tokens_completion": completion_tokens,
                "cost": round(cost, 6),
            },
        )
        if cost > float(self.settings.article_cost_limit_usd):
            raise GenerationFailed("Article generation cost limit exceeded")

        choices = resp.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content") or ""
        data = _load_structured_content(content)
        try:
            return GeneratedArticleDraft.model_validate(data)
        except ValidationError as exc:
            raise GenerationFailed(f"Generator JSON violates the article contract: {exc.error_count()} error(s)") from exc
