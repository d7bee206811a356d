"""OpenAI image client for article header images."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from llm.client.openai_client import LLMError
from llm.prompts.templates import build_image_prompt
from llm.settings import GenerationSettings, get_generation_settings
from newsroom.models.domain import GeneratedImage

ImageProviderFn = Callable[[Dict[str, Any]], Dict[str, Any]]

_DATA_URL = re.compile(r"^data:(?P<ctype>[^;]+);base64,(?P<data>.+)$", re.DOTALL)


class ImageGenerationError(LLMError):
    """No usable image came back from the image endpoint."""


def parse_data_url(value: str) -> Optional[GeneratedImage]:
    match = _DATA_URL.match(value or "")
    if not match or not match.group("ctype").startswith("image/"):
        return None
    return GeneratedImage(base64_data=match.group("data"), content_type=match.group("ctype"))


def _extract_image(resp: Dict[str, Any], default_content_type: str) -> Optional[GeneratedImage]:
    """Accept the images API shape and the chat-completions ``images`` shape."""
    for entry in resp.get("data") or []:
        b64 = entry.get("b64_json")
        if b64:
            return GeneratedImage(base64_data=b64, content_type=default_content_type)
        parsed = parse_data_url(entry.get("url") or "")
        if parsed:
            return parsed
    choices = resp.get("choices") or []
    if choices:
        images = (choices[0].get("message") or {}).get("images") or []
        if images:
            url = (images[0].get("image_url") or {}).get("url") or ""
            return parse_data_url(url)
    return None


@dataclass(frozen=True)
class ImageClient:
    settings: GenerationSettings
    provider: Optional[ImageProviderFn] = None

    @classmethod
    def from_env(cls, provider: Optional[ImageProviderFn] = None) -> "ImageClient":
        return cls(get_generation_settings(), provider=provider)

    def _get_provider(self) -> ImageProviderFn:
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
            resp = client.images.generate(**payload)
            return {"data": [{"b64_json": d.b64_json, "url": d.url} for d in (resp.data or [])]}

        return _call

    def _build_payload(self, keyword: str, title: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.settings.image_model,
            "prompt": build_image_prompt(keyword, title),
            "size": self.settings.image_size,
            "n": 1,
        }
        if self.settings.image_model.startswith("dall-e"):
            payload["response_format"] = "b64_json"
        else:
            payload["output_format"] = self.settings.image_output_format
        return payload

    def generate(self, keyword: str, title: str) -> GeneratedImage:
        payload = self._build_payload(keyword, title)
        provider = self._get_provider()
        try:
            resp = provider(payload)
        except Exception as exc:
            raise ImageGenerationError(f"Image generation request failed: {exc}") from exc
        default_type = "image/png" if "response_format" in payload else f"image/{self.settings.image_output_format}"
        image = _extract_image(resp or {}, default_type)
        if image is None:
            raise ImageGenerationError("No valid image in generator response")
        return image
