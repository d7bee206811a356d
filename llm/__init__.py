"""LLM module - OpenAI text/image clients and settings."""

from llm.client.image_client import ImageClient, ImageGenerationError, ImageProviderFn
from llm.client.openai_client import GenerationFailed, LLMError, OpenAIClient, ProviderFn
from llm.settings import GenerationSettings, get_generation_settings, reset_generation_settings_cache

__all__ = [
    "GenerationFailed",
    "GenerationSettings",
    "ImageClient",
    "ImageGenerationError",
    "ImageProviderFn",
    "LLMError",
    "OpenAIClient",
    "ProviderFn",
    "get_generation_settings",
    "reset_generation_settings_cache",
]
