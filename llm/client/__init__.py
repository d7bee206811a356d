"""Generation client module."""

from llm.client.image_client import ImageClient, ImageGenerationError, ImageProviderFn
from llm.client.openai_client import GenerationFailed, LLMError, OpenAIClient, ProviderFn

__all__ = [
    "GenerationFailed",
    "ImageClient",
    "ImageGenerationError",
    "ImageProviderFn",
    "LLMError",
    "OpenAIClient",
    "ProviderFn",
]
