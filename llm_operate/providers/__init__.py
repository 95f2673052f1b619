"""Provider adapters."""

from .anthropic import AnthropicAdapter
from .base import ProviderAdapter, ProviderError
from .errors import classify_sdk_error
from .openai import OpenAiAdapter
from .registry import create_adapter, create_client, determine_model_provider

__all__ = [
    "AnthropicAdapter",
    "OpenAiAdapter",
    "ProviderAdapter",
    "ProviderError",
    "classify_sdk_error",
    "create_adapter",
    "create_client",
    "determine_model_provider",
]
