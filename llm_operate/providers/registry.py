"""Provider resolution and construction."""

from typing import Any, Dict, Optional, Tuple, Type

import anthropic
import openai

from ..config.defaults import (
    DEFAULT_MODELS,
    DEFAULT_PROVIDER,
    KNOWN_MODELS,
    MODEL_MATCH_WORDS,
    PROVIDER_ANTHROPIC,
    PROVIDER_OPENAI,
)
from ..errors import ConfigurationError
from .anthropic import AnthropicAdapter
from .base import ProviderAdapter
from .openai import OpenAiAdapter

ADAPTERS: Dict[str, Type[ProviderAdapter]] = {
    PROVIDER_OPENAI: OpenAiAdapter,
    PROVIDER_ANTHROPIC: AnthropicAdapter,
}


def determine_model_provider(model: Optional[str] = None) -> Tuple[str, Optional[str]]:
    """
    Resolve a provider name or model name to ``(model, provider)``.

    A provider name maps to that provider's default model. A model name is
    matched exactly against known models, then by match words. Unrecognized
    models return ``None`` as the provider.
    """
    if not model:
        return DEFAULT_MODELS[DEFAULT_PROVIDER], DEFAULT_PROVIDER

    if model in DEFAULT_MODELS:
        return DEFAULT_MODELS[model], model

    for provider, models in KNOWN_MODELS.items():
        if model in models:
            return model, provider

    lowered = model.lower()
    for provider, words in MODEL_MATCH_WORDS.items():
        if any(word in lowered for word in words):
            return model, provider

    # o-series reasoning models (o1, o3-mini, o4-mini, ...)
    if lowered[:1] == "o" and lowered[1:2].isdigit():
        return model, PROVIDER_OPENAI

    return model, None


def create_adapter(provider: str) -> ProviderAdapter:
    try:
        return ADAPTERS[provider]()
    except KeyError:
        raise ConfigurationError(f"Unsupported provider: {provider}") from None


def create_client(provider: str, api_key: Optional[str] = None) -> Any:
    """Create the async SDK client for ``provider``."""
    if provider == PROVIDER_OPENAI:
        return openai.AsyncOpenAI(api_key=api_key)
    if provider == PROVIDER_ANTHROPIC:
        return anthropic.AsyncAnthropic(api_key=api_key)
    raise ConfigurationError(f"Unsupported provider: {provider}")
