"""Main client interface for llm_operate."""

from typing import Any, AsyncIterator, Optional

from ..config.settings import OperateSettings, get_settings
from ..errors import ConfigurationError
from ..hooks.runner import HookRunner
from ..models.conversation_types import OperateInput
from ..models.operate import OperateResult
from ..models.streaming import StreamChunk
from ..operate.loop import OperateLoop
from ..operate.stream_loop import StreamLoop
from ..providers.base import ProviderAdapter
from ..providers.registry import create_adapter, create_client, determine_model_provider
from ..reliability.retry import RetryPolicy


class LlmClient:
    """High-level client: pick a provider from a model name, then operate or stream."""

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        provider: Optional[str] = None,
        adapter: Optional[ProviderAdapter] = None,
        client: Any = None,
        retry_policy: Optional[RetryPolicy] = None,
        hook_runner: Optional[HookRunner] = None,
        settings: Optional[OperateSettings] = None,
    ):
        """
        Initialize the client.

        Args:
            model: Model or provider name; defaults to the default provider's model
            api_key: Provider API key; read from the environment when omitted
            provider: Explicit provider name, overriding resolution from ``model``
            adapter: Adapter instance, mainly for tests and custom providers
            client: SDK client instance to pass to the adapter
            retry_policy: Retry policy; built from settings when omitted
            hook_runner: Hook runner shared by both loops
            settings: Settings; loaded from the environment when omitted
        """
        self.settings = settings or get_settings()
        resolved_model, resolved_provider = determine_model_provider(model)
        self.model = resolved_model
        self.provider = provider or resolved_provider or (adapter.name if adapter else None)
        if self.provider is None:
            raise ConfigurationError(f"Unable to determine provider for model: {model}")

        self.adapter = adapter or create_adapter(self.provider)
        self.client = client if client is not None else create_client(
            self.provider,
            api_key or self.settings.api_key_for(self.provider),
        )
        self.retry_policy = retry_policy or RetryPolicy.from_settings(self.settings)
        self.hook_runner = hook_runner or HookRunner()

    def _options(self, options: dict) -> dict:
        options.setdefault("model", self.model)
        options.setdefault("turns", self.settings.max_turns)
        return options

    async def operate(self, input: OperateInput, **options) -> OperateResult:
        """Run a conversation to completion. See ``OperateOptions`` for options."""
        loop = OperateLoop(
            adapter=self.adapter,
            client=self.client,
            hook_runner=self.hook_runner,
            retry_policy=self.retry_policy,
        )
        return await loop.execute(input, self._options(options))

    async def stream(self, input: OperateInput, **options) -> AsyncIterator[StreamChunk]:
        """Stream a conversation. See ``OperateOptions`` for options."""
        loop = StreamLoop(
            adapter=self.adapter,
            client=self.client,
            hook_runner=self.hook_runner,
            retry_policy=self.retry_policy,
        )
        async for chunk in loop.execute(input, self._options(options)):
            yield chunk
