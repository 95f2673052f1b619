"""
Base Provider Adapter Interface

This module defines the contract between the turn loops and a model provider.
The loops never branch on provider identity; everything provider-specific is
reached through :class:`ProviderAdapter`.
"""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Optional

from ..models.conversation_types import History, HistoryItem
from ..models.operate import (
    ClassifiedError,
    ErrorCategory,
    OperateOptions,
    OperateRequest,
    ParsedResponse,
    ProviderToolDefinition,
    StandardToolCall,
    StandardToolResult,
    UsageItem,
)
from ..models.streaming import StreamChunk
from ..reliability.cancellation import CancellationHandle


class ProviderAdapter(ABC):
    """
    Abstract base class for provider adapters.

    The adapter is responsible for:
    - Translating an ``OperateRequest`` and canonical history into the provider's request
    - Making API calls, optionally streaming
    - Normalizing responses, tool calls and usage
    - Classifying provider errors

    Adapters should NOT contain:
    - Turn logic or retries
    - Tool dispatch
    """

    name: str = ""
    default_model: str = ""

    # Request building

    @abstractmethod
    def build_request(self, request: OperateRequest) -> Any:
        """
        Build the provider request for one turn.

        Args:
            request: Provider-agnostic request with canonical history in ``messages``

        Returns:
            The provider-specific request payload
        """
        pass

    @abstractmethod
    def format_tools(
        self,
        toolkit: Any,
        output_schema: Optional[Dict[str, Any]] = None,
    ) -> List[ProviderToolDefinition]:
        """Convert toolkit definitions, plus any synthetic output tool, into tool definitions."""
        pass

    @abstractmethod
    def format_output_schema(self, schema: Any) -> Dict[str, Any]:
        """Convert a JSON schema dict or pydantic model class into the provider's format."""
        pass

    # Execution

    @abstractmethod
    async def execute_request(
        self,
        client: Any,
        provider_request: Any,
        handle: Optional[CancellationHandle] = None,
    ) -> Any:
        """
        Execute one non-streaming request.

        Raises:
            Whatever the provider SDK or transport raises; the retry executor classifies it
        """
        pass

    async def execute_stream_request(
        self,
        client: Any,
        provider_request: Any,
        handle: Optional[CancellationHandle] = None,
    ) -> AsyncIterator[StreamChunk]:
        """
        Execute one streaming request as an async iterator of stream chunks.

        Adapters that support streaming override this with an async generator.
        """
        raise NotImplementedError(f"Provider {self.name} does not support streaming")

    @property
    def supports_streaming(self) -> bool:
        return type(self).execute_stream_request is not ProviderAdapter.execute_stream_request

    # Response parsing

    @abstractmethod
    def parse_response(self, response: Any, options: Optional[OperateOptions] = None) -> ParsedResponse:
        pass

    @abstractmethod
    def extract_tool_calls(self, response: Any) -> List[StandardToolCall]:
        pass

    @abstractmethod
    def extract_usage(self, response: Any, model: str) -> UsageItem:
        pass

    # Tool results and history

    @abstractmethod
    def format_tool_result(self, tool_call: StandardToolCall, result: StandardToolResult) -> HistoryItem:
        """The canonical history entry recording a tool result."""
        pass

    @abstractmethod
    def append_tool_result(
        self,
        provider_request: Any,
        tool_call: StandardToolCall,
        result: StandardToolResult,
    ) -> Any:
        """Return a copy of the provider request with the tool call and its result folded in."""
        pass

    @abstractmethod
    def response_to_history_items(self, response: Any) -> History:
        """Canonical history entries for everything the model produced in ``response``."""
        pass

    # Errors

    @abstractmethod
    def classify_error(self, error: Any) -> ClassifiedError:
        pass

    def is_retryable_error(self, error: Any) -> bool:
        return self.classify_error(error).should_retry

    def is_rate_limit_error(self, error: Any) -> bool:
        return self.classify_error(error).category == ErrorCategory.RATE_LIMIT

    # Completion

    def is_complete(self, response: Any) -> bool:
        return not self.parse_response(response).has_tool_calls

    def has_structured_output(self, response: Any) -> bool:
        """True when the provider delivered structured output as a synthetic terminal tool call."""
        return False

    def extract_structured_output(self, response: Any) -> Optional[Dict[str, Any]]:
        return None


class ProviderError(Exception):
    """
    Base exception for provider-related errors.

    Attributes:
        message: Error message
        provider: Provider name
        status_code: HTTP status code if applicable
        retry_after: Seconds to wait before retry if applicable
        is_retryable: Whether this error should be retried
        original_error: The original exception if wrapped
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None,
        is_retryable: bool = False,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.retry_after = retry_after
        self.is_retryable = is_retryable
        self.original_error = original_error
