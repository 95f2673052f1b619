"""
llm-operate - Multi-turn LLM conversations with tools, retries and streaming.

This package runs conversations against LLM providers on behalf of an
application:
- OpenAI (Responses API)
- Anthropic (Messages API)

Features:
- Multi-turn tool calling with sequential dispatch
- Retries with exponential backoff and error classification
- Streaming with retry before first output
- Lifecycle hooks
- Structured output
"""

__version__ = "0.1.0"

from .api.client import LlmClient
from .errors import (
    BadFunctionCallError,
    BadGatewayError,
    ConfigurationError,
    OperateError,
    TooManyRequestsError,
)
from .hooks import HookRunner, LlmHooks
from .models import (
    DoneChunk,
    ErrorChunk,
    LlmError,
    OperateOptions,
    OperateResult,
    ResponseStatus,
    StreamChunk,
    StreamChunkType,
    TextChunk,
    ToolCallChunk,
    ToolResultChunk,
    UsageItem,
)
from .operate import OperateLoop, ResponseBuilder, StreamLoop
from .providers import AnthropicAdapter, OpenAiAdapter, ProviderAdapter, ProviderError
from .reliability import ErrorClassifier, RetryExecutor, RetryPolicy, is_transient_network_error
from .tools import LlmTool, Toolkit

__all__ = [
    # Main client
    "LlmClient",

    # Loops
    "OperateLoop",
    "StreamLoop",
    "ResponseBuilder",

    # Providers
    "ProviderAdapter",
    "ProviderError",
    "OpenAiAdapter",
    "AnthropicAdapter",

    # Reliability
    "ErrorClassifier",
    "RetryExecutor",
    "RetryPolicy",
    "is_transient_network_error",

    # Hooks and tools
    "HookRunner",
    "LlmHooks",
    "LlmTool",
    "Toolkit",

    # Models
    "OperateOptions",
    "OperateResult",
    "ResponseStatus",
    "LlmError",
    "UsageItem",
    "StreamChunk",
    "StreamChunkType",
    "TextChunk",
    "ToolCallChunk",
    "ToolResultChunk",
    "ErrorChunk",
    "DoneChunk",

    # Errors
    "OperateError",
    "BadGatewayError",
    "BadFunctionCallError",
    "TooManyRequestsError",
    "ConfigurationError",
]
