"""Shared models for llm_operate."""

from .conversation_types import (
    History,
    HistoryItem,
    MessageRole,
    MessageType,
    OperateInput,
    function_call_item,
    function_call_output_item,
    message_item,
)
from .operate import (
    ClassifiedError,
    ErrorCategory,
    LlmError,
    OperateOptions,
    OperateRequest,
    OperateResult,
    ParsedResponse,
    PlaceholderOptions,
    ProviderToolDefinition,
    ResponseStatus,
    StandardToolCall,
    StandardToolResult,
    UsageItem,
)
from .streaming import (
    ChunkError,
    DataChunk,
    DoneChunk,
    ErrorChunk,
    MessageChunk,
    NoopChunk,
    StreamChunk,
    StreamChunkType,
    TextChunk,
    ToolCallChunk,
    ToolCallData,
    ToolResultChunk,
    ToolResultData,
)

__all__ = [
    "ChunkError",
    "ClassifiedError",
    "DataChunk",
    "DoneChunk",
    "ErrorCategory",
    "ErrorChunk",
    "History",
    "HistoryItem",
    "LlmError",
    "MessageChunk",
    "MessageRole",
    "MessageType",
    "NoopChunk",
    "OperateInput",
    "OperateOptions",
    "OperateRequest",
    "OperateResult",
    "ParsedResponse",
    "PlaceholderOptions",
    "ProviderToolDefinition",
    "ResponseStatus",
    "StandardToolCall",
    "StandardToolResult",
    "StreamChunk",
    "StreamChunkType",
    "TextChunk",
    "ToolCallChunk",
    "ToolCallData",
    "ToolResultChunk",
    "ToolResultData",
    "UsageItem",
    "function_call_item",
    "function_call_output_item",
    "message_item",
]
