from __future__ import annotations

from typing import Any, AsyncGenerator

from ...models.conversation_types import MessageType
from ...models.streaming import DoneChunk, StreamChunk, TextChunk, ToolCallChunk, ToolCallData
from ..base import ProviderError
from ..utils import get_field, to_plain

# Responses API error codes that mean "try again"
RETRYABLE_STREAM_ERROR_CODES = {"server_error", "internal_error", "timeout"}


def _stream_error(provider: str, error: Any) -> ProviderError:
    code = get_field(error, "code")
    message = get_field(error, "message") or f"Stream failed ({code or 'unknown error'})"
    status_code = 429 if code == "rate_limit_exceeded" else None
    return ProviderError(
        message,
        provider=provider,
        status_code=status_code,
        is_retryable=code in RETRYABLE_STREAM_ERROR_CODES,
    )


async def stream_response_chunks(
    adapter: Any,
    stream: Any,
    model: str,
) -> AsyncGenerator[StreamChunk, None]:
    """Translate Responses API stream events into stream chunks.

    Text deltas become Text chunks, completed function-call items become
    ToolCall chunks and ``response.completed`` becomes a Done chunk carrying
    usage. Failure events are raised as ``ProviderError``.
    """
    async for event in stream:
        event_type = get_field(event, "type")

        if event_type == "response.output_text.delta":
            delta = get_field(event, "delta")
            if delta:
                yield TextChunk(content=str(delta))

        elif event_type == "response.output_item.done":
            item = get_field(event, "item")
            if get_field(item, "type") == MessageType.FUNCTION_CALL.value:
                yield ToolCallChunk(
                    tool_call=ToolCallData(
                        id=get_field(item, "call_id") or "",
                        name=get_field(item, "name") or "",
                        arguments=get_field(item, "arguments") or "",
                    ),
                    raw=to_plain(item),
                )

        elif event_type == "response.completed":
            response = get_field(event, "response")
            yield DoneChunk(usage=[adapter.extract_usage(response, get_field(response, "model") or model)])

        elif event_type == "response.failed":
            response = get_field(event, "response")
            raise _stream_error(adapter.name, get_field(response, "error"))

        elif event_type == "error":
            raise _stream_error(adapter.name, event)
