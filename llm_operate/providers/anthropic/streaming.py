from __future__ import annotations

from typing import Any, AsyncGenerator, Dict, Optional

from ...models.operate import UsageItem
from ...models.streaming import DoneChunk, StreamChunk, TextChunk, ToolCallChunk, ToolCallData
from ..base import ProviderError
from ..utils import get_field


async def stream_message_chunks(
    adapter: Any,
    stream: Any,
    model: str,
) -> AsyncGenerator[StreamChunk, None]:
    """Translate Messages API stream events into stream chunks.

    Tool input arrives as JSON fragments between ``content_block_start`` and
    ``content_block_stop``; one ToolCall chunk is emitted when the block
    closes. Usage is collected from ``message_start`` and ``message_delta``
    and emitted in a Done chunk on ``message_stop``.
    """
    current_tool: Optional[Dict[str, Any]] = None
    input_tokens = 0
    output_tokens = 0
    thinking_tokens = 0

    async for event in stream:
        event_type = get_field(event, "type")

        if event_type == "message_start":
            message = get_field(event, "message")
            input_tokens = get_field(get_field(message, "usage"), "input_tokens") or 0
            model = get_field(message, "model") or model

        elif event_type == "content_block_start":
            block = get_field(event, "content_block")
            if get_field(block, "type") == "tool_use":
                current_tool = {
                    "id": get_field(block, "id") or "",
                    "name": get_field(block, "name") or "",
                    "arguments": "",
                }

        elif event_type == "content_block_delta":
            delta = get_field(event, "delta")
            delta_type = get_field(delta, "type")
            if delta_type == "text_delta":
                text = get_field(delta, "text")
                if text:
                    yield TextChunk(content=text)
            elif delta_type == "input_json_delta" and current_tool is not None:
                current_tool["arguments"] += get_field(delta, "partial_json") or ""

        elif event_type == "content_block_stop":
            if current_tool is not None:
                arguments = current_tool["arguments"] or "{}"
                yield ToolCallChunk(
                    tool_call=ToolCallData(
                        id=current_tool["id"],
                        name=current_tool["name"],
                        arguments=arguments,
                    ),
                    raw=dict(current_tool),
                )
                current_tool = None

        elif event_type == "message_delta":
            usage = get_field(event, "usage")
            if usage is not None:
                output_tokens = get_field(usage, "output_tokens") or output_tokens
                thinking_tokens = get_field(usage, "thinking_tokens") or thinking_tokens

        elif event_type == "message_stop":
            yield DoneChunk(usage=[
                UsageItem(
                    input=input_tokens,
                    output=output_tokens,
                    reasoning=thinking_tokens,
                    total=input_tokens + output_tokens,
                    provider=adapter.name,
                    model=model,
                )
            ])

        elif event_type == "error":
            error = get_field(event, "error")
            error_type = get_field(error, "type")
            raise ProviderError(
                get_field(error, "message") or f"Stream failed ({error_type or 'unknown error'})",
                provider=adapter.name,
                status_code=429 if error_type == "rate_limit_error" else None,
                is_retryable=error_type in ("overloaded_error", "api_error"),
            )
