"""Anthropic adapter built on the Messages API.

Canonical history items are translated into Anthropic messages in
``build_request``. Structured output is modeled as a synthetic
``structured_output`` tool the model is forced to call.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, AsyncIterator, Dict, List, Optional

import anthropic

from ...config.defaults import (
    ANTHROPIC_MAX_TOKENS_DEFAULT,
    DEFAULT_MODELS,
    PROVIDER_ANTHROPIC,
    STRUCTURED_OUTPUT_TOOL_NAME,
)
from ...models.conversation_types import (
    History,
    HistoryItem,
    MessageRole,
    MessageType,
    function_call_item,
    function_call_output_item,
    message_item,
)
from ...models.operate import (
    ClassifiedError,
    OperateOptions,
    OperateRequest,
    ParsedResponse,
    ProviderToolDefinition,
    StandardToolCall,
    StandardToolResult,
    UsageItem,
)
from ...models.streaming import StreamChunk
from ...reliability.cancellation import CancellationHandle
from ..base import ProviderAdapter
from ..errors import classify_sdk_error
from ..schema import to_json_schema
from ..utils import get_field, to_plain
from .streaming import stream_message_chunks

logger = logging.getLogger(__name__)

RATE_LIMIT_ERROR_TYPES = (anthropic.RateLimitError,)

RETRYABLE_ERROR_TYPES = (
    anthropic.APIConnectionError,
    anthropic.APITimeoutError,
    anthropic.InternalServerError,
)

NOT_RETRYABLE_ERROR_TYPES = (
    anthropic.AuthenticationError,
    anthropic.BadRequestError,
    anthropic.ConflictError,
    anthropic.NotFoundError,
    anthropic.PermissionDeniedError,
    anthropic.UnprocessableEntityError,
)

STRUCTURED_OUTPUT_DESCRIPTION = (
    "Output a structured JSON object, "
    "use this before your final response to give structured outputs to the user"
)

DATA_URL_PATTERN = re.compile(r"^data:([^;]+);base64,(.+)$", re.DOTALL)


def _content_block(part: Dict[str, Any]) -> Dict[str, Any]:
    part_type = part.get("type")

    if part_type in (MessageType.INPUT_TEXT.value, MessageType.OUTPUT_TEXT.value, "text"):
        return {"type": "text", "text": part.get("text", "")}

    if part_type == MessageType.INPUT_IMAGE.value:
        url = part.get("image_url") or ""
        match = DATA_URL_PATTERN.match(url)
        if match:
            return {
                "type": "image",
                "source": {"type": "base64", "media_type": match.group(1), "data": match.group(2)},
            }
        return {"type": "image", "source": {"type": "url", "url": url}}

    if part_type == MessageType.INPUT_FILE.value:
        match = DATA_URL_PATTERN.match(part.get("file_data") or "")
        if match:
            return {
                "type": "document",
                "source": {"type": "base64", "media_type": match.group(1), "data": match.group(2)},
            }
        return {"type": "text", "text": f"[File: {part.get('filename') or 'unknown'}]"}

    if part_type in ("image", "document", "tool_use", "tool_result"):
        return dict(part)

    return {"type": "text", "text": json.dumps(part)}


def _message_content(content: Any) -> Any:
    if isinstance(content, str):
        return content
    return [_content_block(part) for part in content or []]


def _as_blocks(content: Any) -> List[Dict[str, Any]]:
    if isinstance(content, str):
        return [{"type": "text", "text": content}] if content else []
    return list(content)


def _append_message(messages: List[Dict[str, Any]], role: str, content: Any) -> None:
    """Append a message, merging into the previous one when the role repeats."""
    if messages and messages[-1]["role"] == role:
        previous = messages[-1]
        previous["content"] = _as_blocks(previous["content"]) + _as_blocks(content)
        return
    messages.append({"role": role, "content": content})


def history_to_messages(history: History) -> List[Dict[str, Any]]:
    """Translate canonical history items into Anthropic messages."""
    messages: List[Dict[str, Any]] = []

    for item in history:
        item_type = item.get("type")
        role = item.get("role")

        if role == MessageRole.SYSTEM.value or role == MessageRole.DEVELOPER.value:
            continue

        if item_type == MessageType.FUNCTION_CALL.value:
            try:
                tool_input = json.loads(item.get("arguments") or "{}")
            except json.JSONDecodeError:
                tool_input = {}
            _append_message(messages, MessageRole.ASSISTANT.value, [{
                "type": "tool_use",
                "id": item.get("call_id") or "",
                "name": item.get("name") or "",
                "input": tool_input,
            }])
            continue

        if item_type == MessageType.FUNCTION_CALL_OUTPUT.value:
            _append_message(messages, MessageRole.USER.value, [{
                "type": "tool_result",
                "tool_use_id": item.get("call_id") or "",
                "content": item.get("output") or "",
            }])
            continue

        if role in (MessageRole.USER.value, MessageRole.ASSISTANT.value) and "content" in item:
            _append_message(messages, role, _message_content(item["content"]))

    return messages


def _attach_instructions(messages: List[Dict[str, Any]], instructions: str) -> None:
    """Append instructions to the latest user prompt, skipping tool result turns."""
    for message in reversed(messages):
        if message["role"] != MessageRole.USER.value:
            continue
        content = message["content"]
        if isinstance(content, str):
            message["content"] = f"{content}\n\n{instructions}"
            return
        if any(block.get("type") == "tool_result" for block in content):
            continue
        message["content"] = list(content) + [{"type": "text", "text": instructions}]
        return


class AnthropicAdapter(ProviderAdapter):
    """Adapter for Anthropic's Messages API."""

    name = PROVIDER_ANTHROPIC
    default_model = DEFAULT_MODELS[PROVIDER_ANTHROPIC]

    def __init__(self, max_tokens: int = ANTHROPIC_MAX_TOKENS_DEFAULT):
        self.max_tokens = max_tokens

    def build_request(self, request: OperateRequest) -> Dict[str, Any]:
        messages = history_to_messages(request.messages)

        if request.instructions:
            _attach_instructions(messages, request.instructions)

        payload: Dict[str, Any] = {
            "model": request.model or self.default_model,
            "messages": messages,
            "max_tokens": self.max_tokens,
        }
        if request.system:
            payload["system"] = request.system
        if request.tools:
            payload["tools"] = [
                {
                    "name": tool.name,
                    "description": tool.description,
                    "input_schema": {**tool.parameters, "type": "object"},
                }
                for tool in request.tools
            ]
            forced = any(tool.name == STRUCTURED_OUTPUT_TOOL_NAME for tool in request.tools)
            payload["tool_choice"] = {"type": "any" if forced else "auto"}
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.provider_options:
            payload.update(request.provider_options)
        return payload

    def format_tools(self, toolkit: Any, output_schema: Optional[Dict[str, Any]] = None) -> List[ProviderToolDefinition]:
        tools = [
            ProviderToolDefinition(
                name=tool["name"],
                description=tool.get("description") or "",
                parameters={**(tool.get("parameters") or {}), "type": "object"},
            )
            for tool in (toolkit.tools if toolkit is not None else [])
        ]
        if output_schema:
            tools.append(
                ProviderToolDefinition(
                    name=STRUCTURED_OUTPUT_TOOL_NAME,
                    description=STRUCTURED_OUTPUT_DESCRIPTION,
                    parameters=output_schema,
                )
            )
        return tools

    def format_output_schema(self, schema: Any) -> Dict[str, Any]:
        json_schema = to_json_schema(schema)
        if json_schema.get("type") == "json_schema":
            # Unwrap an OpenAI-style format; the validator only knows plain schemas
            json_schema = dict(json_schema.get("schema") or {"type": "object"})
        json_schema.pop("$schema", None)
        json_schema["type"] = "object"
        return json_schema

    async def execute_request(
        self,
        client: Any,
        provider_request: Any,
        handle: Optional[CancellationHandle] = None,
    ) -> Any:
        if handle is not None:
            handle.raise_if_aborted()
        return await client.messages.create(**provider_request)

    async def execute_stream_request(
        self,
        client: Any,
        provider_request: Any,
        handle: Optional[CancellationHandle] = None,
    ) -> AsyncIterator[StreamChunk]:
        if handle is not None:
            handle.raise_if_aborted()
        stream = await client.messages.create(**{**provider_request, "stream": True})
        if handle is not None:
            handle.on_abort(lambda _reason: stream.close())
        async for chunk in stream_message_chunks(self, stream, provider_request.get("model") or self.default_model):
            yield chunk

    def parse_response(self, response: Any, options: Optional[OperateOptions] = None) -> ParsedResponse:
        model = get_field(response, "model") or (options.model if options else None) or self.default_model
        stop_reason = get_field(response, "stop_reason")
        return ParsedResponse(
            content=self._extract_text(response) or None,
            has_tool_calls=stop_reason == "tool_use",
            stop_reason=stop_reason,
            usage=self.extract_usage(response, model),
            raw=response,
        )

    def extract_tool_calls(self, response: Any) -> List[StandardToolCall]:
        tool_calls = []
        for block in get_field(response, "content") or []:
            if get_field(block, "type") == "tool_use":
                tool_calls.append(
                    StandardToolCall(
                        call_id=get_field(block, "id"),
                        name=get_field(block, "name"),
                        arguments=json.dumps(get_field(block, "input") or {}),
                        raw=to_plain(block),
                    )
                )
        return tool_calls

    def extract_usage(self, response: Any, model: str) -> UsageItem:
        usage = get_field(response, "usage")
        input_tokens = get_field(usage, "input_tokens") or 0
        output_tokens = get_field(usage, "output_tokens") or 0
        return UsageItem(
            input=input_tokens,
            output=output_tokens,
            reasoning=get_field(usage, "thinking_tokens") or 0,
            total=input_tokens + output_tokens,
            provider=self.name,
            model=model,
        )

    def format_tool_result(self, tool_call: StandardToolCall, result: StandardToolResult) -> HistoryItem:
        return function_call_output_item(tool_call.call_id, result.output)

    def append_tool_result(
        self,
        provider_request: Any,
        tool_call: StandardToolCall,
        result: StandardToolResult,
    ) -> Dict[str, Any]:
        messages = [dict(message) for message in provider_request.get("messages") or []]

        has_call = any(
            isinstance(block, dict) and block.get("type") == "tool_use" and block.get("id") == tool_call.call_id
            for message in messages
            if message.get("role") == MessageRole.ASSISTANT.value and isinstance(message.get("content"), list)
            for block in message["content"]
        )
        if not has_call:
            _append_message(messages, MessageRole.ASSISTANT.value, [tool_call.raw or {
                "type": "tool_use",
                "id": tool_call.call_id,
                "name": tool_call.name,
                "input": json.loads(tool_call.arguments or "{}"),
            }])

        _append_message(messages, MessageRole.USER.value, [{
            "type": "tool_result",
            "tool_use_id": tool_call.call_id,
            "content": result.output,
        }])
        return {**provider_request, "messages": messages}

    def response_to_history_items(self, response: Any) -> History:
        items: History = []
        text_parts: List[str] = []

        for block in get_field(response, "content") or []:
            block_type = get_field(block, "type")
            if block_type == "thinking":
                items.append(to_plain(block))
            elif block_type == "text":
                text_parts.append(get_field(block, "text") or "")
            elif block_type == "tool_use" and get_field(block, "name") != STRUCTURED_OUTPUT_TOOL_NAME:
                items.append(
                    function_call_item(
                        get_field(block, "id"),
                        get_field(block, "name"),
                        json.dumps(get_field(block, "input") or {}),
                    )
                )

        if text_parts:
            # Text precedes tool calls within one assistant turn
            position = next(
                (i for i, item in enumerate(items) if item.get("type") == MessageType.FUNCTION_CALL.value),
                len(items),
            )
            items.insert(position, message_item("".join(text_parts), MessageRole.ASSISTANT))
        return items

    def classify_error(self, error: Any) -> ClassifiedError:
        return classify_sdk_error(
            error,
            RATE_LIMIT_ERROR_TYPES,
            RETRYABLE_ERROR_TYPES,
            NOT_RETRYABLE_ERROR_TYPES,
        )

    def is_complete(self, response: Any) -> bool:
        return get_field(response, "stop_reason") != "tool_use"

    def has_structured_output(self, response: Any) -> bool:
        return self._structured_output_block(response) is not None

    def extract_structured_output(self, response: Any) -> Optional[Dict[str, Any]]:
        block = self._structured_output_block(response)
        return get_field(block, "input") if block is not None else None

    def _structured_output_block(self, response: Any) -> Any:
        for block in get_field(response, "content") or []:
            if get_field(block, "type") == "tool_use" and get_field(block, "name") == STRUCTURED_OUTPUT_TOOL_NAME:
                return block
        return None

    def _extract_text(self, response: Any) -> str:
        return "".join(
            get_field(block, "text") or ""
            for block in get_field(response, "content") or []
            if get_field(block, "type") == "text"
        )
