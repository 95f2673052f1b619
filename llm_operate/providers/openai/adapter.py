"""OpenAI adapter built on the Responses API."""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import openai

from ...config.defaults import DEFAULT_MODELS, PROVIDER_OPENAI
from ...models.conversation_types import (
    History,
    HistoryItem,
    MessageType,
    function_call_output_item,
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
from ..schema import close_objects, schema_name, to_json_schema
from ..utils import get_field, to_plain
from .streaming import stream_response_chunks

logger = logging.getLogger(__name__)

RATE_LIMIT_ERROR_TYPES = (openai.RateLimitError,)

RETRYABLE_ERROR_TYPES = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.InternalServerError,
)

NOT_RETRYABLE_ERROR_TYPES = (
    openai.AuthenticationError,
    openai.BadRequestError,
    openai.ConflictError,
    openai.NotFoundError,
    openai.PermissionDeniedError,
    openai.UnprocessableEntityError,
)


def output_text(response: Any) -> str:
    """Concatenated ``output_text`` parts of all assistant messages."""
    text = get_field(response, "output_text")
    if isinstance(text, str) and text:
        return text

    parts = []
    for item in get_field(response, "output") or []:
        if get_field(item, "type") != MessageType.MESSAGE.value:
            continue
        for part in get_field(item, "content") or []:
            if get_field(part, "type") == MessageType.OUTPUT_TEXT.value:
                parts.append(get_field(part, "text") or "")
    return "".join(parts)


class OpenAiAdapter(ProviderAdapter):
    """Adapter for OpenAI's Responses API."""

    name = PROVIDER_OPENAI
    default_model = DEFAULT_MODELS[PROVIDER_OPENAI]

    def build_request(self, request: OperateRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": request.model or self.default_model,
            "input": [dict(item) for item in request.messages],
        }
        if request.user:
            payload["user"] = request.user
        if request.instructions:
            payload["instructions"] = request.instructions
        if request.tools:
            payload["tools"] = [
                {
                    "type": "function",
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                }
                for tool in request.tools
            ]
        if request.format:
            payload["text"] = {"format": request.format}
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.provider_options:
            payload.update(request.provider_options)
        return payload

    def format_tools(self, toolkit: Any, output_schema: Optional[Dict[str, Any]] = None) -> List[ProviderToolDefinition]:
        # Structured output travels in ``text.format``, not as a tool
        return [
            ProviderToolDefinition(
                name=tool["name"],
                description=tool.get("description") or "",
                parameters=tool.get("parameters") or {},
            )
            for tool in (toolkit.tools if toolkit is not None else [])
        ]

    def format_output_schema(self, schema: Any) -> Dict[str, Any]:
        if isinstance(schema, dict) and schema.get("type") == "json_schema":
            return schema

        json_schema = to_json_schema(schema)
        json_schema.pop("$schema", None)
        close_objects(json_schema)
        return {
            "type": "json_schema",
            "name": schema_name(schema),
            "schema": json_schema,
            "strict": True,
        }

    async def execute_request(
        self,
        client: Any,
        provider_request: Any,
        handle: Optional[CancellationHandle] = None,
    ) -> Any:
        if handle is not None:
            handle.raise_if_aborted()
        return await client.responses.create(**provider_request)

    async def execute_stream_request(
        self,
        client: Any,
        provider_request: Any,
        handle: Optional[CancellationHandle] = None,
    ) -> AsyncIterator[StreamChunk]:
        if handle is not None:
            handle.raise_if_aborted()
        stream = await client.responses.create(**{**provider_request, "stream": True})
        if handle is not None:
            handle.on_abort(lambda _reason: stream.close())
        async for chunk in stream_response_chunks(self, stream, provider_request.get("model") or self.default_model):
            yield chunk

    def parse_response(self, response: Any, options: Optional[OperateOptions] = None) -> ParsedResponse:
        model = (options.model if options else None) or get_field(response, "model") or self.default_model
        return ParsedResponse(
            content=self._extract_content(response, options),
            has_tool_calls=self._has_tool_calls(response),
            stop_reason=get_field(response, "status"),
            usage=self.extract_usage(response, model),
            raw=response,
        )

    def extract_tool_calls(self, response: Any) -> List[StandardToolCall]:
        tool_calls = []
        for item in get_field(response, "output") or []:
            if get_field(item, "type") == MessageType.FUNCTION_CALL.value:
                tool_calls.append(
                    StandardToolCall(
                        call_id=get_field(item, "call_id"),
                        name=get_field(item, "name"),
                        arguments=get_field(item, "arguments") or "",
                        raw=to_plain(item),
                    )
                )
        return tool_calls

    def extract_usage(self, response: Any, model: str) -> UsageItem:
        usage = get_field(response, "usage")
        if usage is None:
            return UsageItem(provider=self.name, model=model)

        details = get_field(usage, "output_tokens_details")
        return UsageItem(
            input=get_field(usage, "input_tokens") or 0,
            output=get_field(usage, "output_tokens") or 0,
            reasoning=get_field(details, "reasoning_tokens") or 0,
            total=get_field(usage, "total_tokens") or 0,
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
        items = list(provider_request.get("input") or [])
        has_call = any(
            item.get("type") == MessageType.FUNCTION_CALL.value and item.get("call_id") == tool_call.call_id
            for item in items
            if isinstance(item, dict)
        )
        if not has_call and tool_call.raw:
            items.append(dict(tool_call.raw))
        items.append(self.format_tool_result(tool_call, result))
        return {**provider_request, "input": items}

    def response_to_history_items(self, response: Any) -> History:
        return [to_plain(item) for item in get_field(response, "output") or []]

    def classify_error(self, error: Any) -> ClassifiedError:
        return classify_sdk_error(
            error,
            RATE_LIMIT_ERROR_TYPES,
            RETRYABLE_ERROR_TYPES,
            NOT_RETRYABLE_ERROR_TYPES,
        )

    def is_complete(self, response: Any) -> bool:
        return not self._has_tool_calls(response)

    def _has_tool_calls(self, response: Any) -> bool:
        return any(
            get_field(item, "type") == MessageType.FUNCTION_CALL.value
            for item in get_field(response, "output") or []
        )

    def _extract_content(self, response: Any, options: Optional[OperateOptions]) -> Any:
        text = output_text(response)
        if options is None or options.format is None or not text:
            return text or None
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            logger.warning("Structured output was not valid JSON; returning text")
            return text
