"""Tests for the OpenAI Responses API adapter."""

import asyncio
import json
from unittest.mock import AsyncMock, Mock

import pytest
from pydantic import BaseModel

from llm_operate.models import (
    ErrorCategory,
    OperateOptions,
    OperateRequest,
    ProviderToolDefinition,
    StandardToolCall,
    StandardToolResult,
    StreamChunkType,
)
from llm_operate.providers import OpenAiAdapter, ProviderError
from llm_operate.reliability.cancellation import CancellationHandle
from llm_operate.tools import LlmTool, Toolkit
from tests.helpers.mock_exceptions import (
    connection_reset,
    openai_authentication_error,
    openai_bad_request_error,
    openai_connection_error,
    openai_rate_limit_error,
    openai_server_error,
    openai_timeout_error,
)
from tests.helpers.streaming_mocks import MockStream, create_openai_events


def text_response(text, model="gpt-4.1"):
    return {
        "model": model,
        "status": "completed",
        "output": [{
            "type": "message",
            "id": "msg_1",
            "role": "assistant",
            "content": [{"type": "output_text", "text": text, "annotations": []}],
        }],
        "usage": {
            "input_tokens": 20,
            "output_tokens": 8,
            "total_tokens": 28,
            "output_tokens_details": {"reasoning_tokens": 3},
        },
    }


def tool_response():
    return {
        "model": "gpt-4.1",
        "status": "completed",
        "output": [
            {"type": "reasoning", "id": "rs_1", "summary": [{"type": "summary_text", "text": "Need weather."}]},
            {
                "type": "function_call",
                "id": "fc_1",
                "call_id": "call_1",
                "name": "get_weather",
                "arguments": '{"city": "Paris"}',
            },
        ],
        "usage": {"input_tokens": 15, "output_tokens": 5, "total_tokens": 20},
    }


class Answer(BaseModel):
    value: int
    reason: str


class TestOpenAiAdapter:
    """Test request building and response parsing."""

    @pytest.fixture
    def adapter(self):
        return OpenAiAdapter()

    def test_build_request(self, adapter):
        request = OperateRequest(
            model="gpt-4.1-mini",
            messages=[{"type": "message", "role": "user", "content": "Hi"}],
            instructions="Be brief.",
            tools=[ProviderToolDefinition(name="get_weather", description="Weather", parameters={"type": "object"})],
            format={"type": "json_schema", "name": "Answer", "schema": {}, "strict": True},
            temperature=0.3,
            user="user-1",
            provider_options={"reasoning": {"effort": "low"}},
        )
        payload = adapter.build_request(request)

        assert payload["model"] == "gpt-4.1-mini"
        assert payload["input"] == [{"type": "message", "role": "user", "content": "Hi"}]
        assert payload["instructions"] == "Be brief."
        assert payload["tools"] == [{
            "type": "function",
            "name": "get_weather",
            "description": "Weather",
            "parameters": {"type": "object"},
        }]
        assert payload["text"] == {"format": request.format}
        assert payload["temperature"] == 0.3
        assert payload["user"] == "user-1"
        assert payload["reasoning"] == {"effort": "low"}

    def test_minimal_request(self, adapter):
        payload = adapter.build_request(OperateRequest(model="gpt-4.1", messages=[]))
        assert set(payload) == {"model", "input"}

    def test_format_output_schema_from_model(self, adapter):
        formatted = adapter.format_output_schema(Answer)
        assert formatted["type"] == "json_schema"
        assert formatted["name"] == "Answer"
        assert formatted["strict"] is True
        assert formatted["schema"]["additionalProperties"] is False
        assert set(formatted["schema"]["required"]) == {"value", "reason"}

    def test_format_output_schema_passes_native_format(self, adapter):
        native = {"type": "json_schema", "name": "x", "schema": {"type": "object"}}
        assert adapter.format_output_schema(native) is native

    def test_format_tools(self, adapter):
        toolkit = Toolkit([LlmTool(name="now", description="Time", call=lambda: "noon")])
        tools = adapter.format_tools(toolkit, {"type": "json_schema"})
        assert [tool.name for tool in tools] == ["now"]
        assert adapter.format_tools(None) == []

    def test_parse_text_response(self, adapter):
        parsed = adapter.parse_response(text_response("Hello"))
        assert parsed.content == "Hello"
        assert not parsed.has_tool_calls
        assert parsed.usage.input == 20
        assert parsed.usage.output == 8
        assert parsed.usage.reasoning == 3
        assert parsed.usage.total == 28
        assert parsed.usage.provider == "openai"
        assert parsed.usage.model == "gpt-4.1"

    def test_parse_structured_response(self, adapter):
        parsed = adapter.parse_response(
            text_response('{"value": 4, "reason": "math"}'),
            OperateOptions(format=Answer),
        )
        assert parsed.content == {"value": 4, "reason": "math"}

    def test_parse_tool_response(self, adapter):
        response = tool_response()
        parsed = adapter.parse_response(response)
        assert parsed.has_tool_calls
        assert parsed.content is None
        assert not adapter.is_complete(response)

        [call] = adapter.extract_tool_calls(response)
        assert call.call_id == "call_1"
        assert call.name == "get_weather"
        assert json.loads(call.arguments) == {"city": "Paris"}
        assert call.raw["id"] == "fc_1"

    def test_response_to_history_items_keeps_reasoning(self, adapter):
        items = adapter.response_to_history_items(tool_response())
        assert [item["type"] for item in items] == ["reasoning", "function_call"]

    def test_append_tool_result(self, adapter):
        call = adapter.extract_tool_calls(tool_response())[0]
        request = {"model": "gpt-4.1", "input": [{"type": "message", "role": "user", "content": "Hi"}]}
        result = StandardToolResult(output='{"forecast": "sunny"}')

        folded = adapter.append_tool_result(request, call, result)
        assert [item["type"] for item in folded["input"]] == ["message", "function_call", "function_call_output"]
        assert folded["input"][2] == {"type": "function_call_output", "output": '{"forecast": "sunny"}', "call_id": "call_1"}
        assert len(request["input"]) == 1

        again = adapter.append_tool_result(folded, call, result)
        assert [item["type"] for item in again["input"]].count("function_call") == 1

    def test_format_tool_result(self, adapter):
        call = StandardToolCall(call_id="call_9", name="t", arguments="{}")
        entry = adapter.format_tool_result(call, StandardToolResult(output="42"))
        assert entry == {"type": "function_call_output", "output": "42", "call_id": "call_9"}

    @pytest.mark.asyncio
    async def test_execute_request(self, adapter):
        client = Mock()
        client.responses.create = AsyncMock(return_value=text_response("Hi"))
        response = await adapter.execute_request(client, {"model": "gpt-4.1", "input": []}, CancellationHandle())
        assert response["model"] == "gpt-4.1"
        client.responses.create.assert_awaited_once_with(model="gpt-4.1", input=[])

    @pytest.mark.asyncio
    async def test_execute_request_checks_abort(self, adapter):
        handle = CancellationHandle()
        handle.abort("retry")
        client = Mock()
        client.responses.create = AsyncMock()
        with pytest.raises(Exception, match="Attempt aborted"):
            await adapter.execute_request(client, {"model": "gpt-4.1"}, handle)
        client.responses.create.assert_not_called()


class TestOpenAiErrorClassification:
    @pytest.fixture
    def adapter(self):
        return OpenAiAdapter()

    def test_rate_limit(self, adapter):
        classified = adapter.classify_error(openai_rate_limit_error())
        assert classified.category == ErrorCategory.RATE_LIMIT
        assert not classified.should_retry
        assert adapter.is_rate_limit_error(openai_rate_limit_error())

    @pytest.mark.parametrize("factory", [openai_server_error, openai_connection_error, openai_timeout_error])
    def test_retryable(self, adapter, factory):
        assert adapter.classify_error(factory()).category == ErrorCategory.RETRYABLE
        assert adapter.is_retryable_error(factory())

    @pytest.mark.parametrize("factory", [openai_bad_request_error, openai_authentication_error])
    def test_not_retryable(self, adapter, factory):
        classified = adapter.classify_error(factory())
        assert classified.category == ErrorCategory.UNRECOVERABLE
        assert not classified.should_retry

    def test_transient_network_error(self, adapter):
        assert adapter.classify_error(connection_reset()).category == ErrorCategory.RETRYABLE

    def test_unknown(self, adapter):
        assert adapter.classify_error(ValueError("?")).category == ErrorCategory.UNKNOWN


class TestOpenAiStreaming:
    """Test translation of Responses API stream events."""

    @pytest.mark.asyncio
    async def test_text_and_tool_calls(self):
        adapter = OpenAiAdapter()
        stream = MockStream(create_openai_events(
            ["Hel", "lo"],
            tool_calls=[{"call_id": "call_1", "name": "get_weather", "arguments": {"city": "Paris"}}],
        ))
        client = Mock()
        client.responses.create = AsyncMock(return_value=stream)

        chunks = [c async for c in adapter.execute_stream_request(client, {"model": "gpt-4.1", "input": []})]

        assert [c.type for c in chunks] == [
            StreamChunkType.TEXT,
            StreamChunkType.TEXT,
            StreamChunkType.TOOL_CALL,
            StreamChunkType.DONE,
        ]
        assert chunks[2].tool_call.id == "call_1"
        assert json.loads(chunks[2].tool_call.arguments) == {"city": "Paris"}
        assert chunks[2].raw["type"] == "function_call"
        assert chunks[3].usage[0].total == 14
        client.responses.create.assert_awaited_once_with(model="gpt-4.1", input=[], stream=True)

    @pytest.mark.asyncio
    async def test_abort_closes_stream(self):
        adapter = OpenAiAdapter()
        stream = MockStream(create_openai_events(["a"]))
        client = Mock()
        client.responses.create = AsyncMock(return_value=stream)
        handle = CancellationHandle()

        iterator = adapter.execute_stream_request(client, {"model": "gpt-4.1"}, handle)
        await iterator.__anext__()
        handle.abort("retry")
        await iterator.aclose()
        # close() is a coroutine scheduled on abort
        await asyncio.sleep(0)
        assert stream.closed

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code,status,retryable", [
        ("rate_limit_exceeded", 429, False),
        ("server_error", None, True),
        ("invalid_prompt", None, False),
    ])
    async def test_failed_response_raises_provider_error(self, code, status, retryable):
        adapter = OpenAiAdapter()
        stream = MockStream([
            {"type": "response.output_text.delta", "delta": "x"},
            {"type": "response.failed", "response": {"error": {"code": code, "message": f"failed: {code}"}}},
        ])
        client = Mock()
        client.responses.create = AsyncMock(return_value=stream)

        with pytest.raises(ProviderError) as exc_info:
            async for _ in adapter.execute_stream_request(client, {"model": "gpt-4.1"}):
                pass
        assert exc_info.value.status_code == status
        assert exc_info.value.is_retryable is retryable
        assert str(exc_info.value) == f"failed: {code}"
