"""Tests for the tool registry."""

import pytest

from llm_operate.tools import LlmTool, Toolkit, ToolArgumentsError, ToolNotFoundError, ensure_toolkit


class TestToolkit:
    """Test registration, validation and dispatch."""

    def test_definitions_exclude_callable(self, toolkit):
        definitions = {tool["name"]: tool for tool in toolkit.tools}
        assert set(definitions) == {"get_weather", "lookup"}
        assert "call" not in definitions["get_weather"]
        assert definitions["get_weather"]["parameters"]["required"] == ["city"]
        assert definitions["lookup"]["parameters"] == {"type": "object", "properties": {}}

    @pytest.mark.asyncio
    async def test_call_with_json_arguments(self, toolkit, weather_calls):
        result = await toolkit.call("get_weather", '{"city": "Paris"}')
        assert result == {"city": "Paris", "forecast": "sunny"}
        assert weather_calls == ["Paris"]

    @pytest.mark.asyncio
    async def test_call_awaits_async_tools(self):
        async def add(a, b):
            return a + b

        toolkit = Toolkit([LlmTool(name="add", call=add)])
        assert await toolkit.call("add", {"a": 2, "b": 3}) == 5

    @pytest.mark.asyncio
    async def test_empty_arguments(self):
        toolkit = Toolkit([LlmTool(name="now", call=lambda: "noon")])
        assert await toolkit.call("now", "") == "noon"
        assert await toolkit.call("now") == "noon"

    @pytest.mark.asyncio
    async def test_unknown_tool(self, toolkit):
        with pytest.raises(ToolNotFoundError, match="missing"):
            await toolkit.call("missing", "{}")

    @pytest.mark.asyncio
    async def test_invalid_json(self, toolkit):
        with pytest.raises(ToolArgumentsError, match="not valid JSON"):
            await toolkit.call("get_weather", "{city: Paris")

    @pytest.mark.asyncio
    async def test_non_object_arguments(self, toolkit):
        with pytest.raises(ToolArgumentsError, match="expected a JSON object"):
            await toolkit.call("get_weather", "[1, 2]")

    @pytest.mark.asyncio
    async def test_schema_validation(self, toolkit, weather_calls):
        with pytest.raises(ToolArgumentsError, match="'city' is a required property"):
            await toolkit.call("get_weather", "{}")
        assert weather_calls == []

    def test_register_replaces_existing(self, toolkit):
        toolkit.register(LlmTool(name="lookup", description="New", call=lambda: None))
        assert len(toolkit) == 2
        assert toolkit.get("lookup").description == "New"
        assert "lookup" in toolkit


class TestEnsureToolkit:
    def test_none_and_empty(self):
        assert ensure_toolkit(None) is None
        assert ensure_toolkit([]) is None
        assert ensure_toolkit(Toolkit()) is None

    def test_list_of_tools(self, weather_tool):
        toolkit = ensure_toolkit([weather_tool])
        assert isinstance(toolkit, Toolkit)
        assert "get_weather" in toolkit

    def test_toolkit_passes_through(self, toolkit):
        assert ensure_toolkit(toolkit) is toolkit
