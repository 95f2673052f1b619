"""Tests for lifecycle hooks."""

import logging
from unittest.mock import AsyncMock, Mock

import pytest

from llm_operate.hooks import (
    HookRunner,
    LlmHooks,
    ModelRequestContext,
    ToolCallContext,
    ToolErrorContext,
)


class TestLlmHooks:
    def test_coerce_none(self):
        hooks = LlmHooks.coerce(None)
        assert hooks.before_each_model_request is None

    def test_coerce_dict(self):
        observer = Mock()
        hooks = LlmHooks.coerce({"before_each_tool": observer})
        assert hooks.before_each_tool is observer

    def test_coerce_rejects_unknown_names(self):
        with pytest.raises(ValueError, match="before_everything"):
            LlmHooks.coerce({"before_everything": Mock()})

    def test_coerce_rejects_other_types(self):
        with pytest.raises(TypeError):
            LlmHooks.coerce(["before_each_tool"])


class TestHookRunner:
    """Test that observers run and can never break the caller."""

    @pytest.mark.asyncio
    async def test_sync_hook_receives_context(self):
        observer = Mock(return_value="seen")
        context = ModelRequestContext(input=[], provider_request={"model": "m"})
        result = await HookRunner().run_before_model_request(LlmHooks(before_each_model_request=observer), context)
        observer.assert_called_once_with(context)
        assert result == "seen"

    @pytest.mark.asyncio
    async def test_async_hook_is_awaited(self):
        observer = AsyncMock(return_value=1)
        context = ToolCallContext(tool_name="get_weather", args='{"city": "Paris"}')
        assert await HookRunner().run_before_tool(LlmHooks(before_each_tool=observer), context) == 1
        observer.assert_awaited_once_with(context)

    @pytest.mark.asyncio
    async def test_missing_hook_is_a_no_op(self):
        runner = HookRunner()
        assert await runner.run_after_tool(LlmHooks(), ToolCallContext()) is None
        assert await runner.run_on_tool_error(None, ToolErrorContext()) is None

    @pytest.mark.asyncio
    async def test_sync_hook_error_is_logged_and_swallowed(self, caplog):
        hooks = LlmHooks(on_tool_error=Mock(side_effect=RuntimeError("observer bug")))
        with caplog.at_level(logging.WARNING, logger="llm_operate.hooks.runner"):
            result = await HookRunner().run_on_tool_error(hooks, ToolErrorContext(tool_name="t"))
        assert result is None
        assert "on_tool_error" in caplog.text
        assert "observer bug" in caplog.text

    @pytest.mark.asyncio
    async def test_async_hook_error_is_swallowed(self):
        hooks = LlmHooks(on_retryable_model_error=AsyncMock(side_effect=ValueError("async bug")))
        assert await HookRunner().run_on_retryable_error(hooks, None) is None
