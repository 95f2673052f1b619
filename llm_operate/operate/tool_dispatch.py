"""Sequential tool dispatch shared by both loops."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..errors import BadFunctionCallError, error_message
from ..hooks.runner import HookRunner, LlmHooks, ToolCallContext, ToolErrorContext, ToolResultContext
from ..models.operate import StandardToolCall, StandardToolResult
from ..tools.toolkit import Toolkit
from .state import serialize_tool_output

logger = logging.getLogger(__name__)


@dataclass
class ToolOutcome:
    tool_call: StandardToolCall
    tool_result: StandardToolResult
    value: Any = None
    error: Optional[BadFunctionCallError] = None

    @property
    def success(self) -> bool:
        return self.error is None


class ToolDispatcher:
    """Calls one tool with its hooks; failures are returned, not raised."""

    def __init__(self, hook_runner: HookRunner):
        self.hook_runner = hook_runner

    async def dispatch(self, toolkit: Toolkit, tool_call: StandardToolCall, hooks: Optional[LlmHooks]) -> ToolOutcome:
        name = tool_call.name
        args = tool_call.arguments

        await self.hook_runner.run_before_tool(hooks, ToolCallContext(tool_name=name, args=args))
        try:
            value = await toolkit.call(name=name, arguments=args)
        except Exception as e:
            await self.hook_runner.run_on_tool_error(hooks, ToolErrorContext(tool_name=name, args=args, error=e))
            failure = BadFunctionCallError(name, e)
            logger.error(f"Tool call failed: {name}: {error_message(e)}", exc_info=e)
            return ToolOutcome(
                tool_call=tool_call,
                tool_result=StandardToolResult(
                    output=serialize_tool_output({"error": failure.detail}),
                    success=False,
                    error=error_message(e),
                ),
                error=failure,
            )

        await self.hook_runner.run_after_tool(hooks, ToolResultContext(tool_name=name, args=args, result=value))
        return ToolOutcome(
            tool_call=tool_call,
            tool_result=StandardToolResult(output=serialize_tool_output(value), success=True),
            value=value,
        )
