"""
Lifecycle hooks.

Each lifecycle point takes at most one observer. Observers may be plain
functions or coroutine functions. Anything an observer raises is logged and
dropped, so a broken observer never changes the course of a conversation.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field, fields
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from ..models.operate import UsageItem

logger = logging.getLogger(__name__)

Hook = Callable[[Any], Union[Any, Awaitable[Any]]]


@dataclass
class ModelRequestContext:
    input: Any = None
    options: Any = None
    provider_request: Any = None


@dataclass
class ModelResponseContext:
    input: Any = None
    options: Any = None
    provider_request: Any = None
    provider_response: Any = None
    content: Any = None
    usage: List[UsageItem] = field(default_factory=list)


@dataclass
class ModelErrorContext:
    input: Any = None
    options: Any = None
    provider_request: Any = None
    error: Any = None


@dataclass
class ToolCallContext:
    tool_name: str = ""
    args: str = ""


@dataclass
class ToolResultContext:
    tool_name: str = ""
    args: str = ""
    result: Any = None


@dataclass
class ToolErrorContext:
    tool_name: str = ""
    args: str = ""
    error: Any = None


@dataclass
class LlmHooks:
    """Optional observers, one per lifecycle point."""
    before_each_model_request: Optional[Hook] = None
    after_each_model_response: Optional[Hook] = None
    before_each_tool: Optional[Hook] = None
    after_each_tool: Optional[Hook] = None
    on_tool_error: Optional[Hook] = None
    on_retryable_model_error: Optional[Hook] = None
    on_unrecoverable_model_error: Optional[Hook] = None

    @classmethod
    def coerce(cls, hooks: Union[None, LlmHooks, Dict[str, Hook]]) -> LlmHooks:
        """Accept ``None``, an ``LlmHooks`` or a dict keyed by hook name."""
        if hooks is None:
            return cls()
        if isinstance(hooks, cls):
            return hooks
        if isinstance(hooks, dict):
            known = {f.name for f in fields(cls)}
            unknown = set(hooks) - known
            if unknown:
                raise ValueError(f"Unknown hooks: {', '.join(sorted(unknown))}")
            return cls(**hooks)
        raise TypeError(f"Unsupported hooks type: {type(hooks).__name__}")


class HookRunner:
    """Invokes lifecycle observers in isolation from the loop."""

    async def _run(self, name: str, hooks: Optional[LlmHooks], context: Any) -> Any:
        hook = getattr(hooks, name, None) if hooks is not None else None
        if hook is None:
            return None
        try:
            result = hook(context)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as e:
            logger.warning(f"Hook {name} failed: {type(e).__name__}: {e}", exc_info=True)
            return None

    async def run_before_model_request(self, hooks: Optional[LlmHooks], context: ModelRequestContext) -> Any:
        return await self._run("before_each_model_request", hooks, context)

    async def run_after_model_response(self, hooks: Optional[LlmHooks], context: ModelResponseContext) -> Any:
        return await self._run("after_each_model_response", hooks, context)

    async def run_before_tool(self, hooks: Optional[LlmHooks], context: ToolCallContext) -> Any:
        return await self._run("before_each_tool", hooks, context)

    async def run_after_tool(self, hooks: Optional[LlmHooks], context: ToolResultContext) -> Any:
        return await self._run("after_each_tool", hooks, context)

    async def run_on_tool_error(self, hooks: Optional[LlmHooks], context: ToolErrorContext) -> Any:
        return await self._run("on_tool_error", hooks, context)

    async def run_on_retryable_error(self, hooks: Optional[LlmHooks], context: ModelErrorContext) -> Any:
        return await self._run("on_retryable_model_error", hooks, context)

    async def run_on_unrecoverable_error(self, hooks: Optional[LlmHooks], context: ModelErrorContext) -> Any:
        return await self._run("on_unrecoverable_model_error", hooks, context)


hook_runner = HookRunner()
