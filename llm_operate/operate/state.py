"""Per-invocation loop state."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..config.defaults import MAX_TURNS_ABSOLUTE_LIMIT, MAX_TURNS_DEFAULT
from ..models.conversation_types import History
from ..models.operate import OperateOptions, OperateRequest, ProviderToolDefinition, UsageItem
from ..tools.toolkit import Toolkit, ensure_toolkit


def max_turns_from_options(turns: Union[None, bool, int]) -> int:
    """
    Resolve the ``turns`` option to a turn limit.

    ``None`` and ``True`` give the default limit, ``False`` gives a single
    turn, and an integer is clamped to ``[1, MAX_TURNS_ABSOLUTE_LIMIT]``.
    """
    if turns is None or turns is True:
        return MAX_TURNS_DEFAULT
    if turns is False:
        return 1
    return max(1, min(int(turns), MAX_TURNS_ABSOLUTE_LIMIT))


def coerce_options(options: Union[None, OperateOptions, Dict[str, Any]]) -> OperateOptions:
    if options is None:
        return OperateOptions()
    if isinstance(options, OperateOptions):
        return options
    return OperateOptions(**options)


def serialize_tool_output(result: Any) -> str:
    return json.dumps(result, default=str)


@dataclass
class LoopState:
    """State owned by a single loop invocation."""
    current_input: History
    max_turns: int
    model: str
    current_turn: int = 0
    toolkit: Optional[Toolkit] = None
    formatted_format: Optional[Dict[str, Any]] = None
    formatted_tools: Optional[List[ProviderToolDefinition]] = None
    instructions: Optional[str] = None
    system: Optional[str] = None
    usage: List[UsageItem] = field(default_factory=list)
    pending_request: Any = None

    def build_request(self, options: OperateOptions) -> OperateRequest:
        return OperateRequest(
            model=self.model,
            messages=[dict(item) for item in self.current_input],
            system=self.system,
            instructions=self.instructions,
            format=self.formatted_format,
            tools=self.formatted_tools,
            provider_options=options.provider_options,
            user=options.user,
            temperature=options.temperature,
        )

    def next_provider_request(self, adapter: Any, options: OperateOptions) -> Any:
        """The request left by the previous turn's tool results, else one built from history."""
        request = self.pending_request
        self.pending_request = None
        if request is None:
            request = adapter.build_request(self.build_request(options))
        return request

    def append_history(self, *items: Dict[str, Any]) -> None:
        self.current_input = self.current_input + [dict(item) for item in items]

    @property
    def can_dispatch_tools(self) -> bool:
        return self.toolkit is not None and self.max_turns > 1

    @property
    def turns_exhausted(self) -> bool:
        return self.current_turn >= self.max_turns


def initialize_state(adapter: Any, input_processor: Any, input: Any, options: OperateOptions) -> LoopState:
    """Process input, resolve tools and pre-format tool and schema definitions once."""
    processed = input_processor.process(input, options)
    toolkit = ensure_toolkit(options.tools)

    formatted_format = None
    if options.format is not None:
        formatted_format = adapter.format_output_schema(options.format)

    formatted_tools = None
    if toolkit is not None or formatted_format is not None:
        formatted_tools = adapter.format_tools(toolkit, formatted_format) or None

    return LoopState(
        current_input=processed.history,
        max_turns=max_turns_from_options(options.turns),
        model=options.model or adapter.default_model,
        toolkit=toolkit,
        formatted_format=formatted_format,
        formatted_tools=formatted_tools,
        instructions=processed.instructions,
        system=processed.system,
    )
