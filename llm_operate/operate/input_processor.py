"""Input normalization for the turn loops.

Turns the caller's input into canonical history: renders ``{{ name }}``
placeholders from ``data`` with Jinja2, prepends caller-supplied history and
places the system message first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from jinja2.sandbox import SandboxedEnvironment

from ..models.conversation_types import (
    History,
    MessageRole,
    MessageType,
    OperateInput,
    is_system_message,
    message_item,
)
from ..models.operate import OperateOptions

_environment = SandboxedEnvironment(autoescape=False, keep_trailing_newline=True)


def render_placeholders(template: str, data: Dict[str, Any]) -> str:
    return _environment.from_string(template).render(**data)


@dataclass
class ProcessedInput:
    history: History
    instructions: Optional[str] = None
    system: Optional[str] = None


class InputProcessor:
    """Placeholder rendering, history merging and system message handling."""

    def process(self, input: OperateInput, options: Optional[OperateOptions] = None) -> ProcessedInput:
        options = options or OperateOptions()
        data = options.data
        switches = options.placeholders

        history = self._format_input(input, data if data and switches.input is not False else None)

        instructions = options.instructions
        if instructions and data and switches.instructions is not False:
            instructions = render_placeholders(instructions, data)

        system = options.system
        if system and data and switches.system is not False:
            system = render_placeholders(system, data)

        if options.history:
            history = [dict(item) for item in options.history] + history

        if system:
            history = self._prepend_system_message(history, system)

        return ProcessedInput(history=history, instructions=instructions or None, system=system or None)

    def _format_input(self, input: OperateInput, data: Optional[Dict[str, Any]]) -> History:
        if isinstance(input, str):
            items = [message_item(input, MessageRole.USER)]
        elif isinstance(input, dict):
            items = [dict(input)]
        else:
            items = [dict(item) for item in input]

        if data:
            items = [self._render_item(item, data) for item in items]
        return items

    def _render_item(self, item: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
        content = item.get("content")
        if isinstance(content, str):
            return {**item, "content": render_placeholders(content, data)}
        if isinstance(content, list):
            parts = []
            for part in content:
                if isinstance(part, dict) and part.get("type") == MessageType.INPUT_TEXT.value:
                    part = {**part, "text": render_placeholders(part.get("text", ""), data)}
                parts.append(part)
            return {**item, "content": parts}
        return item

    def _prepend_system_message(self, history: History, system: str) -> History:
        system_message = message_item(system, MessageRole.SYSTEM)
        first = history[0] if history else None

        if is_system_message(first):
            if first.get("content") == system:
                return history
            return [system_message] + history[1:]
        return [system_message] + history


input_processor = InputProcessor()
