"""Tool registry used by the turn loops.

A :class:`Toolkit` holds :class:`LlmTool` definitions and dispatches calls by
name. Arguments arrive as the provider-encoded JSON string, are validated
against the tool's JSON schema and passed to the handler as keyword
arguments.
"""

from __future__ import annotations

import inspect
import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ToolError(Exception):
    """Base exception for tool registry errors."""
    pass


class ToolNotFoundError(ToolError):
    def __init__(self, name: str):
        self.tool_name = name
        super().__init__(f"Tool '{name}' is not registered")


class ToolArgumentsError(ToolError):
    def __init__(self, name: str, reason: str):
        self.tool_name = name
        super().__init__(f"Invalid arguments for tool '{name}': {reason}")


class LlmTool(BaseModel):
    name: str
    description: str = ""
    parameters: Dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}})
    call: Callable[..., Any]
    type: str = "function"

    def definition(self) -> Dict[str, Any]:
        """The tool as the model sees it, without the callable."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
            "type": self.type,
        }


class Toolkit:
    """Registry of tools available to a conversation."""

    def __init__(self, tools: Optional[Iterable[LlmTool]] = None):
        self._tools: Dict[str, LlmTool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: LlmTool) -> None:
        if tool.name in self._tools:
            logger.warning(f"Replacing existing tool: {tool.name}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> Optional[LlmTool]:
        return self._tools.get(name)

    @property
    def tools(self) -> List[Dict[str, Any]]:
        return [tool.definition() for tool in self._tools.values()]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def _parse_arguments(self, name: str, arguments: Union[str, Dict[str, Any], None]) -> Dict[str, Any]:
        if arguments is None or arguments == "":
            return {}
        if isinstance(arguments, dict):
            return arguments
        try:
            parsed = json.loads(arguments)
        except json.JSONDecodeError as e:
            raise ToolArgumentsError(name, f"not valid JSON ({e.msg})") from e
        if not isinstance(parsed, dict):
            raise ToolArgumentsError(name, "expected a JSON object")
        return parsed

    async def call(self, name: str, arguments: Union[str, Dict[str, Any], None] = None) -> Any:
        """
        Dispatch a tool call.

        Args:
            name: Registered tool name
            arguments: JSON object string as sent by the provider

        Returns:
            Whatever the tool handler returns, awaited if it is awaitable

        Raises:
            ToolNotFoundError: If no tool has this name
            ToolArgumentsError: If the arguments are not a JSON object or fail validation
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)

        args = self._parse_arguments(name, arguments)
        if tool.parameters:
            try:
                Draft202012Validator(tool.parameters).validate(args)
            except ValidationError as e:
                raise ToolArgumentsError(name, e.message) from e

        result = tool.call(**args)
        if inspect.isawaitable(result):
            result = await result
        return result


def ensure_toolkit(tools: Union[None, Toolkit, Iterable[LlmTool]]) -> Optional[Toolkit]:
    """Accept a toolkit or a list of tools; return ``None`` when there are none."""
    if tools is None:
        return None
    if isinstance(tools, Toolkit):
        return tools if len(tools) else None
    toolkit = Toolkit(tools)
    return toolkit if len(toolkit) else None
