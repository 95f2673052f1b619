"""Tool registry."""

from .toolkit import (
    LlmTool,
    ToolArgumentsError,
    ToolError,
    ToolNotFoundError,
    Toolkit,
    ensure_toolkit,
)

__all__ = [
    "LlmTool",
    "ToolArgumentsError",
    "ToolError",
    "ToolNotFoundError",
    "Toolkit",
    "ensure_toolkit",
]
