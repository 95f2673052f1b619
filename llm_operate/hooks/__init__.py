"""Lifecycle hooks for the turn loops."""

from .runner import (
    HookRunner,
    LlmHooks,
    ModelErrorContext,
    ModelRequestContext,
    ModelResponseContext,
    ToolCallContext,
    ToolErrorContext,
    ToolResultContext,
    hook_runner,
)

__all__ = [
    "HookRunner",
    "LlmHooks",
    "ModelErrorContext",
    "ModelRequestContext",
    "ModelResponseContext",
    "ToolCallContext",
    "ToolErrorContext",
    "ToolResultContext",
    "hook_runner",
]
