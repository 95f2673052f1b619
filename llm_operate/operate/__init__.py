"""Turn loops and their building blocks."""

from .input_processor import InputProcessor, ProcessedInput, input_processor, render_placeholders
from .loop import OperateLoop
from .reasoning import extract_reasoning
from .response_builder import ResponseBuilder
from .state import LoopState, max_turns_from_options
from .stream_loop import StreamLoop
from .tool_dispatch import ToolDispatcher, ToolOutcome

__all__ = [
    "InputProcessor",
    "LoopState",
    "OperateLoop",
    "ProcessedInput",
    "ResponseBuilder",
    "StreamLoop",
    "ToolDispatcher",
    "ToolOutcome",
    "extract_reasoning",
    "input_processor",
    "max_turns_from_options",
    "render_placeholders",
]
