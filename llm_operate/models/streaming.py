"""Stream chunk models.

These are the ordered output items of the streaming loop. Transports outside
this package serialize them with :meth:`StreamChunk.to_dict`.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from .operate import UsageItem


class StreamChunkType(str, Enum):
    TEXT = "text"
    TOOL_CALL = "tool_call"
    TOOL_RESULT = "tool_result"
    DATA = "data"
    MESSAGE = "message"
    ERROR = "error"
    DONE = "done"
    NOOP = "noop"


@dataclass
class ToolCallData:
    id: str = ""
    name: str = ""
    arguments: str = ""


@dataclass
class ToolResultData:
    id: str = ""
    name: str = ""
    result: Any = None


@dataclass
class ChunkError:
    detail: str = ""
    status: int = 500
    title: str = "Internal Error"


def _to_plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "__dataclass_fields__"):
        return {f.name: _to_plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, list):
        return [_to_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_plain(v) for k, v in value.items()}
    return value


@dataclass
class StreamChunk:
    """Base class for all stream chunks."""
    type: StreamChunkType = StreamChunkType.NOOP

    def to_dict(self) -> Dict[str, Any]:
        return _to_plain(self)


@dataclass
class TextChunk(StreamChunk):
    type: StreamChunkType = field(default=StreamChunkType.TEXT, init=False)
    content: str = ""


@dataclass
class ToolCallChunk(StreamChunk):
    type: StreamChunkType = field(default=StreamChunkType.TOOL_CALL, init=False)
    tool_call: ToolCallData = field(default_factory=ToolCallData)
    raw: Any = None


@dataclass
class ToolResultChunk(StreamChunk):
    type: StreamChunkType = field(default=StreamChunkType.TOOL_RESULT, init=False)
    tool_result: ToolResultData = field(default_factory=ToolResultData)


@dataclass
class DataChunk(StreamChunk):
    type: StreamChunkType = field(default=StreamChunkType.DATA, init=False)
    data: Any = None


@dataclass
class MessageChunk(StreamChunk):
    type: StreamChunkType = field(default=StreamChunkType.MESSAGE, init=False)
    message: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ErrorChunk(StreamChunk):
    type: StreamChunkType = field(default=StreamChunkType.ERROR, init=False)
    error: ChunkError = field(default_factory=ChunkError)


@dataclass
class DoneChunk(StreamChunk):
    """Terminal chunk; emitted exactly once per stream with the accumulated usage."""
    type: StreamChunkType = field(default=StreamChunkType.DONE, init=False)
    usage: List[UsageItem] = field(default_factory=list)


@dataclass
class NoopChunk(StreamChunk):
    type: StreamChunkType = field(default=StreamChunkType.NOOP, init=False)
    reason: Optional[str] = None
