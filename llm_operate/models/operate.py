"""Provider-agnostic request, response and result models."""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ErrorCategory(str, Enum):
    """Classification of a failed model call."""
    RATE_LIMIT = "rate_limit"
    RETRYABLE = "retryable"
    UNRECOVERABLE = "unrecoverable"
    UNKNOWN = "unknown"


class ClassifiedError(BaseModel):
    """Result of classifying one failed attempt."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    error: Any
    category: ErrorCategory
    should_retry: bool
    suggested_delay: Optional[float] = Field(None, description="Seconds to wait before retrying")


class UsageItem(BaseModel):
    """Token usage for a single model call."""
    input: int = 0
    output: int = 0
    reasoning: int = 0
    total: int = 0
    provider: Optional[str] = None
    model: Optional[str] = None


class StandardToolCall(BaseModel):
    """A function invocation requested by the model, normalized across providers."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    call_id: str
    name: str
    arguments: str = Field("", description="Provider-encoded arguments, usually a JSON string")
    raw: Any = None


class StandardToolResult(BaseModel):
    output: str
    success: bool = True
    error: Optional[str] = None


class ProviderToolDefinition(BaseModel):
    name: str
    description: str = ""
    parameters: Dict[str, Any] = Field(default_factory=dict)


class ParsedResponse(BaseModel):
    """Provider response reduced to what the loops act on."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    content: Any = None
    has_tool_calls: bool = False
    stop_reason: Optional[str] = None
    usage: Optional[UsageItem] = None
    raw: Any = None


class OperateRequest(BaseModel):
    """
    What to send on the next turn.

    Built from loop state and not changed after; tool results are folded into
    the provider request the adapter builds from it.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    model: str
    messages: List[Dict[str, Any]] = Field(default_factory=list)
    system: Optional[str] = None
    instructions: Optional[str] = None
    format: Optional[Dict[str, Any]] = None
    tools: Optional[List[ProviderToolDefinition]] = None
    provider_options: Optional[Dict[str, Any]] = None
    user: Optional[str] = None
    temperature: Optional[float] = None


class PlaceholderOptions(BaseModel):
    """Switches for placeholder rendering; ``None`` means enabled."""
    input: Optional[bool] = None
    instructions: Optional[bool] = None
    system: Optional[bool] = None


class OperateOptions(BaseModel):
    """
    Options accepted by ``operate`` and ``stream``.

    ``format`` may be a JSON schema dict or a pydantic model class.
    ``tools`` may be a ``Toolkit`` or a list of ``LlmTool``.
    ``turns`` may be ``None``, a bool, or a maximum turn count.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    data: Optional[Dict[str, Any]] = None
    format: Optional[Any] = None
    history: Optional[List[Dict[str, Any]]] = None
    hooks: Optional[Any] = None
    instructions: Optional[str] = None
    model: Optional[str] = None
    placeholders: PlaceholderOptions = Field(default_factory=PlaceholderOptions)
    provider_options: Optional[Dict[str, Any]] = None
    system: Optional[str] = None
    temperature: Optional[float] = None
    tools: Optional[Any] = None
    turns: Optional[Union[bool, int]] = None
    user: Optional[str] = None


class ResponseStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"


class LlmError(BaseModel):
    """Structured error recorded on a result instead of being raised."""
    detail: str
    status: int
    title: str


class OperateResult(BaseModel):
    """Final result of a non-streaming conversation."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    content: Any = None
    error: Optional[LlmError] = None
    history: List[Dict[str, Any]] = Field(default_factory=list)
    model: Optional[str] = None
    provider: Optional[str] = None
    reasoning: List[str] = Field(default_factory=list)
    responses: List[Any] = Field(default_factory=list)
    status: ResponseStatus = ResponseStatus.IN_PROGRESS
    usage: List[UsageItem] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.status == ResponseStatus.COMPLETED
