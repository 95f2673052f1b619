"""Error definitions for the turn loops."""

from typing import Any, Optional


def error_message(error: Any) -> str:
    """Message text of a raised value, falling back to its type name."""
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    return str(error)


class OperateError(Exception):
    """Base exception for turn loop errors."""

    status: int = 500
    title: str = "Internal Error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.title
        super().__init__(self.detail)

    def to_dict(self):
        return {"detail": self.detail, "status": self.status, "title": self.title}


class BadGatewayError(OperateError):
    """Raised when the model call failed for good. The message is the original error's message."""

    status = 502
    title = "Bad Gateway"


class TooManyRequestsError(OperateError):
    """The model kept requesting tools past the turn limit."""

    status = 429
    title = "Too Many Requests"

    def __init__(self, max_turns: int, detail: Optional[str] = None):
        self.max_turns = max_turns
        super().__init__(detail or f"Model requested function call but exceeded {max_turns} turns")


class BadFunctionCallError(OperateError):
    """A tool dispatch failed."""

    status = 502
    title = "Bad Function Call"

    def __init__(self, tool_name: str, original_error: Any):
        self.tool_name = tool_name
        self.original_error = original_error
        super().__init__(
            f"Error executing function call {tool_name}.\n{error_message(original_error)}"
        )


class ConfigurationError(OperateError):
    """Invalid client setup, such as an unknown provider."""

    status = 500
    title = "Configuration Error"
