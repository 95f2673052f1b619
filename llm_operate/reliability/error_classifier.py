"""
Error classification for model calls.

Classification has two tiers. The active provider adapter decides whether an
error is one it knows (rate limit, retryable, unrecoverable). Independently,
low-level transient network failures are recognized by exception type, error
code or message text, anywhere along the exception's cause chain. Such
failures are always retryable whatever the adapter says.
"""

import asyncio
import errno
import socket
from typing import Any, Optional, Set

import httpx

from ..models.operate import ClassifiedError, ErrorCategory

TRANSIENT_NETWORK_CODES = frozenset({
    "ECONNRESET",
    "ETIMEDOUT",
    "ECONNREFUSED",
    "ENOTFOUND",
    "EAI_AGAIN",
    "EPIPE",
    "ENETRESET",
    "ENETUNREACH",
})

TRANSIENT_ERRNOS = frozenset({
    errno.ECONNRESET,
    errno.ETIMEDOUT,
    errno.ECONNREFUSED,
    errno.EPIPE,
    errno.ENETRESET,
    errno.ENETUNREACH,
})

TRANSIENT_MESSAGE_PATTERNS = ("network", "socket hang up", "terminated")

TRANSIENT_EXCEPTION_TYPES = (
    ConnectionError,  # reset, refused, aborted, broken pipe
    TimeoutError,
    asyncio.TimeoutError,
    socket.gaierror,
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


def _has_transient_code(error: BaseException) -> bool:
    code = getattr(error, "code", None)
    if isinstance(code, str) and code.upper() in TRANSIENT_NETWORK_CODES:
        return True
    err_no = getattr(error, "errno", None)
    return isinstance(err_no, int) and err_no in TRANSIENT_ERRNOS


def _has_transient_message(error: BaseException) -> bool:
    message = str(error).lower()
    return any(pattern in message for pattern in TRANSIENT_MESSAGE_PATTERNS)


def _causes(error: BaseException):
    explicit = getattr(error, "cause", None)
    for cause in (error.__cause__, explicit):
        if isinstance(cause, BaseException):
            yield cause


def is_transient_network_error(error: Any, _seen: Optional[Set[int]] = None) -> bool:
    """
    Check whether an error is a transient network failure.

    Args:
        error: Any raised value

    Returns:
        True when the error, or any error in its cause chain, is a connection
        reset/refusal, timeout, DNS failure, broken pipe or network
        reset/unreachable failure
    """
    if not isinstance(error, BaseException):
        return False

    seen = _seen if _seen is not None else set()
    if id(error) in seen:
        return False
    seen.add(id(error))

    if isinstance(error, TRANSIENT_EXCEPTION_TYPES):
        return True
    if _has_transient_code(error) or _has_transient_message(error):
        return True

    return any(is_transient_network_error(cause, seen) for cause in _causes(error))


def classify_without_provider(error: Any) -> ClassifiedError:
    """Classification used when no adapter is available."""
    if is_transient_network_error(error):
        return ClassifiedError(error=error, category=ErrorCategory.RETRYABLE, should_retry=True)
    return ClassifiedError(error=error, category=ErrorCategory.UNKNOWN, should_retry=True)


class ErrorClassifier:
    """Combines the adapter's classification with transient network detection."""

    def __init__(self, adapter: Optional[Any] = None):
        self.adapter = adapter

    def classify(self, error: Any) -> ClassifiedError:
        if self.adapter is None:
            return classify_without_provider(error)

        classified = self.adapter.classify_error(error)
        if not classified.should_retry and is_transient_network_error(error):
            return ClassifiedError(
                error=error,
                category=ErrorCategory.RETRYABLE,
                should_retry=True,
            )
        return classified

    def is_retryable(self, error: Any) -> bool:
        return self.classify(error).should_retry

    def is_known_error(self, error: Any) -> bool:
        return self.classify(error).category != ErrorCategory.UNKNOWN
