"""
Shared error classification for provider adapters.

Adapters list their SDK's exception types in three groups and delegate here,
so every provider applies the same order: rate limit first, then retryable
types, then non-retryable types, then transient network failures, and
finally unknown.
"""

from typing import Any, Sequence, Type

from ..config.defaults import RATE_LIMIT_SUGGESTED_DELAY
from ..models.operate import ClassifiedError, ErrorCategory
from ..reliability.error_classifier import is_transient_network_error
from .base import ProviderError

RETRYABLE_STATUS_CODES = {408, 500, 502, 503, 504, 520, 521, 522, 523, 524, 529}
NON_RETRYABLE_STATUS_CODES = {400, 401, 403, 404, 405, 409, 410, 422}


def _classify_provider_error(error: ProviderError) -> ClassifiedError:
    if error.status_code == 429:
        return ClassifiedError(
            error=error,
            category=ErrorCategory.RATE_LIMIT,
            should_retry=False,
            suggested_delay=error.retry_after or RATE_LIMIT_SUGGESTED_DELAY,
        )
    if error.is_retryable or error.status_code in RETRYABLE_STATUS_CODES:
        return ClassifiedError(
            error=error,
            category=ErrorCategory.RETRYABLE,
            should_retry=True,
            suggested_delay=error.retry_after,
        )
    if error.status_code in NON_RETRYABLE_STATUS_CODES:
        return ClassifiedError(error=error, category=ErrorCategory.UNRECOVERABLE, should_retry=False)
    return ClassifiedError(error=error, category=ErrorCategory.UNKNOWN, should_retry=True)


def classify_sdk_error(
    error: Any,
    rate_limit_types: Sequence[Type[BaseException]],
    retryable_types: Sequence[Type[BaseException]],
    non_retryable_types: Sequence[Type[BaseException]],
) -> ClassifiedError:
    """
    Classify an error raised while calling a provider SDK.

    Args:
        error: The raised value
        rate_limit_types: SDK exceptions meaning "rate limited"
        retryable_types: SDK exceptions that are safe to retry
        non_retryable_types: SDK exceptions that must not be retried

    Returns:
        ClassifiedError with category and retry recommendation
    """
    if isinstance(error, tuple(rate_limit_types)):
        return ClassifiedError(
            error=error,
            category=ErrorCategory.RATE_LIMIT,
            should_retry=False,
            suggested_delay=RATE_LIMIT_SUGGESTED_DELAY,
        )
    if isinstance(error, tuple(retryable_types)):
        return ClassifiedError(error=error, category=ErrorCategory.RETRYABLE, should_retry=True)
    if isinstance(error, tuple(non_retryable_types)):
        return ClassifiedError(error=error, category=ErrorCategory.UNRECOVERABLE, should_retry=False)
    if isinstance(error, ProviderError):
        return _classify_provider_error(error)
    if is_transient_network_error(error):
        return ClassifiedError(error=error, category=ErrorCategory.RETRYABLE, should_retry=True)
    return ClassifiedError(error=error, category=ErrorCategory.UNKNOWN, should_retry=True)
