"""Retry, cancellation and error classification for model calls."""

from .cancellation import AttemptAbortedError, CancellationHandle, suppress_stale_errors
from .error_classifier import (
    ErrorClassifier,
    TRANSIENT_NETWORK_CODES,
    classify_without_provider,
    is_transient_network_error,
)
from .retry import DEFAULT_RETRY_POLICY, RetryPolicy
from .retry_executor import RetryContext, RetryExecutor

__all__ = [
    "AttemptAbortedError",
    "CancellationHandle",
    "DEFAULT_RETRY_POLICY",
    "ErrorClassifier",
    "RetryContext",
    "RetryExecutor",
    "RetryPolicy",
    "TRANSIENT_NETWORK_CODES",
    "classify_without_provider",
    "is_transient_network_error",
    "suppress_stale_errors",
]
