"""
Retry executor for model calls.

Drives one operation through as many attempts as the retry policy and the
error classifier allow. Each attempt gets a fresh cancellation handle, and a
failed attempt's handle is aborted before anything else happens. Callers see
either the operation's result or a single :class:`BadGatewayError` whose
message is the original error's message.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ..errors import BadGatewayError, error_message
from ..hooks.runner import HookRunner, LlmHooks, ModelErrorContext
from ..models.operate import ErrorCategory
from .cancellation import CancellationHandle, suppress_stale_errors
from .error_classifier import ErrorClassifier
from .retry import DEFAULT_RETRY_POLICY, RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[CancellationHandle], Awaitable[T]]


@dataclass
class RetryContext:
    """What the error hooks are told about the call being retried."""
    input: Any = None
    options: Any = None
    provider_request: Any = None

    def error_context(self, error: Any) -> ModelErrorContext:
        return ModelErrorContext(
            input=self.input,
            options=self.options,
            provider_request=self.provider_request,
            error=error,
        )


class RetryExecutor:
    """Runs an operation under a retry policy."""

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        classifier: Optional[ErrorClassifier] = None,
        hook_runner: Optional[HookRunner] = None,
    ):
        self.policy = policy or DEFAULT_RETRY_POLICY
        self.classifier = classifier or ErrorClassifier()
        self.hook_runner = hook_runner or HookRunner()

    async def execute(
        self,
        operation: Operation[T],
        context: Optional[RetryContext] = None,
        hooks: Optional[LlmHooks] = None,
    ) -> T:
        """
        Execute ``operation`` with retries.

        Args:
            operation: Async callable taking the attempt's cancellation handle
            context: Request details passed to the error hooks
            hooks: Observers for retryable and unrecoverable errors

        Returns:
            Result of the first successful attempt

        Raises:
            BadGatewayError: When the error is not retryable or retries are exhausted
        """
        context = context or RetryContext()
        attempt = 0

        while True:
            handle = CancellationHandle()
            try:
                return await operation(handle)
            except asyncio.CancelledError:
                handle.abort("cancelled")
                raise
            except Exception as error:
                handle.abort("retry")
                message = error_message(error)

                if not self.policy.should_retry(attempt):
                    logger.error(f"Model request failed after {attempt + 1} attempts: {message}")
                    await self.hook_runner.run_on_unrecoverable_error(hooks, context.error_context(error))
                    raise BadGatewayError(message) from error

                classified = self.classifier.classify(error)
                if not classified.should_retry:
                    logger.error(
                        f"Model request failed with {classified.category.value} error: {message}"
                    )
                    await self.hook_runner.run_on_unrecoverable_error(hooks, context.error_context(error))
                    raise BadGatewayError(message) from error

                if classified.category == ErrorCategory.UNKNOWN:
                    logger.warning(f"Unknown error type, will retry: {type(error).__name__}")

                delay = self.policy.delay(attempt)
                logger.warning(
                    f"Model request failed ({type(error).__name__}), "
                    f"retrying in {delay:.2f}s (attempt {attempt + 1}/{self.policy.max_retries})"
                )
                await self.hook_runner.run_on_retryable_error(hooks, context.error_context(error))

                async with suppress_stale_errors(handle):
                    await asyncio.sleep(delay)
                attempt += 1
