"""
Streaming multi-turn loop.

Same turn structure as :mod:`llm_operate.operate.loop`, but each model call
is consumed as a stream of chunks that are passed on to the caller as they
arrive. A failed attempt is retried only while nothing from it has reached
the caller; after that, the failure becomes a terminal Error chunk. Every
stream that terminates normally ends with exactly one Done chunk.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional, Union

from ..errors import BadGatewayError, TooManyRequestsError, error_message
from ..hooks.runner import HookRunner, LlmHooks, ModelErrorContext, ModelRequestContext, ModelResponseContext
from ..models.conversation_types import MessageRole, OperateInput, function_call_item, message_item
from ..models.operate import ErrorCategory, OperateOptions, StandardToolCall
from ..models.streaming import (
    ChunkError,
    DoneChunk,
    ErrorChunk,
    StreamChunk,
    StreamChunkType,
    ToolResultChunk,
    ToolResultData,
)
from ..observability.logging import OperateLogger
from ..providers.base import ProviderAdapter
from ..reliability.cancellation import CancellationHandle, suppress_stale_errors
from ..reliability.error_classifier import ErrorClassifier
from ..reliability.retry import DEFAULT_RETRY_POLICY, RetryPolicy
from .input_processor import InputProcessor
from .state import LoopState, coerce_options, initialize_state
from .tool_dispatch import ToolDispatcher

logger = logging.getLogger(__name__)

STREAM_ERROR_STATUS = 502
STREAM_ERROR_TITLE = "Stream Error"

FORWARDED_CHUNK_TYPES = {
    StreamChunkType.TEXT,
    StreamChunkType.TOOL_CALL,
    StreamChunkType.DATA,
    StreamChunkType.MESSAGE,
    StreamChunkType.ERROR,
}


@dataclass
class _TurnOutcome:
    should_continue: bool = False


class StreamLoop:
    """Runs a conversation while streaming its output."""

    def __init__(
        self,
        adapter: ProviderAdapter,
        client: Any,
        hook_runner: Optional[HookRunner] = None,
        input_processor: Optional[InputProcessor] = None,
        retry_policy: Optional[RetryPolicy] = None,
        max_retries: Optional[int] = None,
    ):
        self.adapter = adapter
        self.client = client
        self.hook_runner = hook_runner or HookRunner()
        self.input_processor = input_processor or InputProcessor()
        if retry_policy is None:
            retry_policy = RetryPolicy(max_retries=max_retries) if max_retries is not None else DEFAULT_RETRY_POLICY
        self.retry_policy = retry_policy
        self.classifier = ErrorClassifier(adapter)
        self.tool_dispatcher = ToolDispatcher(self.hook_runner)
        self.log = OperateLogger(adapter.name)

    async def execute(
        self,
        input: OperateInput,
        options: Union[None, OperateOptions, Dict[str, Any]] = None,
    ) -> AsyncIterator[StreamChunk]:
        """
        Stream the conversation.

        Args:
            input: A prompt string, a single message or a list of history items
            options: ``OperateOptions`` or an equivalent dict

        Yields:
            Stream chunks in order, ending with one DoneChunk

        Raises:
            BadGatewayError: When the provider cannot stream, or a model call
                fails before any of its output was yielded
        """
        if not self.adapter.supports_streaming:
            raise BadGatewayError(f"Provider {self.adapter.name} does not support streaming")

        options = coerce_options(options)
        hooks = LlmHooks.coerce(options.hooks)
        state = initialize_state(self.adapter, self.input_processor, input, options)

        while state.current_turn < state.max_turns:
            state.current_turn += 1
            outcome = _TurnOutcome()
            turn = self._execute_turn(state, options, hooks, outcome)
            try:
                async for chunk in turn:
                    yield chunk
            finally:
                await turn.aclose()
            if not outcome.should_continue:
                break

        yield DoneChunk(usage=list(state.usage))

    async def _execute_turn(
        self,
        state: LoopState,
        options: OperateOptions,
        hooks: LlmHooks,
        outcome: _TurnOutcome,
    ) -> AsyncIterator[StreamChunk]:
        provider_request = state.next_provider_request(self.adapter, options)

        await self.hook_runner.run_before_model_request(
            hooks,
            ModelRequestContext(input=state.current_input, options=options, provider_request=provider_request),
        )

        tool_calls: List[StandardToolCall] = []
        text_parts: List[str] = []
        attempt = 0

        while True:
            handle = CancellationHandle()
            stream = self.adapter.execute_stream_request(self.client, provider_request, handle)
            chunks_yielded = False
            finished = False
            try:
                async for chunk in stream:
                    if chunk.type == StreamChunkType.DONE:
                        state.usage.extend(chunk.usage)
                        continue
                    if chunk.type not in FORWARDED_CHUNK_TYPES:
                        continue

                    chunks_yielded = True
                    if chunk.type == StreamChunkType.TEXT:
                        text_parts.append(chunk.content)
                    elif chunk.type == StreamChunkType.TOOL_CALL:
                        tool_calls.append(
                            StandardToolCall(
                                call_id=chunk.tool_call.id,
                                name=chunk.tool_call.name,
                                arguments=chunk.tool_call.arguments,
                                raw=chunk.raw,
                            )
                        )
                    yield chunk
                finished = True
                break
            except asyncio.CancelledError:
                handle.abort("cancelled")
                raise
            except Exception as error:
                handle.abort("retry")
                message = error_message(error)

                if chunks_yielded:
                    self.log.error(
                        "Stream failed after output was delivered",
                        model=state.model,
                        turn=state.current_turn,
                        error=error,
                    )
                    yield ErrorChunk(
                        error=ChunkError(detail=message, status=STREAM_ERROR_STATUS, title=STREAM_ERROR_TITLE)
                    )
                    outcome.should_continue = False
                    return

                error_context = ModelErrorContext(
                    input=state.current_input,
                    options=options,
                    provider_request=provider_request,
                    error=error,
                )
                classified = self.classifier.classify(error)
                if not self.retry_policy.should_retry(attempt) or not classified.should_retry:
                    await self.hook_runner.run_on_unrecoverable_error(hooks, error_context)
                    raise BadGatewayError(message) from error

                if classified.category == ErrorCategory.UNKNOWN:
                    logger.warning(f"Unknown error type, will retry: {type(error).__name__}")

                delay = self.retry_policy.delay(attempt)
                self.log.warning(
                    f"Stream request failed ({type(error).__name__}), retrying in {delay:.2f}s",
                    model=state.model,
                    turn=state.current_turn,
                    attempt=attempt + 1,
                )
                await self.hook_runner.run_on_retryable_error(hooks, error_context)

                async with suppress_stale_errors(handle):
                    await asyncio.sleep(delay)
                attempt += 1
            finally:
                if not finished and not handle.aborted:
                    handle.abort("closed")
                aclose = getattr(stream, "aclose", None)
                if aclose is not None:
                    await aclose()

        content = "".join(text_parts)
        await self.hook_runner.run_after_model_response(
            hooks,
            ModelResponseContext(
                input=state.current_input,
                options=options,
                provider_request=provider_request,
                provider_response=None,
                content=content,
                usage=list(state.usage),
            ),
        )

        if not (tool_calls and state.can_dispatch_tools):
            outcome.should_continue = False
            return

        if content:
            state.append_history(message_item(content, MessageRole.ASSISTANT))
        state.append_history(*(
            function_call_item(tool_call.call_id, tool_call.name, tool_call.arguments)
            for tool_call in tool_calls
        ))

        next_request = self.adapter.build_request(state.build_request(options))
        for tool_call in tool_calls:
            result = await self.tool_dispatcher.dispatch(state.toolkit, tool_call, hooks)
            next_request = self.adapter.append_tool_result(next_request, tool_call, result.tool_result)
            state.append_history(self.adapter.format_tool_result(tool_call, result.tool_result))

            if result.error is not None:
                yield ErrorChunk(
                    error=ChunkError(detail=result.error.detail, status=result.error.status, title=result.error.title)
                )
            else:
                yield ToolResultChunk(
                    tool_result=ToolResultData(id=tool_call.call_id, name=tool_call.name, result=result.value)
                )

        state.pending_request = next_request

        if state.turns_exhausted:
            error = TooManyRequestsError(state.max_turns)
            self.log.warning(error.detail, model=state.model, turn=state.current_turn)
            yield ErrorChunk(error=ChunkError(detail=error.detail, status=error.status, title=error.title))
            outcome.should_continue = False
            return

        outcome.should_continue = True
