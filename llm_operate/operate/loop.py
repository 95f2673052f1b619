"""
Non-streaming multi-turn loop.

Each turn builds a provider request from the conversation so far, executes it
through the retry executor and interprets the response. Tool calls are
dispatched one at a time, their results appended to history, and the loop
goes around again until the model answers without tools or the turn limit is
reached.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from ..errors import TooManyRequestsError
from ..hooks.runner import HookRunner, LlmHooks, ModelRequestContext, ModelResponseContext
from ..models.conversation_types import OperateInput
from ..models.operate import OperateOptions, OperateResult
from ..observability.logging import OperateLogger
from ..providers.base import ProviderAdapter
from ..reliability.error_classifier import ErrorClassifier
from ..reliability.retry import DEFAULT_RETRY_POLICY, RetryPolicy
from ..reliability.retry_executor import RetryContext, RetryExecutor
from .input_processor import InputProcessor
from .response_builder import ResponseBuilder
from .state import LoopState, coerce_options, initialize_state
from .tool_dispatch import ToolDispatcher

logger = logging.getLogger(__name__)


class OperateLoop:
    """Runs a conversation to completion and returns the final result."""

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
        self.retry_executor = RetryExecutor(
            policy=self.retry_policy,
            classifier=ErrorClassifier(adapter),
            hook_runner=self.hook_runner,
        )
        self.tool_dispatcher = ToolDispatcher(self.hook_runner)
        self.log = OperateLogger(adapter.name)

    async def execute(
        self,
        input: OperateInput,
        options: Union[None, OperateOptions, Dict[str, Any]] = None,
    ) -> OperateResult:
        """
        Run the conversation.

        Args:
            input: A prompt string, a single message or a list of history items
            options: ``OperateOptions`` or an equivalent dict

        Returns:
            OperateResult, completed or incomplete; tool failures and the turn
            limit are recorded on it rather than raised

        Raises:
            BadGatewayError: When a model call fails for good
        """
        options = coerce_options(options)
        hooks = LlmHooks.coerce(options.hooks)
        state = initialize_state(self.adapter, self.input_processor, input, options)

        builder = ResponseBuilder(model=state.model, provider=self.adapter.name)
        builder.set_history(state.current_input)

        while state.current_turn < state.max_turns:
            state.current_turn += 1
            if not await self._execute_turn(state, options, hooks, builder):
                break

        return builder.build()

    async def _execute_turn(
        self,
        state: LoopState,
        options: OperateOptions,
        hooks: LlmHooks,
        builder: ResponseBuilder,
    ) -> bool:
        """Run one turn; return True when another turn should follow."""
        provider_request = state.next_provider_request(self.adapter, options)

        await self.hook_runner.run_before_model_request(
            hooks,
            ModelRequestContext(input=state.current_input, options=options, provider_request=provider_request),
        )

        with self.log.track_turn("operate", state.model, state.current_turn):
            response = await self.retry_executor.execute(
                lambda handle: self.adapter.execute_request(self.client, provider_request, handle),
                context=RetryContext(input=state.current_input, options=options, provider_request=provider_request),
                hooks=hooks,
            )

        parsed = self.adapter.parse_response(response, options)
        if parsed.usage is not None:
            builder.add_usage(parsed.usage)
            self.log.log_usage(parsed.usage, state.current_turn)
        builder.add_response(parsed.raw)

        await self.hook_runner.run_after_model_response(
            hooks,
            ModelResponseContext(
                input=state.current_input,
                options=options,
                provider_request=provider_request,
                provider_response=response,
                content=parsed.content,
                usage=builder.get_usage(),
            ),
        )

        if self.adapter.has_structured_output(response):
            builder.set_content(self.adapter.extract_structured_output(response))
            builder.complete()
            return False

        tool_calls = self.adapter.extract_tool_calls(response) if parsed.has_tool_calls else []
        if tool_calls and state.can_dispatch_tools:
            call_items = self.adapter.response_to_history_items(response)
            state.append_history(*call_items)
            builder.append_to_history(*call_items)

            next_request = self.adapter.build_request(state.build_request(options))
            for tool_call in tool_calls:
                outcome = await self.tool_dispatcher.dispatch(state.toolkit, tool_call, hooks)
                if outcome.error is not None:
                    builder.set_error(outcome.error)

                next_request = self.adapter.append_tool_result(next_request, tool_call, outcome.tool_result)
                entry = self.adapter.format_tool_result(tool_call, outcome.tool_result)
                state.append_history(entry)
                builder.append_to_history(entry)

            state.pending_request = next_request

            if state.turns_exhausted:
                error = TooManyRequestsError(state.max_turns)
                self.log.warning(error.detail, model=state.model, turn=state.current_turn)
                builder.set_error(error)
                builder.incomplete()
                return False

            self.log.debug(
                f"Dispatched {len(tool_calls)} tool call(s), continuing",
                model=state.model,
                turn=state.current_turn,
            )
            return True

        builder.set_content(parsed.content)
        builder.append_to_history(*self.adapter.response_to_history_items(response))
        builder.complete()
        return False
