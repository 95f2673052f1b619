"""Accumulates the result of a conversation across turns."""

from __future__ import annotations

import copy
from typing import Any, List, Optional, Union

from ..errors import OperateError
from ..models.conversation_types import History, HistoryItem
from ..models.operate import LlmError, OperateResult, ResponseStatus, UsageItem
from .reasoning import extract_reasoning


class ResponseBuilder:
    """
    Collects usage, raw responses and history into an ``OperateResult``.

    History is replaced wholesale once, at initialization, and only appended
    to afterwards. ``build()`` does not change the builder and may be called
    any number of times.
    """

    def __init__(self, model: Optional[str] = None, provider: Optional[str] = None):
        self.model = model
        self.provider = provider
        self._content: Any = None
        self._error: Optional[LlmError] = None
        self._history: History = []
        self._reasoning: List[str] = []
        self._responses: List[Any] = []
        self._status = ResponseStatus.IN_PROGRESS
        self._usage: List[UsageItem] = []

    def set_content(self, content: Any) -> ResponseBuilder:
        self._content = content
        return self

    def set_status(self, status: ResponseStatus) -> ResponseBuilder:
        self._status = status
        return self

    def set_error(self, error: Union[LlmError, OperateError, dict]) -> ResponseBuilder:
        """Record the result's error, replacing any earlier one; the last error set wins."""
        if isinstance(error, OperateError):
            error = LlmError(**error.to_dict())
        elif isinstance(error, dict):
            error = LlmError(**error)
        self._error = error
        return self

    def set_history(self, history: History) -> ResponseBuilder:
        self._history = [dict(item) for item in history]
        return self

    def append_to_history(self, *items: HistoryItem) -> ResponseBuilder:
        self._history.extend(dict(item) for item in items)
        return self

    def set_reasoning(self, reasoning: List[str]) -> ResponseBuilder:
        self._reasoning = list(reasoning)
        return self

    def add_response(self, response: Any) -> ResponseBuilder:
        self._responses.append(response)
        return self

    def add_usage(self, usage: UsageItem) -> ResponseBuilder:
        self._usage.append(usage)
        return self

    def get_usage(self) -> List[UsageItem]:
        return list(self._usage)

    def get_history(self) -> History:
        return list(self._history)

    def complete(self) -> ResponseBuilder:
        return self.set_status(ResponseStatus.COMPLETED)

    def incomplete(self) -> ResponseBuilder:
        return self.set_status(ResponseStatus.INCOMPLETE)

    @property
    def status(self) -> ResponseStatus:
        return self._status

    def build(self) -> OperateResult:
        history = copy.deepcopy(self._history)
        return OperateResult(
            content=copy.deepcopy(self._content),
            error=self._error.model_copy() if self._error else None,
            history=history,
            model=self.model,
            provider=self.provider,
            reasoning=list(self._reasoning) or extract_reasoning(history),
            responses=list(self._responses),
            status=self._status,
            usage=[item.model_copy() for item in self._usage],
        )
