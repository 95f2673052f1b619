"""
Per-attempt cancellation.

Every network attempt gets its own :class:`CancellationHandle`. When an
attempt fails and a retry follows, the handle is aborted so that anything the
attempt left running (tracked tasks, open streams) is cancelled and cannot
leak into the next attempt.
"""

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, List, Optional, Set

logger = logging.getLogger(__name__)


class AttemptAbortedError(Exception):
    """Raised by :meth:`CancellationHandle.raise_if_aborted`."""

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(f"Attempt aborted: {reason}" if reason else "Attempt aborted")


def _consume_exception(future: "asyncio.Future[Any]") -> None:
    # Marks the exception as retrieved so asyncio does not report it later
    if not future.cancelled():
        future.exception()


class CancellationHandle:
    """Cancellation handle owned by a single attempt."""

    def __init__(self):
        self._aborted = False
        self._reason: Optional[str] = None
        self._callbacks: List[Callable[[Optional[str]], Any]] = []
        self._futures: Set["asyncio.Future[Any]"] = set()

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def on_abort(self, callback: Callable[[Optional[str]], Any]) -> None:
        """Register a callback run once on abort; runs immediately if already aborted."""
        if self._aborted:
            self._run_callback(callback)
        else:
            self._callbacks.append(callback)

    def track(self, future: "asyncio.Future[Any]") -> "asyncio.Future[Any]":
        """Tie a task or future to this attempt so abort cancels it."""
        self._futures.add(future)
        if self._aborted:
            self._cancel(future)
        return future

    def owns(self, future: Any) -> bool:
        return future in self._futures

    def raise_if_aborted(self) -> None:
        if self._aborted:
            raise AttemptAbortedError(self._reason)

    def abort(self, reason: Optional[str] = None) -> None:
        if self._aborted:
            return
        self._aborted = True
        self._reason = reason

        for future in self._futures:
            self._cancel(future)

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            self._run_callback(callback)

    def _cancel(self, future: "asyncio.Future[Any]") -> None:
        if not future.done():
            future.cancel()
        future.add_done_callback(_consume_exception)

    def _run_callback(self, callback: Callable[[Optional[str]], Any]) -> None:
        try:
            result = callback(self._reason)
            if asyncio.iscoroutine(result):
                task = asyncio.ensure_future(result)
                self._futures.add(task)
                task.add_done_callback(_consume_exception)
        except Exception as e:
            logger.warning(f"Abort callback failed: {type(e).__name__}: {e}", exc_info=True)


class _StaleErrorFilter:
    """Loop exception handler that drops errors belonging to aborted attempts."""

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self.loop = loop
        self.previous = loop.get_exception_handler()
        self.handles: List[CancellationHandle] = []

    def __call__(self, loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        future = context.get("future") or context.get("task")
        exception = context.get("exception")

        if future is not None and any(h.aborted and h.owns(future) for h in self.handles):
            logger.debug(f"Ignoring late error from aborted attempt: {exception!r}")
            return

        if self.previous is not None:
            self.previous(loop, context)
        else:
            loop.default_exception_handler(context)


_filters: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, _StaleErrorFilter]" = (
    weakref.WeakKeyDictionary()
)


@asynccontextmanager
async def suppress_stale_errors(handle: CancellationHandle):
    """
    Ignore late errors from ``handle``'s attempt while the body runs.

    Used around the backoff sleep after an attempt is aborted. Errors from
    futures tracked on an aborted handle are logged at debug level and
    dropped. Everything else, including errors from unrelated tasks on the
    same loop, goes to the loop's previous exception handler.
    """
    loop = asyncio.get_running_loop()
    stale_filter = _filters.get(loop)
    if stale_filter is None:
        stale_filter = _StaleErrorFilter(loop)
        _filters[loop] = stale_filter
        loop.set_exception_handler(stale_filter)

    stale_filter.handles.append(handle)
    try:
        yield
    finally:
        stale_filter.handles.remove(handle)
        if not stale_filter.handles:
            loop.set_exception_handler(stale_filter.previous)
            del _filters[loop]
