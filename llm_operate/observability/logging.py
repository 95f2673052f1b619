"""
Structured logging for the turn loops.

Messages carry a ``[provider=... model=... turn=...]`` prefix so a single
conversation can be followed through retries and tool calls in plain log
output.
"""

import logging
import time
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Optional


class OperateLogger:
    """Structured logger bound to one provider."""

    def __init__(self, provider_name: str, name: Optional[str] = None):
        """
        Initialize logger for a specific provider.

        Args:
            provider_name: Name of the provider (e.g., "openai", "anthropic")
            name: Logger name, defaults to ``llm_operate.operate.<provider>``
        """
        self.provider = provider_name
        self.logger = logging.getLogger(name or f"llm_operate.operate.{provider_name}")

    def _format_message(self, message: str, **kwargs) -> str:
        fields = [f"provider={self.provider}"]
        for key, value in kwargs.items():
            if value is not None:
                fields.append(f"{key}={value}")
        return f"[{' '.join(fields)}] {message}"

    def debug(self, message: str, model: Optional[str] = None, **kwargs):
        self.logger.debug(self._format_message(message, model=model, **kwargs))

    def info(self, message: str, model: Optional[str] = None, **kwargs):
        self.logger.info(self._format_message(message, model=model, **kwargs))

    def warning(self, message: str, model: Optional[str] = None, **kwargs):
        self.logger.warning(self._format_message(message, model=model, **kwargs))

    def error(self, message: str, model: Optional[str] = None,
              error: Optional[BaseException] = None, **kwargs):
        """Log error message; the exception, if given, is attached as exc_info."""
        if error is not None:
            kwargs["error_type"] = type(error).__name__
        self.logger.error(
            self._format_message(message, model=model, **kwargs),
            exc_info=error,
        )

    @contextmanager
    def track_turn(self, method: str, model: str, turn: int, request_id: Optional[str] = None):
        """
        Context manager to time one model call and log its outcome.

        Args:
            method: "operate" or "stream"
            model: The model being used
            turn: Turn number, starting at 1
            request_id: Optional request ID (generated if not provided)

        Yields:
            Dict with call metadata including request_id
        """
        if request_id is None:
            request_id = str(uuid.uuid4())[:8]

        start_time = time.time()
        self.debug(f"Starting {method} turn", model=model, turn=turn, request_id=request_id)

        metadata: Dict[str, Any] = {
            "request_id": request_id,
            "model": model,
            "method": method,
            "turn": turn,
            "start_time": start_time,
        }

        try:
            yield metadata
        except Exception as e:
            duration = time.time() - start_time
            self.warning(
                f"Failed {method} turn",
                model=model,
                turn=turn,
                request_id=request_id,
                duration_ms=int(duration * 1000),
                error_type=type(e).__name__,
            )
            raise
        else:
            duration = time.time() - start_time
            self.debug(
                f"Completed {method} turn",
                model=model,
                turn=turn,
                request_id=request_id,
                duration_ms=int(duration * 1000),
            )

    def log_usage(self, usage: Any, turn: int):
        """Log token usage for one model call."""
        self.info(
            "Token usage",
            model=getattr(usage, "model", None),
            turn=turn,
            input_tokens=getattr(usage, "input", 0),
            output_tokens=getattr(usage, "output", 0),
            reasoning_tokens=getattr(usage, "reasoning", 0) or None,
            total_tokens=getattr(usage, "total", 0),
        )
