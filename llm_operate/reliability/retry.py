from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..config.defaults import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_INITIAL_DELAY,
    DEFAULT_MAX_DELAY,
    DEFAULT_MAX_RETRIES,
    MAX_RETRIES_ABSOLUTE_LIMIT,
)
from ..config.settings import OperateSettings, get_settings


@dataclass(frozen=True)
class RetryPolicy:
    """
    Exponential backoff calculator.

    Delays are in seconds. ``max_retries`` is clamped to
    ``MAX_RETRIES_ABSOLUTE_LIMIT`` whatever value is configured.
    """
    initial_delay: float = DEFAULT_INITIAL_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR
    max_retries: int = DEFAULT_MAX_RETRIES

    def __post_init__(self):
        clamped = max(0, min(int(self.max_retries), MAX_RETRIES_ABSOLUTE_LIMIT))
        object.__setattr__(self, "max_retries", clamped)

    def delay(self, attempt: int) -> float:
        """Delay before the retry that follows ``attempt`` (0-based)."""
        return min(self.initial_delay * self.backoff_factor ** attempt, self.max_delay)

    def should_retry(self, attempt: int) -> bool:
        return attempt < self.max_retries

    @classmethod
    def from_settings(cls, settings: Optional[OperateSettings] = None) -> RetryPolicy:
        settings = settings or get_settings()
        return cls(
            initial_delay=settings.initial_delay,
            max_delay=settings.max_delay,
            backoff_factor=settings.backoff_factor,
            max_retries=settings.max_retries,
        )


DEFAULT_RETRY_POLICY = RetryPolicy()
