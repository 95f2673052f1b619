"""Environment-driven settings.

Values are read from the process environment after loading a local ``.env``
file with python-dotenv. Anything not set falls back to the defaults in
:mod:`llm_operate.config.defaults`.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from .defaults import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_INITIAL_DELAY,
    DEFAULT_MAX_DELAY,
    DEFAULT_MAX_RETRIES,
    MAX_RETRIES_ABSOLUTE_LIMIT,
    MAX_TURNS_ABSOLUTE_LIMIT,
    MAX_TURNS_DEFAULT,
)

ENV_PREFIX = "LLM_OPERATE_"


class OperateSettings(BaseModel):
    """Runtime settings for retries, turns and provider credentials."""

    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    initial_delay: float = Field(default=DEFAULT_INITIAL_DELAY, ge=0.0)
    max_delay: float = Field(default=DEFAULT_MAX_DELAY, ge=0.0)
    backoff_factor: float = Field(default=DEFAULT_BACKOFF_FACTOR, ge=1.0)
    max_turns: int = Field(default=MAX_TURNS_DEFAULT, ge=1)
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    @field_validator("max_retries")
    def clamp_max_retries(cls, v):
        return min(v, MAX_RETRIES_ABSOLUTE_LIMIT)

    @field_validator("max_turns")
    def clamp_max_turns(cls, v):
        return min(v, MAX_TURNS_ABSOLUTE_LIMIT)

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "OperateSettings":
        """Build settings from ``LLM_OPERATE_*`` variables and provider keys."""
        if load_dotenv_file:
            load_dotenv()

        values = {}
        for field_name in ("max_retries", "initial_delay", "max_delay", "backoff_factor", "max_turns"):
            raw = os.getenv(f"{ENV_PREFIX}{field_name.upper()}")
            if raw not in (None, ""):
                values[field_name] = raw

        values["openai_api_key"] = os.getenv("OPENAI_API_KEY")
        values["anthropic_api_key"] = os.getenv("ANTHROPIC_API_KEY")
        return cls(**values)

    def api_key_for(self, provider: str) -> Optional[str]:
        return getattr(self, f"{provider}_api_key", None)


_settings: Optional[OperateSettings] = None


def get_settings() -> OperateSettings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = OperateSettings.from_env()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
