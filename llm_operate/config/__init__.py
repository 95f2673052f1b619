"""Configuration for llm_operate."""

from .settings import OperateSettings, get_settings, reset_settings

__all__ = [
    "OperateSettings",
    "get_settings",
    "reset_settings",
]
