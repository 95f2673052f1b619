"""Observability helpers."""

from .logging import OperateLogger

__all__ = ["OperateLogger"]
