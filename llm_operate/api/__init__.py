from .client import LlmClient

__all__ = ["LlmClient"]
