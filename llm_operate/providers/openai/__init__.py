from .adapter import OpenAiAdapter

__all__ = ["OpenAiAdapter"]
