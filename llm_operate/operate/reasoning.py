"""Reasoning text extraction from history items."""

from typing import Any, List

from ..models.conversation_types import MessageType


def extract_reasoning(history: List[Any]) -> List[str]:
    """
    Collect reasoning text from history.

    Reads ``reasoning`` items (summary texts and string content), ``thinking``
    blocks, and any item carrying a non-empty ``reasoning`` string.
    """
    reasoning: List[str] = []

    for item in history:
        if not isinstance(item, dict):
            continue
        item_type = item.get("type")

        if item_type == MessageType.REASONING.value:
            for summary in item.get("summary") or []:
                text = summary.get("text") if isinstance(summary, dict) else None
                if text:
                    reasoning.append(text)
            content = item.get("content")
            if isinstance(content, str) and content:
                reasoning.append(content)
            continue

        if item_type == "thinking":
            thinking = item.get("thinking")
            if isinstance(thinking, str) and thinking:
                reasoning.append(thinking)
            continue

        text = item.get("reasoning")
        if isinstance(text, str) and text:
            reasoning.append(text)

    return reasoning
