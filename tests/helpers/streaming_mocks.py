"""Helper functions for creating streaming mocks."""

import json
from typing import Any, Dict, List, Optional


class MockStream:
    """Async iterable of events with the ``close()`` coroutine SDK streams expose."""

    def __init__(self, events: List[Any]):
        self._events = list(events)
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for event in self._events:
            if isinstance(event, BaseException):
                raise event
            yield event

    async def close(self):
        self.closed = True


def create_openai_events(chunks: List[str], tool_calls: Optional[List[Dict[str, Any]]] = None,
                         model: str = "gpt-4.1") -> List[Dict[str, Any]]:
    """Responses API events: text deltas, completed function calls, then completion with usage."""
    events: List[Dict[str, Any]] = [{"type": "response.created", "response": {"model": model}}]
    for chunk in chunks:
        events.append({"type": "response.output_text.delta", "delta": chunk})
    for call in tool_calls or []:
        events.append({
            "type": "response.output_item.done",
            "item": {
                "type": "function_call",
                "id": f"fc_{call['call_id']}",
                "call_id": call["call_id"],
                "name": call["name"],
                "arguments": json.dumps(call.get("arguments") or {}),
            },
        })
    events.append({
        "type": "response.completed",
        "response": {
            "model": model,
            "usage": {
                "input_tokens": 10,
                "output_tokens": len(chunks) * 2,
                "total_tokens": 10 + len(chunks) * 2,
            },
        },
    })
    return events


def create_anthropic_events(chunks: List[str], tool_use: Optional[Dict[str, Any]] = None,
                            model: str = "claude-sonnet-4-0") -> List[Dict[str, Any]]:
    """Messages API events; tool input is split into two JSON fragments."""
    events: List[Dict[str, Any]] = [
        {"type": "message_start", "message": {"model": model, "usage": {"input_tokens": 12}}},
        {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
    ]
    for chunk in chunks:
        events.append({"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": chunk}})
    events.append({"type": "content_block_stop", "index": 0})

    if tool_use is not None:
        arguments = json.dumps(tool_use.get("input") or {})
        middle = len(arguments) // 2
        events.extend([
            {
                "type": "content_block_start",
                "index": 1,
                "content_block": {"type": "tool_use", "id": tool_use["id"], "name": tool_use["name"], "input": {}},
            },
            {"type": "content_block_delta", "index": 1,
             "delta": {"type": "input_json_delta", "partial_json": arguments[:middle]}},
            {"type": "content_block_delta", "index": 1,
             "delta": {"type": "input_json_delta", "partial_json": arguments[middle:]}},
            {"type": "content_block_stop", "index": 1},
        ])

    events.extend([
        {
            "type": "message_delta",
            "delta": {"stop_reason": "tool_use" if tool_use else "end_turn"},
            "usage": {"output_tokens": 7},
        },
        {"type": "message_stop"},
    ])
    return events
