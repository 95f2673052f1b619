"""History item types.

Conversation history is a list of plain dicts in the Responses-style item
format. The helpers here build the item shapes the loops append themselves.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union


class MessageRole(str, Enum):
    """Conversation turn roles."""
    ASSISTANT = "assistant"
    DEVELOPER = "developer"
    SYSTEM = "system"
    USER = "user"


class MessageType(str, Enum):
    """History item types."""
    FUNCTION_CALL = "function_call"
    FUNCTION_CALL_OUTPUT = "function_call_output"
    INPUT_FILE = "input_file"
    INPUT_IMAGE = "input_image"
    INPUT_TEXT = "input_text"
    ITEM_REFERENCE = "item_reference"
    MESSAGE = "message"
    OUTPUT_TEXT = "output_text"
    REASONING = "reasoning"
    REFUSAL = "refusal"


HistoryItem = Dict[str, Any]
History = List[HistoryItem]
OperateInput = Union[str, HistoryItem, History]


def message_item(content: Any, role: Union[MessageRole, str] = MessageRole.USER) -> HistoryItem:
    return {
        "content": content,
        "role": MessageRole(role).value,
        "type": MessageType.MESSAGE.value,
    }


def function_call_item(call_id: str, name: str, arguments: str, item_id: Optional[str] = None) -> HistoryItem:
    """Pending function-call entry, as the model requested it."""
    item = {
        "type": MessageType.FUNCTION_CALL.value,
        "name": name,
        "arguments": arguments,
        "call_id": call_id,
    }
    if item_id is not None:
        item["id"] = item_id
    return item


def function_call_output_item(call_id: str, output: str, name: Optional[str] = None) -> HistoryItem:
    item = {
        "type": MessageType.FUNCTION_CALL_OUTPUT.value,
        "output": output,
        "call_id": call_id,
    }
    if name is not None:
        item["name"] = name
    return item


def is_system_message(item: Any) -> bool:
    return (
        isinstance(item, dict)
        and item.get("type", MessageType.MESSAGE.value) == MessageType.MESSAGE.value
        and item.get("role") == MessageRole.SYSTEM.value
    )
