"""Output schema helpers shared by adapters."""

import copy
from typing import Any, Dict

from pydantic import BaseModel


def to_json_schema(schema: Any) -> Dict[str, Any]:
    """
    Normalize an output schema to a JSON schema dict.

    Accepts a JSON schema dict or a pydantic model class. The result is a deep
    copy, so callers may modify it.
    """
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return schema.model_json_schema()
    if isinstance(schema, dict):
        return copy.deepcopy(schema)
    raise TypeError(f"Unsupported output schema: {type(schema).__name__}")


def schema_name(schema: Any, default: str = "response") -> str:
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return schema.__name__
    if isinstance(schema, dict) and isinstance(schema.get("title"), str):
        return schema["title"]
    return default


def close_objects(schema: Dict[str, Any]) -> Dict[str, Any]:
    """Set ``additionalProperties: false`` on every object in the schema, in place."""
    pending = [schema]
    while pending:
        current = pending.pop()
        if isinstance(current, dict):
            if current.get("type") == "object":
                current["additionalProperties"] = False
            pending.extend(v for v in current.values() if isinstance(v, (dict, list)))
        elif isinstance(current, list):
            pending.extend(v for v in current if isinstance(v, (dict, list)))
    return schema
