"""Access helpers for SDK response objects.

SDK responses are pydantic objects; tests and recorded fixtures use plain
dicts. Adapters read both through these helpers.
"""

from typing import Any, Dict


def get_field(obj: Any, name: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def to_plain(obj: Any) -> Dict[str, Any]:
    """Convert an SDK object to a plain dict, dropping unset fields."""
    if isinstance(obj, dict):
        return dict(obj)
    if hasattr(obj, "model_dump"):
        return obj.model_dump(exclude_none=True)
    return dict(vars(obj))
