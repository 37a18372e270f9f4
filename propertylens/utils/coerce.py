from typing import Any, Mapping, Optional

def to_float(v) -> Optional[float]:
    try:
        if v is None or v == "" or str(v).lower() == "null":
            return None
        return float(v)
    except (TypeError, ValueError):
        return None

def to_str(v) -> str:
    return "" if v is None else str(v)

def dig(record: Any, *path: str) -> Any:
    """Follow nested keys, returning None as soon as a level is missing."""
    current = record
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current
