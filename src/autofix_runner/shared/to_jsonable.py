from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any


def to_jsonable(obj: Any) -> Any:
    """Convert run results into JSON-serializable structures.

    Handles:
    - Basic types (str, int, float, bool, None)
    - Enums (by value), paths and datetimes (as strings)
    - Collections (list, tuple, set, dict)
    - Dataclasses, including their read-only properties listed in ``__json_properties__``
    - Pydantic models

    Args:
        obj: Any Python object

    Returns:
        A JSON-serializable version of the object
    """
    if obj is None or isinstance(obj, (str, int, float, bool)) and not isinstance(obj, Enum):
        return obj
    if isinstance(obj, Enum):
        return to_jsonable(obj.value)
    if isinstance(obj, (Path, datetime)):
        return str(obj) if isinstance(obj, Path) else obj.isoformat()
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [to_jsonable(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if hasattr(obj, "model_dump"):
        return to_jsonable(obj.model_dump())
    if is_dataclass(obj) and not isinstance(obj, type):
        data = {f.name: to_jsonable(getattr(obj, f.name)) for f in fields(obj)}
        for name in getattr(obj, "__json_properties__", ()):
            data[name] = to_jsonable(getattr(obj, name))
        return data
    return str(obj)
