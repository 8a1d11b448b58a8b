from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Mapping

from archnorm.core.multilingual import MultilingualText


def to_jsonable(obj: Any) -> Any:
    """
    Convert normalized values to JSON-serializable equivalents.

    - MultilingualText -> ``{language: text}`` for its available languages
    - Enum -> its value
    - datetime/date/time -> ISO 8601
    - dataclasses -> field mapping (declaration order kept)
    - tuples/lists/sets -> lists

    Does NOT execute or import anything dynamically.
    """
    if obj is None:
        return None

    if isinstance(obj, Enum):
        return obj.value

    if isinstance(obj, (str, int, float, bool)):
        return obj

    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()

    if isinstance(obj, MultilingualText):
        return obj.to_dict()

    # dataclasses (not asdict: nested MultilingualText must keep its own shape)
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in fields(obj)}

    if isinstance(obj, Mapping):
        return {str(k): to_jsonable(v) for k, v in obj.items()}

    if isinstance(obj, (list, tuple, set, frozenset)):
        return [to_jsonable(x) for x in obj]

    # fallback: string representation
    return str(obj)
