"""Scalar coercions for raw attribute values.

The raw tree keeps every attribute as a string (or whatever the JSON source
carried). These helpers turn them into Python values and fail closed with
ValueViolation when a value cannot be read.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from ..errors import ValueViolation


def optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value)
    return text if text != "" else None


def flag(value: Any, default: bool = False) -> bool:
    """Read an XML-style boolean attribute ("true"/"false")."""

    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def optional_int(value: Any, field: str = "integer") -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueViolation(field, value)
    try:
        return int(str(value).strip())
    except ValueError:
        try:
            as_float = float(str(value).strip())
        except ValueError:
            raise ValueViolation(field, value) from None
        if not as_float.is_integer():
            raise ValueViolation(field, value)
        return int(as_float)


def optional_float(value: Any, field: str = "decimal") -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueViolation(field, value)
    try:
        return float(str(value).strip())
    except ValueError:
        raise ValueViolation(field, value) from None


def number(value: Any, field: str) -> float | int:
    """Numeric cast used for integer / decimal property values."""

    parsed = optional_float(value, field)
    if parsed is None:
        raise ValueViolation(field, value)
    if field == "integer" and parsed.is_integer():
        return int(parsed)
    return parsed


def _iso(value: str) -> str:
    # datetime.fromisoformat handles "Z" from 3.11; normalize for clarity.
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return text


def optional_datetime(value: Any, field: str = "date time") -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(_iso(str(value)))
    except ValueError:
        raise ValueViolation(field, value) from None


def optional_date(value: Any, field: str = "date") -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(_iso(text)).date()
    except ValueError:
        raise ValueViolation(field, value) from None
