from __future__ import annotations

import re
from enum import Enum
from typing import Any, List, Tuple, Type, TypeVar

from .errors import ShapeViolation, ValueViolation

E = TypeVar("E", bound=Enum)


class ItemCategory(str, Enum):
    """
    Top-level record kinds. Exactly one of these keys wraps a raw item.

    Using str Enum keeps JSON output stable ("resource", not "ItemCategory.RESOURCE").
    """

    RESOURCE = "resource"
    SPATIAL_UNIT = "spatialUnit"
    CONCEPT = "concept"
    PERIOD = "period"
    BIBLIOGRAPHY = "bibliography"
    PERSON = "person"
    PROPERTY_VALUE = "propertyValue"
    PROPERTY_VARIABLE = "propertyVariable"
    SET = "set"
    TREE = "tree"


class DataType(str, Enum):
    """Declared data type of a property value."""

    STRING = "string"
    INTEGER = "integer"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    DATE_TIME = "dateTime"
    TIME = "time"
    COORDINATE = "coordinate"
    IDREF = "IDREF"


class RenderOption(str, Enum):
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"


class WhitespaceOption(str, Enum):
    NEWLINE = "newline"
    TRAILING = "trailing"
    LEADING = "leading"


class LinkType(str, Enum):
    """Explicit type carried by an embedded link descriptor."""

    IMAGE = "image"
    EXTERNAL_DOCUMENT = "externalDocument"
    WEBPAGE = "webpage"


CATEGORY_KEYS: Tuple[str, ...] = tuple(c.value for c in ItemCategory)

# Keys that may sit next to the category key on a record envelope.
ENVELOPE_KEYS: Tuple[str, ...] = (
    "uuid",
    "uuidBelongsTo",
    "belongsTo",
    "publicationDateTime",
    "metadata",
    "languages",
    "persistentUrl",
)

_LANGUAGE_RE = re.compile(r"^[a-z]{3}$")


def _parse_enum(enum_cls: Type[E], raw: Any, field: str) -> E:
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(str(raw))
    except ValueError:
        raise ValueViolation(field, raw) from None


def parse_category(raw: Any) -> ItemCategory:
    return _parse_enum(ItemCategory, raw, "item category")


def parse_data_type(raw: Any) -> DataType:
    """Parse a property value data type; absent means ``string``."""

    if raw is None or raw == "":
        return DataType.STRING
    return _parse_enum(DataType, raw, "property value data type")


def parse_link_type(raw: Any) -> LinkType:
    return _parse_enum(LinkType, raw, "link type")


def _parse_option_list(enum_cls: Type[E], raw: Any, field: str) -> List[E]:
    # Options are space separated: "bold italic", "newline trailing".
    text = str(raw)
    out: List[E] = []
    for token in text.split(" "):
        if token == "":
            continue
        try:
            out.append(enum_cls(token))
        except ValueError:
            raise ValueViolation(field, text, f"Invalid {field} string provided: \"{text}\"") from None
    return out


def parse_render_options(raw: Any) -> List[RenderOption]:
    return _parse_option_list(RenderOption, raw, "render options")


def parse_whitespace_options(raw: Any) -> List[WhitespaceOption]:
    return _parse_option_list(WhitespaceOption, raw, "whitespace")


def parse_language(raw: Any) -> str:
    """Validate an ISO 639-3 style language code (three lowercase letters)."""

    code = str(raw).strip()
    if not _LANGUAGE_RE.match(code):
        raise ValueViolation("language code", raw)
    return code


def find_category_key(keys: Any) -> ItemCategory:
    """Return the first recognized category among ``keys``.

    Raises ShapeViolation naming the first unexpected key when none is found.
    """

    key_list = [str(k) for k in keys]
    for key in key_list:
        if key in CATEGORY_KEYS:
            return ItemCategory(key)

    unknown = next((k for k in key_list if k not in ENVELOPE_KEYS), None)
    if unknown is None:
        raise ShapeViolation("category", "Invalid record: no item category key present")
    raise ShapeViolation(unknown, f'Invalid record: found unexpected "{unknown}" key')
