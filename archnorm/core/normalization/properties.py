from __future__ import annotations

import re
from collections import deque
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..cardinality import ensure_child_list, ensure_list
from ..content.resolver import resolve_label, resolve_optional_label
from ..content.text import escape_text
from ..model import Property, PropertyContent, PropertyLabel, PropertyValueContent
from ..options import NormalizationOptions
from ..vocabulary import DataType, parse_data_type
from .coerce import flag, number, optional_date, optional_datetime, optional_str

_ELLIPSIS_RE = re.compile(r"\s*\.{3}$")


def _value_text(raw: Mapping[str, Any], options: NormalizationOptions) -> Optional[str]:
    """Resolved human text of a value (its content tree or text node)."""

    content = raw.get("content")
    if content is not None:
        if isinstance(content, (str, int, float, bool)):
            return escape_text(content)
        return resolve_label({"content": content}, options)
    if raw.get("text") is not None:
        return escape_text(raw["text"])
    return None


def _coerce(data_type: DataType, raw: Mapping[str, Any], options: NormalizationOptions) -> Tuple[PropertyContent, Optional[str]]:
    """Return ``(content, label)`` for one value according to its data type."""

    text = _value_text(raw, options)
    raw_value = raw.get("rawValue")

    if data_type in (DataType.INTEGER, DataType.DECIMAL):
        source = raw_value if raw_value is not None else text
        label = text if raw_value is not None else None
        return number(source, data_type.value), label

    if data_type is DataType.DATE:
        source = raw_value if raw_value is not None else text
        return optional_date(source, "date value"), None

    if data_type is DataType.DATE_TIME:
        source = raw_value if raw_value is not None else text
        return optional_datetime(source, "dateTime value"), None

    if data_type is DataType.COORDINATE:
        return None, None

    if data_type is DataType.BOOLEAN:
        # Flag and human label live in two sibling fields; keep both.
        # The label text never doubles as the flag.
        source = raw.get("booleanValue")
        if source is None:
            source = raw_value
        return (flag(source) if source is not None else None), text

    if raw.get("slug") is not None:
        return escape_text(raw["slug"]), None
    return text, None


def parse_property_value(raw: Any, options: Optional[NormalizationOptions] = None) -> PropertyValueContent:
    """Parse one raw property value.

    - scalar -> string content, no metadata
    - mapping -> ``dataType`` (falls back to ``type``, default "string") is
      validated and drives coercion; unknown types raise ValueViolation
    """

    opts = options or NormalizationOptions()
    if not isinstance(raw, Mapping):
        return PropertyValueContent(data_type=DataType.STRING, content=escape_text(raw), category="value")

    declared = raw.get("dataType")
    if declared is None:
        declared = raw.get("type")
    data_type = parse_data_type(declared)
    content, label = _coerce(data_type, raw, opts)

    return PropertyValueContent(
        data_type=data_type,
        content=content,
        label=label,
        is_uncertain=flag(raw.get("isUncertain")),
        category=optional_str(raw.get("category")) or "value",
        type=optional_str(raw.get("type")) if raw.get("dataType") is not None else None,
        uuid=optional_str(raw.get("uuid")),
        publication_date_time=optional_datetime(raw.get("publicationDateTime")),
        unit=optional_str(raw.get("unit")),
        slug=optional_str(raw.get("slug")),
        href=optional_str(raw.get("href")),
    )


def clean_label_name(name: str) -> str:
    """Strip a trailing " ..." ellipsis and surrounding whitespace."""

    return _ELLIPSIS_RE.sub("", name).strip()


def _nested_raw(raw: Mapping[str, Any]) -> List[Any]:
    nested = ensure_list(raw.get("property"))
    nested.extend(ensure_child_list(raw.get("properties"), "property"))
    return nested


def parse_property(raw: Mapping[str, Any], options: Optional[NormalizationOptions] = None) -> Property:
    """Parse one property, recursing into nested properties.

    Depth is bounded only by the source tree.
    """

    opts = (options or NormalizationOptions()).rich(False)
    raw_label = raw.get("label")
    label_uuid = raw_label.get("uuid") if isinstance(raw_label, Mapping) else None
    label_published = raw_label.get("publicationDateTime") if isinstance(raw_label, Mapping) else None

    return Property(
        label=PropertyLabel(
            uuid=optional_str(label_uuid),
            name=clean_label_name(resolve_label(raw_label, opts)),
            publication_date_time=optional_datetime(label_published),
        ),
        values=tuple(parse_property_value(v, opts) for v in ensure_list(raw.get("value"))),
        comment=resolve_optional_label(raw.get("comment"), opts),
        properties=parse_properties(_nested_raw(raw), opts),
    )


def parse_properties(raw: Iterable[Any], options: Optional[NormalizationOptions] = None) -> Tuple[Property, ...]:
    return tuple(parse_property(p, options) for p in raw if isinstance(p, Mapping))


def properties_of(container: Any, options: Optional[NormalizationOptions] = None) -> Tuple[Property, ...]:
    """Parse ``container["properties"]["property"]`` (absent -> ())."""

    if not isinstance(container, Mapping):
        return ()
    return parse_properties(ensure_child_list(container.get("properties"), "property"), options)


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------


def flatten_properties(properties: Sequence[Property]) -> Tuple[Property, ...]:
    """Lift nested properties to one level (breadth-first).

    Each returned property has its ``properties`` emptied.

    Time:  O(n)
    Space: O(n)
    """

    out: List[Property] = []
    queue = deque(properties)
    while queue:
        current = queue.popleft()
        out.append(current.without_children())
        queue.extend(current.properties)
    return tuple(out)


def get_property_by_label(properties: Sequence[Property], label: str) -> Optional[Property]:
    """First property named ``label`` (depth-first, parents before children)."""

    for prop in properties:
        if prop.label.name == label:
            return prop
        found = get_property_by_label(prop.properties, label)
        if found is not None:
            return found
    return None


def get_property_values(properties: Sequence[Property], label: str) -> Tuple[PropertyContent, ...]:
    prop = get_property_by_label(properties, label)
    if prop is None:
        return ()
    return tuple(v.content for v in prop.values)
