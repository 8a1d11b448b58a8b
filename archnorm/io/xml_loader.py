"""XML document -> loosely-typed raw tree.

The tree mirrors the conventional XML-to-JSON conversion the normalizers
expect:

- attributes become keys (namespace prefixes removed, ``xs:`` stripped from values)
- element text goes under ``text``; an element with neither attributes nor
  children collapses to its plain string
- repeated child elements become lists; tags in ``ARRAY_TAGS`` always do
- values are never coerced: everything stays a string

Cardinality ambiguity outside ``ARRAY_TAGS`` is left in place on purpose.

Security notes:
- Parsing goes through defusedxml (no entity expansion, no external DTDs).
- Input size is capped before parsing.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Union

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as DefusedET

from archnorm.core.errors import XmlLoadError

log = logging.getLogger("archnorm.io")

_MAX_XML_BYTES = 50 * 1024 * 1024

ARRAY_TAGS: FrozenSet[str] = frozenset(
    {
        "string",
        "content",
        "tree",
        "bibliography",
        "spatialUnit",
        "concept",
        "person",
        "period",
        "propertyValue",
        "propertyVariable",
        "resource",
        "set",
        "property",
        "value",
        "context",
        "creator",
        "author",
        "event",
        "interpretation",
        "observation",
        "observers",
        "heading",
        "note",
        "reference",
        "coord",
        "area",
        "footnote",
        "language",
    }
)

TEXT_KEY = "text"


def _strip_ns(name: str) -> str:
    if "}" in name:
        name = name.split("}", 1)[1]
    if ":" in name:
        name = name.split(":", 1)[1]
    return name


def _attribute_value(value: str) -> str:
    return value[3:] if value.startswith("xs:") else value


def _element_text(element: Any) -> str:
    """Direct text of ``element``, including text that follows its children."""

    parts = [element.text or ""]
    for child in element:
        parts.append(child.tail or "")
    joined = "".join(parts)
    return joined if joined.strip() else ""


def _convert(element: Any) -> Union[str, Dict[str, Any]]:
    out: Dict[str, Any] = {}
    for name, value in element.attrib.items():
        out[_strip_ns(name)] = _attribute_value(value)

    grouped: Dict[str, List[Any]] = {}
    for child in element:
        grouped.setdefault(_strip_ns(child.tag), []).append(_convert(child))
    for tag, values in grouped.items():
        out[tag] = values if (tag in ARRAY_TAGS or len(values) > 1) else values[0]

    text = _element_text(element)
    if not out:
        return text
    if text:
        out[TEXT_KEY] = text
    return out


def load_xml(data: Union[bytes, str]) -> Dict[str, Any]:
    """Parse an XML document into ``{root_tag: tree}``.

    Raises XmlLoadError for oversized, malformed or unsafe input.
    """

    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    if len(raw) > _MAX_XML_BYTES:
        raise XmlLoadError(f"XML document too large: {len(raw)} bytes > {_MAX_XML_BYTES}")

    try:
        root = DefusedET.fromstring(raw)
    except DefusedXmlException as e:
        raise XmlLoadError(f"Unsafe XML rejected: {type(e).__name__}") from e
    except DefusedET.ParseError as e:
        raise XmlLoadError(f"Malformed XML: {e}") from e

    tag = _strip_ns(root.tag)
    log.debug("xml_loaded", extra={"root": tag, "bytes": len(raw)})
    return {tag: _convert(root)}


def load_xml_file(path: Union[str, Path]) -> Dict[str, Any]:
    p = Path(path)
    size = p.stat().st_size
    if size > _MAX_XML_BYTES:
        raise XmlLoadError(f"XML document too large: {size} bytes > {_MAX_XML_BYTES}")
    return load_xml(p.read_bytes())
