"""Small parsers for the sub-structures items share.

Each function takes one raw fragment plus the normalization options and
returns immutable model values. Absent inputs yield ``None`` or ``()``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..cardinality import ensure_child_list, ensure_list
from ..content.links import iter_link_descriptors
from ..content.resolver import resolve_label, resolve_optional_label, resolve_text_field
from ..content.text import escape_text
from ..errors import ShapeViolation, ValueViolation
from ..model import (
    Context,
    ContextItem,
    ContextNode,
    Coordinate,
    CoordinateSource,
    Event,
    EventReference,
    Image,
    ImageMap,
    ImageMapArea,
    ImageMapShape,
    License,
    Link,
    LinkImage,
    MapData,
    PlaneCoordinate,
    PointCoordinate,
)
from ..multilingual import MultilingualText
from ..options import NormalizationOptions
from .coerce import flag, optional_datetime, optional_float, optional_int, optional_str
from .identification import parse_identification

# Categories that can appear as levels of a context path.
_CONTEXT_LEVELS = ("resource", "spatialUnit", "concept", "period", "bibliography")


def _plain(options: Optional[NormalizationOptions]) -> NormalizationOptions:
    return (options or NormalizationOptions()).rich(False)


# ---------------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------------


def _link_image(raw: Mapping[str, Any]) -> Optional[LinkImage]:
    if raw.get("height") in (None, "") or raw.get("width") in (None, ""):
        return None
    return LinkImage(
        is_inline=raw.get("rend") == "inline",
        is_primary=flag(raw.get("isPrimary")),
        height=optional_int(raw.get("height"), "height"),
        width=optional_int(raw.get("width"), "width"),
        height_preview=optional_int(raw.get("heightPreview"), "heightPreview"),
        width_preview=optional_int(raw.get("widthPreview"), "widthPreview"),
    )


def parse_links(raw: Any, options: Optional[NormalizationOptions] = None) -> Tuple[Link, ...]:
    """Parse a raw ``links`` field into Link records.

    One category key may batch several targets; each becomes its own Link,
    in source order.
    """

    opts = _plain(options)
    out: List[Link] = []
    for descriptor in iter_link_descriptors(raw):
        target = descriptor.raw
        identification = target.get("identification")
        content = target.get("content")
        if content is None:
            content = target.get("text")
        out.append(
            Link(
                uuid=descriptor.uuid,
                category=descriptor.category,
                identification=parse_identification(identification, opts) if identification is not None else None,
                type=optional_str(target.get("type")),
                publication_date_time=optional_datetime(target.get("publicationDateTime")),
                content=escape_text(content) if isinstance(content, (str, int, float, bool)) else None,
                href=optional_str(target.get("href")),
                file_format=optional_str(target.get("fileFormat") or target.get("format")),
                image=_link_image(target),
            )
        )
    return tuple(out)


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


def _context_item(raw: Any, category: str) -> ContextItem:
    if not isinstance(raw, Mapping):
        return ContextItem(uuid="", category=category, content=escape_text(raw))
    text = raw.get("text", raw.get("content"))
    return ContextItem(
        uuid=str(raw.get("uuid") or ""),
        category=category,
        content=escape_text(text) if text is not None else "",
        number=optional_int(raw.get("n"), "n"),
        publication_date_time=optional_datetime(raw.get("publicationDateTime")),
    )


def _context_node(raw: Mapping[str, Any]) -> ContextNode:
    project = raw.get("project")
    items: List[ContextItem] = []
    for level in _CONTEXT_LEVELS:
        items.extend(_context_item(entry, level) for entry in ensure_list(raw.get(level)))
    return ContextNode(
        project=_context_item(project, "project") if project is not None else None,
        tree=tuple(_context_item(entry, "tree") for entry in ensure_list(raw.get("tree"))),
        items=tuple(items),
        display_path=optional_str(raw.get("displayPath")),
    )


def parse_context(raw: Any) -> Optional[Context]:
    """Parse a ``context`` field (one or many wrappers of context nodes)."""

    if raw is None:
        return None
    nodes: List[ContextNode] = []
    display_path: Optional[str] = None
    for wrapper in ensure_list(raw):
        if not isinstance(wrapper, Mapping):
            continue
        if display_path is None:
            display_path = optional_str(wrapper.get("displayPath"))
        for node in ensure_list(wrapper.get("context")):
            if isinstance(node, Mapping):
                nodes.append(_context_node(node))
    return Context(nodes=tuple(nodes), display_path=display_path)


# ---------------------------------------------------------------------------
# License
# ---------------------------------------------------------------------------


def parse_license(raw: Any) -> Optional[License]:
    """Parse ``availability``; a bare-string license carries nothing usable."""

    if not isinstance(raw, Mapping):
        return None
    lic = raw.get("license")
    if not isinstance(lic, Mapping):
        return None
    text = lic.get("text", lic.get("content"))
    return License(
        content=escape_text(text) if text is not None else "",
        url=optional_str(lic.get("target")),
    )


# ---------------------------------------------------------------------------
# Coordinates
# ---------------------------------------------------------------------------


def _source_label(raw: Any, options: NormalizationOptions) -> str:
    return resolve_label(raw, options) if raw is not None else ""


def _coordinate_source(raw: Any, options: NormalizationOptions) -> Optional[CoordinateSource]:
    if not isinstance(raw, Mapping):
        return None
    context = optional_str(raw.get("context"))
    label = raw.get("label")
    label_uuid = optional_str(label.get("uuid")) if isinstance(label, Mapping) else None

    if context == "self":
        return CoordinateSource(context="self", uuid=label_uuid, label=_source_label(label, options))
    if context == "related":
        return CoordinateSource(
            context="related",
            uuid=label_uuid,
            label=_source_label(label, options),
            value=_source_label(raw.get("value"), options),
        )
    if context == "inherited":
        item = raw.get("item") if isinstance(raw.get("item"), Mapping) else {}
        item_label = item.get("label")
        return CoordinateSource(
            context="inherited",
            uuid=label_uuid,
            label=_source_label(label, options),
            item_uuid=optional_str(item_label.get("uuid")) if isinstance(item_label, Mapping) else None,
            item_label=_source_label(item_label, options),
        )
    raise ValueViolation("coordinate source context", context)


def _lat_lon(raw: Any, where: str) -> Tuple[float, float]:
    if not isinstance(raw, Mapping):
        raise ShapeViolation(where)
    lat = optional_float(raw.get("latitude"), "latitude")
    lon = optional_float(raw.get("longitude"), "longitude")
    if lat is None or lon is None:
        raise ShapeViolation(f"{where}.latitude/longitude")
    return lat, lon


def parse_coordinates(raw: Any, options: Optional[NormalizationOptions] = None) -> Tuple[Coordinate, ...]:
    """Parse ``coordinates`` (``{"coord": [...]}`` or a bare list of coords)."""

    if raw is None:
        return ()
    opts = _plain(options)
    entries = ensure_child_list(raw, "coord") if isinstance(raw, Mapping) and "coord" in raw else ensure_list(raw)

    out: List[Coordinate] = []
    for coord in entries:
        if not isinstance(coord, Mapping):
            continue
        kind = coord.get("type")
        source = _coordinate_source(coord.get("source"), opts)
        if kind == "point":
            lat, lon = _lat_lon(coord, "coordinate")
            out.append(
                PointCoordinate(
                    latitude=lat,
                    longitude=lon,
                    altitude=optional_float(coord.get("altitude"), "altitude"),
                    source=source,
                )
            )
        elif kind == "plane":
            out.append(
                PlaneCoordinate(
                    minimum=_lat_lon(coord.get("minimum"), "minimum"),
                    maximum=_lat_lon(coord.get("maximum"), "maximum"),
                    source=source,
                )
            )
        else:
            raise ValueViolation("coordinate type", kind)
    return tuple(out)


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


def parse_image(raw: Any, options: Optional[NormalizationOptions] = None) -> Optional[Image]:
    """Parse an ``image`` block.

    ``url`` is ``href`` when present; otherwise the text content is the URL
    unless an ``htmlImgSrcPrefix`` is given, in which case it is inline data.
    """

    if not isinstance(raw, Mapping):
        return None
    prefix = optional_str(raw.get("htmlImgSrcPrefix"))
    content = raw.get("content", raw.get("text"))
    content_text = escape_text(content) if content is not None else None
    identification = raw.get("identification")
    return Image(
        identification=parse_identification(identification, options) if identification is not None else None,
        url=optional_str(raw.get("href")) or (content_text if prefix is None else None),
        html_prefix=prefix,
        content=content_text if prefix is not None else None,
        width=optional_int(raw.get("width"), "width"),
        height=optional_int(raw.get("height"), "height"),
        width_preview=optional_int(raw.get("widthPreview"), "widthPreview"),
        height_preview=optional_int(raw.get("heightPreview"), "heightPreview"),
        publication_date_time=optional_datetime(raw.get("publicationDateTime")),
    )


def _shape_name(raw: Any) -> str:
    if raw == "rect":
        return "rectangle"
    if raw == "circle":
        return "circle"
    return "polygon"


def _coords(raw: Any) -> Tuple[int, ...]:
    if raw is None or raw == "":
        return ()
    try:
        return tuple(int(float(part)) for part in str(raw).split(",") if part.strip())
    except (ValueError, OverflowError):
        raise ValueViolation("image map coords", raw) from None


def parse_image_map(raw: Any) -> Optional[ImageMap]:
    """Parse an ``imagemap``; raw areas sharing a UUID become one area.

    Time:  O(n)
    Space: O(n)
    """

    if not isinstance(raw, Mapping):
        return None

    grouped: Dict[str, List[Mapping[str, Any]]] = {}
    for area in ensure_list(raw.get("area")):
        if isinstance(area, Mapping):
            grouped.setdefault(str(area.get("uuid") or ""), []).append(area)

    areas: List[ImageMapArea] = []
    for uuid, entries in grouped.items():
        first = entries[0]
        title = first.get("title")
        areas.append(
            ImageMapArea(
                uuid=uuid,
                title=escape_text(title) if title is not None else "",
                shapes=tuple(ImageMapShape(shape=_shape_name(e.get("shape")), coords=_coords(e.get("coords"))) for e in entries),
                type=optional_str(first.get("type")),
                slug=optional_str(first.get("slug")),
                publication_date_time=optional_datetime(first.get("publicationDateTime")),
            )
        )

    return ImageMap(
        width=optional_int(raw.get("width"), "width"),
        height=optional_int(raw.get("height"), "height"),
        areas=tuple(areas),
    )


def parse_map_data(raw: Any) -> Optional[MapData]:
    """Parse a spatial unit's ``mapData`` (``{"geoJSON": {"multiPolygon", "EPSG"}}``)."""

    if not isinstance(raw, Mapping) or not isinstance(raw.get("geoJSON"), Mapping):
        return None
    geo = raw["geoJSON"]
    polygon = geo.get("multiPolygon")
    if isinstance(polygon, Mapping):
        polygon = polygon.get("text")
    if polygon is None or str(polygon).strip() == "":
        return None
    return MapData(multi_polygon=str(polygon).strip(), epsg=optional_int(geo.get("EPSG"), "EPSG"))


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def _event_reference(raw: Any, options: NormalizationOptions) -> Optional[EventReference]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        return EventReference(uuid=None, content=escape_text(raw))
    return EventReference(
        uuid=optional_str(raw.get("uuid")),
        content=resolve_label(raw, options),
        publication_date_time=optional_datetime(raw.get("publicationDateTime")),
    )


def parse_events(raw: Any, options: Optional[NormalizationOptions] = None) -> Tuple[Event, ...]:
    """Parse ``events`` (``{"event": [...]}``). An end date yields "start/end"."""

    opts = _plain(options)
    out: List[Event] = []
    for event in ensure_child_list(raw, "event"):
        if not isinstance(event, Mapping):
            continue
        start = optional_str(event.get("dateTime"))
        end = optional_str(event.get("endDateTime"))
        value = event.get("value")
        out.append(
            Event(
                label=resolve_label(event.get("label"), opts) if event.get("label") is not None else "",
                date_time=f"{start}/{end}" if end is not None else start,
                agent=_event_reference(event.get("agent"), opts),
                location=_event_reference(event.get("location"), opts),
                comment=resolve_optional_label(event.get("comment"), opts),
                value=escape_text(value) if value is not None else None,
            )
        )
    return tuple(out)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


def parse_document(raw: Any, options: Optional[NormalizationOptions] = None) -> Optional[MultilingualText]:
    """Resolve a resource's rich document body (always in rich-text mode)."""

    if raw is None:
        return None
    return resolve_text_field(raw, (options or NormalizationOptions()).rich(True))
