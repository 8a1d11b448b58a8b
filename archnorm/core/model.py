from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Optional, Tuple, Union

from .multilingual import MultilingualText
from .vocabulary import DataType, ItemCategory


# ---------------------------------------------------------------------------
# Shared building blocks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Identification:
    """Label + abbreviation of an item or sub-entity.

    ``abbreviation`` is an empty MultilingualText when the source has none.
    """

    label: MultilingualText
    abbreviation: MultilingualText
    code: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None

    @classmethod
    def empty(cls, languages: Tuple[str, ...] = ("eng",)) -> "Identification":
        return cls(
            label=MultilingualText.empty(languages),
            abbreviation=MultilingualText.empty(languages),
        )


@dataclass(frozen=True)
class License:
    content: str
    url: Optional[str] = None


@dataclass(frozen=True)
class LinkImage:
    is_inline: bool
    is_primary: bool
    height: Optional[int]
    width: Optional[int]
    height_preview: Optional[int]
    width_preview: Optional[int]


@dataclass(frozen=True)
class Link:
    """Opaque cross-reference to another item (never resolved here)."""

    uuid: Optional[str]
    category: ItemCategory
    identification: Optional[Identification] = None
    type: Optional[str] = None
    publication_date_time: Optional[datetime] = None
    content: Optional[str] = None
    href: Optional[str] = None
    file_format: Optional[str] = None
    image: Optional[LinkImage] = None


@dataclass(frozen=True)
class ContextItem:
    uuid: str
    category: str
    content: str
    number: Optional[int] = None
    publication_date_time: Optional[datetime] = None


@dataclass(frozen=True)
class ContextNode:
    """One hierarchical location: project -> tree(s) -> nested items."""

    project: Optional[ContextItem]
    tree: Tuple[ContextItem, ...] = ()
    items: Tuple[ContextItem, ...] = ()
    display_path: Optional[str] = None


@dataclass(frozen=True)
class Context:
    nodes: Tuple[ContextNode, ...]
    display_path: Optional[str] = None


@dataclass(frozen=True)
class CoordinateSource:
    context: str
    uuid: Optional[str]
    label: str
    value: Optional[str] = None
    item_uuid: Optional[str] = None
    item_label: Optional[str] = None


@dataclass(frozen=True)
class PointCoordinate:
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    source: Optional[CoordinateSource] = None
    type: str = "point"


@dataclass(frozen=True)
class PlaneCoordinate:
    minimum: Tuple[float, float]
    maximum: Tuple[float, float]
    source: Optional[CoordinateSource] = None
    type: str = "plane"


Coordinate = Union[PointCoordinate, PlaneCoordinate]


@dataclass(frozen=True)
class EventReference:
    uuid: Optional[str]
    content: str
    publication_date_time: Optional[datetime] = None


@dataclass(frozen=True)
class Event:
    label: str
    date_time: Optional[str] = None
    agent: Optional[EventReference] = None
    location: Optional[EventReference] = None
    comment: Optional[str] = None
    value: Optional[str] = None


@dataclass(frozen=True)
class Image:
    identification: Optional[Identification] = None
    url: Optional[str] = None
    html_prefix: Optional[str] = None
    content: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    width_preview: Optional[int] = None
    height_preview: Optional[int] = None
    publication_date_time: Optional[datetime] = None


@dataclass(frozen=True)
class ImageMapShape:
    shape: str
    coords: Tuple[int, ...]


@dataclass(frozen=True)
class ImageMapArea:
    uuid: str
    title: str
    shapes: Tuple[ImageMapShape, ...]
    type: Optional[str] = None
    slug: Optional[str] = None
    publication_date_time: Optional[datetime] = None


@dataclass(frozen=True)
class ImageMap:
    width: Optional[int]
    height: Optional[int]
    areas: Tuple[ImageMapArea, ...] = ()


@dataclass(frozen=True)
class MapData:
    """GeoJSON footprint of a spatial unit; ``multi_polygon`` is kept verbatim."""

    multi_polygon: str
    epsg: Optional[int] = None


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


PropertyContent = Union[str, int, float, bool, date, datetime, None]


@dataclass(frozen=True)
class PropertyValueContent:
    """One typed value of a property.

    For ``boolean`` values ``content`` holds the flag and ``label`` the raw
    human text that came alongside it (if any). Both are kept.
    """

    data_type: DataType
    content: PropertyContent
    label: Optional[str] = None
    is_uncertain: bool = False
    category: Optional[str] = None
    type: Optional[str] = None
    uuid: Optional[str] = None
    publication_date_time: Optional[datetime] = None
    unit: Optional[str] = None
    slug: Optional[str] = None
    href: Optional[str] = None


@dataclass(frozen=True)
class PropertyLabel:
    uuid: Optional[str]
    name: str
    publication_date_time: Optional[datetime] = None


@dataclass(frozen=True)
class Property:
    label: PropertyLabel
    values: Tuple[PropertyValueContent, ...] = ()
    comment: Optional[str] = None
    properties: Tuple["Property", ...] = ()

    def without_children(self) -> "Property":
        return replace(self, properties=())


# ---------------------------------------------------------------------------
# Notes, observations, interpretations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Note:
    number: int
    content: str
    title: Optional[str] = None
    date: Optional[str] = None
    authors: Tuple["Person", ...] = ()


@dataclass(frozen=True)
class Observation:
    number: Optional[int]
    date: Optional[str] = None
    observers: Tuple[Union[str, "Person"], ...] = ()
    notes: Tuple[Note, ...] = ()
    links: Tuple[Link, ...] = ()
    properties: Tuple[Property, ...] = ()
    bibliographies: Tuple["Bibliography", ...] = ()


@dataclass(frozen=True)
class Interpretation:
    number: Optional[int]
    date: Optional[str] = None
    links: Tuple[Link, ...] = ()
    properties: Tuple[Property, ...] = ()
    bibliographies: Tuple["Bibliography", ...] = ()


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BaseItem:
    """Envelope shared by every item category."""

    uuid: str
    category: ItemCategory
    identification: Identification
    publication_date_time: Optional[datetime] = None
    context: Optional[Context] = None
    date: Optional[str] = None
    license: Optional[License] = None
    creators: Tuple["Person", ...] = ()
    description: Optional[MultilingualText] = None
    events: Tuple[Event, ...] = ()


@dataclass(frozen=True)
class Address:
    country: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None


@dataclass(frozen=True)
class Person(BaseItem):
    type: Optional[str] = None
    number: Optional[int] = None
    address: Optional[Address] = None
    image: Optional[Image] = None
    content: Optional[str] = None
    coordinates: Tuple[Coordinate, ...] = ()
    periods: Tuple["Period", ...] = ()
    links: Tuple[Link, ...] = ()
    notes: Tuple[Note, ...] = ()
    properties: Tuple[Property, ...] = ()
    bibliographies: Tuple["Bibliography", ...] = ()


@dataclass(frozen=True)
class Period(BaseItem):
    type: Optional[str] = None
    number: Optional[int] = None
    coordinates: Tuple[Coordinate, ...] = ()
    links: Tuple[Link, ...] = ()
    notes: Tuple[Note, ...] = ()
    properties: Tuple[Property, ...] = ()
    bibliographies: Tuple["Bibliography", ...] = ()
    periods: Tuple["Period", ...] = ()


@dataclass(frozen=True)
class BibliographyCitation:
    format: Optional[str] = None
    short: Optional[str] = None
    long: Optional[str] = None


@dataclass(frozen=True)
class BibliographySourceResource:
    uuid: str
    type: Optional[str]
    identification: Identification
    publication_date_time: Optional[datetime] = None


@dataclass(frozen=True)
class BibliographySource:
    resource: Optional[BibliographySourceResource] = None
    document_url: Optional[str] = None


@dataclass(frozen=True)
class PublicationInfo:
    publishers: Tuple[Person, ...] = ()
    start_date: Optional[date] = None


@dataclass(frozen=True)
class EntryInfo:
    start_issue: Optional[str] = None
    start_volume: Optional[str] = None


@dataclass(frozen=True)
class Bibliography(BaseItem):
    type: Optional[str] = None
    number: Optional[int] = None
    zotero_id: Optional[str] = None
    project_identification: Optional[Identification] = None
    citation: BibliographyCitation = BibliographyCitation()
    publication_info: PublicationInfo = PublicationInfo()
    entry_info: Optional[EntryInfo] = None
    source: BibliographySource = BibliographySource()
    periods: Tuple[Period, ...] = ()
    authors: Tuple[Person, ...] = ()
    links: Tuple[Link, ...] = ()
    notes: Tuple[Note, ...] = ()
    properties: Tuple[Property, ...] = ()


@dataclass(frozen=True)
class Resource(BaseItem):
    type: Optional[str] = None
    number: Optional[int] = None
    file_format: Optional[str] = None
    href: Optional[str] = None
    image: Optional[Image] = None
    image_map: Optional[ImageMap] = None
    document: Optional[MultilingualText] = None
    coordinates: Tuple[Coordinate, ...] = ()
    periods: Tuple[Period, ...] = ()
    links: Tuple[Link, ...] = ()
    reverse_links: Tuple[Link, ...] = ()
    notes: Tuple[Note, ...] = ()
    properties: Tuple[Property, ...] = ()
    bibliographies: Tuple[Bibliography, ...] = ()
    resources: Tuple["Resource", ...] = ()


@dataclass(frozen=True)
class SpatialUnit(BaseItem):
    number: Optional[int] = None
    image: Optional[Image] = None
    coordinates: Tuple[Coordinate, ...] = ()
    observations: Tuple[Observation, ...] = ()
    bibliographies: Tuple[Bibliography, ...] = ()
    spatial_units: Tuple["SpatialUnit", ...] = ()
    map_data: Optional[MapData] = None


@dataclass(frozen=True)
class Concept(BaseItem):
    number: Optional[int] = None
    coordinates: Tuple[Coordinate, ...] = ()
    interpretations: Tuple[Interpretation, ...] = ()
    concepts: Tuple["Concept", ...] = ()


@dataclass(frozen=True)
class PropertyValue(BaseItem):
    number: Optional[int] = None
    coordinates: Tuple[Coordinate, ...] = ()
    links: Tuple[Link, ...] = ()
    notes: Tuple[Note, ...] = ()
    properties: Tuple[Property, ...] = ()
    bibliographies: Tuple[Bibliography, ...] = ()


@dataclass(frozen=True)
class PropertyVariable(BaseItem):
    type: Optional[str] = None
    number: Optional[int] = None
    coordinates: Tuple[Coordinate, ...] = ()
    links: Tuple[Link, ...] = ()
    notes: Tuple[Note, ...] = ()
    bibliographies: Tuple[Bibliography, ...] = ()


@dataclass(frozen=True)
class Set(BaseItem):
    """A curated collection; ``items`` may mix several categories."""

    item_categories: Tuple[ItemCategory, ...] = ()
    type: Optional[str] = None
    number: Optional[int] = None
    is_suppressing_blanks: bool = False
    is_tabular: bool = False
    links: Tuple[Link, ...] = ()
    notes: Tuple[Note, ...] = ()
    properties: Tuple[Property, ...] = ()
    items: Tuple["Item", ...] = ()


@dataclass(frozen=True)
class Heading:
    name: str
    abbreviation: Optional[str] = None
    headings: Tuple["Heading", ...] = ()
    items: Tuple["Item", ...] = ()


@dataclass(frozen=True)
class Tree(BaseItem):
    item_category: Optional[ItemCategory] = None
    type: Optional[str] = None
    number: Optional[int] = None
    links: Tuple[Link, ...] = ()
    notes: Tuple[Note, ...] = ()
    properties: Tuple[Property, ...] = ()
    items: Tuple["Item", ...] = ()
    headings: Tuple[Heading, ...] = ()


Item = Union[
    Resource,
    SpatialUnit,
    Concept,
    Period,
    Bibliography,
    Person,
    PropertyValue,
    PropertyVariable,
    Set,
    Tree,
]


# ---------------------------------------------------------------------------
# Record envelope
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetadataProject:
    identification: Identification
    website: Optional[str] = None


@dataclass(frozen=True)
class MetadataItem:
    identification: Identification
    category: Optional[str] = None
    type: Optional[str] = None
    max_length: Optional[int] = None


@dataclass(frozen=True)
class Metadata:
    languages: Tuple[str, ...]
    default_language: str
    project: Optional[MetadataProject] = None
    item: Optional[MetadataItem] = None
    dataset: Optional[str] = None
    publisher: Optional[str] = None
    identifier: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class BelongsTo:
    uuid: Optional[str]
    abbreviation: Optional[str]


@dataclass(frozen=True)
class Record:
    uuid: Optional[str]
    item: Item
    belongs_to: Optional[BelongsTo] = None
    publication_date_time: Optional[datetime] = None
    metadata: Optional[Metadata] = None
    persistent_url: Optional[str] = None
    languages: Tuple[str, ...] = ()

    @property
    def category(self) -> ItemCategory:
        return self.item.category


def describe(value: Any) -> str:
    """Short human label for logging (``resource:<uuid>``)."""

    category = getattr(value, "category", None)
    uuid = getattr(value, "uuid", None)
    if isinstance(category, ItemCategory):
        return f"{category.value}:{uuid}"
    return type(value).__name__
