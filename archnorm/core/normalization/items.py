"""Item parsers for the non-recursive categories.

Every parser takes the raw payload found under its category key (already
unwrapped) plus NormalizationOptions and returns one immutable item. Set and
Tree live in the dispatcher because their children go back through dispatch.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..cardinality import ensure_child_list, ensure_list
from ..content.markup import item_url
from ..content.resolver import resolve_branch, resolve_label, resolve_text_field
from ..content.text import escape_text
from ..errors import ValueViolation
from ..model import (
    Address,
    Bibliography,
    BibliographyCitation,
    BibliographySource,
    BibliographySourceResource,
    Concept,
    EntryInfo,
    Interpretation,
    Note,
    Observation,
    Period,
    Person,
    PropertyValue,
    PropertyVariable,
    PublicationInfo,
    Resource,
    SpatialUnit,
)
from ..multilingual import MultilingualText
from ..options import NormalizationOptions
from ..vocabulary import ItemCategory
from .auxiliary import (
    parse_context,
    parse_coordinates,
    parse_document,
    parse_events,
    parse_image,
    parse_image_map,
    parse_license,
    parse_links,
    parse_map_data,
)
from .coerce import flag, optional_datetime, optional_int, optional_str
from .identification import parse_identification
from .properties import properties_of


def _opts(options: Optional[NormalizationOptions]) -> NormalizationOptions:
    return options or NormalizationOptions()


def parse_description(raw: Any, options: Optional[NormalizationOptions] = None) -> Optional[MultilingualText]:
    """Description text; a plain scalar is taken verbatim (no run resolution)."""

    if raw is None:
        return None
    return resolve_text_field(raw, _opts(options))


def text_value(raw: Any, options: NormalizationOptions) -> Optional[str]:
    """A free-form content field that may be a scalar or a content tree."""

    if raw is None:
        return None
    if isinstance(raw, (str, int, float, bool)):
        return escape_text(raw)
    if isinstance(raw, (list, tuple)) or (isinstance(raw, Mapping) and "content" not in raw and "lang" in raw):
        return resolve_label({"content": raw}, options)
    return resolve_label(raw, options)


def base_fields(raw: Mapping[str, Any], category: ItemCategory, options: Optional[NormalizationOptions] = None) -> Dict[str, Any]:
    """Fields of the common item envelope, as keyword arguments."""

    opts = _opts(options)
    return {
        "uuid": str(raw.get("uuid") or ""),
        "category": category,
        "identification": parse_identification(raw.get("identification"), opts),
        "publication_date_time": optional_datetime(raw.get("publicationDateTime")),
        "context": parse_context(raw.get("context")),
        "date": optional_str(raw.get("date")),
        "license": parse_license(raw.get("availability")),
        "creators": parse_persons(ensure_child_list(raw.get("creators"), "creator"), opts),
        "description": parse_description(raw.get("description"), opts),
        "events": parse_events(raw.get("events"), opts),
    }


# ---------------------------------------------------------------------------
# Notes, observations, interpretations
# ---------------------------------------------------------------------------


def _note_branch(branches: List[Mapping[str, Any]], language: str) -> Mapping[str, Any]:
    for branch in branches:
        if branch.get("lang") == language:
            return branch
    return branches[0]


def parse_notes(raw: Any, options: Optional[NormalizationOptions] = None) -> Tuple[Note, ...]:
    """Parse ``notes`` (``{"note": [...]}``).

    - scalar notes become ``Note(number=-1)``; empty ones are dropped
    - structured notes use the branch for the default language, else the first
    """

    opts = _opts(options)
    out: List[Note] = []
    for note in ensure_child_list(raw, "note"):
        if note is None:
            continue
        if not isinstance(note, Mapping):
            text = escape_text(note)
            if text != "":
                out.append(Note(number=-1, content=text))
            continue

        branches = [b for b in ensure_list(note.get("content")) if isinstance(b, Mapping)]
        if branches:
            branch = _note_branch(branches, opts.default_language)
            content = resolve_branch(branch, opts)
            title = branch.get("title")
        elif note.get("string") is not None or note.get("text") is not None:
            branch = note
            content = resolve_branch(note, opts)
            title = note.get("title")
        else:
            continue

        number = optional_int(note.get("noteNo"), "noteNo")
        out.append(
            Note(
                number=number if number is not None else -1,
                content=content,
                title=escape_text(title) if title is not None else None,
                date=optional_str(note.get("date")),
                authors=parse_persons(ensure_child_list(note.get("authors"), "author"), opts),
            )
        )
    return tuple(out)


def _bibliographies_of(raw: Mapping[str, Any], options: NormalizationOptions) -> Tuple[Bibliography, ...]:
    entries = ensure_child_list(raw.get("bibliographies"), "bibliography")
    entries.extend(ensure_child_list(raw.get("citedBibliography"), "reference"))
    return tuple(parse_bibliography(b, options) for b in entries if isinstance(b, Mapping))


def _observers(raw: Any, options: NormalizationOptions) -> Tuple[Union[str, Person], ...]:
    if raw is None:
        return ()
    if isinstance(raw, (str, int, float)):
        return tuple(part.strip() for part in escape_text(raw).split(";") if part.strip())
    if isinstance(raw, Mapping) and "observer" in raw:
        return parse_persons(ensure_list(raw.get("observer")), options)
    return parse_persons(ensure_list(raw), options)


def parse_observation(raw: Mapping[str, Any], options: Optional[NormalizationOptions] = None) -> Observation:
    opts = _opts(options)
    return Observation(
        number=optional_int(raw.get("observationNo"), "observationNo"),
        date=optional_str(raw.get("date")),
        observers=_observers(raw.get("observers"), opts),
        notes=parse_notes(raw.get("notes"), opts),
        links=parse_links(raw.get("links"), opts),
        properties=properties_of(raw, opts),
        bibliographies=_bibliographies_of(raw, opts),
    )


def parse_interpretation(raw: Mapping[str, Any], options: Optional[NormalizationOptions] = None) -> Interpretation:
    opts = _opts(options)
    return Interpretation(
        number=optional_int(raw.get("interpretationNo"), "interpretationNo"),
        date=optional_str(raw.get("date")),
        links=parse_links(raw.get("links"), opts),
        properties=properties_of(raw, opts),
        bibliographies=_bibliographies_of(raw, opts),
    )


# ---------------------------------------------------------------------------
# Persons
# ---------------------------------------------------------------------------


def parse_person(raw: Any, options: Optional[NormalizationOptions] = None) -> Person:
    opts = _opts(options)
    if not isinstance(raw, Mapping):
        # A creator/observer given only by name.
        return Person(
            uuid="",
            category=ItemCategory.PERSON,
            identification=parse_identification(raw, opts),
        )

    address = raw.get("address")
    return Person(
        **base_fields(raw, ItemCategory.PERSON, opts),
        type=optional_str(raw.get("type")),
        number=optional_int(raw.get("n"), "n"),
        address=(
            Address(
                country=optional_str(address.get("country")),
                city=optional_str(address.get("city")),
                state=optional_str(address.get("state")),
            )
            if isinstance(address, Mapping)
            else None
        ),
        image=parse_image(raw.get("image"), opts),
        content=text_value(raw.get("content"), opts),
        coordinates=parse_coordinates(raw.get("coordinates"), opts),
        periods=_periods_of(raw, opts),
        links=parse_links(raw.get("links"), opts),
        notes=parse_notes(raw.get("notes"), opts),
        properties=properties_of(raw, opts),
        bibliographies=_bibliographies_of(raw, opts),
    )


def parse_persons(raw: Any, options: Optional[NormalizationOptions] = None) -> Tuple[Person, ...]:
    return tuple(parse_person(p, options) for p in ensure_list(raw) if p is not None)


# ---------------------------------------------------------------------------
# Periods
# ---------------------------------------------------------------------------


def parse_period(raw: Mapping[str, Any], options: Optional[NormalizationOptions] = None) -> Period:
    opts = _opts(options)
    return Period(
        **base_fields(raw, ItemCategory.PERIOD, opts),
        type=optional_str(raw.get("type")),
        number=optional_int(raw.get("n"), "n"),
        coordinates=parse_coordinates(raw.get("coordinates"), opts),
        links=parse_links(raw.get("links"), opts),
        notes=parse_notes(raw.get("notes"), opts),
        properties=properties_of(raw, opts),
        bibliographies=_bibliographies_of(raw, opts),
        periods=tuple(parse_period(p, opts) for p in ensure_list(raw.get("period")) if isinstance(p, Mapping)),
    )


def _periods_of(raw: Mapping[str, Any], options: NormalizationOptions) -> Tuple[Period, ...]:
    return tuple(parse_period(p, options) for p in ensure_child_list(raw.get("periods"), "period") if isinstance(p, Mapping))


# ---------------------------------------------------------------------------
# Bibliographies
# ---------------------------------------------------------------------------


def _citation_text(raw: Any, options: NormalizationOptions) -> Optional[str]:
    """Citation fields may wrap their text in ``span`` / ``div`` elements."""

    current = raw
    while isinstance(current, Mapping) and len(current) == 1 and next(iter(current)) in ("span", "div"):
        current = next(iter(current.values()))
    if current is None:
        return None
    return resolve_label(current, options)


def _start_date(raw: Any) -> Optional[date]:
    if not isinstance(raw, Mapping):
        return None
    year = optional_int(raw.get("year"), "year")
    if year is None:
        return None
    month = optional_int(raw.get("month"), "month") or 1
    day = optional_int(raw.get("day"), "day") or 1
    try:
        return date(year, month, day)
    except ValueError:
        raise ValueViolation("publication start date", f"{year}-{month}-{day}") from None


def _publishers(raw: Any, options: NormalizationOptions) -> Tuple[Person, ...]:
    if not isinstance(raw, Mapping):
        return ()
    if "publisher" in raw:
        return parse_persons(raw.get("publisher"), options)
    inner = raw.get("publishers")
    if isinstance(inner, Mapping):
        return parse_persons(inner.get("person"), options)
    return ()


def parse_bibliography(raw: Mapping[str, Any], options: Optional[NormalizationOptions] = None) -> Bibliography:
    opts = _opts(options)

    source = raw.get("source") if isinstance(raw.get("source"), Mapping) else {}
    source_resource = source.get("resource")
    if isinstance(source_resource, (list, tuple)):
        source_resource = source_resource[0] if source_resource else None
    source_document = raw.get("sourceDocument")
    project = raw.get("project")
    publication = raw.get("publicationInfo") if isinstance(raw.get("publicationInfo"), Mapping) else {}
    entry = raw.get("entryInfo")

    return Bibliography(
        **base_fields(raw, ItemCategory.BIBLIOGRAPHY, opts),
        type=optional_str(raw.get("type")),
        number=optional_int(raw.get("n"), "n"),
        zotero_id=optional_str(raw.get("ZoteroID") or raw.get("zoteroId")),
        project_identification=(
            parse_identification(project.get("identification"), opts)
            if isinstance(project, Mapping) and project.get("identification") is not None
            else None
        ),
        citation=BibliographyCitation(
            format=_citation_text(raw.get("citationFormat"), opts),
            short=_citation_text(raw.get("citationFormatSpan"), opts),
            long=_citation_text(raw.get("referenceFormatDiv"), opts),
        ),
        publication_info=PublicationInfo(
            publishers=_publishers(publication.get("publishers"), opts),
            start_date=_start_date(publication.get("startDate")),
        ),
        entry_info=(
            EntryInfo(
                start_issue=optional_str(entry.get("startIssue")),
                start_volume=optional_str(entry.get("startVolume")),
            )
            if isinstance(entry, Mapping)
            else None
        ),
        source=BibliographySource(
            resource=(
                BibliographySourceResource(
                    uuid=str(source_resource.get("uuid") or ""),
                    type=optional_str(source_resource.get("type")),
                    identification=parse_identification(source_resource.get("identification"), opts),
                    publication_date_time=optional_datetime(source_resource.get("publicationDateTime")),
                )
                if isinstance(source_resource, Mapping)
                else None
            ),
            document_url=(
                item_url(optional_str(source_document.get("uuid")), opts.item_url_template)
                if isinstance(source_document, Mapping) and source_document.get("uuid")
                else None
            ),
        ),
        periods=_periods_of(raw, opts),
        authors=parse_persons(
            ensure_child_list(raw.get("authors"), "person") or ensure_child_list(raw.get("authors"), "author"),
            opts,
        ),
        links=parse_links(raw.get("links"), opts),
        notes=parse_notes(raw.get("notes"), opts),
        properties=properties_of(raw, opts),
    )


# ---------------------------------------------------------------------------
# Resources, spatial units, concepts
# ---------------------------------------------------------------------------


def parse_resource(raw: Mapping[str, Any], options: Optional[NormalizationOptions] = None) -> Resource:
    """Parse a resource; nested ``resource`` children recurse through this parser."""

    opts = _opts(options)
    document = raw.get("document")
    return Resource(
        **base_fields(raw, ItemCategory.RESOURCE, opts),
        type=optional_str(raw.get("type")),
        number=optional_int(raw.get("n"), "n"),
        file_format=optional_str(raw.get("fileFormat") or raw.get("format")),
        href=optional_str(raw.get("href")),
        image=parse_image(raw.get("image"), opts),
        image_map=parse_image_map(raw.get("imagemap")),
        document=parse_document(document, opts) if isinstance(document, Mapping) and "content" in document else None,
        coordinates=parse_coordinates(raw.get("coordinates"), opts),
        periods=_periods_of(raw, opts),
        links=parse_links(raw.get("links"), opts),
        reverse_links=parse_links(raw.get("reverseLinks"), opts),
        notes=parse_notes(raw.get("notes"), opts),
        properties=properties_of(raw, opts),
        bibliographies=_bibliographies_of(raw, opts),
        resources=tuple(parse_resource(r, opts) for r in ensure_list(raw.get("resource")) if isinstance(r, Mapping)),
    )


def parse_spatial_unit(raw: Mapping[str, Any], options: Optional[NormalizationOptions] = None) -> SpatialUnit:
    opts = _opts(options)
    observations = ensure_child_list(raw.get("observations"), "observation")
    if not observations and isinstance(raw.get("observation"), Mapping):
        observations = [raw["observation"]]
    return SpatialUnit(
        **base_fields(raw, ItemCategory.SPATIAL_UNIT, opts),
        number=optional_int(raw.get("n"), "n"),
        image=parse_image(raw.get("image"), opts),
        coordinates=parse_coordinates(raw.get("coordinates"), opts),
        observations=tuple(parse_observation(o, opts) for o in observations if isinstance(o, Mapping)),
        bibliographies=_bibliographies_of(raw, opts),
        spatial_units=tuple(
            parse_spatial_unit(s, opts) for s in ensure_list(raw.get("spatialUnit")) if isinstance(s, Mapping)
        ),
        map_data=parse_map_data(raw.get("mapData")),
    )


def parse_concept(raw: Mapping[str, Any], options: Optional[NormalizationOptions] = None) -> Concept:
    opts = _opts(options)
    return Concept(
        **base_fields(raw, ItemCategory.CONCEPT, opts),
        number=optional_int(raw.get("n"), "n"),
        coordinates=parse_coordinates(raw.get("coordinates"), opts),
        interpretations=tuple(
            parse_interpretation(i, opts)
            for i in ensure_child_list(raw.get("interpretations"), "interpretation")
            if isinstance(i, Mapping)
        ),
        concepts=tuple(parse_concept(c, opts) for c in ensure_list(raw.get("concept")) if isinstance(c, Mapping)),
    )


# ---------------------------------------------------------------------------
# Property values / variables
# ---------------------------------------------------------------------------


def parse_property_value_item(raw: Mapping[str, Any], options: Optional[NormalizationOptions] = None) -> PropertyValue:
    opts = _opts(options)
    return PropertyValue(
        **base_fields(raw, ItemCategory.PROPERTY_VALUE, opts),
        number=optional_int(raw.get("n"), "n"),
        coordinates=parse_coordinates(raw.get("coordinates"), opts),
        links=parse_links(raw.get("links"), opts),
        notes=parse_notes(raw.get("notes"), opts),
        properties=properties_of(raw, opts),
        bibliographies=_bibliographies_of(raw, opts),
    )


def parse_property_variable(raw: Mapping[str, Any], options: Optional[NormalizationOptions] = None) -> PropertyVariable:
    opts = _opts(options)
    return PropertyVariable(
        **base_fields(raw, ItemCategory.PROPERTY_VARIABLE, opts),
        type=optional_str(raw.get("type")),
        number=optional_int(raw.get("n"), "n"),
        coordinates=parse_coordinates(raw.get("coordinates"), opts),
        links=parse_links(raw.get("links"), opts),
        notes=parse_notes(raw.get("notes"), opts),
        bibliographies=_bibliographies_of(raw, opts),
    )


def suppress_blanks(raw: Mapping[str, Any]) -> bool:
    return flag(raw.get("suppressBlanks"))


def tabular(raw: Mapping[str, Any]) -> bool:
    return flag(raw.get("tabularStructure"))
