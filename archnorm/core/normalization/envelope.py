from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Tuple

from ..cardinality import ensure_list
from ..content.text import escape_text
from ..errors import ShapeViolation
from ..model import BelongsTo, Metadata, MetadataItem, MetadataProject, Record
from ..options import NormalizationOptions
from ..vocabulary import parse_language
from .coerce import flag, optional_datetime, optional_int, optional_str
from .dispatcher import CategoryLike, ItemCategories, normalize_item
from .identification import parse_identification
from .items import text_value

log = logging.getLogger("archnorm.core")

ROOT_KEY = "ochre"


def _language_code(raw: Any) -> Tuple[str, bool]:
    """``(code, is_default)`` for a scalar or ``{"text", "default"}`` entry."""

    if isinstance(raw, Mapping):
        return parse_language(raw.get("text") or raw.get("content")), flag(raw.get("default"))
    return parse_language(raw), False


def parse_languages(raw: Any) -> Tuple[Tuple[str, ...], str]:
    """Metadata languages and the default one.

    The entry flagged ``default="true"`` is the default, else the first.
    Absent -> ``("eng",)``.
    """

    entries = [_language_code(entry) for entry in ensure_list(raw) if entry is not None]
    if not entries:
        return ("eng",), "eng"

    codes: List[str] = []
    default: Optional[str] = None
    for code, is_default in entries:
        if code not in codes:
            codes.append(code)
        if is_default and default is None:
            default = code
    return tuple(codes), default or codes[0]


def parse_metadata(raw: Any, options: Optional[NormalizationOptions] = None) -> Optional[Metadata]:
    if not isinstance(raw, Mapping):
        return None
    opts = options or NormalizationOptions()
    languages, default_language = parse_languages(raw.get("language"))

    project = raw.get("project")
    project_identification = project.get("identification") if isinstance(project, Mapping) else None

    item = raw.get("item")
    metadata_item: Optional[MetadataItem] = None
    if isinstance(item, Mapping):
        if item.get("label") is not None or item.get("abbreviation") is not None:
            # Label/abbreviation given directly on the item, code in identification.
            identification_raw = dict(item.get("identification") or {})
            identification_raw["label"] = item.get("label") or ""
            if item.get("abbreviation") is not None:
                identification_raw["abbreviation"] = item["abbreviation"]
        else:
            identification_raw = item.get("identification")
        metadata_item = MetadataItem(
            identification=parse_identification(identification_raw, opts),
            category=optional_str(item.get("category")),
            type=optional_str(item.get("type")),
            max_length=optional_int(item.get("maxLength"), "maxLength"),
        )

    return Metadata(
        languages=languages,
        default_language=default_language,
        project=(
            MetadataProject(
                identification=parse_identification(project_identification, opts),
                website=optional_str(project_identification.get("website"))
                if isinstance(project_identification, Mapping)
                else None,
            )
            if project_identification is not None
            else None
        ),
        item=metadata_item,
        dataset=text_value(raw.get("dataset"), opts),
        publisher=text_value(raw.get("publisher"), opts),
        identifier=text_value(raw.get("identifier"), opts),
        description=text_value(raw.get("description"), opts),
    )


def _record_languages(raw: Mapping[str, Any], metadata: Optional[Metadata]) -> Tuple[str, ...]:
    declared = raw.get("languages")
    if declared is not None:
        return tuple(parse_language(code) for code in str(declared).replace(",", ";").split(";") if code.strip())
    if metadata is not None:
        return metadata.languages
    return ()


def normalize_record(
    raw: Mapping[str, Any],
    *,
    category: Optional[CategoryLike] = None,
    item_category: ItemCategories = None,
    options: Optional[NormalizationOptions] = None,
) -> Record:
    """Normalize a whole record: envelope fields plus its one item.

    Accepts the ``{"ochre": {...}}`` root wrapper or the inner mapping.
    """

    if not isinstance(raw, Mapping):
        raise ShapeViolation(ROOT_KEY, "Invalid record: expected a mapping")
    root = raw.get(ROOT_KEY) if isinstance(raw.get(ROOT_KEY), Mapping) else raw

    opts = options or NormalizationOptions()
    metadata = parse_metadata(root.get("metadata"), opts)
    item = normalize_item(root, category=category, item_category=item_category, options=opts)

    belongs_to: Optional[BelongsTo] = None
    if root.get("uuidBelongsTo") is not None or root.get("belongsTo") is not None:
        belongs_to = BelongsTo(
            uuid=optional_str(root.get("uuidBelongsTo")),
            abbreviation=escape_text(root["belongsTo"]) if root.get("belongsTo") is not None else None,
        )

    record = Record(
        uuid=optional_str(root.get("uuid")),
        item=item,
        belongs_to=belongs_to,
        publication_date_time=optional_datetime(root.get("publicationDateTime")),
        metadata=metadata,
        persistent_url=optional_str(root.get("persistentUrl")),
        languages=_record_languages(root, metadata),
    )
    log.debug("normalize_record", extra={"category": record.category.value, "uuid": record.uuid})
    return record
