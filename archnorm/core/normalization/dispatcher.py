"""Category dispatch.

One raw item arrives wrapped under exactly one category key::

    {"resource": {...}}      {"tree": {..., "items": {"concept": [...]}}}

The dispatcher picks the key (declared by the caller, or discovered), runs the
matching parser from ``_PARSERS`` and, for Set and Tree, sends every child
back through the same table.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..cardinality import ensure_list
from ..errors import ShapeViolation, ValueViolation
from ..model import Heading, Item, Set, Tree
from ..options import NormalizationOptions
from ..vocabulary import CATEGORY_KEYS, ItemCategory, find_category_key, parse_category
from .auxiliary import parse_links
from .coerce import optional_int, optional_str
from .identification import parse_identification
from .items import (
    base_fields,
    parse_bibliography,
    parse_concept,
    parse_notes,
    parse_period,
    parse_person,
    parse_property_value_item,
    parse_property_variable,
    parse_resource,
    parse_spatial_unit,
    suppress_blanks,
    tabular,
)
from .properties import properties_of

log = logging.getLogger("archnorm.core")

CategoryLike = Union[str, ItemCategory]
ItemCategories = Union[CategoryLike, Sequence[CategoryLike], None]

# (raw payload, options, declared child categories) -> item
ItemParser = Callable[[Mapping[str, Any], NormalizationOptions, Tuple[ItemCategory, ...]], Item]


def _leaf(parser: Callable[[Mapping[str, Any], NormalizationOptions], Item]) -> ItemParser:
    def parse(raw: Mapping[str, Any], options: NormalizationOptions, _children: Tuple[ItemCategory, ...]) -> Item:
        return parser(raw, options)

    parse.__name__ = parser.__name__
    return parse


def _child_categories(item_category: ItemCategories) -> Tuple[ItemCategory, ...]:
    if item_category is None:
        return ()
    if isinstance(item_category, (str, ItemCategory)):
        return (parse_category(item_category),)
    return tuple(parse_category(c) for c in item_category)


def _items_container(raw: Mapping[str, Any], owner: ItemCategory) -> Mapping[str, Any]:
    """Return ``raw["items"]``; a missing or text-only ``items`` is a ShapeViolation."""

    items = raw.get("items")
    if not isinstance(items, Mapping):
        raise ShapeViolation("items", f'Invalid {owner.value}: missing "items" key')
    return items


def _present_categories(items: Mapping[str, Any]) -> List[ItemCategory]:
    return [ItemCategory(key) for key in items if key in CATEGORY_KEYS]


def _parse_children(
    items: Mapping[str, Any],
    category: ItemCategory,
    options: NormalizationOptions,
    nested: Tuple[ItemCategory, ...],
    owner: ItemCategory,
) -> List[Item]:
    if items.get(category.value) is None:
        raise ShapeViolation(category.value, f'Invalid {owner.value}: missing "{category.value}" key')
    parser = _PARSERS[category]
    return [
        parser(child, options, nested)
        for child in ensure_list(items[category.value])
        if isinstance(child, Mapping)
    ]


# ---------------------------------------------------------------------------
# Set
# ---------------------------------------------------------------------------


def parse_set(
    raw: Mapping[str, Any],
    options: NormalizationOptions,
    item_categories: Tuple[ItemCategory, ...] = (),
) -> Set:
    """Parse a set holding children of one or more categories.

    Declared categories must all be present under ``items``; with none
    declared, every category key found there is used, in source order.
    """

    items = _items_container(raw, ItemCategory.SET)
    categories = item_categories or tuple(_present_categories(items))
    if not categories:
        raise ShapeViolation("items", "Invalid set: no item category key present")

    children: List[Item] = []
    for category in categories:
        children.extend(_parse_children(items, category, options, (), ItemCategory.SET))

    return Set(
        **base_fields(raw, ItemCategory.SET, options),
        item_categories=tuple(categories),
        type=optional_str(raw.get("type")),
        number=optional_int(raw.get("n"), "n"),
        is_suppressing_blanks=suppress_blanks(raw),
        is_tabular=tabular(raw),
        links=parse_links(raw.get("links"), options),
        notes=parse_notes(raw.get("notes"), options),
        properties=properties_of(raw, options),
        items=tuple(children),
    )


# ---------------------------------------------------------------------------
# Tree
# ---------------------------------------------------------------------------


def _heading_category(headings: Sequence[Any]) -> Optional[ItemCategory]:
    """First child category found anywhere below ``headings`` (depth-first)."""

    for heading in headings:
        if not isinstance(heading, Mapping):
            continue
        present = _present_categories(heading)
        if present:
            return present[0]
        found = _heading_category(ensure_list(heading.get("heading")))
        if found is not None:
            return found
    return None


def _heading_name(raw: Mapping[str, Any], options: NormalizationOptions) -> str:
    if raw.get("name") is not None:
        return str(raw["name"])
    return parse_identification(raw.get("identification"), options).label.get_text()


def parse_heading(
    raw: Mapping[str, Any],
    category: Optional[ItemCategory],
    options: NormalizationOptions,
) -> Heading:
    """Parse one heading; headings nest to whatever depth the source has."""

    items: Tuple[Item, ...] = ()
    if category is not None and raw.get(category.value) is not None:
        items = tuple(_parse_children(raw, category, options, (), ItemCategory.TREE))

    return Heading(
        name=_heading_name(raw, options),
        abbreviation=optional_str(raw.get("abbreviation")),
        headings=tuple(
            parse_heading(h, category, options) for h in ensure_list(raw.get("heading")) if isinstance(h, Mapping)
        ),
        items=items,
    )


def parse_tree(
    raw: Mapping[str, Any],
    options: NormalizationOptions,
    item_categories: Tuple[ItemCategory, ...] = (),
) -> Tree:
    """Parse a tree holding children of exactly one category.

    The child key may be missing only when the tree organizes its items
    under headings.
    """

    items = _items_container(raw, ItemCategory.TREE)
    if len(item_categories) > 1:
        raise ValueViolation("tree item category", ",".join(c.value for c in item_categories))

    headings_raw = [h for h in ensure_list(items.get("heading")) if isinstance(h, Mapping)]
    present = _present_categories(items)
    if item_categories:
        category: Optional[ItemCategory] = item_categories[0]
    elif present:
        category = present[0]
    else:
        category = _heading_category(headings_raw)

    if category is ItemCategory.TREE:
        raise ValueViolation("tree item category", category.value)
    if category is None and not headings_raw:
        raise ShapeViolation("items", "Invalid tree: no item category key present")

    children: Tuple[Item, ...] = ()
    if category is not None and (items.get(category.value) is not None or not headings_raw):
        children = tuple(_parse_children(items, category, options, (), ItemCategory.TREE))

    return Tree(
        **base_fields(raw, ItemCategory.TREE, options),
        item_category=category,
        type=optional_str(raw.get("type")),
        number=optional_int(raw.get("n"), "n"),
        links=parse_links(raw.get("links"), options),
        notes=parse_notes(raw.get("notes"), options),
        properties=properties_of(raw, options),
        items=children,
        headings=tuple(parse_heading(h, category, options) for h in headings_raw),
    )


# ---------------------------------------------------------------------------
# Dispatch table
# ---------------------------------------------------------------------------


_PARSERS: Dict[ItemCategory, ItemParser] = {
    ItemCategory.RESOURCE: _leaf(parse_resource),
    ItemCategory.SPATIAL_UNIT: _leaf(parse_spatial_unit),
    ItemCategory.CONCEPT: _leaf(parse_concept),
    ItemCategory.PERIOD: _leaf(parse_period),
    ItemCategory.BIBLIOGRAPHY: _leaf(parse_bibliography),
    ItemCategory.PERSON: _leaf(parse_person),
    ItemCategory.PROPERTY_VALUE: _leaf(parse_property_value_item),
    ItemCategory.PROPERTY_VARIABLE: _leaf(parse_property_variable),
    ItemCategory.SET: parse_set,
    ItemCategory.TREE: parse_tree,
}

_unhandled = set(ItemCategory) - set(_PARSERS)
if _unhandled:  # pragma: no cover - import-time guard
    raise RuntimeError(f"No parser registered for: {sorted(c.value for c in _unhandled)}")


def parse_item(
    category: CategoryLike,
    payload: Mapping[str, Any],
    options: Optional[NormalizationOptions] = None,
    item_category: ItemCategories = None,
) -> Item:
    """Parse an already-unwrapped payload as ``category``."""

    cat = parse_category(category)
    return _PARSERS[cat](payload, options or NormalizationOptions(), _child_categories(item_category))


def normalize_item(
    raw: Mapping[str, Any],
    *,
    category: Optional[CategoryLike] = None,
    item_category: ItemCategories = None,
    options: Optional[NormalizationOptions] = None,
) -> Item:
    """Normalize one raw item wrapped under its category key.

    - ``category`` given: its key must be present (ShapeViolation naming it)
    - ``category`` omitted: the first recognized category key is used
    - ``item_category`` declares the child categories of a Set or Tree

    Fails instead of returning a partial item.
    """

    opts = options or NormalizationOptions()
    if not isinstance(raw, Mapping):
        raise ShapeViolation("category", "Invalid record: expected a mapping")

    cat = parse_category(category) if category is not None else find_category_key(raw.keys())
    if cat.value not in raw or raw[cat.value] is None:
        raise ShapeViolation(cat.value)

    payloads = [p for p in ensure_list(raw[cat.value]) if isinstance(p, Mapping)]
    if not payloads:
        raise ShapeViolation(cat.value, f'Invalid record: "{cat.value}" holds no item')

    log.debug(
        "normalize_item",
        extra={"category": cat.value, "languages": ",".join(opts.languages), "rich_text": opts.is_rich_text},
    )
    return parse_item(cat, payloads[0], opts, item_category)
