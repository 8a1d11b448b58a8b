from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, List, Mapping, Optional, Tuple

from ..cardinality import ensure_list
from ..errors import ValueViolation
from ..vocabulary import CATEGORY_KEYS, ItemCategory, LinkType, parse_link_type
from . import markup


class FragmentKind(str, Enum):
    """The five inline fragment variants an embedded link can become."""

    INLINE_IMAGE = "inlineImage"
    INTERNAL_LINK = "internalLink"
    EXTERNAL_LINK = "externalLink"
    DOCUMENT_LINK = "documentLink"
    TOOLTIP_SPAN = "tooltipSpan"


@dataclass(frozen=True)
class LinkDescriptor:
    """A single embedded link target, with its category key and raw fields."""

    category: ItemCategory
    raw: Mapping[str, Any]

    @property
    def uuid(self) -> Optional[str]:
        value = self.raw.get("uuid")
        return None if value is None else str(value)

    @property
    def link_type(self) -> Optional[LinkType]:
        value = self.raw.get("type")
        if value is None or value == "":
            return None
        return parse_link_type(value)

    @property
    def publication_date_time(self) -> Optional[str]:
        value = self.raw.get("publicationDateTime")
        return None if value in (None, "") else str(value)

    @property
    def is_inline(self) -> bool:
        return self.raw.get("rend") not in (None, "")


def iter_link_descriptors(raw_links: Any) -> Iterator[LinkDescriptor]:
    """Yield every link target held by a raw ``links`` field.

    ``raw_links`` is one mapping or a list of mappings, each keyed by item
    category; one key may batch several targets. Keys are validated against
    the category vocabulary.

    Time:  O(n) in the number of targets
    Space: O(1) beyond the yielded descriptors
    """

    for group in ensure_list(raw_links):
        if not isinstance(group, Mapping):
            raise ValueViolation("link", group)
        for key, targets in group.items():
            if key not in CATEGORY_KEYS:
                raise ValueViolation("link category", key)
            category = ItemCategory(key)
            for target in ensure_list(targets):
                if not isinstance(target, Mapping):
                    # Bare scalars carry no identity; treat them as uuid-less targets.
                    target = {"text": target}
                yield LinkDescriptor(category=category, raw=target)


def select_fragment(descriptor: LinkDescriptor) -> FragmentKind:
    """Pick which fragment a descriptor becomes.

    - type image: inline image when rendered inline, else internal link
    - type externalDocument: document link
    - type webpage: external link
    - no type: internal link when published, else tooltip
    """

    link_type = descriptor.link_type
    if link_type is LinkType.IMAGE:
        return FragmentKind.INLINE_IMAGE if descriptor.is_inline else FragmentKind.INTERNAL_LINK
    if link_type is LinkType.EXTERNAL_DOCUMENT:
        return FragmentKind.DOCUMENT_LINK
    if link_type is LinkType.WEBPAGE:
        return FragmentKind.EXTERNAL_LINK
    if descriptor.publication_date_time is not None:
        return FragmentKind.INTERNAL_LINK
    return FragmentKind.TOOLTIP_SPAN


def render_fragment(
    descriptor: LinkDescriptor,
    label: str,
    *,
    content: str = "",
    item_url_template: str = markup.DEFAULT_ITEM_URL_TEMPLATE,
) -> str:
    """Render the inline markup fragment for ``descriptor``.

    ``label`` is the already-resolved span text and ``content`` the resolved
    identification label of the target (used as a tooltip / title).
    """

    kind = select_fragment(descriptor)
    raw = descriptor.raw
    if kind is FragmentKind.INLINE_IMAGE:
        return markup.inline_image(
            descriptor.uuid,
            href=_optional_str(raw.get("href")),
            content=content,
            label=label,
            height=_optional_str(raw.get("height")),
            width=_optional_str(raw.get("width")),
        )
    if kind is FragmentKind.INTERNAL_LINK:
        return markup.internal_link(descriptor.uuid, label, content=content)
    if kind is FragmentKind.DOCUMENT_LINK:
        return markup.document_link(
            descriptor.uuid,
            label,
            content=content,
            url_template=item_url_template,
        )
    if kind is FragmentKind.EXTERNAL_LINK:
        href = _optional_str(raw.get("href")) or "#"
        return markup.external_link(href, label, content=content)
    if kind is FragmentKind.TOOLTIP_SPAN:
        return markup.tooltip_span(label, content=content)
    raise ValueError(f"Unknown fragment kind: {kind}")


def collect_descriptors(raw_links: Any) -> Tuple[LinkDescriptor, ...]:
    """Materialize and fully validate descriptors (including link types)."""

    out: List[LinkDescriptor] = []
    for descriptor in iter_link_descriptors(raw_links):
        if descriptor.raw.get("type") not in (None, ""):
            parse_link_type(descriptor.raw["type"])
        out.append(descriptor)
    return tuple(out)


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)
