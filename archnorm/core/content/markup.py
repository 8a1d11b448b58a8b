from __future__ import annotations

from typing import Optional

DEFAULT_ITEM_URL_TEMPLATE = "https://ochre.lib.uchicago.edu/ochre?uuid={uuid}&load"

# The closed set of inline tags downstream renderers must understand.
INLINE_IMAGE = "InlineImage"
INTERNAL_LINK = "InternalLink"
EXTERNAL_LINK = "ExternalLink"
DOCUMENT_LINK = "DocumentLink"
TOOLTIP_SPAN = "TooltipSpan"

FRAGMENT_TAGS = (INLINE_IMAGE, INTERNAL_LINK, EXTERNAL_LINK, DOCUMENT_LINK, TOOLTIP_SPAN)


def escape_attribute(value: str) -> str:
    return str(value).replace('"', "&quot;")


def _attr(name: str, value: Optional[str]) -> str:
    # Empty / missing attributes are omitted entirely.
    if value is None or value == "":
        return ""
    return f' {name}="{escape_attribute(value)}"'


def _dimension(value: Optional[str]) -> str:
    if value is None or str(value) == "":
        return "null"
    return str(value)


def inline_image(
    uuid: Optional[str],
    *,
    href: Optional[str] = None,
    content: Optional[str] = None,
    label: Optional[str] = None,
    height: Optional[str] = None,
    width: Optional[str] = None,
) -> str:
    return (
        f'<{INLINE_IMAGE} uuid="{escape_attribute(uuid or "")}"'
        f"{_attr('href', href)}{_attr('content', content)}{_attr('label', label)}"
        f" height={{{_dimension(height)}}} width={{{_dimension(width)}}} />"
    )


def internal_link(uuid: Optional[str], text: str, *, content: Optional[str] = None) -> str:
    return f'<{INTERNAL_LINK} uuid="{escape_attribute(uuid or "")}"{_attr("content", content)}>{text}</{INTERNAL_LINK}>'


def external_link(href: str, text: str, *, content: Optional[str] = None) -> str:
    return f'<{EXTERNAL_LINK} href="{escape_attribute(href)}"{_attr("content", content)}>{text}</{EXTERNAL_LINK}>'


def document_link(
    uuid: Optional[str],
    text: str,
    *,
    content: Optional[str] = None,
    url_template: str = DEFAULT_ITEM_URL_TEMPLATE,
) -> str:
    href = item_url(uuid, url_template)
    return (
        f'<{DOCUMENT_LINK} uuid="{escape_attribute(uuid or "")}" href="{escape_attribute(href)}"'
        f'{_attr("content", content)}>{text}</{DOCUMENT_LINK}>'
    )


def tooltip_span(text: str, *, content: Optional[str] = None) -> str:
    return f"<{TOOLTIP_SPAN}{_attr('content', content)}>{text}</{TOOLTIP_SPAN}>"


def item_url(uuid: Optional[str], url_template: str = DEFAULT_ITEM_URL_TEMPLATE) -> str:
    """Canonical URL of an item, built from its UUID."""

    return url_template.replace("{uuid}", uuid or "")
