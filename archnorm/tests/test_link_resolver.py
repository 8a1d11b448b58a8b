import pytest

from archnorm.core.content.links import (
    FragmentKind,
    LinkDescriptor,
    collect_descriptors,
    iter_link_descriptors,
    render_fragment,
    select_fragment,
)
from archnorm.core.content.markup import FRAGMENT_TAGS
from archnorm.core.errors import ValueViolation
from archnorm.core.vocabulary import ItemCategory


def _descriptor(**raw) -> LinkDescriptor:
    return LinkDescriptor(category=ItemCategory.RESOURCE, raw=raw)


def test_inline_image() -> None:
    d = _descriptor(uuid="u1", type="image", rend="inline", height="100", width="200", href="https://img")
    assert select_fragment(d) is FragmentKind.INLINE_IMAGE
    assert render_fragment(d, "Pic", content="Photo") == (
        '<InlineImage uuid="u1" href="https://img" content="Photo" label="Pic" height={100} width={200} />'
    )


def test_inline_image_without_dimensions() -> None:
    d = _descriptor(uuid="u1", type="image", rend="inline")
    assert render_fragment(d, "Pic") == '<InlineImage uuid="u1" label="Pic" height={null} width={null} />'


def test_image_not_inline_is_internal_link() -> None:
    d = _descriptor(uuid="u1", type="image")
    assert select_fragment(d) is FragmentKind.INTERNAL_LINK
    assert render_fragment(d, "Pic") == '<InternalLink uuid="u1">Pic</InternalLink>'


def test_external_document() -> None:
    d = _descriptor(uuid="u2", type="externalDocument")
    assert select_fragment(d) is FragmentKind.DOCUMENT_LINK
    assert render_fragment(d, "Doc") == (
        '<DocumentLink uuid="u2" href="https://ochre.lib.uchicago.edu/ochre?uuid=u2&load">Doc</DocumentLink>'
    )


def test_document_link_uses_url_template() -> None:
    d = _descriptor(uuid="u2", type="externalDocument")
    out = render_fragment(d, "Doc", item_url_template="https://items.example/{uuid}")
    assert 'href="https://items.example/u2"' in out


def test_webpage() -> None:
    d = _descriptor(uuid="u3", type="webpage", href="https://example.org")
    assert select_fragment(d) is FragmentKind.EXTERNAL_LINK
    assert render_fragment(d, "Site") == '<ExternalLink href="https://example.org">Site</ExternalLink>'


def test_webpage_without_href_uses_placeholder() -> None:
    d = _descriptor(uuid="u3", type="webpage")
    assert render_fragment(d, "Site") == '<ExternalLink href="#">Site</ExternalLink>'


def test_untyped_published_target_is_internal_link() -> None:
    d = _descriptor(uuid="u4", publicationDateTime="2021-01-01T00:00:00Z")
    assert select_fragment(d) is FragmentKind.INTERNAL_LINK
    assert render_fragment(d, "Item", content="Full name") == (
        '<InternalLink uuid="u4" content="Full name">Item</InternalLink>'
    )


def test_untyped_unpublished_target_is_tooltip() -> None:
    d = _descriptor(uuid="u5")
    assert select_fragment(d) is FragmentKind.TOOLTIP_SPAN
    assert render_fragment(d, "Label", content="Note") == '<TooltipSpan content="Note">Label</TooltipSpan>'


def test_every_fragment_kind_maps_to_a_known_tag() -> None:
    cases = [
        _descriptor(uuid="a", type="image", rend="inline"),
        _descriptor(uuid="a", type="image"),
        _descriptor(uuid="a", type="externalDocument"),
        _descriptor(uuid="a", type="webpage"),
        _descriptor(uuid="a"),
    ]
    kinds = {select_fragment(d) for d in cases}
    assert kinds == set(FragmentKind)
    for d in cases:
        out = render_fragment(d, "x")
        assert any(out.startswith(f"<{tag}") for tag in FRAGMENT_TAGS)


def test_attribute_quotes_are_escaped() -> None:
    d = _descriptor(uuid="u5")
    assert render_fragment(d, "L", content='say "hi"') == '<TooltipSpan content="say &quot;hi&quot;">L</TooltipSpan>'


def test_unknown_explicit_type_is_rejected_before_rendering() -> None:
    with pytest.raises(ValueViolation, match='"video"'):
        collect_descriptors({"resource": {"uuid": "u1", "type": "video"}})


def test_unknown_link_category_is_rejected() -> None:
    with pytest.raises(ValueViolation, match="link category"):
        list(iter_link_descriptors({"widget": {"uuid": "u1"}}))


def test_batched_targets_expand_in_order() -> None:
    raw = [
        {"resource": [{"uuid": "r1"}, {"uuid": "r2"}]},
        {"concept": {"uuid": "c1"}},
    ]
    descriptors = collect_descriptors(raw)
    assert [(d.category.value, d.uuid) for d in descriptors] == [
        ("resource", "r1"),
        ("resource", "r2"),
        ("concept", "c1"),
    ]
