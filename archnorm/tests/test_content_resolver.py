import pytest

from archnorm.core.content.resolver import (
    resolve_branch,
    resolve_content,
    resolve_label,
    resolve_optional_label,
    resolve_text,
    resolve_text_field,
)
from archnorm.core.errors import LanguageResolutionError, ValueViolation
from archnorm.core.options import NormalizationOptions

PLAIN = NormalizationOptions()
RICH = NormalizationOptions(is_rich_text=True)


def _tree(*runs, lang: str = "eng") -> dict:
    return {"content": [{"lang": lang, "string": list(runs)}]}


def test_run_assembly_order_rich_and_plain() -> None:
    raw = _tree("A", {"whitespace": "newline"}, "B")
    assert resolve_content(raw, RICH).get_text() == "A<br />\nB"
    assert resolve_content(raw, PLAIN).get_text() == "A\nB"


def test_formatted_runs() -> None:
    raw = _tree({"text": "bold", "rend": "bold"}, " and ", {"text": "it", "rend": "italic"})
    assert resolve_content(raw, RICH).get_text() == "**bold** and *it*"
    assert resolve_content(raw, PLAIN).get_text() == "bold and it"


def test_nested_group_directives_wrap_whole_group() -> None:
    raw = _tree({"string": ["a", {"text": "b", "rend": "italic"}], "rend": "bold"})
    assert resolve_content(raw, RICH).get_text() == "**a*b***"


def test_spaces_do_not_double_up() -> None:
    raw = _tree("A", {"whitespace": "trailing"}, {"whitespace": "leading"}, "B")
    assert resolve_content(raw, PLAIN).get_text() == "A B"


def test_unknown_render_option_fails_in_plain_mode() -> None:
    with pytest.raises(ValueViolation, match="blink"):
        resolve_content(_tree({"text": "x", "rend": "blink"}), PLAIN)


def test_missing_language_fails_loudly() -> None:
    raw = _tree("Hello", lang="eng")
    with pytest.raises(LanguageResolutionError, match='languages: "fra,deu"'):
        resolve_content(raw, NormalizationOptions(languages=("fra", "deu")))


def test_group_whitespace_applied_before_render() -> None:
    raw = _tree("A", {"string": ["b"], "rend": "bold", "whitespace": "leading"})
    assert resolve_content(raw, RICH).get_text() == "A** b**"
    assert resolve_content(raw, PLAIN).get_text() == "A b"


def test_label_falls_back_to_first_branch() -> None:
    raw = {"content": [{"lang": "eng", "string": "Colour"}, {"lang": "deu", "string": "Farbe"}]}
    opts = NormalizationOptions(languages=("fra",))
    assert resolve_label(raw, opts) == "Colour"
    assert resolve_optional_label(None, opts) is None
    fallback = resolve_content(raw, opts, first_branch_fallback=True)
    assert fallback.get_exact_text("fra") == "Colour"
    with pytest.raises(LanguageResolutionError):
        resolve_text(raw, opts)


def test_label_prefers_requested_language() -> None:
    raw = {"content": [{"lang": "eng", "string": "Colour"}, {"lang": "deu", "string": "Farbe"}]}
    assert resolve_label(raw, NormalizationOptions(languages=("deu",))) == "Farbe"


def test_each_language_resolved_independently() -> None:
    raw = {
        "content": [
            {"lang": "fra", "string": "Bonjour"},
            {"lang": "eng", "string": "Hello"},
        ]
    }
    text = resolve_content(raw, NormalizationOptions(languages=("eng", "fra")))
    assert text.to_dict() == {"eng": "Hello", "fra": "Bonjour"}
    assert text.default_language == "eng"


def test_partial_language_coverage_keeps_what_exists() -> None:
    raw = _tree("Bonjour", lang="fra")
    text = resolve_content(raw, NormalizationOptions(languages=("eng", "fra")))
    assert text.get_exact_text("eng") is None
    assert text.get_text("eng") == "Bonjour"


def test_branch_without_lang_is_default_language() -> None:
    raw = {"content": {"string": ["Hi"]}}
    assert resolve_content(raw, PLAIN).get_text("eng") == "Hi"


def test_span_with_published_link_becomes_internal_link() -> None:
    raw = _tree(
        "See ",
        {
            "links": {
                "resource": {
                    "uuid": "r1",
                    "publicationDateTime": "2020-01-01T00:00:00Z",
                    "identification": {"label": {"content": [{"lang": "eng", "string": "Tablet 1"}]}},
                }
            },
            "string": "tablet",
        },
        ".",
    )
    assert resolve_content(raw, RICH).get_text() == (
        'See <InternalLink uuid="r1" content="Tablet 1">tablet</InternalLink>.'
    )


def test_span_label_uses_leaf_text_only() -> None:
    raw = _tree(
        {
            "links": {"concept": {"uuid": "c1"}},
            "string": [
                "outer ",
                {"links": {"resource": {"uuid": "r9", "type": "webpage", "href": "https://x"}}, "text": "inner"},
            ],
        }
    )
    out = resolve_content(raw, PLAIN).get_text()
    assert out == "<TooltipSpan>outer inner</TooltipSpan>"


def test_span_without_links_is_plain_label() -> None:
    raw = _tree({"links": {}, "string": "just text"})
    assert resolve_content(raw, PLAIN).get_text() == "just text"


def test_rich_text_links_bare_emails() -> None:
    raw = _tree("Write to a@example.org")
    out = resolve_content(raw, RICH).get_text()
    assert out == 'Write to <ExternalLink href="mailto:a@example.org">a@example.org</ExternalLink>'
    assert resolve_content(raw, PLAIN).get_text() == "Write to a@example.org"


def test_email_linking_can_be_disabled() -> None:
    raw = _tree("a@example.org")
    opts = NormalizationOptions(is_rich_text=True, link_emails=False)
    assert resolve_content(raw, opts).get_text() == "a@example.org"


def test_scalar_content_shortcut() -> None:
    assert resolve_content({"content": "Hello"}, PLAIN).get_text() == "Hello"
    assert resolve_content({"content": 42}, PLAIN).get_text() == "42"


def test_text_field_shapes() -> None:
    assert resolve_text_field(None, PLAIN).is_empty()
    assert resolve_text_field("Hello", PLAIN).get_text() == "Hello"
    assert resolve_text_field({"string": ["a", "b"]}, PLAIN).get_text() == "ab"
    assert resolve_text_field({"text": "x", "rend": "bold"}, RICH).get_text() == "**x**"
    assert resolve_text_field([{"lang": "eng", "string": "listed"}], PLAIN).get_text() == "listed"


def test_resolve_text_picks_language_with_fallback() -> None:
    raw = {"content": [{"lang": "eng", "string": "Hello"}, {"lang": "fra", "string": "Bonjour"}]}
    opts = NormalizationOptions(languages=("eng", "fra"))
    assert resolve_text(raw, opts, "fra") == "Bonjour"
    assert resolve_text(raw, opts, "deu") == "Hello"


def test_resolve_branch() -> None:
    branch = {"lang": "eng", "string": ["one", {"whitespace": "newline"}, "two"]}
    assert resolve_branch(branch, PLAIN) == "one\ntwo"


def test_braces_are_escaped() -> None:
    assert resolve_content(_tree("{x}"), PLAIN).get_text() == "\\{x\\}"
