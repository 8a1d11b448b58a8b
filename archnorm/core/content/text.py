"""Run-level text formatting.

Every text run goes through the same steps, in order:

1. escape the reserved markup characters ``{`` / ``}`` (and decode ``&#39;``)
2. optionally wrap bare e-mail addresses in external-link fragments
3. apply render directives (rich text only)
4. apply whitespace directives

All helpers are pure string functions.
"""

from __future__ import annotations

import re
from typing import Any, Mapping

from ..vocabulary import (
    RenderOption,
    WhitespaceOption,
    parse_render_options,
    parse_whitespace_options,
)
from .markup import external_link

ESCAPED_APOSTROPHE = "&#39;"
RICH_LINE_BREAK = "<br />\n"
PLAIN_LINE_BREAK = "\n"

_EMAIL_RE = re.compile(r"^[A-Za-z0-9._%+\-]+@[A-Za-z0-9\-]+(?:\.[A-Za-z0-9\-]+)*\.[A-Za-z]{2,}$")
_LEADING_BRACKETS_RE = re.compile(r"^[(\[{]+")
_TRAILING_BRACKETS_RE = re.compile(r"[)\]}]+$")
_TRAILING_PUNCT_RE = re.compile(r"[!),.:;?\]]$")


def scalar_to_text(value: Any) -> str:
    """Stringify a scalar leaf (str / number / bool) the way the source writes it."""

    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def escape_text(value: Any) -> str:
    """Decode ``&#39;`` and escape ``{`` / ``}`` for the markup consumer."""

    return (
        scalar_to_text(value)
        .replace(ESCAPED_APOSTROPHE, "'")
        .replace("{", "\\{")
        .replace("}", "\\}")
    )


def apply_render(text: str, raw_options: Any, *, is_rich_text: bool) -> str:
    """Wrap ``text`` in bold/italic/underline markers (rich text only).

    Unknown options raise ValueViolation even in plain mode.
    """

    out = text
    for option in parse_render_options(raw_options):
        if not is_rich_text:
            continue
        if option is RenderOption.BOLD:
            out = f"**{out}**"
        elif option is RenderOption.ITALIC:
            out = f"*{out}*"
        elif option is RenderOption.UNDERLINE:
            out = f"_{out}_"
    return out.replace(ESCAPED_APOSTROPHE, "'")


def apply_whitespace(text: str, raw_options: Any, *, is_rich_text: bool) -> str:
    """Apply newline / leading / trailing directives to ``text``."""

    out = text
    for option in parse_whitespace_options(raw_options):
        if option is WhitespaceOption.NEWLINE:
            out = (RICH_LINE_BREAK if is_rich_text else PLAIN_LINE_BREAK) + out
        elif option is WhitespaceOption.TRAILING:
            out = out + " "
        elif option is WhitespaceOption.LEADING:
            out = " " + out
    return out.replace(ESCAPED_APOSTROPHE, "'")


def whitespace_token(raw_options: Any, *, is_rich_text: bool) -> str:
    """The text a whitespace-only run contributes on its own."""

    return apply_whitespace("", raw_options, is_rich_text=is_rich_text)


def link_emails(text: str) -> str:
    """Replace bare e-mail addresses with ``mailto:`` external-link fragments.

    Surrounding brackets and trailing punctuation stay outside the link:
    ``(info@example.org).`` keeps ``(`` and ``).`` around the fragment.

    Time:  O(n)
    Space: O(n)
    """

    if "@" not in text:
        return text

    out = []
    for token in text.split(" "):
        if "@" not in token:
            out.append(token)
            continue
        core = _LEADING_BRACKETS_RE.sub("", token)
        core = _TRAILING_PUNCT_RE.sub("", core)
        core = _TRAILING_BRACKETS_RE.sub("", core)
        core = _TRAILING_PUNCT_RE.sub("", core)
        if not core or not _EMAIL_RE.match(core):
            out.append(token)
            continue
        start = token.find(core)
        before = token[:start]
        after = token[start + len(core):]
        out.append(f"{before}{external_link(f'mailto:{core}', core)}{after}")
    return " ".join(out)


def apply_directives(text: str, run: Mapping[str, Any], *, is_rich_text: bool) -> str:
    """Apply a run's ``whitespace`` then ``rend`` directives to formatted text.

    Markers wrap the whitespace tokens too. Empty text is never wrapped.
    """

    out = text
    if run.get("whitespace") is not None:
        out = apply_whitespace(out, run["whitespace"], is_rich_text=is_rich_text)
    if text and run.get("rend") is not None:
        out = apply_render(out, run["rend"], is_rich_text=is_rich_text)
    return out


def format_text_run(
    run: Mapping[str, Any],
    *,
    is_rich_text: bool,
    emails: bool = False,
) -> str:
    """Format one ``{text, rend?, whitespace?}`` run."""

    out = escape_text(run.get("text"))
    if emails and is_rich_text:
        out = link_emails(out)
    return apply_directives(out, run, is_rich_text=is_rich_text)
