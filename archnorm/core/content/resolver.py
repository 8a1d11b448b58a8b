"""Content run resolver.

A content tree is a set of language-tagged branches, each holding a sequence
of runs::

    {"content": [{"lang": "eng", "string": [run, run, ...]}, ...]}

Runs come in four shapes:

- text run: ``{"text": "...", "rend"?: "bold italic", "whitespace"?: "newline"}``
  (a bare scalar is a text run with no directives)
- whitespace-only run: ``{"whitespace": "newline"}``
- nested group: ``{"string": [runs], "rend"?, "whitespace"?}``
- annotated span: ``{"links": {...}, "string"?: [runs], ...}``

Each requested language is resolved independently. The walk is depth-first
and left-to-right, and every step returns a new accumulator string for the
language being resolved; source order is authoritative.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..cardinality import ensure_list
from ..errors import LanguageResolutionError
from ..multilingual import MultilingualText
from ..options import NormalizationOptions
from .links import LinkDescriptor, collect_descriptors, render_fragment
from .text import apply_directives, escape_text, format_text_run, link_emails, whitespace_token

_SCALARS = (str, int, float, bool)


@dataclass(frozen=True)
class _Walk:
    """Per-call formatting switches threaded through the recursion."""

    is_rich_text: bool
    emails: bool
    item_url_template: str


def _walk_for(options: NormalizationOptions) -> _Walk:
    return _Walk(
        is_rich_text=options.is_rich_text,
        emails=options.is_rich_text and options.link_emails,
        item_url_template=options.item_url_template,
    )


# ---------------------------------------------------------------------------
# Branch selection
# ---------------------------------------------------------------------------


def _branches_by_language(raw: Any, default_language: str) -> Dict[str, Mapping[str, Any]]:
    """Index content branches by ``lang``; first branch per language wins.

    A branch without ``lang`` stands for the default language.
    """

    out: Dict[str, Mapping[str, Any]] = {}
    for branch in ensure_list(raw):
        if not isinstance(branch, Mapping):
            continue
        lang = branch.get("lang") or default_language
        out.setdefault(str(lang), branch)
    return out


def _branch_runs(branch: Mapping[str, Any]) -> List[Any]:
    if "string" in branch:
        return ensure_list(branch.get("string"))
    if "text" in branch:
        return [{k: v for k, v in branch.items() if k in ("text", "rend", "whitespace")}]
    return []


# ---------------------------------------------------------------------------
# Run walk
# ---------------------------------------------------------------------------


def _append_whitespace(acc: str, run: Mapping[str, Any], walk: _Walk) -> str:
    token = whitespace_token(run["whitespace"], is_rich_text=walk.is_rich_text)
    # Pure spaces never double up against text that already ends in whitespace.
    if token and token.strip(" ") == "" and (acc == "" or acc[-1].isspace()):
        return acc
    return acc + token


def _walk_runs(runs: Sequence[Any], acc: str, language: str, walk: _Walk) -> str:
    """Append every run in ``runs`` to ``acc`` and return the new accumulator.

    Time:  O(total runs + output length)
    Space: O(depth) recursion
    """

    for run in runs:
        if run is None:
            continue
        if isinstance(run, _SCALARS):
            piece = escape_text(run)
            acc = acc + (link_emails(piece) if walk.emails else piece)
        elif not isinstance(run, Mapping):
            continue
        elif "links" in run:
            acc = acc + _resolve_span(run, language, walk)
        elif "string" in run:
            acc = acc + _resolve_group(run, language, walk)
        elif "text" in run:
            acc = acc + format_text_run(run, is_rich_text=walk.is_rich_text, emails=walk.emails)
        elif run.get("whitespace") is not None:
            acc = _append_whitespace(acc, run, walk)
    return acc


def _resolve_group(run: Mapping[str, Any], language: str, walk: _Walk) -> str:
    inner = _walk_runs(ensure_list(run.get("string")), "", language, walk)
    return apply_directives(inner, run, is_rich_text=walk.is_rich_text)


def _leaf_text(runs: Sequence[Any], is_rich_text: bool) -> str:
    """Concatenate leaf text only; nested links are not expanded."""

    acc = ""
    for run in runs:
        if run is None:
            continue
        if isinstance(run, _SCALARS):
            acc += escape_text(run)
        elif not isinstance(run, Mapping):
            continue
        elif "string" in run:
            inner = _leaf_text(ensure_list(run.get("string")), is_rich_text)
            acc += apply_directives(inner, run, is_rich_text=is_rich_text)
        elif "text" in run:
            acc += format_text_run(run, is_rich_text=is_rich_text)
        elif run.get("whitespace") is not None:
            acc += whitespace_token(run["whitespace"], is_rich_text=is_rich_text)
    return acc


def _span_label(run: Mapping[str, Any], walk: _Walk) -> str:
    if "string" in run:
        return _leaf_text(ensure_list(run.get("string")), walk.is_rich_text)
    if "text" in run:
        return format_text_run(run, is_rich_text=walk.is_rich_text)
    return ""


def _resolve_span(run: Mapping[str, Any], language: str, walk: _Walk) -> str:
    label = _span_label(run, walk)
    descriptors = collect_descriptors(run.get("links"))
    if not descriptors:
        return label

    out = ""
    for descriptor in descriptors:
        out += render_fragment(
            descriptor,
            label,
            content=descriptor_content(descriptor, language),
            item_url_template=walk.item_url_template,
        )
    return out


def descriptor_content(descriptor: LinkDescriptor, language: str) -> str:
    """Plain text of the target's identification label in ``language`` ("" if none)."""

    identification = descriptor.raw.get("identification")
    if not isinstance(identification, Mapping):
        return ""
    return label_text(identification.get("label"), language)


def label_text(raw: Any, language: str) -> str:
    """Plain leaf text of a label-like field for exactly ``language``."""

    if raw is None:
        return ""
    if isinstance(raw, _SCALARS):
        return escape_text(raw)
    if not isinstance(raw, Mapping):
        return ""
    if isinstance(raw.get("content"), _SCALARS):
        return escape_text(raw["content"])
    if "content" in raw:
        branch = _branches_by_language(raw.get("content"), language).get(language)
        if branch is None:
            return ""
        return _leaf_text(_branch_runs(branch), False)
    if "string" in raw:
        return _leaf_text(ensure_list(raw.get("string")), False)
    return format_text_run(raw, is_rich_text=False)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def resolve_content(
    raw: Mapping[str, Any],
    options: Optional[NormalizationOptions] = None,
    *,
    first_branch_fallback: bool = False,
) -> MultilingualText:
    """Resolve a content tree into one MultilingualText.

    Raises LanguageResolutionError when none of the requested languages has
    a branch, unless ``first_branch_fallback`` is set: the first branch is
    then resolved and stored under the default language. Languages are
    resolved in request order.
    """

    opts = options or NormalizationOptions()
    if isinstance(raw.get("content"), _SCALARS):
        return MultilingualText.create(
            opts.default_language, escape_text(raw["content"]), opts.languages, is_rich_text=opts.is_rich_text
        )

    walk = _walk_for(opts)
    branches = _branches_by_language(raw.get("content"), opts.default_language)

    # (stored language, branch language, branch)
    selected: List[Tuple[str, str, Mapping[str, Any]]] = [
        (lang, lang, branches[lang]) for lang in opts.languages if lang in branches
    ]
    if not selected:
        if not (first_branch_fallback and branches):
            raise LanguageResolutionError(opts.languages)
        source_lang, branch = next(iter(branches.items()))
        selected = [(opts.default_language, source_lang, branch)]

    result = MultilingualText.empty(opts.languages, is_rich_text=opts.is_rich_text)
    for lang, source_lang, branch in selected:
        acc = result.get_exact_text(lang) or ""
        result = result.with_text(lang, _walk_runs(_branch_runs(branch), acc, source_lang, walk))
    return result


def resolve_text_field(
    raw: Any,
    options: Optional[NormalizationOptions] = None,
    *,
    first_branch_fallback: bool = False,
) -> MultilingualText:
    """Resolve any free-form text field.

    Accepted shapes:
    - None -> empty value
    - scalar -> text for the default language, no run resolution
    - ``{"content": [...]}`` -> resolve_content
    - ``{"string": [...]}`` -> one branch for the default language
    - ``{"text": ..., "rend"?, "whitespace"?}`` -> one formatted run
    """

    opts = options or NormalizationOptions()
    if raw is None:
        return MultilingualText.empty(opts.languages, is_rich_text=opts.is_rich_text)
    if isinstance(raw, _SCALARS):
        return MultilingualText.create(
            opts.default_language, escape_text(raw), opts.languages, is_rich_text=opts.is_rich_text
        )
    if isinstance(raw, (list, tuple)):
        return resolve_content({"content": list(raw)}, opts, first_branch_fallback=first_branch_fallback)
    if not isinstance(raw, Mapping):
        return MultilingualText.empty(opts.languages, is_rich_text=opts.is_rich_text)
    if "content" in raw:
        return resolve_content(raw, opts, first_branch_fallback=first_branch_fallback)
    walk = _walk_for(opts)
    if "string" in raw:
        text = _walk_runs(ensure_list(raw.get("string")), "", opts.default_language, walk)
    else:
        text = format_text_run(raw, is_rich_text=opts.is_rich_text, emails=walk.emails)
    return MultilingualText.create(opts.default_language, text, opts.languages, is_rich_text=opts.is_rich_text)


def resolve_text(raw: Any, options: Optional[NormalizationOptions] = None, language: Optional[str] = None) -> str:
    """Resolve a text field and pick one language (with fallback)."""

    opts = options or NormalizationOptions()
    return resolve_text_field(raw, opts).get_text(language or opts.default_language)


def resolve_optional_text(raw: Any, options: Optional[NormalizationOptions] = None) -> Optional[str]:
    if raw is None:
        return None
    return resolve_text(raw, options)


def resolve_label(raw: Any, options: Optional[NormalizationOptions] = None) -> str:
    """Resolve a label-like field to one string.

    Labels, property values and metadata never fail on language: when no
    requested language has a branch, the first branch is used.
    """

    opts = options or NormalizationOptions()
    return resolve_text_field(raw, opts, first_branch_fallback=True).get_text(opts.default_language)


def resolve_optional_label(raw: Any, options: Optional[NormalizationOptions] = None) -> Optional[str]:
    if raw is None:
        return None
    return resolve_label(raw, options)


def resolve_branch(branch: Mapping[str, Any], options: Optional[NormalizationOptions] = None) -> str:
    """Resolve one already-selected language branch to a string."""

    opts = options or NormalizationOptions()
    language = str(branch.get("lang") or opts.default_language)
    return _walk_runs(_branch_runs(branch), "", language, _walk_for(opts))
