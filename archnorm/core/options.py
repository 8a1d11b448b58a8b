from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple, Union

from .content.markup import DEFAULT_ITEM_URL_TEMPLATE
from .errors import ValueViolation
from .vocabulary import parse_language


@dataclass(frozen=True, slots=True)
class NormalizationOptions:
    """Knobs shared by every normalization call.

    - languages: requested languages, in preference order. The first one is
      the default language used by scalar shortcuts and notes.
    - is_rich_text: emit markdown/markup (bold, ``<br />``, e-mail links)
      instead of plain text.
    - item_url_template: canonical item URL used by document links.
    - link_emails: convert bare e-mail addresses in rich text.
    """

    languages: Tuple[str, ...] = ("eng",)
    is_rich_text: bool = False
    item_url_template: str = DEFAULT_ITEM_URL_TEMPLATE
    link_emails: bool = True

    def __post_init__(self) -> None:
        langs = self.languages
        if isinstance(langs, str):
            langs = tuple(p for p in langs.split(",") if p.strip())
        langs = tuple(parse_language(lang) for lang in langs)
        if not langs:
            raise ValueViolation("languages", "", "At least one language is required")
        object.__setattr__(self, "languages", langs)
        if "{uuid}" not in self.item_url_template:
            raise ValueViolation("item URL template", self.item_url_template)

    @property
    def default_language(self) -> str:
        return self.languages[0]

    def with_languages(self, languages: Union[str, Iterable[str]]) -> "NormalizationOptions":
        """Copy with other languages; a comma separated string is accepted."""

        return replace(self, languages=languages if isinstance(languages, str) else tuple(languages))

    def rich(self, is_rich_text: bool = True) -> "NormalizationOptions":
        return replace(self, is_rich_text=is_rich_text)

    @classmethod
    def from_env(cls, prefix: str = "ARCHNORM_") -> "NormalizationOptions":
        """Build options from environment variables.

        Reads:
        - ARCHNORM_LANGUAGES: comma separated codes (default "eng")
        - ARCHNORM_RICH_TEXT: 0/1 (default 0)
        - ARCHNORM_ITEM_URL_TEMPLATE: must contain "{uuid}"
        - ARCHNORM_LINK_EMAILS: 0/1 (default 1)
        """

        languages = _env_str(f"{prefix}LANGUAGES") or "eng"
        return cls(
            languages=tuple(p.strip() for p in languages.split(",") if p.strip()),
            is_rich_text=_env_bool(f"{prefix}RICH_TEXT", False),
            item_url_template=_env_str(f"{prefix}ITEM_URL_TEMPLATE") or DEFAULT_ITEM_URL_TEMPLATE,
            link_emails=_env_bool(f"{prefix}LINK_EMAILS", True),
        )


def _env_str(name: str) -> Optional[str]:
    raw = os.environ.get(name, "").strip()
    return raw or None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return bool(int(raw))
    except ValueError:
        return raw.lower() in {"true", "yes", "on"}
