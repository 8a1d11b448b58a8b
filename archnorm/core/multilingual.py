from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple

DEFAULT_LANGUAGES: Tuple[str, ...] = ("eng",)


@dataclass(frozen=True)
class MultilingualText:
    """
    Immutable per-language text value with a deterministic fallback chain.

    Invariants
    - ``available`` lists the languages that hold text, in insertion order.
    - When ``available`` is non-empty, ``default_language`` is one of them.
    - Every "mutator" returns a new value; instances are never changed in place.

    Complexity
    - get_text / get_exact_text / has_language: O(k) where k = len(available)
    - with_text / without_language / map / filter: O(k) time and space
    """

    content: Mapping[str, str]
    languages: Tuple[str, ...] = DEFAULT_LANGUAGES
    available: Tuple[str, ...] = ()
    default_language: str = DEFAULT_LANGUAGES[0]
    is_rich_text: bool = False

    def __post_init__(self) -> None:
        # Own copies of the caller containers; content is read-only.
        object.__setattr__(self, "content", MappingProxyType(dict(self.content)))
        object.__setattr__(self, "languages", tuple(self.languages))
        object.__setattr__(self, "available", tuple(self.available))

    def __hash__(self) -> int:
        return hash(
            (frozenset(self.content.items()), self.languages, self.available, self.default_language, self.is_rich_text)
        )

    # ---- construction -------------------------------------------------

    @classmethod
    def from_mapping(
        cls,
        content: Mapping[str, str],
        languages: Optional[Iterable[str]] = None,
        *,
        default_language: Optional[str] = None,
        is_rich_text: bool = False,
    ) -> "MultilingualText":
        """Build a value from ``{language: text}``.

        Only languages in ``languages`` are kept. The default is the requested
        ``default_language`` when it holds text, else the first available
        language, else the first supported language.
        """

        supported = tuple(languages) if languages is not None else DEFAULT_LANGUAGES
        kept = {lang: text for lang, text in content.items() if lang in supported and text is not None}
        available = tuple(kept.keys())

        if default_language is not None and default_language in kept:
            default = default_language
        elif available:
            default = available[0]
        else:
            default = default_language or supported[0]

        return cls(
            content=kept,
            languages=supported,
            available=available,
            default_language=default,
            is_rich_text=is_rich_text,
        )

    @classmethod
    def create(
        cls,
        language: str,
        text: str,
        languages: Optional[Iterable[str]] = None,
        *,
        is_rich_text: bool = False,
    ) -> "MultilingualText":
        supported = tuple(languages) if languages is not None else DEFAULT_LANGUAGES
        if language not in supported:
            supported = supported + (language,)
        return cls.from_mapping(
            {language: text},
            supported,
            default_language=language,
            is_rich_text=is_rich_text,
        )

    @classmethod
    def empty(
        cls,
        languages: Optional[Iterable[str]] = None,
        *,
        is_rich_text: bool = False,
    ) -> "MultilingualText":
        return cls.from_mapping({}, languages, is_rich_text=is_rich_text)

    # ---- reads --------------------------------------------------------

    def get_text(self, language: Optional[str] = None) -> str:
        """Exact match, else default language, else first available, else ""."""

        if language is not None and language in self.content:
            return self.content[language]
        if self.default_language in self.content:
            return self.content[self.default_language]
        for lang in self.available:
            if lang in self.content:
                return self.content[lang]
        return ""

    def get_exact_text(self, language: str) -> Optional[str]:
        return self.content.get(language)

    def has_language(self, language: str) -> bool:
        return language in self.content

    def is_empty(self) -> bool:
        return len(self.available) == 0

    def has_content(self) -> bool:
        return any(isinstance(t, str) and t.strip() for t in self.content.values())

    # ---- derivations --------------------------------------------------

    def with_text(self, language: str, text: str) -> "MultilingualText":
        content = dict(self.content)
        content[language] = text
        available = self.available if language in self.available else self.available + (language,)
        languages = self.languages if language in self.languages else self.languages + (language,)
        default = self.default_language if self.default_language in content else available[0]
        return MultilingualText(
            content=content,
            languages=languages,
            available=available,
            default_language=default,
            is_rich_text=self.is_rich_text,
        )

    def without_language(self, language: str) -> "MultilingualText":
        content = {k: v for k, v in self.content.items() if k != language}
        available = tuple(lang for lang in self.available if lang != language)
        return MultilingualText(
            content=content,
            languages=self.languages,
            available=available,
            default_language=self._derive_default(content, available),
            is_rich_text=self.is_rich_text,
        )

    def map(self, fn: Callable[[str, str], str]) -> "MultilingualText":
        """Apply ``fn(text, language)`` to every language version."""

        content = {lang: fn(self.content[lang], lang) for lang in self.available if lang in self.content}
        return MultilingualText(
            content=content,
            languages=self.languages,
            available=self.available,
            default_language=self.default_language,
            is_rich_text=self.is_rich_text,
        )

    def filter(self, predicate: Callable[[str, str], bool]) -> "MultilingualText":
        content: Dict[str, str] = {}
        for lang in self.available:
            text = self.content.get(lang)
            if text is not None and predicate(text, lang):
                content[lang] = text
        available = tuple(content.keys())
        return MultilingualText(
            content=content,
            languages=self.languages,
            available=available,
            default_language=self._derive_default(content, available),
            is_rich_text=self.is_rich_text,
        )

    def _derive_default(self, content: Mapping[str, str], available: Tuple[str, ...]) -> str:
        if self.default_language in content:
            return self.default_language
        if available:
            return available[0]
        return self.languages[0] if self.languages else DEFAULT_LANGUAGES[0]

    # ---- rendering ----------------------------------------------------

    def __str__(self) -> str:
        return self.get_text()

    def to_dict(self) -> Dict[str, str]:
        return {lang: self.content[lang] for lang in self.available if lang in self.content}
