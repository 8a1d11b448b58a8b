from __future__ import annotations

from typing import Optional, Sequence


class NormalizationError(ValueError):
    """
    Base exception for all normalization failures.
    """

    pass


class ShapeViolation(NormalizationError):
    """
    Raised when an expected key or child structure is missing from a raw record.
    """

    def __init__(self, key: str, message: Optional[str] = None):
        self.key = key
        super().__init__(message or f'Invalid record: missing "{key}" key')


class ValueViolation(NormalizationError):
    """
    Raised when an enumerated field holds a value outside its vocabulary.
    """

    def __init__(self, field: str, value: object, message: Optional[str] = None):
        self.field = field
        self.value = value
        super().__init__(message or f'Invalid {field} provided: "{value}"')


class LanguageResolutionError(NormalizationError):
    """
    Raised when none of the requested languages has a content branch.
    """

    def __init__(self, languages: Sequence[str]):
        self.languages = tuple(languages)
        super().__init__(
            f'Language content not found for languages: "{",".join(self.languages)}"'
        )


class XmlLoadError(NormalizationError):
    """
    Raised when an XML document cannot be safely converted to a raw tree.
    """

    pass
