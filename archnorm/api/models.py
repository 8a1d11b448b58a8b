from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class ApiError(BaseModel):
    """Standard API error payload."""

    error: str
    detail: Optional[str] = None


class HealthOut(BaseModel):
    ok: bool = True
    version: str
    languages: List[str] = Field(default_factory=list)
    rich_text: bool = False
    max_body_bytes: int


class NormalizeOut(BaseModel):
    """A normalized record.

    ``record`` is the JSON rendering of the Record (envelope + item);
    multilingual fields appear as ``{language: text}`` mappings.
    """

    category: str
    item_categories: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)
    record: Dict[str, Any]
