from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..content.resolver import resolve_optional_label, resolve_text_field
from ..model import Identification
from ..multilingual import MultilingualText
from ..options import NormalizationOptions
from .coerce import optional_str

log = logging.getLogger("archnorm.core")


def parse_identification(raw: Any, options: Optional[NormalizationOptions] = None) -> Identification:
    """Parse a raw ``identification`` block into label + abbreviation.

    This is the one best-effort parser: identification is advisory metadata,
    so any failure while extracting it is logged and an empty identification
    is returned instead of failing the whole item.

    Time:  O(n) in the size of the label trees
    Space: O(n)
    """

    opts = (options or NormalizationOptions()).rich(False)
    try:
        return _parse_identification(raw, opts)
    except Exception:
        log.warning(
            "identification_recovered",
            exc_info=True,
            extra={"languages": ",".join(opts.languages)},
        )
        return Identification.empty(opts.languages)


def _parse_identification(raw: Any, opts: NormalizationOptions) -> Identification:
    if raw is None:
        return Identification.empty(opts.languages)
    if not isinstance(raw, Mapping):
        # Scalar identification: the value is the label.
        return Identification(
            label=resolve_text_field(raw, opts, first_branch_fallback=True),
            abbreviation=MultilingualText.empty(opts.languages),
        )

    if "label" not in raw:
        raise KeyError("identification has no label")

    return Identification(
        label=resolve_text_field(raw.get("label"), opts, first_branch_fallback=True),
        abbreviation=resolve_text_field(raw.get("abbreviation"), opts, first_branch_fallback=True),
        code=optional_str(raw.get("code")),
        email=resolve_optional_label(raw.get("email"), opts),
        website=resolve_optional_label(raw.get("website"), opts),
    )
