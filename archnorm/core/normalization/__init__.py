"""Normalization of raw archival records.

Raw records mirror an XML-to-JSON conversion: cardinality is ambiguous,
multilingual text is nested in run trees and cross-references are embedded
in text. The parsers here turn one such record into the typed model in
``archnorm.core.model``.

Failure policy:
- shape and vocabulary violations raise immediately
- identification is the one best-effort parser (logged, never raised)
"""

from .dispatcher import normalize_item, parse_item, parse_set, parse_tree
from .envelope import normalize_record, parse_languages, parse_metadata
from .identification import parse_identification
from .properties import (
    flatten_properties,
    get_property_by_label,
    get_property_values,
    parse_properties,
    parse_property,
    parse_property_value,
)

__all__ = [
    "normalize_record",
    "normalize_item",
    "parse_item",
    "parse_set",
    "parse_tree",
    "parse_metadata",
    "parse_languages",
    "parse_identification",
    "parse_property",
    "parse_properties",
    "parse_property_value",
    "flatten_properties",
    "get_property_by_label",
    "get_property_values",
]
