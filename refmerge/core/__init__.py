"""Core domain model and value normalization."""

from refmerge.core.cleaning import clean_value, sanitize_name
from refmerge.core.fields import (
    BIBTEX_ALIASES,
    CANONICAL_FIELDS,
    RESERVED_FIELDS,
    SCALAR_FIELDS,
    record_attribute,
)
from refmerge.core.models import (
    PATH_SEPARATOR,
    Record,
    decode_extra,
    encode_extra,
    normalize_extra,
    split_paths,
    unique,
)

__all__ = [
    # Fields
    "CANONICAL_FIELDS",
    "SCALAR_FIELDS",
    "RESERVED_FIELDS",
    "BIBTEX_ALIASES",
    "record_attribute",
    # Cleaning
    "clean_value",
    "sanitize_name",
    # Models
    "Record",
    "PATH_SEPARATOR",
    "encode_extra",
    "decode_extra",
    "normalize_extra",
    "split_paths",
    "unique",
]
