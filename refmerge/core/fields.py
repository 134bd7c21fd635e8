"""Field tables for bibliographic records.

Records carry a fixed set of canonical scalar fields named after their
BibTeX counterparts. Anything outside this set lives in the record's
extra-fields blob.
"""

CANONICAL_FIELDS: tuple[str, ...] = (
    "doi",
    "isbn",
    "publisher",
    "journal",
    "pages",
    "volume",
    "number",
    "editor",
    "booktitle",
    "series",
    "edition",
    "chapter",
    "school",
    "institution",
    "organization",
    "howpublished",
    "language",
    "keywords",
    "month",
    "note",
    "url",
    "abstract",
    "address",
)

# Scalars folded by the merge engine, in the order they are persisted.
SCALAR_FIELDS: tuple[str, ...] = ("title", "authors", "year", "type") + CANONICAL_FIELDS

# BibTeX field name -> record attribute, for names that differ.
BIBTEX_ALIASES: dict[str, str] = {
    "author": "authors",
}

# Names that can never become extra-field keys.
RESERVED_FIELDS: frozenset[str] = frozenset(
    SCALAR_FIELDS
    + tuple(BIBTEX_ALIASES)
    + ("id", "file", "pdf_path", "collection", "collections", "extra")
)


def record_attribute(name: str) -> str | None:
    """Map a lower-case BibTeX field name to its record attribute.

    Returns None when the name has no canonical home.
    """
    name = BIBTEX_ALIASES.get(name, name)
    if name in SCALAR_FIELDS and name != "type":
        return name
    return None
