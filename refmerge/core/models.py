"""Core data model for imported references.

A Record is the single, store-independent shape every importer produces
and every store persists. Records are immutable; the pipeline derives
new versions with ``msgspec.structs.replace``.

Key components:
- Record: canonical bibliographic unit with attachments, collection
  memberships and an extra-fields blob
- decode_extra / encode_extra: compact JSON codec for the extra-fields blob
- unique: order-preserving de-duplication used for paths and collections
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import msgspec

from .fields import RESERVED_FIELDS, SCALAR_FIELDS

logger = logging.getLogger(__name__)

# Separator of the attachment list in its stored form.
PATH_SEPARATOR = ";"


class Record(msgspec.Struct, frozen=True, kw_only=True):
    """Canonical bibliographic record.

    ``id`` is empty until the record is first persisted. ``sources`` and
    ``citation_key`` only live on transient records coming out of a
    parser: the former lists files still waiting to be copied into
    attachment storage, the latter is a storage-directory hint.
    """

    id: str = ""
    type: str = ""
    title: str = ""
    authors: str = ""
    year: str = ""

    doi: str = ""
    isbn: str = ""
    publisher: str = ""
    journal: str = ""
    pages: str = ""
    volume: str = ""
    number: str = ""
    editor: str = ""
    booktitle: str = ""
    series: str = ""
    edition: str = ""
    chapter: str = ""
    school: str = ""
    institution: str = ""
    organization: str = ""
    howpublished: str = ""
    language: str = ""
    keywords: str = ""
    month: str = ""
    note: str = ""
    url: str = ""
    abstract: str = ""
    address: str = ""

    attachments: tuple[str, ...] = ()
    collections: tuple[str, ...] = ()
    extra: dict[str, str] = msgspec.field(default_factory=dict)

    citation_key: str = ""
    sources: tuple[str, ...] = ()

    @property
    def pdf_path(self) -> str:
        """Attachment list in its semicolon-joined storage form."""
        return PATH_SEPARATOR.join(self.attachments)

    def has_signal(self) -> bool:
        """Check whether the record carries anything worth importing.

        Entries without a title, authors, DOI, ISBN, attachment, citation
        key, URL or note are parser noise.
        """
        return any(
            (
                self.title,
                self.authors,
                self.doi,
                self.isbn,
                self.attachments,
                self.sources,
                self.citation_key,
                self.url,
                self.note,
            )
        )

    def scalars(self) -> dict[str, str]:
        """Return the mergeable scalar fields as a dictionary."""
        return {name: getattr(self, name) for name in SCALAR_FIELDS}

    def to_row(self) -> dict[str, str]:
        """Convert to the flat storage form.

        Transient fields are dropped, attachments are semicolon-joined
        and the extra-fields blob becomes compact JSON.
        """
        row = {"id": self.id}
        row.update(self.scalars())
        row["pdf_path"] = self.pdf_path
        row["extra"] = encode_extra(self.extra)
        return row

    @classmethod
    def from_row(
        cls, row: Mapping[str, Any], collections: Iterable[str] = ()
    ) -> "Record":
        """Build a Record from its flat storage form."""
        values = {
            name: row[name] or "" for name in SCALAR_FIELDS if name in row
        }
        return cls(
            id=row.get("id") or "",
            attachments=split_paths(row.get("pdf_path") or ""),
            collections=unique(collections),
            extra=decode_extra(row.get("extra") or ""),
            **values,
        )

    @classmethod
    def from_fields(cls, data: Mapping[str, str], **kwargs: Any) -> "Record":
        """Build a Record from an arbitrary name -> value mapping.

        Canonical names land on their attributes; everything else goes
        into the extra-fields blob under its lower-cased name.
        """
        values: dict[str, str] = {}
        extra: dict[str, str] = {}
        for name, value in data.items():
            key = name.lower()
            if key in SCALAR_FIELDS:
                values[key] = value
            elif key not in RESERVED_FIELDS:
                extra[key] = value
        extra.update(normalize_extra(kwargs.pop("extra", {})))
        return cls(extra=extra, **values, **kwargs)


def normalize_extra(extra: Mapping[str, Any]) -> dict[str, str]:
    """Lower-case extra-field keys and drop keys that are canonical fields."""
    result: dict[str, str] = {}
    for name, value in extra.items():
        key = str(name).lower()
        if key in RESERVED_FIELDS:
            continue
        result[key] = value if isinstance(value, str) else _compact_json(value)
    return result


def encode_extra(extra: Mapping[str, str]) -> str:
    """Serialize the extra-fields blob as compact JSON ("" when empty)."""
    if not extra:
        return ""
    return msgspec.json.encode(dict(extra)).decode("utf-8")


def decode_extra(text: str) -> dict[str, str]:
    """Parse a stored extra-fields blob.

    Malformed JSON and JSON that is not an object both yield an empty
    mapping; non-string values are kept as their compact JSON text.
    """
    if not text.strip():
        return {}
    try:
        data = msgspec.json.decode(text)
    except msgspec.DecodeError:
        logger.debug(f"Ignoring malformed extra-fields blob: {text[:80]!r}")
        return {}
    if not isinstance(data, dict):
        return {}
    return normalize_extra(data)


def split_paths(value: str) -> tuple[str, ...]:
    """Split a semicolon-joined path list, dropping blanks and duplicates."""
    return unique(p.strip() for p in value.split(PATH_SEPARATOR))


def unique(values: Iterable[str]) -> tuple[str, ...]:
    """De-duplicate non-empty strings, keeping first appearance order."""
    return tuple(dict.fromkeys(v for v in values if v))


def _compact_json(value: Any) -> str:
    return msgspec.json.encode(value).decode("utf-8")
