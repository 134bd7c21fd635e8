"""Identity resolution for incoming records.

An incoming record is the same work as a stored one when, in priority
order, the DOI matches, else the ISBN matches, else both title and
authors match. Comparison is exact string equality on cleaned values;
a missed duplicate is preferred over merging two distinct works.
"""

from dataclasses import dataclass
from enum import Enum

from ..core.models import Record
from ..storage.backends.base import RecordStore


class MatchKey(str, Enum):
    """Identity key that produced a match."""

    DOI = "doi"
    ISBN = "isbn"
    TITLE_AUTHORS = "title_authors"


@dataclass(frozen=True)
class Identity:
    """Outcome of identity resolution: matched existing, or new."""

    existing: Record | None = None
    matched_on: MatchKey | None = None

    @property
    def is_new(self) -> bool:
        return self.existing is None

    @property
    def existing_id(self) -> str | None:
        return self.existing.id if self.existing is not None else None


NEW = Identity()


class IdentityResolver:
    """Looks up an incoming record's stored counterpart."""

    def __init__(self, store: RecordStore):
        self.store = store

    def resolve(self, candidate: Record) -> Identity:
        """Find the stored record ``candidate`` refers to.

        The first key that is non-empty and matches wins; later keys
        are only consulted when earlier ones found nothing.
        """
        if candidate.doi:
            existing = self.store.find_by_doi(candidate.doi)
            if existing is not None:
                return Identity(existing, MatchKey.DOI)

        if candidate.isbn:
            existing = self.store.find_by_isbn(candidate.isbn)
            if existing is not None:
                return Identity(existing, MatchKey.ISBN)

        if candidate.title and candidate.authors:
            existing = self.store.find_by_title_and_authors(
                candidate.title, candidate.authors
            )
            if existing is not None:
                return Identity(existing, MatchKey.TITLE_AUTHORS)

        return NEW
