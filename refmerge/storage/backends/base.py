"""Abstract record store interface."""

from abc import ABC, abstractmethod

from refmerge.core.models import Record


class RecordStore(ABC):
    """Abstract base class for record stores.

    Lookups return at most one record. Every write call is atomic on its
    own; the store offers no cross-call transactions.
    """

    @abstractmethod
    def find_by_doi(self, doi: str) -> Record | None:
        """Find the record whose DOI equals ``doi`` exactly."""
        pass

    @abstractmethod
    def find_by_isbn(self, isbn: str) -> Record | None:
        """Find the record whose ISBN equals ``isbn`` exactly."""
        pass

    @abstractmethod
    def find_by_title_and_authors(self, title: str, authors: str) -> Record | None:
        """Find the record matching both title and authors exactly."""
        pass

    @abstractmethod
    def get(self, record_id: str) -> Record | None:
        """Read a record by identifier."""
        pass

    @abstractmethod
    def insert(self, record: Record) -> str:
        """Persist a new record and its memberships; return its identifier."""
        pass

    @abstractmethod
    def update(self, record: Record) -> None:
        """Overwrite the stored fields of an existing record.

        Memberships listed on ``record`` are added, never removed.
        """
        pass

    @abstractmethod
    def add_to_collection(self, record_id: str, path: str) -> None:
        """Add a record to a collection, registering the collection."""
        pass

    @abstractmethod
    def add_collection(self, path: str) -> None:
        """Register a collection path."""
        pass

    @abstractmethod
    def list_collections(self) -> list[str]:
        """All collection paths, sorted."""
        pass

    @abstractmethod
    def collections_for(self, record_id: str) -> list[str]:
        """Collection paths a record belongs to, sorted."""
        pass

    @abstractmethod
    def list_records(self, collection: str | None = None) -> list[Record]:
        """All records, or those in ``collection``."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release store resources."""
        pass

    def count(self) -> int:
        """Number of stored records."""
        return len(self.list_records())

    def __enter__(self) -> "RecordStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
