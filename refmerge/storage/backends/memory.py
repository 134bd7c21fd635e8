"""In-memory record store for testing."""

import msgspec

from refmerge.core.models import Record, unique

from ..exceptions import StoreWriteError
from .base import RecordStore


class MemoryStore(RecordStore):
    """Dictionary-backed record store."""

    def __init__(self):
        self._records: dict[str, Record] = {}
        self._collections: set[str] = set()

    def find_by_doi(self, doi: str) -> Record | None:
        return self._find(lambda r: r.doi == doi)

    def find_by_isbn(self, isbn: str) -> Record | None:
        return self._find(lambda r: r.isbn == isbn)

    def find_by_title_and_authors(self, title: str, authors: str) -> Record | None:
        return self._find(lambda r: r.title == title and r.authors == authors)

    def get(self, record_id: str) -> Record | None:
        record = self._records.get(record_id)
        return _copy(record) if record is not None else None

    def insert(self, record: Record) -> str:
        if not record.id:
            raise StoreWriteError("Cannot insert a record without an identifier")
        if record.id in self._records:
            raise StoreWriteError(f"Duplicate identifier: {record.id}")
        self._collections.update(record.collections)
        self._records[record.id] = self._stored(record, record.collections)
        return record.id

    def update(self, record: Record) -> None:
        existing = self._records.get(record.id)
        if existing is None:
            raise StoreWriteError(f"Cannot update unknown record: {record.id}")
        self._collections.update(record.collections)
        self._records[record.id] = self._stored(
            record, existing.collections + record.collections
        )

    def add_to_collection(self, record_id: str, path: str) -> None:
        existing = self._records.get(record_id)
        if existing is None:
            raise StoreWriteError(f"Cannot add unknown record to {path}: {record_id}")
        if not path:
            return
        self._collections.add(path)
        self._records[record_id] = msgspec.structs.replace(
            existing, collections=unique(existing.collections + (path,))
        )

    def add_collection(self, path: str) -> None:
        if path:
            self._collections.add(path)

    def list_collections(self) -> list[str]:
        return sorted(self._collections)

    def collections_for(self, record_id: str) -> list[str]:
        record = self._records.get(record_id)
        return sorted(record.collections) if record else []

    def list_records(self, collection: str | None = None) -> list[Record]:
        return [
            _copy(r)
            for r in self._records.values()
            if collection is None or collection in r.collections
        ]

    def close(self) -> None:
        pass

    def _find(self, predicate) -> Record | None:
        for record in self._records.values():
            if predicate(record):
                return _copy(record)
        return None

    def _stored(self, record: Record, collections: tuple[str, ...]) -> Record:
        # Only what a real store would keep
        return msgspec.structs.replace(
            record,
            extra=dict(record.extra),
            collections=unique(collections),
            citation_key="",
            sources=(),
        )


def _copy(record: Record) -> Record:
    # Records are frozen; only the extra-fields mapping can be mutated
    return msgspec.structs.replace(record, extra=dict(record.extra))
