"""Import pipeline: parse, place attachments, resolve identity, merge, persist."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

import msgspec

from ..core.models import Record, unique
from ..storage.attachments import AttachmentResolver
from ..storage.backends.base import RecordStore
from ..storage.exceptions import (
    RecordNotFoundError,
    StorageError,
    UnsupportedFormatError,
)
from ..storage.files import FileSystem
from ..storage.importers import ImportFormat, importers_for, load_records
from .identity import Identity, IdentityResolver
from .merge import MergeEngine

logger = logging.getLogger(__name__)


def new_record_id() -> str:
    """Default identifier factory."""
    return str(uuid.uuid4())


def collection_path(parent: str | None, name: str | None) -> str:
    """Join a parent collection and a new child name into one path."""
    parent = (parent or "").strip("/ ")
    name = (name or "").strip("/ ")
    if parent and name:
        return f"{parent}/{name}"
    return parent or name


@dataclass
class ImportResult:
    """Result of an import operation."""

    total_records: int = 0
    created: int = 0
    merged: int = 0
    failed: int = 0

    created_ids: list[str] = field(default_factory=list)
    merged_ids: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def persisted(self) -> int:
        """Records successfully written, created or merged."""
        return self.created + self.merged

    @property
    def success(self) -> bool:
        """Check if every parsed record was persisted."""
        return self.failed == 0 and not self.errors and self.total_records > 0

    @property
    def ids(self) -> list[str]:
        return self.created_ids + self.merged_ids

    def add_created(self, record_id: str) -> None:
        self.created += 1
        self.created_ids.append(record_id)

    def add_merged(self, record_id: str) -> None:
        self.merged += 1
        self.merged_ids.append(record_id)

    def add_failed(self, label: str, message: str) -> None:
        self.failed += 1
        self.errors.append(f"{label}: {message}")

    def get_summary(self) -> str:
        """Get summary of import results."""
        lines = [
            f"Total records: {self.total_records}",
            f"Created: {self.created}",
            f"Merged: {self.merged}",
        ]
        if self.failed:
            lines.append(f"Failed: {self.failed}")
        for error in self.errors[:5]:
            lines.append(f"  {error}")
        if len(self.errors) > 5:
            lines.append(f"  ... and {len(self.errors) - 5} more")
        return "\n".join(lines)


class RecordImporter:
    """Drives parsed records into a record store.

    Each record goes through attachment placement, identity resolution
    and either a merge into its stored counterpart or a fresh insert.
    A failure on one record is recorded in the result and the batch
    carries on; records already written stay written.
    """

    def __init__(
        self,
        store: RecordStore,
        attachments: AttachmentResolver,
        id_factory: Callable[[], str] = new_record_id,
        fs: FileSystem | None = None,
    ):
        """Initialize importer.

        Args:
            store: Record store to write into
            attachments: Resolver placing attachment files
            id_factory: Source of fresh record identifiers
            fs: File system used by the format importers
        """
        self.store = store
        self.attachments = attachments
        self.id_factory = id_factory
        self.fs = fs or attachments.fs
        self.identity = IdentityResolver(store)
        self.merger = MergeEngine()

    def import_file(
        self,
        path: Path,
        collection: str = "",
        new_collection: str | None = None,
    ) -> ImportResult:
        """Import every record of a source file.

        Args:
            path: ``.bib``, ``.rdf`` or ``.xml`` source file
            collection: Target collection path ("" for the root)
            new_collection: Name of a collection to create, under
                ``collection`` when that is given

        Returns:
            Import result; unsupported or unreadable files yield zero
            persisted records and one error
        """
        try:
            records, errors = load_records(Path(path), self.fs)
        except UnsupportedFormatError as e:
            logger.error(str(e))
            return ImportResult(errors=[str(e)])

        result = ImportResult(errors=list(errors))
        for error in errors:
            logger.error(f"{path}: {error}")
        if errors and not records:
            return result

        target = self.prepare_collection(collection, new_collection)
        self.import_records(records, target, result)
        logger.info(f"Imported {result.persisted} of {result.total_records} from {path}")
        return result

    def import_text(
        self,
        text: str,
        fmt: ImportFormat = ImportFormat.BIBTEX,
        collection: str = "",
        base_dir: Path | None = None,
    ) -> ImportResult:
        """Import records from in-memory source text."""
        records: list[Record] = []
        for importer in importers_for(fmt, self.fs):
            records, _ = importer.import_text(text, base_dir)
            if records:
                break
        return self.import_records(records, collection)

    def import_records(
        self,
        records: Iterable[Record],
        collection: str = "",
        result: ImportResult | None = None,
    ) -> ImportResult:
        """Persist already-parsed records into ``collection``."""
        result = result or ImportResult()

        for index, record in enumerate(records, 1):
            result.total_records += 1
            label = record.citation_key or record.title or f"record {index}"
            try:
                record_id, created = self.persist(record, collection)
            except (StorageError, OSError) as e:
                logger.error(f"Failed to import {label}: {e}")
                result.add_failed(label, str(e))
                continue

            if created:
                result.add_created(record_id)
            else:
                result.add_merged(record_id)

        return result

    def persist(self, record: Record, collection: str = "") -> tuple[str, bool]:
        """Run one record through the pipeline.

        Returns:
            Tuple of (record id, whether a new record was created)
        """
        record = self.attachments.resolve(record)
        identity = self.identity.resolve(record)
        if collection:
            record = msgspec.structs.replace(
                record, collections=unique(record.collections + (collection,))
            )
        return self.write(record, identity)

    def write(self, record: Record, identity: Identity) -> tuple[str, bool]:
        """Merge into the matched record or insert as new."""
        if identity.existing is not None:
            merged = self.merger.merge(identity.existing, record)
            self.store.update(merged)
            for path in record.collections:
                self.store.add_to_collection(merged.id, path)
            logger.info(
                f"Merged into {merged.id} (matched on {identity.matched_on.value})"
            )
            return merged.id, False

        created = msgspec.structs.replace(
            record,
            id=record.id or self.id_factory(),
            citation_key="",
            sources=(),
        )
        record_id = self.store.insert(created)
        logger.info(f"Created {record_id}: {created.title or '(untitled)'}")
        return record_id, True

    def prepare_collection(self, collection: str, new_collection: str | None) -> str:
        """Create the requested new (sub)collection and return the target path."""
        if not new_collection or not new_collection.strip("/ "):
            return collection
        target = collection_path(collection, new_collection)
        self.store.add_collection(target)
        logger.info(f"Created collection {target}")
        return target

    def attach_file(self, record_id: str, path: Path) -> Record:
        """Copy one file into a stored record's attachment directory.

        Raises:
            RecordNotFoundError: If no record has ``record_id``.
        """
        record = self.store.get(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)

        attached = self.attachments.attach(record, Path(path))
        if attached.attachments == record.attachments:
            logger.warning(f"Nothing attached to {record_id}: {path}")
            return record

        self.store.update(attached)
        logger.info(f"Attached {Path(path).name} to {record_id}")
        return attached
