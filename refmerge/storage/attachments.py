"""Attachment placement under a per-record storage directory.

Every producer of attachment files (BibTeX ``file`` fields, RDF links,
browser-connector uploads and manual attach actions) funnels through
``AttachmentResolver`` so files land in a deterministic directory and
never overwrite one another.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

import msgspec

from refmerge.core.cleaning import sanitize_name
from refmerge.core.models import Record, unique

from .files import FileSystem, LocalFileSystem

logger = logging.getLogger(__name__)


def author_last_token(authors: str) -> str:
    """Family name of the first author in a free-form authors string."""
    authors = authors.strip()
    if "," in authors:
        return authors.split(",", 1)[0].strip()
    first = authors.split(" and ", 1)[0].split()
    return first[-1] if first else ""


def storage_key(record: Record) -> str:
    """Directory name for a record's attachments.

    Priority: DOI, ISBN, citation key, then ``<author>_<year>``.
    """
    for candidate in (record.doi, record.isbn, record.citation_key):
        if candidate.strip():
            return sanitize_name(candidate.strip())
    author = author_last_token(record.authors) or "unknown"
    year = record.year.strip() or "0000"
    return sanitize_name(f"{author}_{year}")


class AttachmentResolver:
    """Copies or writes attachment files into the storage tree."""

    def __init__(self, storage_root: Path, fs: FileSystem | None = None):
        self.storage_root = Path(storage_root)
        self.fs = fs or LocalFileSystem()

    def directory_for(self, name: str) -> Path:
        """Storage directory for a record key or identifier."""
        return self.storage_root / name

    def unique_destination(self, directory: Path, filename: str) -> Path:
        """First non-existing path for ``filename`` inside ``directory``.

        Collisions get ``_1``, ``_2``, ... appended before the extension.
        """
        dest = directory / filename
        stem = Path(filename).stem
        suffix = Path(filename).suffix
        index = 1
        while self.fs.exists(dest):
            dest = directory / f"{stem}_{index}{suffix}"
            index += 1
        return dest

    def resolve(self, record: Record, sources: Iterable[str] | None = None) -> Record:
        """Copy source files into the record's directory.

        Args:
            record: Record whose attachments to extend.
            sources: Source paths; defaults to ``record.sources``.

        Returns:
            Record with copied paths appended to its attachments and
            no pending sources. Files that cannot be copied are skipped.
        """
        sources = list(record.sources if sources is None else sources)
        copied = []

        if sources:
            directory = self.directory_for(storage_key(record))
            for source in sources:
                path = self.copy_into(directory, Path(source))
                if path is not None:
                    copied.append(path)

        return msgspec.structs.replace(
            record,
            attachments=unique(record.attachments + tuple(copied)),
            sources=(),
        )

    def copy_into(self, directory: Path, source: Path) -> str | None:
        """Copy one file into ``directory``; None when it fails."""
        if not self.fs.exists(source):
            logger.debug(f"Attachment source vanished: {source}")
            return None
        try:
            self.fs.create_directories(directory)
            dest = self.unique_destination(directory, source.name)
            self.fs.copy_file(source, dest)
        except OSError as e:
            logger.debug(f"Could not copy attachment {source}: {e}")
            return None
        return str(dest)

    def write_blob(self, directory_name: str, filename: str, data: bytes) -> str | None:
        """Write uploaded bytes under ``directory_name``; None on failure."""
        name = Path(filename.replace("\\", "/")).name
        if not name:
            return None
        directory = self.directory_for(directory_name)
        try:
            self.fs.create_directories(directory)
            dest = self.unique_destination(directory, name)
            self.fs.write_bytes(dest, data)
        except OSError as e:
            logger.debug(f"Could not write attachment {name}: {e}")
            return None
        return str(dest)

    def attach(self, record: Record, source: Path) -> Record:
        """Attach a single file to a record, copying it into storage."""
        return self.resolve(record, [str(source)])
