"""Request handlers for the browser connector.

Transport-agnostic: the local listener decodes HTTP and hands bodies
and query values to these methods, then serializes what they return.
"""

import logging
from typing import Any

import msgspec

from .. import __version__
from ..core.models import unique
from ..storage.exceptions import ConnectorRequestError, StorageError
from ..storage.importers import decode_submission
from .importer import RecordImporter

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 1000


def parse_limit(value: Any) -> int:
    """Item listing limit; anything outside 1..1000 means the default."""
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    return limit if 0 < limit <= MAX_LIMIT else DEFAULT_LIMIT


class ConnectorService:
    """Handles status, item listing and save requests."""

    def __init__(self, importer: RecordImporter, version: str = __version__):
        self.importer = importer
        self.version = version

    @property
    def store(self):
        return self.importer.store

    def status(self) -> dict[str, str]:
        return {"version": self.version}

    def items(self, limit: Any = DEFAULT_LIMIT) -> list[dict[str, str]]:
        """Summaries of stored records, at most ``limit`` of them."""
        records = self.store.list_records()[: parse_limit(limit)]
        return [
            {
                "id": record.id,
                "title": record.title,
                "authors": record.authors,
                "year": record.year,
                "doi": record.doi,
                "url": record.url,
                "collection": record.collections[0] if record.collections else "",
            }
            for record in records
        ]

    def save(self, body: bytes | str) -> dict[str, Any]:
        """Store one submitted item, merging into an existing match.

        Identity is resolved before any upload is written so that blobs
        land in the directory of the record they end up on.
        """
        try:
            submission = decode_submission(body, self.importer.fs)
        except ConnectorRequestError as e:
            logger.warning(f"Rejected connector request: {e}")
            return {"success": False, "id": "", "error": str(e)}

        record = submission.record
        identity = self.importer.identity.resolve(record)
        record_id = identity.existing_id or self.importer.id_factory()

        written = []
        for name, data in submission.files:
            path = self.importer.attachments.write_blob(record_id, name, data)
            if path is not None:
                written.append(path)

        collections = record.collections
        if submission.collection:
            collections = unique(collections + (submission.collection,))

        record = msgspec.structs.replace(
            record,
            id=record_id,
            attachments=unique(record.attachments + tuple(written)),
            collections=collections,
        )

        try:
            record_id, created = self.importer.write(record, identity)
        except StorageError as e:
            logger.error(f"Failed to save connector item: {e}")
            return {"success": False, "id": "", "error": str(e)}

        logger.info(f"Connector {'created' if created else 'updated'} {record_id}")
        return {"success": True, "id": record_id}

    def encode(self, response: Any) -> bytes:
        """Serialize a handler response as the listener sends it."""
        return msgspec.json.encode(response)
