"""Decoding of browser-connector save requests.

The browser extension posts a JSON object whose ``data`` member carries
the item attributes, an optional target ``collection`` and an optional
``attachments`` array of ``{"filename": ..., "data": <base64>}`` blobs.
"""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import msgspec

from refmerge.core.models import Record, decode_extra, normalize_extra, split_paths

from ..exceptions import ConnectorRequestError
from ..files import FileSystem, LocalFileSystem

logger = logging.getLogger(__name__)

# Keys with dedicated handling; never copied into the extra-fields blob.
SPECIAL_KEYS = frozenset(
    {"attachments", "collection", "extra", "pdf_path", "bibtextype", "author", "id"}
)


class AttachmentBlob(msgspec.Struct):
    """One uploaded file, still base64-encoded."""

    filename: str = ""
    data: str = ""

    @property
    def name(self) -> str:
        """Base name of the uploaded file, without any directory part."""
        return Path(self.filename.replace("\\", "/")).name

    def decode(self) -> bytes | None:
        """Decoded bytes, or None when the payload is not valid base64."""
        payload = self.data
        if payload.startswith("data:") and "," in payload:
            payload = payload.split(",", 1)[1]
        # MIME encoders wrap lines every 76 characters.
        payload = "".join(payload.split())
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            return None


@dataclass
class ConnectorSubmission:
    """A decoded save request."""

    record: Record
    collection: str = ""
    files: list[tuple[str, bytes]] = field(default_factory=list)


def decode_submission(
    body: bytes | str, fs: FileSystem | None = None
) -> ConnectorSubmission:
    """Decode a save request body.

    Raises:
        ConnectorRequestError: If the body is not a JSON object with an
            object-valued ``data`` member.
    """
    fs = fs or LocalFileSystem()
    try:
        root = msgspec.json.decode(body)
    except msgspec.DecodeError as e:
        raise ConnectorRequestError(f"Invalid JSON: {e}") from e

    if not isinstance(root, dict) or not isinstance(root.get("data"), dict):
        raise ConnectorRequestError("Request must be an object with a 'data' object")

    data: dict[str, Any] = root["data"]

    values: dict[str, str] = {}
    for key, value in data.items():
        if str(key).lower() in SPECIAL_KEYS:
            continue
        text = _scalar_text(value)
        if text is not None:
            values[str(key)] = text

    if not values.get("authors"):
        author = _scalar_text(data.get("author"))
        if author:
            values["authors"] = author

    bibtex_type = _scalar_text(data.get("bibtexType"))
    if bibtex_type:
        values["type"] = bibtex_type

    extra = data.get("extra")
    if isinstance(extra, str):
        extra = decode_extra(extra)
    elif isinstance(extra, dict):
        extra = normalize_extra(extra)
    else:
        extra = {}

    attachments = []
    pdf_path = _scalar_text(data.get("pdf_path")) or ""
    for path in split_paths(pdf_path):
        if fs.exists(Path(path)):
            attachments.append(path)
        else:
            logger.debug(f"Ignoring missing connector path: {path}")

    record = Record.from_fields(values, extra=extra, attachments=tuple(attachments))

    return ConnectorSubmission(
        record=record,
        collection=_scalar_text(data.get("collection")) or "",
        files=decode_blobs(data.get("attachments")),
    )


def decode_blobs(value: Any) -> list[tuple[str, bytes]]:
    """Decode the ``attachments`` array, skipping unusable entries."""
    if not isinstance(value, list):
        return []

    files = []
    for item in value:
        try:
            blob = msgspec.convert(item, AttachmentBlob)
        except msgspec.ValidationError:
            logger.debug("Skipping malformed connector attachment")
            continue
        if not blob.name or not blob.data:
            continue
        content = blob.decode()
        if content is None:
            logger.debug(f"Skipping undecodable attachment: {blob.name}")
            continue
        files.append((blob.name, content))
    return files


def _scalar_text(value: Any) -> str | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, int | float):
        return str(value)
    return None
