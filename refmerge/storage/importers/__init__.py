"""Bibliography import formats.

Every importer turns a source file into transient Records:

- **BibTeX**: resilient tokenizer with ``file`` field attachments
- **Zotero RDF**: line scan with linked attachment resources
- **EndNote XML** / **Mendeley XML**: line scan for known tags

The format is chosen by file extension only. ``.xml`` tries EndNote
first and falls back to Mendeley when that yields nothing.
"""

import logging
from enum import Enum
from pathlib import Path

from refmerge.core.models import Record

from ..exceptions import UnsupportedFormatError
from ..files import FileSystem
from .bibtex import BibtexImporter
from .connector import AttachmentBlob, ConnectorSubmission, decode_submission
from .endnote import EndnoteImporter
from .mendeley import MendeleyImporter
from .rdf import RdfImporter

logger = logging.getLogger(__name__)


class ImportFormat(Enum):
    """Source formats, keyed by file extension."""

    BIBTEX = ".bib"
    RDF = ".rdf"
    XML = ".xml"

    @classmethod
    def from_path(cls, path: Path) -> "ImportFormat":
        """Pick the format for a source file.

        Raises:
            UnsupportedFormatError: If the extension is not recognized.
        """
        suffix = Path(path).suffix.lower()
        for fmt in cls:
            if fmt.value == suffix:
                return fmt
        raise UnsupportedFormatError(f"Unsupported import format: {suffix or path}")


def importers_for(fmt: ImportFormat, fs: FileSystem | None = None) -> list:
    """Importers to try for a format, in order."""
    if fmt is ImportFormat.BIBTEX:
        return [BibtexImporter(fs)]
    if fmt is ImportFormat.RDF:
        return [RdfImporter(fs)]
    return [EndnoteImporter(fs), MendeleyImporter(fs)]


def load_records(
    path: Path, fs: FileSystem | None = None
) -> tuple[list[Record], list[str]]:
    """Parse a source file with the importer(s) its extension selects.

    Returns:
        Tuple of (records, errors)

    Raises:
        UnsupportedFormatError: If the extension is not recognized.
    """
    errors: list[str] = []
    for importer in importers_for(ImportFormat.from_path(path), fs):
        records, importer_errors = importer.import_file(Path(path))
        errors.extend(importer_errors)
        if records:
            logger.debug(f"{importer.name} produced {len(records)} records from {path}")
            return records, errors
    return [], list(dict.fromkeys(errors))


__all__ = [
    "ImportFormat",
    "importers_for",
    "load_records",
    "BibtexImporter",
    "RdfImporter",
    "EndnoteImporter",
    "MendeleyImporter",
    "AttachmentBlob",
    "ConnectorSubmission",
    "decode_submission",
]
