"""Storage layer for imported references.

- **Record stores**: SQLite and in-memory backends behind one interface
- **Parsing**: resilient BibTeX parser plus RDF/EndNote/Mendeley importers
- **Attachments**: per-record storage directories with collision-free names
"""

from refmerge.storage.attachments import AttachmentResolver, storage_key
from refmerge.storage.backends import MemoryStore, RecordStore, SQLiteStore
from refmerge.storage.exceptions import (
    ConnectorRequestError,
    RecordNotFoundError,
    StorageError,
    StoreWriteError,
    UnsupportedFormatError,
)
from refmerge.storage.files import FileSystem, LocalFileSystem, read_source
from refmerge.storage.importers import (
    BibtexImporter,
    EndnoteImporter,
    ImportFormat,
    MendeleyImporter,
    RdfImporter,
    decode_submission,
    load_records,
)
from refmerge.storage.parser import BibtexParser, ParseWarning, parse_bibtex

__all__ = [
    # Stores
    "RecordStore",
    "MemoryStore",
    "SQLiteStore",
    # Files
    "FileSystem",
    "LocalFileSystem",
    "read_source",
    # Attachments
    "AttachmentResolver",
    "storage_key",
    # Parsing
    "BibtexParser",
    "ParseWarning",
    "parse_bibtex",
    # Importers
    "ImportFormat",
    "load_records",
    "BibtexImporter",
    "RdfImporter",
    "EndnoteImporter",
    "MendeleyImporter",
    "decode_submission",
    # Exceptions
    "StorageError",
    "StoreWriteError",
    "RecordNotFoundError",
    "UnsupportedFormatError",
    "ConnectorRequestError",
]
