"""Import operations.

- identity.py: matching incoming records against the store
- merge.py: merge-if-empty and set-union rules
- importer.py: the per-record import pipeline and its results
- connector.py: browser-connector request handlers
"""

from .connector import ConnectorService, parse_limit
from .identity import Identity, IdentityResolver, MatchKey
from .importer import ImportResult, RecordImporter, collection_path, new_record_id
from .merge import MergeEngine

__all__ = [
    "IdentityResolver",
    "Identity",
    "MatchKey",
    "MergeEngine",
    "RecordImporter",
    "ImportResult",
    "collection_path",
    "new_record_id",
    "ConnectorService",
    "parse_limit",
]
