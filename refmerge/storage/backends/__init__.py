"""Record store implementations.

- **SQLiteStore**: items table plus collection join table
- **MemoryStore**: in-memory storage for testing

Both implement the ``RecordStore`` interface consumed by the import
pipeline.
"""

from .base import RecordStore
from .memory import MemoryStore
from .sqlite import SQLiteStore

__all__ = [
    "RecordStore",
    "MemoryStore",
    "SQLiteStore",
]
