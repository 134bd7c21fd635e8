"""Shared fixtures for storage tests."""

from pathlib import Path

import pytest

from refmerge.storage.attachments import AttachmentResolver
from refmerge.storage.backends.memory import MemoryStore
from refmerge.storage.backends.sqlite import SQLiteStore


@pytest.fixture
def source_dir(tmp_path):
    """Directory holding export files and the PDFs they reference."""
    path = tmp_path / "export"
    path.mkdir()
    (path / "f.pdf").write_bytes(b"%PDF-1.4 first")
    (path / "files").mkdir()
    return path


@pytest.fixture
def storage_root(tmp_path):
    """Attachment storage root."""
    return tmp_path / "storage"


@pytest.fixture
def resolver(storage_root):
    return AttachmentResolver(storage_root)


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def sqlite_store(tmp_path):
    store = SQLiteStore(tmp_path / "library.db")
    yield store
    store.close()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each record store implementation in turn."""
    if request.param == "memory":
        yield MemoryStore()
    else:
        store = SQLiteStore(Path(tmp_path) / "param.db")
        yield store
        store.close()
