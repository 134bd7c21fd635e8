"""Fixtures for import pipeline tests."""

import itertools

import pytest

from refmerge.operations.importer import RecordImporter
from refmerge.storage.attachments import AttachmentResolver
from refmerge.storage.backends.memory import MemoryStore
from refmerge.storage.backends.sqlite import SQLiteStore


@pytest.fixture
def storage_root(tmp_path):
    return tmp_path / "storage"


@pytest.fixture
def source_dir(tmp_path):
    """Directory holding export files and the PDFs they reference."""
    path = tmp_path / "export"
    path.mkdir()
    (path / "f.pdf").write_bytes(b"%PDF-1.4 first")
    return path


@pytest.fixture
def id_factory():
    """Deterministic record identifiers: rec-1, rec-2, ..."""
    counter = itertools.count(1)
    return lambda: f"rec-{next(counter)}"


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def importer(store, storage_root, id_factory):
    return RecordImporter(store, AttachmentResolver(storage_root), id_factory)


@pytest.fixture
def sqlite_importer(tmp_path, storage_root, id_factory):
    store = SQLiteStore(tmp_path / "library.db")
    yield RecordImporter(store, AttachmentResolver(storage_root), id_factory)
    store.close()


@pytest.fixture
def sample_bib(source_dir):
    """A small BibTeX export with an attachment."""
    path = source_dir / "refs.bib"
    path.write_text(
        """
@article{turing1950,
    author = {Turing, Alan},
    title = {Computing Machinery and Intelligence},
    journal = {Mind},
    year = {1950},
    doi = {10.1093/mind/LIX.236.433},
    file = {Full Text:./f.pdf:application/pdf},
}

@book{knuth1984,
    author = {Knuth, Donald E.},
    title = {The {TeX}book},
    publisher = {Addison-Wesley},
    year = 1984,
    isbn = {978-0-201-13447-6},
}

@misc{notes,
    author = {Doe, Jane},
    title = {Untitled Notes},
    howpublished = {Online},
}
""",
        encoding="utf-8",
    )
    return path
