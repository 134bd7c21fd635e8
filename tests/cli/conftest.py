"""Fixtures for CLI tests."""

import pytest
from click.testing import CliRunner

from refmerge.storage.backends.sqlite import SQLiteStore


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def open_store(data_dir):
    """Open the library the CLI wrote, closed after the test."""
    stores = []

    def _open():
        store = SQLiteStore(data_dir / "refmerge.db")
        stores.append(store)
        return store

    yield _open
    for store in stores:
        store.close()


@pytest.fixture
def export_dir(tmp_path):
    path = tmp_path / "export"
    path.mkdir()
    (path / "f.pdf").write_bytes(b"%PDF-1.4")
    return path


@pytest.fixture
def bib_file(export_dir):
    path = export_dir / "refs.bib"
    path.write_text(
        """
@article{shannon1948,
    author = {Shannon, Claude E.},
    title = {A Mathematical Theory of Communication},
    journal = {Bell System Technical Journal},
    year = {1948},
    doi = {10.1002/j.1538-7305.1948.tb01338.x},
    file = {:f.pdf:application/pdf},
}

@book{sicp,
    author = {Abelson, Harold and Sussman, Gerald Jay},
    title = {Structure and Interpretation of Computer Programs},
    year = {1985},
    isbn = {0-262-01077-1},
}
""",
        encoding="utf-8",
    )
    return path
