"""Tests for attachment placement."""

from pathlib import Path

import pytest

from refmerge.core.models import Record
from refmerge.storage.attachments import (
    AttachmentResolver,
    author_last_token,
    storage_key,
)


class TestStorageKey:
    """Test per-record directory naming priority."""

    def test_doi_first(self):
        """Test DOI wins over every other key."""
        record = Record(doi="10.1000/abc", isbn="978-1", citation_key="k")
        assert storage_key(record) == "10_1000_abc"

    def test_isbn_second(self):
        """Test ISBN is used without a DOI."""
        record = Record(isbn="978-0-201-13447-6", citation_key="k")
        assert storage_key(record) == "978-0-201-13447-6"

    def test_citation_key_third(self):
        """Test the citation key is used without DOI or ISBN."""
        record = Record(citation_key="knuth:1984", authors="Knuth, Donald")
        assert storage_key(record) == "knuth_1984"

    def test_author_year(self):
        """Test the author/year fallback."""
        record = Record(authors="Donald E. Knuth and Leslie Lamport", year="1984")
        assert storage_key(record) == "Knuth_1984"

    def test_unknown_fallback(self):
        """Test the fallback for records with nothing to go on."""
        assert storage_key(Record(title="T")) == "unknown_0000"


class TestAuthorLastToken:
    """Test family-name extraction."""

    @pytest.mark.parametrize(
        "authors,expected",
        [
            ("Doe, John and Smith, Jane", "Doe"),
            ("John Doe and Jane Smith", "Doe"),
            ("Plato", "Plato"),
            ("", ""),
        ],
    )
    def test_tokens(self, authors, expected):
        """Test comma and space separated names."""
        assert author_last_token(authors) == expected


class TestAttachmentResolver:
    """Test copying, collision avoidance and blob writes."""

    def test_resolve_copies_sources(self, resolver, storage_root, source_dir):
        """Test sources are copied into the record directory."""
        source = source_dir / "f.pdf"
        record = Record(doi="10.1/x", sources=(str(source),))

        resolved = resolver.resolve(record)

        expected = storage_root / "10_1_x" / "f.pdf"
        assert resolved.attachments == (str(expected),)
        assert resolved.sources == ()
        assert expected.read_bytes() == source.read_bytes()
        assert source.exists()

    def test_collisions_get_numbered(self, resolver, storage_root, source_dir):
        """Test an existing file is never overwritten."""
        source = source_dir / "f.pdf"
        record = Record(doi="10.1/x")

        first = resolver.attach(record, source)
        second = resolver.attach(first, source)
        third = resolver.attach(second, source)

        directory = storage_root / "10_1_x"
        assert third.attachments == (
            str(directory / "f.pdf"),
            str(directory / "f_1.pdf"),
            str(directory / "f_2.pdf"),
        )

    def test_existing_attachments_kept(self, resolver, source_dir):
        """Test resolved paths are appended after existing ones."""
        record = Record(doi="10.1/x", attachments=("/already/there.pdf",))

        resolved = resolver.attach(record, source_dir / "f.pdf")

        assert resolved.attachments[0] == "/already/there.pdf"
        assert len(resolved.attachments) == 2

    def test_missing_source_is_skipped(self, resolver, tmp_path):
        """Test a vanished source leaves the record unchanged."""
        record = Record(doi="10.1/x")
        resolved = resolver.attach(record, tmp_path / "nope.pdf")
        assert resolved.attachments == ()

    def test_copy_failure_is_swallowed(self, storage_root, source_dir):
        """Test an OSError during copy skips only that file."""

        class FailingFileSystem:
            def exists(self, path):
                return Path(path).exists()

            def copy_file(self, src, dst):
                raise PermissionError("read-only")

            def create_directories(self, path):
                Path(path).mkdir(parents=True, exist_ok=True)

            def write_bytes(self, path, data):
                raise PermissionError("read-only")

        resolver = AttachmentResolver(storage_root, FailingFileSystem())
        record = Record(doi="10.1/x", sources=(str(source_dir / "f.pdf"),))

        resolved = resolver.resolve(record)

        assert resolved.attachments == ()
        assert resolver.write_blob("id", "a.pdf", b"x") is None

    def test_write_blob(self, resolver, storage_root):
        """Test uploaded bytes land in the named directory."""
        first = resolver.write_blob("rec-1", "paper.pdf", b"one")
        second = resolver.write_blob("rec-1", "paper.pdf", b"two")

        assert first == str(storage_root / "rec-1" / "paper.pdf")
        assert second == str(storage_root / "rec-1" / "paper_1.pdf")
        assert Path(second).read_bytes() == b"two"

    def test_write_blob_strips_directories(self, resolver, storage_root):
        """Test uploaded names cannot escape the record directory."""
        path = resolver.write_blob("rec-1", "../../etc/evil.pdf", b"x")
        assert path == str(storage_root / "rec-1" / "evil.pdf")

        windows = resolver.write_blob("rec-1", "C:\\Users\\me\\doc.pdf", b"x")
        assert windows == str(storage_root / "rec-1" / "doc.pdf")

    def test_write_blob_without_name(self, resolver):
        """Test an empty filename writes nothing."""
        assert resolver.write_blob("rec-1", "", b"x") is None

    def test_unique_destination_without_suffix(self, resolver, tmp_path):
        """Test numbering of names without an extension."""
        (tmp_path / "README").write_text("x")
        assert resolver.unique_destination(tmp_path, "README") == tmp_path / "README_1"
