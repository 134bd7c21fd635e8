"""Tests for the Record model and the extra-fields codec."""

import msgspec
import pytest

from refmerge.core.fields import SCALAR_FIELDS, record_attribute
from refmerge.core.models import (
    Record,
    decode_extra,
    encode_extra,
    split_paths,
    unique,
)


class TestRecord:
    """Test Record construction and conversion."""

    def test_defaults_are_empty(self):
        """Test a bare record has empty fields."""
        record = Record()

        assert record.id == ""
        assert record.title == ""
        assert record.attachments == ()
        assert record.collections == ()
        assert record.extra == {}
        assert not record.has_signal()

    def test_frozen(self):
        """Test records cannot be mutated in place."""
        record = Record(title="A")
        with pytest.raises(AttributeError):
            record.title = "B"

    def test_pdf_path_joins_attachments(self):
        """Test the semicolon-joined storage form."""
        record = Record(attachments=("/a.pdf", "/b.pdf"))
        assert record.pdf_path == "/a.pdf;/b.pdf"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"title": "T"},
            {"authors": "A"},
            {"doi": "10.1/x"},
            {"isbn": "978"},
            {"attachments": ("/f.pdf",)},
            {"citation_key": "k"},
            {"url": "http://x"},
            {"note": "n"},
        ],
    )
    def test_has_signal(self, kwargs):
        """Test each field that makes a record worth importing."""
        assert Record(**kwargs).has_signal()

    def test_year_alone_is_noise(self):
        """Test a record with only a year is not importable."""
        assert not Record(year="2020", journal="J").has_signal()

    def test_to_row_drops_transient_fields(self):
        """Test that citation key and pending sources are not stored."""
        record = Record(
            id="r1",
            title="T",
            citation_key="key",
            sources=("/src.pdf",),
            attachments=("/a.pdf",),
            extra={"custom": "v"},
        )
        row = record.to_row()

        assert row["id"] == "r1"
        assert row["title"] == "T"
        assert row["pdf_path"] == "/a.pdf"
        assert row["extra"] == '{"custom":"v"}'
        assert "citation_key" not in row
        assert "sources" not in row
        assert set(SCALAR_FIELDS) <= set(row)

    def test_from_row(self):
        """Test rebuilding a record from its stored form."""
        row = {
            "id": "r1",
            "title": "T",
            "authors": None,
            "pdf_path": "/a.pdf;;/b.pdf;/a.pdf",
            "extra": '{"Custom":"v"}',
        }
        record = Record.from_row(row, ["B", "A", "B"])

        assert record.id == "r1"
        assert record.title == "T"
        assert record.authors == ""
        assert record.attachments == ("/a.pdf", "/b.pdf")
        assert record.collections == ("B", "A")
        assert record.extra == {"custom": "v"}

    def test_from_fields_routes_unknown_names_to_extra(self):
        """Test canonical names land on attributes, others in extra."""
        record = Record.from_fields(
            {"Title": "T", "DOI": "10.1/x", "accessDate": "2024", "pdf_path": "/x"}
        )

        assert record.title == "T"
        assert record.doi == "10.1/x"
        assert record.extra == {"accessdate": "2024"}

    def test_from_fields_explicit_extra_wins(self):
        """Test an explicit extra mapping overrides loose keys."""
        record = Record.from_fields(
            {"custom": "loose"}, extra={"custom": "explicit", "title": "ignored"}
        )

        assert record.extra == {"custom": "explicit"}
        assert record.title == ""

    def test_replace(self):
        """Test deriving a new version with msgspec."""
        record = Record(title="A")
        updated = msgspec.structs.replace(record, year="2020")

        assert updated.year == "2020"
        assert record.year == ""


class TestExtraCodec:
    """Test the compact JSON extra-fields codec."""

    def test_encode_empty(self):
        """Test an empty blob is stored as an empty string."""
        assert encode_extra({}) == ""

    def test_encode_compact(self):
        """Test compact JSON without spaces."""
        assert encode_extra({"a": "1", "b": "2"}) == '{"a":"1","b":"2"}'

    def test_decode_malformed(self):
        """Test malformed JSON decodes to an empty mapping."""
        assert decode_extra("{not json") == {}
        assert decode_extra("") == {}

    def test_decode_non_object(self):
        """Test JSON that is not an object is ignored."""
        assert decode_extra("[1, 2]") == {}
        assert decode_extra('"text"') == {}

    def test_decode_keeps_non_string_values_as_json(self):
        """Test nested values survive as JSON text."""
        assert decode_extra('{"n": 3, "l": [1]}') == {"n": "3", "l": "[1]"}

    def test_decode_drops_canonical_keys(self):
        """Test extra keys never shadow canonical fields."""
        assert decode_extra('{"doi": "x", "Other": "y"}') == {"other": "y"}


class TestHelpers:
    """Test small helpers."""

    def test_split_paths(self):
        """Test splitting the stored attachment list."""
        assert split_paths(" /a ; /b ;; /a ") == ("/a", "/b")
        assert split_paths("") == ()

    def test_unique_keeps_first_order(self):
        """Test order-preserving de-duplication."""
        assert unique(["b", "a", "", "b", "c"]) == ("b", "a", "c")

    def test_record_attribute(self):
        """Test BibTeX name mapping."""
        assert record_attribute("author") == "authors"
        assert record_attribute("journal") == "journal"
        assert record_attribute("type") is None
        assert record_attribute("custom") is None
