"""Tests for field value cleaning and name sanitizing."""

import pytest

from refmerge.core.cleaning import clean_value, sanitize_name


class TestCleanValue:
    """Test raw BibTeX token normalization."""

    def test_strips_doubled_braces(self):
        """Test that every outer brace layer is removed."""
        assert clean_value("{{Title}}") == "Title"
        assert clean_value("{{{Deep}}}") == "Deep"

    def test_strips_one_layer_of_quotes(self):
        """Test that only a single pair of outer quotes is removed."""
        assert clean_value('"Quoted"') == "Quoted"
        assert clean_value('""Twice""') == '"Twice"'

    def test_unescapes_latex_pairs(self):
        """Test the supported LaTeX escapes."""
        assert clean_value(r"Smith \& Sons") == "Smith & Sons"
        assert clean_value(r"50\% off") == "50% off"
        assert clean_value(r"file\_name") == "file_name"
        assert clean_value(r"costs \$5") == "costs $5"

    def test_escaped_braces_become_spaces(self):
        """Test that unescaped braces are then treated like any other brace."""
        assert clean_value(r"a \{b\} c") == "a b c"

    def test_inline_protective_braces(self):
        """Test braces inside a sentence are replaced by whitespace."""
        assert clean_value("A {Mathematical} Theory") == "A Mathematical Theory"
        assert clean_value("{Neural} Networks for {NLP}") == "Neural Networks for NLP"

    def test_trailing_comma_removed_once(self):
        """Test that one trailing comma from a malformed entry is dropped."""
        assert clean_value("Value,") == "Value"
        assert clean_value("Value,,") == "Value,"

    def test_collapses_whitespace(self):
        """Test multi-line values become a single line."""
        assert clean_value("  Deep\n   Learning\t Methods  ") == "Deep Learning Methods"

    def test_empty_input(self):
        """Test empty and whitespace-only values."""
        assert clean_value("") == ""
        assert clean_value("   ") == ""
        assert clean_value("{}") == ""

    def test_hash_is_kept_literally(self):
        """Test that string concatenation is not interpreted."""
        assert clean_value('first # " and " # last') == 'first # " and " # last'

    @pytest.mark.parametrize(
        "raw",
        [
            "{{Title}}",
            '"Quoted value"',
            r"Smith \& Sons",
            "A {Mathematical} Theory",
            "  spaced   out  ",
            "Value,",
            "plain",
        ],
    )
    def test_idempotent(self, raw):
        """Test that cleaning a cleaned value changes nothing."""
        once = clean_value(raw)
        assert clean_value(once) == once


class TestSanitizeName:
    """Test directory name sanitizing."""

    def test_doi(self):
        """Test a DOI becomes a safe directory name."""
        assert sanitize_name("10.1000/xyz.123") == "10_1000_xyz_123"

    def test_keeps_allowed_characters(self):
        """Test letters, digits, underscores and hyphens survive."""
        assert sanitize_name("978-0-13_abc") == "978-0-13_abc"

    def test_collapses_underscore_runs(self):
        """Test repeated replacements collapse to one underscore."""
        assert sanitize_name("a / b") == "a_b"
