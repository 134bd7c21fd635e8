"""BibTeX importer using the storage parser."""

import logging
from pathlib import Path

from refmerge.core.models import Record

from ..files import FileSystem
from ..parser import BibtexParser, ParseWarning

logger = logging.getLogger(__name__)


class BibtexImporter:
    """Import entries from BibTeX format."""

    name = "bibtex"

    def __init__(self, fs: FileSystem | None = None):
        self.parser = BibtexParser(fs)

    @property
    def warnings(self) -> list[ParseWarning]:
        """Recoverable problems found by the last import."""
        return self.parser.warnings

    def import_file(self, path: Path) -> tuple[list[Record], list[str]]:
        """Import from BibTeX file.

        Returns:
            Tuple of (records, errors)
        """
        try:
            records = self.parser.parse_file(path)
        except OSError as e:
            return [], [f"Failed to read file: {e}"]
        self.report_warnings(path)
        return records, []

    def import_text(
        self, text: str, base_dir: Path | None = None
    ) -> tuple[list[Record], list[str]]:
        """Import from BibTeX text.

        Returns:
            Tuple of (records, errors)
        """
        records = self.parser.parse(text, base_dir)
        self.report_warnings("<text>")
        return records, []

    def report_warnings(self, source) -> None:
        for warning in self.warnings:
            logger.warning(f"{source}: {warning}")
