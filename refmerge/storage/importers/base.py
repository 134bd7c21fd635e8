"""Shared machinery for the line-oriented XML importers.

These are not XML parsers. Each importer watches for a record-boundary
marker and pulls known tag pairs out of single lines by substring
delimiting, so broken or partial exports still yield whatever fields
can be found.
"""

import html
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from refmerge.core.models import Record, unique

from ..files import FileSystem, LocalFileSystem, read_source

logger = logging.getLogger(__name__)

_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")

AUTHOR_SEPARATOR = " and "


def strip_tags(text: str) -> str:
    """Drop markup, unescape entities and collapse whitespace."""
    text = html.unescape(_TAG.sub(" ", text))
    return _WHITESPACE.sub(" ", text).strip()


def tag_text(line: str, tag: str) -> str | None:
    """Text between ``<tag>`` and ``</tag>`` on one line.

    Returns None when the opening tag is absent. A missing closing tag
    takes the rest of the line.
    """
    opening = f"<{tag}>"
    start = line.find(opening)
    if start < 0:
        return None
    start += len(opening)
    end = line.find(f"</{tag}>", start)
    return strip_tags(line[start:] if end < 0 else line[start:end])


def tag_texts(line: str, tag: str) -> list[str]:
    """Every non-empty ``<tag>...</tag>`` value on one line, in order."""
    pattern = re.compile(rf"<{re.escape(tag)}>(.*?)</{re.escape(tag)}>")
    return [v for v in (strip_tags(m) for m in pattern.findall(line)) if v]


@dataclass
class Block:
    """Fields gathered for one record while scanning."""

    about: str = ""
    fields: dict[str, str] = field(default_factory=dict)
    authors: list[str] = field(default_factory=list)
    links: list[str] = field(default_factory=list)

    def set(self, name: str, value: str | None) -> None:
        if value:
            self.fields[name] = value

    def get(self, name: str) -> str:
        if name == "authors":
            return AUTHOR_SEPARATOR.join(self.authors)
        return self.fields.get(name, "")

    def to_record(self, sources: list[str] | None = None) -> Record:
        data = dict(self.fields)
        if self.authors:
            data["authors"] = self.get("authors")
        return Record.from_fields(data, sources=unique(sources or []))


class LineImporter:
    """Base class for boundary-marker importers.

    Subclasses set ``name``, ``signal_fields`` and implement
    ``starts_block`` and ``read_line``.
    """

    name = "xml"
    signal_fields: tuple[str, ...] = ("title", "authors")

    def __init__(self, fs: FileSystem | None = None):
        self.fs = fs or LocalFileSystem()

    def import_file(self, path: Path) -> tuple[list[Record], list[str]]:
        """Import from a file.

        Returns:
            Tuple of (records, errors)
        """
        path = Path(path).absolute()
        try:
            content = read_source(path)
        except OSError as e:
            return [], [f"Failed to read file: {e}"]
        return self.import_text(content, base_dir=path.parent)

    def import_text(
        self, text: str, base_dir: Path | None = None
    ) -> tuple[list[Record], list[str]]:
        """Import from text; relative attachment paths resolve against ``base_dir``.

        Returns:
            Tuple of (records, errors)
        """
        self.prepare(text)
        records: list[Record] = []
        block: Block | None = None

        # Lines before the first boundary belong to no record.
        for line in text.splitlines():
            if self.starts_block(line):
                if block is not None:
                    self.emit(block, records, base_dir)
                block = self.new_block(line)
            if block is not None:
                self.read_line(block, line)

        if block is not None:
            self.emit(block, records, base_dir)
        logger.debug(f"{self.name}: {len(records)} records")
        return records, []

    def prepare(self, text: str) -> None:
        """Hook for a first pass over the whole document."""

    def new_block(self, line: str) -> Block:
        return Block()

    def starts_block(self, line: str) -> bool:
        raise NotImplementedError

    def read_line(self, block: Block, line: str) -> None:
        raise NotImplementedError

    def sources_for(self, block: Block, base_dir: Path | None) -> list[str]:
        return []

    def emit(self, block: Block, records: list[Record], base_dir: Path | None) -> None:
        if any(block.get(name) for name in self.signal_fields):
            records.append(block.to_record(self.sources_for(block, base_dir)))
