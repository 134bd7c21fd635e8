"""Resilient BibTeX parser for exported bibliographies.

Features:
- Entries delimited by either braces or parentheses
- Braced, quoted and bare field values with nested braces
- Error recovery: malformed fields are dropped, not whole entries
- Unknown fields preserved as ``name = {value}`` note fragments
- ``file`` fields resolved to existing attachment sources

Parsing never raises on malformed text. An unterminated entry ends
parsing of the remaining document.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from refmerge.core.cleaning import clean_value
from refmerge.core.fields import record_attribute
from refmerge.core.models import Record, unique

from .files import FileSystem, LocalFileSystem, read_source

logger = logging.getLogger(__name__)

DELIMITERS = {"{": "}", "(": ")"}
NOTE_SEPARATOR = "; "
# Entry types that never describe a reference.
NON_RECORD_TYPES = frozenset({"comment", "preamble", "string"})


@dataclass
class ParseWarning:
    """A recoverable problem found while scanning."""

    message: str
    offset: int

    def __str__(self) -> str:
        return f"Offset {self.offset}: {self.message}"


@dataclass
class EntrySpan:
    """Location and raw content of one ``@type{...}`` block."""

    entry_type: str
    body: str
    start: int
    end: int


class Cursor:
    """Position over a piece of text with peek/advance helpers."""

    def __init__(self, text: str, pos: int = 0):
        self.text = text
        self.pos = pos

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def current_char(self) -> str | None:
        if self.pos >= len(self.text):
            return None
        return self.text[self.pos]

    def advance(self, count: int = 1) -> None:
        self.pos = min(self.pos + count, len(self.text))

    def read_while(self, predicate: Callable[[str], bool]) -> str:
        start = self.pos
        while not self.at_end() and predicate(self.text[self.pos]):
            self.pos += 1
        return self.text[start : self.pos]

    def skip_whitespace(self) -> None:
        self.read_while(str.isspace)

    def skip_past(self, char: str) -> None:
        """Move just past the next ``char``, or to the end."""
        index = self.text.find(char, self.pos)
        self.pos = len(self.text) if index < 0 else index + 1

    def skip_group(self, open_char: str, close_char: str) -> bool:
        """Skip a balanced group starting at the current ``open_char``.

        Only the given delimiter pair is depth-tracked. Returns False,
        with the cursor at the end, when the group never closes.
        """
        depth = 0
        while not self.at_end():
            char = self.text[self.pos]
            self.pos += 1
            if char == open_char:
                depth += 1
            elif char == close_char:
                depth -= 1
                if depth == 0:
                    return True
        return False


class BibtexParser:
    """BibTeX parser producing transient Records.

    Attachment sources named in ``file`` fields are resolved relative to
    ``base_dir`` and kept on ``Record.sources`` when they exist; copying
    them into storage is left to the attachment resolver.
    """

    def __init__(self, fs: FileSystem | None = None):
        self.fs = fs or LocalFileSystem()
        self.warnings: list[ParseWarning] = []

    def parse(self, text: str, base_dir: Path | None = None) -> list[Record]:
        """Parse BibTeX text into records."""
        self.warnings = []
        records = []
        pos = 0

        while True:
            span = self.find_entry(text, pos)
            if span is None:
                break

            if span.entry_type in NON_RECORD_TYPES:
                logger.debug(f"Skipping @{span.entry_type} at {span.start}")
                pos = span.end
                continue

            record = self.parse_entry(span, base_dir)
            if record.has_signal():
                records.append(record)
            else:
                logger.debug(f"Skipping empty @{span.entry_type} entry at {span.start}")

            pos = span.end

        return records

    def parse_file(self, path: Path) -> list[Record]:
        """Parse a BibTeX file; relative attachment paths resolve next to it."""
        path = Path(path).absolute()
        return self.parse(read_source(path), base_dir=path.parent)

    def find_entry(self, text: str, pos: int) -> EntrySpan | None:
        """Locate the next complete entry at or after ``pos``.

        Returns None when no further entry can be read, either because
        no ``@`` remains or because the next entry never closes.
        """
        at = text.find("@", pos)
        if at < 0:
            return None

        brace = text.find("{", at)
        paren = text.find("(", at)
        if brace >= 0 and (paren < 0 or brace < paren):
            start = brace
        elif paren >= 0:
            start = paren
        else:
            return None

        open_char = text[start]
        cursor = Cursor(text, start)
        if not cursor.skip_group(open_char, DELIMITERS[open_char]):
            self.warnings.append(ParseWarning("Unterminated entry", at))
            return None

        return EntrySpan(
            entry_type=text[at + 1 : start].strip().lower(),
            body=text[start + 1 : cursor.pos - 1],
            start=at,
            end=cursor.pos,
        )

    def parse_entry(self, span: EntrySpan, base_dir: Path | None = None) -> Record:
        """Build a record from one entry body."""
        body = span.body
        comma = body.find(",")
        if comma >= 0:
            key = body[:comma].strip()
            field_text = body[comma + 1 :]
        else:
            key = ""
            field_text = body

        values: dict[str, str] = {}
        fragments: list[str] = []
        sources: list[str] = []

        for name, value in self.parse_fields(field_text, span.start):
            if name == "file":
                sources.extend(self.file_sources(value, base_dir))
                continue

            attribute = record_attribute(name)
            if attribute is None:
                fragments.append(f"{name} = {{{value}}}")
            else:
                values[attribute] = value

        note_parts = [values.pop("note", "")] + fragments
        note = NOTE_SEPARATOR.join(p for p in note_parts if p)

        return Record(
            type=span.entry_type,
            citation_key=key,
            note=note,
            sources=unique(sources),
            **values,
        )

    def parse_fields(self, text: str, offset: int = 0) -> list[tuple[str, str]]:
        """Scan ``name = value`` pairs, returning cleaned values.

        A field without ``=`` is dropped up to the next comma; the rest
        of the entry is still read.
        """
        fields = []
        cursor = Cursor(text)

        while True:
            cursor.skip_whitespace()
            if cursor.at_end():
                break

            name = cursor.read_while(lambda c: c.isalnum() or c in "_-").lower()
            cursor.skip_whitespace()

            if not name or cursor.current_char() != "=":
                self.warnings.append(
                    ParseWarning(f"Malformed field {name!r}", offset + cursor.pos)
                )
                cursor.skip_past(",")
                continue

            cursor.advance()
            cursor.skip_whitespace()

            fields.append((name, clean_value(self.read_value(cursor))))

            cursor.skip_whitespace()
            if cursor.current_char() == ",":
                cursor.advance()

        return fields

    def read_value(self, cursor: Cursor) -> str:
        """Read one raw field value in braced, quoted or bare form."""
        char = cursor.current_char()
        if char == "{":
            return self.read_braced(cursor)
        if char == '"':
            return self.read_quoted(cursor)
        return self.read_bare(cursor)

    def read_braced(self, cursor: Cursor) -> str:
        start = cursor.pos + 1
        closed = cursor.skip_group("{", "}")
        end = cursor.pos - 1 if closed else cursor.pos
        return cursor.text[start:end]

    def read_quoted(self, cursor: Cursor) -> str:
        cursor.advance()
        start = cursor.pos
        while not cursor.at_end() and cursor.current_char() != '"':
            # \" does not terminate the value
            cursor.advance(2 if cursor.current_char() == "\\" else 1)
        value = cursor.text[start : cursor.pos]
        cursor.advance()
        return value

    def read_bare(self, cursor: Cursor) -> str:
        start = cursor.pos
        while not cursor.at_end() and cursor.current_char() != ",":
            if cursor.current_char() == "{":
                cursor.skip_group("{", "}")
            else:
                cursor.advance()
        return cursor.text[start : cursor.pos]

    def file_sources(self, value: str, base_dir: Path | None = None) -> list[str]:
        """Resolve a ``file`` field to the source paths that exist.

        Segments are ``;``-separated and shaped ``Description:path:mime``,
        ``path:mime`` or a bare path.
        """
        found = []
        for segment in value.split(";"):
            segment = segment.strip()
            columns = segment.split(":")
            if len(columns) >= 3:
                candidate = columns[1]
            elif len(columns) == 2:
                candidate = columns[0]
            else:
                candidate = segment
            candidate = candidate.strip()
            if not candidate:
                continue

            path = Path(candidate)
            if not path.is_absolute():
                path = (base_dir or Path.cwd()) / path
            path = Path(os.path.normpath(path))

            if self.fs.exists(path):
                found.append(str(path))
            else:
                logger.debug(f"Attachment source not found: {path}")
        return found


def parse_bibtex(text: str, base_dir: Path | None = None) -> list[Record]:
    """Parse BibTeX text with a default parser."""
    return BibtexParser().parse(text, base_dir)
