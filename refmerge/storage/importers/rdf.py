"""Zotero RDF importer.

Zotero exports attachments as separate ``<z:Attachment>`` resources that
items point at through ``<link:link rdf:resource="#item_N"/>``. A first
pass maps attachment anchors to their ``files/...`` paths; the
line scan then links every item to the files that exist next to the
export.
"""

import logging
import os
import re
from pathlib import Path

from .base import Block, LineImporter, strip_tags, tag_text

logger = logging.getLogger(__name__)

ATTACHMENT_BLOCK = re.compile(
    r'<z:Attachment[^>]*rdf:about="([^"]+)".*?</z:Attachment>', re.DOTALL
)
ATTACHMENT_RESOURCE = re.compile(r"files/[^\"'\s>]+")
ABOUT = re.compile(r'rdf:about="([^"]+)"')
RESOURCE = re.compile(r'rdf:resource="([^"]+)"')
ISBN = re.compile(r"(97[89][- ]?[0-9][-0-9 ]+)")
DOI = re.compile(r"(10\.\S+)")

PUBLISHER_TAGS = ("<dc:publisher>", "<bib:publisher>", "<dcterms:publisher>")


class RdfImporter(LineImporter):
    """Import entries from Zotero RDF exports."""

    name = "rdf"
    signal_fields = ("title", "authors", "doi", "isbn")

    def __init__(self, fs=None):
        super().__init__(fs)
        self.attachment_map: dict[str, list[str]] = {}
        self._in_attachment = False

    def prepare(self, text: str) -> None:
        self.attachment_map = {}
        self._in_attachment = False
        for match in ATTACHMENT_BLOCK.finditer(text):
            resource = ATTACHMENT_RESOURCE.search(match.group(0))
            if resource:
                self.attachment_map.setdefault(match.group(1), []).append(
                    resource.group(0)
                )

    def starts_block(self, line: str) -> bool:
        return "<rdf:Description" in line and "rdf:about=" in line

    def new_block(self, line: str) -> Block:
        match = ABOUT.search(line)
        return Block(about=match.group(1) if match else "")

    def read_line(self, block: Block, line: str) -> None:
        # Attachment titles must not replace the item title.
        if "<z:Attachment" in line:
            self._in_attachment = True
        if self._in_attachment:
            if "</z:Attachment>" in line:
                self._in_attachment = False
            return

        block.set("title", tag_text(line, "dc:title"))

        creator = tag_text(line, "dc:creator")
        if creator:
            block.authors.append(creator)

        surname = tag_text(line, "foaf:surname")
        if surname:
            block.authors.append(surname)
        given = tag_text(line, "foaf:givenName")
        if given and block.authors:
            block.authors[-1] = f"{block.authors[-1]}, {given}"

        date = tag_text(line, "dc:date")
        if date:
            block.set("year", date[:4])

        if any(tag in line for tag in PUBLISHER_TAGS):
            block.set("publisher", strip_tags(line))

        if "<bib:doi>" in line or "<dc:identifier>" in line:
            self.read_identifier(block, strip_tags(line))

        if "link:link" in line and "rdf:resource=" in line:
            match = RESOURCE.search(line)
            if match:
                block.links.append(match.group(1))

    def read_identifier(self, block: Block, value: str) -> None:
        """Pick an ISBN or DOI out of an identifier value."""
        if "isbn" in value.lower():
            match = ISBN.search(value)
            if match:
                block.set("isbn", match.group(1).strip())
        elif "10." in value or "doi:" in value.lower():
            match = DOI.search(value)
            if match:
                block.set("doi", match.group(1).strip())

    def sources_for(self, block: Block, base_dir: Path | None) -> list[str]:
        base = base_dir or Path.cwd()
        found = []
        for anchor in block.links:
            for relative in self.attachment_map.get(anchor, []):
                path = Path(os.path.normpath(base / relative))
                if self.fs.exists(path):
                    found.append(str(path))
                else:
                    logger.debug(f"RDF attachment not found: {path}")
        return found
