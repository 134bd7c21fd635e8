"""Mendeley XML importer."""

from .base import Block, LineImporter, strip_tags, tag_text, tag_texts

TAG_MAPPING = {
    "title": "title",
    "publisher": "publisher",
    "year": "year",
    "doi": "doi",
    "isbn": "isbn",
    "url": "url",
}


class MendeleyImporter(LineImporter):
    """Import entries from Mendeley XML exports."""

    name = "mendeley"

    def starts_block(self, line: str) -> bool:
        return "<document>" in line

    def read_line(self, block: Block, line: str) -> None:
        for tag, name in TAG_MAPPING.items():
            block.set(name, tag_text(line, tag))

        if "<author>" in line:
            block.authors.extend(tag_texts(line, "author"))
        elif "<authors>" in line:
            authors = strip_tags(line)
            if authors:
                block.authors.append(authors)
