"""EndNote XML importer."""

from .base import Block, LineImporter, tag_text, tag_texts

# Tag -> record field, read one line at a time.
TAG_MAPPING = {
    "title": "title",
    "year": "year",
    "publisher": "publisher",
    "electronic-resource-num": "doi",
    "isbn": "isbn",
    "pages": "pages",
    "volume": "volume",
    "number": "number",
    "secondary-title": "journal",
    "pub-location": "address",
    "abstract": "abstract",
    "url": "url",
    "language": "language",
}


class EndnoteImporter(LineImporter):
    """Import entries from EndNote XML exports."""

    name = "endnote"

    def starts_block(self, line: str) -> bool:
        return "<record>" in line

    def read_line(self, block: Block, line: str) -> None:
        for tag, name in TAG_MAPPING.items():
            block.set(name, tag_text(line, tag))

        block.authors.extend(tag_texts(line, "author"))
