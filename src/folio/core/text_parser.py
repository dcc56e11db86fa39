"""Plain text and HTML parsing: line grouping with header-like line detection."""

import logging
from pathlib import Path

from folio.config import ParseSettings
from folio.core.heuristics import split_text_blocks
from folio.core.html_normalizer import html_to_text
from folio.core.parser_factory import BookParser
from folio.exceptions import ContainerOpenError
from folio.models.blocks import ContentBlock, Heading
from folio.models.book import Book, BookContent, BookMetadata, Chapter
from folio.models.formats import BookFormat

log = logging.getLogger(__name__)

CHAPTER_HEADING_PREFIXES = ("chapter", "part")


def _is_chapter_heading(block: ContentBlock) -> bool:
    return isinstance(block, Heading) and block.text.lower().startswith(
        CHAPTER_HEADING_PREFIXES
    )


def assemble_chapters(blocks: list[ContentBlock]) -> list[Chapter]:
    """Group blocks into chapters at "Chapter"/"Part" headings.

    Needs at least two such headings to split; anything before the first
    becomes a front matter chapter. Otherwise the document is one chapter.
    """
    starts = [i for i, block in enumerate(blocks) if _is_chapter_heading(block)]
    if len(starts) < 2:
        return [Chapter(id="main", title="Document", blocks=blocks, order=0)]

    chapters: list[Chapter] = []
    if starts[0] > 0:
        chapters.append(
            Chapter(id="front-matter", title="Front Matter", blocks=blocks[: starts[0]])
        )

    bounds = [*starts, len(blocks)]
    for start, end in zip(bounds, bounds[1:]):
        chapters.append(
            Chapter(
                id=f"chapter-{len(chapters)}",
                title=blocks[start].text,
                blocks=blocks[start:end],
            )
        )

    for index, chapter in enumerate(chapters):
        chapter.order = index
    return chapters


class TextParser(BookParser):
    """Parse plain text and HTML files."""

    def __init__(self, path: Path, settings: ParseSettings | None = None):
        super().__init__(path, settings)
        self.is_html = BookFormat.from_path(self.path) is BookFormat.HTML
        self.format_name = BookFormat.HTML.value if self.is_html else BookFormat.PLAIN_TEXT.value
        try:
            self.source = self.path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise ContainerOpenError(path, f"cannot read file: {e}") from e

    def parse(self) -> Book:
        """Parse the document and return complete structure."""
        text = self.source
        if self.is_html:
            text = html_to_text(text, width=self.settings.html_text_width)

        blocks = split_text_blocks(text)
        chapters = assemble_chapters(blocks)
        log.debug(f"{self.path.name}: {len(blocks)} blocks in {len(chapters)} chapters")

        return Book(
            metadata=self.get_metadata(),
            content=BookContent(chapters=chapters, toc=[]),
            source_path=self.path,
            format=self.format_name,
        )

    def get_metadata(self) -> BookMetadata:
        """Plain files carry no metadata beyond their name."""
        return BookMetadata(title=self.path.stem)
