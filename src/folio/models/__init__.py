"""Data models."""

from folio.models.blocks import (
    BaseBlock,
    Break,
    Code,
    ContentBlock,
    Footnote,
    Heading,
    Image,
    ListBlock,
    Paragraph,
    Quote,
    RawHtml,
    Separator,
    StyleType,
    Table,
    TextStyle,
    block_text,
)
from folio.models.book import (
    Book,
    BookContent,
    BookMetadata,
    Chapter,
    TocEntry,
)
from folio.models.formats import BookFormat

__all__ = [
    # Book models
    "Book",
    "BookContent",
    "BookMetadata",
    "Chapter",
    "TocEntry",
    "BookFormat",
    # Content blocks
    "BaseBlock",
    "ContentBlock",
    "Paragraph",
    "Heading",
    "Quote",
    "Code",
    "Image",
    "ListBlock",
    "Table",
    "Footnote",
    "Separator",
    "RawHtml",
    "Break",
    "StyleType",
    "TextStyle",
    "block_text",
]
