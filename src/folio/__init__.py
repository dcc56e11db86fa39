"""Recover chapters, headings and metadata from EPUB, PDF, Markdown, text and HTML."""

from folio.config import ParseSettings
from folio.core.parser_factory import (
    ParserFactory,
    detect,
    get_metadata,
    is_supported,
    parse_book,
)
from folio.exceptions import (
    ConfigurationError,
    ContainerOpenError,
    FolioError,
    ParseError,
    UnsupportedFormatError,
)
from folio.models import Book, BookFormat, BookMetadata, Chapter, TocEntry

__version__ = "0.1.0"

__all__ = [
    "parse_book",
    "get_metadata",
    "detect",
    "is_supported",
    "ParserFactory",
    "ParseSettings",
    # Models
    "Book",
    "BookFormat",
    "BookMetadata",
    "Chapter",
    "TocEntry",
    # Errors
    "FolioError",
    "ContainerOpenError",
    "UnsupportedFormatError",
    "ParseError",
    "ConfigurationError",
]
