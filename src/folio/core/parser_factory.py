"""Format detection and dispatch to the per-format parsers."""

import importlib.util
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from folio.config import ParseSettings
from folio.exceptions import (
    ContainerOpenError,
    FolioError,
    ParseError,
    UnsupportedFormatError,
)
from folio.models.book import Book, BookMetadata
from folio.models.formats import BookFormat

log = logging.getLogger(__name__)


class BookParser(ABC):
    """Abstract base class for book parsers."""

    format_name: str = ""

    def __init__(self, path: Path, settings: ParseSettings | None = None):
        self.path = Path(path)
        self.settings = settings or ParseSettings()

    @abstractmethod
    def parse(self) -> Book:
        """Parse the book and return complete structure."""
        pass

    @abstractmethod
    def get_metadata(self) -> BookMetadata:
        """Extract book metadata."""
        pass


# Third-party modules each format's parser cannot work without
REQUIRED_MODULES: dict[BookFormat, tuple[str, ...]] = {
    BookFormat.EPUB: ("ebooklib",),
    BookFormat.PDF: ("pypdf",),
    BookFormat.MARKDOWN: ("markdown_it", "mdit_py_plugins"),
    BookFormat.PLAIN_TEXT: (),
    BookFormat.HTML: (),
}

# Formats with a metadata path that skips content extraction
METADATA_ONLY_FORMATS = {BookFormat.EPUB, BookFormat.PDF}


def _modules_available(names: tuple[str, ...]) -> bool:
    return all(importlib.util.find_spec(name) is not None for name in names)


class ParserFactory:
    """Factory for creating appropriate parser based on file format."""

    @classmethod
    def detect_format(cls, path: Path) -> BookFormat:
        """Detect file format from extension."""
        return BookFormat.from_path(Path(path))

    @classmethod
    def is_supported(cls, fmt: BookFormat | Path) -> bool:
        """Check whether a format (or a path's format) has a usable parser."""
        if not isinstance(fmt, BookFormat):
            fmt = cls.detect_format(fmt)
        required = REQUIRED_MODULES.get(fmt)
        if required is None:
            return False
        return _modules_available(required)

    @classmethod
    def supported_formats(cls) -> list[BookFormat]:
        return [fmt for fmt in REQUIRED_MODULES if cls.is_supported(fmt)]

    @classmethod
    def create(
        cls, path: Path, settings: ParseSettings | None = None
    ) -> BookParser:
        """Create appropriate parser for the given file.

        Args:
            path: Path to the book file
            settings: Parser tunables (defaults when omitted)

        Returns:
            BookParser instance for the file type

        Raises:
            UnsupportedFormatError: If the format is unknown or unavailable
            ContainerOpenError: If the file is missing or its container is unreadable
        """
        path = Path(path)
        fmt = cls.detect_format(path)

        if not cls.is_supported(fmt):
            if fmt is not BookFormat.UNKNOWN:
                log.warning(f"{fmt.display_name} support unavailable: missing dependency")
            raise UnsupportedFormatError(path, fmt.display_name)

        if not path.is_file():
            raise ContainerOpenError(path, "file not found")

        if fmt is BookFormat.EPUB:
            from folio.core.epub_parser import EpubParser

            return EpubParser(path, settings)
        elif fmt is BookFormat.PDF:
            from folio.core.pdf_parser import PdfParser

            return PdfParser(path, settings)
        elif fmt is BookFormat.MARKDOWN:
            from folio.core.markdown_parser import MarkdownParser

            return MarkdownParser(path, settings)
        elif fmt in (BookFormat.PLAIN_TEXT, BookFormat.HTML):
            from folio.core.text_parser import TextParser

            return TextParser(path, settings)

        # Should never reach here, but satisfy type checker
        raise UnsupportedFormatError(path, fmt.display_name)


def detect(path: Path) -> BookFormat:
    """Detect a file's format from its extension."""
    return ParserFactory.detect_format(path)


def is_supported(fmt: BookFormat) -> bool:
    """Whether a parser for this format is available."""
    return ParserFactory.is_supported(fmt)


def _open(path: Path, settings: ParseSettings) -> BookParser:
    try:
        return ParserFactory.create(path, settings)
    except FolioError:
        raise
    except Exception as e:
        raise ParseError(path, str(e)) from e


def parse_book(path: Path | str, settings: ParseSettings | None = None) -> Book:
    """Parse a book file into the canonical model.

    Fills in word count and reading time. Every failure surfaces as a
    FolioError carrying the path.
    """
    path = Path(path)
    settings = settings or ParseSettings()
    parser = _open(path, settings)

    try:
        book = parser.parse()
    except FolioError:
        raise
    except Exception as e:
        raise ParseError(path, str(e)) from e

    book.metadata.word_count = book.content.word_count()
    book.metadata.calculate_reading_time(settings.words_per_minute)
    log.info(
        f"Parsed {path.name}: {len(book.content.chapters)} chapters, "
        f"{book.metadata.word_count} words"
    )
    return book


def get_metadata(
    path: Path | str, settings: ParseSettings | None = None
) -> BookMetadata:
    """Bibliographic metadata, without extracting content where the format allows."""
    path = Path(path)
    settings = settings or ParseSettings()

    if ParserFactory.detect_format(path) not in METADATA_ONLY_FORMATS:
        return parse_book(path, settings).metadata

    parser = _open(path, settings)
    try:
        return parser.get_metadata()
    except FolioError:
        raise
    except Exception as e:
        raise ParseError(path, str(e)) from e
