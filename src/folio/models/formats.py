"""Source format detection."""

from enum import Enum
from pathlib import Path


class BookFormat(str, Enum):
    """Format of a source document, as detected from its file extension."""

    EPUB = "epub"
    PDF = "pdf"
    MARKDOWN = "markdown"
    PLAIN_TEXT = "txt"
    HTML = "html"
    UNKNOWN = "unknown"

    @classmethod
    def from_path(cls, path: Path) -> "BookFormat":
        """Detect format from the file extension (case-insensitive)."""
        return _EXTENSIONS.get(Path(path).suffix.lower(), cls.UNKNOWN)

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_EXTENSIONS: dict[str, BookFormat] = {
    ".epub": BookFormat.EPUB,
    ".pdf": BookFormat.PDF,
    ".md": BookFormat.MARKDOWN,
    ".markdown": BookFormat.MARKDOWN,
    ".txt": BookFormat.PLAIN_TEXT,
    ".text": BookFormat.PLAIN_TEXT,
    ".html": BookFormat.HTML,
    ".htm": BookFormat.HTML,
    ".xhtml": BookFormat.HTML,
}

_DISPLAY_NAMES: dict[BookFormat, str] = {
    BookFormat.EPUB: "EPUB",
    BookFormat.PDF: "PDF",
    BookFormat.MARKDOWN: "Markdown",
    BookFormat.PLAIN_TEXT: "Plain Text",
    BookFormat.HTML: "HTML",
    BookFormat.UNKNOWN: "Unknown",
}
