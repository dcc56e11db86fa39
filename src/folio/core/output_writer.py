"""Write parsed books to their JSON storage representation and read them back."""

import logging
import re
from pathlib import Path

from folio.exceptions import ParseError
from folio.models.book import Book

log = logging.getLogger(__name__)


def book_to_json(book: Book, indent: int | None = 2) -> str:
    """Serialize a book. Cover and image bytes are left out."""
    return book.model_dump_json(indent=indent)


def book_from_json(data: str | bytes) -> Book:
    """Rebuild a book from its JSON representation."""
    return Book.model_validate_json(data)


def get_default_output_path(book: Book, output_dir: Path) -> Path:
    """Output file name derived from the source file name."""
    stem = book.source_path.stem
    # Clean up the filename
    clean_stem = re.sub(r"[^\w\s-]", "", stem).strip()
    clean_stem = re.sub(r"[-\s]+", "_", clean_stem) or "book"
    return output_dir / f"{clean_stem}.json"


class OutputWriter:
    """Write parsed books to an output directory."""

    def __init__(self, output_dir: Path):
        """Initialize output writer.

        Args:
            output_dir: Directory to write output files
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def write_book(self, book: Book, filename: str | None = None) -> Path:
        """Write a single book to a JSON file and return its path."""
        if filename:
            filepath = self.output_dir / filename
        else:
            filepath = get_default_output_path(book, self.output_dir)

        filepath.write_text(book_to_json(book), encoding="utf-8")
        log.info(f"Wrote {filepath}")
        return filepath


def load_book(path: Path) -> Book:
    """Load a book previously written by OutputWriter.

    Raises:
        ParseError: If the file is unreadable or not a stored book
    """
    path = Path(path)
    try:
        return book_from_json(path.read_bytes())
    except OSError as e:
        raise ParseError(path, f"cannot read stored book: {e}") from e
    except ValueError as e:
        # pydantic.ValidationError is a ValueError
        raise ParseError(path, f"invalid stored book: {e}") from e
