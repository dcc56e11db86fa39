"""PDF parsing: whole-document text extraction plus heuristic structure recovery."""

import logging
import math
import re
from pathlib import Path

# Suppress warnings about malformed PDF object references from PDF libraries
logging.getLogger("pdfminer").setLevel(logging.ERROR)
logging.getLogger("pypdf").setLevel(logging.ERROR)

import pdfplumber
import pypdf
from pypdf import PasswordType
from pypdf.errors import EmptyFileError, FileNotDecryptedError, PdfReadError

from folio.config import ParseSettings
from folio.core.fallback import FallbackChain
from folio.core.heuristics import classify_paragraphs, split_into_chapters
from folio.core.parser_factory import BookParser
from folio.exceptions import ContainerOpenError
from folio.models.blocks import ContentBlock, Heading, Paragraph
from folio.models.book import Book, BookContent, BookMetadata, Chapter, TocEntry

log = logging.getLogger(__name__)

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f-\x9f]")
_DATE_DIGITS_RE = re.compile(r"\d+")

MAX_TITLE_LINE_CHARS = 100


# =============================================================================
# Info dictionary helpers
# =============================================================================


def decode_pdf_string(value: object) -> str:
    """Stringify an Info value, dropping control characters except \\n and \\t."""
    if value is None:
        return ""
    return _CONTROL_CHARS_RE.sub("", str(value)).strip()


def parse_pdf_date(raw: str) -> str | None:
    """Parse a PDF date (D:YYYYMMDDHHmmSS...) to YYYY[-MM[-DD]].

    Degrades with the number of leading digits present.
    """
    cleaned = raw.strip()
    if cleaned.startswith("D:"):
        cleaned = cleaned[2:]
    match = _DATE_DIGITS_RE.match(cleaned)
    digits = match.group(0) if match else ""

    if len(digits) >= 8:
        return f"{digits[0:4]}-{digits[4:6]}-{digits[6:8]}"
    if len(digits) >= 6:
        return f"{digits[0:4]}-{digits[4:6]}"
    if len(digits) >= 4:
        return digits[0:4]
    return None


# =============================================================================
# Text extraction strategies
# =============================================================================


def join_page_texts(texts) -> str:
    """Join page texts with a blank line, dropping pages with no text."""
    return "\n\n".join(t.strip() for t in texts if t and t.strip())


def extract_text_pypdf(reader: pypdf.PdfReader, pdf_path: Path) -> str:
    """Extract all text with pypdf, pages separated by a blank line."""
    return join_page_texts(page.extract_text() for page in reader.pages)


def extract_text_pdfplumber(reader: pypdf.PdfReader, pdf_path: Path) -> str:
    """Extract all text with pdfplumber (pdfminer layout analysis)."""
    with pdfplumber.open(str(pdf_path)) as pdf:
        return join_page_texts(page.extract_text() for page in pdf.pages)


# =============================================================================
# Structure recovery
# =============================================================================


def _segment_title(blocks: list[ContentBlock], index: int) -> str:
    """First heading, else a short first line, else a numbered label."""
    for block in blocks:
        if isinstance(block, Heading):
            return block.text
    for block in blocks:
        if isinstance(block, Paragraph) and block.text:
            first_line = block.text.splitlines()[0]
            if len(first_line) < MAX_TITLE_LINE_CHARS:
                return first_line
            break
    return f"Section {index + 1}"


def chapters_from_text(text: str) -> BookContent:
    """Segment extracted text into chapters of classified blocks."""
    chapters: list[Chapter] = []
    toc: list[TocEntry] = []

    for segment in split_into_chapters(text):
        if not segment.strip():
            continue
        blocks = classify_paragraphs(segment)
        if not blocks:
            continue

        index = len(chapters)
        chapter_id = f"chapter-{index}"
        title = _segment_title(blocks, index)
        chapters.append(Chapter(id=chapter_id, title=title, blocks=blocks, order=index))
        toc.append(TocEntry(title=title, href=chapter_id, level=0))

    # Fallback to single chapter if nothing was created
    if not chapters:
        blocks = classify_paragraphs(text) or [Paragraph(text=text.strip())]
        chapters.append(Chapter(id="main", title="Document", blocks=blocks, order=0))

    return BookContent(chapters=chapters, toc=toc)


def page_bucket_content(
    page_count: int, single_chapter_pages: int = 20, pages_per_chapter: int = 10
) -> BookContent:
    """Placeholder chapters for PDFs whose text could not be extracted.

    Short documents get one chapter, longer ones one per group of pages.
    Each chapter says which pages it stands for.
    """
    if page_count <= 0:
        chapter = Chapter(
            id="main",
            title="Document",
            blocks=[
                Paragraph(
                    text="[PDF text extraction failed. The document may be "
                    "scanned or have complex formatting.]"
                )
            ],
            order=0,
        )
        return BookContent(chapters=[chapter], toc=[])

    per_chapter = page_count if page_count <= single_chapter_pages else pages_per_chapter
    num_chapters = math.ceil(page_count / per_chapter)

    chapters: list[Chapter] = []
    toc: list[TocEntry] = []
    for i in range(num_chapters):
        start_page = i * per_chapter + 1
        end_page = min((i + 1) * per_chapter, page_count)
        chapter_id = f"pages-{start_page}-{end_page}"
        title = "Document" if num_chapters == 1 else f"Pages {start_page}-{end_page}"

        chapters.append(
            Chapter(
                id=chapter_id,
                title=title,
                blocks=[
                    Paragraph(
                        text=f"[PDF content from pages {start_page} to {end_page}. "
                        "Text extraction may be limited for this document.]"
                    )
                ],
                order=i,
            )
        )
        toc.append(TocEntry(title=title, href=chapter_id, level=0))

    return BookContent(chapters=chapters, toc=toc)


# =============================================================================
# PDF Parser Class
# =============================================================================


class PdfParser(BookParser):
    """Parse PDF files, recovering chapters from extracted text."""

    format_name = "pdf"

    def __init__(self, pdf_path: Path, settings: ParseSettings | None = None):
        super().__init__(pdf_path, settings)

        try:
            self._reader = pypdf.PdfReader(str(pdf_path))
            if self._reader.is_encrypted:
                if self._reader.decrypt("") == PasswordType.NOT_DECRYPTED:
                    raise ContainerOpenError(pdf_path, "PDF is encrypted")
            self._page_count = len(self._reader.pages)
        except FileNotDecryptedError as e:
            raise ContainerOpenError(pdf_path, "PDF is encrypted") from e
        except EmptyFileError as e:
            raise ContainerOpenError(pdf_path, "PDF file is empty") from e
        except PdfReadError as e:
            raise ContainerOpenError(pdf_path, f"PDF appears corrupted: {e}") from e
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise ContainerOpenError(pdf_path, f"unreadable PDF structure: {e}") from e

    @property
    def page_count(self) -> int:
        return self._page_count

    def parse(self) -> Book:
        """Parse the PDF and return complete structure."""
        return Book(
            metadata=self.get_metadata(),
            content=self._extract_content(),
            source_path=self.path,
            format=self.format_name,
        )

    def get_metadata(self) -> BookMetadata:
        """Extract book metadata from the document Info dictionary."""
        try:
            info = self._reader.metadata or {}
        except (PdfReadError, ValueError, KeyError) as e:
            log.warning(f"Unreadable Info dictionary in {self.path.name}: {e}")
            info = {}

        def field(key: str) -> str:
            value = info.get(key)
            if hasattr(value, "get_object"):
                value = value.get_object()
            return decode_pdf_string(value)

        title = field("/Title") or self.path.stem

        authors = []
        author_str = field("/Author")
        if author_str:
            authors = [a.strip() for a in author_str.split(";") if a.strip()]

        keywords = field("/Keywords")
        subjects = [k.strip() for k in re.split(r"[,;]", keywords) if k.strip()]

        creation_date = field("/CreationDate")

        return BookMetadata(
            title=title,
            authors=authors,
            description=field("/Subject") or None,
            publisher=field("/Producer") or None,
            published=parse_pdf_date(creation_date) if creation_date else None,
            subjects=subjects,
        )

    def _text_chain(self) -> FallbackChain[str]:
        return (
            FallbackChain()
            .add("pypdf", extract_text_pypdf, "pypdf text extraction", catch_errors=True)
            .add(
                "pdfplumber",
                extract_text_pdfplumber,
                "pdfplumber text extraction",
                catch_errors=True,
            )
        )

    def _extract_content(self) -> BookContent:
        """Chapters from extracted text, else page-range placeholders."""
        strategy, text = self._text_chain().run(self._reader, self.path)

        if text:
            log.info(f"Extracted PDF text with {strategy}")
            return chapters_from_text(text)

        log.warning(
            f"No extractable text in {self.path.name}; "
            f"using page-based placeholders for {self._page_count} pages"
        )
        return page_bucket_content(
            self._page_count,
            single_chapter_pages=self.settings.pdf_single_chapter_pages,
            pages_per_chapter=self.settings.pdf_pages_per_chapter,
        )
