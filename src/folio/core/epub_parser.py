"""EPUB parsing using ebooklib."""

import logging
import zipfile
from pathlib import Path

import ebooklib
from ebooklib import epub

from folio.config import ParseSettings
from folio.core.html_normalizer import parse_html_blocks
from folio.core.parser_factory import BookParser
from folio.exceptions import ContainerOpenError
from folio.models.blocks import Heading, Paragraph
from folio.models.book import Book, BookContent, BookMetadata, Chapter, TocEntry

log = logging.getLogger(__name__)


def _entries(book: epub.EpubBook, namespace: str, name: str | None) -> list[tuple]:
    """Metadata entries, tolerating namespaces the package never declared."""
    uri = epub.NAMESPACES.get(namespace, namespace)
    return book.metadata.get(uri, {}).get(name, [])


def _first(values: list[tuple[str, dict]]) -> str | None:
    """First non-empty value of an ebooklib metadata list."""
    for value, _attrs in values or []:
        if value and value.strip():
            return value.strip()
    return None


def _all(values: list[tuple[str, dict]]) -> list[str]:
    return [value.strip() for value, _attrs in values or [] if value and value.strip()]


class EpubParser(BookParser):
    """Parse EPUB files: Dublin Core metadata plus one chapter per spine item."""

    format_name = "epub"

    def __init__(self, path: Path, settings: ParseSettings | None = None):
        super().__init__(path, settings)
        try:
            self.book = epub.read_epub(str(path), options={"ignore_ncx": True})
        except (OSError, zipfile.BadZipFile, KeyError, epub.EpubException) as e:
            raise ContainerOpenError(path, f"cannot open EPUB container: {e}") from e
        except Exception as e:
            # ebooklib surfaces malformed OPF documents as lxml errors
            raise ContainerOpenError(path, f"malformed EPUB package: {e}") from e

    def parse(self) -> Book:
        """Parse the EPUB and return complete structure."""
        metadata = self.get_metadata()
        chapters = self._get_chapters()
        if chapters:
            content = BookContent(chapters=chapters, toc=self._build_toc(chapters))
        else:
            log.warning(f"No readable spine documents in {self.path.name}")
            content = BookContent(
                chapters=[
                    Chapter(
                        id="main",
                        title=metadata.title,
                        blocks=[Paragraph(text="[No readable content in this EPUB.]")],
                        order=0,
                    )
                ],
                toc=[],
            )
        return Book(
            metadata=metadata,
            content=content,
            source_path=self.path,
            format=self.format_name,
        )

    def get_metadata(self) -> BookMetadata:
        """Extract book metadata."""
        subjects: list[str] = []
        for subject in _all(_entries(self.book, "DC", "subject")):
            subjects.extend(s.strip() for s in subject.split(",") if s.strip())

        series, series_index = self._get_series()
        cover, cover_mime = self._get_cover()

        return BookMetadata(
            title=_first(_entries(self.book, "DC", "title")) or self.path.stem,
            authors=_all(_entries(self.book, "DC", "creator")),
            publisher=_first(_entries(self.book, "DC", "publisher")),
            language=_first(_entries(self.book, "DC", "language")),
            description=_first(_entries(self.book, "DC", "description")),
            published=_first(_entries(self.book, "DC", "date")),
            subjects=subjects,
            isbn=_first(_entries(self.book, "DC", "identifier")),
            series=series,
            series_index=series_index,
            cover=cover,
            cover_mime=cover_mime,
        )

    def _opf_meta(self) -> dict[str, str]:
        """Map <meta name=... content=...> entries of the package document.

        ebooklib files prefixed names ("calibre:series") under the prefix,
        so every namespace is scanned.
        """
        result: dict[str, str] = {}
        for names in self.book.metadata.values():
            for entries in names.values():
                for _value, attrs in entries:
                    if attrs and attrs.get("name") and attrs.get("content"):
                        result.setdefault(attrs["name"].lower(), attrs["content"])
        return result

    def _get_series(self) -> tuple[str | None, float | None]:
        """Read Calibre series tags, if present."""
        meta = self._opf_meta()
        series = meta.get("calibre:series")
        index = None
        if meta.get("calibre:series_index"):
            try:
                index = float(meta["calibre:series_index"])
            except ValueError:
                log.debug(f"Ignoring bad series index: {meta['calibre:series_index']}")
        return series, index

    def _get_cover(self) -> tuple[bytes | None, str | None]:
        """Locate the cover image: OPF cover meta, cover-image item, cover item."""
        candidates = []

        cover_id = self._opf_meta().get("cover")
        if cover_id:
            candidates.append(self.book.get_item_with_id(cover_id))

        for item in self.book.get_items():
            properties = getattr(item, "properties", None) or []
            if item.get_type() == ebooklib.ITEM_COVER or "cover-image" in properties:
                candidates.append(item)

        for item in candidates:
            if item is None or not (item.media_type or "").startswith("image/"):
                continue
            data = item.get_content()
            if data:
                return data, item.media_type
        return None, None

    def _get_chapters(self) -> list[Chapter]:
        """One chapter per spine document, in reading order."""
        chapters: list[Chapter] = []

        for spine_entry in self.book.spine:
            item_id = spine_entry[0] if isinstance(spine_entry, tuple) else spine_entry
            item = self.book.get_item_with_id(item_id)
            if item is None or item.get_type() != ebooklib.ITEM_DOCUMENT:
                log.debug(f"Skipping spine entry without document: {item_id}")
                continue

            blocks = parse_html_blocks(
                item.get_content(),
                width=self.settings.epub_text_width,
                min_chars=self.settings.min_epub_text_chars,
            )
            title = next(
                (b.text for b in blocks if isinstance(b, Heading) and b.level <= 2),
                None,
            )

            chapters.append(
                Chapter(id=item_id, title=title, blocks=blocks, order=len(chapters))
            )

        return chapters

    def _build_toc(self, chapters: list[Chapter]) -> list[TocEntry]:
        """Flat table of contents in spine order.

        The package's own navigation document is not consulted.
        """
        return [
            TocEntry(
                title=chapter.title or f"Section {chapter.order + 1}",
                href=chapter.id,
                level=0,
            )
            for chapter in chapters
        ]
