from __future__ import annotations

from pathlib import Path

import pytest
from ebooklib import epub

from folio.core.epub_parser import EpubParser
from folio.core.parser_factory import get_metadata, parse_book
from folio.exceptions import ContainerOpenError
from folio.models.blocks import Heading, Paragraph

CHAPTER_NAMES = ["One", "Two", "Three"]


def _build_epub(
    path: Path,
    *,
    title: str | None = "Epub Sample",
    cover: bytes | None = None,
    spine: bool = True,
) -> None:
    book = epub.EpubBook()
    book.set_identifier("isbn-978-0-00-000000-0")
    if title:
        book.set_title(title)
    book.add_author("John Smith")
    book.add_author("Mary Major")
    book.set_language("en")
    book.add_metadata("DC", "publisher", "Acme Press")
    book.add_metadata("DC", "description", "A sample book.")
    book.add_metadata("DC", "date", "2020-05-01")
    book.add_metadata("DC", "subject", "Fiction, Adventure")
    book.add_metadata("DC", "subject", "Classics")
    if cover:
        book.set_cover("cover.png", cover, create_page=False)

    chapters = []
    for i, name in enumerate(CHAPTER_NAMES, start=1):
        chapter = epub.EpubHtml(title=f"Chapter {name}", file_name=f"chapter_{i}.xhtml", lang="en")
        chapter.content = f"""
        <html><body>
          <h1>Chapter {name}</h1>
          <p>First paragraph of chapter {name.lower()}.</p>
          <p>Second paragraph of chapter {name.lower()}.</p>
        </body></html>
        """
        book.add_item(chapter)
        chapters.append(chapter)

    style = epub.EpubItem(uid="style", file_name="style.css", media_type="text/css", content=b"p {}")
    book.add_item(style)
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())

    book.toc = tuple(chapters)
    book.spine = chapters if spine else []
    epub.write_epub(str(path), book)


def test_one_chapter_per_spine_document(tmp_path: Path) -> None:
    epub_path = tmp_path / "sample.epub"
    _build_epub(epub_path)

    book = parse_book(epub_path)

    assert book.format == "epub"
    chapters = book.content.chapters
    assert len(chapters) == 3
    for index, (chapter, name) in enumerate(zip(chapters, CHAPTER_NAMES)):
        assert chapter.order == index
        assert chapter.title == f"Chapter {name}"
        assert chapter.blocks[0] == Heading(level=1, text=f"Chapter {name}")
        assert chapter.blocks[1:] == [
            Paragraph(text=f"First paragraph of chapter {name.lower()}."),
            Paragraph(text=f"Second paragraph of chapter {name.lower()}."),
        ]


def test_flat_toc_follows_spine(tmp_path: Path) -> None:
    epub_path = tmp_path / "sample.epub"
    _build_epub(epub_path)

    book = parse_book(epub_path)

    assert [entry.title for entry in book.content.toc] == [f"Chapter {n}" for n in CHAPTER_NAMES]
    assert [entry.href for entry in book.content.toc] == [c.id for c in book.content.chapters]
    assert all(entry.level == 0 for entry in book.content.toc)


def test_non_document_spine_entries_are_skipped(tmp_path: Path) -> None:
    epub_path = tmp_path / "sample.epub"
    _build_epub(epub_path)

    parser = EpubParser(epub_path)
    parser.book.spine.insert(1, ("style", "yes"))
    parser.book.spine.append(("missing-item", "yes"))
    book = parser.parse()

    assert len(book.content.chapters) == 3
    assert [c.order for c in book.content.chapters] == [0, 1, 2]


def test_dublin_core_metadata(tmp_path: Path) -> None:
    epub_path = tmp_path / "sample.epub"
    _build_epub(epub_path)

    metadata = get_metadata(epub_path)

    assert metadata.title == "Epub Sample"
    assert metadata.authors == ["John Smith", "Mary Major"]
    assert metadata.authors_string() == "John Smith and Mary Major"
    assert metadata.publisher == "Acme Press"
    assert metadata.language == "en"
    assert metadata.description == "A sample book."
    assert metadata.published == "2020-05-01"
    assert metadata.subjects == ["Fiction", "Adventure", "Classics"]
    assert metadata.isbn == "isbn-978-0-00-000000-0"
    assert metadata.word_count is None


def test_word_count_and_reading_time_are_filled(tmp_path: Path) -> None:
    epub_path = tmp_path / "sample.epub"
    _build_epub(epub_path)

    book = parse_book(epub_path)

    assert book.metadata.word_count == book.content.word_count()
    assert book.metadata.word_count > 0
    assert book.metadata.reading_time == 0


def test_title_falls_back_to_file_stem(tmp_path: Path) -> None:
    epub_path = tmp_path / "untitled-book.epub"
    _build_epub(epub_path, title=None)

    assert get_metadata(epub_path).title == "untitled-book"


def test_calibre_series_meta(tmp_path: Path) -> None:
    epub_path = tmp_path / "sample.epub"
    _build_epub(epub_path)

    parser = EpubParser(epub_path)
    parser.book.metadata["calibre"] = {
        "series": [(None, {"name": "calibre:series", "content": "The Saga"})],
        "series_index": [(None, {"name": "calibre:series_index", "content": "2.5"})],
    }

    metadata = parser.get_metadata()

    assert metadata.series == "The Saga"
    assert metadata.series_index == 2.5


def test_corrupt_container_raises(tmp_path: Path) -> None:
    epub_path = tmp_path / "broken.epub"
    epub_path.write_bytes(b"this is not a zip archive")

    with pytest.raises(ContainerOpenError) as excinfo:
        parse_book(epub_path)

    assert excinfo.value.path == epub_path


def test_empty_spine_gives_placeholder_chapter(tmp_path: Path) -> None:
    epub_path = tmp_path / "hollow.epub"
    _build_epub(epub_path, spine=False)

    book = parse_book(epub_path)

    assert len(book.content.chapters) == 1
    chapter = book.content.chapters[0]
    assert chapter.id == "main"
    assert chapter.title == "Epub Sample"
    assert chapter.order == 0
    assert chapter.blocks == [Paragraph(text="[No readable content in this EPUB.]")]


def test_cover_image(tmp_path: Path) -> None:
    epub_path = tmp_path / "covered.epub"
    png = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
    _build_epub(epub_path, cover=png)

    metadata = get_metadata(epub_path)

    assert metadata.cover == png
    assert metadata.cover_mime == "image/png"


def test_no_cover_image(tmp_path: Path) -> None:
    epub_path = tmp_path / "plain.epub"
    _build_epub(epub_path)

    metadata = get_metadata(epub_path)

    assert metadata.cover is None
    assert metadata.cover_mime is None
