from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest
from pypdf import PdfWriter

from folio.core import pdf_parser
from folio.core.parser_factory import get_metadata, parse_book
from folio.core.pdf_parser import (
    chapters_from_text,
    decode_pdf_string,
    extract_text_pypdf,
    page_bucket_content,
    parse_pdf_date,
)
from folio.exceptions import ContainerOpenError
from folio.models.blocks import Heading, Paragraph


def _build_pdf(path: Path, *, pages: int = 3, metadata: dict[str, str] | None = None) -> None:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=612, height=792)
    if metadata:
        writer.add_metadata(metadata)
    with open(path, "wb") as fh:
        writer.write(fh)


def test_info_dictionary_metadata(tmp_path: Path) -> None:
    pdf_path = tmp_path / "sample.pdf"
    _build_pdf(
        pdf_path,
        metadata={
            "/Title": "Collected Works",
            "/Author": "Jane Doe",
            "/Subject": "Essays on things",
            "/Keywords": "alpha, beta; gamma",
            "/CreationDate": "D:20240115093000+01'00'",
        },
    )

    metadata = get_metadata(pdf_path)

    assert metadata.title == "Collected Works"
    assert metadata.authors == ["Jane Doe"]
    assert metadata.description == "Essays on things"
    assert metadata.subjects == ["alpha", "beta", "gamma"]
    assert metadata.published == "2024-01-15"


def test_missing_title_falls_back_to_file_stem(tmp_path: Path) -> None:
    pdf_path = tmp_path / "my-awesome_book.pdf"
    _build_pdf(pdf_path)

    assert parse_book(pdf_path).metadata.title == "my-awesome_book"


def test_blank_pages_give_placeholder_chapter(tmp_path: Path) -> None:
    pdf_path = tmp_path / "scanned.pdf"
    _build_pdf(pdf_path, pages=3)

    book = parse_book(pdf_path)

    assert book.format == "pdf"
    assert len(book.content.chapters) == 1
    chapter = book.content.chapters[0]
    assert chapter.id == "pages-1-3"
    assert chapter.title == "Document"
    assert chapter.blocks == [
        Paragraph(
            text="[PDF content from pages 1 to 3. "
            "Text extraction may be limited for this document.]"
        )
    ]


def test_zero_byte_pdf_raises(tmp_path: Path) -> None:
    pdf_path = tmp_path / "empty.pdf"
    pdf_path.write_bytes(b"")

    with pytest.raises(ContainerOpenError):
        parse_book(pdf_path)


def test_corrupt_pdf_raises(tmp_path: Path) -> None:
    pdf_path = tmp_path / "corrupt.pdf"
    pdf_path.write_bytes(b"this is not a pdf file at all\n" * 20)

    with pytest.raises(ContainerOpenError):
        get_metadata(pdf_path)


def test_unmarked_text_becomes_one_chapter(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    pdf_path = tmp_path / "essay.pdf"
    _build_pdf(pdf_path, pages=2)
    paragraphs = [
        "The first paragraph talks about the weather in some detail.",
        "A second paragraph follows with more thoughts on the matter.",
        "Finally a third paragraph wraps everything up neatly.",
    ]
    monkeypatch.setattr(pdf_parser, "extract_text_pypdf", lambda reader, path: "\n\n".join(paragraphs))

    book = parse_book(pdf_path)

    assert len(book.content.chapters) == 1
    chapter = book.content.chapters[0]
    assert chapter.id == "chapter-0"
    assert chapter.blocks == [Paragraph(text=p) for p in paragraphs]
    assert chapter.title == paragraphs[0]


def test_failing_strategy_falls_through(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    pdf_path = tmp_path / "flaky.pdf"
    _build_pdf(pdf_path, pages=1)

    def broken(reader, path):
        raise ValueError("bad content stream")

    monkeypatch.setattr(pdf_parser, "extract_text_pypdf", broken)
    monkeypatch.setattr(
        pdf_parser, "extract_text_pdfplumber", lambda reader, path: "Recovered text from the second extractor."
    )

    book = parse_book(pdf_path)

    assert book.content.chapters[0].blocks == [
        Paragraph(text="Recovered text from the second extractor.")
    ]


def test_chapters_from_marked_text() -> None:
    body = "This paragraph has enough words to push the next marker past the minimum offset."
    text = "\n\n".join(f"Chapter {i}\n\n{body}\n\n17" for i in range(1, 4))

    content = chapters_from_text(text)

    assert [c.id for c in content.chapters] == ["chapter-0", "chapter-1", "chapter-2"]
    assert [c.title for c in content.chapters] == ["Chapter 1", "Chapter 2", "Chapter 3"]
    assert [c.order for c in content.chapters] == [0, 1, 2]
    assert [(e.title, e.href, e.level) for e in content.toc] == [
        ("Chapter 1", "chapter-0", 0),
        ("Chapter 2", "chapter-1", 0),
        ("Chapter 3", "chapter-2", 0),
    ]
    for chapter in content.chapters:
        assert chapter.blocks == [Heading(level=2, text=chapter.title), Paragraph(text=body)]


def test_chapter_title_falls_back_to_section_number() -> None:
    long_line = "word " * 30
    content = chapters_from_text(long_line.strip() + ".")
    assert content.chapters[0].title == "Section 1"


def test_text_of_only_artifacts_keeps_one_chapter() -> None:
    content = chapters_from_text("12")
    assert [c.id for c in content.chapters] == ["main"]
    assert content.chapters[0].title == "Document"


def test_page_buckets_for_long_documents() -> None:
    content = page_bucket_content(25)

    assert [c.id for c in content.chapters] == ["pages-1-10", "pages-11-20", "pages-21-25"]
    assert [c.title for c in content.chapters] == ["Pages 1-10", "Pages 11-20", "Pages 21-25"]
    assert [e.href for e in content.toc] == [c.id for c in content.chapters]


def test_page_buckets_without_pages() -> None:
    content = page_bucket_content(0)

    assert len(content.chapters) == 1
    assert content.chapters[0].id == "main"
    assert "extraction failed" in content.chapters[0].blocks[0].text


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("D:20240115093000Z", "2024-01-15"),
        ("D:202401", "2024-01"),
        ("2024", "2024"),
        ("D:20", None),
        ("yesterday", None),
    ],
)
def test_parse_pdf_date(raw: str, expected: str | None) -> None:
    assert parse_pdf_date(raw) == expected


def test_decode_pdf_string_strips_control_characters() -> None:
    assert decode_pdf_string("  Title\x00 with\x07 junk\n ") == "Title with junk"
    assert decode_pdf_string(None) == ""


def test_blank_pages_do_not_split_unmarked_text() -> None:
    prose = "Plain prose without any chapter markers keeps going for a while here."
    pages = [prose, "", prose, None, prose + "\n\n"]
    reader = SimpleNamespace(
        pages=[SimpleNamespace(extract_text=lambda text=text: text) for text in pages]
    )

    text = extract_text_pypdf(reader, Path("unused.pdf"))

    assert text == "\n\n".join([prose] * 3)
    assert len(chapters_from_text(text).chapters) == 1
