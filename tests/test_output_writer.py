from __future__ import annotations

import json
from pathlib import Path

import pytest

from folio.core.output_writer import OutputWriter, book_from_json, book_to_json, load_book
from folio.core.parser_factory import parse_book
from folio.exceptions import ParseError
from folio.models import Book, BookContent, BookMetadata, Chapter, Image, Paragraph, TocEntry


def _book() -> Book:
    return Book(
        metadata=BookMetadata(title="Stored", authors=["A"], cover=b"\xff\xd8", cover_mime="image/jpeg"),
        content=BookContent(
            chapters=[
                Chapter(
                    id="c1",
                    title="One",
                    blocks=[Paragraph(text="Hello."), Image(src="img.png", data=b"\x89PNG")],
                    order=0,
                )
            ],
            toc=[TocEntry(title="One", href="c1", children=[TocEntry(title="Sub", href="c1#s", level=1)])],
        ),
        source_path=Path("/books/Stored Book!.epub"),
        format="epub",
    )


def test_round_trip_preserves_structure_without_binaries() -> None:
    book = _book()

    restored = book_from_json(book_to_json(book))

    assert restored.content == book.content.model_copy(
        update={
            "chapters": [
                book.content.chapters[0].model_copy(
                    update={"blocks": [Paragraph(text="Hello."), Image(src="img.png")]}
                )
            ]
        }
    )
    assert restored.metadata.cover is None
    assert restored.metadata.cover_mime == "image/jpeg"
    assert restored.source_path == book.source_path
    assert "cover" not in json.loads(book_to_json(book))["metadata"]


def test_write_and_load(tmp_path: Path) -> None:
    writer = OutputWriter(tmp_path / "out")

    path = writer.write_book(_book())

    assert path == tmp_path / "out" / "Stored_Book.json"
    assert load_book(path).metadata.title == "Stored"


def test_parsed_book_round_trip(tmp_path: Path) -> None:
    source = tmp_path / "doc.md"
    source.write_text("# Title\n\nSome **bold** text.\n\n- a\n- b\n", encoding="utf-8")
    book = parse_book(source)

    restored = load_book(OutputWriter(tmp_path).write_book(book, filename="doc.json"))

    assert restored == book


def test_load_rejects_garbage(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text('{"metadata": {}}', encoding="utf-8")

    with pytest.raises(ParseError):
        load_book(path)

    with pytest.raises(ParseError):
        load_book(tmp_path / "missing.json")
