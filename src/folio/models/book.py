"""Data models for the canonical book structure shared by every format."""

from pathlib import Path

from pydantic import BaseModel, Field

from folio.models.blocks import ContentBlock


class TocEntry(BaseModel):
    """Single entry in table of contents."""

    title: str
    href: str
    level: int = 0
    children: list["TocEntry"] = Field(default_factory=list)


class Chapter(BaseModel):
    """Chapter content: ordered blocks plus identity and position."""

    id: str
    title: str | None = None
    number: int | None = None
    blocks: list[ContentBlock] = Field(default_factory=list)
    order: int = 0

    def display_title(self) -> str:
        """Title suitable for a chapter list."""
        if self.title:
            if self.number is not None:
                return f"Chapter {self.number}: {self.title}"
            return self.title
        if self.number is not None:
            return f"Chapter {self.number}"
        return f"Section {self.order + 1}"

    def word_count(self) -> int:
        return sum(block.word_count() for block in self.blocks)


class BookMetadata(BaseModel):
    """Book-level bibliographic metadata."""

    title: str
    authors: list[str] = Field(default_factory=list)
    publisher: str | None = None
    published: str | None = None
    language: str | None = None
    isbn: str | None = None
    description: str | None = None
    subjects: list[str] = Field(default_factory=list)
    series: str | None = None
    series_index: float | None = None
    cover: bytes | None = Field(default=None, exclude=True)
    cover_mime: str | None = None
    word_count: int | None = None
    reading_time: int | None = None

    @property
    def author(self) -> str | None:
        """Primary author, if any."""
        return self.authors[0] if self.authors else None

    def authors_string(self) -> str:
        """Authors joined for display ("A", "A and B", "A, B, and C")."""
        if not self.authors:
            return "Unknown Author"
        if len(self.authors) == 1:
            return self.authors[0]
        if len(self.authors) == 2:
            return f"{self.authors[0]} and {self.authors[1]}"
        return f"{', '.join(self.authors[:-1])}, and {self.authors[-1]}"

    def calculate_reading_time(self, words_per_minute: int) -> None:
        """Set reading_time in whole minutes from word_count."""
        if self.word_count is not None and words_per_minute > 0:
            self.reading_time = self.word_count // words_per_minute


class BookContent(BaseModel):
    """Chapters in reading order plus the table of contents."""

    chapters: list[Chapter] = Field(default_factory=list)
    toc: list[TocEntry] = Field(default_factory=list)

    def total_blocks(self) -> int:
        return sum(len(chapter.blocks) for chapter in self.chapters)

    def word_count(self) -> int:
        return sum(chapter.word_count() for chapter in self.chapters)

    def get_chapter(self, chapter_id: str) -> Chapter | None:
        """Find chapter by ID."""
        for chapter in self.chapters:
            if chapter.id == chapter_id:
                return chapter
        return None

    def get_chapter_by_index(self, index: int) -> Chapter | None:
        if 0 <= index < len(self.chapters):
            return self.chapters[index]
        return None


class Book(BaseModel):
    """Complete parsed book (unified for all source formats)."""

    metadata: BookMetadata
    content: BookContent = Field(default_factory=BookContent)
    source_path: Path
    format: str
