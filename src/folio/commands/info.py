"""Info command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from folio.config import ParseSettings
from folio.core.parser_factory import parse_book
from folio.models.book import Book


def build_info_lines(book: Book) -> list[str]:
    """Metadata lines for the book info panel."""
    metadata = book.metadata
    info_lines = [
        f"[bold]{metadata.title}[/]",
        "",
        f"[dim]Author(s):[/] {metadata.authors_string()}",
        f"[dim]Format:[/] {book.format.upper()}",
    ]

    optional = [
        ("Language", metadata.language),
        ("Publisher", metadata.publisher),
        ("Published", metadata.published),
        ("ISBN", metadata.isbn),
    ]
    if metadata.series:
        series = metadata.series
        if metadata.series_index is not None:
            series = f"{series} #{metadata.series_index:g}"
        optional.append(("Series", series))
    if metadata.subjects:
        optional.append(("Subjects", ", ".join(metadata.subjects)))

    for label, value in optional:
        if value:
            info_lines.append(f"[dim]{label}:[/] {value}")

    info_lines.append(f"[dim]Chapters:[/] {len(book.content.chapters)}")
    info_lines.append(f"[dim]Words:[/] {metadata.word_count or 0:,}")
    info_lines.append(f"[dim]Reading time:[/] ~{metadata.reading_time or 0} min")
    return info_lines


def display_chapters(book: Book, console: Console) -> None:
    """Display the chapter list."""
    table = Table(title="Chapters", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", style="white")
    table.add_column("Blocks", justify="right", style="dim")
    table.add_column("Words", justify="right", style="green")

    for chapter in book.content.chapters:
        table.add_row(
            str(chapter.order + 1),
            chapter.display_title(),
            str(len(chapter.blocks)),
            f"{chapter.word_count():,}",
        )

    console.print(table)


def execute_info(
    book_path: Path,
    console: Console,
    settings: ParseSettings | None = None,
) -> None:
    """Execute the info command."""
    book = parse_book(book_path, settings)

    console.print()
    console.print(
        Panel(
            "\n".join(build_info_lines(book)),
            title="Book Information",
            border_style="green",
        )
    )
    console.print()
    display_chapters(book, console)
    console.print()
