"""Parse command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from folio.config import ParseSettings
from folio.core.output_writer import OutputWriter
from folio.core.parser_factory import ParserFactory, parse_book


def execute_parse(
    book_path: Path,
    output_dir: Path | None,
    quiet: bool,
    console: Console,
    settings: ParseSettings | None = None,
) -> Path:
    """Execute the parse command. Returns the path of the written file."""
    format_name = ParserFactory.detect_format(book_path).display_name

    if not quiet:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            progress.add_task(f"Parsing {format_name}...", total=None)
            book = parse_book(book_path, settings)
    else:
        book = parse_book(book_path, settings)

    # Default to writing next to the source file
    writer = OutputWriter(output_dir or book_path.parent)
    output_path = writer.write_book(book)

    if not quiet:
        console.print()
        summary_lines = [
            f"[green]Parsed {book.metadata.title}[/]",
            "",
            f"[dim]Chapters:[/] {len(book.content.chapters)}",
            f"[dim]Blocks:[/] {book.content.total_blocks()}",
            f"[dim]Words:[/] {book.metadata.word_count or 0:,}",
            f"[dim]Output:[/] {output_path}",
        ]
        console.print(
            Panel(
                "\n".join(summary_lines),
                title="Complete",
                border_style="green",
            )
        )

    return output_path
