"""Scan command implementation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from folio.config import ParseSettings
from folio.core.parser_factory import ParserFactory, parse_book
from folio.exceptions import FolioError

log = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Outcome of parsing one file."""

    path: Path
    format_name: str
    title: str | None = None
    chapters: int = 0
    words: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def find_books(directory: Path, recursive: bool = False) -> list[Path]:
    """Supported files in a directory, sorted by path."""
    pattern = "**/*" if recursive else "*"
    return sorted(
        path
        for path in directory.glob(pattern)
        if path.is_file() and ParserFactory.is_supported(path)
    )


def scan_file(path: Path, settings: ParseSettings | None = None) -> ScanResult:
    """Parse one file, recording failure instead of raising."""
    result = ScanResult(path=path, format_name=ParserFactory.detect_format(path).display_name)
    try:
        book = parse_book(path, settings)
    except FolioError as e:
        log.warning(f"Skipping {path.name}: {e}")
        result.error = str(e)
        return result

    result.title = book.metadata.title
    result.chapters = len(book.content.chapters)
    result.words = book.metadata.word_count or 0
    return result


def execute_scan(
    directory: Path,
    recursive: bool,
    console: Console,
    settings: ParseSettings | None = None,
) -> list[ScanResult]:
    """Execute the scan command."""
    books = find_books(directory, recursive)
    if not books:
        console.print(f"[yellow]No supported files found in {directory}[/]")
        return []

    results = [scan_file(path, settings) for path in books]

    table = Table(title=f"Scanned {directory}", show_header=True, header_style="bold cyan")
    table.add_column("File", style="white")
    table.add_column("Format", style="dim")
    table.add_column("Title")
    table.add_column("Chapters", justify="right")
    table.add_column("Words", justify="right", style="green")

    for result in results:
        name = str(result.path.relative_to(directory))
        if result.ok:
            table.add_row(
                name,
                result.format_name,
                result.title or "",
                str(result.chapters),
                f"{result.words:,}",
            )
        else:
            table.add_row(name, result.format_name, f"[red]{escape(result.error)}[/]", "—", "—")

    console.print(table)

    failed = sum(1 for r in results if not r.ok)
    console.print(f"[dim]{len(results) - failed} parsed, {failed} failed[/]")
    return results
