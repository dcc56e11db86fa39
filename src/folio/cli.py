"""Main CLI application."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console

from folio.commands.info import execute_info
from folio.commands.parse import execute_parse
from folio.commands.scan import execute_scan
from folio.config import ParseSettings
from folio.core.parser_factory import ParserFactory
from folio.exceptions import FolioError

app = typer.Typer(
    name="folio",
    help="Recover chapters, headings and metadata from EPUB, PDF, Markdown, text and HTML.",
    add_completion=False,
)

console = Console()


def setup_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else (logging.INFO if verbose else logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", force=True)


def _settings() -> ParseSettings:
    try:
        return ParseSettings.from_env()
    except FolioError as e:
        console.print(f"[red]Configuration error: {e}[/]")
        raise typer.Exit(1)


def _check_supported(book_path: Path) -> None:
    if not ParserFactory.is_supported(book_path):
        supported = ", ".join(fmt.display_name for fmt in ParserFactory.supported_formats())
        console.print(f"[red]Unsupported file format: {book_path.suffix}[/]")
        console.print(f"[dim]Supported formats: {supported}[/]")
        raise typer.Exit(1)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log strategy selection and fallbacks"),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Log every strategy attempt"),
    ] = False,
) -> None:
    """Recover chapters, headings and metadata from EPUB, PDF, Markdown, text and HTML."""
    setup_logging(verbose, debug)


@app.command()
def info(
    book_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the book file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
) -> None:
    """Display book metadata and chapter list."""
    _check_supported(book_path)

    try:
        execute_info(book_path, console, _settings())
    except FolioError as e:
        console.print(f"[red]Error reading file: {e}[/]")
        raise typer.Exit(1)


@app.command()
def parse(
    book_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the book file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
    output_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--output-dir",
            "-o",
            help="Output directory (default: next to the book)",
        ),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress progress output",
        ),
    ] = False,
) -> None:
    """Parse a book and write its JSON representation."""
    _check_supported(book_path)

    try:
        execute_parse(
            book_path=book_path,
            output_dir=output_dir,
            quiet=quiet,
            console=console,
            settings=_settings(),
        )
    except FolioError as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def scan(
    directory: Annotated[
        Path,
        typer.Argument(
            help="Directory containing book files",
            exists=True,
            file_okay=False,
            dir_okay=True,
            resolve_path=True,
        ),
    ],
    recursive: Annotated[
        bool,
        typer.Option(
            "--recursive",
            "-r",
            help="Include subdirectories",
        ),
    ] = False,
) -> None:
    """Parse every supported file in a directory and summarize the results.

    Files that fail to parse are reported in the summary; they do not stop the scan.
    """
    execute_scan(directory, recursive, console, _settings())


if __name__ == "__main__":
    app()
