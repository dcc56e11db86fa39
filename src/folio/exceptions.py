"""Custom exceptions for folio."""

from pathlib import Path


class FolioError(Exception):
    """Base exception for folio."""

    pass


class ContainerOpenError(FolioError):
    """Raised when a file's container (archive, PDF xref table) cannot be opened."""

    def __init__(self, path: Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to open {self.path}: {reason}")


class UnsupportedFormatError(FolioError):
    """Raised for unknown extensions or formats whose extractor is unavailable."""

    def __init__(self, path: Path, format_name: str):
        self.path = Path(path)
        self.format_name = format_name
        super().__init__(f"Unsupported format: {format_name} ({self.path})")


class ParseError(FolioError):
    """Raised when an extractor fails after the container was opened."""

    def __init__(self, path: Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to parse book: {self.path}: {reason}")


class ConfigurationError(FolioError):
    """Raised when settings are invalid."""

    pass
