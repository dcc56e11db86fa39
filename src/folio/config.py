"""Parser settings."""

import os
from dataclasses import dataclass

from folio.exceptions import ConfigurationError

ENV_PREFIX = "FOLIO_"


@dataclass
class ParseSettings:
    """Tunables shared by the format parsers."""

    words_per_minute: int = 250
    epub_text_width: int = 10000  # wide enough that html-to-text never wraps
    html_text_width: int = 80
    min_epub_text_chars: int = 20
    pdf_single_chapter_pages: int = 20
    pdf_pages_per_chapter: int = 10

    @classmethod
    def from_env(cls) -> "ParseSettings":
        """Build settings, overriding defaults from FOLIO_* environment variables."""
        settings = cls()
        for name in ("words_per_minute", "html_text_width"):
            raw = os.environ.get(ENV_PREFIX + name.upper())
            if raw is None:
                continue
            try:
                value = int(raw)
            except ValueError:
                raise ConfigurationError(
                    f"{ENV_PREFIX}{name.upper()} must be an integer, got {raw!r}"
                )
            if value <= 0:
                raise ConfigurationError(
                    f"{ENV_PREFIX}{name.upper()} must be positive, got {value}"
                )
            setattr(settings, name, value)
        return settings
