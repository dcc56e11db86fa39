from __future__ import annotations

import pytest

from folio.config import ParseSettings
from folio.exceptions import ConfigurationError


def test_defaults() -> None:
    settings = ParseSettings()
    assert settings.words_per_minute == 250
    assert settings.html_text_width == 80
    assert settings.pdf_single_chapter_pages == 20
    assert settings.pdf_pages_per_chapter == 10


def test_from_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FOLIO_WORDS_PER_MINUTE", "300")
    monkeypatch.setenv("FOLIO_HTML_TEXT_WIDTH", "100")

    settings = ParseSettings.from_env()

    assert settings.words_per_minute == 300
    assert settings.html_text_width == 100


@pytest.mark.parametrize("value", ["fast", "0", "-5"])
def test_from_env_rejects_bad_values(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("FOLIO_WORDS_PER_MINUTE", value)

    with pytest.raises(ConfigurationError):
        ParseSettings.from_env()


def test_reading_time_uses_configured_speed(tmp_path) -> None:
    from folio import parse_book

    path = tmp_path / "words.txt"
    path.write_text(" ".join(["word"] * 120), encoding="utf-8")

    book = parse_book(path, ParseSettings(words_per_minute=60))

    assert book.metadata.word_count == 120
    assert book.metadata.reading_time == 2
