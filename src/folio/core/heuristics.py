"""Heuristic structure inference for text without markup.

Everything here is a pure function of its input: no I/O, no state, no
dependence on the source format. The PDF and plain-text parsers (and the
EPUB fallback path) all classify text through these same functions.

The case-based rules assume Latin-script capitalisation.
"""

import re

from folio.models.blocks import Heading, Paragraph

# =============================================================================
# Heading classification
# =============================================================================

HEADING_KEYWORDS = (
    "chapter",
    "part",
    "section",
    "introduction",
    "conclusion",
    "appendix",
    "preface",
    "prologue",
    "epilogue",
)

MAX_HEADING_CHARS = 120
MAX_HEADING_LINES = 2
UPPERCASE_RATIO = 0.6
MAX_UPPERCASE_HEADING_CHARS = 80
MAX_TITLE_CASE_HEADING_CHARS = 60
MAX_TITLE_CASE_WORDS = 10

_ROMAN_RE = re.compile(
    r"^(?=[MDCLXVI])M{0,3}(?:CM|CD|D?C{0,3})(?:XC|XL|L?X{0,3})(?:IX|IV|V?I{0,3})$"
)


def is_heading_like(text: str) -> bool:
    """Return True if a paragraph of extracted text reads like a heading."""
    trimmed = text.strip()

    if len(trimmed) > MAX_HEADING_CHARS:
        return False
    if len(trimmed.splitlines()) > MAX_HEADING_LINES:
        return False
    # Prose punctuation
    if trimmed.endswith((".", ",")):
        return False

    if trimmed.lower().startswith(HEADING_KEYWORDS):
        return True

    alpha_chars = [c for c in trimmed if c.isalpha()]
    if alpha_chars:
        upper_ratio = sum(1 for c in alpha_chars if c.isupper()) / len(alpha_chars)
        if upper_ratio > UPPERCASE_RATIO and len(trimmed) < MAX_UPPERCASE_HEADING_CHARS:
            return True

    if len(trimmed) < MAX_TITLE_CASE_HEADING_CHARS:
        words = trimmed.split()
        if words and len(words) <= MAX_TITLE_CASE_WORDS:
            capitalized = sum(1 for word in words if word[0].isupper())
            if capitalized / len(words) > 0.5:
                return True

    return False


def detect_heading_level(text: str) -> int:
    """Assign a heading level (1-3) from the heading's wording."""
    lower = text.strip().lower()

    if lower.startswith(("part", "book")):
        return 1
    if lower.startswith("chapter"):
        return 2
    if lower.startswith("section"):
        return 3
    if all(c.isupper() for c in text if c.isalpha()):
        return 2
    return 3


def is_roman_numeral(word: str) -> bool:
    """Check for a well-formed uppercase roman numeral (I, IV, XLII, ...)."""
    return bool(_ROMAN_RE.match(word))


def is_likely_header(line: str) -> bool:
    """Stricter heading test for single lines of plain text."""
    line = line.strip()

    if not line or len(line) > MAX_UPPERCASE_HEADING_CHARS:
        return False
    if line.endswith((".", ",", ":")):
        return False

    if line.lower().startswith(("chapter ", "part ", "section ")):
        return True

    words = line.split()
    first = words[0]
    stripped = first.rstrip(".:-)")
    if len(words) == 1 and is_roman_numeral(stripped):
        return True

    # "1. The Beginning", "IV. The Return", "II Storm"
    numbered = stripped.isdigit() and stripped != first
    roman = is_roman_numeral(stripped) and (stripped != first or len(stripped) > 1)
    if (numbered or roman) and 1 <= len(words) - 1 <= 10:
        return True

    # All caps, more than one word
    alpha_chars = [c for c in line if c.isalpha()]
    if (
        len(line) > 3
        and " " in line
        and alpha_chars
        and all(c.isupper() for c in alpha_chars)
    ):
        return True

    return False


# =============================================================================
# Artifact filtering
# =============================================================================

MAX_ARTIFACT_CHARS = 50

_PAGE_NUMBER_RE = re.compile(r"^\d+$")
_PAGE_LABEL_RE = re.compile(r"\bpage\s+\d+", re.IGNORECASE)
_STAMP_RE = re.compile(r"\b(?:confidential|draft)\b", re.IGNORECASE)


def is_pdf_artifact(text: str) -> bool:
    """Detect page numbers, running footers and rendering glitches."""
    trimmed = text.strip()

    if _PAGE_NUMBER_RE.match(trimmed):
        return True

    if len(trimmed) < MAX_ARTIFACT_CHARS:
        if _PAGE_LABEL_RE.search(trimmed) or _STAMP_RE.search(trimmed):
            return True
        if trimmed.startswith("©"):
            return True

    # A single character repeated ("........", "_____")
    if len(trimmed) > 3 and len(set(trimmed)) == 1:
        return True

    return False


_PAGE_LINE_RE = re.compile(r"^(?:page\s+)?\d+(?:\s+of\s+\d+)?$", re.IGNORECASE)


def drop_artifact_lines(text: str) -> str:
    """Remove page-number and glitch lines embedded in a chunk of prose.

    Only lines that can never be prose are dropped here; the looser
    stamp/footer checks of is_pdf_artifact apply to whole chunks.
    """
    kept = []
    for line in text.splitlines():
        stripped = line.strip()
        if _PAGE_LINE_RE.match(stripped):
            continue
        if len(stripped) > 3 and len(set(stripped)) == 1:
            continue
        kept.append(line)
    return "\n".join(kept)


# =============================================================================
# Paragraph splitting
# =============================================================================


def classify_paragraphs(text: str) -> list[Heading | Paragraph]:
    """Split extracted text on blank lines and classify each chunk."""
    blocks: list[Heading | Paragraph] = []

    for chunk in re.split(r"\n\s*\n", text):
        trimmed = drop_artifact_lines(chunk).strip()
        if not trimmed or is_pdf_artifact(trimmed):
            continue

        if is_heading_like(trimmed):
            blocks.append(
                Heading(
                    level=detect_heading_level(trimmed),
                    text=" ".join(trimmed.split()),
                )
            )
        else:
            normalized = " ".join(trimmed.split())
            if normalized:
                blocks.append(Paragraph(text=normalized))

    return blocks


def split_text_blocks(text: str) -> list[Heading | Paragraph]:
    """Group plain-text lines into paragraphs, promoting header-like lines."""
    blocks: list[Heading | Paragraph] = []
    current: list[str] = []

    def flush() -> None:
        if current:
            blocks.append(Paragraph(text=" ".join(current)))
            current.clear()

    for line in text.splitlines():
        trimmed = line.strip()
        if not trimmed:
            flush()
        elif is_likely_header(trimmed):
            flush()
            blocks.append(Heading(level=2, text=trimmed))
        else:
            current.append(trimmed)

    flush()
    return blocks


# =============================================================================
# Chapter-boundary detection
# =============================================================================

MIN_CHARS_BEFORE_SPLIT = 50
MAX_PAGE_BREAK_SEGMENTS = 99

_CHAPTER_MARKER_RE = re.compile(
    r"^(?:chapter|part|section)\s+(?:\d+|[ivxlcdm]+)\b"
    r"|^[ivxlcdm]+\.\s+\w"
    r"|^\d+\.\s*[A-Z]",
    re.IGNORECASE | re.MULTILINE,
)
_PAGE_BREAK_RE = re.compile(r"\f|\n{4,}")


def find_chapter_boundaries(text: str) -> list[int]:
    """Offsets of lines that open a new chapter.

    A marker line only counts once enough text precedes it, so a title
    page heading does not produce an empty first chapter.
    """
    starts: list[int] = []
    for match in _CHAPTER_MARKER_RE.finditer(text):
        offset = match.start()
        if offset >= MIN_CHARS_BEFORE_SPLIT and offset not in starts:
            starts.append(offset)
    return starts


def find_page_breaks(text: str) -> list[int]:
    """Offsets just past each form feed or run of 4+ newlines."""
    return [match.end() for match in _PAGE_BREAK_RE.finditer(text)]


def split_into_chapters(text: str) -> list[str]:
    """Segment unstructured text into chapter-sized chunks.

    Chapter markers win when there are at least two of them. Otherwise page
    breaks are used, provided there are at least two and they produce fewer
    than a hundred segments. Failing both, the whole text is one segment.
    """
    starts = find_chapter_boundaries(text)
    if len(starts) < 2:
        breaks = find_page_breaks(text)
        if len(breaks) >= 2 and len(breaks) + 1 <= MAX_PAGE_BREAK_SEGMENTS:
            starts = breaks
        else:
            starts = []

    bounds = [0, *starts, len(text)]
    return [text[start:end] for start, end in zip(bounds, bounds[1:])]
