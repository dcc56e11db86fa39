"""Normalize HTML into plain text and content blocks."""

import html as html_lib
import logging
import re
import warnings

from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning
from markdownify import markdownify as md

from folio.core.fallback import FallbackChain
from folio.models.blocks import (
    Code,
    ContentBlock,
    Heading,
    Image,
    ListBlock,
    Paragraph,
    Quote,
    Separator,
)

# EPUB documents are XHTML; parsing them as HTML is intended
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

log = logging.getLogger(__name__)

_SCRIPT_RE = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_BLOCK_RE = re.compile(r"<(p|h[1-6])(?:\s[^>]*)?>(.*?)</\1\s*>", re.IGNORECASE | re.DOTALL)
_BODY_RE = re.compile(r"<body[^>]*>(.*?)</body>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_BLANK_LINES_RE = re.compile(r"\n\s*\n")
_MARKER_RE = re.compile(r"^[ \t]*(?:#{1,6}|>)[ \t]?", re.MULTILINE)
_IMAGE_RE = re.compile(r'^!\[([^\]]*)\]\(([^)\s]+)(?:\s+"([^"]*)")?\)$')
_BULLET_RE = re.compile(r"^[-*+]\s+")
_ORDERED_RE = re.compile(r"^\d+[.)]\s+")

SEPARATORS = {"---", "***", "* * *", "- - -"}
MAX_SHORT_HEADING_CHARS = 100
MIN_QUOTED_PARAGRAPH_CHARS = 50


# =============================================================================
# HTML to text
# =============================================================================


def html_to_markdown_text(html: str | bytes, width: int) -> str:
    """Convert HTML to lightly marked-up text wrapped at `width` columns."""
    soup = BeautifulSoup(html, "lxml")

    # Remove scripts and styles
    for tag in soup(["script", "style"]):
        tag.decompose()

    body = soup.body or soup
    markdown = md(
        str(body),
        heading_style="ATX",
        bullets="-",
        strip=["a"],  # Remove link formatting but keep text
        escape_asterisks=False,
        escape_underscores=False,
        wrap=True,
        wrap_width=width,
    )

    # Remove multiple consecutive blank lines
    lines = [line.rstrip() for line in markdown.split("\n")]
    cleaned = []
    prev_blank = False
    for line in lines:
        is_blank = not line.strip()
        if is_blank and prev_blank:
            continue
        cleaned.append(line)
        prev_blank = is_blank

    return "\n".join(cleaned).strip()


def html_to_text(html: str | bytes, width: int = 80) -> str:
    """Convert HTML to plain text, dropping heading and quote markers."""
    return _MARKER_RE.sub("", html_to_markdown_text(html, width))


def strip_tags(fragment: str) -> str:
    """Remove tags and decode entities from an HTML fragment."""
    text = _TAG_RE.sub("", fragment)
    return html_lib.unescape(text).replace("\xa0", " ")


# =============================================================================
# Text chunk classification
# =============================================================================


def classify_text_chunk(chunk: str) -> ContentBlock:
    """Map one blank-line-separated chunk of converted text to a block."""
    trimmed = chunk.strip()
    lines = trimmed.splitlines()

    if trimmed in SEPARATORS:
        return Separator()

    if trimmed.startswith("#"):
        level = len(trimmed) - len(trimmed.lstrip("#"))
        return Heading(level=min(max(level, 1), 6), text=trimmed.lstrip("#").strip())

    # Short single line in capitals
    alpha_chars = [c for c in trimmed if c.isalpha()]
    if (
        len(trimmed) < MAX_SHORT_HEADING_CHARS
        and "." not in trimmed
        and len(lines) == 1
        and len(trimmed) > 2
        and alpha_chars
        and all(c.isupper() for c in alpha_chars)
    ):
        return Heading(level=1, text=trimmed)

    if trimmed.startswith(">"):
        text = " ".join(line.lstrip(">").strip() for line in lines)
        return Quote(text=text.strip())
    if trimmed.startswith('"') and len(trimmed) > MIN_QUOTED_PARAGRAPH_CHARS:
        return Quote(text=trimmed.lstrip('"').strip())

    if trimmed.startswith("```") and trimmed.endswith("```") and len(lines) > 1:
        language = lines[0].strip("`").strip() or None
        return Code(language=language, text="\n".join(lines[1:-1]))

    image = _IMAGE_RE.match(trimmed)
    if image:
        return Image(
            src=image.group(2),
            alt=image.group(1) or None,
            caption=image.group(3) or None,
        )

    if all(_BULLET_RE.match(line) for line in lines):
        return ListBlock(ordered=False, items=[_BULLET_RE.sub("", l) for l in lines])
    if all(_ORDERED_RE.match(line) for line in lines):
        return ListBlock(ordered=True, items=[_ORDERED_RE.sub("", l) for l in lines])

    return Paragraph(text=trimmed)


# =============================================================================
# HTML block extraction chain
# =============================================================================


def blocks_from_converted_text(
    html: str | bytes, width: int = 10000, min_chars: int = 20
) -> list[ContentBlock]:
    """Full HTML-to-text conversion, then one block per text chunk."""
    text = html_to_markdown_text(html, width)
    if len(text.strip()) < min_chars:
        return []
    return [
        classify_text_chunk(chunk)
        for chunk in _BLANK_LINES_RE.split(text)
        if chunk.strip()
    ]


def _as_text(html: str | bytes) -> str:
    if isinstance(html, bytes):
        return html.decode("utf-8", errors="replace")
    return html


def blocks_from_tag_regex(html: str | bytes, **_) -> list[ContentBlock]:
    """Pull <p> and <h1>-<h6> contents straight out of the markup."""
    html = _as_text(html)
    cleaned = _STYLE_RE.sub("", _SCRIPT_RE.sub("", html))

    blocks: list[ContentBlock] = []
    for match in _BLOCK_RE.finditer(cleaned):
        tag = match.group(1).lower()
        text = " ".join(strip_tags(match.group(2)).split())
        if tag == "p":
            if len(text) > 1:
                blocks.append(Paragraph(text=text))
        elif text:
            blocks.append(Heading(level=int(tag[1]), text=text))
    return blocks


def blocks_from_body_text(html: str | bytes, **_) -> list[ContentBlock]:
    """Strip every tag from <body> and split what is left on blank lines."""
    html = _as_text(html)
    cleaned = _STYLE_RE.sub("", _SCRIPT_RE.sub("", html))
    body = _BODY_RE.search(cleaned)
    if not body:
        return []

    text = strip_tags(body.group(1)).strip()
    if len(text) <= 10:
        return []

    blocks: list[ContentBlock] = []
    for part in _BLANK_LINES_RE.split(text):
        part = part.strip()
        if len(part) > 1:
            blocks.append(Paragraph(text=part))
    return blocks


HTML_BLOCK_CHAIN: FallbackChain[list[ContentBlock]] = (
    FallbackChain()
    .add("html_text", blocks_from_converted_text, "HTML-to-text conversion")
    .add("tag_regex", blocks_from_tag_regex, "Regex <p>/<h1-6> extraction")
    .add("body_text", blocks_from_body_text, "Tag-stripped <body> text")
)


def parse_html_blocks(
    html: str | bytes, width: int = 10000, min_chars: int = 20
) -> list[ContentBlock]:
    """Normalize one HTML document to content blocks via the fallback chain.

    Bytes go to BeautifulSoup undecoded so a declared charset is honoured.
    """
    name, blocks = HTML_BLOCK_CHAIN.run(html, width=width, min_chars=min_chars)
    if name is None:
        return []
    if name != "html_text":
        log.info(f"HTML normalized with fallback strategy: {name}")
    return blocks
