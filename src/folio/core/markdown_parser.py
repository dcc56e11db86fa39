"""Markdown parsing: frontmatter metadata plus a token walk into content blocks."""

import logging
from pathlib import Path

from markdown_it import MarkdownIt
from markdown_it.token import Token
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

from folio.config import ParseSettings
from folio.core.parser_factory import BookParser
from folio.exceptions import ContainerOpenError
from folio.models.blocks import (
    Code,
    ContentBlock,
    Footnote,
    Heading,
    Image,
    ListBlock,
    Paragraph,
    Quote,
    RawHtml,
    Separator,
    StyleType,
    Table,
    TextStyle,
)
from folio.models.book import Book, BookContent, BookMetadata, Chapter, TocEntry

log = logging.getLogger(__name__)

# CommonMark plus the GFM extensions books tend to use
MARKDOWN = (
    MarkdownIt("commonmark")
    .enable(["table", "strikethrough"])
    .use(footnote_plugin)
    .use(tasklists_plugin)
)

FRONTMATTER_DELIMITER = "---"
MAX_TOC_HEADING_LEVEL = 3

INLINE_STYLES = {
    "strong": StyleType.BOLD,
    "em": StyleType.ITALIC,
    "s": StyleType.STRIKETHROUGH,
    "link": StyleType.LINK,
}


# =============================================================================
# Frontmatter
# =============================================================================


def parse_frontmatter(source: str) -> tuple[dict[str, str], str]:
    """Split a leading `---` block of `key: value` lines off the document.

    Returns the fields (keys lowercased, values unquoted) and the remaining body.
    Not YAML: one flat key per line.
    """
    if not source.startswith(FRONTMATTER_DELIMITER):
        return {}, source

    rest = source[len(FRONTMATTER_DELIMITER):]
    end = rest.find("\n" + FRONTMATTER_DELIMITER)
    if end == -1:
        return {}, source

    fields: dict[str, str] = {}
    for line in rest[:end].splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        value = value.strip().strip("\"'")
        fields[key.strip().lower()] = value

    body = rest[end + 1 + len(FRONTMATTER_DELIMITER):]
    return fields, body.lstrip("\n")


def _split_list(value: str) -> list[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def metadata_fields(fields: dict[str, str]) -> dict:
    """Map frontmatter keys onto BookMetadata fields, ignoring unknown keys."""
    result: dict = {}
    for key, value in fields.items():
        if key == "title":
            result["title"] = value
        elif key in ("author", "authors"):
            result["authors"] = _split_list(value)
        elif key in ("date", "published"):
            result["published"] = value
        elif key in ("description", "summary"):
            result["description"] = value
        elif key in ("tags", "subjects"):
            result["subjects"] = _split_list(value)
        elif key in ("lang", "language"):
            result["language"] = value
    return result


# =============================================================================
# Inline rendering
# =============================================================================


def render_inline(children: list[Token]) -> tuple[str, list[TextStyle], list[Image]]:
    """Flatten inline tokens to text with style spans; images are collected apart."""
    parts: list[str] = []
    length = 0
    styles: list[TextStyle] = []
    images: list[Image] = []
    open_spans: list[tuple[StyleType, int]] = []

    def add(text: str) -> None:
        nonlocal length
        parts.append(text)
        length += len(text)

    for child in children:
        kind = child.type
        if kind == "text":
            add(child.content)
        elif kind == "code_inline":
            start = length
            add(f"`{child.content}`")
            styles.append(TextStyle(start=start, end=length, style=StyleType.CODE))
        elif kind == "softbreak":
            add(" ")
        elif kind == "hardbreak":
            add("\n")
        elif kind.endswith("_open") and kind[:-5] in INLINE_STYLES:
            open_spans.append((INLINE_STYLES[kind[:-5]], length))
        elif kind.endswith("_close") and kind[:-6] in INLINE_STYLES:
            style = INLINE_STYLES[kind[:-6]]
            for i in range(len(open_spans) - 1, -1, -1):
                if open_spans[i][0] == style:
                    _, start = open_spans.pop(i)
                    if length > start:
                        styles.append(TextStyle(start=start, end=length, style=style))
                    break
        elif kind == "image":
            images.append(
                Image(
                    src=str(child.attrGet("src") or ""),
                    alt=child.content or None,
                    caption=str(child.attrGet("title") or "") or None,
                )
            )
        elif kind == "footnote_ref":
            meta = child.meta or {}
            label = meta.get("label") or str(meta.get("id", 0) + 1)
            add(f"[{label}]")
        elif kind == "html_inline":
            # Task list checkboxes arrive as inline <input> markup
            if 'type="checkbox"' in child.content:
                add("[x] " if "checked" in child.content else "[ ] ")

    return "".join(parts), styles, images


# =============================================================================
# Block walk
# =============================================================================


class _BlockWalker:
    """Consume the block token stream, emitting content blocks and TOC entries."""

    def __init__(self):
        self.blocks: list[ContentBlock] = []
        self.toc: list[TocEntry] = []

        self.heading_level: int | None = None
        self.heading_text = ""

        self.list_depth = 0
        self.list_ordered = False
        self.list_items: list[str] = []

        self.quote_depth = 0
        self.quote_parts: list[str] = []

        self.table_headers: list[str] | None = None
        self.table_rows: list[list[str]] = []
        self.in_table_head = False

        self.footnote_label: str | None = None
        self.footnote_parts: list[str] = []

    def walk(self, tokens: list[Token]) -> None:
        for token in tokens:
            handler = getattr(self, f"_on_{token.type}", None)
            if handler is not None:
                handler(token)

    # Headings

    def _on_heading_open(self, token: Token) -> None:
        self.heading_level = int(token.tag[1:])
        self.heading_text = ""

    def _on_heading_close(self, token: Token) -> None:
        level = self.heading_level or 1
        text = self.heading_text.strip()
        self.heading_level = None
        if self._fold(text):
            return
        if level <= MAX_TOC_HEADING_LEVEL:
            self.toc.append(
                TocEntry(title=text, href=f"heading-{len(self.blocks)}", level=level - 1)
            )
        self.blocks.append(Heading(level=level, text=text))

    # Lists (nested lists flatten into the outermost one)

    def _on_bullet_list_open(self, token: Token) -> None:
        self._open_list(ordered=False)

    def _on_ordered_list_open(self, token: Token) -> None:
        self._open_list(ordered=True)

    def _open_list(self, ordered: bool) -> None:
        if self.list_depth == 0:
            self.list_ordered = ordered
            self.list_items = []
        self.list_depth += 1

    def _on_list_item_open(self, token: Token) -> None:
        if self.quote_depth == 0:
            self.list_items.append("")

    def _on_bullet_list_close(self, token: Token) -> None:
        self._close_list()

    def _on_ordered_list_close(self, token: Token) -> None:
        self._close_list()

    def _close_list(self) -> None:
        self.list_depth -= 1
        if self.list_depth == 0 and self.quote_depth == 0:
            items = [item for item in self.list_items if item]
            if items:
                self.blocks.append(ListBlock(ordered=self.list_ordered, items=items))

    # Quotes

    def _on_blockquote_open(self, token: Token) -> None:
        if self.quote_depth == 0:
            self.quote_parts = []
        self.quote_depth += 1

    def _on_blockquote_close(self, token: Token) -> None:
        self.quote_depth -= 1
        if self.quote_depth == 0:
            text = "\n\n".join(self.quote_parts).strip()
            if text:
                self.blocks.append(Quote(text=text))

    # Tables

    def _on_table_open(self, token: Token) -> None:
        self.table_headers = []
        self.table_rows = []

    def _on_thead_open(self, token: Token) -> None:
        self.in_table_head = True

    def _on_thead_close(self, token: Token) -> None:
        self.in_table_head = False

    def _on_tr_open(self, token: Token) -> None:
        if not self.in_table_head:
            self.table_rows.append([])

    def _on_table_close(self, token: Token) -> None:
        headers = self.table_headers or []
        self.table_headers = None
        if self._in_container:
            for row in [headers, *self.table_rows]:
                if row:
                    self._fold(" | ".join(row))
            return
        self.blocks.append(Table(headers=headers, rows=self.table_rows))

    # Footnotes

    def _on_footnote_open(self, token: Token) -> None:
        meta = token.meta or {}
        self.footnote_label = meta.get("label") or str(meta.get("id", 0) + 1)
        self.footnote_parts = []

    def _on_footnote_close(self, token: Token) -> None:
        text = "\n\n".join(self.footnote_parts).strip()
        self.blocks.append(Footnote(id=self.footnote_label or "", text=text))
        self.footnote_label = None

    # Leaf blocks (folded into an open footnote, quote or list item)

    @property
    def _in_container(self) -> bool:
        return self.footnote_label is not None or bool(self.quote_depth or self.list_depth)

    def _fold(self, text: str) -> bool:
        """Add text to the innermost open container. False when none is open."""
        if self.footnote_label is not None:
            self.footnote_parts.append(text)
        elif self.quote_depth:
            self.quote_parts.append(text)
        elif self.list_depth:
            if self.list_items:
                self.list_items[-1] = " ".join(f"{self.list_items[-1]} {text}".split())
        else:
            return False
        return True

    def _on_fence(self, token: Token) -> None:
        info = token.info.strip()
        if self._fold(token.content.rstrip("\n")):
            return
        self.blocks.append(
            Code(language=info.split()[0] if info else None, text=token.content.rstrip("\n"))
        )

    def _on_code_block(self, token: Token) -> None:
        if self._fold(token.content.rstrip("\n")):
            return
        self.blocks.append(Code(language=None, text=token.content.rstrip("\n")))

    def _on_hr(self, token: Token) -> None:
        if not self._in_container:
            self.blocks.append(Separator())

    def _on_html_block(self, token: Token) -> None:
        markup = token.content.strip()
        if markup and not self._in_container:
            self.blocks.append(RawHtml(text=markup))

    def _on_inline(self, token: Token) -> None:
        text, styles, images = render_inline(token.children or [])

        if self.heading_level is not None:
            self.heading_text += text
        elif self.table_headers is not None:
            if self.in_table_head:
                self.table_headers.append(text.strip())
            elif self.table_rows:
                self.table_rows[-1].append(text.strip())
        elif not self._fold(text):
            if text.strip():
                self.blocks.append(Paragraph(text=text, styles=styles))
            self.blocks.extend(images)


def parse_markdown_content(source: str) -> tuple[list[ContentBlock], list[TocEntry]]:
    """Parse a Markdown body into content blocks and a heading-based TOC."""
    walker = _BlockWalker()
    walker.walk(MARKDOWN.parse(source))
    return walker.blocks, walker.toc


# =============================================================================
# Markdown Parser Class
# =============================================================================


class MarkdownParser(BookParser):
    """Parse Markdown files into a single chapter."""

    format_name = "markdown"

    def __init__(self, path: Path, settings: ParseSettings | None = None):
        super().__init__(path, settings)
        try:
            self.source = self.path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise ContainerOpenError(path, f"cannot read file: {e}") from e

    def parse(self) -> Book:
        """Parse the document and return complete structure."""
        fields, body = parse_frontmatter(self.source)
        blocks, toc = parse_markdown_content(body)
        log.debug(f"Markdown {self.path.name}: {len(blocks)} blocks, {len(toc)} headings")

        chapter = Chapter(id="main", title=None, blocks=blocks, order=0)
        return Book(
            metadata=self._build_metadata(fields, blocks),
            content=BookContent(chapters=[chapter], toc=toc),
            source_path=self.path,
            format=self.format_name,
        )

    def get_metadata(self) -> BookMetadata:
        """Extract book metadata."""
        fields, body = parse_frontmatter(self.source)
        blocks: list[ContentBlock] = []
        if not fields.get("title"):
            blocks, _ = parse_markdown_content(body)
        return self._build_metadata(fields, blocks)

    def _build_metadata(
        self, fields: dict[str, str], blocks: list[ContentBlock]
    ) -> BookMetadata:
        values = metadata_fields(fields)
        if not values.get("title"):
            first = blocks[0] if blocks else None
            if isinstance(first, Heading) and first.level == 1 and first.text:
                values["title"] = first.text
            else:
                values["title"] = self.path.stem
        return BookMetadata(**values)
