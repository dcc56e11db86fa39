"""Content block models: the closed set of typed blocks a chapter is made of."""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class StyleType(str, Enum):
    """Inline style applied to a span of paragraph text."""

    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKETHROUGH = "strikethrough"
    CODE = "code"
    LINK = "link"
    SUPERSCRIPT = "superscript"
    SUBSCRIPT = "subscript"
    SMALL_CAPS = "small_caps"


class TextStyle(BaseModel):
    """Styled span of a paragraph, as character offsets into its text."""

    start: int
    end: int
    style: StyleType


class BaseBlock(BaseModel):
    """Common behaviour of every content block."""

    def plain_text(self) -> str:
        return ""

    def word_count(self) -> int:
        return len(self.plain_text().split())


class Paragraph(BaseBlock):
    """A paragraph of text."""

    kind: Literal["paragraph"] = "paragraph"
    text: str
    styles: list[TextStyle] = Field(default_factory=list)

    def plain_text(self) -> str:
        return self.text


class Heading(BaseBlock):
    """A heading, level 1 (most important) to 6."""

    kind: Literal["heading"] = "heading"
    level: int = Field(default=1, ge=1, le=6)
    text: str

    def plain_text(self) -> str:
        return self.text


class Quote(BaseBlock):
    """A block quotation."""

    kind: Literal["quote"] = "quote"
    text: str
    attribution: str | None = None

    def plain_text(self) -> str:
        return self.text


class Code(BaseBlock):
    """A code block."""

    kind: Literal["code"] = "code"
    language: str | None = None
    text: str = ""

    def plain_text(self) -> str:
        return self.text


class Image(BaseBlock):
    """An image reference. Raw image bytes are never serialized."""

    kind: Literal["image"] = "image"
    src: str
    alt: str | None = None
    caption: str | None = None
    data: bytes | None = Field(default=None, exclude=True)

    def plain_text(self) -> str:
        return self.caption or self.alt or ""


class ListBlock(BaseBlock):
    """An ordered or unordered list of plain-text items."""

    kind: Literal["list"] = "list"
    ordered: bool = False
    items: list[str] = Field(default_factory=list)

    def plain_text(self) -> str:
        return "\n".join(self.items)


class Table(BaseBlock):
    """A table with a header row."""

    kind: Literal["table"] = "table"
    headers: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)

    def plain_text(self) -> str:
        lines = [" | ".join(self.headers)]
        lines.extend(" | ".join(row) for row in self.rows)
        return "\n".join(lines)


class Footnote(BaseBlock):
    """A footnote definition."""

    kind: Literal["footnote"] = "footnote"
    id: str
    text: str = ""

    def plain_text(self) -> str:
        return self.text


class Separator(BaseBlock):
    """A horizontal rule or scene break."""

    kind: Literal["separator"] = "separator"


class RawHtml(BaseBlock):
    """Markup passed through from formats that allow it."""

    kind: Literal["raw_html"] = "raw_html"
    text: str = ""

    def plain_text(self) -> str:
        from folio.core.html_normalizer import html_to_text

        return html_to_text(self.text, width=80)


class Break(BaseBlock):
    """Empty vertical space."""

    kind: Literal["break"] = "break"


ContentBlock = Annotated[
    Union[
        Paragraph,
        Heading,
        Quote,
        Code,
        Image,
        ListBlock,
        Table,
        Footnote,
        Separator,
        RawHtml,
        Break,
    ],
    Field(discriminator="kind"),
]


def block_text(block: BaseBlock) -> str:
    """Return the display text of a block.

    Dispatches over every variant explicitly; a kind added later falls
    through to the empty string instead of raising.
    """
    if isinstance(block, (Paragraph, Heading, Quote, Code, Footnote)):
        return block.text
    elif isinstance(block, Image):
        return block.caption or block.alt or ""
    elif isinstance(block, (ListBlock, Table, RawHtml)):
        return block.plain_text()
    elif isinstance(block, (Separator, Break)):
        return ""
    return ""
