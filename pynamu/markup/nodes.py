#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Document model
==============
The tree produced by the markup engine.

Blocks own inline nodes; folding sections and styled containers own nested
blocks, so a parsed page is a tree.  Every node class carries a ``kind``
string that the serialisers (``html.py`` / ``serialize.py``) dispatch on.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Union


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Inline nodes
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(slots=True)
class Text:
    kind: ClassVar[str] = "text"
    value: str


@dataclass(slots=True)
class LineBreak:
    kind: ClassVar[str] = "line_break"


@dataclass(slots=True)
class Bold:
    kind: ClassVar[str] = "bold"
    children: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class Italic:
    kind: ClassVar[str] = "italic"
    children: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class Underline:
    kind: ClassVar[str] = "underline"
    children: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class Strike:
    kind: ClassVar[str] = "strike"
    children: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class Superscript:
    kind: ClassVar[str] = "superscript"
    children: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class Subscript:
    kind: ClassVar[str] = "subscript"
    children: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class ColoredSpan:
    kind: ClassVar[str] = "colored"
    color: str
    children: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class SizedSpan:
    """``{{{+2 text}}}`` — *level* is -5..+5, *scale* the em factor."""
    kind: ClassVar[str] = "sized"
    level: int
    scale: float
    children: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class RawSpan:
    kind: ClassVar[str] = "raw_span"
    value: str


@dataclass(slots=True)
class InternalLink:
    kind: ClassVar[str] = "internal_link"
    target: str
    anchor: str | None
    exists: bool
    children: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class ExternalLink:
    kind: ClassVar[str] = "external_link"
    url: str
    show_icon: bool = True
    interwiki: bool = False
    children: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class Image:
    kind: ClassVar[str] = "image"
    filename: str
    width: str | None = None
    align: str | None = None


@dataclass(slots=True)
class FootnoteRef:
    kind: ClassVar[str] = "footnote_ref"
    id: int
    label: str


@dataclass(slots=True)
class YoutubeEmbed:
    kind: ClassVar[str] = "youtube"
    video_id: str
    width: str = "640px"
    height: str = "360px"


@dataclass(slots=True)
class IncludeError:
    """Inert marker left where an inclusion could not be resolved."""
    kind: ClassVar[str] = "include_error"
    slug: str
    reason: str


@dataclass(slots=True)
class Include:
    kind: ClassVar[str] = "include"
    slug: str
    params: dict[str, str] = field(default_factory=dict)
    blocks: list[Block] = field(default_factory=list)
    error: IncludeError | None = None


@dataclass(slots=True)
class Embedded:
    """A fenced block (folding / wiki / syntax) written inside a line."""
    kind: ClassVar[str] = "embedded"
    block: Block


Inline = Union[
    Text, LineBreak, Bold, Italic, Underline, Strike, Superscript, Subscript,
    ColoredSpan, SizedSpan, RawSpan, InternalLink, ExternalLink, Image,
    FootnoteRef, YoutubeEmbed, Include, Embedded,
]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Blocks
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(slots=True)
class Heading:
    kind: ClassVar[str] = "heading"
    level: int
    text: str
    children: list[Inline] = field(default_factory=list)
    section_id: str | None = None
    number: str | None = None
    collapsed: bool = False
    line: int | None = None


@dataclass(slots=True)
class ListItem:
    kind: ClassVar[str] = "list_item"
    depth: int
    indent: int
    children: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class TableCell:
    kind: ClassVar[str] = "table_cell"
    text: str
    children: list[Inline] = field(default_factory=list)
    col_span: int = 1
    row_span: int = 1
    style: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class TableRow:
    kind: ClassVar[str] = "table_row"
    cells: list[TableCell] = field(default_factory=list)
    style: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class Table:
    kind: ClassVar[str] = "table"
    rows: list[TableRow] = field(default_factory=list)
    col_styles: list[dict[str, str]] = field(default_factory=list)
    style: dict[str, str] = field(default_factory=dict)
    wrapper_style: dict[str, str] = field(default_factory=dict)
    align: str | None = None

    @property
    def column_count(self) -> int:
        return max((len(r.cells) for r in self.rows), default=0)


@dataclass(slots=True)
class BlockQuote:
    kind: ClassVar[str] = "blockquote"
    children: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class HorizontalRule:
    kind: ClassVar[str] = "horizontal_rule"


@dataclass(slots=True)
class RawBlock:
    kind: ClassVar[str] = "raw_block"
    text: str


@dataclass(slots=True)
class SyntaxBlock:
    kind: ClassVar[str] = "syntax_block"
    language: str
    code: str


@dataclass(slots=True)
class StyledContainer:
    kind: ClassVar[str] = "styled_container"
    style: dict[str, str] = field(default_factory=dict)
    children: list[Block] = field(default_factory=list)


@dataclass(slots=True)
class FoldingSection:
    kind: ClassVar[str] = "folding"
    title: str
    children: list[Block] = field(default_factory=list)


@dataclass(slots=True)
class TocPlaceholder:
    kind: ClassVar[str] = "toc"


@dataclass(slots=True)
class ClearFix:
    kind: ClassVar[str] = "clearfix"


@dataclass(slots=True)
class RedirectDirective:
    kind: ClassVar[str] = "redirect"
    target: str
    slug: str
    anchor: str | None
    exists: bool


@dataclass(slots=True)
class NoticeEntry:
    target: str
    exists: bool
    description: str | None = None


@dataclass(slots=True)
class TemplateNotice:
    """Fixed micro-layout of the built-in see-also / parent / disambiguation templates."""
    kind: ClassVar[str] = "template_notice"
    template: str
    entries: list[NoticeEntry] = field(default_factory=list)


@dataclass(slots=True)
class Paragraph:
    kind: ClassVar[str] = "paragraph"
    children: list[Inline] = field(default_factory=list)


Block = Union[
    Heading, ListItem, Table, BlockQuote, HorizontalRule, RawBlock, SyntaxBlock,
    StyledContainer, FoldingSection, TocPlaceholder, ClearFix, RedirectDirective,
    TemplateNotice, Paragraph,
]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Render-level records
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(slots=True)
class TocEntry:
    section_id: str
    text: str
    level: int
    number: str


@dataclass(slots=True)
class Footnote:
    id: int
    label: str
    children: list[Inline] = field(default_factory=list)


@dataclass(slots=True)
class Document:
    slug: str | None
    blocks: list[Block] = field(default_factory=list)
    toc: list[TocEntry] = field(default_factory=list)
    footnotes: list[Footnote] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    redirect: str | None = None


# -----------------------------------------------------------------------------
