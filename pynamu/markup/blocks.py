#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Block parser
============
Scans a document top to bottom and produces the block tree.

Per line, in order:

  {{{#!wiki style="..."   styled container (recursively block-parsed)
  {{{#!folding title      collapsible section (recursively block-parsed)
  {{{#!raw                verbatim text
  {{{#!syntax lang        highlighted code
  ||...                   table run (handed to the table engine)
  #redirect Target#anchor redirect directive
  [목차] / [clearfix]      placeholders
  == Heading ==           heading (numbered through the section index)
   * item                 list item
  ----                    horizontal rule
  > text                  block quote
  [[분류:...]]            category tag, no output
  anything else           paragraph

Fences close when a running depth counter (3 per ``{{{``, seeded at 3)
reaches zero.  An unclosed fence is not an error: its opening line is parsed
as an ordinary line instead.

Lines are carried as ``(line_index, text)`` pairs so that headings inside
fenced containers still find their number in the header map.  Content that
has no place in the page's own numbering (included documents, fences written
inline) is parsed with ``line_index=None``.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import replace

from pynamu.core.config import Settings
from .attributes import parse_css_style
from .context import ParserContext
from .inline import CATEGORY_PREFIX_RE, parse_inline
from .nodes import (
    Block, BlockQuote, ClearFix, FoldingSection, Heading, HorizontalRule,
    ListItem, Paragraph, RawBlock, RedirectDirective, StyledContainer,
    SyntaxBlock, Text, TocPlaceholder,
)
from .sections import build_sections, match_heading, section_id, visibility_map
from .tables import brace_balance, parse_table

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

Line = tuple[int | None, str]

REDIRECT_RE    = re.compile(r"^#redirect\s+(.+)$", re.IGNORECASE)
_LIST_RE       = re.compile(r"^(\s*)\*\s*(.*)$")
_HR_RE         = re.compile(r"^-{4,}$")
_CATEGORY_RE   = re.compile(r"\[\[(?:분류|Category):([^\]|#]+)[^\]]*\]\]", re.IGNORECASE)
_WIKI_OPEN_RE  = re.compile(r'^\{\{\{#!wiki(\s+style="[^"]*")?')
_STYLE_ATTR_RE = re.compile(r'style="([^"]*)"')
_RAW_OPEN_RE   = re.compile(r"^\{\{\{#!raw\s*")

TOC_MACRO      = "[목차]"
CLEARFIX_MACRO = "[clearfix]"

_DEFAULT_FOLDING_TITLE = "more"


# -----------------------------------------------------------------------------
# Line helpers
# -----------------------------------------------------------------------------

def split_lines(source: str) -> list[str]:
    """Split on ``\\n`` and drop one trailing ``\\r`` per line."""
    return [line[:-1] if line.endswith("\r") else line for line in source.split("\n")]


def unnumbered(lines: Iterable[str]) -> list[Line]:
    return [(None, line) for line in lines]


def _strip_last_fence(text: str) -> str:
    head, sep, tail = text.rpartition("}}}")
    return head + tail if sep else text


# -----------------------------------------------------------------------------
# Fenced regions
# -----------------------------------------------------------------------------

def _scan_fence(lines: Sequence[Line], start: int, first: str | None) -> tuple[list[Line], int] | None:
    """Collect a fenced region opened at *start*.

    *first* is what remains of the opening line after its marker, or None
    when the opening line contributes nothing (folding titles).  Returns the
    content lines and the index after the closing line, or None when the
    fence never closes.
    """
    depth = 3
    content: list[Line] = []
    k = start if first is not None else start + 1
    while k < len(lines):
        number, text = lines[k]
        if k == start:
            text = first
        depth += 3 * brace_balance(text)
        if depth <= 0:
            closing = _strip_last_fence(text)
            if closing.strip():
                content.append((number, closing))
            return content, k + 1
        if k != start or text.strip():
            content.append((number, text))
        k += 1
    return None


def _parse_fence(lines: Sequence[Line], i: int, ctx: ParserContext) -> tuple[Block, int] | None:
    stripped = lines[i][1].strip()

    if stripped.startswith("{{{#!wiki"):
        m = _STYLE_ATTR_RE.search(stripped)
        scanned = _scan_fence(lines, i, _WIKI_OPEN_RE.sub("", stripped, count=1))
        if scanned is None:
            return None
        content, end = scanned
        style = parse_css_style(m.group(1)) if m else {}
        return StyledContainer(style=style, children=parse_blocks(content, ctx.nested())), end

    if stripped.startswith("{{{#!folding"):
        title = stripped[len("{{{#!folding"):].strip() or _DEFAULT_FOLDING_TITLE
        scanned = _scan_fence(lines, i, None)
        if scanned is None:
            return None
        content, end = scanned
        return FoldingSection(title=title, children=parse_blocks(content, ctx.nested())), end

    if stripped.startswith("{{{#!raw"):
        scanned = _scan_fence(lines, i, _RAW_OPEN_RE.sub("", stripped, count=1))
        if scanned is None:
            return None
        content, end = scanned
        return RawBlock(text="\n".join(text for _, text in content)), end

    if stripped.startswith("{{{#!syntax"):
        language, _, rest = stripped[len("{{{#!syntax"):].strip().partition(" ")
        scanned = _scan_fence(lines, i, rest)
        if scanned is None:
            return None
        content, end = scanned
        return SyntaxBlock(language=language, code="\n".join(text for _, text in content)), end

    return None


def _collect_table(lines: Sequence[Line], i: int) -> tuple[list[str], int]:
    """Consume a ``||`` run; a row with an open ``{{{`` keeps the run going."""
    collected: list[str] = []
    depth = 0
    m = i
    while m < len(lines):
        text = lines[m][1]
        depth += brace_balance(text)
        collected.append(text)
        m += 1
        if depth <= 0 and m < len(lines) and not lines[m][1].strip().startswith("||"):
            break
    return collected, m


# -----------------------------------------------------------------------------
# Single lines
# -----------------------------------------------------------------------------

def _redirect(target: str, ctx: ParserContext) -> RedirectDirective:
    slug, _, anchor = target.partition("#")
    slug = slug.strip()
    exists = ctx.exists(slug) if slug else True
    return RedirectDirective(target=target, slug=slug, anchor=anchor or None, exists=exists)


def parse_line(raw: str, ctx: ParserContext, line: int | None = None) -> Block | None:
    """Parse one non-fenced, non-table line.  Category lines yield None."""
    text = raw.strip()

    m = REDIRECT_RE.match(text)
    if m:
        return _redirect(m.group(1).strip(), ctx)

    if text == TOC_MACRO:
        return TocPlaceholder()
    if text.lower() == CLEARFIX_MACRO:
        return ClearFix()

    heading = match_heading(text)
    if heading:
        level, _, title = heading
        number = ctx.header_map.get(line) if line is not None else None
        sid = section_id(number) if number else None
        return Heading(
            level=level,
            text=title,
            children=parse_inline(title, ctx),
            section_id=sid,
            number=number,
            collapsed=sid in ctx.collapsed if sid else False,
            line=line,
        )

    m = _LIST_RE.match(raw)
    if m:
        depth = len(m.group(1))
        return ListItem(depth=depth, indent=depth * ctx.indent_unit, children=parse_inline(m.group(2), ctx))

    if not text:
        return Paragraph()
    if text.startswith("[[") and text.endswith("]]") and CATEGORY_PREFIX_RE.match(text[2:]):
        return None
    if _HR_RE.match(text):
        return HorizontalRule()
    if text.startswith(">"):
        return BlockQuote(children=parse_inline(text[1:].strip(), ctx))

    return Paragraph(children=parse_inline(text, ctx))


# -----------------------------------------------------------------------------
# Block sequences
# -----------------------------------------------------------------------------

def parse_blocks(lines: Sequence[Line], ctx: ParserContext) -> list[Block]:
    """Run the block state machine over numbered lines."""
    if ctx.too_deep:
        return [Paragraph(children=[Text(text)]) if text.strip() else Paragraph() for _, text in lines]

    blocks: list[Block] = []
    i = 0
    while i < len(lines):
        number, text = lines[i]
        stripped = text.strip()

        if stripped.startswith("{{{#!"):
            fenced = _parse_fence(lines, i, ctx)
            if fenced is not None:
                block, i = fenced
                blocks.append(block)
                continue

        if stripped.startswith("||"):
            table_lines, i = _collect_table(lines, i)
            blocks.append(parse_table(table_lines, ctx))
            continue

        block = parse_line(text, ctx, number)
        if block is not None:
            blocks.append(block)
        i += 1
    return blocks


def parse_document(
    source: str,
    ctx: ParserContext | None = None,
    *,
    slug: str | None = None,
    existing: Iterable[str] = (),
    includes: dict[str, str | None] | None = None,
    collapsed: Iterable[str] | None = None,
    settings: Settings | None = None,
) -> list[Block]:
    """Parse a whole page.

    Builds the section index once, numbers headings through the header map,
    and leaves out lines hidden under collapsed sections.  *collapsed*
    defaults to the sections written collapsed in the source.
    """
    if not source:
        return []
    if ctx is None:
        ctx = ParserContext.create(slug=slug, existing=existing, includes=includes, settings=settings)

    lines = split_lines(source)
    index = build_sections(lines)
    hidden = frozenset(index.initial_collapsed if collapsed is None else collapsed)
    visible = visibility_map(lines, index.header_map, hidden)
    page_ctx = replace(ctx, header_map=index.header_map, collapsed=hidden)

    mark = len(ctx.footnotes)
    try:
        return parse_blocks([(i, line) for i, line in enumerate(lines) if visible[i]], page_ctx)
    except RecursionError:
        log.warning("markup for %r nests too deeply; rendering as plain text", ctx.slug)
        ctx.footnotes.truncate(mark)
        return [Paragraph(children=[Text(line.strip())]) if line.strip() else Paragraph() for line in lines]


# -----------------------------------------------------------------------------
# Metadata
# -----------------------------------------------------------------------------

def extract_categories(source: str) -> list[str]:
    """Category names declared with ``[[분류:Name]]`` / ``[[Category:Name]]``.

    Declaration order, de-duplicated.
    """
    seen: set[str] = set()
    result: list[str] = []
    for m in _CATEGORY_RE.finditer(source):
        name = m.group(1).strip()
        if name and name not in seen:
            seen.add(name)
            result.append(name)
    return result


def parse_redirect(source: str) -> str | None:
    """Return the redirect target if the first non-blank line is ``#redirect``."""
    for line in split_lines(source):
        line = line.strip()
        if not line:
            continue
        m = REDIRECT_RE.match(line)
        if m:
            return m.group(1).strip()
        break
    return None


# -----------------------------------------------------------------------------
