#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Inline parser
=============
Converts one line (or a cell / label / footnote fragment) of markup into a
list of inline nodes.

Dispatch is leftmost-match: every construct reports where its next occurrence
starts and the earliest one wins.  When two constructs start at the same
index the one listed first in ``_PRIORITY`` wins, which is how ``'''bold'''``
beats ``''italic''``.  Bracketed constructs (``[* ]``, ``[[ ]]``, ``{{{ }}}``)
only report openers that have a balanced closer, so an unterminated opener is
never a candidate and stays literal text.

Scanning is iterative over the remainder of the line; only construct bodies
recurse, and each level of recursion costs one unit of ``ctx.nesting``.
Beyond ``ctx.max_nesting`` the fragment is returned as plain text.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from bisect import bisect_left
from typing import Callable, NamedTuple
from urllib.parse import quote

from .attributes import format_size, parse_css_style, parse_text_color
from .context import ParserContext
from .footnotes import split_footnote_body
from .include import INCLUDE_RE, parse_include_args, resolve_include
from .nodes import (
    Bold, ColoredSpan, Embedded, ExternalLink, FoldingSection, FootnoteRef,
    Image, Include, Inline, InternalLink, Italic, LineBreak, RawSpan, SizedSpan,
    StyledContainer, Strike, Subscript, Superscript, SyntaxBlock, Text,
    Underline, YoutubeEmbed,
)


# -----------------------------------------------------------------------------

_YOUTUBE_RE   = re.compile(r"\[youtube\((.*?)\)\]", re.IGNORECASE)
_BR_RE        = re.compile(r"\[br\]", re.IGNORECASE)
_BOLD_RE      = re.compile(r"'''(.*?)'''")
_ITALIC_RE    = re.compile(r"''(.*?)''")
_UNDERLINE_RE = re.compile(r"__(.*?)__")
_DEL_RE       = re.compile(r"~~(.*?)~~")
_DASH_DEL_RE  = re.compile(r"--(.*?)--")
_SUP_RE       = re.compile(r"\^\^(.*?)\^\^")
_SUB_RE       = re.compile(r",,(.*?),,")

_BRACE_TOKEN_RE   = re.compile(r"\{\{\{|\}\}\}")
_LINK_TOKEN_RE    = re.compile(r"\[\[|\]\]")
_BRACKET_TOKEN_RE = re.compile(r"[\[\]]")

IMAGE_PREFIX_RE    = re.compile(r"^(파일|File|이미지):", re.IGNORECASE)
CATEGORY_PREFIX_RE = re.compile(r"^(분류|Category):", re.IGNORECASE)
_EXTERNAL_RE       = re.compile(r"^https?://", re.IGNORECASE)
_IMAGE_IN_LABEL_RE = re.compile(r"\[\[(?:파일|File|이미지):", re.IGNORECASE)
_ANCHOR_SPLIT_RE   = re.compile(r"(?<!\\)#")

_FOLDING_TITLE_RE = re.compile(r"^\[(.*?)\]")
_WIKI_PREFIX_RE   = re.compile(r'^#!wiki(\s+style="[^"]*")?')
_STYLE_ATTR_RE    = re.compile(r'style="([^"]*)"')
_RAW_PREFIX_RE    = re.compile(r"^#!raw\s?")
_SIZE_RE          = re.compile(r"^\s*([+-])([1-5])\s+(.*)$", re.DOTALL)

SIZE_SCALES = {
    "+1": 1.28889, "+2": 1.38889, "+3": 1.48144, "+4": 1.57400, "+5": 1.66667,
    "-1": 0.92589, "-2": 0.83333, "-3": 0.74067, "-4": 0.64811, "-5": 0.62222,
}

_INTERWIKI_PREFIX = "!NW:"
_DEFAULT_FOLDING_TITLE = "more"
_OPENER_WIDTH = {"note": 2, "wiki": 2, "brace": 3}

_PRIORITY = (
    "note", "include", "brace", "youtube", "wiki", "br",
    "bold", "italic", "underline", "del", "dash_del", "sup", "sub",
)

_REGEX_CONSTRUCTS = {
    "include":   INCLUDE_RE,
    "youtube":   _YOUTUBE_RE,
    "br":        _BR_RE,
    "bold":      _BOLD_RE,
    "italic":    _ITALIC_RE,
    "underline": _UNDERLINE_RE,
    "del":       _DEL_RE,
    "dash_del":  _DASH_DEL_RE,
    "sup":       _SUP_RE,
    "sub":       _SUB_RE,
}

_SPAN_WRAPPERS: dict[str, Callable[[list[Inline]], Inline]] = {
    "bold":      Bold,
    "italic":    Italic,
    "underline": Underline,
    "del":       Strike,
    "dash_del":  Strike,
    "sup":       Superscript,
    "sub":       Subscript,
}


# -----------------------------------------------------------------------------
# Scanner
# -----------------------------------------------------------------------------

class _Hit(NamedTuple):
    construct: str
    start: int
    end: int
    body: str


def _pair_tokens(text: str, token_re: re.Pattern, opener: str) -> dict[int, re.Match]:
    """Map each balanced opener offset to the token that closes it."""
    pairs: dict[int, re.Match] = {}
    stack: list[int] = []
    for tok in token_re.finditer(text):
        if tok.group(0) == opener:
            stack.append(tok.start())
        elif stack:
            pairs[stack.pop()] = tok
    return pairs


class _Scanner:
    """Finds the leftmost construct at or after a position in one fragment."""

    _NONE = object()

    def __init__(self, text: str) -> None:
        self.text = text
        braces = _pair_tokens(text, _BRACE_TOKEN_RE, "{{{")
        links = _pair_tokens(text, _LINK_TOKEN_RE, "[[")
        notes = {
            start: close
            for start, close in _pair_tokens(text, _BRACKET_TOKEN_RE, "[").items()
            if text.startswith("[*", start)
        }
        self._pairs = {"brace": braces, "wiki": links, "note": notes}
        self._openers = {name: sorted(found) for name, found in self._pairs.items()}
        self._cache: dict[str, object] = {}

    def _find(self, construct: str, pos: int) -> _Hit | None:
        text = self.text
        if construct in self._pairs:
            openers = self._openers[construct]
            idx = bisect_left(openers, pos)
            if idx == len(openers):
                return None
            start = openers[idx]
            close = self._pairs[construct][start]
            skip = _OPENER_WIDTH[construct]
            return _Hit(construct, start, close.end(), text[start + skip:close.start()])
        m = _REGEX_CONSTRUCTS[construct].search(text, pos)
        if m is None:
            return None
        return _Hit(construct, m.start(), m.end(), m.group(1) if m.groups() else "")

    def next_hit(self, pos: int) -> _Hit | None:
        best: _Hit | None = None
        for construct in _PRIORITY:
            cached = self._cache.get(construct)
            if cached is self._NONE:
                continue
            if cached is None or cached.start < pos:
                cached = self._find(construct, pos)
                self._cache[construct] = cached if cached is not None else self._NONE
                if cached is None:
                    continue
            if best is None or cached.start < best.start:
                best = cached
        return best


# -----------------------------------------------------------------------------
# Public entry point
# -----------------------------------------------------------------------------

def parse_inline(text: str, ctx: ParserContext) -> list[Inline]:
    """Parse *text* into inline nodes.  Never raises on malformed markup."""
    if not text:
        return []
    if ctx.too_deep:
        return [Text(text)]

    inner = ctx.nested()
    scanner = _Scanner(text)
    nodes: list[Inline] = []
    pos = 0

    while True:
        hit = scanner.next_hit(pos)
        if hit is None:
            break
        if hit.start > pos:
            _append(nodes, Text(text[pos:hit.start]))
        for node in _HANDLERS[hit.construct](hit, inner):
            _append(nodes, node)
        pos = hit.end

    if pos < len(text):
        _append(nodes, Text(text[pos:]))
    return nodes


def _append(nodes: list[Inline], node: Inline) -> None:
    if isinstance(node, Text):
        if not node.value:
            return
        if nodes and isinstance(nodes[-1], Text):
            nodes[-1] = Text(nodes[-1].value + node.value)
            return
    nodes.append(node)


# -----------------------------------------------------------------------------
# Construct handlers
# -----------------------------------------------------------------------------

def _note(hit: _Hit, ctx: ParserContext) -> list[Inline]:
    label, content = split_footnote_body(hit.body)
    children: list[Inline] = []
    note_id = ctx.footnotes.push(label, children)
    children.extend(parse_inline(content, ctx))
    return [FootnoteRef(id=note_id, label=ctx.footnotes.get(note_id).label)]


def _include(hit: _Hit, ctx: ParserContext) -> list[Inline]:
    slug, params = parse_include_args(hit.body)
    result = resolve_include(hit.body, ctx)
    if isinstance(result, list):
        return [Include(slug=slug, params=params, blocks=result)]
    return [Include(slug=slug, params=params, error=result)]


def _brace(hit: _Hit, ctx: ParserContext) -> list[Inline]:
    from .blocks import parse_blocks, unnumbered

    body = hit.body

    if body.startswith("#!raw"):
        return [RawSpan(_RAW_PREFIX_RE.sub("", body, count=1))]

    if body.startswith("#!folding"):
        rest = body[len("#!folding"):].strip()
        title, content = _DEFAULT_FOLDING_TITLE, rest
        m = _FOLDING_TITLE_RE.match(rest)
        if m:
            title, content = m.group(0), rest[m.end():].strip()
        elif "\n" in rest:
            first, _, content = rest.partition("\n")
            title = first.strip() or _DEFAULT_FOLDING_TITLE
        children = parse_blocks(unnumbered(content.split("\n")), ctx)
        return [Embedded(FoldingSection(title=title, children=children))]

    if body.startswith("#!wiki"):
        m = _STYLE_ATTR_RE.search(body)
        style = parse_css_style(m.group(1)) if m else {}
        content = _WIKI_PREFIX_RE.sub("", body, count=1).strip()
        children = parse_blocks(unnumbered(content.split("\n")), ctx)
        return [Embedded(StyledContainer(style=style, children=children))]

    if body.startswith("#!syntax"):
        rest = body[len("#!syntax"):].lstrip(" \t")
        header, newline, code = rest.partition("\n")
        language, _, same_line = header.partition(" ")
        if not newline:
            code = same_line
        elif same_line.strip():
            code = same_line + "\n" + code
        return [Embedded(SyntaxBlock(language=language.strip(), code=code))]

    if body.strip().startswith("#"):
        color_def, _, content = body.partition(" ")
        return [ColoredSpan(color=parse_text_color(color_def.strip()), children=parse_inline(content, ctx))]

    m = _SIZE_RE.match(body)
    if m:
        key = m.group(1) + m.group(2)
        level = int(key)
        return [SizedSpan(level=level, scale=SIZE_SCALES[key], children=parse_inline(m.group(3), ctx))]

    return parse_inline(body, ctx)


def _youtube(hit: _Hit, ctx: ParserContext) -> list[Inline]:
    args = hit.body.split(",")
    node = YoutubeEmbed(video_id=args[0].strip())
    for arg in args[1:]:
        key, sep, value = arg.strip().partition("=")
        if not sep or not value.strip():
            continue
        if key == "width":
            node.width = format_size(value)
        elif key == "height":
            node.height = format_size(value)
    return [node]


def _br(hit: _Hit, ctx: ParserContext) -> list[Inline]:
    return [LineBreak()]


def _span(hit: _Hit, ctx: ParserContext) -> list[Inline]:
    return [_SPAN_WRAPPERS[hit.construct](parse_inline(hit.body, ctx))]


# -----------------------------------------------------------------------------
# Links
# -----------------------------------------------------------------------------

def split_link(raw: str) -> tuple[str, str]:
    """Split ``target|label`` on the first ``|`` outside nested brackets."""
    depth = 0
    for i, ch in enumerate(raw):
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        elif ch == "|" and depth == 0:
            return raw[:i], raw[i + 1:]
    return raw, ""


def split_anchor(target: str) -> tuple[str, str | None]:
    """``Slug#anchor`` → ``("Slug", "anchor")``; ``\\#`` does not split."""
    m = _ANCHOR_SPLIT_RE.search(target)
    if m is None:
        return target.replace("\\#", "#").strip(), None
    slug = target[:m.start()].replace("\\#", "#").strip()
    return slug, target[m.end():]


def _image(target: str, options: str) -> Image:
    node = Image(filename=target.split(":", 1)[1].strip())
    for opt in options.split("|"):
        key, sep, value = opt.strip().partition("=")
        if not sep:
            continue
        if key == "width":
            node.width = format_size(value)
        elif key == "align" and value.strip().lower() in ("left", "center", "right"):
            node.align = value.strip().lower()
    return node


def _wiki(hit: _Hit, ctx: ParserContext) -> list[Inline]:
    target, options = split_link(hit.body)

    if IMAGE_PREFIX_RE.match(target):
        return [_image(target, options)]

    if CATEGORY_PREFIX_RE.match(target):
        return []

    if _EXTERNAL_RE.match(target):
        label = parse_inline(options, ctx) if options else [Text(target)]
        return [ExternalLink(
            url=target.strip(),
            show_icon=not _IMAGE_IN_LABEL_RE.search(options),
            children=label,
        )]

    if target.startswith(_INTERWIKI_PREFIX):
        remote = target[len(_INTERWIKI_PREFIX):]
        slug, _, anchor = remote.partition("#")
        url = ctx.interwiki_url + quote(slug, safe="!~*'()") + (f"#{anchor}" if anchor else "")
        label = parse_inline(options, ctx) if options else [Text(remote)]
        return [ExternalLink(url=url, show_icon=False, interwiki=True, children=label)]

    slug, anchor = split_anchor(target)
    exists = ctx.exists(slug) if slug else True
    label = parse_inline(options, ctx) if options else [Text(target.replace("\\#", "#"))]
    return [InternalLink(target=slug, anchor=anchor, exists=exists, children=label)]


# -----------------------------------------------------------------------------

_HANDLERS: dict[str, Callable[[_Hit, ParserContext], list[Inline]]] = {
    "note":      _note,
    "include":   _include,
    "brace":     _brace,
    "youtube":   _youtube,
    "wiki":      _wiki,
    "br":        _br,
    "bold":      _span,
    "italic":    _span,
    "underline": _span,
    "del":       _span,
    "dash_del":  _span,
    "sup":       _span,
    "sub":       _span,
}


# -----------------------------------------------------------------------------
