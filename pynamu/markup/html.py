#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
HTML serialiser
===============
Renders a parsed ``Document`` to static HTML.

  - every numbered heading carries ``id="s-1.2"`` for deep-linking and the
    TOC links to those anchors
  - footnote references and the footnote list link to each other
    (``#fn1`` / ``#r1``)
  - internal links carry ``wiki-link-exists`` or ``wiki-link-missing``
  - ``{{{#!syntax}}}`` blocks are highlighted with Pygments

Output is prefixed with a renderer-version stamp so cached HTML from an older
renderer can be detected with ``is_cache_valid``.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html as _html
from urllib.parse import quote

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound

from pynamu.core.config import Settings, get_settings
from .nodes import Block, Document, Footnote, Inline, TocEntry


# Bump this whenever the render pipeline changes so stale cached HTML is
# automatically discarded and re-rendered on next page view.
RENDERER_VERSION = 1
_CACHE_STAMP = f'<!--rv:{RENDERER_VERSION}-->'

_SLUG_SAFE = "!~*'()"


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _esc(text: str) -> str:
    return _html.escape(text, quote=True)


def _style_attr(style: dict[str, str]) -> str:
    if not style:
        return ""
    return f' style="{_esc("; ".join(f"{k}: {v}" for k, v in style.items()))}"'


def _highlight_code(code: str, lang: str) -> str:
    """Highlight *code* using Pygments.  Unknown languages render as plain text."""
    try:
        lexer = get_lexer_by_name(lang.strip(), stripall=True) if lang.strip() else TextLexer()
    except ClassNotFound:
        lexer = TextLexer()
    formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
    return highlight(code, lexer, formatter)


def highlight_css(style: str = "friendly") -> str:
    """Stylesheet for the ``.highlight`` blocks emitted by syntax fences."""
    return HtmlFormatter(style=style).get_style_defs(".highlight")


def wiki_href(slug: str, anchor: str | None = None, settings: Settings | None = None) -> str:
    """URL of a wiki page: percent-encoded slug plus optional ``#anchor``."""
    settings = settings or get_settings()
    suffix = f"#{anchor}" if anchor else ""
    if not slug:
        return suffix or "#"
    return f"{settings.wiki_url_prefix}{quote(slug, safe=_SLUG_SAFE)}{suffix}"


def _link_class(exists: bool) -> str:
    return "wiki-link-exists" if exists else "wiki-link-missing"


# -----------------------------------------------------------------------------
# Renderer
# -----------------------------------------------------------------------------

_NOTICE_TEXT = {
    "see_also": ("자세한 내용은 ", " 문서를 참고하십시오."),
    "parent":   ("상위 문서: ", ""),
}


class HtmlRenderer:

    def __init__(self, document: Document, settings: Settings | None = None) -> None:
        self.document = document
        self.settings = settings or get_settings()

    # ── entry points ───────────────────────────────────────────────────────

    def render(self) -> str:
        parts = [self.blocks(self.document.blocks)]
        if self.document.footnotes:
            parts.append(self.footnotes(self.document.footnotes))
        return "\n".join(p for p in parts if p)

    def blocks(self, blocks: list[Block]) -> str:
        return "\n".join(self.block(b) for b in blocks)

    def inlines(self, nodes: list[Inline]) -> str:
        return "".join(self.inline(n) for n in nodes)

    def block(self, node: Block) -> str:
        return getattr(self, f"_b_{node.kind}")(node)

    def inline(self, node: Inline) -> str:
        return getattr(self, f"_i_{node.kind}")(node)

    # ── TOC and footnotes ──────────────────────────────────────────────────

    def toc(self, entries: list[TocEntry]) -> str:
        if not entries:
            return ""
        base_level = min(e.level for e in entries)
        lines = ['<div class="toc">',
                 '<div class="toc-title">목차</div>',
                 '<ol class="toc-list">']
        depth_stack: list[int] = []
        for entry in entries:
            rel = entry.level - base_level
            while len(depth_stack) < rel:
                lines.append('<ol>')
                depth_stack.append(rel)
            while depth_stack and len(depth_stack) > rel:
                lines.append('</ol>')
                depth_stack.pop()
            lines.append(
                f'<li><a href="#{_esc(entry.section_id)}">{_esc(entry.number)}.</a> '
                f'{_esc(entry.text)}</li>'
            )
        while depth_stack:
            lines.append('</ol>')
            depth_stack.pop()
        lines.append('</ol>')
        lines.append('</div>')
        return "\n".join(lines)

    def footnotes(self, notes: list[Footnote]) -> str:
        items = [
            f'<li id="fn{n.id}"><a href="#r{n.id}">[{_esc(n.label)}]</a> {self.inlines(n.children)}</li>'
            for n in notes
        ]
        return '<ul class="wiki-footnotes">\n' + "\n".join(items) + "\n</ul>"

    # ── blocks ─────────────────────────────────────────────────────────────

    def _b_heading(self, node) -> str:
        tag = f"h{node.level}"
        body = self.inlines(node.children)
        if not node.section_id:
            return f'<{tag} class="wiki-heading">{body}</{tag}>'
        cls = "wiki-heading wiki-heading-collapsed" if node.collapsed else "wiki-heading"
        sid = _esc(node.section_id)
        return (
            f'<{tag} id="{sid}" class="{cls}">'
            f'<a class="wiki-heading-number" href="#{sid}">{_esc(node.number)}.</a> {body}</{tag}>'
        )

    def _b_list_item(self, node) -> str:
        return (
            f'<div class="wiki-list" style="margin-left: {node.indent}px">'
            f'<span class="wiki-bullet"></span>{self.inlines(node.children)}</div>'
        )

    def _b_table(self, node) -> str:
        rows = []
        for row in node.rows:
            cells = []
            for cell in row.cells:
                span = ""
                if cell.col_span > 1:
                    span += f' colspan="{cell.col_span}"'
                if cell.row_span > 1:
                    span += f' rowspan="{cell.row_span}"'
                cells.append(f'<td{span}{_style_attr(cell.style)}>{self.inlines(cell.children)}</td>')
            rows.append(f'<tr{_style_attr(row.style)}>{"".join(cells)}</tr>')
        table = f'<table class="wiki-table"{_style_attr(node.style)}><tbody>{"".join(rows)}</tbody></table>'
        return f'<div class="wiki-table-wrap"{_style_attr(node.wrapper_style)}>{table}</div>'

    def _b_blockquote(self, node) -> str:
        return f'<blockquote class="wiki-quote">{self.inlines(node.children)}</blockquote>'

    def _b_horizontal_rule(self, node) -> str:
        return "<hr>"

    def _b_raw_block(self, node) -> str:
        return f'<pre class="wiki-raw">{_esc(node.text)}</pre>'

    def _b_syntax_block(self, node) -> str:
        return _highlight_code(node.code, node.language)

    def _b_styled_container(self, node) -> str:
        return f'<div class="wiki-block"{_style_attr(node.style)}>{self.blocks(node.children)}</div>'

    def _b_folding(self, node) -> str:
        return (
            f'<details class="wiki-folding"><summary>{_esc(node.title)}</summary>'
            f'<div class="wiki-folding-content">{self.blocks(node.children)}</div></details>'
        )

    def _b_toc(self, node) -> str:
        return self.toc(self.document.toc)

    def _b_clearfix(self, node) -> str:
        return '<div style="clear: both"></div>'

    def _b_redirect(self, node) -> str:
        href = _esc(wiki_href(node.slug, node.anchor, self.settings))
        return (
            f'<div class="wiki-redirect">#redirect '
            f'<a href="{href}" class="{_link_class(node.exists)}">{_esc(node.target)}</a></div>'
        )

    def _b_template_notice(self, node) -> str:
        lines = []
        for entry in node.entries:
            link = (
                f'<a href="{_esc(wiki_href(entry.target, settings=self.settings))}" '
                f'class="{_link_class(entry.exists)}">{_esc(entry.target)}</a>'
            )
            if node.template == "disambiguation":
                before, after = f"{entry.description}에 대한 내용은 ", " 문서를 참고하십시오."
            else:
                before, after = _NOTICE_TEXT[node.template]
            lines.append(f'<div class="wiki-notice wiki-notice-{node.template}">{_esc(before)}{link}{_esc(after)}</div>')
        return "".join(lines)

    def _b_paragraph(self, node) -> str:
        if not node.children:
            return "<br>"
        return f'<div class="wiki-paragraph">{self.inlines(node.children)}</div>'

    # ── inlines ────────────────────────────────────────────────────────────

    def _i_text(self, node) -> str:
        return _esc(node.value)

    def _i_line_break(self, node) -> str:
        return "<br>"

    def _wrap(tag: str):
        def render(self, node) -> str:
            return f"<{tag}>{self.inlines(node.children)}</{tag}>"
        return render

    _i_bold        = _wrap("b")
    _i_italic      = _wrap("i")
    _i_underline   = _wrap("u")
    _i_strike      = _wrap("del")
    _i_superscript = _wrap("sup")
    _i_subscript   = _wrap("sub")

    del _wrap

    def _i_colored(self, node) -> str:
        return f'<span{_style_attr({"color": node.color})}>{self.inlines(node.children)}</span>'

    def _i_sized(self, node) -> str:
        return f'<span style="font-size: {node.scale:.5f}em">{self.inlines(node.children)}</span>'

    def _i_raw_span(self, node) -> str:
        return f'<span class="wiki-raw">{_esc(node.value)}</span>'

    def _i_internal_link(self, node) -> str:
        href = _esc(wiki_href(node.target, node.anchor, self.settings))
        title = f' title="{_esc(node.target)}"' if node.target else ""
        return f'<a href="{href}" class="{_link_class(node.exists)}"{title}>{self.inlines(node.children)}</a>'

    def _i_external_link(self, node) -> str:
        cls = "wiki-link-interwiki" if node.interwiki else "wiki-link-external"
        icon = '<span class="wiki-ext-icon"></span>' if node.show_icon else ""
        return (
            f'<a href="{_esc(node.url)}" class="{cls}" target="_blank" rel="noopener noreferrer">'
            f'{icon}{self.inlines(node.children)}</a>'
        )

    def _i_image(self, node) -> str:
        src = f"{self.settings.upload_url_prefix}{quote(node.filename)}"
        style = {"width": node.width} if node.width else {}
        cls = f"wiki-image wiki-image-{node.align}" if node.align else "wiki-image"
        return (
            f'<span class="{cls}"><img src="{_esc(src)}" alt="{_esc(node.filename)}"'
            f'{_style_attr(style)}></span>'
        )

    def _i_footnote_ref(self, node) -> str:
        return f'<sup><a id="r{node.id}" href="#fn{node.id}">[{_esc(node.label)}]</a></sup>'

    def _i_youtube(self, node) -> str:
        src = f"https://www.youtube.com/embed/{quote(node.video_id)}"
        style = {"max-width": "100%", "width": node.width, "height": node.height}
        return (
            f'<div class="wiki-youtube"><iframe src="{_esc(src)}" title="YouTube video player" '
            f'allowfullscreen{_style_attr(style)}></iframe></div>'
        )

    def _i_include(self, node) -> str:
        if node.error is not None:
            return self._i_include_error(node.error)
        return f'<div class="wiki-include">{self.blocks(node.blocks)}</div>'

    def _i_include_error(self, node) -> str:
        return (
            f'<span class="wiki-include-error" data-reason="{_esc(node.reason)}">'
            f'[Include Error: {_esc(node.slug)}]</span>'
        )

    def _i_embedded(self, node) -> str:
        return self.block(node.block)


# -----------------------------------------------------------------------------
# Public render function
# -----------------------------------------------------------------------------

def render_html(document: Document, settings: Settings | None = None) -> str:
    """Render *document* to cache-stamped HTML."""
    return _CACHE_STAMP + HtmlRenderer(document, settings).render()


def is_cache_valid(rendered: str | None) -> bool:
    """Return True only if *rendered* was produced by the current renderer version."""
    return rendered is not None and rendered.startswith(_CACHE_STAMP)


# -----------------------------------------------------------------------------
