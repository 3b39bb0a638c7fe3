#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Template inclusion
==================
Resolves ``[include(slug, key=value, ...)]`` directives.

Parsing is synchronous: the raw markup of every included document has already
been fetched (see ``pynamu.services.renderer.prefetch_includes``) and is handed
in through ``ParserContext.includes``.  Resolution fails closed with an inert
``IncludeError`` marker and never raises.

Three built-in pseudo-templates never fetch anything and render a fixed
micro-layout instead:

    틀:상세 내용   "see also"        문서명
    틀:상위 문서   "parent document" 문서명1
    틀:다른 뜻     disambiguation    설명1/문서명1 ... 설명10/문서명10
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
from collections.abc import Iterator

from .context import ParserContext
from .nodes import Block, IncludeError, NoticeEntry, TemplateNotice

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

INCLUDE_RE = re.compile(r"\[include\((.*?)\)\]", re.IGNORECASE)

SEE_ALSO_TEMPLATE       = "틀:상세 내용"
PARENT_TEMPLATE         = "틀:상위 문서"
DISAMBIGUATION_TEMPLATE = "틀:다른 뜻"

SPECIAL_TEMPLATES = frozenset({SEE_ALSO_TEMPLATE, PARENT_TEMPLATE, DISAMBIGUATION_TEMPLATE})

MAX_DISAMBIGUATION_ENTRIES = 10

_OPENERS = "[({"
_CLOSERS = "])}"


# -----------------------------------------------------------------------------
# Argument parsing
# -----------------------------------------------------------------------------

def _split_top_level(raw: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    start = 0
    for i, ch in enumerate(raw):
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(depth - 1, 0)
        elif ch == "," and depth == 0:
            parts.append(raw[start:i])
            start = i + 1
    parts.append(raw[start:])
    return parts


def parse_include_args(raw: str) -> tuple[str, dict[str, str]]:
    """``"틀:X, a=1, b"`` → ``("틀:X", {"a": "1", "1": "b"})``."""
    tokens = _split_top_level(raw)
    slug = tokens[0].strip()
    params: dict[str, str] = {}
    position = 0
    for token in tokens[1:]:
        key, sep, value = token.partition("=")
        if sep:
            key = key.strip()
            if key:
                params[key] = value.strip()
            continue
        if token.strip():
            position += 1
            params[str(position)] = token.strip()
    return slug, params


def substitute(text: str, params: dict[str, str]) -> str:
    """Replace every ``@key@`` placeholder; unknown placeholders stay as-is."""
    for key, value in params.items():
        text = text.replace(f"@{key}@", value)
    return text


def iter_includes(text: str) -> Iterator[tuple[str, dict[str, str]]]:
    """Yield ``(slug, params)`` for every inclusion directive in *text*."""
    for m in INCLUDE_RE.finditer(text):
        yield parse_include_args(m.group(1))


# -----------------------------------------------------------------------------
# Pseudo-templates
# -----------------------------------------------------------------------------

def _entry(target: str, ctx: ParserContext, description: str | None = None) -> NoticeEntry:
    exists = ctx.exists(target) or target == ctx.slug
    return NoticeEntry(target=target, exists=exists, description=description)


def template_notice(slug: str, params: dict[str, str], ctx: ParserContext) -> TemplateNotice | None:
    """Return the fixed layout for a pseudo-template, or None for ordinary slugs."""
    if slug == SEE_ALSO_TEMPLATE:
        target = params.get("문서명") or "내용"
        return TemplateNotice(template="see_also", entries=[_entry(target, ctx)])

    if slug == PARENT_TEMPLATE:
        target = params.get("문서명1") or "상위 문서"
        return TemplateNotice(template="parent", entries=[_entry(target, ctx)])

    if slug == DISAMBIGUATION_TEMPLATE:
        entries = []
        for i in range(1, MAX_DISAMBIGUATION_ENTRIES + 1):
            description = params.get(f"설명{i}")
            target = params.get(f"문서명{i}")
            if description and target:
                entries.append(_entry(target, ctx, description))
        return TemplateNotice(template="disambiguation", entries=entries)

    return None


# -----------------------------------------------------------------------------
# Resolution
# -----------------------------------------------------------------------------

def resolve_include(raw_args: str, ctx: ParserContext) -> list[Block] | IncludeError:
    """Resolve one directive into blocks, or an ``IncludeError`` describing why not."""
    from .blocks import parse_blocks, split_lines, unnumbered

    slug, params = parse_include_args(raw_args)

    notice = template_notice(slug, params, ctx)
    if notice is not None:
        return [] if notice.template == "disambiguation" and not notice.entries else [notice]

    reason = None
    if not slug:
        reason = "missing"
    elif ctx.depth >= ctx.max_include_depth:
        reason = "depth"
    elif slug in ctx.visited:
        reason = "cycle"
    elif slug in ctx.unavailable:
        reason = "unavailable"
    elif slug not in ctx.includes:
        reason = "not_fetched"
    elif not ctx.includes[slug]:
        reason = "missing"

    if reason is not None:
        log.debug("include %r from %r not resolved: %s", slug, ctx.slug, reason)
        return IncludeError(slug=slug, reason=reason)

    text = substitute(ctx.includes[slug], params)
    return parse_blocks(unnumbered(split_lines(text)), ctx.for_include(slug))


# -----------------------------------------------------------------------------
