#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Parser context
==============
State threaded explicitly through one top-level parse and its recursive
descendants (nested containers, table cells, included documents).

Nothing here is module-global: two renders never share a context, a footnote
collector or a visited set.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace

from pynamu.core.config import Settings, get_settings
from .footnotes import FootnoteCollector


# -----------------------------------------------------------------------------

@dataclass(slots=True)
class ParserContext:
    slug: str | None = None
    existing: frozenset[str] = frozenset()
    includes: Mapping[str, str | None] = field(default_factory=dict)
    unavailable: frozenset[str] = frozenset()
    visited: frozenset[str] = frozenset()
    depth: int = 0
    max_include_depth: int = 5
    nesting: int = 0
    max_nesting: int = 48
    indent_unit: int = 20
    interwiki_url: str = "https://namu.wiki/w/"
    footnotes: FootnoteCollector = field(default_factory=FootnoteCollector)
    header_map: Mapping[int, str] = field(default_factory=dict)
    collapsed: frozenset[str] = frozenset()
    link_sink: set[str] | None = None

    # ── construction ───────────────────────────────────────────────────────

    @classmethod
    def create(
        cls,
        slug: str | None = None,
        existing: Iterable[str] = (),
        includes: Mapping[str, str | None] | None = None,
        unavailable: Iterable[str] = (),
        settings: Settings | None = None,
        link_sink: set[str] | None = None,
    ) -> ParserContext:
        """Build a fresh top-level context.  The current slug seeds the visited set."""
        settings = settings or get_settings()
        return cls(
            slug=slug,
            existing=frozenset(existing),
            includes=dict(includes or {}),
            unavailable=frozenset(unavailable),
            visited=frozenset({slug}) if slug else frozenset(),
            max_include_depth=settings.max_include_depth,
            max_nesting=settings.max_nesting,
            indent_unit=settings.list_indent_px,
            interwiki_url=settings.interwiki_url,
            link_sink=link_sink,
        )

    # ── derivation ─────────────────────────────────────────────────────────

    @property
    def too_deep(self) -> bool:
        return self.nesting >= self.max_nesting

    def nested(self) -> ParserContext:
        return replace(self, nesting=self.nesting + 1)

    def for_include(self, slug: str) -> ParserContext:
        """Context for parsing *slug*'s markup at the inclusion site."""
        return replace(
            self,
            visited=self.visited | {slug},
            depth=self.depth + 1,
            nesting=self.nesting + 1,
            header_map={},
            collapsed=frozenset(),
        )

    # ── lookups ────────────────────────────────────────────────────────────

    def exists(self, slug: str) -> bool:
        if self.link_sink is not None:
            self.link_sink.add(slug)
        return slug in self.existing


# -----------------------------------------------------------------------------
