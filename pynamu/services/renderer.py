#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Render pipeline
===============
The one asynchronous boundary of the markup engine.

  1. prefetch   every document reachable through ``[include(...)]`` is
                fetched once, siblings concurrently, under the same depth and
                cycle rules the parser applies
  2. probe      a first parse with an empty existing-slug set records every
                slug whose existence matters (links, redirects, notices)
  3. lookup     one batched ``existing_slugs`` call for the recorded slugs
  4. parse      the final, synchronous parse with the real existing set

``DocumentRenderer`` keeps the newest render of one page: a render that
finishes after a newer one has started is discarded.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field

from pynamu.core.config import Settings, get_settings
from pynamu.markup.blocks import extract_categories, parse_document, parse_redirect, split_lines
from pynamu.markup.context import ParserContext
from pynamu.markup.html import is_cache_valid, render_html
from pynamu.markup.include import SPECIAL_TEMPLATES, iter_includes, substitute
from pynamu.markup.nodes import Document
from pynamu.markup.sections import build_sections

log = logging.getLogger(__name__)

__all__ = [
    "DocumentRenderer",
    "Prefetched",
    "is_cache_valid",
    "prefetch_includes",
    "render_document",
    "render_html",
]


# -----------------------------------------------------------------------------

FetchContent  = Callable[[str], Awaitable[str | None]]
ExistingSlugs = Callable[[list[str]], Awaitable[Iterable[str]]]


@dataclass(slots=True)
class Prefetched:
    contents: dict[str, str | None] = field(default_factory=dict)
    unavailable: set[str] = field(default_factory=set)


# -----------------------------------------------------------------------------
# Prefetch
# -----------------------------------------------------------------------------

async def _fetch_one(slug: str, fetch_content: FetchContent) -> tuple[str, str | None, bool]:
    try:
        return slug, await fetch_content(slug), True
    except Exception as exc:
        log.warning("fetching included document %r failed: %s", slug, exc)
        return slug, None, False


async def prefetch_includes(
    source: str,
    *,
    slug: str | None,
    fetch_content: FetchContent,
    max_depth: int,
) -> Prefetched:
    """Fetch the raw markup of every document *source* (transitively) includes.

    Every inclusion is its own branch: it waits only for its own document and
    then descends into it, so a slow sibling never holds back another
    branch.  Branches share one fetch task per slug; every slug is fetched at
    most once.
    """
    result = Prefetched()
    fetches: dict[str, asyncio.Task] = {}
    seen: set[tuple] = set()

    async def branch(target: str, params: dict[str, str], visited: frozenset, depth: int) -> None:
        task = fetches.get(target)
        if task is None:
            task = fetches[target] = asyncio.ensure_future(_fetch_one(target, fetch_content))
        _, content, ok = await task
        if not ok:
            result.unavailable.add(target)
            return
        result.contents[target] = content
        if content:
            await walk(substitute(content, params), visited | {target}, depth + 1)

    async def walk(text: str, visited: frozenset, depth: int) -> None:
        branches = []
        for target, params in iter_includes(text):
            if not target or target in SPECIAL_TEMPLATES:
                continue
            if depth >= max_depth or target in visited:
                continue
            key = (target, tuple(sorted(params.items())), visited, depth)
            if key in seen:
                continue
            seen.add(key)
            branches.append(branch(target, params, visited, depth))
        if branches:
            await asyncio.gather(*branches)

    await walk(source, frozenset({slug}) if slug else frozenset(), 0)
    log.debug("prefetched %d included documents for %r", len(result.contents), slug)
    return result


# -----------------------------------------------------------------------------
# Render
# -----------------------------------------------------------------------------

async def render_document(
    source: str,
    *,
    slug: str | None = None,
    fetch_content: FetchContent,
    existing_slugs: ExistingSlugs,
    collapsed: Iterable[str] | None = None,
    settings: Settings | None = None,
) -> Document:
    """Render *source* into a ``Document`` with resolved inclusions and link existence."""
    settings = settings or get_settings()
    if not source:
        return Document(slug=slug)

    prefetched = await prefetch_includes(
        source,
        slug=slug,
        fetch_content=fetch_content,
        max_depth=settings.max_include_depth,
    )

    queried: set[str] = set()
    probe = ParserContext.create(
        slug=slug,
        includes=prefetched.contents,
        unavailable=prefetched.unavailable,
        settings=settings,
        link_sink=queried,
    )
    parse_document(source, probe, collapsed=collapsed)

    existing = set(await existing_slugs(sorted(queried))) if queried else set()

    ctx = ParserContext.create(
        slug=slug,
        existing=existing,
        includes=prefetched.contents,
        unavailable=prefetched.unavailable,
        settings=settings,
    )
    blocks = parse_document(source, ctx, collapsed=collapsed)

    return Document(
        slug=slug,
        blocks=blocks,
        toc=build_sections(split_lines(source)).toc,
        footnotes=ctx.footnotes.entries,
        categories=extract_categories(source),
        redirect=parse_redirect(source),
    )


# -----------------------------------------------------------------------------

class DocumentRenderer:
    """Keeps the latest render of one page; stale renders never win."""

    def __init__(
        self,
        slug: str | None,
        fetch_content: FetchContent,
        existing_slugs: ExistingSlugs,
        settings: Settings | None = None,
    ) -> None:
        self.slug = slug
        self.fetch_content = fetch_content
        self.existing_slugs = existing_slugs
        self.settings = settings
        self.current: Document | None = None
        self._generation = 0
        self._task: asyncio.Task | None = None

    @property
    def generation(self) -> int:
        return self._generation

    async def render(self, source: str, collapsed: Iterable[str] | None = None) -> Document | None:
        """Render *source*; return None when a newer render started meanwhile."""
        self._generation += 1
        generation = self._generation
        document = await render_document(
            source,
            slug=self.slug,
            fetch_content=self.fetch_content,
            existing_slugs=self.existing_slugs,
            collapsed=collapsed,
            settings=self.settings,
        )
        if generation != self._generation:
            log.debug("discarding stale render %d of %r (latest %d)", generation, self.slug, self._generation)
            return None
        self.current = document
        return document

    def submit(self, source: str, collapsed: Iterable[str] | None = None) -> asyncio.Task:
        """Schedule a render, cancelling the one still in flight."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = asyncio.create_task(self.render(source, collapsed))
        return self._task


# -----------------------------------------------------------------------------
