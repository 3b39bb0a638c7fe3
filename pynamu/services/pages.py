#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Page service
============
Stored-page access for the renderer.

``get_page`` / ``save_page`` work on the request's session.  ``PageStore``
provides the two collaborators the render pipeline consumes:

  fetch_content(slug)     raw markup of a page, or None
  existing_slugs(slugs)   which of the given slugs exist (one IN query)

Each collaborator call opens its own session, so the pipeline may run
several fetches concurrently.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from collections.abc import Iterable

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pynamu.core.database import get_session_factory
from pynamu.models import Page

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Session-bound helpers
# -----------------------------------------------------------------------------

async def get_page(db: AsyncSession, slug: str) -> Page:
    result = await db.execute(select(Page).where(Page.slug == slug))
    page = result.scalar_one_or_none()
    if not page:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Page '{slug}' not found")
    return page


async def save_page(db: AsyncSession, slug: str, content: str) -> Page:
    """Create *slug* or replace its markup."""
    result = await db.execute(select(Page).where(Page.slug == slug))
    page = result.scalar_one_or_none()
    if page is None:
        page = Page(slug=slug, content=content)
        db.add(page)
    else:
        page.content = content
    await db.flush()
    return page


# -----------------------------------------------------------------------------
# Render collaborators
# -----------------------------------------------------------------------------

class PageStore:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def fetch_content(self, slug: str) -> str | None:
        async with self._session_factory() as session:
            result = await session.execute(select(Page.content).where(Page.slug == slug))
            return result.scalar_one_or_none()

    async def existing_slugs(self, slugs: Iterable[str]) -> list[str]:
        wanted = sorted(set(slugs))
        if not wanted:
            return []
        async with self._session_factory() as session:
            result = await session.execute(select(Page.slug).where(Page.slug.in_(wanted)))
            found = list(result.scalars().all())
        log.debug("existing_slugs: %d of %d found", len(found), len(wanted))
        return found


def get_page_store() -> PageStore:
    """FastAPI dependency returning the store bound to the app's database."""
    return PageStore(get_session_factory())


# -----------------------------------------------------------------------------
