#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pytest fixtures for PyNamu tests.
Uses an in-memory SQLite database so no external services are needed.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import asyncio
from collections.abc import Iterable

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pynamu.core.database import Base, get_db
from pynamu.main import create_app
from pynamu.markup.context import ParserContext
from pynamu.markup.nodes import Inline, Text
from pynamu.services.pages import PageStore, get_page_store, save_page


# -----------------------------------------------------------------------------

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


# -----------------------------------------------------------------------------

@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session_factory(db_engine):
    """Shared sessionmaker — client, page store and db_session all use this."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(db_session_factory):
    """Direct DB session for test setup (seeding pages)."""
    async with db_session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def page_store(db_session_factory):
    return PageStore(db_session_factory)


@pytest_asyncio.fixture(scope="function")
async def client(db_engine, db_session_factory):
    """HTTP test client wired to an isolated in-memory DB."""
    async def override_get_db():
        async with db_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_page_store] = lambda: PageStore(db_session_factory)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# -----------------------------------------------------------------------------
# Helper functions for tests
# -----------------------------------------------------------------------------

async def seed_pages(db_session: AsyncSession, pages: dict[str, str]) -> None:
    for slug, content in pages.items():
        await save_page(db_session, slug, content)
    await db_session.commit()


def make_ctx(
    slug: str | None = None,
    existing: Iterable[str] = (),
    includes: dict[str, str | None] | None = None,
    unavailable: Iterable[str] = (),
    link_sink: set[str] | None = None,
) -> ParserContext:
    return ParserContext.create(
        slug=slug,
        existing=existing,
        includes=includes,
        unavailable=unavailable,
        link_sink=link_sink,
    )


def plain_text(nodes: list[Inline]) -> str:
    """Concatenate every Text value in an inline tree."""
    out = []
    for node in nodes:
        if isinstance(node, Text):
            out.append(node.value)
        out.append(plain_text(getattr(node, "children", None) or []))
    return "".join(out)


class FakeWiki:
    """In-memory stand-in for the two render collaborators.

    Records every call.  *gates* holds an ``asyncio.Event`` per slug whose
    fetch must wait until the test releases it; *failing* slugs raise.
    """

    def __init__(
        self,
        pages: dict[str, str],
        delays: dict[str, float] | None = None,
        gates: dict[str, asyncio.Event] | None = None,
        failing: Iterable[str] = (),
    ) -> None:
        self.pages = pages
        self.delays = delays or {}
        self.gates = gates or {}
        self.failing = set(failing)
        self.fetched: list[str] = []
        self.lookups: list[list[str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch_content(self, slug: str) -> str | None:
        self.fetched.append(slug)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if slug in self.gates:
                await self.gates[slug].wait()
            await asyncio.sleep(self.delays.get(slug, 0))
            if slug in self.failing:
                raise RuntimeError(f"backend down for {slug}")
            return self.pages.get(slug)
        finally:
            self.in_flight -= 1

    async def existing_slugs(self, slugs: list[str]) -> list[str]:
        self.lookups.append(list(slugs))
        return [s for s in slugs if s in self.pages]


# -----------------------------------------------------------------------------
