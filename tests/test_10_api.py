#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for the render API and the page store."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest
from fastapi import HTTPException

import pynamu.main as main_module
from pynamu.core.config import get_settings
from pynamu.core.database import init_db, session_scope
from pynamu.services.pages import get_page, save_page
from tests.conftest import seed_pages


# ── Health ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


# ── Page store ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_save_page_upserts(db_session):
    await save_page(db_session, "Foo", "one")
    await save_page(db_session, "Foo", "two")
    await db_session.commit()
    page = await get_page(db_session, "Foo")
    assert page.content == "two"


@pytest.mark.asyncio
async def test_get_missing_page_raises_404(db_session):
    with pytest.raises(HTTPException) as exc:
        await get_page(db_session, "Nope")
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_page_store_collaborators(db_session, page_store):
    await seed_pages(db_session, {"A": "alpha", "B": "beta"})
    assert await page_store.fetch_content("A") == "alpha"
    assert await page_store.fetch_content("Z") is None
    assert sorted(await page_store.existing_slugs(["A", "B", "Z", "A"])) == ["A", "B"]
    assert await page_store.existing_slugs([]) == []


# ── POST /render ──────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_render_preview(client, db_session):
    await seed_pages(db_session, {"Foo": "x"})
    resp = await client.post("/api/v1/render", json={"content": "= Hi =\n[[Foo]] [[Bar]]"})
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["slug"] is None
    heading, paragraph = data["blocks"]
    assert heading["kind"] == "heading"
    assert heading["section_id"] == "s-1"
    foo, _, bar = paragraph["children"]
    assert foo["kind"] == "internal_link" and foo["exists"] is True
    assert bar["exists"] is False
    assert data["toc"] == [{"section_id": "s-1", "text": "Hi", "level": 1, "number": "1"}]
    assert data["html"].startswith("<!--rv:")


@pytest.mark.asyncio
async def test_render_preview_with_include(client, db_session):
    await seed_pages(db_session, {"틀:Box": "boxed @1@"})
    resp = await client.post("/api/v1/render", json={"content": "[include(틀:Box, it)]", "slug": " "})
    assert resp.status_code == 200, resp.text
    include = resp.json()["blocks"][0]["children"][0]
    assert include["kind"] == "include"
    assert include["error"] is None
    assert include["blocks"][0]["children"][0]["value"] == "boxed it"


@pytest.mark.asyncio
async def test_render_preview_metadata(client):
    resp = await client.post("/api/v1/render", json={
        "content": "#redirect Elsewhere\n[[분류:Cats]]\nx[* note]",
    })
    data = resp.json()
    assert data["redirect"] == "Elsewhere"
    assert data["categories"] == ["Cats"]
    assert data["footnotes"][0]["label"] == "1"
    assert data["footnotes"][0]["children"] == [{"kind": "text", "value": "note"}]


@pytest.mark.asyncio
async def test_render_preview_collapsed(client):
    resp = await client.post("/api/v1/render", json={
        "content": "== A ==\nhidden\n== B ==",
        "collapsed": ["s-1"],
    })
    assert [b["kind"] for b in resp.json()["blocks"]] == ["heading", "heading"]


# ── GET /render/{slug} ────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_render_missing_page(client):
    resp = await client.get("/api/v1/render/Nope")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_render_stored_page(client, db_session):
    await seed_pages(db_session, {"Dir/Page": "'''stored'''"})
    resp = await client.get("/api/v1/render/Dir/Page")
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["slug"] == "Dir/Page"
    assert data["blocks"][0]["children"][0]["kind"] == "bold"
    assert "<b>stored</b>" in data["html"]


@pytest.mark.asyncio
async def test_render_stored_page_expanding_section(client, db_session):
    await seed_pages(db_session, {"P": "==# A #==\nbody"})
    collapsed = (await client.get("/api/v1/render/P")).json()
    assert len(collapsed["blocks"]) == 1
    expanded = (await client.get("/api/v1/render/P", params={"collapsed": ""})).json()
    assert len(expanded["blocks"]) == 2


# ── Startup ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_lifespan_seeds_front_page(monkeypatch):
    monkeypatch.setattr(main_module, "init_db", lambda: init_db("sqlite+aiosqlite:///:memory:"))
    async with main_module.lifespan(main_module.app):
        async with session_scope() as session:
            page = await get_page(session, get_settings().front_page)
    assert page.content == main_module.FRONT_PAGE_CONTENT


def test_run_serves_app_with_uvicorn(monkeypatch):
    calls = []
    monkeypatch.setattr(main_module.uvicorn, "run", lambda app, **kw: calls.append((app, kw)))
    main_module.run()
    [(target, kwargs)] = calls
    settings = get_settings()
    assert target == "pynamu.main:app"
    assert kwargs["host"] == settings.host
    assert kwargs["port"] == settings.port
