#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Render endpoints.

POST /api/v1/render          render a markup snippet (live preview)
GET  /api/v1/render/{slug}   render a stored page
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pynamu.core.config import get_settings
from pynamu.core.database import get_db
from pynamu.markup.nodes import Document
from pynamu.markup.serialize import document_to_dict
from pynamu.schemas import RenderRequest, RenderResponse
from pynamu.services.pages import PageStore, get_page, get_page_store
from pynamu.services.renderer import render_document, render_html


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/render", tags=["render"])


# -----------------------------------------------------------------------------

def _response(document: Document) -> RenderResponse:
    data = document_to_dict(document)
    return RenderResponse(**data, html=render_html(document, get_settings()))


# -----------------------------------------------------------------------------

@router.post("", response_model=RenderResponse)
async def render_preview(
    body:  RenderRequest,
    store: PageStore = Depends(get_page_store),
):
    """Render a snippet of markup against the stored pages."""
    document = await render_document(
        body.content,
        slug=body.slug,
        fetch_content=store.fetch_content,
        existing_slugs=store.existing_slugs,
        collapsed=body.collapsed,
    )
    return _response(document)


@router.get("/{slug:path}", response_model=RenderResponse)
async def render_page(
    slug:      str,
    collapsed: list[str] | None = Query(default=None),
    db:        AsyncSession = Depends(get_db),
    store:     PageStore = Depends(get_page_store),
):
    """Render a stored page; 404 when it does not exist."""
    page = await get_page(db, slug)
    document = await render_document(
        page.content,
        slug=page.slug,
        fetch_content=store.fetch_content,
        existing_slugs=store.existing_slugs,
        collapsed=collapsed,
    )
    return _response(document)


# -----------------------------------------------------------------------------
