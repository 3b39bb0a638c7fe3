#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
PyNamu — FastAPI application factory
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pynamu.core.config import get_settings
from pynamu.core.database import create_all_tables, dispose_db, init_db, session_scope
from pynamu.routes import render
from pynamu.services.pages import get_page, save_page

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

FRONT_PAGE_CONTENT = """\
[목차]
= PyNamu =
나무위키 문법을 렌더링하는 위키 엔진입니다.[* 표, 각주, 틀 포함을 지원합니다.]
== 시작하기 ==
 * [[대문]] 문서를 편집해 보세요.
 * 외부 링크: [[https://namu.wiki|나무위키]]
[[분류:위키]]
"""


# -----------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    init_db()
    await create_all_tables()   # safe: CREATE TABLE IF NOT EXISTS
    await _seed_defaults()
    yield
    await dispose_db()


# -----------------------------------------------------------------------------

async def _seed_defaults() -> None:
    """Create the front page if it does not exist yet."""
    settings = get_settings()

    async with session_scope() as session:
        try:
            await get_page(session, settings.front_page)
        except HTTPException:
            await save_page(session, settings.front_page, FRONT_PAGE_CONTENT)
            log.info("seeded front page %r", settings.front_page)


# -----------------------------------------------------------------------------

def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="A namu-wiki style markup engine with template inclusion.",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    # ── CORS ──────────────────────────────────────────────────────────────

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── API routers ───────────────────────────────────────────────────────

    prefix = "/api/v1"

    app.include_router(render.router, prefix=prefix)

    # ── Global exception handlers ─────────────────────────────────────────

    @app.exception_handler(500)
    async def server_error(request: Request, exc):
        log.exception("unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # ── Health check ──────────────────────────────────────────────────────

    @app.get("/api/health", tags=["system"])
    async def health():
        return {"status": "ok", "version": settings.app_version, "app": settings.app_name}

    return app


# -----------------------------------------------------------------------------

app = create_app()


# -----------------------------------------------------------------------------

def run() -> None:
    """Serve the API with uvicorn (the ``pynamu`` console script)."""
    settings = get_settings()
    uvicorn.run(
        "pynamu.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    run()
