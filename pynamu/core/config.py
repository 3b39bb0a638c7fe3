#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Application configuration.

All values can be overridden via environment variables or a .env file.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pynamu._version import __version__ as _pkg_version


# -----------------------------------------------------------------------------

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────────────

    app_name: str = "PyNamu"
    app_version: str = _pkg_version
    debug: bool = False
    environment: Literal["development", "testing", "production"] = "development"

    # ── Database ───────────────────────────────────────────────────────────

    database_url: str = "sqlite+aiosqlite:///./pynamu.db"
    db_echo: bool = False

    # ── Markup engine ──────────────────────────────────────────────────────

    max_include_depth: int = Field(default=5, ge=0)
    max_nesting: int = Field(default=48, ge=1, le=200)
    list_indent_px: int = 20
    wiki_url_prefix: str = "/w/"
    upload_url_prefix: str = "/uploads/"
    interwiki_url: str = "https://namu.wiki/w/"

    # ── Wiki defaults ──────────────────────────────────────────────────────

    front_page: str = "대문"

    # ── Server ─────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)

    # ── CORS ───────────────────────────────────────────────────────────────

    cors_origins: list[str] = [
        "http://localhost:8000",
        "http://localhost:3000",
    ]

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"


# -----------------------------------------------------------------------------

@lru_cache
def get_settings() -> Settings:
    return Settings()


# -----------------------------------------------------------------------------
