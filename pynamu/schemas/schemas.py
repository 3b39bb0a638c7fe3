#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pydantic v2 schemas for request validation and response serialisation.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Render
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class RenderRequest(BaseModel):
    content: str = Field(default="", max_length=1_000_000)
    slug: Optional[str] = Field(default=None, max_length=512)
    collapsed: Optional[list[str]] = None

    @field_validator("slug")
    @classmethod
    def blank_slug_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


# -----------------------------------------------------------------------------

class TocEntryResponse(BaseModel):
    section_id: str
    text: str
    level: int
    number: str


class FootnoteResponse(BaseModel):
    id: int
    label: str
    children: list[dict[str, Any]]


# -----------------------------------------------------------------------------

class RenderResponse(BaseModel):
    slug: Optional[str]
    blocks: list[dict[str, Any]]
    toc: list[TocEntryResponse]
    footnotes: list[FootnoteResponse]
    categories: list[str]
    redirect: Optional[str]
    html: str


# -----------------------------------------------------------------------------
