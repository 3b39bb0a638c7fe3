#!/usr/bin/env python
#
#
# ----------------------------------------------------------------------------
"""
ORM models for PyNamu
=====================

Tables
------
pages   — current raw markup of each document, keyed by slug

The markup engine only ever reads a page's latest markup (for inclusion and
for rendering a stored page) and asks which slugs exist.
"""
# ----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pynamu.core.database import Base


# ----------------------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# pages
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Page(Base):
    __tablename__ = "pages"

    id:         Mapped[int]      = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug:       Mapped[str]      = mapped_column(String(512), nullable=False, unique=True, index=True)
    content:    Mapped[str]      = mapped_column(Text, nullable=False, default="")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<Page {self.slug!r}>"


# ----------------------------------------------------------------------------
