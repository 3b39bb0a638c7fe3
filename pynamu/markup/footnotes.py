#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Footnote collector
==================
Accumulates ``[* ...]`` footnotes in first-occurrence order for one render.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from collections.abc import Iterator

from .nodes import Footnote, Inline


# -----------------------------------------------------------------------------

def split_footnote_body(body: str) -> tuple[str | None, str]:
    """Return ``(label, content)`` for the text between ``[*`` and ``]``.

    ``[*A some text]`` has the custom label ``A`` and a single word such as
    ``[*note]`` is a label with no content.  ``[* some text]`` has no label
    and is numbered.
    """
    if not body:
        return None, ""
    if body.startswith(" "):
        return None, body[1:]
    label, _, rest = body.partition(" ")
    return label, rest


# -----------------------------------------------------------------------------

class FootnoteCollector:
    """One instance per top-level render; included documents append to it."""

    def __init__(self) -> None:
        self._entries: list[Footnote] = []

    def push(self, label: str | None, children: list[Inline]) -> int:
        """Register a footnote and return its 1-based id.

        *children* is stored by reference, so the caller may fill it after
        the id has been reserved.
        """
        note_id = len(self._entries) + 1
        self._entries.append(Footnote(id=note_id, label=label or str(note_id), children=children))
        return note_id

    def get(self, note_id: int) -> Footnote:
        return self._entries[note_id - 1]

    def truncate(self, size: int) -> None:
        """Drop every footnote registered after the first *size*."""
        del self._entries[size:]

    @property
    def entries(self) -> list[Footnote]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Footnote]:
        return iter(self._entries)


# -----------------------------------------------------------------------------
