#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Sections and table of contents
==============================
Walks the heading lines of a document once, before block parsing, and
produces:

  - the flat TOC (every heading, independent of collapse state)
  - a header map ``line index -> "1.2"`` consumed by the block parser
  - the set of section ids written collapsed (``== # Title # ==``)

Numbering is relative to the shallowest heading level present, so a page
that only uses ``==`` headings is numbered 1, 2, 3 and a page mixing ``=``
and ``==`` numbers the ``==`` headings 1.1, 1.2 under their ``=`` parent.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .nodes import TocEntry


# -----------------------------------------------------------------------------

HEADING_RE = re.compile(r"^(=+)\s*(#?)\s*(.+?)\s*\2\s*\1$")

MAX_LEVEL = 6

_CODE_FENCES = ("{{{#!raw", "{{{#!syntax")


# -----------------------------------------------------------------------------

def match_heading(line: str) -> tuple[int, bool, str] | None:
    """Return ``(level, collapsed, text)`` for a heading line, else None."""
    m = HEADING_RE.match(line.strip())
    if not m:
        return None
    level = len(m.group(1))
    if level > MAX_LEVEL:
        return None
    return level, bool(m.group(2)), m.group(3)


def section_id(number: str) -> str:
    return f"s-{number}"


def _code_fence_lines(lines: Sequence[str]) -> set[int]:
    """Indices of lines inside closed ``{{{#!raw`` / ``{{{#!syntax`` regions."""
    skipped: set[int] = set()
    i = 0
    while i < len(lines):
        stripped = lines[i].strip()
        if not stripped.startswith(_CODE_FENCES):
            i += 1
            continue
        depth = 3 + 3 * (stripped[3:].count("{{{") - stripped.count("}}}"))
        end = i
        while depth > 0 and end + 1 < len(lines):
            end += 1
            depth += 3 * (lines[end].count("{{{") - lines[end].count("}}}"))
        if depth > 0:
            i += 1
            continue
        skipped.update(range(i, end + 1))
        i = end + 1
    return skipped


# -----------------------------------------------------------------------------

@dataclass(slots=True)
class SectionIndex:
    toc: list[TocEntry] = field(default_factory=list)
    header_map: dict[int, str] = field(default_factory=dict)
    initial_collapsed: frozenset[str] = frozenset()


def build_sections(lines: Sequence[str]) -> SectionIndex:
    """Number every heading of *lines* and collect the TOC."""
    skipped = _code_fence_lines(lines)
    headings = []
    for i, line in enumerate(lines):
        if i in skipped:
            continue
        found = match_heading(line)
        if found:
            headings.append((i, *found))

    index = SectionIndex()
    if not headings:
        return index

    base = min(level for _, level, _, _ in headings)
    counters = [0] * MAX_LEVEL
    collapsed: set[str] = set()

    for i, level, is_collapsed, text in headings:
        slot = level - base
        counters[slot] += 1
        for deeper in range(slot + 1, MAX_LEVEL):
            counters[deeper] = 0
        number = ".".join(str(c) for c in counters[:slot + 1])
        sid = section_id(number)
        index.toc.append(TocEntry(section_id=sid, text=text, level=level, number=number))
        index.header_map[i] = number
        if is_collapsed:
            collapsed.add(sid)

    index.initial_collapsed = frozenset(collapsed)
    return index


# -----------------------------------------------------------------------------

def visibility_map(
    lines: Sequence[str],
    header_map: dict[int, str],
    collapsed: Iterable[str],
) -> list[bool]:
    """Per-line visibility given the set of collapsed section ids.

    A collapsed heading stays visible; everything after it is hidden until a
    heading of the same or a shallower level.
    """
    collapsed = frozenset(collapsed)
    visible = [True] * len(lines)
    hide_level = 0

    for i, line in enumerate(lines):
        number = header_map.get(i)
        if number is None:
            if hide_level:
                visible[i] = False
            continue

        found = match_heading(line)
        level = found[0] if found else MAX_LEVEL
        if hide_level and level <= hide_level:
            hide_level = 0
        if hide_level:
            visible[i] = False
            continue
        if section_id(number) in collapsed:
            hide_level = level

    return visible


def toggle_section(collapsed: Iterable[str], sid: str) -> frozenset[str]:
    """Return *collapsed* with *sid* flipped."""
    return frozenset(collapsed) ^ {sid}


# -----------------------------------------------------------------------------
