#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Tests for section numbering, the table of contents and collapsed sections.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from pynamu.markup.blocks import parse_document
from pynamu.markup.nodes import Heading, Paragraph, Text
from pynamu.markup.sections import (
    build_sections,
    match_heading,
    toggle_section,
    visibility_map,
)


# ── Heading recognition ───────────────────────────────────────────────────────

def test_match_heading():
    assert match_heading("== Title ==") == (2, False, "Title")
    assert match_heading("==# Hidden #==") == (2, True, "Hidden")
    assert match_heading("== no closer") is None
    assert match_heading("======= too deep =======") is None
    assert match_heading("plain") is None


# ── Numbering ─────────────────────────────────────────────────────────────────

def test_numbering_relative_to_shallowest_level():
    index = build_sections(["= A =", "== B ==", "== C ==", "= D ="])
    assert [e.number for e in index.toc] == ["1", "1.1", "1.2", "2"]
    assert [e.section_id for e in index.toc] == ["s-1", "s-1.1", "s-1.2", "s-2"]


def test_page_without_level_one_headings():
    index = build_sections(["== a ==", "== b ==", "=== c ==="])
    assert [e.number for e in index.toc] == ["1", "2", "2.1"]


def test_skipped_level_keeps_zero_counter():
    index = build_sections(["== a ==", "#### b ####"])
    assert [e.number for e in index.toc] == ["1", "1.0.1"]


def test_header_map_uses_line_indices():
    index = build_sections(["intro", "== a ==", "text", "== b =="])
    assert index.header_map == {1: "1", 3: "2"}


def test_headings_inside_raw_fence_are_skipped():
    index = build_sections(["{{{#!raw", "== not ==", "}}}", "== real =="])
    assert [(e.text, e.number) for e in index.toc] == [("real", "1")]


def test_unclosed_raw_fence_does_not_hide_headings():
    index = build_sections(["{{{#!raw", "== kept =="])
    assert [e.text for e in index.toc] == ["kept"]


def test_no_headings():
    index = build_sections(["just text"])
    assert index.toc == []
    assert index.header_map == {}


# ── Collapse ──────────────────────────────────────────────────────────────────

LINES = ["== A ==", "x", "=== A1 ===", "y", "== B ==", "z"]


def test_visibility_hides_until_same_level_heading():
    index = build_sections(LINES)
    assert visibility_map(LINES, index.header_map, {"s-1"}) == [
        True, False, False, False, True, True,
    ]


def test_collapsing_a_subsection():
    index = build_sections(LINES)
    assert visibility_map(LINES, index.header_map, {"s-1.1"}) == [
        True, True, True, False, True, True,
    ]


def test_toggle_restores_exactly_the_range():
    index = build_sections(LINES)
    collapsed = toggle_section(frozenset(), "s-1")
    assert collapsed == {"s-1"}
    restored = toggle_section(collapsed, "s-1")
    assert restored == frozenset()
    assert visibility_map(LINES, index.header_map, restored) == [True] * len(LINES)


def test_initially_collapsed_marker():
    index = build_sections(["==# Hidden #==", "x", "== Shown ==", "y"])
    assert index.initial_collapsed == {"s-1"}


# ── Through the block parser ──────────────────────────────────────────────────

SOURCE = "==# H1 #==\nhidden\n=== sub ===\nmore\n== H2 ==\nshown"


def test_document_starts_with_marked_sections_collapsed():
    blocks = parse_document(SOURCE)
    assert blocks == [
        Heading(level=2, text="H1", children=[Text("H1")], section_id="s-1",
                number="1", collapsed=True, line=0),
        Heading(level=2, text="H2", children=[Text("H2")], section_id="s-2",
                number="2", collapsed=False, line=4),
        Paragraph([Text("shown")]),
    ]


def test_expanding_a_section_reveals_its_lines():
    index = build_sections(SOURCE.split("\n"))
    expanded = parse_document(SOURCE, collapsed=toggle_section(index.initial_collapsed, "s-1"))
    assert len(expanded) == 6
    assert expanded[0].collapsed is False
    assert expanded[1] == Paragraph([Text("hidden")])
    assert expanded[2].number == "1.1"
    assert expanded[3] == Paragraph([Text("more")])


def test_toc_ignores_collapse_state():
    index = build_sections(SOURCE.split("\n"))
    assert [e.text for e in index.toc] == ["H1", "sub", "H2"]


def test_unspaced_collapse_marker_hides_nested_content():
    source = "=#H1#=\n== a ==\ntext\n=== b ===\n= H2 =\nafter"
    blocks = parse_document(source)
    assert [b.text for b in blocks if isinstance(b, Heading)] == ["H1", "H2"]
    assert blocks[-1] == Paragraph([Text("after")])
    index = build_sections(source.split("\n"))
    restored = parse_document(source, collapsed=toggle_section(index.initial_collapsed, "s-1"))
    assert len(restored) == 6
