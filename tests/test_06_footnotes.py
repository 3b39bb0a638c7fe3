#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Tests for [* ...] footnotes: numbering, labels, and reference / list links.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from pynamu.markup.blocks import parse_document
from pynamu.markup.footnotes import FootnoteCollector, split_footnote_body
from pynamu.markup.html import render_html
from pynamu.markup.inline import parse_inline
from pynamu.markup.nodes import Document, FootnoteRef, Text
from tests.conftest import make_ctx


# ── Body splitting ────────────────────────────────────────────────────────────

def test_split_footnote_body():
    assert split_footnote_body("A note text") == ("A", "note text")
    assert split_footnote_body(" note text") == (None, "note text")
    assert split_footnote_body("note") == ("note", "")
    assert split_footnote_body("") == (None, "")


# ── Collector ─────────────────────────────────────────────────────────────────

def test_collector_assigns_sequential_ids():
    notes = FootnoteCollector()
    assert notes.push(None, []) == 1
    assert notes.push("x", []) == 2
    assert [n.label for n in notes] == ["1", "x"]
    assert notes.get(2).label == "x"
    assert len(notes) == 2


def test_collector_truncate():
    notes = FootnoteCollector()
    for _ in range(3):
        notes.push(None, [])
    notes.truncate(1)
    assert [n.id for n in notes.entries] == [1]


def test_entries_is_a_copy():
    notes = FootnoteCollector()
    notes.push(None, [])
    notes.entries.clear()
    assert len(notes) == 1


# ── Parsing ───────────────────────────────────────────────────────────────────

def test_single_word_footnotes_are_labels():
    ctx = make_ctx()
    nodes = parse_inline("a[*one]b[*two]c", ctx)
    assert nodes == [
        Text("a"), FootnoteRef(id=1, label="one"), Text("b"), FootnoteRef(id=2, label="two"), Text("c"),
    ]
    first, second = ctx.footnotes.entries
    assert first.children == []
    assert second.children == []


def test_numbered_footnotes_in_order():
    ctx = make_ctx()
    nodes = parse_inline("a[* one]b[* two]c", ctx)
    assert nodes == [
        Text("a"), FootnoteRef(id=1, label="1"), Text("b"), FootnoteRef(id=2, label="2"), Text("c"),
    ]
    first, second = ctx.footnotes.entries
    assert first.children == [Text("one")]
    assert second.children == [Text("two")]


def test_custom_label():
    ctx = make_ctx()
    [ref] = parse_inline("[*A note text]", ctx)
    assert ref == FootnoteRef(id=1, label="A")
    assert ctx.footnotes.get(1).children == [Text("note text")]


def test_leading_space_means_numbered():
    ctx = make_ctx()
    parse_inline("[* text]", ctx)
    note = ctx.footnotes.get(1)
    assert note.label == "1"
    assert note.children == [Text("text")]


def test_outer_footnote_is_numbered_before_inner():
    ctx = make_ctx()
    parse_inline("[* outer [* inner]] [* third]", ctx)
    outer, inner, third = ctx.footnotes.entries
    assert outer.children == [Text("outer "), FootnoteRef(id=2, label="2")]
    assert inner.children == [Text("inner")]
    assert third.id == 3


def test_numbering_continues_across_lines_and_tables():
    ctx = make_ctx()
    parse_document("x[* a]\n|| y[* b] ||\n * z[* c]", ctx)
    assert [n.children for n in ctx.footnotes.entries] == [[Text("a")], [Text("b")], [Text("c")]]


# ── HTML ──────────────────────────────────────────────────────────────────────

def test_reference_and_list_link_to_each_other():
    ctx = make_ctx()
    blocks = parse_document("a[*one]b[* two]c", ctx)
    html = render_html(Document(slug=None, blocks=blocks, footnotes=ctx.footnotes.entries))
    assert '<sup><a id="r1" href="#fn1">[one]</a></sup>' in html
    assert '<a id="r2" href="#fn2">[2]</a>' in html
    assert '<li id="fn1"><a href="#r1">[one]</a> </li>' in html
    assert '<li id="fn2"><a href="#r2">[2]</a> two</li>' in html


def test_no_footnote_list_without_footnotes():
    html = render_html(Document(slug=None, blocks=parse_document("plain")))
    assert "wiki-footnotes" not in html
