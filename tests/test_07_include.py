#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Tests for [include(...)] resolution: arguments, parameter substitution,
failure reasons and the built-in notice templates.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest

from pynamu.markup.blocks import parse_document
from pynamu.markup.include import parse_include_args, resolve_include, substitute
from pynamu.markup.inline import parse_inline
from pynamu.markup.nodes import (
    Bold, Heading, Include, IncludeError, NoticeEntry, Paragraph, TemplateNotice,
    Text,
)
from tests.conftest import make_ctx


def _first_include(blocks) -> Include:
    node = blocks[0].children[0]
    assert isinstance(node, Include)
    return node


# ── Arguments ─────────────────────────────────────────────────────────────────

def test_named_and_positional_params():
    assert parse_include_args("틀:X, a=1, b, c = d=e") == (
        "틀:X", {"a": "1", "1": "b", "c": "d=e"},
    )


def test_commas_inside_brackets_are_not_separators():
    assert parse_include_args("T, link=[[A, B]], f=(x, y)") == (
        "T", {"link": "[[A, B]]", "f": "(x, y)"},
    )


def test_substitute_leaves_unknown_placeholders():
    assert substitute("Hi @name@ @missing@", {"name": "Bob"}) == "Hi Bob @missing@"


# ── Successful inclusion ──────────────────────────────────────────────────────

def test_include_is_parsed_with_params():
    ctx = make_ctx(slug="Main", includes={"틀:Box": "'''@1@'''"})
    assert parse_inline("[include(틀:Box, hello)]", ctx) == [
        Include(
            slug="틀:Box",
            params={"1": "hello"},
            blocks=[Paragraph([Bold([Text("hello")])])],
        ),
    ]


def test_each_site_gets_its_own_params():
    ctx = make_ctx(includes={"T": "@v@"})
    first, _, second = parse_inline("[include(T, v=a)] [include(T, v=b)]", ctx)
    assert first.blocks == [Paragraph([Text("a")])]
    assert second.blocks == [Paragraph([Text("b")])]


def test_included_headings_are_not_numbered():
    blocks = parse_document("== Top ==\n[include(T)]", includes={"T": "== Sub =="})
    assert blocks[0].number == "1"
    include = blocks[1].children[0]
    [heading] = include.blocks
    assert isinstance(heading, Heading)
    assert heading.number is None
    assert heading.section_id is None


def test_included_footnotes_share_numbering():
    ctx = make_ctx(includes={"T": "x[* inc]"})
    parse_document("a[* top][include(T)]", ctx)
    assert [n.children for n in ctx.footnotes.entries] == [[Text("top")], [Text("inc")]]


# ── Failures ──────────────────────────────────────────────────────────────────

def test_cycle_is_reported():
    blocks = parse_document(
        "[include(B)]",
        slug="A",
        includes={"A": "[include(B)]", "B": "[include(A)]"},
    )
    outer = _first_include(blocks)
    assert outer.error is None
    inner = _first_include(outer.blocks)
    assert inner.error == IncludeError(slug="A", reason="cycle")


def test_self_include_is_a_cycle():
    ctx = make_ctx(slug="A", includes={"A": "x"})
    assert resolve_include("A", ctx) == IncludeError(slug="A", reason="cycle")


def test_depth_limit():
    includes = {f"T{i}": f"[include(T{i + 1})]" for i in range(10)}
    node = _first_include(parse_document("[include(T0)]", slug="Main", includes=includes))
    resolved = 0
    while node.error is None:
        resolved += 1
        node = _first_include(node.blocks)
    assert resolved == 5
    assert node.error == IncludeError(slug="T5", reason="depth")


@pytest.mark.parametrize("ctx_kwargs,reason", [
    ({"includes": {"X": None}}, "missing"),
    ({"includes": {"X": ""}}, "missing"),
    ({"includes": {}}, "not_fetched"),
    ({"unavailable": {"X"}}, "unavailable"),
])
def test_failure_reasons(ctx_kwargs, reason):
    assert resolve_include("X", make_ctx(**ctx_kwargs)) == IncludeError(slug="X", reason=reason)


def test_empty_slug_is_missing():
    assert resolve_include(" , a=1", make_ctx()) == IncludeError(slug="", reason="missing")


def test_failure_is_inline_marker():
    [node] = parse_inline("[include(Nope)]", make_ctx())
    assert node.blocks == []
    assert node.error.reason == "not_fetched"


# ── Built-in notice templates ─────────────────────────────────────────────────

def test_see_also_notice():
    ctx = make_ctx(existing={"고양이"})
    assert resolve_include("틀:상세 내용, 문서명=고양이", ctx) == [
        TemplateNotice(template="see_also", entries=[NoticeEntry(target="고양이", exists=True)]),
    ]


def test_parent_notice_defaults_and_current_page():
    [notice] = resolve_include("틀:상위 문서", make_ctx())
    assert notice.entries == [NoticeEntry(target="상위 문서", exists=False)]
    [notice] = resolve_include("틀:상위 문서", make_ctx(slug="상위 문서"))
    assert notice.entries[0].exists is True


def test_disambiguation_notice_keeps_complete_pairs():
    raw = "틀:다른 뜻, 설명1=동물, 문서명1=고양이, 설명2=뮤지컬, 문서명2=캣츠, 문서명3=외톨이"
    [notice] = resolve_include(raw, make_ctx(existing={"캣츠"}))
    assert notice.template == "disambiguation"
    assert notice.entries == [
        NoticeEntry(target="고양이", exists=False, description="동물"),
        NoticeEntry(target="캣츠", exists=True, description="뮤지컬"),
    ]


def test_empty_disambiguation_renders_nothing():
    assert resolve_include("틀:다른 뜻", make_ctx()) == []


def test_notice_targets_are_queried():
    sink: set[str] = set()
    resolve_include("틀:상세 내용, 문서명=고양이", make_ctx(link_sink=sink))
    assert sink == {"고양이"}
