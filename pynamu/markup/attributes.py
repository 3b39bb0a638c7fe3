#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Cell attribute mini-parser
==========================
Interprets the run of ``<...>`` tags that may prefix a table cell::

    ||<bgcolor=#FF0000><-2><:> content ||

Tags are consumed left to right until one is not recognised; that tag and
everything after it stay as literal cell content.

Supported tags
--------------
<tablebordercolor=C> <tablebgcolor=C> <tablealign=A> <tablewidth=W>
<table bordercolor=C bgcolor=C width=W align=A>    — table-scoped
<rowbgcolor=C> <rowcolor=C>                        — row-scoped
<colbgcolor=C> <colcolor=C>                        — column-scoped
<bgcolor=C> <#hex> <color=C> <width=W> <height=H> <nopad>
<(> <:> <)>                                        — horizontal alignment
<-N>                                               — colspan
<|N> <^|N> <v|N>                                   — rowspan (+ vertical alignment)
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from dataclasses import dataclass, field


# -----------------------------------------------------------------------------

_DIGITS_RE  = re.compile(r"^\d+$")
_INT_RE     = re.compile(r"^\s*([+-]?\d+)")
_HEX_RE     = re.compile(r"^#[0-9A-Fa-f]{3,8}$")

_ALIGN_TAGS = {"(": "left", ":": "center", ")": "right"}


# -----------------------------------------------------------------------------
# Value helpers
# -----------------------------------------------------------------------------

def parse_color(value: str | None) -> str:
    """Keep the light-mode half of a ``light,dark`` colour pair."""
    if not value:
        return ""
    return value.split(",", 1)[0].strip()


def parse_text_color(value: str) -> str:
    """Colour of a ``{{{#color text}}}`` span.

    Hex codes keep their ``#``; ``#transparent`` and named colours (``#red``)
    drop it.
    """
    color = parse_color(value)
    if color == "#transparent":
        return "transparent"
    if color.startswith("#") and not _HEX_RE.match(color):
        return color[1:]
    return color


def format_size(value: str | None) -> str | None:
    """``200`` → ``200px``; anything else (``50%``, ``3em``) unchanged."""
    if not value:
        return None
    value = value.strip()
    return f"{value}px" if _DIGITS_RE.match(value) else value


def parse_css_style(style: str) -> dict[str, str]:
    """Parse ``"color: red; padding: 0 4px"`` into an ordered property dict."""
    props: dict[str, str] = {}
    for rule in style.split(";"):
        key, sep, value = rule.partition(":")
        if not sep:
            continue
        key, value = key.strip().lower(), value.strip()
        if key and value:
            props[key] = value
    return props


def _leading_int(text: str) -> int | None:
    m = _INT_RE.match(text)
    return int(m.group(1)) if m else None


def _table_align(value: str) -> dict[str, str]:
    value = value.strip().lower()
    if value == "right":
        return {"float": "right", "margin-left": "10px"}
    if value == "left":
        return {"float": "left", "margin-right": "10px"}
    if value == "center":
        return {"margin-left": "auto", "margin-right": "auto", "float": "none"}
    return {}


# -----------------------------------------------------------------------------

@dataclass(slots=True)
class CellAttributes:
    content: str
    style: dict[str, str] = field(default_factory=dict)
    table_style: dict[str, str] = field(default_factory=dict)
    row_style: dict[str, str] = field(default_factory=dict)
    col_style: dict[str, str] = field(default_factory=dict)
    col_span: int = 1
    row_span: int = 1


# -----------------------------------------------------------------------------

def _apply_tag(tag: str, attrs: CellAttributes) -> bool:
    """Apply one tag body to *attrs*; return False when the tag is unknown."""
    lower = tag.strip().lower()
    _, _, raw_value = tag.partition("=")

    if lower.startswith("tablebordercolor="):
        attrs.table_style["border"] = f"2px solid {parse_color(raw_value)}"
    elif lower.startswith("tablebgcolor="):
        attrs.table_style["background-color"] = parse_color(raw_value)
    elif lower.startswith("tablealign="):
        attrs.table_style.update(_table_align(raw_value))
    elif lower.startswith("tablewidth="):
        width = format_size(raw_value)
        if width:
            attrs.table_style["width"] = width
    elif lower.startswith("table"):
        for opt in tag.strip()[5:].split():
            key, sep, value = opt.partition("=")
            if not sep:
                continue
            key, value = key.lower(), parse_color(value)
            if key == "bordercolor":
                attrs.table_style["border-color"] = value
            elif key == "bgcolor":
                attrs.table_style["background-color"] = value
            elif key == "width" and value:
                attrs.table_style["width"] = format_size(value)
            elif key == "align":
                attrs.table_style.update(_table_align(value))
    elif lower.startswith("rowbgcolor="):
        attrs.row_style["background-color"] = parse_color(raw_value)
    elif lower.startswith("rowcolor="):
        attrs.row_style["color"] = parse_color(raw_value)
    elif lower.startswith("colbgcolor="):
        attrs.col_style["background-color"] = parse_color(raw_value)
    elif lower.startswith("colcolor="):
        attrs.col_style["color"] = parse_color(raw_value)
    elif lower == "nopad":
        attrs.style["padding"] = "0px"
    elif lower.startswith("bgcolor="):
        attrs.style["background-color"] = parse_color(raw_value)
    elif tag.startswith("#"):
        attrs.style["background-color"] = parse_color(tag)
    elif lower.startswith("color="):
        attrs.style["color"] = parse_color(raw_value)
    elif tag.startswith(("^|", "v|")):
        attrs.style["vertical-align"] = "top" if tag[0] == "^" else "bottom"
        span = _leading_int(tag[2:])
        if span is not None and span > 0:
            attrs.row_span = span
    elif tag.startswith("|"):
        attrs.style["vertical-align"] = "middle"
        span = _leading_int(tag[1:])
        if span is not None and span > 0:
            attrs.row_span = span
    elif tag in _ALIGN_TAGS:
        attrs.style["text-align"] = _ALIGN_TAGS[tag]
    elif tag.startswith("-"):
        span = _leading_int(tag[1:])
        if span is None:
            return False
        attrs.col_span = max(span, 1)
    elif lower.startswith("width="):
        width = format_size(raw_value)
        if width:
            attrs.style["width"] = width
    elif lower.startswith("height="):
        height = format_size(raw_value)
        if height:
            attrs.style["height"] = height
    else:
        return False
    return True


# -----------------------------------------------------------------------------

def parse_cell_attributes(raw: str) -> CellAttributes:
    """Strip the leading attribute tags off *raw* and interpret them."""
    attrs = CellAttributes(content=raw)
    content = raw

    while True:
        stripped = content.lstrip()
        if not stripped.startswith("<"):
            break
        end = stripped.find(">")
        if end == -1:
            break
        if not _apply_tag(stripped[1:end], attrs):
            break
        content = stripped[end + 1:]

    if "text-align" not in attrs.style:
        leading, trailing = content.startswith(" "), content.endswith(" ")
        if leading and trailing:
            attrs.style["text-align"] = "center"
        elif leading:
            attrs.style["text-align"] = "right"
        elif trailing:
            attrs.style["text-align"] = "left"

    attrs.content = content.strip()
    return attrs


# -----------------------------------------------------------------------------
