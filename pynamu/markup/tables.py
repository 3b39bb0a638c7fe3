#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Table engine
============
Turns a run of ``||``-prefixed lines into a ``Table`` block.

    ||<tablebgcolor=#eee><bgcolor=#FF0000> A ||<-2> B ||
    || C || D || E ||

A logical row may span several physical lines while a ``{{{`` block inside one
of its cells is still open.  Style precedence for a cell is
column < row < the cell's own attributes; table-scoped attributes from any
cell apply to the whole table.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from collections.abc import Sequence

from .attributes import CellAttributes, parse_cell_attributes
from .context import ParserContext
from .nodes import Table, TableCell, TableRow


# -----------------------------------------------------------------------------

_DEFAULT_TABLE_STYLE = {
    "border-collapse": "collapse",
    "border": "1px solid #ccc",
}
_DEFAULT_BORDER_COLOR = "#ccc"


# -----------------------------------------------------------------------------
# Cell splitter
# -----------------------------------------------------------------------------

def split_cells(text: str) -> list[str]:
    """Split a row on ``||``, ignoring separators nested inside ``{{{ }}}``."""
    cells: list[str] = []
    buf: list[str] = []
    depth = 0
    i = 0
    n = len(text)
    while i < n:
        if text.startswith("{{{", i):
            depth += 1
            buf.append("{{{")
            i += 3
        elif text.startswith("}}}", i):
            depth = max(depth - 1, 0)
            buf.append("}}}")
            i += 3
        elif depth == 0 and text.startswith("||", i):
            cells.append("".join(buf))
            buf = []
            i += 2
        else:
            buf.append(text[i])
            i += 1
    cells.append("".join(buf))
    return cells


# -----------------------------------------------------------------------------

def brace_balance(line: str) -> int:
    return line.count("{{{") - line.count("}}}")


def merge_rows(lines: Sequence[str]) -> list[str]:
    """Join physical lines into logical rows while a ``{{{`` is unterminated."""
    rows: list[str] = []
    buffer: list[str] = []
    depth = 0
    for line in lines:
        buffer.append(line)
        depth += brace_balance(line)
        if depth <= 0:
            rows.append("\n".join(buffer))
            buffer = []
            depth = 0
    if buffer:
        rows.append("\n".join(buffer))
    return rows


def _row_cells(row: str) -> list[CellAttributes]:
    trimmed = row.strip()
    raw_cells = split_cells(trimmed)
    last = len(raw_cells) - 1
    cells: list[CellAttributes] = []
    for i, raw in enumerate(raw_cells):
        if i == 0 and raw == "" and trimmed.startswith("||"):
            continue
        if i == last and raw.strip() == "" and trimmed.endswith("||"):
            continue
        cells.append(parse_cell_attributes(raw))
    return cells


# -----------------------------------------------------------------------------
# Table engine
# -----------------------------------------------------------------------------

def parse_table(lines: Sequence[str], ctx: ParserContext) -> Table:
    """Build a ``Table`` from the raw table lines of one table region."""
    from .inline import parse_inline

    grid = [_row_cells(row) for row in merge_rows(lines)]

    table_style = dict(_DEFAULT_TABLE_STYLE)
    col_styles: list[dict[str, str]] = [{} for _ in range(max((len(r) for r in grid), default=0))]
    for cells in grid:
        for idx, cell in enumerate(cells):
            table_style.update(cell.table_style)
            col_styles[idx].update(cell.col_style)

    align: str | None = None
    wrapper_style: dict[str, str] = {}
    if table_style.get("float") in ("left", "right"):
        align = table_style.pop("float")
        wrapper_style["float"] = align
        for margin in ("margin-left", "margin-right"):
            if margin in table_style:
                wrapper_style[margin] = table_style.pop(margin)
    elif table_style.get("margin-left") == "auto" and table_style.get("margin-right") == "auto":
        align = "center"
    if align not in ("left", "right") and table_style.get("width") == "100%":
        wrapper_style["width"] = "100%"

    border_color = table_style.get("border-color", _DEFAULT_BORDER_COLOR)
    cell_ctx = ctx.nested()

    rows: list[TableRow] = []
    for cells in grid:
        row_style = next((dict(c.row_style) for c in cells if c.row_style), {})
        row = TableRow(style=row_style)
        for idx, cell in enumerate(cells):
            style = {"border-color": border_color}
            style.update(col_styles[idx])
            style.update(row_style)
            style.update(cell.style)
            row.cells.append(TableCell(
                text=cell.content,
                children=parse_inline(cell.content, cell_ctx),
                col_span=cell.col_span,
                row_span=cell.row_span,
                style=style,
            ))
        rows.append(row)

    return Table(
        rows=rows,
        col_styles=col_styles,
        style=table_style,
        wrapper_style=wrapper_style,
        align=align,
    )


# -----------------------------------------------------------------------------
