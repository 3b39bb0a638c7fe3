"""Markup-to-document engine: parser, document model and serialisers."""

from .blocks import extract_categories, parse_blocks, parse_document, parse_line, parse_redirect
from .context import ParserContext
from .footnotes import FootnoteCollector
from .html import RENDERER_VERSION, is_cache_valid, render_html
from .include import parse_include_args, resolve_include, substitute
from .inline import parse_inline
from .nodes import Document, Footnote, TocEntry
from .sections import build_sections, toggle_section, visibility_map
from .serialize import document_to_dict, to_dict
from .tables import merge_rows, parse_table, split_cells
from .attributes import parse_cell_attributes

__all__ = [
    "Document",
    "Footnote",
    "FootnoteCollector",
    "ParserContext",
    "RENDERER_VERSION",
    "TocEntry",
    "build_sections",
    "document_to_dict",
    "extract_categories",
    "is_cache_valid",
    "merge_rows",
    "parse_blocks",
    "parse_cell_attributes",
    "parse_document",
    "parse_include_args",
    "parse_inline",
    "parse_line",
    "parse_redirect",
    "parse_table",
    "render_html",
    "resolve_include",
    "split_cells",
    "substitute",
    "to_dict",
    "toggle_section",
    "visibility_map",
]
