#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
JSON-ready serialisation of the document tree.

Each node becomes a dict with its ``kind`` first, followed by its fields.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import fields, is_dataclass
from typing import Any

from .nodes import Document


# -----------------------------------------------------------------------------

def to_dict(node: Any) -> dict[str, Any]:
    data: dict[str, Any] = {}
    kind = getattr(type(node), "kind", None)
    if kind is not None:
        data["kind"] = kind
    for f in fields(node):
        data[f.name] = _value(getattr(node, f.name))
    return data


def _value(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return to_dict(value)
    if isinstance(value, list):
        return [_value(v) for v in value]
    if isinstance(value, dict):
        return {k: _value(v) for k, v in value.items()}
    return value


def document_to_dict(document: Document) -> dict[str, Any]:
    return to_dict(document)


# -----------------------------------------------------------------------------
