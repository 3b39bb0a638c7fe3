from pynamu.schemas.schemas import (
    RenderRequest,
    RenderResponse,
    TocEntryResponse,
    FootnoteResponse,
)

__all__ = [
    "RenderRequest",
    "RenderResponse",
    "TocEntryResponse",
    "FootnoteResponse",
]
