"""Document loading: SVG → solid-filled Paths."""

from pathgpu.document.shapes import MalformedShapeError
from pathgpu.document.svg_loader import (
    DocumentError,
    FilledShape,
    SkippedShape,
    SkipReason,
    SvgDocument,
    load_document,
    parse_svg,
)

__all__ = [
    "DocumentError",
    "FilledShape",
    "MalformedShapeError",
    "SkipReason",
    "SkippedShape",
    "SvgDocument",
    "load_document",
    "parse_svg",
]
