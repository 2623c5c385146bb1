"""Document loader: SVG file → solid-filled Paths in document order.

Walks the element tree pre-order from the root <svg> and emits one Path
per shape whose computed fill is a solid color.  Everything else is
recorded in ``SvgDocument.skipped`` with a reason:

Not applicable (policy, logged at DEBUG):
    NO_FILL, NON_SOLID_FILL, NOT_FILLABLE, HIDDEN, EMPTY_GEOMETRY

Unsupported but recoverable (logged at WARNING):
    MALFORMED_GEOMETRY, INVALID_PAINT, UNSUPPORTED_ELEMENT

Only an unreadable or unparsable document fails the whole load
(DocumentError).  Coordinates are returned in the document's own user
space; ``transform`` attributes are not applied.  The document viewport
(viewBox, else width/height) is recorded for the rendering boundary.

Usage:
    from pathgpu.document import load_document, parse_svg
    doc = load_document("assets/tiger.svg")
    paths = parse_svg("assets/tiger.svg")  # == doc.paths
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path as FsPath
from typing import List, Optional, Tuple, Union

from pathgpu.document.shapes import MalformedShapeError, element_path
from pathgpu.document.style import PaintKind, StyleState, parse_length, parse_number_list, resolve_paint
from pathgpu.paths.commands import MoveTo, Path

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"

CONTAINER_TAGS = frozenset({"svg", "g", "a", "switch"})
SHAPE_TAGS = frozenset({"path", "rect", "circle", "ellipse", "polygon", "polyline"})
NON_FILLABLE_TAGS = frozenset({"line"})
NEVER_RENDERED_TAGS = frozenset({
    "defs", "clipPath", "mask", "pattern", "marker", "symbol",
    "linearGradient", "radialGradient", "style", "script",
    "title", "desc", "metadata", "filter",
})
UNSUPPORTED_TAGS = frozenset({"use", "text", "image", "foreignObject"})

Viewport = Tuple[float, float, float, float]


class DocumentError(Exception):
    """Raised when a document cannot be read or parsed at all."""

    pass


class SkipReason(Enum):
    NO_FILL = "no_fill"
    NON_SOLID_FILL = "non_solid_fill"
    NOT_FILLABLE = "not_fillable"
    HIDDEN = "hidden"
    EMPTY_GEOMETRY = "empty_geometry"
    MALFORMED_GEOMETRY = "malformed_geometry"
    INVALID_PAINT = "invalid_paint"
    UNSUPPORTED_ELEMENT = "unsupported_element"

    @property
    def recoverable(self) -> bool:
        """True for shapes dropped because of an error rather than by policy."""
        return self in (
            SkipReason.MALFORMED_GEOMETRY,
            SkipReason.INVALID_PAINT,
            SkipReason.UNSUPPORTED_ELEMENT,
        )


@dataclass(frozen=True)
class FilledShape:
    """One emitted shape: its path plus where it came from."""

    path: Path
    tag: str
    element_id: Optional[str] = None
    fill_rgb: Tuple[int, int, int] = (0, 0, 0)


@dataclass(frozen=True)
class SkippedShape:
    tag: str
    reason: SkipReason
    element_id: Optional[str] = None
    detail: str = ""


@dataclass
class SvgDocument:
    """Result of loading one SVG file."""

    source: FsPath
    viewport: Viewport
    shapes: List[FilledShape] = field(default_factory=list)
    skipped: List[SkippedShape] = field(default_factory=list)

    @property
    def paths(self) -> List[Path]:
        return [shape.path for shape in self.shapes]

    @property
    def recoverable_errors(self) -> List[SkippedShape]:
        return [s for s in self.skipped if s.reason.recoverable]


def _local_name(tag: str) -> Optional[str]:
    """Strip the SVG namespace; None for foreign-namespace elements."""
    if not isinstance(tag, str):
        return None  # comments / processing instructions
    if tag.startswith("{"):
        ns, _, local = tag[1:].partition("}")
        return local if ns == SVG_NS else None
    return tag


def _viewport(root: ET.Element) -> Viewport:
    view_box = root.get("viewBox")
    if view_box:
        try:
            nums = parse_number_list(view_box)
        except ValueError:
            nums = []
        if len(nums) == 4 and nums[2] > 0 and nums[3] > 0:
            return (nums[0], nums[1], nums[2], nums[3])
        logger.warning(f"Ignoring invalid viewBox {view_box!r}")
    try:
        width = parse_length(root.get("width"), 0.0)
        height = parse_length(root.get("height"), 0.0)
    except ValueError as e:
        logger.warning(f"Cannot resolve document size: {e}")
        width = height = 0.0
    return (0.0, 0.0, width, height)


class _Walker:
    """Pre-order traversal collecting shapes into an SvgDocument."""

    def __init__(self, doc: SvgDocument, include_hidden: bool):
        self.doc = doc
        self.include_hidden = include_hidden

    def skip(self, tag: str, elem: ET.Element, reason: SkipReason, detail: str = "") -> None:
        element_id = elem.get("id")
        self.doc.skipped.append(SkippedShape(tag, reason, element_id, detail))
        label = f"<{tag}{' id=' + element_id if element_id else ''}>"
        if reason.recoverable:
            logger.warning(f"Skipping {label}: {reason.value} {detail}".rstrip())
        else:
            logger.debug(f"Excluding {label}: {reason.value} {detail}".rstrip())

    def visit(self, elem: ET.Element, parent: StyleState) -> None:
        tag = _local_name(elem.tag)
        if tag is None or tag in NEVER_RENDERED_TAGS:
            return

        state = parent.child(elem.attrib)
        if not state.is_displayed and not self.include_hidden:
            if tag in SHAPE_TAGS or tag in CONTAINER_TAGS:
                self.skip(tag, elem, SkipReason.HIDDEN, "display:none")
            return

        if tag in CONTAINER_TAGS:
            for child in elem:
                self.visit(child, state)
        elif tag in SHAPE_TAGS:
            self.visit_shape(tag, elem, state)
        elif tag in NON_FILLABLE_TAGS:
            self.skip(tag, elem, SkipReason.NOT_FILLABLE)
        elif tag in UNSUPPORTED_TAGS:
            self.skip(tag, elem, SkipReason.UNSUPPORTED_ELEMENT)

    def visit_shape(self, tag: str, elem: ET.Element, state: StyleState) -> None:
        if not state.is_visible and not self.include_hidden:
            self.skip(tag, elem, SkipReason.HIDDEN, f"visibility:{state.visibility}")
            return

        paint = resolve_paint(state.fill, state.color)
        if paint.kind is PaintKind.NONE:
            self.skip(tag, elem, SkipReason.NO_FILL)
            return
        if paint.kind is PaintKind.NON_SOLID:
            self.skip(tag, elem, SkipReason.NON_SOLID_FILL, paint.detail)
            return
        if paint.kind is PaintKind.INVALID:
            self.skip(tag, elem, SkipReason.INVALID_PAINT, paint.detail)
            return

        try:
            path = element_path(tag, elem.attrib)
        except MalformedShapeError as e:
            self.skip(tag, elem, SkipReason.MALFORMED_GEOMETRY, str(e))
            return

        if all(isinstance(cmd, MoveTo) for cmd in path):
            self.skip(tag, elem, SkipReason.EMPTY_GEOMETRY)
            return

        self.doc.shapes.append(FilledShape(path, tag, elem.get("id"), paint.rgb))


def load_document(path: Union[str, FsPath], *, include_hidden: bool = False) -> SvgDocument:
    """Load every solid-filled shape of an SVG document.

    Parameters
    ----------
    path : Union[str, Path]
        SVG file
    include_hidden : bool
        Keep shapes hidden by display/visibility, default False

    Returns
    -------
    SvgDocument
        Shapes in pre-order document order, skipped shapes with reasons,
        and the document viewport

    Raises
    ------
    DocumentError
        If the file cannot be read, is not well-formed XML, or its root
        element is not <svg>
    """
    source = FsPath(path)
    try:
        tree = ET.parse(source)
    except OSError as e:
        raise DocumentError(f"Cannot read SVG document {source}: {e}") from e
    except ET.ParseError as e:
        raise DocumentError(f"Cannot parse SVG document {source}: {e}") from e

    root = tree.getroot()
    if _local_name(root.tag) != "svg":
        raise DocumentError(f"Root element of {source} is {root.tag!r}, expected <svg>")

    doc = SvgDocument(source=source, viewport=_viewport(root))
    _Walker(doc, include_hidden).visit(root, StyleState())

    n_errors = len(doc.recoverable_errors)
    logger.info(
        f"Loaded {source.name}: {len(doc.shapes)} filled shapes, "
        f"{len(doc.skipped) - n_errors} excluded, {n_errors} skipped with errors"
    )
    return doc


def parse_svg(path: Union[str, FsPath]) -> List[Path]:
    """Paths of every solid-filled shape, in document order.

    Raises
    ------
    DocumentError
        If the document cannot be read or parsed
    """
    return load_document(path).paths
