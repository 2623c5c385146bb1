"""SVG geometry → Path conversion.

Handles the ``d`` attribute of ``<path>`` (via the svg.path parser) and the
basic shapes, converted the way SVG defines their equivalent path:

    rect      M, H, V (+ quarter arcs for rx/ry), Z
    circle    four quarter arcs from (cx + r, cy), Z
    ellipse   same, with rx/ry
    polygon   M, L..., Z
    polyline  M, L...

Output paths only use MoveTo / LineTo / CubicCurveTo / ClosePath:
quadratic segments are degree-elevated and arcs become cubics.

Zero-size shapes return an empty Path (nothing to render).  Geometry that
cannot be interpreted raises MalformedShapeError.
"""

from __future__ import annotations

import math
import re
from typing import Mapping

from svg.path import Arc, Close, CubicBezier, Line, Move, QuadraticBezier, parse_path
from svgpathtools import Arc as EllipticalArc

from pathgpu.document.style import parse_length, parse_number_list
from pathgpu.paths.commands import Path
from pathgpu.utils.geometry import Point, ellipse_cubics, quad_to_cubic


_PATH_DATA_RE = re.compile(r"^[\sMmZzLlHhVvCcSsQqTtAa0-9eE.,+-]*$")


class MalformedShapeError(ValueError):
    """Raised when one element's geometry cannot be converted."""

    pass


def _pt(c: complex) -> Point:
    return (c.real, c.imag)


def _length(attrib: Mapping[str, str], name: str, default: float = 0.0) -> float:
    try:
        return parse_length(attrib.get(name), default)
    except ValueError as e:
        raise MalformedShapeError(f"attribute {name!r}: {e}") from e


def check_finite(path: Path) -> Path:
    """Reject paths with a coordinate that overflowed to inf (or nan)."""
    for p in path.control_points():
        if not (math.isfinite(p[0]) and math.isfinite(p[1])):
            raise MalformedShapeError(f"coordinate out of range {p}")
    return path


def path_from_d(d: str) -> Path:
    """Convert path data to a Path.

    Raises
    ------
    MalformedShapeError
        If the path data cannot be parsed, draws before its first moveto,
        or has a coordinate out of float range
    """
    if not _PATH_DATA_RE.match(d):
        raise MalformedShapeError(f"invalid characters in path data {d!r}")
    try:
        segments = parse_path(d)
    except (ValueError, IndexError, ZeroDivisionError, AssertionError) as e:
        # svg.path asserts on a closepath before any moveto
        raise MalformedShapeError(f"invalid path data {d!r}: {e!r}") from e

    path = Path()
    try:
        for seg in segments:
            if isinstance(seg, Move):
                path.move_to(_pt(seg.start))
            elif isinstance(seg, Close):
                path.close_path()
            elif isinstance(seg, Line):
                path.line_to(_pt(seg.end))
            elif isinstance(seg, CubicBezier):
                path.curve_to(_pt(seg.control1), _pt(seg.control2), _pt(seg.end))
            elif isinstance(seg, QuadraticBezier):
                path.curve_to(*quad_to_cubic(_pt(seg.start), _pt(seg.control), _pt(seg.end)))
            elif isinstance(seg, Arc):
                _append_arc(
                    path, _pt(seg.start), seg.radius.real, seg.radius.imag,
                    seg.rotation, bool(seg.arc), bool(seg.sweep), _pt(seg.end)
                )
            else:
                raise MalformedShapeError(f"unsupported segment type {type(seg).__name__}")
    except MalformedShapeError:
        raise
    except (ValueError, TypeError, ZeroDivisionError) as e:
        raise MalformedShapeError(f"invalid path data {d!r}: {e}") from e
    return check_finite(path)


def _append_arc(path: Path, start: Point, rx: float, ry: float, rotation: float,
                large_arc: bool, sweep: bool, end: Point) -> None:
    """Append an endpoint-form arc as cubics, one per quarter turn or less.

    svgpathtools does the center conversion (including scaling radii that
    are too small to reach ``end``) and the cubic fit.
    """
    if start == end:
        return
    if rx == 0.0 or ry == 0.0:
        path.line_to(end)
        return
    arc = EllipticalArc(
        complex(*start), complex(abs(rx), abs(ry)), rotation,
        large_arc, sweep, complex(*end),
    )
    pieces = max(1, math.ceil(abs(arc.delta) / 90.0 - 1e-9))
    for cubic in arc.as_cubic_curves(pieces):
        path.curve_to(_pt(cubic.control1), _pt(cubic.control2), _pt(cubic.end))


def rect_path(attrib: Mapping[str, str]) -> Path:
    x = _length(attrib, "x")
    y = _length(attrib, "y")
    w = _length(attrib, "width")
    h = _length(attrib, "height")
    if w < 0 or h < 0:
        raise MalformedShapeError(f"negative rect size {w}x{h}")
    if w == 0 or h == 0:
        return Path()

    has_rx = attrib.get("rx") is not None
    has_ry = attrib.get("ry") is not None
    rx = _length(attrib, "rx")
    ry = _length(attrib, "ry")
    if has_rx and not has_ry:
        ry = rx
    elif has_ry and not has_rx:
        rx = ry
    if rx < 0 or ry < 0:
        raise MalformedShapeError(f"negative corner radius {rx},{ry}")
    rx = min(rx, w / 2.0)
    ry = min(ry, h / 2.0)

    path = Path()
    if rx == 0 or ry == 0:
        path.move_to((x, y))
        path.line_to((x + w, y))
        path.line_to((x + w, y + h))
        path.line_to((x, y + h))
        return path.close_path()

    path.move_to((x + rx, y))
    path.line_to((x + w - rx, y))
    _append_arc(path, (x + w - rx, y), rx, ry, 0.0, False, True, (x + w, y + ry))
    path.line_to((x + w, y + h - ry))
    _append_arc(path, (x + w, y + h - ry), rx, ry, 0.0, False, True, (x + w - rx, y + h))
    path.line_to((x + rx, y + h))
    _append_arc(path, (x + rx, y + h), rx, ry, 0.0, False, True, (x, y + h - ry))
    path.line_to((x, y + ry))
    _append_arc(path, (x, y + ry), rx, ry, 0.0, False, True, (x + rx, y))
    return path.close_path()


def ellipse_path(cx: float, cy: float, rx: float, ry: float) -> Path:
    if rx < 0 or ry < 0:
        raise MalformedShapeError(f"negative radius {rx},{ry}")
    if rx == 0 or ry == 0:
        return Path()
    start, cubics = ellipse_cubics(cx, cy, rx, ry)
    path = Path().move_to(start)
    for c1, c2, p in cubics:
        path.curve_to(c1, c2, p)
    return path.close_path()


def circle_path(attrib: Mapping[str, str]) -> Path:
    r = _length(attrib, "r")
    return ellipse_path(_length(attrib, "cx"), _length(attrib, "cy"), r, r)


def ellipse_element_path(attrib: Mapping[str, str]) -> Path:
    return ellipse_path(
        _length(attrib, "cx"), _length(attrib, "cy"),
        _length(attrib, "rx"), _length(attrib, "ry"),
    )


def poly_path(attrib: Mapping[str, str], closed: bool) -> Path:
    """Polygon (closed) or polyline (open) from the ``points`` list.

    An odd trailing coordinate is dropped, as SVG renders up to the last
    complete pair.  Fewer than two points render nothing.
    """
    try:
        nums = parse_number_list(attrib.get("points"))
    except ValueError as e:
        raise MalformedShapeError(f"invalid points list: {e}") from e
    pairs = [(nums[i], nums[i + 1]) for i in range(0, len(nums) - 1, 2)]
    if len(pairs) < 2:
        return Path()
    path = Path().move_to(pairs[0])
    for p in pairs[1:]:
        path.line_to(p)
    if closed:
        path.close_path()
    return path


def element_path(tag: str, attrib: Mapping[str, str]) -> Path:
    """Dispatch on a fillable shape tag."""
    return check_finite(_dispatch(tag, attrib))


def _dispatch(tag: str, attrib: Mapping[str, str]) -> Path:
    if tag == "path":
        d = attrib.get("d")
        if not d or not d.strip():
            return Path()
        return path_from_d(d)
    if tag == "rect":
        return rect_path(attrib)
    if tag == "circle":
        return circle_path(attrib)
    if tag == "ellipse":
        return ellipse_element_path(attrib)
    if tag == "polygon":
        return poly_path(attrib, closed=True)
    if tag == "polyline":
        return poly_path(attrib, closed=False)
    raise MalformedShapeError(f"<{tag}> is not a fillable shape")
