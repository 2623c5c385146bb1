"""Geometric primitives for curves and polylines.

Provides:
    - Cubic Bézier evaluation (batched, torch)
    - Wang's segment-count bound for uniform flattening
    - Point-to-segment distance for flatness tests
    - Control-point bounding boxes
    - Exact conversions to cubics: quadratic Béziers, full ellipses

Used by:
    - Flatteners: subdivision flatness test, uniform sampling
    - Document loader: quads / ellipses → cubics
    - Layout assembler: per-object bbox
    - Tests: sampling curves to check flattening tolerance

All coordinates are plain (x, y) float tuples in document units.
Arithmetic is float64; rounding to float32 happens only when buffers
are packed.
"""

import math
from typing import Iterable, List, Sequence, Tuple

import torch

Point = Tuple[float, float]
BBox = Tuple[float, float, float, float]
Cubic = Tuple[Point, Point, Point]
"""(ctrl1, ctrl2, end) of a cubic whose start is implied by the caller."""

EMPTY_BBOX: BBox = (0.0, 0.0, 0.0, 0.0)

# Control-point distance for a quarter ellipse: 4/3 * (sqrt(2) - 1)
KAPPA = 0.5522847498307936


def bezier_cubic_eval(
    p1: torch.Tensor,
    p2: torch.Tensor,
    p3: torch.Tensor,
    p4: torch.Tensor,
    t: torch.Tensor
) -> torch.Tensor:
    """Evaluate cubic Bézier curve at parameter values t.

    Parameters
    ----------
    p1, p2, p3, p4 : torch.Tensor
        Control points, shape (2,) for (x, y)
    t : torch.Tensor
        Parameter values in [0, 1], shape (N,) or scalar

    Returns
    -------
    torch.Tensor
        Points on curve, shape (N, 2)

    Notes
    -----
    Standard Bernstein form:
    B(t) = (1-t)³·p1 + 3(1-t)²t·p2 + 3(1-t)t²·p3 + t³·p4
    At t=0 and t=1 the result is exactly p1 and p4.
    """
    if t.ndim == 0:
        t = t.unsqueeze(0)
    t = t.to(p1.dtype).unsqueeze(-1)  # (N, 1)

    one_minus_t = 1.0 - t
    b0 = one_minus_t ** 3
    b1 = 3.0 * (one_minus_t ** 2) * t
    b2 = 3.0 * one_minus_t * (t ** 2)
    b3 = t ** 3

    return b0 * p1 + b1 * p2 + b2 * p3 + b3 * p4


def bezier_cubic_point(p0: Point, p1: Point, p2: Point, p3: Point, t: float) -> Point:
    """Scalar cubic evaluation (no tensor overhead)."""
    mt = 1.0 - t
    b0 = mt * mt * mt
    b1 = 3.0 * mt * mt * t
    b2 = 3.0 * mt * t * t
    b3 = t * t * t
    return (
        b0 * p0[0] + b1 * p1[0] + b2 * p2[0] + b3 * p3[0],
        b0 * p0[1] + b1 * p1[1] + b2 * p2[1] + b3 * p3[1],
    )


def wang_segment_count(p0: Point, p1: Point, p2: Point, p3: Point, tolerance: float) -> int:
    """Number of uniform segments that keeps a cubic within tolerance.

    Parameters
    ----------
    p0, p1, p2, p3 : Point
        Control points
    tolerance : float
        Maximum allowed deviation, > 0

    Returns
    -------
    int
        Segment count n ≥ 1

    Notes
    -----
    Wang's formula for degree 3:
        n = ceil(sqrt(3·2/8 · M / tolerance))
    where M = max‖p0 - 2p1 + p2‖, ‖p1 - 2p2 + p3‖.
    Sampling the curve at t = i/n then bounds the chord deviation by tolerance.
    """
    ddx0 = p0[0] - 2.0 * p1[0] + p2[0]
    ddy0 = p0[1] - 2.0 * p1[1] + p2[1]
    ddx1 = p1[0] - 2.0 * p2[0] + p3[0]
    ddy1 = p1[1] - 2.0 * p2[1] + p3[1]
    m = max(math.hypot(ddx0, ddy0), math.hypot(ddx1, ddy1))
    if m == 0.0:
        return 1
    return max(1, math.ceil(math.sqrt(0.75 * m / tolerance)))


def point_segment_distance(p: Point, a: Point, b: Point) -> float:
    """Euclidean distance from p to the closed segment ab.

    Degenerate segments (a == b) reduce to point distance.
    """
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    len_sq = dx * dx + dy * dy
    if len_sq == 0.0:
        return math.hypot(p[0] - a[0], p[1] - a[1])
    t = ((p[0] - a[0]) * dx + (p[1] - a[1]) * dy) / len_sq
    t = max(0.0, min(1.0, t))
    return math.hypot(p[0] - (a[0] + t * dx), p[1] - (a[1] + t * dy))


def points_bbox(points: Iterable[Point]) -> BBox:
    """Axis-aligned bounding box (xmin, ymin, xmax, ymax) of points.

    Returns EMPTY_BBOX (0, 0, 0, 0) if there are no points.
    """
    xmin = ymin = math.inf
    xmax = ymax = -math.inf
    for x, y in points:
        if x < xmin:
            xmin = x
        if x > xmax:
            xmax = x
        if y < ymin:
            ymin = y
        if y > ymax:
            ymax = y
    if xmin == math.inf:
        return EMPTY_BBOX
    return (xmin, ymin, xmax, ymax)


def bbox_contains(bbox: BBox, p: Point, eps: float = 0.0) -> bool:
    """True if p lies inside bbox (inclusive, with optional slack)."""
    return (
        bbox[0] - eps <= p[0] <= bbox[2] + eps
        and bbox[1] - eps <= p[1] <= bbox[3] + eps
    )


def quad_to_cubic(p0: Point, c: Point, p1: Point) -> Cubic:
    """Degree-elevate a quadratic Bézier (exact).

    Returns
    -------
    Cubic
        (ctrl1, ctrl2, end) with ctrl1 = p0 + 2/3(c - p0), ctrl2 = p1 + 2/3(c - p1)
    """
    ctrl1 = (p0[0] + 2.0 / 3.0 * (c[0] - p0[0]), p0[1] + 2.0 / 3.0 * (c[1] - p0[1]))
    ctrl2 = (p1[0] + 2.0 / 3.0 * (c[0] - p1[0]), p1[1] + 2.0 / 3.0 * (c[1] - p1[1]))
    return (ctrl1, ctrl2, p1)


def ellipse_cubics(cx: float, cy: float, rx: float, ry: float) -> Tuple[Point, List[Cubic]]:
    """Four quarter-ellipse cubics, starting at (cx + rx, cy), positive sweep.

    Returns
    -------
    Tuple[Point, List[Cubic]]
        Start point and the four cubics that return to it.
    """
    kx = KAPPA * rx
    ky = KAPPA * ry
    right = (cx + rx, cy)
    bottom = (cx, cy + ry)
    left = (cx - rx, cy)
    top = (cx, cy - ry)
    return right, [
        ((cx + rx, cy + ky), (cx + kx, cy + ry), bottom),
        ((cx - kx, cy + ry), (cx - rx, cy + ky), left),
        ((cx - rx, cy - ky), (cx - kx, cy - ry), top),
        ((cx + kx, cy - ry), (cx + rx, cy - ky), right),
    ]


def polyline_deviation(curve_points: Sequence[Point], polyline: Sequence[Point]) -> float:
    """Largest distance from any curve sample to the polyline.

    Used to check a flattening result against dense samples of its curve.
    """
    if len(polyline) == 1:
        px, py = polyline[0]
        return max(math.hypot(x - px, y - py) for x, y in curve_points)
    worst = 0.0
    segments = list(zip(polyline[:-1], polyline[1:]))
    for p in curve_points:
        d = min(point_segment_distance(p, a, b) for a, b in segments)
        if d > worst:
            worst = d
    return worst
