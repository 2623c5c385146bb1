"""Curve flattening: cubic Bézier segments → polylines within a tolerance.

Provides:
    - CurveFlattener: strategy interface (one operation, flatten_cubic)
    - SubdivisionFlattener: adaptive de Casteljau subdivision (default)
    - UniformFlattener: uniform sampling, segment count from Wang's formula
    - get_flattener(): name → strategy registry (config-driven selection)
    - flatten_path(): Path → flat Path (MoveTo / LineTo / ClosePath only)

Contract shared by every strategy:
    - every point of the source curve lies within `tolerance` of the polyline
    - the polyline starts at p0 and ends exactly at p3
    - never fails: degenerate curves (coincident or collinear control
      points) yield at least one, possibly zero-length, segment

Tolerance is in document units and is one constant for the whole document.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Type

import torch

from pathgpu.paths.commands import ClosePath, CubicCurveTo, LineTo, MoveTo, Path
from pathgpu.utils.geometry import Point, bezier_cubic_eval, point_segment_distance, wang_segment_count

logger = logging.getLogger(__name__)


def _check_tolerance(tolerance: float) -> None:
    if not (isinstance(tolerance, (int, float)) and math.isfinite(tolerance) and tolerance > 0):
        raise ValueError(f"Flattening tolerance must be a finite number > 0, got {tolerance!r}")


class CurveFlattener(ABC):
    """Strategy that approximates one cubic segment by line segments."""

    name: str = ""

    @abstractmethod
    def flatten_cubic(
        self,
        p0: Point,
        p1: Point,
        p2: Point,
        p3: Point,
        tolerance: float
    ) -> List[Point]:
        """Approximate the cubic (p0, p1, p2, p3).

        Returns
        -------
        List[Point]
            Polyline vertices *after* p0; non-empty, last element == p3.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SubdivisionFlattener(CurveFlattener):
    """Adaptive subdivision at t=0.5 until each piece is flat.

    Parameters
    ----------
    max_depth : int
        Maximum recursion depth, default 16 (≤ 65536 segments per curve).
        A piece that reaches the cap is emitted as its chord.

    Notes
    -----
    Flatness criterion: both inner control points lie within tolerance of
    the chord *segment*. The curve lies inside the convex hull of its
    control points, so the whole piece is then within tolerance.
    """

    name = "subdivision"

    def __init__(self, max_depth: int = 16):
        if max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {max_depth}")
        self.max_depth = max_depth

    def flatten_cubic(self, p0, p1, p2, p3, tolerance):
        _check_tolerance(tolerance)
        out: List[Point] = []

        def subdivide(q1, q2, q3, q4, depth):
            if depth >= self.max_depth:
                out.append(q4)
                return

            d2 = point_segment_distance(q2, q1, q4)
            d3 = point_segment_distance(q3, q1, q4)
            if max(d2, d3) <= tolerance:
                out.append(q4)
                return

            # de Casteljau at t=0.5
            q12 = ((q1[0] + q2[0]) / 2.0, (q1[1] + q2[1]) / 2.0)
            q23 = ((q2[0] + q3[0]) / 2.0, (q2[1] + q3[1]) / 2.0)
            q34 = ((q3[0] + q4[0]) / 2.0, (q3[1] + q4[1]) / 2.0)
            q123 = ((q12[0] + q23[0]) / 2.0, (q12[1] + q23[1]) / 2.0)
            q234 = ((q23[0] + q34[0]) / 2.0, (q23[1] + q34[1]) / 2.0)
            q1234 = ((q123[0] + q234[0]) / 2.0, (q123[1] + q234[1]) / 2.0)

            subdivide(q1, q12, q123, q1234, depth + 1)
            subdivide(q1234, q234, q34, q4, depth + 1)

        subdivide(p0, p1, p2, p3, 0)
        return out

    def __repr__(self) -> str:
        return f"SubdivisionFlattener(max_depth={self.max_depth})"


class UniformFlattener(CurveFlattener):
    """Uniform parameter sampling with a tolerance-derived segment count.

    Parameters
    ----------
    max_segments : int
        Cap on segments per curve, default 4096. A curve that needs more
        is logged and sampled at the cap (tolerance no longer guaranteed).

    Notes
    -----
    Samples are evaluated in one batched torch call (float64).
    """

    name = "uniform"

    def __init__(self, max_segments: int = 4096):
        if max_segments < 1:
            raise ValueError(f"max_segments must be >= 1, got {max_segments}")
        self.max_segments = max_segments

    def flatten_cubic(self, p0, p1, p2, p3, tolerance):
        _check_tolerance(tolerance)
        n = wang_segment_count(p0, p1, p2, p3, tolerance)
        if n > self.max_segments:
            logger.warning(
                f"Curve needs {n} segments at tolerance {tolerance}; capped at {self.max_segments}"
            )
            n = self.max_segments
        if n == 1:
            return [p3]

        ctrl = torch.tensor([p0, p1, p2, p3], dtype=torch.float64)
        t = torch.linspace(0.0, 1.0, n + 1, dtype=torch.float64)[1:-1]
        samples = bezier_cubic_eval(ctrl[0], ctrl[1], ctrl[2], ctrl[3], t)
        out = [(float(x), float(y)) for x, y in samples.tolist()]
        out.append(p3)
        return out

    def __repr__(self) -> str:
        return f"UniformFlattener(max_segments={self.max_segments})"


_REGISTRY: Dict[str, Type[CurveFlattener]] = {
    SubdivisionFlattener.name: SubdivisionFlattener,
    UniformFlattener.name: UniformFlattener,
}


def get_flattener(name: str, **kwargs) -> CurveFlattener:
    """Instantiate a registered flattening strategy by name.

    Raises
    ------
    ValueError
        If name is not registered
    """
    try:
        cls = _REGISTRY[name]
    except KeyError:
        raise ValueError(
            f"Unknown flattener {name!r}; available: {sorted(_REGISTRY)}"
        ) from None
    return cls(**kwargs)


def register_flattener(cls: Type[CurveFlattener]) -> Type[CurveFlattener]:
    """Class decorator adding a strategy to the registry under cls.name."""
    if not cls.name:
        raise ValueError(f"{cls.__name__} must define a non-empty 'name'")
    _REGISTRY[cls.name] = cls
    return cls


def flatten_path(
    path: Path,
    tolerance: float,
    flattener: Optional[CurveFlattener] = None
) -> Path:
    """Replace every CubicCurveTo with LineTo segments.

    Parameters
    ----------
    path : Path
        Source path (any command mix)
    tolerance : float
        Maximum deviation between curve and polyline, document units, > 0
    flattener : CurveFlattener, optional
        Strategy; defaults to SubdivisionFlattener()

    Returns
    -------
    Path
        Flat path; MoveTo, LineTo and ClosePath are copied through unchanged

    Raises
    ------
    ValueError
        If tolerance is not a finite positive number
    """
    _check_tolerance(tolerance)
    if flattener is None:
        flattener = SubdivisionFlattener()

    flat = Path()
    current: Point = (0.0, 0.0)
    start: Point = (0.0, 0.0)
    for cmd in path:
        if isinstance(cmd, MoveTo):
            flat.append(cmd)
            current = start = cmd.point
        elif isinstance(cmd, LineTo):
            flat.append(cmd)
            current = cmd.point
        elif isinstance(cmd, CubicCurveTo):
            for p in flattener.flatten_cubic(current, cmd.ctrl1, cmd.ctrl2, cmd.point, tolerance):
                flat.append(LineTo(p))
            current = cmd.point
        elif isinstance(cmd, ClosePath):
            flat.append(cmd)
            current = start
        else:
            raise TypeError(f"Unknown path command: {type(cmd).__name__}")
    return flat
