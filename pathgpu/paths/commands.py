"""Path commands -- the vocabulary between the document loader and the assembler.

Every drawing command is an immutable, slotted dataclass in document
coordinates.  A :class:`Path` is an ordered list of commands describing one
shape's outline; it may contain several subpaths, each opened by
``MoveTo``.

Flattened paths
---------------
A path whose commands are only ``MoveTo`` / ``LineTo`` / ``ClosePath`` is
*flat* (:attr:`Path.is_flat`).  The curve flattener produces flat paths;
the layout assembler refuses anything else.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple

from pathgpu.utils.geometry import BBox, Point, points_bbox


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PathCommand(ABC):
    """Base class for all path commands."""

    pass


@dataclass(frozen=True, slots=True)
class MoveTo(PathCommand):
    """Start a new subpath at ``point`` (no geometry emitted)."""

    point: Point


@dataclass(frozen=True, slots=True)
class LineTo(PathCommand):
    """Straight segment from the current point to ``point``."""

    point: Point


@dataclass(frozen=True, slots=True)
class CubicCurveTo(PathCommand):
    """Cubic Bézier from the current point through two control points.

    Parameters
    ----------
    ctrl1, ctrl2 : Point
        Off-curve control points.
    point : Point
        End point; becomes the new current point.
    """

    ctrl1: Point
    ctrl2: Point
    point: Point


@dataclass(frozen=True, slots=True)
class ClosePath(PathCommand):
    """Close the current subpath back to its ``MoveTo`` point."""

    pass


FLAT_COMMANDS = (MoveTo, LineTo, ClosePath)


def _as_point(p: Sequence[float]) -> Point:
    return (float(p[0]), float(p[1]))


# ---------------------------------------------------------------------------
# Path
# ---------------------------------------------------------------------------


class Path:
    """Ordered sequence of drawing commands for one shape.

    Build incrementally with :meth:`move_to`, :meth:`line_to`,
    :meth:`curve_to` and :meth:`close_path`, or pass a command list.
    Drawing before the first ``move_to`` raises ``ValueError``; a path
    must know where it starts.
    """

    __slots__ = ("_commands", "_has_current")

    def __init__(self, commands: Sequence[PathCommand] = ()):
        self._commands: List[PathCommand] = []
        self._has_current = False
        for cmd in commands:
            self.append(cmd)

    # -- building ----------------------------------------------------------

    def append(self, cmd: PathCommand) -> None:
        if not isinstance(cmd, PathCommand):
            raise TypeError(f"Expected a PathCommand, got {type(cmd).__name__}")
        if isinstance(cmd, MoveTo):
            self._has_current = True
        elif not self._has_current:
            raise ValueError(f"{type(cmd).__name__} before the first MoveTo")
        self._commands.append(cmd)

    def move_to(self, p: Sequence[float]) -> "Path":
        self.append(MoveTo(_as_point(p)))
        return self

    def line_to(self, p: Sequence[float]) -> "Path":
        self.append(LineTo(_as_point(p)))
        return self

    def curve_to(self, c1: Sequence[float], c2: Sequence[float], p: Sequence[float]) -> "Path":
        self.append(CubicCurveTo(_as_point(c1), _as_point(c2), _as_point(p)))
        return self

    def close_path(self) -> "Path":
        self.append(ClosePath())
        return self

    # -- inspection ----------------------------------------------------------

    @property
    def commands(self) -> Tuple[PathCommand, ...]:
        return tuple(self._commands)

    def __iter__(self) -> Iterator[PathCommand]:
        return iter(self._commands)

    def __len__(self) -> int:
        return len(self._commands)

    def __bool__(self) -> bool:
        return bool(self._commands)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Path):
            return NotImplemented
        return self._commands == other._commands

    def __repr__(self) -> str:
        return f"Path({len(self._commands)} commands, flat={self.is_flat})"

    @property
    def is_flat(self) -> bool:
        """True if the path contains no curve commands."""
        return all(isinstance(cmd, FLAT_COMMANDS) for cmd in self._commands)

    @property
    def subpath_count(self) -> int:
        return sum(1 for cmd in self._commands if isinstance(cmd, MoveTo))

    @property
    def curve_count(self) -> int:
        return sum(1 for cmd in self._commands if isinstance(cmd, CubicCurveTo))

    def control_points(self) -> Iterator[Point]:
        """Every point stored in the path, control points included, in order."""
        for cmd in self._commands:
            if isinstance(cmd, CubicCurveTo):
                yield cmd.ctrl1
                yield cmd.ctrl2
                yield cmd.point
            elif isinstance(cmd, (MoveTo, LineTo)):
                yield cmd.point

    def bounding_box(self) -> BBox:
        """Control-point bounding box (xmin, ymin, xmax, ymax).

        A conservative superset of the true curve extent: curve control
        points are included even where the curve never reaches them.
        Returns (0, 0, 0, 0) for a path without points.
        """
        return points_bbox(self.control_points())
