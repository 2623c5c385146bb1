"""Path data model and curve flattening."""

from pathgpu.paths.commands import (
    ClosePath,
    CubicCurveTo,
    LineTo,
    MoveTo,
    Path,
    PathCommand,
)
from pathgpu.paths.flatten import (
    CurveFlattener,
    SubdivisionFlattener,
    UniformFlattener,
    flatten_path,
    get_flattener,
    register_flattener,
)

__all__ = [
    "ClosePath",
    "CubicCurveTo",
    "CurveFlattener",
    "LineTo",
    "MoveTo",
    "Path",
    "PathCommand",
    "SubdivisionFlattener",
    "UniformFlattener",
    "flatten_path",
    "get_flattener",
    "register_flattener",
]
