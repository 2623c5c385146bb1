"""GPU layout assembler: (original, flattened) paths → GpuData.

Walks each flattened path once and appends into three shared, append-only
arrays:

    objects     one fixed-size record per path (primitive range, data
                offset, bbox)
    primitives  one u32 tag per primitive (only LINE today)
    data        f32 coordinate words, 4 per line: x0, y0, x1, y1

Objects reference their primitives and data by index range, never by
pointer, so the arrays upload to the GPU as-is.

Per path, in input order:
    1. bbox from the *original* path's control points
    2. data_offset = len(data), primitive_start = len(primitives)
    3. MoveTo sets current = subpath start; LineTo emits (current, p);
       ClosePath emits (current, subpath start); anything else is a
       LayoutContractError (flattener broke its contract)
    4. primitive_end = len(primitives); append the object record

Usage:
    from pathgpu.layout import generate_gpu_data
    gpu = generate_gpu_data(paths, tolerance=0.1)
    gpu.num_objects, gpu.num_primitives, gpu.num_data_words
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from pathgpu.layout.records import (
    DATA_DTYPE,
    OBJECT_DTYPE,
    PRIMITIVE_DTYPE,
    U32_MAX,
    Object,
    PrimitiveType,
    objects_to_array,
)
from pathgpu.paths.commands import ClosePath, LineTo, MoveTo, Path
from pathgpu.paths.flatten import CurveFlattener, flatten_path
from pathgpu.utils import hashing
from pathgpu.utils.geometry import BBox, Point

logger = logging.getLogger(__name__)


class LayoutContractError(RuntimeError):
    """An internal invariant broke (programming error, not bad input)."""

    pass


# ---------------------------------------------------------------------------
# GpuData
# ---------------------------------------------------------------------------


def _readonly(a: np.ndarray) -> np.ndarray:
    # private copy; the caller keeps a writable array
    a = np.array(a, copy=True, order="C")
    a.flags.writeable = False
    return a


@dataclass(frozen=True, eq=False)
class GpuData:
    """Assembled, read-only buffers for one document.

    Parameters
    ----------
    objects : np.ndarray
        OBJECT_DTYPE records, shape (num_objects,)
    primitives : np.ndarray
        u32 primitive tags, shape (num_primitives,)
    data : np.ndarray
        f32 coordinate words, shape (num_data_words,)
    """

    objects: np.ndarray
    primitives: np.ndarray
    data: np.ndarray

    def __post_init__(self) -> None:
        if self.objects.dtype != OBJECT_DTYPE:
            raise ValueError(f"objects must use OBJECT_DTYPE, got {self.objects.dtype}")
        if self.primitives.dtype != PRIMITIVE_DTYPE or self.data.dtype != DATA_DTYPE:
            raise ValueError(
                f"primitives/data must be {PRIMITIVE_DTYPE}/{DATA_DTYPE}, "
                f"got {self.primitives.dtype}/{self.data.dtype}"
            )
        for name in ("objects", "primitives", "data"):
            arr = getattr(self, name)
            if arr.ndim != 1:
                raise ValueError(f"{name} must be 1-D, got shape {arr.shape}")
            object.__setattr__(self, name, _readonly(arr))

    @classmethod
    def empty(cls) -> "GpuData":
        return cls(
            objects=np.zeros(0, dtype=OBJECT_DTYPE),
            primitives=np.zeros(0, dtype=PRIMITIVE_DTYPE),
            data=np.zeros(0, dtype=DATA_DTYPE),
        )

    @classmethod
    def from_buffers(cls, objects: bytes, primitives: bytes, data: bytes) -> "GpuData":
        """Rebuild from raw little-endian buffers.

        Raises
        ------
        ValueError
            If a buffer length is not a multiple of its element stride
        """
        for name, buf, dtype in (
            ("objects", objects, OBJECT_DTYPE),
            ("primitives", primitives, PRIMITIVE_DTYPE),
            ("data", data, DATA_DTYPE),
        ):
            if len(buf) % dtype.itemsize:
                raise ValueError(
                    f"{name} buffer of {len(buf)} bytes is not a multiple of stride {dtype.itemsize}"
                )
        return cls(
            objects=np.frombuffer(objects, dtype=OBJECT_DTYPE),
            primitives=np.frombuffer(primitives, dtype=PRIMITIVE_DTYPE),
            data=np.frombuffer(data, dtype=DATA_DTYPE),
        )

    # -- counts --------------------------------------------------------------

    @property
    def num_objects(self) -> int:
        return int(self.objects.shape[0])

    @property
    def num_primitives(self) -> int:
        return int(self.primitives.shape[0])

    @property
    def num_data_words(self) -> int:
        return int(self.data.shape[0])

    def counts(self) -> Tuple[int, int, int]:
        """(object count, primitive count, data-word count)."""
        return (self.num_objects, self.num_primitives, self.num_data_words)

    # -- access --------------------------------------------------------------

    def object(self, i: int) -> Object:
        return Object.from_record(self.objects[i])

    def iter_objects(self) -> Iterator[Object]:
        for rec in self.objects:
            yield Object.from_record(rec)

    def lines(self, i: int) -> np.ndarray:
        """Line segments of object i as an (n, 4) float32 view."""
        obj = self.object(i)
        lo, hi = obj.data_range
        return self.data[lo:hi].reshape(-1, 4)

    # -- serialization -------------------------------------------------------

    def objects_bytes(self) -> bytes:
        return self.objects.tobytes()

    def primitives_bytes(self) -> bytes:
        return self.primitives.tobytes()

    def data_bytes(self) -> bytes:
        return self.data.tobytes()

    def to_buffers(self) -> Dict[str, bytes]:
        return {
            "objects": self.objects_bytes(),
            "primitives": self.primitives_bytes(),
            "data": self.data_bytes(),
        }

    def digest(self) -> str:
        """SHA-256 over objects, primitives and data buffers, in that order."""
        return hashing.sha256_chunks(
            [self.objects_bytes(), self.primitives_bytes(), self.data_bytes()]
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GpuData):
            return NotImplemented
        return self.to_buffers() == other.to_buffers()

    __hash__ = None

    def __repr__(self) -> str:
        n_obj, n_prim, n_data = self.counts()
        return f"GpuData(objects={n_obj}, primitives={n_prim}, data={n_data})"

    # -- invariants ----------------------------------------------------------

    def validate(self) -> None:
        """Re-check every layout invariant.

        Raises
        ------
        LayoutContractError
            On the first violated invariant
        """
        n_prim = self.num_primitives
        if self.num_data_words != 4 * n_prim:
            raise LayoutContractError(
                f"data has {self.num_data_words} words, expected 4 * {n_prim}"
            )
        if n_prim and not np.all(self.primitives == PrimitiveType.LINE):
            bad = sorted(set(int(v) for v in np.unique(self.primitives)) - {int(PrimitiveType.LINE)})
            raise LayoutContractError(f"Unknown primitive tags {bad}")

        starts = self.objects["primitive_start"].astype(np.int64)
        ends = self.objects["primitive_end"].astype(np.int64)
        offsets = self.objects["data_offset"].astype(np.int64)
        if np.any(starts > ends) or np.any(ends > n_prim):
            i = int(np.argmax((starts > ends) | (ends > n_prim)))
            raise LayoutContractError(f"Object {i} has invalid primitive range [{starts[i]}, {ends[i]})")
        if np.any(offsets != 4 * starts):
            i = int(np.argmax(offsets != 4 * starts))
            raise LayoutContractError(f"Object {i} data_offset {offsets[i]} != 4 * {starts[i]}")
        expected_starts = np.concatenate([[0], ends[:-1]]) if len(ends) else ends
        if np.any(starts != expected_starts) or (len(ends) and ends[-1] != n_prim):
            raise LayoutContractError("Object primitive ranges are not contiguous in document order")
        bbox = self.objects["bbox"]
        if np.any(bbox[:, 0] > bbox[:, 2]) or np.any(bbox[:, 1] > bbox[:, 3]):
            raise LayoutContractError("Object bbox has min > max")


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ObjectHandle:
    """Token for an object opened with GpuDataBuilder.begin_object()."""

    index: int
    primitive_start: int
    data_offset: int


class GpuDataBuilder:
    """Owns the three growable arrays while a document is assembled.

    Geometry stays float64 until build(), which rounds data words and
    bboxes to float32.  The builder is single-use: build() hands the
    arrays over and further calls raise LayoutContractError.
    """

    def __init__(self):
        self._objects: List[Object] = []
        self._primitives: List[int] = []
        self._data: List[float] = []
        self._open: Optional[ObjectHandle] = None
        self._built = False

    def _check_live(self) -> None:
        if self._built:
            raise LayoutContractError("Builder already consumed by build()")

    @property
    def num_objects(self) -> int:
        return len(self._objects)

    @property
    def num_primitives(self) -> int:
        return len(self._primitives)

    def begin_object(self) -> ObjectHandle:
        self._check_live()
        if self._open is not None:
            raise LayoutContractError(f"Object {self._open.index} is still open")
        self._open = ObjectHandle(
            index=len(self._objects),
            primitive_start=len(self._primitives),
            data_offset=len(self._data),
        )
        return self._open

    def push_line(self, p0: Point, p1: Point) -> None:
        """Append one line primitive and its four data words."""
        if self._open is None:
            raise LayoutContractError("push_line() outside begin_object()/end_object()")
        self._primitives.append(int(PrimitiveType.LINE))
        self._data.extend((p0[0], p0[1], p1[0], p1[1]))

    def end_object(self, handle: ObjectHandle, bbox: BBox) -> Object:
        self._check_live()
        if self._open is None or handle != self._open:
            raise LayoutContractError(f"end_object() with stale handle {handle}")
        primitive_end = len(self._primitives)
        if primitive_end > U32_MAX or len(self._data) > U32_MAX:
            raise LayoutContractError(f"Buffer size exceeds u32 range at object {handle.index}")
        obj = Object(
            primitives=(handle.primitive_start, primitive_end),
            data_offset=handle.data_offset,
            bbox=tuple(float(v) for v in bbox),
        )
        self._objects.append(obj)
        self._open = None
        return obj

    def add_path(self, original: Path, flattened: Path) -> Object:
        """Emit one object for a path.

        Parameters
        ----------
        original : Path
            Unflattened path; only used for its control-point bbox
        flattened : Path
            Flat path (MoveTo / LineTo / ClosePath)

        Raises
        ------
        LayoutContractError
            If flattened contains any other command
        """
        bbox = original.bounding_box()
        handle = self.begin_object()

        current: Point = (0.0, 0.0)
        start: Point = (0.0, 0.0)
        for cmd in flattened:
            if isinstance(cmd, MoveTo):
                current = start = cmd.point
            elif isinstance(cmd, LineTo):
                self.push_line(current, cmd.point)
                current = cmd.point
            elif isinstance(cmd, ClosePath):
                self.push_line(current, start)
                current = start
            else:
                raise LayoutContractError(
                    f"Object {handle.index}: unexpected {type(cmd).__name__} in flattened path"
                )

        return self.end_object(handle, bbox)

    def build(self) -> GpuData:
        self._check_live()
        if self._open is not None:
            raise LayoutContractError(f"build() with object {self._open.index} still open")
        gpu = GpuData(
            objects=objects_to_array(self._objects),
            primitives=np.asarray(self._primitives, dtype=PRIMITIVE_DTYPE),
            data=np.asarray(self._data, dtype=DATA_DTYPE),
        )
        self._built = True
        self._objects, self._primitives, self._data = [], [], []
        return gpu


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def assemble(pairs: Iterable[Tuple[Path, Path]]) -> GpuData:
    """Assemble (original, flattened) path pairs, in order, into GpuData."""
    builder = GpuDataBuilder()
    for original, flattened in pairs:
        builder.add_path(original, flattened)
    gpu = builder.build()
    logger.debug(f"Assembled {gpu!r}")
    return gpu


def generate_gpu_data(
    paths: Sequence[Path],
    tolerance: float,
    flattener: Optional[CurveFlattener] = None
) -> GpuData:
    """Flatten every path with one tolerance, then assemble.

    Raises
    ------
    ValueError
        If tolerance is not a finite positive number
    """
    return assemble((p, flatten_path(p, tolerance, flattener)) for p in paths)
