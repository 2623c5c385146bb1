"""Fixed binary layouts shared with the rasterizer's shaders.

Field order, widths and offsets are load-bearing: the shader reads these
buffers bit-for-bit.  Every layout is spelled out as a numpy structured
dtype with explicit offsets and itemsize (never left to default packing),
little-endian, and versioned by LAYOUT_VERSION.  Bump the version on any
change.

Object record (one per path), stride 28 bytes:

    offset  field             type
    0       primitive_start   u32
    4       primitive_end     u32    (exclusive)
    8       data_offset       u32    (index into data, in words)
    12      bbox              f32[4] (xmin, ymin, xmax, ymax)

Primitive tag: u32, stride 4 (LINE = 1).
Data word: f32, stride 4; a line uses 4 words x0, y0, x1, y1.

Locals block (constant buffer read next to the three arrays), 28 bytes:

    0       num_tiles         u32[2]
    8       viewport_offset   f32[2]
    16      viewport_extent   f32[2]
    24      num_objects       u32
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Sequence, Tuple

import numpy as np

from pathgpu.utils.geometry import BBox

LAYOUT_VERSION = 1

U32_MAX = 2 ** 32 - 1

OBJECT_DTYPE = np.dtype({
    "names": ["primitive_start", "primitive_end", "data_offset", "bbox"],
    "formats": ["<u4", "<u4", "<u4", ("<f4", (4,))],
    "offsets": [0, 4, 8, 12],
    "itemsize": 28,
})

PRIMITIVE_DTYPE = np.dtype("<u4")
DATA_DTYPE = np.dtype("<f4")

LOCALS_DTYPE = np.dtype({
    "names": ["num_tiles", "viewport_offset", "viewport_extent", "num_objects"],
    "formats": [("<u4", (2,)), ("<f4", (2,)), ("<f4", (2,)), "<u4"],
    "offsets": [0, 8, 16, 24],
    "itemsize": 28,
})

WORDS_PER_PRIMITIVE = {1: 4}


class PrimitiveType(IntEnum):
    """Primitive tags stored in the primitives buffer."""

    LINE = 1


@dataclass(frozen=True)
class Object:
    """Decoded object record.

    Parameters
    ----------
    primitives : Tuple[int, int]
        Half-open [start, end) range into the primitives buffer
    data_offset : int
        First data word of this object's primitives
    bbox : BBox
        (xmin, ymin, xmax, ymax) of the unflattened path's control points
    """

    primitives: Tuple[int, int]
    data_offset: int
    bbox: BBox

    @property
    def primitive_count(self) -> int:
        return self.primitives[1] - self.primitives[0]

    @property
    def data_range(self) -> Tuple[int, int]:
        """Half-open range of data words, valid while only lines exist."""
        return (self.data_offset, self.data_offset + 4 * self.primitive_count)

    def to_record(self) -> np.ndarray:
        rec = np.zeros((), dtype=OBJECT_DTYPE)
        rec["primitive_start"] = self.primitives[0]
        rec["primitive_end"] = self.primitives[1]
        rec["data_offset"] = self.data_offset
        rec["bbox"] = self.bbox
        return rec

    @classmethod
    def from_record(cls, rec: Any) -> "Object":
        bbox = rec["bbox"]
        return cls(
            primitives=(int(rec["primitive_start"]), int(rec["primitive_end"])),
            data_offset=int(rec["data_offset"]),
            bbox=(float(bbox[0]), float(bbox[1]), float(bbox[2]), float(bbox[3])),
        )


def objects_to_array(objects: Sequence[Object]) -> np.ndarray:
    """Pack decoded objects into an OBJECT_DTYPE array."""
    arr = np.zeros(len(objects), dtype=OBJECT_DTYPE)
    for i, obj in enumerate(objects):
        arr[i] = (obj.primitives[0], obj.primitives[1], obj.data_offset, obj.bbox)
    return arr


def pack_locals(
    num_tiles: Tuple[int, int],
    viewport_offset: Tuple[float, float],
    viewport_extent: Tuple[float, float],
    num_objects: int
) -> bytes:
    """Serialize the locals block (28 bytes).

    Raises
    ------
    ValueError
        If a count does not fit in u32 or is negative
    """
    for value in (*num_tiles, num_objects):
        if not 0 <= value <= U32_MAX:
            raise ValueError(f"Value {value} does not fit in u32")
    rec = np.zeros((), dtype=LOCALS_DTYPE)
    rec["num_tiles"] = num_tiles
    rec["viewport_offset"] = viewport_offset
    rec["viewport_extent"] = viewport_extent
    rec["num_objects"] = num_objects
    return rec.tobytes()


def unpack_locals(buf: bytes) -> Dict[str, Any]:
    if len(buf) != LOCALS_DTYPE.itemsize:
        raise ValueError(f"Locals block must be {LOCALS_DTYPE.itemsize} bytes, got {len(buf)}")
    rec = np.frombuffer(buf, dtype=LOCALS_DTYPE)[0]
    return {
        "num_tiles": tuple(int(v) for v in rec["num_tiles"]),
        "viewport_offset": tuple(float(v) for v in rec["viewport_offset"]),
        "viewport_extent": tuple(float(v) for v in rec["viewport_extent"]),
        "num_objects": int(rec["num_objects"]),
    }


def _describe(dtype: np.dtype) -> Dict[str, Any]:
    fields = []
    for name in dtype.names:
        sub, offset = dtype.fields[name][:2]
        base = sub.base if sub.shape else sub
        fields.append({
            "name": name,
            "offset": int(offset),
            "type": base.str,
            "count": int(np.prod(sub.shape)) if sub.shape else 1,
        })
    return {"stride": int(dtype.itemsize), "fields": fields}


def describe_layout() -> Dict[str, Any]:
    """Machine-readable layout description, embedded in export manifests."""
    return {
        "version": LAYOUT_VERSION,
        "byte_order": "little",
        "object": _describe(OBJECT_DTYPE),
        "primitive": {"stride": PRIMITIVE_DTYPE.itemsize, "type": PRIMITIVE_DTYPE.str,
                      "tags": {t.name.lower(): int(t) for t in PrimitiveType}},
        "data": {"stride": DATA_DTYPE.itemsize, "type": DATA_DTYPE.str,
                 "words_per_primitive": {PrimitiveType(k).name.lower(): v
                                         for k, v in WORDS_PER_PRIMITIVE.items()}},
        "locals": _describe(LOCALS_DTYPE),
    }
