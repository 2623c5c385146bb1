"""pathgpu: vector paths -> fixed-layout buffers for a parallel rasterizer.

Reads an SVG document, keeps its solid-filled shapes, flattens their curves
to line segments within a tolerance, and packs the result into three flat
arrays (objects, primitives, data) that a compute-shader rasterizer reads
directly.

Architecture layers (strict one-way dependency):
    cli / pipeline → pathgpu/{document,layout,paths}/ → pathgpu/utils/

Key invariants:
    - Object i always corresponds to the i-th filled shape in document order
    - Only line primitives exist: len(data) == 4 * len(primitives)
    - Bounding boxes come from the unflattened control points
    - Coordinates stay in document space; no transform is applied
    - YAML-only configs
"""

__version__ = "0.3.0"
