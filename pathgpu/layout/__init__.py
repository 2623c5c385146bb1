"""GPU buffer layout: record formats, assembly and export."""

from pathgpu.layout.assembler import (
    GpuData,
    GpuDataBuilder,
    LayoutContractError,
    ObjectHandle,
    assemble,
    generate_gpu_data,
)
from pathgpu.layout.export import ExportResult, export_gpu_data, load_exported
from pathgpu.layout.records import (
    LAYOUT_VERSION,
    Object,
    PrimitiveType,
    describe_layout,
    pack_locals,
    unpack_locals,
)

__all__ = [
    "ExportResult",
    "GpuData",
    "GpuDataBuilder",
    "LAYOUT_VERSION",
    "LayoutContractError",
    "Object",
    "ObjectHandle",
    "PrimitiveType",
    "assemble",
    "describe_layout",
    "export_gpu_data",
    "generate_gpu_data",
    "load_exported",
    "pack_locals",
    "unpack_locals",
]
