"""Buffer export for the GPU-binding layer.

Writes the three buffers of a GpuData (plus an optional locals block) as
raw little-endian files next to a YAML manifest:

    <name>_objects.bin
    <name>_primitives.bin
    <name>_data.bin
    <name>_locals.bin      (optional)
    <name>_manifest.yaml

The manifest carries the layout description, counts, byte sizes and a
SHA-256 per file, so a consumer can verify it binds what was built.  The
manifest is written last; every file goes through fs.atomic_write_bytes.

Usage:
    from pathgpu.layout.export import export_gpu_data, load_exported
    result = export_gpu_data(gpu, "outputs/gpu_data", "tiger")
    gpu2 = load_exported(result.manifest)
    assert gpu2 == gpu
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pathgpu import __version__
from pathgpu.layout.assembler import GpuData
from pathgpu.layout.records import LAYOUT_VERSION, LOCALS_DTYPE, describe_layout
from pathgpu.utils import fs, hashing

logger = logging.getLogger(__name__)

BUFFER_NAMES = ("objects", "primitives", "data")


@dataclass(frozen=True)
class ExportResult:
    """Where an export landed."""

    manifest: Path
    files: Dict[str, Path] = field(default_factory=dict)
    digest: str = ""


def _check_name(name: str) -> None:
    if not name or any(sep in name for sep in ("/", "\\")) or name in (".", ".."):
        raise ValueError(f"Export name must be a plain file prefix, got {name!r}")


def export_gpu_data(
    gpu_data: GpuData,
    out_dir: Union[str, Path],
    name: str,
    *,
    metadata: Optional[Dict[str, Any]] = None,
    locals_block: Optional[bytes] = None
) -> ExportResult:
    """Write buffers and manifest.

    Parameters
    ----------
    gpu_data : GpuData
        Assembled buffers
    out_dir : Union[str, Path]
        Target directory (created if missing)
    name : str
        File prefix
    metadata : dict, optional
        Extra YAML-serializable fields stored under ``metadata``
    locals_block : bytes, optional
        Packed locals (see records.pack_locals)

    Returns
    -------
    ExportResult
        Manifest path, buffer paths by role, GpuData digest

    Raises
    ------
    ValueError
        If name is not a plain prefix or locals_block has the wrong size
    RuntimeError
        If a write fails
    """
    _check_name(name)
    if locals_block is not None and len(locals_block) != LOCALS_DTYPE.itemsize:
        raise ValueError(
            f"locals_block must be {LOCALS_DTYPE.itemsize} bytes, got {len(locals_block)}"
        )

    out_dir = fs.ensure_dir(out_dir)
    buffers = gpu_data.to_buffers()
    if locals_block is not None:
        buffers["locals"] = bytes(locals_block)

    files: Dict[str, Path] = {}
    entries: Dict[str, Dict[str, Any]] = {}
    for role, buf in buffers.items():
        path = out_dir / f"{name}_{role}.bin"
        fs.atomic_write_bytes(path, buf)
        files[role] = path
        entries[role] = {
            "file": path.name,
            "bytes": len(buf),
            "sha256": hashing.sha256_bytes(buf),
        }

    n_obj, n_prim, n_data = gpu_data.counts()
    digest = gpu_data.digest()
    manifest = {
        "format": "pathgpu.buffers",
        "generator": f"pathgpu {__version__}",
        "created": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "layout": describe_layout(),
        "counts": {"objects": n_obj, "primitives": n_prim, "data_words": n_data},
        "digest": digest,
        "files": entries,
        "metadata": dict(metadata or {}),
    }
    manifest_path = out_dir / f"{name}_manifest.yaml"
    fs.atomic_yaml_dump(manifest, manifest_path)

    logger.info(
        f"Exported {n_obj} objects / {n_prim} primitives / {n_data} words "
        f"to {out_dir} ({name})"
    )
    return ExportResult(manifest=manifest_path, files=files, digest=digest)


def load_manifest(manifest_path: Union[str, Path]) -> Dict[str, Any]:
    """Read an export manifest and check its layout version.

    Raises
    ------
    FileNotFoundError
        If the manifest is missing
    ValueError
        If it is not a manifest or its layout version differs
    """
    data = fs.load_yaml(manifest_path)
    if not isinstance(data, dict) or "files" not in data or "layout" not in data:
        raise ValueError(f"{manifest_path} is not a buffer export manifest")
    version = data["layout"].get("version")
    if version != LAYOUT_VERSION:
        raise ValueError(
            f"Layout version mismatch in {manifest_path}: file has {version}, "
            f"this build reads {LAYOUT_VERSION}"
        )
    return data


def load_exported(manifest_path: Union[str, Path]) -> GpuData:
    """Read an export back, verifying sizes and hashes.

    Raises
    ------
    FileNotFoundError
        If the manifest or a buffer file is missing
    ValueError
        On layout version, size, hash or count mismatch
    """
    manifest_path = Path(manifest_path)
    manifest = load_manifest(manifest_path)

    buffers: Dict[str, bytes] = {}
    for role in BUFFER_NAMES:
        try:
            entry = manifest["files"][role]
        except KeyError:
            raise ValueError(f"Manifest {manifest_path} lists no {role} buffer") from None
        buf = fs.read_bytes(manifest_path.parent / entry["file"])
        if len(buf) != entry["bytes"]:
            raise ValueError(
                f"{entry['file']}: expected {entry['bytes']} bytes, found {len(buf)}"
            )
        if hashing.sha256_bytes(buf) != entry["sha256"]:
            raise ValueError(f"{entry['file']}: SHA-256 mismatch")
        buffers[role] = buf

    gpu = GpuData.from_buffers(buffers["objects"], buffers["primitives"], buffers["data"])
    counts = manifest.get("counts", {})
    expected = (counts.get("objects"), counts.get("primitives"), counts.get("data_words"))
    if expected != gpu.counts():
        raise ValueError(f"Manifest counts {expected} do not match buffers {gpu.counts()}")
    logger.debug(f"Loaded {gpu!r} from {manifest_path}")
    return gpu
