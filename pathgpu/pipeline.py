"""End-to-end build: SVG document → flattened paths → GPU buffers.

Stages (each timed with utils.profiler.timer):
    load      Document Loader (svg_loader.load_document)
    flatten   Curve Flattener, one shared tolerance for the whole document
    assemble  GPU Layout Assembler
    export    buffers + manifest (run() only)

Usage:
    from pathgpu import pipeline
    from pathgpu.utils import validators

    cfg = validators.load_pipeline_config("configs/pipeline_v1.yaml")
    result = pipeline.build_gpu_data("assets/tiger.svg", cfg)
    export = pipeline.run(cfg, "assets/tiger.svg")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from pathgpu.document.svg_loader import SvgDocument, load_document
from pathgpu.layout.assembler import GpuData, assemble
from pathgpu.layout.export import ExportResult, export_gpu_data
from pathgpu.layout.records import pack_locals
from pathgpu.paths.flatten import flatten_path, get_flattener
from pathgpu.utils import hashing
from pathgpu.utils.profiler import StageTimings, timer
from pathgpu.utils.validators import PipelineV1

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything produced for one document before export."""

    document: SvgDocument
    gpu_data: GpuData
    timings: StageTimings = field(default_factory=StageTimings)


def build_gpu_data(
    svg_path: Union[str, Path],
    config: Optional[PipelineV1] = None
) -> PipelineResult:
    """Load, flatten and assemble one document.

    Parameters
    ----------
    svg_path : Union[str, Path]
        Input SVG
    config : PipelineV1, optional
        Pipeline configuration, defaults to PipelineV1()

    Returns
    -------
    PipelineResult

    Raises
    ------
    DocumentError
        If the document cannot be read or parsed
    """
    cfg = config if config is not None else PipelineV1()
    timings = StageTimings()

    with timer("load", sink=timings):
        document = load_document(svg_path, include_hidden=cfg.loader.include_hidden)

    flattener = get_flattener(cfg.flatten.method, **cfg.flatten.flattener_kwargs())
    tolerance = cfg.flatten.tolerance
    with timer("flatten", sink=timings):
        pairs = [(p, flatten_path(p, tolerance, flattener)) for p in document.paths]

    with timer("assemble", sink=timings):
        gpu_data = assemble(pairs)

    n_obj, n_prim, n_data = gpu_data.counts()
    logger.info(
        f"Built {n_obj} objects, {n_prim} line primitives, {n_data} data words "
        f"(tolerance={tolerance}, flattener={cfg.flatten.method}) "
        f"in {timings.total:.3f} s"
    )
    return PipelineResult(document=document, gpu_data=gpu_data, timings=timings)


def locals_for(result: PipelineResult, config: PipelineV1) -> bytes:
    """Pack the rasterizer locals for a built document.

    The viewport offset comes from the document viewport; its extent from
    config.viewport.extent when set, else from the document.
    """
    x, y, width, height = result.document.viewport
    extent = config.viewport.extent or (width, height)
    return pack_locals(
        num_tiles=config.viewport.num_tiles,
        viewport_offset=(x, y),
        viewport_extent=extent,
        num_objects=result.gpu_data.num_objects,
    )


def run(
    config: PipelineV1,
    svg_path: Union[str, Path],
    output_dir: Optional[Union[str, Path]] = None
) -> ExportResult:
    """Build one document and export its buffers.

    Parameters
    ----------
    config : PipelineV1
        Pipeline configuration
    svg_path : Union[str, Path]
        Input SVG
    output_dir : Union[str, Path], optional
        Overrides config.output.directory

    Returns
    -------
    ExportResult
    """
    svg_path = Path(svg_path)
    result = build_gpu_data(svg_path, config)

    out_dir = Path(output_dir) if output_dir is not None else Path(config.output.directory)
    name = config.output.name or svg_path.stem
    metadata = {
        "source": str(svg_path),
        "source_sha256": hashing.sha256_file(svg_path),
        "viewport": list(result.document.viewport),
        "tolerance": config.flatten.tolerance,
        "flattener": config.flatten.method,
        "shapes": len(result.document.shapes),
        "skipped": len(result.document.skipped),
        "recoverable_errors": len(result.document.recoverable_errors),
    }

    with timer("export", sink=result.timings):
        export = export_gpu_data(
            result.gpu_data,
            out_dir,
            name,
            metadata=metadata,
            locals_block=locals_for(result, config),
        )
    logger.debug(f"Stage timings: {result.timings.as_dict()}")
    return export
