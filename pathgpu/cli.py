"""Command-line entry point: build GPU buffers from an SVG document.

Usage:
    pathgpu-build assets/tiger.svg
    pathgpu-build assets/tiger.svg --config configs/pipeline_v1.yaml \\
        --output outputs/gpu_data --tolerance 0.05 --flattener uniform

Exit codes:
    0  success
    2  document could not be loaded, or invalid configuration
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pathgpu import pipeline
from pathgpu.document.svg_loader import DocumentError
from pathgpu.utils.logging_config import install_excepthook, pop_context, push_context, setup_logging
from pathgpu.utils.validators import PipelineV1, load_pipeline_config

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INPUT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pathgpu-build",
        description="Flatten the filled shapes of an SVG document into GPU line buffers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Outputs (in --output, prefixed with --name or the document stem):
  <name>_objects.bin      one 28-byte record per filled shape
  <name>_primitives.bin   one u32 tag per line
  <name>_data.bin         4 f32 words per line (x0, y0, x1, y1)
  <name>_locals.bin       rasterizer constants (tiles, viewport, object count)
  <name>_manifest.yaml    layout, counts, sizes, SHA-256

Examples:
  pathgpu-build assets/tiger.svg
  pathgpu-build assets/tiger.svg --tolerance 0.02 --flattener uniform --log-level DEBUG
""",
    )
    parser.add_argument("input", type=Path, help="Input SVG document")
    parser.add_argument("--config", type=Path, default=None,
                        help="pipeline.v1 YAML (defaults apply when omitted)")
    parser.add_argument("--output", "-o", default=None, help="Output directory")
    parser.add_argument("--name", default=None, help="Output file prefix")
    parser.add_argument("--tolerance", type=float, default=None,
                        help="Flattening tolerance in document units")
    parser.add_argument("--flattener", choices=["subdivision", "uniform"], default=None,
                        help="Curve flattening strategy")
    parser.add_argument("--log-level", default=None,
                        help="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    parser.add_argument("--json-logs", action="store_true", default=None,
                        help="Write JSON lines to the log file")
    return parser


def load_config(args: argparse.Namespace) -> PipelineV1:
    """Config file (or defaults) with command-line overrides applied.

    Raises
    ------
    FileNotFoundError, ValueError
        Missing or invalid configuration
    """
    cfg = load_pipeline_config(args.config) if args.config is not None else PipelineV1()
    try:
        return cfg.with_overrides(
            tolerance=args.tolerance,
            method=args.flattener,
            output_dir=args.output,
            name=args.name,
            log_level=args.log_level,
            json_logs=args.json_logs,
        )
    except ValueError as e:
        raise ValueError(f"Invalid command-line override: {e}") from e


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint; returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        cfg = load_config(args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    setup_logging(**cfg.logging.setup_kwargs())
    install_excepthook()
    push_context(app="build", document=args.input.name)
    try:
        result = pipeline.run(cfg, args.input)
    except DocumentError as e:
        logger.error(str(e))
        return EXIT_INPUT_ERROR
    finally:
        pop_context(["app", "document"])

    print(result.manifest)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
