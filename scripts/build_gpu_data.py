#!/usr/bin/env python3
"""Build GPU line buffers from an SVG document.

Thin wrapper around pathgpu.cli for running from a source checkout.

Usage:
    python scripts/build_gpu_data.py assets/tiger.svg --config configs/pipeline_v1.yaml
"""
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pathgpu.cli import main

if __name__ == "__main__":
    sys.exit(main())
