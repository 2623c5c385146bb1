"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Config validation (validators)
    - Bézier and arc math (geometry)
    - Atomic I/O (fs)
    - Hashing for provenance (hashing)
    - Stage timing (profiler)
    - Unified logging (logging_config)

No module in utils/ may import from upper layers (paths, document, layout).

Convenience imports:
    from pathgpu.utils import fs, geometry, validators
    from pathgpu.utils.logging_config import setup_logging, get_logger
"""

from . import fs
from . import geometry
from . import hashing
from . import logging_config
from . import profiler
from . import validators

from .logging_config import get_logger, push_context, setup_logging

__all__ = [
    # Modules
    'fs',
    'geometry',
    'hashing',
    'logging_config',
    'profiler',
    'validators',
    # Direct exports
    'setup_logging',
    'get_logger',
    'push_context',
]
