"""Lightweight wall-clock timers for pipeline stages.

Provides:
    - timer(): Context manager for wall-clock timing with optional sink
    - StageTimings: ordered collector usable as a sink

Used to measure:
    - Document loading (XML parse + shape conversion)
    - Curve flattening
    - Layout assembly
    - Buffer export

No heavy dependencies (no cProfile overhead on large documents).
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


@contextmanager
def timer(name: str, sink: Optional[Callable[[str, float], None]] = None):
    """Context manager for wall-clock timing.

    Parameters
    ----------
    name : str
        Timer name (for logging/display)
    sink : Optional[Callable[[str, float], None]]
        Optional callback(name, elapsed_seconds).
        If None, the elapsed time is logged at DEBUG level.

    Examples
    --------
    >>> timings = StageTimings()
    >>> with timer("flatten", sink=timings):
    ...     flat = [flatten_path(p, 0.1) for p in paths]
    >>> timings["flatten"]
    0.0123
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if sink is not None:
            sink(name, elapsed)
        else:
            logger.debug(f"{name}: {elapsed:.3f} s")


class StageTimings(dict):
    """Ordered name → seconds mapping; callable so it can be a timer sink."""

    def __call__(self, name: str, elapsed: float) -> None:
        self[name] = self.get(name, 0.0) + elapsed

    @property
    def total(self) -> float:
        return sum(self.values())

    def as_dict(self) -> Dict[str, float]:
        return {k: round(v, 6) for k, v in self.items()}
