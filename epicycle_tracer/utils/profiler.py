"""Lightweight wall-clock timers for pipeline stages.

Used to measure:
    - Edge detection
    - Thinning (dominant cost on large masks)
    - Path ordering (O(n²) for the brute-force strategy)
    - Spectral decomposition

No heavy dependencies (no line_profiler, no cProfile overhead).
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Optional


@contextmanager
def timer(name: str, sink: Optional[Callable[[str, float], None]] = None):
    """Context manager for wall-clock timing.

    Parameters
    ----------
    name : str
        Timer name (for logging/display)
    sink : Optional[Callable[[str, float], None]]
        Optional callback(name, elapsed_seconds)
        If None, prints to stdout

    Yields
    ------
    None

    Examples
    --------
    >>> with timer("thinning"):
    ...     skeleton = thinner.thin(mask)
    thinning: 0.123 s

    >>> with timer("ordering", sink=log_sink(logger)):
    ...     path = orderer.order(points)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if sink is not None:
            sink(name, elapsed)
        else:
            print(f"{name}: {elapsed:.3f} s")


def log_sink(
    logger: logging.Logger,
    level: int = logging.DEBUG
) -> Callable[[str, float], None]:
    """Build a timer sink that writes to a logger.

    Parameters
    ----------
    logger : logging.Logger
        Destination logger
    level : int
        Log level, default DEBUG

    Returns
    -------
    Callable[[str, float], None]
        Sink for timer()
    """
    def _sink(name: str, elapsed: float) -> None:
        logger.log(level, "%s took %.3f s", name, elapsed)

    return _sink
