"""Performance timing utilities for mailsweep."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator

from ..core.logger import log


class Timing:
    """Elapsed wall-clock time of a measured block."""

    def __init__(self) -> None:
        self.start = time.perf_counter()
        self.end: float | None = None

    @property
    def duration_ms(self) -> float:
        end = self.end if self.end is not None else time.perf_counter()
        return (end - self.start) * 1000.0


@contextmanager
def measure(operation: str) -> Iterator[Timing]:
    """Time the enclosed block and log it as a performance metric.

    Args:
        operation: Name reported in the log line.

    Yields:
        The running :class:`Timing`; ``duration_ms`` is final once the block exits.
    """
    timing = Timing()
    try:
        yield timing
    finally:
        timing.end = time.perf_counter()
        log.log_performance(operation, timing.duration_ms)
