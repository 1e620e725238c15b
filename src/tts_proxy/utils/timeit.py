"""
Timing Utilities.

A small context manager around time.perf_counter(), used to time the
upstream call for logs and the upstream latency histogram.

Example:
    with timeit("upstream") as t:
        audio = await provider.synthesize(...)
    print(f"Took {t.timing.seconds:.3f}s")

The timing is recorded on exit even when the block raises, so failed and
cancelled upstream calls are measured too.
"""
from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter


@dataclass
class Timing:
    """Elapsed wall-clock time of a named block."""
    name: str
    seconds: float


class timeit:
    """Context manager that stores a Timing on exit."""

    def __init__(self, name: str):
        self.name = name
        self._t0: float | None = None
        self.timing: Timing | None = None

    def __enter__(self) -> "timeit":
        self._t0 = perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        t1 = perf_counter()
        assert self._t0 is not None
        self.timing = Timing(name=self.name, seconds=(t1 - self._t0))

    @property
    def seconds(self) -> float:
        """Elapsed seconds, or -1.0 while the block is still running."""
        return self.timing.seconds if self.timing else -1.0
