"""
Process memory sampling for leakprobe.

Resident set size comes from psutil; Python heap figures come from
tracemalloc, which the provider starts on demand. Every read is best-effort:
a field that cannot be measured is reported as zero rather than raising.
"""

import contextlib
import gc
import time
import tracemalloc
from typing import Callable, NamedTuple, Optional, Tuple

import psutil


class MemoryMeasurement(NamedTuple):
    """One reading of process memory, in bytes."""

    rss_bytes: int
    heap_total_bytes: int
    heap_used_bytes: int
    external_bytes: int
    taken_at: float

    @property
    def heap_used_mb(self) -> float:
        return self.heap_used_bytes / (1024 * 1024)

    @property
    def rss_mb(self) -> float:
        return self.rss_bytes / (1024 * 1024)


class MeasurementProvider:
    """Reads memory statistics for the current process.

    `collector` performs explicit reclamation (default: `gc.collect`). Pass
    None to model an environment where explicit collection is unavailable.
    """

    # Frames kept per traced allocation; 1 keeps tracemalloc overhead low.
    trace_frames = 1

    def __init__(
        self,
        collector: Optional[Callable[[], object]] = gc.collect,
        trace_heap: bool = True,
    ) -> None:
        self.__collector = collector
        self.__trace_heap = trace_heap
        self.__started_tracing = False
        self.__process: Optional[psutil.Process] = None
        with contextlib.suppress(psutil.Error):
            self.__process = psutil.Process()

    def sample(self, start_tracing: bool = True) -> MemoryMeasurement:
        """Return the current memory footprint; never raises.

        With `start_tracing=False` the read is side-effect free: if tracemalloc
        is not already running, heap figures are reported as zero.
        """
        rss = self._read_rss()
        heap_used, heap_peak = self._read_heap(start_tracing)
        return MemoryMeasurement(
            rss_bytes=rss,
            heap_total_bytes=heap_peak,
            heap_used_bytes=heap_used,
            external_bytes=max(0, rss - heap_used),
            taken_at=time.time(),
        )

    def try_force_reclaim(self) -> bool:
        """Run a full collection if possible; report whether it actually ran."""
        if self.__collector is None:
            return False
        self.__collector()
        return True

    def close(self) -> None:
        """Stop tracemalloc, but only if this provider was the one to start it."""
        if self.__started_tracing and tracemalloc.is_tracing():
            tracemalloc.stop()
        self.__started_tracing = False

    def _read_rss(self) -> int:
        if self.__process is None:
            return 0
        try:
            return int(self.__process.memory_info().rss)
        except (psutil.Error, OSError):
            return 0

    def _read_heap(self, start_tracing: bool = True) -> Tuple[int, int]:
        if not self.__trace_heap:
            return 0, 0
        if not tracemalloc.is_tracing():
            if not start_tracing:
                return 0, 0
            try:
                tracemalloc.start(self.trace_frames)
            except (RuntimeError, ValueError):
                return 0, 0
            self.__started_tracing = True
        current, peak = tracemalloc.get_traced_memory()
        return int(current), int(peak)
