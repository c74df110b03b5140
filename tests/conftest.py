import time

import pytest

from leakprobe.leakprobe_config import BYTES_PER_MB
from leakprobe.leakprobe_measurement import MeasurementProvider, MemoryMeasurement


class ScriptedProvider(MeasurementProvider):
    """Reports a heap size that tests move by hand instead of real memory."""

    def __init__(self, heap_mb: float = 100.0, can_reclaim: bool = True) -> None:
        super().__init__(collector=None, trace_heap=False)
        self.heap_mb = heap_mb
        self.can_reclaim = can_reclaim
        self.reclaims = 0
        self.samples = 0
        self.queries = 0
        self.closed = False

    def sample(self, start_tracing: bool = True) -> MemoryMeasurement:
        if start_tracing:
            self.samples += 1
        else:
            self.queries += 1
        heap = int(self.heap_mb * BYTES_PER_MB)
        return MemoryMeasurement(
            rss_bytes=heap + 10 * BYTES_PER_MB,
            heap_total_bytes=heap,
            heap_used_bytes=heap,
            external_bytes=10 * BYTES_PER_MB,
            taken_at=time.time(),
        )

    def try_force_reclaim(self) -> bool:
        if not self.can_reclaim:
            return False
        self.reclaims += 1
        return True

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def make_provider():
    return ScriptedProvider
