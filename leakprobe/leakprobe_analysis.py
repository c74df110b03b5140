from typing import NamedTuple, Sequence

import numpy as np

from leakprobe.leakprobe_config import BYTES_PER_MB, MONOTONICITY_THRESHOLD
from leakprobe.leakprobe_snapshots import Snapshot
from leakprobe.runningstats import RunningStats


class LeakVerdict(NamedTuple):
    has_leak: bool
    # heap-used growth of the last snapshot over the baseline, in MB
    growth_mb: float
    # fraction of sampled intervals in which heap-used rose
    monotonicity: float
    # mean heap-used change per sampled interval, in MB
    growth_rate_mb: float


class LeakProbeAnalysis:
    """Decides whether a snapshot series shows a leak.

    Crossing the threshold is not enough on its own: the heap must also have
    risen in at least half of the sampled intervals. A spike that is back at
    the baseline by the final sample never reads as a leak. A burst still live
    at the final sample is only discounted once there are at least four
    samples after the baseline; with three or fewer, its single rising step is
    half or more of the trend, so it reads as a leak.
    """

    monotonicity_threshold = MONOTONICITY_THRESHOLD

    @staticmethod
    def evaluate(snapshots: Sequence[Snapshot], threshold: float) -> LeakVerdict:
        if len(snapshots) < 2:
            return LeakVerdict(False, 0.0, 0.0, 0.0)
        heap_used = LeakProbeAnalysis.heap_used_mb(snapshots)
        growth_mb = float(heap_used[-1] - heap_used[0])
        monotonicity = LeakProbeAnalysis.monotonicity(heap_used)
        growth_rate = RunningStats.of(np.diff(heap_used).tolist()).mean()
        has_leak = (
            growth_mb >= threshold
            and monotonicity >= LeakProbeAnalysis.monotonicity_threshold
        )
        return LeakVerdict(has_leak, growth_mb, monotonicity, growth_rate)

    @staticmethod
    def heap_used_mb(snapshots: Sequence[Snapshot]) -> np.ndarray:
        return (
            np.array(
                [s.measurement.heap_used_bytes for s in snapshots], dtype=np.float64
            )
            / BYTES_PER_MB
        )

    @staticmethod
    def monotonicity(heap_used: np.ndarray) -> float:
        """Fraction of consecutive post-baseline pairs in which heap-used rose.

        With a single post-baseline sample there are no such pairs, so the
        baseline-to-last step stands in for the trend.
        """
        if len(heap_used) < 2:
            return 0.0
        trend = heap_used[1:] if len(heap_used) > 2 else heap_used
        rising = np.diff(trend) > 0
        return float(np.count_nonzero(rising)) / len(rising)
