# Incremental mean/variance after Welford, via https://www.johndcook.com/blog/standard_deviation/

import math
from typing import Iterable


class RunningStats:
    """Incrementally compute statistics over per-interval memory deltas"""

    def __init__(self) -> None:
        self.clear()

    @classmethod
    def of(cls, values: Iterable[float]) -> "RunningStats":
        stats = cls()
        for value in values:
            stats.push(value)
        return stats

    def clear(self) -> None:
        """Reset for new samples"""
        self._n = 0
        self._m1 = self._m2 = 0.0
        self._peak = -math.inf
        self._trough = math.inf

    def push(self, x: float) -> None:
        """Add a sample"""
        self._peak = max(self._peak, x)
        self._trough = min(self._trough, x)
        self._n += 1
        delta = x - self._m1
        self._m1 += delta / self._n
        self._m2 += delta * (x - self._m1)

    def peak(self) -> float:
        """The maximum sample seen (0 if empty)."""
        return self._peak if self._n else 0.0

    def trough(self) -> float:
        """The minimum sample seen (0 if empty)."""
        return self._trough if self._n else 0.0

    def size(self) -> int:
        """The number of samples"""
        return self._n

    def mean(self) -> float:
        """Arithmetic mean, a.k.a. average"""
        return self._m1

    def var(self) -> float:
        """Sample variance; 0 with fewer than two samples"""
        if self._n < 2:
            return 0.0
        return self._m2 / (self._n - 1.0)

    def std(self) -> float:
        """Standard deviation"""
        return math.sqrt(self.var())
