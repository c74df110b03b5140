from leakprobe import runningstats

import hypothesis.strategies as st
import math
import statistics

from hypothesis import given
from typing import List

TOLERANCE = 1e-6


@given(
    st.lists(
        st.floats(
            allow_infinity=False, allow_nan=False, min_value=-1e6, max_value=1e6
        ),
        min_size=2,
    )
)
def test_running_stats(values: List[float]) -> None:
    rstats = runningstats.RunningStats.of(values)

    assert len(values) == rstats.size()
    assert max(values) == rstats.peak()
    assert min(values) == rstats.trough()
    assert math.isclose(
        statistics.fmean(values), rstats.mean(), rel_tol=TOLERANCE, abs_tol=1e-6
    )
    assert math.isclose(
        statistics.variance(values), rstats.var(), rel_tol=TOLERANCE, abs_tol=1e-3
    )
    assert math.isclose(
        statistics.stdev(values), rstats.std(), rel_tol=TOLERANCE, abs_tol=1e-3
    )


def test_empty_and_single() -> None:
    rstats = runningstats.RunningStats()
    assert rstats.size() == 0
    assert rstats.peak() == 0.0
    assert rstats.trough() == 0.0
    assert rstats.mean() == 0.0
    assert rstats.var() == 0.0

    rstats.push(-3.5)
    assert rstats.peak() == rstats.trough() == rstats.mean() == -3.5
    assert rstats.std() == 0.0

    rstats.clear()
    assert rstats.size() == 0
