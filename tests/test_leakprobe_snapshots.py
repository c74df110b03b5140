import hypothesis.strategies as st
import pytest
from hypothesis import given

from leakprobe.leakprobe_errors import NotInitialized
from leakprobe.leakprobe_measurement import MemoryMeasurement
from leakprobe.leakprobe_snapshots import SnapshotStore


def measurement(heap_used: int) -> MemoryMeasurement:
    return MemoryMeasurement(heap_used * 2, heap_used, heap_used, heap_used, 0.0)


def test_baseline_requires_a_snapshot() -> None:
    store = SnapshotStore()
    assert len(store) == 0
    assert not store
    assert store.latest() is None
    with pytest.raises(NotInitialized):
        store.baseline()


def test_append_assigns_sequence_indices() -> None:
    store = SnapshotStore()
    first = store.append("initial", measurement(10))
    second = store.append("iteration-5", measurement(20))
    assert (first.index, second.index) == (0, 1)
    assert store.baseline() == first
    assert store.latest() == second
    assert second.label == "iteration-5"
    assert second.measurement.heap_used_bytes == 20


def test_all_is_a_stable_view() -> None:
    store = SnapshotStore()
    store.append("initial", measurement(1))
    view = store.all()
    store.append("later", measurement(2))
    # The earlier view is not affected by later appends.
    assert len(view) == 1
    assert isinstance(view, tuple)
    assert len(store.all()) == 2


def test_clear_starts_a_new_session() -> None:
    store = SnapshotStore()
    store.append("initial", measurement(1))
    store.append("later", measurement(2))
    store.clear()
    with pytest.raises(NotInitialized):
        store.baseline()
    again = store.append("initial", measurement(3))
    assert again.index == 0
    assert store.baseline().measurement.heap_used_bytes == 3


@given(st.lists(st.integers(min_value=0, max_value=2**40), min_size=1, max_size=50))
def test_indices_are_contiguous(heap_values) -> None:
    store = SnapshotStore()
    for i, value in enumerate(heap_values):
        store.append(f"s{i}", measurement(value))
    snapshots = store.all()
    assert [s.index for s in snapshots] == list(range(len(heap_values)))
    assert store.baseline().measurement.heap_used_bytes == heap_values[0]
