from typing import NamedTuple, Optional, Tuple

from leakprobe.leakprobe_errors import NotInitialized
from leakprobe.leakprobe_measurement import MemoryMeasurement


class Snapshot(NamedTuple):
    """A labeled measurement; index 0 is always the session baseline."""

    index: int
    label: str
    measurement: MemoryMeasurement


class SnapshotStore:
    """Append-only, ordered sequence of snapshots.

    The sequence is held as an immutable tuple that is replaced wholesale on
    every append, so a reader on another thread always sees a complete,
    gap-free prefix without taking a lock.
    """

    def __init__(self) -> None:
        self.__snapshots: Tuple[Snapshot, ...] = ()

    def append(self, label: str, measurement: MemoryMeasurement) -> Snapshot:
        """Store a measurement under the next sequence index."""
        current = self.__snapshots
        snapshot = Snapshot(len(current), label, measurement)
        self.__snapshots = current + (snapshot,)
        return snapshot

    def all(self) -> Tuple[Snapshot, ...]:
        return self.__snapshots

    def baseline(self) -> Snapshot:
        snapshots = self.__snapshots
        if not snapshots:
            raise NotInitialized("no baseline snapshot has been taken yet")
        return snapshots[0]

    def latest(self) -> Optional[Snapshot]:
        snapshots = self.__snapshots
        return snapshots[-1] if snapshots else None

    def clear(self) -> None:
        """Re-initialize; the next append becomes the new baseline."""
        self.__snapshots = ()

    def __len__(self) -> int:
        return len(self.__snapshots)

    def __bool__(self) -> bool:
        return bool(self.__snapshots)
