from typing import Any, Dict, Optional

from leakprobe.leakprobe_config import BYTES_PER_MB
from leakprobe.leakprobe_events import EventRecord
from leakprobe.leakprobe_measurement import MemoryMeasurement
from leakprobe.leakprobe_snapshots import Snapshot
from leakprobe.leakprobe_tester import MemoryInfo, TestResult


class LeakProbeJSON:
    """Converts results into plain dicts suitable for json.dumps."""

    @staticmethod
    def memory_consumed_str(size_in_mb: float) -> str:
        """Return a string corresponding to amount of memory consumed."""
        sign = "-" if size_in_mb < 0 else ""
        size_in_mb = abs(size_in_mb)
        gigabytes = size_in_mb // 1024
        terabytes = gigabytes // 1024
        if terabytes > 0:
            return f"{sign}{(size_in_mb / 1048576):3.3f} TB"
        elif gigabytes > 0:
            return f"{sign}{(size_in_mb / 1024):3.3f} GB"
        else:
            return f"{sign}{size_in_mb:3.3f} MB"

    @staticmethod
    def measurement_to_dict(measurement: Optional[MemoryMeasurement]) -> Optional[Dict[str, Any]]:
        if measurement is None:
            return None
        return {
            "rss_mb": measurement.rss_bytes / BYTES_PER_MB,
            "heap_total_mb": measurement.heap_total_bytes / BYTES_PER_MB,
            "heap_used_mb": measurement.heap_used_bytes / BYTES_PER_MB,
            "external_mb": measurement.external_bytes / BYTES_PER_MB,
            "taken_at": measurement.taken_at,
        }

    @staticmethod
    def snapshot_to_dict(snapshot: Optional[Snapshot]) -> Optional[Dict[str, Any]]:
        if snapshot is None:
            return None
        return {
            "index": snapshot.index,
            "label": snapshot.label,
            "memory": LeakProbeJSON.measurement_to_dict(snapshot.measurement),
        }

    @staticmethod
    def event_to_dict(event: EventRecord) -> Dict[str, Any]:
        obj: Dict[str, Any] = {
            "kind": event.kind.value,
            "message": event.message,
            "occurred_at": event.occurred_at,
        }
        if event.snapshot is not None:
            obj["snapshot_index"] = event.snapshot.index
        return obj

    @staticmethod
    def result_to_dict(result: TestResult) -> Dict[str, Any]:
        return {
            "has_leak": result.has_leak,
            "memory_growth_mb": result.memory_growth_mb,
            "leak_threshold": result.leak_threshold,
            "iterations": result.iterations,
            "monotonicity": result.monotonicity,
            "growth_rate_mb": result.growth_rate_mb,
            "duration": result.duration,
            "cancelled": result.cancelled,
            "initial_memory": LeakProbeJSON.measurement_to_dict(result.initial_memory),
            "final_memory": LeakProbeJSON.measurement_to_dict(result.final_memory),
            "peak_memory": LeakProbeJSON.measurement_to_dict(result.peak_memory),
            "failures": [
                {"case": f.case_name, "iteration": f.iteration, "message": str(f)}
                for f in result.failures
            ],
            "snapshots": [LeakProbeJSON.snapshot_to_dict(s) for s in result.snapshots],
        }

    @staticmethod
    def memory_info_to_dict(info: MemoryInfo) -> Dict[str, Any]:
        return {
            "current": LeakProbeJSON.measurement_to_dict(info.current),
            "baseline": LeakProbeJSON.snapshot_to_dict(info.baseline),
            "peak": LeakProbeJSON.measurement_to_dict(info.peak),
            "events": [LeakProbeJSON.event_to_dict(e) for e in info.events],
            "snapshots": [LeakProbeJSON.snapshot_to_dict(s) for s in info.snapshots],
        }
