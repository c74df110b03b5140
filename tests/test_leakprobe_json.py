import asyncio
import json

from hypothesis import given
from hypothesis.strategies import floats

from leakprobe.leakprobe_events import EventKind
from leakprobe.leakprobe_json import LeakProbeJSON
from leakprobe.leakprobe_tester import LeakTester, WorkloadCase


class TestLeakProbeJSON:
    size_in_mb = floats(min_value=0.0, allow_nan=False, allow_infinity=False)

    @given(size_in_mb)
    def test_memory_consumed_str(self, size_in_mb: float) -> None:
        formatted = LeakProbeJSON.memory_consumed_str(size_in_mb)
        assert isinstance(formatted, str)
        if size_in_mb < 1024:
            assert formatted.endswith("MB")
        elif size_in_mb < 1024 * 1024:
            assert formatted.endswith("GB")
        else:
            assert formatted.endswith("TB")

    def test_negative_sizes_keep_their_sign(self) -> None:
        assert LeakProbeJSON.memory_consumed_str(-2.5) == "-2.500 MB"
        assert LeakProbeJSON.memory_consumed_str(-2048) == "-2.000 GB"

    def test_result_round_trips_through_json(self, provider) -> None:
        async def broken() -> None:
            raise KeyError("missing")

        async def grow() -> None:
            provider.heap_mb += 8

        tester = LeakTester(
            provider=provider, iterations=4, snapshot_interval=2, leak_threshold=5, verbose=False
        )
        result = asyncio.run(
            tester.run_tests([WorkloadCase("broken", broken), WorkloadCase("grow", grow)])
        )
        obj = json.loads(json.dumps(LeakProbeJSON.result_to_dict(result)))

        assert obj["has_leak"] is True
        assert obj["memory_growth_mb"] == 32
        assert obj["iterations"] == 4
        assert obj["cancelled"] is False
        assert [s["index"] for s in obj["snapshots"]] == [0, 1, 2]
        assert obj["snapshots"][0]["label"] == "initial"
        assert obj["snapshots"][2]["memory"]["heap_used_mb"] == 132
        assert obj["peak_memory"]["heap_used_mb"] == 132
        assert obj["failures"] == [
            {
                "case": "broken",
                "iteration": 1,
                "message": "Workload 'broken' failed at iteration 1: KeyError('missing')",
            }
        ]

    def test_memory_info(self, provider) -> None:
        tester = LeakTester(provider=provider, verbose=False)
        empty = LeakProbeJSON.memory_info_to_dict(tester.get_memory_info())
        assert empty["baseline"] is None
        assert empty["peak"] is None
        assert empty["events"] == []

        tester.baseline()
        tester.record_event(EventKind.WARNING, "look out")
        info = LeakProbeJSON.memory_info_to_dict(tester.get_memory_info())
        json.dumps(info)
        assert info["baseline"]["index"] == 0
        assert info["current"]["heap_used_mb"] == 100
        assert [e["kind"] for e in info["events"]] == ["snapshot", "warning"]
        assert info["events"][0]["snapshot_index"] == 0
        assert "snapshot_index" not in info["events"][1]
