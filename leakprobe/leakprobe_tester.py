"""
The leak tester: runs workloads repeatedly, samples memory at a fixed
cadence, and hands the resulting snapshot series to the leak analysis.

Only configuration problems are fatal. Failing workloads, failing cleanups,
and missing reclamation support are reported as events and the run carries
on, so a caller always gets a TestResult back.
"""

from __future__ import annotations

import datetime
import inspect
import threading
import time
from enum import Enum
from typing import (
    Any,
    Awaitable,
    Callable,
    Iterable,
    List,
    NamedTuple,
    Optional,
    Tuple,
    Union,
)

from rich.console import Console

from leakprobe.leakprobe_analysis import LeakProbeAnalysis
from leakprobe.leakprobe_arguments import LeakProbeConfiguration
from leakprobe.leakprobe_config import BYTES_PER_MB
from leakprobe.leakprobe_errors import (
    CapabilityUnavailable,
    LeakProbeError,
    NotInitialized,
    WorkloadFailure,
)
from leakprobe.leakprobe_events import EventBus, EventHandler, EventKind, EventRecord
from leakprobe.leakprobe_measurement import MeasurementProvider, MemoryMeasurement
from leakprobe.leakprobe_snapshots import Snapshot, SnapshotStore

console = Console(stderr=True, highlight=False)

Operation = Callable[[], Union[Awaitable[Any], Any]]


class WorkloadCase(NamedTuple):
    name: str
    workload: Operation
    cleanup: Optional[Operation] = None


class TestResult(NamedTuple):
    has_leak: bool
    memory_growth_mb: float
    # rounds actually completed (fewer than configured if cancelled)
    iterations: int
    snapshots: Tuple[Snapshot, ...]
    leak_threshold: float
    monotonicity: float
    growth_rate_mb: float
    # wall-clock seconds spent in run_tests
    duration: float
    initial_memory: MemoryMeasurement
    final_memory: MemoryMeasurement
    peak_memory: MemoryMeasurement
    failures: Tuple[WorkloadFailure, ...] = ()
    cancelled: bool = False


class MemoryInfo(NamedTuple):
    current: MemoryMeasurement
    # None until the first sample of the session is taken
    baseline: Optional[Snapshot]
    peak: Optional[MemoryMeasurement]
    events: Tuple[EventRecord, ...]
    snapshots: Tuple[Snapshot, ...]


class TesterState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


class CancelToken:
    """Requests that a running test stop at the next iteration boundary.

    Safe to trigger from another thread, e.g. a status endpoint.
    """

    def __init__(self) -> None:
        self.__event = threading.Event()

    def cancel(self) -> None:
        self.__event.set()

    @property
    def cancelled(self) -> bool:
        return self.__event.is_set()


class LeakTester:
    """Drives workloads and decides whether they leak memory."""

    # Log progress every this many rounds when verbose.
    progress_interval = 10

    def __init__(
        self,
        configuration: Optional[LeakProbeConfiguration] = None,
        provider: Optional[MeasurementProvider] = None,
        **options: Any,
    ) -> None:
        if configuration is None:
            configuration = LeakProbeConfiguration.create(**options)
        elif options:
            raise TypeError("pass either a configuration or keyword options, not both")
        self.__config = configuration
        self.__provider = provider if provider is not None else MeasurementProvider()
        self.__store = SnapshotStore()
        self.__bus = EventBus()
        self.__state = TesterState.IDLE
        self.__reclaim_reported = False

    @property
    def configuration(self) -> LeakProbeConfiguration:
        return self.__config

    @property
    def state(self) -> TesterState:
        return self.__state

    def subscribe(self, kind: EventKind, handler: EventHandler) -> None:
        self.__bus.subscribe(kind, handler)

    def unsubscribe(self, kind: EventKind, handler: EventHandler) -> None:
        self.__bus.unsubscribe(kind, handler)

    def record_event(self, kind: EventKind, message: str) -> EventRecord:
        """Publish a caller-supplied event through the tester's bus.

        May be called from any thread, also during a run; handlers run on the
        calling thread.
        """
        return self.__bus.publish(kind, message)

    def baseline(self) -> Snapshot:
        """The session baseline, taken now if no snapshot exists yet."""
        try:
            return self.__store.baseline()
        except NotInitialized:
            return self._take_snapshot("initial")

    async def run_tests(
        self,
        cases: Iterable[WorkloadCase],
        cancel_token: Optional[CancelToken] = None,
    ) -> TestResult:
        """Run every case for the configured number of rounds, then analyze."""
        if self.__state is TesterState.RUNNING:
            raise LeakProbeError("a leak test is already running on this tester")
        cases = list(cases)
        config = self.__config
        self.__state = TesterState.RUNNING
        try:
            self._log(f"Starting memory leak testing with {len(cases)} test(s)...")
            self._log(f"Options: {config.model_dump()}")
            start = time.perf_counter()
            baseline = self.baseline()

            active = list(cases)
            failures: List[WorkloadFailure] = []
            completed = 0
            last_sampled = 0
            cancelled = False
            for iteration in range(1, config.iterations + 1):
                if cancel_token is not None and cancel_token.cancelled:
                    cancelled = True
                    break
                for case in list(active):
                    failure = await self._run_case(case, iteration)
                    if failure is not None:
                        # One error per case; a broken case sits out the rest of the run.
                        failures.append(failure)
                        active.remove(case)
                completed = iteration
                if (
                    iteration % config.snapshot_interval == 0
                    or iteration == config.iterations
                ):
                    self._take_snapshot(f"iteration-{iteration}")
                    last_sampled = iteration
                if iteration % self.progress_interval == 0:
                    self._log_progress(iteration, baseline)

            if cancelled:
                if completed > last_sampled:
                    self._take_snapshot(f"iteration-{completed}")
                message = f"Run cancelled after {completed} of {config.iterations} iterations"
                self.__bus.publish(EventKind.WARNING, message)
                self._log(message, "warning")

            snapshots = self.__store.all()
            verdict = LeakProbeAnalysis.evaluate(snapshots, config.leak_threshold)
            if verdict.has_leak:
                message = (
                    f"Memory leak detected! Growth: {verdict.growth_mb:.2f} MB "
                    f"(threshold {config.leak_threshold:.2f} MB, heap rose in "
                    f"{verdict.monotonicity:.0%} of sampled intervals)"
                )
                self.__bus.publish(EventKind.WARNING, message)
                self._log(message, "warning")
            else:
                self._log(
                    f"No significant memory leak detected. Growth: {verdict.growth_mb:.2f} MB"
                )

            measurements = [s.measurement for s in snapshots]
            return TestResult(
                has_leak=verdict.has_leak,
                memory_growth_mb=verdict.growth_mb,
                iterations=completed,
                snapshots=snapshots,
                leak_threshold=config.leak_threshold,
                monotonicity=verdict.monotonicity,
                growth_rate_mb=verdict.growth_rate_mb,
                duration=time.perf_counter() - start,
                initial_memory=measurements[0],
                final_memory=measurements[-1],
                peak_memory=max(measurements, key=lambda m: m.heap_used_bytes),
                failures=tuple(failures),
                cancelled=cancelled,
            )
        finally:
            self.__state = TesterState.COMPLETED

    def get_memory_info(self) -> MemoryInfo:
        """Current reading plus everything recorded so far; never mutates the tester."""
        snapshots = self.__store.all()
        events = self.__bus.events()
        peak = None
        if snapshots:
            peak = max(
                (s.measurement for s in snapshots), key=lambda m: m.heap_used_bytes
            )
        return MemoryInfo(
            current=self.__provider.sample(start_tracing=False),
            baseline=snapshots[0] if snapshots else None,
            peak=peak,
            events=events,
            snapshots=snapshots,
        )

    def reset(self) -> None:
        """Forget all snapshots and events; the next run takes a new baseline."""
        if self.__state is TesterState.RUNNING:
            raise LeakProbeError("cannot reset while a leak test is running")
        self.__store.clear()
        self.__bus.clear()
        self.__reclaim_reported = False
        self.__state = TesterState.IDLE

    def close(self) -> None:
        self.__provider.close()

    async def _run_case(
        self, case: WorkloadCase, iteration: int
    ) -> Optional[WorkloadFailure]:
        failure = None
        try:
            await self._invoke(case.workload)
        except Exception as exc:
            failure = WorkloadFailure(case.name, iteration, exc)
            failure.__cause__ = exc
            self.__bus.publish(EventKind.ERROR, str(failure))
            self._log(str(failure), "error")
        if case.cleanup is not None:
            try:
                await self._invoke(case.cleanup)
            except Exception as exc:
                message = f"Cleanup failed for test {case.name}: {exc!r}"
                self.__bus.publish(EventKind.WARNING, message)
                self._log(message, "warning")
        return failure

    @staticmethod
    async def _invoke(operation: Operation) -> None:
        result = operation()
        if inspect.isawaitable(result):
            await result

    def _take_snapshot(self, label: str) -> Snapshot:
        if self.__config.enable_gc:
            self._reclaim()
        snapshot = self.__store.append(label, self.__provider.sample())
        # Published only after the append, so subscribers can already see it.
        self.__bus.publish(
            EventKind.SNAPSHOT,
            f"Snapshot {label}: heap used {snapshot.measurement.heap_used_mb:.2f} MB",
            snapshot,
        )
        return snapshot

    def _reclaim(self) -> None:
        if self.__provider.try_force_reclaim():
            return
        if not self.__reclaim_reported:
            self.__reclaim_reported = True
            message = f"{CapabilityUnavailable()}; sampling without it"
            self.__bus.publish(EventKind.WARNING, message)
            self._log(message, "warning")

    def _log_progress(self, iteration: int, baseline: Snapshot) -> None:
        latest = self.__store.latest()
        if latest is None:
            return
        growth = (
            latest.measurement.heap_used_bytes - baseline.measurement.heap_used_bytes
        ) / BYTES_PER_MB
        self._log(
            f"Iteration {iteration}: heap growth {growth:.2f} MB as of {latest.label}"
        )

    def _log(self, message: str, level: str = "info") -> None:
        if not self.__config.verbose:
            return
        timestamp = datetime.datetime.now().isoformat(timespec="milliseconds")
        style = {"warning": "yellow", "error": "bold red"}.get(level)
        console.print(
            f"[{timestamp}] [{level.upper()}] {message}",
            style=style,
            markup=False,
            soft_wrap=True,
        )


def create_case(
    name: str, workload: Operation, cleanup: Optional[Operation] = None
) -> WorkloadCase:
    return WorkloadCase(name, workload, cleanup)


async def test_for_leaks(
    cases: Iterable[WorkloadCase],
    provider: Optional[MeasurementProvider] = None,
    **options: Any,
) -> TestResult:
    """One-shot helper: build a tester from options and run the cases."""
    tester = LeakTester(provider=provider, **options)
    try:
        return await tester.run_tests(cases)
    finally:
        tester.close()

