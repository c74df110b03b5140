# Public API

from leakprobe.leakprobe_analysis import LeakProbeAnalysis, LeakVerdict
from leakprobe.leakprobe_arguments import LeakProbeConfiguration
from leakprobe.leakprobe_config import leakprobe_version as __version__
from leakprobe.leakprobe_errors import (
    CapabilityUnavailable,
    ConfigurationInvalid,
    LeakProbeError,
    NotInitialized,
    WorkloadFailure,
)
from leakprobe.leakprobe_events import EventBus, EventKind, EventRecord
from leakprobe.leakprobe_measurement import MeasurementProvider, MemoryMeasurement
from leakprobe.leakprobe_snapshots import Snapshot, SnapshotStore
from leakprobe.leakprobe_tester import (
    CancelToken,
    LeakTester,
    MemoryInfo,
    TestResult,
    TesterState,
    WorkloadCase,
    create_case,
    test_for_leaks,
)
