"""Exceptions raised (and mostly recovered from) by leakprobe."""

from typing import Optional


class LeakProbeError(Exception):
    """Base class for leakprobe errors."""


class NotInitialized(LeakProbeError):
    """A baseline was requested before any snapshot exists."""


class ConfigurationInvalid(LeakProbeError, ValueError):
    """Non-positive iterations, snapshot interval, or leak threshold."""


class CapabilityUnavailable(LeakProbeError):
    """Explicit memory reclamation was requested but cannot be performed."""

    def __init__(self, capability: str = "explicit garbage collection") -> None:
        super().__init__(f"{capability} is not available in this environment")
        self.capability = capability


class WorkloadFailure(LeakProbeError):
    """A workload (or its cleanup) raised; the original exception is the __cause__."""

    def __init__(
        self, case_name: str, iteration: int, error: Optional[BaseException] = None
    ) -> None:
        detail = f": {error!r}" if error is not None else ""
        super().__init__(f"Workload '{case_name}' failed at iteration {iteration}{detail}")
        self.case_name = case_name
        self.iteration = iteration
