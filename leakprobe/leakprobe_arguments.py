import argparse
from typing import Any

from pydantic import BaseModel, ConfigDict, PositiveFloat, PositiveInt, ValidationError

from leakprobe.leakprobe_errors import ConfigurationInvalid


class LeakProbeConfiguration(BaseModel):
    """Settings for one LeakTester; immutable once constructed."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    iterations: PositiveInt = 100
    # rounds between memory samples
    snapshot_interval: PositiveInt = 10
    # heap growth (MB) over baseline that counts as a leak
    leak_threshold: PositiveFloat = 50.0
    verbose: bool = True
    enable_gc: bool = True

    @classmethod
    def create(cls, **options: Any) -> "LeakProbeConfiguration":
        """Build a configuration, turning validation failures into ConfigurationInvalid."""
        try:
            return cls(**options)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            )
            raise ConfigurationInvalid(problems) from exc


class LeakProbeArguments(argparse.Namespace):
    """Encapsulates all command-line arguments and default values for leakprobe."""

    def __init__(self) -> None:
        super().__init__()
        defaults = LeakProbeConfiguration()
        self.iterations = defaults.iterations
        self.snapshot_interval = defaults.snapshot_interval
        self.leak_threshold = defaults.leak_threshold
        self.verbose = defaults.verbose
        self.enable_gc = defaults.enable_gc
        # emit the result as JSON instead of a rich report
        self.json = False
        self.outfile = None
        self.column_width = 100
        self.version = False
        # "module:callable" workload specifications
        self.workloads: list = []

    def to_configuration(self) -> LeakProbeConfiguration:
        return LeakProbeConfiguration.create(
            iterations=self.iterations,
            snapshot_interval=self.snapshot_interval,
            leak_threshold=self.leak_threshold,
            verbose=self.verbose,
            enable_gc=self.enable_gc,
        )
