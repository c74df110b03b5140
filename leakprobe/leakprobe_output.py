from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from leakprobe import sparkline
from leakprobe.leakprobe_events import EventKind, EventRecord
from leakprobe.leakprobe_json import LeakProbeJSON
from leakprobe.leakprobe_tester import TestResult


class LeakProbeOutput:

    # Maximum entries for the heap sparkline
    max_sparkline_len = 40

    # Maximum snapshot rows printed before eliding the middle of the table
    max_table_rows = 20

    # Color for the leak verdict
    leak_color = "bold red"

    # Color for a clean verdict
    ok_color = "bold green"

    # Color for memory figures
    memory_color = "dark_green"

    # Color for warnings and errors in the event summary
    warning_color = "yellow"
    error_color = "red"

    def __init__(self, column_width: int = 100) -> None:
        self.column_width = column_width

    def output_result(
        self,
        result: TestResult,
        events: Sequence[EventRecord] = (),
        console: Optional[Console] = None,
    ) -> None:
        """Print a human-readable report of one leak test."""
        if console is None:
            console = Console(width=self.column_width)

        verdict = (
            Text("LEAK DETECTED", style=self.leak_color)
            if result.has_leak
            else Text("no leak detected", style=self.ok_color)
        )
        console.print(
            Text.assemble(
                "Memory leak test: ",
                verdict,
                f" after {result.iterations} iteration(s)",
                " (cancelled)" if result.cancelled else "",
                f" in {result.duration:.2f}s",
            )
        )

        heap = [s.measurement.heap_used_mb for s in result.snapshots]
        if len(heap) > self.max_sparkline_len:
            step = len(heap) / self.max_sparkline_len
            heap = [heap[int(i * step)] for i in range(self.max_sparkline_len)] + [heap[-1]]
        _, _, spark_str = sparkline.generate(heap)
        console.print(
            Text.assemble(
                "Heap usage: ",
                (spark_str, self.memory_color),
                f" growth: {LeakProbeJSON.memory_consumed_str(result.memory_growth_mb)}"
                f" (threshold: {LeakProbeJSON.memory_consumed_str(result.leak_threshold)},"
                f" rising in {result.monotonicity:.0%} of intervals,"
                f" {result.growth_rate_mb:+.2f} MB/interval)",
            )
        )
        console.print(
            f"Peak heap: {LeakProbeJSON.memory_consumed_str(result.peak_memory.heap_used_mb)}"
            f"  RSS: {LeakProbeJSON.memory_consumed_str(result.initial_memory.rss_mb)}"
            f" -> {LeakProbeJSON.memory_consumed_str(result.final_memory.rss_mb)}"
        )

        console.print(self.snapshot_table(result))
        self.output_events(events, console)

    def snapshot_table(self, result: TestResult) -> Table:
        tbl = Table(
            box=box.MINIMAL_HEAVY_HEAD,
            title="Snapshots",
            collapse_padding=True,
            width=self.column_width - 1,
        )
        tbl.add_column("#", justify="right", no_wrap=True)
        tbl.add_column("Label", no_wrap=True)
        tbl.add_column("Heap used", justify="right", style=self.memory_color, no_wrap=True)
        tbl.add_column("Growth", justify="right", no_wrap=True)
        tbl.add_column("RSS", justify="right", no_wrap=True)

        snapshots = list(result.snapshots)
        if not snapshots:
            return tbl
        baseline_mb = snapshots[0].measurement.heap_used_mb
        half = self.max_table_rows // 2
        elided = len(snapshots) > self.max_table_rows
        rows = snapshots[:half] + snapshots[-half:] if elided else snapshots
        for position, snapshot in enumerate(rows):
            if elided and position == half:
                tbl.add_row("…", "", "", "", "")
            m = snapshot.measurement
            tbl.add_row(
                str(snapshot.index),
                snapshot.label,
                LeakProbeJSON.memory_consumed_str(m.heap_used_mb),
                LeakProbeJSON.memory_consumed_str(m.heap_used_mb - baseline_mb),
                LeakProbeJSON.memory_consumed_str(m.rss_mb),
            )
        return tbl

    def output_events(self, events: Sequence[EventRecord], console: Console) -> None:
        notable = [e for e in events if e.kind is not EventKind.SNAPSHOT]
        if not notable:
            return
        console.print("Events:")
        for event in notable:
            color = self.error_color if event.kind is EventKind.ERROR else self.warning_color
            console.print(
                Text.assemble((f"  [{event.kind.value}] ", color), event.message)
            )
