import argparse
import re
import sys
from textwrap import dedent
from typing import Any, List, Optional

from leakprobe.leakprobe_arguments import LeakProbeArguments
from leakprobe.leakprobe_config import leakprobe_date, leakprobe_version


def _colorize_help_for_rich(text: str) -> str:
    """Color argparse help text using Rich markup.

    - usage / headings: bold blue
    - long options (--foo): bold cyan
    - short options (-h): bold green
    - metavars (FOO): bold yellow
    """
    text = re.sub(
        r"^(usage:|options:|positional arguments:|optional arguments:)",
        r"[bold blue]\1[/bold blue]",
        text,
        flags=re.MULTILINE,
    )
    text = re.sub(
        r"(^  |, )(--[a-zA-Z][a-zA-Z0-9_-]*)",
        r"\1[bold cyan]\2[/bold cyan]",
        text,
        flags=re.MULTILINE,
    )
    text = re.sub(
        r"(^  )(-[a-zA-Z])(,|\s)",
        r"\1[bold green]\2[/bold green]\3",
        text,
        flags=re.MULTILINE,
    )
    text = re.sub(
        r"(\[/bold cyan\] )([A-Z][A-Z0-9_]*)\b",
        r"\1[bold yellow]\2[/bold yellow]",
        text,
    )
    return text


class RichArgParser(argparse.ArgumentParser):
    """ArgumentParser that prints help and errors through Rich."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        from rich.console import Console

        self._console = Console(stderr=True)
        super().__init__(*args, **kwargs)

    def _print_message(self, message: Optional[str], file: Any = None) -> None:
        if message:
            self._console.print(_colorize_help_for_rich(message), highlight=False)


class LeakProbeParseArgs:
    @staticmethod
    def build_parser() -> RichArgParser:
        defaults = LeakProbeArguments()
        usage = dedent(
            rf"""leakprobe: repeatedly runs a workload and checks it for memory leaks, version {leakprobe_version} ({leakprobe_date})

command-line:
  % leakprobe [options] package.module:function [more.module:function ...]
or
  % python3 -m leakprobe [options] package.module:function

Each function is called with no arguments once per iteration; it may be a
coroutine function.
"""
        )
        parser = RichArgParser(
            prog="leakprobe",
            description=usage,
            formatter_class=argparse.RawTextHelpFormatter,
            allow_abbrev=False,
        )
        parser.add_argument(
            "--version",
            dest="version",
            action="store_const",
            const=True,
            default=defaults.version,
            help="prints the version number for this release of leakprobe and exits",
        )
        parser.add_argument(
            "--iterations",
            type=int,
            default=defaults.iterations,
            help=f"number of times each workload is run (default: {defaults.iterations})",
        )
        parser.add_argument(
            "--snapshot-interval",
            dest="snapshot_interval",
            type=int,
            default=defaults.snapshot_interval,
            help=f"iterations between memory samples (default: {defaults.snapshot_interval})",
        )
        parser.add_argument(
            "--leak-threshold",
            dest="leak_threshold",
            type=float,
            default=defaults.leak_threshold,
            help=f"heap growth in MB that counts as a leak (default: {defaults.leak_threshold})",
        )
        parser.add_argument(
            "--no-gc",
            dest="enable_gc",
            action="store_false",
            default=defaults.enable_gc,
            help="do not force a garbage collection before each sample",
        )
        parser.add_argument(
            "--quiet",
            dest="verbose",
            action="store_false",
            default=defaults.verbose,
            help="suppress progress logging on stderr",
        )
        parser.add_argument(
            "--json",
            dest="json",
            action="store_const",
            const=True,
            default=defaults.json,
            help="output the result as JSON (default: rich text report)",
        )
        parser.add_argument(
            "--outfile",
            type=str,
            default=defaults.outfile,
            help="file to hold the report (default: stdout)",
        )
        parser.add_argument(
            "--column-width",
            dest="column_width",
            type=int,
            default=defaults.column_width,
            help=f"column width for the text report (default: {defaults.column_width})",
        )
        parser.add_argument(
            "workloads",
            nargs="*",
            metavar="MODULE:FUNCTION",
            help="workload functions to test",
        )
        return parser

    @staticmethod
    def parse_args(argv: Optional[List[str]] = None) -> LeakProbeArguments:
        parser = LeakProbeParseArgs.build_parser()
        args = parser.parse_args(argv, namespace=LeakProbeArguments())
        if args.version:
            print(f"leakprobe version {leakprobe_version} ({leakprobe_date})")
            sys.exit(0)
        if not args.workloads:
            parser.print_help(sys.stderr)
            sys.exit(2)
        for spec in args.workloads:
            if spec.count(":") != 1 or not all(spec.split(":")):
                parser.error(f"workload must look like MODULE:FUNCTION, got {spec!r}")
        return args
