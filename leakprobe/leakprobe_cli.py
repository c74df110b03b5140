"""Command-line driver: imports workload functions, runs them, reports."""

import asyncio
import importlib
import json
import os
import sys
from typing import Callable, List, Optional

from rich.console import Console

from leakprobe.leakprobe_arguments import LeakProbeArguments
from leakprobe.leakprobe_errors import ConfigurationInvalid
from leakprobe.leakprobe_json import LeakProbeJSON
from leakprobe.leakprobe_output import LeakProbeOutput
from leakprobe.leakprobe_parseargs import LeakProbeParseArgs
from leakprobe.leakprobe_tester import LeakTester, TestResult, WorkloadCase

EXIT_OK = 0
EXIT_LEAK = 1
EXIT_USAGE = 2


class LeakProbeCLI:
    @staticmethod
    def load_workload(spec: str) -> WorkloadCase:
        """Resolve "package.module:function" into a WorkloadCase named after it."""
        module_name, _, attr_path = spec.partition(":")
        module = importlib.import_module(module_name)
        target: object = module
        for attr in attr_path.split("."):
            target = getattr(target, attr)
        if not callable(target):
            raise TypeError(f"{spec} is not callable")
        workload: Callable[[], object] = target
        return WorkloadCase(spec, workload)

    @staticmethod
    def write_report(
        args: LeakProbeArguments, tester: LeakTester, result: TestResult
    ) -> None:
        events = tester.get_memory_info().events
        if args.json:
            obj = LeakProbeJSON.result_to_dict(result)
            obj["events"] = [LeakProbeJSON.event_to_dict(e) for e in events]
            text = json.dumps(obj, indent=2)
            if args.outfile:
                with open(args.outfile, "w", encoding="utf-8") as f:
                    f.write(text + "\n")
            else:
                print(text)
            return
        output = LeakProbeOutput(column_width=args.column_width)
        if args.outfile:
            with open(args.outfile, "w", encoding="utf-8") as f:
                output.output_result(
                    result, events, Console(file=f, width=args.column_width)
                )
        else:
            output.output_result(result, events)

    @staticmethod
    def main(argv: Optional[List[str]] = None) -> int:
        args = LeakProbeParseArgs.parse_args(argv)
        # Console scripts do not put the working directory on sys.path.
        if os.getcwd() not in sys.path:
            sys.path.insert(0, os.getcwd())
        try:
            configuration = args.to_configuration()
        except ConfigurationInvalid as exc:
            print(f"leakprobe: invalid configuration: {exc}", file=sys.stderr)
            return EXIT_USAGE
        cases = []
        for spec in args.workloads:
            try:
                cases.append(LeakProbeCLI.load_workload(spec))
            except (ImportError, AttributeError, TypeError) as exc:
                print(f"leakprobe: cannot load workload {spec}: {exc}", file=sys.stderr)
                return EXIT_USAGE

        tester = LeakTester(configuration)
        try:
            result = asyncio.run(tester.run_tests(cases))
            LeakProbeCLI.write_report(args, tester, result)
        finally:
            tester.close()
        return EXIT_LEAK if result.has_leak else EXIT_OK
