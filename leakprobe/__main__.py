import sys
import traceback


def main() -> None:
    try:
        from leakprobe.leakprobe_cli import LeakProbeCLI

        sys.exit(LeakProbeCLI.main())
    except SystemExit:
        raise
    except Exception as exc:
        sys.stderr.write(f"ERROR: Calling leakprobe main function failed: {exc}\n")
        traceback.print_exc()
        sys.exit(2)


if __name__ == "__main__":
    main()
