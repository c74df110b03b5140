"""Current version of leakprobe; reported by --version."""

leakprobe_version = "1.0.0"
leakprobe_date = "2026.10.18"

BYTES_PER_MB = 1024 * 1024

# Fraction of post-baseline intervals that must show growth before a
# threshold crossing is reported as a leak.
MONOTONICITY_THRESHOLD = 0.5
