"""Produces a sparkline of heap usage across snapshots, as in ▁▁▂▃▂▄▅▄▆█

Bar scaling follows https://rosettacode.org/wiki/Sparkline_in_unicode#Python
"""

import os
from typing import List, Mapping, Optional, Tuple

# ▁▂▃▄▅▆▇█
BLOCK_BARS = "".join(chr(i) for i in range(0x2581, 0x2589))
# ▄▄■■■■▀▀; the bare WSL console only renders IBM code page 437.
CP437_BARS = chr(0x2584) * 2 + chr(0x25A0) * 3 + chr(0x2580) * 3


def bars_for(environ: Mapping[str, str]) -> str:
    """Bar glyphs the terminal described by `environ` can draw."""
    # WT_PROFILE_ID is set by Windows Terminal, which renders block elements.
    if "WSL_DISTRO_NAME" in environ and "WT_PROFILE_ID" not in environ:
        return CP437_BARS
    return BLOCK_BARS


def generate(
    arr: List[float],
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
    bars: Optional[str] = None,
) -> Tuple[float, float, str]:
    """Return (low, high, sparkline) for a series; empty input gives (0, 0, "")."""
    if not arr:
        return 0, 0, ""
    if bars is None:
        bars = bars_for(os.environ)
    low = minimum if minimum is not None else float(min(arr))
    high = maximum if maximum is not None else float(max(arr))
    extent = (high - low) or 1
    top = len(bars) - 1
    spark = "".join(
        bars[max(0, min(top, int((value - low) / extent * len(bars))))]
        for value in arr
    )
    return low, high, spark
