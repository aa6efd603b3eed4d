"""Duration strings for the ``agg`` command, e.g. ``30s``, ``1m``, ``1h30m``."""

import math
import re

from gator.exceptions import ArgumentError

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|h|m|s)")

_UNIT_SECONDS = {
    "h": 3600.0,
    "m": 60.0,
    "s": 1.0,
    "ms": 1e-3,
    "us": 1e-6,
    "µs": 1e-6,
    "ns": 1e-9,
}


def parse_duration(text: str) -> float:
    """Parse a duration into seconds.

    Accepts a sequence of number+unit parts (``1h30m``, ``1.5s``, ``500ms``)
    or a bare number of seconds.

    Raises:
        ArgumentError: If the text is not a positive duration
    """
    text = text.strip()

    try:
        seconds = float(text)
    except ValueError:
        seconds = 0.0
        pos = 0
        for match in _DURATION_PART.finditer(text):
            if match.start() != pos:
                break
            seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
            pos = match.end()

        if pos == 0 or pos != len(text):
            raise ArgumentError(f"invalid duration {text!r}; use e.g. 30s, 1m or 1h30m")

    if not math.isfinite(seconds) or seconds <= 0:
        raise ArgumentError(f"duration must be positive, got {text!r}")
    return seconds


def format_duration(seconds: float) -> str:
    """Format seconds as ``1h2m3s`` style text."""
    if seconds < 1:
        return f"{seconds * 1000:g}ms"

    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)

    text = ""
    if hours:
        text += f"{int(hours)}h"
    if hours or minutes:
        text += f"{int(minutes)}m"
    return text + f"{round(secs, 6):g}s"
