import re
from datetime import timedelta

from .const import DURATION_UNITS
from .exceptions import InvalidFormat

_DURATION_RE = re.compile(r"^(?P<value>\d+)(?P<unit>[smhd])$", re.IGNORECASE | re.ASCII)
_UNIT_NAMES = {"s": "second", "m": "minute", "h": "hour", "d": "day"}


def parse_duration(value: str) -> int:
    """Convert a duration like "10m" or "2d" to seconds."""
    match = _DURATION_RE.match(value or "")
    if match is None:
        raise InvalidFormat(
            f"Invalid time format '{value}'. Use <number>[s/m/h/d] (e.g., 10m for 10 minutes)"
        )

    seconds = int(match.group("value")) * DURATION_UNITS[match.group("unit").lower()]

    # must still fit in a timedelta to be scheduled at all
    try:
        timedelta(seconds=seconds)
    except OverflowError as err:
        raise InvalidFormat(f"Duration '{value}' is too large") from err

    return seconds


def format_duration(seconds: int) -> str:
    """Render seconds with at most two units, largest first."""
    parts = []
    for unit, size in sorted(DURATION_UNITS.items(), key=lambda item: -item[1]):
        count, seconds = divmod(seconds, size)
        if count:
            parts.append(f"{count} {_UNIT_NAMES[unit]}{'' if count == 1 else 's'}")
    return ", ".join(parts[:2]) or "0 seconds"
