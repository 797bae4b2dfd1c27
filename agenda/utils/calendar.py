"""Calendar day and time-of-day helpers."""

import re
from datetime import date, datetime, time

_TIME_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::\d{2}(?:\.\d+)?)?\s*$")


def normalize_time(value: str | time) -> str:
    """Normalize a time of day to zero-padded ``HH:MM``.

    Seconds are dropped, so ``"9:05"``, ``"09:05"`` and ``"09:05:59"`` all
    normalize to ``"09:05"``.

    Raises:
        ValueError: If the value is not a valid 24h time of day
    """
    if isinstance(value, time):
        return f"{value.hour:02d}:{value.minute:02d}"

    match = _TIME_PATTERN.match(value or "")
    if not match:
        raise ValueError(f"Invalid time of day: {value!r} (expected HH:MM)")

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid time of day: {value!r} (out of range)")

    return f"{hour:02d}:{minute:02d}"


def parse_day(value: str | date) -> date:
    """Parse a calendar day from ISO ``yyyy-MM-dd`` or the ``dd-MM-yyyy`` day key.

    Raises:
        ValueError: If the value matches neither format
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    for fmt in ("%Y-%m-%d", "%d-%m-%Y"):
        try:
            return datetime.strptime(value.strip(), fmt).date()
        except ValueError:
            continue

    raise ValueError(f"Invalid calendar day: {value!r} (expected yyyy-MM-dd or dd-MM-yyyy)")


def day_key(day: date) -> int:
    """Stable integer key for a calendar day."""
    return day.toordinal()
