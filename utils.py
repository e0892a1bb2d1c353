# flock_monitor/utils.py
"""Time-of-day helpers for the Flock Line Monitor"""
import re
from typing import List, Optional

SECONDS_PER_DAY = 24 * 60 * 60

# Display grid: 06:00 through 23:30 in half-hour steps
FIRST_SLOT_HOUR = 6
LAST_SLOT_HOUR = 23
SLOT_MINUTES = (0, 30)

# Reference line drawn at the shift change
SHIFT_CHANGE_SLOT = '14:00'
SHIFT_LABELS = ['Shift 1', 'Shift Change', 'Shift 2']

_CLOCK_PATTERN = re.compile(r'^([0-9]{1,2}):([0-9]{2}):([0-9]{2})$')
_DIGITS = re.compile(r'^[0-9]{1,2}$')


def format_seconds(total_seconds: int) -> str:
    """
    Format seconds since midnight as HH:MM:SS.

    Values outside one day wrap around so the result is always a clock time.
    """
    total_seconds = int(total_seconds) % SECONDS_PER_DAY
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def match_clock(value: str) -> Optional[re.Match]:
    """Match H:MM:SS / HH:MM:SS strings"""
    return _CLOCK_PATTERN.match(value)


def time_to_seconds(time_of_day: str) -> Optional[int]:
    """
    Convert an HH:MM:SS (or HH:MM) string to seconds since midnight.

    Args:
        time_of_day: Clock string

    Returns:
        Seconds since midnight, or None when the string is not a valid time
    """
    parts = time_of_day.split(':') if isinstance(time_of_day, str) else []
    if len(parts) not in (2, 3) or not all(_DIGITS.match(part) for part in parts):
        return None

    hours, minutes = int(parts[0]), int(parts[1])
    seconds = int(parts[2]) if len(parts) == 3 else 0
    if hours > 23 or minutes > 59 or seconds > 59:
        return None
    return hours * 3600 + minutes * 60 + seconds


def generate_time_slots() -> List[str]:
    """Return the 36 fixed HH:MM slot labels, ascending"""
    return [
        f"{hour:02d}:{minute:02d}"
        for hour in range(FIRST_SLOT_HOUR, LAST_SLOT_HOUR + 1)
        for minute in SLOT_MINUTES
    ]
