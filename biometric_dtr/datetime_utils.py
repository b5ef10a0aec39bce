"""
Date and time helpers shared by the parsers, the metrics calculator and the store.

Time-of-day values in terminal exports arrive as text ("08:15", "8:15:00",
"5:30 PM") or as native time cells; everything here normalises them to
``datetime.time`` or to whole-minute durations.
"""

import calendar
import math
import re
from datetime import date, datetime, time
from typing import Any, List, Optional, Sequence, Tuple

from openpyxl.utils.datetime import from_excel


MONTH_PATTERN = re.compile(r'^(\d{4})-(\d{2})$')

TIME_FORMATS = [
    '%H:%M',
    '%H:%M:%S',
    '%I:%M %p',
    '%I:%M:%S %p',
    '%I:%M%p',
]


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch it.
    """
    return datetime.now()


def days_in_month(year: int, month: int) -> int:
    """Number of calendar days in the given month."""
    return calendar.monthrange(year, month)[1]


def parse_month(month: str) -> Tuple[int, int]:
    """
    Split a ``YYYY-MM`` string into (year, month).

    Raises:
        ValueError: If the text is not a valid ``YYYY-MM`` month
    """
    match = MONTH_PATTERN.match((month or '').strip())
    if not match:
        raise ValueError(f"Invalid month format: '{month}' (expected YYYY-MM)")

    year, month_num = int(match.group(1)), int(match.group(2))
    if not 1 <= month_num <= 12:
        raise ValueError(f"Invalid month number in '{month}'")
    return year, month_num


def format_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def current_month() -> str:
    today = now_local()
    return format_month(today.year, today.month)


def weekday_name(year: int, month: int, day: int) -> str:
    """Full English weekday name, e.g. 'Saturday'."""
    return calendar.day_name[date(year, month, day).weekday()]


def date_weekday_label(year: int, month: int, day: int) -> str:
    """Day label used on time cards, e.g. '05 Sat'."""
    return f"{day:02d} {calendar.day_abbr[date(year, month, day).weekday()]}"


def is_weekend(year: int, month: int, day: int) -> bool:
    return date(year, month, day).weekday() >= 5


def parse_time_of_day(value: Any) -> Optional[time]:
    """
    Parse a clock reading into a time of day.

    Args:
        value: Text such as "08:15", "8:15:30" or "5:30 PM", or a native time

    Returns:
        The parsed time, or None when the value is blank or unreadable
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.time()

    if isinstance(value, time):
        return value

    text = str(value).strip().upper()
    if not text:
        return None

    for time_format in TIME_FORMATS:
        try:
            return datetime.strptime(text, time_format).time()
        except ValueError:
            continue

    return None


def minutes_since_midnight(value: time) -> float:
    return value.hour * 60 + value.minute + value.second / 60


def round_minutes(minutes: float) -> int:
    """Whole minutes, halves rounded up."""
    return int(math.floor(minutes + 0.5))


def format_duration(minutes: float) -> str:
    """
    Render a duration as '{H}h {MM}m'.

    The duration is rounded to whole minutes before splitting, so the
    minutes part is always 00-59.
    """
    hours, mins = divmod(round_minutes(minutes), 60)
    return f"{hours}h {mins:02d}m"


def render_time_value(value: Any) -> str:
    """
    Render a worksheet cell holding a clock reading as text.

    Native time cells become 'HH:MM' (seconds kept when non-zero); text is
    stripped and returned unchanged.
    """
    if value is None:
        return ""

    if isinstance(value, datetime):
        value = value.time()

    if isinstance(value, time):
        if value.second:
            return value.strftime('%H:%M:%S')
        return value.strftime('%H:%M')

    return str(value).strip()


def render_date_value(value: Any) -> str:
    """
    Render a date-like cell as 'YYYY-MM-DD'.

    Excel serial numbers are converted; text is returned stripped.
    """
    if value is None:
        return ""

    if isinstance(value, datetime):
        return value.date().isoformat()

    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            converted = from_excel(value)
        except (ValueError, OverflowError, TypeError):
            return str(value)
        if isinstance(converted, datetime):
            return converted.date().isoformat()
        return str(value)

    return str(value).strip()


def parse_dmy_date(text: str) -> Optional[date]:
    """
    Parse a 'DD/MM/YYYY' string with an explicit day-first interpretation.

    Returns:
        The date, or None when the text is not a real calendar date with a
        year between 1900 and 2100
    """
    parts = (text or '').strip().split('/')
    if len(parts) != 3:
        return None

    try:
        day, month, year = (int(part) for part in parts)
    except ValueError:
        return None

    if not (1 <= month <= 12 and 1 <= day <= 31 and 1900 <= year <= 2100):
        return None

    try:
        return date(year, month, day)
    except ValueError:
        # e.g. 30/02/2025
        return None


def parse_date_text(text: str, fallback_formats: Sequence[str] = ()) -> Optional[date]:
    """
    Parse a date cell's text, day-first first, then each fallback format in order.
    """
    parsed = parse_dmy_date(text)
    if parsed:
        return parsed

    for date_format in fallback_formats:
        try:
            return datetime.strptime(text.strip(), date_format).date()
        except ValueError:
            continue

    return None


def convert_to_12_hour(time_24hr: str) -> str:
    """
    Convert '14:30' to '2:30 PM' for printed reports.

    Blank input stays blank; text that is not a valid 24-hour time is
    returned unchanged.
    """
    if not time_24hr or not str(time_24hr).strip():
        return ""

    parts: List[str] = str(time_24hr).strip().split(':')
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except (ValueError, IndexError):
        return time_24hr

    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return time_24hr

    period = 'PM' if hours >= 12 else 'AM'
    display_hours = hours % 12 or 12
    return f"{display_hours}:{minutes:02d} {period}"
