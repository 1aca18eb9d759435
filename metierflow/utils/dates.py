"""Date helpers shared by the timeline, health and filter views.

All values are naive local datetimes. Parsers return ``None`` for empty or
malformed input; callers must check before use.
"""

import calendar
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple, Union

from metierflow.constants.constants import QuickRange

DateLike = Union[date, datetime]

ONE_DAY = timedelta(days=1)


def normalize_to_day_start(value: DateLike) -> datetime:
    """Truncate a date or datetime to local midnight."""
    if isinstance(value, datetime):
        return value.replace(hour=0, minute=0, second=0, microsecond=0)
    return datetime.combine(value, time.min)


def today_start(today: Optional[DateLike] = None) -> datetime:
    return normalize_to_day_start(today if today is not None else datetime.now())


def parse_calendar_date(value: Optional[str]) -> Optional[datetime]:
    """Parse ``YYYY-MM-DD`` as local midnight of that calendar day."""
    if not value:
        return None
    try:
        day = date.fromisoformat(value.strip().split("T", 1)[0])
    except ValueError:
        return None
    return datetime.combine(day, time.min)


def parse_flexible_timestamp(value) -> Optional[datetime]:
    """Parse a bare date or a date+time string.

    Offsets (including a trailing ``Z``) are converted to local time and
    dropped so every timestamp compares as naive local time.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_day(value) -> Optional[datetime]:
    """Parse a flexible timestamp and truncate it to its day."""
    parsed = parse_flexible_timestamp(value)
    if parsed is None:
        return None
    return normalize_to_day_start(parsed)


def day_difference(later: DateLike, earlier: DateLike) -> int:
    """Whole days between two instants, rounded to the nearest day."""
    delta = normalize_to_day_start(later) - normalize_to_day_start(earlier)
    return round(delta / ONE_DAY)


def intervals_overlap(a_start, a_end, b_start, b_end) -> bool:
    """Closed-interval overlap; a single shared instant counts."""
    return a_start <= b_end and a_end >= b_start


def start_of_week(value: DateLike) -> datetime:
    """Monday of the week containing ``value``."""
    day = normalize_to_day_start(value)
    return day - timedelta(days=day.weekday())


def end_of_week(value: DateLike) -> datetime:
    return start_of_week(value) + timedelta(days=6)


def start_of_month(value: DateLike) -> datetime:
    return normalize_to_day_start(value).replace(day=1)


def end_of_month(value: DateLike) -> datetime:
    day = normalize_to_day_start(value)
    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=last_day)


def to_iso_date(value: DateLike) -> str:
    """Local calendar date as ``YYYY-MM-DD``."""
    return value.strftime("%Y-%m-%d")


def combine_date_time(date_part: str, time_part: Optional[str]) -> str:
    """Join a ``YYYY-MM-DD`` date and an ``HH:MM`` time into a local timestamp string."""
    if not date_part:
        return ""
    if not time_part:
        return f"{date_part}T00:00:00"
    return f"{date_part}T{time_part}:00"


def quick_range(preset: QuickRange, today: Optional[DateLike] = None) -> Tuple[str, str]:
    """Start and end ``YYYY-MM-DD`` strings for the quick date-filter presets."""
    now = today_start(today)
    preset = QuickRange(preset)

    if preset == QuickRange.today:
        start, end = now, now
    elif preset == QuickRange.this_week:
        start, end = start_of_week(now), end_of_week(now)
    elif preset == QuickRange.next_week:
        start = start_of_week(now) + timedelta(days=7)
        end = start + timedelta(days=6)
    else:
        start, end = start_of_month(now), end_of_month(now)

    return to_iso_date(start), to_iso_date(end)
