"""Wall-clock helpers.

Times of day are integer minutes since midnight everywhere inside the
package; ``HH:MM`` strings only exist at the API boundary.
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: str) -> int:
    """Parse ``HH:MM`` into minutes since midnight. ``24:00`` is accepted as end of day."""
    hours_str, sep, minutes_str = value.partition(":")
    if not sep or len(hours_str) != 2 or len(minutes_str) != 2:
        raise ValueError(f"invalid time {value!r}, expected HH:MM")
    if not (hours_str.isdigit() and minutes_str.isdigit()):
        raise ValueError(f"invalid time {value!r}, expected HH:MM")
    hours = int(hours_str)
    minutes = int(minutes_str)
    total = hours * 60 + minutes
    if not (0 <= minutes < 60) or not (0 <= total <= MINUTES_PER_DAY):
        raise ValueError(f"time {value!r} out of range")
    return total


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def venue_now(tz_name: str) -> datetime:
    return datetime.now(ZoneInfo(tz_name))


def utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def past_cutoff_minute(day: date, now: datetime) -> int | None:
    """Return the minute of ``day`` before which slot starts are in the past.

    ``now`` must already be in venue-local time. ``None`` means nothing on
    ``day`` has passed yet.
    """
    today = now.date()
    if day > today:
        return None
    if day < today:
        return MINUTES_PER_DAY
    return now.hour * 60 + now.minute


def has_passed(day: date, minute: int, now: datetime) -> bool:
    """True when the wall-clock moment ``day`` + ``minute`` is not after ``now``."""
    cutoff = past_cutoff_minute(day, now)
    return cutoff is not None and minute <= cutoff
