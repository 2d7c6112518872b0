"""Daily prayer schedule: next/passed flags, 12-hour formatting and countdowns."""

import datetime
import re

from salati.location import get_timezone
from salati.models import (
    PRAYER_NAMES,
    PRAYER_ORDER,
    InvalidInputError,
    PrayerId,
    PrayerTime,
)
from salati.solar import SHAFII_SHADOW_FACTOR, prayer_moments

PRAYER_STATUSES = (
    "before_fajr",
    "after_fajr",
    "after_sunrise",
    "after_dhuhr",
    "after_asr",
    "after_maghrib",
    "after_isha",
)

_TIME_12H_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*(AM|PM)\s*$", re.IGNORECASE)
_TIME_24H_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})")
_COUNTDOWN_RE = re.compile(r"(\d+)h\s*(\d+)m|(\d+)m")


def format_time_12h(hour: int, minute: int) -> str:
    """Format a 24-hour clock time as "H:MM AM/PM"."""
    hour12 = 12 if hour % 12 == 0 else hour % 12
    period = "PM" if hour >= 12 else "AM"
    return f"{hour12}:{minute:02d} {period}"


def parse_time_12h(text: str) -> tuple:
    """Parse "H:MM AM/PM" back into a 24-hour (hour, minute) pair."""
    match = _TIME_12H_RE.match(text or "")
    if not match:
        raise InvalidInputError(f"Invalid time format: {text!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if not 1 <= hour <= 12 or minute > 59:
        raise InvalidInputError(f"Invalid time values: {text!r}")
    period = match.group(3).upper()
    if period == "PM" and hour != 12:
        hour += 12
    elif period == "AM" and hour == 12:
        hour = 0
    return hour, minute


def annotate_prayers(moments: list, now: datetime.datetime) -> list:
    """
    Turn raw prayer moments into display entries relative to `now`.

    An entry is passed when its minute of the day is <= now's. The first
    entry that is not passed is the next one; when every entry has passed
    the next one wraps to index 0 (tomorrow's Fajr).
    """
    now_minutes = now.hour * 60 + now.minute
    next_index = next(
        (i for i, moment in enumerate(moments) if moment.minutes > now_minutes), 0
    )
    return [
        PrayerTime(
            id=moment.id,
            name=PRAYER_NAMES[moment.id],
            formatted_time=format_time_12h(moment.hour, moment.minute),
            is_next=index == next_index,
            is_passed=moment.minutes <= now_minutes,
            minutes=moment.minutes,
        )
        for index, moment in enumerate(moments)
    ]


def _localize(dt: datetime.datetime, tz) -> datetime.datetime:
    if dt.tzinfo is not None:
        return dt.astimezone(tz)
    if hasattr(tz, "localize"):
        return tz.localize(dt)
    return dt.replace(tzinfo=tz)


def get_prayer_times(
    coordinate,
    now: datetime.datetime = None,
    tz=None,
    shadow_factor: float = SHAFII_SHADOW_FACTOR,
) -> list:
    """
    Compute and annotate today's six prayer times for `coordinate`.

    `tz` may be an IANA name or a tzinfo; `now` defaults to the current
    instant in that zone (or in the system zone when `tz` is None).
    """
    tzinfo = get_timezone(tz) if isinstance(tz, str) else tz
    if now is None:
        now = datetime.datetime.now(tzinfo) if tzinfo else datetime.datetime.now().astimezone()
    elif tzinfo is not None:
        now = _localize(now, tzinfo)
    moments = prayer_moments(coordinate, now, shadow_factor=shadow_factor)
    return annotate_prayers(moments, now)


def time_str_to_today_dt(time_str: str, tz=None, now: datetime.datetime = None) -> datetime.datetime:
    """
    Convert "H:MM AM/PM" (or 24-hour "HH:MM") to a datetime on the day of `now`.
    If tz is None and now is not given, returns a naive datetime.
    """
    if now is None:
        now = datetime.datetime.now(tz) if tz else datetime.datetime.now()
    if _TIME_12H_RE.match(time_str):
        hour, minute = parse_time_12h(time_str)
    else:
        match = _TIME_24H_RE.match(time_str)
        if not match:
            raise InvalidInputError(f"Invalid time format: {time_str!r}")
        hour, minute = int(match.group(1)), int(match.group(2))
    return now.replace(hour=hour, minute=minute, second=0, microsecond=0)


def next_prayer_datetime(prayer: PrayerTime, now: datetime.datetime) -> datetime.datetime:
    """Datetime of `prayer` today, or tomorrow when it is no longer ahead of `now`."""
    hour, minute = divmod(prayer.minutes, 60)
    dt = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if dt <= now:
        dt = dt + datetime.timedelta(days=1)
        if hasattr(dt.tzinfo, "localize"):
            # same wall time tomorrow, with tomorrow's UTC offset
            dt = dt.tzinfo.localize(dt.replace(tzinfo=None))
    return dt


def get_next_prayer(prayers: list, now: datetime.datetime) -> tuple:
    """
    Return (prayer, prayer_datetime) for the entry flagged as next.
    Falls back to the first entry if none is flagged.
    """
    if not prayers:
        return None, None
    prayer = next((p for p in prayers if p.is_next), prayers[0])
    return prayer, next_prayer_datetime(prayer, now)


def seconds_until(target_dt: datetime.datetime, now: datetime.datetime = None) -> int:
    """Return seconds from now until target_dt (can be negative if past)."""
    if now is None:
        now = datetime.datetime.now(target_dt.tzinfo)
    delta = target_dt - now
    return int(delta.total_seconds())


def format_countdown(seconds: int) -> str:
    """Format seconds as "Xh Ym", or just "Ym" under an hour."""
    total_minutes = max(0, int(seconds) // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def parse_countdown(text: str) -> tuple:
    """Inverse of format_countdown. Unparseable text gives (0, 0)."""
    match = _COUNTDOWN_RE.search(text or "")
    if not match:
        return 0, 0
    if match.group(1) and match.group(2):
        return int(match.group(1)), int(match.group(2))
    return 0, int(match.group(3))


def time_until_next_prayer(prayers: list, now: datetime.datetime) -> str:
    prayer, prayer_dt = get_next_prayer(prayers, now)
    if prayer is None:
        return "Soon"
    return format_countdown(seconds_until(prayer_dt, now))


def current_prayer_status(prayers: list, now: datetime.datetime) -> str:
    """Name the interval of the day `now` falls in, e.g. "after_asr"."""
    by_id = {p.id: p.minutes for p in prayers}
    now_minutes = now.hour * 60 + now.minute
    for status, prayer_id in zip(PRAYER_STATUSES, PRAYER_ORDER):
        if now_minutes < by_id[prayer_id]:
            return status
    return PRAYER_STATUSES[-1]


def prayer_by_id(prayers: list, prayer_id) -> PrayerTime:
    prayer_id = PrayerId(prayer_id)
    for prayer in prayers:
        if prayer.id == prayer_id:
            return prayer
    raise KeyError(prayer_id.value)
