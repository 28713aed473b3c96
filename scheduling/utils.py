"""Shared time, interval and identifier helpers used across the scheduling core."""

import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterator
from zoneinfo import ZoneInfo

from scheduling.config import settings


def parse_time_of_day(value: str) -> time:
    """Parse an ``HH:MM`` string into a time.

    Examples:
        >>> parse_time_of_day("09:30")
        datetime.time(9, 30)
    """
    return datetime.strptime(value.strip(), "%H:%M").time()


def format_time(value: time) -> str:
    """Render a time-of-day as ``HH:MM``."""
    return value.strftime("%H:%M")


def minutes_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def resolve_timezone(name: str) -> tzinfo:
    """Return a tzinfo for an IANA zone name; ``UTC`` needs no tz database."""
    if name.strip().upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name.strip())


def reference_tz() -> tzinfo:
    """The single time zone availability and bookings are expressed in."""
    return resolve_timezone(settings.scheduling.timezone)


def to_reference(value: datetime, tz: tzinfo) -> datetime:
    """Express a datetime in the reference zone; naive values are taken as already local."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def combine(day: date, at: time, tz: tzinfo) -> datetime:
    """Absolute start of ``at`` on ``day`` in the reference zone."""
    return datetime.combine(day, at, tzinfo=tz)


def to_utc(value: datetime) -> datetime:
    """UTC instant of an aware datetime.

    Arithmetic and comparison between datetimes sharing one zone object
    happen on wall-clock values, so anything that measures elapsed time
    or orders instants goes through here first.
    """
    return value.astimezone(timezone.utc)


def wall_time_exists(value: datetime) -> bool:
    """False for wall times skipped by a forward DST transition."""
    round_trip = to_utc(value).astimezone(value.tzinfo)
    return round_trip.replace(tzinfo=None) == value.replace(tzinfo=None)


def shift(value: datetime, delta: timedelta) -> datetime:
    """Move an aware datetime by elapsed time, keeping its zone."""
    return (to_utc(value) + delta).astimezone(value.tzinfo)


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every calendar date from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def intervals_overlap(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """Half-open overlap test on UTC instants: touching intervals do not overlap."""
    return to_utc(a_start) < to_utc(b_end) and to_utc(b_start) < to_utc(a_end)


@dataclass(frozen=True)
class TimeRange:
    """Half-open ``[start, end)`` interval of absolute datetimes."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if to_utc(self.end) < to_utc(self.start):
            raise ValueError(f"TimeRange end {self.end} is before start {self.start}")

    @classmethod
    def for_day(cls, day: date, tz: tzinfo) -> "TimeRange":
        start = datetime.combine(day, time.min, tzinfo=tz)
        end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
        return cls(start=start, end=end)

    @property
    def duration(self) -> timedelta:
        return to_utc(self.end) - to_utc(self.start)

    def overlaps(self, other: "TimeRange") -> bool:
        return intervals_overlap(self.start, self.end, other.start, other.end)


def new_id(prefix: str) -> str:
    """Generate a short, human-readable identifier, e.g. ``BK-1A2B3C4D``."""
    return f"{prefix}-{uuid.uuid4().hex[:8].upper()}"
