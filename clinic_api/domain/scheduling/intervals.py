"""Time interval helpers for appointment scheduling.

Appointments occupy half-open intervals ``[start, end)``: an appointment that
ends at 14:30 does not collide with one that starts at 14:30.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo


def to_utc(value: datetime, default_tz: Optional[tzinfo] = None) -> datetime:
    """
    Normalize a datetime to an aware UTC instant.

    Naive values are read as wall-clock time in ``default_tz`` (UTC when not
    given) before conversion.
    """
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        value = value.replace(tzinfo=default_tz or timezone.utc)
    try:
        return value.astimezone(timezone.utc)
    except OverflowError as e:
        raise ValueError("Datetime is out of the supported range") from e


def zone(name: str) -> tzinfo:
    """Resolve an IANA zone name, treating "UTC" specially"""
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


@dataclass(frozen=True)
class TimeInterval:
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("TimeInterval requires timezone-aware datetimes")
        if self.end <= self.start:
            raise ValueError("Interval end must be after its start")

    @classmethod
    def from_duration(cls, start: datetime, duration_minutes: int) -> "TimeInterval":
        if duration_minutes <= 0:
            raise ValueError("Duration must be a positive number of minutes")
        try:
            end = start + timedelta(minutes=duration_minutes)
        except OverflowError as e:
            raise ValueError("Appointment would end past the supported date range") from e
        return cls(start, end)

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and other.start < self.end

    def __contains__(self, instant: datetime) -> bool:
        return self.start <= instant < self.end
