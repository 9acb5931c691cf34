"""Calendar-date and hour handling anchored to a venue's local time zone."""
from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from scheduling.errors import ValidationError

WEEKDAYS = ("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY")


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def parse_date(value, field: str = "date") -> date:
    # datetime is a date subclass; a timestamp is not a calendar date
    if isinstance(value, datetime):
        raise ValidationError(f"{field} must be a calendar date, not a timestamp")
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required. Use YYYY-MM-DD")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError(f"Invalid {field}. Use YYYY-MM-DD")


def parse_hour(value, field: str, allow_midnight_end: bool = False) -> int:
    """Accepts 18 or "18:00". Only whole hours are valid; 24 only as an exclusive end."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an hour")
    if isinstance(value, str):
        text = value.strip()
        hh, sep, mm = text.partition(":")
        if sep and mm != "00":
            raise ValidationError(f"{field} must be on the hour (HH:00)")
        if not hh.isdigit():
            raise ValidationError(f"{field} must be an hour")
        value = int(hh)
    if not isinstance(value, int):
        raise ValidationError(f"{field} must be an hour")

    upper = 24 if allow_midnight_end else 23
    lower = 1 if allow_midnight_end else 0
    if value < lower or value > upper:
        raise ValidationError(f"{field} must be between {lower} and {upper}")
    return value


def zone_for(tz_name: Optional[str]) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown time zone {tz_name!r}")


def local_now(tz_name: Optional[str], now: Optional[datetime] = None) -> datetime:
    """Current time in the venue zone. A naive `now` is taken as UTC, like our DB timestamps."""
    zone = zone_for(tz_name)
    if now is None:
        return datetime.now(zone)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(zone)


def slot_start(day: date, hour: int, tz_name: Optional[str]) -> datetime:
    return datetime(day.year, day.month, day.day, hour, tzinfo=zone_for(tz_name))


def is_past(day: date, hour: int, tz_name: Optional[str], now: Optional[datetime] = None) -> bool:
    return slot_start(day, hour, tz_name) <= local_now(tz_name, now)


def iter_days(date_from: date, date_to: date) -> Iterator[date]:
    day = date_from
    while day <= date_to:
        yield day
        day += timedelta(days=1)


def utc_naive(now: Optional[datetime] = None) -> datetime:
    """Naive UTC timestamp, the form stored in DateTime columns."""
    if now is None:
        return datetime.utcnow()
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)
    return now
