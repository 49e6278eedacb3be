# clinic_booking/core/timeutils.py
"""
Civil-time helpers for the clinic timezone.

One rule everywhere: a (date, HH:MM) pair is wall-clock time in the clinic
timezone. It is made aware with zoneinfo and converted to UTC only when
talking to the calendar API.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from clinic_booking.core.config import settings
from clinic_booking.core.errors import BookingValidationError

LOCAL_TZ = ZoneInfo(settings.CLINIC_TIMEZONE)
UTC = timezone.utc

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^\d{1,2}:\d{2}$")


def parse_date(s: str) -> date:
    """Parse a strict YYYY-MM-DD calendar-day string."""
    s = (s or "").strip()
    if not _DATE_RE.match(s):
        raise BookingValidationError("Invalid date. Use the YYYY-MM-DD format.", fields=["date"])
    try:
        return date.fromisoformat(s)
    except ValueError:
        raise BookingValidationError(f"Invalid date: {s}", fields=["date"])


def parse_time(s: str) -> time:
    """Parse a 24h HH:MM time-of-day string."""
    s = (s or "").strip()
    if not _TIME_RE.match(s):
        raise BookingValidationError("Invalid time. Use the HH:MM format.", fields=["time"])
    hour, minute = (int(p) for p in s.split(":"))
    if hour > 23 or minute > 59:
        raise BookingValidationError(f"Invalid time: {s}", fields=["time"])
    return time(hour, minute)


def now_local(now: Optional[datetime] = None) -> datetime:
    if now is None:
        return datetime.now(tz=LOCAL_TZ)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return now.astimezone(LOCAL_TZ)


def today_local(now: Optional[datetime] = None) -> date:
    return now_local(now).date()


def local_datetime(d: date, t: time) -> datetime:
    return datetime.combine(d, t, tzinfo=LOCAL_TZ)


def to_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=LOCAL_TZ)
    return dt.astimezone(UTC)


def to_utc_iso(dt: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a trailing Z."""
    return to_utc(dt).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def local_day_bounds(d: date) -> tuple[datetime, datetime]:
    """Half-open [start, end) of the local day, in UTC."""
    start = local_datetime(d, time(0, 0))
    end = local_datetime(d + timedelta(days=1), time(0, 0))
    return to_utc(start), to_utc(end)


def parse_rfc3339(s: str) -> datetime:
    """Parse a calendar API dateTime (RFC 3339, 'Z' or numeric offset)."""
    dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=LOCAL_TZ)
    return dt


def format_clock(t: time) -> str:
    """10:30 -> '10:30 AM', 15:00 -> '3:00 PM', 12:00 -> '12:00 PM'."""
    hour = t.hour % 12 or 12
    suffix = "AM" if t.hour < 12 else "PM"
    return f"{hour}:{t.minute:02d} {suffix}"


def format_display_date(d: date) -> str:
    return f"{d.day}/{d.month}/{d.year}"
