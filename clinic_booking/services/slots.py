# clinic_booking/services/slots.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from clinic_booking.core.business import AVAILABILITY_WINDOWS, SLOT_MINUTES, WORKING_DAYS
from clinic_booking.core.timeutils import format_clock, local_datetime, now_local, to_utc_iso


@dataclass(frozen=True)
class Slot:
    """A bookable half-hour window on one local day."""
    start: datetime  # aware, clinic timezone
    end: datetime

    @property
    def time(self) -> str:
        return self.start.strftime("%H:%M")

    @property
    def label(self) -> str:
        return f"{format_clock(self.start.time())} - {format_clock(self.end.time())}"

    def overlaps(self, busy_start: datetime, busy_end: datetime) -> bool:
        # half-open intervals: touching edges do not overlap
        return self.start < busy_end and self.end > busy_start

    def to_dict(self) -> dict:
        return {
            "start": to_utc_iso(self.start),
            "end": to_utc_iso(self.end),
            "time": self.time,
            "label": self.label,
        }


def is_bookable_day(day: date, today: Optional[date] = None) -> bool:
    """Weekdays from today onwards."""
    if today is None:
        today = now_local().date()
    return day.weekday() in WORKING_DAYS and day >= today


def generate_slots(day: date, today: Optional[date] = None, now: Optional[datetime] = None) -> list[Slot]:
    """
    All slots for a day; empty for weekends and past days.

    On the current day, slots that have already started are dropped. Passing
    only `today` pins the calendar day without a clock cutoff.
    """
    if now is None and today is None:
        now = now_local()
    if now is not None:
        now = now_local(now)
        if today is None:
            today = now.date()
    if not is_bookable_day(day, today):
        return []

    step = timedelta(minutes=SLOT_MINUTES)
    slots: list[Slot] = []
    for window_start, window_end in AVAILABILITY_WINDOWS:
        current = local_datetime(day, window_start)
        limit = local_datetime(day, window_end)
        while current + step <= limit:
            if now is None or current > now:
                slots.append(Slot(start=current, end=current + step))
            current += step
    return slots


def find_slot(day: date, t: time, today: Optional[date] = None,
              now: Optional[datetime] = None) -> Optional[Slot]:
    for slot in generate_slots(day, today, now):
        if slot.start.time() == t:
            return slot
    return None
