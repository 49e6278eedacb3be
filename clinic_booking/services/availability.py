# clinic_booking/services/availability.py
from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from clinic_booking.core.logging import get_logger
from clinic_booking.core.timeutils import local_day_bounds
from clinic_booking.services import google_calendar
from clinic_booking.services.google_calendar import BusyInterval
from clinic_booking.services.slots import Slot, generate_slots

logger = get_logger(__name__)


def filter_available(slots: Iterable[Slot], busy: Iterable[BusyInterval]) -> list[Slot]:
    busy = list(busy)
    return [
        slot for slot in slots
        if not any(slot.overlaps(busy_start, busy_end) for busy_start, busy_end in busy)
    ]


async def get_available_slots(day: date, today: Optional[date] = None) -> list[Slot]:
    """
    Generated slots for the day minus those overlapping a busy interval.

    Falls back to every generated slot when the calendar is unconfigured or
    unreachable.
    """
    slots = generate_slots(day, today)
    if not slots:
        logger.info("no_slots_for_day", date=day.isoformat())
        return []

    start_utc, end_utc = local_day_bounds(day)
    try:
        busy = await google_calendar.list_busy_intervals(start_utc, end_utc)
    except Exception as e:
        logger.warning("availability_degraded", reason="calendar_error", error=str(e), date=day.isoformat())
        return slots

    if busy is None:
        logger.info("availability_degraded", reason="calendar_unconfigured", date=day.isoformat())
        return slots

    available = filter_available(slots, busy)
    logger.info(
        "slots_available",
        date=day.isoformat(),
        busy=len(busy),
        available=[s.time for s in available],
    )
    return available
