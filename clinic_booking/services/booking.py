# clinic_booking/services/booking.py
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Awaitable, Optional

import phonenumbers
from phonenumbers import PhoneNumberFormat

from clinic_booking.core.config import settings
from clinic_booking.core.errors import (
    BookingValidationError,
    ErrorSeverity,
    SlotConflictError,
    UpstreamServiceError,
    log_error,
)
from clinic_booking.core.logging import get_logger
from clinic_booking.core.timeutils import (
    format_clock,
    format_display_date,
    parse_date,
    parse_time,
    to_utc,
)
from clinic_booking.schemas.booking import (
    MODE_ALIASES,
    AppointmentMode,
    AppointmentOut,
    BookingRequest,
    BookingResponse,
)
from clinic_booking.services import google_calendar, notifications
from clinic_booking.services.slots import Slot, find_slot, is_bookable_day

logger = get_logger(__name__)

REQUIRED_FIELDS = ("name", "phone", "email", "date", "time", "mode")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class ValidatedBooking:
    name: str
    phone: str  # E.164
    email: str
    notes: Optional[str]
    mode: AppointmentMode
    slot: Slot

    @property
    def day(self) -> date:
        return self.slot.start.date()


# ---------- Validation ----------

def _normalize_phone(raw: str) -> str:
    try:
        parsed = phonenumbers.parse(raw, settings.DEFAULT_PHONE_REGION)
    except phonenumbers.phonenumberutil.NumberParseException:
        raise BookingValidationError("Please enter a valid phone number.", fields=["phone"])
    if not phonenumbers.is_possible_number(parsed):
        raise BookingValidationError("Please enter a valid phone number.", fields=["phone"])
    return phonenumbers.format_number(parsed, PhoneNumberFormat.E164)


def _normalize_email(raw: str) -> str:
    if not _EMAIL_RE.match(raw):
        raise BookingValidationError("Please enter a valid email address.", fields=["email"])
    return raw


def _normalize_mode(raw: str) -> AppointmentMode:
    mode = MODE_ALIASES.get(raw.lower())
    if mode is None:
        raise BookingValidationError(
            "Appointment mode must be 'online' or 'offline'.", fields=["mode"]
        )
    return mode


def validate_booking(req: BookingRequest, today: Optional[date] = None) -> ValidatedBooking:
    """
    Check presence first (every missing field reported together), then shape,
    then that the requested time is one of the day's slots.
    """
    missing = [f for f in REQUIRED_FIELDS if not getattr(req, f)]
    if missing:
        raise BookingValidationError("Please fill the required fields", fields=missing)

    day = parse_date(req.date)
    start_time = parse_time(req.time)
    mode = _normalize_mode(req.mode)
    phone = _normalize_phone(req.phone)
    email = _normalize_email(req.email)

    if not is_bookable_day(day, today):
        raise BookingValidationError(
            "Appointments are available Monday to Friday, from today onwards.", fields=["date"]
        )

    slot = find_slot(day, start_time, today)
    if slot is None:
        raise BookingValidationError(
            "Please choose one of the available time slots.", fields=["time"]
        )

    return ValidatedBooking(
        name=" ".join(req.name.split()),
        phone=phone,
        email=email,
        notes=req.notes or None,
        mode=mode,
        slot=slot,
    )


# ---------- Notifications ----------

async def _best_effort(channel: str, send: Awaitable[bool]) -> bool:
    """Notification failures are logged, never propagated."""
    try:
        return await send
    except Exception as e:
        log_error(e, {"channel": channel}, ErrorSeverity.MEDIUM)
        return False


# ---------- Core orchestration ----------

async def book_appointment(req: BookingRequest, today: Optional[date] = None) -> BookingResponse:
    """
    1) Validate the request (no side effects on failure)
    2) Re-check the doctor's calendar for a conflict at the exact slot
    3) Create the calendar event
    4) Send email and SMS confirmations, best effort
    """
    booking = validate_booking(req, today)
    slot = booking.slot

    logger.info("booking_requested", date=booking.day.isoformat(), time=slot.time, mode=booking.mode.value)

    # 2) Conflict check with the same overlap rule used for availability
    try:
        busy = await google_calendar.list_busy_intervals(to_utc(slot.start), to_utc(slot.end))
    except Exception as e:
        raise UpstreamServiceError("Could not check the doctor's calendar") from e

    if busy is None:
        logger.warning("booking_degraded", reason="calendar_unconfigured")
    elif any(slot.overlaps(busy_start, busy_end) for busy_start, busy_end in busy):
        logger.info("booking_conflict", date=booking.day.isoformat(), time=slot.time)
        raise SlotConflictError("This time slot is already booked")

    # 3) The calendar event is the appointment record
    try:
        event = await google_calendar.create_calendar_event(
            name=booking.name,
            phone=booking.phone,
            email=booking.email,
            mode=booking.mode.value,
            starts_at=slot.start,
            ends_at=slot.end,
            notes=booking.notes,
        )
    except Exception as e:
        raise UpstreamServiceError("Could not create the calendar event") from e

    event_id = event['event_id'] if event else None

    # 4) Confirmations
    display_date = format_display_date(booking.day)
    display_time = format_clock(slot.start.time())
    sms_message = notifications.compose_sms(display_date, display_time)

    email_sent = await _best_effort(
        "email",
        notifications.send_confirmation_email(
            booking.email, booking.name, display_date, display_time, booking.mode.value
        ),
    )
    sms_sent = await _best_effort("sms", notifications.send_sms(booking.phone, sms_message))

    logger.info("booking_confirmed", event_id=event_id, email_sent=email_sent, sms_sent=sms_sent)

    return BookingResponse(
        success=True,
        message="Appointment successfully booked",
        eventId=event_id,
        smsMessage=sms_message,
        appointment=AppointmentOut(
            name=booking.name,
            phone=booking.phone,
            email=booking.email,
            notes=booking.notes,
            date=booking.day.isoformat(),
            time=slot.time,
            startTime=slot.start.isoformat(),
            endTime=slot.end.isoformat(),
            mode=booking.mode,
        ),
        notifications={"email": email_sent, "sms": sms_sent},
    )
