# clinic_booking/services/google_calendar.py
"""
Google Calendar integration: the doctor's calendar is the only record of
booked appointments and the source of truth for conflicts.
"""
from __future__ import annotations

import asyncio
import json
from datetime import date, datetime, time
from typing import Optional, Dict, Any, List, Tuple

import google_auth_httplib2
import httplib2
from google.oauth2 import service_account
from googleapiclient.discovery import build

from clinic_booking.core.business import EVENT_REMINDERS
from clinic_booking.core.config import settings
from clinic_booking.core.logging import get_logger
from clinic_booking.core.timeutils import LOCAL_TZ, local_datetime, parse_rfc3339, to_utc_iso

logger = get_logger(__name__)

SCOPES = ['https://www.googleapis.com/auth/calendar']

BusyInterval = Tuple[datetime, datetime]

_calendar_service = None
_credentials = None
_disabled_logged = False


def _log_disabled(reason: str) -> None:
    global _disabled_logged
    if not _disabled_logged:
        logger.warning("calendar_disabled", reason=reason)
        _disabled_logged = True


def get_calendar_service():
    """Get or create the Google Calendar service with service account authentication"""
    global _calendar_service, _credentials

    if _calendar_service is not None:
        return _calendar_service

    if not settings.GOOGLE_CALENDAR_ENABLED:
        _log_disabled("GOOGLE_CALENDAR_ENABLED is off")
        return None

    service_account_info = settings.GOOGLE_SERVICE_ACCOUNT_JSON
    if not service_account_info:
        _log_disabled("GOOGLE_SERVICE_ACCOUNT_JSON not set")
        return None

    try:
        credentials_info = json.loads(service_account_info)
    except json.JSONDecodeError as e:
        logger.error("calendar_credentials_invalid", error=str(e))
        return None

    try:
        credentials = service_account.Credentials.from_service_account_info(
            credentials_info,
            scopes=SCOPES
        )
        _calendar_service = build('calendar', 'v3', credentials=credentials, cache_discovery=False)
    except (ValueError, KeyError) as e:
        logger.error("calendar_init_failed", error=str(e))
        return None

    _credentials = credentials
    logger.info("calendar_initialized", calendar_id=settings.GOOGLE_CALENDAR_ID)
    return _calendar_service


def reset_calendar_service() -> None:
    global _calendar_service, _credentials, _disabled_logged
    _calendar_service = None
    _credentials = None
    _disabled_logged = False


def is_calendar_configured() -> bool:
    return get_calendar_service() is not None


def _execute(request) -> Dict[str, Any]:
    """
    Run a prepared API request on a worker thread.

    httplib2.Http is not thread-safe, so every call gets its own authorized
    transport; the service object only builds requests.
    """
    http = None
    if _credentials is not None:
        http = google_auth_httplib2.AuthorizedHttp(_credentials, http=httplib2.Http())
    return request.execute(http=http)

def _event_bound(boundary: Dict[str, Any]) -> datetime:
    """An event start/end: timed events carry dateTime, all-day events carry date."""
    if boundary.get('dateTime'):
        return parse_rfc3339(boundary['dateTime'])
    return local_datetime(date.fromisoformat(boundary['date']), time(0, 0))


async def list_busy_intervals(
    start_utc: datetime,
    end_utc: datetime,
    calendar_id: Optional[str] = None
) -> Optional[List[BusyInterval]]:
    """
    Busy intervals on the doctor's calendar that intersect [start_utc, end_utc).

    Returns None when the calendar integration is not configured. API errors
    propagate to the caller.
    """
    service = get_calendar_service()
    if not service:
        return None

    calendar_id = calendar_id or settings.GOOGLE_CALENDAR_ID

    request = service.events().list(
        calendarId=calendar_id,
        timeMin=to_utc_iso(start_utc),
        timeMax=to_utc_iso(end_utc),
        singleEvents=True,
        orderBy='startTime',
        timeZone=str(LOCAL_TZ),
    )
    events_result = await asyncio.to_thread(_execute, request)

    busy: List[BusyInterval] = []
    for event in events_result.get('items', []):
        if event.get('status') == 'cancelled':
            continue
        try:
            busy.append((_event_bound(event['start']), _event_bound(event['end'])))
        except (KeyError, ValueError):
            logger.warning("calendar_event_unparseable", event_id=event.get('id'))
            continue

    logger.debug("busy_intervals_fetched", count=len(busy))
    return busy


def build_event_body(
    name: str,
    phone: str,
    email: str,
    mode: str,
    starts_at: datetime,
    ends_at: datetime,
    notes: Optional[str] = None,
) -> Dict[str, Any]:
    description = (
        f"Patient: {name}\n"
        f"Phone: {phone}\n"
        f"Email: {email}\n"
        f"Appointment mode: {mode}\n"
        f"Notes: {notes or 'No additional notes'}"
    )
    return {
        'summary': f"Appointment with {name}",
        'description': description,
        'start': {
            'dateTime': to_utc_iso(starts_at),
            'timeZone': str(LOCAL_TZ),
        },
        'end': {
            'dateTime': to_utc_iso(ends_at),
            'timeZone': str(LOCAL_TZ),
        },
        'reminders': {
            'useDefault': False,
            'overrides': [dict(r) for r in EVENT_REMINDERS],
        },
    }


async def create_calendar_event(
    name: str,
    phone: str,
    email: str,
    mode: str,
    starts_at: datetime,
    ends_at: datetime,
    notes: Optional[str] = None,
    calendar_id: Optional[str] = None
) -> Optional[Dict[str, Any]]:
    """
    Insert the appointment event on the doctor's calendar.

    Returns None when the calendar integration is not configured. API errors
    propagate to the caller.
    """
    service = get_calendar_service()
    if not service:
        logger.debug("calendar_unavailable_skip_event")
        return None

    calendar_id = calendar_id or settings.GOOGLE_CALENDAR_ID
    body = build_event_body(name, phone, email, mode, starts_at, ends_at, notes)

    request = service.events().insert(calendarId=calendar_id, body=body)
    event = await asyncio.to_thread(_execute, request)

    logger.info(
        "calendar_event_created",
        event_id=event.get('id'),
        start=starts_at.isoformat(),
    )

    return {
        'event_id': event.get('id'),
        'event_link': event.get('htmlLink', ''),
        'calendar_id': calendar_id,
        'start_time': body['start']['dateTime'],
        'end_time': body['end']['dateTime'],
        'summary': body['summary'],
    }
