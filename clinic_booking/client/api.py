# clinic_booking/client/api.py
"""
HTTP client used by the booking wizard to talk to the booking API.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Union

import httpx

from clinic_booking.core.business import APPOINTMENT_MODES
from clinic_booking.core.config import settings

logger = logging.getLogger(__name__)

# Shown when the API cannot be reached, so the wizard can still proceed
DEFAULT_SLOTS: List[Dict[str, str]] = [
    {"time": "10:00", "label": "10:00 AM - 10:30 AM", "start": "", "end": ""},
    {"time": "10:30", "label": "10:30 AM - 11:00 AM", "start": "", "end": ""},
    {"time": "11:00", "label": "11:00 AM - 11:30 AM", "start": "", "end": ""},
    {"time": "11:30", "label": "11:30 AM - 12:00 PM", "start": "", "end": ""},
    {"time": "15:00", "label": "3:00 PM - 3:30 PM", "start": "", "end": ""},
    {"time": "15:30", "label": "3:30 PM - 4:00 PM", "start": "", "end": ""},
    {"time": "16:00", "label": "4:00 PM - 4:30 PM", "start": "", "end": ""},
    {"time": "16:30", "label": "4:30 PM - 5:00 PM", "start": "", "end": ""},
]


class BookingApiError(Exception):
    """The API rejected a booking (400/409/500) or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_conflict(self) -> bool:
        return self.status_code == 409


class BookingApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=timeout or settings.API_TIMEOUT,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "BookingApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def get_available_slots(self, day: Union[str, date]) -> List[Dict[str, str]]:
        date_string = day if isinstance(day, str) else day.isoformat()
        try:
            response = self._client.get(f"/available-slots/{date_string}")
            response.raise_for_status()
            return response.json().get("slots", [])
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Falling back to default slots for %s: %s", date_string, e)
            return [dict(s) for s in DEFAULT_SLOTS]

    def book_appointment(self, booking: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self._client.post("/book-appointment", json=booking)
        except httpx.HTTPError as e:
            raise BookingApiError(f"Could not reach the booking service: {e}") from e

        if response.is_error:
            try:
                message = response.json().get("error") or "Unknown error"
            except ValueError:
                message = f"Booking failed with status {response.status_code}"
            raise BookingApiError(message, status_code=response.status_code)

        return response.json()

    def check_health(self) -> Dict[str, Any]:
        try:
            response = self._client.get("/health")
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Health check failed: %s", e)
            return {"status": "ERROR", "googleCalendar": False}

    def appointment_modes(self) -> Dict[str, List[str]]:
        try:
            response = self._client.get("/appointment-modes")
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Could not fetch appointment modes: %s", e)
            return {"modes": list(APPOINTMENT_MODES)}
