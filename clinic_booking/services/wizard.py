# clinic_booking/services/wizard.py
"""
Booking wizard state machine.

date-selection -> time-selection -> detail-entry -> confirmation, with
"back" from time-selection and detail-entry, and "new booking" from
confirmation. Held in memory for one user session.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from clinic_booking.services.slots import is_bookable_day


class BookingStep(str, Enum):
    DATE_SELECTION = "date-selection"
    TIME_SELECTION = "time-selection"
    DETAIL_ENTRY = "detail-entry"
    CONFIRMATION = "confirmation"


STEP_LABELS = {
    BookingStep.DATE_SELECTION: "Select Date",
    BookingStep.TIME_SELECTION: "Select Time",
    BookingStep.DETAIL_ENTRY: "Enter Details",
    BookingStep.CONFIRMATION: "Confirmation",
}


class WizardTransitionError(Exception):
    """An action is not allowed in the wizard's current step."""


@dataclass
class BookingWizard:
    step: BookingStep = BookingStep.DATE_SELECTION
    selected_date: Optional[date] = None
    selected_time: Optional[str] = None
    slots: List[Dict[str, Any]] = field(default_factory=list)
    confirmation: Optional[Dict[str, Any]] = None

    def _require(self, step: BookingStep, action: str) -> None:
        if self.step != step:
            raise WizardTransitionError(f"cannot {action} during {self.step.value}")

    def select_date(self, day: date, today: Optional[date] = None) -> None:
        self._require(BookingStep.DATE_SELECTION, "select a date")
        if not is_bookable_day(day, today):
            raise WizardTransitionError(f"{day.isoformat()} is not a bookable day")
        self.selected_date = day
        self.selected_time = None
        self.slots = []
        self.step = BookingStep.TIME_SELECTION

    def load_slots(self, slots: List[Dict[str, Any]]) -> None:
        self._require(BookingStep.TIME_SELECTION, "load slots")
        self.slots = list(slots)

    def select_time(self, time_str: str) -> None:
        self._require(BookingStep.TIME_SELECTION, "select a time")
        if time_str not in {s.get("time") for s in self.slots}:
            raise WizardTransitionError(f"{time_str} is not an available slot")
        self.selected_time = time_str
        self.step = BookingStep.DETAIL_ENTRY

    def complete(self, confirmation: Dict[str, Any]) -> None:
        self._require(BookingStep.DETAIL_ENTRY, "confirm a booking")
        self.confirmation = confirmation
        self.step = BookingStep.CONFIRMATION

    def back(self) -> None:
        if self.step == BookingStep.DETAIL_ENTRY:
            self.selected_time = None
            self.step = BookingStep.TIME_SELECTION
        elif self.step == BookingStep.TIME_SELECTION:
            self.selected_date = None
            self.slots = []
            self.step = BookingStep.DATE_SELECTION
        else:
            raise WizardTransitionError(f"cannot go back from {self.step.value}")

    def new_booking(self) -> None:
        self._require(BookingStep.CONFIRMATION, "start a new booking")
        self.step = BookingStep.DATE_SELECTION
        self.selected_date = None
        self.selected_time = None
        self.slots = []
        self.confirmation = None

    def booking_payload(self, name: str, phone: str, email: str, mode: str, notes: str = "") -> Dict[str, str]:
        """Request body for POST /api/book-appointment from the current selection."""
        self._require(BookingStep.DETAIL_ENTRY, "build a booking")
        return {
            "name": name,
            "phone": phone,
            "email": email,
            "notes": notes,
            "date": self.selected_date.isoformat(),
            "time": self.selected_time,
            "mode": mode.lower(),
        }

    def steps(self) -> Iterator[Tuple[str, bool]]:
        """Step indicator: (label, active) in flow order."""
        for step in BookingStep:
            yield STEP_LABELS[step], step == self.step
