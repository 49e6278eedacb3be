#!/usr/bin/env python3
"""
Terminal booking wizard: pick a date, pick a slot, enter details, confirm.
Talks to the booking API over HTTP.
"""
from __future__ import annotations

import argparse
from datetime import date, timedelta
from typing import Callable, List, Optional

from clinic_booking.client.api import BookingApiClient, BookingApiError
from clinic_booking.core.business import APPOINTMENT_MODES
from clinic_booking.core.timeutils import LOCAL_TZ, format_display_date, today_local
from clinic_booking.services.slots import is_bookable_day
from clinic_booking.services.wizard import BookingStep, BookingWizard, WizardTransitionError

BACK = "b"
QUIT = "q"
NEW = "n"


class _Quit(Exception):
    pass


class WizardCLI:
    def __init__(
        self,
        client: BookingApiClient,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
        today: Optional[date] = None,
        days_shown: int = 10,
    ) -> None:
        self.client = client
        self.wizard = BookingWizard()
        self._input = input_fn
        self._print = output_fn
        self._today = today
        self.days_shown = days_shown

    @property
    def today(self) -> date:
        return self._today or today_local()

    def ask(self, prompt: str) -> str:
        try:
            answer = self._input(prompt).strip()
        except EOFError:
            raise _Quit()
        if answer.lower() == QUIT:
            raise _Quit()
        return answer

    def show_steps(self) -> None:
        parts = []
        for index, (label, active) in enumerate(self.wizard.steps(), start=1):
            parts.append(f"[{index}. {label}]" if active else f" {index}. {label} ")
        self._print(" > ".join(parts))

    def upcoming_days(self) -> List[date]:
        days: List[date] = []
        cur = self.today
        while len(days) < self.days_shown:
            if is_bookable_day(cur, self.today):
                days.append(cur)
            cur += timedelta(days=1)
        return days

    # ---------- steps ----------

    def date_step(self) -> None:
        days = self.upcoming_days()
        self._print("Available days (Monday to Friday):")
        for index, day in enumerate(days, start=1):
            self._print(f"  {index:>2}. {day.strftime('%A')} {format_display_date(day)}")

        answer = self.ask("Choose a day number or enter a date (YYYY-MM-DD), q to quit: ")
        try:
            if answer.isdigit() and 1 <= int(answer) <= len(days):
                chosen = days[int(answer) - 1]
            else:
                chosen = date.fromisoformat(answer)
            self.wizard.select_date(chosen, self.today)
        except (ValueError, WizardTransitionError):
            self._print("Please choose a weekday from today onwards.")

    def time_step(self) -> None:
        slots = self.client.get_available_slots(self.wizard.selected_date)
        self.wizard.load_slots(slots)
        if not slots:
            self._print("No available time slots for this date. Please select a different date.")
            self.wizard.back()
            return

        self._print(f"Available time slots for {format_display_date(self.wizard.selected_date)} ({LOCAL_TZ}):")
        for index, slot in enumerate(slots, start=1):
            self._print(f"  {index}. {slot['label']}")

        answer = self.ask("Choose a slot number, b to go back, q to quit: ")
        if answer.lower() == BACK:
            self.wizard.back()
            return
        try:
            if answer.isdigit() and 1 <= int(answer) <= len(slots):
                answer = slots[int(answer) - 1]["time"]
            self.wizard.select_time(answer)
        except WizardTransitionError:
            self._print("Please choose one of the listed slots.")

    def detail_step(self) -> None:
        self._print(f"Booking {format_display_date(self.wizard.selected_date)} at {self.wizard.selected_time}")
        name = self.ask("Full name (b to go back): ")
        if name.lower() == BACK:
            self.wizard.back()
            return
        phone = self.ask("Phone number: ")
        email = self.ask("Email: ")
        modes = self.client.appointment_modes().get("modes") or list(APPOINTMENT_MODES)
        mode = self.ask(f"Appointment mode ({'/'.join(modes)}): ")
        notes = self.ask("Notes (optional): ")

        payload = self.wizard.booking_payload(name, phone, email, mode, notes)
        try:
            result = self.client.book_appointment(payload)
        except BookingApiError as e:
            self._print(f"Booking failed: {e.message}")
            if e.is_conflict:
                self._print("That slot was just taken. Please pick another time.")
                self.wizard.back()
            return

        self.wizard.complete(result)

    def confirmation_step(self) -> None:
        result = self.wizard.confirmation or {}
        appointment = result.get("appointment", {})
        self._print("Appointment confirmed!")
        self._print(f"  Name: {appointment.get('name', '')}")
        self._print(f"  Date: {format_display_date(self.wizard.selected_date)}")
        self._print(f"  Time: {appointment.get('time', self.wizard.selected_time)}")
        self._print(f"  Mode: {appointment.get('mode', '')}")
        if result.get("smsMessage"):
            self._print("")
            self._print(result["smsMessage"])

        answer = self.ask("n for a new booking, q to quit: ")
        if answer.lower() == NEW:
            self.wizard.new_booking()

    def run(self) -> int:
        handlers = {
            BookingStep.DATE_SELECTION: self.date_step,
            BookingStep.TIME_SELECTION: self.time_step,
            BookingStep.DETAIL_ENTRY: self.detail_step,
            BookingStep.CONFIRMATION: self.confirmation_step,
        }
        try:
            while True:
                self.show_steps()
                handlers[self.wizard.step]()
        except _Quit:
            self._print("Goodbye.")
        return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Book a clinic appointment from the terminal")
    parser.add_argument("--api-url", default=None, help="Booking API base URL, e.g. http://localhost:3001/api")
    args = parser.parse_args(argv)

    with BookingApiClient(base_url=args.api_url) as client:
        health = client.check_health()
        if health.get("status") != "OK":
            print("⚠️  Booking service is unreachable; showing default slots.")
        return WizardCLI(client).run()


if __name__ == "__main__":
    raise SystemExit(main())
