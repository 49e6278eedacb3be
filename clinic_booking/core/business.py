# clinic_booking/core/business.py
from __future__ import annotations
from datetime import time

from clinic_booking.core.config import settings

# Daily availability windows (local clinic time), end exclusive
AVAILABILITY_WINDOWS = (
    (time(10, 0), time(12, 0)),  # morning
    (time(15, 0), time(17, 0)),  # afternoon
)

SLOT_MINUTES = 30

# 0=Mon .. 6=Sun
WORKING_DAYS = frozenset({0, 1, 2, 3, 4})

APPOINTMENT_MODES = ("online", "offline")

# Reminder overrides attached to every calendar event (minutes before start)
EVENT_REMINDERS = (
    {"method": "email", "minutes": 24 * 60},
    {"method": "popup", "minutes": 30},
)

# Point of contact used in notification templates
CLINIC_NAME = settings.EMAIL_FROM_NAME
DOCTOR_NAME = "Dr. Hima"
CLINIC_ADDRESS = (
    "Suit # 2B, Plot No.240, Nirvana, Road No. 36, Jawahar Colony, "
    "Jubilee Hills, Hyderabad, Telangana 50003"
)
CLINIC_PHONE = "+91-95022 22300"
CLINIC_WEBSITE = "https://genepowerx.com/"


def slots_per_day() -> int:
    total = 0
    for start, end in AVAILABILITY_WINDOWS:
        minutes = (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
        total += minutes // SLOT_MINUTES
    return total
