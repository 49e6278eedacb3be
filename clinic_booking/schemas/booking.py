# clinic_booking/schemas/booking.py

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AppointmentMode(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"


MODE_ALIASES = {
    "online": AppointmentMode.ONLINE,
    "remote": AppointmentMode.ONLINE,
    "offline": AppointmentMode.OFFLINE,
    "in-person": AppointmentMode.OFFLINE,
    "in_person": AppointmentMode.OFFLINE,
    "inperson": AppointmentMode.OFFLINE,
}


class BookingRequest(BaseModel):
    """Incoming booking payload. Presence is checked by the booking service so
    that missing fields surface as a 400 listing every gap at once."""
    name: Optional[str] = Field(None, examples=["Asha Rao"])
    phone: Optional[str] = Field(None, examples=["+91 98765 43210"])
    email: Optional[str] = Field(None, examples=["asha@example.com"])
    notes: Optional[str] = None
    date: Optional[str] = Field(None, description="Local calendar day, YYYY-MM-DD")
    time: Optional[str] = Field(None, description="Local slot start, HH:MM (24h)")
    mode: Optional[str] = Field(None, examples=["online", "offline"])

    @field_validator("name", "phone", "email", "notes", "date", "time", "mode", mode="before")
    @classmethod
    def _strip(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class SlotOut(BaseModel):
    start: str
    end: str
    time: str
    label: str


class SlotsResponse(BaseModel):
    slots: List[SlotOut]


class AppointmentOut(BaseModel):
    name: str
    phone: str
    email: str
    notes: Optional[str] = None
    date: str
    time: str
    startTime: str
    endTime: str
    mode: AppointmentMode
    model_config = ConfigDict(use_enum_values=True)


class BookingResponse(BaseModel):
    success: bool = True
    message: str
    eventId: Optional[str] = None
    smsMessage: str
    appointment: AppointmentOut
    notifications: Dict[str, bool] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    localTime: str
    timezone: str
    googleCalendar: bool


class ModesResponse(BaseModel):
    modes: List[AppointmentMode]
    model_config = ConfigDict(use_enum_values=True)
