# clinic_booking/api/routes/booking.py

from __future__ import annotations

from fastapi import APIRouter

from clinic_booking.core.business import APPOINTMENT_MODES
from clinic_booking.core.logging import get_logger
from clinic_booking.core.timeutils import parse_date
from clinic_booking.schemas.booking import (
    BookingRequest,
    BookingResponse,
    ModesResponse,
    SlotsResponse,
)
from clinic_booking.services.availability import get_available_slots
from clinic_booking.services.booking import book_appointment as book

router = APIRouter(prefix="/api", tags=["booking"])

logger = get_logger(__name__)


@router.get("/available-slots/{date}", response_model=SlotsResponse)
async def available_slots(date: str):
    day = parse_date(date)
    slots = await get_available_slots(day)
    return {"slots": [s.to_dict() for s in slots]}


@router.post("/book-appointment", response_model=BookingResponse, status_code=201)
async def book_appointment(payload: BookingRequest):
    return await book(payload)


@router.get("/appointment-modes", response_model=ModesResponse)
async def appointment_modes():
    return {"modes": list(APPOINTMENT_MODES)}
