#!/usr/bin/env python3
"""
Tests for the booking service functionality.
"""

import pytest
import sys
import os
from datetime import date, datetime, timedelta
from unittest.mock import patch, AsyncMock
from zoneinfo import ZoneInfo

# Add app to Python path for testing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from clinic_booking.core.errors import (
    BookingValidationError,
    NotificationError,
    SlotConflictError,
    UpstreamServiceError,
)
from clinic_booking.schemas.booking import AppointmentMode, BookingRequest
from clinic_booking.services.booking import book_appointment, validate_booking

TODAY = date(2026, 10, 19)  # Monday
DAY = date(2026, 10, 21)    # Wednesday


@pytest.fixture
def request_data():
    return {
        'name': '  Asha   Rao ',
        'phone': '98765 43210',
        'email': 'asha@example.com',
        'notes': 'First consultation',
        'date': DAY.isoformat(),
        'time': '10:30',
        'mode': 'Online',
    }


@pytest.fixture
def mock_email():
    with patch('clinic_booking.services.notifications.send_confirmation_email', new_callable=AsyncMock) as m:
        m.return_value = True
        yield m


@pytest.fixture
def mock_sms():
    with patch('clinic_booking.services.notifications.send_sms', new_callable=AsyncMock) as m:
        m.return_value = True
        yield m


class TestValidation:
    """Request validation happens before any side effect"""

    def test_normalizes_fields(self, request_data):
        booking = validate_booking(BookingRequest(**request_data), today=TODAY)

        assert booking.name == 'Asha Rao'
        assert booking.phone == '+919876543210'
        assert booking.mode == AppointmentMode.ONLINE
        assert booking.slot.time == '10:30'

    @pytest.mark.parametrize("field", ['name', 'phone', 'email', 'date', 'time', 'mode'])
    def test_each_required_field(self, request_data, field):
        request_data[field] = '   '
        with pytest.raises(BookingValidationError) as exc:
            validate_booking(BookingRequest(**request_data), today=TODAY)
        assert exc.value.fields == [field]

    def test_reports_all_missing_fields(self):
        with pytest.raises(BookingValidationError) as exc:
            validate_booking(BookingRequest(name='Asha Rao'), today=TODAY)
        assert exc.value.fields == ['phone', 'email', 'date', 'time', 'mode']

    def test_notes_optional(self, request_data):
        del request_data['notes']
        booking = validate_booking(BookingRequest(**request_data), today=TODAY)
        assert booking.notes is None

    @pytest.mark.parametrize("mode,expected", [
        ('remote', AppointmentMode.ONLINE),
        ('offline', AppointmentMode.OFFLINE),
        ('In-Person', AppointmentMode.OFFLINE),
    ])
    def test_mode_aliases(self, request_data, mode, expected):
        request_data['mode'] = mode
        assert validate_booking(BookingRequest(**request_data), today=TODAY).mode == expected

    @pytest.mark.parametrize("field,value", [
        ('mode', 'telepathy'),
        ('phone', 'call me'),
        ('phone', '12'),
        ('email', 'asha.example.com'),
        ('date', '21/10/2026'),
        ('time', 'half ten'),
    ])
    def test_malformed_fields(self, request_data, field, value):
        request_data[field] = value
        with pytest.raises(BookingValidationError) as exc:
            validate_booking(BookingRequest(**request_data), today=TODAY)
        assert exc.value.fields == [field]

    def test_rejects_time_outside_slots(self, request_data):
        request_data['time'] = '13:00'
        with pytest.raises(BookingValidationError) as exc:
            validate_booking(BookingRequest(**request_data), today=TODAY)
        assert exc.value.fields == ['time']

    def test_rejects_weekend(self, request_data):
        request_data['date'] = '2026-10-24'
        with pytest.raises(BookingValidationError) as exc:
            validate_booking(BookingRequest(**request_data), today=TODAY)
        assert exc.value.fields == ['date']

    def test_rejects_past_day(self, request_data):
        request_data['date'] = (TODAY - timedelta(days=7)).isoformat()
        with pytest.raises(BookingValidationError):
            validate_booking(BookingRequest(**request_data), today=TODAY)


class TestBookingService:
    """Test booking orchestration"""

    @pytest.mark.asyncio
    async def test_successful_booking(self, calendar_mock, mock_email, mock_sms, request_data):
        """Event interval equals the requested slot"""
        result = await book_appointment(BookingRequest(**request_data), today=TODAY)

        assert result.success is True
        assert result.message == 'Appointment successfully booked'
        assert result.eventId == 'test_event_1'
        assert result.notifications == {'email': True, 'sms': True}

        body = calendar_mock.inserted[0]['body']
        assert calendar_mock.inserted[0]['calendarId'] == 'doctor@example.com'
        assert body['start']['dateTime'] == '2026-10-21T05:00:00.000Z'
        assert body['end']['dateTime'] == '2026-10-21T05:30:00.000Z'

        appt = result.appointment
        assert appt.date == '2026-10-21'
        assert appt.time == '10:30'
        assert appt.startTime == '2026-10-21T10:30:00+05:30'
        assert appt.endTime == '2026-10-21T11:00:00+05:30'
        assert appt.phone == '+919876543210'

        mock_email.assert_awaited_once_with('asha@example.com', 'Asha Rao', '21/10/2026', '10:30 AM', 'online')
        mock_sms.assert_awaited_once_with('+919876543210', result.smsMessage)
        assert '21/10/2026' in result.smsMessage
        assert '10:30 AM' in result.smsMessage

    @pytest.mark.asyncio
    async def test_conflict_check_uses_exact_slot(self, calendar_mock, mock_email, mock_sms, request_data):
        await book_appointment(BookingRequest(**request_data), today=TODAY)

        call = calendar_mock.list_calls[0]
        assert call['timeMin'] == '2026-10-21T05:00:00.000Z'
        assert call['timeMax'] == '2026-10-21T05:30:00.000Z'

    @pytest.mark.asyncio
    async def test_second_booking_conflicts(self, calendar_mock, mock_email, mock_sms, request_data):
        """The same slot cannot be booked twice"""
        await book_appointment(BookingRequest(**request_data), today=TODAY)

        request_data['name'] = 'Someone Else'
        with pytest.raises(SlotConflictError):
            await book_appointment(BookingRequest(**request_data), today=TODAY)

        assert len(calendar_mock.inserted) == 1
        assert calendar_mock.items[0]['summary'] == 'Appointment with Asha Rao'
        assert mock_email.await_count == 1

    @pytest.mark.asyncio
    async def test_partial_overlap_conflicts(self, calendar_mock, mock_email, mock_sms, request_data):
        # 10:45-11:15 IST overlaps the 10:30 slot
        calendar_mock.add_busy('2026-10-21T05:15:00Z', '2026-10-21T05:45:00Z')

        with pytest.raises(SlotConflictError):
            await book_appointment(BookingRequest(**request_data), today=TODAY)
        assert calendar_mock.inserted == []

    @pytest.mark.asyncio
    async def test_adjacent_booking_allowed(self, calendar_mock, mock_email, mock_sms, request_data):
        # 10:00-10:30 IST ends exactly where the slot starts
        calendar_mock.add_busy('2026-10-21T04:30:00Z', '2026-10-21T05:00:00Z')

        result = await book_appointment(BookingRequest(**request_data), today=TODAY)
        assert result.eventId is not None

    @pytest.mark.asyncio
    async def test_missing_field_has_no_side_effects(self, calendar_mock, mock_email, mock_sms, request_data):
        del request_data['email']

        with pytest.raises(BookingValidationError):
            await book_appointment(BookingRequest(**request_data), today=TODAY)

        assert calendar_mock.list_calls == []
        assert calendar_mock.inserted == []
        mock_email.assert_not_awaited()
        mock_sms.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_calendar_failure_is_upstream_error(self, calendar_mock, mock_email, mock_sms, request_data):
        calendar_mock.mock_service_unavailable()

        with pytest.raises(UpstreamServiceError):
            await book_appointment(BookingRequest(**request_data), today=TODAY)
        mock_email.assert_not_awaited()

    @pytest.mark.asyncio
    @patch('clinic_booking.services.google_calendar.create_calendar_event', new_callable=AsyncMock)
    async def test_event_insert_failure_is_upstream_error(self, mock_create, calendar_mock, mock_email, mock_sms, request_data):
        mock_create.side_effect = RuntimeError("quota exceeded")

        with pytest.raises(UpstreamServiceError):
            await book_appointment(BookingRequest(**request_data), today=TODAY)
        mock_sms.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_calendar_unconfigured_books_without_event(self, mock_email, mock_sms, request_data):
        """Degraded mode: no conflict check and no event id"""
        result = await book_appointment(BookingRequest(**request_data), today=TODAY)

        assert result.success is True
        assert result.eventId is None
        mock_email.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_notification_failures_do_not_roll_back(self, calendar_mock, mock_email, mock_sms, request_data):
        mock_email.side_effect = NotificationError("smtp down")
        mock_sms.side_effect = RuntimeError("twilio down")

        result = await book_appointment(BookingRequest(**request_data), today=TODAY)

        assert result.success is True
        assert result.eventId == 'test_event_1'
        assert result.notifications == {'email': False, 'sms': False}
        assert len(calendar_mock.items) == 1


class TestSameDayBooking:

    def test_started_slot_rejected(self, request_data):
        request_data['date'] = TODAY.isoformat()
        request_data['time'] = '10:00'
        afternoon = datetime(2026, 10, 19, 16, 0, tzinfo=ZoneInfo('Asia/Kolkata'))

        with patch('clinic_booking.services.slots.now_local', return_value=afternoon):
            with pytest.raises(BookingValidationError) as exc:
                validate_booking(BookingRequest(**request_data))

        assert exc.value.fields == ['time']

    def test_later_slot_accepted(self, request_data):
        request_data['date'] = TODAY.isoformat()
        request_data['time'] = '16:30'
        afternoon = datetime(2026, 10, 19, 16, 0, tzinfo=ZoneInfo('Asia/Kolkata'))

        with patch('clinic_booking.services.slots.now_local', return_value=afternoon):
            booking = validate_booking(BookingRequest(**request_data))

        assert booking.slot.time == '16:30'
