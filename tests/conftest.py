#!/usr/bin/env python3
"""
Shared pytest configuration and fixtures.
External providers (Google Calendar, SMTP, Twilio) are always mocked.
"""

import os
import sys
from datetime import date, timedelta
from unittest.mock import patch

import pytest

# Add the project root and the tests dir to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, os.path.dirname(__file__))

# Settings are read once at import time, so the test environment goes in first
TEST_ENV = {
    'APP_ENV': 'testing',
    'LOG_LEVEL': 'WARNING',
    'CLINIC_TIMEZONE': 'Asia/Kolkata',
    'DEFAULT_PHONE_REGION': 'IN',
    'GOOGLE_CALENDAR_ENABLED': 'false',
    'GOOGLE_SERVICE_ACCOUNT_JSON': '',
    'GOOGLE_CALENDAR_ID': 'doctor@example.com',
    'SMTP_USER': '',
    'SMTP_PASSWORD': '',
    'SMS_DELIVERY': 'simulated',
    'API_BASE_URL': 'http://booking.test/api',
    'ALLOWED_CORS_ORIGINS': 'http://localhost:5173,https://book.clinic.test',
}
os.environ.update(TEST_ENV)

from mocks.external_services import GoogleCalendarMock  # noqa: E402
from clinic_booking.services import google_calendar  # noqa: E402


def next_weekday(weekday: int = 0, weeks_ahead: int = 2) -> date:
    """A future date on the given weekday (0=Mon), well clear of 'today' in any timezone."""
    start = date.today() + timedelta(days=7 * weeks_ahead)
    return start + timedelta(days=(weekday - start.weekday()) % 7)


@pytest.fixture(autouse=True)
def reset_calendar_service():
    """Never leak a cached Google service between tests"""
    google_calendar.reset_calendar_service()
    yield
    google_calendar.reset_calendar_service()


@pytest.fixture
def calendar_mock():
    """Google Calendar double wired in place of the real service"""
    mock = GoogleCalendarMock()
    with patch('clinic_booking.services.google_calendar.get_calendar_service', return_value=mock):
        yield mock


@pytest.fixture
def booking_day() -> date:
    """A future Monday"""
    return next_weekday(0)


@pytest.fixture
def sample_booking_data(booking_day):
    """Sample booking request body"""
    return {
        'name': 'Asha Rao',
        'phone': '+91 98765 43210',
        'email': 'asha@example.com',
        'notes': 'First consultation',
        'date': booking_day.isoformat(),
        'time': '10:30',
        'mode': 'online',
    }


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "unit: Pure unit tests with no external dependencies")
    config.addinivalue_line("markers", "integration: HTTP API tests with mocked providers")
