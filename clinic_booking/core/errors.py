"""
Booking error taxonomy and severity-aware error logging.
"""
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from clinic_booking.core.logging import get_logger

logger = get_logger(__name__)

class ErrorSeverity(Enum):
    """Error severity levels."""
    LOW = "low"           # validation errors, slot conflicts, expected failures
    MEDIUM = "medium"     # upstream provider failures, timeouts
    HIGH = "high"         # unexpected server errors
    CRITICAL = "critical" # service down

class BookingError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    severity: ErrorSeverity = ErrorSeverity.MEDIUM

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message}

class BookingValidationError(BookingError):
    """Missing or malformed booking input. User-correctable."""

    status_code = 400
    severity = ErrorSeverity.LOW

    def __init__(self, message: str, fields: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.fields = list(fields or [])

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        if self.fields:
            payload["fields"] = self.fields
        return payload

class SlotConflictError(BookingError):
    """The requested slot overlaps an existing calendar event."""

    status_code = 409
    severity = ErrorSeverity.LOW

class UpstreamServiceError(BookingError):
    """Calendar provider failure while booking."""

    status_code = 500
    severity = ErrorSeverity.MEDIUM

class NotificationError(Exception):
    """Email or SMS delivery failed. Never surfaced over HTTP."""

def log_error(error: Exception, context: Optional[Dict[str, Any]] = None,
              severity: Optional[ErrorSeverity] = None) -> None:
    """Log an error with its severity; low severity goes to warning level."""
    context = context or {}
    if severity is None:
        severity = getattr(error, "severity", ErrorSeverity.HIGH)

    log = logger.warning if severity == ErrorSeverity.LOW else logger.error
    log(
        "booking_error",
        error_type=type(error).__name__,
        error=str(error),
        severity=severity.value,
        **context
    )
