# clinic_booking/main.py
from __future__ import annotations

# Load .env early so settings and os.getenv see it everywhere
from dotenv import load_dotenv
load_dotenv()

import asyncio
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clinic_booking.core.config import settings
from clinic_booking.core.errors import BookingError, ErrorSeverity, log_error
from clinic_booking.core.logging import LoggingMiddleware, get_logger, setup_logging
from clinic_booking.core.timeutils import LOCAL_TZ, now_local
from clinic_booking.api.routes.booking import router as booking_router
from clinic_booking.schemas.booking import HealthResponse
from clinic_booking.services.google_calendar import is_calendar_configured

setup_logging(
    debug=settings.is_development,
    max_log_length=settings.MAX_LOG_LENGTH,
    level=settings.LOG_LEVEL,
)
logger = get_logger(__name__)

app = FastAPI(title="Clinic Booking", description="Appointment booking API for the clinic wizard")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_methods=["*"],
    allow_headers=["*"],
)

logging_middleware = LoggingMiddleware(
    log_requests=settings.LOG_REQUESTS or settings.is_development,
    log_responses=settings.LOG_RESPONSES or settings.is_development,
    slow_threshold=settings.SLOW_REQUEST_THRESHOLD,
)
app.middleware("http")(logging_middleware)

# -------- Error handlers --------
@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    context = {"endpoint": request.url.path}
    if exc.__cause__ is not None:
        context["cause"] = repr(exc.__cause__)
    log_error(exc, context)
    return JSONResponse(exc.to_payload(), status_code=exc.status_code)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    log_error(exc, {"endpoint": request.url.path, "fields": fields}, ErrorSeverity.LOW)
    return JSONResponse({"error": "Invalid request", "fields": fields}, status_code=400)

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log_error(exc, {"endpoint": request.url.path}, ErrorSeverity.HIGH)
    if request.url.path.startswith("/api/available-slots"):
        message = "Server error while fetching slots"
    else:
        message = "Could not complete appointment booking"
    return JSONResponse({"error": message}, status_code=500)

# -------- Startup --------
@app.on_event("startup")
async def startup_event():
    """Build the calendar client once, off the event loop"""
    configured = await asyncio.to_thread(is_calendar_configured)
    logger.info("application_startup", google_calendar=configured, timezone=str(LOCAL_TZ))

# -------- Health --------
@app.get("/api/health", response_model=HealthResponse)
async def health():
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "localTime": now_local().isoformat(),
        "timezone": str(LOCAL_TZ),
        "googleCalendar": await asyncio.to_thread(is_calendar_configured),
    }

# -------- Include routers --------
app.include_router(booking_router)


def serve() -> None:
    """Console entry point: run the API with uvicorn."""
    logger.info("server_starting", host=settings.HOST, port=settings.PORT, timezone=str(LOCAL_TZ))
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    serve()
