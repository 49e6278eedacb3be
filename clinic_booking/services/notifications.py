# clinic_booking/services/notifications.py
"""
Confirmation email (SMTP) and SMS (simulated by default, Twilio when enabled).
"""
from __future__ import annotations

import asyncio
import smtplib
from email.message import EmailMessage
from html import escape

from twilio.rest import Client as TwilioClient

from clinic_booking.core.business import (
    CLINIC_ADDRESS,
    CLINIC_NAME,
    CLINIC_PHONE,
    CLINIC_WEBSITE,
    DOCTOR_NAME,
)
from clinic_booking.core.config import settings
from clinic_booking.core.errors import NotificationError
from clinic_booking.core.logging import get_logger

logger = get_logger(__name__)


def compose_email(email: str, name: str, display_date: str, display_time: str, mode: str) -> EmailMessage:
    msg = EmailMessage()
    msg['From'] = f'"{settings.EMAIL_FROM_NAME}" <{settings.SMTP_USER}>'
    msg['To'] = email
    msg['Subject'] = f"Your Appointment Confirmation with {CLINIC_NAME}"

    msg.set_content(f"""
Dear {name},

Thank you for booking your appointment with {CLINIC_NAME}. Your appointment is confirmed:

  Date: {display_date}
  Time: {display_time}
  Appointment Mode: {mode}

Please arrive at least 15 minutes early and bring any relevant medical documents or reports.
If you need to reschedule or cancel, kindly contact us at least 24 hours in advance.

Warm regards,
{CLINIC_NAME}
{CLINIC_ADDRESS}
{CLINIC_PHONE}
{CLINIC_WEBSITE}
""".strip())

    msg.add_alternative(f"""
<div style="font-family: Arial, sans-serif; padding: 20px; color: #333;">
  <h2 style="color: #0f62fe;">Appointment Confirmed</h2>
  <p>Dear <strong>{escape(name)}</strong>,</p>
  <p>Thank you for booking your appointment with <strong>{escape(CLINIC_NAME)}</strong>.
  We're pleased to confirm the details below:</p>
  <table style="border-collapse: collapse; margin-top: 10px; margin-bottom: 20px;">
    <tr><td style="padding: 8px 12px;"><strong>Date:</strong></td><td style="padding: 8px 12px;">{escape(display_date)}</td></tr>
    <tr><td style="padding: 8px 12px;"><strong>Time:</strong></td><td style="padding: 8px 12px;">{escape(display_time)}</td></tr>
    <tr><td style="padding: 8px 12px;"><strong>Appointment Mode:</strong></td><td style="padding: 8px 12px;">{escape(mode)}</td></tr>
  </table>
  <p>Please make sure to:</p>
  <ul style="margin-left: 20px;">
    <li>Arrive at least <strong>15 minutes early</strong> for your appointment.</li>
    <li>Bring any <strong>relevant medical documents or reports</strong>.</li>
    <li>Ensure your phone/email is reachable for any updates or reminders.</li>
  </ul>
  <p>If you need to reschedule or cancel, kindly contact us at least <strong>24 hours in advance</strong>.</p>
  <p style="margin-top: 20px;">We look forward to seeing you!</p>
  <p>Warm regards,</p>
  <p><strong>{escape(CLINIC_NAME)}</strong><br/>
  {escape(CLINIC_ADDRESS)}<br/>
  {escape(CLINIC_PHONE)}<br/>
  {escape(CLINIC_WEBSITE)}</p>
</div>
""".strip(), subtype="html")
    return msg


def _send_smtp(msg: EmailMessage) -> None:
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
        server.starttls()
        server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.send_message(msg)


async def send_confirmation_email(email: str, name: str, display_date: str, display_time: str, mode: str) -> bool:
    """
    Send the confirmation email.

    Returns False when SMTP is not configured; raises NotificationError when
    delivery fails.
    """
    if not settings.email_configured:
        logger.warning("email_not_configured", to=email)
        return False

    msg = compose_email(email, name, display_date, display_time, mode)
    try:
        await asyncio.to_thread(_send_smtp, msg)
    except (smtplib.SMTPException, OSError) as e:
        raise NotificationError(f"Email delivery failed: {e}") from e

    logger.info("email_sent", to=email)
    return True


def compose_sms(display_date: str, display_time: str) -> str:
    return (
        "✅ Appointment confirmed!\n"
        f"📅 Date: {display_date}\n"
        f"🕘 Time: {display_time}\n"
        f"👩‍⚕️ Doctor: {DOCTOR_NAME}\n"
        "📍 Location: Please arrive 15 minutes early at the clinic."
    )


def _send_twilio(phone: str, message: str) -> str:
    client = TwilioClient(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
    sent = client.messages.create(to=phone, from_=settings.TWILIO_FROM_NUMBER, body=message)
    return sent.sid


async def send_sms(phone: str, message: str) -> bool:
    """
    Deliver the SMS confirmation.

    In the default "simulated" mode the message is only logged. With
    SMS_DELIVERY=twilio it is sent through Twilio; failures raise
    NotificationError.
    """
    if settings.SMS_DELIVERY.lower() != "twilio":
        logger.info("sms_simulated", to=phone, sms_message=message)
        return True

    if not (settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN and settings.TWILIO_FROM_NUMBER):
        logger.warning("sms_not_configured", to=phone)
        return False

    try:
        sid = await asyncio.to_thread(_send_twilio, phone, message)
    except Exception as e:
        raise NotificationError(f"SMS delivery failed: {e}") from e

    logger.info("sms_sent", to=phone, message_sid=sid)
    return True
