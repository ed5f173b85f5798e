"""SMS delivery via the Twilio Messages API."""

import logging

import httpx

from savor.core.config import settings

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


class SmsService:
    """Sends text messages through Twilio."""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout or settings.notification_timeout_seconds

    @property
    def configured(self) -> bool:
        return bool(
            settings.twilio_account_sid
            and settings.twilio_auth_token
            and settings.twilio_phone_number
        )

    async def send_sms(self, to_phone: str, body: str) -> str | None:
        """Send one SMS. Returns the Twilio message SID, or None on failure."""
        if not self.configured:
            logger.warning("Twilio not configured; SMS not sent to %s", to_phone)
            return None

        url = TWILIO_MESSAGES_URL.format(sid=settings.twilio_account_sid)
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    url,
                    data={
                        "From": settings.twilio_phone_number,
                        "To": to_phone,
                        "Body": body,
                    },
                    auth=(settings.twilio_account_sid, settings.twilio_auth_token),
                )
            if response.status_code == 201:
                sid = response.json().get("sid")
                logger.info("SMS sent: to=%s sid=%s", to_phone, sid)
                return str(sid) if sid else None
            logger.error(
                "Failed to send SMS: to=%s status=%s body=%s",
                to_phone,
                response.status_code,
                response.text[:500],
            )
            return None
        except Exception:
            logger.exception("Error sending SMS to %s", to_phone)
            return None
