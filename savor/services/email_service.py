"""Email delivery service using Resend API."""

import logging
from typing import Any

import httpx

from savor.core.config import settings

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class EmailService:
    """Sends transactional emails via the Resend API."""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout or settings.notification_timeout_seconds

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        tags: list[dict[str, str]] | None = None,
    ) -> str | None:
        """Send one email.

        Returns the Resend email ID on success, None on failure.
        """
        payload: dict[str, Any] = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }
        if tags:
            payload["tags"] = tags

        if not settings.resend_api_key:
            logger.warning("Resend API key not configured; email not sent to %s", to_email)
            return None

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    RESEND_API_URL,
                    headers={
                        "Authorization": f"Bearer {settings.resend_api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
                if response.is_success:
                    data = response.json()
                    email_id = data.get("id")
                    logger.info("Email sent: to=%s id=%s", to_email, email_id)
                    return str(email_id) if email_id else None
                else:
                    logger.error(
                        "Failed to send email: to=%s status=%s body=%s",
                        to_email,
                        response.status_code,
                        response.text[:500],
                    )
                    return None
        except Exception:
            logger.exception("Error sending email to %s", to_email)
            return None
