"""Reservation confirmation messages: enqueue on the API side, deliver in the worker."""

import logging
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader

from savor.models.reservation import Reservation
from savor.schemas.notification import ReservationSummary
from savor.services.email_service import EmailService
from savor.services.sms_service import SmsService

logger = logging.getLogger(__name__)

# Jinja2 template environment
TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"
_jinja_env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)), autoescape=True)


def summarize(reservation: Reservation) -> ReservationSummary:
    """Snapshot a reservation (with ``store`` loaded) for the worker."""
    store = reservation.store
    return ReservationSummary(
        reservation_id=str(reservation.id),
        customer_name=reservation.customer_name,
        email=reservation.customer_email,
        phone=reservation.customer_phone,
        store_name=store.title if store else "",
        store_address=(store.address or "") if store else "",
        quantity=reservation.quantity,
        total_amount=float(reservation.total_amount),
        pickup_time=reservation.pickup_time or "",
    )


class NotificationDispatcher:
    """Hands confirmations to Celery without waiting for delivery."""

    def dispatch(self, summary: ReservationSummary) -> bool:
        """Enqueue a confirmation. Returns whether a task was queued.

        Never raises: a broker outage must not fail a reservation that is
        already committed.
        """
        if not summary.reachable:
            logger.debug("No contact details for reservation %s", summary.reservation_id)
            return False

        from savor.workers.tasks.notifications import send_reservation_confirmation

        try:
            send_reservation_confirmation.apply_async(
                args=[summary.model_dump()],
                retry=False,
            )
        except Exception:
            logger.exception(
                "Failed to enqueue confirmation for reservation %s", summary.reservation_id
            )
            return False
        return True


def render_confirmation_email(summary: ReservationSummary) -> tuple[str, str]:
    """Return (subject, html) for a confirmation email."""
    subject = f"Your reservation at {summary.store_name or 'Savor'}"
    template = _jinja_env.get_template("reservation_confirmation.html")
    html = template.render(**summary.model_dump())
    return subject, html


def render_confirmation_sms(summary: ReservationSummary) -> str:
    bags = "bag" if summary.quantity == 1 else "bags"
    text = f"Savor: {summary.quantity} {bags} reserved at {summary.store_name}."
    if summary.pickup_time:
        text += f" Pickup: {summary.pickup_time}."
    return text


class ConfirmationSender:
    """Delivers one confirmation over every channel the customer gave us."""

    def __init__(
        self,
        email_service: EmailService | None = None,
        sms_service: SmsService | None = None,
    ) -> None:
        self.email_service = email_service or EmailService()
        self.sms_service = sms_service or SmsService()

    async def send(self, summary: ReservationSummary) -> dict[str, Any]:
        result: dict[str, Any] = {
            "reservation_id": summary.reservation_id,
            "email_id": None,
            "sms_sid": None,
        }

        if summary.email:
            subject, html = render_confirmation_email(summary)
            result["email_id"] = await self.email_service.send_email(
                to_email=summary.email,
                subject=subject,
                html_content=html,
                tags=[{"name": "type", "value": "reservation_confirmation"}],
            )

        if summary.phone:
            result["sms_sid"] = await self.sms_service.send_sms(
                summary.phone, render_confirmation_sms(summary)
            )

        logger.info(
            "Confirmation for reservation %s: email=%s sms=%s",
            summary.reservation_id,
            result["email_id"],
            result["sms_sid"],
        )
        return result
