"""Celery task delivering reservation confirmations."""

import asyncio
import logging
from typing import Any

from savor.schemas.notification import ReservationSummary
from savor.services.notification_service import ConfirmationSender
from savor.workers.celery_app import BaseTask, celery_app

logger = logging.getLogger(__name__)


@celery_app.task(  # type: ignore[untyped-decorator]
    name="tasks.notifications.send_reservation_confirmation",
    base=BaseTask,
    bind=True,
    max_retries=1,
)
def send_reservation_confirmation(
    self: BaseTask,  # noqa: ARG001
    summary: dict[str, Any],
) -> dict[str, Any]:
    """Email and/or text the customer. Delivery failures are logged, not raised."""
    parsed = ReservationSummary.model_validate(summary)
    logger.info("Sending confirmation for reservation %s", parsed.reservation_id)
    return asyncio.run(ConfirmationSender().send(parsed))
