"""Periodic reconciliation of the inventory ledger."""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar

from savor.core.database import async_session_maker, engine
from savor.services.audit_service import LedgerAuditor
from savor.workers.celery_app import BaseTask, celery_app

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine in a fresh event loop, disposing DB connections after.

    asyncpg connections are bound to the loop that created them, so pooled
    connections must not outlive the loop.
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.run_until_complete(engine.dispose())
        loop.close()


@celery_app.task(  # type: ignore[untyped-decorator]
    name="tasks.audit.audit_inventory_ledger",
    base=BaseTask,
    bind=True,
)
def audit_inventory_ledger(self: BaseTask) -> dict[str, Any]:  # noqa: ARG001
    """Log reservations and debits that do not line up."""
    return _run_async(_audit_async())


async def _audit_async() -> dict[str, Any]:
    async with async_session_maker() as session:
        report = await LedgerAuditor(session).run()
    return {
        "clean": report.clean,
        "unbacked_reservations": [str(r) for r in report.unbacked_reservations],
        "orphaned_debits": {str(k): v for k, v in report.orphaned_debits.items()},
    }
