"""Reconcile inventory movements against reservations."""

import logging
import uuid
from dataclasses import dataclass, field

from sqlalchemy import and_, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from savor.models.inventory_movement import InventoryMovement, MovementReason
from savor.models.reservation import Reservation

logger = logging.getLogger(__name__)


@dataclass
class LedgerAuditReport:
    # Reservations that exist without ever having debited the ledger
    unbacked_reservations: list[uuid.UUID] = field(default_factory=list)
    # Net debits whose reservation is gone and was never released
    orphaned_debits: dict[uuid.UUID, int] = field(default_factory=dict)

    @property
    def clean(self) -> bool:
        return not self.unbacked_reservations and not self.orphaned_debits


class LedgerAuditor:
    """Read-only checks that every reservation matches exactly one net debit."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_unbacked_reservations(self) -> list[uuid.UUID]:
        has_debit = exists().where(
            and_(
                InventoryMovement.reservation_id == Reservation.id,
                InventoryMovement.reason == MovementReason.RESERVE,
            )
        )
        stmt = select(Reservation.id).where(~has_debit).order_by(Reservation.created_at)
        return list((await self.db.execute(stmt)).scalars().all())

    async def find_orphaned_debits(self) -> dict[uuid.UUID, int]:
        reservation_exists = exists().where(Reservation.id == InventoryMovement.reservation_id)
        stmt = (
            select(InventoryMovement.reservation_id, func.sum(InventoryMovement.delta))
            .where(InventoryMovement.reservation_id.is_not(None), ~reservation_exists)
            .group_by(InventoryMovement.reservation_id)
            .having(func.sum(InventoryMovement.delta) < 0)
        )
        rows = (await self.db.execute(stmt)).all()
        return {reservation_id: int(net) for reservation_id, net in rows}

    async def run(self) -> LedgerAuditReport:
        report = LedgerAuditReport(
            unbacked_reservations=await self.find_unbacked_reservations(),
            orphaned_debits=await self.find_orphaned_debits(),
        )
        for reservation_id in report.unbacked_reservations:
            logger.warning("Reservation %s has no inventory debit", reservation_id)
        for reservation_id, net in report.orphaned_debits.items():
            logger.warning(
                "Deleted reservation %s still holds %d unit(s)", reservation_id, -net
            )
        if report.clean:
            logger.info("Inventory ledger audit clean")
        return report
