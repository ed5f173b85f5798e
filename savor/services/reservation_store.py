"""Durable reservation persistence."""

import logging
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from savor.models.base import utcnow
from savor.models.reservation import Reservation, ReservationStatus

logger = logging.getLogger(__name__)


class ReservationRepository:
    """Source of truth for reservations, guest bookings included.

    Like the ledger, it never commits; the lifecycle manager owns the
    transaction boundary.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def insert(self, reservation: Reservation) -> Reservation:
        """Add a reservation and flush so constraint violations surface now."""
        self.db.add(reservation)
        await self.db.flush()
        return reservation

    async def get(self, reservation_id: UUID) -> Reservation | None:
        stmt = (
            select(Reservation)
            .options(selectinload(Reservation.store))
            .where(Reservation.id == reservation_id)
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def get_by_payment_reference(self, payment_reference: str) -> Reservation | None:
        stmt = (
            select(Reservation)
            .options(selectinload(Reservation.store))
            .where(Reservation.payment_reference == payment_reference)
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def list_for_customer(self, customer_id: str) -> list[Reservation]:
        stmt = (
            select(Reservation)
            .options(selectinload(Reservation.store))
            .where(Reservation.customer_id == customer_id)
            .order_by(Reservation.created_at.desc())
        )
        return list((await self.db.execute(stmt)).scalars().all())

    async def list_for_guest(self, guest_token_hash: str) -> list[Reservation]:
        stmt = (
            select(Reservation)
            .options(selectinload(Reservation.store))
            .where(Reservation.guest_token_hash == guest_token_hash)
            .order_by(Reservation.created_at.desc())
        )
        return list((await self.db.execute(stmt)).scalars().all())

    async def get_status(self, reservation_id: UUID) -> ReservationStatus | None:
        """Read the stored status, bypassing any instance already in the session."""
        stmt = select(Reservation.status).where(Reservation.id == reservation_id)
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def list_for_store(self, store_id: UUID) -> list[Reservation]:
        stmt = (
            select(Reservation)
            .where(Reservation.store_id == store_id)
            .order_by(Reservation.created_at.desc())
        )
        return list((await self.db.execute(stmt)).scalars().all())

    async def delete(self, reservation_id: UUID) -> bool:
        """Hard-delete a reservation that has not been picked up.

        Returns False when no row was deleted, i.e. someone else got there
        first or the reservation was completed in the meantime.
        """
        stmt = (
            delete(Reservation)
            .where(
                Reservation.id == reservation_id,
                Reservation.status != ReservationStatus.COMPLETED,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]

    async def transition_status(
        self,
        reservation_id: UUID,
        expected: ReservationStatus,
        new_status: ReservationStatus,
    ) -> bool:
        """Compare-and-set the status. False if the row moved on or vanished."""
        stmt = (
            update(Reservation)
            .where(Reservation.id == reservation_id, Reservation.status == expected)
            .values(status=new_status, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]
