"""Inventory ledger: atomic reserve/release of a store's remaining bags."""

import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from savor.core.exceptions import NotFound, OutOfStock, StoreNotSelling, ValidationError
from savor.models.base import utcnow
from savor.models.inventory_movement import InventoryMovement, MovementReason
from savor.models.store import Store

logger = logging.getLogger(__name__)


class InventoryLedger:
    """Owns ``Store.available_units``.

    Nothing here commits. Callers run ledger operations inside their own
    transaction so the counter update, the movement row and whatever the
    caller writes next land (or roll back) together.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def reserve(
        self,
        store_id: UUID,
        quantity: int,
        reservation_id: UUID | None = None,
    ) -> None:
        """Take ``quantity`` units from the store in one conditional UPDATE.

        The floor check and the decrement are the same statement, so two
        callers can never both pass the check on the last unit. Zero affected
        rows means nothing was changed.

        Raises:
            OutOfStock: fewer than ``quantity`` units left
            StoreNotSelling: the owner has paused sales
            NotFound: the store does not exist
        """
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        stmt = (
            update(Store)
            .where(
                Store.id == store_id,
                Store.available_units >= quantity,
                Store.is_selling == True,  # noqa: E712
            )
            .values(
                available_units=Store.available_units - quantity,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)

        if result.rowcount == 0:  # type: ignore[attr-defined]
            await self._raise_reserve_failure(store_id, quantity)

        self.db.add(
            InventoryMovement(
                store_id=store_id,
                reservation_id=reservation_id,
                delta=-quantity,
                reason=MovementReason.RESERVE,
            )
        )
        logger.info("Reserved %d unit(s) at store %s", quantity, store_id)

    async def release(
        self,
        store_id: UUID,
        quantity: int,
        reservation_id: UUID | None = None,
    ) -> None:
        """Give ``quantity`` units back to the store. Uncapped.

        A store that no longer exists is a no-op.
        """
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        stmt = (
            update(Store)
            .where(Store.id == store_id)
            .values(
                available_units=Store.available_units + quantity,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)

        if result.rowcount == 0:  # type: ignore[attr-defined]
            logger.warning("Store %s no longer exists; skipping release of %d", store_id, quantity)
            return

        self.db.add(
            InventoryMovement(
                store_id=store_id,
                reservation_id=reservation_id,
                delta=quantity,
                reason=MovementReason.RELEASE,
            )
        )
        logger.info("Released %d unit(s) at store %s", quantity, store_id)

    async def set_available(self, store: Store, units: int) -> int:
        """Overwrite the counter from an owner settings edit. Returns the delta."""
        if units < 0:
            raise ValidationError("Available bags cannot be negative")

        locked = (
            await self.db.execute(
                select(Store)
                .where(Store.id == store.id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
        ).scalar_one()
        delta = units - locked.available_units
        if delta == 0:
            return 0

        locked.available_units = units
        self.db.add(
            InventoryMovement(
                store_id=store.id,
                reservation_id=None,
                delta=delta,
                reason=MovementReason.ADJUST,
            )
        )
        logger.info("Adjusted store %s available units by %+d", store.id, delta)
        return delta

    async def _raise_reserve_failure(self, store_id: UUID, quantity: int) -> None:
        row = (
            await self.db.execute(
                select(Store.available_units, Store.is_selling).where(Store.id == store_id)
            )
        ).one_or_none()
        if row is None:
            raise NotFound("Store not found")
        if not row.is_selling:
            raise StoreNotSelling("This store is not taking reservations right now")
        logger.info(
            "Out of stock at store %s: requested %d, %d left",
            store_id,
            quantity,
            row.available_units,
        )
        raise OutOfStock(store_id, quantity)
