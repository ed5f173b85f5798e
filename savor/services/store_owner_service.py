"""Store-owner dashboard: reservations, stats and store settings."""

import logging
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from savor.core.exceptions import NotFound
from savor.models.reservation import Reservation, ReservationStatus
from savor.models.store import Store
from savor.schemas.store_owner import (
    ReservationStats,
    StoreOwnerReservation,
    StoreOwnerReservationList,
    StoreSettings,
    StoreStatsResponse,
)
from savor.services.inventory_ledger import InventoryLedger
from savor.services.reservation_store import ReservationRepository
from savor.services.time_window import DEFAULT_WINDOW, classify

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})


def _to_owner_view(reservation: Reservation) -> StoreOwnerReservation:
    return StoreOwnerReservation(
        id=reservation.id,
        customer_name=reservation.customer_name,
        customer_email=reservation.customer_email,
        customer_phone=reservation.customer_phone,
        quantity=reservation.quantity,
        total_amount=float(reservation.total_amount),
        status=reservation.status,
        pickup_time=reservation.pickup_time,
        pickup_timestamp=reservation.pickup_timestamp,
        created_at=reservation.created_at,
        is_guest=reservation.is_guest,
    )


def compute_stats(reservations: Sequence[Reservation]) -> ReservationStats:
    revenue = sum((r.total_amount for r in reservations), Decimal("0"))
    return ReservationStats(
        total_reservations=len(reservations),
        active_reservations=sum(1 for r in reservations if r.status in ACTIVE_STATUSES),
        completed_reservations=sum(
            1 for r in reservations if r.status == ReservationStatus.COMPLETED
        ),
        total_revenue=float(revenue),
    )


class StoreOwnerService:
    """Everything a merchant sees about their own store."""

    def __init__(
        self,
        db: AsyncSession,
        window: timedelta = DEFAULT_WINDOW,
        ledger: InventoryLedger | None = None,
        repository: ReservationRepository | None = None,
    ) -> None:
        self.db = db
        self.window = window
        self.ledger = ledger or InventoryLedger(db)
        self.repository = repository or ReservationRepository(db)

    async def get_store(self, owner_id: str) -> Store | None:
        stmt = select(Store).where(Store.owner_id == owner_id).order_by(Store.created_at)
        return (await self.db.execute(stmt)).scalars().first()

    async def _require_store(self, owner_id: str) -> Store:
        store = await self.get_store(owner_id)
        if store is None:
            raise NotFound("No store found for this account")
        return store

    async def list_reservations(
        self, owner_id: str, now: datetime | None = None
    ) -> StoreOwnerReservationList:
        """The store's reservations split into current and past.

        An owner without a store gets empty lists rather than an error.
        """
        store = await self.get_store(owner_id)
        if store is None:
            return StoreOwnerReservationList()

        reservations = await self.repository.list_for_store(store.id)
        split = classify(reservations, now=now or datetime.now(UTC), window=self.window)
        return StoreOwnerReservationList(
            current_reservations=[_to_owner_view(r) for r in split.current],
            past_reservations=[_to_owner_view(r) for r in split.past],
            current_count=split.current_count,
            past_count=split.past_count,
        )

    async def get_stats(self, owner_id: str, now: datetime | None = None) -> StoreStatsResponse:
        now = now or datetime.now(UTC)
        store = await self._require_store(owner_id)
        reservations = await self.repository.list_for_store(store.id)
        split = classify(reservations, now=now, window=self.window)
        return StoreStatsResponse(
            current=compute_stats(split.current),
            past=compute_stats(split.past),
            date=now.date(),
        )

    async def get_settings(self, owner_id: str) -> StoreSettings:
        store = await self._require_store(owner_id)
        return StoreSettings.model_validate(store)

    async def update_settings(self, owner_id: str, new_settings: StoreSettings) -> StoreSettings:
        """Apply a settings edit. A changed bag count is recorded as an adjustment."""
        store = await self._require_store(owner_id)

        await self.ledger.set_available(store, new_settings.available_units)

        store.title = new_settings.title
        store.description = new_settings.description
        store.address = new_settings.address
        store.image_url = new_settings.image_url
        store.unit_price = Decimal(str(new_settings.unit_price))
        store.original_price = Decimal(str(new_settings.original_price))
        store.discounted_price = Decimal(str(new_settings.discounted_price))
        store.pickup_window = new_settings.pickup_window
        store.pickup_timestamp = new_settings.pickup_timestamp
        store.is_selling = new_settings.is_selling

        await self.db.commit()
        await self.db.refresh(store)
        logger.info("Updated settings for store %s", store.id)
        return StoreSettings.model_validate(store)
