"""Store-owner dashboard endpoints."""

from uuid import UUID

from fastapi import APIRouter

from savor.core.deps import CurrentCustomerId, ReservationServiceDep, StoreOwnerServiceDep
from savor.schemas.reservation import ReservationStatusResponse, ReservationStatusUpdate
from savor.schemas.store_owner import (
    StoreOwnerReservationList,
    StoreSettings,
    StoreSettingsResponse,
    StoreStatsResponse,
)

router = APIRouter()


@router.get(
    "/reservations",
    response_model=StoreOwnerReservationList,
    summary="List store reservations",
    description="Reservations at the owner's store, guest bookings included.",
)
async def list_store_reservations(
    owner_id: CurrentCustomerId,
    service: StoreOwnerServiceDep,
) -> StoreOwnerReservationList:
    return await service.list_reservations(owner_id)


@router.put(
    "/reservations/{reservation_id}/status",
    response_model=ReservationStatusResponse,
    summary="Update reservation status",
    description="Move a reservation forward, e.g. mark it picked up. "
    "Cancelling is done by deleting the reservation.",
)
async def update_reservation_status(
    reservation_id: UUID,
    data: ReservationStatusUpdate,
    owner_id: CurrentCustomerId,
    service: ReservationServiceDep,
) -> ReservationStatusResponse:
    return await service.update_status(reservation_id, data.status, owner_id)


@router.get(
    "/stats",
    response_model=StoreStatsResponse,
    summary="Store stats",
)
async def get_store_stats(
    owner_id: CurrentCustomerId,
    service: StoreOwnerServiceDep,
) -> StoreStatsResponse:
    """Counts and revenue for the last 24 hours and before."""
    return await service.get_stats(owner_id)


@router.get(
    "/settings",
    response_model=StoreSettings,
    summary="Get store settings",
)
async def get_store_settings(
    owner_id: CurrentCustomerId,
    service: StoreOwnerServiceDep,
) -> StoreSettings:
    return await service.get_settings(owner_id)


@router.put(
    "/settings",
    response_model=StoreSettingsResponse,
    summary="Update store settings",
    description="Replace the store's settings. Changing `availableUnits` is recorded "
    "as an inventory adjustment.",
)
async def update_store_settings(
    data: StoreSettings,
    owner_id: CurrentCustomerId,
    service: StoreOwnerServiceDep,
) -> StoreSettingsResponse:
    updated = await service.update_settings(owner_id, data)
    return StoreSettingsResponse(message="Settings updated", settings=updated)
