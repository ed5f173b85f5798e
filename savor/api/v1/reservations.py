"""Reservation endpoints for signed-in customers and guests."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Request, status

from savor.core.auth import resolve_customer_id
from savor.core.deps import (
    CurrentCustomerId,
    GuestSessionId,
    OptionalGuestSessionId,
    OptionalUser,
    ReservationServiceDep,
)
from savor.core.rate_limit import GUEST_RESERVATION_LIMIT, limiter
from savor.schemas.common import MessageResponse
from savor.schemas.reservation import (
    GuestReservationCreate,
    GuestReservationListResponse,
    ReservationCreate,
    ReservationListResponse,
    ReservationResponse,
)
from savor.services.reservation_service import Requester

router = APIRouter()


@router.post(
    "",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create reservation",
    description="Reserve bags for the signed-in customer.",
)
async def create_reservation(
    data: ReservationCreate,
    customer_id: CurrentCustomerId,
    service: ReservationServiceDep,
) -> ReservationResponse:
    return await service.create_authenticated_reservation(customer_id, data)


@router.get(
    "",
    response_model=ReservationListResponse,
    summary="List reservations",
    description="The customer's reservations, split into the last 24 hours and older.",
)
async def list_reservations(
    customer_id: CurrentCustomerId,
    service: ReservationServiceDep,
) -> ReservationListResponse:
    return await service.list_customer_reservations(customer_id)


@router.post(
    "/guest",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create guest reservation",
    description="""
    Reserve bags without an account. Email or phone is required.

    The guest session is identified by the `savor_session` cookie (or the
    `X-Session-ID` header); a new session is issued when neither is sent.
    """,
)
@limiter.limit(GUEST_RESERVATION_LIMIT)
async def create_guest_reservation(
    request: Request,  # noqa: ARG001  slowapi reads the client address from it
    data: GuestReservationCreate,
    session_id: GuestSessionId,
    service: ReservationServiceDep,
) -> ReservationResponse:
    return await service.create_guest_reservation(session_id, data)


@router.get(
    "/guest",
    response_model=GuestReservationListResponse,
    summary="List guest reservations",
)
async def list_guest_reservations(
    session_id: OptionalGuestSessionId,
    service: ReservationServiceDep,
) -> GuestReservationListResponse:
    """Current reservations of this guest session. No session means none."""
    if not session_id:
        return GuestReservationListResponse()
    return await service.list_guest_reservations(session_id)


@router.delete(
    "/guest/{reservation_id}",
    response_model=MessageResponse,
    summary="Cancel guest reservation",
    description="Cancel a reservation made by this guest session. A signed-in "
    "store owner may also cancel guest bookings at their store here.",
)
async def delete_guest_reservation(
    reservation_id: UUID,
    session_id: OptionalGuestSessionId,
    user: OptionalUser,
    service: ReservationServiceDep,
) -> MessageResponse:
    requester = Requester(customer_id=resolve_customer_id(user), session_id=session_id)
    if not requester.customer_id and not requester.session_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No guest session",
        )
    await service.delete_reservation(reservation_id, requester)
    return MessageResponse(message="Reservation cancelled")


@router.delete(
    "/{reservation_id}",
    response_model=MessageResponse,
    summary="Cancel reservation",
    description="Cancel a reservation and return its bags to the store. "
    "Allowed for the customer who made it and the store owner.",
)
async def delete_reservation(
    reservation_id: UUID,
    customer_id: CurrentCustomerId,
    service: ReservationServiceDep,
) -> MessageResponse:
    await service.delete_reservation(reservation_id, Requester(customer_id=customer_id))
    return MessageResponse(message="Reservation cancelled")
