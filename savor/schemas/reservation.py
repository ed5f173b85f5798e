"""Reservation request/response schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from savor.models.reservation import Reservation, ReservationStatus
from savor.schemas.common import BaseSchema


class ReservationCreate(BaseSchema):
    """Checkout request for an authenticated or pay-at-store reservation.

    ``store_id`` and ``quantity`` are checked by the lifecycle manager so the
    same rules apply to every entry point.
    """

    store_id: str = ""
    quantity: int = 0
    pickup_time: str | None = Field(default=None, max_length=100)
    name: str = Field(default="", max_length=255)
    email: str = Field(default="", max_length=255)
    phone: str = Field(default="", max_length=50)


class GuestReservationCreate(ReservationCreate):
    """Guest checkout. At least one of email/phone must be present."""


class ReservationResponse(BaseSchema):
    """A reservation as returned to customers and cached in guest carts."""

    id: UUID
    store_id: UUID
    store_name: str = ""
    store_image: str | None = None
    store_address: str | None = None
    quantity: int
    total_amount: float
    status: ReservationStatus
    payment_reference: str
    pickup_time: str | None = None
    pickup_timestamp: datetime | None = None
    created_at: datetime
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: str = ""

    @classmethod
    def from_reservation(cls, reservation: Reservation) -> "ReservationResponse":
        """Build a response from a reservation whose ``store`` is loaded."""
        store = reservation.store
        return cls(
            id=reservation.id,
            store_id=reservation.store_id,
            store_name=store.title if store else "",
            store_image=store.image_url if store else None,
            store_address=store.address if store else None,
            quantity=reservation.quantity,
            total_amount=float(reservation.total_amount),
            status=reservation.status,
            payment_reference=reservation.payment_reference,
            pickup_time=reservation.pickup_time,
            pickup_timestamp=reservation.pickup_timestamp,
            created_at=reservation.created_at,
            customer_name=reservation.customer_name,
            customer_email=reservation.customer_email,
            customer_phone=reservation.customer_phone,
        )


class ReservationListResponse(BaseSchema):
    """Reservations split by the rolling time window. Never null."""

    current_reservations: list[ReservationResponse] = Field(default_factory=list)
    past_reservations: list[ReservationResponse] = Field(default_factory=list)
    current_count: int = 0
    past_count: int = 0


class GuestReservationListResponse(BaseSchema):
    reservations: list[ReservationResponse] = Field(default_factory=list)
    count: int = 0


class ReservationStatusUpdate(BaseSchema):
    status: ReservationStatus


class ReservationStatusResponse(BaseSchema):
    message: str
    id: UUID
    status: ReservationStatus
