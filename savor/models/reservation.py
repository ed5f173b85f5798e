"""Reservation model: a customer's claim on units of a store's inventory."""

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from savor.models.base import Base

if TYPE_CHECKING:
    from savor.models.store import Store


class ReservationStatus(str, enum.Enum):
    """Lifecycle status of a reservation."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Forward-only status moves a store owner may make. Cancellation happens
# through deletion, which also releases inventory.
ALLOWED_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {ReservationStatus.CONFIRMED, ReservationStatus.COMPLETED}
    ),
    ReservationStatus.CONFIRMED: frozenset({ReservationStatus.COMPLETED}),
    ReservationStatus.COMPLETED: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
}


class Reservation(Base):
    """A durable reservation record.

    Authenticated customers have ``customer_id`` set; guest bookings leave it
    null and carry ``guest_token_hash`` instead. ``store_id`` and
    ``quantity`` are write-once. ``payment_reference`` is unique, which makes
    confirming the same payment twice impossible at the storage level.
    """

    __tablename__ = "reservations"
    __table_args__ = (CheckConstraint("quantity >= 1", name="quantity_positive"),)

    customer_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        index=True,
    )
    store_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0"),
    )

    status: Mapped[ReservationStatus] = mapped_column(
        Enum(
            ReservationStatus,
            name="reservation_status",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=ReservationStatus.CONFIRMED,
        nullable=False,
    )

    payment_reference: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )

    # Pickup
    pickup_time: Mapped[str | None] = mapped_column(String(100), nullable=True)
    pickup_timestamp: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Denormalized contact info for notifications without a join
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    customer_phone: Mapped[str] = mapped_column(String(50), nullable=False, default="")

    # sha256 of the guest session token that created this booking
    guest_token_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Relationships
    store: Mapped["Store"] = relationship("Store", back_populates="reservations")

    @property
    def is_guest(self) -> bool:
        return self.customer_id is None

    def __repr__(self) -> str:
        return f"<Reservation {self.id} x{self.quantity} ({self.status.value})>"
