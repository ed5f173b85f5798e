"""Append-only audit trail of inventory ledger mutations."""

import enum
import uuid

from sqlalchemy import Enum, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from savor.models.base import Base


class MovementReason(str, enum.Enum):
    """Why a store's available units changed."""

    RESERVE = "reserve"
    RELEASE = "release"
    ADJUST = "adjust"


class InventoryMovement(Base):
    """One row per successful reserve, release or owner adjustment.

    Written in the same transaction as the counter update. ``reservation_id``
    is not a foreign key; movement rows outlive deleted reservations.
    """

    __tablename__ = "inventory_movements"

    store_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )
    reservation_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        nullable=True,
        index=True,
    )
    # Negative for reserve, positive for release
    delta: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[MovementReason] = mapped_column(
        Enum(
            MovementReason,
            name="movement_reason",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<InventoryMovement {self.reason.value} {self.delta:+d} store={self.store_id}>"
