"""Store model: a merchant's shop and its daily bag inventory."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from savor.models.base import Base

if TYPE_CHECKING:
    from savor.models.reservation import Reservation


class Store(Base):
    """A shop selling a limited daily quantity of surprise bags.

    ``available_units`` is the shared inventory counter. It is only
    decremented by the inventory ledger's conditional update and only
    incremented by a release (or an explicit owner settings edit).
    """

    __tablename__ = "stores"
    __table_args__ = (
        CheckConstraint("available_units >= 0", name="available_units_non_negative"),
        CheckConstraint("unit_price >= 0", name="unit_price_non_negative"),
    )

    # Auth subject of the merchant who owns this store
    owner_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )

    # Display information
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    # Inventory
    available_units: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    is_selling: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    # Pricing
    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        default=Decimal("0"),
        nullable=False,
    )
    original_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        default=Decimal("0"),
        nullable=False,
    )
    discounted_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        default=Decimal("0"),
        nullable=False,
    )

    # Pickup
    pickup_window: Mapped[str | None] = mapped_column(String(100), nullable=True)
    pickup_timestamp: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    reservations: Mapped[list["Reservation"]] = relationship(
        "Reservation",
        back_populates="store",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Store {self.title} ({self.available_units} left)>"
