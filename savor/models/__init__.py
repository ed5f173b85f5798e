"""SQLAlchemy models."""

from savor.models.base import Base
from savor.models.inventory_movement import InventoryMovement, MovementReason
from savor.models.reservation import ALLOWED_TRANSITIONS, Reservation, ReservationStatus
from savor.models.store import Store

__all__ = [
    # Base
    "Base",
    # Stores
    "Store",
    # Reservations
    "Reservation",
    "ReservationStatus",
    "ALLOWED_TRANSITIONS",
    # Inventory audit
    "InventoryMovement",
    "MovementReason",
]
