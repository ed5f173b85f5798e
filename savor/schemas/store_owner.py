"""Pydantic schemas for the store-owner dashboard."""

from datetime import date, datetime
from uuid import UUID

from pydantic import Field

from savor.models.reservation import ReservationStatus
from savor.schemas.common import BaseSchema


class StoreOwnerReservation(BaseSchema):
    """A reservation as seen by the store owner (guest bookings included)."""

    id: UUID
    customer_name: str
    customer_email: str
    customer_phone: str
    quantity: int
    total_amount: float
    status: ReservationStatus
    pickup_time: str | None = None
    pickup_timestamp: datetime | None = None
    created_at: datetime
    is_guest: bool


class StoreOwnerReservationList(BaseSchema):
    current_reservations: list[StoreOwnerReservation] = Field(default_factory=list)
    past_reservations: list[StoreOwnerReservation] = Field(default_factory=list)
    current_count: int = 0
    past_count: int = 0


class ReservationStats(BaseSchema):
    total_reservations: int = 0
    active_reservations: int = 0
    completed_reservations: int = 0
    total_revenue: float = 0.0


class StoreStatsResponse(BaseSchema):
    current: ReservationStats
    past: ReservationStats
    date: date


class StoreSettings(BaseSchema):
    """Editable store settings, including the daily bag count."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    address: str | None = Field(default=None, max_length=500)
    image_url: str | None = Field(default=None, max_length=2048)
    unit_price: float = Field(default=0.0, ge=0)
    original_price: float = Field(default=0.0, ge=0)
    discounted_price: float = Field(default=0.0, ge=0)
    available_units: int = Field(default=0, ge=0)
    pickup_window: str | None = Field(default=None, max_length=100)
    pickup_timestamp: datetime | None = None
    is_selling: bool = True


class StoreSettingsResponse(BaseSchema):
    message: str
    settings: StoreSettings
