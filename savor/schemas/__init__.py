"""Pydantic schemas for request/response validation."""

from savor.schemas.common import ErrorResponse, HealthResponse, MessageResponse
from savor.schemas.reservation import (
    GuestReservationCreate,
    ReservationCreate,
    ReservationListResponse,
    ReservationResponse,
)

__all__ = [
    "HealthResponse",
    "ErrorResponse",
    "MessageResponse",
    "ReservationCreate",
    "GuestReservationCreate",
    "ReservationResponse",
    "ReservationListResponse",
]
