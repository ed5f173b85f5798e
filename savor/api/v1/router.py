"""API v1 router combining all route modules."""

from typing import Any

from fastapi import APIRouter

from savor.api.v1 import health, payments, reservations, store_owner
from savor.schemas.common import ErrorResponse

api_router = APIRouter()

# Domain errors render as {"detail", "code"}
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    code: {"model": ErrorResponse} for code in (400, 402, 403, 404, 409, 503)
}

# Include health check routes (no prefix)
api_router.include_router(health.router)

# Reservations (signed-in customers and guests)
api_router.include_router(
    reservations.router,
    prefix="/reservations",
    tags=["reservations"],
    responses=ERROR_RESPONSES,
)

# Stripe payment intents and checkout confirmation
api_router.include_router(
    payments.router,
    prefix="/payment",
    tags=["payments"],
    responses=ERROR_RESPONSES,
)

# Store-owner dashboard (requires auth)
api_router.include_router(
    store_owner.router,
    prefix="/store-owner",
    tags=["store-owner"],
    responses=ERROR_RESPONSES,
)
