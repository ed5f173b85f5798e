"""Dependency injection for FastAPI routes."""

from collections.abc import AsyncGenerator
from datetime import timedelta
from typing import Annotated

import redis.asyncio as aioredis
from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

# Re-export auth dependencies for convenience
from savor.core.auth import (
    CurrentCustomerId,
    CurrentUser,
    OptionalUser,
    get_current_customer_id,
    get_current_user,
    get_optional_user,
)
from savor.core.config import settings
from savor.core.database import get_async_session
from savor.core.security import generate_session_id
from savor.integrations.stripe.client import StripeClient
from savor.services.guest_cart import GuestCart
from savor.services.notification_service import NotificationDispatcher
from savor.services.reservation_service import ReservationService
from savor.services.store_owner_service import StoreOwnerService

SESSION_HEADER = "X-Session-ID"


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Alias for get_async_session."""
    async for session in get_async_session():
        yield session


# Shared Redis connection pool
_redis_pool: aioredis.ConnectionPool | None = None


def _get_redis_pool() -> aioredis.ConnectionPool:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.ConnectionPool.from_url(
            str(settings.redis_url),
            decode_responses=True,
            socket_connect_timeout=settings.redis_timeout_seconds,
            socket_timeout=settings.redis_timeout_seconds,
        )
    return _redis_pool


async def close_redis_pool() -> None:
    """Disconnect the shared pool on shutdown."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.disconnect()
        _redis_pool = None


async def get_redis() -> AsyncGenerator[aioredis.Redis, None]:
    """Yield a Redis client from the shared connection pool."""
    pool = _get_redis_pool()
    r = aioredis.Redis(connection_pool=pool)
    try:
        yield r
    finally:
        await r.aclose()


# Database session dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]
RedisClient = Annotated[aioredis.Redis, Depends(get_redis)]


def reservation_window() -> timedelta:
    return timedelta(hours=settings.reservation_window_hours)


def get_payment_gateway() -> StripeClient:
    return StripeClient(settings.stripe_secret_key)


def get_notification_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher()


def get_guest_cart(redis: RedisClient) -> GuestCart:
    return GuestCart(
        redis,
        window=reservation_window(),
        ttl_seconds=settings.guest_cart_ttl_seconds,
    )


def get_reservation_service(
    db: DBSession,
    guest_cart: Annotated[GuestCart, Depends(get_guest_cart)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_notification_dispatcher)],
    gateway: Annotated[StripeClient, Depends(get_payment_gateway)],
) -> ReservationService:
    return ReservationService(
        db,
        guest_cart=guest_cart,
        dispatcher=dispatcher,
        gateway=gateway,
        window=reservation_window(),
    )


def get_store_owner_service(db: DBSession) -> StoreOwnerService:
    return StoreOwnerService(db, window=reservation_window())


ReservationServiceDep = Annotated[ReservationService, Depends(get_reservation_service)]
StoreOwnerServiceDep = Annotated[StoreOwnerService, Depends(get_store_owner_service)]


def _presented_session_id(request: Request) -> str | None:
    return request.cookies.get(settings.session_cookie_name) or request.headers.get(
        SESSION_HEADER
    )


def get_or_issue_guest_session(request: Request, response: Response) -> str:
    """Return the caller's guest session token, issuing one on first use."""
    session_id = _presented_session_id(request)
    if session_id:
        return session_id

    session_id = generate_session_id()
    response.set_cookie(
        settings.session_cookie_name,
        session_id,
        max_age=settings.guest_cart_ttl_seconds,
        httponly=True,
        secure=settings.environment == "production",
        samesite="lax",
    )
    response.headers[SESSION_HEADER] = session_id
    return session_id


def get_optional_guest_session(request: Request) -> str | None:
    return _presented_session_id(request)


GuestSessionId = Annotated[str, Depends(get_or_issue_guest_session)]
OptionalGuestSessionId = Annotated[str | None, Depends(get_optional_guest_session)]


__all__ = [
    "CurrentCustomerId",
    "CurrentUser",
    "DBSession",
    "GuestSessionId",
    "OptionalGuestSessionId",
    "OptionalUser",
    "RedisClient",
    "ReservationServiceDep",
    "StoreOwnerServiceDep",
    "get_current_customer_id",
    "get_current_user",
    "get_db",
    "get_guest_cart",
    "get_notification_dispatcher",
    "get_optional_user",
    "get_payment_gateway",
    "get_redis",
    "get_reservation_service",
    "get_store_owner_service",
]
