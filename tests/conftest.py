"""Pytest configuration and fixtures for the Savor API test suite.

Provides:
- A fresh database per test (SQLite file, or ``TEST_DATABASE_URL``)
- Mock authentication (JWT bypass)
- Mock Redis (fakeredis)
- Mock Stripe gateway and notification dispatcher
- Disabled rate limiting
- Model factory fixtures for Store and Reservation
"""

import os
import uuid
from collections.abc import AsyncGenerator, Callable
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import fakeredis.aioredis
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from savor.core.auth import get_current_user, get_optional_user
from savor.core.database import get_async_session
from savor.core.deps import (
    get_db,
    get_notification_dispatcher,
    get_payment_gateway,
    get_redis,
)
from savor.core.rate_limit import limiter
from savor.integrations.stripe.client import PaymentIntent, StripeClient
from savor.main import app
from savor.models.base import Base
from savor.models.reservation import Reservation, ReservationStatus
from savor.models.store import Store
from savor.services.guest_cart import GuestCart
from savor.services.notification_service import NotificationDispatcher
from savor.services.reservation_service import ReservationService

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
TEST_CUSTOMER_ID = "test-customer-id"
TEST_CUSTOMER_EMAIL = "customer@example.com"
STORE_OWNER_ID = "store-owner-id"
OTHER_CUSTOMER_ID = "other-customer-id"

# ---------------------------------------------------------------------------
# Disable rate limiting globally for tests
# ---------------------------------------------------------------------------
limiter.enabled = False


def make_intent(
    *,
    intent_id: str = "pi_test_123",
    status: str = "succeeded",
    amount: int = 998,
    store_id: uuid.UUID | None = None,
    quantity: int = 2,
    customer_id: str | None = TEST_CUSTOMER_ID,
) -> PaymentIntent:
    """Build a PaymentIntent like the gateway would return."""
    metadata: dict[str, str] = {}
    if store_id is not None:
        metadata = {"storeId": str(store_id), "quantity": str(quantity)}
        if customer_id:
            metadata["customerId"] = customer_id
    return PaymentIntent(
        id=intent_id,
        status=status,
        amount=amount,
        currency="usd",
        client_secret=f"{intent_id}_secret",
        metadata=metadata,
    )


# ---------------------------------------------------------------------------
# Per-test database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Create all tables in a throwaway database for one test.

    Defaults to a SQLite file under ``tmp_path``; set ``TEST_DATABASE_URL``
    to run against Postgres. NullPool keeps connections from outliving the
    test's event loop.
    """
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'savor.db'}"
    test_engine = create_async_engine(url, poolclass=NullPool)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Session for test setup and assertions."""
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Fake Redis
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_redis() -> fakeredis.aioredis.FakeRedis:
    """Provide a fresh fakeredis instance per test."""
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


# ---------------------------------------------------------------------------
# Collaborator mocks
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_gateway() -> AsyncMock:
    """Stripe client stand-in; tests set ``get_intent``/``create_intent`` results."""
    gateway = AsyncMock(spec=StripeClient)
    gateway.get_intent.return_value = make_intent()
    return gateway


@pytest.fixture
def mock_dispatcher() -> MagicMock:
    dispatcher = MagicMock(spec=NotificationDispatcher)
    dispatcher.dispatch.return_value = True
    return dispatcher


@pytest.fixture
def service(
    db_session: AsyncSession,
    fake_redis: fakeredis.aioredis.FakeRedis,
    mock_dispatcher: MagicMock,
    mock_gateway: AsyncMock,
) -> ReservationService:
    """Reservation service wired to the test session and mocks."""
    return ReservationService(
        db_session,
        guest_cart=GuestCart(fake_redis),
        dispatcher=mock_dispatcher,
        gateway=mock_gateway,
    )


# ---------------------------------------------------------------------------
# Auth mock
# ---------------------------------------------------------------------------


@pytest.fixture
def auth_user() -> dict[str, Any]:
    """Return the default authenticated test user payload (mimics a decoded Firebase token)."""
    return {
        "user_id": TEST_CUSTOMER_ID,
        "sub": TEST_CUSTOMER_ID,
        "email": TEST_CUSTOMER_EMAIL,
    }


@pytest.fixture
def login_as(auth_user: dict[str, Any]) -> Callable[[str], None]:
    """Switch the authenticated identity used by ``client`` mid-test."""

    def _login(customer_id: str) -> None:
        auth_user["user_id"] = customer_id
        auth_user["sub"] = customer_id

    return _login


# ---------------------------------------------------------------------------
# Authenticated client (overrides DB, Redis, Auth, collaborators)
# ---------------------------------------------------------------------------


def _override_common(
    session_factory: async_sessionmaker[AsyncSession],
    fake_redis: fakeredis.aioredis.FakeRedis,
    mock_gateway: AsyncMock,
    mock_dispatcher: MagicMock,
) -> None:
    async def _override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as s:
            yield s

    async def _override_redis() -> AsyncGenerator[fakeredis.aioredis.FakeRedis, None]:
        yield fake_redis

    app.dependency_overrides[get_async_session] = _override_session
    app.dependency_overrides[get_db] = _override_session
    app.dependency_overrides[get_redis] = _override_redis
    app.dependency_overrides[get_payment_gateway] = lambda: mock_gateway
    app.dependency_overrides[get_notification_dispatcher] = lambda: mock_dispatcher


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    fake_redis: fakeredis.aioredis.FakeRedis,
    auth_user: dict[str, Any],
    mock_gateway: AsyncMock,
    mock_dispatcher: MagicMock,
) -> AsyncGenerator[AsyncClient, None]:
    """Authenticated async test client with all dependencies overridden."""
    _override_common(session_factory, fake_redis, mock_gateway, mock_dispatcher)

    async def _override_user() -> dict[str, Any]:
        return auth_user

    async def _override_optional_user() -> dict[str, Any] | None:
        return auth_user

    app.dependency_overrides[get_current_user] = _override_user
    app.dependency_overrides[get_optional_user] = _override_optional_user

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Unauthenticated client (no auth bypass; guests use this)
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def unauthed_client(
    session_factory: async_sessionmaker[AsyncSession],
    fake_redis: fakeredis.aioredis.FakeRedis,
    mock_gateway: AsyncMock,
    mock_dispatcher: MagicMock,
) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated async test client. Auth is NOT overridden."""
    _override_common(session_factory, fake_redis, mock_gateway, mock_dispatcher)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Lightweight client (no DB, no auth; for stateless endpoint tests)
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def plain_client() -> AsyncGenerator[AsyncClient, None]:
    """Minimal async test client with NO dependency overrides."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ---------------------------------------------------------------------------
# Model Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def store_factory(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory that creates Store instances in the test database."""

    async def _create(
        *,
        title: str = "Corner Bakery",
        owner_id: str = STORE_OWNER_ID,
        available_units: int = 5,
        unit_price: Decimal = Decimal("4.99"),
        is_selling: bool = True,
        address: str | None = "1 Main St",
        pickup_window: str | None = "18:00-19:00",
    ) -> Store:
        store = Store(
            owner_id=owner_id,
            title=title,
            address=address,
            available_units=available_units,
            unit_price=unit_price,
            original_price=unit_price * 3,
            discounted_price=unit_price,
            is_selling=is_selling,
            pickup_window=pickup_window,
        )
        db_session.add(store)
        await db_session.commit()
        await db_session.refresh(store)
        return store

    return _create


@pytest_asyncio.fixture
async def store(store_factory: Callable[..., Any]) -> Store:
    """A selling store with 5 bags at 4.99."""
    result: Store = await store_factory()
    return result


@pytest.fixture
def reservation_factory(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory that inserts Reservation rows directly, bypassing the ledger."""

    async def _create(
        *,
        store: Store,
        customer_id: str | None = TEST_CUSTOMER_ID,
        quantity: int = 1,
        status: ReservationStatus = ReservationStatus.CONFIRMED,
        created_at: datetime | None = None,
        payment_reference: str | None = None,
        total_amount: Decimal | None = None,
        guest_token_hash: str | None = None,
        customer_name: str = "Sam Customer",
        customer_email: str = TEST_CUSTOMER_EMAIL,
    ) -> Reservation:
        reservation = Reservation(
            customer_id=customer_id,
            store_id=store.id,
            quantity=quantity,
            total_amount=total_amount if total_amount is not None else store.unit_price * quantity,
            status=status,
            payment_reference=payment_reference or f"test-{uuid.uuid4().hex}",
            pickup_time=store.pickup_window,
            customer_name=customer_name,
            customer_email=customer_email,
            guest_token_hash=guest_token_hash,
        )
        if created_at is not None:
            reservation.created_at = created_at
        db_session.add(reservation)
        await db_session.commit()
        await db_session.refresh(reservation)
        return reservation

    return _create


async def units_left(db_session: AsyncSession, store: Store) -> int:
    """Read the store's counter fresh from the database."""
    await db_session.refresh(store)
    return store.available_units
