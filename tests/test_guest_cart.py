"""Tests for the Redis-backed guest cart."""

import uuid
from datetime import UTC, datetime, timedelta

import fakeredis.aioredis

from savor.core.security import hash_session_token
from savor.models.reservation import ReservationStatus
from savor.schemas.reservation import ReservationResponse
from savor.services.guest_cart import GuestCart

SESSION = "guest-session-abc"
CART_KEY = GuestCart.key_for_hash(hash_session_token(SESSION))


def _reservation(created_at: datetime, quantity: int = 1) -> ReservationResponse:
    return ReservationResponse(
        id=uuid.uuid4(),
        store_id=uuid.uuid4(),
        store_name="Corner Bakery",
        quantity=quantity,
        total_amount=4.99 * quantity,
        status=ReservationStatus.CONFIRMED,
        payment_reference=f"guest-{uuid.uuid4().hex}",
        created_at=created_at,
        customer_email="guest@example.com",
    )


class TestGuestCart:
    async def test_missing_cart_is_empty(self, fake_redis: fakeredis.aioredis.FakeRedis) -> None:
        assert await GuestCart(fake_redis).list_reservations(SESSION) == []

    async def test_append_then_list_newest_first(
        self, fake_redis: fakeredis.aioredis.FakeRedis
    ) -> None:
        cart = GuestCart(fake_redis)
        now = datetime.now(UTC)
        older = _reservation(now - timedelta(hours=2))
        newer = _reservation(now - timedelta(minutes=1))

        await cart.append(SESSION, older)
        await cart.append(SESSION, newer)

        listed = await cart.list_reservations(SESSION, now=now)
        assert [r.id for r in listed] == [newer.id, older.id]

    async def test_append_sets_ttl(self, fake_redis: fakeredis.aioredis.FakeRedis) -> None:
        cart = GuestCart(fake_redis, ttl_seconds=600)
        await cart.append(SESSION, _reservation(datetime.now(UTC)))
        ttl = await fake_redis.ttl(CART_KEY)
        assert 0 < ttl <= 600

    async def test_list_prunes_entries_outside_window(
        self, fake_redis: fakeredis.aioredis.FakeRedis
    ) -> None:
        cart = GuestCart(fake_redis)
        now = datetime.now(UTC)
        fresh = _reservation(now - timedelta(hours=1))
        stale = _reservation(now - timedelta(hours=30))
        await cart.append(SESSION, fresh)
        await cart.append(SESSION, stale)

        listed = await cart.list_reservations(SESSION, now=now)

        assert [r.id for r in listed] == [fresh.id]
        assert await cart.contains(SESSION, fresh.id)
        assert not await cart.contains(SESSION, stale.id)

    async def test_corrupt_entry_is_discarded(
        self, fake_redis: fakeredis.aioredis.FakeRedis
    ) -> None:
        cart = GuestCart(fake_redis)
        good = _reservation(datetime.now(UTC))
        await cart.append(SESSION, good)
        await fake_redis.hset(CART_KEY, "broken", "{not json")

        listed = await cart.list_reservations(SESSION)

        assert [r.id for r in listed] == [good.id]
        assert not await fake_redis.hexists(CART_KEY, "broken")

    async def test_discard_and_clear(self, fake_redis: fakeredis.aioredis.FakeRedis) -> None:
        cart = GuestCart(fake_redis)
        first = _reservation(datetime.now(UTC))
        second = _reservation(datetime.now(UTC))
        await cart.append(SESSION, first)
        await cart.append(SESSION, second)

        await cart.discard(hash_session_token(SESSION), first.id)
        assert [r.id for r in await cart.list_reservations(SESSION)] == [second.id]

        await cart.clear(SESSION)
        assert await cart.list_reservations(SESSION) == []

    async def test_sessions_are_isolated(self, fake_redis: fakeredis.aioredis.FakeRedis) -> None:
        cart = GuestCart(fake_redis)
        await cart.append(SESSION, _reservation(datetime.now(UTC)))
        assert await cart.list_reservations("someone-else") == []

    async def test_key_does_not_contain_raw_token(
        self, fake_redis: fakeredis.aioredis.FakeRedis
    ) -> None:
        await GuestCart(fake_redis).append(SESSION, _reservation(datetime.now(UTC)))
        keys = await fake_redis.keys("guest_cart:*")
        assert keys == [CART_KEY]
        assert SESSION not in CART_KEY

    async def test_set_status_rewrites_entry(
        self, fake_redis: fakeredis.aioredis.FakeRedis
    ) -> None:
        cart = GuestCart(fake_redis)
        reservation = _reservation(datetime.now(UTC))
        await cart.append(SESSION, reservation)

        updated = await cart.set_status(
            hash_session_token(SESSION), reservation.id, ReservationStatus.COMPLETED
        )

        assert updated is True
        [listed] = await cart.list_reservations(SESSION)
        assert listed.status == ReservationStatus.COMPLETED
        assert listed.quantity == reservation.quantity

    async def test_set_status_on_missing_entry(
        self, fake_redis: fakeredis.aioredis.FakeRedis
    ) -> None:
        cart = GuestCart(fake_redis)
        updated = await cart.set_status(
            hash_session_token(SESSION), uuid.uuid4(), ReservationStatus.COMPLETED
        )
        assert updated is False
        assert await fake_redis.exists(CART_KEY) == 0

    async def test_set_status_drops_corrupt_entry(
        self, fake_redis: fakeredis.aioredis.FakeRedis
    ) -> None:
        cart = GuestCart(fake_redis)
        broken_id = uuid.uuid4()
        await fake_redis.hset(CART_KEY, str(broken_id), "{not json")

        updated = await cart.set_status(
            hash_session_token(SESSION), broken_id, ReservationStatus.COMPLETED
        )

        assert updated is False
        assert not await fake_redis.hexists(CART_KEY, str(broken_id))
