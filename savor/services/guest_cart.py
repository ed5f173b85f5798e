"""Redis-backed guest cart: a session's own reservations without a DB hit."""

import logging
from datetime import UTC, datetime, timedelta
from uuid import UUID

import redis.asyncio as aioredis
from pydantic import ValidationError as PydanticValidationError

from savor.core.security import hash_session_token
from savor.models.reservation import ReservationStatus
from savor.schemas.reservation import ReservationResponse
from savor.services.time_window import DEFAULT_WINDOW, is_current

logger = logging.getLogger(__name__)

# Default TTL for a cart with no activity
GUEST_CART_TTL = 7 * 24 * 3600  # 7 days


class GuestCart:
    """Per-session reservations, one Redis hash per session.

    The hash is keyed by the session token's digest, the same value stored
    as ``Reservation.guest_token_hash``, so a store owner's change to a guest
    booking can reach the guest's cart without knowing the token.

    Hash fields are reservation ids and values are the JSON-serialized
    ``ReservationResponse``. Each operation is a single Redis command, so
    concurrent appends from the same session cannot lose each other.

    Not authoritative: the database is the source of truth. A missing or
    partly corrupt cart reads as whatever is still valid.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        window: timedelta = DEFAULT_WINDOW,
        ttl_seconds: int = GUEST_CART_TTL,
    ) -> None:
        self.redis = redis
        self.window = window
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def key_for_hash(token_hash: str) -> str:
        return f"guest_cart:{token_hash}"

    def _key(self, session_id: str) -> str:
        return self.key_for_hash(hash_session_token(session_id))

    async def append(self, session_id: str, reservation: ReservationResponse) -> None:
        key = self._key(session_id)
        payload = reservation.model_dump_json(by_alias=True)
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.hset(key, str(reservation.id), payload)
            pipe.expire(key, self.ttl_seconds)
            await pipe.execute()

    async def list_reservations(
        self, session_id: str, now: datetime | None = None
    ) -> list[ReservationResponse]:
        """Return in-window reservations, newest first, pruning the rest."""
        now = now or datetime.now(UTC)
        key = self._key(session_id)
        raw: dict[str, str] = await self.redis.hgetall(key)  # type: ignore[misc]
        if not raw:
            return []

        active: list[ReservationResponse] = []
        stale: list[str] = []
        for reservation_id, payload in raw.items():
            try:
                reservation = ReservationResponse.model_validate_json(payload)
            except PydanticValidationError:
                logger.warning("Dropping unreadable guest cart entry %s", reservation_id)
                stale.append(reservation_id)
                continue
            if is_current(reservation.created_at, now, self.window):
                active.append(reservation)
            else:
                stale.append(reservation_id)

        if stale:
            await self.redis.hdel(key, *stale)  # type: ignore[misc]
            logger.debug("Pruned %d expired guest cart entries", len(stale))

        active.sort(key=lambda r: r.created_at, reverse=True)
        return active

    async def contains(self, session_id: str, reservation_id: UUID) -> bool:
        key = self._key(session_id)
        found = await self.redis.hexists(key, str(reservation_id))  # type: ignore[misc]
        return bool(found)

    async def clear(self, session_id: str) -> None:
        await self.redis.delete(self._key(session_id))

    async def discard(self, token_hash: str, reservation_id: UUID) -> None:
        """Drop an entry from the cart of whichever session owns ``token_hash``."""
        key = self.key_for_hash(token_hash)
        await self.redis.hdel(key, str(reservation_id))  # type: ignore[misc]

    async def set_status(
        self, token_hash: str, reservation_id: UUID, status: ReservationStatus
    ) -> bool:
        """Rewrite the cached status of one entry. False if it is not cached."""
        key = self.key_for_hash(token_hash)
        payload: str | None = await self.redis.hget(key, str(reservation_id))  # type: ignore[misc]
        if payload is None:
            return False
        try:
            cached = ReservationResponse.model_validate_json(payload)
        except PydanticValidationError:
            await self.redis.hdel(key, str(reservation_id))  # type: ignore[misc]
            return False
        updated = cached.model_copy(update={"status": status})
        payload = updated.model_dump_json(by_alias=True)
        await self.redis.hset(key, str(reservation_id), payload)  # type: ignore[misc]
        return True
