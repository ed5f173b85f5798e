"""Reservation lifecycle: validate, verify payment, reserve, persist, notify."""

import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from savor.core.config import settings
from savor.core.exceptions import (
    DependencyUnavailable,
    InvalidTransition,
    NotFound,
    OutOfStock,
    PaymentNotCompleted,
    StoreNotSelling,
    Unauthorized,
    ValidationError,
)
from savor.core.security import (
    hash_session_token,
    session_token_matches,
    synthetic_payment_reference,
)
from savor.integrations.stripe.client import PaymentGatewayError, PaymentIntent, StripeClient
from savor.models.reservation import ALLOWED_TRANSITIONS, Reservation, ReservationStatus
from savor.models.store import Store
from savor.schemas.payment import (
    PaymentConfirmRequest,
    PaymentIntentCreate,
    PaymentIntentResponse,
    ReservationCorrelation,
)
from savor.schemas.reservation import (
    GuestReservationListResponse,
    ReservationCreate,
    ReservationListResponse,
    ReservationResponse,
    ReservationStatusResponse,
)
from savor.services.guest_cart import GuestCart
from savor.services.inventory_ledger import InventoryLedger
from savor.services.notification_service import NotificationDispatcher, summarize
from savor.services.reservation_store import ReservationRepository
from savor.services.time_window import DEFAULT_WINDOW, classify

logger = logging.getLogger(__name__)

CENTS = Decimal("100")


@dataclass(frozen=True)
class Requester:
    """Who is asking: an authenticated customer or a guest session."""

    customer_id: str | None = None
    session_id: str | None = None


@dataclass(frozen=True)
class _Contact:
    name: str
    email: str
    phone: str
    pickup_time: str | None


def _parse_store_id(raw: str) -> uuid.UUID:
    if not raw:
        raise ValidationError("Missing required fields")
    try:
        return uuid.UUID(raw)
    except ValueError as exc:
        raise ValidationError("Invalid store ID") from exc


def _validate_quantity(quantity: int) -> int:
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1")
    return quantity


class ReservationService:
    """Runs every reservation flow against the ledger and repository.

    Inventory debit, reservation insert and the movement row share one
    transaction. Notifications and guest-cart writes happen only after it
    commits.
    """

    def __init__(
        self,
        db: AsyncSession,
        guest_cart: GuestCart,
        dispatcher: NotificationDispatcher,
        gateway: StripeClient,
        window: timedelta = DEFAULT_WINDOW,
        ledger: InventoryLedger | None = None,
        repository: ReservationRepository | None = None,
    ) -> None:
        self.db = db
        self.guest_cart = guest_cart
        self.dispatcher = dispatcher
        self.gateway = gateway
        self.window = window
        self.ledger = ledger or InventoryLedger(db)
        self.repository = repository or ReservationRepository(db)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_authenticated_reservation(
        self, customer_id: str, request: ReservationCreate
    ) -> ReservationResponse:
        """Reserve for a signed-in customer who settled payment elsewhere."""
        return await self._create_direct(customer_id, request, prefix="direct")

    async def create_pay_at_store_reservation(
        self, customer_id: str, request: ReservationCreate
    ) -> ReservationResponse:
        """Reserve now, pay at the counter. No gateway involved."""
        return await self._create_direct(customer_id, request, prefix="pay-at-store")

    async def create_guest_reservation(
        self, session_id: str, request: ReservationCreate
    ) -> ReservationResponse:
        """Reserve for an anonymous session.

        The database row is authoritative; the session's cart gets a copy
        after commit so the guest can list bookings without a DB query.
        """
        store_id = _parse_store_id(request.store_id)
        quantity = _validate_quantity(request.quantity)
        if not request.email and not request.phone:
            raise ValidationError("Email or phone is required for guest reservations")

        async with self._transaction():
            reservation = await self._reserve_and_persist(
                store_id,
                quantity,
                customer_id=None,
                payment_reference=synthetic_payment_reference("guest"),
                contact=self._contact(request),
                guest_token_hash=hash_session_token(session_id),
            )

        response = ReservationResponse.from_reservation(reservation)
        try:
            await self.guest_cart.append(session_id, response)
        except RedisError:
            logger.warning("Could not cache guest reservation %s in cart", reservation.id)

        self._notify(reservation)
        return response

    async def confirm_paid_reservation(
        self, customer_id: str, request: PaymentConfirmRequest
    ) -> ReservationResponse:
        """Turn a succeeded payment intent into a reservation, exactly once."""
        payment_reference = request.payment_intent_id

        existing = await self.repository.get_by_payment_reference(payment_reference)
        if existing is not None:
            return self._existing_confirmation(existing, customer_id)
        # No transaction stays open across the gateway call
        await self.db.commit()

        intent = await self._fetch_intent(payment_reference)
        if not intent.succeeded:
            raise PaymentNotCompleted(intent.status)

        correlation = ReservationCorrelation.from_metadata(intent.metadata)
        if correlation.customer_id and correlation.customer_id != customer_id:
            raise Unauthorized("This payment belongs to another customer")

        try:
            async with self._transaction():
                reservation = await self._reserve_and_persist(
                    correlation.store_id,
                    correlation.quantity,
                    customer_id=customer_id,
                    payment_reference=payment_reference,
                    contact=self._contact(request),
                    total_amount=Decimal(intent.amount) / CENTS,
                )
        except IntegrityError:
            # A concurrent confirm for the same intent committed first
            existing = await self.repository.get_by_payment_reference(payment_reference)
            if existing is None:
                raise
            logger.info("Payment %s already confirmed concurrently", payment_reference)
            return self._existing_confirmation(existing, customer_id)
        except (OutOfStock, StoreNotSelling, NotFound) as exc:
            logger.error(
                "Payment %s succeeded but store %s cannot fulfil it (%s); needs refund",
                payment_reference,
                correlation.store_id,
                exc.code,
            )
            raise

        self._notify(reservation)
        return ReservationResponse.from_reservation(reservation)

    async def create_payment_intent(
        self, customer_id: str, request: PaymentIntentCreate
    ) -> PaymentIntentResponse:
        """Create a gateway intent priced from the store, tagged with what it pays for."""
        store_id = _parse_store_id(request.store_id)
        quantity = _validate_quantity(request.quantity)

        store = await self.db.get(Store, store_id)
        if store is None:
            raise NotFound("Store not found")
        if not store.is_selling:
            raise StoreNotSelling("This store is not taking reservations right now")
        # Advisory only; the ledger decides at confirmation time
        if store.available_units < quantity:
            raise OutOfStock(store_id, quantity)

        amount_cents = int(store.unit_price * quantity * CENTS)
        if amount_cents <= 0:
            raise ValidationError("Store has no price set")
        await self.db.commit()

        correlation = ReservationCorrelation(
            store_id=store_id, quantity=quantity, customer_id=customer_id
        )
        try:
            intent = await self.gateway.create_intent(
                amount=amount_cents,
                currency=settings.stripe_currency,
                metadata=correlation.to_metadata(),
            )
        except PaymentGatewayError as exc:
            raise self._translate_gateway_error(exc) from exc

        if not intent.client_secret:
            raise DependencyUnavailable("Payment provider returned no client secret")
        return PaymentIntentResponse(
            client_secret=intent.client_secret,
            payment_intent_id=intent.id,
            amount=intent.amount / 100,
            currency=intent.currency,
        )

    # ------------------------------------------------------------------
    # Deletion and status
    # ------------------------------------------------------------------

    async def delete_reservation(self, reservation_id: uuid.UUID, requester: Requester) -> None:
        """Hard-delete a reservation and give its units back to the store.

        Allowed for the customer who made it, the owner of its store, or
        the guest session that created it.
        """
        reservation = await self.repository.get(reservation_id)
        if reservation is None:
            raise NotFound("Reservation not found")
        self._authorize_delete(reservation, requester)
        if reservation.status == ReservationStatus.COMPLETED:
            raise InvalidTransition("Completed reservations cannot be cancelled")

        async with self._transaction():
            deleted = await self.repository.delete(reservation_id)
            if not deleted:
                current = await self.repository.get_status(reservation_id)
                if current == ReservationStatus.COMPLETED:
                    raise InvalidTransition("Completed reservations cannot be cancelled")
                raise NotFound("Reservation not found")
            await self.ledger.release(
                reservation.store_id, reservation.quantity, reservation_id=reservation_id
            )

        logger.info("Deleted reservation %s", reservation_id)
        if reservation.guest_token_hash:
            try:
                await self.guest_cart.discard(reservation.guest_token_hash, reservation_id)
            except RedisError:
                logger.warning("Could not prune reservation %s from guest cart", reservation_id)

    async def update_status(
        self,
        reservation_id: uuid.UUID,
        new_status: ReservationStatus,
        store_owner_id: str,
    ) -> ReservationStatusResponse:
        """Move a reservation forward. Inventory is not touched."""
        if new_status == ReservationStatus.CANCELLED:
            raise InvalidTransition("Cancel a reservation by deleting it")

        reservation = await self.repository.get(reservation_id)
        if reservation is None:
            raise NotFound("Reservation not found")
        if reservation.store is None or reservation.store.owner_id != store_owner_id:
            raise Unauthorized("You do not own this reservation's store")

        current = reservation.status
        if new_status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransition(
                f"Cannot change status from {current.value} to {new_status.value}"
            )

        async with self._transaction():
            moved = await self.repository.transition_status(reservation_id, current, new_status)
            if not moved:
                raise InvalidTransition("Reservation was modified concurrently")

        logger.info(
            "Reservation %s moved from %s to %s", reservation_id, current.value, new_status.value
        )
        if reservation.guest_token_hash:
            try:
                await self.guest_cart.set_status(
                    reservation.guest_token_hash, reservation_id, new_status
                )
            except RedisError:
                logger.warning("Could not update reservation %s in guest cart", reservation_id)
        return ReservationStatusResponse(
            message="Reservation status updated",
            id=reservation_id,
            status=new_status,
        )

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def list_customer_reservations(
        self, customer_id: str, now: datetime | None = None
    ) -> ReservationListResponse:
        reservations = await self.repository.list_for_customer(customer_id)
        split = classify(reservations, now=now or datetime.now(UTC), window=self.window)
        return ReservationListResponse(
            current_reservations=[ReservationResponse.from_reservation(r) for r in split.current],
            past_reservations=[ReservationResponse.from_reservation(r) for r in split.past],
            current_count=split.current_count,
            past_count=split.past_count,
        )

    async def list_guest_reservations(
        self, session_id: str, now: datetime | None = None
    ) -> GuestReservationListResponse:
        """Current reservations for a guest session, from the cart.

        Falls back to the database when Redis is down.
        """
        now = now or datetime.now(UTC)
        try:
            reservations = await self.guest_cart.list_reservations(session_id, now=now)
        except RedisError:
            logger.warning("Guest cart unavailable; reading guest reservations from database")
            rows = await self.repository.list_for_guest(hash_session_token(session_id))
            split = classify(rows, now=now, window=self.window)
            reservations = [ReservationResponse.from_reservation(r) for r in split.current]
        return GuestReservationListResponse(reservations=reservations, count=len(reservations))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[None]:
        """Commit on success; roll back and translate storage outages on failure."""
        try:
            yield
            await self.db.commit()
        except (OperationalError, InterfaceError) as exc:
            await self.db.rollback()
            logger.error("Database unavailable: %s", exc)
            raise DependencyUnavailable("Storage is temporarily unavailable") from exc
        except BaseException:
            await self.db.rollback()
            raise

    async def _create_direct(
        self, customer_id: str, request: ReservationCreate, prefix: str
    ) -> ReservationResponse:
        store_id = _parse_store_id(request.store_id)
        quantity = _validate_quantity(request.quantity)

        async with self._transaction():
            reservation = await self._reserve_and_persist(
                store_id,
                quantity,
                customer_id=customer_id,
                payment_reference=synthetic_payment_reference(prefix),
                contact=self._contact(request),
            )

        self._notify(reservation)
        return ReservationResponse.from_reservation(reservation)

    async def _reserve_and_persist(
        self,
        store_id: uuid.UUID,
        quantity: int,
        *,
        customer_id: str | None,
        payment_reference: str,
        contact: _Contact,
        guest_token_hash: str | None = None,
        total_amount: Decimal | None = None,
    ) -> Reservation:
        """Debit the ledger, then insert the reservation. Caller commits."""
        reservation_id = uuid.uuid4()
        await self.ledger.reserve(store_id, quantity, reservation_id=reservation_id)

        store = await self.db.get(Store, store_id)
        if store is None:
            raise NotFound("Store not found")
        if total_amount is None:
            total_amount = store.unit_price * quantity

        reservation = Reservation(
            id=reservation_id,
            customer_id=customer_id,
            store_id=store_id,
            quantity=quantity,
            total_amount=total_amount,
            status=ReservationStatus.CONFIRMED,
            payment_reference=payment_reference,
            pickup_time=contact.pickup_time or store.pickup_window,
            pickup_timestamp=store.pickup_timestamp,
            customer_name=contact.name,
            customer_email=contact.email,
            customer_phone=contact.phone,
            guest_token_hash=guest_token_hash,
            store=store,
        )
        await self.repository.insert(reservation)
        logger.info(
            "Created reservation %s: store=%s quantity=%d ref=%s",
            reservation_id,
            store_id,
            quantity,
            payment_reference,
        )
        return reservation

    def _notify(self, reservation: Reservation) -> None:
        self.dispatcher.dispatch(summarize(reservation))

    async def _fetch_intent(self, payment_reference: str) -> PaymentIntent:
        try:
            return await self.gateway.get_intent(payment_reference)
        except PaymentGatewayError as exc:
            raise self._translate_gateway_error(exc) from exc

    @staticmethod
    def _translate_gateway_error(exc: PaymentGatewayError) -> Exception:
        if exc.retryable:
            return DependencyUnavailable("Payment provider is temporarily unavailable")
        if exc.status_code == 404:
            return NotFound("Payment not found")
        return ValidationError(exc.message)

    @staticmethod
    def _existing_confirmation(reservation: Reservation, customer_id: str) -> ReservationResponse:
        if reservation.customer_id != customer_id:
            raise Unauthorized("This payment belongs to another customer")
        logger.info("Payment %s already confirmed", reservation.payment_reference)
        return ReservationResponse.from_reservation(reservation)

    @staticmethod
    def _authorize_delete(reservation: Reservation, requester: Requester) -> None:
        if requester.customer_id:
            store_owner_id = reservation.store.owner_id if reservation.store else None
            if requester.customer_id in (reservation.customer_id, store_owner_id):
                return
        if requester.session_id and session_token_matches(
            requester.session_id, reservation.guest_token_hash
        ):
            return
        raise Unauthorized("You cannot cancel this reservation")

    @staticmethod
    def _contact(request: ReservationCreate | PaymentConfirmRequest) -> _Contact:
        return _Contact(
            name=request.name,
            email=request.email,
            phone=request.phone,
            pickup_time=request.pickup_time,
        )
