"""Payment endpoints: Stripe intents and checkout confirmation."""

from fastapi import APIRouter, status

from savor.core.deps import CurrentCustomerId, ReservationServiceDep
from savor.schemas.payment import (
    PaymentConfirmRequest,
    PaymentConfirmResponse,
    PaymentIntentCreate,
    PaymentIntentResponse,
)
from savor.schemas.reservation import ReservationCreate, ReservationResponse

router = APIRouter()


@router.post(
    "/create-intent",
    response_model=PaymentIntentResponse,
    summary="Create payment intent",
    description="Price the order from the store and open a Stripe payment intent for it.",
)
async def create_payment_intent(
    data: PaymentIntentCreate,
    customer_id: CurrentCustomerId,
    service: ReservationServiceDep,
) -> PaymentIntentResponse:
    return await service.create_payment_intent(customer_id, data)


@router.post(
    "/confirm",
    response_model=PaymentConfirmResponse,
    summary="Confirm payment",
    description="""
    Create the reservation for a succeeded payment intent.

    Safe to retry: confirming the same intent again returns the original
    reservation without taking more bags.
    """,
)
async def confirm_payment(
    data: PaymentConfirmRequest,
    customer_id: CurrentCustomerId,
    service: ReservationServiceDep,
) -> PaymentConfirmResponse:
    reservation = await service.confirm_paid_reservation(customer_id, data)
    return PaymentConfirmResponse(reservation=reservation)


@router.post(
    "/confirm-pay-at-store",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reserve and pay at the store",
)
async def confirm_pay_at_store(
    data: ReservationCreate,
    customer_id: CurrentCustomerId,
    service: ReservationServiceDep,
) -> ReservationResponse:
    return await service.create_pay_at_store_reservation(customer_id, data)
