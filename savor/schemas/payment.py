"""Payment schemas and the typed payment-intent correlation payload."""

from uuid import UUID

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from savor.core.exceptions import ValidationError
from savor.schemas.common import BaseSchema
from savor.schemas.reservation import ReservationResponse


class ReservationCorrelation(BaseModel):
    """What a payment intent is paying for.

    Attached to the intent's metadata at creation and read back on
    confirmation; Stripe metadata values are strings, so the round trip goes
    through ``to_metadata``/``from_metadata``.
    """

    store_id: UUID
    quantity: int = Field(ge=1)
    customer_id: str | None = None

    def to_metadata(self) -> dict[str, str]:
        metadata = {"storeId": str(self.store_id), "quantity": str(self.quantity)}
        if self.customer_id:
            metadata["customerId"] = self.customer_id
        return metadata

    @classmethod
    def from_metadata(cls, metadata: dict[str, str]) -> "ReservationCorrelation":
        try:
            return cls(
                store_id=metadata.get("storeId", ""),  # type: ignore[arg-type]
                quantity=metadata.get("quantity", "0"),  # type: ignore[arg-type]
                customer_id=metadata.get("customerId") or None,
            )
        except PydanticValidationError as exc:
            raise ValidationError("Payment is not linked to a reservation") from exc


class PaymentIntentCreate(BaseSchema):
    store_id: str = ""
    quantity: int = 0


class PaymentIntentResponse(BaseSchema):
    client_secret: str
    payment_intent_id: str
    amount: float
    currency: str


class PaymentConfirmRequest(BaseSchema):
    """Confirm a paid intent. Contact details feed the confirmation message."""

    payment_intent_id: str = Field(..., min_length=1, max_length=255)
    pickup_time: str | None = Field(default=None, max_length=100)
    name: str = Field(default="", max_length=255)
    email: str = Field(default="", max_length=255)
    phone: str = Field(default="", max_length=50)


class PaymentConfirmResponse(BaseSchema):
    status: str = "success"
    reservation: ReservationResponse
