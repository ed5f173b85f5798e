"""Domain exceptions for the reservation subsystem.

Each exception maps to one HTTP status and a stable machine-readable code.
The FastAPI handler registered in ``savor.main`` renders them as
``{"detail": ..., "code": ...}``.
"""

from fastapi import status


class SavorError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(SavorError):
    """Request rejected before any side effect."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class StoreNotSelling(ValidationError):
    code = "store_not_selling"


class OutOfStock(SavorError):
    """The store does not have enough units left for the requested quantity."""

    status_code = status.HTTP_409_CONFLICT
    code = "out_of_stock"

    def __init__(self, store_id: object, requested: int) -> None:
        self.store_id = store_id
        self.requested = requested
        super().__init__(f"Not enough bags left to reserve {requested}")


class PaymentNotCompleted(SavorError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    code = "payment_not_completed"

    def __init__(self, payment_status: str) -> None:
        self.payment_status = payment_status
        super().__init__(f"Payment not completed (status: {payment_status})")


class NotFound(SavorError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class Unauthorized(SavorError):
    """The requester is authenticated but does not own the resource."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "unauthorized"


class InvalidTransition(SavorError):
    status_code = status.HTTP_409_CONFLICT
    code = "invalid_transition"


class DependencyUnavailable(SavorError):
    """Storage or gateway failure; safe for the caller to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "dependency_unavailable"
    retry_after_seconds = 5
