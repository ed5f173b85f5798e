"""Payload handed to the notification worker."""

from pydantic import BaseModel


class ReservationSummary(BaseModel):
    """Everything a confirmation message needs, so the worker never queries the DB."""

    reservation_id: str
    customer_name: str = ""
    email: str = ""
    phone: str = ""
    store_name: str = ""
    store_address: str = ""
    quantity: int
    total_amount: float
    pickup_time: str = ""

    @property
    def reachable(self) -> bool:
        return bool(self.email or self.phone)
