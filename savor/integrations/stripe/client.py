"""Stripe PaymentIntents client using httpx."""

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from savor.core.config import settings

logger = logging.getLogger(__name__)

STATUS_SUCCEEDED = "succeeded"


@dataclass
class PaymentIntent:
    """The subset of a Stripe PaymentIntent the reservation flow reads."""

    id: str
    status: str
    amount: int  # smallest currency unit
    currency: str
    client_secret: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_SUCCEEDED

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PaymentIntent":
        return cls(
            id=data["id"],
            status=data.get("status", "unknown"),
            amount=int(data.get("amount", 0)),
            currency=data.get("currency", ""),
            client_secret=data.get("client_secret"),
            metadata={str(k): str(v) for k, v in (data.get("metadata") or {}).items()},
        )


class PaymentGatewayError(Exception):
    """Stripe rejected the request or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        """Transport failures, rate limits and 5xx are worth retrying."""
        return self.status_code is None or self.status_code == 429 or self.status_code >= 500


class StripeClient:
    """Async client for the Stripe PaymentIntents API."""

    def __init__(
        self,
        secret_key: str,
        api_base: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = (api_base or settings.stripe_api_base).rstrip("/")
        self.timeout = timeout or settings.payment_timeout_seconds
        self.headers = {
            "Authorization": f"Bearer {secret_key}",
            "Content-Type": "application/x-www-form-urlencoded",
        }

    async def create_intent(
        self,
        amount: int,
        currency: str,
        metadata: dict[str, str],
    ) -> PaymentIntent:
        """Create a card PaymentIntent carrying ``metadata``."""
        form: dict[str, str] = {
            "amount": str(amount),
            "currency": currency,
            "payment_method_types[]": "card",
        }
        for key, value in metadata.items():
            form[f"metadata[{key}]"] = value

        data = await self._request("POST", "/payment_intents", data=form)
        intent = PaymentIntent.from_api(data)
        logger.info("Created payment intent %s for %d %s", intent.id, amount, currency)
        return intent

    async def get_intent(self, intent_id: str) -> PaymentIntent:
        data = await self._request("GET", f"/payment_intents/{intent_id}")
        return PaymentIntent.from_api(data)

    async def _request(
        self,
        method: str,
        path: str,
        data: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    data=data,
                    headers=self.headers,
                )
        except httpx.HTTPError as exc:
            logger.warning("Stripe request %s %s failed: %s", method, path, exc)
            raise PaymentGatewayError(f"Payment provider unreachable: {exc}") from exc

        if not response.is_success:
            message = "Payment provider error"
            try:
                message = response.json().get("error", {}).get("message") or message
            except ValueError:
                pass
            logger.error(
                "Stripe API error: %s %s status=%s message=%s",
                method,
                path,
                response.status_code,
                message,
            )
            raise PaymentGatewayError(message, status_code=response.status_code)

        result: dict[str, Any] = response.json()
        return result
