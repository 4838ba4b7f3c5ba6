"""
Yoco Checkout API client.

Only checkout creation is needed: the store owner is redirected to the hosted
page and the result arrives later through the signed webhook. The redirect
back to the app is never treated as proof of payment.
"""

from dataclasses import dataclass
from typing import Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)

settings = get_settings()


@dataclass
class CheckoutSession:
    """Hosted checkout created for a top-up."""

    checkout_id: str
    redirect_url: str


class YocoError(Exception):
    """Base exception for Yoco API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[dict] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message)


class YocoClient:
    """Async client for the Yoco Checkout API."""

    def __init__(
        self, secret_key: Optional[str] = None, base_url: Optional[str] = None
    ):
        self.secret_key = secret_key or settings.YOCO_SECRET_KEY
        if not self.secret_key:
            raise YocoError("YOCO_SECRET_KEY is not configured")
        self.base_url = (base_url or settings.YOCO_API_URL).rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    async def create_checkout(
        self,
        *,
        amount_cents: int,
        success_url: str,
        cancel_url: Optional[str] = None,
        external_id: Optional[str] = None,
        metadata: Optional[dict] = None,
        currency: str = "ZAR",
    ) -> CheckoutSession:
        """
        Create a hosted checkout.

        Raises:
            YocoError: non-2xx response or a body without ``id``/``redirectUrl``.
        """
        if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
            raise YocoError("amount_cents must be an integer")
        if amount_cents <= 0:
            raise YocoError("amount_cents must be positive")

        payload: dict = {
            "amount": amount_cents,
            "currency": currency,
            "successUrl": success_url,
        }
        if cancel_url:
            payload["cancelUrl"] = cancel_url
        if external_id:
            payload["externalId"] = external_id
        if metadata:
            payload["metadata"] = metadata

        async with httpx.AsyncClient(timeout=30.0) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/checkouts",
                    headers=self._headers,
                    json=payload,
                )
            except httpx.HTTPError as e:
                logger.error("Yoco checkout request failed: %s", type(e).__name__)
                raise YocoError("Could not reach Yoco") from e

        if not response.is_success:
            # Response bodies can carry customer details; log the status only
            logger.error("Yoco API error: %d", response.status_code)
            raise YocoError(
                "Failed to create Yoco checkout session",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise YocoError("Invalid Yoco checkout response") from e

        if not isinstance(data, dict):
            data = {}
        checkout_id, redirect_url = data.get("id"), data.get("redirectUrl")
        if not checkout_id or not redirect_url:
            logger.error("Unexpected Yoco checkout response")
            raise YocoError("Invalid Yoco checkout response")

        return CheckoutSession(checkout_id=checkout_id, redirect_url=redirect_url)


def get_yoco_client() -> YocoClient:
    """Get a YocoClient instance."""
    return YocoClient()
