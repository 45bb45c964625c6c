"""
Razorpay gateway client for order creation and payment signature checks.
Separated from business logic for clean architecture.

The SDK is synchronous (requests-based), so order creation runs in the
threadpool. Signature checks go through the SDK utility and stay local.
"""

from functools import lru_cache
from typing import Any, Optional

import razorpay
import requests
from starlette.concurrency import run_in_threadpool

from eventpass.core.config import get_settings
from eventpass.core.exceptions import GatewayError
from eventpass.core.logging import get_logger

logger = get_logger(__name__)

GATEWAY_ERRORS = (
    razorpay.errors.BadRequestError,
    razorpay.errors.GatewayError,
    razorpay.errors.ServerError,
    requests.RequestException,
)


class RazorpayGateway:
    """Thin wrapper around razorpay.Client; the client's key secret signs checkouts."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        currency: str = "INR",
        client: Optional[Any] = None,
    ):
        self.key_id = key_id
        self.currency = currency
        if client is None:
            client = razorpay.Client(auth=(key_id, key_secret))
        self._client = client

    async def create_order(self, amount: int, receipt: str) -> dict:
        """Create an order for `amount` minor units. Raises GatewayError on failure."""
        options = {
            "amount": amount,
            "currency": self.currency,
            "receipt": receipt,
            "payment_capture": 1,
        }
        try:
            return await run_in_threadpool(self._client.order.create, options)
        except GATEWAY_ERRORS as exc:
            logger.error(
                "gateway_order_failed",
                receipt=receipt,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise GatewayError() from exc

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Check the checkout signature with the SDK (HMAC-SHA256 of "<order_id>|<payment_id>")."""
        try:
            return self._client.utility.verify_payment_signature({
                "razorpay_order_id": order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
            })
        except razorpay.errors.SignatureVerificationError:
            return False
        except TypeError:
            # non-ASCII signature; the SDK compares str digests
            return False


@lru_cache()
def _build_gateway(key_id: str, key_secret: str, currency: str) -> RazorpayGateway:
    return RazorpayGateway(key_id, key_secret, currency)


def get_payment_gateway() -> RazorpayGateway:
    """FastAPI dependency returning the process-wide gateway client."""
    settings = get_settings()
    if not settings.RAZORPAY_KEY_ID or not settings.RAZORPAY_KEY_SECRET:
        logger.error("gateway_not_configured")
        raise GatewayError("Payment gateway not configured")
    return _build_gateway(
        settings.RAZORPAY_KEY_ID,
        settings.RAZORPAY_KEY_SECRET,
        settings.RAZORPAY_CURRENCY,
    )
