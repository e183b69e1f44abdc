from typing import Any, Dict, Optional
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
import hashlib
import hmac
import secrets
import time

import httpx
from pydantic import ValidationError

from src.config import settings
from src.logger_config import logger
from src.payments.exceptions import PaymentGatewayError, PaymentNotConfigured
from src.payments.schemas import GatewayOrder, GatewayPayment, PaymentOutcome

def to_paise(amount: Decimal) -> int:
    """Rupees to the gateway's smallest currency unit"""
    return int((Decimal(str(amount)) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))

def generate_receipt() -> str:
    return f"rcpt_{int(time.time() * 1000)}_{secrets.token_hex(4)}"

class RazorpayGateway:
    """Async client for the Razorpay orders/payments REST API.

    The key secret is used for basic auth and signature checks only and is
    never returned to callers.
    """

    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        max_amount: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.key_id = key_id or settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret or settings.RAZORPAY_KEY_SECRET
        self.base_url = base_url or settings.RAZORPAY_API_BASE_URL
        self.max_amount = Decimal(max_amount or settings.PAYMENT_MAX_AMOUNT)
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    def _ensure_configured(self):
        if not self.configured:
            raise PaymentNotConfigured()

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        self._ensure_configured()
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                auth=(self.key_id, self.key_secret),
                timeout=30.0,
                transport=self._transport
            ) as client:
                response = await client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.error("Razorpay {} {} failed: {}", method, path, e)
            raise PaymentGatewayError("Payment gateway unavailable")

        if response.is_error:
            try:
                description = response.json().get("error", {}).get("description")
            except ValueError:
                description = None
            logger.error("Razorpay {} {} returned HTTP {}: {}", method, path, response.status_code, description)
            raise PaymentGatewayError(description or "Payment gateway error", status_code=response.status_code)

        try:
            return response.json()
        except ValueError:
            raise PaymentGatewayError("Payment gateway returned an invalid response")

    async def create_order(
        self,
        amount: Decimal,
        currency: str = "INR",
        receipt: Optional[str] = None,
        notes: Optional[Dict[str, Any]] = None
    ) -> GatewayOrder:
        """Create an order for an amount given in rupees"""
        amount = Decimal(str(amount))
        if amount <= 0:
            raise ValueError("Valid amount is required (must be positive number)")
        if amount > self.max_amount:
            raise ValueError("Amount exceeds maximum limit")

        payload = {
            "amount": to_paise(amount),
            "currency": currency,
            "receipt": receipt or generate_receipt(),
            "notes": {
                **(notes or {}),
                "created_at": datetime.now(timezone.utc).isoformat(),
            },
        }
        data = await self._request("POST", "/orders", json=payload)

        try:
            order = GatewayOrder(**data)
        except ValidationError:
            raise PaymentGatewayError("Payment gateway returned an invalid order")

        logger.info("Razorpay order {} created for {} paise", order.id, order.amount)
        return order

    async def fetch_order(self, order_id: str) -> GatewayOrder:
        data = await self._request("GET", f"/orders/{order_id}")
        try:
            return GatewayOrder(**data)
        except ValidationError:
            raise PaymentGatewayError("Payment gateway returned an invalid order")

    async def fetch_payment(self, payment_id: str) -> GatewayPayment:
        data = await self._request("GET", f"/payments/{payment_id}")
        try:
            return GatewayPayment(**data)
        except ValidationError:
            raise PaymentGatewayError("Payment gateway returned an invalid payment")

    def expected_signature(self, order_id: str, payment_id: str) -> str:
        self._ensure_configured()
        body = f"{order_id}|{payment_id}".encode()
        return hmac.new(self.key_secret.encode(), body, hashlib.sha256).hexdigest()

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        if not order_id or not payment_id or not signature:
            return False
        return hmac.compare_digest(self.expected_signature(order_id, payment_id), signature)

async def settle_payment(
    gateway: RazorpayGateway,
    order_id: str,
    payment_id: Optional[str],
    signature: Optional[str]
) -> PaymentOutcome:
    """Turn a checkout callback into a verified, failed or cancelled outcome.

    A missing payment id means the passenger closed the checkout. Once the
    signature checks out, a failure to fetch payment details does not undo
    the verification; the payment is reported as captured.
    """
    if not payment_id:
        logger.info("Checkout for order {} was cancelled", order_id)
        return PaymentOutcome.cancelled(order_id=order_id)

    if not gateway.verify_signature(order_id, payment_id, signature or ""):
        logger.warning("Payment signature verification failed for order {} payment {}", order_id, payment_id)
        return PaymentOutcome.failed(
            "Payment verification failed. Invalid signature.",
            order_id=order_id,
            payment_id=payment_id
        )

    status, method = "captured", None
    try:
        payment = await gateway.fetch_payment(payment_id)
        status = payment.status or status
        method = payment.method
    except PaymentGatewayError as e:
        logger.warning("Could not fetch payment details for {}: {}", payment_id, e)

    if status == "failed":
        return PaymentOutcome.failed("Payment failed at the gateway", order_id=order_id, payment_id=payment_id)

    logger.info("Payment {} verified for order {} ({})", payment_id, order_id, status)
    return PaymentOutcome.verified_payment(order_id, payment_id, status, method)
