"""
Payment Module

Razorpay checkout brokering: orders are created and payments verified
server-side, the key secret never leaves this package.

Key Components:
- gateway.py: RazorpayGateway REST client, signature check and settle_payment
- schemas.py: PaymentOutcome and request/response models
- router.py: /payment/config, /payment/create-order, /payment/verify-payment,
  /payment/order/{order_id}
"""

from .router import router
from .gateway import RazorpayGateway, settle_payment, to_paise
from .exceptions import PaymentGatewayError, PaymentNotConfigured
from .schemas import PaymentOutcome, PaymentOutcomeKind

__all__ = [
    "router",
    "RazorpayGateway",
    "settle_payment",
    "to_paise",
    "PaymentGatewayError",
    "PaymentNotConfigured",
    "PaymentOutcome",
    "PaymentOutcomeKind"
]
