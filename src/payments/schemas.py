from pydantic import BaseModel, Field, validator
from typing import Any, Dict, List, Literal, Optional, Union
from decimal import Decimal
from enum import Enum

class PaymentOutcomeKind(str, Enum):
    VERIFIED = "verified"
    FAILED = "failed"
    CANCELLED = "cancelled"

class PaymentOutcome(BaseModel):
    """Result of settling one checkout attempt"""
    kind: PaymentOutcomeKind
    order_id: Optional[str] = None
    payment_id: Optional[str] = None
    status: Optional[str] = None
    method: Optional[str] = None
    reason: Optional[str] = None

    @property
    def verified(self) -> bool:
        return self.kind == PaymentOutcomeKind.VERIFIED

    @classmethod
    def verified_payment(cls, order_id: str, payment_id: str, status: str, method: Optional[str] = None):
        return cls(
            kind=PaymentOutcomeKind.VERIFIED, order_id=order_id, payment_id=payment_id,
            status=status, method=method
        )

    @classmethod
    def failed(cls, reason: str, order_id: Optional[str] = None, payment_id: Optional[str] = None):
        return cls(kind=PaymentOutcomeKind.FAILED, reason=reason, order_id=order_id, payment_id=payment_id)

    @classmethod
    def cancelled(cls, order_id: Optional[str] = None):
        return cls(kind=PaymentOutcomeKind.CANCELLED, order_id=order_id, reason="Payment was cancelled")

# Gateway objects
class GatewayOrder(BaseModel):
    id: str
    amount: int  # paise
    currency: str = "INR"
    receipt: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[int] = None

class GatewayPayment(BaseModel):
    id: str
    order_id: Optional[str] = None
    amount: Optional[int] = None
    currency: Optional[str] = None
    status: Optional[str] = None
    method: Optional[str] = None
    captured: Optional[bool] = None
    created_at: Optional[int] = None

# API request/response models
class OrderBookingDetails(BaseModel):
    bus_name: Optional[str] = None
    travel_date: Optional[str] = None
    seats: Union[List[str], str, None] = None
    passenger_count: Optional[int] = None

class CreateOrderRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Amount in rupees")
    currency: Literal["INR"] = "INR"
    receipt: Optional[str] = Field(None, max_length=40)
    notes: Dict[str, Any] = {}
    booking_details: Optional[OrderBookingDetails] = None

class CreateOrderResponse(BaseModel):
    order_id: str
    amount: int
    amount_inr: Decimal
    currency: str
    receipt: Optional[str] = None

class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: str
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None

    @validator('razorpay_order_id')
    def validate_order_id(cls, v):
        if not v.startswith('order_'):
            raise ValueError('Invalid Razorpay order ID format')
        return v

    @validator('razorpay_payment_id')
    def validate_payment_id(cls, v):
        if v and not v.startswith('pay_'):
            raise ValueError('Invalid Razorpay payment ID format')
        return v

class VerifyPaymentResponse(BaseModel):
    success: bool
    verified: bool
    message: str
    outcome: PaymentOutcome

class PaymentConfigResponse(BaseModel):
    key_id: str
    currency: str = "INR"
    name: str
    description: str = "Bus Booking Payment"
