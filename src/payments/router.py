from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status

from src.config import settings
from src.auth.dependencies import get_current_user
from src.logger_config import logger
from src.models import User
from src.payments.dependencies import get_payment_gateway
from src.payments.exceptions import PaymentGatewayError, PaymentNotConfigured
from src.payments.gateway import RazorpayGateway, settle_payment
from src.payments.schemas import (
    CreateOrderRequest, CreateOrderResponse, GatewayOrder, PaymentConfigResponse,
    PaymentOutcomeKind, VerifyPaymentRequest, VerifyPaymentResponse
)

router = APIRouter()

def _not_configured() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Payment service not configured"
    )

@router.get("/config", response_model=PaymentConfigResponse)
def get_payment_config(gateway: RazorpayGateway = Depends(get_payment_gateway)):
    """Public checkout configuration; never includes the key secret"""
    if not gateway.configured:
        raise _not_configured()

    return PaymentConfigResponse(
        key_id=gateway.key_id,
        currency=settings.FARE_CURRENCY,
        name=settings.RAZORPAY_MERCHANT_NAME
    )

@router.post("/create-order", response_model=CreateOrderResponse)
async def create_order(
    request: CreateOrderRequest,
    current_user: User = Depends(get_current_user),
    gateway: RazorpayGateway = Depends(get_payment_gateway)
):
    """Create a gateway order for the amount to be charged"""
    notes = {**request.notes, "booking_source": "sancharie_web", "user_id": str(current_user.id)}
    if request.booking_details:
        details = request.booking_details
        seats = details.seats
        notes.update({
            "bus_name": details.bus_name or "",
            "travel_date": details.travel_date or "",
            "seats": ", ".join(seats) if isinstance(seats, list) else (seats or ""),
            "passenger_count": str(details.passenger_count or ""),
        })

    try:
        order = await gateway.create_order(request.amount, request.currency, request.receipt, notes)
    except PaymentNotConfigured:
        raise _not_configured()
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except PaymentGatewayError:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to create payment order. Please try again."
        )

    return CreateOrderResponse(
        order_id=order.id,
        amount=order.amount,
        amount_inr=Decimal(order.amount) / 100,
        currency=order.currency,
        receipt=order.receipt
    )

@router.post("/verify-payment", response_model=VerifyPaymentResponse)
async def verify_payment(
    request: VerifyPaymentRequest,
    current_user: User = Depends(get_current_user),
    gateway: RazorpayGateway = Depends(get_payment_gateway)
):
    """Check the checkout signature server-side before a booking is confirmed"""
    try:
        outcome = await settle_payment(
            gateway,
            request.razorpay_order_id,
            request.razorpay_payment_id,
            request.razorpay_signature
        )
    except PaymentNotConfigured:
        raise _not_configured()

    if outcome.kind == PaymentOutcomeKind.FAILED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=outcome.reason
        )

    if outcome.kind == PaymentOutcomeKind.CANCELLED:
        return VerifyPaymentResponse(
            success=False,
            verified=False,
            message=outcome.reason,
            outcome=outcome
        )

    logger.info("User {} paid order {}", current_user.id, outcome.order_id)
    return VerifyPaymentResponse(
        success=True,
        verified=True,
        message="Payment verified successfully",
        outcome=outcome
    )

@router.get("/order/{order_id}", response_model=GatewayOrder)
async def get_order(
    order_id: str,
    current_user: User = Depends(get_current_user),
    gateway: RazorpayGateway = Depends(get_payment_gateway)
):
    """Order status, used to recover an interrupted checkout"""
    if not order_id.startswith("order_"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid order ID format"
        )

    try:
        return await gateway.fetch_order(order_id)
    except PaymentNotConfigured:
        raise _not_configured()
    except PaymentGatewayError:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to fetch order details"
        )
