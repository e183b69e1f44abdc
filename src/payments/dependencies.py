from fastapi import Request

from src.payments.gateway import RazorpayGateway

def get_payment_gateway(request: Request) -> RazorpayGateway:
    return request.app.state.payment_gateway
