from typing import Optional


class PaymentGatewayError(Exception):
    """Payment gateway rejected a request or could not be reached"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class PaymentNotConfigured(PaymentGatewayError):
    def __init__(self):
        super().__init__("Payment service not configured")
