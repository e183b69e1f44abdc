"""
Phone Authentication Module

Passwordless login by one-time SMS code.

Key Components:
- otp_service.py: code issuing and verification with expiry and attempt limits
- rate_limiter.py: sliding-window limit on code requests per client and phone
- expiring_store.py: in-memory TTL store backing codes and rate limits
- sms_service.py: MetaReach SMS gateway client
- utils.py: phone normalization and JWT helpers
- service.py: phone-based user lookup, creation and profile updates
- dependencies.py: bearer-token and shared-service dependencies
- router.py: /auth/send-otp, /auth/verify-otp, /auth/resend-otp
"""

from .router import router
from .otp_service import OtpService, OtpVerification
from .rate_limiter import RateLimiter, RateLimitDecision
from .expiring_store import ExpiringStore
from .sms_service import SmsService, SmsResult
from .service import UserService

__all__ = [
    "router",
    "OtpService",
    "OtpVerification",
    "RateLimiter",
    "RateLimitDecision",
    "ExpiringStore",
    "SmsService",
    "SmsResult",
    "UserService"
]
