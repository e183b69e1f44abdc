from typing import Optional
from datetime import timedelta
import hmac
import secrets

from pydantic import BaseModel

from src.config import settings
from src.logger_config import logger, mask_phone
from src.auth.expiring_store import ExpiringStore

class OtpEntry(BaseModel):
    code: str
    attempts: int = 0

class OtpVerification(BaseModel):
    """Outcome of checking a submitted code"""
    valid: bool
    reason: Optional[str] = None
    attempts_remaining: int = 0

class OtpService:
    """One-time login codes keyed by normalized phone number.

    A code is valid for a fixed window, allows a limited number of wrong
    guesses and is consumed by the first successful verification. Issuing
    a new code for a phone replaces the previous one.
    """

    def __init__(
        self,
        store: Optional[ExpiringStore] = None,
        length: Optional[int] = None,
        expiry_minutes: Optional[int] = None,
        max_attempts: Optional[int] = None
    ):
        self.store = store if store is not None else ExpiringStore()
        self.length = length if length is not None else settings.OTP_LENGTH
        self.expiry = timedelta(
            minutes=expiry_minutes if expiry_minutes is not None else settings.OTP_EXPIRY_MINUTES
        )
        self.max_attempts = max_attempts if max_attempts is not None else settings.OTP_MAX_ATTEMPTS

    @staticmethod
    def _key(phone: str) -> str:
        return f"otp:{phone}"

    def generate(self) -> str:
        # Leading digit is never zero so the code always has the full length
        first = str(secrets.randbelow(9) + 1)
        rest = "".join(str(secrets.randbelow(10)) for _ in range(self.length - 1))
        return first + rest

    def issue(self, phone: str) -> str:
        """Create and store a fresh code for the phone, replacing any earlier one"""
        code = self.generate()
        self.store.set(self._key(phone), OtpEntry(code=code), self.expiry)
        logger.info("Issued OTP for {}", mask_phone(phone))
        return code

    def verify(self, phone: str, code: str) -> OtpVerification:
        # Check and consume happen under one lock so a code verifies at most once
        with self.store.locked():
            return self._verify_locked(phone, code)

    def _verify_locked(self, phone: str, code: str) -> OtpVerification:
        key = self._key(phone)
        entry = self.store.get(key)
        if entry is None:
            return OtpVerification(valid=False, reason="OTP expired or not found. Please request a new OTP.")

        if entry.attempts >= self.max_attempts:
            self.store.delete(key)
            return OtpVerification(valid=False, reason="Too many failed attempts. Please request a new OTP.")

        if hmac.compare_digest(entry.code, str(code).strip()):
            self.store.delete(key)
            logger.info("OTP verified for {}", mask_phone(phone))
            return OtpVerification(valid=True)

        entry.attempts += 1
        remaining = self.max_attempts - entry.attempts
        if remaining <= 0:
            self.store.delete(key)
            logger.warning("OTP locked after too many attempts for {}", mask_phone(phone))
            return OtpVerification(valid=False, reason="Too many failed attempts. Please request a new OTP.")

        logger.info("Wrong OTP for {} ({} attempts left)", mask_phone(phone), remaining)
        return OtpVerification(
            valid=False,
            reason=f"Invalid OTP. {remaining} attempt(s) remaining.",
            attempts_remaining=remaining
        )

    def invalidate(self, phone: str) -> bool:
        return self.store.delete(self._key(phone))

    def has_valid_otp(self, phone: str) -> bool:
        return self._key(phone) in self.store
