from typing import Any, Dict, Optional
from datetime import datetime, timedelta, timezone
import re

import jwt

from src.config import settings

PHONE_PATTERN = re.compile(r"^[6-9]\d{9}$")

# Token purposes carried in the "type" claim
SESSION_TOKEN = "session"
VERIFICATION_TOKEN = "phone_verification"

class InvalidToken(ValueError):
    pass

def normalize_phone(phone: Optional[str]) -> str:
    """Reduce input to a 10-digit Indian mobile number or raise ValueError"""
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) == 12 and digits.startswith("91"):
        digits = digits[2:]
    if not PHONE_PATTERN.match(digits):
        raise ValueError("Please enter a valid 10-digit mobile number")
    return digits

def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS))
    to_encode.update({"exp": expire, "iat": datetime.now(timezone.utc)})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def create_session_token(user_id: int, phone: str) -> str:
    """Long-lived token issued after login"""
    return create_access_token({"sub": str(user_id), "phone": phone, "type": SESSION_TOKEN})

def create_verification_token(phone: str) -> str:
    """Short-lived proof that the phone passed OTP verification"""
    return create_access_token(
        {"sub": phone, "phone": phone, "type": VERIFICATION_TOKEN},
        expires_delta=timedelta(minutes=settings.OTP_VERIFICATION_TOKEN_MINUTES)
    )

def verify_token(token: str, expected_type: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise InvalidToken("Token has expired")
    except jwt.PyJWTError:
        raise InvalidToken("Invalid token")

    if payload.get("type") != expected_type or not payload.get("phone"):
        raise InvalidToken("Invalid token")
    return payload
