from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from src.database import get_db
from src.auth.utils import InvalidToken, SESSION_TOKEN, VERIFICATION_TOKEN, verify_token
from src.auth.service import UserService
from src.auth.otp_service import OtpService
from src.auth.rate_limiter import RateLimiter
from src.auth.sms_service import SmsService

bearer_scheme = HTTPBearer(auto_error=False)

def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

def _decode(credentials, expected_type: str) -> dict:
    if credentials is None or not credentials.credentials:
        raise _credentials_exception("Not authenticated")
    try:
        return verify_token(credentials.credentials, expected_type)
    except InvalidToken as e:
        raise _credentials_exception(str(e))

def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db)
):
    """Get current authenticated user"""
    payload = _decode(credentials, SESSION_TOKEN)

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _credentials_exception()

    user = UserService.get_user_by_id(db, user_id=user_id)
    if user is None or user.phone != payload.get("phone"):
        raise _credentials_exception()

    return user

def get_verified_phone(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> str:
    """Phone number proven by a verification token from /auth/verify-otp"""
    payload = _decode(credentials, VERIFICATION_TOKEN)
    return payload["phone"]

# Shared services held on the application
def get_otp_service(request: Request) -> OtpService:
    return request.app.state.otp_service

def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter

def get_sms_service(request: Request) -> SmsService:
    return request.app.state.sms_service
