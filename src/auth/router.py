from fastapi import APIRouter, Depends, HTTPException, Request, status
from src.auth.schemas import OtpSentResponse, OtpVerifiedResponse, SendOtpRequest, VerifyOtpRequest
from src.auth.dependencies import get_otp_service, get_rate_limiter, get_sms_service
from src.auth.otp_service import OtpService
from src.auth.rate_limiter import RateLimiter
from src.auth.sms_service import SmsService
from src.auth.utils import create_verification_token
from src.logger_config import logger, mask_phone

router = APIRouter()

def _enforce_rate_limit(request: Request, phone: str, rate_limiter: RateLimiter):
    client_ip = request.client.host if request.client else "unknown"
    decision = rate_limiter.hit(f"{client_ip}-{phone}")
    if not decision.allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many OTP requests. Please try again in {decision.retry_after_minutes} minute(s).",
            headers={"Retry-After": str(decision.retry_after_seconds)},
        )

async def _deliver(phone: str, otp_service: OtpService, sms_service: SmsService) -> OtpSentResponse:
    code = otp_service.issue(phone)
    result = await sms_service.send_otp(phone, code)
    if not result.success:
        # An undelivered code must not stay usable
        otp_service.invalidate(phone)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=result.message
        )

    return OtpSentResponse(
        message="OTP sent successfully",
        phone=phone,
        expires_in_seconds=int(otp_service.expiry.total_seconds())
    )

@router.post("/send-otp", response_model=OtpSentResponse)
async def send_otp(
    payload: SendOtpRequest,
    request: Request,
    otp_service: OtpService = Depends(get_otp_service),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    sms_service: SmsService = Depends(get_sms_service)
):
    """Send a login code to a mobile number"""
    _enforce_rate_limit(request, payload.phone, rate_limiter)
    return await _deliver(payload.phone, otp_service, sms_service)

@router.post("/resend-otp", response_model=OtpSentResponse)
async def resend_otp(
    payload: SendOtpRequest,
    request: Request,
    otp_service: OtpService = Depends(get_otp_service),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    sms_service: SmsService = Depends(get_sms_service)
):
    """Replace any outstanding code with a new one"""
    _enforce_rate_limit(request, payload.phone, rate_limiter)
    otp_service.invalidate(payload.phone)
    return await _deliver(payload.phone, otp_service, sms_service)

@router.post("/verify-otp", response_model=OtpVerifiedResponse)
def verify_otp(
    payload: VerifyOtpRequest,
    otp_service: OtpService = Depends(get_otp_service)
):
    """Check a code and hand out a short-lived verification token for /user/login-complete"""
    verification = otp_service.verify(payload.phone, payload.otp)
    if not verification.valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=verification.reason
        )

    logger.info("Phone {} verified", mask_phone(payload.phone))
    return OtpVerifiedResponse(
        message="OTP verified successfully",
        phone=payload.phone,
        verification_token=create_verification_token(payload.phone)
    )
