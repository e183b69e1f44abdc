from typing import Optional
import httpx
from pydantic import BaseModel

from src.config import settings
from src.logger_config import logger, mask_phone

OTP_MESSAGE_TEMPLATE = (
    "Welcome to Sancharie! Use {otp} to complete your Sancharie account login. "
    "Never share your OTP with anyone for security reasons. - Team Sancharie"
)

class SmsResult(BaseModel):
    success: bool
    message: str
    provider_response: Optional[str] = None

class SmsService:
    """Sends OTP messages through the MetaReach HTTP gateway"""

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        sender_id: Optional[str] = None,
        entity_id: Optional[str] = None,
        template_id: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_url = api_url or settings.SMS_API_URL
        self.api_key = api_key or settings.SMS_API_KEY
        self.sender_id = sender_id or settings.SMS_SENDER_ID
        self.entity_id = entity_id or settings.SMS_ENTITY_ID
        self.template_id = template_id or settings.SMS_TEMPLATE_ID
        self.timeout = timeout or settings.SMS_TIMEOUT_SECONDS
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_url and self.api_key and self.sender_id)

    async def send_otp(self, phone: str, otp: str) -> SmsResult:
        """phone is the normalized 10-digit number"""
        if not self.configured:
            logger.error("SMS gateway is not configured")
            return SmsResult(success=False, message="SMS service is not configured")

        params = {
            "apikey": self.api_key,
            "senderid": self.sender_id,
            "number": f"91{phone}",
            "message": OTP_MESSAGE_TEMPLATE.format(otp=otp),
            "format": "json",
        }
        if self.entity_id:
            params["peid"] = self.entity_id
        if self.template_id:
            params["templateid"] = self.template_id

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.api_url, params=params)
        except httpx.HTTPError as e:
            logger.error("SMS request for {} failed: {}", mask_phone(phone), e)
            return SmsResult(success=False, message="Failed to send SMS")

        if response.is_error:
            logger.error("SMS gateway returned HTTP {} for {}", response.status_code, mask_phone(phone))
            return SmsResult(
                success=False,
                message="Failed to send SMS",
                provider_response=response.text
            )

        logger.info("OTP SMS sent to {}", mask_phone(phone))
        return SmsResult(success=True, message="OTP sent successfully", provider_response=response.text)
