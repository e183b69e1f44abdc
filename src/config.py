from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./sancharie.db"

    # Security
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 30
    OTP_VERIFICATION_TOKEN_MINUTES: int = 10

    # OTP & rate limiting
    OTP_EXPIRY_MINUTES: int = 5
    OTP_MAX_ATTEMPTS: int = 3
    OTP_LENGTH: int = 6
    RATE_LIMIT_MAX_REQUESTS: int = 3
    RATE_LIMIT_WINDOW_MINUTES: int = 10

    # SMS gateway
    SMS_API_URL: Optional[str] = None
    SMS_API_KEY: Optional[str] = None
    SMS_SENDER_ID: Optional[str] = None
    SMS_ENTITY_ID: Optional[str] = None
    SMS_TEMPLATE_ID: Optional[str] = None
    SMS_TIMEOUT_SECONDS: float = 30.0

    # Bus inventory provider
    BUS_API_BASE_URL: str = "https://api.bdsd.technology/api"
    BUS_API_USERNAME: Optional[str] = None
    BUS_API_PASSWORD: Optional[str] = None
    BUS_API_USER_IP: str = "127.0.0.1"
    BUS_API_TIMEOUT_SECONDS: float = 30.0

    # Payment gateway
    RAZORPAY_KEY_ID: Optional[str] = None
    RAZORPAY_KEY_SECRET: Optional[str] = None
    RAZORPAY_API_BASE_URL: str = "https://api.razorpay.com/v1"
    RAZORPAY_MERCHANT_NAME: str = "Sancharie Travels"
    PAYMENT_MAX_AMOUNT: int = 5_000_000

    # Fare defaults
    FARE_GST_RATE: float = 0.05
    FARE_SERVICE_CHARGE_PER_SEAT: int = 30
    FARE_INSURANCE_PER_SEAT: int = 24
    FARE_CURRENCY: str = "INR"

    # Application
    PROJECT_NAME: str = "Sancharie Bus Booking"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    @property
    def sms_configured(self) -> bool:
        return bool(self.SMS_API_URL and self.SMS_API_KEY and self.SMS_SENDER_ID)

    @property
    def payments_configured(self) -> bool:
        return bool(self.RAZORPAY_KEY_ID and self.RAZORPAY_KEY_SECRET)

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
