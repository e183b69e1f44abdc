from pydantic import BaseModel, EmailStr, Field, validator
from typing import Literal, Optional
from datetime import datetime

from src.auth.utils import normalize_phone

class PhoneRequest(BaseModel):
    phone: str

    @validator('phone')
    def validate_phone(cls, v):
        return normalize_phone(v)

class SendOtpRequest(PhoneRequest):
    pass

class VerifyOtpRequest(PhoneRequest):
    otp: str = Field(..., min_length=4, max_length=8)

    @validator('otp')
    def validate_otp(cls, v):
        v = v.strip()
        if not v.isdigit():
            raise ValueError('OTP must contain digits only')
        return v

class OtpSentResponse(BaseModel):
    success: bool = True
    message: str
    phone: str
    expires_in_seconds: int

class OtpVerifiedResponse(BaseModel):
    success: bool = True
    message: str
    phone: str
    verification_token: str
    token_type: str = "bearer"

# Users
class UserProfile(BaseModel):
    id: int
    phone: str
    name: str = ""
    email: str = ""
    age: Optional[int] = None
    gender: str = ""
    is_profile_complete: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True

class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    age: Optional[int] = Field(None, ge=1, le=120)
    gender: Optional[Literal["male", "female", "other"]] = None

    @validator('name')
    def validate_name(cls, v):
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError('Name cannot be blank')
        return v

class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserProfile
    is_new_user: bool = False

class TokenStatus(BaseModel):
    valid: bool
    user: UserProfile
