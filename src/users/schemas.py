from pydantic import BaseModel
from typing import Optional

from src.auth.schemas import UserProfile

class LoginCompleteResponse(BaseModel):
    success: bool = True
    message: str
    is_new_user: bool
    is_profile_complete: bool
    access_token: str
    token_type: str = "bearer"
    user: UserProfile

class ProfileResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    user: UserProfile

class TokenStatusResponse(BaseModel):
    valid: bool = True
    user: UserProfile
