from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from src.database import get_db
from src.models import User
from src.logger_config import logger, mask_phone
from src.auth.dependencies import get_current_user, get_verified_phone
from src.auth.schemas import UserProfile, UserUpdate
from src.auth.service import UserService
from src.auth.utils import create_session_token
from src.bookings.booking_service import BookingRecordService
from src.bookings.schemas import BookingCreate, BookingListResponse, BookingRecord
from src.users.schemas import LoginCompleteResponse, ProfileResponse, TokenStatusResponse

router = APIRouter()

@router.post("/login-complete", response_model=LoginCompleteResponse)
def login_complete(
    phone: str = Depends(get_verified_phone),
    db: Session = Depends(get_db)
):
    """Exchange a phone verification token for a session token"""
    try:
        user, created = UserService.login(db, phone)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

    logger.info("{} {}", "Signed up" if created else "Logged in", mask_phone(phone))
    return LoginCompleteResponse(
        message="Account created successfully" if created else "Login successful",
        is_new_user=created,
        is_profile_complete=user.is_profile_complete,
        access_token=create_session_token(user.id, user.phone),
        user=UserProfile.model_validate(user)
    )

@router.get("/profile", response_model=ProfileResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    """Get current user profile"""
    return ProfileResponse(user=UserProfile.model_validate(current_user))

@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    user_update: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update current user profile"""
    updated_user = UserService.update_user(db=db, user_id=current_user.id, user_update=user_update)
    if not updated_user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    logger.info("Profile updated for {}", mask_phone(updated_user.phone))
    return ProfileResponse(
        message="Profile updated successfully",
        user=UserProfile.model_validate(updated_user)
    )

@router.get("/bookings", response_model=BookingListResponse)
def list_bookings(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Most recent bookings of the current user, newest first"""
    bookings = BookingRecordService(db).list_for_user(current_user)
    return BookingListResponse(
        bookings=[BookingRecord.model_validate(b) for b in bookings],
        total_count=len(bookings)
    )

@router.post("/bookings", response_model=BookingRecord, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: BookingCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Store a confirmed booking in the user's history"""
    booking = BookingRecordService(db).create_booking(current_user, request)
    return BookingRecord.model_validate(booking)

@router.get("/bookings/{booking_id}", response_model=BookingRecord)
def get_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    booking = BookingRecordService(db).get_for_user(current_user, booking_id)
    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found"
        )
    return BookingRecord.model_validate(booking)

@router.post("/verify-token", response_model=TokenStatusResponse)
def verify_session_token(current_user: User = Depends(get_current_user)):
    """Confirm a stored session token is still valid"""
    return TokenStatusResponse(user=UserProfile.model_validate(current_user))
