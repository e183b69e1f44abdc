from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from src.models import User
from src.auth.schemas import UserUpdate
from src.logger_config import logger, mask_phone
from typing import Optional, Tuple
from datetime import datetime

class UserService:
    @staticmethod
    def get_user_by_phone(db: Session, phone: str) -> Optional[User]:
        """Get user by normalized phone number"""
        return db.query(User).filter(User.phone == phone).first()

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def is_profile_complete(user: User) -> bool:
        return bool(user.name and user.email and user.age and user.gender)

    @staticmethod
    def login(db: Session, phone: str) -> Tuple[User, bool]:
        """Find or create the user for a verified phone and stamp the login.

        Returns the user and whether it was created by this call.
        """
        user = UserService.get_user_by_phone(db, phone)
        created = False

        if user is None:
            user = User(phone=phone)
            try:
                db.add(user)
                db.commit()
                created = True
                logger.info("Created user for {}", mask_phone(phone))
            except IntegrityError:
                # A concurrent login created the same phone first
                db.rollback()
                user = UserService.get_user_by_phone(db, phone)
                if user is None:
                    raise ValueError("Could not create user")

        user.last_login = datetime.now()
        db.commit()
        db.refresh(user)
        return user, created

    @staticmethod
    def update_user(db: Session, user_id: int, user_update: UserUpdate) -> Optional[User]:
        """Update profile fields and recompute completeness"""
        db_user = UserService.get_user_by_id(db, user_id)
        if not db_user:
            return None

        update_data = user_update.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in update_data.items():
            setattr(db_user, field, value)

        db_user.is_profile_complete = UserService.is_profile_complete(db_user)
        db_user.updated_at = datetime.now()

        db.commit()
        db.refresh(db_user)
        return db_user
