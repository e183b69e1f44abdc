from typing import List, Optional
from datetime import datetime
from decimal import Decimal
import secrets
import time

from sqlalchemy.orm import Session

from src.logger_config import logger, mask_phone
from src.models import Booking, User
from src.bookings.schemas import BookingCreate, BookingStatus, RefundStatus

# Most recent bookings returned by the history listing
BOOKING_HISTORY_LIMIT = 50

class BookingRecordService:
    """Service for persisting and retrieving a user's booking history"""

    def __init__(self, db: Session):
        self.db = db

    def create_booking(self, user: User, request: BookingCreate) -> Booking:
        """Store a booking for the given user under a fresh reference"""
        booking = Booking(
            booking_reference=self._generate_booking_reference(),
            user_id=user.id,
            user_phone=user.phone,
            pnr=request.pnr or "",
            ticket_no=request.ticket_no or "",
            external_booking_id=request.external_booking_id or "",
            bus_name=request.bus_name,
            bus_type=request.bus_type,
            bus_number=request.bus_number or "",
            source=request.source,
            destination=request.destination,
            journey_date=request.journey_date,
            departure_time=request.departure_time or "",
            arrival_time=request.arrival_time or "",
            boarding_point=request.boarding_point,
            dropping_point=request.dropping_point,
            seats=list(request.seats),
            passengers=[p.model_dump() for p in request.passengers],
            base_fare=request.base_fare,
            service_tax=request.service_tax,
            total_fare=request.total_fare,
            payment_id=request.payment_id or "",
            payment_status=request.payment_status.value,
            payment_method=request.payment_method or "",
            status=request.status.value,
        )

        self.db.add(booking)
        self.db.commit()
        self.db.refresh(booking)

        logger.info("Booking {} saved for {}", booking.booking_reference, mask_phone(user.phone))
        return booking

    def list_for_user(self, user: User, limit: int = BOOKING_HISTORY_LIMIT) -> List[Booking]:
        """Newest bookings first"""
        return self.db.query(Booking).filter(
            Booking.user_id == user.id
        ).order_by(Booking.created_at.desc(), Booking.id.desc()).limit(limit).all()

    def get_for_user(self, user: User, booking_id: int) -> Optional[Booking]:
        # Bookings of other users are reported as missing
        return self.db.query(Booking).filter(
            Booking.id == booking_id,
            Booking.user_id == user.id
        ).first()

    def get_by_external_id(self, user: User, external_booking_id: str) -> Optional[Booking]:
        return self.db.query(Booking).filter(
            Booking.external_booking_id == str(external_booking_id),
            Booking.user_id == user.id
        ).first()

    def mark_cancelled(
        self,
        booking: Booking,
        reason: str,
        refund_amount: Optional[Decimal] = None
    ) -> Booking:
        if booking.status == BookingStatus.CANCELLED.value:
            raise ValueError("Booking is already cancelled")

        booking.status = BookingStatus.CANCELLED.value
        booking.cancellation_reason = reason
        if refund_amount is not None:
            booking.refund_amount = refund_amount
            booking.refund_status = RefundStatus.PENDING.value
        booking.updated_at = datetime.now()

        self.db.commit()
        self.db.refresh(booking)

        logger.info("Booking {} cancelled: {}", booking.booking_reference, reason)
        return booking

    def _generate_booking_reference(self) -> str:
        """Generate human-readable booking reference"""
        return f"SAN{int(time.time() * 1000)}{secrets.randbelow(10000):04d}"
