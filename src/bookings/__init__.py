"""
Booking Module

This module drives a bus booking from seat selection to a stored booking
record. It includes:

- The per-bus booking flow: layout loading, seat toggling, stop point
  choice, fare quotes and submission to the inventory provider
- Persistence of confirmed bookings and the user's booking history

Key Components:
- booking_flow.py: BookingFlow tying the seat engine to the provider client
- booking_service.py: BookingRecordService storing and listing bookings
- schemas.py: Pydantic models for booking records and their statuses

The HTTP endpoints live with their callers: /bus/book and /bus/cancel in
the buses router, booking history under /user/bookings.
"""

from .booking_flow import BookingFlow
from .booking_service import BookingRecordService, BOOKING_HISTORY_LIMIT
from .schemas import (
    BookingCreate, BookingRecord, BookingListResponse, BookedPassenger,
    BookingStatus, PaymentStatus, RefundStatus
)

__all__ = [
    "BookingFlow",
    "BookingRecordService",
    "BOOKING_HISTORY_LIMIT",
    "BookingCreate",
    "BookingRecord",
    "BookingListResponse",
    "BookedPassenger",
    "BookingStatus",
    "PaymentStatus",
    "RefundStatus"
]
