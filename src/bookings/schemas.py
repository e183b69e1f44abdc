from pydantic import BaseModel, Field, validator
from typing import List, Optional, Dict, Any
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

class BookingStatus(str, Enum):
    """Booking status enumeration"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

class PaymentStatus(str, Enum):
    """Payment status enumeration"""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"

class RefundStatus(str, Enum):
    NONE = ""
    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"

# Booking record models
class BookedPassenger(BaseModel):
    """Passenger as stored on a booking record"""
    name: str
    age: Optional[int] = Field(None, ge=0, le=120)
    gender: Optional[str] = None
    seat_number: str

class BookingCreate(BaseModel):
    """Booking record submitted after the provider confirmed the reservation"""
    pnr: Optional[str] = None
    ticket_no: Optional[str] = None
    external_booking_id: Optional[str] = None
    bus_name: str
    bus_type: str
    bus_number: Optional[str] = None
    source: str
    destination: str
    journey_date: date
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    boarding_point: Optional[Dict[str, Any]] = None
    dropping_point: Optional[Dict[str, Any]] = None
    seats: List[str] = Field(..., min_length=1)
    passengers: List[BookedPassenger] = []
    base_fare: Decimal = Field(..., ge=0)
    service_tax: Decimal = Field(Decimal('0'), ge=0)
    total_fare: Decimal = Field(..., ge=0)
    payment_id: Optional[str] = None
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING

    @validator('total_fare')
    def validate_total_fare(cls, v, values):
        base_fare = values.get('base_fare')
        if base_fare is not None and v < base_fare:
            raise ValueError('Total fare cannot be lower than the base fare')
        return v

class BookingRecord(BaseModel):
    """Stored booking as returned to its owner"""
    id: int
    booking_reference: str
    user_phone: str
    pnr: Optional[str] = None
    ticket_no: Optional[str] = None
    external_booking_id: Optional[str] = None
    bus_name: str
    bus_type: str
    bus_number: Optional[str] = None
    source: str
    destination: str
    journey_date: date
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    boarding_point: Optional[Dict[str, Any]] = None
    dropping_point: Optional[Dict[str, Any]] = None
    seats: List[str] = []
    passengers: List[Dict[str, Any]] = []
    base_fare: Decimal
    service_tax: Decimal = Decimal('0')
    total_fare: Decimal
    payment_id: Optional[str] = None
    payment_status: str
    payment_method: Optional[str] = None
    status: str
    cancellation_reason: Optional[str] = None
    refund_amount: Decimal = Decimal('0')
    refund_status: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class BookingListResponse(BaseModel):
    bookings: List[BookingRecord]
    total_count: int
