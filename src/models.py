from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, Text, ForeignKey, Numeric, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from src.database import Base

# ================================
# Users
# ================================
class User(Base):
    __tablename__ = "users"

    # Integer (not BigInteger) so SQLite autoincrements the key
    id = Column(Integer, primary_key=True, index=True)
    phone = Column(String(15), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False, default="")
    email = Column(String(255), nullable=False, default="")
    age = Column(Integer)
    gender = Column(String(10), nullable=False, default="")
    is_profile_complete = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    last_login = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    bookings = relationship("Booking", back_populates="user")

# ================================
# Bookings
# ================================
class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_reference = Column(String(32), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    user_phone = Column(String(15), nullable=False, index=True)

    # Provider references
    pnr = Column(String(64), default="")
    ticket_no = Column(String(64), default="")
    external_booking_id = Column(String(64), default="")

    # Bus & journey
    bus_name = Column(String(255), nullable=False)
    bus_type = Column(String(255), nullable=False)
    bus_number = Column(String(64), default="")
    source = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    journey_date = Column(Date, nullable=False)
    departure_time = Column(String(32), default="")
    arrival_time = Column(String(32), default="")
    boarding_point = Column(JSON)
    dropping_point = Column(JSON)

    # Seats & passengers
    seats = Column(JSON, nullable=False, default=list)
    passengers = Column(JSON, nullable=False, default=list)

    # Fare
    base_fare = Column(Numeric(10, 2), nullable=False)
    service_tax = Column(Numeric(10, 2), default=0)
    total_fare = Column(Numeric(10, 2), nullable=False)

    # Payment
    payment_id = Column(String(64), default="")
    payment_status = Column(String(20), nullable=False, default="pending")
    payment_method = Column(String(32), default="")

    # Status & cancellation
    status = Column(String(20), nullable=False, default="pending")
    cancellation_reason = Column(Text, default="")
    refund_amount = Column(Numeric(10, 2), default=0)
    refund_status = Column(String(20), default="")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="bookings")
