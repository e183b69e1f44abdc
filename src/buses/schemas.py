from pydantic import BaseModel, Field, validator
from typing import Any, Dict, List, Literal, Optional, Union
from decimal import Decimal

from src.seats.schemas import (
    BoardingPoint, DroppingPoint, FareBreakdown, LayoutStyle, SeatGrid,
    SeatStatistics, SelectionValidationError
)

# Passenger Information
class PassengerDetails(BaseModel):
    """Passenger travelling on one selected seat"""
    name: str
    seat_name: str
    age: Optional[int] = Field(None, ge=0, le=120)
    gender: Literal["male", "female", "other"] = "male"
    email: Optional[str] = None
    phone: Optional[str] = None
    id_type: Optional[str] = None
    id_number: Optional[str] = None
    address: Optional[str] = None

    @validator('name')
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('Passenger name is required')
        return v.strip()

    def to_provider(self, lead: bool) -> Dict[str, Any]:
        """Passenger entry in the provider's block/book payload"""
        parts = self.name.split()
        first_name = parts[0]
        last_name = " ".join(parts[1:])
        return {
            "LeadPassenger": lead,
            "Title": "Ms" if self.gender == "female" else "Mr",
            "FirstName": first_name,
            "LastName": last_name,
            "Email": self.email or "",
            "Phoneno": self.phone or "",
            "Gender": "1" if self.gender == "male" else "2",
            "IdType": self.id_type,
            "IdNumber": self.id_number,
            "Address": self.address or "",
            "Age": str(self.age if self.age is not None else 25),
            "SeatName": self.seat_name,
        }

# Provider results
class BusSearchResponse(BaseModel):
    search_token: Optional[str] = None
    results: List[Dict[str, Any]] = []
    total_results: int = 0

class BlockSeatResult(BaseModel):
    is_price_changed: bool = False
    bus_type: Optional[str] = None
    travel_name: Optional[str] = None
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    cancel_policy: List[Dict[str, Any]] = []

class BookingResult(BaseModel):
    """Confirmation returned by the provider for a submitted booking"""
    booking_id: Optional[Union[int, str]] = None
    ticket_no: Optional[str] = None
    pnr: Optional[str] = None
    status: Optional[str] = None
    invoice_number: Optional[str] = None
    invoice_amount: Optional[Decimal] = None

class CancellationResult(BaseModel):
    status: Optional[Union[int, str]] = None
    trace_id: Optional[str] = None

# API request/response models
class BusSearchRequest(BaseModel):
    origin_id: Union[int, str]
    destination_id: Union[int, str]
    date_of_journey: str

class ResultRequest(BaseModel):
    """Identifies one bus in a search result set"""
    search_token: str
    result_index: Union[int, str]

class SeatLayoutResponse(BaseModel):
    available: bool
    message: Optional[str] = None
    style: LayoutStyle = LayoutStyle.EMPTY
    lower: Optional[SeatGrid] = None
    upper: Optional[SeatGrid] = None
    statistics: Optional[SeatStatistics] = None

class StopPointsResponse(BaseModel):
    boarding_points: List[BoardingPoint] = []
    dropping_points: List[DroppingPoint] = []

class FareQuoteRequest(ResultRequest):
    seat_ids: List[str]
    include_insurance: bool = False

class FareQuoteResponse(BaseModel):
    fare: FareBreakdown
    selected_seats: List[str]
    ignored_seats: List[str] = []
    warnings: List[str] = []

class BookTicketRequest(ResultRequest):
    boarding_point_id: Optional[Union[int, str]] = None
    dropping_point_id: Optional[Union[int, str]] = None
    passengers: List[PassengerDetails]
    include_insurance: bool = False

class BookTicketResponse(BaseModel):
    booking: Optional[BookingResult] = None
    fare: Optional[FareBreakdown] = None
    errors: List[SelectionValidationError] = []

class CancelTicketRequest(BaseModel):
    search_token: str
    booking_id: Union[int, str]
    seat_id: Union[int, str]
    reason: str = "Cancel Bus Ticket"

class BlockTicketResponse(BaseModel):
    block: Optional[BlockSeatResult] = None
    fare: Optional[FareBreakdown] = None
    errors: List[SelectionValidationError] = []

class BookingDetailsRequest(BaseModel):
    search_token: str
    booking_id: Union[int, str]
