from pydantic import BaseModel, Field
from typing import Iterator, List, Optional, Tuple, Union
from datetime import datetime
from decimal import Decimal
from enum import Enum

from src.config import settings

class Deck(str, Enum):
    """Physical level of the bus"""
    LOWER = "lower"
    UPPER = "upper"

class SeatClass(str, Enum):
    SEATER = "seater"
    SLEEPER = "sleeper"

class GenderRestriction(str, Enum):
    NONE = "none"
    FEMALE_ONLY = "female-only"
    MALE_ONLY = "male-only"

class Availability(str, Enum):
    AVAILABLE = "available"
    BOOKED = "booked"

class CellKind(str, Enum):
    """What occupies a single grid cell"""
    SEAT = "seat"
    AISLE = "aisle"
    EMPTY = "empty"

class LayoutStyle(str, Enum):
    """How the provider encoded seat positions"""
    ROW_PRESERVING = "row-preserving"
    COORDINATE = "coordinate"
    EMPTY = "empty"

# Seat records & grid
class SeatRecord(BaseModel):
    """Validated seat record as delivered by the inventory provider"""
    seat_id: str
    deck: Deck
    seat_class: SeatClass
    gender: GenderRestriction = GenderRestriction.NONE
    availability: Availability
    price: Decimal = Field(ge=0)
    row: Optional[int] = None  # explicit provider coordinates (coordinate style only)
    column: Optional[int] = None
    seat_index: Optional[str] = None
    height: int = 1
    width: int = 1

    class Config:
        frozen = True

    @property
    def is_available(self) -> bool:
        return self.availability == Availability.AVAILABLE

    @property
    def has_coordinates(self) -> bool:
        return self.row is not None and self.column is not None

class SeatCell(BaseModel):
    """Single cell of a deck grid"""
    kind: CellKind
    row: int
    column: int
    record: Optional[SeatRecord] = None  # aisle cells keep the record they were inferred from

    class Config:
        frozen = True

    @property
    def is_gap(self) -> bool:
        """Aisle and empty cells are both non-seat gaps"""
        return self.kind != CellKind.SEAT

    @property
    def is_selectable(self) -> bool:
        return self.kind == CellKind.SEAT and self.record is not None and self.record.is_available

    @property
    def seat_id(self) -> Optional[str]:
        return self.record.seat_id if self.record else None

class SeatGrid(BaseModel):
    """Dense rectangular grid for one deck; row 0 is nearest the front"""
    deck: Deck
    cells: Tuple[Tuple[SeatCell, ...], ...] = ()

    class Config:
        frozen = True

    @property
    def rows(self) -> int:
        return len(self.cells)

    @property
    def columns(self) -> int:
        return len(self.cells[0]) if self.cells else 0

    @property
    def is_empty(self) -> bool:
        return self.rows == 0

    def cell_at(self, row: int, column: int) -> Optional[SeatCell]:
        if 0 <= row < self.rows and 0 <= column < self.columns:
            return self.cells[row][column]
        return None

    def iter_cells(self) -> Iterator[SeatCell]:
        for row in self.cells:
            yield from row

    def seats(self) -> List[SeatRecord]:
        """Seat records in row-major order (aisles excluded)"""
        return [c.record for c in self.iter_cells() if c.kind == CellKind.SEAT]

class SeatStatistics(BaseModel):
    """Counts over the real seats of a layout"""
    total: int = 0
    available: int = 0
    booked: int = 0
    seater: int = 0
    sleeper: int = 0
    ladies: int = 0
    gents: int = 0
    upper: int = 0
    lower: int = 0
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    average_price: Decimal = Decimal('0')

class SeatLayout(BaseModel):
    """Normalized layout: one grid per deck"""
    style: LayoutStyle
    lower: SeatGrid = Field(default_factory=lambda: SeatGrid(deck=Deck.LOWER))
    upper: SeatGrid = Field(default_factory=lambda: SeatGrid(deck=Deck.UPPER))

    class Config:
        frozen = True

    @classmethod
    def empty(cls) -> "SeatLayout":
        return cls(style=LayoutStyle.EMPTY)

    def grids(self) -> List[SeatGrid]:
        return [self.lower, self.upper]

    def grid_for(self, deck: Deck) -> SeatGrid:
        return self.upper if deck == Deck.UPPER else self.lower

    @property
    def is_empty(self) -> bool:
        """True when there is nothing a passenger could pick"""
        return not any(g.seats() for g in self.grids())

    def find_cell(self, seat_id: str) -> Optional[SeatCell]:
        for grid in self.grids():
            for cell in grid.iter_cells():
                if cell.record is not None and cell.record.seat_id == seat_id:
                    return cell
        return None

    def find_seat(self, seat_id: str) -> Optional[SeatRecord]:
        cell = self.find_cell(seat_id)
        if cell is None or cell.kind != CellKind.SEAT:
            return None
        return cell.record

    def seat_statistics(self) -> SeatStatistics:
        seats = [s for g in self.grids() for s in g.seats()]
        stats = SeatStatistics(total=len(seats))
        if not seats:
            return stats

        for seat in seats:
            if seat.is_available:
                stats.available += 1
            else:
                stats.booked += 1
            if seat.seat_class == SeatClass.SEATER:
                stats.seater += 1
            else:
                stats.sleeper += 1
            if seat.gender == GenderRestriction.FEMALE_ONLY:
                stats.ladies += 1
            elif seat.gender == GenderRestriction.MALE_ONLY:
                stats.gents += 1
            if seat.deck == Deck.UPPER:
                stats.upper += 1
            else:
                stats.lower += 1

        prices = [s.price for s in seats]
        stats.min_price = min(prices)
        stats.max_price = max(prices)
        stats.average_price = (sum(prices) / len(prices)).quantize(Decimal('0.01'))
        return stats

# Boarding & dropping points
class StopPoint(BaseModel):
    """Named pickup/drop-off location with a scheduled time"""
    point_id: Union[int, str]
    name: str
    time: Optional[datetime] = None
    location: Optional[str] = None
    address: Optional[str] = None
    landmark: Optional[str] = None
    contact_number: Optional[str] = None

    class Config:
        frozen = True

    @classmethod
    def from_provider(cls, raw: dict):
        return cls(
            point_id=raw.get("CityPointIndex"),
            name=raw.get("CityPointName") or "",
            time=raw.get("CityPointTime") or None,
            location=raw.get("CityPointLocation"),
            address=raw.get("CityPointAddress"),
            landmark=raw.get("CityPointLandmark"),
            contact_number=raw.get("CityPointContactNumber"),
        )

class BoardingPoint(StopPoint):
    pass

class DroppingPoint(StopPoint):
    pass

# Fare
class FareConfig(BaseModel):
    """Pricing configuration applied to a selection"""
    gst_rate: Decimal = Decimal('0.05')
    service_charge_per_seat: Decimal = Decimal('30')
    insurance_per_seat: Decimal = Decimal('24')
    include_insurance: bool = False
    currency: str = "INR"

    class Config:
        frozen = True

    @classmethod
    def from_settings(cls, include_insurance: bool = False) -> "FareConfig":
        return cls(
            gst_rate=Decimal(str(settings.FARE_GST_RATE)),
            service_charge_per_seat=Decimal(settings.FARE_SERVICE_CHARGE_PER_SEAT),
            insurance_per_seat=Decimal(settings.FARE_INSURANCE_PER_SEAT),
            include_insurance=include_insurance,
            currency=settings.FARE_CURRENCY,
        )

class FareBreakdown(BaseModel):
    """Itemized pricing for a selection"""
    base_fare: Decimal
    gst: Decimal
    service_charge: Decimal
    insurance: Decimal
    total_fare: Decimal
    seat_count: int
    currency: str = "INR"

    class Config:
        frozen = True

# Validation
class SelectionIssue(str, Enum):
    INCOMPLETE_SELECTION = "INCOMPLETE_SELECTION"
    MISSING_BOARDING_POINT = "MISSING_BOARDING_POINT"
    MISSING_DROPPING_POINT = "MISSING_DROPPING_POINT"
    UNASSIGNED_SEAT = "UNASSIGNED_SEAT"
    UNKNOWN_PASSENGER_SEAT = "UNKNOWN_PASSENGER_SEAT"
    DUPLICATE_PASSENGER_SEAT = "DUPLICATE_PASSENGER_SEAT"

class SelectionValidationError(BaseModel):
    """Selection validation error details"""
    error_code: SelectionIssue
    error_message: str
    field: Optional[str] = None
