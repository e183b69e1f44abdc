"""
Seat Layout & Fare Module

This module turns the bus inventory provider's seat layout into something a
passenger can pick from, and prices the result. It includes:

- Strict parsing of provider seat records (fail-closed on bad data)
- Layout style detection (row-ordered vs. explicit coordinates)
- Per-deck seat grids with seat, aisle and empty cells
- Seat selection with generation-guarded layout reloads
- Fare breakdown (base fare, GST, service charge, optional insurance)
- Submission gate for seats and boarding/dropping points

Key Components:
- layout_service.py: Seat record parsing and grid normalization
- selection.py: Seat selection set and selection session
- fare_service.py: Fare computation
- validation.py: Selection and passenger-assignment validation
- schemas.py: Pydantic models for seats, grids, stop points and fares
"""

from .exceptions import MalformedLayout, SelectionValidationFailed
from .layout_service import normalize_layout, detect_layout_style, parse_seat_record
from .selection import SeatSelection, SeatSelectionSession
from .fare_service import compute_fare, FareCalculationService
from .validation import validate_selection, ensure_selection_valid, validate_passenger_assignment
from .schemas import (
    Deck, SeatClass, GenderRestriction, Availability, CellKind, LayoutStyle,
    SeatRecord, SeatCell, SeatGrid, SeatLayout, SeatStatistics,
    BoardingPoint, DroppingPoint, FareConfig, FareBreakdown,
    SelectionIssue, SelectionValidationError
)

__all__ = [
    "MalformedLayout",
    "SelectionValidationFailed",
    "normalize_layout",
    "detect_layout_style",
    "parse_seat_record",
    "SeatSelection",
    "SeatSelectionSession",
    "compute_fare",
    "FareCalculationService",
    "validate_selection",
    "ensure_selection_valid",
    "validate_passenger_assignment",
    "Deck",
    "SeatClass",
    "GenderRestriction",
    "Availability",
    "CellKind",
    "LayoutStyle",
    "SeatRecord",
    "SeatCell",
    "SeatGrid",
    "SeatLayout",
    "SeatStatistics",
    "BoardingPoint",
    "DroppingPoint",
    "FareConfig",
    "FareBreakdown",
    "SelectionIssue",
    "SelectionValidationError"
]
