from typing import Dict, FrozenSet, Iterator, List, Optional

from src.logger_config import logger
from src.seats.schemas import (
    BoardingPoint, DroppingPoint, GenderRestriction, SeatLayout, SeatRecord,
    SelectionValidationError
)
from src.seats.validation import validate_selection


class SeatSelection:
    """Seats chosen for one in-progress booking.

    Every member references an available seat cell of the layout the
    selection was created for. Toggling a booked seat, an aisle, an empty
    cell or an unknown id is ignored: it reflects stale UI, not an error.
    Female-only and male-only seats stay selectable; the restriction is
    reported through restriction_warnings() for the passenger step.
    """

    def __init__(self, layout: SeatLayout):
        self._layout = layout
        self._selected: Dict[str, SeatRecord] = {}

    @property
    def layout(self) -> SeatLayout:
        return self._layout

    def toggle(self, seat_id: str) -> bool:
        """Flip a seat between selected and unselected. Returns False when ignored."""
        cell = self._layout.find_cell(seat_id)
        if cell is None or not cell.is_selectable:
            logger.debug("Ignoring toggle on non-selectable seat {}", seat_id)
            return False

        if seat_id in self._selected:
            del self._selected[seat_id]
        else:
            self._selected[seat_id] = cell.record
        return True

    def clear(self):
        self._selected.clear()

    def is_selected(self, seat_id: str) -> bool:
        return seat_id in self._selected

    @property
    def selected_ids(self) -> List[str]:
        """Seat ids in the order they were picked"""
        return list(self._selected)

    @property
    def selected_id_set(self) -> FrozenSet[str]:
        return frozenset(self._selected)

    @property
    def selected_seats(self) -> List[SeatRecord]:
        return list(self._selected.values())

    def restriction_warnings(self) -> List[str]:
        warnings = []
        for seat in self._selected.values():
            if seat.gender == GenderRestriction.FEMALE_ONLY:
                warnings.append(f"Seat {seat.seat_id} is reserved for female passengers")
            elif seat.gender == GenderRestriction.MALE_ONLY:
                warnings.append(f"Seat {seat.seat_id} is reserved for male passengers")
        return warnings

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, seat_id) -> bool:
        return seat_id in self._selected

    def __iter__(self) -> Iterator[SeatRecord]:
        return iter(list(self._selected.values()))


class SeatSelectionSession:
    """Active layout, selection and stop points for one search result.

    Each layout fetch is tagged with a generation number. A result is only
    applied if its generation is still the latest one issued, so a fetch
    that was superseded or cancelled never lands on a newer selection.
    Applying a layout always replaces the grid and clears the selection.
    """

    def __init__(self, layout: Optional[SeatLayout] = None):
        self._generation = 0
        self._layout = layout or SeatLayout.empty()
        self.selection = SeatSelection(self._layout)
        self.boarding_point: Optional[BoardingPoint] = None
        self.dropping_point: Optional[DroppingPoint] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def layout(self) -> SeatLayout:
        return self._layout

    def begin_layout_fetch(self) -> int:
        """Issue a generation ticket for a layout fetch about to start"""
        self._generation += 1
        return self._generation

    def cancel_pending_fetch(self):
        """Invalidate any in-flight fetch without touching the current layout"""
        self._generation += 1

    def apply_layout(self, generation: int, layout: SeatLayout) -> bool:
        if generation != self._generation:
            logger.info(
                "Discarding seat layout for generation {} (current is {})",
                generation, self._generation
            )
            return False

        self._layout = layout
        self.selection = SeatSelection(layout)
        return True

    def toggle(self, seat_id: str) -> bool:
        return self.selection.toggle(seat_id)

    def clear(self):
        self.selection.clear()

    def choose_boarding_point(self, point: BoardingPoint):
        if self.boarding_point is not None and self.boarding_point.point_id != point.point_id:
            self.clear()
        self.boarding_point = point

    def choose_dropping_point(self, point: DroppingPoint):
        if self.dropping_point is not None and self.dropping_point.point_id != point.point_id:
            self.clear()
        self.dropping_point = point

    def validate(self) -> List[SelectionValidationError]:
        return validate_selection(self.selection, self.boarding_point, self.dropping_point)
