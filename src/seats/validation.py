from typing import Iterable, List, Optional, Sized

from src.seats.exceptions import SelectionValidationFailed
from src.seats.schemas import SelectionIssue, SelectionValidationError, StopPoint


def validate_selection(
    selection: Sized,
    boarding_point: Optional[StopPoint],
    dropping_point: Optional[StopPoint]
) -> List[SelectionValidationError]:
    """Check a selection is ready for submission.

    An empty selection is reported on its own; otherwise each missing stop
    point is reported. An empty list means the selection may be submitted.
    """
    if selection is None or len(selection) == 0:
        return [SelectionValidationError(
            error_code=SelectionIssue.INCOMPLETE_SELECTION,
            error_message="Please select at least one seat",
            field="seats"
        )]

    errors = []
    if boarding_point is None:
        errors.append(SelectionValidationError(
            error_code=SelectionIssue.MISSING_BOARDING_POINT,
            error_message="Please select a boarding point",
            field="boarding_point"
        ))

    if dropping_point is None:
        errors.append(SelectionValidationError(
            error_code=SelectionIssue.MISSING_DROPPING_POINT,
            error_message="Please select a dropping point",
            field="dropping_point"
        ))

    return errors

def ensure_selection_valid(
    selection: Sized,
    boarding_point: Optional[StopPoint],
    dropping_point: Optional[StopPoint]
):
    errors = validate_selection(selection, boarding_point, dropping_point)
    if errors:
        raise SelectionValidationFailed(errors)

def validate_passenger_assignment(
    selected_ids: Iterable[str],
    passengers: Iterable
) -> List[SelectionValidationError]:
    """Every selected seat needs exactly one passenger, and passengers only sit on selected seats"""
    selected = list(selected_ids)
    errors = []
    assigned = set()

    for passenger in passengers:
        seat_name = passenger.seat_name
        if seat_name not in selected:
            errors.append(SelectionValidationError(
                error_code=SelectionIssue.UNKNOWN_PASSENGER_SEAT,
                error_message=f"Seat {seat_name} is not part of the selection",
                field="passengers"
            ))
        elif seat_name in assigned:
            errors.append(SelectionValidationError(
                error_code=SelectionIssue.DUPLICATE_PASSENGER_SEAT,
                error_message=f"Seat {seat_name} is assigned to more than one passenger",
                field="passengers"
            ))
        assigned.add(seat_name)

    for seat_id in selected:
        if seat_id not in assigned:
            errors.append(SelectionValidationError(
                error_code=SelectionIssue.UNASSIGNED_SEAT,
                error_message=f"Please enter passenger details for seat {seat_id}",
                field="passengers"
            ))

    return errors
