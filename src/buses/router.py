from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from src.database import get_db
from src.models import User
from src.logger_config import logger
from src.auth.dependencies import get_current_user
from src.bookings.booking_flow import BookingFlow
from src.bookings.booking_service import BookingRecordService
from src.buses.client import BusInventoryClient
from src.buses.dependencies import get_inventory_client
from src.buses.schemas import (
    BlockTicketResponse, BookingDetailsRequest, BookTicketRequest, BookTicketResponse,
    BusSearchRequest, BusSearchResponse,
    CancellationResult, CancelTicketRequest, FareQuoteRequest, FareQuoteResponse,
    ResultRequest, SeatLayoutResponse, StopPointsResponse
)
from src.seats.exceptions import MalformedLayout, SelectionValidationFailed
from src.seats.fare_service import FareCalculationService
from src.seats.layout_service import normalize_layout
from src.seats.selection import SeatSelection

router = APIRouter()

def _layout_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Seat layout is unavailable for this bus. Please reload the seats."
    )

@router.post("/search", response_model=BusSearchResponse)
async def search_buses(
    request: BusSearchRequest,
    client: BusInventoryClient = Depends(get_inventory_client)
):
    """Search buses between two cities on a date"""
    return await client.search_buses(request.origin_id, request.destination_id, request.date_of_journey)

@router.post("/seat-layout", response_model=SeatLayoutResponse)
async def get_seat_layout(
    request: ResultRequest,
    client: BusInventoryClient = Depends(get_inventory_client)
):
    """Normalized per-deck seat grids for one bus"""
    raw_rows = await client.fetch_seat_layout(request.search_token, request.result_index)
    layout = normalize_layout(raw_rows)

    if layout.is_empty:
        return SeatLayoutResponse(available=False, message="No seats available")

    return SeatLayoutResponse(
        available=True,
        style=layout.style,
        lower=layout.lower,
        upper=layout.upper,
        statistics=layout.seat_statistics()
    )

@router.post("/points", response_model=StopPointsResponse)
async def get_stop_points(
    request: ResultRequest,
    client: BusInventoryClient = Depends(get_inventory_client)
):
    boarding, dropping = await client.fetch_boarding_dropping_points(
        request.search_token, request.result_index
    )
    return StopPointsResponse(boarding_points=boarding, dropping_points=dropping)

@router.post("/fare-quote", response_model=FareQuoteResponse)
async def get_fare_quote(
    request: FareQuoteRequest,
    client: BusInventoryClient = Depends(get_inventory_client)
):
    """Price a set of seats against the current layout.

    Seats that are booked, unknown or listed twice are left out of the quote
    and reported back in ignored_seats.
    """
    raw_rows = await client.fetch_seat_layout(request.search_token, request.result_index)
    try:
        layout = normalize_layout(raw_rows)
    except MalformedLayout:
        raise _layout_unavailable()

    selection = SeatSelection(layout)
    ignored = []
    for seat_id in request.seat_ids:
        if seat_id in selection or not selection.toggle(seat_id):
            ignored.append(seat_id)

    fare = FareCalculationService().calculate(
        selection.selected_seats, include_insurance=request.include_insurance
    )
    return FareQuoteResponse(
        fare=fare,
        selected_seats=selection.selected_ids,
        ignored_seats=ignored,
        warnings=selection.restriction_warnings()
    )

async def _prepare_flow(request: BookTicketRequest, client: BusInventoryClient) -> BookingFlow:
    """Load the bus and select the passengers' seats and stop points"""
    flow = BookingFlow(client, request.search_token, request.result_index)

    try:
        await flow.load_layout()
    except MalformedLayout:
        raise _layout_unavailable()
    await flow.load_points()

    for passenger in request.passengers:
        if passenger.seat_name not in flow.selection:
            flow.toggle(passenger.seat_name)

    try:
        if request.boarding_point_id is not None:
            flow.choose_boarding_point(request.boarding_point_id)
        if request.dropping_point_id is not None:
            flow.choose_dropping_point(request.dropping_point_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    return flow

@router.post("/block", response_model=BlockTicketResponse)
async def block_ticket(
    request: BookTicketRequest,
    current_user: User = Depends(get_current_user),
    client: BusInventoryClient = Depends(get_inventory_client)
):
    """Hold the passengers' seats with the operator before payment"""
    flow = await _prepare_flow(request, client)
    fare = flow.quote(include_insurance=request.include_insurance)

    try:
        block = await flow.hold(request.passengers)
    except SelectionValidationFailed as e:
        logger.info("Seat block for user {} rejected: {}", current_user.id, e)
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=BlockTicketResponse(errors=e.errors).model_dump(mode="json")
        )

    return BlockTicketResponse(block=block, fare=fare)

@router.post("/book", response_model=BookTicketResponse)
async def book_ticket(
    request: BookTicketRequest,
    current_user: User = Depends(get_current_user),
    client: BusInventoryClient = Depends(get_inventory_client)
):
    """Select the passengers' seats and submit the booking to the operator"""
    flow = await _prepare_flow(request, client)
    fare = flow.quote(include_insurance=request.include_insurance)

    try:
        booking = await flow.submit(request.passengers)
    except SelectionValidationFailed as e:
        logger.info("Booking for user {} rejected: {}", current_user.id, e)
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=BookTicketResponse(errors=e.errors).model_dump(mode="json")
        )

    return BookTicketResponse(booking=booking, fare=fare)

@router.post("/booking-details")
async def get_booking_details(
    request: BookingDetailsRequest,
    current_user: User = Depends(get_current_user),
    client: BusInventoryClient = Depends(get_inventory_client)
):
    """Operator's current record of a booking"""
    return await client.get_booking_details(request.search_token, request.booking_id)

@router.post("/cancel", response_model=CancellationResult)
async def cancel_ticket(
    request: CancelTicketRequest,
    current_user: User = Depends(get_current_user),
    client: BusInventoryClient = Depends(get_inventory_client),
    db: Session = Depends(get_db)
):
    """Ask the operator to cancel a booked seat and update the stored booking"""
    result = await client.cancel_booking(
        request.search_token, request.booking_id, request.seat_id, request.reason
    )

    service = BookingRecordService(db)
    booking = service.get_by_external_id(current_user, str(request.booking_id))
    if booking is not None:
        try:
            service.mark_cancelled(booking, request.reason)
        except ValueError as e:
            logger.warning("Booking {} not updated: {}", booking.booking_reference, e)

    return result
