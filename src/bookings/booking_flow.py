from typing import List, Optional, Sequence, Union

from src.logger_config import logger
from src.buses.client import BusInventoryClient
from src.buses.schemas import BlockSeatResult, BookingResult, CancellationResult, PassengerDetails
from src.seats.exceptions import MalformedLayout, SelectionValidationFailed
from src.seats.fare_service import compute_fare
from src.seats.layout_service import normalize_layout
from src.seats.schemas import BoardingPoint, DroppingPoint, FareBreakdown, FareConfig, SeatLayout
from src.seats.selection import SeatSelectionSession
from src.seats.validation import ensure_selection_valid, validate_passenger_assignment


class BookingFlow:
    """Seat selection and booking submission for one bus of a search result.

    Provider calls are awaited; the selection itself only changes through
    toggle/clear and layout reloads. A provider failure during submission
    leaves the selection as it was so the passenger can retry.
    """

    def __init__(
        self,
        client: BusInventoryClient,
        search_token: str,
        result_index: Union[int, str],
        fare_config: Optional[FareConfig] = None
    ):
        self.client = client
        self.search_token = search_token
        self.result_index = result_index
        self.fare_config = fare_config if fare_config is not None else FareConfig.from_settings()
        self.session = SeatSelectionSession()
        self.boarding_points: List[BoardingPoint] = []
        self.dropping_points: List[DroppingPoint] = []

    @property
    def layout(self) -> SeatLayout:
        return self.session.layout

    @property
    def selection(self):
        return self.session.selection

    async def load_layout(self) -> bool:
        """Fetch and install a fresh layout. Returns False if the result was superseded."""
        generation = self.session.begin_layout_fetch()
        raw_rows = await self.client.fetch_seat_layout(self.search_token, self.result_index)

        try:
            layout = normalize_layout(raw_rows)
        except MalformedLayout as e:
            logger.warning("Rejected seat layout for result {}: {}", self.result_index, e)
            # The previous grid must not stay selectable after a failed reload
            self.session.apply_layout(generation, SeatLayout.empty())
            raise

        return self.session.apply_layout(generation, layout)

    async def load_points(self):
        self.boarding_points, self.dropping_points = await self.client.fetch_boarding_dropping_points(
            self.search_token, self.result_index
        )

    def toggle(self, seat_id: str) -> bool:
        return self.session.toggle(seat_id)

    def choose_boarding_point(self, point_id: Union[int, str]) -> BoardingPoint:
        point = self._find_point(self.boarding_points, point_id)
        if point is None:
            raise ValueError(f"Unknown boarding point {point_id}")
        self.session.choose_boarding_point(point)
        return point

    def choose_dropping_point(self, point_id: Union[int, str]) -> DroppingPoint:
        point = self._find_point(self.dropping_points, point_id)
        if point is None:
            raise ValueError(f"Unknown dropping point {point_id}")
        self.session.choose_dropping_point(point)
        return point

    def quote(self, include_insurance: Optional[bool] = None) -> FareBreakdown:
        config = self.fare_config
        if include_insurance is not None:
            config = config.model_copy(update={"include_insurance": include_insurance})
        return compute_fare(self.selection.selected_seats, config)

    def _ensure_ready(self, passengers: Sequence[PassengerDetails]):
        ensure_selection_valid(self.selection, self.session.boarding_point, self.session.dropping_point)

        errors = validate_passenger_assignment(self.selection.selected_ids, passengers)
        if errors:
            raise SelectionValidationFailed(errors)

    async def hold(self, passengers: Sequence[PassengerDetails]) -> BlockSeatResult:
        """Block the selected seats with the operator ahead of payment.

        The selection is kept so the same seats can be booked once payment
        is verified.
        """
        self._ensure_ready(passengers)

        result = await self.client.block_seat(
            self.search_token,
            self.result_index,
            self.session.boarding_point.point_id,
            self.session.dropping_point.point_id,
            passengers
        )
        logger.info("Blocked {} seat(s) on result {}", len(self.selection), self.result_index)
        return result

    async def submit(self, passengers: Sequence[PassengerDetails]) -> BookingResult:
        """Validate the selection and hand it to the provider"""
        self._ensure_ready(passengers)

        result = await self.client.submit_booking(
            self.search_token,
            self.result_index,
            self.session.boarding_point.point_id,
            self.session.dropping_point.point_id,
            passengers
        )

        logger.info(
            "Booked {} seat(s) on result {}: booking {} pnr {}",
            len(self.selection), self.result_index, result.booking_id, result.pnr
        )
        self.session.clear()
        return result

    async def cancel_booking(
        self,
        booking_id: Union[int, str],
        seat_id: Union[int, str],
        reason: str = "Cancel Bus Ticket"
    ) -> CancellationResult:
        return await self.client.cancel_booking(self.search_token, booking_id, seat_id, reason)

    def abandon(self):
        """User left the seat view: drop in-flight fetches and the selection"""
        self.session.cancel_pending_fetch()
        self.session.clear()

    @staticmethod
    def _find_point(points, point_id):
        for point in points:
            if str(point.point_id) == str(point_id):
                return point
        return None
