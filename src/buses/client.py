from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import httpx
from pydantic import ValidationError

from src.config import settings
from src.logger_config import logger
from src.buses.exceptions import ProviderError
from src.buses.schemas import (
    BlockSeatResult, BookingResult, BusSearchResponse, CancellationResult, PassengerDetails
)
from src.seats.schemas import BoardingPoint, DroppingPoint

# Provider error code meaning "no buses on this route/date"
NO_RESULTS_ERROR_CODE = 1


class BusInventoryClient:
    """Async client for the bus inventory/reservation API (/busservice/rest/*)"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        user_ip: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.user_ip = user_ip or settings.BUS_API_USER_IP
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.BUS_API_BASE_URL,
            headers={
                "Content-Type": "application/json",
                "Username": username or settings.BUS_API_USERNAME or "",
                "Password": password or settings.BUS_API_PASSWORD or "",
            },
            timeout=timeout or settings.BUS_API_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def _post(self, operation: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = {"UserIp": self.user_ip, **payload}
        try:
            response = await self._client.post(f"/busservice/rest/{operation}", json=body)
        except httpx.HTTPError as e:
            logger.error("Bus provider {} request failed: {}", operation, e)
            raise ProviderError(f"Bus provider unavailable: {e}")

        if response.is_error:
            logger.error("Bus provider {} returned HTTP {}", operation, response.status_code)
            raise ProviderError(
                f"Bus provider returned HTTP {response.status_code}",
                status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError:
            raise ProviderError(f"Bus provider returned an invalid {operation} response")

        if not isinstance(data, dict):
            raise ProviderError(f"Bus provider returned an invalid {operation} response")
        return data

    @staticmethod
    def _raise_for_error(error: Any, default_message: str, tolerated: Sequence[int] = (0,)) -> Optional[int]:
        """Raise ProviderError for any error code outside `tolerated`; returns the code"""
        if not error:
            return None
        if not isinstance(error, dict):
            raise ProviderError(default_message)

        code = error.get("ErrorCode", 0)
        if code not in tolerated:
            raise ProviderError(error.get("ErrorMessage") or default_message, error_code=code)
        return code

    async def search_buses(
        self,
        origin_id: Union[int, str],
        destination_id: Union[int, str],
        date_of_journey: str
    ) -> BusSearchResponse:
        """Search buses between two cities on a date"""
        data = await self._post("search", {
            "DateOfJourney": date_of_journey,
            "OriginId": str(origin_id),
            "DestinationId": str(destination_id),
        })
        code = self._raise_for_error(
            data.get("Error"), "Search failed", tolerated=(0, NO_RESULTS_ERROR_CODE)
        )

        results = [] if code == NO_RESULTS_ERROR_CODE else (data.get("Result") or [])
        return BusSearchResponse(
            search_token=data.get("SearchTokenId") or data.get("TokenId") or data.get("Token"),
            results=results,
            total_results=len(results)
        )

    async def fetch_seat_layout(self, search_token: str, result_index: Union[int, str]) -> List[Any]:
        """Raw seat rows (SeatLayout.SeatDetails) for one bus"""
        data = await self._post("seatlayout", {
            "SearchTokenId": search_token,
            "ResultIndex": result_index,
        })
        self._raise_for_error(data.get("Error"), "Failed to get seat layout")

        result = data.get("Result") or {}
        seat_layout = result.get("SeatLayout") or {}
        return seat_layout.get("SeatDetails") or []

    async def fetch_boarding_dropping_points(
        self,
        search_token: str,
        result_index: Union[int, str]
    ) -> Tuple[List[BoardingPoint], List[DroppingPoint]]:
        data = await self._post("boardingpoint", {
            "SearchTokenId": search_token,
            "ResultIndex": result_index,
        })
        self._raise_for_error(data.get("Error"), "Failed to get boarding points")

        result = data.get("Result") or {}
        try:
            boarding = [BoardingPoint.from_provider(p) for p in result.get("BoardingPointsDetails") or []]
            dropping = [DroppingPoint.from_provider(p) for p in result.get("DroppingPointsDetails") or []]
        except (ValidationError, AttributeError) as e:
            raise ProviderError(f"Bus provider returned invalid boarding points: {e}")
        return boarding, dropping

    def _reservation_payload(
        self,
        search_token: str,
        result_index: Union[int, str],
        boarding_point_id: Union[int, str],
        dropping_point_id: Union[int, str],
        passengers: Sequence[PassengerDetails]
    ) -> Dict[str, Any]:
        return {
            "SearchTokenId": search_token,
            "ResultIndex": result_index,
            "BoardingPointId": boarding_point_id,
            "DroppingPointId": dropping_point_id,
            "Passenger": [p.to_provider(lead=(i == 0)) for i, p in enumerate(passengers)],
        }

    async def block_seat(
        self,
        search_token: str,
        result_index: Union[int, str],
        boarding_point_id: Union[int, str],
        dropping_point_id: Union[int, str],
        passengers: Sequence[PassengerDetails]
    ) -> BlockSeatResult:
        """Hold seats with the operator ahead of payment"""
        data = await self._post("blockseat", self._reservation_payload(
            search_token, result_index, boarding_point_id, dropping_point_id, passengers
        ))
        self._raise_for_error(data.get("Error"), "Failed to block seat")

        result = data.get("Result") or {}
        return BlockSeatResult(
            is_price_changed=bool(result.get("IsPriceChanged")),
            bus_type=result.get("BusType"),
            travel_name=result.get("TravelName"),
            departure_time=result.get("DepartureTime"),
            arrival_time=result.get("ArrivalTime"),
            cancel_policy=result.get("CancelPolicy") or []
        )

    async def submit_booking(
        self,
        search_token: str,
        result_index: Union[int, str],
        boarding_point_id: Union[int, str],
        dropping_point_id: Union[int, str],
        passengers: Sequence[PassengerDetails]
    ) -> BookingResult:
        data = await self._post("book", self._reservation_payload(
            search_token, result_index, boarding_point_id, dropping_point_id, passengers
        ))
        self._raise_for_error(data.get("Error"), "Booking failed")

        result = data.get("Result") or {}
        try:
            return BookingResult(
                booking_id=result.get("BookingID"),
                ticket_no=result.get("TicketNo"),
                pnr=result.get("TravelOperatorPNR"),
                status=result.get("BookingStatus"),
                invoice_number=result.get("InvoiceNumber"),
                invoice_amount=result.get("InvoiceAmount")
            )
        except ValidationError as e:
            raise ProviderError(f"Bus provider returned an invalid booking response: {e}")

    async def get_booking_details(self, search_token: str, booking_id: Union[int, str]) -> Dict[str, Any]:
        data = await self._post("getbookingdetail", {
            "SearchTokenId": search_token,
            "BookingId": booking_id,
        })
        self._raise_for_error(data.get("Error"), "Failed to get booking details")
        return data.get("Result") or {}

    async def cancel_booking(
        self,
        search_token: str,
        booking_id: Union[int, str],
        seat_id: Union[int, str],
        reason: str = "Cancel Bus Ticket"
    ) -> CancellationResult:
        data = await self._post("cancelrequest", {
            "SearchTokenId": search_token,
            "BookingId": booking_id,
            "SeatId": str(seat_id),
            "Remarks": reason,
        })

        # Cancellation nests its error inside SendChangeRequestResult and it must be present
        result = data.get("SendChangeRequestResult") or {}
        error = result.get("Error")
        if not isinstance(error, dict) or error.get("ErrorCode") is None:
            raise ProviderError("Cancellation failed")
        self._raise_for_error(error, "Cancellation failed")

        return CancellationResult(
            status=result.get("ResponseStatus"),
            trace_id=result.get("TraceId")
        )
