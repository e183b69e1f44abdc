"""
Provider payloads and in-memory collaborators shared by the tests.
"""

import json
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import httpx

from src.buses.schemas import BlockSeatResult, BookingResult, BusSearchResponse, CancellationResult
from src.seats.schemas import BoardingPoint, DroppingPoint
from src.auth.sms_service import SmsResult


def seat(
    name: str,
    fare: Any = 800,
    upper: bool = False,
    available: bool = True,
    seat_type: int = 1,
    ladies: Optional[bool] = None,
    males: Optional[bool] = None,
    row: Any = None,
    column: Any = None,
    **extra
) -> Dict[str, Any]:
    """One provider seat object as found in SeatLayout.SeatDetails"""
    raw = {
        "SeatName": name,
        "SeatIndex": name,
        "IsUpper": upper,
        "SeatType": seat_type,
        "SeatStatus": available,
        "SeatFare": fare,
        "Height": 1,
        "Width": 1,
    }
    if ladies is not None:
        raw["IsLadiesSeat"] = ladies
    if males is not None:
        raw["IsMalesSeat"] = males
    if row is not None:
        raw["RowNo"] = row
    if column is not None:
        raw["ColumnNo"] = column
    raw.update(extra)
    return raw


def sample_rows() -> List[List[Dict[str, Any]]]:
    """Two lower rows with a centre aisle and one upper sleeper row"""
    return [
        [seat("L1", 800), seat("L2", 800), seat("AISLE-1", 0, available=False), seat("L3", 900, ladies=True)],
        [seat("L4", 800, available=False), seat("L5", 850), seat("AISLE-2", 0, available=False), seat("L6", 900)],
        [seat("U1", 1200, upper=True, seat_type=2), seat("U2", 1200, upper=True, seat_type=2, available=False)],
    ]


BOARDING_RAW = [
    {
        "CityPointIndex": 11,
        "CityPointName": "Majestic",
        "CityPointTime": "2026-11-01T21:00:00",
        "CityPointLocation": "Kempegowda Bus Station",
        "CityPointAddress": "Platform 4",
        "CityPointLandmark": "Near Metro",
        "CityPointContactNumber": "9876543210",
    },
    {"CityPointIndex": 12, "CityPointName": "Silk Board", "CityPointTime": "2026-11-01T21:45:00"},
]

DROPPING_RAW = [
    {"CityPointIndex": 21, "CityPointName": "Koyambedu", "CityPointTime": "2026-11-02T05:30:00"},
    {"CityPointIndex": 22, "CityPointName": "Guindy", "CityPointTime": "2026-11-02T06:00:00"},
]


class FakeClock:
    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime(2026, 10, 17, 9, 0, 0)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


class FakeSmsService:
    """Captures the codes that would have been texted"""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent: List[Dict[str, str]] = []

    def last_code(self, phone: str) -> Optional[str]:
        for message in reversed(self.sent):
            if message["phone"] == phone:
                return message["otp"]
        return None

    async def send_otp(self, phone: str, otp: str) -> SmsResult:
        if not self.succeed:
            return SmsResult(success=False, message="Failed to send SMS")
        self.sent.append({"phone": phone, "otp": otp})
        return SmsResult(success=True, message="OTP sent successfully")


class FakeInventoryClient:
    """Stands in for BusInventoryClient with canned provider data"""

    def __init__(self, rows=None):
        self.rows = sample_rows() if rows is None else rows
        self.boarding = [BoardingPoint.from_provider(p) for p in BOARDING_RAW]
        self.dropping = [DroppingPoint.from_provider(p) for p in DROPPING_RAW]
        self.layout_calls = 0
        self.blocked: List[Dict[str, Any]] = []
        self.submitted: List[Dict[str, Any]] = []
        self.cancelled: List[Dict[str, Any]] = []
        self.submit_error: Optional[Exception] = None

    async def search_buses(self, origin_id, destination_id, date_of_journey):
        return BusSearchResponse(
            search_token="token-1",
            results=[{"ResultIndex": 1, "TravelName": "Sancharie Express"}],
            total_results=1
        )

    async def fetch_seat_layout(self, search_token, result_index):
        self.layout_calls += 1
        return self.rows

    async def fetch_boarding_dropping_points(self, search_token, result_index):
        return list(self.boarding), list(self.dropping)

    async def block_seat(self, search_token, result_index, boarding_point_id, dropping_point_id, passengers):
        self.blocked.append({
            "boarding_point_id": boarding_point_id,
            "dropping_point_id": dropping_point_id,
            "seats": [p.seat_name for p in passengers],
        })
        return BlockSeatResult(is_price_changed=False, travel_name="Sancharie Express", bus_type="AC Sleeper")

    async def get_booking_details(self, search_token, booking_id):
        return {"BookingID": booking_id, "BookingStatus": "Confirmed", "TravelOperatorPNR": "PNR4242"}

    async def submit_booking(self, search_token, result_index, boarding_point_id, dropping_point_id, passengers):
        if self.submit_error is not None:
            raise self.submit_error
        self.submitted.append({
            "search_token": search_token,
            "result_index": result_index,
            "boarding_point_id": boarding_point_id,
            "dropping_point_id": dropping_point_id,
            "seats": [p.seat_name for p in passengers],
        })
        return BookingResult(booking_id=4242, ticket_no="TKT4242", pnr="PNR4242", status="Confirmed")

    async def cancel_booking(self, search_token, booking_id, seat_id, reason="Cancel Bus Ticket"):
        self.cancelled.append({"booking_id": booking_id, "seat_id": seat_id, "reason": reason})
        return CancellationResult(status=1, trace_id="trace-1")

    async def aclose(self):
        pass


def razorpay_transport(payment_status: str = "captured", fail_payment_fetch: bool = False) -> httpx.MockTransport:
    """Minimal Razorpay orders/payments API"""
    orders: Dict[str, Dict[str, Any]] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.method == "POST" and path == "/v1/orders":
            body = json.loads(request.content)
            order_id = f"order_TEST{len(orders) + 1}"
            orders[order_id] = {
                "id": order_id,
                "amount": body["amount"],
                "currency": body["currency"],
                "receipt": body["receipt"],
                "notes": body["notes"],
                "status": "created",
                "created_at": 1792224000,
            }
            return httpx.Response(200, json=orders[order_id])

        if request.method == "GET" and path.startswith("/v1/orders/"):
            order = orders.get(path.rsplit("/", 1)[-1])
            if order is None:
                return httpx.Response(400, json={"error": {"description": "The id provided does not exist"}})
            return httpx.Response(200, json=order)

        if request.method == "GET" and path.startswith("/v1/payments/"):
            if fail_payment_fetch:
                return httpx.Response(500, json={"error": {"description": "Internal error"}})
            return httpx.Response(200, json={
                "id": path.rsplit("/", 1)[-1],
                "order_id": "order_TEST1",
                "amount": 271500,
                "currency": "INR",
                "status": payment_status,
                "method": "upi",
                "captured": payment_status == "captured",
                "created_at": 1792224100,
            })

        return httpx.Response(404, json={"error": {"description": "Not found"}})

    transport = httpx.MockTransport(handler)
    transport.orders = orders
    return transport
