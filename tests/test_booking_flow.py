import asyncio
from decimal import Decimal

import pytest

from src.bookings.booking_flow import BookingFlow
from src.buses.exceptions import ProviderError
from src.buses.schemas import PassengerDetails
from src.seats.exceptions import MalformedLayout, SelectionValidationFailed
from src.seats.schemas import FareConfig, SelectionIssue

from tests.factories import FakeInventoryClient, seat


def _flow(client=None):
    return BookingFlow(client or FakeInventoryClient(), "token-1", 1, fare_config=FareConfig())


def _ready_flow(client=None):
    flow = _flow(client)
    asyncio.run(flow.load_layout())
    asyncio.run(flow.load_points())
    return flow


PASSENGERS = [
    PassengerDetails(name="Asha Rao", seat_name="L1", gender="female", age=31),
    PassengerDetails(name="Ravi Rao", seat_name="L2", gender="male", age=34),
]


def test_load_layout_installs_grid():
    flow = _flow()

    assert asyncio.run(flow.load_layout()) is True
    assert not flow.layout.is_empty
    assert flow.toggle("L1") is True


def test_submit_books_selected_seats_and_clears_selection():
    client = FakeInventoryClient()
    flow = _ready_flow(client)
    flow.toggle("L1")
    flow.toggle("L2")
    flow.choose_boarding_point(11)
    flow.choose_dropping_point("21")

    result = asyncio.run(flow.submit(PASSENGERS))

    assert result.pnr == "PNR4242"
    assert client.submitted == [{
        "search_token": "token-1",
        "result_index": 1,
        "boarding_point_id": 11,
        "dropping_point_id": 21,
        "seats": ["L1", "L2"],
    }]
    assert len(flow.selection) == 0


def test_submit_without_boarding_point_does_not_reach_provider():
    client = FakeInventoryClient()
    flow = _ready_flow(client)
    flow.toggle("L1")
    flow.toggle("L2")
    flow.choose_dropping_point(21)

    with pytest.raises(SelectionValidationFailed) as exc:
        asyncio.run(flow.submit(PASSENGERS))

    assert exc.value.error_codes == [SelectionIssue.MISSING_BOARDING_POINT]
    assert client.submitted == []
    assert flow.selection.selected_ids == ["L1", "L2"]


def test_hold_blocks_seats_and_keeps_selection():
    client = FakeInventoryClient()
    flow = _ready_flow(client)
    flow.toggle("L1")
    flow.toggle("L2")
    flow.choose_boarding_point(11)
    flow.choose_dropping_point(21)

    result = asyncio.run(flow.hold(PASSENGERS))

    assert result.is_price_changed is False
    assert client.blocked == [{"boarding_point_id": 11, "dropping_point_id": 21, "seats": ["L1", "L2"]}]
    assert flow.selection.selected_ids == ["L1", "L2"]
    assert client.submitted == []


def test_hold_runs_the_same_checks_as_submit():
    client = FakeInventoryClient()
    flow = _ready_flow(client)

    with pytest.raises(SelectionValidationFailed) as exc:
        asyncio.run(flow.hold(PASSENGERS))

    assert exc.value.error_codes == [SelectionIssue.INCOMPLETE_SELECTION]
    assert client.blocked == []


def test_submit_rejects_passengers_on_unselected_seats():
    flow = _ready_flow()
    flow.toggle("L1")
    flow.choose_boarding_point(11)
    flow.choose_dropping_point(21)

    with pytest.raises(SelectionValidationFailed) as exc:
        asyncio.run(flow.submit(PASSENGERS))

    assert exc.value.error_codes == [SelectionIssue.UNKNOWN_PASSENGER_SEAT]


def test_provider_failure_leaves_selection_untouched():
    client = FakeInventoryClient()
    client.submit_error = ProviderError("Seat already booked", error_code=3)
    flow = _ready_flow(client)
    flow.toggle("L1")
    flow.toggle("L2")
    flow.choose_boarding_point(11)
    flow.choose_dropping_point(21)

    with pytest.raises(ProviderError):
        asyncio.run(flow.submit(PASSENGERS))

    assert flow.selection.selected_ids == ["L1", "L2"]
    assert flow.session.boarding_point.point_id == 11


def test_unknown_stop_point_is_rejected():
    flow = _ready_flow()

    with pytest.raises(ValueError):
        flow.choose_boarding_point(99)
    with pytest.raises(ValueError):
        flow.choose_dropping_point(11)


def test_malformed_reload_drops_previous_grid():
    client = FakeInventoryClient()
    flow = _ready_flow(client)
    flow.toggle("L1")

    client.rows = [[seat("A1", ladies=True, males=True)]]
    with pytest.raises(MalformedLayout):
        asyncio.run(flow.load_layout())

    assert flow.layout.is_empty
    assert len(flow.selection) == 0
    assert flow.toggle("L1") is False


def test_layout_arriving_after_abandon_is_discarded():
    class LeavingClient(FakeInventoryClient):
        def __init__(self):
            super().__init__()
            self.flow = None

        async def fetch_seat_layout(self, search_token, result_index):
            self.flow.abandon()
            return await super().fetch_seat_layout(search_token, result_index)

    client = LeavingClient()
    flow = _flow(client)
    client.flow = flow

    assert asyncio.run(flow.load_layout()) is False
    assert flow.layout.is_empty


def test_quote_prices_current_selection():
    flow = _ready_flow()
    for seat_id in ("L1", "L2", "L3"):
        flow.toggle(seat_id)

    assert flow.quote().total_fare == Decimal("2715")
    assert flow.quote(include_insurance=True).total_fare == Decimal("2787")


def test_cancel_booking_passes_through():
    client = FakeInventoryClient()
    flow = _flow(client)

    result = asyncio.run(flow.cancel_booking(4242, "L1", "Plans changed"))

    assert result.trace_id == "trace-1"
    assert client.cancelled == [{"booking_id": 4242, "seat_id": "L1", "reason": "Plans changed"}]
