"""
Bus Inventory Module

Talks to the bus inventory and reservation provider and exposes the seat
engine over HTTP.

Key Components:
- client.py: BusInventoryClient for search, seat layout, stop points,
  seat blocking, booking, booking details and cancellation
- schemas.py: passenger, provider result and API request/response models
- exceptions.py: ProviderError raised for every provider failure
- router.py: /bus/search, /bus/seat-layout, /bus/points, /bus/fare-quote,
  /bus/book, /bus/cancel
"""

from .router import router
from .client import BusInventoryClient, NO_RESULTS_ERROR_CODE
from .exceptions import ProviderError
from .schemas import PassengerDetails, BookingResult, CancellationResult, BusSearchResponse

__all__ = [
    "router",
    "BusInventoryClient",
    "NO_RESULTS_ERROR_CODE",
    "ProviderError",
    "PassengerDetails",
    "BookingResult",
    "CancellationResult",
    "BusSearchResponse"
]
