from typing import Iterable, Optional
from decimal import Decimal, ROUND_HALF_UP

from src.seats.schemas import FareBreakdown, FareConfig, SeatRecord

_WHOLE_UNIT = Decimal('1')
_MINOR_UNIT = Decimal('0.01')


def _round_half_up(amount: Decimal, unit: Decimal) -> Decimal:
    return amount.quantize(unit, rounding=ROUND_HALF_UP)

def compute_fare(
    selected_seats: Iterable[SeatRecord],
    config: Optional[FareConfig] = None
) -> FareBreakdown:
    """Price a selection of seats.

    GST is charged on the unrounded base fare and rounded half-up to a whole
    currency unit. Service charge and the optional insurance add-on are flat
    per seat. Amounts are only quantized to the minor unit on output, and
    the result depends on nothing but the arguments.
    """
    config = config if config is not None else FareConfig()
    seats = list(selected_seats)
    seat_count = len(seats)

    base_fare = sum((seat.price for seat in seats), Decimal('0'))
    gst = _round_half_up(base_fare * config.gst_rate, _WHOLE_UNIT)
    service_charge = config.service_charge_per_seat * seat_count
    insurance = config.insurance_per_seat * seat_count if config.include_insurance else Decimal('0')
    total_fare = base_fare + gst + service_charge + insurance

    return FareBreakdown(
        base_fare=_round_half_up(base_fare, _MINOR_UNIT),
        gst=_round_half_up(gst, _MINOR_UNIT),
        service_charge=_round_half_up(service_charge, _MINOR_UNIT),
        insurance=_round_half_up(insurance, _MINOR_UNIT),
        total_fare=_round_half_up(total_fare, _MINOR_UNIT),
        seat_count=seat_count,
        currency=config.currency
    )

class FareCalculationService:
    """Prices selections with a fixed configuration"""

    def __init__(self, config: Optional[FareConfig] = None):
        self.config = config or FareConfig.from_settings()

    def calculate(self, selected_seats: Iterable[SeatRecord], include_insurance: Optional[bool] = None) -> FareBreakdown:
        config = self.config
        if include_insurance is not None and include_insurance != config.include_insurance:
            config = config.model_copy(update={"include_insurance": include_insurance})
        return compute_fare(selected_seats, config)
