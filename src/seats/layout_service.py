from typing import Any, Dict, List, Optional, Sequence, Tuple
from decimal import Decimal, InvalidOperation

from src.logger_config import logger
from src.seats.exceptions import MalformedLayout
from src.seats.schemas import (
    Availability, CellKind, Deck, GenderRestriction, LayoutStyle, SeatCell,
    SeatClass, SeatGrid, SeatLayout, SeatRecord
)

# Unavailable, unflagged records priced below this are aisle placeholders
AISLE_PRICE_THRESHOLD = Decimal('100')

_SEAT_TYPES = {1: SeatClass.SEATER, 2: SeatClass.SLEEPER}


# ================================
# Parse / validate boundary
# ================================
def _require_bool(raw: Dict[str, Any], key: str, position: Tuple[int, int]) -> bool:
    value = raw.get(key)
    if not isinstance(value, bool):
        raise MalformedLayout(f"{key} must be a boolean, got {value!r}", position)
    return value

def _optional_flag(raw: Dict[str, Any], key: str, position: Tuple[int, int]) -> bool:
    value = raw.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise MalformedLayout(f"{key} must be a boolean, got {value!r}", position)
    return value

def _to_decimal(value: Any, key: str, position: Tuple[int, int]) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise MalformedLayout(f"{key} must be numeric, got {value!r}", position)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise MalformedLayout(f"{key} must be numeric, got {value!r}", position)
    if not amount.is_finite() or amount < 0:
        raise MalformedLayout(f"{key} must be a non-negative amount, got {value!r}", position)
    return amount

def _parse_price(raw: Dict[str, Any], position: Tuple[int, int]) -> Decimal:
    """SeatFare wins unless it is missing or zero, then Price.PublishedPrice"""
    fare = raw.get("SeatFare")
    if fare is not None:
        amount = _to_decimal(fare, "SeatFare", position)
        if amount:
            return amount

    price = raw.get("Price")
    if isinstance(price, dict) and price.get("PublishedPrice") is not None:
        return _to_decimal(price["PublishedPrice"], "Price.PublishedPrice", position)
    if price is not None and not isinstance(price, dict):
        raise MalformedLayout(f"Price must be an object, got {price!r}", position)

    return Decimal('0')

def _parse_coordinate(value: Any, key: str, position: Tuple[int, int]) -> Optional[int]:
    """Accepts ints and zero-padded digit strings such as "002" """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise MalformedLayout(f"{key} must be a grid index, got {value!r}", position)
    if isinstance(value, int):
        if value < 0:
            raise MalformedLayout(f"{key} must be a grid index, got {value!r}", position)
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise MalformedLayout(f"{key} must be a grid index, got {value!r}", position)

def _parse_dimension(value: Any, key: str, position: Tuple[int, int]) -> int:
    """Cell span of a seat; missing or zero means a single cell"""
    if value is None or value == "":
        return 1
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise MalformedLayout(f"{key} must be a non-negative integer, got {value!r}", position)
    return value or 1

def parse_seat_record(raw: Any, position: Tuple[int, int]) -> SeatRecord:
    """Convert one provider seat object into a strict SeatRecord"""
    if not isinstance(raw, dict):
        raise MalformedLayout("Seat entry is not an object", position)

    seat_name = raw.get("SeatName")
    if not isinstance(seat_name, str) or not seat_name.strip():
        raise MalformedLayout("Seat has no SeatName", position)

    is_upper = _require_bool(raw, "IsUpper", position)

    seat_type = raw.get("SeatType")
    if isinstance(seat_type, bool) or seat_type not in _SEAT_TYPES:
        raise MalformedLayout(f"Invalid SeatType for {seat_name}: {seat_type!r}", position)

    is_available = _require_bool(raw, "SeatStatus", position)

    ladies = _optional_flag(raw, "IsLadiesSeat", position)
    males = _optional_flag(raw, "IsMalesSeat", position)
    if ladies and males:
        raise MalformedLayout(f"Seat {seat_name} is flagged both ladies-only and male-only", position)

    if ladies:
        gender = GenderRestriction.FEMALE_ONLY
    elif males:
        gender = GenderRestriction.MALE_ONLY
    else:
        gender = GenderRestriction.NONE

    row = _parse_coordinate(raw.get("RowNo"), "RowNo", position)
    column = _parse_coordinate(raw.get("ColumnNo"), "ColumnNo", position)
    if (row is None) != (column is None):
        raise MalformedLayout(f"Seat {seat_name} carries only one of RowNo/ColumnNo", position)

    seat_index = raw.get("SeatIndex")

    return SeatRecord(
        seat_id=seat_name.strip(),
        deck=Deck.UPPER if is_upper else Deck.LOWER,
        seat_class=_SEAT_TYPES[seat_type],
        gender=gender,
        availability=Availability.AVAILABLE if is_available else Availability.BOOKED,
        price=_parse_price(raw, position),
        row=row,
        column=column,
        seat_index=str(seat_index) if seat_index is not None else None,
        height=_parse_dimension(raw.get("Height"), "Height", position),
        width=_parse_dimension(raw.get("Width"), "Width", position),
    )

def is_aisle_record(record: SeatRecord, threshold: Decimal = AISLE_PRICE_THRESHOLD) -> bool:
    """Unavailable, unflagged, and either cheap or named as an aisle"""
    if record.is_available or record.gender != GenderRestriction.NONE:
        return False
    return record.price < threshold or "aisle" in record.seat_id.lower()


# ================================
# Layout styles
# ================================
def detect_layout_style(records: Sequence[SeatRecord]) -> LayoutStyle:
    """Decide once per layout how positions are encoded"""
    if not records:
        return LayoutStyle.EMPTY

    with_coordinates = sum(1 for r in records if r.has_coordinates)
    if with_coordinates == len(records):
        return LayoutStyle.COORDINATE
    if with_coordinates == 0:
        return LayoutStyle.ROW_PRESERVING

    raise MalformedLayout(
        f"Layout mixes coordinate and row-ordered seats "
        f"({with_coordinates} of {len(records)} carry RowNo/ColumnNo)"
    )

class LayoutStrategy:
    """Builds one deck grid from parsed provider rows"""
    style: LayoutStyle

    def __init__(self, aisle_price_threshold: Decimal = AISLE_PRICE_THRESHOLD):
        self.aisle_price_threshold = aisle_price_threshold

    def build(self, rows: List[List[SeatRecord]], deck: Deck) -> SeatGrid:
        raise NotImplementedError

    def _cell(self, record: SeatRecord, row: int, column: int) -> SeatCell:
        kind = CellKind.AISLE if is_aisle_record(record, self.aisle_price_threshold) else CellKind.SEAT
        return SeatCell(kind=kind, row=row, column=column, record=record)

    @staticmethod
    def _empty(row: int, column: int) -> SeatCell:
        return SeatCell(kind=CellKind.EMPTY, row=row, column=column)

class RowPreservingStrategy(LayoutStrategy):
    """Provider rows are display rows; records within a row are sequential columns"""
    style = LayoutStyle.ROW_PRESERVING

    def build(self, rows: List[List[SeatRecord]], deck: Deck) -> SeatGrid:
        deck_rows = [[r for r in row if r.deck == deck] for row in rows]
        # Provider rows without seats on this deck do not produce a display row
        deck_rows = [row for row in deck_rows if row]
        if not deck_rows:
            return SeatGrid(deck=deck)

        width = max(len(row) for row in deck_rows)
        cells = []
        for row_index, row in enumerate(deck_rows):
            cells.append(tuple(
                self._cell(row[col], row_index, col) if col < len(row) else self._empty(row_index, col)
                for col in range(width)
            ))
        return SeatGrid(deck=deck, cells=tuple(cells))

class CoordinateStrategy(LayoutStrategy):
    """Records carry explicit RowNo/ColumnNo; missing coordinates become empty cells"""
    style = LayoutStyle.COORDINATE

    def build(self, rows: List[List[SeatRecord]], deck: Deck) -> SeatGrid:
        placed: Dict[Tuple[int, int], SeatRecord] = {}
        for record in (r for row in rows for r in row if r.deck == deck):
            key = (record.row, record.column)
            if key in placed:
                raise MalformedLayout(
                    f"Seats {placed[key].seat_id} and {record.seat_id} share "
                    f"{deck.value} deck position {key}"
                )
            placed[key] = record

        if not placed:
            return SeatGrid(deck=deck)

        height = max(r for r, _ in placed) + 1
        width = max(c for _, c in placed) + 1
        cells = tuple(
            tuple(
                self._cell(placed[(r, c)], r, c) if (r, c) in placed else self._empty(r, c)
                for c in range(width)
            )
            for r in range(height)
        )
        return SeatGrid(deck=deck, cells=cells)

_STRATEGIES = {
    LayoutStyle.ROW_PRESERVING: RowPreservingStrategy,
    LayoutStyle.COORDINATE: CoordinateStrategy,
}


# ================================
# Normalizer
# ================================
def parse_seat_rows(raw_rows: Any) -> List[List[SeatRecord]]:
    if raw_rows is None:
        return []
    if not isinstance(raw_rows, list):
        raise MalformedLayout("SeatDetails is not a list of rows")

    parsed = []
    for row_index, raw_row in enumerate(raw_rows):
        if not isinstance(raw_row, list):
            raise MalformedLayout(f"Row {row_index} is not a list")
        parsed.append([
            parse_seat_record(raw, (row_index, seat_index))
            for seat_index, raw in enumerate(raw_row)
        ])
    return parsed

def normalize_layout(
    raw_rows: Any,
    aisle_price_threshold: Decimal = AISLE_PRICE_THRESHOLD
) -> SeatLayout:
    """Turn provider seat rows into one immutable grid per deck.

    Any record that fails validation rejects the whole layout with
    MalformedLayout, so a booked seat can never surface as purchasable
    through a silently dropped record. An empty payload yields an empty
    layout rather than an error.
    """
    rows = parse_seat_rows(raw_rows)
    records = [r for row in rows for r in row]
    if not records:
        return SeatLayout.empty()

    seen = set()
    for record in records:
        if record.seat_id in seen:
            raise MalformedLayout(f"Duplicate seat name {record.seat_id}")
        seen.add(record.seat_id)

    style = detect_layout_style(records)
    strategy = _STRATEGIES[style](aisle_price_threshold)

    layout = SeatLayout(
        style=style,
        lower=strategy.build(rows, Deck.LOWER),
        upper=strategy.build(rows, Deck.UPPER),
    )
    logger.debug(
        "Normalized {} seat records ({}): lower {}x{}, upper {}x{}",
        len(records), style.value,
        layout.lower.rows, layout.lower.columns,
        layout.upper.rows, layout.upper.columns,
    )
    return layout
