from decimal import Decimal
from typing import Optional

import attrs


@attrs.define(frozen=True)
class SeatQuote:
    """Inventory service's view of a seat: availability and current price."""

    seat_id: int
    available: bool
    price: Decimal = attrs.field(converter=lambda v: Decimal(str(v)))
    label: Optional[str] = None
    category: Optional[str] = None
