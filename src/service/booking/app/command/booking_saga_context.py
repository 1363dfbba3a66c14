import attrs

from src.service.booking.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.booking.app.interface.i_inventory_client import IInventoryClient
from src.service.booking.app.interface.i_payment_client import IPaymentClient
from src.service.booking.app.service.event_dispatcher import EventDispatcher
from src.service.booking.app.service.payment_status_poller import PaymentStatusPoller
from src.service.booking.app.service.seat_lock_manager import SeatLockManager


@attrs.define(frozen=True)
class BookingSagaContext:
    """Every collaborator the booking saga talks to, handed in explicitly."""

    booking_command_repo: IBookingCommandRepo
    inventory_client: IInventoryClient
    payment_client: IPaymentClient
    seat_lock_manager: SeatLockManager
    payment_poller: PaymentStatusPoller
    event_dispatcher: EventDispatcher
