"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.booking.app.command import booking_saga, mark_failed_event_processed_use_case
from src.service.booking.app.query import get_booking_use_case, get_dead_letter_events_use_case


WIRE_MODULES: list[ModuleType] = [
    booking_saga,
    mark_failed_event_processed_use_case,
    get_booking_use_case,
    get_dead_letter_events_use_case,
]
