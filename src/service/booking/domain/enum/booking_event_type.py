from enum import StrEnum


class BookingEventType(StrEnum):
    BOOKING_SUCCESS = 'BOOKING_SUCCESS'
    BOOKING_FAILED = 'BOOKING_FAILED'
