"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.booking.driven_adapter.model.booking_model import BookingModel, BookingSeatModel
from src.service.booking.driven_adapter.model.failed_event_model import FailedEventModel

__all__ = [
    'BookingModel',
    'BookingSeatModel',
    'FailedEventModel',
]
