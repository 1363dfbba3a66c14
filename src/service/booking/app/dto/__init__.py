from src.service.booking.app.dto.booking_result import BookingStatusResult, CreateBookingResult
from src.service.booking.app.dto.dlq_stats import BookingDlqStats, DlqOverallStats, ReconcileReport


__all__ = [
    'BookingDlqStats',
    'BookingStatusResult',
    'CreateBookingResult',
    'DlqOverallStats',
    'ReconcileReport',
]
