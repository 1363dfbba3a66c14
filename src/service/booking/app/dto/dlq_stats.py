from typing import List

import attrs

from src.service.booking.domain.entity.failed_event_entity import FailedEvent


@attrs.define(frozen=True)
class BookingDlqStats:
    booking_id: str
    pending: int
    retrying: int
    failed: int
    processed: int
    events: List[FailedEvent]

    @property
    def total(self) -> int:
        return len(self.events)


@attrs.define(frozen=True)
class DlqOverallStats:
    pending: int
    retrying: int
    failed: int
    processed: int

    @property
    def total(self) -> int:
        return self.pending + self.retrying + self.failed + self.processed


@attrs.define(frozen=True)
class ReconcileReport:
    """Outcome counts of one reconciliation pass."""

    attempted: int = 0
    processed: int = 0
    retry_failed: int = 0
    exhausted: int = 0
    errors: int = 0
    skipped: bool = False
