from prometheus_client import Counter, Histogram


class BookingMetrics:
    """
    Booking Saga Core Metrics Collector

    Tracks saga outcomes, seat-lock contention, payment polling and the
    event-delivery / dead-letter path.
    """

    def __init__(self):
        # ========== Saga Metrics ==========
        self.booking_outcomes = Counter(
            'booking_saga_outcomes_total',
            'Booking saga terminal outcomes',
            ['phase', 'outcome'],  # phase: create/verify
        )

        self.seat_lock_conflicts = Counter(
            'seat_lock_conflicts_total',
            'Seat lock acquisitions rejected because a seat was already held',
        )

        self.payment_poll_duration = Histogram(
            'payment_poll_duration_seconds',
            'Time spent polling for a terminal payment status',
            ['result'],
            buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
        )

        # ========== Event Delivery Metrics ==========
        self.event_deliveries = Counter(
            'booking_event_deliveries_total',
            'Booking event delivery attempts per channel',
            ['channel', 'result'],  # channel: kafka/notification
        )

        self.dead_lettered_events = Counter(
            'booking_events_dead_lettered_total',
            'Events written to the dead letter store after exhausting retries',
            ['event_type'],
        )

        self.dlq_reconcile_results = Counter(
            'dlq_reconcile_results_total',
            'Per-event results of dead letter reconciliation passes',
            ['result'],  # processed/retry_failed/exhausted
        )

    # ========== Helper Methods ==========

    def record_booking_outcome(self, *, phase: str, outcome: str) -> None:
        self.booking_outcomes.labels(phase=phase, outcome=outcome).inc()

    def record_seat_lock_conflict(self) -> None:
        self.seat_lock_conflicts.inc()

    def record_payment_poll(self, *, result: str, duration: float) -> None:
        self.payment_poll_duration.labels(result=result).observe(duration)

    def record_event_delivery(self, *, channel: str, result: str) -> None:
        self.event_deliveries.labels(channel=channel, result=result).inc()

    def record_dead_lettered(self, *, event_type: str) -> None:
        self.dead_lettered_events.labels(event_type=event_type).inc()

    def record_reconcile_result(self, *, result: str) -> None:
        self.dlq_reconcile_results.labels(result=result).inc()


# Global metrics instance
metrics = BookingMetrics()
