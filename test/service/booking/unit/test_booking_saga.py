"""
Unit tests for BookingSaga

Runs the saga against in-memory collaborators and checks both the returned
result and every side effect: seat locks, inventory calls, booking status and
the outcome event.
"""

from decimal import Decimal

import pytest
from uuid_utils.compat import uuid7

from src.platform.exception.exceptions import (
    BookingSystemError,
    DomainError,
    NotFoundError,
    PaymentFailureError,
    SeatLockConflictError,
    UpstreamServiceError,
)
from src.service.booking.app.command.booking_saga import (
    CHECKOUT_FAILED_REASON,
    PAYMENT_TIMEOUT_REASON,
    SEATS_UNAVAILABLE_REASON,
)
from src.service.booking.domain.domain_event.booking_outcome_event import (
    BookingFailedEvent,
    BookingSuccessEvent,
)
from src.service.booking.domain.entity.booking_entity import BookingStatus
from src.service.booking.domain.value_object.payment import PaymentStatus
from test.service.booking.saga_harness import SHOW_ID, USER_ID, SagaHarness


@pytest.fixture
def harness() -> SagaHarness:
    return SagaHarness()


@pytest.mark.unit
class TestCreateBooking:
    @pytest.mark.asyncio
    async def test_happy_path_holds_locks_and_opens_checkout(self, harness: SagaHarness) -> None:
        # Act
        result = await harness.saga.create_booking(
            user_id=USER_ID, show_id=SHOW_ID, seat_ids=[1, 2]
        )

        # Assert
        booking = result.booking
        assert booking.status == BookingStatus.PENDING
        assert booking.total_amount == Decimal('25.00')
        assert [seat.seat_id for seat in result.seats] == [1, 2]
        assert [seat.price for seat in result.seats] == [Decimal('10.00'), Decimal('15.00')]
        assert result.session_id == f'cs_{booking.id}'
        assert harness.payment.checkout_calls == [(booking.id, USER_ID, Decimal('25.00'))]

        owner = harness.lock_manager.lock_value(booking_id=booking.id)
        assert harness.lock_store.data == {harness.key(1): owner, harness.key(2): owner}
        assert set(harness.lock_store.ttls.values()) == {600}
        assert harness.inventory.actions() == ['verify', 'lock']
        assert harness.publisher.published == []

    @pytest.mark.asyncio
    async def test_duplicate_seat_ids_are_collapsed(self, harness: SagaHarness) -> None:
        result = await harness.saga.create_booking(
            user_id=USER_ID, show_id=SHOW_ID, seat_ids=[2, 1, 2]
        )

        assert result.booking.total_amount == Decimal('25.00')
        assert [seat.seat_id for seat in result.seats] == [2, 1]

    @pytest.mark.asyncio
    async def test_empty_seat_list_is_rejected(self, harness: SagaHarness) -> None:
        with pytest.raises(DomainError):
            await harness.saga.create_booking(user_id=USER_ID, show_id=SHOW_ID, seat_ids=[])

        assert harness.inventory.calls == []

    @pytest.mark.asyncio
    async def test_unavailable_seat_conflicts_before_any_booking_exists(self) -> None:
        harness = SagaHarness(unavailable=[2])

        with pytest.raises(SeatLockConflictError, match=SEATS_UNAVAILABLE_REASON):
            await harness.saga.create_booking(user_id=USER_ID, show_id=SHOW_ID, seat_ids=[1, 2])

        assert harness.repo.bookings == {}
        assert harness.lock_store.data == {}
        assert harness.publisher.published == []

    @pytest.mark.asyncio
    async def test_seat_missing_from_inventory_is_upstream_error(
        self, harness: SagaHarness
    ) -> None:
        with pytest.raises(UpstreamServiceError, match=r'no data for seats \[99\]'):
            await harness.saga.create_booking(user_id=USER_ID, show_id=SHOW_ID, seat_ids=[1, 99])

        assert harness.repo.bookings == {}

    @pytest.mark.asyncio
    async def test_seat_held_by_other_booking_fails_new_booking(
        self, harness: SagaHarness
    ) -> None:
        # Arrange - booking-42 already holds seat 2
        foreign_owner = harness.lock_manager.lock_value(booking_id='booking-42')
        harness.lock_store.data[harness.key(2)] = foreign_owner

        # Act
        with pytest.raises(SeatLockConflictError):
            await harness.saga.create_booking(user_id=USER_ID, show_id=SHOW_ID, seat_ids=[1, 2])

        # Assert - the partial lock on seat 1 was rolled back, booking-42 untouched
        assert harness.lock_store.data == {harness.key(2): foreign_owner}
        booking = harness.only_booking()
        assert booking.status == BookingStatus.FAILED
        assert harness.inventory.actions() == ['verify']

        event = harness.only_event()
        assert isinstance(event, BookingFailedEvent)
        assert event.booking_id == booking.id
        assert event.reason == SEATS_UNAVAILABLE_REASON
        assert event.total_amount == Decimal('25.00')

    @pytest.mark.asyncio
    async def test_lock_store_outage_fails_booking_without_inventory_release(
        self, harness: SagaHarness
    ) -> None:
        harness.lock_store.failing_keys.add(harness.key(2))

        with pytest.raises(BookingSystemError) as exc_info:
            await harness.saga.create_booking(user_id=USER_ID, show_id=SHOW_ID, seat_ids=[1, 2])

        assert isinstance(exc_info.value.__cause__, UpstreamServiceError)
        assert exc_info.value.message == BookingSystemError.PUBLIC_MESSAGE
        assert harness.lock_store.data == {}
        assert harness.only_booking().status == BookingStatus.FAILED
        assert harness.inventory.actions() == ['verify']
        assert isinstance(harness.only_event(), BookingFailedEvent)

    @pytest.mark.asyncio
    async def test_booking_persist_failure_is_system_error(self, harness: SagaHarness) -> None:
        harness.repo.fail_create = True

        with pytest.raises(BookingSystemError) as exc_info:
            await harness.saga.create_booking(user_id=USER_ID, show_id=SHOW_ID, seat_ids=[1, 2])

        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert exc_info.value.message == BookingSystemError.PUBLIC_MESSAGE
        assert harness.repo.bookings == {}
        assert harness.lock_store.data == {}
        assert harness.inventory.actions() == ['verify']
        assert harness.publisher.published == []

    @pytest.mark.asyncio
    async def test_inventory_hold_failure_compensates(self, harness: SagaHarness) -> None:
        harness.inventory.failing_actions.add('lock')

        with pytest.raises(BookingSystemError):
            await harness.saga.create_booking(user_id=USER_ID, show_id=SHOW_ID, seat_ids=[1, 2])

        assert harness.lock_store.data == {}
        assert harness.inventory.actions() == ['verify', 'lock', 'release']
        assert harness.only_booking().status == BookingStatus.FAILED
        assert harness.only_event().reason == 'inventory lock failed'

    @pytest.mark.asyncio
    async def test_checkout_failure_compensates(self, harness: SagaHarness) -> None:
        # Arrange
        harness.payment.fail_checkout = True

        # Act
        with pytest.raises(BookingSystemError) as exc_info:
            await harness.saga.create_booking(user_id=USER_ID, show_id=SHOW_ID, seat_ids=[1, 2])

        # Assert
        assert isinstance(exc_info.value.__cause__, UpstreamServiceError)
        assert harness.lock_store.data == {}
        assert harness.inventory.actions() == ['verify', 'lock', 'release']
        assert harness.only_booking().status == BookingStatus.FAILED
        assert harness.only_event().reason == CHECKOUT_FAILED_REASON

    @pytest.mark.asyncio
    async def test_failure_event_emitted_even_if_status_update_fails(
        self, harness: SagaHarness
    ) -> None:
        harness.payment.fail_checkout = True
        harness.repo.fail_update_status = True

        with pytest.raises(BookingSystemError):
            await harness.saga.create_booking(user_id=USER_ID, show_id=SHOW_ID, seat_ids=[1])

        assert harness.only_booking().status == BookingStatus.PENDING
        assert harness.only_event().reason == CHECKOUT_FAILED_REASON
        assert harness.inventory.actions() == ['verify', 'lock', 'release']

    @pytest.mark.asyncio
    async def test_inventory_release_failure_does_not_stop_compensation(
        self, harness: SagaHarness
    ) -> None:
        harness.payment.fail_checkout = True
        harness.inventory.failing_actions.add('release')

        with pytest.raises(BookingSystemError):
            await harness.saga.create_booking(user_id=USER_ID, show_id=SHOW_ID, seat_ids=[1, 2])

        assert harness.lock_store.data == {}
        assert harness.only_booking().status == BookingStatus.FAILED
        assert harness.only_event().reason == CHECKOUT_FAILED_REASON


@pytest.mark.unit
class TestVerifyAndComplete:
    @staticmethod
    async def create_pending(harness: SagaHarness):
        result = await harness.saga.create_booking(
            user_id=USER_ID, show_id=SHOW_ID, seat_ids=[1, 2]
        )
        return result.booking, result.session_id

    @pytest.mark.asyncio
    async def test_completed_payment_confirms_booking(self, harness: SagaHarness) -> None:
        # Arrange
        booking, session_id = await self.create_pending(harness)
        harness.payment.statuses.extend(['PENDING', 'COMPLETED'])

        # Act
        result = await harness.saga.verify_and_complete(
            booking_id=booking.id, session_id=session_id
        )

        # Assert
        assert result.booking.status == BookingStatus.CONFIRMED
        assert result.message == 'Booking confirmed'
        assert result.transaction_id == 'txn_1'
        assert harness.repo.bookings[booking.id].status == BookingStatus.CONFIRMED
        assert harness.payment.status_calls == 2
        assert harness.inventory.actions() == ['verify', 'lock', 'book']
        assert harness.lock_store.data == {}

        event = harness.only_event()
        assert isinstance(event, BookingSuccessEvent)
        assert event.booking_id == booking.id
        assert event.total_amount == Decimal('25.00')

    @pytest.mark.asyncio
    async def test_failed_payment_compensates_and_raises(self, harness: SagaHarness) -> None:
        booking, session_id = await self.create_pending(harness)
        harness.payment.statuses.append('failed')

        with pytest.raises(PaymentFailureError) as exc_info:
            await harness.saga.verify_and_complete(booking_id=booking.id, session_id=session_id)

        assert exc_info.value.payment_status == PaymentStatus.FAILED
        assert exc_info.value.transaction_id == 'txn_1'
        assert exc_info.value.status_code == 402
        assert harness.repo.bookings[booking.id].status == BookingStatus.FAILED
        assert harness.inventory.actions() == ['verify', 'lock', 'release']
        assert harness.lock_store.data == {}
        assert harness.only_event().reason.startswith('Payment failed')

    @pytest.mark.asyncio
    async def test_polling_timeout_is_reported_as_payment_failure(self) -> None:
        # Arrange - a single poll that stays PENDING
        harness = SagaHarness(poll_attempts=1)
        booking, session_id = await self.create_pending(harness)

        # Act
        with pytest.raises(PaymentFailureError) as exc_info:
            await harness.saga.verify_and_complete(booking_id=booking.id, session_id=session_id)

        # Assert
        assert exc_info.value.payment_status == PaymentStatus.TIMEOUT
        assert 'max polling attempts (1) reached' in exc_info.value.message
        assert harness.repo.bookings[booking.id].status == BookingStatus.FAILED
        assert harness.lock_store.data == {}
        assert harness.only_event().reason == PAYMENT_TIMEOUT_REASON

    @pytest.mark.asyncio
    async def test_status_check_outage_is_system_error(self) -> None:
        harness = SagaHarness(poll_attempts=1)
        booking, session_id = await self.create_pending(harness)
        harness.payment.statuses.append(ConnectionError('payment service unreachable'))

        with pytest.raises(BookingSystemError) as exc_info:
            await harness.saga.verify_and_complete(booking_id=booking.id, session_id=session_id)

        assert isinstance(exc_info.value.__cause__, UpstreamServiceError)
        assert harness.repo.bookings[booking.id].status == BookingStatus.FAILED
        assert harness.inventory.actions() == ['verify', 'lock', 'release']

    @pytest.mark.asyncio
    async def test_inventory_booking_failure_compensates(self, harness: SagaHarness) -> None:
        booking, session_id = await self.create_pending(harness)
        harness.payment.statuses.append('COMPLETED')
        harness.inventory.failing_actions.add('book')

        with pytest.raises(BookingSystemError):
            await harness.saga.verify_and_complete(booking_id=booking.id, session_id=session_id)

        assert harness.repo.bookings[booking.id].status == BookingStatus.FAILED
        assert harness.inventory.actions() == ['verify', 'lock', 'book', 'release']
        assert harness.lock_store.data == {}
        assert isinstance(harness.only_event(), BookingFailedEvent)

    @pytest.mark.asyncio
    async def test_repeat_verify_is_idempotent(self, harness: SagaHarness) -> None:
        # Arrange
        booking, session_id = await self.create_pending(harness)
        harness.payment.statuses.append('COMPLETED')
        await harness.saga.verify_and_complete(booking_id=booking.id, session_id=session_id)
        calls_before = harness.payment.status_calls

        # Act
        result = await harness.saga.verify_and_complete(
            booking_id=booking.id, session_id=session_id
        )

        # Assert
        assert result.booking.status == BookingStatus.CONFIRMED
        assert result.message == 'Booking already CONFIRMED'
        assert [seat.seat_id for seat in result.seats] == [1, 2]
        assert harness.payment.status_calls == calls_before
        assert len(harness.publisher.published) == 1

    @pytest.mark.asyncio
    async def test_unknown_booking(self, harness: SagaHarness) -> None:
        with pytest.raises(NotFoundError):
            await harness.saga.verify_and_complete(booking_id=uuid7(), session_id='cs_missing')
