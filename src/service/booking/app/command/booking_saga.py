"""
Booking Saga

Orchestrates a booking across seat locks, the inventory service, the payment
service and event delivery.

create_booking:
1. Verify seats with inventory (no booking yet)
2. Persist PENDING booking, total = sum of inventory prices
3. Acquire seat locks (all or nothing)
4. Hold seats in inventory, persist seat lines, open a checkout session

verify_and_complete:
5. Poll payment until COMPLETED / FAILED / timeout
6. COMPLETED: book seats in inventory, CONFIRM, release locks, emit success

Any failure after the booking exists runs compensation:
release locks -> release inventory holds -> mark FAILED -> emit failure event.
Every compensation step is best-effort.

No database session is held across remote calls or polling; each repo call is
its own short transaction.
"""

from typing import Awaitable, Callable, List, Self, Sequence, TypeVar
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.exception.exceptions import (
    BookingSystemError,
    DomainError,
    NotFoundError,
    PaymentFailureError,
    PollingTimeoutError,
    SeatLockConflictError,
    UpstreamServiceError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.command.booking_saga_context import BookingSagaContext
from src.service.booking.app.dto.booking_result import BookingStatusResult, CreateBookingResult
from src.service.booking.domain.domain_event.booking_outcome_event import (
    BookingFailedEvent,
    BookingSuccessEvent,
)
from src.service.booking.domain.entity.booking_entity import Booking, BookingSeat
from src.service.booking.domain.value_object.payment import (
    CheckoutSession,
    PaymentResult,
    PaymentStatus,
)
from src.service.booking.domain.value_object.seat_quote import SeatQuote
from src.service.booking.domain.value_object.step_result import StepOutcome, StepResult


T = TypeVar('T')

SEATS_UNAVAILABLE_REASON = 'Seats no longer available'
CHECKOUT_FAILED_REASON = 'Failed to create payment session'
PAYMENT_TIMEOUT_REASON = 'Payment verification timed out'


class BookingSaga:
    def __init__(self, *, context: BookingSagaContext) -> None:
        self.ctx = context
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        context: BookingSagaContext = Depends(Provide[Container.booking_saga_context]),
    ) -> Self:
        return cls(context=context)

    # ========== Step plumbing ==========

    async def _run_step(self, *, step: str, action: Callable[[], Awaitable[T]]) -> StepResult[T]:
        try:
            return StepResult.success(await action())
        except SeatLockConflictError as e:
            return StepResult.conflict(e)
        except (PaymentFailureError, PollingTimeoutError) as e:
            return StepResult.payment_failure(e)
        except Exception as e:
            Logger.base.error(f'❌ [SAGA] Step {step} failed: {type(e).__name__}: {e}')
            return StepResult.upstream_error(e)

    # ========== Create ==========

    @Logger.io
    async def create_booking(
        self, *, user_id: int, show_id: int, seat_ids: Sequence[int]
    ) -> CreateBookingResult:
        """
        Raises:
            DomainError: no seats requested
            SeatLockConflictError: a seat is unavailable or locked by another booking
            UpstreamServiceError: seat verification failed (nothing persisted)
            BookingSystemError: a later step failed; the booking is FAILED
        """
        requested = list(dict.fromkeys(seat_ids))
        if not requested:
            raise DomainError('At least one seat must be selected')

        with self.tracer.start_as_current_span(
            'saga.create_booking',
            attributes={'booking.user_id': user_id, 'booking.show_id': show_id},
        ) as span:
            quotes = await self._verify_seats(show_id=show_id, seat_ids=requested)

            create_step: StepResult[Booking] = await self._run_step(
                step='persist_booking',
                action=lambda: self.ctx.booking_command_repo.create(
                    booking=Booking.create(user_id=user_id, show_id=show_id, quotes=quotes)
                ),
            )
            if not create_step.ok:
                # Nothing persisted, locked or held yet
                metrics.record_booking_outcome(phase='create', outcome='failed')
                raise BookingSystemError() from create_step.error
            booking = create_step.value
            span.set_attribute('booking.id', str(booking.id))
            Logger.base.info(
                f'📝 [SAGA] Booking {booking.id} PENDING for user {user_id}, '
                f'show {show_id}, seats {requested}, total {booking.total_amount}'
            )

            lock_step: StepResult[List[str]] = await self._run_step(
                step='acquire_locks',
                action=lambda: self.ctx.seat_lock_manager.acquire(
                    show_id=show_id, seat_ids=requested, booking_id=booking.id
                ),
            )
            if lock_step.outcome == StepOutcome.CONFLICT:
                await self._fail_and_emit(booking=booking, reason=SEATS_UNAVAILABLE_REASON)
                metrics.record_booking_outcome(phase='create', outcome='conflict')
                raise lock_step.error
            if not lock_step.ok:
                # acquire rolled back its own locks and nothing is held in inventory
                await self._fail_and_emit(booking=booking, reason=lock_step.reason)
                metrics.record_booking_outcome(phase='create', outcome='failed')
                raise BookingSystemError() from lock_step.error

            hold_step: StepResult[List[BookingSeat]] = await self._run_step(
                step='hold_seats',
                action=lambda: self._hold_seats(booking=booking, seat_ids=requested, quotes=quotes),
            )
            if not hold_step.ok:
                await self._compensate(booking=booking, seat_ids=requested, reason=hold_step.reason)
                metrics.record_booking_outcome(phase='create', outcome='failed')
                raise BookingSystemError() from hold_step.error

            checkout_step: StepResult[CheckoutSession] = await self._run_step(
                step='create_checkout',
                action=lambda: self.ctx.payment_client.create_checkout_session(
                    booking_id=booking.id, user_id=user_id, amount=booking.total_amount
                ),
            )
            if not checkout_step.ok:
                await self._compensate(
                    booking=booking, seat_ids=requested, reason=CHECKOUT_FAILED_REASON
                )
                metrics.record_booking_outcome(phase='create', outcome='failed')
                raise BookingSystemError() from checkout_step.error

            checkout = checkout_step.value
            metrics.record_booking_outcome(phase='create', outcome='pending')
            Logger.base.info(
                f'💳 [SAGA] Booking {booking.id} awaiting payment (session {checkout.session_id})'
            )
            return CreateBookingResult(
                booking=booking,
                seats=hold_step.value,
                session_id=checkout.session_id,
                payment_url=checkout.payment_url,
                expires_at=checkout.expires_at,
            )

    async def _verify_seats(self, *, show_id: int, seat_ids: List[int]) -> List[SeatQuote]:
        quotes = await self.ctx.inventory_client.verify_seats(show_id=show_id, seat_ids=seat_ids)
        by_seat = {quote.seat_id: quote for quote in quotes}

        missing = [seat_id for seat_id in seat_ids if seat_id not in by_seat]
        if missing:
            raise UpstreamServiceError(
                f'Inventory returned no data for seats {missing} in show {show_id}',
                service='inventory',
            )

        for seat_id in seat_ids:
            if not by_seat[seat_id].available:
                metrics.record_booking_outcome(phase='create', outcome='conflict')
                raise SeatLockConflictError(
                    f'{SEATS_UNAVAILABLE_REASON}. Seat {seat_id} in show {show_id} '
                    'is not available.',
                    show_id=show_id,
                    seat_id=seat_id,
                )

        return [by_seat[seat_id] for seat_id in seat_ids]

    async def _hold_seats(
        self, *, booking: Booking, seat_ids: List[int], quotes: List[SeatQuote]
    ) -> List[BookingSeat]:
        await self.ctx.inventory_client.lock_seats(show_id=booking.show_id, seat_ids=seat_ids)
        seats = [BookingSeat.from_quote(booking_id=booking.id, quote=quote) for quote in quotes]
        return await self.ctx.booking_command_repo.add_seats(seats=seats)

    # ========== Verify ==========

    @Logger.io
    async def verify_and_complete(self, *, booking_id: UUID, session_id: str) -> BookingStatusResult:
        """
        Idempotent: a booking that is no longer PENDING is returned as-is.

        Raises:
            NotFoundError: unknown booking
            PaymentFailureError: payment FAILED or polling timed out (booking FAILED)
            BookingSystemError: anything else (booking FAILED)
        """
        booking = await self.ctx.booking_command_repo.get_by_id(booking_id=booking_id)
        if booking is None:
            raise NotFoundError(f'Booking {booking_id} not found')
        seats = await self.ctx.booking_command_repo.get_seats_by_booking_id(booking_id=booking_id)

        if not booking.is_pending:
            Logger.base.info(f'↩️ [SAGA] Booking {booking_id} already {booking.status}, no-op')
            return BookingStatusResult(
                booking=booking, seats=seats, message=f'Booking already {booking.status}'
            )

        seat_ids = [seat.seat_id for seat in seats]

        with self.tracer.start_as_current_span(
            'saga.verify_and_complete',
            attributes={'booking.id': str(booking_id), 'payment.session_id': session_id},
        ):
            payment_step: StepResult[PaymentResult] = await self._run_step(
                step='await_payment', action=lambda: self._await_payment(session_id=session_id)
            )

            if payment_step.outcome == StepOutcome.PAYMENT_FAILURE:
                error = payment_step.error
                if isinstance(error, PollingTimeoutError):
                    await self._compensate(
                        booking=booking, seat_ids=seat_ids, reason=PAYMENT_TIMEOUT_REASON
                    )
                    metrics.record_booking_outcome(phase='verify', outcome='payment_timeout')
                    raise PaymentFailureError(
                        str(error), payment_status=PaymentStatus.TIMEOUT
                    ) from error

                await self._compensate(booking=booking, seat_ids=seat_ids, reason=str(error))
                metrics.record_booking_outcome(phase='verify', outcome='payment_failed')
                raise error

            if not payment_step.ok:
                await self._compensate(
                    booking=booking, seat_ids=seat_ids, reason=payment_step.reason
                )
                metrics.record_booking_outcome(phase='verify', outcome='failed')
                raise BookingSystemError() from payment_step.error

            payment = payment_step.value
            confirm_step: StepResult[Booking] = await self._run_step(
                step='confirm_booking',
                action=lambda: self._confirm(booking=booking, seat_ids=seat_ids),
            )
            if not confirm_step.ok:
                await self._compensate(
                    booking=booking, seat_ids=seat_ids, reason=confirm_step.reason
                )
                metrics.record_booking_outcome(phase='verify', outcome='failed')
                raise BookingSystemError() from confirm_step.error

            confirmed = confirm_step.value
            await self.ctx.seat_lock_manager.release_by_ids(
                show_id=confirmed.show_id, seat_ids=seat_ids, booking_id=confirmed.id
            )
            await self.ctx.event_dispatcher.submit(
                event=BookingSuccessEvent.from_booking(booking=confirmed)
            )
            metrics.record_booking_outcome(phase='verify', outcome='confirmed')
            Logger.base.info(
                f'🎉 [SAGA] Booking {confirmed.id} CONFIRMED (txn {payment.transaction_id})'
            )
            return BookingStatusResult(
                booking=confirmed,
                seats=seats,
                message='Booking confirmed',
                transaction_id=payment.transaction_id,
            )

    async def _await_payment(self, *, session_id: str) -> PaymentResult:
        result = await self.ctx.payment_poller.poll(session_id=session_id)
        if result.is_failed:
            raise PaymentFailureError(
                f'Payment failed: {result.message or result.normalized_status}',
                payment_status=PaymentStatus.FAILED,
                transaction_id=result.transaction_id,
            )
        return result

    async def _confirm(self, *, booking: Booking, seat_ids: List[int]) -> Booking:
        """
        Book the seats in inventory, then persist CONFIRMED.

        Inventory is booked first: CONFIRMED is terminal, so a failed inventory
        booking must still find the booking open to compensation.
        """
        await self.ctx.inventory_client.book_seats(show_id=booking.show_id, seat_ids=seat_ids)
        return await self.ctx.booking_command_repo.update_status(booking=booking.confirm())

    # ========== Compensation ==========

    async def _compensate(self, *, booking: Booking, seat_ids: List[int], reason: str) -> None:
        Logger.base.warning(f'↪️ [SAGA] Compensating booking {booking.id}: {reason}')

        await self.ctx.seat_lock_manager.release_by_ids(
            show_id=booking.show_id, seat_ids=seat_ids, booking_id=booking.id
        )

        try:
            await self.ctx.inventory_client.release_seats(
                show_id=booking.show_id, seat_ids=seat_ids
            )
        except Exception as e:
            Logger.base.error(
                f'❌ [SAGA] Inventory release failed for booking {booking.id}, '
                f'seats {seat_ids}: {e}'
            )

        await self._fail_and_emit(booking=booking, reason=reason)

    async def _fail_and_emit(self, *, booking: Booking, reason: str) -> Booking:
        failed = booking
        try:
            failed = await self.ctx.booking_command_repo.update_status(booking=booking.fail())
            Logger.base.info(f'🛑 [SAGA] Booking {booking.id} FAILED: {reason}')
        except Exception as e:
            Logger.base.error(f'❌ [SAGA] Could not mark booking {booking.id} FAILED: {e}')

        await self.ctx.event_dispatcher.submit(
            event=BookingFailedEvent.from_booking(booking=booking, reason=reason)
        )
        return failed
