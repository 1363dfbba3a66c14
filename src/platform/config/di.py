"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.database.orm_db_setting import Database
from src.service.booking.app.command.booking_saga_context import BookingSagaContext
from src.service.booking.app.service.dead_letter_store import DeadLetterStore
from src.service.booking.app.service.dlq_reconciler import DLQReconciler
from src.service.booking.app.service.event_dispatcher import EventDispatcher
from src.service.booking.app.service.payment_status_poller import PaymentStatusPoller
from src.service.booking.app.service.retry_policy import RetryPolicy
from src.service.booking.app.service.seat_lock_manager import SeatLockManager
from src.service.booking.driven_adapter.http_client.inventory_client_impl import (
    InventoryClientImpl,
)
from src.service.booking.driven_adapter.http_client.notification_client_impl import (
    NotificationClientImpl,
)
from src.service.booking.driven_adapter.http_client.payment_client_impl import PaymentClientImpl
from src.service.booking.driven_adapter.message_queue.booking_event_publisher_impl import (
    BookingEventPublisherImpl,
)
from src.service.booking.driven_adapter.repo.booking_command_repo_impl import (
    BookingCommandRepoImpl,
)
from src.service.booking.driven_adapter.repo.booking_query_repo_impl import BookingQueryRepoImpl
from src.service.booking.driven_adapter.repo.failed_event_repo_impl import FailedEventRepoImpl
from src.service.booking.driven_adapter.state.kvrocks_seat_lock_store_impl import (
    KvrocksSeatLockStoreImpl,
)


class Container(containers.DeclarativeContainer):
    # Database (AsyncEngineManager reads the URL from settings)
    database = providers.Singleton(Database)

    # Repositories (stateless - use session_factory per call)
    booking_command_repo = providers.Singleton(
        BookingCommandRepoImpl, session_factory=database.provided.session
    )
    booking_query_repo = providers.Singleton(
        BookingQueryRepoImpl, session_factory=database.provided.session
    )
    failed_event_repo = providers.Singleton(
        FailedEventRepoImpl, session_factory=database.provided.session
    )

    # Kvrocks seat locks
    seat_lock_store = providers.Singleton(KvrocksSeatLockStoreImpl)
    seat_lock_manager = providers.Singleton(SeatLockManager, lock_store=seat_lock_store)

    # Remote services (one pooled httpx client each, closed on shutdown)
    inventory_client = providers.Singleton(InventoryClientImpl)
    payment_client = providers.Singleton(PaymentClientImpl)
    notification_client = providers.Singleton(NotificationClientImpl)

    payment_poller = providers.Singleton(PaymentStatusPoller, payment_client=payment_client)

    # Event delivery: Kafka -> notification fallback -> dead letter store
    booking_event_publisher = providers.Singleton(BookingEventPublisherImpl)
    retry_policy = providers.Singleton(RetryPolicy.from_settings)
    dead_letter_store = providers.Singleton(DeadLetterStore, failed_event_repo=failed_event_repo)
    event_dispatcher = providers.Singleton(
        EventDispatcher,
        event_publisher=booking_event_publisher,
        notification_client=notification_client,
        dead_letter_store=dead_letter_store,
        retry_policy=retry_policy,
    )
    dlq_reconciler = providers.Singleton(
        DLQReconciler,
        dead_letter_store=dead_letter_store,
        event_dispatcher=event_dispatcher,
    )

    # Saga collaborators, handed over explicitly
    booking_saga_context = providers.Singleton(
        BookingSagaContext,
        booking_command_repo=booking_command_repo,
        inventory_client=inventory_client,
        payment_client=payment_client,
        seat_lock_manager=seat_lock_manager,
        payment_poller=payment_poller,
        event_dispatcher=event_dispatcher,
    )


container = Container()


def cleanup() -> None:
    container.reset_singletons()
