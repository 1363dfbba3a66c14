from collections.abc import Iterator

import pytest

from src.platform.config.di import cleanup, container
from src.service.booking.app.command.booking_saga_context import BookingSagaContext
from src.service.booking.app.service.retry_policy import RetryPolicy


@pytest.fixture
def fresh_container() -> Iterator[None]:
    cleanup()
    yield
    cleanup()


@pytest.mark.unit
class TestContainer:
    def test_saga_context_shares_one_dispatcher(self, fresh_container: None) -> None:
        context = container.booking_saga_context()

        assert isinstance(context, BookingSagaContext)
        assert context.event_dispatcher is container.event_dispatcher()
        assert container.dlq_reconciler().event_dispatcher is context.event_dispatcher
        assert context.payment_poller.payment_client is context.payment_client

    def test_retry_policy_comes_from_settings(self, fresh_container: None) -> None:
        policy = container.retry_policy()

        assert policy == RetryPolicy.from_settings()
        assert policy.backoff_schedule() == [1.0, 2.0]

    def test_repositories_share_the_database(self, fresh_container: None) -> None:
        database = container.database()

        assert container.booking_command_repo().session_factory == database.session
        assert container.failed_event_repo().session_factory == database.session
