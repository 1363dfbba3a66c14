from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

from confluent_kafka import KafkaException
import pytest

from src.platform.message_queue import kafka_topic_initializer
from src.platform.message_queue.kafka_topic_initializer import (
    TOPIC_ALREADY_EXISTS,
    KafkaTopicInitializer,
)


class FakeFuture:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error

    def result(self) -> None:
        if self.error is not None:
            raise self.error


class FakeAdminClient:
    existing: set[str] = set()
    errors: dict[str, Exception] = {}
    created: list[str] = []

    def __init__(self, config: dict[str, Any]) -> None:
        self.config = config

    def list_topics(self, timeout: float) -> SimpleNamespace:
        return SimpleNamespace(topics={topic: object() for topic in self.existing})

    def create_topics(self, new_topics: list, request_timeout: float) -> dict[str, FakeFuture]:
        FakeAdminClient.created = [topic.topic for topic in new_topics]
        return {topic.topic: FakeFuture(self.errors.get(topic.topic)) for topic in new_topics}


def kafka_error(code: int) -> KafkaException:
    error = MagicMock()
    error.code.return_value = code
    return KafkaException(error)


@pytest.fixture(autouse=True)
def fake_admin(monkeypatch: pytest.MonkeyPatch) -> type[FakeAdminClient]:
    FakeAdminClient.existing = set()
    FakeAdminClient.errors = {}
    FakeAdminClient.created = []
    monkeypatch.setattr(kafka_topic_initializer, 'AdminClient', FakeAdminClient)
    return FakeAdminClient


@pytest.mark.unit
class TestKafkaTopicInitializer:
    def test_creates_missing_outcome_topics(self, fake_admin: type[FakeAdminClient]) -> None:
        fake_admin.existing = {'booking_success'}

        assert KafkaTopicInitializer(bootstrap_servers='kafka:9092').ensure_topics_exist()
        assert fake_admin.created == ['booking_failed']

    def test_nothing_to_create(self, fake_admin: type[FakeAdminClient]) -> None:
        fake_admin.existing = {'booking_success', 'booking_failed'}

        assert KafkaTopicInitializer().ensure_topics_exist()
        assert fake_admin.created == []

    def test_topic_created_concurrently_counts_as_success(
        self, fake_admin: type[FakeAdminClient]
    ) -> None:
        fake_admin.errors = {'booking_failed': kafka_error(TOPIC_ALREADY_EXISTS)}

        assert KafkaTopicInitializer().ensure_topics_exist()

    def test_creation_failure_reports_false(self, fake_admin: type[FakeAdminClient]) -> None:
        fake_admin.errors = {'booking_success': kafka_error(29)}

        assert not KafkaTopicInitializer().ensure_topics_exist()

    def test_unreachable_broker_never_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def unreachable(self: FakeAdminClient, timeout: float) -> None:
            raise KafkaException('broker transport failure')

        monkeypatch.setattr(FakeAdminClient, 'list_topics', unreachable)

        assert not KafkaTopicInitializer().ensure_topics_exist()
