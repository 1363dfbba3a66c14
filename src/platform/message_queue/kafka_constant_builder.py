from src.platform.config.core_setting import settings


class ServiceNames:
    """Service name constants"""

    BOOKING_SERVICE = 'booking-service'


class KafkaTopicBuilder:
    """
    Kafka topic names for booking outcomes.

    Names are shared with downstream consumers, so they come from settings
    rather than being derived.
    """

    @staticmethod
    def booking_success() -> str:
        return settings.KAFKA_BOOKING_SUCCESS_TOPIC

    @staticmethod
    def booking_failed() -> str:
        return settings.KAFKA_BOOKING_FAILED_TOPIC

    @staticmethod
    def get_all_topics() -> list[str]:
        return [KafkaTopicBuilder.booking_success(), KafkaTopicBuilder.booking_failed()]
