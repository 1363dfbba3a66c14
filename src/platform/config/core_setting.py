from pathlib import Path
from typing import List

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Booking Saga Service'
    VERSION: str = '0.1.0'
    DEBUG: bool = False
    LOG_TO_FILE: bool = False

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',') if i.strip()]
        elif isinstance(v, list):
            return v
        return []

    # PostgreSQL
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'booking_saga'
    DATABASE_URL: str = ''  # Overrides the POSTGRES_* composition when set

    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_POOL_PRE_PING: bool = True

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f'postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD.get_secret_value()}'
            f'@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'
        )

    # Kvrocks Configuration (Redis protocol + Kvrocks storage)
    KVROCKS_HOST: str = 'localhost'
    KVROCKS_PORT: int = 6666
    KVROCKS_DB: int = 0
    KVROCKS_PASSWORD: str = ''
    REDIS_DECODE_RESPONSES: bool = True

    KVROCKS_POOL_MAX_CONNECTIONS: int = 50
    KVROCKS_POOL_SOCKET_TIMEOUT: int = 5
    KVROCKS_POOL_SOCKET_CONNECT_TIMEOUT: int = 5
    KVROCKS_POOL_SOCKET_KEEPALIVE: bool = True
    KVROCKS_POOL_HEALTH_CHECK_INTERVAL: int = 30

    # Seat locks
    SEAT_LOCK_KEY_PREFIX: str = 'lock:seat'
    SEAT_LOCK_VALUE_PREFIX: str = 'booking'
    SEAT_LOCK_TTL_SECONDS: int = 600

    # Payment polling
    PAYMENT_POLL_MAX_ATTEMPTS: int = 30
    PAYMENT_POLL_INTERVAL_MS: int = 2000
    PAYMENT_POLL_TIMEOUT_MS: int = 60000

    # Remote services
    INVENTORY_SERVICE_URL: str = 'http://localhost:8081'
    PAYMENT_SERVICE_URL: str = 'http://localhost:8082'
    NOTIFICATION_SERVICE_URL: str = 'http://localhost:8083'
    HTTP_CLIENT_TIMEOUT_SECONDS: float = 5.0

    # Kafka Configuration
    KAFKA_BOOTSTRAP_SERVERS: str = 'localhost:9092'
    KAFKA_ACKS: str = 'all'
    KAFKA_RETRIES: int = 3
    KAFKA_LINGER_MS: int = 10
    KAFKA_COMPRESSION_TYPE: str = 'snappy'
    KAFKA_DELIVERY_TIMEOUT_SECONDS: float = 10.0
    KAFKA_BOOKING_SUCCESS_TOPIC: str = 'booking_success'
    KAFKA_BOOKING_FAILED_TOPIC: str = 'booking_failed'
    KAFKA_AUTO_CREATE_TOPICS: bool = True
    KAFKA_TOPIC_PARTITIONS: int = 3
    KAFKA_TOPIC_REPLICATION_FACTOR: int = 1

    # Event dispatch worker pool
    EVENT_DISPATCH_WORKERS: int = 5
    EVENT_DISPATCH_QUEUE_SIZE: int = 100
    EVENT_DISPATCH_MAX_ATTEMPTS: int = 3
    EVENT_DISPATCH_INITIAL_BACKOFF_SECONDS: float = 1.0
    EVENT_DISPATCH_BACKOFF_MULTIPLIER: float = 2.0

    # Dead letter reconciliation
    DLQ_MAX_RETRIES: int = 3
    DLQ_RECONCILER_ENABLED: bool = True
    DLQ_RECONCILE_INTERVAL_SECONDS: float = 300
    DLQ_RECONCILE_INITIAL_DELAY_SECONDS: float = 60

    @property
    def KAFKA_PRODUCER_CONFIG(self) -> dict:
        return {
            'bootstrap.servers': self.KAFKA_BOOTSTRAP_SERVERS,
            'enable.idempotence': True,
            'acks': self.KAFKA_ACKS,
            'retries': self.KAFKA_RETRIES,
            'linger.ms': self.KAFKA_LINGER_MS,
            'compression.type': self.KAFKA_COMPRESSION_TYPE,
        }


settings = Settings()  # type: ignore
