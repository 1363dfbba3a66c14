"""
Production FastAPI Application

Booking saga API plus its background workers: the event dispatch pool and the
dead letter reconciler.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.logging.loguru_io import Logger
from src.platform.message_queue.event_publisher import close_producer
from src.platform.message_queue.kafka_topic_initializer import KafkaTopicInitializer
from src.platform.observability.tracing import TracingConfig
from src.platform.state.kvrocks_client import kvrocks_client


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Booking Service] Starting up...')

    tracing = TracingConfig(service_name='booking-service')
    tracing.setup()
    Logger.base.info('📊 [Booking Service] OpenTelemetry tracing configured')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Booking Service] Dependency injection wired')

    database = container.database()
    tracing.instrument_sqlalchemy(engine=database.engine)
    await database.create_db_and_tables()
    Logger.base.info('🗄️  [Booking Service] Database ready + instrumented')

    tracing.instrument_redis()
    # Fail-fast: seat locks are mandatory
    await kvrocks_client.initialize()
    Logger.base.info('📡 [Booking Service] Kvrocks initialized')

    if settings.KAFKA_AUTO_CREATE_TOPICS:
        await anyio.to_thread.run_sync(KafkaTopicInitializer().ensure_topics_exist)

    event_dispatcher = container.event_dispatcher()
    dlq_reconciler = container.dlq_reconciler()

    async with anyio.create_task_group() as tg:
        await tg.start(event_dispatcher.run)
        if settings.DLQ_RECONCILER_ENABLED:
            await tg.start(dlq_reconciler.run)
        Logger.base.info('✅ [Booking Service] Ready to serve requests')

        yield

        Logger.base.info('🛑 [Booking Service] Shutting down...')
        dlq_reconciler.stop()
        await event_dispatcher.stop()
        tg.cancel_scope.cancel()

    for client in (
        container.inventory_client(),
        container.payment_client(),
        container.notification_client(),
    ):
        await client.aclose()
    Logger.base.info('🌐 [Booking Service] HTTP clients closed')

    # Flush and close Kafka producer before shutdown
    try:
        await close_producer()
        Logger.base.info('📤 [Booking Service] Kafka producer closed')
    except Exception as e:
        Logger.base.error(f'❌ [Booking Service] Failed to close Kafka producer: {e}')

    await kvrocks_client.disconnect()
    Logger.base.info('📡 [Booking Service] Kvrocks disconnected')

    await database.dispose()

    tracing.shutdown()
    container.unwire()

    Logger.base.info('👋 [Booking Service] Shutdown complete')


app = create_app(
    lifespan=lifespan,
    description='Booking Saga Service - seat locks, payment confirmation and reliable outcome events',
)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
