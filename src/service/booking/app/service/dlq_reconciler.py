"""
DLQ Reconciler

Periodically re-delivers dead-lettered events. One pass:

- Loads PENDING events still under their retry budget
- Per event: RETRYING -> one delivery attempt -> PROCESSED, or back to
  PENDING / FAILED with the retry count bumped
- If the outcome cannot be written, the row goes back to PENDING untouched
- Errors are isolated per event so one bad row cannot stall the pass

Passes never overlap: a pass that finds the previous one still running is
skipped.
"""

from typing import Optional

import anyio
from anyio.abc import TaskStatus

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.dto.dlq_stats import ReconcileReport
from src.service.booking.app.service.dead_letter_store import DeadLetterStore
from src.service.booking.app.service.event_dispatcher import EventDispatcher
from src.service.booking.domain.entity.failed_event_entity import FailedEvent, FailedEventStatus


class DLQReconciler:
    def __init__(
        self,
        *,
        dead_letter_store: DeadLetterStore,
        event_dispatcher: EventDispatcher,
        interval_seconds: float = settings.DLQ_RECONCILE_INTERVAL_SECONDS,
        initial_delay_seconds: float = settings.DLQ_RECONCILE_INITIAL_DELAY_SECONDS,
    ) -> None:
        self.dead_letter_store = dead_letter_store
        self.event_dispatcher = event_dispatcher
        self.interval_seconds = interval_seconds
        self.initial_delay_seconds = initial_delay_seconds
        self._lock: Optional[anyio.Lock] = None
        self._cancel_scope: Optional[anyio.CancelScope] = None

    def _get_lock(self) -> anyio.Lock:
        if self._lock is None:
            self._lock = anyio.Lock()
        return self._lock

    async def reconcile_once(self) -> ReconcileReport:
        lock = self._get_lock()
        if lock.locked():
            Logger.base.info('⏭️ [DLQ] Previous reconciliation still running, skipping pass')
            return ReconcileReport(skipped=True)

        async with lock:
            return await self._reconcile()

    async def _reconcile(self) -> ReconcileReport:
        try:
            events = await self.dead_letter_store.get_pending_events()
        except Exception as e:
            Logger.base.error(f'❌ [DLQ] Could not load pending events: {e}')
            return ReconcileReport(errors=1)

        if not events:
            Logger.base.debug('🧹 [DLQ] Nothing to reconcile')
            return ReconcileReport()

        Logger.base.info(f'🔄 [DLQ] Reconciling {len(events)} pending event(s)')
        processed = retry_failed = exhausted = errors = 0

        for failed_event in events:
            try:
                result = await self._reconcile_event(failed_event=failed_event)
            except Exception as e:
                errors += 1
                Logger.base.error(f'❌ [DLQ] Error reconciling event {failed_event.id}: {e}')
                continue

            metrics.record_reconcile_result(result=result)
            if result == 'processed':
                processed += 1
            elif result == 'exhausted':
                exhausted += 1
            else:
                retry_failed += 1

        report = ReconcileReport(
            attempted=len(events),
            processed=processed,
            retry_failed=retry_failed,
            exhausted=exhausted,
            errors=errors,
        )
        Logger.base.info(
            f'✅ [DLQ] Pass done: attempted={report.attempted} processed={processed} '
            f'retry_failed={retry_failed} exhausted={exhausted} errors={errors}'
        )
        return report

    async def _reconcile_event(self, *, failed_event: FailedEvent) -> str:
        retrying = await self.dead_letter_store.mark_as_retrying(failed_event=failed_event)

        try:
            return await self._attempt(retrying=retrying)
        except Exception:
            await self._release(retrying=retrying)
            raise

    async def _release(self, *, retrying: FailedEvent) -> None:
        """Put a RETRYING row back to PENDING so a later pass picks it up."""
        try:
            await self.dead_letter_store.release_retrying(failed_event=retrying)
        except Exception as e:
            Logger.base.error(f'❌ [DLQ] Event {retrying.id} left RETRYING, release failed: {e}')

    async def _attempt(self, *, retrying: FailedEvent) -> str:
        try:
            channel = await self.event_dispatcher.deliver(event=retrying.to_outcome_event())
        except Exception as e:
            updated = await self.dead_letter_store.increment_retry_count(
                failed_event=retrying, error=str(e)
            )
            Logger.base.warning(
                f'⚠️ [DLQ] Retry {updated.retry_count}/{updated.max_retries} of event '
                f'{updated.id} failed: {e}'
            )
            return 'exhausted' if updated.status == FailedEventStatus.FAILED else 'retry_failed'

        await self.dead_letter_store.mark_as_processed(failed_event=retrying)
        Logger.base.info(
            f'📨 [DLQ] Event {retrying.id} for booking {retrying.booking_id} '
            f're-delivered via {channel}'
        )
        return 'processed'

    async def run(self, *, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
        """Ticker: first pass after the initial delay, then a fixed delay between passes."""
        with anyio.CancelScope() as scope:
            self._cancel_scope = scope
            Logger.base.info(
                f'⏰ [DLQ] Reconciler scheduled (initial delay {self.initial_delay_seconds}s, '
                f'interval {self.interval_seconds}s)'
            )
            task_status.started()

            await anyio.sleep(self.initial_delay_seconds)
            while True:
                try:
                    await self.reconcile_once()
                except Exception as e:
                    Logger.base.error(f'❌ [DLQ] Reconciliation pass crashed: {e}')
                await anyio.sleep(self.interval_seconds)

        self._cancel_scope = None
        Logger.base.info('⏰ [DLQ] Reconciler stopped')

    def stop(self) -> None:
        if self._cancel_scope is not None:
            self._cancel_scope.cancel()
