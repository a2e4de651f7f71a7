from contextlib import AbstractContextManager
from datetime import timedelta
from typing import Callable
import asyncio
import time
import uuid

from app.services.reminders import ReminderBatchResult, ReminderService
from app.utils.context import set_request_id
from app.utils.logging import get_logger

logger = get_logger()

ServiceFactory = Callable[[], AbstractContextManager[ReminderService]]


class ReminderScheduler:
    """
    Background loop that processes pending reminders on a fixed interval.

    Each run gets a fresh ReminderService (and database session) from
    ``service_factory``. A failing run is logged and the next run still
    happens after the normal delay. ``stop()`` aborts the wait between runs
    and lets a batch already in progress finish. Cancelling the task running
    ``run()`` aborts immediately and CancelledError propagates to the caller.
    """

    def __init__(
        self,
        service_factory: ServiceFactory,
        interval: timedelta = timedelta(minutes=5),
        window: timedelta = timedelta(hours=24),
    ):
        self.service_factory = service_factory
        self.interval = interval
        self.window = window
        self._stop_event = asyncio.Event()
        self.runs_completed = 0

        logger.info(
            f"Reminder scheduler configured with {interval.total_seconds() / 60:g} minute intervals "
            f"and {window.total_seconds() / 3600:g} hour window"
        )

    @property
    def is_stopping(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        logger.info("Reminder scheduler is stopping...")
        self._stop_event.set()

    async def run(self) -> None:
        logger.info("Reminder scheduler started")
        try:
            while not self._stop_event.is_set():
                try:
                    await self.run_once()
                except Exception:
                    logger.exception("Error occurred while processing reminders")

                if await self._wait_for_next_tick():
                    break
        except asyncio.CancelledError:
            logger.info("Reminder scheduler cancelled")
            raise
        finally:
            logger.info("Reminder scheduler stopped")

    async def _wait_for_next_tick(self) -> bool:
        """Sleep for one interval; True when a stop was requested meanwhile."""
        try:
            await asyncio.wait_for(
                self._stop_event.wait(), timeout=self.interval.total_seconds()
            )
            return True
        except asyncio.TimeoutError:
            return False

    async def run_once(self) -> ReminderBatchResult:
        request_id = f"reminder-scheduler-{uuid.uuid4()}"
        set_request_id(request_id)
        run_logger = logger.bind(request_id=request_id)

        run_logger.info("Starting reminder processing run")
        started = time.perf_counter()

        try:
            with self.service_factory() as reminder_service:
                result = await reminder_service.process_pending_reminders(self.window)
        except Exception:
            elapsed_ms = (time.perf_counter() - started) * 1000
            run_logger.error(
                f"Fatal error during reminder processing run (elapsed: {elapsed_ms:.0f}ms)"
            )
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        self.runs_completed += 1
        run_logger.info(
            f"Reminder processing completed in {elapsed_ms:.0f}ms. "
            f"Pending: {result.total_pending}, Processed: {result.processed_count}, "
            f"Succeeded: {result.successful_count}, Failed: {result.failed_count}, "
            f"Skipped: {result.skipped_count}"
        )
        return result
