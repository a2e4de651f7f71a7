from datetime import timedelta
import asyncio
import time

from app.celery import celery
from app.config.settings import settings
from app.db.session import get_sync_session
from app.services.reminders import create_reminder_service
from app.utils.context import set_request_id
from app.utils.logging import get_logger


@celery.task(bind=True, max_retries=3, default_retry_delay=60)
def process_pending_reminders_task(self, request_id: str):
    """
    Celery beat task that processes pending due-date reminders.

    Runs every REMINDER_INTERVAL_MINUTES to:
    1. Find tasks due within REMINDER_WINDOW_HOURS that are not completed/archived
    2. Classify each into a 1Hour / 4Hours / 24Hours reminder
    3. Deliver and record reminders not yet sent for the task's current due date

    Per-task failures are reported in the result, never raised.

    Args:
        request_id: Request ID for tracking purposes
    """

    return asyncio.run(_async_process_pending_reminders(request_id))


async def _async_process_pending_reminders(request_id: str):
    set_request_id(request_id)
    logger = get_logger().bind(request_id=request_id)
    started = time.perf_counter()

    for db_session in get_sync_session():
        try:
            reminder_service = create_reminder_service(db_session)
            result = await reminder_service.process_pending_reminders(
                timedelta(hours=settings.REMINDER_WINDOW_HOURS)
            )

            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"Reminder processor task completed in {elapsed_ms:.0f}ms. "
                f"Processed: {result.processed_count}, Succeeded: {result.successful_count}, "
                f"Failed: {result.failed_count}, Skipped: {result.skipped_count}"
            )

            return {"success": True, **result.as_dict(), "request_id": request_id}

        except Exception as e:
            logger.error(f"Reminder processor task exception: {str(e)}")

            return {"success": False, "error": str(e), "request_id": request_id}
