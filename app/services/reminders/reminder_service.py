from datetime import datetime, timedelta
from typing import Callable, List, Optional
import asyncio
import uuid

from sqlalchemy.orm import Session

from app.config.settings import settings
from app.db.models import ReminderType
from app.services.audit_service import AuditService
from app.utils.datetime_utils import naive_utc_now, time_until, to_naive_utc
from app.utils.errors import NotFoundError, ReminderStoreError
from app.utils.logging import get_logger

from .classifier import classify_reminder
from .delivery import ReminderNotifier, SimulatedReminderNotifier
from .reminder_models import PendingReminder, ReminderBatchResult, ReminderTask
from .reminder_store import ReminderLogStore
from .task_repository import TaskRepository, to_reminder_task

logger = get_logger()

DEFAULT_REMINDER_WINDOW = timedelta(hours=24)


class ReminderService:
    """
    Decides which tasks need a due-date reminder and delivers each one once.

    Every entry point (HTTP endpoint, in-process scheduler, Celery beat task)
    calls into this service. Recording always goes through
    ``ReminderLogStore.record_attempt`` so a reminder logged by one path is
    seen as sent by the others.
    """

    def __init__(
        self,
        task_repository: TaskRepository,
        reminder_store: ReminderLogStore,
        audit_service: AuditService,
        notifier: ReminderNotifier,
        clock: Callable[[], datetime] = naive_utc_now,
        default_window: timedelta = DEFAULT_REMINDER_WINDOW,
    ):
        self.task_repository = task_repository
        self.reminder_store = reminder_store
        self.audit_service = audit_service
        self.notifier = notifier
        self.clock = clock
        self.default_window = default_window

    def _now(self) -> datetime:
        return to_naive_utc(self.clock())

    async def get_tasks_due_for_reminder(
        self, window: Optional[timedelta] = None
    ) -> List[ReminderTask]:
        """Tasks due within the window, flattened with owner contact details."""
        tasks = await self.task_repository.get_tasks_due_in_window(
            self.default_window if window is None else window, self._now()
        )
        return [to_reminder_task(task) for task in tasks]

    async def get_pending_reminders(
        self, window: Optional[timedelta] = None
    ) -> List[PendingReminder]:
        """
        Classify every task due within the window and check the reminder log.

        Both already-sent and unsent reminders are returned, ordered by due date.
        """
        now = self._now()
        tasks = await self.task_repository.get_tasks_due_in_window(
            self.default_window if window is None else window, now
        )

        pending_reminders = []
        for task in tasks:
            reminder_task = to_reminder_task(task)
            time_until_due = time_until(reminder_task.due_date, now)
            reminder_type = classify_reminder(time_until_due)

            has_reminder_been_sent = await self.reminder_store.has_been_sent(
                reminder_task.id, reminder_type, reminder_task.due_date
            )

            pending_reminders.append(
                PendingReminder(
                    task_id=reminder_task.id,
                    task_title=reminder_task.title,
                    due_date=reminder_task.due_date,
                    owner_user_id=reminder_task.owner_user_id,
                    owner_email=reminder_task.owner_email,
                    owner_display_name=reminder_task.owner_display_name,
                    reminder_type=reminder_type,
                    has_reminder_been_sent=has_reminder_been_sent,
                    time_until_due=time_until_due,
                )
            )

        return pending_reminders

    async def has_reminder_been_sent(
        self, task_id: uuid.UUID, reminder_type: ReminderType, due_date: datetime
    ) -> bool:
        return await self.reminder_store.has_been_sent(task_id, reminder_type, due_date)

    async def log_reminder_sent(
        self,
        task_id: uuid.UUID,
        reminder_type: ReminderType,
        delivery_successful: bool,
        delivery_details: Optional[str] = None,
    ) -> bool:
        """
        Record a reminder attempt for the task's current due date.

        Returns False when the task no longer exists or has no due date.
        Logging a reminder that is already recorded is a no-op returning True.
        Store failures propagate as ReminderStoreError.
        """
        try:
            await self._record_reminder(
                task_id, reminder_type, delivery_successful, delivery_details
            )
            return True
        except NotFoundError as e:
            logger.warning(f"Cannot log reminder: {e.message}")
            return False

    async def _record_reminder(
        self,
        task_id: uuid.UUID,
        reminder_type: ReminderType,
        delivery_successful: bool,
        delivery_details: Optional[str],
        due_date: Optional[datetime] = None,
    ) -> uuid.UUID:
        task = await self.task_repository.get_by_id_with_owner(task_id)
        if task is None or task.due_date is None:
            raise NotFoundError(
                f"Task {task_id} not found or has no due date", "TASK_NOT_FOUND"
            )

        record_id, created = await self.reminder_store.record_attempt(
            task_id=task.id,
            user_id=task.owner_user_id,
            due_date=due_date or task.due_date,
            reminder_type=reminder_type,
            delivered=delivery_successful,
            details=delivery_details,
        )

        # Audit only the first successful attempt for the key
        if created and delivery_successful:
            await self.audit_service.reminder_sent(
                task.owner_user_id, task.id, task.title
            )

        return record_id

    async def process_pending_reminders(
        self, window: Optional[timedelta] = None
    ) -> ReminderBatchResult:
        """
        Deliver and record every reminder in the window that was not sent yet.

        Each task is handled independently: a delivery failure, a store
        failure or an unexpected error is counted and reported in ``errors``
        and the batch moves on. Cancellation is not caught.
        """
        pending_reminders = await self.get_pending_reminders(window)
        result = ReminderBatchResult(total_pending=len(pending_reminders))

        for pending in pending_reminders:
            if pending.has_reminder_been_sent:
                logger.debug(
                    f"Reminder already sent for task {pending.task_id} ({pending.reminder_type.value})"
                )
                continue

            # cancellation point between tasks
            await asyncio.sleep(0)

            try:
                outcome = await self.notifier.deliver(pending)

                await self._record_reminder(
                    pending.task_id,
                    pending.reminder_type,
                    outcome.successful,
                    outcome.details,
                    due_date=pending.due_date,
                )

                result.processed_count += 1
                result.processed_task_ids.append(pending.task_id)

                if outcome.successful:
                    result.successful_count += 1
                    logger.info(
                        f"Reminder sent successfully for task '{pending.task_title}' "
                        f"(ID: {pending.task_id}, Type: {pending.reminder_type.value})"
                    )
                else:
                    result.failed_count += 1
                    result.errors.append(
                        f"Failed to deliver reminder for task '{pending.task_title}'"
                    )
                    logger.warning(
                        f"Failed to send reminder for task '{pending.task_title}' "
                        f"(ID: {pending.task_id}, Type: {pending.reminder_type.value})"
                    )

            except (NotFoundError, ReminderStoreError) as e:
                result.failed_count += 1
                result.errors.append(
                    f"Failed to log reminder for task '{pending.task_title}'"
                )
                logger.error(
                    f"Failed to log reminder for task {pending.task_id}: {e.message}"
                )

            except Exception as e:
                result.failed_count += 1
                result.errors.append(
                    f"Error processing reminder for task '{pending.task_title}': {str(e)}"
                )
                logger.exception(
                    f"Error processing reminder for task {pending.task_id} ({pending.task_title})"
                )

        result.skipped_count = result.total_pending - result.processed_count
        return result


def create_reminder_service(
    db_session: Session,
    notifier: Optional[ReminderNotifier] = None,
    clock: Callable[[], datetime] = naive_utc_now,
) -> ReminderService:
    """Build a ReminderService bound to one database session."""
    return ReminderService(
        task_repository=TaskRepository(db_session),
        reminder_store=ReminderLogStore(db_session),
        audit_service=AuditService(db_session),
        notifier=notifier
        or SimulatedReminderNotifier(
            success_rate=settings.REMINDER_DELIVERY_SUCCESS_RATE,
            delay_ms=settings.REMINDER_DELIVERY_DELAY_MS,
        ),
        clock=clock,
        default_window=timedelta(hours=settings.REMINDER_WINDOW_HOURS),
    )
