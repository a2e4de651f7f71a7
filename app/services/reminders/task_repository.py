from datetime import datetime, timedelta
from typing import List, Optional
import uuid

from sqlalchemy import select, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.db.models import TaskItem, TaskStatus
from app.utils.datetime_utils import to_naive_utc
from app.utils.errors import ReminderStoreError
from app.utils.logging import get_logger

from .reminder_models import ReminderTask, UNKNOWN_OWNER_EMAIL, UNKNOWN_OWNER_NAME

logger = get_logger()


class TaskRepository:
    """
    Read-only task lookups used by reminder processing.

    Database failures roll the session back and are raised as
    ReminderStoreError, so callers never see driver messages.
    """

    def __init__(self, db_session: Session):
        self.db = db_session

    async def get_tasks_due_in_window(
        self, window: timedelta, now: datetime
    ) -> List[TaskItem]:
        """
        Tasks whose due date falls within [now, now + window].

        Completed and archived tasks are excluded. Results are ordered by due
        date, then id, so repeated calls return the same sequence.
        """
        window_start = to_naive_utc(now)
        window_end = window_start + window

        try:
            result = self.db.execute(
                select(TaskItem)
                .options(selectinload(TaskItem.owner))
                .where(
                    and_(
                        TaskItem.due_date.is_not(None),
                        TaskItem.due_date >= window_start,
                        TaskItem.due_date <= window_end,
                        TaskItem.status.not_in(TaskStatus.terminal()),
                    )
                )
                .order_by(TaskItem.due_date, TaskItem.id)
            )
            tasks = list(result.scalars().all())
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Due-window task query failed: {str(e)}")
            raise ReminderStoreError("Failed to load tasks due for reminder") from e

        logger.debug(
            f"Found {len(tasks)} tasks due between {window_start.isoformat()} and {window_end.isoformat()}"
        )
        return tasks

    async def get_by_id_with_owner(self, task_id: uuid.UUID) -> Optional[TaskItem]:
        try:
            result = self.db.execute(
                select(TaskItem)
                .options(selectinload(TaskItem.owner))
                .where(TaskItem.id == task_id)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Task lookup failed for task {task_id}: {str(e)}")
            raise ReminderStoreError(f"Failed to load task {task_id}") from e


def to_reminder_task(task: TaskItem) -> ReminderTask:
    owner = task.owner
    return ReminderTask(
        id=task.id,
        title=task.title,
        due_date=task.due_date,  # type: ignore
        owner_user_id=task.owner_user_id,
        owner_email=owner.email if owner else UNKNOWN_OWNER_EMAIL,
        owner_display_name=owner.display_name if owner else UNKNOWN_OWNER_NAME,
    )
