from datetime import datetime
from typing import Optional, Tuple
import uuid

from sqlalchemy import select, exists, and_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models import ReminderLog, ReminderType
from app.utils.datetime_utils import to_naive_utc, naive_utc_now
from app.utils.errors import ReminderStoreError
from app.utils.logging import get_logger

logger = get_logger()

DELIVERY_DETAILS_MAX_LENGTH = 500


class ReminderLogStore:
    """
    Persistence for reminder attempts, keyed by (task_id, reminder_type, due_date).

    The unique constraint on ``reminder_logs`` is the only guard against two
    processing runs recording the same reminder. ``record`` relies on it:
    the loser of an insert race rolls back, re-reads the winner's row and
    returns that id instead of raising.

    Any other database failure is raised as ReminderStoreError.
    """

    def __init__(self, db_session: Session):
        self.db = db_session

    def _key_clause(
        self, task_id: uuid.UUID, reminder_type: ReminderType, due_date: datetime
    ):
        return and_(
            ReminderLog.task_id == task_id,
            ReminderLog.reminder_type == ReminderType(reminder_type),
            ReminderLog.task_due_date == to_naive_utc(due_date),
        )

    async def has_been_sent(
        self, task_id: uuid.UUID, reminder_type: ReminderType, due_date: datetime
    ) -> bool:
        try:
            result = self.db.execute(
                select(exists().where(self._key_clause(task_id, reminder_type, due_date)))
            )
            return bool(result.scalar())
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Reminder lookup failed for task {task_id}: {str(e)}")
            raise ReminderStoreError(f"Failed to check reminder for task {task_id}") from e

    async def get_record(
        self, task_id: uuid.UUID, reminder_type: ReminderType, due_date: datetime
    ) -> Optional[ReminderLog]:
        try:
            result = self.db.execute(
                select(ReminderLog).where(
                    self._key_clause(task_id, reminder_type, due_date)
                )
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Reminder lookup failed for task {task_id}: {str(e)}")
            raise ReminderStoreError(f"Failed to read reminder for task {task_id}") from e

    async def record(
        self,
        task_id: uuid.UUID,
        user_id: uuid.UUID,
        due_date: datetime,
        reminder_type: ReminderType,
        delivered: bool,
        details: Optional[str] = None,
    ) -> uuid.UUID:
        """Get-or-create the reminder record for the key and return its id."""
        record_id, _ = await self.record_attempt(
            task_id, user_id, due_date, reminder_type, delivered, details
        )
        return record_id

    async def record_attempt(
        self,
        task_id: uuid.UUID,
        user_id: uuid.UUID,
        due_date: datetime,
        reminder_type: ReminderType,
        delivered: bool,
        details: Optional[str] = None,
    ) -> Tuple[uuid.UUID, bool]:
        """
        Insert a reminder record, or return the existing one for the same key.

        Returns:
            Tuple of (record id, created) where created is False when another
            writer already holds the key.
        """
        sent_at = naive_utc_now()
        reminder_log = ReminderLog(
            id=uuid.uuid4(),
            task_id=task_id,
            user_id=user_id,
            task_due_date=to_naive_utc(due_date),
            reminder_type=ReminderType(reminder_type),
            reminder_sent_at=sent_at,
            delivery_successful=delivered,
            delivery_details=details[:DELIVERY_DETAILS_MAX_LENGTH] if details else None,
            created_at=sent_at,
        )

        try:
            self.db.add(reminder_log)
            self.db.commit()
            return reminder_log.id, True

        except IntegrityError:
            self.db.rollback()
            logger.info(
                f"Reminder already recorded for task {task_id} ({ReminderType(reminder_type).value}), reusing existing record"
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to record reminder for task {task_id}: {str(e)}")
            raise ReminderStoreError(
                f"Failed to record reminder for task {task_id}"
            ) from e

        existing = await self.get_record(task_id, reminder_type, due_date)
        if existing is None:
            # Constraint fired but no row matches the key: not an idempotency conflict
            raise ReminderStoreError(
                f"Failed to record reminder for task {task_id}: integrity violation"
            )
        return existing.id, False

