from typing import List, Optional
import uuid

from sqlalchemy import select, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models import AuditAction, AuditEvent
from app.utils.logging import get_logger

logger = get_logger()


class AuditService:
    """Records user-visible actions to the audit trail"""

    def __init__(self, db_session: Session):
        self.db = db_session

    async def record(
        self,
        action: AuditAction,
        user_id: uuid.UUID,
        entity_id: Optional[uuid.UUID],
        entity_type: str,
        details: str,
    ) -> Optional[uuid.UUID]:
        """
        Write an audit event.

        Audit writes are a side effect of the caller's operation: a failure is
        logged and None is returned, the caller's outcome is unchanged.
        """
        event = AuditEvent(
            id=uuid.uuid4(),
            action=action,
            user_id=user_id,
            entity_id=entity_id,
            entity_type=entity_type,
            details=details,
        )
        try:
            self.db.add(event)
            self.db.commit()
            return event.id
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(
                f"Failed to record audit event {action.value} for {entity_type} {entity_id}: {str(e)}"
            )
            return None

    async def reminder_sent(
        self, user_id: uuid.UUID, task_id: uuid.UUID, task_title: str
    ) -> Optional[uuid.UUID]:
        return await self.record(
            action=AuditAction.REMINDER_SENT,
            user_id=user_id,
            entity_id=task_id,
            entity_type="Task",
            details=f"Sent reminder for task: {task_title}",
        )

    async def get_events_for_entity(
        self, entity_type: str, entity_id: uuid.UUID
    ) -> List[AuditEvent]:
        result = self.db.execute(
            select(AuditEvent)
            .where(
                AuditEvent.entity_type == entity_type,
                AuditEvent.entity_id == entity_id,
            )
            .order_by(desc(AuditEvent.created_at))
        )
        return list(result.scalars().all())
