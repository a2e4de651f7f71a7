from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List
import uuid

from app.db.models import ReminderType

UNKNOWN_OWNER_EMAIL = "unknown@example.com"
UNKNOWN_OWNER_NAME = "Unknown"


@dataclass(frozen=True, slots=True)
class ReminderTask:
    """Task inside the reminder window, flattened with its owner"""

    id: uuid.UUID
    title: str
    due_date: datetime
    owner_user_id: uuid.UUID
    owner_email: str = UNKNOWN_OWNER_EMAIL
    owner_display_name: str = UNKNOWN_OWNER_NAME


@dataclass(frozen=True, slots=True)
class PendingReminder:
    """A task due soon, classified and checked against the reminder log"""

    task_id: uuid.UUID
    task_title: str
    due_date: datetime
    owner_user_id: uuid.UUID
    owner_email: str
    owner_display_name: str
    reminder_type: ReminderType
    has_reminder_been_sent: bool
    time_until_due: timedelta

    @property
    def hours_until_due(self) -> float:
        return self.time_until_due / timedelta(hours=1)


@dataclass(slots=True)
class ReminderBatchResult:
    """Counters and errors from one processing pass"""

    total_pending: int = 0
    processed_count: int = 0
    successful_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    processed_task_ids: List[uuid.UUID] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "total_pending": self.total_pending,
            "processed_count": self.processed_count,
            "successful_count": self.successful_count,
            "failed_count": self.failed_count,
            "skipped_count": self.skipped_count,
            "processed_task_ids": [str(task_id) for task_id in self.processed_task_ids],
            "errors": list(self.errors),
        }


@dataclass(frozen=True, slots=True)
class DeliveryOutcome:
    successful: bool
    details: str
