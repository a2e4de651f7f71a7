from datetime import datetime
from typing import List
from uuid import UUID

from pydantic import Field

from app.db.models import ReminderType
from app.schemas.camel_base_model import CamelCaseBaseModel as BaseModel
from app.services.reminders import PendingReminder, ReminderBatchResult


class PendingReminderResponse(BaseModel):
    task_id: UUID = Field(..., description="Task ID")
    task_title: str = Field(..., description="Task title")
    due_date: datetime = Field(..., description="Task due date (UTC)")
    owner_user_id: UUID = Field(..., description="Task owner user ID")
    owner_email: str = Field(..., description="Task owner email")
    owner_display_name: str = Field(..., description="Task owner display name")
    reminder_type: ReminderType = Field(
        ..., description="Reminder urgency: 1Hour, 4Hours or 24Hours"
    )
    has_reminder_been_sent: bool = Field(
        ..., description="Whether this reminder was already recorded"
    )
    hours_until_due: float = Field(
        ..., description="Hours until the task is due, negative when overdue"
    )

    @classmethod
    def from_pending(cls, pending: PendingReminder) -> "PendingReminderResponse":
        return cls(
            task_id=pending.task_id,
            task_title=pending.task_title,
            due_date=pending.due_date,
            owner_user_id=pending.owner_user_id,
            owner_email=pending.owner_email,
            owner_display_name=pending.owner_display_name,
            reminder_type=pending.reminder_type,
            has_reminder_been_sent=pending.has_reminder_been_sent,
            hours_until_due=pending.hours_until_due,
        )


class ReminderProcessingResultResponse(BaseModel):
    total_pending: int = Field(..., description="Reminders found in the window")
    processed_count: int = Field(..., description="Reminder attempts recorded")
    successful_count: int = Field(..., description="Reminders delivered")
    failed_count: int = Field(..., description="Reminders that failed")
    skipped_count: int = Field(..., description="Reminders not processed this run")
    processed_task_ids: List[UUID] = Field(
        default_factory=list, description="Tasks with a recorded attempt"
    )
    errors: List[str] = Field(default_factory=list, description="Error messages")

    @classmethod
    def from_result(
        cls, result: ReminderBatchResult
    ) -> "ReminderProcessingResultResponse":
        return cls(
            total_pending=result.total_pending,
            processed_count=result.processed_count,
            successful_count=result.successful_count,
            failed_count=result.failed_count,
            skipped_count=result.skipped_count,
            processed_task_ids=list(result.processed_task_ids),
            errors=list(result.errors),
        )
