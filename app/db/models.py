from typing import List, Optional
from datetime import datetime
import uuid
from sqlalchemy import (
    String,
    Boolean,
    Text,
    ForeignKey,
    Enum,
    Index,
    UniqueConstraint,
    DateTime,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
import enum

from app.utils.datetime_utils import naive_utc_now


class Base(DeclarativeBase):
    pass


# Enums
class TaskStatus(enum.Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ARCHIVED = "archived"

    @classmethod
    def terminal(cls) -> tuple:
        """Statuses that never receive reminders."""
        return (cls.COMPLETED, cls.ARCHIVED)


class TaskPriority(enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AuditAction(enum.Enum):
    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_DELETED = "task_deleted"
    TASK_COMPLETED = "task_completed"
    ATTACHMENT_ADDED = "attachment_added"
    ATTACHMENT_REMOVED = "attachment_removed"
    REMINDER_SENT = "reminder_sent"
    USER_LOGIN = "user_login"
    USER_PROFILE_UPDATED = "user_profile_updated"
    USER_CREATED = "user_created"


class ReminderType(str, enum.Enum):
    """
    Reminder urgency tier derived from the time remaining until a task is due.

    Values are the strings persisted in ``reminder_logs.reminder_type``.
    Comparison follows urgency, not string order:
    ONE_HOUR < FOUR_HOURS < TWENTY_FOUR_HOURS.
    """

    ONE_HOUR = "1Hour"
    FOUR_HOURS = "4Hours"
    TWENTY_FOUR_HOURS = "24Hours"

    @property
    def threshold_hours(self) -> int:
        return _REMINDER_THRESHOLD_HOURS[self]

    def __lt__(self, other):
        if not isinstance(other, ReminderType):
            return NotImplemented
        return self.threshold_hours < other.threshold_hours

    def __le__(self, other):
        if not isinstance(other, ReminderType):
            return NotImplemented
        return self.threshold_hours <= other.threshold_hours

    def __gt__(self, other):
        if not isinstance(other, ReminderType):
            return NotImplemented
        return self.threshold_hours > other.threshold_hours

    def __ge__(self, other):
        if not isinstance(other, ReminderType):
            return NotImplemented
        return self.threshold_hours >= other.threshold_hours


_REMINDER_THRESHOLD_HOURS = {
    ReminderType.ONE_HOUR: 1,
    ReminderType.FOUR_HOURS: 4,
    ReminderType.TWENTY_FOUR_HOURS: 24,
}


def _enum_values(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


# Base model with common audit fields
class AuditMixin:
    """Mixin for common audit fields"""

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=naive_utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=naive_utc_now, onupdate=naive_utc_now
    )


# Models
class User(Base, AuditMixin):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(
        String(320), unique=True, nullable=False
    )  # RFC 5321 max length
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Relationships
    tasks: Mapped[List["TaskItem"]] = relationship(back_populates="owner")


class TaskItem(Base, AuditMixin):
    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    status: Mapped[TaskStatus] = mapped_column(
        Enum(TaskStatus), default=TaskStatus.NEW, nullable=False
    )
    priority: Mapped[TaskPriority] = mapped_column(
        Enum(TaskPriority), default=TaskPriority.MEDIUM, nullable=False
    )
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    owner_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # Relationships
    owner: Mapped[Optional["User"]] = relationship(back_populates="tasks")
    reminder_logs: Mapped[List["ReminderLog"]] = relationship(
        back_populates="task", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_tasks_due_date_status", "due_date", "status"),
        Index("idx_tasks_owner", "owner_user_id"),
    )


class ReminderLog(Base):
    """One row per attempted reminder; (task, type, due date) is the idempotency key"""

    __tablename__ = "reminder_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    task_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    reminder_sent_at: Mapped[datetime] = mapped_column(
        DateTime, default=naive_utc_now, nullable=False
    )
    task_due_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    reminder_type: Mapped[ReminderType] = mapped_column(
        Enum(
            ReminderType,
            native_enum=False,
            length=50,
            values_callable=_enum_values,
        ),
        nullable=False,
    )
    delivery_successful: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    delivery_details: Mapped[Optional[str]] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=naive_utc_now, nullable=False
    )

    # Relationships
    task: Mapped["TaskItem"] = relationship(back_populates="reminder_logs")

    # Constraints
    __table_args__ = (
        UniqueConstraint(
            "task_id",
            "reminder_type",
            "task_due_date",
            name="uq_reminder_logs_task_type_due",
        ),
        Index("idx_reminder_logs_task", "task_id"),
        Index("idx_reminder_logs_user", "user_id"),
        Index("idx_reminder_logs_sent_at", "reminder_sent_at"),
    )


class AuditEvent(Base):
    __tablename__ = "audit_events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    action: Mapped[AuditAction] = mapped_column(Enum(AuditAction), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    entity_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    entity_type: Mapped[str] = mapped_column(String(100), nullable=False)
    details: Mapped[str] = mapped_column(Text, default="", nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=naive_utc_now, nullable=False
    )

    __table_args__ = (
        Index("idx_audit_user_created", "user_id", "created_at"),
        Index("idx_audit_entity", "entity_type", "entity_id"),
    )
