from .classifier import classify_reminder
from .delivery import ReminderNotifier, SimulatedReminderNotifier
from .reminder_models import (
    DeliveryOutcome,
    PendingReminder,
    ReminderBatchResult,
    ReminderTask,
)
from .reminder_service import ReminderService, create_reminder_service
from .reminder_store import ReminderLogStore
from .task_repository import TaskRepository

__all__ = [
    "classify_reminder",
    "ReminderNotifier",
    "SimulatedReminderNotifier",
    "DeliveryOutcome",
    "PendingReminder",
    "ReminderBatchResult",
    "ReminderTask",
    "ReminderService",
    "create_reminder_service",
    "ReminderLogStore",
    "TaskRepository",
]
