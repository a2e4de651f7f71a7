from .reminder_scheduler import ReminderScheduler

__all__ = ["ReminderScheduler"]
