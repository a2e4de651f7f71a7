from .reminder_processor import process_pending_reminders_task

__all__ = ["process_pending_reminders_task"]
