from .cron import *

__all__ = [
    # Scheduled/Cron Tasks
    "process_pending_reminders_task",
]
