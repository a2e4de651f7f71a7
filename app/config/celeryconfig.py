from datetime import timedelta

from .settings import settings

REMINDER_TASK = "app.tasks.cron.reminder_processor.process_pending_reminders_task"
REMINDER_INTERVAL = timedelta(minutes=settings.REMINDER_INTERVAL_MINUTES)

# Broker and results share one Redis database
broker_url = settings.redis_url
result_backend = settings.redis_url
result_expires = 3600

include = ["app.tasks"]

# Reminder windows and due dates are computed in UTC
timezone = "UTC"
enable_utc = True

task_serializer = "json"
result_serializer = "json"
accept_content = ["json"]

task_default_queue = "tasktracker"
task_routes = {REMINDER_TASK: {"queue": "tasktracker"}}
task_track_started = True
task_acks_late = True
task_reject_on_worker_lost = True

# A batch must finish before the next beat tick picks up the same window
task_soft_time_limit = int(REMINDER_INTERVAL.total_seconds() * 0.8)
task_time_limit = int(REMINDER_INTERVAL.total_seconds())

worker_prefetch_multiplier = 1
worker_max_tasks_per_child = 1000

beat_schedule = {
    "reminder-processor": {
        "task": REMINDER_TASK,
        "schedule": REMINDER_INTERVAL,
        "args": ("reminder_processor_cron",),
        # A tick that waited longer than one interval is superseded by the next
        "options": {"expires": REMINDER_INTERVAL.total_seconds()},
    },
}
beat_schedule_filename = "tmp/celerybeat-schedule"
