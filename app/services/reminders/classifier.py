from datetime import timedelta

from app.db.models import ReminderType

# Ascending; first threshold that covers the remaining time wins
REMINDER_THRESHOLDS = (
    (timedelta(hours=1), ReminderType.ONE_HOUR),
    (timedelta(hours=4), ReminderType.FOUR_HOURS),
    (timedelta(hours=24), ReminderType.TWENTY_FOUR_HOURS),
)

FALLBACK_REMINDER_TYPE = ReminderType.TWENTY_FOUR_HOURS


def classify_reminder(time_until_due: timedelta) -> ReminderType:
    """
    Map the time remaining until a task is due to a reminder type.

    Thresholds are inclusive:
    - <= 1 hour: ONE_HOUR
    - <= 4 hours: FOUR_HOURS
    - <= 24 hours: TWENTY_FOUR_HOURS

    Overdue tasks (negative remaining time) and tasks due more than
    24 hours out fall back to TWENTY_FOUR_HOURS.
    """
    if time_until_due < timedelta(0):
        return FALLBACK_REMINDER_TYPE

    for threshold, reminder_type in REMINDER_THRESHOLDS:
        if time_until_due <= threshold:
            return reminder_type

    return FALLBACK_REMINDER_TYPE
