from datetime import datetime, timedelta, timezone


def naive_utc_now() -> datetime:
    """Current UTC time without tzinfo; the form every timestamp column uses."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    """
    Normalise a datetime for storage and comparison.

    Naive values are taken to be UTC already; aware values are converted to
    UTC and stripped of tzinfo.
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def time_until(due_date: datetime, now: datetime) -> timedelta:
    """Signed time remaining until ``due_date``; negative once it has passed."""
    return to_naive_utc(due_date) - to_naive_utc(now)
