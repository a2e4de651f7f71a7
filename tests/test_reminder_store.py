import uuid
from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.db.models import ReminderLog, ReminderType, TaskItem
from app.services.reminders import ReminderLogStore
from app.utils.errors import ReminderStoreError


def _count_logs(db_session: Session) -> int:
    return db_session.execute(select(func.count()).select_from(ReminderLog)).scalar()


class TestReminderLogLookup:
    """Test has_been_sent / get_record."""

    @pytest.mark.asyncio
    async def test_not_sent_before_recording(
        self, reminder_store: ReminderLogStore, make_task
    ):
        task = make_task("Write report")

        assert not await reminder_store.has_been_sent(
            task.id, ReminderType.ONE_HOUR, task.due_date
        )
        assert (
            await reminder_store.get_record(task.id, ReminderType.ONE_HOUR, task.due_date)
            is None
        )

    @pytest.mark.asyncio
    async def test_sent_after_recording(self, reminder_store: ReminderLogStore, make_task):
        task = make_task("Write report")

        record_id = await reminder_store.record(
            task.id, task.owner_user_id, task.due_date, ReminderType.ONE_HOUR, True,
            "Reminder sent successfully",
        )

        assert await reminder_store.has_been_sent(
            task.id, ReminderType.ONE_HOUR, task.due_date
        )
        stored = await reminder_store.get_record(
            task.id, ReminderType.ONE_HOUR, task.due_date
        )
        assert stored.id == record_id
        assert stored.delivery_successful is True
        assert stored.delivery_details == "Reminder sent successfully"
        assert stored.user_id == task.owner_user_id

    @pytest.mark.asyncio
    async def test_key_includes_type_and_due_date(
        self, reminder_store: ReminderLogStore, make_task
    ):
        task = make_task("Write report")
        await reminder_store.record(
            task.id, task.owner_user_id, task.due_date, ReminderType.ONE_HOUR, True
        )

        # Other reminder types for the same due date are independent
        assert not await reminder_store.has_been_sent(
            task.id, ReminderType.FOUR_HOURS, task.due_date
        )
        # A moved due date starts a fresh reminder cycle
        assert not await reminder_store.has_been_sent(
            task.id, ReminderType.ONE_HOUR, task.due_date + timedelta(minutes=15)
        )
        # Another task never shares a key
        assert not await reminder_store.has_been_sent(
            uuid.uuid4(), ReminderType.ONE_HOUR, task.due_date
        )

    @pytest.mark.asyncio
    async def test_failed_delivery_still_counts_as_sent(
        self, reminder_store: ReminderLogStore, make_task
    ):
        task = make_task("Write report")
        await reminder_store.record(
            task.id, task.owner_user_id, task.due_date, ReminderType.FOUR_HOURS, False,
            "Failed to send reminder",
        )

        assert await reminder_store.has_been_sent(
            task.id, ReminderType.FOUR_HOURS, task.due_date
        )


class TestReminderLogRecording:
    """Test get-or-create semantics of record/record_attempt."""

    @pytest.mark.asyncio
    async def test_second_record_returns_existing_id(
        self, db_session: Session, reminder_store: ReminderLogStore, make_task
    ):
        task = make_task("Write report")

        first_id, first_created = await reminder_store.record_attempt(
            task.id, task.owner_user_id, task.due_date, ReminderType.ONE_HOUR, True
        )
        second_id, second_created = await reminder_store.record_attempt(
            task.id, task.owner_user_id, task.due_date, ReminderType.ONE_HOUR, False
        )

        assert first_created is True
        assert second_created is False
        assert second_id == first_id
        assert _count_logs(db_session) == 1

        # The first writer's outcome is kept
        stored = await reminder_store.get_record(
            task.id, ReminderType.ONE_HOUR, task.due_date
        )
        assert stored.delivery_successful is True

    @pytest.mark.asyncio
    async def test_concurrent_writer_wins(
        self, db_session: Session, session_factory, make_task
    ):
        """A row inserted by another session is returned instead of raising."""
        task = make_task("Write report")

        other_session = session_factory()
        try:
            winner_id = await ReminderLogStore(other_session).record(
                task.id, task.owner_user_id, task.due_date, ReminderType.ONE_HOUR, True
            )
        finally:
            other_session.close()

        loser_id, created = await ReminderLogStore(db_session).record_attempt(
            task.id, task.owner_user_id, task.due_date, ReminderType.ONE_HOUR, True
        )

        assert created is False
        assert loser_id == winner_id
        assert _count_logs(db_session) == 1

    @pytest.mark.asyncio
    async def test_details_truncated_to_column_length(
        self, reminder_store: ReminderLogStore, make_task
    ):
        task = make_task("Write report")

        await reminder_store.record(
            task.id, task.owner_user_id, task.due_date, ReminderType.ONE_HOUR, True,
            "x" * 800,
        )

        stored = await reminder_store.get_record(
            task.id, ReminderType.ONE_HOUR, task.due_date
        )
        assert len(stored.delivery_details) == 500

    @pytest.mark.asyncio
    async def test_reminder_type_accepts_stored_value(
        self, reminder_store: ReminderLogStore, make_task
    ):
        task = make_task("Write report")

        await reminder_store.record(
            task.id, task.owner_user_id, task.due_date, "24Hours", True
        )

        assert await reminder_store.has_been_sent(
            task.id, ReminderType.TWENTY_FOUR_HOURS, task.due_date
        )

    @pytest.mark.asyncio
    async def test_database_failure_raises_store_error(
        self, db_session: Session, reminder_store: ReminderLogStore, make_task
    ):
        task: TaskItem = make_task("Write report")

        with patch.object(
            db_session,
            "commit",
            side_effect=OperationalError("INSERT", {}, Exception("database is locked")),
        ):
            with pytest.raises(ReminderStoreError):
                await reminder_store.record_attempt(
                    task.id, task.owner_user_id, task.due_date, ReminderType.ONE_HOUR, True
                )

        assert not await reminder_store.has_been_sent(
            task.id, ReminderType.ONE_HOUR, task.due_date
        )

    @pytest.mark.asyncio
    async def test_lookup_failure_raises_store_error(
        self, db_session: Session, reminder_store: ReminderLogStore, now
    ):
        with patch.object(
            db_session,
            "execute",
            side_effect=OperationalError("SELECT", {}, Exception("no such table")),
        ):
            with pytest.raises(ReminderStoreError):
                await reminder_store.has_been_sent(
                    uuid.uuid4(), ReminderType.ONE_HOUR, now
                )
