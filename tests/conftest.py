import uuid
from datetime import datetime, timedelta
from typing import Generator, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.models import Base, TaskItem, TaskStatus, User
from app.services.audit_service import AuditService
from app.services.reminders import (
    DeliveryOutcome,
    PendingReminder,
    ReminderLogStore,
    ReminderNotifier,
    ReminderService,
    TaskRepository,
)


# Test database setup
TEST_DATABASE_URL = "sqlite:///:memory:"

# Fixed "now" for every reminder calculation in the tests
FIXED_NOW = datetime(2025, 3, 10, 9, 0, 0)


class ScriptedNotifier(ReminderNotifier):
    """Notifier whose outcome is decided per task title; records every call."""

    def __init__(self, failing_titles: Optional[List[str]] = None):
        self.failing_titles = set(failing_titles or [])
        self.delivered: List[PendingReminder] = []

    async def deliver(self, reminder: PendingReminder) -> DeliveryOutcome:
        self.delivered.append(reminder)
        if reminder.task_title in self.failing_titles:
            return DeliveryOutcome(successful=False, details="Failed to send reminder")
        return DeliveryOutcome(successful=True, details="Reminder sent successfully")


@pytest.fixture
def test_engine():
    """Create test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(bind=test_engine, class_=Session, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    """Create a database session for each test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def notifier() -> ScriptedNotifier:
    return ScriptedNotifier()


@pytest.fixture
def make_notifier():
    """Factory for notifiers that fail for the given task titles."""
    return ScriptedNotifier


@pytest.fixture
def reminder_store(db_session: Session) -> ReminderLogStore:
    return ReminderLogStore(db_session)


@pytest.fixture
def reminder_service(db_session: Session, notifier: ScriptedNotifier, now: datetime):
    return ReminderService(
        task_repository=TaskRepository(db_session),
        reminder_store=ReminderLogStore(db_session),
        audit_service=AuditService(db_session),
        notifier=notifier,
        clock=lambda: now,
    )


# Test data factories
@pytest.fixture
def sample_user(db_session: Session) -> User:
    """Create a task owner."""
    user = User(
        id=uuid.uuid4(),
        email="alice@example.com",
        display_name="Alice Example",
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def make_task(db_session: Session, sample_user: User, now: datetime):
    """Factory creating a task due ``due_in`` from the fixed test clock."""

    def _make_task(
        title: str,
        due_in: Optional[timedelta] = timedelta(minutes=30),
        status: TaskStatus = TaskStatus.NEW,
        owner: Optional[User] = None,
    ) -> TaskItem:
        task = TaskItem(
            id=uuid.uuid4(),
            title=title,
            description=f"{title} description",
            status=status,
            due_date=now + due_in if due_in is not None else None,
            owner_user_id=(owner or sample_user).id,
        )
        db_session.add(task)
        db_session.commit()
        return task

    return _make_task
