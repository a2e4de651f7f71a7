import uuid
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.routers.shared.reminders import get_reminder_service
from app.services.reminders import ReminderService
from app.utils.errors import ReminderStoreError


@pytest.fixture
def client(reminder_service: ReminderService):
    """Test client wired to the in-memory reminder service; lifespan is not run."""
    app.dependency_overrides[get_reminder_service] = lambda: reminder_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class TestPendingRemindersEndpoint:
    """Test GET /api/v1/reminders/pending."""

    def test_lists_pending_reminders(self, client: TestClient, make_task):
        task = make_task("Submit expenses", due_in=timedelta(minutes=30))

        response = client.get("/api/v1/reminders/pending")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Retrieved 1 pending reminders"
        assert body["data"] == [
            {
                "taskId": str(task.id),
                "taskTitle": "Submit expenses",
                "dueDate": task.due_date.isoformat(),
                "ownerUserId": str(task.owner_user_id),
                "ownerEmail": "alice@example.com",
                "ownerDisplayName": "Alice Example",
                "reminderType": "1Hour",
                "hasReminderBeenSent": False,
                "hoursUntilDue": 0.5,
            }
        ]

    def test_window_hours_narrows_window(self, client: TestClient, make_task):
        make_task("Soon", due_in=timedelta(minutes=30))
        make_task("Later", due_in=timedelta(hours=10))

        response = client.get("/api/v1/reminders/pending", params={"windowHours": 2})

        assert response.status_code == 200
        assert [item["taskTitle"] for item in response.json()["data"]] == ["Soon"]

    @pytest.mark.parametrize("window_hours", [0, 169])
    def test_rejects_out_of_range_window(self, client: TestClient, window_hours):
        response = client.get(
            "/api/v1/reminders/pending", params={"windowHours": window_hours}
        )

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["meta"]["error_code"] == "VALIDATION_ERROR"

    def test_echoes_request_id(self, client: TestClient):
        request_id = str(uuid.uuid4())

        response = client.get(
            "/api/v1/reminders/pending", headers={"X-Request-ID": request_id}
        )

        assert response.headers["X-Request-ID"] == request_id
        assert response.json()["request_id"] == request_id

    def test_store_failure_returns_server_error(self):
        class UnavailableService:
            async def get_pending_reminders(self, window=None):
                raise ReminderStoreError()

        app.dependency_overrides[get_reminder_service] = lambda: UnavailableService()
        try:
            response = TestClient(app).get("/api/v1/reminders/pending")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Reminder store unavailable"
        assert body["meta"]["error_code"] == "REMINDER_STORE_ERROR"


class TestProcessRemindersEndpoint:
    """Test POST /api/v1/reminders/process."""

    def test_processes_and_reports_counts(self, client: TestClient, make_task):
        first = make_task("One", due_in=timedelta(minutes=30))
        second = make_task("Two", due_in=timedelta(hours=3))

        response = client.post("/api/v1/reminders/process")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data == {
            "totalPending": 2,
            "processedCount": 2,
            "successfulCount": 2,
            "failedCount": 0,
            "skippedCount": 0,
            "processedTaskIds": [str(first.id), str(second.id)],
            "errors": [],
        }

    def test_repeated_calls_skip_sent_reminders(self, client: TestClient, make_task):
        make_task("One", due_in=timedelta(minutes=30))

        client.post("/api/v1/reminders/process")
        response = client.post("/api/v1/reminders/process")

        data = response.json()["data"]
        assert data["processedCount"] == 0
        assert data["skippedCount"] == 1

        pending = client.get("/api/v1/reminders/pending").json()["data"]
        assert pending[0]["hasReminderBeenSent"] is True


class TestHealthEndpoint:
    def test_health(self):
        response = TestClient(app).get("/api/v1/health/")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "healthy"
        assert data["service"] == "Task Tracker"
        assert data["reminderSchedulerEnabled"] is False
