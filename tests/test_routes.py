"""Tests for the task HTTP routes."""

import inspect
import logging
from datetime import datetime
from unittest.mock import MagicMock

import pytest
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from task_tracker.errors import StoreUnavailable
from task_tracker.main import create_app
from task_tracker.routes import tasks


def parse_ts(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def create(client, user_name="Ann", task="Write spec"):
    response = client.post("/tasks/", json={"userName": user_name, "task": task})
    assert response.status_code == 201
    return response.json()["task"]


class TestAppRoutes:
    """Test application-level endpoints."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["endpoints"]["tasks"] == "/tasks"

    def test_health_check(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["store_backend"] == "memory"
        assert parse_ts(data["timestamp"]).tzinfo is not None

    def test_health_check_sqlite(self, sqlite_client):
        assert sqlite_client.get("/healthz").json()["store_backend"] == "sqlite"

    def test_startup_logs_service_once(self, test_settings, caplog):
        """Test the service announces its store exactly once on startup."""
        caplog.set_level(logging.INFO, logger="task_tracker")

        with TestClient(create_app(test_settings)):
            pass

        messages = [record.getMessage() for record in caplog.records]
        assert [m for m in messages if "Task service initialized" in m] == [
            "Task service initialized with memory store"
        ]

    @pytest.mark.parametrize(
        "route", [route for route in tasks.router.routes if isinstance(route, APIRoute)], ids=lambda route: route.name
    )
    def test_task_routes_are_sync(self, route):
        """Test task handlers are plain functions so FastAPI runs them in its threadpool."""
        assert not inspect.iscoroutinefunction(route.endpoint)


class TestTaskRoutes:
    """Test task API routes."""

    def test_create_task_success(self, client, sample_task_data):
        """Test successful task creation via API."""
        response = client.post("/tasks/", json=sample_task_data)

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Task created successfully"
        assert data["task"]["userName"] == "Ann"
        assert data["task"]["task"] == "Write spec"
        assert data["task"]["status"] == "active"
        assert data["task"]["createdAt"] == data["task"]["updatedAt"]
        assert data["task"]["id"]

    def test_create_task_missing_field(self, client):
        """Test task creation with a blank field."""
        response = client.post("/tasks/", json={"userName": "   ", "task": "Write spec"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "MissingField"
        assert data["fields"] == ["userName"]

    def test_create_task_empty_body(self, client):
        response = client.post("/tasks/", json={})

        assert response.status_code == 400
        assert response.json()["fields"] == ["userName", "task"]

    @pytest.mark.parametrize(
        "body, fields",
        [
            ({"userName": 5, "task": "Write spec"}, ["userName"]),
            ({"userName": "Ann", "task": ["Write spec"]}, ["task"]),
            ({"userName": {"name": "Ann"}, "task": True}, ["userName", "task"]),
        ],
    )
    def test_create_task_non_string_fields(self, client, body, fields):
        """Test non-string values count as missing rather than failing validation."""
        response = client.post("/tasks/", json=body)

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "MissingField"
        assert data["fields"] == fields

    def test_create_task_too_long(self, client):
        response = client.post("/tasks/", json={"userName": "a" * 101, "task": "Write spec"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "FieldTooLong"
        assert data["field"] == "userName"

    def test_create_task_invalid_json(self, client):
        """Test a body that is not JSON is a request validation error."""
        response = client.post("/tasks/", content="not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 422
        assert "validation error" in response.json()["error"].lower()

    def test_get_task(self, client):
        task = create(client)

        response = client.get(f"/tasks/{task['id']}")

        assert response.status_code == 200
        assert response.json() == task

    def test_get_task_not_found(self, client):
        response = client.get("/tasks/missing-id")

        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    def test_update_task_status(self, client):
        task = create(client)

        response = client.put(f"/tasks/{task['id']}", json={"status": "inactive"})

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Task status updated successfully"
        assert data["task"]["status"] == "inactive"
        assert parse_ts(data["task"]["updatedAt"]) > parse_ts(task["updatedAt"])
        assert data["task"]["createdAt"] == task["createdAt"]

    @pytest.mark.parametrize(
        "body",
        [{"status": "done"}, {}, {"status": ""}, {"status": 1}, {"status": True}, {"status": ["active"]}],
    )
    def test_update_task_invalid_status(self, client, body):
        task = create(client)

        response = client.put(f"/tasks/{task['id']}", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidStatus"

    def test_update_task_not_found(self, client):
        response = client.put("/tasks/missing-id", json={"status": "active"})

        assert response.status_code == 404

    def test_delete_task(self, client):
        """Test deleting echoes the task, then a second delete is 404."""
        task = create(client)

        response = client.delete(f"/tasks/{task['id']}")

        assert response.status_code == 200
        assert response.json()["message"] == "Task deleted successfully"
        assert response.json()["deletedTask"] == task

        assert client.delete(f"/tasks/{task['id']}").status_code == 404

    def test_list_tasks(self, client):
        create(client, task="One")
        create(client, task="Two")

        response = client.get("/tasks/")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert [item["task"] for item in data["items"]] == ["Two", "One"]
        assert data["hasMore"] is False
        assert data["nextCursor"] is None
        assert data["appliedFilters"] == {"status": None, "userName": None}

    def test_list_tasks_with_filters(self, client):
        first = create(client, user_name="Ann")
        create(client, user_name="Ann")
        create(client, user_name="Bob")
        client.put(f"/tasks/{first['id']}", json={"status": "inactive"})

        data = client.get("/tasks/", params={"status": "active", "userName": "Ann"}).json()

        assert data["count"] == 1
        assert data["appliedFilters"] == {"status": "active", "userName": "Ann"}

    def test_list_tasks_invalid_status_ignored(self, client):
        create(client)

        data = client.get("/tasks/", params={"status": "bogus"}).json()

        assert data["count"] == 1
        assert data["appliedFilters"]["status"] is None

    def test_list_tasks_pagination(self, sqlite_client):
        """Test paging through the SQLite backend over HTTP."""
        ids = {create(sqlite_client, task=f"Task {i}")["id"] for i in range(5)}

        first = sqlite_client.get("/tasks/", params={"limit": 3}).json()
        assert first["count"] == 3
        assert first["hasMore"] is True
        assert first["nextCursor"]

        second = sqlite_client.get("/tasks/", params={"limit": 3, "cursor": first["nextCursor"]}).json()
        assert second["count"] == 2
        assert second["hasMore"] is False

        seen = [item["id"] for item in first["items"] + second["items"]]
        assert sorted(seen) == sorted(ids)

    def test_list_tasks_invalid_limit(self, client):
        response = client.get("/tasks/", params={"limit": 0})

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidLimit"

    def test_list_tasks_invalid_cursor(self, client):
        response = client.get("/tasks/", params={"cursor": "garbage"})

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidCursor"

    def test_store_unavailable(self, client):
        """Test store failures map to 503 without backend details."""
        broken = MagicMock()
        broken.list_tasks.side_effect = StoreUnavailable("list")
        client.app.state.task_service = broken

        response = client.get("/tasks/")

        assert response.status_code == 503
        data = response.json()
        assert data["error"] == "StoreUnavailable"
        assert data["message"] == "Task store unavailable during list"

    def test_unexpected_error(self, client):
        """Test unexpected errors become a generic 500."""
        broken = MagicMock()
        broken.get_task.side_effect = RuntimeError("boom")
        client.app.state.task_service = broken

        response = client.get("/tasks/some-id")

        assert response.status_code == 500
        assert response.json()["error"] == "Internal server error while retrieving task"


class TestScenario:
    """End-to-end scenario over HTTP."""

    def test_create_deactivate_and_list(self, client):
        task = create(client, user_name="Ann", task="Write spec")
        assert task["status"] == "active"

        updated = client.put(f"/tasks/{task['id']}", json={"status": "inactive"}).json()["task"]
        assert updated["status"] == "inactive"
        assert parse_ts(updated["updatedAt"]) > parse_ts(task["updatedAt"])

        inactive = client.get("/tasks/", params={"status": "inactive"}).json()
        active = client.get("/tasks/", params={"status": "active"}).json()

        assert task["id"] in [item["id"] for item in inactive["items"]]
        assert task["id"] not in [item["id"] for item in active["items"]]
