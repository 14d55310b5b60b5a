"""Shared test fixtures and configuration for the test suite."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

# Add the parent directory to the path for imports
import sys

sys.path.append(str(Path(__file__).parent.parent))

from task_tracker.config import Settings
from task_tracker.main import create_app
from task_tracker.services.task_service import TaskService
from task_tracker.stores.memory import InMemoryTaskStore
from task_tracker.stores.sqlite import SQLiteTaskStore


class FakeClock:
    """Clock that advances by a fixed step on every reading."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc), step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Create test settings writing logs and data under a temporary directory."""
    return Settings(
        log_level="DEBUG",
        log_dir=tmp_path / "logs",
        environment="test",
        store_backend="memory",
        sqlite_path=tmp_path / "tasks.sqlite3",
    )


@pytest.fixture
def memory_store() -> InMemoryTaskStore:
    """Create an empty in-memory store."""
    return InMemoryTaskStore()


@pytest.fixture
def sqlite_store(tmp_path) -> SQLiteTaskStore:
    """Create an empty SQLite store in a temporary file."""
    return SQLiteTaskStore(tmp_path / "tasks.sqlite3")


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each store backend in turn."""
    if request.param == "sqlite":
        return SQLiteTaskStore(tmp_path / "tasks.sqlite3")
    return InMemoryTaskStore()


@pytest.fixture
def clock() -> FakeClock:
    """Create a clock that ticks one second per reading."""
    return FakeClock()


@pytest.fixture
def task_service(store, clock) -> TaskService:
    """Create a task service on each store backend."""
    return TaskService(store, clock=clock)


@pytest.fixture
def client(test_settings) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sqlite_client(test_settings) -> Generator[TestClient, None, None]:
    """Create a test client backed by the SQLite store."""
    settings = test_settings.model_copy(update={"store_backend": "sqlite"})
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


# Test data fixtures
@pytest.fixture
def sample_task_data():
    """Sample task data for testing."""
    return {"userName": "Ann", "task": "Write spec"}
