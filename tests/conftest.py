"""
Shared pytest fixtures for jobspine tests.

This module provides:
- An in-memory SQLite job store with the packaged schema applied
- Repository fixtures over that store
- A frozen, advanceable clock
- Row and controller factories
- Registry / settings cleanup for test isolation
"""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from jobspine.core.models import JobRow, JobStatus
from jobspine.core.schema_loader import create_test_db
from jobspine.core.settings import reset_settings
from jobspine.execution import (
    HandlerRegistry,
    JobLifecycleController,
    MappingIdentityResolver,
    RegistryExecutor,
    RetryPolicy,
    reset_default_registry,
)
from jobspine.repositories import JobRepository, RecurrenceRepository, RuntimeDataRepository

INSTANCE_ID = "worker-1"

# A Monday, 09:00 UTC
NOW = datetime(2025, 1, 6, 9, 0, tzinfo=UTC)


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests under cli/ and test_runner as integration, everything else unit."""
    for item in items:
        test_path = Path(item.path).relative_to(Path(__file__).parent)
        markers = {mark.name for mark in item.iter_markers()}
        if markers.intersection({"unit", "integration"}):
            continue
        if test_path.parts[0] == "cli" or test_path.name == "test_runner.py":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_globals(monkeypatch):
    """Fresh settings and handler registry per test."""
    for name in ("JOBSPINE_INSTANCE_ID", "JOBSPINE_FAILED_RETRY_MINUTES", "JOBSPINE_DATABASE"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    reset_default_registry()
    yield
    reset_settings()
    reset_default_registry()


# =============================================================================
# Store
# =============================================================================


@pytest.fixture
def conn():
    """In-memory SQLite database with the job schema."""
    connection = create_test_db()
    yield connection
    connection.close()


@pytest.fixture
def jobs(conn):
    return JobRepository(conn)


@pytest.fixture
def runtime_data(conn):
    return RuntimeDataRepository(conn)


@pytest.fixture
def recurrences(conn):
    return RecurrenceRepository(conn)


# =============================================================================
# Clock
# =============================================================================


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FrozenClock(NOW)


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_job(jobs):
    """Insert a job row; defaults describe a due, pending, owned row."""

    def _make(**overrides) -> JobRow:
        values = {
            "job_name": "nightly report",
            "service_name": "send_report",
            "run_time": NOW,
            "max_retry": 3,
            "current_retry_count": 0,
            "run_by_instance_id": INSTANCE_ID,
            "status_id": JobStatus.PENDING,
        }
        values.update(overrides)
        return jobs.create(JobRow(**values))

    return _make


@pytest.fixture
def identities():
    return MappingIdentityResolver({"admin": {"locale": "en_US"}})


@pytest.fixture
def make_controller(conn, clock, identities):
    """Build a controller over the test store with the frozen clock."""

    def _make(job_id: str, **kwargs) -> JobLifecycleController:
        kwargs.setdefault("instance_id", INSTANCE_ID)
        kwargs.setdefault("retry_policy", RetryPolicy(failed_retry_minutes=3))
        kwargs.setdefault("clock", clock)
        return JobLifecycleController.from_connection(job_id, conn, identities=identities, **kwargs)

    return _make


@pytest.fixture
def registry():
    """Handler registry with a succeeding and a failing service."""
    reg = HandlerRegistry()
    reg.register("send_report", lambda context: {"message": "report sent", "to": context.get("to")})
    reg.register("explode", _explode)
    return reg


@pytest.fixture
def executor(registry):
    return RegistryExecutor(registry)


def _explode(context):
    raise RuntimeError("boom")
