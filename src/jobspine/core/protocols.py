"""
Canonical protocol definitions for jobspine.

The lifecycle controller talks to everything outside itself through the
contracts below. Any object matching the shape works, which is how the
tests swap in failing stores and fake executors.

Architecture:
    ::

        protocols.py
        ├── Connection          — sync DB-API connection (sqlite3, psycopg2)
        ├── JobStore            — record-store operations on job rows
        ├── TemporalExpression  — next occurrence after an instant
        ├── Executor            — runs a service with a resolved context
        └── IdentityResolver    — looks up a run-as identity

    Reference implementations:
        JobStore            → jobspine.repositories.jobs.JobRepository
        TemporalExpression  → jobspine.scheduling.expressions
        Executor            → jobspine.execution.registry.RegistryExecutor
        IdentityResolver    → jobspine.execution.context.MappingIdentityResolver

Guardrails:
    ❌ DON'T: Import sqlite3 in the controller or scheduler
    ✅ DO: Depend on JobStore and let the repository own the SQL
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from jobspine.core.models import JobRow, JobStatus
    from jobspine.execution.result import ExecutionResult

# ---------------------------------------------------------------------------
# Database Connection Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class Connection(Protocol):
    """
    Minimal synchronous connection interface for database operations.

    ``sqlite3.Connection`` satisfies it natively; PostgreSQL drivers
    satisfy it through their DB-API connection objects.
    """

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute SQL statement with optional parameters."""
        ...

    def executemany(self, sql: str, params: list[tuple]) -> Any:
        """Execute SQL statement for multiple parameter sets."""
        ...

    def commit(self) -> None:
        """Commit current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction."""
        ...


# ---------------------------------------------------------------------------
# Record store
# ---------------------------------------------------------------------------


@runtime_checkable
class JobStore(Protocol):
    """
    Record-store operations the lifecycle controller depends on.

    The store guarantees single-row read-after-write consistency and
    nothing more: no multi-row transactions. ``persist`` performs a
    versioned update and raises ``StaleRowError`` when the stored version
    no longer matches ``row.version``. Every failure surfaces as a
    ``StoreError`` (or ``InvalidJob`` for a row that vanished).
    """

    def fetch_by_id(self, job_id: str) -> JobRow | None:
        """Return the row, or None when it does not exist."""
        ...

    def refresh(self, row: JobRow) -> JobRow:
        """Re-read the latest stored state of ``row``."""
        ...

    def persist(self, row: JobRow) -> JobRow:
        """Store ``row`` and return it with its new version."""
        ...

    def create_with_generated_id(self, row: JobRow) -> JobRow:
        """Insert ``row`` under a freshly generated ``job_id``."""
        ...

    def count_matching(self, parent_job_id: str, status_id: JobStatus) -> int:
        """Count rows in a lineage with the given status."""
        ...


# ---------------------------------------------------------------------------
# Temporal evaluation
# ---------------------------------------------------------------------------


@runtime_checkable
class TemporalExpression(Protocol):
    """A schedule that can name its next occurrence strictly after an instant."""

    def next(self, after: datetime) -> datetime | None:
        """Next matching instant after ``after``, or None when exhausted."""
        ...


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


@runtime_checkable
class Executor(Protocol):
    """Runs the business logic behind a job."""

    def execute(self, service_name: str, context: Mapping[str, Any]) -> ExecutionResult:
        """Run ``service_name`` with ``context``.

        Raising is how an executor reports a failed run; an
        ``ExecutionResult`` with an error status is a completed run that
        reported an error.
        """
        ...


@runtime_checkable
class IdentityResolver(Protocol):
    """Looks up the identity a job should run as."""

    def resolve(self, user_id: str, context: Mapping[str, Any]) -> Any:
        """Return the identity object, or raise ``ContextResolutionError``."""
        ...


__all__ = [
    "Connection",
    "JobStore",
    "TemporalExpression",
    "Executor",
    "IdentityResolver",
]
