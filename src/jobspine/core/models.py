"""Job table models (01_jobs.sql).

Typed dataclass representations of the rows the lifecycle controller
reads and writes: job rows, stored runtime payloads, temporal
expressions and legacy recurrence descriptors.

Job status graph::

    PENDING  → RUNNING
    RUNNING  → FINISHED | FAILED
    FINISHED → (terminal)
    FAILED   → (terminal)

A failed job is never moved back to PENDING; a retry is a new row.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

# Max stored length of ``jobs.job_result``.
JOB_RESULT_MAX_LENGTH = 255

UNLIMITED = -1


class InvalidTransitionError(ValueError):
    """Raised when an illegal job status transition is attempted."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Invalid JobStatus transition: {current} → {target}")


class JobStatus(str, Enum):
    """Status of a persisted job row."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    FINISHED = "FINISHED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return not JOB_VALID_TRANSITIONS[self]


JOB_VALID_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.RUNNING}),
    JobStatus.RUNNING: frozenset({JobStatus.FINISHED, JobStatus.FAILED}),
    JobStatus.FINISHED: frozenset(),  # terminal
    JobStatus.FAILED: frozenset(),  # terminal
}


def validate_job_transition(current: JobStatus, target: JobStatus) -> None:
    """Raise :class:`InvalidTransitionError` if *current → target* is illegal.

    Example:
        >>> validate_job_transition(JobStatus.RUNNING, JobStatus.FINISHED)
        >>> validate_job_transition(JobStatus.FAILED, JobStatus.RUNNING)
        InvalidTransitionError: Invalid JobStatus transition: FAILED → RUNNING
    """
    if target not in JOB_VALID_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError(current.value, target.value)


def truncate_result(text: str | None, limit: int = JOB_RESULT_MAX_LENGTH) -> str | None:
    """Clip a result message to the width of ``jobs.job_result``."""
    if text is None:
        return None
    return text[:limit]


# ---------------------------------------------------------------------------
# jobs
# ---------------------------------------------------------------------------


@dataclass
class JobRow:
    """One scheduled execution attempt (``jobs``).

    ``current_retry_count`` is ``None`` only on legacy rows written before
    the counter existed; the controller recomputes it from the lineage.
    ``version`` is bumped by the store on every successful update.
    """

    job_id: str | None = None
    job_name: str | None = None
    parent_job_id: str | None = None
    previous_job_id: str | None = None

    # scheduling
    service_name: str | None = None
    run_time: datetime | None = None
    temp_expr_id: str | None = None
    recurrence_info_id: str | None = None
    max_recurrence_count: int | None = None
    current_recurrence_count: int | None = None

    # retry
    max_retry: int | None = None
    current_retry_count: int | None = None

    # ownership / claim
    run_by_instance_id: str | None = None
    start_date_time: datetime | None = None
    cancel_date_time: datetime | None = None

    # outcome
    status_id: JobStatus = JobStatus.PENDING
    finish_date_time: datetime | None = None
    job_result: str | None = None

    # payload
    runtime_data_id: str | None = None
    run_as_user: str | None = None

    version: int = 1

    @property
    def root_job_id(self) -> str | None:
        """Id of the first row in this row's lineage."""
        return self.parent_job_id or self.job_id

    @property
    def is_claimable(self) -> bool:
        return (
            self.start_date_time is None
            and self.cancel_date_time is None
            and self.status_id == JobStatus.PENDING
        )


# ---------------------------------------------------------------------------
# runtime_data
# ---------------------------------------------------------------------------


@dataclass
class RuntimeData:
    """Serialized execution context referenced by ``jobs.runtime_data_id``."""

    runtime_data_id: str = ""
    runtime_info: str | None = None  # JSON object


# ---------------------------------------------------------------------------
# temporal_expressions
# ---------------------------------------------------------------------------


@dataclass
class TemporalExpressionRecord:
    """Stored temporal expression (``temporal_expressions``)."""

    temp_expr_id: str = ""
    cron_expression: str = ""
    timezone: str = "UTC"
    description: str | None = None


# ---------------------------------------------------------------------------
# recurrence_info (legacy)
# ---------------------------------------------------------------------------


class Frequency(str, Enum):
    SECONDLY = "SECONDLY"
    MINUTELY = "MINUTELY"
    HOURLY = "HOURLY"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


@dataclass
class RecurrenceRule:
    """Frequency rule embedded in a legacy recurrence descriptor."""

    frequency: Frequency = Frequency.DAILY
    interval_number: int = 1
    count_number: int = UNLIMITED
    until_date_time: datetime | None = None


@dataclass
class RecurrenceInfo:
    """Legacy recurrence descriptor (``recurrence_info``).

    Predates temporal expressions. ``recurrence_count`` is the
    descriptor's own running counter of chained occurrences.
    """

    recurrence_info_id: str = ""
    start_date_time: datetime | None = None
    rule: RecurrenceRule = field(default_factory=RecurrenceRule)
    recurrence_count: int = 0

    def increment_count(self) -> int:
        self.recurrence_count += 1
        return self.recurrence_count


__all__ = [
    "JOB_RESULT_MAX_LENGTH",
    "UNLIMITED",
    "InvalidTransitionError",
    "JobStatus",
    "JOB_VALID_TRANSITIONS",
    "validate_job_transition",
    "truncate_result",
    "JobRow",
    "RuntimeData",
    "TemporalExpressionRecord",
    "Frequency",
    "RecurrenceRule",
    "RecurrenceInfo",
]
