"""Shared helpers for the job repositories.

Row <-> dataclass conversion and driver-error translation.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from jobspine.core.errors import JobError, StoreError
from jobspine.core.models import JobRow, JobStatus
from jobspine.core.timestamps import from_iso8601, to_iso8601

JOB_COLUMNS: tuple[str, ...] = (
    "job_id",
    "job_name",
    "parent_job_id",
    "previous_job_id",
    "service_name",
    "run_time",
    "temp_expr_id",
    "recurrence_info_id",
    "max_recurrence_count",
    "current_recurrence_count",
    "max_retry",
    "current_retry_count",
    "run_by_instance_id",
    "start_date_time",
    "cancel_date_time",
    "status_id",
    "finish_date_time",
    "job_result",
    "runtime_data_id",
    "run_as_user",
    "version",
)

_TIMESTAMP_COLUMNS = frozenset(
    {"run_time", "start_date_time", "cancel_date_time", "finish_date_time"}
)


def job_to_params(row: JobRow) -> dict[str, Any]:
    """Flatten a JobRow into column -> bind value."""
    data: dict[str, Any] = {}
    for col in JOB_COLUMNS:
        value = getattr(row, col)
        if col in _TIMESTAMP_COLUMNS:
            value = to_iso8601(value)
        elif col == "status_id":
            value = JobStatus(value).value
        data[col] = value
    return data


def row_to_job(data: dict[str, Any]) -> JobRow:
    """Build a JobRow from a ``jobs`` result row."""
    kwargs: dict[str, Any] = {}
    for col in JOB_COLUMNS:
        if col not in data:
            continue
        value = data[col]
        if col in _TIMESTAMP_COLUMNS:
            value = from_iso8601(value)
        elif col == "status_id":
            value = JobStatus(value)
        kwargs[col] = value
    return JobRow(**kwargs)


@contextmanager
def store_errors(action: str, job_id: str | None = None) -> Iterator[None]:
    """Re-raise driver exceptions as :class:`StoreError`.

    ``JobError`` subclasses (``StaleRowError``, ``InvalidJob``) pass
    through untouched.
    """
    try:
        yield
    except JobError:
        raise
    except Exception as e:
        error = StoreError(f"Unable to {action}: {e}", cause=e)
        if job_id is not None:
            error.with_context(job_id=job_id)
        raise error from e
