"""Retry policy for failed jobs.

A failed job is retried by chaining a new PENDING row a fixed number of
minutes in the future, as long as the row's retry budget allows it.

Example:
    >>> policy = RetryPolicy(failed_retry_minutes=3)
    >>> policy.can_retry(max_retry=3, current_retry_count=2)
    True
    >>> policy.can_retry(max_retry=3, current_retry_count=3)
    False
    >>> policy.can_retry(max_retry=-1, current_retry_count=999)
    True
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from jobspine.core.errors import StoreError
from jobspine.core.models import UNLIMITED, JobRow, JobStatus
from jobspine.core.protocols import JobStore
from jobspine.core.settings import JobSettings
from jobspine.logging import get_logger

logger = get_logger(__name__)


def can_retry(max_retry: int | None, current_retry_count: int) -> bool:
    """Whether a job that has been retried ``current_retry_count`` times may go again.

    ``max_retry`` of -1 (or None) means unlimited.
    """
    if max_retry is None or max_retry == UNLIMITED:
        return True
    return current_retry_count < max_retry


def recompute_retry_count(row: JobRow, store: JobStore) -> int:
    """Estimate the retry count of a legacy row that has none stored.

    Counts FAILED rows sharing the row's ``parent_job_id`` and adds one
    for the parent itself. Concurrently failing siblings can be missed;
    this is a compatibility estimate, not an audit. A row with no parent
    is a first attempt (0). A failed count is logged and treated as no
    failed siblings.
    """
    if row.parent_job_id is None:
        return 0

    try:
        failed = store.count_matching(row.parent_job_id, JobStatus.FAILED)
    except StoreError as e:
        logger.error(
            "job_retry_count_unavailable",
            job_id=row.job_id,
            parent_job_id=row.parent_job_id,
            error=str(e),
        )
        failed = 0

    return failed + 1


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-backoff retry policy.

    Attributes:
        failed_retry_minutes: Delay between a failure and its retry row
    """

    failed_retry_minutes: int = 3

    @classmethod
    def from_settings(cls, settings: JobSettings) -> RetryPolicy:
        return cls(failed_retry_minutes=settings.failed_retry_minutes)

    @property
    def backoff(self) -> timedelta:
        return timedelta(minutes=self.failed_retry_minutes)

    def can_retry(self, max_retry: int | None, current_retry_count: int) -> bool:
        return can_retry(max_retry, current_retry_count)

    def next_run_time(self, now: datetime) -> datetime:
        """When the retry row for a failure at ``now`` becomes eligible."""
        return now + self.backoff


__all__ = [
    "RetryPolicy",
    "can_retry",
    "recompute_retry_count",
]
