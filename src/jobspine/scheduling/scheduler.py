"""Recurrence scheduler — chains successor rows.

One scheduler lives for exactly one controller lifetime. It creates at
most one successor row, for either the next recurrence or a retry,
and remembers the instant it chained (``next_recurrence``) so nothing
else is chained from the same lifetime.

Successor rules::

    job_id              ← new id from the store
    previous_job_id     ← creator.job_id
    parent_job_id       ← creator.parent_job_id or creator.job_id
    status_id           ← PENDING
    start_date_time     ← cleared
    run_by_instance_id  ← cleared
    run_time            ← next_run_time  (must be > creator.run_time)
    current_retry_count ← creator + 1 (retry) | 0 (recurrence)
    everything else     ← copied

Chaining is not idempotent across a process restart: a crash between
deciding and persisting can leave two PENDING successors. Only one of
them can ever be claimed.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from jobspine.core.models import JobRow, JobStatus
from jobspine.core.protocols import JobStore
from jobspine.logging import get_logger

logger = get_logger(__name__)


class RecurrenceScheduler:
    """Creates the single successor row of one controller lifetime.

    Example:
        >>> scheduler = RecurrenceScheduler(store)
        >>> successor = scheduler.create_successor(row, row.run_time + timedelta(days=7), is_retry=False)
        >>> scheduler.next_recurrence == successor.run_time
        True
    """

    def __init__(self, store: JobStore) -> None:
        self.store = store
        self.next_recurrence: datetime | None = None
        self.successor: JobRow | None = None

    @property
    def has_chained(self) -> bool:
        return self.next_recurrence is not None

    def create_successor(
        self,
        row: JobRow,
        next_run_time: datetime,
        *,
        is_retry: bool,
        current_retry_count: int | None = None,
    ) -> JobRow | None:
        """Persist the successor of ``row`` running at ``next_run_time``.

        Args:
            row: The creating row.
            next_run_time: When the successor becomes eligible.
            is_retry: Retry successor (count + 1) or recurrence (count 0).
            current_retry_count: The creator's effective retry count, for
                legacy rows whose stored count is NULL.

        Returns:
            The stored successor, or None when the run time does not
            advance past ``row.run_time`` or a successor already exists.

        Raises:
            StoreError: The insert failed; the sentinel stays unset.
        """
        if self.has_chained:
            logger.debug(
                "job_successor_skipped",
                job_id=row.job_id,
                reason="already_chained",
                next_recurrence=self.next_recurrence.isoformat(),
            )
            return None

        if row.run_time is not None and not next_run_time > row.run_time:
            logger.debug(
                "job_successor_skipped",
                job_id=row.job_id,
                reason="not_advancing",
                run_time=row.run_time.isoformat(),
                next_run_time=next_run_time.isoformat(),
            )
            return None

        if is_retry:
            base = current_retry_count if current_retry_count is not None else row.current_retry_count
            retry_count = (base or 0) + 1
        else:
            retry_count = 0

        successor = replace(
            row,
            job_id=None,
            previous_job_id=row.job_id,
            parent_job_id=row.parent_job_id or row.job_id,
            status_id=JobStatus.PENDING,
            start_date_time=None,
            run_by_instance_id=None,
            finish_date_time=None,
            job_result=None,
            run_time=next_run_time,
            current_retry_count=retry_count,
            version=1,
        )
        successor = self.store.create_with_generated_id(successor)

        self.next_recurrence = next_run_time
        self.successor = successor
        logger.debug(
            "job_successor_created",
            job_id=row.job_id,
            successor_job_id=successor.job_id,
            is_retry=is_retry,
            run_time=next_run_time.isoformat(),
        )
        return successor


__all__ = [
    "RecurrenceScheduler",
]
