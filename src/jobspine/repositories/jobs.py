"""Job repository — the ``jobs`` table.

Implements the :class:`~jobspine.core.protocols.JobStore` contract the
lifecycle controller depends on, plus the lineage, accept and cancel
queries used by the CLI.

Every update is versioned: ``persist`` only writes when the stored
``version`` still equals the row's, and bumps it. A miss raises
:class:`~jobspine.core.errors.StaleRowError`. This is the optimistic
check the claim protocol leans on; stores that cannot honour it leave
the claim race open.

┌──────────────────────────────────────────────────────────────────────┐
│  JobRepository                                                        │
│                                                                       │
│   JobStore contract:                                                  │
│   ├── fetch_by_id(job_id) → JobRow | None                             │
│   ├── refresh(row) → JobRow                                           │
│   ├── persist(row) → JobRow            (versioned UPDATE)             │
│   ├── create_with_generated_id(row) → JobRow                          │
│   └── count_matching(parent_job_id, status) → int                     │
│                                                                       │
│   Operator queries:                                                   │
│   ├── create(row) → JobRow                                            │
│   ├── list_lineage(job_id) → list[JobRow]                             │
│   ├── accept(job_id, instance_id) → bool                              │
│   └── cancel(job_id, at) → bool                                       │
└──────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime

from jobspine.core.errors import InvalidJob, StaleRowError
from jobspine.core.models import JobRow, JobStatus
from jobspine.core.repository import BaseRepository
from jobspine.core.timestamps import generate_ulid, to_iso8601, utc_now

from ._helpers import JOB_COLUMNS, job_to_params, row_to_job, store_errors

logger = logging.getLogger(__name__)


class JobRepository(BaseRepository):
    """CRUD and lineage queries for the ``jobs`` table.

    Example:
        >>> repo = JobRepository(conn)
        >>> row = repo.create(JobRow(service_name="send_report", run_time=utc_now()))
        >>> repo.fetch_by_id(row.job_id).status_id
        <JobStatus.PENDING: 'PENDING'>
    """

    TABLE = "jobs"

    # -- reads -----------------------------------------------------------------

    def fetch_by_id(self, job_id: str) -> JobRow | None:
        """Fetch a single job row by primary key."""
        with store_errors("fetch job", job_id):
            data = self.query_one(
                f"SELECT * FROM {self.TABLE} WHERE job_id = {self.ph(1)}",
                (job_id,),
            )
        return row_to_job(data) if data else None

    def refresh(self, row: JobRow) -> JobRow:
        """Re-read the latest stored copy of ``row``."""
        fresh = self.fetch_by_id(row.job_id)
        if fresh is None:
            raise InvalidJob(f"Job [{row.job_id}] no longer exists").with_context(
                job_id=row.job_id
            )
        return fresh

    def count_matching(self, parent_job_id: str, status_id: JobStatus) -> int:
        """Count rows in a lineage with the given status."""
        with store_errors("count jobs", parent_job_id):
            data = self.query_one(
                f"SELECT COUNT(*) AS cnt FROM {self.TABLE} "
                f"WHERE parent_job_id = {self.ph(1)} AND status_id = {self.ph(1)}",
                (parent_job_id, JobStatus(status_id).value),
            )
        return int((data or {}).get("cnt", 0))

    def list_lineage(self, job_id: str) -> list[JobRow]:
        """Every row sharing ``job_id``'s lineage root, oldest run first."""
        row = self.fetch_by_id(job_id)
        if row is None:
            return []
        root = row.root_job_id
        with store_errors("list lineage", root):
            rows = self.query(
                f"SELECT * FROM {self.TABLE} "
                f"WHERE job_id = {self.ph(1)} OR parent_job_id = {self.ph(1)} "
                f"ORDER BY run_time ASC, job_id ASC",
                (root, root),
            )
        return [row_to_job(r) for r in rows]

    # -- writes ----------------------------------------------------------------

    def create(self, row: JobRow) -> JobRow:
        """Insert ``row``, generating an id when it has none."""
        if row.job_id is None:
            row = replace(row, job_id=generate_ulid())
        with store_errors("create job", row.job_id):
            self.insert(self.TABLE, job_to_params(row))
            self.commit()
        logger.debug("Created job %s", row.job_id)
        return row

    def create_with_generated_id(self, row: JobRow) -> JobRow:
        """Insert ``row`` under a freshly generated id."""
        return self.create(replace(row, job_id=None, version=1))

    def persist(self, row: JobRow) -> JobRow:
        """Versioned update of every column.

        Raises:
            StaleRowError: The stored version is no longer ``row.version``
                (or the row vanished).
        """
        params = job_to_params(row)
        columns = [c for c in JOB_COLUMNS if c not in ("job_id", "version")]
        assignments = self.dialect.assignments(columns)

        with store_errors("store job", row.job_id):
            cursor = self.execute(
                f"UPDATE {self.TABLE} SET {assignments}, version = version + 1 "
                f"WHERE job_id = {self.ph(1)} AND version = {self.ph(1)}",
                (*(params[c] for c in columns), row.job_id, row.version),
            )
            if cursor.rowcount == 0:
                self.rollback()
                raise StaleRowError(row.job_id, row.version)
            self.commit()

        row.version += 1
        return row

    def accept(self, job_id: str, instance_id: str) -> bool:
        """Stamp ``instance_id`` as owner of an unowned pending row."""
        with store_errors("accept job", job_id):
            cursor = self.execute(
                f"UPDATE {self.TABLE} SET run_by_instance_id = {self.ph(1)}, "
                f"version = version + 1 "
                f"WHERE job_id = {self.ph(1)} AND run_by_instance_id IS NULL "
                f"AND status_id = {self.ph(1)}",
                (instance_id, job_id, JobStatus.PENDING.value),
            )
            self.commit()
        return cursor.rowcount > 0

    def cancel(self, job_id: str, at: datetime | None = None) -> bool:
        """Mark a pending, unstarted row cancelled so no claim can take it."""
        with store_errors("cancel job", job_id):
            cursor = self.execute(
                f"UPDATE {self.TABLE} SET cancel_date_time = {self.ph(1)}, "
                f"version = version + 1 "
                f"WHERE job_id = {self.ph(1)} AND start_date_time IS NULL "
                f"AND cancel_date_time IS NULL AND status_id = {self.ph(1)}",
                (to_iso8601(at or utc_now()), job_id, JobStatus.PENDING.value),
            )
            self.commit()
        if cursor.rowcount > 0:
            logger.info("Cancelled job %s", job_id)
            return True
        return False


__all__ = [
    "JobRepository",
]
