"""Tests for JobRepository."""

from datetime import timedelta

import pytest

from jobspine.core.errors import InvalidJob, StaleRowError, StoreError
from jobspine.core.models import JobRow, JobStatus

from conftest import INSTANCE_ID, NOW


class TestReads:
    def test_create_and_fetch(self, jobs, make_job):
        row = make_job()

        fetched = jobs.fetch_by_id(row.job_id)
        assert fetched == row
        assert fetched.run_time == NOW
        assert fetched.status_id == JobStatus.PENDING

    def test_create_generates_id(self, jobs):
        row = jobs.create(JobRow(service_name="send_report", run_time=NOW))
        assert row.job_id is not None
        assert len(row.job_id) == 26

    def test_fetch_missing(self, jobs):
        assert jobs.fetch_by_id("nope") is None

    def test_refresh_missing_row(self, jobs):
        with pytest.raises(InvalidJob, match="no longer exists"):
            jobs.refresh(JobRow(job_id="nope"))

    def test_count_matching(self, make_job, jobs):
        root = make_job()
        make_job(parent_job_id=root.job_id, status_id=JobStatus.FAILED)
        make_job(parent_job_id=root.job_id, status_id=JobStatus.FAILED)
        make_job(parent_job_id=root.job_id, status_id=JobStatus.FINISHED)

        assert jobs.count_matching(root.job_id, JobStatus.FAILED) == 2
        assert jobs.count_matching(root.job_id, JobStatus.RUNNING) == 0

    def test_list_lineage_from_any_member(self, make_job, jobs):
        root = make_job()
        second = make_job(parent_job_id=root.job_id, run_time=NOW + timedelta(days=2))
        first = make_job(parent_job_id=root.job_id, run_time=NOW + timedelta(days=1))
        make_job()  # unrelated

        lineage = jobs.list_lineage(second.job_id)
        assert [r.job_id for r in lineage] == [root.job_id, first.job_id, second.job_id]

    def test_list_lineage_missing(self, jobs):
        assert jobs.list_lineage("nope") == []


class TestPersist:
    def test_persist_bumps_version(self, make_job, jobs):
        row = make_job()
        row.job_result = "done"

        stored = jobs.persist(row)
        assert stored.version == 2
        assert jobs.fetch_by_id(row.job_id).version == 2
        assert jobs.fetch_by_id(row.job_id).job_result == "done"

    def test_stale_copy_rejected(self, make_job, jobs):
        row = make_job()
        first = jobs.fetch_by_id(row.job_id)
        second = jobs.fetch_by_id(row.job_id)

        first.status_id = JobStatus.RUNNING
        jobs.persist(first)

        second.job_result = "late"
        with pytest.raises(StaleRowError) as exc_info:
            jobs.persist(second)

        assert exc_info.value.expected_version == 1
        assert jobs.fetch_by_id(row.job_id).job_result is None

    def test_persist_vanished_row(self, jobs):
        with pytest.raises(StaleRowError):
            jobs.persist(JobRow(job_id="nope", run_time=NOW))

    def test_create_with_generated_id_ignores_given_id(self, make_job, jobs):
        row = make_job()
        copy = jobs.create_with_generated_id(row)

        assert copy.job_id != row.job_id
        assert copy.version == 1
        assert jobs.fetch_by_id(copy.job_id) is not None

    def test_driver_errors_become_store_errors(self, conn, jobs):
        conn.close()
        with pytest.raises(StoreError) as exc_info:
            jobs.fetch_by_id("any")
        assert exc_info.value.context.job_id == "any"
        assert exc_info.value.cause is not None


class TestAcceptAndCancel:
    def test_accept_unowned(self, make_job, jobs):
        row = make_job(run_by_instance_id=None)

        assert jobs.accept(row.job_id, INSTANCE_ID) is True
        assert jobs.fetch_by_id(row.job_id).run_by_instance_id == INSTANCE_ID

    def test_accept_owned(self, make_job, jobs):
        row = make_job(run_by_instance_id="other")

        assert jobs.accept(row.job_id, INSTANCE_ID) is False
        assert jobs.fetch_by_id(row.job_id).run_by_instance_id == "other"

    def test_cancel_pending(self, make_job, jobs):
        row = make_job()

        assert jobs.cancel(row.job_id, at=NOW) is True
        stored = jobs.fetch_by_id(row.job_id)
        assert stored.cancel_date_time == NOW
        assert stored.version == 2

    def test_cancel_twice(self, make_job, jobs):
        row = make_job()
        jobs.cancel(row.job_id)
        assert jobs.cancel(row.job_id) is False

    def test_cancel_started(self, make_job, jobs):
        row = make_job(start_date_time=NOW)
        assert jobs.cancel(row.job_id) is False
