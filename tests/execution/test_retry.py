"""Tests for retry budget and backoff."""

from datetime import timedelta

import pytest
from structlog.testing import capture_logs

from jobspine.core.errors import StoreError
from jobspine.core.models import JobRow, JobStatus
from jobspine.core.settings import JobSettings
from jobspine.execution.retry import RetryPolicy, can_retry, recompute_retry_count

from conftest import NOW


class TestCanRetry:
    @pytest.mark.parametrize(
        "max_retry,current,expected",
        [
            (3, 0, True),
            (3, 2, True),
            (3, 3, False),
            (3, 4, False),
            (0, 0, False),
            (-1, 999, True),
            (None, 5, True),
        ],
    )
    def test_budget(self, max_retry, current, expected):
        assert can_retry(max_retry, current) is expected


class TestRecomputeRetryCount:
    def test_no_parent(self, jobs):
        assert recompute_retry_count(JobRow(job_id="J"), jobs) == 0

    def test_counts_failed_siblings_plus_parent(self, make_job, jobs):
        root = make_job(status_id=JobStatus.FAILED)
        make_job(parent_job_id=root.job_id, status_id=JobStatus.FAILED)
        make_job(parent_job_id=root.job_id, status_id=JobStatus.FAILED)
        make_job(parent_job_id=root.job_id, status_id=JobStatus.FINISHED)
        row = make_job(parent_job_id=root.job_id, current_retry_count=None)

        assert recompute_retry_count(row, jobs) == 3

    def test_store_failure_counts_as_none(self, jobs, monkeypatch):
        def broken(parent_job_id, status_id):
            raise StoreError("locked")

        monkeypatch.setattr(jobs, "count_matching", broken)

        with capture_logs() as logs:
            assert recompute_retry_count(JobRow(job_id="J", parent_job_id="P"), jobs) == 1
        assert logs[0]["event"] == "job_retry_count_unavailable"
        assert logs[0]["log_level"] == "error"


class TestRetryPolicy:
    def test_next_run_time(self):
        policy = RetryPolicy(failed_retry_minutes=3)
        assert policy.next_run_time(NOW) == NOW + timedelta(minutes=3)

    def test_from_settings(self):
        policy = RetryPolicy.from_settings(JobSettings(_env_file=None, failed_retry_minutes=15))
        assert policy.backoff == timedelta(minutes=15)
