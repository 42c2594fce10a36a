"""Tests for job models and the status transition table."""

import pytest

from jobspine.core.models import (
    JOB_RESULT_MAX_LENGTH,
    InvalidTransitionError,
    JobRow,
    JobStatus,
    RecurrenceInfo,
    truncate_result,
    validate_job_transition,
)


class TestJobStatus:
    @pytest.mark.parametrize(
        "current,target",
        [
            (JobStatus.PENDING, JobStatus.RUNNING),
            (JobStatus.RUNNING, JobStatus.FINISHED),
            (JobStatus.RUNNING, JobStatus.FAILED),
        ],
    )
    def test_valid_transitions(self, current, target):
        validate_job_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (JobStatus.PENDING, JobStatus.FINISHED),
            (JobStatus.FAILED, JobStatus.RUNNING),
            (JobStatus.FINISHED, JobStatus.PENDING),
            (JobStatus.FAILED, JobStatus.PENDING),
        ],
    )
    def test_invalid_transitions(self, current, target):
        with pytest.raises(InvalidTransitionError):
            validate_job_transition(current, target)

    def test_terminal(self):
        assert JobStatus.FINISHED.is_terminal
        assert JobStatus.FAILED.is_terminal
        assert not JobStatus.PENDING.is_terminal
        assert not JobStatus.RUNNING.is_terminal


class TestJobRow:
    def test_root_job_id(self):
        assert JobRow(job_id="A").root_job_id == "A"
        assert JobRow(job_id="B", parent_job_id="A").root_job_id == "A"

    def test_is_claimable(self, clock):
        assert JobRow(job_id="A").is_claimable
        assert not JobRow(job_id="A", start_date_time=clock()).is_claimable
        assert not JobRow(job_id="A", cancel_date_time=clock()).is_claimable
        assert not JobRow(job_id="A", status_id=JobStatus.RUNNING).is_claimable


class TestTruncateResult:
    def test_short_text_unchanged(self):
        assert truncate_result("ok") == "ok"

    def test_long_text_clipped(self):
        assert len(truncate_result("x" * 1000)) == JOB_RESULT_MAX_LENGTH

    def test_none(self):
        assert truncate_result(None) is None


def test_recurrence_info_increment_count():
    info = RecurrenceInfo(recurrence_info_id="R1", recurrence_count=2)
    assert info.increment_count() == 3
    assert info.recurrence_count == 3
