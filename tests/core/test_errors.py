"""Tests for the JobError hierarchy."""

import sqlite3

import pytest

from jobspine.core.errors import (
    ClaimConflict,
    ContextResolutionError,
    ErrorCategory,
    InvalidJob,
    JobError,
    StaleRowError,
    StoreError,
    categorize_error,
    is_retryable,
)


class TestJobError:
    """Base error behaviour."""

    def test_defaults(self):
        error = JobError("something broke")
        assert error.message == "something broke"
        assert error.category == ErrorCategory.INTERNAL
        assert error.retryable is False
        assert str(error) == "something broke"

    def test_with_context_sets_known_fields_and_metadata(self):
        error = InvalidJob("gone").with_context(job_id="J1", instance_id="w1", attempt=2)

        assert error.context.job_id == "J1"
        assert error.context.instance_id == "w1"
        assert error.context.metadata == {"attempt": 2}

    def test_to_dict(self):
        cause = ValueError("bad")
        error = StoreError("write failed", cause=cause).with_context(job_id="J1")

        data = error.to_dict()
        assert data == {
            "error_type": "StoreError",
            "message": "write failed",
            "category": "STORAGE",
            "retryable": True,
            "context": {"job_id": "J1"},
            "cause": "bad",
        }
        assert error.__cause__ is cause

    def test_overrides(self):
        error = ClaimConflict("taken", retryable=True, category=ErrorCategory.UNKNOWN)
        assert error.retryable is True
        assert error.category == ErrorCategory.UNKNOWN


class TestSubclasses:
    """Category and retryability per subclass."""

    @pytest.mark.parametrize(
        "cls,category,retryable",
        [
            (ClaimConflict, ErrorCategory.CONFLICT, False),
            (InvalidJob, ErrorCategory.VALIDATION, False),
            (StoreError, ErrorCategory.STORAGE, True),
            (ContextResolutionError, ErrorCategory.CONTEXT, False),
        ],
    )
    def test_category(self, cls, category, retryable):
        error = cls("x")
        assert error.category == category
        assert is_retryable(error) is retryable

    def test_stale_row_error(self):
        error = StaleRowError("J1", 4)

        assert isinstance(error, StoreError)
        assert error.category == ErrorCategory.STORAGE
        assert error.retryable is False
        assert error.expected_version == 4
        assert error.context.job_id == "J1"
        assert "version 4" in error.message


class TestHelpers:
    def test_is_retryable_plain_exception(self):
        assert is_retryable(RuntimeError("x")) is False

    def test_categorize_job_error(self):
        assert categorize_error(ClaimConflict("x")) == ErrorCategory.CONFLICT

    def test_categorize_sqlite_error(self):
        assert categorize_error(sqlite3.OperationalError("locked")) == ErrorCategory.STORAGE

    def test_categorize_unknown(self):
        assert categorize_error(KeyError("x")) == ErrorCategory.UNKNOWN
