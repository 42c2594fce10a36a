"""Tests for resolve_recurrence."""

from datetime import timedelta

import pytest

from jobspine.core.errors import InvalidJob
from jobspine.core.models import Frequency, JobRow, RecurrenceInfo, RecurrenceRule, TemporalExpressionRecord
from jobspine.scheduling.recurrence import ExpressionRecurrence, LegacyRecurrence, resolve_recurrence

from conftest import NOW


@pytest.fixture
def weekly(recurrences):
    return recurrences.create_expression(
        TemporalExpressionRecord(temp_expr_id="WEEKLY", cron_expression="0 9 * * MON")
    )


@pytest.fixture
def daily_info(recurrences):
    return recurrences.create_recurrence_info(
        RecurrenceInfo(
            recurrence_info_id="DAILY",
            start_date_time=NOW - timedelta(days=1),
            rule=RecurrenceRule(frequency=Frequency.DAILY),
            recurrence_count=4,
        )
    )


class TestResolveRecurrence:
    def test_no_recurrence(self, recurrences):
        assert resolve_recurrence(JobRow(job_id="J"), recurrences) is None

    def test_expression(self, recurrences, weekly):
        source = resolve_recurrence(JobRow(job_id="J", temp_expr_id="WEEKLY"), recurrences)

        assert isinstance(source, ExpressionRecurrence)
        assert source.current_count is None
        assert source.next(NOW) == NOW + timedelta(weeks=1)

    def test_legacy(self, recurrences, daily_info):
        source = resolve_recurrence(JobRow(job_id="J", recurrence_info_id="DAILY"), recurrences)

        assert isinstance(source, LegacyRecurrence)
        assert source.current_count == 4
        assert source.next(NOW) == NOW + timedelta(days=1)

    def test_expression_preferred(self, recurrences, weekly, daily_info):
        row = JobRow(job_id="J", temp_expr_id="WEEKLY", recurrence_info_id="DAILY")
        assert isinstance(resolve_recurrence(row, recurrences), ExpressionRecurrence)

    def test_missing_expression_falls_back_to_legacy(self, recurrences, daily_info):
        row = JobRow(job_id="J", temp_expr_id="GONE", recurrence_info_id="DAILY")
        assert isinstance(resolve_recurrence(row, recurrences), LegacyRecurrence)

    def test_missing_legacy_info(self, recurrences):
        assert resolve_recurrence(JobRow(job_id="J", recurrence_info_id="GONE"), recurrences) is None

    def test_unusable_expression(self, recurrences):
        recurrences.create_expression(TemporalExpressionRecord(temp_expr_id="BAD", cron_expression="nope"))

        with pytest.raises(InvalidJob, match="unusable temporal expression"):
            resolve_recurrence(JobRow(job_id="J", temp_expr_id="BAD"), recurrences)

    def test_legacy_record_occurrence(self, recurrences, daily_info):
        source = resolve_recurrence(JobRow(job_id="J", recurrence_info_id="DAILY"), recurrences)
        source.record_occurrence(recurrences)

        assert recurrences.get_recurrence_info("DAILY").recurrence_count == 5
