"""Tests for CronExpression and FrequencyExpression."""

from datetime import UTC, datetime, timedelta

import pytest

from jobspine.core.models import Frequency, RecurrenceInfo, RecurrenceRule
from jobspine.scheduling.expressions import CronExpression, FrequencyExpression

MONDAY_9AM = datetime(2025, 1, 6, 9, 0, tzinfo=UTC)


class TestCronExpression:
    def test_next_is_strictly_after(self):
        expr = CronExpression("0 9 * * MON")
        assert expr.next(MONDAY_9AM) == MONDAY_9AM + timedelta(weeks=1)

    def test_next_within_the_day(self):
        expr = CronExpression("*/15 * * * *")
        assert expr.next(datetime(2025, 1, 6, 9, 7, tzinfo=UTC)) == datetime(2025, 1, 6, 9, 15, tzinfo=UTC)

    def test_evaluated_in_own_timezone(self):
        expr = CronExpression("0 9 * * *", timezone="America/New_York")

        # 00:00 UTC is 19:00 the previous evening in New York (EST, UTC-5)
        assert expr.next(datetime(2025, 1, 6, 0, 0, tzinfo=UTC)) == datetime(2025, 1, 6, 14, 0, tzinfo=UTC)

    def test_result_is_utc(self):
        expr = CronExpression("0 9 * * *", timezone="Europe/Berlin")
        assert expr.next(MONDAY_9AM).tzinfo == UTC

    def test_naive_input_taken_as_utc(self):
        expr = CronExpression("0 9 * * MON")
        assert expr.next(datetime(2025, 1, 6, 9, 0)) == MONDAY_9AM + timedelta(weeks=1)

    def test_invalid(self):
        with pytest.raises(ValueError, match="Invalid cron expression"):
            CronExpression("every tuesday")


class TestFrequencyExpression:
    def test_daily(self):
        expr = FrequencyExpression(Frequency.DAILY, start=MONDAY_9AM)
        assert expr.next(MONDAY_9AM) == MONDAY_9AM + timedelta(days=1)

    def test_interval(self):
        expr = FrequencyExpression(Frequency.HOURLY, start=MONDAY_9AM, interval=6)
        assert expr.next(MONDAY_9AM + timedelta(hours=1)) == MONDAY_9AM + timedelta(hours=6)

    def test_count_exhausts(self):
        expr = FrequencyExpression(Frequency.DAILY, start=MONDAY_9AM, count=3)

        assert expr.next(MONDAY_9AM + timedelta(days=1)) == MONDAY_9AM + timedelta(days=2)
        assert expr.next(MONDAY_9AM + timedelta(days=2)) is None

    def test_until_exhausts(self):
        expr = FrequencyExpression(
            Frequency.DAILY, start=MONDAY_9AM, until=MONDAY_9AM + timedelta(days=1, hours=12)
        )

        assert expr.next(MONDAY_9AM) == MONDAY_9AM + timedelta(days=1)
        assert expr.next(MONDAY_9AM + timedelta(days=1)) is None

    def test_bad_interval(self):
        with pytest.raises(ValueError, match="interval"):
            FrequencyExpression(Frequency.DAILY, start=MONDAY_9AM, interval=0)

    def test_from_recurrence_info(self):
        info = RecurrenceInfo(
            recurrence_info_id="R1",
            start_date_time=MONDAY_9AM,
            rule=RecurrenceRule(frequency=Frequency.WEEKLY, interval_number=2),
        )
        expr = FrequencyExpression.from_recurrence_info(info)
        assert expr.next(MONDAY_9AM) == MONDAY_9AM + timedelta(weeks=2)

    def test_from_recurrence_info_without_start(self):
        with pytest.raises(ValueError, match="no start time"):
            FrequencyExpression.from_recurrence_info(RecurrenceInfo(recurrence_info_id="R1"))
