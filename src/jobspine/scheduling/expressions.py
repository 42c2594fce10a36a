"""Temporal expressions — evaluable schedules.

Both implementations satisfy
:class:`~jobspine.core.protocols.TemporalExpression`: given an instant
they return the next matching instant strictly after it, or ``None``
when the schedule is exhausted. All returned instants are UTC.

- :class:`CronExpression` — 5-field cron evaluated with croniter in the
  expression's own timezone.
- :class:`FrequencyExpression` — the converted form of a legacy
  recurrence descriptor (frequency × interval from a start instant,
  bounded by count or until), evaluated with dateutil's rrule.

Example:
    >>> expr = CronExpression("0 9 * * MON")
    >>> expr.next(datetime(2025, 1, 1, tzinfo=UTC))
    datetime.datetime(2025, 1, 6, 9, 0, tzinfo=datetime.timezone.utc)
"""

from __future__ import annotations

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from croniter import croniter
from dateutil import rrule

from jobspine.core.models import Frequency, RecurrenceInfo, UNLIMITED


_RRULE_FREQUENCIES = {
    Frequency.SECONDLY: rrule.SECONDLY,
    Frequency.MINUTELY: rrule.MINUTELY,
    Frequency.HOURLY: rrule.HOURLY,
    Frequency.DAILY: rrule.DAILY,
    Frequency.WEEKLY: rrule.WEEKLY,
    Frequency.MONTHLY: rrule.MONTHLY,
    Frequency.YEARLY: rrule.YEARLY,
}


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


class CronExpression:
    """Cron schedule evaluated in a fixed timezone.

    Raises:
        ValueError: If the expression does not parse.
    """

    def __init__(self, cron_expression: str, timezone: str = "UTC") -> None:
        if not croniter.is_valid(cron_expression):
            raise ValueError(f"Invalid cron expression: {cron_expression!r}")
        self.cron_expression = cron_expression
        self.timezone = timezone
        self._tz = ZoneInfo(timezone)

    def next(self, after: datetime) -> datetime | None:
        after_local = _as_utc(after).astimezone(self._tz)
        next_run = croniter(self.cron_expression, after_local).get_next(datetime)
        return _as_utc(next_run)

    def __repr__(self) -> str:
        return f"CronExpression({self.cron_expression!r}, timezone={self.timezone!r})"


class FrequencyExpression:
    """Every ``interval`` × ``frequency`` from ``start``.

    ``count`` bounds the total number of occurrences counted from
    ``start`` (``-1`` for unbounded); ``until`` is the last instant an
    occurrence may fall on.
    """

    def __init__(
        self,
        frequency: Frequency,
        start: datetime,
        interval: int = 1,
        count: int = UNLIMITED,
        until: datetime | None = None,
    ) -> None:
        if interval < 1:
            raise ValueError(f"interval must be >= 1, got {interval}")
        self.frequency = Frequency(frequency)
        self.start = _as_utc(start)
        self.interval = interval
        self.count = count
        self.until = _as_utc(until) if until is not None else None

        # rrule rejects count and until together; count wins, until is
        # checked on the result.
        self._rule = rrule.rrule(
            _RRULE_FREQUENCIES[self.frequency],
            dtstart=self.start,
            interval=interval,
            count=count if count > 0 else None,
            until=self.until if count <= 0 else None,
        )

    @classmethod
    def from_recurrence_info(cls, info: RecurrenceInfo) -> FrequencyExpression:
        """Convert a legacy recurrence descriptor."""
        if info.start_date_time is None:
            raise ValueError(f"Recurrence info [{info.recurrence_info_id}] has no start time")
        return cls(
            frequency=info.rule.frequency,
            start=info.start_date_time,
            interval=info.rule.interval_number,
            count=info.rule.count_number,
            until=info.rule.until_date_time,
        )

    def next(self, after: datetime) -> datetime | None:
        occurrence = self._rule.after(_as_utc(after), inc=False)
        if occurrence is None:
            return None
        if self.until is not None and occurrence > self.until:
            return None
        return _as_utc(occurrence)

    def __repr__(self) -> str:
        return (
            f"FrequencyExpression({self.frequency.value}, start={self.start.isoformat()}, "
            f"interval={self.interval}, count={self.count})"
        )


__all__ = [
    "CronExpression",
    "FrequencyExpression",
]
