"""
jobspine.scheduling — recurrence evaluation and successor chaining.

┌──────────────────────────────────────────────────────────────────────┐
│  expressions.py  CronExpression (croniter), FrequencyExpression       │
│                  (dateutil rrule) — next(after) -> datetime | None    │
│  recurrence.py   ExpressionRecurrence | LegacyRecurrence,             │
│                  resolve_recurrence(row, repo)                        │
│  scheduler.py    RecurrenceScheduler.create_successor(...)            │
└──────────────────────────────────────────────────────────────────────┘
"""

from jobspine.scheduling.expressions import CronExpression, FrequencyExpression
from jobspine.scheduling.recurrence import (
    ExpressionRecurrence,
    LegacyRecurrence,
    RecurrenceSource,
    resolve_recurrence,
)
from jobspine.scheduling.scheduler import RecurrenceScheduler

__all__ = [
    "CronExpression",
    "FrequencyExpression",
    "ExpressionRecurrence",
    "LegacyRecurrence",
    "RecurrenceSource",
    "resolve_recurrence",
    "RecurrenceScheduler",
]
