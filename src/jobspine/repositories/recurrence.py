"""Recurrence repository — temporal expressions and legacy descriptors.

Loads the two recurrence sources a job row can reference:

- ``temporal_expressions`` (``jobs.temp_expr_id``), evaluated with croniter
- ``recurrence_info`` (``jobs.recurrence_info_id``), the legacy
  frequency descriptor, evaluated with dateutil's rrule

and writes back the legacy descriptor's running counter.
"""

from __future__ import annotations

import logging
from typing import Any

from jobspine.core.models import (
    Frequency,
    RecurrenceInfo,
    RecurrenceRule,
    TemporalExpressionRecord,
)
from jobspine.core.repository import BaseRepository
from jobspine.core.timestamps import from_iso8601, to_iso8601
from jobspine.scheduling.expressions import CronExpression

from ._helpers import store_errors

logger = logging.getLogger(__name__)


class RecurrenceRepository(BaseRepository):
    """Lookups for the recurrence sources of a job row."""

    EXPRESSIONS_TABLE = "temporal_expressions"
    RECURRENCE_TABLE = "recurrence_info"

    # -- temporal expressions --------------------------------------------------

    def get_expression_record(self, temp_expr_id: str) -> TemporalExpressionRecord | None:
        with store_errors("fetch temporal expression"):
            data = self.query_one(
                f"SELECT * FROM {self.EXPRESSIONS_TABLE} WHERE temp_expr_id = {self.ph(1)}",
                (temp_expr_id,),
            )
        if data is None:
            return None
        return TemporalExpressionRecord(
            temp_expr_id=data["temp_expr_id"],
            cron_expression=data["cron_expression"],
            timezone=data["timezone"] or "UTC",
            description=data.get("description"),
        )

    def get_temporal_expression(self, temp_expr_id: str) -> CronExpression | None:
        """Evaluable expression for ``temp_expr_id``, or None if unknown."""
        record = self.get_expression_record(temp_expr_id)
        if record is None:
            logger.warning("Temporal expression %s not found", temp_expr_id)
            return None
        return CronExpression(record.cron_expression, timezone=record.timezone)

    def create_expression(self, record: TemporalExpressionRecord) -> TemporalExpressionRecord:
        with store_errors("create temporal expression"):
            self.insert(
                self.EXPRESSIONS_TABLE,
                {
                    "temp_expr_id": record.temp_expr_id,
                    "cron_expression": record.cron_expression,
                    "timezone": record.timezone,
                    "description": record.description,
                },
            )
            self.commit()
        return record

    # -- legacy recurrence info ------------------------------------------------

    def get_recurrence_info(self, recurrence_info_id: str) -> RecurrenceInfo | None:
        with store_errors("fetch recurrence info"):
            data = self.query_one(
                f"SELECT * FROM {self.RECURRENCE_TABLE} "
                f"WHERE recurrence_info_id = {self.ph(1)}",
                (recurrence_info_id,),
            )
        return self._row_to_recurrence_info(data) if data else None

    def create_recurrence_info(self, info: RecurrenceInfo) -> RecurrenceInfo:
        with store_errors("create recurrence info"):
            self.insert(
                self.RECURRENCE_TABLE,
                {
                    "recurrence_info_id": info.recurrence_info_id,
                    "start_date_time": to_iso8601(info.start_date_time),
                    "frequency": Frequency(info.rule.frequency).value,
                    "interval_number": info.rule.interval_number,
                    "count_number": info.rule.count_number,
                    "until_date_time": to_iso8601(info.rule.until_date_time),
                    "recurrence_count": info.recurrence_count,
                },
            )
            self.commit()
        return info

    def store_recurrence_count(self, info: RecurrenceInfo) -> None:
        """Write back the descriptor's running counter."""
        with store_errors("store recurrence info"):
            self.execute(
                f"UPDATE {self.RECURRENCE_TABLE} SET recurrence_count = {self.ph(1)} "
                f"WHERE recurrence_info_id = {self.ph(1)}",
                (info.recurrence_count, info.recurrence_info_id),
            )
            self.commit()

    def _row_to_recurrence_info(self, data: dict[str, Any]) -> RecurrenceInfo:
        return RecurrenceInfo(
            recurrence_info_id=data["recurrence_info_id"],
            start_date_time=from_iso8601(data["start_date_time"]),
            rule=RecurrenceRule(
                frequency=Frequency(data["frequency"]),
                interval_number=int(data["interval_number"]),
                count_number=int(data["count_number"]),
                until_date_time=from_iso8601(data["until_date_time"]),
            ),
            recurrence_count=int(data["recurrence_count"] or 0),
        )


__all__ = [
    "RecurrenceRepository",
]
