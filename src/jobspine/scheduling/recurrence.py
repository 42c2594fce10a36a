"""Recurrence sources — where a job's next occurrence comes from.

A job row names its schedule one of two ways:

- ``temp_expr_id``: a stored temporal expression (current form)
- ``recurrence_info_id``: a legacy recurrence descriptor, converted to a
  :class:`~jobspine.scheduling.expressions.FrequencyExpression` on load

Both resolve to a tagged variant with the same ``next(after)``
capability, so the controller never branches on the representation
except to log the legacy deprecation and to keep the legacy counter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Literal

from jobspine.core.errors import InvalidJob
from jobspine.core.models import JobRow, RecurrenceInfo
from jobspine.core.protocols import TemporalExpression
from jobspine.scheduling.expressions import FrequencyExpression

if TYPE_CHECKING:
    from jobspine.repositories.recurrence import RecurrenceRepository

logger = logging.getLogger(__name__)


@dataclass
class ExpressionRecurrence:
    """Schedule given by a stored temporal expression."""

    temp_expr_id: str
    expression: TemporalExpression
    kind: Literal["expression"] = "expression"

    @property
    def current_count(self) -> int | None:
        return None

    def next(self, after: datetime) -> datetime | None:
        return self.expression.next(after)

    def record_occurrence(self, recurrences: RecurrenceRepository) -> None:
        """Nothing to keep: expressions carry no counter."""


@dataclass
class LegacyRecurrence:
    """Schedule given by a legacy recurrence descriptor."""

    info: RecurrenceInfo
    expression: FrequencyExpression
    kind: Literal["legacy"] = "legacy"

    @property
    def current_count(self) -> int | None:
        return self.info.recurrence_count

    def next(self, after: datetime) -> datetime | None:
        return self.expression.next(after)

    def record_occurrence(self, recurrences: RecurrenceRepository) -> None:
        """Advance and store the descriptor's own counter.

        Called once the recurrence budget admits another occurrence, whether
        or not the schedule still yields one.
        """
        self.info.increment_count()
        recurrences.store_recurrence_count(self.info)


RecurrenceSource = ExpressionRecurrence | LegacyRecurrence


def resolve_recurrence(row: JobRow, recurrences: RecurrenceRepository) -> RecurrenceSource | None:
    """Find the recurrence source for ``row``.

    The temporal expression wins when both are set; an expression id
    that points nowhere falls back to the legacy descriptor.

    Raises:
        InvalidJob: The referenced schedule exists but cannot be evaluated.
        StoreError: A lookup failed.
    """
    if row.temp_expr_id:
        try:
            expression = recurrences.get_temporal_expression(row.temp_expr_id)
        except ValueError as e:
            raise InvalidJob(
                f"Job [{row.job_id}] has an unusable temporal expression: {e}",
                cause=e,
            ).with_context(job_id=row.job_id) from e
        if expression is not None:
            return ExpressionRecurrence(temp_expr_id=row.temp_expr_id, expression=expression)

    if row.recurrence_info_id:
        info = recurrences.get_recurrence_info(row.recurrence_info_id)
        if info is None:
            logger.warning(
                "Job %s references missing recurrence info %s",
                row.job_id,
                row.recurrence_info_id,
            )
            return None
        try:
            expression = FrequencyExpression.from_recurrence_info(info)
        except ValueError as e:
            raise InvalidJob(
                f"Job [{row.job_id}] has an unusable recurrence info: {e}",
                cause=e,
            ).with_context(job_id=row.job_id) from e
        return LegacyRecurrence(info=info, expression=expression)

    return None


__all__ = [
    "ExpressionRecurrence",
    "LegacyRecurrence",
    "RecurrenceSource",
    "resolve_recurrence",
]
