"""Execution results.

What an executor hands back after a run that completed. A completed run
can still report an error (``status == ERROR``); that finishes the job
with the error text as its result. A run that raised is a failure and
goes through ``fail()`` instead.

Handlers may return plain mappings; :meth:`ExecutionResult.from_value`
reads the conventional keys::

    {"status": "error" | anything else, "message": str, "messages": [str], ...payload}

Only ``"error"`` (any case) marks an error result; other status values
are kept in the payload.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from jobspine.core.models import truncate_result

_RESERVED_KEYS = frozenset({"status", "message", "messages"})


class ResultStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class ExecutionResult:
    """Outcome of a completed run."""

    status: ResultStatus = ResultStatus.SUCCESS
    message: str | None = None
    messages: list[str] = field(default_factory=list)
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, payload: Mapping[str, Any] | None = None, message: str | None = None) -> ExecutionResult:
        return cls(status=ResultStatus.SUCCESS, message=message, payload=dict(payload or {}))

    @classmethod
    def error(
        cls,
        message: str,
        messages: list[str] | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> ExecutionResult:
        return cls(
            status=ResultStatus.ERROR,
            message=message,
            messages=list(messages or []),
            payload=dict(payload or {}),
        )

    @classmethod
    def from_value(cls, value: Any) -> ExecutionResult:
        """Normalize whatever a handler returned."""
        if isinstance(value, ExecutionResult):
            return value
        if value is None:
            return cls.success()
        if isinstance(value, Mapping):
            messages = value.get("messages") or []
            if isinstance(messages, str):
                messages = [messages]
            payload = {k: v for k, v in value.items() if k not in _RESERVED_KEYS}
            raw_status = value.get("status")
            status_text = str(raw_status).strip().lower()
            is_error = status_text == ResultStatus.ERROR.value
            if raw_status is not None and status_text not in (ResultStatus.ERROR.value, ResultStatus.SUCCESS.value):
                payload["status"] = raw_status
            return cls(
                status=ResultStatus.ERROR if is_error else ResultStatus.SUCCESS,
                message=value.get("message"),
                messages=[str(m) for m in messages],
                payload=payload,
            )
        return cls.success(payload={"result": value})

    @property
    def is_error(self) -> bool:
        return self.status == ResultStatus.ERROR

    def summary(self) -> str | None:
        """Human-readable outcome, clipped to the ``job_result`` column."""
        parts = [p for p in [self.message, *self.messages] if p]
        if not parts:
            return None
        return truncate_result("; ".join(parts))


__all__ = [
    "ResultStatus",
    "ExecutionResult",
]
