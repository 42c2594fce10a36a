"""Per-job log fields carried in a context variable.

A worker binds the row it is driving once; structlog then stamps every
event emitted on that thread (or task) with the job's identity through
:func:`add_context_processor`.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, fields, replace
from typing import Any

import structlog


@dataclass(frozen=True)
class LogContext:
    """Which job a log line belongs to.

    ``parent_job_id`` is the lineage root; ``attempt`` is 1-based and is
    left off the rendered fields while it is still the first try.
    """

    job_id: str | None = None
    parent_job_id: str | None = None
    instance_id: str | None = None
    service_name: str | None = None
    attempt: int = 1

    def to_dict(self) -> dict[str, Any]:
        out = {f.name: getattr(self, f.name) for f in fields(self)}
        if out["attempt"] == 1:
            del out["attempt"]
        return {key: value for key, value in out.items() if value is not None}

    def merge(self, **kwargs: Any) -> LogContext:
        known = {f.name for f in fields(self)}
        return replace(self, **{k: v for k, v in kwargs.items() if k in known and v is not None})


_EMPTY = LogContext()
_current: ContextVar[LogContext] = ContextVar("jobspine_log_context", default=_EMPTY)


def get_context() -> LogContext:
    return _current.get()


def bind_context(**kwargs: Any) -> LogContext:
    """Merge ``kwargs`` into the current context for the rest of this scope."""
    merged = _current.get().merge(**kwargs)
    _current.set(merged)
    return merged


def clear_context() -> None:
    _current.set(_EMPTY)


class ContextToken:
    """Undo handle returned by :func:`push_context`."""

    def __init__(self, token: Token[LogContext]) -> None:
        self._token = token

    def restore(self) -> None:
        _current.reset(self._token)


def push_context(**kwargs: Any) -> ContextToken:
    """Like :func:`bind_context`, but returns a token that puts the old context back."""
    return ContextToken(_current.set(_current.get().merge(**kwargs)))


@contextmanager
def job_context(**kwargs: Any) -> Iterator[LogContext]:
    """``with job_context(job_id=...):`` form of :func:`push_context`."""
    token = push_context(**kwargs)
    try:
        yield _current.get()
    finally:
        token.restore()


def add_context_processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog processor: copy job fields onto the event without overwriting."""
    for key, value in _current.get().to_dict().items():
        event_dict.setdefault(key, value)
    return event_dict


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)
