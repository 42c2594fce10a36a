"""
Errors raised by the job store and the lifecycle controller.

The controller makes only a few decisions based on what went wrong, and
each decision has one exception type:

    ClaimConflict           row taken, cancelled or not pending; do not run it
    InvalidJob              row missing, foreign, or unusable; fatal for the attempt
    StoreError              store read/write failed; raised from claim and
                            initialize, logged and swallowed by finish/fail
      StaleRowError         a versioned update lost to a concurrent writer
    ContextResolutionError  payload or run-as identity unreadable; the job
                            runs with an empty, degraded context

All of them derive from :class:`JobError`, which carries a category for
log routing, a retryable flag, the job identifiers involved, and the
driver exception (if any) as ``__cause__``::

    raise StoreError("Unable to store job", cause=e).with_context(job_id=row.job_id)
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    CONFLICT = "CONFLICT"
    VALIDATION = "VALIDATION"
    STORAGE = "STORAGE"
    CONTEXT = "CONTEXT"
    EXECUTION = "EXECUTION"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """Job identifiers an error concerns; anything else lands in ``metadata``."""

    job_id: str | None = None
    parent_job_id: str | None = None
    instance_id: str | None = None
    service_name: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def set(self, key: str, value: Any) -> None:
        if key != "metadata" and key in {f.name for f in fields(self)}:
            setattr(self, key, value)
        else:
            self.metadata[key] = value

    def to_dict(self) -> dict[str, Any]:
        known = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "metadata" and getattr(self, f.name) is not None
        }
        return {**known, **self.metadata}


class JobError(Exception):
    """Base of every jobspine error.

    Subclasses pick ``default_category`` and ``default_retryable``;
    callers may override either per instance.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = self.default_retryable if retryable is None else retryable
        self.context = context or ErrorContext()
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> JobError:
        """Attach identifiers and return ``self`` so it can be raised inline."""
        for key, value in kwargs.items():
            self.context.set(key, value)
        return self

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if context := self.context.to_dict():
            data["context"] = context
        if self.cause is not None:
            data["cause"] = str(self.cause)
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


class ClaimConflict(JobError):
    default_category = ErrorCategory.CONFLICT


class InvalidJob(JobError):
    default_category = ErrorCategory.VALIDATION


class StoreError(JobError):
    default_category = ErrorCategory.STORAGE
    default_retryable = True


class StaleRowError(StoreError):
    """Raised by a versioned UPDATE that matched no row."""

    default_retryable = False

    def __init__(self, job_id: str, expected_version: int, message: str | None = None):
        super().__init__(message or f"Job [{job_id}] changed since version {expected_version}")
        self.job_id = job_id
        self.expected_version = expected_version
        self.context.job_id = job_id


class ContextResolutionError(JobError):
    default_category = ErrorCategory.CONTEXT


def is_retryable(error: BaseException) -> bool:
    return isinstance(error, JobError) and error.retryable


# Substrings of driver/library exception class names, checked in order.
_NAME_HINTS: tuple[tuple[tuple[str, ...], ErrorCategory], ...] = (
    (("json", "decode"), ErrorCategory.CONTEXT),
    (("sqlite", "operational", "database", "integrity"), ErrorCategory.STORAGE),
    (("timeout", "connection"), ErrorCategory.EXECUTION),
)


def categorize_error(error: BaseException) -> ErrorCategory:
    """Category of a jobspine error, or a best guess from a foreign exception's class name."""
    if isinstance(error, JobError):
        return error.category
    name = type(error).__name__.lower()
    for hints, category in _NAME_HINTS:
        if any(hint in name for hint in hints):
            return category
    return ErrorCategory.UNKNOWN


__all__ = [
    "ClaimConflict",
    "ContextResolutionError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidJob",
    "JobError",
    "StaleRowError",
    "StoreError",
    "categorize_error",
    "is_retryable",
]
