"""
jobspine.core — models, errors, protocols and persistence plumbing.

Nothing here knows about the lifecycle state machine; these are the
shared primitives the controller, scheduler and repositories are built
on.
"""

from jobspine.core.errors import (
    ClaimConflict,
    ContextResolutionError,
    ErrorCategory,
    ErrorContext,
    InvalidJob,
    JobError,
    StaleRowError,
    StoreError,
)
from jobspine.core.models import (
    JOB_RESULT_MAX_LENGTH,
    UNLIMITED,
    Frequency,
    JobRow,
    JobStatus,
    RecurrenceInfo,
    RecurrenceRule,
    RuntimeData,
    TemporalExpressionRecord,
    truncate_result,
    validate_job_transition,
)
from jobspine.core.protocols import (
    Connection,
    Executor,
    IdentityResolver,
    JobStore,
    TemporalExpression,
)
from jobspine.core.timestamps import generate_ulid, utc_now

__all__ = [
    # errors
    "ClaimConflict",
    "ContextResolutionError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidJob",
    "JobError",
    "StaleRowError",
    "StoreError",
    # models
    "JOB_RESULT_MAX_LENGTH",
    "UNLIMITED",
    "Frequency",
    "JobRow",
    "JobStatus",
    "RecurrenceInfo",
    "RecurrenceRule",
    "RuntimeData",
    "TemporalExpressionRecord",
    "truncate_result",
    "validate_job_transition",
    # protocols
    "Connection",
    "Executor",
    "IdentityResolver",
    "JobStore",
    "TemporalExpression",
    # timestamps
    "generate_ulid",
    "utc_now",
]
