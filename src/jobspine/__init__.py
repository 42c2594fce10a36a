"""
jobspine - lifecycle control for persisted, recurring, retryable jobs.

- jobspine.core: models, errors, settings and persistence plumbing
- jobspine.repositories: SQL-backed job, runtime-data and recurrence stores
- jobspine.scheduling: recurrence expressions and successor chaining
- jobspine.execution: the lifecycle controller and its collaborators
- jobspine.logging: structlog configuration and job log context
"""

__version__ = "0.1.0"

from jobspine.core import *  # noqa
from jobspine.execution import (  # noqa: E402
    ExecutionResult,
    JobLifecycleController,
    JobOutcome,
    RegistryExecutor,
    register_service,
    run_job,
)
