"""
jobspine.execution — the job lifecycle and everything it calls out to.

┌──────────────────────────────────────────────────────────────────────┐
│  controller.py  JobLifecycleController: claim → initialize → run →    │
│                 finish | fail                                         │
│  runner.py      run_job(controller, executor) → JobOutcome            │
│  retry.py       RetryPolicy, can_retry, recompute_retry_count         │
│  context.py     ContextResolver (runtime data + run-as identity)      │
│  registry.py    HandlerRegistry, register_service, RegistryExecutor   │
│  result.py      ExecutionResult                                       │
└──────────────────────────────────────────────────────────────────────┘
"""

from jobspine.execution.context import (
    RUN_AS_IDENTITY_KEY,
    ContextResolver,
    MappingIdentityResolver,
    ResolvedContext,
    RunAsIdentity,
)
from jobspine.execution.controller import ControllerState, JobLifecycleController, JobOutcome
from jobspine.execution.registry import (
    HandlerRegistry,
    RegistryExecutor,
    get_default_registry,
    register_service,
    reset_default_registry,
)
from jobspine.execution.result import ExecutionResult, ResultStatus
from jobspine.execution.retry import RetryPolicy, can_retry, recompute_retry_count
from jobspine.execution.runner import run_job

__all__ = [
    # controller
    "ControllerState",
    "JobLifecycleController",
    "JobOutcome",
    "run_job",
    # retry
    "RetryPolicy",
    "can_retry",
    "recompute_retry_count",
    # context
    "RUN_AS_IDENTITY_KEY",
    "ContextResolver",
    "MappingIdentityResolver",
    "ResolvedContext",
    "RunAsIdentity",
    # services
    "HandlerRegistry",
    "RegistryExecutor",
    "get_default_registry",
    "register_service",
    "reset_default_registry",
    "ExecutionResult",
    "ResultStatus",
]
