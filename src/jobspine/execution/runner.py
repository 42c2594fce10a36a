"""Run one job row end to end.

The worker-side driver: bind the log context, claim, initialize, execute,
then finish or fail. A run that raises is a failure; a claim that loses
the race propagates so the caller can move on to the next row.

Example:
    >>> controller = JobLifecycleController.from_connection(job_id, conn)
    >>> outcome = run_job(controller, RegistryExecutor())
    >>> outcome.status
    <JobStatus.FINISHED: 'FINISHED'>
"""

from __future__ import annotations

from jobspine.core.protocols import Executor
from jobspine.execution.controller import JobLifecycleController, JobOutcome
from jobspine.logging import get_logger, job_context

logger = get_logger(__name__)


def run_job(controller: JobLifecycleController, executor: Executor) -> JobOutcome:
    """Drive ``controller`` through one full attempt.

    Raises:
        ClaimConflict: Another worker owns the row, or it was cancelled.
        InvalidJob: The row is owned by another instance, or its schedule
            is unreadable.
        StoreError: Claiming or initializing could not reach the store.
    """
    row = controller.row
    with job_context(
        job_id=row.job_id,
        parent_job_id=row.root_job_id,
        instance_id=controller.instance_id,
        service_name=row.service_name,
        attempt=controller.current_retry_count + 1,
    ):
        controller.claim()
        controller.initialize()
        try:
            result = controller.run(executor)
        except Exception as e:
            logger.exception("job_run_raised", job_id=row.job_id)
            controller.fail(e)
        else:
            controller.finish(result)
        return controller.outcome()


__all__ = ["run_job"]
